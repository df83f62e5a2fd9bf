"""Run the analytics API server."""
import uvicorn

from config.logging import configure_logging
from .config import AnalyticsSettings


def main():
    settings = AnalyticsSettings()
    configure_logging(settings.LOG_LEVEL)
    uvicorn.run(
        "dashboard.app:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        log_config=None,
    )


if __name__ == "__main__":
    main()
