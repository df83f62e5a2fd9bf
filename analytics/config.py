"""Runtime settings for the analytics backend."""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from . import constants
from .core.types import EntityKind


class AnalyticsSettings(BaseSettings):
    """Configuration read from the environment or a local .env file."""

    # Storage
    DATABASE_URL: str = Field(
        default=constants.DATABASE_URL,
        description="SQLAlchemy async database URL"
    )

    # Read cache
    CACHE_TTL_SECONDS: float = Field(
        default=constants.CACHE_TTL,
        gt=0,
        description="Time-to-live of cached read results"
    )
    CACHE_MAX_SIZE: int = Field(default=constants.CACHE_MAX_SIZE, gt=0)

    # Refresh cadences
    NETWORK_REFRESH_SECONDS: float = Field(default=constants.NETWORK_REFRESH_INTERVAL, gt=0)
    TRANSACTION_REFRESH_SECONDS: float = Field(default=constants.TRANSACTION_REFRESH_INTERVAL, gt=0)
    VALIDATOR_REFRESH_SECONDS: float = Field(default=constants.VALIDATOR_REFRESH_INTERVAL, gt=0)
    DAPP_REFRESH_SECONDS: float = Field(default=constants.DAPP_REFRESH_INTERVAL, gt=0)
    PURGE_INTERVAL_SECONDS: float = Field(default=constants.PURGE_INTERVAL, gt=0)

    # Retention windows
    NETWORK_RETENTION_SECONDS: float = Field(default=constants.NETWORK_RETENTION, gt=0)
    TRANSACTION_RETENTION_SECONDS: float = Field(default=constants.TRANSACTION_RETENTION, gt=0)

    TRANSACTION_BATCH_SIZE: int = Field(default=constants.TRANSACTION_BATCH_SIZE, gt=0)

    # Upstream explorer feed; disabled unless a key is configured
    EXPLORER_API_URL: str = Field(default=constants.EXPLORER_API_URL)
    EXPLORER_API_KEY: Optional[str] = Field(default=None, description="Explorer API key")
    WATCH_ADDRESS: Optional[str] = Field(
        default=None,
        description="Address whose upstream transactions feed the ingestion batches"
    )

    # API
    API_HOST: str = Field(default="0.0.0.0")
    API_PORT: int = Field(default=3000)
    LOG_LEVEL: str = Field(default="INFO")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )

    @property
    def upstream_enabled(self) -> bool:
        return bool(self.EXPLORER_API_KEY)

    def get_refresh_intervals(self):
        """Map of entity kind to refresh interval in seconds."""
        return {
            EntityKind.NETWORK: self.NETWORK_REFRESH_SECONDS,
            EntityKind.TRANSACTIONS: self.TRANSACTION_REFRESH_SECONDS,
            EntityKind.VALIDATORS: self.VALIDATOR_REFRESH_SECONDS,
            EntityKind.DAPPS: self.DAPP_REFRESH_SECONDS,
        }
