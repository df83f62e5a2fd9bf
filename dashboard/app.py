from contextlib import asynccontextmanager
from typing import List, Optional
import time

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
import structlog

from analytics import __version__
from analytics.constants import DEFAULT_HISTORY_HOURS, DEFAULT_TRANSACTION_LIMIT
from analytics.core.types import (
    DappRecord,
    DashboardView,
    NetworkSnapshot,
    TransactionRecord,
    ValidatorRecord,
)
from analytics.errors import CacheLoadError
from analytics.runtime import AnalyticsRuntime
from analytics.service import AnalyticsService
from config.logging import log_error

logger = structlog.get_logger()

# Initialize rate limiter
limiter = Limiter(key_func=get_remote_address)

REQUEST_COUNT = Counter(
    'analytics_http_requests_total',
    'Total HTTP requests',
    ['endpoint', 'method', 'status']
)

REQUEST_LATENCY = Histogram(
    'analytics_http_request_duration_seconds',
    'HTTP request latency',
    ['endpoint', 'method']
)


async def _rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Handle rate limit exceeded errors."""
    return JSONResponse(
        status_code=429,
        content={
            "error": "Too many requests",
            "detail": f"Rate limit exceeded: {exc.detail}"
        }
    )


async def _cache_load_error_handler(request: Request, exc: CacheLoadError) -> JSONResponse:
    """A read failed and there was nothing cached to fall back to."""
    log_error(logger, exc, {"path": request.url.path, "key": exc.key}, event="read_unavailable")
    return JSONResponse(
        status_code=503,
        content={
            "error": "Service unavailable",
            "detail": str(exc)
        }
    )


def create_app(runtime: Optional[AnalyticsRuntime] = None, schedule: bool = True,
               initial_load: bool = True) -> FastAPI:
    """Create the dashboard API.

    Args:
        runtime: Components to serve, or None to build them from settings at startup.
        schedule: Whether to start the periodic refresh after the initial load.
        initial_load: Whether to run one refresh of every kind before serving.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        rt = runtime or AnalyticsRuntime()
        await rt.start(schedule=schedule, initial_load=initial_load)
        app.state.runtime = rt
        app.state.started_at = time.time()
        logger.info("dashboard_api_started", tasks=rt.scheduler.task_names)
        try:
            yield
        finally:
            await rt.stop()
            logger.info("dashboard_api_stopped")

    app = FastAPI(
        title="Monad Analytics API",
        description="Network, transaction, validator and dapp analytics",
        version=__version__,
        lifespan=lifespan
    )

    # Add rate limiting
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_exception_handler(CacheLoadError, _cache_load_error_handler)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000"],
        allow_credentials=True,
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def metrics_middleware(request: Request, call_next):
        start_time = time.time()
        response = await call_next(request)
        REQUEST_COUNT.labels(
            endpoint=request.url.path,
            method=request.method,
            status=response.status_code
        ).inc()
        REQUEST_LATENCY.labels(
            endpoint=request.url.path,
            method=request.method
        ).observe(time.time() - start_time)
        return response

    def service(request: Request) -> AnalyticsService:
        return request.app.state.runtime.service

    @app.get("/api/network", response_model=NetworkSnapshot)
    @limiter.limit("120/minute")
    async def network(request: Request):
        snapshot = await service(request).get_latest_network_snapshot()
        if snapshot is None:
            raise HTTPException(status_code=404, detail="No network data available yet")
        return snapshot

    @app.get("/api/network/history", response_model=List[NetworkSnapshot])
    @limiter.limit("60/minute")
    async def network_history(request: Request,
                              hours: float = Query(DEFAULT_HISTORY_HOURS, gt=0, le=168)):
        return await service(request).get_network_history(hours)

    @app.get("/api/transactions", response_model=List[TransactionRecord])
    @limiter.limit("120/minute")
    async def transactions(request: Request,
                           limit: int = Query(DEFAULT_TRANSACTION_LIMIT, ge=1, le=100),
                           address: Optional[str] = Query(None, min_length=1)):
        if address:
            return await service(request).get_address_transactions(address, limit)
        return await service(request).get_recent_transactions(limit)

    @app.get("/api/validators", response_model=List[ValidatorRecord])
    @limiter.limit("60/minute")
    async def validators(request: Request):
        return await service(request).get_active_validators()

    @app.get("/api/dapps", response_model=List[DappRecord])
    @limiter.limit("60/minute")
    async def dapps(request: Request):
        return await service(request).get_active_dapps()

    @app.get("/api/dashboard", response_model=DashboardView)
    @limiter.limit("60/minute")
    async def dashboard(request: Request):
        return await service(request).get_dashboard_view()

    @app.get("/api/health")
    async def health(request: Request):
        now = time.time()
        return {
            "status": "healthy",
            "timestamp": now,
            "uptime": now - request.app.state.started_at,
            "scheduler_running": request.app.state.runtime.scheduler.is_running,
            "cache": {
                key: value
                for key, value in request.app.state.runtime.cache.get_stats().items()
                if key != "items"
            },
        }

    @app.get("/metrics")
    async def metrics():
        return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

    return app


app = create_app()
