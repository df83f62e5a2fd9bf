"""
Process wiring.

Builds the store, cache, generator, feed, pipeline, scheduler and read
service from settings, and owns their start and shutdown order.
"""
from typing import Optional

import structlog

from cache.core import Cache
from .config import AnalyticsSettings
from .core.database import DatabaseManager
from .core.types import EntityKind
from .generator import SyntheticGenerator
from .ingestion import IngestionPipeline
from .metrics import IngestionMetrics
from .scheduler import Scheduler
from .service import AnalyticsService
from .upstream import ExplorerFeed

logger = structlog.get_logger()

PURGE_TASK = "purge"


class AnalyticsRuntime:
    """All long-lived components of one backend process."""

    def __init__(self, settings: Optional[AnalyticsSettings] = None,
                 store: Optional[DatabaseManager] = None,
                 cache: Optional[Cache] = None,
                 generator: Optional[SyntheticGenerator] = None,
                 feed: Optional[ExplorerFeed] = None):
        self.settings = settings or AnalyticsSettings()
        self.store = store or DatabaseManager(
            self.settings.DATABASE_URL,
            network_retention=self.settings.NETWORK_RETENTION_SECONDS,
            transaction_retention=self.settings.TRANSACTION_RETENTION_SECONDS,
        )
        self.cache = cache or Cache(
            default_ttl=self.settings.CACHE_TTL_SECONDS,
            max_size=self.settings.CACHE_MAX_SIZE,
        )
        self.generator = generator or SyntheticGenerator()
        if feed is None and self.settings.upstream_enabled:
            feed = ExplorerFeed(self.settings.EXPLORER_API_KEY, api_url=self.settings.EXPLORER_API_URL)
        self.feed = feed

        metrics = IngestionMetrics()
        self.pipeline = IngestionPipeline(
            self.store,
            self.generator,
            feed=self.feed,
            watch_address=self.settings.WATCH_ADDRESS,
            batch_size=self.settings.TRANSACTION_BATCH_SIZE,
            metrics=metrics,
        )
        self.scheduler = Scheduler(metrics=metrics)
        self.service = AnalyticsService(self.store, self.cache, self.generator, feed=self.feed)
        self._register_tasks()

    def _register_tasks(self) -> None:
        refreshers = {
            EntityKind.NETWORK: self.pipeline.refresh_network_stats,
            EntityKind.TRANSACTIONS: self.pipeline.refresh_transactions,
            EntityKind.VALIDATORS: self.pipeline.refresh_validators,
            EntityKind.DAPPS: self.pipeline.refresh_dapps,
        }
        for kind, interval in self.settings.get_refresh_intervals().items():
            self.scheduler.register(kind.value, interval, refreshers[kind])
        self.scheduler.register(PURGE_TASK, self.settings.PURGE_INTERVAL_SECONDS,
                                self.pipeline.purge_expired)

    async def start(self, schedule: bool = True, initial_load: bool = True) -> None:
        """Create tables, run one tick of every task, then start the schedule."""
        await self.store.init()
        if initial_load:
            await self.scheduler.run_all_once()
            logger.info("initial_load_completed")
        if schedule:
            self.scheduler.start()

    async def stop(self) -> None:
        await self.scheduler.stop()
        if self.feed is not None:
            await self.feed.close()
        await self.store.close()
        logger.info("runtime_stopped")
