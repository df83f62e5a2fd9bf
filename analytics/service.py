"""
Read API.

Every query goes through the read cache under a key that names its shape,
so repeated reads within the TTL hit the store once, and a failing store
read falls back to the last value served for that key.
"""
import time
from typing import Callable, List, Optional

import structlog

from cache.core import Cache, cache_key
from .aggregator import DashboardAggregator
from .constants import DEFAULT_HISTORY_HOURS, DEFAULT_TRANSACTION_LIMIT
from .core.database import DatabaseManager
from .core.types import (
    DappRecord,
    DashboardView,
    NetworkSnapshot,
    TransactionRecord,
    ValidatorRecord,
)
from .generator import SyntheticGenerator
from .upstream import ExplorerFeed, fetch_with_fallback

logger = structlog.get_logger()


class AnalyticsService:
    """Cached read access to the analytics store."""

    def __init__(self, store: DatabaseManager, cache: Cache,
                 generator: Optional[SyntheticGenerator] = None,
                 feed: Optional[ExplorerFeed] = None,
                 clock: Callable[[], float] = time.time):
        self.store = store
        self.cache = cache
        self.generator = generator or SyntheticGenerator(clock=clock)
        self.feed = feed
        self.clock = clock
        self.aggregator = DashboardAggregator(self)

    async def get_latest_network_snapshot(self) -> Optional[NetworkSnapshot]:
        """Most recent network snapshot, or None before the first network tick."""
        return await self.cache.cached_read(
            cache_key("network", "latest"),
            self.store.latest_network_snapshot,
        )

    async def get_network_history(self, hours: float = DEFAULT_HISTORY_HOURS) -> List[NetworkSnapshot]:
        """Snapshots of the last `hours` hours, oldest first."""
        async def load():
            return await self.store.network_history(self.clock() - hours * 3600)
        return await self.cache.cached_read(cache_key("network", "history", f"{float(hours):g}"), load)

    async def get_recent_transactions(self, limit: int = DEFAULT_TRANSACTION_LIMIT) -> List[TransactionRecord]:
        """At most `limit` transactions, newest first."""
        async def load():
            return await self.store.recent_transactions(limit)
        return await self.cache.cached_read(cache_key("transactions", "recent", limit), load)

    async def get_active_validators(self) -> List[ValidatorRecord]:
        return await self.cache.cached_read(
            cache_key("validators", "active"),
            self.store.active_validators,
        )

    async def get_active_dapps(self) -> List[DappRecord]:
        return await self.cache.cached_read(
            cache_key("dapps", "active"),
            self.store.active_dapps,
        )

    async def get_address_transactions(self, address: str,
                                       limit: int = DEFAULT_TRANSACTION_LIMIT) -> List[TransactionRecord]:
        """Transactions of one address from the upstream explorer.

        Upstream failures are replaced by synthetic records for the address,
        so this never raises UpstreamError.
        """
        async def load():
            return await fetch_with_fallback(self.feed, self.generator, address, limit)
        return await self.cache.cached_read(cache_key("transactions", "address", address.lower(), limit), load)

    async def get_dashboard_view(self) -> DashboardView:
        return await self.aggregator.build()
