"""Dashboard view assembled from the four cached reads."""
import asyncio

import structlog

from .constants import DASHBOARD_TOP_N, DASHBOARD_TRANSACTION_LIMIT
from .core.types import DashboardMetrics, DashboardView

logger = structlog.get_logger()


class DashboardAggregator:
    """Combines network, transaction, validator and dapp reads into one view.

    The four reads run concurrently and are not reconciled against each
    other, so the view may mix data from different ticks.
    """

    def __init__(self, service, top_n: int = DASHBOARD_TOP_N,
                 transaction_limit: int = DASHBOARD_TRANSACTION_LIMIT):
        self.service = service
        self.top_n = top_n
        self.transaction_limit = transaction_limit

    async def build(self) -> DashboardView:
        network, transactions, validators, dapps = await asyncio.gather(
            self.service.get_latest_network_snapshot(),
            self.service.get_recent_transactions(self.transaction_limit),
            self.service.get_active_validators(),
            self.service.get_active_dapps(),
        )

        validators = sorted(validators, key=lambda v: v.stake, reverse=True)
        dapps = sorted(dapps, key=lambda d: d.tvl, reverse=True)

        metrics = DashboardMetrics(
            total_validators=len(validators),
            total_dapps=len(dapps),
            total_tvl=sum(d.tvl for d in dapps),
            total_24h_volume=sum(d.volume_24h for d in dapps),
        )
        logger.debug("dashboard_view_built",
                     validators=metrics.total_validators,
                     dapps=metrics.total_dapps)
        return DashboardView(
            network=network,
            recent_transactions=transactions,
            top_validators=validators[:self.top_n],
            top_dapps=dapps[:self.top_n],
            metrics=metrics,
        )
