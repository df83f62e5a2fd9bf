"""
Optional upstream explorer feed.

Queries an Etherscan-compatible `txlist` endpoint for the transactions of an
address. Every failure mode surfaces as UpstreamError, and
`fetch_with_fallback` turns those into synthetic records, so callers never
observe an upstream failure.
"""
import asyncio
from typing import Any, Callable, Dict, List, Optional

import aiohttp
import structlog
from pydantic import ValidationError

from error_handling.circuit_breaker import CircuitBreaker
from .constants import EXPLORER_API_URL, EXPLORER_TIMEOUT, WEI_PER_ETHER, WEI_PER_GWEI
from .core.types import TransactionKind, TransactionRecord, TransactionStatus
from .errors import UpstreamError
from .generator import SyntheticGenerator

logger = structlog.get_logger()


def parse_explorer_transaction(tx: Dict[str, Any]) -> TransactionRecord:
    """Convert one explorer `txlist` entry to a TransactionRecord.

    Raises:
        KeyError, TypeError, ValueError: If the entry is malformed.
    """
    gas_used = int(tx["gasUsed"])
    gas_price_wei = int(tx["gasPrice"])
    return TransactionRecord(
        hash=tx["hash"],
        block_number=int(tx["blockNumber"]),
        from_address=tx["from"],
        to_address=tx["to"] or "",
        value=f"{int(tx['value']) / WEI_PER_ETHER:.6f}",
        gas_used=gas_used,
        gas_price=round(gas_price_wei / WEI_PER_GWEI),
        fee=round(gas_used * gas_price_wei / WEI_PER_ETHER, 6),
        status=TransactionStatus.SUCCESS if str(tx.get("txreceipt_status")) == "1" else TransactionStatus.FAILED,
        kind=TransactionKind.TRANSFER if tx.get("input", "0x") == "0x" else TransactionKind.CONTRACT,
        timestamp=float(tx["timeStamp"]),
    )


class ExplorerFeed:
    """Client for the upstream explorer API."""

    def __init__(self, api_key: str, api_url: str = EXPLORER_API_URL,
                 timeout: float = EXPLORER_TIMEOUT,
                 breaker: Optional[CircuitBreaker] = None,
                 session: Optional[aiohttp.ClientSession] = None):
        self.api_key = api_key
        self.api_url = api_url
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.breaker = breaker or CircuitBreaker(failure_threshold=3, recovery_timeout=60)
        self.session = session

    async def _get_session(self) -> aiohttp.ClientSession:
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession(timeout=self.timeout)
        return self.session

    async def close(self) -> None:
        if self.session and not self.session.closed:
            await self.session.close()

    async def fetch_transactions(self, address: str, limit: int) -> List[TransactionRecord]:
        """Fetch the most recent transactions of an address, newest first.

        Raises:
            UpstreamError: On network errors, non-success status or malformed payloads.
        """
        return await self.breaker.call(self._fetch_transactions, address, limit)

    async def _fetch_transactions(self, address: str, limit: int) -> List[TransactionRecord]:
        params = {
            "module": "account",
            "action": "txlist",
            "address": address,
            "startblock": 0,
            "endblock": 99999999,
            "sort": "desc",
            "apikey": self.api_key,
        }
        session = await self._get_session()
        try:
            async with session.get(self.api_url, params=params) as response:
                if response.status != 200:
                    raise UpstreamError(f"Explorer returned HTTP {response.status}")
                payload = await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            raise UpstreamError(f"Explorer request failed: {e}") from e

        if not isinstance(payload, dict) or payload.get("status") != "1":
            message = payload.get("message") if isinstance(payload, dict) else "invalid payload"
            raise UpstreamError(f"Explorer error: {message}")

        result = payload.get("result")
        if not isinstance(result, list):
            raise UpstreamError("Explorer result is not a list")

        try:
            return [parse_explorer_transaction(tx) for tx in result[:limit]]
        except (KeyError, TypeError, ValueError, ValidationError) as e:
            raise UpstreamError(f"Malformed explorer transaction: {e}") from e


async def fetch_with_fallback(feed: Optional[ExplorerFeed], generator: SyntheticGenerator,
                              address: str, limit: int,
                              fallback: Optional[Callable[[str, int], List[TransactionRecord]]] = None
                              ) -> List[TransactionRecord]:
    """Fetch address transactions upstream, falling back to synthetic records.

    Args:
        fallback: Builds the synthetic records; defaults to a backdated
            address history from the generator.
    """
    fallback = fallback or generator.transactions_for_address
    if feed is None:
        return fallback(address, limit)
    try:
        return await feed.fetch_transactions(address, limit)
    except UpstreamError as e:
        logger.warning("upstream_fallback", address=address, error=str(e))
        return fallback(address, limit)
