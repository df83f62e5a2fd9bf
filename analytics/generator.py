"""
Synthetic record generation.

Produces plausible network statistics, transactions, validators and dapps
when no upstream feed is configured, or when the feed fails.
"""
import random
import time
from typing import Callable, List, Optional

from pydantic import ValidationError

from .constants import TRANSACTION_BATCH_SIZE, VALIDATOR_SET_SIZE
from .core.types import (
    DappCategory,
    DappRecord,
    NetworkSnapshot,
    TransactionKind,
    TransactionRecord,
    TransactionStatus,
    ValidatorRecord,
)
from .errors import GenerationError

VALIDATOR_NAMES = [
    "MonadNode1", "StakePool Alpha", "Validator Pro", "ChainGuard",
    "BlockMaster", "CryptoStake", "NodeRunner", "ValidatorX",
]

DAPP_CATALOG = [
    ("MonadSwap", DappCategory.DEFI, "Leading DEX on Monad"),
    ("MonadLend", DappCategory.DEFI, "Lending and borrowing protocol"),
    ("CryptoQuest", DappCategory.GAMING, "Adventure RPG game"),
    ("MonadNFTs", DappCategory.NFT, "NFT marketplace"),
    ("SocialMON", DappCategory.SOCIAL, "Decentralized social platform"),
]


class SyntheticGenerator:
    """Builds synthetic records for every entity kind.

    Args:
        rng: Random source; defaults to the OS entropy pool so transaction
            hashes carry 256 bits of entropy.
        clock: Returns the current time in epoch seconds.
    """

    def __init__(self, rng: Optional[random.Random] = None,
                 clock: Callable[[], float] = time.time):
        self.rng = rng or random.SystemRandom()
        self.clock = clock

    def _hex(self, length: int) -> str:
        return "0x" + format(self.rng.getrandbits(length * 4), f"0{length}x")

    def address(self) -> str:
        return self._hex(40)

    def tx_hash(self) -> str:
        return self._hex(64)

    def network_snapshot(self) -> NetworkSnapshot:
        rng = self.rng
        try:
            return NetworkSnapshot(
                block_height=rng.randint(5_000_000, 5_999_999),
                tps=rng.randint(100, 1099),
                avg_block_time=round(rng.uniform(1, 3), 2),
                total_transactions=rng.randint(50_000_000, 59_999_999),
                active_validators=rng.randint(100, 149),
                network_hashrate=f"{rng.uniform(500, 1500):.2f} TH/s",
                gas_price=rng.randint(5, 24),
                total_supply=f"{rng.uniform(1_000_000_000, 1_100_000_000):.0f}",
                timestamp=self.clock(),
            )
        except ValidationError as e:
            raise GenerationError(f"Invalid network snapshot: {e}") from e

    def transaction(self, from_address: Optional[str] = None,
                    timestamp: Optional[float] = None) -> TransactionRecord:
        rng = self.rng
        try:
            return TransactionRecord(
                hash=self.tx_hash(),
                block_number=rng.randint(5_000_000, 5_000_999),
                from_address=from_address or self.address(),
                to_address=self.address(),
                value=f"{rng.uniform(0, 1000):.6f}",
                gas_used=rng.randint(21_000, 120_999),
                gas_price=rng.randint(10, 59),
                fee=round(rng.uniform(0, 0.01), 6),
                status=TransactionStatus.SUCCESS if rng.random() > 0.1 else TransactionStatus.FAILED,
                kind=TransactionKind.CONTRACT if rng.random() > 0.7 else TransactionKind.TRANSFER,
                timestamp=self.clock() if timestamp is None else timestamp,
            )
        except ValidationError as e:
            raise GenerationError(f"Invalid transaction: {e}") from e

    def transactions(self, count: int = TRANSACTION_BATCH_SIZE) -> List[TransactionRecord]:
        return [self.transaction() for _ in range(count)]

    def transactions_from(self, address: str, count: int = TRANSACTION_BATCH_SIZE) -> List[TransactionRecord]:
        """A batch sent by one address, stamped with the current time."""
        return [self.transaction(from_address=address) for _ in range(count)]

    def transactions_for_address(self, address: str, count: int) -> List[TransactionRecord]:
        """Fallback history for an address, spread over the last 24 hours, newest first."""
        now = self.clock()
        records = [
            self.transaction(from_address=address,
                             timestamp=now - self.rng.uniform(0, 86_400))
            for _ in range(count)
        ]
        return sorted(records, key=lambda tx: tx.timestamp, reverse=True)

    def validators(self, count: int = VALIDATOR_SET_SIZE) -> List[ValidatorRecord]:
        rng = self.rng
        now = self.clock()
        validators = []
        try:
            for i in range(count):
                validators.append(ValidatorRecord(
                    address=self.address(),
                    name=VALIDATOR_NAMES[i] if i < len(VALIDATOR_NAMES) else f"Validator{i + 1}",
                    stake=float(rng.randint(1_000_000, 10_999_999)),
                    commission=round(rng.uniform(2, 12), 1),
                    uptime=round(rng.uniform(95, 100), 2),
                    blocks_proposed=rng.randint(100, 1099),
                    blocks_validated=rng.randint(1000, 5999),
                    delegators=rng.randint(50, 549),
                    apr=round(rng.uniform(5, 20), 2),
                    last_seen=now,
                    timestamp=now,
                ))
        except ValidationError as e:
            raise GenerationError(f"Invalid validator: {e}") from e
        return validators

    def dapps(self) -> List[DappRecord]:
        rng = self.rng
        now = self.clock()
        dapps = []
        try:
            for name, category, description in DAPP_CATALOG:
                slug = name.lower()
                dapps.append(DappRecord(
                    contract_address=self.address(),
                    name=name,
                    category=category,
                    description=description,
                    tvl=float(rng.randint(1_000_000, 50_999_999)),
                    volume_24h=float(rng.randint(100_000, 10_099_999)),
                    users_24h=rng.randint(500, 5499),
                    transactions_24h=rng.randint(1000, 50_999),
                    website=f"https://{slug}.monad.xyz",
                    logo=f"/assets/{slug}-logo.png",
                    timestamp=now,
                ))
        except ValidationError as e:
            raise GenerationError(f"Invalid dapp: {e}") from e
        return dapps
