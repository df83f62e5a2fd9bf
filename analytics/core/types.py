"""
Core type definitions for the analytics backend.
These types are shared by the store, the ingestion pipeline and the read API
and don't import from other analytics modules to prevent circular dependencies.
"""
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class EntityKind(str, Enum):
    """Kinds of records ingested and served by the backend."""
    NETWORK = "network"
    TRANSACTIONS = "transactions"
    VALIDATORS = "validators"
    DAPPS = "dapps"


class TransactionStatus(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"


class TransactionKind(str, Enum):
    TRANSFER = "transfer"
    CONTRACT = "contract"


class DappCategory(str, Enum):
    DEFI = "DeFi"
    GAMING = "Gaming"
    NFT = "NFT"
    INFRASTRUCTURE = "Infrastructure"
    SOCIAL = "Social"
    OTHER = "Other"


class ApiModel(BaseModel):
    """Base for models served over HTTP; JSON field names are camelCase."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Record(ApiModel):
    """Base class for persisted records; timestamps are epoch seconds."""
    model_config = ConfigDict(from_attributes=True, use_enum_values=True)

    timestamp: float


class NetworkSnapshot(Record):
    """Point-in-time network statistics."""
    block_height: int
    tps: float
    avg_block_time: float
    total_transactions: int
    active_validators: int
    network_hashrate: str
    gas_price: float
    total_supply: str


class TransactionRecord(Record):
    """A single transaction, identified by its hash."""
    hash: str
    block_number: int
    from_address: str
    to_address: str
    value: str
    gas_used: int
    gas_price: float
    fee: float
    status: TransactionStatus
    kind: TransactionKind = TransactionKind.TRANSFER


class ValidatorRecord(Record):
    """A validator, identified by its address."""
    address: str
    name: str
    stake: float
    commission: float
    uptime: float = Field(ge=0, le=100)
    blocks_proposed: int = 0
    blocks_validated: int = 0
    is_active: bool = True
    delegators: int = 0
    apr: float = 0.0
    last_seen: float


class DappRecord(Record):
    """A decentralized application, identified by its contract address."""
    contract_address: str
    name: str
    category: DappCategory
    tvl: float = 0.0
    volume_24h: float = 0.0
    users_24h: int = 0
    transactions_24h: int = 0
    is_active: bool = True
    description: str = ""
    website: str = ""
    logo: str = ""


class DashboardMetrics(ApiModel):
    """Metrics derived from the full validator and dapp lists."""
    total_validators: int
    total_dapps: int
    total_tvl: float
    total_24h_volume: float


class DashboardView(ApiModel):
    """Best-effort snapshot of independently refreshed sources."""
    network: Optional[NetworkSnapshot] = None
    recent_transactions: List[TransactionRecord]
    top_validators: List[ValidatorRecord]
    top_dapps: List[DappRecord]
    metrics: DashboardMetrics


class IngestionResult(BaseModel):
    """Outcome of one ingestion tick."""
    model_config = ConfigDict(use_enum_values=True)

    kind: EntityKind
    ok: bool
    generated: int = 0
    stored: int = 0
    skipped: int = 0
    error: Optional[str] = None
