"""
Durable store for the analytics backend.
Keeps one table per entity kind and enforces the retention windows of the
append kinds, so storage does not grow without bound.
"""
import functools
import time
from typing import Callable, Dict, List, Optional, Sequence

import structlog
from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from ..constants import DATABASE_URL, NETWORK_RETENTION, TRANSACTION_RETENTION
from ..errors import PersistenceError, UniqueConstraintViolation
from ..models import Base, Dapp, NetworkStats, Transaction, Validator
from .types import (
    DappRecord,
    EntityKind,
    NetworkSnapshot,
    TransactionRecord,
    ValidatorRecord,
)

logger = structlog.get_logger()

MODELS = {
    EntityKind.NETWORK: NetworkStats,
    EntityKind.TRANSACTIONS: Transaction,
    EntityKind.VALIDATORS: Validator,
    EntityKind.DAPPS: Dapp,
}


def _persistence_errors(method):
    """Re-raise driver failures of a store operation as PersistenceError."""
    @functools.wraps(method)
    async def wrapper(self, *args, **kwargs):
        try:
            return await method(self, *args, **kwargs)
        except SQLAlchemyError as e:
            logger.error("database_operation_failed",
                        operation=method.__name__,
                        error=str(e),
                        error_type=type(e).__name__)
            raise PersistenceError(f"{method.__name__} failed: {e}") from e
    return wrapper


class DatabaseManager:
    """Manages the database engine and per-kind collection operations."""

    def __init__(self,
                 db_url: str = DATABASE_URL,
                 clock: Callable[[], float] = time.time,
                 network_retention: float = NETWORK_RETENTION,
                 transaction_retention: float = TRANSACTION_RETENTION):
        """Initialize the database manager.

        Args:
            db_url: SQLAlchemy async database URL. Defaults to a SQLite file in the working directory.
            clock: Returns the current time in epoch seconds; drives retention.
            network_retention: Seconds a network snapshot is kept.
            transaction_retention: Seconds a transaction is kept.
        """
        engine_kwargs = {}
        if ":memory:" in db_url:
            # A single shared connection keeps the in-memory database alive
            engine_kwargs["poolclass"] = StaticPool
            engine_kwargs["connect_args"] = {"check_same_thread": False}

        self.db_url = db_url
        self.clock = clock
        self.retention = {
            EntityKind.NETWORK: network_retention,
            EntityKind.TRANSACTIONS: transaction_retention,
        }
        self.engine = create_async_engine(db_url, **engine_kwargs)
        self.Session = async_sessionmaker(self.engine, expire_on_commit=False)

    @_persistence_errors
    async def init(self) -> None:
        """Create tables if they don't exist."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("database_initialized", db_url=self.db_url)

    async def close(self) -> None:
        await self.engine.dispose()
        logger.info("database_closed")

    # Append kinds

    @_persistence_errors
    async def add_network_snapshot(self, snapshot: NetworkSnapshot) -> None:
        async with self.Session() as session:
            session.add(NetworkStats(**snapshot.model_dump()))
            await session.commit()

    async def insert_transactions(self, records: Sequence[TransactionRecord]) -> int:
        """Insert transactions one by one, skipping duplicate hashes.

        Args:
            records: Transactions to append.

        Returns:
            Number of records actually stored.
        """
        inserted = 0
        for record in records:
            try:
                await self._insert_transaction(record)
            except UniqueConstraintViolation:
                logger.warning("duplicate_transaction_skipped", hash=record.hash)
                continue
            inserted += 1
        return inserted

    @_persistence_errors
    async def _insert_transaction(self, record: TransactionRecord) -> None:
        async with self.Session() as session:
            session.add(Transaction(**record.model_dump()))
            try:
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                raise UniqueConstraintViolation("transaction", record.hash) from e

    # Replace kinds

    async def replace_validators(self, records: Sequence[ValidatorRecord]) -> int:
        return await self._replace(Validator, [Validator(**r.model_dump()) for r in records])

    async def replace_dapps(self, records: Sequence[DappRecord]) -> int:
        return await self._replace(Dapp, [Dapp(**r.model_dump()) for r in records])

    @_persistence_errors
    async def _replace(self, model, rows: List) -> int:
        # Delete and insert commit together; a failure keeps the previous set.
        async with self.Session() as session:
            async with session.begin():
                result = await session.execute(delete(model))
                session.add_all(rows)
        logger.debug("collection_replaced",
                    table=model.__tablename__,
                    deleted=result.rowcount,
                    inserted=len(rows))
        return len(rows)

    # Queries

    @_persistence_errors
    async def latest_network_snapshot(self) -> Optional[NetworkSnapshot]:
        stmt = (select(NetworkStats)
                .order_by(NetworkStats.timestamp.desc(), NetworkStats.id.desc())
                .limit(1))
        async with self.Session() as session:
            row = (await session.execute(stmt)).scalars().first()
        return NetworkSnapshot.model_validate(row) if row else None

    @_persistence_errors
    async def network_history(self, since: float) -> List[NetworkSnapshot]:
        """Get snapshots with timestamp >= since, oldest first."""
        stmt = (select(NetworkStats)
                .where(NetworkStats.timestamp >= since)
                .order_by(NetworkStats.timestamp.asc(), NetworkStats.id.asc()))
        async with self.Session() as session:
            rows = (await session.execute(stmt)).scalars().all()
        return [NetworkSnapshot.model_validate(row) for row in rows]

    @_persistence_errors
    async def recent_transactions(self, limit: int) -> List[TransactionRecord]:
        """Get at most `limit` transactions, newest first."""
        if limit <= 0:
            return []
        stmt = select(Transaction).order_by(Transaction.timestamp.desc()).limit(limit)
        async with self.Session() as session:
            rows = (await session.execute(stmt)).scalars().all()
        return [TransactionRecord.model_validate(row) for row in rows]

    @_persistence_errors
    async def active_validators(self) -> List[ValidatorRecord]:
        stmt = (select(Validator)
                .where(Validator.is_active.is_(True))
                .order_by(Validator.stake.desc()))
        async with self.Session() as session:
            rows = (await session.execute(stmt)).scalars().all()
        return [ValidatorRecord.model_validate(row) for row in rows]

    @_persistence_errors
    async def active_dapps(self) -> List[DappRecord]:
        stmt = (select(Dapp)
                .where(Dapp.is_active.is_(True))
                .order_by(Dapp.tvl.desc()))
        async with self.Session() as session:
            rows = (await session.execute(stmt)).scalars().all()
        return [DappRecord.model_validate(row) for row in rows]

    @_persistence_errors
    async def count(self, kind: EntityKind) -> int:
        model = MODELS[EntityKind(kind)]
        async with self.Session() as session:
            return (await session.execute(select(func.count()).select_from(model))).scalar_one()

    # Retention

    @_persistence_errors
    async def purge_expired(self, now: Optional[float] = None) -> Dict[EntityKind, int]:
        """Delete append-kind records older than their retention windows.

        Args:
            now: Reference time in epoch seconds, defaults to the store clock.

        Returns:
            Number of deleted records per entity kind.
        """
        now = self.clock() if now is None else now
        purged = {}
        async with self.Session() as session:
            async with session.begin():
                for kind, window in self.retention.items():
                    model = MODELS[kind]
                    result = await session.execute(
                        delete(model).where(model.timestamp < now - window)
                    )
                    purged[kind] = result.rowcount
        if any(purged.values()):
            logger.info("expired_records_purged",
                       network=purged[EntityKind.NETWORK],
                       transactions=purged[EntityKind.TRANSACTIONS])
        return purged
