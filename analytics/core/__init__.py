"""
Core modules for the analytics backend.
These modules form the foundation of the backend and are designed to avoid
circular dependencies.
"""
from .types import (
    EntityKind,
    TransactionStatus,
    TransactionKind,
    DappCategory,
    NetworkSnapshot,
    TransactionRecord,
    ValidatorRecord,
    DappRecord,
    DashboardMetrics,
    DashboardView,
    IngestionResult
)
from .database import DatabaseManager

__all__ = [
    'EntityKind',
    'TransactionStatus',
    'TransactionKind',
    'DappCategory',
    'NetworkSnapshot',
    'TransactionRecord',
    'ValidatorRecord',
    'DappRecord',
    'DashboardMetrics',
    'DashboardView',
    'IngestionResult',
    'DatabaseManager'
]
