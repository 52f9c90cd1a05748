"""Snapshot persistence: adapter contract, adapters and the ledger repository."""

from ledger_kernel.persistence.interfaces import (
    OrderBy,
    QueryFilters,
    QueryOperator,
    SortDirection,
    StorageAdapter,
    WhereCondition,
)
from ledger_kernel.persistence.memory_adapter import MemoryAdapter
from ledger_kernel.persistence.repository import LedgerRepository
from ledger_kernel.persistence.sql_adapter import SQLAdapter

__all__ = [
    "LedgerRepository",
    "MemoryAdapter",
    "OrderBy",
    "QueryFilters",
    "QueryOperator",
    "SQLAdapter",
    "SortDirection",
    "StorageAdapter",
    "WhereCondition",
]
