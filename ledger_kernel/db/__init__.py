"""Database layer - engine, base classes and the snapshot document model."""

from ledger_kernel.db.base import Base, TimestampedBase, UUIDString
from ledger_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_engine,
    get_session,
    init_engine_from_url,
    reset_engine,
    session_scope,
)
from ledger_kernel.db.models import StoredDocument

__all__ = [
    "Base",
    "StoredDocument",
    "TimestampedBase",
    "UUIDString",
    "create_tables",
    "drop_tables",
    "get_engine",
    "get_session",
    "init_engine_from_url",
    "reset_engine",
    "session_scope",
]
