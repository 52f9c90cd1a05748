"""
Pytest fixtures for the ledger kernel test suite.

Provides:
- Kernel defaults and logging reset between tests
- Isolated currency registries and deterministic clocks
- Storage adapters (in-memory and in-memory SQLite) and repositories
- A small chart of accounts for journal tests
"""

from datetime import UTC, datetime

import pytest

from ledger_kernel.db.engine import create_tables, init_engine_from_url, reset_engine
from ledger_kernel.domain.account import Account
from ledger_kernel.domain.clock import DeterministicClock
from ledger_kernel.domain.currency import CurrencyRegistry
from ledger_kernel.domain.defaults import reset_defaults
from ledger_kernel.domain.values import Money
from ledger_kernel.logging_config import LogContext, reset_logging
from ledger_kernel.persistence.memory_adapter import MemoryAdapter
from ledger_kernel.persistence.repository import LedgerRepository
from ledger_kernel.persistence.sql_adapter import SQLAdapter


@pytest.fixture(autouse=True)
def _reset_kernel_state():
    """Restore shipped defaults and a quiet logger around every test."""
    reset_defaults()
    reset_logging()
    LogContext.clear()
    yield
    LogContext.clear()
    reset_logging()
    reset_defaults()


@pytest.fixture
def registry() -> CurrencyRegistry:
    """A fresh registry so tests can register currencies without leaking."""
    return CurrencyRegistry()


@pytest.fixture
def deterministic_clock() -> DeterministicClock:
    return DeterministicClock(datetime(2024, 3, 15, 9, 30, 0, tzinfo=UTC))


@pytest.fixture
def memory_adapter() -> MemoryAdapter:
    return MemoryAdapter()


@pytest.fixture
def sql_adapter():
    """SQLAdapter over a private in-memory SQLite database."""
    init_engine_from_url("sqlite://")
    create_tables()
    yield SQLAdapter()
    reset_engine()


@pytest.fixture(params=["memory", "sql"])
def adapter(request):
    """Every StorageAdapter implementation, for contract tests."""
    if request.param == "memory":
        yield MemoryAdapter()
        return
    init_engine_from_url("sqlite://")
    create_tables()
    yield SQLAdapter()
    reset_engine()


@pytest.fixture
def repository(memory_adapter) -> LedgerRepository:
    return LedgerRepository(memory_adapter)


@pytest.fixture
def cash() -> Account:
    return Account.asset("Cash", 1000)


@pytest.fixture
def revenue() -> Account:
    return Account.income("Sales Revenue")


@pytest.fixture
def payable() -> Account:
    return Account.liability("Accounts Payable")


@pytest.fixture
def usd_cash() -> Account:
    return Account.asset("USD Cash", Money(1000, "USD"))


@pytest.fixture
def usd_revenue() -> Account:
    return Account.income("USD Revenue", Money(0, "USD"))
