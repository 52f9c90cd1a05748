"""
Pure domain layer.

Money, MoneyUtils, Account and JournalEntry, with NO dependencies on:
- ORM (SQLAlchemy)
- Database
- Configuration files
"""

from ledger_kernel.domain import money_utils
from ledger_kernel.domain.account import (
    ACCOUNT_BEHAVIOR,
    Account,
    AccountLike,
    AccountType,
    BalanceMode,
    NormalBalance,
    asset,
    equity,
    expense,
    income,
    liability,
)
from ledger_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from ledger_kernel.domain.currency import (
    GENERIC_CURRENCY_CODE,
    CurrencyInfo,
    CurrencyRegistry,
    get_default_registry,
)
from ledger_kernel.domain.currency_factory import (
    CurrencyBinding,
    CurrencyFactory,
    CurrencyFactoryRegistry,
    create_currency,
    create_factory,
    register_currency_config,
)
from ledger_kernel.domain.defaults import (
    KernelDefaults,
    configure_defaults,
    get_defaults,
    reset_defaults,
)
from ledger_kernel.domain.journal import (
    EntryDetail,
    EntryStatus,
    EntryType,
    JournalEntry,
    JournalLine,
)
from ledger_kernel.domain.money_utils import (
    DiscountBreakdown,
    MoneyUtils,
    TaxBreakdown,
)
from ledger_kernel.domain.values import Money

__all__ = [
    "ACCOUNT_BEHAVIOR",
    "Account",
    "AccountLike",
    "AccountType",
    "BalanceMode",
    "Clock",
    "CurrencyBinding",
    "CurrencyFactory",
    "CurrencyFactoryRegistry",
    "CurrencyInfo",
    "CurrencyRegistry",
    "DeterministicClock",
    "DiscountBreakdown",
    "EntryDetail",
    "EntryStatus",
    "EntryType",
    "GENERIC_CURRENCY_CODE",
    "JournalEntry",
    "JournalLine",
    "KernelDefaults",
    "Money",
    "MoneyUtils",
    "NormalBalance",
    "SystemClock",
    "TaxBreakdown",
    "asset",
    "configure_defaults",
    "create_currency",
    "create_factory",
    "equity",
    "expense",
    "get_default_registry",
    "get_defaults",
    "income",
    "liability",
    "money_utils",
    "register_currency_config",
    "reset_defaults",
]
