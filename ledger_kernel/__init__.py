"""
Ledger Kernel

A double-entry bookkeeping value library with:
- Exact scaled-integer Money with currency-aware rounding
- Accounts with a fixed debit/credit polarity
- Atomic, balance-checked journal entry commits
- Snapshot persistence to memory or a SQL database
"""

from ledger_kernel.domain import (
    Account,
    AccountType,
    CurrencyRegistry,
    EntryType,
    JournalEntry,
    Money,
    MoneyUtils,
    create_currency,
)
from ledger_kernel.exceptions import LedgerKernelError

__version__ = "0.1.0"

__all__ = [
    "Account",
    "AccountType",
    "CurrencyRegistry",
    "EntryType",
    "JournalEntry",
    "LedgerKernelError",
    "Money",
    "MoneyUtils",
    "create_currency",
]
