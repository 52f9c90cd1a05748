"""
LedgerRepository -- saves live Accounts and JournalEntries as snapshots and
rebuilds them.

Journal entry snapshots refer to accounts by id, so accounts must be saved
before an entry that references them. ``get_entry`` resolves those ids
through ``get_account`` and reuses each account object across lines.
"""

from __future__ import annotations

from typing import Any

from ledger_kernel.domain.account import Account
from ledger_kernel.domain.currency import CurrencyRegistry
from ledger_kernel.domain.journal import JournalEntry
from ledger_kernel.exceptions import DocumentNotFoundError, SnapshotError
from ledger_kernel.logging_config import LogContext, get_logger
from ledger_kernel.persistence.interfaces import QueryFilters, StorageAdapter

logger = get_logger("persistence.repository")

ACCOUNTS = "accounts"
JOURNAL_ENTRIES = "journal_entries"


class LedgerRepository:
    """Snapshot persistence for the ledger domain objects."""

    def __init__(
        self,
        adapter: StorageAdapter,
        *,
        registry: CurrencyRegistry | None = None,
        accounts_collection: str = ACCOUNTS,
        entries_collection: str = JOURNAL_ENTRIES,
    ):
        self.adapter = adapter
        self.registry = registry
        self.accounts_collection = accounts_collection
        self.entries_collection = entries_collection

    # -- Accounts -----------------------------------------------------------

    def save_account(self, account: Account) -> str:
        """Persist ``account``; assigns ``account.id`` on first save."""
        data = account.serialize()
        data.pop("id", None)
        account.id = self.adapter.save(self.accounts_collection, account.id, data)
        return account.id

    def get_account(self, account_id: str) -> Account:
        """
        Raises:
            DocumentNotFoundError: no account stored under ``account_id``.
        """
        data = self.adapter.get(self.accounts_collection, account_id)
        if data is None:
            raise DocumentNotFoundError(self.accounts_collection, account_id)
        return Account.from_data(data, registry=self.registry)

    def find_account(self, account_id: str) -> Account | None:
        data = self.adapter.get(self.accounts_collection, account_id)
        return Account.from_data(data, registry=self.registry) if data is not None else None

    def find_accounts(self, filters: QueryFilters | None = None) -> list[Account]:
        return [
            Account.from_data(data, registry=self.registry)
            for data in self.adapter.query(self.accounts_collection, filters)
        ]

    def delete_account(self, account_id: str) -> None:
        self.adapter.delete(self.accounts_collection, account_id)

    # -- Journal entries ----------------------------------------------------

    def save_entry(self, entry: JournalEntry, *, save_accounts: bool = False) -> str:
        """
        Persist ``entry``; assigns ``entry.id`` on first save.

        With ``save_accounts=True`` every referenced account is saved first
        (needed after a commit so stored balances match). Otherwise every
        referenced account must already have an id.
        """
        accounts = {id(line.account): line.account for line in entry.get_entries()}
        for account in accounts.values():
            if save_accounts and isinstance(account, Account):
                self.save_account(account)
            elif getattr(account, "id", None) is None:
                raise SnapshotError(
                    "journal entry",
                    f"account {getattr(account, 'name', account)!r} has not been saved",
                )

        data = entry.serialize()
        data.pop("id", None)
        entry.id = self.adapter.save(self.entries_collection, entry.id, data)
        with LogContext.bind(entry_id=entry.id):
            logger.info(
                "journal_entry_saved",
                extra={
                    "committed": entry.is_committed(),
                    "line_count": entry.get_entry_count(),
                },
            )
        return entry.id

    def get_entry(self, entry_id: str) -> JournalEntry:
        """
        Raises:
            DocumentNotFoundError: entry or one of its accounts is missing.
        """
        data = self.adapter.get(self.entries_collection, entry_id)
        if data is None:
            raise DocumentNotFoundError(self.entries_collection, entry_id)

        resolved: dict[str, Any] = {}

        def resolve(account_id: str) -> Any:
            if account_id not in resolved:
                resolved[account_id] = self.get_account(account_id)
            return resolved[account_id]

        return JournalEntry.from_data(data, resolve)

    def find_entries(self, filters: QueryFilters | None = None) -> list[JournalEntry]:
        return [
            self.get_entry(data["id"])
            for data in self.adapter.query(self.entries_collection, filters)
        ]

    def delete_entry(self, entry_id: str) -> None:
        self.adapter.delete(self.entries_collection, entry_id)
