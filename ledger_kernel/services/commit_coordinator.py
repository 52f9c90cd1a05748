"""
CommitCoordinator -- serializes journal commits over shared accounts.

Responsibility:
    JournalEntry.commit() mutates every account it references and takes no
    locks. Hosts that commit from several threads route commits through a
    CommitCoordinator, which holds one re-entrant lock per account for the
    duration of the commit.

Architecture position:
    Kernel > Services. Depends on JournalEntry only.

Lock ordering:
    The locks of all accounts touched by an entry are acquired in ascending
    ``id(account)`` order, so two entries over overlapping account sets can
    never deadlock. With ``global_lock=True`` a single ledger-wide lock is
    used instead.

Lock lifetime:
    Per-account locks are held in a WeakKeyDictionary, so the coordinator
    never keeps an account alive; a lock disappears with its account.
    Accounts must therefore support weak references (Account does).

Non-goals:
    - Does NOT make Account itself thread-safe; direct debit()/credit()
      calls outside the coordinator are not serialized.
    - Not a cross-process lock.
"""

from __future__ import annotations

import threading
import weakref
from collections.abc import Iterator
from contextlib import ExitStack, contextmanager
from typing import Any

from ledger_kernel.domain.journal import JournalEntry
from ledger_kernel.logging_config import get_logger

logger = get_logger("services.commit_coordinator")


class CommitCoordinator:
    """Commit journal entries under per-account (or global) locks."""

    def __init__(self, *, global_lock: bool = False):
        self._global_lock = threading.RLock() if global_lock else None
        self._registry_lock = threading.Lock()
        # Weakly keyed: a lock lives only as long as its account.
        self._locks: weakref.WeakKeyDictionary[Any, threading.RLock] = (
            weakref.WeakKeyDictionary()
        )

    @property
    def uses_global_lock(self) -> bool:
        return self._global_lock is not None

    @property
    def tracked_accounts(self) -> int:
        """Number of accounts that currently have a lock."""
        with self._registry_lock:
            return len(self._locks)

    def lock_for(self, account: Any) -> threading.RLock:
        """
        The lock guarding ``account`` (created on first use).

        Raises:
            TypeError: ``account`` does not support weak references.
        """
        if self._global_lock is not None:
            return self._global_lock
        with self._registry_lock:
            lock = self._locks.get(account)
            if lock is None:
                lock = threading.RLock()
                self._locks[account] = lock
            return lock

    @contextmanager
    def locked(self, accounts: Any) -> Iterator[None]:
        """Hold the locks of ``accounts`` (deduplicated, ascending id order)."""
        if self._global_lock is not None:
            with self._global_lock:
                yield
            return

        unique = {id(account): account for account in accounts}
        with ExitStack() as stack:
            for key in sorted(unique):
                stack.enter_context(self.lock_for(unique[key]))
            yield

    def commit(self, entry: JournalEntry) -> JournalEntry:
        """Commit ``entry`` while holding the locks of every account it touches."""
        accounts = [line.account for line in entry.get_entries()]
        with self.locked(accounts):
            entry.commit()
        logger.debug(
            "coordinated_commit",
            extra={
                "entry_id": entry.id,
                "account_count": len({id(a) for a in accounts}),
                "global_lock": self.uses_global_lock,
            },
        )
        return entry

    def debit(self, account: Any, amount: Any) -> None:
        """Debit a single account under its lock."""
        with self.locked([account]):
            account.debit(amount)

    def credit(self, account: Any, amount: Any) -> None:
        """Credit a single account under its lock."""
        with self.locked([account]):
            account.credit(amount)

    def forget(self, account: Any) -> None:
        """Drop the lock kept for ``account``."""
        with self._registry_lock:
            self._locks.pop(account, None)
