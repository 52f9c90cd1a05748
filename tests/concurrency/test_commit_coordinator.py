"""
Concurrency tests for CommitCoordinator.

Journal commits are issued from many threads at once against shared
accounts. With the coordinator in place no update may be lost, and entries
that touch the same accounts in opposite order must not deadlock.
"""

import gc
import threading
import weakref
from concurrent.futures import ThreadPoolExecutor, as_completed
from decimal import Decimal

import pytest

from ledger_kernel.domain.account import Account
from ledger_kernel.domain.journal import JournalEntry
from ledger_kernel.exceptions import UnbalancedEntryError
from ledger_kernel.services.commit_coordinator import CommitCoordinator

THREADS = 16
COMMITS_PER_THREAD = 25


def _entry(debit_account, credit_account, amount, description="Transfer"):
    entry = JournalEntry(description)
    entry.debit(debit_account, amount)
    entry.credit(credit_account, amount)
    return entry


@pytest.fixture(params=[False, True], ids=["per-account", "global"])
def coordinator(request) -> CommitCoordinator:
    return CommitCoordinator(global_lock=request.param)


class TestCoordinatedCommits:
    """Parallel commits through one coordinator."""

    @pytest.mark.slow
    def test_no_lost_updates(self, coordinator):
        cash = Account.asset("Cash")
        revenue = Account.income("Revenue")
        barrier = threading.Barrier(THREADS)

        def worker(thread_id: int) -> int:
            barrier.wait()
            for _ in range(COMMITS_PER_THREAD):
                coordinator.commit(_entry(cash, revenue, "1.01"))
            return thread_id

        with ThreadPoolExecutor(max_workers=THREADS) as pool:
            futures = [pool.submit(worker, i) for i in range(THREADS)]
            for future in as_completed(futures, timeout=60):
                future.result()

        expected = Decimal("1.01") * THREADS * COMMITS_PER_THREAD
        assert cash.get_balance() == expected
        assert revenue.get_balance() == expected

    @pytest.mark.slow
    def test_opposite_lock_order_does_not_deadlock(self, coordinator):
        checking = Account.asset("Checking", 10_000)
        savings = Account.asset("Savings", 10_000)
        barrier = threading.Barrier(THREADS)

        def worker(thread_id: int) -> None:
            barrier.wait()
            for _ in range(COMMITS_PER_THREAD):
                if thread_id % 2:
                    coordinator.commit(_entry(checking, savings, 3))
                else:
                    coordinator.commit(_entry(savings, checking, 3))

        with ThreadPoolExecutor(max_workers=THREADS) as pool:
            futures = [pool.submit(worker, i) for i in range(THREADS)]
            for future in as_completed(futures, timeout=60):
                future.result()

        assert checking.get_balance() == Decimal("10000")
        assert savings.get_balance() == Decimal("10000")

    def test_single_account_operations(self, coordinator):
        cash = Account.asset("Cash")

        def worker(_: int) -> None:
            for _ in range(50):
                coordinator.debit(cash, 2)
                coordinator.credit(cash, 1)

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(worker, range(8)))

        assert cash.get_balance() == Decimal("400")

    def test_commit_returns_entry(self, coordinator):
        entry = _entry(Account.asset("Cash"), Account.income("Sales"), 5)
        assert coordinator.commit(entry) is entry
        assert entry.is_committed()


class TestLocks:
    """Lock bookkeeping."""

    def test_lock_per_account(self):
        coordinator = CommitCoordinator()
        cash = Account.asset("Cash")
        bank = Account.asset("Bank")
        assert coordinator.lock_for(cash) is coordinator.lock_for(cash)
        assert coordinator.lock_for(cash) is not coordinator.lock_for(bank)
        assert not coordinator.uses_global_lock

    def test_global_lock_shared(self):
        coordinator = CommitCoordinator(global_lock=True)
        assert coordinator.uses_global_lock
        assert coordinator.lock_for(Account.asset("Cash")) is coordinator.lock_for(Account.asset("Bank"))

    def test_failed_commit_releases_locks(self):
        coordinator = CommitCoordinator()
        cash = Account.asset("Cash")
        revenue = Account.income("Revenue")
        entry = JournalEntry("Broken")
        entry.debit(cash, 10)
        entry.credit(revenue, 9)

        with pytest.raises(UnbalancedEntryError):
            coordinator.commit(entry)

        acquired = []

        def try_lock() -> None:
            lock = coordinator.lock_for(cash)
            ok = lock.acquire(timeout=5)
            acquired.append(ok)
            if ok:
                lock.release()

        thread = threading.Thread(target=try_lock)
        thread.start()
        thread.join(timeout=10)
        assert acquired == [True]

    def test_forget(self):
        coordinator = CommitCoordinator()
        cash = Account.asset("Cash")
        first = coordinator.lock_for(cash)
        coordinator.forget(cash)
        assert coordinator.lock_for(cash) is not first

    def test_locked_deduplicates_accounts(self):
        coordinator = CommitCoordinator()
        cash = Account.asset("Cash")
        with coordinator.locked([cash, cash, cash]):
            cash.debit(1)
        assert cash.get_balance() == Decimal("1")

    def test_lock_dropped_with_account(self):
        coordinator = CommitCoordinator()
        cash = Account.asset("Cash")
        revenue = Account.income("Revenue")
        coordinator.commit(_entry(cash, revenue, 5))
        assert coordinator.tracked_accounts == 2

        cash_ref = weakref.ref(cash)
        del cash, revenue
        gc.collect()

        assert cash_ref() is None
        assert coordinator.tracked_accounts == 0

    def test_coordinator_does_not_keep_accounts_alive(self):
        coordinator = CommitCoordinator()
        for index in range(100):
            account = Account.asset(f"Temporary {index}")
            coordinator.debit(account, 1)
        del account
        gc.collect()
        assert coordinator.tracked_accounts == 0
