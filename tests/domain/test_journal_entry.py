"""
Tests for JournalEntry.

Verifies:
- Build phase validation in add_entry()
- Double-entry balance check at display precision
- Atomic commit: a rejected commit mutates no account
- Commit finality
- Detail views and snapshots
"""

from datetime import UTC, datetime
from decimal import Decimal

import pytest

from ledger_kernel.domain.account import Account
from ledger_kernel.domain.journal import (
    EntryDetail,
    EntryStatus,
    EntryType,
    JournalEntry,
)
from ledger_kernel.domain.values import Money
from ledger_kernel.exceptions import (
    AlreadyCommittedError,
    CurrencyMismatchError,
    EmptyJournalEntryError,
    InvalidAccountReferenceError,
    InvalidEntryTypeError,
    InvalidJournalEntryError,
    NegativeAmountError,
    RangeExceededError,
    SnapshotError,
    UnbalancedEntryError,
)


class SimpleLedgerAccount:
    """Duck-typed account with only the required capabilities."""

    def __init__(self):
        self.balance = Decimal(0)

    def debit(self, amount):
        self.balance += amount

    def credit(self, amount):
        self.balance -= amount

    def get_balance(self):
        return self.balance


class TestJournalBuild:
    """Tests for recording lines before commit."""

    def test_lines_are_not_applied_before_commit(self, cash, revenue):
        entry = JournalEntry("Cash sale")
        entry.debit(cash, 500)
        entry.credit(revenue, 500)
        assert entry.get_entry_count() == 2
        assert cash.get_balance() == Decimal("1000")
        assert entry.status is EntryStatus.OPEN

    def test_string_and_enum_types(self, cash, revenue):
        entry = JournalEntry("Types")
        entry.add_entry(cash, 10, "debit")
        entry.add_entry(revenue, 10, EntryType.CREDIT)
        assert [line.type for line in entry.get_entries()] == [EntryType.DEBIT, EntryType.CREDIT]

    def test_empty_description(self):
        with pytest.raises(InvalidJournalEntryError):
            JournalEntry("  ")

    @pytest.mark.parametrize("account", [None, object(), "Cash"])
    def test_invalid_account(self, account):
        entry = JournalEntry("Bad account")
        with pytest.raises(InvalidAccountReferenceError):
            entry.add_entry(account, 10, "debit")

    def test_invalid_type(self, cash):
        entry = JournalEntry("Bad type")
        with pytest.raises(InvalidEntryTypeError):
            entry.add_entry(cash, 10, "sideways")

    def test_negative_amount(self, cash):
        entry = JournalEntry("Negative")
        with pytest.raises(NegativeAmountError):
            entry.debit(cash, -1)
        with pytest.raises(NegativeAmountError):
            entry.debit(cash, Money(-1, "CURR"))
        assert entry.get_entry_count() == 0

    def test_get_entries_is_a_copy(self, cash, revenue):
        entry = JournalEntry("Copy")
        entry.debit(cash, 1)
        entry.get_entries().clear()
        assert entry.get_entry_count() == 1

    def test_date_comes_from_clock(self, deterministic_clock):
        entry = JournalEntry("Dated", clock=deterministic_clock)
        assert entry.date == datetime(2024, 3, 15, 9, 30, 0, tzinfo=UTC)

    def test_explicit_date(self):
        when = datetime(2023, 12, 31, tzinfo=UTC)
        assert JournalEntry("Year end", when).date == when


class TestJournalBalance:
    """Tests for totals and the balance rule."""

    def test_totals(self, cash, revenue, payable):
        entry = JournalEntry("Split")
        entry.debit(cash, 600)
        entry.credit(revenue, 400)
        entry.credit(payable, 200)
        assert entry.get_debit_total() == Decimal("600.00")
        assert entry.get_credit_total() == Decimal("600.00")
        assert entry.is_balanced()

    def test_unbalanced_commit(self, cash, revenue):
        entry = JournalEntry("Unbalanced")
        entry.debit(cash, 600)
        entry.credit(revenue, 500)
        with pytest.raises(UnbalancedEntryError) as exc_info:
            entry.commit()
        assert exc_info.value.debits == "600.00"
        assert exc_info.value.credits == "500.00"
        assert "Debits: 600.00, Credits: 500.00" in str(exc_info.value)
        assert cash.get_balance() == Decimal("1000")
        assert revenue.get_balance() == Decimal("0")
        assert not entry.is_committed()

    def test_balance_compared_at_display_precision(self, cash, revenue):
        entry = JournalEntry("Sub-cent")
        entry.debit(cash, "33.333")
        entry.credit(revenue, "33.33")
        assert entry.is_balanced()

    def test_float_amounts_balance(self, cash, revenue, payable):
        entry = JournalEntry("Floats")
        entry.debit(cash, 0.3)
        entry.credit(revenue, 0.1)
        entry.credit(payable, 0.2)
        assert entry.is_balanced()

    def test_no_lines(self):
        with pytest.raises(EmptyJournalEntryError):
            JournalEntry("Empty").commit()

    def test_one_sided(self, cash):
        entry = JournalEntry("One side")
        entry.debit(cash, 10)
        with pytest.raises(EmptyJournalEntryError) as exc_info:
            entry.commit()
        assert exc_info.value.debit_lines == 1
        assert exc_info.value.credit_lines == 0


class TestJournalCommit:
    """Tests for applying lines."""

    def test_commit_applies_every_line(self, cash, revenue):
        entry = JournalEntry("Cash sale")
        entry.debit(cash, 500)
        entry.credit(revenue, 500)
        entry.commit()
        assert cash.get_balance() == Decimal("1500")
        assert revenue.get_balance() == Decimal("500")
        assert entry.is_committed()
        assert entry.status is EntryStatus.COMMITTED

    def test_same_account_on_several_lines(self, cash, revenue):
        entry = JournalEntry("Repeated")
        entry.debit(cash, 100)
        entry.debit(cash, 50)
        entry.credit(revenue, 150)
        entry.commit()
        assert cash.get_balance() == Decimal("1150")

    def test_money_mode_commit(self, usd_cash, usd_revenue):
        entry = JournalEntry("USD sale")
        entry.debit(usd_cash, Money("19.99", "USD"))
        entry.credit(usd_revenue, Money("19.99", "USD"))
        entry.commit()
        assert usd_cash.get_balance() == Money("1019.99", "USD")
        assert usd_revenue.get_balance() == Money("19.99", "USD")

    def test_currency_mismatch_rejects_whole_entry(self, usd_cash, usd_revenue):
        """A balanced entry whose later line has the wrong currency changes nothing."""
        entry = JournalEntry("Mixed")
        entry.debit(usd_cash, Money(100, "USD"))
        entry.credit(usd_revenue, Money(100, "EUR"))
        assert entry.is_balanced()
        with pytest.raises(CurrencyMismatchError):
            entry.commit()
        assert usd_cash.get_balance() == Money(1000, "USD")
        assert usd_revenue.get_balance() == Money(0, "USD")
        assert not entry.is_committed()

    def test_range_overflow_on_later_account_rejects_whole_entry(self):
        """A line that would push a later account out of range changes nothing."""
        first = Account.asset("First")
        big = Account.asset("Big", 9_000_000_000)
        source = Account.liability("Source")
        entry = JournalEntry("Overflow")
        entry.debit(first, 5)
        entry.debit(big, 8_000_000)
        entry.credit(source, 8_000_005)

        with pytest.raises(RangeExceededError):
            entry.commit()

        assert first.get_balance() == Decimal("0")
        assert big.get_balance() == Decimal("9000000000")
        assert source.get_balance() == Decimal("0")
        assert not entry.is_committed()

    def test_repeated_account_overflow_rejects_whole_entry(self):
        """Each line fits on its own; together they overflow the account."""
        near_limit = Account.asset("Near limit", 9_007_199_000)
        revenue = Account.income("Revenue")
        entry = JournalEntry("Two large debits")
        entry.debit(near_limit, 200)
        entry.debit(near_limit, 200)
        entry.credit(revenue, 400)

        with pytest.raises(RangeExceededError):
            entry.commit()

        assert near_limit.get_balance() == Decimal("9007199000")
        assert revenue.get_balance() == Decimal("0")
        assert entry.status is EntryStatus.OPEN

    def test_money_line_on_number_account_rejected(self, cash, revenue):
        entry = JournalEntry("Mixed modes")
        entry.debit(cash, Money(10, "EUR"))
        entry.credit(revenue, 10)
        with pytest.raises(CurrencyMismatchError):
            entry.commit()
        assert cash.get_balance() == Decimal("1000")

    def test_double_commit(self, cash, revenue):
        entry = JournalEntry("Once")
        entry.debit(cash, 5)
        entry.credit(revenue, 5)
        entry.commit()
        with pytest.raises(AlreadyCommittedError):
            entry.commit()
        assert cash.get_balance() == Decimal("1005")

    def test_add_after_commit(self, cash, revenue):
        entry = JournalEntry("Closed")
        entry.debit(cash, 5)
        entry.credit(revenue, 5)
        entry.commit()
        with pytest.raises(AlreadyCommittedError):
            entry.debit(cash, 1)
        assert entry.get_entry_count() == 2

    def test_failed_commit_can_be_fixed_and_retried(self, cash, revenue):
        entry = JournalEntry("Retry")
        entry.debit(cash, 100)
        with pytest.raises(EmptyJournalEntryError):
            entry.commit()
        entry.credit(revenue, 100)
        entry.commit()
        assert revenue.get_balance() == Decimal("100")

    def test_duck_typed_account(self):
        left = SimpleLedgerAccount()
        right = SimpleLedgerAccount()
        entry = JournalEntry("Duck")
        entry.debit(left, 7)
        entry.credit(right, 7)
        entry.commit()
        assert left.get_balance() == Decimal(7)
        assert right.get_balance() == Decimal(-7)


class TestJournalDetails:
    """Tests for the reporting view."""

    def test_details(self, cash, revenue, deterministic_clock):
        entry = JournalEntry("Sale", clock=deterministic_clock)
        entry.debit(cash, 25)
        entry.credit(revenue, 25)
        details = list(entry.get_details())
        assert details[0] == EntryDetail(
            account_name="Cash",
            amount=Decimal(25),
            type=EntryType.DEBIT,
            date=deterministic_clock.now(),
            description="Sale",
        )
        assert details[1].account_name == "Sales Revenue"

    def test_details_are_restartable(self, cash, revenue):
        entry = JournalEntry("Sale")
        entry.debit(cash, 25)
        entry.credit(revenue, 25)
        details = entry.get_details()
        assert list(details) == list(details)
        assert len(details) == 2

    def test_details_snapshot_lines(self, cash, revenue):
        entry = JournalEntry("Sale")
        entry.debit(cash, 25)
        details = entry.get_details()
        entry.credit(revenue, 25)
        assert len(list(details)) == 1


class TestJournalSnapshot:
    """serialize() and from_data()."""

    def _accounts(self):
        cash = Account.asset("Cash", 100)
        cash.id = "cash"
        revenue = Account.income("Revenue")
        revenue.id = "revenue"
        return {"cash": cash, "revenue": revenue}

    def test_serialize_shape(self, deterministic_clock):
        accounts = self._accounts()
        entry = JournalEntry("Sale", clock=deterministic_clock, reference="INV-1")
        entry.debit(accounts["cash"], "12.5")
        entry.credit(accounts["revenue"], Money("12.5", "CURR"))
        data = entry.serialize()
        assert data["description"] == "Sale"
        assert data["date"] == "2024-03-15T09:30:00+00:00"
        assert data["committed"] is False
        assert data["reference"] == "INV-1"
        assert data["entries"] == [
            {"account_id": "cash", "account_name": "Cash", "amount": "12.5", "type": "debit"},
            {
                "account_id": "revenue",
                "account_name": "Revenue",
                "amount": {"amount": "12.500000", "currency": "CURR"},
                "type": "credit",
            },
        ]

    def test_round_trip_open_entry(self):
        accounts = self._accounts()
        entry = JournalEntry("Sale", batch="b-7")
        entry.debit(accounts["cash"], 40)
        entry.credit(accounts["revenue"], 40)
        restored = JournalEntry.from_data(entry.serialize(), accounts.__getitem__)
        assert restored.get_entry_count() == 2
        assert restored.extra == {"batch": "b-7"}
        assert restored.date == entry.date
        restored.commit()
        assert accounts["cash"].get_balance() == Decimal("140")

    def test_round_trip_committed_entry(self):
        accounts = self._accounts()
        entry = JournalEntry("Sale")
        entry.debit(accounts["cash"], 40)
        entry.credit(accounts["revenue"], 40)
        entry.commit()
        restored = JournalEntry.from_data(entry.serialize(), accounts.__getitem__)
        assert restored.is_committed()
        assert accounts["cash"].get_balance() == Decimal("140")
        with pytest.raises(AlreadyCommittedError):
            restored.commit()

    def test_malformed_line(self):
        with pytest.raises(SnapshotError):
            JournalEntry.from_data(
                {"description": "Bad", "entries": [{"amount": "1"}]},
                lambda account_id: None,
            )

    def test_bad_date(self):
        with pytest.raises(SnapshotError):
            JournalEntry.from_data({"description": "Bad", "date": "yesterday"}, lambda _: None)

    def test_missing_description(self):
        with pytest.raises(SnapshotError):
            JournalEntry.from_data({"entries": []}, lambda _: None)
