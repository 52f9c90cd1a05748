"""
Journal -- atomic, two-phase (build -> commit) transaction builder.

Responsibility:
    Accumulates debit and credit lines against one or more accounts and, on
    commit, checks the double-entry rule and applies every line exactly once.

Architecture position:
    Kernel > Domain. Depends on Money and the AccountLike contract. Does not
    own the accounts it references.

State machine:
    OPEN  --commit()-->  COMMITTED (terminal)

    add_entry() and commit() are valid only in OPEN. There is no rollback
    or reopen.

Invariants enforced:
    DOUBLE_ENTRY_BALANCE -- debits == credits at display precision.
    ATOMIC_COMMIT        -- every line, and every account's resulting balance,
                            is validated before any account is mutated.
    COMMIT_FINALITY      -- COMMITTED accepts no lines and no second commit.

Failure modes:
    - InvalidJournalEntryError: empty description
    - InvalidAccountReferenceError / InvalidEntryTypeError /
      NegativeAmountError / InvalidAmountError from add_entry()
    - EmptyJournalEntryError / UnbalancedEntryError / CurrencyMismatchError /
      RangeExceededError from commit()
    - AlreadyCommittedError after commit
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any

from ledger_kernel.domain.account import AccountLike, missing_capabilities
from ledger_kernel.domain.clock import Clock, default_clock
from ledger_kernel.domain.currency import DEFAULT_DECIMAL_PLACES
from ledger_kernel.domain.values import Amount, Money, to_decimal
from ledger_kernel.exceptions import (
    AlreadyCommittedError,
    EmptyJournalEntryError,
    InvalidAccountReferenceError,
    InvalidEntryTypeError,
    InvalidJournalEntryError,
    LedgerKernelError,
    NegativeAmountError,
    SnapshotError,
    UnbalancedEntryError,
)
from ledger_kernel.logging_config import LogContext, get_logger

logger = get_logger("domain.journal")

_NUMBER_QUANTUM = Decimal(1).scaleb(-DEFAULT_DECIMAL_PLACES)


class EntryType(str, Enum):
    """Direction of a journal line."""

    DEBIT = "debit"
    CREDIT = "credit"


class EntryStatus(str, Enum):
    """Journal entry lifecycle state."""

    OPEN = "open"
    COMMITTED = "committed"


@dataclass(frozen=True)
class JournalLine:
    """One recorded line: the target account, a non-negative amount, a direction."""

    account: AccountLike
    amount: Decimal | Money
    type: EntryType

    @property
    def display_amount(self) -> Decimal:
        """Line amount rounded to display precision."""
        if isinstance(self.amount, Money):
            return self.amount.to_number()
        return self.amount.quantize(_NUMBER_QUANTUM, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class EntryDetail:
    """Read-only projection of a line for reporting."""

    account_name: str
    amount: Decimal | Money
    type: EntryType
    date: datetime
    description: str


class EntryDetails:
    """
    Restartable lazy view of the lines present when get_details() was called.

    Each iteration builds EntryDetail records on demand from that snapshot;
    lines added afterwards are not visible.
    """

    def __init__(self, lines: tuple[JournalLine, ...], date: datetime, description: str):
        self._lines = lines
        self._date = date
        self._description = description

    def __iter__(self) -> Iterator[EntryDetail]:
        for line in self._lines:
            yield EntryDetail(
                account_name=_account_name(line.account),
                amount=line.amount,
                type=line.type,
                date=self._date,
                description=self._description,
            )

    def __len__(self) -> int:
        return len(self._lines)


def _account_name(account: Any) -> str:
    name = getattr(account, "name", None)
    return name if isinstance(name, str) else repr(account)


def _coerce_entry_type(entry_type: Any) -> EntryType:
    if isinstance(entry_type, EntryType):
        return entry_type
    if isinstance(entry_type, str):
        try:
            return EntryType(entry_type)
        except ValueError:
            pass
    raise InvalidEntryTypeError(entry_type)


def _coerce_amount(amount: Any) -> Decimal | Money:
    if isinstance(amount, Money):
        if amount.is_negative():
            raise NegativeAmountError(amount.to_number())
        return amount
    value = to_decimal(amount)
    if value < 0:
        raise NegativeAmountError(value)
    return value


class JournalEntry:
    """
    A double-entry transaction under construction, then a historical record.

    Contract:
        Lines are only recorded by add_entry() (or its debit()/credit()
        wrappers) while OPEN. commit() validates structure, balance and
        every account's acceptance of its line, then applies lines in
        insertion order and moves to COMMITTED.

    Guarantees:
        - A failed commit() leaves every account and the entry unchanged
        - A committed entry is immutable

    Non-goals:
        - Does NOT lock accounts; see CommitCoordinator
        - Does NOT convert between currencies
    """

    def __init__(
        self,
        description: str,
        date: datetime | None = None,
        *,
        entry_id: str | None = None,
        reference: str | None = None,
        clock: Clock | None = None,
        **extra: Any,
    ):
        if not isinstance(description, str) or not description.strip():
            raise InvalidJournalEntryError("description cannot be empty")
        self.description = description
        self.date = date if date is not None else (clock or default_clock()).now()
        self.id = entry_id
        self.reference = reference
        self.extra: dict[str, Any] = dict(extra)
        self._lines: list[JournalLine] = []
        self._status = EntryStatus.OPEN

    # -- Build phase --------------------------------------------------------

    def add_entry(self, account: Any, amount: Amount | Money, type: EntryType | str) -> None:
        """
        Record a line. Nothing is applied to the account until commit().

        Raises:
            AlreadyCommittedError: entry is committed.
            InvalidAccountReferenceError: account lacks debit/credit/get_balance.
            NegativeAmountError: amount < 0.
            InvalidEntryTypeError: type is not debit or credit.
        """
        if self._status is EntryStatus.COMMITTED:
            raise AlreadyCommittedError("add entry", self.id)

        missing = missing_capabilities(account)
        if missing:
            raise InvalidAccountReferenceError(account, missing)

        value = _coerce_amount(amount)
        entry_type = _coerce_entry_type(type)
        self._lines.append(JournalLine(account, value, entry_type))

    def debit(self, account: Any, amount: Amount | Money) -> None:
        """Record a debit line."""
        self.add_entry(account, amount, EntryType.DEBIT)

    def credit(self, account: Any, amount: Amount | Money) -> None:
        """Record a credit line."""
        self.add_entry(account, amount, EntryType.CREDIT)

    # -- Balance ------------------------------------------------------------

    def get_debit_total(self) -> Decimal:
        """Sum of debit lines, each rounded to display precision."""
        return self._total(EntryType.DEBIT)

    def get_credit_total(self) -> Decimal:
        """Sum of credit lines, each rounded to display precision."""
        return self._total(EntryType.CREDIT)

    def is_balanced(self) -> bool:
        return self.get_debit_total() == self.get_credit_total()

    def _total(self, entry_type: EntryType) -> Decimal:
        return sum(
            (line.display_amount for line in self._lines if line.type is entry_type),
            Decimal(0),
        )

    # -- Commit -------------------------------------------------------------

    def commit(self) -> None:
        """
        Validate and apply every line as one unit.

        Order of checks: already committed, empty or one-sided, unbalanced,
        then each account's ``check_amount`` for its line and its
        ``project_balance`` for all of its lines together (when present).
        Only when all of them pass are the lines applied.
        """
        if self._status is EntryStatus.COMMITTED:
            raise AlreadyCommittedError("commit", self.id)

        with LogContext.bind(entry_id=self.id):
            try:
                self._validate()
            except LedgerKernelError as exc:
                logger.warning(
                    "journal_commit_rejected",
                    extra={
                        "error_code": exc.code,
                        "line_count": len(self._lines),
                    },
                )
                raise

            for line in self._lines:
                if line.type is EntryType.DEBIT:
                    line.account.debit(line.amount)
                else:
                    line.account.credit(line.amount)

            self._status = EntryStatus.COMMITTED
            logger.info(
                "journal_entry_committed",
                extra={
                    "description": self.description,
                    "line_count": len(self._lines),
                    "debit_total": self.get_debit_total(),
                    "credit_total": self.get_credit_total(),
                },
            )

    def _validate(self) -> None:
        debit_lines = sum(1 for line in self._lines if line.type is EntryType.DEBIT)
        credit_lines = len(self._lines) - debit_lines
        if debit_lines == 0 or credit_lines == 0:
            raise EmptyJournalEntryError(debit_lines, credit_lines)

        debits = self.get_debit_total()
        credits = self.get_credit_total()
        if debits != credits:
            raise UnbalancedEntryError(str(debits), str(credits))

        # INVARIANT: ATOMIC_COMMIT -- every line and every resulting balance
        # accepted before any mutation
        postings: dict[int, tuple[Any, list[tuple[bool, Decimal | Money]]]] = {}
        for line in self._lines:
            check = getattr(line.account, "check_amount", None)
            if callable(check):
                check(line.amount)
            _, account_postings = postings.setdefault(id(line.account), (line.account, []))
            account_postings.append((line.type is EntryType.DEBIT, line.amount))

        for account, account_postings in postings.values():
            project = getattr(account, "project_balance", None)
            if callable(project):
                project(account_postings)

    # -- Reads --------------------------------------------------------------

    @property
    def status(self) -> EntryStatus:
        return self._status

    def is_committed(self) -> bool:
        return self._status is EntryStatus.COMMITTED

    def get_entry_count(self) -> int:
        return len(self._lines)

    def get_entries(self) -> list[JournalLine]:
        """Copy of the recorded lines."""
        return list(self._lines)

    def get_details(self) -> EntryDetails:
        """Restartable lazy sequence of EntryDetail for the lines recorded so far."""
        return EntryDetails(tuple(self._lines), self.date, self.description)

    # -- Snapshots ----------------------------------------------------------

    def serialize(
        self,
        account_ids: Callable[[Any], str | None] | None = None,
    ) -> dict[str, Any]:
        """
        Plain snapshot for persistence adapters.

        ``account_ids`` maps a line's account to the identifier stored in the
        snapshot; by default the account's ``id`` attribute is used.
        """
        resolve = account_ids or (lambda account: getattr(account, "id", None))
        data: dict[str, Any] = {
            "description": self.description,
            "date": self.date.isoformat(),
            "committed": self.is_committed(),
            "reference": self.reference,
            "entries": [
                {
                    "account_id": resolve(line.account),
                    "account_name": _account_name(line.account),
                    "amount": (
                        line.amount.to_json()
                        if isinstance(line.amount, Money)
                        else format(line.amount, "f")
                    ),
                    "type": line.type.value,
                }
                for line in self._lines
            ],
        }
        data.update(self.extra)
        if self.id is not None:
            data["id"] = self.id
        return data

    @classmethod
    def from_data(
        cls,
        data: dict[str, Any],
        account_resolver: Callable[[str], Any],
    ) -> JournalEntry:
        """
        Rebuild an entry from ``serialize()`` output.

        Lines are re-attached through ``account_resolver(account_id)``. A
        committed snapshot is restored as COMMITTED without re-applying its
        lines, since account balances are persisted separately.
        """
        if not isinstance(data, dict) or "description" not in data:
            raise SnapshotError("journal entry", "expected a mapping with a 'description' key")

        fields = dict(data)
        description = fields.pop("description")
        raw_date = fields.pop("date", None)
        committed = bool(fields.pop("committed", False))
        reference = fields.pop("reference", None)
        entry_id = fields.pop("id", None)
        lines = fields.pop("entries", [])

        try:
            date = datetime.fromisoformat(raw_date) if isinstance(raw_date, str) else raw_date
        except ValueError:
            raise SnapshotError("journal entry", f"bad date {raw_date!r}") from None

        entry = cls(description, date, entry_id=entry_id, reference=reference, **fields)
        for raw in lines:
            try:
                account_id, amount, entry_type = raw["account_id"], raw["amount"], raw["type"]
            except (KeyError, TypeError):
                raise SnapshotError("journal entry", f"malformed line {raw!r}") from None
            account = account_resolver(account_id)
            if isinstance(amount, dict):
                amount = Money.from_json(amount)
            entry.add_entry(account, amount, entry_type)

        if committed:
            entry._status = EntryStatus.COMMITTED
        return entry

    def __repr__(self) -> str:
        return (
            f"JournalEntry(description={self.description!r}, "
            f"lines={len(self._lines)}, status={self._status.value})"
        )
