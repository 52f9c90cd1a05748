"""
Account -- named balance register with a fixed debit/credit polarity.

Responsibility:
    Holds one balance and applies debits and credits to it according to the
    ``is_debit_positive`` flag. The five classic account types are named
    constructors that only fix that flag; there are no subclasses.

Architecture position:
    Kernel > Domain. Depends on Money; used by JournalEntry and the
    persistence repository.

Balance modes:
    The type of the opening balance fixes the mode for the account's life.
    An ``int``/``float``/``Decimal``/``str`` opening balance selects NUMBER
    mode; a Money selects MONEY mode. Internally the balance is always a
    Money, so number-mode accounts get the same exact scaled-integer
    arithmetic. ``get_balance()`` hands back the representation the account
    was built with (Decimal for NUMBER, Money for MONEY).

Invariants enforced:
    CURRENCY_SAFETY -- a Money operand must carry the account's currency.
    The opening balance and every debit/credit amount must be >= 0; the
    negative check runs before any coercion.

Failure modes:
    - InvalidAccountError for an empty name or a non-boolean polarity
    - NegativeAmountError for negative opening balance or amounts
    - CurrencyMismatchError for a Money in another currency
    - InvalidAmountError for non-numeric amounts
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal
from enum import Enum
from typing import Any, Protocol, runtime_checkable

from ledger_kernel.domain.currency import CurrencyRegistry, normalize_code
from ledger_kernel.domain.defaults import get_defaults
from ledger_kernel.domain.values import Amount, Money, to_decimal
from ledger_kernel.exceptions import (
    CurrencyMismatchError,
    InvalidAccountError,
    LedgerKernelError,
    NegativeAmountError,
    SnapshotError,
)
from ledger_kernel.logging_config import get_logger

logger = get_logger("domain.account")


class AccountType(str, Enum):
    """Types of accounts in a chart of accounts."""

    ASSET = "asset"
    LIABILITY = "liability"
    EQUITY = "equity"
    INCOME = "income"
    EXPENSE = "expense"


class NormalBalance(str, Enum):
    """Side on which an account's balance grows."""

    DEBIT = "debit"
    CREDIT = "credit"


class BalanceMode(str, Enum):
    """Representation an account was opened with."""

    NUMBER = "number"
    MONEY = "money"


# Account type -> normal balance. Debit-normal types are debit-positive.
ACCOUNT_BEHAVIOR: dict[AccountType, NormalBalance] = {
    AccountType.ASSET: NormalBalance.DEBIT,
    AccountType.EXPENSE: NormalBalance.DEBIT,
    AccountType.LIABILITY: NormalBalance.CREDIT,
    AccountType.EQUITY: NormalBalance.CREDIT,
    AccountType.INCOME: NormalBalance.CREDIT,
}

# Operations a journal line target must support.
REQUIRED_CAPABILITIES: tuple[str, ...] = ("debit", "credit", "get_balance")

# Snapshot keys owned by Account; extra fields may not shadow them.
_RESERVED_FIELDS = frozenset(
    {"id", "name", "balance", "is_debit_positive", "mode", "currency", "account_type"}
)


@runtime_checkable
class AccountLike(Protocol):
    """Capability contract for anything a journal line can post to."""

    def debit(self, amount: Any) -> None:
        ...

    def credit(self, amount: Any) -> None:
        ...

    def get_balance(self) -> Any:
        ...


def missing_capabilities(candidate: object) -> tuple[str, ...]:
    """Names from REQUIRED_CAPABILITIES that ``candidate`` does not provide as callables."""
    if candidate is None:
        return REQUIRED_CAPABILITIES
    return tuple(
        name for name in REQUIRED_CAPABILITIES
        if not callable(getattr(candidate, name, None))
    )


def is_debit_positive_for(account_type: AccountType | str) -> bool:
    """Polarity implied by an account type."""
    return ACCOUNT_BEHAVIOR[AccountType(account_type)] is NormalBalance.DEBIT


class Account:
    """
    A balance register.

    Contract:
        ``debit`` increases the balance of a debit-positive account and
        decreases a credit-positive one; ``credit`` does the inverse. The
        balance itself may go negative (e.g. an overdrawn asset); only the
        operands must be non-negative.

    Guarantees:
        - ``name``, ``is_debit_positive``, ``mode`` and ``currency`` never change
        - A rejected debit/credit leaves the balance untouched

    Non-goals:
        - Not thread-safe; concurrent hosts serialize through CommitCoordinator
        - Does NOT enforce unique names
    """

    def __init__(
        self,
        name: str,
        balance: Amount | Money = 0,
        is_debit_positive: bool = True,
        *,
        currency: str | None = None,
        account_type: AccountType | str | None = None,
        registry: CurrencyRegistry | None = None,
        **extra: Any,
    ):
        if not isinstance(name, str) or not name.strip():
            raise InvalidAccountError("account name cannot be empty")
        if not isinstance(is_debit_positive, bool):
            raise InvalidAccountError(
                f"is_debit_positive must be a bool, got {is_debit_positive!r}"
            )
        clashing = _RESERVED_FIELDS.intersection(extra)
        if clashing:
            raise InvalidAccountError(
                f"extra fields shadow account attributes: {sorted(clashing)}"
            )

        self.name = name
        self.is_debit_positive = is_debit_positive
        try:
            self.account_type = AccountType(account_type) if account_type is not None else None
        except ValueError:
            raise InvalidAccountError(f"unknown account type {account_type!r}") from None
        self.extra: dict[str, Any] = dict(extra)
        self.id: str | None = None

        if isinstance(balance, Money):
            if balance.is_negative():
                raise NegativeAmountError(balance.to_number(), "initial balance")
            if currency is not None and normalize_code(currency) != balance.currency:
                raise CurrencyMismatchError(
                    normalize_code(currency), balance.currency, "open account"
                )
            self.mode = BalanceMode.MONEY
            self._balance = balance
        else:
            value = to_decimal(balance)
            if value < 0:
                raise NegativeAmountError(value, "initial balance")
            code = currency if currency is not None else get_defaults().number_mode_currency
            self.mode = BalanceMode.NUMBER
            self._balance = Money(value, code, registry=registry)

        logger.debug(
            "account_created",
            extra={
                "account_name": name,
                "mode": self.mode.value,
                "currency": self._balance.currency,
                "is_debit_positive": is_debit_positive,
            },
        )

    # -- Named constructors -------------------------------------------------

    @classmethod
    def of_type(
        cls,
        account_type: AccountType | str,
        name: str,
        balance: Amount | Money = 0,
        **kwargs: Any,
    ) -> Account:
        """Open an account whose polarity follows ``account_type``."""
        account_type = AccountType(account_type)
        return cls(
            name,
            balance,
            is_debit_positive_for(account_type),
            account_type=account_type,
            **kwargs,
        )

    @classmethod
    def asset(cls, name: str, balance: Amount | Money = 0, **kwargs: Any) -> Account:
        return cls.of_type(AccountType.ASSET, name, balance, **kwargs)

    @classmethod
    def liability(cls, name: str, balance: Amount | Money = 0, **kwargs: Any) -> Account:
        return cls.of_type(AccountType.LIABILITY, name, balance, **kwargs)

    @classmethod
    def equity(cls, name: str, balance: Amount | Money = 0, **kwargs: Any) -> Account:
        return cls.of_type(AccountType.EQUITY, name, balance, **kwargs)

    @classmethod
    def income(cls, name: str, balance: Amount | Money = 0, **kwargs: Any) -> Account:
        return cls.of_type(AccountType.INCOME, name, balance, **kwargs)

    @classmethod
    def expense(cls, name: str, balance: Amount | Money = 0, **kwargs: Any) -> Account:
        return cls.of_type(AccountType.EXPENSE, name, balance, **kwargs)

    # -- Mutation -----------------------------------------------------------

    def debit(self, amount: Amount | Money) -> None:
        """Record a debit of ``amount``."""
        money = self.check_amount(amount)
        self._balance = self._next_balance(money, increase=self.is_debit_positive)

    def credit(self, amount: Amount | Money) -> None:
        """Record a credit of ``amount``."""
        money = self.check_amount(amount)
        self._balance = self._next_balance(money, increase=not self.is_debit_positive)

    def check_amount(self, amount: Amount | Money) -> Money:
        """
        Validate a debit/credit operand without touching the balance.

        Returns the operand as Money in the account's currency.

        Raises:
            NegativeAmountError, CurrencyMismatchError, InvalidAmountError
        """
        if isinstance(amount, Money):
            if amount.is_negative():
                raise NegativeAmountError(amount.to_number())
            if amount.currency != self._balance.currency:
                raise CurrencyMismatchError(
                    self._balance.currency, amount.currency, "post to account"
                )
            return amount

        value = to_decimal(amount)
        if value < 0:
            raise NegativeAmountError(value)
        return Money(value, self._balance.currency, registry=self._balance.registry)

    def can_accept(self, amount: Amount | Money) -> bool:
        """True when ``amount`` would be accepted by debit() and credit()."""
        try:
            money = self.check_amount(amount)
            self._next_balance(money, increase=True)
            self._next_balance(money, increase=False)
        except LedgerKernelError:
            return False
        return True

    def project_balance(self, postings: Iterable[tuple[bool, Amount | Money]]) -> Money:
        """
        Balance after applying ``postings`` in order, without applying them.

        Each posting is ``(is_debit, amount)``. Every intermediate balance
        is range-checked exactly as debit()/credit() would check it.

        Raises:
            NegativeAmountError, CurrencyMismatchError, InvalidAmountError,
            RangeExceededError
        """
        projected = self._balance
        for is_debit, amount in postings:
            money = self.check_amount(amount)
            increase = is_debit if self.is_debit_positive else not is_debit
            projected = projected.add(money) if increase else projected.subtract(money)
        return projected

    def _next_balance(self, money: Money, *, increase: bool) -> Money:
        return self._balance.add(money) if increase else self._balance.subtract(money)

    # -- Reads --------------------------------------------------------------

    def get_balance(self) -> Decimal | Money:
        """Balance in the representation the account was opened with."""
        if self.mode is BalanceMode.NUMBER:
            return self._balance.to_number()
        return self._balance

    @property
    def balance(self) -> Decimal | Money:
        return self.get_balance()

    @property
    def balance_money(self) -> Money:
        """Balance as Money regardless of mode."""
        return self._balance

    @property
    def currency(self) -> str:
        return self._balance.currency

    def get_currency(self) -> str:
        return self._balance.currency

    def is_number_mode(self) -> bool:
        return self.mode is BalanceMode.NUMBER

    def is_money_mode(self) -> bool:
        return self.mode is BalanceMode.MONEY

    @property
    def normal_balance(self) -> NormalBalance:
        return NormalBalance.DEBIT if self.is_debit_positive else NormalBalance.CREDIT

    # -- Snapshots ----------------------------------------------------------

    def serialize(self) -> dict[str, Any]:
        """Plain snapshot for persistence adapters."""
        data: dict[str, Any] = {
            "name": self.name,
            "balance": self._balance.to_json(),
            "is_debit_positive": self.is_debit_positive,
            "mode": self.mode.value,
            "currency": self._balance.currency,
            "account_type": self.account_type.value if self.account_type else None,
        }
        data.update(self.extra)
        if self.id is not None:
            data["id"] = self.id
        return data

    @classmethod
    def from_data(
        cls,
        data: dict[str, Any],
        registry: CurrencyRegistry | None = None,
    ) -> Account:
        """
        Rebuild an account from ``serialize()`` output.

        The stored balance is restored as-is, including negative balances
        that the constructor would refuse as an opening balance. Snapshots
        using ``isDebitPositive``/``initialMode`` keys are also accepted.
        """
        if not isinstance(data, dict) or "name" not in data:
            raise SnapshotError("account", "expected a mapping with a 'name' key")

        fields = dict(data)
        name = fields.pop("name")
        account_id = fields.pop("id", None)
        raw_balance = fields.pop("balance", None)
        is_debit_positive = fields.pop(
            "is_debit_positive", fields.pop("isDebitPositive", True)
        )
        raw_mode = fields.pop("mode", fields.pop("initialMode", BalanceMode.NUMBER.value))
        try:
            mode = BalanceMode(raw_mode)
        except ValueError:
            raise SnapshotError("account", f"unknown balance mode {raw_mode!r}") from None
        currency = fields.pop("currency", None)
        account_type = fields.pop("account_type", None)

        if isinstance(raw_balance, dict):
            amount = raw_balance.get("amount", 0)
            currency = raw_balance.get("currency") or currency
        elif raw_balance is None:
            amount = 0
        else:
            amount = raw_balance
        if currency is None:
            currency = get_defaults().number_mode_currency
        stored = Money(amount, currency, registry=registry)

        opening: Amount | Money = (
            0 if mode is BalanceMode.NUMBER else Money(0, currency, registry=registry)
        )
        account = cls(
            name,
            opening,
            is_debit_positive,
            currency=currency,
            account_type=account_type,
            registry=registry,
            **fields,
        )
        account._balance = stored
        account.id = account_id
        return account

    def __repr__(self) -> str:
        return (
            f"Account(name={self.name!r}, balance={self._balance!s}, "
            f"is_debit_positive={self.is_debit_positive}, mode={self.mode.value})"
        )


def asset(name: str, balance: Amount | Money = 0, **kwargs: Any) -> Account:
    return Account.asset(name, balance, **kwargs)


def liability(name: str, balance: Amount | Money = 0, **kwargs: Any) -> Account:
    return Account.liability(name, balance, **kwargs)


def equity(name: str, balance: Amount | Money = 0, **kwargs: Any) -> Account:
    return Account.equity(name, balance, **kwargs)


def income(name: str, balance: Amount | Money = 0, **kwargs: Any) -> Account:
    return Account.income(name, balance, **kwargs)


def expense(name: str, balance: Amount | Money = 0, **kwargs: Any) -> Account:
    return Account.expense(name, balance, **kwargs)
