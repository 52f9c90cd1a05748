"""
Tests for Account.

Verifies:
- Debit/credit polarity for every account type
- Number-mode and money-mode balances
- Operand validation (negative amounts, currency mismatch)
- Snapshot round trips
"""

from decimal import Decimal

import pytest

from ledger_kernel.domain.account import (
    Account,
    AccountLike,
    AccountType,
    BalanceMode,
    NormalBalance,
    asset,
    is_debit_positive_for,
    missing_capabilities,
)
from ledger_kernel.domain.defaults import configure_defaults
from ledger_kernel.domain.values import Money
from ledger_kernel.exceptions import (
    CurrencyMismatchError,
    InvalidAccountError,
    InvalidAmountError,
    NegativeAmountError,
    RangeExceededError,
    SnapshotError,
)


class TestAccountPolarity:
    """Debits and credits move the balance according to is_debit_positive."""

    def test_asset_debit_then_credit(self):
        cash = Account.asset("Cash", 1000)
        cash.debit(200)
        assert cash.get_balance() == Decimal("1200")
        cash.credit(50)
        assert cash.get_balance() == Decimal("1150")

    def test_income_credit_increases(self):
        revenue = Account.income("Sales Revenue")
        revenue.credit(500)
        assert revenue.get_balance() == Decimal("500")

    def test_liability_debit_can_go_negative(self):
        payable = Account.liability("Accounts Payable")
        payable.debit(100)
        assert payable.get_balance() == Decimal("-100")

    @pytest.mark.parametrize(
        "account_type, debit_positive",
        [
            (AccountType.ASSET, True),
            (AccountType.EXPENSE, True),
            (AccountType.LIABILITY, False),
            (AccountType.EQUITY, False),
            (AccountType.INCOME, False),
        ],
    )
    def test_named_constructors(self, account_type, debit_positive):
        account = Account.of_type(account_type, "Test")
        assert account.is_debit_positive is debit_positive
        assert account.account_type is account_type
        assert is_debit_positive_for(account_type.value) is debit_positive

    def test_normal_balance(self):
        assert Account.expense("Rent").normal_balance is NormalBalance.DEBIT
        assert Account.equity("Capital").normal_balance is NormalBalance.CREDIT

    def test_module_level_constructor(self):
        account = asset("Petty Cash", 25)
        assert account.account_type is AccountType.ASSET
        assert account.get_balance() == Decimal("25")

    def test_explicit_polarity(self):
        contra = Account("Allowance", 0, False)
        contra.credit(10)
        assert contra.get_balance() == Decimal("10")


class TestNumberMode:
    """Accounts opened with a plain number."""

    def test_mode_and_generic_currency(self):
        account = Account("Cash", 10)
        assert account.mode is BalanceMode.NUMBER
        assert account.is_number_mode()
        assert account.currency == "CURR"

    def test_balance_is_exact(self):
        account = Account("Cash")
        account.debit(0.1)
        account.debit(0.2)
        assert account.get_balance() == Decimal("0.30")
        assert isinstance(account.get_balance(), Decimal)

    def test_configured_number_mode_currency(self):
        configure_defaults(number_mode_currency="XTS")
        assert Account("Cash").currency == "XTS"

    def test_explicit_currency(self):
        account = Account("Cash", 0, currency="EUR")
        account.debit(Money(5, "EUR"))
        assert account.get_balance() == Decimal("5")

    def test_money_in_other_currency_rejected(self):
        account = Account("Cash", 0)
        with pytest.raises(CurrencyMismatchError):
            account.debit(Money(1, "USD"))
        assert account.get_balance() == Decimal("0")

    def test_string_amount(self):
        account = Account("Cash")
        account.debit("12.345")
        assert account.balance == Decimal("12.35")
        assert account.balance_money.get_internal_amount() == Decimal("12.345000")


class TestMoneyMode:
    """Accounts opened with a Money balance."""

    def test_balance_is_money(self, usd_cash):
        usd_cash.debit(Money(50, "USD"))
        assert usd_cash.mode is BalanceMode.MONEY
        assert usd_cash.get_balance() == Money(1050, "USD")

    def test_number_operand_converted(self, usd_cash):
        usd_cash.credit(25)
        assert usd_cash.get_balance() == Money(975, "USD")

    def test_other_currency_rejected(self, usd_cash):
        with pytest.raises(CurrencyMismatchError):
            usd_cash.debit(Money(1, "EUR"))
        assert usd_cash.get_balance() == Money(1000, "USD")

    def test_opening_currency_mismatch(self):
        with pytest.raises(CurrencyMismatchError):
            Account("Bank", Money(1, "USD"), currency="EUR")


class TestAccountValidation:
    """Construction and operand errors."""

    @pytest.mark.parametrize("name", ["", "   ", None])
    def test_empty_name(self, name):
        with pytest.raises(InvalidAccountError):
            Account(name)

    def test_non_bool_polarity(self):
        with pytest.raises(InvalidAccountError):
            Account("Cash", 0, "yes")

    def test_negative_opening_balance(self):
        with pytest.raises(NegativeAmountError) as exc_info:
            Account("Cash", -1)
        assert exc_info.value.context == "initial balance"

    def test_negative_money_opening_balance(self):
        with pytest.raises(NegativeAmountError):
            Account("Cash", Money(-1, "USD"))

    def test_negative_debit_leaves_balance(self, cash):
        with pytest.raises(NegativeAmountError):
            cash.debit(-5)
        assert cash.get_balance() == Decimal("1000")

    def test_negative_money_credit(self, usd_cash):
        with pytest.raises(NegativeAmountError):
            usd_cash.credit(Money(-5, "USD"))

    def test_non_numeric_amount(self, cash):
        with pytest.raises(InvalidAmountError):
            cash.debit("lots")

    def test_unknown_account_type(self):
        with pytest.raises(InvalidAccountError):
            Account("Cash", account_type="gadget")

    def test_extra_field_cannot_shadow(self):
        with pytest.raises(InvalidAccountError):
            Account("Cash", mode="money")

    def test_can_accept(self, cash, usd_cash):
        assert cash.can_accept(10)
        assert not cash.can_accept(-10)
        assert not cash.can_accept("lots")
        assert not usd_cash.can_accept(Money(1, "EUR"))

    def test_check_amount_returns_money(self, usd_cash):
        checked = usd_cash.check_amount("2.50")
        assert checked == Money("2.50", "USD")
        assert usd_cash.get_balance() == Money(1000, "USD")

    def test_project_balance_does_not_mutate(self, cash, revenue):
        assert cash.project_balance([(True, 200), (False, 50)]) == Money(1150, "CURR")
        assert revenue.project_balance([(False, 500)]) == Money(500, "CURR")
        assert cash.get_balance() == Decimal("1000")

    def test_project_balance_checks_every_step(self):
        near_limit = Account.asset("Near limit", 9_007_199_000)
        with pytest.raises(RangeExceededError):
            near_limit.project_balance([(True, 200), (True, 200)])
        with pytest.raises(NegativeAmountError):
            near_limit.project_balance([(True, -1)])
        assert near_limit.get_balance() == Decimal("9007199000")

    def test_satisfies_account_contract(self, cash):
        assert isinstance(cash, AccountLike)
        assert missing_capabilities(cash) == ()
        assert missing_capabilities(object()) == ("debit", "credit", "get_balance")


class TestAccountSnapshot:
    """serialize() and from_data()."""

    def test_round_trip_number_mode(self):
        account = Account.asset("Cash", 100, code="1000")
        account.credit(150)
        restored = Account.from_data(account.serialize())
        assert restored.name == "Cash"
        assert restored.get_balance() == Decimal("-50")
        assert restored.is_debit_positive
        assert restored.account_type is AccountType.ASSET
        assert restored.extra == {"code": "1000"}

    def test_round_trip_money_mode(self, usd_cash):
        usd_cash.debit(Money("0.005", "USD"))
        restored = Account.from_data(usd_cash.serialize())
        assert restored.mode is BalanceMode.MONEY
        assert restored.balance_money == usd_cash.balance_money

    def test_serialize_shape(self, usd_revenue):
        usd_revenue.id = "acc-1"
        data = usd_revenue.serialize()
        assert data == {
            "name": "USD Revenue",
            "balance": {"amount": "0.000000", "currency": "USD"},
            "is_debit_positive": False,
            "mode": "money",
            "currency": "USD",
            "account_type": "income",
            "id": "acc-1",
        }

    def test_legacy_keys(self):
        restored = Account.from_data(
            {"name": "Legacy", "balance": 5, "isDebitPositive": False, "initialMode": "number"}
        )
        assert not restored.is_debit_positive
        assert restored.get_balance() == Decimal("5")

    def test_missing_name(self):
        with pytest.raises(SnapshotError):
            Account.from_data({"balance": 1})

    def test_bad_mode(self):
        with pytest.raises(SnapshotError):
            Account.from_data({"name": "Cash", "mode": "crypto"})
