"""
MoneyUtils -- stateless algorithms over Money collections.

Aggregates (sum, average, min, max), remainder-safe distribution,
percentage/tax/discount helpers, display-string parsing and explicit
re-rounding. Every function is pure: inputs are never mutated and every
result is a new Money.

Distribution:
    ``distribute(total, n)`` works in whole display units (cents for USD,
    yen for JPY). Every part receives the integer quotient; the first
    ``remainder`` parts receive one extra unit. The parts therefore always
    sum to exactly ``total`` at display precision.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Sequence

from ledger_kernel.domain.currency import normalize_code
from ledger_kernel.domain.defaults import get_defaults
from ledger_kernel.domain.values import Amount, Money, to_decimal
from ledger_kernel.exceptions import (
    EmptyCollectionError,
    InvalidAmountError,
    LedgerKernelError,
    MoneyParseError,
)

_HUNDRED = Decimal(100)


@dataclass(frozen=True)
class TaxBreakdown:
    """Result of calculate_with_tax: the gross total and the tax part."""

    total: Money
    tax: Money


@dataclass(frozen=True)
class DiscountBreakdown:
    """Result of apply_discount: the discounted amount and the discount itself."""

    final: Money
    discount: Money


# ---------------------------------------------------------------------------
# Aggregates
# ---------------------------------------------------------------------------


def sum_money(values: Iterable[Money], currency: str | None = None) -> Money:
    """Sum Money values (zero of ``currency`` for empty input)."""
    return Money.sum(values, currency)


def sum_numbers(values: Iterable[Amount], currency: str | None = None) -> Money:
    """Lift plain numbers to Money of ``currency`` and sum them exactly."""
    return Money.sum((Money(value, currency) for value in values), currency)


def average(values: Sequence[Money]) -> Money:
    """Arithmetic mean; EmptyCollectionError on empty input."""
    items = list(values)
    if not items:
        raise EmptyCollectionError("average")
    return Money.sum(items).divide(len(items))


def minimum(values: Iterable[Money]) -> Money:
    """Smallest value by is_less_than; EmptyCollectionError on empty input."""
    result: Money | None = None
    for value in values:
        if result is None or value.is_less_than(result):
            result = value
    if result is None:
        raise EmptyCollectionError("minimum")
    return result


def maximum(values: Iterable[Money]) -> Money:
    """Largest value by is_greater_than; EmptyCollectionError on empty input."""
    result: Money | None = None
    for value in values:
        if result is None or value.is_greater_than(result):
            result = value
    if result is None:
        raise EmptyCollectionError("maximum")
    return result


# ---------------------------------------------------------------------------
# Distribution
# ---------------------------------------------------------------------------


def distribute(total: Money, parts: int) -> list[Money]:
    """
    Split ``total`` into ``parts`` Monies that sum exactly to ``total``.

    The split happens in display units; leftover units go to the earliest
    parts. A negative total is split by magnitude and every part negated,
    so ``distribute(Money(-100), 3)`` is ``[-33.34, -33.33, -33.33]``. A
    single part is ``total`` itself, at full internal precision.

    Raises:
        InvalidAmountError: if ``parts`` is not a positive integer.
    """
    if isinstance(parts, bool) or not isinstance(parts, int) or parts < 1:
        raise InvalidAmountError(parts, "number of parts must be a positive integer")
    if parts == 1:
        return [total]

    display = total.display_scale
    scale = max(total.scale, display)
    rounded = total.round_to(display).with_scale(scale)
    unit = 10 ** (scale - display)

    units = rounded.internal_amount // unit
    sign = -1 if units < 0 else 1
    base, remainder = divmod(abs(units), parts)

    result = []
    for index in range(parts):
        share = base + (1 if index < remainder else 0)
        result.append(
            Money._from_scaled(sign * share * unit, scale, total.currency, total.registry)
        )
    return result


# ---------------------------------------------------------------------------
# Percentages, tax, discount
# ---------------------------------------------------------------------------


def percentage(money: Money, percent: Amount) -> Money:
    """``percent`` per cent of ``money``."""
    return money.multiply(to_decimal(percent) / _HUNDRED)


def calculate_tax(amount: Money, tax_rate: Amount) -> Money:
    """Tax on ``amount`` at ``tax_rate`` per cent."""
    return percentage(amount, tax_rate)


def calculate_with_tax(amount: Money, tax_rate: Amount) -> TaxBreakdown:
    """Gross total and tax component at ``tax_rate`` per cent."""
    tax = calculate_tax(amount, tax_rate)
    return TaxBreakdown(total=amount.add(tax), tax=tax)


def calculate_discount(amount: Money, discount_percent: Amount) -> Money:
    """Discount on ``amount`` at ``discount_percent`` per cent."""
    return percentage(amount, discount_percent)


def apply_discount(amount: Money, discount_percent: Amount) -> DiscountBreakdown:
    """Discounted amount together with the discount that produced it."""
    discount = calculate_discount(amount, discount_percent)
    return DiscountBreakdown(final=amount.subtract(discount), discount=discount)


# ---------------------------------------------------------------------------
# Conversion helpers
# ---------------------------------------------------------------------------


def to_money_list(values: Iterable[Amount], currency: str | None = None) -> list[Money]:
    """Lift plain numbers to Money of ``currency``."""
    return [Money(value, currency) for value in values]


def to_number_list(values: Iterable[Money]) -> list[Decimal]:
    """Display-precision values of each Money."""
    return [value.to_number() for value in values]


def have_same_currency(values: Iterable[Money]) -> bool:
    """True when every Money shares one currency (vacuously true when empty)."""
    codes = {value.currency for value in values}
    return len(codes) <= 1


def round_money(money: Money, decimals: int) -> Money:
    """Round to ``decimals`` places (half-up) regardless of display decimals."""
    return money.round_to(decimals)


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

# Longest symbols first so "C$" wins over "$".
_SYMBOL_CURRENCIES: tuple[tuple[str, str], ...] = (
    ("C$", "CAD"),
    ("A$", "AUD"),
    ("$", "USD"),
    ("€", "EUR"),
    ("£", "GBP"),
    ("¥", "JPY"),
    ("₹", "INR"),
    ("₩", "KRW"),
    ("₿", "BTC"),
)

_CODE_PREFIX = re.compile(r"^([A-Za-z]{3})\s*(.*)$")
_CODE_SUFFIX = re.compile(r"^(.*?)\s*([A-Za-z]{3})$")
_NUMBER = re.compile(r"^\d+(\.\d+)?$|^\.\d+$")


def parse(text: str, default_currency: str | None = None) -> Money:
    """
    Parse a display string such as ``"$1,234.56"``, ``"EUR 10"``,
    ``"10.00 GBP"``, ``"-€5"`` or ``"($12.00)"`` into Money.

    A currency symbol or three-letter code (prefix or suffix) sets the
    currency; otherwise ``default_currency`` is used. Thousands separators
    are commas.

    Raises:
        MoneyParseError: if no amount can be extracted.
    """
    if not isinstance(text, str) or not text.strip():
        raise MoneyParseError(text)

    working = text.strip()
    negative = False
    if working.startswith("(") and working.endswith(")"):
        negative = True
        working = working[1:-1].strip()
    if working.startswith("-"):
        negative = not negative
        working = working[1:].strip()

    currency: str | None = None
    for symbol, code in _SYMBOL_CURRENCIES:
        if working.startswith(symbol):
            currency = code
            working = working[len(symbol):].strip()
            break
        if working.endswith(symbol):
            currency = code
            working = working[: -len(symbol)].strip()
            break

    if currency is None:
        match = _CODE_PREFIX.match(working)
        if match and match.group(2):
            currency, working = match.group(1), match.group(2)
        else:
            match = _CODE_SUFFIX.match(working)
            if match and match.group(1):
                working, currency = match.group(1), match.group(2)

    if working.startswith("-"):
        negative = not negative
        working = working[1:].strip()

    number = working.replace(",", "").replace(" ", "")
    if not _NUMBER.match(number):
        raise MoneyParseError(text)

    code = currency or default_currency or get_defaults().default_currency
    try:
        code = normalize_code(code)
        result = Money(number, code)
    except LedgerKernelError as exc:
        raise MoneyParseError(text) from exc
    return result.negate() if negative else result



class MoneyUtils:
    """Namespace mirroring the module functions under their short names."""

    sum = staticmethod(sum_money)
    sum_numbers = staticmethod(sum_numbers)
    average = staticmethod(average)
    min = staticmethod(minimum)
    max = staticmethod(maximum)
    distribute = staticmethod(distribute)
    percentage = staticmethod(percentage)
    calculate_tax = staticmethod(calculate_tax)
    calculate_with_tax = staticmethod(calculate_with_tax)
    calculate_discount = staticmethod(calculate_discount)
    apply_discount = staticmethod(apply_discount)
    to_money_list = staticmethod(to_money_list)
    to_number_list = staticmethod(to_number_list)
    have_same_currency = staticmethod(have_same_currency)
    parse = staticmethod(parse)
    round = staticmethod(round_money)
