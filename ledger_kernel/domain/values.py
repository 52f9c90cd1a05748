"""
Values -- Immutable, scaled-integer Money value object.

Responsibility:
    Provides the foundational monetary type for every ledger computation.
    A Money pairs an exact integer count of ``10**-scale`` units with a
    currency code; floats are never stored.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Imported by every other domain module. No outward dependencies except
    ledger_kernel.domain.currency (CurrencyRegistry) and
    ledger_kernel.domain.defaults (precision tunables).

Invariants enforced:
    EXACT_STORAGE    -- internal_amount is always an int; floats are turned
                        into Decimal through their shortest repr at
                        construction and never kept.
    CURRENCY_SAFETY  -- arithmetic and ordering between two Monies require
                        identical currency codes, checked before computing.
    SAFE_RANGE       -- abs(internal_amount) never exceeds the configured
                        max_safe_integer.

Rounding:
    Every rounding step (construction, multiply, divide, display, rescale)
    is ROUND_HALF_UP, i.e. half away from zero: 0.005 -> 0.01 and
    -0.005 -> -0.01 at two decimals.

Failure modes:
    - InvalidAmountError on unparseable, non-finite or non-numeric input
    - RangeExceededError when the scaled integer leaves the safe range
    - CurrencyMismatchError when two currencies are combined
    - DivisionByZeroError on divide(0)
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext
from typing import Any, Iterable, Union

from ledger_kernel.domain.currency import (
    CurrencyInfo,
    CurrencyRegistry,
    get_default_registry,
    normalize_code,
)
from ledger_kernel.domain.defaults import MAX_INTERNAL_SCALE, get_defaults
from ledger_kernel.exceptions import (
    CurrencyMismatchError,
    DivisionByZeroError,
    InvalidAmountError,
    RangeExceededError,
)

Amount = Union[int, float, str, Decimal]

# Working precision for intermediate Decimal products and quotients.
_WORK_PRECISION = 80


# ---------------------------------------------------------------------------
# Scaled-integer helpers
# ---------------------------------------------------------------------------


def to_decimal(value: Any) -> Decimal:
    """
    Convert a plain number or numeric string into a finite Decimal.

    Floats go through ``str()`` so that ``0.1`` becomes ``Decimal("0.1")``
    rather than its binary expansion.

    Raises:
        InvalidAmountError: for booleans, unsupported types, unparseable
            strings, NaN and infinities.
    """
    if isinstance(value, bool):
        raise InvalidAmountError(value, "booleans are not amounts")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int):
        result = Decimal(value)
    elif isinstance(value, float):
        result = Decimal(str(value))
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            raise InvalidAmountError(value, "empty string")
        try:
            result = Decimal(text)
        except InvalidOperation:
            raise InvalidAmountError(value) from None
    else:
        raise InvalidAmountError(value, f"unsupported type {type(value).__name__}")

    if not result.is_finite():
        raise InvalidAmountError(value, "amount must be finite")
    return result


def decimal_places_of(value: Decimal) -> int:
    """Number of digits after the decimal point in a Decimal's own exponent."""
    exponent = value.as_tuple().exponent
    if not isinstance(exponent, int) or exponent >= 0:
        return 0
    return -exponent


def round_half_up(value: Decimal) -> int:
    """Round a Decimal to the nearest integer, halves away from zero."""
    with localcontext() as ctx:
        ctx.prec = _WORK_PRECISION
        return int(value.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def div_half_up(numerator: int, denominator: int) -> int:
    """Integer division rounded half away from zero (denominator > 0)."""
    quotient, remainder = divmod(abs(numerator), denominator)
    if remainder * 2 >= denominator:
        quotient += 1
    return quotient if numerator >= 0 else -quotient


def _restore_money(
    internal_amount: int,
    scale: int,
    currency: str,
    registry: CurrencyRegistry | None = None,
) -> Money:
    return Money._from_scaled(internal_amount, scale, currency, registry)


# ---------------------------------------------------------------------------
# Locale formatting table
# ---------------------------------------------------------------------------


class _LocaleFormat:
    """Grouping/decimal separators and symbol placement for one locale."""

    __slots__ = ("group", "decimal", "pattern", "grouping")

    def __init__(self, group: str, decimal: str, pattern: str, grouping: str = "standard"):
        self.group = group
        self.decimal = decimal
        self.pattern = pattern
        self.grouping = grouping


_NBSP = "\u00a0"
_NNBSP = "\u202f"

_LOCALE_FORMATS: dict[str, _LocaleFormat] = {
    "en-US": _LocaleFormat(",", ".", "{symbol}{amount}"),
    "en-GB": _LocaleFormat(",", ".", "{symbol}{amount}"),
    "en-CA": _LocaleFormat(",", ".", "{symbol}{amount}"),
    "en-AU": _LocaleFormat(",", ".", "{symbol}{amount}"),
    "en-IN": _LocaleFormat(",", ".", "{symbol}{amount}", grouping="indian"),
    "ja-JP": _LocaleFormat(",", ".", "{symbol}{amount}"),
    "zh-CN": _LocaleFormat(",", ".", "{symbol}{amount}"),
    "ko-KR": _LocaleFormat(",", ".", "{symbol}{amount}"),
    "de-DE": _LocaleFormat(".", ",", "{amount}" + _NBSP + "{symbol}"),
    "es-ES": _LocaleFormat(".", ",", "{amount}" + _NBSP + "{symbol}"),
    "it-IT": _LocaleFormat(".", ",", "{amount}" + _NBSP + "{symbol}"),
    "nl-NL": _LocaleFormat(".", ",", "{symbol}" + _NBSP + "{amount}"),
    "pt-BR": _LocaleFormat(".", ",", "{symbol}" + _NBSP + "{amount}"),
    "fr-FR": _LocaleFormat(_NNBSP, ",", "{amount}" + _NBSP + "{symbol}"),
    "de-CH": _LocaleFormat("’", ".", "{symbol}" + _NBSP + "{amount}"),
}


def _resolve_locale(locale: str) -> _LocaleFormat | None:
    if not isinstance(locale, str) or not locale:
        return None
    key = locale.replace("_", "-")
    found = _LOCALE_FORMATS.get(key)
    if found is not None:
        return found
    # Case-insensitive exact match, then first entry for the bare language.
    lowered = key.lower()
    for name, fmt in _LOCALE_FORMATS.items():
        if name.lower() == lowered:
            return fmt
    language = lowered.split("-")[0]
    for name, fmt in _LOCALE_FORMATS.items():
        if name.lower().split("-")[0] == language:
            return fmt
    return None


def _group_digits(digits: str, separator: str, style: str) -> str:
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    size = 2 if style == "indian" else 3
    groups = []
    while len(head) > size:
        groups.insert(0, head[-size:])
        head = head[:-size]
    if head:
        groups.insert(0, head)
    groups.append(tail)
    return separator.join(groups)


# ---------------------------------------------------------------------------
# Money
# ---------------------------------------------------------------------------


class Money:
    """
    Monetary amount value object backed by a scaled integer.

    Contract:
        ``internal_amount`` is an exact count of ``10**-scale`` units of
        ``currency``. The scale is chosen at construction as
        ``max(min_internal_scale, display decimals, input decimals)``
        (input decimals capped at MAX_INTERNAL_SCALE) unless ``force_scale``
        is given. Every operation returns a new Money.

    Guarantees:
        - Immutable; attribute assignment raises AttributeError
        - Hashable; equal values hash equally regardless of scale
        - add/subtract are pure integer operations on aligned scales
        - to_number() rounds to the currency's display decimals, never to
          the internal scale

    Non-goals:
        - Does NOT perform currency conversion
        - Does NOT validate codes against ISO 4217 (unknown codes display
          with two decimals)
    """

    __slots__ = ("_internal_amount", "_scale", "_currency", "_registry")

    def __init__(
        self,
        amount: Amount,
        currency: str | None = None,
        *,
        min_internal_scale: int | None = None,
        force_scale: int | None = None,
        registry: CurrencyRegistry | None = None,
    ):
        defaults = get_defaults()
        registry = registry or get_default_registry()
        code = normalize_code(currency if currency is not None else defaults.default_currency)
        value = to_decimal(amount)

        if force_scale is not None:
            scale = _check_scale(force_scale, "force_scale")
        else:
            minimum = (
                defaults.min_internal_scale
                if min_internal_scale is None
                else _check_scale(min_internal_scale, "min_internal_scale")
            )
            scale = max(
                minimum,
                registry.get_decimal_places(code),
                min(decimal_places_of(value), MAX_INTERNAL_SCALE),
            )

        try:
            internal = round_half_up(value.scaleb(scale))
        except InvalidOperation:
            raise RangeExceededError(
                value, code, scale, defaults.max_safe_integer
            ) from None

        _check_range(internal, value, code, scale)
        object.__setattr__(self, "_internal_amount", internal)
        object.__setattr__(self, "_scale", scale)
        object.__setattr__(self, "_currency", code)
        object.__setattr__(self, "_registry", registry)

    @classmethod
    def _from_scaled(
        cls,
        internal_amount: int,
        scale: int,
        currency: str,
        registry: CurrencyRegistry | None = None,
    ) -> Money:
        """Build a Money directly from its scaled integer (range-checked)."""
        _check_range(
            internal_amount,
            Decimal(internal_amount).scaleb(-scale),
            currency,
            scale,
        )
        instance = object.__new__(Money)
        object.__setattr__(instance, "_internal_amount", internal_amount)
        object.__setattr__(instance, "_scale", scale)
        object.__setattr__(instance, "_currency", currency)
        object.__setattr__(instance, "_registry", registry or get_default_registry())
        return instance

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"Money is immutable; cannot set {name!r}")

    def __delattr__(self, name: str) -> None:
        raise AttributeError(f"Money is immutable; cannot delete {name!r}")

    def __reduce__(self):
        # The shared registry is re-resolved on load; an injected one travels along.
        registry = None if self._registry is get_default_registry() else self._registry
        return (
            _restore_money,
            (self._internal_amount, self._scale, self._currency, registry),
        )

    # -- Attributes ---------------------------------------------------------

    @property
    def internal_amount(self) -> int:
        """Exact integer count of ``10**-scale`` units."""
        return self._internal_amount

    @property
    def scale(self) -> int:
        return self._scale

    @property
    def currency(self) -> str:
        return self._currency

    @property
    def registry(self) -> CurrencyRegistry:
        return self._registry

    @property
    def currency_info(self) -> CurrencyInfo:
        return self._registry.resolve(self._currency)

    @property
    def display_scale(self) -> int:
        """Display decimals for this currency (2 when the code is unknown)."""
        return self._registry.get_decimal_places(self._currency)

    @property
    def amount(self) -> Decimal:
        """Alias of to_number()."""
        return self.to_number()

    # -- Arithmetic ---------------------------------------------------------

    def add(self, other: Money) -> Money:
        """Add another Money. Must be same currency."""
        a, b, scale = self._aligned(other, "add")
        return Money._from_scaled(a + b, scale, self._currency, self._registry)

    def subtract(self, other: Money) -> Money:
        """Subtract another Money. Must be same currency."""
        a, b, scale = self._aligned(other, "subtract")
        return Money._from_scaled(a - b, scale, self._currency, self._registry)

    def multiply(self, factor: Amount) -> Money:
        """
        Multiply by a scalar.

        The product is rounded once, half-up, at the receiver's scale. A
        float factor (e.g. a tax rate) is read through its shortest repr.
        """
        factor_value = to_decimal(factor)
        with localcontext() as ctx:
            ctx.prec = _WORK_PRECISION
            product = Decimal(self._internal_amount) * factor_value
        return Money._from_scaled(
            round_half_up(product), self._scale, self._currency, self._registry
        )

    def divide(self, divisor: Amount) -> Money:
        """
        Divide by a scalar with the same single-rounding discipline as multiply.

        Raises:
            DivisionByZeroError: if divisor is zero.
        """
        divisor_value = to_decimal(divisor)
        if divisor_value == 0:
            raise DivisionByZeroError(self._currency)
        with localcontext() as ctx:
            ctx.prec = _WORK_PRECISION
            quotient = Decimal(self._internal_amount) / divisor_value
        return Money._from_scaled(
            round_half_up(quotient), self._scale, self._currency, self._registry
        )

    def negate(self) -> Money:
        """Flip the sign."""
        return Money._from_scaled(
            -self._internal_amount, self._scale, self._currency, self._registry
        )

    def absolute(self) -> Money:
        """Absolute value."""
        return Money._from_scaled(
            abs(self._internal_amount), self._scale, self._currency, self._registry
        )

    def round_to(self, decimals: int) -> Money:
        """
        Round the value to ``decimals`` places, keeping the internal scale.

        Independent of the currency's display decimals.
        """
        decimals = _check_scale(decimals, "decimals")
        if decimals >= self._scale:
            return self
        factor = 10 ** (self._scale - decimals)
        rounded = div_half_up(self._internal_amount, factor) * factor
        return Money._from_scaled(rounded, self._scale, self._currency, self._registry)

    def with_scale(self, scale: int) -> Money:
        """Re-express at another internal scale (half-up when reducing)."""
        scale = _check_scale(scale, "scale")
        if scale == self._scale:
            return self
        if scale > self._scale:
            internal = self._internal_amount * 10 ** (scale - self._scale)
        else:
            internal = div_half_up(self._internal_amount, 10 ** (self._scale - scale))
        return Money._from_scaled(internal, scale, self._currency, self._registry)

    # -- Comparison ---------------------------------------------------------

    def equals(self, other: object) -> bool:
        """Same currency and same value (scale-insensitive). Never raises."""
        if not isinstance(other, Money) or other._currency != self._currency:
            return False
        a, b, _ = self._aligned(other, "compare")
        return a == b

    def is_greater_than(self, other: Money) -> bool:
        a, b, _ = self._aligned(other, "compare")
        return a > b

    def is_greater_than_or_equal(self, other: Money) -> bool:
        a, b, _ = self._aligned(other, "compare")
        return a >= b

    def is_less_than(self, other: Money) -> bool:
        a, b, _ = self._aligned(other, "compare")
        return a < b

    def is_less_than_or_equal(self, other: Money) -> bool:
        a, b, _ = self._aligned(other, "compare")
        return a <= b

    def is_zero(self) -> bool:
        return self._internal_amount == 0

    def is_positive(self) -> bool:
        return self._internal_amount > 0

    def is_negative(self) -> bool:
        return self._internal_amount < 0

    def is_same_currency(self, other: Money) -> bool:
        return isinstance(other, Money) and other._currency == self._currency

    # -- Conversion ---------------------------------------------------------

    def to_number(self) -> Decimal:
        """Value rounded (half-up) to the currency's display decimals."""
        display = self.display_scale
        if self._scale >= display:
            units = div_half_up(self._internal_amount, 10 ** (self._scale - display))
        else:
            units = self._internal_amount * 10 ** (display - self._scale)
        return Decimal(units).scaleb(-display)

    def get_internal_amount(self) -> Decimal:
        """Exact value at internal precision."""
        return Decimal(self._internal_amount).scaleb(-self._scale)

    def to_minor_units(self) -> int:
        """Integer count of display units (e.g. cents), rounded half-up."""
        display = self.display_scale
        if self._scale >= display:
            return div_half_up(self._internal_amount, 10 ** (self._scale - display))
        return self._internal_amount * 10 ** (display - self._scale)

    def format(self, locale: str | None = None) -> str:
        """
        Locale-aware display string.

        Unsupported locales fall back to ``<symbol><amount>`` with no
        grouping instead of raising.
        """
        locale = locale or get_defaults().default_locale
        value = self.to_number()
        symbol = self._registry.get_symbol(self._currency)
        digits = format(abs(value), "f")
        integer_part, _, fraction = digits.partition(".")

        fmt = _resolve_locale(locale)
        if fmt is None:
            body = f"{symbol}{digits}"
        else:
            grouped = _group_digits(integer_part, fmt.group, fmt.grouping)
            number = f"{grouped}{fmt.decimal}{fraction}" if fraction else grouped
            body = fmt.pattern.format(symbol=symbol, amount=number)
        return f"-{body}" if value < 0 else body

    def to_json(self) -> dict[str, str]:
        """Snapshot form: amount at internal precision as a string."""
        return {
            "amount": format(self.get_internal_amount(), "f"),
            "currency": self._currency,
        }

    # -- Factories ----------------------------------------------------------

    @classmethod
    def of(cls, amount: Amount, currency: str | None = None) -> Money:
        """Factory alias for the constructor."""
        return Money(amount, currency)

    @classmethod
    def zero(cls, currency: str | None = None) -> Money:
        """Create a zero amount in the given currency."""
        return Money(0, currency)

    @classmethod
    def from_amount(cls, amount: Amount, currency: str | None = None) -> Money:
        return Money(amount, currency)

    @classmethod
    def from_cents(
        cls,
        cents: int,
        currency: str | None = None,
        registry: CurrencyRegistry | None = None,
    ) -> Money:
        """
        Create from integer minor units of the currency's display scale.

        ``from_cents(1050, "USD")`` is 10.50 USD; ``from_cents(500, "JPY")``
        is 500 JPY.
        """
        if isinstance(cents, bool) or not isinstance(cents, int):
            raise InvalidAmountError(cents, "minor units must be an integer")
        code = normalize_code(currency if currency is not None else get_defaults().default_currency)
        registry = registry or get_default_registry()
        places = registry.get_decimal_places(code)
        return Money(Decimal(cents).scaleb(-places), code, registry=registry)

    @classmethod
    def from_string(cls, text: str, currency: str | None = None) -> Money:
        """
        Create from a decimal string.

        Accepts the plain amount (``"12.50"``) and the ``str()`` form of a
        Money (``"USD 12.50"``); an embedded code wins over ``currency``.
        """
        if not isinstance(text, str):
            raise InvalidAmountError(text, "expected a string")
        parts = text.split()
        if len(parts) == 2 and parts[0].isalpha():
            return Money(parts[1], parts[0])
        return Money(text, currency)

    @classmethod
    def from_json(cls, data: dict[str, Any], registry: CurrencyRegistry | None = None) -> Money:
        """Rebuild from the to_json() snapshot form."""
        try:
            amount = data["amount"]
            currency = data["currency"]
        except (KeyError, TypeError):
            raise InvalidAmountError(data, "expected {'amount', 'currency'}") from None
        return Money(amount, currency, registry=registry)

    @staticmethod
    def is_money(value: object) -> bool:
        """Type predicate."""
        return isinstance(value, Money)

    @classmethod
    def sum(cls, values: Iterable[Money], default_currency: str | None = None) -> Money:
        """
        Sum Money values.

        Returns zero of ``default_currency`` for an empty input; raises
        CurrencyMismatchError on mixed currencies.
        """
        total: Money | None = None
        for value in values:
            total = value if total is None else total.add(value)
        if total is None:
            return Money.zero(default_currency)
        return total

    # -- Internals ----------------------------------------------------------

    def _aligned(self, other: Money, operation: str) -> tuple[int, int, int]:
        """Both scaled integers expressed at the larger of the two scales."""
        if not isinstance(other, Money):
            raise TypeError(
                f"Invalid operation: expected Money, got {type(other).__name__}"
            )
        if other._currency != self._currency:
            raise CurrencyMismatchError(self._currency, other._currency, operation)
        scale = max(self._scale, other._scale)
        a = self._internal_amount * 10 ** (scale - self._scale)
        b = other._internal_amount * 10 ** (scale - other._scale)
        return a, b, scale

    # -- Python protocol ----------------------------------------------------

    def __add__(self, other: Money) -> Money:
        if not isinstance(other, Money):
            return NotImplemented
        return self.add(other)

    def __sub__(self, other: Money) -> Money:
        if not isinstance(other, Money):
            return NotImplemented
        return self.subtract(other)

    def __mul__(self, factor: Amount) -> Money:
        if isinstance(factor, Money) or isinstance(factor, bool):
            return NotImplemented
        if not isinstance(factor, (int, float, Decimal)):
            return NotImplemented
        return self.multiply(factor)

    def __rmul__(self, factor: Amount) -> Money:
        return self.__mul__(factor)

    def __truediv__(self, divisor: Amount) -> Money:
        if isinstance(divisor, Money) or isinstance(divisor, bool):
            return NotImplemented
        if not isinstance(divisor, (int, float, Decimal)):
            return NotImplemented
        return self.divide(divisor)

    def __neg__(self) -> Money:
        return self.negate()

    def __abs__(self) -> Money:
        return self.absolute()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        return self.equals(other)

    def __hash__(self) -> int:
        return hash((self._currency, self.get_internal_amount()))

    def __lt__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        return self.is_less_than(other)

    def __le__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        return self.is_less_than_or_equal(other)

    def __gt__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        return self.is_greater_than(other)

    def __ge__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        return self.is_greater_than_or_equal(other)

    def __str__(self) -> str:
        return f"{self._currency} {format(self.to_number(), 'f')}"

    def __repr__(self) -> str:
        return f"Money({format(self.get_internal_amount(), 'f')!r}, {self._currency!r})"


def _check_scale(value: Any, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValueError(f"{name} must be a non-negative integer, got {value!r}")
    return value


def _check_range(internal: int, value: Any, currency: str, scale: int) -> None:
    # INVARIANT: SAFE_RANGE -- scaled integer within the configured bound
    limit = get_defaults().max_safe_integer
    if abs(internal) > limit:
        raise RangeExceededError(value, currency, scale, limit)
