"""
Currency factory -- Money subclasses and factories bound to one currency.

``create_currency("EUR")`` returns a CurrencyBinding whose ``money_class``
is a Money subclass taking only an amount, and whose ``factory`` is a
callable with ``zero()`` and ``from_value()`` helpers:

    eur = create_currency("EUR").factory
    price = eur(19.99)
    assert price.currency == "EUR"

Display options (``symbol``, ``decimals``, ``name``) given here apply only to
the bound class: they live in a private CurrencyRegistry rather than the
shared one. Use ``register_currency_config()`` to extend the shared registry.
"""

from __future__ import annotations

import re
import threading
from dataclasses import dataclass
from typing import Any

from ledger_kernel.domain.currency import (
    CurrencyInfo,
    CurrencyRegistry,
    get_default_registry,
    normalize_code,
)
from ledger_kernel.domain.values import Amount, Money
from ledger_kernel.exceptions import CurrencyNotDefinedError, MoneyParseError

_NON_NUMERIC = re.compile(r"[^0-9.\-]")


def _clean_amount(value: str) -> str:
    cleaned = _NON_NUMERIC.sub("", value)
    if not cleaned or cleaned in {"-", ".", "-."}:
        raise MoneyParseError(value)
    return cleaned


class CurrencyFactory:
    """Callable building instances of one bound Money class."""

    def __init__(self, money_class: type[Money]):
        self.money_class = money_class

    @property
    def code(self) -> str | None:
        return getattr(self.money_class, "code", None)

    def __call__(self, amount: Amount = 0) -> Money:
        return self.money_class(amount)

    def zero(self) -> Money:
        return self.money_class(0)

    def from_value(self, value: Amount) -> Money:
        """Build from a number or a display string such as ``"$100.50"``."""
        if isinstance(value, str):
            return self.money_class(_clean_amount(value))
        return self.money_class(value)

    def __repr__(self) -> str:
        return f"CurrencyFactory({self.money_class.__name__})"


@dataclass(frozen=True)
class CurrencyBinding:
    """A currency-bound Money subclass together with its factory."""

    code: str
    money_class: type[Money]
    factory: CurrencyFactory


def create_currency(
    code: str,
    *,
    symbol: str | None = None,
    decimals: int | None = None,
    name: str | None = None,
    registry: CurrencyRegistry | None = None,
) -> CurrencyBinding:
    """Create a Money subclass named after ``code`` and its factory."""
    normalized = normalize_code(code)
    registry = registry or get_default_registry()

    if symbol is not None or decimals is not None or name is not None:
        base = registry.resolve(normalized)
        registry = CurrencyRegistry(
            (
                CurrencyInfo(
                    normalized,
                    base.decimal_places if decimals is None else decimals,
                    name or base.name,
                    symbol if symbol is not None else base.symbol,
                ),
            )
        )
    bound_registry = registry

    def __init__(
        self: Money,
        amount: Amount = 0,
        *,
        min_internal_scale: int | None = None,
        force_scale: int | None = None,
    ) -> None:
        Money.__init__(
            self,
            amount,
            normalized,
            min_internal_scale=min_internal_scale,
            force_scale=force_scale,
            registry=bound_registry,
        )

    def zero(cls: type[Money]) -> Money:
        return cls(0)

    def from_value(cls: type[Money], value: Amount) -> Money:
        if isinstance(value, str):
            return cls(_clean_amount(value))
        return cls(value)

    namespace: dict[str, Any] = {
        "__slots__": (),
        "__init__": __init__,
        "__module__": __name__,
        "code": normalized,
        "zero": classmethod(zero),
        "from_value": classmethod(from_value),
    }
    money_class = type(normalized, (Money,), namespace)
    return CurrencyBinding(normalized, money_class, CurrencyFactory(money_class))


def create_factory(money_class: type[Money]) -> CurrencyFactory:
    """Wrap any Money subclass whose constructor takes a single amount."""
    if not isinstance(money_class, type) or not issubclass(money_class, Money):
        raise TypeError(f"create_factory expects a Money subclass, got {money_class!r}")
    return CurrencyFactory(money_class)


class CurrencyFactoryRegistry:
    """
    Keeps one CurrencyBinding per code.

    ``define()`` is idempotent: a second call for the same code returns the
    first binding and ignores the new options.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._bindings: dict[str, CurrencyBinding] = {}

    def define(self, code: str, **options: Any) -> CurrencyBinding:
        normalized = normalize_code(code)
        with self._lock:
            binding = self._bindings.get(normalized)
            if binding is None:
                binding = create_currency(normalized, **options)
                self._bindings[normalized] = binding
            return binding

    def get(self, code: str) -> CurrencyBinding:
        normalized = normalize_code(code)
        binding = self._bindings.get(normalized)
        if binding is None:
            raise CurrencyNotDefinedError(normalized)
        return binding

    def has(self, code: str) -> bool:
        if not isinstance(code, str):
            return False
        return code.strip().upper() in self._bindings

    def codes(self) -> list[str]:
        """Defined codes in definition order."""
        return list(self._bindings)

    def clear(self) -> None:
        with self._lock:
            self._bindings.clear()


def register_currency_config(
    code: str,
    decimals: int = 2,
    *,
    symbol: str | None = None,
    name: str | None = None,
    registry: CurrencyRegistry | None = None,
) -> CurrencyInfo:
    """Add or replace a currency in the shared (or given) registry."""
    return (registry or get_default_registry()).register(code, decimals, name, symbol)
