"""Currency -- display-precision registry and currency-derived rounding."""

import threading
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from ledger_kernel.exceptions import InvalidCurrencyError
from ledger_kernel.logging_config import get_logger

logger = get_logger("domain.currency")

# Decimal places used for any code the registry does not know.
DEFAULT_DECIMAL_PLACES = 2

# Generic currency used to tag number-mode account arithmetic.
GENERIC_CURRENCY_CODE = "CURR"
GENERIC_CURRENCY_SYMBOL = "¤"


@dataclass(frozen=True)
class CurrencyInfo:
    """Display configuration for a single currency code."""

    code: str
    decimal_places: int
    name: str
    symbol: str | None = None

    def __post_init__(self) -> None:
        if self.decimal_places < 0:
            raise ValueError(
                f"decimal_places must be >= 0 for {self.code}: {self.decimal_places}"
            )

    @property
    def display_symbol(self) -> str:
        """Symbol used for display, falling back to the code itself."""
        return self.symbol or self.code

    @property
    def rounding_tolerance(self) -> Decimal:
        """Smallest display unit, e.g. 0.01 for two decimal places."""
        return Decimal(1).scaleb(-self.decimal_places)

    @property
    def quantize_string(self) -> str:
        """String for Decimal.quantize() to round to this currency's precision."""
        if self.decimal_places == 0:
            return "1"
        return "0." + "0" * self.decimal_places


def normalize_code(code: object) -> str:
    """Strip and upper-case a currency code, rejecting empty or non-string input."""
    if not isinstance(code, str) or not code.strip():
        raise InvalidCurrencyError(code)
    return code.strip().upper()


# Built-in table loaded into every registry.
# Source: ISO 4217 minor units; symbols for the commonly displayed codes.
_BUILTIN_CURRENCIES: tuple[CurrencyInfo, ...] = (
    CurrencyInfo(GENERIC_CURRENCY_CODE, 2, "Generic Currency", GENERIC_CURRENCY_SYMBOL),
    # Major currencies
    CurrencyInfo("USD", 2, "US Dollar", "$"),
    CurrencyInfo("EUR", 2, "Euro", "€"),
    CurrencyInfo("GBP", 2, "Pound Sterling", "£"),
    CurrencyInfo("JPY", 0, "Japanese Yen", "¥"),
    CurrencyInfo("CHF", 2, "Swiss Franc", "CHF"),
    CurrencyInfo("CAD", 2, "Canadian Dollar", "C$"),
    CurrencyInfo("AUD", 2, "Australian Dollar", "A$"),
    CurrencyInfo("NZD", 2, "New Zealand Dollar", "NZ$"),
    CurrencyInfo("CNY", 2, "Chinese Yuan", "¥"),
    CurrencyInfo("MXN", 2, "Mexican Peso", "$"),
    CurrencyInfo("INR", 2, "Indian Rupee", "₹"),
    CurrencyInfo("BRL", 2, "Brazilian Real", "R$"),
    CurrencyInfo("HKD", 2, "Hong Kong Dollar", "HK$"),
    CurrencyInfo("SGD", 2, "Singapore Dollar", "S$"),
    CurrencyInfo("SEK", 2, "Swedish Krona", "kr"),
    CurrencyInfo("NOK", 2, "Norwegian Krone", "kr"),
    CurrencyInfo("DKK", 2, "Danish Krone", "kr"),
    CurrencyInfo("PLN", 2, "Polish Zloty", "zł"),
    CurrencyInfo("ZAR", 2, "South African Rand", "R"),
    CurrencyInfo("TRY", 2, "Turkish Lira", "₺"),
    CurrencyInfo("RUB", 2, "Russian Ruble", "₽"),
    # Zero decimal currencies
    CurrencyInfo("KRW", 0, "South Korean Won", "₩"),
    CurrencyInfo("CLP", 0, "Chilean Peso", "$"),
    CurrencyInfo("ISK", 0, "Icelandic Krona", "kr"),
    CurrencyInfo("VND", 0, "Vietnamese Dong", "₫"),
    CurrencyInfo("PYG", 0, "Paraguayan Guarani", "₲"),
    CurrencyInfo("UGX", 0, "Ugandan Shilling"),
    CurrencyInfo("XAF", 0, "Central African CFA Franc"),
    CurrencyInfo("XOF", 0, "West African CFA Franc"),
    # Three decimal currencies
    CurrencyInfo("BHD", 3, "Bahraini Dinar"),
    CurrencyInfo("IQD", 3, "Iraqi Dinar"),
    CurrencyInfo("JOD", 3, "Jordanian Dinar"),
    CurrencyInfo("KWD", 3, "Kuwaiti Dinar"),
    CurrencyInfo("LYD", 3, "Libyan Dinar"),
    CurrencyInfo("OMR", 3, "Omani Rial"),
    CurrencyInfo("TND", 3, "Tunisian Dinar"),
    # Four decimal currencies (special)
    CurrencyInfo("CLF", 4, "Chilean Unidad de Fomento"),
    CurrencyInfo("UYW", 4, "Unidad Previsional"),
)


class CurrencyRegistry:
    """
    Registry mapping currency code -> CurrencyInfo.

    Contract:
        Populated with the built-in table on construction, optionally
        extended by ``register()`` at process start, never rolled back.
        Lookups never raise for unknown codes: they fall back to
        ``DEFAULT_DECIMAL_PLACES`` and the code as its own symbol.

    Guarantees:
        - Codes are normalized (stripped, upper-cased) on every call.
        - ``register()`` is safe to call from multiple threads.

    Non-goals:
        - Does NOT validate codes against ISO 4217; any non-empty code is
          usable by Money.
        - Does NOT store exchange rates.
    """

    def __init__(
        self,
        currencies: tuple[CurrencyInfo, ...] | None = None,
        *,
        include_builtins: bool = True,
    ):
        self._lock = threading.Lock()
        self._currencies: dict[str, CurrencyInfo] = {}
        if include_builtins:
            for info in _BUILTIN_CURRENCIES:
                self._currencies[info.code] = info
        for info in currencies or ():
            self._currencies[normalize_code(info.code)] = info

    def __getstate__(self) -> dict[str, Any]:
        with self._lock:
            return {"currencies": dict(self._currencies)}

    def __setstate__(self, state: dict[str, Any]) -> None:
        self._lock = threading.Lock()
        self._currencies = dict(state["currencies"])

    def register(
        self,
        code: str,
        decimal_places: int,
        name: str | None = None,
        symbol: str | None = None,
    ) -> CurrencyInfo:
        """Add or replace a currency definition."""
        normalized = normalize_code(code)
        info = CurrencyInfo(normalized, decimal_places, name or normalized, symbol)
        with self._lock:
            self._currencies[normalized] = info
        logger.info(
            "currency_registered",
            extra={"currency": normalized, "decimal_places": decimal_places},
        )
        return info

    def is_known(self, code: str) -> bool:
        """Check if a code has an explicit definition."""
        if not isinstance(code, str):
            return False
        return code.strip().upper() in self._currencies

    def get_info(self, code: str) -> CurrencyInfo | None:
        """Get currency information by code, or None when undefined."""
        if not isinstance(code, str) or not code:
            return None
        return self._currencies.get(code.strip().upper())

    def resolve(self, code: str) -> CurrencyInfo:
        """Get currency information, synthesizing the generic default when unknown."""
        normalized = normalize_code(code)
        info = self._currencies.get(normalized)
        if info is not None:
            return info
        return CurrencyInfo(normalized, DEFAULT_DECIMAL_PLACES, normalized, None)

    def get_decimal_places(self, code: str) -> int:
        """Display decimal places for a code (2 when unknown)."""
        info = self.get_info(code)
        return info.decimal_places if info else DEFAULT_DECIMAL_PLACES

    def get_symbol(self, code: str) -> str:
        """Display symbol for a code (the code itself when unknown)."""
        info = self.get_info(code)
        if info is None:
            return code.strip().upper() if isinstance(code, str) else str(code)
        return info.display_symbol

    def get_rounding_tolerance(self, code: str) -> Decimal:
        """Smallest display unit derived from the code's decimal places."""
        return Decimal(1).scaleb(-self.get_decimal_places(code))

    def all_codes(self) -> frozenset[str]:
        """Get all explicitly defined currency codes."""
        return frozenset(self._currencies.keys())

    def all_currencies(self) -> dict[str, CurrencyInfo]:
        """Get all currency information."""
        return dict(self._currencies)


_default_registry = CurrencyRegistry()


def get_default_registry() -> CurrencyRegistry:
    """The process-wide registry used when none is injected."""
    return _default_registry
