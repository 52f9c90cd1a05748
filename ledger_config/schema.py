"""
Configuration schema (``ledger_config.schema``).

Frozen dataclasses produced by ``ledger_config.loader``. Validation of
individual values happens in ``__post_init__`` so a malformed settings file
fails at load time, not at first use.
"""

from __future__ import annotations

from dataclasses import dataclass, field

# Mirrors ledger_kernel.domain.defaults.MAX_SAFE_INTEGER (2**53 - 1).
DEFAULT_MAX_SAFE_INTEGER = 9_007_199_254_740_991


@dataclass(frozen=True)
class CurrencyDef:
    """An extra currency registered at process start."""

    code: str
    decimal_places: int = 2
    name: str | None = None
    symbol: str | None = None

    def __post_init__(self) -> None:
        if not self.code or not self.code.strip():
            raise ValueError("currency code cannot be empty")
        if self.decimal_places < 0:
            raise ValueError(
                f"decimal_places must be >= 0 for {self.code}: {self.decimal_places}"
            )


@dataclass(frozen=True)
class LedgerSettings:
    """Process-wide ledger settings."""

    default_currency: str = "USD"
    number_mode_currency: str = "CURR"
    min_internal_scale: int = 6
    max_safe_integer: int = DEFAULT_MAX_SAFE_INTEGER
    default_locale: str = "en-US"
    currencies: tuple[CurrencyDef, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if self.min_internal_scale < 0:
            raise ValueError(
                f"min_internal_scale must be >= 0, got {self.min_internal_scale}"
            )
        if self.max_safe_integer <= 0:
            raise ValueError(
                f"max_safe_integer must be positive, got {self.max_safe_integer}"
            )
        if not self.default_currency.strip():
            raise ValueError("default_currency cannot be empty")
