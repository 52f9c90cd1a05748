"""
ledger_config -- the public entrypoint for ledger settings.

Responsibility:
    ``get_active_settings()`` is the only place that reads settings files or
    the ``LEDGER_KERNEL_CONFIG`` environment variable. ``apply_settings()``
    pushes loaded settings into the kernel (precision defaults and extra
    currencies).

Architecture position:
    Configuration. Sits above ``ledger_kernel``; the kernel never imports
    from this package.

Failure modes:
    - ``FileNotFoundError`` when ``LEDGER_KERNEL_CONFIG`` names a missing file.
    - ``ValueError`` for unknown keys or invalid values.
"""

from __future__ import annotations

import os
from pathlib import Path

from ledger_config.loader import compute_checksum, load_settings, parse_settings
from ledger_config.schema import CurrencyDef, LedgerSettings
from ledger_kernel.domain.currency import CurrencyRegistry, get_default_registry
from ledger_kernel.domain.defaults import KernelDefaults, configure_defaults
from ledger_kernel.logging_config import get_logger

__all__ = [
    "CONFIG_ENV_VAR",
    "CurrencyDef",
    "DEFAULT_SETTINGS_PATH",
    "LedgerSettings",
    "apply_settings",
    "compute_checksum",
    "get_active_settings",
    "load_settings",
    "parse_settings",
]

logger = get_logger("config")

CONFIG_ENV_VAR = "LEDGER_KERNEL_CONFIG"
DEFAULT_SETTINGS_PATH = Path(__file__).parent / "defaults.yaml"


def get_active_settings(path: Path | str | None = None) -> LedgerSettings:
    """
    Load the settings in effect.

    Resolution order: explicit ``path``, then the file named by
    ``LEDGER_KERNEL_CONFIG``, then the shipped ``defaults.yaml``.
    """
    source = path or os.environ.get(CONFIG_ENV_VAR) or DEFAULT_SETTINGS_PATH
    settings = load_settings(source)
    logger.info(
        "settings_loaded",
        extra={
            "source": str(source),
            "checksum": compute_checksum(settings),
            "currency_count": len(settings.currencies),
        },
    )
    return settings


def apply_settings(
    settings: LedgerSettings,
    registry: CurrencyRegistry | None = None,
) -> KernelDefaults:
    """Install ``settings`` as the kernel defaults and register its currencies."""
    registry = registry or get_default_registry()
    for currency in settings.currencies:
        registry.register(
            currency.code,
            currency.decimal_places,
            currency.name,
            currency.symbol,
        )
    return configure_defaults(
        default_currency=settings.default_currency.strip().upper(),
        number_mode_currency=settings.number_mode_currency.strip().upper(),
        min_internal_scale=settings.min_internal_scale,
        max_safe_integer=settings.max_safe_integer,
        default_locale=settings.default_locale,
    )
