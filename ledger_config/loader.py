"""
Settings loader (``ledger_config.loader``).

Reads YAML settings files with PyYAML and parses them into the frozen
dataclasses in ``ledger_config.schema``.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Unknown top-level keys or bad values  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import asdict
from pathlib import Path
from typing import Any

import yaml

from ledger_config.schema import CurrencyDef, LedgerSettings

_SETTINGS_KEYS = frozenset(
    {
        "default_currency",
        "number_mode_currency",
        "min_internal_scale",
        "max_safe_integer",
        "default_locale",
        "currencies",
    }
)


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def parse_currency(data: dict[str, Any]) -> CurrencyDef:
    """Parse a CurrencyDef from a dict."""
    return CurrencyDef(
        code=str(data["code"]).strip().upper(),
        decimal_places=int(data.get("decimal_places", 2)),
        name=data.get("name"),
        symbol=data.get("symbol"),
    )


def parse_settings(data: dict[str, Any]) -> LedgerSettings:
    """
    Parse LedgerSettings from a dict; missing keys keep their defaults.

    An optional top-level ``ledger:`` section is unwrapped first.

    Raises:
        ValueError: unknown keys or invalid values.
        KeyError: a currency entry without ``code``.
    """
    if "ledger" in data and isinstance(data["ledger"], dict):
        data = data["ledger"]

    unknown = set(data) - _SETTINGS_KEYS
    if unknown:
        raise ValueError(f"Unknown settings keys: {sorted(unknown)}")

    values: dict[str, Any] = {}
    for key in ("default_currency", "number_mode_currency", "default_locale"):
        if key in data:
            values[key] = str(data[key])
    for key in ("min_internal_scale", "max_safe_integer"):
        if key in data:
            values[key] = int(data[key])
    if "currencies" in data:
        values["currencies"] = tuple(parse_currency(c) for c in data["currencies"] or ())

    return LedgerSettings(**values)


def load_settings(path: Path | str) -> LedgerSettings:
    """Load and parse one settings file."""
    return parse_settings(load_yaml_file(Path(path)))


def compute_checksum(settings: LedgerSettings) -> str:
    """Deterministic SHA-256 over the settings, for change detection in logs."""
    canonical = json.dumps(asdict(settings), sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
