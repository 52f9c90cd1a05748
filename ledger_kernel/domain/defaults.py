"""
Defaults -- process-wide tunables read by the value objects.

The kernel never reads configuration files itself. ``ledger_config`` loads
YAML settings and pushes them here through ``configure_defaults()``; tests
use ``reset_defaults()`` to restore the shipped values.
"""

import threading
from dataclasses import dataclass, replace

# 2**53 - 1: the largest integer every JSON consumer can represent exactly.
MAX_SAFE_INTEGER = 9_007_199_254_740_991

# Upper bound on auto-detected internal scale.
MAX_INTERNAL_SCALE = 12


@dataclass(frozen=True)
class KernelDefaults:
    """Immutable snapshot of the kernel tunables."""

    default_currency: str = "USD"
    number_mode_currency: str = "CURR"
    min_internal_scale: int = 6
    max_safe_integer: int = MAX_SAFE_INTEGER
    default_locale: str = "en-US"

    def __post_init__(self) -> None:
        if self.min_internal_scale < 0:
            raise ValueError(
                f"min_internal_scale must be >= 0, got {self.min_internal_scale}"
            )
        if self.max_safe_integer <= 0:
            raise ValueError(
                f"max_safe_integer must be positive, got {self.max_safe_integer}"
            )


_lock = threading.Lock()
_current = KernelDefaults()


def get_defaults() -> KernelDefaults:
    """Return the active defaults snapshot."""
    return _current


def configure_defaults(**changes: object) -> KernelDefaults:
    """Replace selected fields of the active defaults and return the result."""
    global _current
    with _lock:
        _current = replace(_current, **changes)
        return _current


def reset_defaults() -> None:
    """Restore shipped defaults. FOR TESTING ONLY."""
    global _current
    with _lock:
        _current = KernelDefaults()
