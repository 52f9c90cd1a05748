"""
Kernel Invariants Contract.

These invariants are structural law. They are hardcoded in the value objects
and the journal commit path. No setting in ``ledger_config`` may override
them.

This module exists solely to declare these invariants explicitly. The
enforcement is distributed across Money, Account, JournalEntry and
CommitCoordinator.
"""

from enum import Enum, unique


@unique
class KernelInvariant(str, Enum):
    """Non-configurable invariants enforced by the kernel.

    Each value names one structural guarantee that the kernel provides
    unconditionally. Configuration may influence precision defaults and the
    currency table, but never *whether* these rules apply.
    """

    DOUBLE_ENTRY_BALANCE = "double_entry_balance"
    """Debits must equal credits (at display precision) in every committed
    journal entry. Enforced by JournalEntry.commit()."""

    CURRENCY_SAFETY = "currency_safety"
    """No arithmetic or comparison combines two currencies. Enforced by
    Money before any computation and by Account before any mutation."""

    EXACT_STORAGE = "exact_storage"
    """Monetary amounts are stored as scaled integers, never floats.
    Enforced by Money construction."""

    SAFE_RANGE = "safe_range"
    """Scaled integers stay within the configured safe-integer bound.
    Enforced by Money construction and every Money-producing operation."""

    ATOMIC_COMMIT = "atomic_commit"
    """A commit mutates every account or none of them. Enforced by the
    validation pass in JournalEntry.commit()."""

    COMMIT_FINALITY = "commit_finality"
    """A committed journal entry accepts no lines and no second commit.
    Enforced by JournalEntry."""


# All invariants as a frozenset for programmatic checks.
ALL_KERNEL_INVARIANTS: frozenset[KernelInvariant] = frozenset(KernelInvariant)

# The kernel package may not import from these packages.
# This is enforced by tests/architecture/test_kernel_boundary.py.
FORBIDDEN_KERNEL_IMPORTS: tuple[str, ...] = (
    "ledger_config",
)
