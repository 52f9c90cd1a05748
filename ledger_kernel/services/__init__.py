"""Services for the ledger kernel."""

from ledger_kernel.services.commit_coordinator import CommitCoordinator

__all__ = ["CommitCoordinator"]
