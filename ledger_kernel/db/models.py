"""
Module: ledger_kernel.db.models
Responsibility: ORM model for stored ledger snapshots.

Each row holds one JSON document (an Account or JournalEntry snapshot)
addressed by (collection, document_id). Query filters are evaluated on the
decoded documents by ledger_kernel.persistence.filters, so the schema stays
backend-neutral.
"""

from typing import Any

from sqlalchemy import JSON, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import TimestampedBase


class StoredDocument(TimestampedBase):
    """One snapshot document in a named collection."""

    __tablename__ = "stored_documents"

    __table_args__ = (
        UniqueConstraint("collection", "document_id", name="uq_stored_document_key"),
        Index("idx_stored_document_collection", "collection"),
    )

    collection: Mapped[str] = mapped_column(String(100), nullable=False)

    document_id: Mapped[str] = mapped_column(String(100), nullable=False)

    data: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)

    # Insertion order within the table; unordered queries return rows by it.
    sequence: Mapped[int] = mapped_column(nullable=False)

    def __repr__(self) -> str:
        return f"<StoredDocument {self.collection}/{self.document_id}>"
