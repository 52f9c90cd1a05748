"""
SQLAdapter -- StorageAdapter over a relational database via SQLAlchemy.

Documents live in the ``stored_documents`` table (see db/models.py), one row
per (collection, document_id). Rows carry an insertion sequence so
unfiltered, unordered queries return documents in the order they were
first saved, as MemoryAdapter does. Filters are evaluated in Python on the
decoded documents with the same evaluator MemoryAdapter uses, so both
adapters answer every query identically.
"""

from __future__ import annotations

import copy
from uuid import uuid4

from sqlalchemy import func, select
from sqlalchemy.orm import Session, sessionmaker

from ledger_kernel.db.engine import get_session_factory, session_scope
from ledger_kernel.db.models import StoredDocument
from ledger_kernel.logging_config import LogContext, get_logger
from ledger_kernel.persistence.filters import apply_filters, to_plain
from ledger_kernel.persistence.interfaces import Document, QueryFilters

logger = get_logger("persistence.sql")


class SQLAdapter:
    """
    Relational snapshot storage.

    Every call runs in its own transaction through ``session_scope``. The
    session factory defaults to the one configured by
    ``init_engine_from_url()``.
    """

    def __init__(self, session_factory: sessionmaker[Session] | None = None):
        self._session_factory = session_factory

    @property
    def session_factory(self) -> sessionmaker[Session]:
        return self._session_factory or get_session_factory()

    def _row(self, session: Session, collection: str, document_id: str) -> StoredDocument | None:
        return session.execute(
            select(StoredDocument).where(
                StoredDocument.collection == collection,
                StoredDocument.document_id == document_id,
            )
        ).scalar_one_or_none()

    def _next_sequence(self, session: Session) -> int:
        current = session.execute(
            select(func.coalesce(func.max(StoredDocument.sequence), 0))
        ).scalar_one()
        return int(current) + 1

    def _rows(self, session: Session, collection: str) -> list[StoredDocument]:
        return list(
            session.execute(
                select(StoredDocument)
                .where(StoredDocument.collection == collection)
                .order_by(StoredDocument.sequence)
            ).scalars()
        )

    def get(self, collection: str, document_id: str) -> Document | None:
        with session_scope(self.session_factory) as session:
            row = self._row(session, collection, document_id)
            return copy.deepcopy(row.data) if row is not None else None

    def save(self, collection: str, document_id: str | None, data: Document) -> str:
        doc_id = document_id or str(uuid4())
        stored = copy.deepcopy(data)
        stored["id"] = doc_id
        with LogContext.bind(collection=collection, document_id=doc_id):
            with session_scope(self.session_factory) as session:
                row = self._row(session, collection, doc_id)
                if row is None:
                    session.add(
                        StoredDocument(
                            collection=collection,
                            document_id=doc_id,
                            data=stored,
                            sequence=self._next_sequence(session),
                        )
                    )
                else:
                    row.data = stored
            logger.debug("document_saved")
        return doc_id

    def delete(self, collection: str, document_id: str) -> None:
        with session_scope(self.session_factory) as session:
            row = self._row(session, collection, document_id)
            if row is not None:
                session.delete(row)

    def query(self, collection: str, filters: QueryFilters | None = None) -> list[Document]:
        with session_scope(self.session_factory) as session:
            documents = [row.data for row in self._rows(session, collection)]
        results = apply_filters(documents, filters)
        with LogContext.bind(collection=collection):
            logger.debug(
                "documents_queried",
                extra={"filters": to_plain(filters), "result_count": len(results)},
            )
        return [copy.deepcopy(d) for d in results]

    def delete_many(self, collection: str, filters: QueryFilters) -> int:
        with session_scope(self.session_factory) as session:
            rows = {row.document_id: row for row in self._rows(session, collection)}
            targets = apply_filters([row.data for row in rows.values()], filters)
            for document in targets:
                session.delete(rows[document["id"]])
            return len(targets)

    def update_many(self, collection: str, filters: QueryFilters, data: Document) -> int:
        with session_scope(self.session_factory) as session:
            rows = {row.document_id: row for row in self._rows(session, collection)}
            targets = apply_filters([row.data for row in rows.values()], filters)
            for document in targets:
                row = rows[document["id"]]
                row.data = {**copy.deepcopy(row.data), **copy.deepcopy(data), "id": document["id"]}
            return len(targets)
