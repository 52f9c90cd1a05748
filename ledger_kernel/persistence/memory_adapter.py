"""In-process StorageAdapter backed by dictionaries."""

from __future__ import annotations

import copy
import threading
from uuid import uuid4

from ledger_kernel.logging_config import LogContext, get_logger
from ledger_kernel.persistence.filters import apply_filters
from ledger_kernel.persistence.interfaces import Document, QueryFilters

logger = get_logger("persistence.memory")


class MemoryAdapter:
    """
    Dictionary-of-collections storage.

    Documents are deep-copied on the way in and out, so callers can never
    mutate stored state through a returned document.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._storage: dict[str, dict[str, Document]] = {}

    def get(self, collection: str, document_id: str) -> Document | None:
        with self._lock:
            document = self._storage.get(collection, {}).get(document_id)
            return copy.deepcopy(document) if document is not None else None

    def save(self, collection: str, document_id: str | None, data: Document) -> str:
        doc_id = document_id or str(uuid4())
        stored = copy.deepcopy(data)
        stored["id"] = doc_id
        with LogContext.bind(collection=collection, document_id=doc_id):
            with self._lock:
                self._storage.setdefault(collection, {})[doc_id] = stored
            logger.debug("document_saved")
        return doc_id

    def delete(self, collection: str, document_id: str) -> None:
        with self._lock:
            self._storage.get(collection, {}).pop(document_id, None)

    def query(self, collection: str, filters: QueryFilters | None = None) -> list[Document]:
        with self._lock:
            documents = list(self._storage.get(collection, {}).values())
            return [copy.deepcopy(d) for d in apply_filters(documents, filters)]

    def delete_many(self, collection: str, filters: QueryFilters) -> int:
        with self._lock:
            targets = self.query(collection, filters)
            bucket = self._storage.get(collection, {})
            for document in targets:
                bucket.pop(document["id"], None)
            return len(targets)

    def update_many(self, collection: str, filters: QueryFilters, data: Document) -> int:
        with self._lock:
            targets = self.query(collection, filters)
            bucket = self._storage.setdefault(collection, {})
            for document in targets:
                updated = {**document, **copy.deepcopy(data), "id": document["id"]}
                bucket[document["id"]] = updated
            return len(targets)

    def clear(self) -> None:
        with self._lock:
            self._storage.clear()
