"""
Persistence interfaces -- the storage contract for ledger snapshots.

Adapters store plain JSON-compatible documents (the ``serialize()`` output of
Account and JournalEntry) grouped into named collections. The kernel never
talks to a backend directly; LedgerRepository goes through a StorageAdapter.

Query filters are a mapping:

    {
        "currency": "USD",                        # simple equality, dot paths allowed
        "$where": [                               # every condition must hold
            {"field": "balance.amount", "operator": ">=", "value": "100"},
            WhereCondition("name", "startsWith", "Cash"),
        ],
        "$orderBy": {"field": "name", "direction": "asc"},
        "$limit": 10,
        "$offset": 20,
    }
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol, runtime_checkable

QueryFilters = dict[str, Any]
Document = dict[str, Any]


class QueryOperator(str, Enum):
    """Operators accepted in ``$where`` conditions."""

    EQ = "=="
    NE = "!="
    GT = ">"
    GTE = ">="
    LT = "<"
    LTE = "<="
    IN = "in"
    NOT_IN = "not-in"
    CONTAINS = "contains"
    STARTS_WITH = "startsWith"
    ENDS_WITH = "endsWith"
    INCLUDES = "includes"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True)
class WhereCondition:
    """One ``$where`` condition."""

    field: str
    operator: QueryOperator | str
    value: Any


@dataclass(frozen=True)
class OrderBy:
    field: str
    direction: SortDirection | str = SortDirection.ASC


@runtime_checkable
class StorageAdapter(Protocol):
    """
    Document storage used by LedgerRepository.

    Contract:
        ``save`` returns the document id (generated when ``document_id`` is
        None) and stores a copy of ``data`` with ``id`` set. ``get`` returns
        a copy or None. Bulk operations return the number of documents
        affected.
    """

    def get(self, collection: str, document_id: str) -> Document | None:
        ...

    def save(self, collection: str, document_id: str | None, data: Document) -> str:
        ...

    def delete(self, collection: str, document_id: str) -> None:
        ...

    def query(self, collection: str, filters: QueryFilters | None = None) -> list[Document]:
        ...

    def delete_many(self, collection: str, filters: QueryFilters) -> int:
        ...

    def update_many(self, collection: str, filters: QueryFilters, data: Document) -> int:
        ...
