"""Query filter evaluation shared by the storage adapters."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import asdict, is_dataclass
from decimal import Decimal, InvalidOperation
from typing import Any

from ledger_kernel.exceptions import InvalidQueryError
from ledger_kernel.persistence.interfaces import (
    Document,
    OrderBy,
    QueryFilters,
    QueryOperator,
    SortDirection,
    WhereCondition,
)

_MISSING = object()


def get_nested_value(document: Any, path: str) -> Any:
    """Follow a dot path through nested mappings; None when any step is missing."""
    current = document
    for part in path.split("."):
        if not isinstance(current, dict):
            return None
        current = current.get(part, _MISSING)
        if current is _MISSING:
            return None
    return current


def _as_number(value: Any) -> Decimal | None:
    """Finite Decimal for numbers and numeric strings; None for anything else."""
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal, str)):
        return None
    try:
        number = Decimal(str(value).strip()) if isinstance(value, (float, str)) else Decimal(value)
    except InvalidOperation:
        return None
    return number if number.is_finite() else None


def _ordered(left: Any, right: Any, op: QueryOperator) -> bool:
    # Snapshot amounts are decimal strings; compare them as numbers.
    left_number, right_number = _as_number(left), _as_number(right)
    if left_number is not None and right_number is not None:
        left, right = left_number, right_number
    try:
        if op is QueryOperator.GT:
            return left > right
        if op is QueryOperator.GTE:
            return left >= right
        if op is QueryOperator.LT:
            return left < right
        return left <= right
    except TypeError:
        # None or mismatched types never satisfy an ordering condition.
        return False


def compare(item_value: Any, operator: QueryOperator | str, filter_value: Any) -> bool:
    """Evaluate ``item_value <operator> filter_value``."""
    try:
        op = QueryOperator(operator)
    except ValueError:
        raise InvalidQueryError(f"unknown operator {operator!r}") from None

    if op is QueryOperator.EQ:
        return item_value == filter_value
    if op is QueryOperator.NE:
        return item_value != filter_value
    if op in (QueryOperator.GT, QueryOperator.GTE, QueryOperator.LT, QueryOperator.LTE):
        return _ordered(item_value, filter_value, op)
    if op is QueryOperator.IN:
        return isinstance(filter_value, (list, tuple, set, frozenset)) and item_value in filter_value
    if op is QueryOperator.NOT_IN:
        if not isinstance(filter_value, (list, tuple, set, frozenset)):
            return True
        return item_value not in filter_value
    if op is QueryOperator.CONTAINS:
        return isinstance(item_value, (list, tuple)) and filter_value in item_value

    if not isinstance(item_value, str) or not isinstance(filter_value, str):
        return False
    if op is QueryOperator.STARTS_WITH:
        return item_value.startswith(filter_value)
    if op is QueryOperator.ENDS_WITH:
        return item_value.endswith(filter_value)
    return filter_value in item_value


def _as_condition(raw: Any) -> WhereCondition:
    if isinstance(raw, WhereCondition):
        return raw
    if isinstance(raw, dict):
        try:
            return WhereCondition(raw["field"], raw["operator"], raw.get("value"))
        except KeyError as exc:
            raise InvalidQueryError(f"$where condition missing {exc.args[0]!r}") from None
    raise InvalidQueryError(f"bad $where condition {raw!r}")


def _as_order(raw: Any) -> OrderBy:
    if isinstance(raw, OrderBy):
        return raw
    if isinstance(raw, dict) and "field" in raw:
        return OrderBy(raw["field"], raw.get("direction", SortDirection.ASC))
    raise InvalidQueryError(f"bad $orderBy {raw!r}")


def matches(document: Document, filters: QueryFilters | None) -> bool:
    """True when ``document`` satisfies every simple and ``$where`` condition."""
    if not filters:
        return True
    where = filters.get("$where") or []
    if not isinstance(where, (list, tuple)):
        raise InvalidQueryError("$where must be a list")
    for raw in where:
        condition = _as_condition(raw)
        if not compare(get_nested_value(document, condition.field), condition.operator, condition.value):
            return False
    for key, value in filters.items():
        if key.startswith("$"):
            continue
        if get_nested_value(document, key) != value:
            return False
    return True


def apply_filters(documents: Iterable[Document], filters: QueryFilters | None) -> list[Document]:
    """Filter, order, offset and limit ``documents``."""
    results = [doc for doc in documents if matches(doc, filters)]
    if not filters:
        return results

    order = filters.get("$orderBy")
    if order is not None:
        order = _as_order(order)
        try:
            descending = SortDirection(order.direction) is SortDirection.DESC
        except ValueError:
            raise InvalidQueryError(f"bad sort direction {order.direction!r}") from None
        present = [d for d in results if get_nested_value(d, order.field) is not None]
        absent = [d for d in results if get_nested_value(d, order.field) is None]
        keys = [get_nested_value(d, order.field) for d in present]
        numbers = [_as_number(k) for k in keys]
        if all(n is not None for n in numbers):
            keys = numbers
        try:
            ranked = sorted(range(len(present)), key=lambda i: keys[i], reverse=descending)
            present = [present[i] for i in ranked]
        except TypeError:
            raise InvalidQueryError(f"values of {order.field!r} are not comparable") from None
        # Missing values sort last in either direction.
        results = present + absent

    offset = filters.get("$offset")
    if offset and int(offset) > 0:
        results = results[int(offset):]
    limit = filters.get("$limit")
    if limit and int(limit) > 0:
        results = results[: int(limit)]
    return results


def to_plain(filters: QueryFilters | None) -> QueryFilters:
    """Filters with dataclass conditions expanded to dicts (for logging)."""
    if not filters:
        return {}
    plain: QueryFilters = {}
    for key, value in filters.items():
        if key == "$where":
            plain[key] = [asdict(c) if is_dataclass(c) else c for c in value]
        elif is_dataclass(value):
            plain[key] = asdict(value)
        else:
            plain[key] = value
    return plain
