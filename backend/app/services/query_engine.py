# backend/app/services/query_engine.py
"""
Deterministic query execution over in-memory rows.

Pipeline (each stage runs only when the intent asks for it):
    1. filter     - every predicate must hold (AND)
    2. aggregate  - group by one column, aggregate another
    3. sort       - aggregated groups, value descending
    4. cap        - at most `limit` rows

The engine never raises: incomplete or odd intents just skip stages, unknown
operators let rows through, and values that cannot be compared exclude the row.
"""
from __future__ import annotations

import operator
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from ..core.config import settings
from ..schemas.query import AggregateType, QueryFilter, QueryIntent
from ..utils.values import Cell, is_number, round2, to_number, to_text


QUERY_RESULT_LIMIT = settings.query_result_limit

Row = Dict[str, Any]

_ORDERING: Dict[str, Callable[[Any, Any], bool]] = {
    ">": operator.gt,
    "<": operator.lt,
    ">=": operator.ge,
    "<=": operator.le,
}


# ------------------------------------------------------------
# Filtering
# ------------------------------------------------------------
def _ordered(row_val: Cell, filter_val: Cell, op: Callable[[Any, Any], bool]) -> bool:
    """Ordering test; False whenever the two sides cannot be compared."""
    if row_val is None or filter_val is None:
        return False
    if isinstance(row_val, str) and isinstance(filter_val, str):
        return op(row_val, filter_val)
    if is_number(row_val) or is_number(filter_val):
        left, right = to_number(row_val), to_number(filter_val)
        if left is None or right is None:
            return False
        return op(left, right)
    return False


def matches_filter(row: Mapping[str, Any], flt: QueryFilter) -> bool:
    row_val = row.get(flt.column)
    filter_val = flt.value

    if flt.operator == "==":
        return to_text(row_val).lower() == to_text(filter_val).lower()
    if flt.operator == "contains":
        return to_text(filter_val).lower() in to_text(row_val).lower()
    op = _ORDERING.get(flt.operator)
    if op is not None:
        return _ordered(row_val, filter_val, op)
    # unknown operator: fail open
    return True


def apply_filters(rows: Sequence[Row], filters: Sequence[QueryFilter]) -> List[Row]:
    if not filters:
        return list(rows)
    return [row for row in rows if all(matches_filter(row, f) for f in filters)]


# ------------------------------------------------------------
# Group + aggregate
# ------------------------------------------------------------
def _aggregate(values: List[float], kind: AggregateType) -> float:
    if kind == AggregateType.SUM:
        return sum(values)
    if kind == AggregateType.AVG:
        return sum(values) / len(values)
    if kind == AggregateType.COUNT:
        return len(values)
    if kind == AggregateType.COUNT_DISTINCT:
        # distinct numeric values after coercion, not distinct raw cells
        return len(set(values))
    return 0


def group_and_aggregate(
    rows: Sequence[Row],
    group_by: str,
    aggregate_column: str,
    aggregate_type: AggregateType,
) -> List[Row]:
    """One row per distinct group key, sorted by aggregate value descending."""
    groups: Dict[str, List[float]] = {}
    for row in rows:
        key = to_text(row.get(group_by))
        num = to_number(row.get(aggregate_column))
        groups.setdefault(key, []).append(num if num is not None else 0)

    result = [
        {group_by: key, aggregate_column: round2(_aggregate(values, aggregate_type))}
        for key, values in groups.items()
    ]
    # stable: equal values keep first-seen group order
    result.sort(key=lambda r: r[aggregate_column], reverse=True)
    return result


# ------------------------------------------------------------
# Entry point
# ------------------------------------------------------------
def query_data(rows: Sequence[Row], intent: QueryIntent, limit: int = QUERY_RESULT_LIMIT) -> List[Row]:
    """Run `intent` against `rows` and return newly allocated result rows."""
    result = apply_filters(rows, intent.filters)

    if intent.has_grouping:
        result = group_and_aggregate(
            result,
            intent.group_by,
            intent.aggregate_column,
            intent.aggregate_type,
        )

    return [dict(row) for row in result[: max(0, limit)]]


def filter_view(
    rows: Sequence[Row],
    drilldown: Optional[Mapping[str, Any]] = None,
    search: str = "",
) -> List[Row]:
    """
    Dashboard view: drill-down selections (column -> value, equality) and a
    global case-insensitive search across every cell. Not capped.
    """
    filters = [QueryFilter(column=col, operator="==", value=val) for col, val in (drilldown or {}).items()]
    result = apply_filters(rows, filters)

    term = (search or "").strip().lower()
    if term:
        result = [row for row in result if any(term in to_text(v).lower() for v in row.values())]

    return [dict(row) for row in result]
