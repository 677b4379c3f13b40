"""
Row processing skill — turns raw dataset rows into chart-ready rows.

Stages run in a fixed order: filter -> aggregation -> type coercion ->
null pruning. Every stage is pure; bad cells are excluded or left as-is,
never raised.
"""

from __future__ import annotations

import operator
from typing import Any, Callable, Dict, List, Optional, Sequence

from core.models import (
    AggregationSpec,
    AggregationType,
    ChartConfiguration,
    Dataset,
    FilterOperator,
    FilterSpec,
)
from core.utils import coerce_number, is_blank

Row = Dict[str, Any]

TOTAL_GROUP = "total"
DEFAULT_GROUP_FIELD = "group"

_COMPARATORS: Dict[FilterOperator, Callable[[float, float], bool]] = {
    FilterOperator.gt: operator.gt,
    FilterOperator.lt: operator.lt,
    FilterOperator.eq: operator.eq,
    FilterOperator.gte: operator.ge,
    FilterOperator.lte: operator.le,
}


# ---------------------------------------------------------------------------
# Filter
# ---------------------------------------------------------------------------

def _between_bounds(value: Any) -> Optional[tuple]:
    if not isinstance(value, (list, tuple)) or len(value) != 2:
        return None
    lo, hi = coerce_number(value[0]), coerce_number(value[1])
    if lo is None or hi is None:
        return None
    return lo, hi


def build_predicate(spec: FilterSpec) -> Callable[[Row], bool]:
    """Row predicate for a filter; rows whose value does not coerce never pass."""
    if spec.operator == FilterOperator.between:
        bounds = _between_bounds(spec.value)

        def in_range(row: Row) -> bool:
            num = coerce_number(row.get(spec.column))
            if num is None or bounds is None:
                return False
            return bounds[0] <= num <= bounds[1]

        return in_range

    compare = _COMPARATORS[spec.operator]
    threshold = coerce_number(spec.value)

    def matches(row: Row) -> bool:
        num = coerce_number(row.get(spec.column))
        if num is None or threshold is None:
            return False
        return compare(num, threshold)

    return matches


def apply_filter(rows: Sequence[Row], spec: Optional[FilterSpec]) -> List[Row]:
    if spec is None:
        return list(rows)
    keep = build_predicate(spec)
    return [row for row in rows if keep(row)]


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------

def _average(values: List[float]) -> Optional[float]:
    return sum(values, 0.0) / len(values) if values else None


REDUCERS: Dict[AggregationType, Callable[[List[float]], Any]] = {
    AggregationType.count: len,
    AggregationType.sum: lambda values: sum(values, 0.0),
    # empty groups reduce to None and are removed by null pruning
    AggregationType.average: _average,
    AggregationType.max: lambda values: max(values) if values else None,
    AggregationType.min: lambda values: min(values) if values else None,
}


def group_rows(rows: Sequence[Row], group_by: Optional[str]) -> Dict[Any, List[Row]]:
    """Bucket rows by group key, keeping first-seen key order and row order."""
    groups: Dict[Any, List[Row]] = {}
    for row in rows:
        key = row.get(group_by) if group_by else TOTAL_GROUP
        groups.setdefault(key, []).append(row)
    return groups


def apply_aggregation(rows: Sequence[Row], spec: Optional[AggregationSpec], y_axis: str) -> List[Row]:
    """
    Collapse rows to one record per group.

    The output only carries the group field (groupBy, or "group") and the
    y axis; every other column is dropped.
    """
    if spec is None:
        return list(rows)

    value_col = spec.column or y_axis
    key_field = spec.group_by or DEFAULT_GROUP_FIELD
    reduce = REDUCERS[spec.type]

    out: List[Row] = []
    for key, members in group_rows(rows, spec.group_by).items():
        values = [coerce_number(m.get(value_col)) for m in members]
        values = [v for v in values if v is not None]
        out.append({key_field: key, y_axis: reduce(values)})
    return out


# ---------------------------------------------------------------------------
# Type coercion + pruning
# ---------------------------------------------------------------------------

def coerce_row(row: Row, headers: Sequence[str]) -> Row:
    """Replace header values that are whole finite numbers with floats."""
    out = dict(row)
    for header in headers:
        if header not in out:
            continue
        num = coerce_number(out[header], strict=True)
        if num is not None:
            out[header] = num
    return out


def prune_blank_axes(rows: Sequence[Row], x_axis: str, y_axis: str) -> List[Row]:
    return [
        row for row in rows
        if not is_blank(row.get(x_axis)) and not is_blank(row.get(y_axis))
    ]


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def process_rows(dataset: Dataset, config: ChartConfiguration) -> List[Row]:
    """Run the full pipeline; same inputs always give the same rows."""
    rows = apply_filter(dataset.rows, config.filter)
    rows = apply_aggregation(rows, config.aggregation, config.y_axis)
    rows = [coerce_row(row, dataset.headers) for row in rows]
    return prune_blank_axes(rows, config.x_axis, config.y_axis)
