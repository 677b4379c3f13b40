"""
Validation skill for chart configurations.

Gates the four fields the renderer strictly needs (chartType, xAxis, yAxis,
title). Filter and aggregation blocks are best-effort: anything unusable is
dropped with a warning rather than failing the query.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, List, Optional, Sequence

from core.errors import MissingField, UnknownColumn, UnsupportedChartType
from core.models import (
    AggregationSpec,
    AggregationType,
    ChartConfiguration,
    ChartType,
    FilterOperator,
    FilterSpec,
)
from core.utils import coerce_number

logger = logging.getLogger("uvicorn.error")

REQUIRED_FIELDS = ("chartType", "xAxis", "yAxis", "title")
CHART_TYPES = {t.value for t in ChartType}


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    # 0, False and empty containers are as absent as a missing key
    return not value


# ---------------------------------------------------------------------------
# Required fields
# ---------------------------------------------------------------------------

def validate_config(candidate: Any, headers: Sequence[str]) -> ChartConfiguration:
    """
    Turn an untrusted candidate dict into a ChartConfiguration.

    Checks run in order and stop at the first failure:
    missing field -> unsupported chart type -> unknown xAxis -> unknown yAxis.
    """
    if not isinstance(candidate, Mapping):
        candidate = {}

    for field_name in REQUIRED_FIELDS:
        if _is_missing(candidate.get(field_name)):
            raise MissingField(field_name)

    chart_type = candidate["chartType"]
    normalized = chart_type.strip().lower() if isinstance(chart_type, str) else None
    if normalized not in CHART_TYPES:
        raise UnsupportedChartType(chart_type)

    x_axis = candidate["xAxis"]
    if x_axis not in headers:
        raise UnknownColumn(x_axis, axis="X-axis")
    y_axis = candidate["yAxis"]
    if y_axis not in headers:
        raise UnknownColumn(y_axis, axis="Y-axis")

    return ChartConfiguration(
        chart_type=ChartType(normalized),
        x_axis=x_axis,
        y_axis=y_axis,
        title=str(candidate["title"]).strip(),
        filter=_parse_filter(candidate.get("filter"), headers),
        aggregation=_parse_aggregation(candidate.get("aggregation"), headers),
    )


# ---------------------------------------------------------------------------
# Optional blocks
# ---------------------------------------------------------------------------

def _enum_value(raw: Any) -> Optional[str]:
    return raw.strip().lower() if isinstance(raw, str) else None


def filter_problems(raw: Any, headers: Sequence[str]) -> List[str]:
    """Reasons a filter block cannot be applied (empty when usable)."""
    if not isinstance(raw, Mapping):
        return ["filter is not an object"]
    problems: List[str] = []
    column = raw.get("column")
    if column not in headers:
        problems.append(f"filter column '{column}' not found in dataset")
    op = _enum_value(raw.get("operator"))
    if op not in {o.value for o in FilterOperator}:
        problems.append(f"unsupported filter operator '{raw.get('operator')}'")
    elif op == FilterOperator.between.value:
        value = raw.get("value")
        if not isinstance(value, (list, tuple)) or len(value) != 2:
            problems.append("between filter needs a [min, max] pair")
        elif any(coerce_number(v) is None for v in value):
            problems.append(f"between filter bounds are not numeric: {value}")
    return problems


def aggregation_problems(raw: Any, headers: Sequence[str]) -> List[str]:
    """Reasons an aggregation block cannot be applied (empty when usable)."""
    if not isinstance(raw, Mapping):
        return ["aggregation is not an object"]
    problems: List[str] = []
    agg_type = _enum_value(raw.get("type"))
    if agg_type not in {t.value for t in AggregationType}:
        problems.append(f"unsupported aggregation type '{raw.get('type')}'")
    for key in ("column", "groupBy"):
        ref = raw.get(key)
        if _is_missing(ref):
            continue
        if ref not in headers:
            problems.append(f"aggregation {key} '{ref}' not found in dataset")
    return problems


def _parse_filter(raw: Any, headers: Sequence[str]) -> Optional[FilterSpec]:
    if raw is None:
        return None
    problems = filter_problems(raw, headers)
    if problems:
        logger.warning("Dropping filter %r: %s", raw, "; ".join(problems))
        return None
    value = raw.get("value")
    if isinstance(value, tuple):
        value = list(value)
    return FilterSpec(
        column=raw["column"],
        operator=FilterOperator(_enum_value(raw["operator"])),
        value=value,
    )


def _parse_aggregation(raw: Any, headers: Sequence[str]) -> Optional[AggregationSpec]:
    if raw is None:
        return None
    problems = aggregation_problems(raw, headers)
    if problems:
        logger.warning("Dropping aggregation %r: %s", raw, "; ".join(problems))
        return None
    column = raw.get("column")
    group_by = raw.get("groupBy")
    return AggregationSpec(
        type=AggregationType(_enum_value(raw["type"])),
        column=None if _is_missing(column) else column,
        group_by=None if _is_missing(group_by) else group_by,
    )
