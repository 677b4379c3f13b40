"""
Core Pydantic models for the chart pipeline.

All domain types live here so every module shares the same vocabulary.
Wire names follow the frontend (camelCase); Python attributes are snake_case.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from pydantic import BaseModel, Field, field_validator


# ---------------------------------------------------------------------------
# Dataset
# ---------------------------------------------------------------------------

class Dataset(BaseModel):
    headers: List[str]
    rows: List[Dict[str, Any]] = Field(default_factory=list)

    @field_validator("headers")
    @classmethod
    def validate_headers(cls, v: List[str]) -> List[str]:
        """Headers key every row, so they must be unique."""
        seen = set()
        dupes = []
        for h in v:
            if h in seen:
                dupes.append(h)
            seen.add(h)
        if dupes:
            raise ValueError(f"duplicate headers: {dupes}")
        return v

    @classmethod
    def from_table(cls, headers: Sequence[Any], rows: Sequence[Sequence[Any]]) -> "Dataset":
        """Re-key positional rows by header name (short rows padded with None)."""
        names = [str(h) for h in headers]
        keyed: List[Dict[str, Any]] = []
        for raw in rows:
            raw = list(raw)
            keyed.append({h: (raw[i] if i < len(raw) else None) for i, h in enumerate(names)})
        return cls(headers=names, rows=keyed)

    @property
    def row_count(self) -> int:
        return len(self.rows)


# ---------------------------------------------------------------------------
# Chart configuration
# ---------------------------------------------------------------------------

class ChartType(str, Enum):
    line = "line"
    bar = "bar"
    scatter = "scatter"
    pie = "pie"


class FilterOperator(str, Enum):
    gt = "gt"
    lt = "lt"
    eq = "eq"
    gte = "gte"
    lte = "lte"
    between = "between"


class AggregationType(str, Enum):
    count = "count"
    sum = "sum"
    average = "average"
    max = "max"
    min = "min"


class FilterSpec(BaseModel):
    column: str
    operator: FilterOperator
    value: Any = None                   # number | string | [min, max] for between


class AggregationSpec(BaseModel):
    type: AggregationType
    column: Optional[str] = None        # defaults to the y axis
    group_by: Optional[str] = Field(None, alias="groupBy")

    model_config = {"populate_by_name": True}


class ChartConfiguration(BaseModel):
    chart_type: ChartType = Field(..., alias="chartType")
    x_axis: str = Field(..., alias="xAxis")
    y_axis: str = Field(..., alias="yAxis")
    title: str
    filter: Optional[FilterSpec] = None
    aggregation: Optional[AggregationSpec] = None

    model_config = {"populate_by_name": True}

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def describe(self) -> str:
        """One-line note about the filter/aggregation applied, for display."""
        bits: List[str] = []
        if self.filter is not None:
            value = self.filter.value
            if isinstance(value, (list, tuple)) and len(value) == 2:
                shown = f"{value[0]} and {value[1]}"
            else:
                shown = value
            bits.append(f"filtered where {self.filter.column} {self.filter.operator.value} {shown}")
        if self.aggregation is not None:
            agg = self.aggregation
            text = f"{agg.type.value} of {agg.column or self.y_axis}"
            if agg.group_by:
                text += f" grouped by {agg.group_by}"
            bits.append(text)
        return "; ".join(bits)


# ---------------------------------------------------------------------------
# Summary statistics
# ---------------------------------------------------------------------------

class ColumnStatistics(BaseModel):
    min: float
    max: float
    mean: float
    median: float
    count: int                                    # non-null values seen
    numeric_count: int = Field(..., alias="numericCount")

    model_config = {"populate_by_name": True}
