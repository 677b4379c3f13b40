"""
Summary statistics skill — per-column numeric statistics, no charts.
"""

from __future__ import annotations

from typing import Dict, List

import pandas as pd

from core.models import ColumnStatistics, Dataset
from core.utils import coerce_number


def column_statistics(values: List[object]) -> ColumnStatistics | None:
    """Stats over the numeric-coercible subset; None when there is none."""
    nums = [n for n in (coerce_number(v) for v in values) if n is not None]
    if not nums:
        return None
    s = pd.Series(nums, dtype="float64")
    return ColumnStatistics(
        min=float(s.min()),
        max=float(s.max()),
        mean=float(s.mean()),
        median=float(s.median()),
        count=sum(1 for v in values if v is not None),
        numeric_count=len(nums),
    )


def summarize_dataset(dataset: Dataset) -> Dict[str, ColumnStatistics]:
    """Statistics for every column with at least one numeric value, in header order."""
    stats: Dict[str, ColumnStatistics] = {}
    for header in dataset.headers:
        col = column_statistics([row.get(header) for row in dataset.rows])
        if col is not None:
            stats[header] = col
    return stats


def describe_statistics(stats: Dict[str, ColumnStatistics]) -> str:
    """Flatten statistics into one text line per column for the insight prompt."""
    return "\n".join(
        f"{column}: min={s.min:.2f}, max={s.max:.2f}, "
        f"mean={s.mean:.2f}, median={s.median:.2f}, "
        f"total values={s.count}, numeric values={s.numeric_count}"
        for column, s in stats.items()
    )


def statistics_rows(stats: Dict[str, ColumnStatistics]) -> List[Dict[str, object]]:
    """Table-shaped statistics ({column, min, max, ...}) for display."""
    return [
        {"column": column, **s.model_dump(by_alias=True)}
        for column, s in stats.items()
    ]
