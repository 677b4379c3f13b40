"""
Shared utility helpers.

Pure functions — no LLM, no I/O, no side effects.
"""

from __future__ import annotations

import math
import numbers
import re
from typing import Any, Dict, List, Optional

import numpy as np


# ---------------------------------------------------------------------------
# Numeric coercion
# ---------------------------------------------------------------------------

# Same grammar as a JavaScript parseFloat prefix; ASCII digits only.
_NUMBER_PREFIX = re.compile(
    r"[+-]?(?:Infinity|(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?)"
)


def coerce_number(value: Any, *, strict: bool = False) -> Optional[float]:
    """
    Best-effort conversion of a raw cell to a float.

    Leading whitespace is ignored and the longest leading numeric literal
    wins ("12abc" -> 12.0). With ``strict=True`` the whole (stripped) value
    must be a finite number literal. ``None``, blanks, booleans, NaN and
    non-numeric text all return ``None``.
    """
    if value is None or isinstance(value, (bool, np.bool_)):
        return None
    if isinstance(value, numbers.Real):
        try:
            num = float(value)
        except OverflowError:
            # ints past float range saturate like a long parseFloat literal
            num = math.copysign(math.inf, value)
        if math.isnan(num) or (strict and math.isinf(num)):
            return None
        return num

    text = str(value).strip()
    if not text:
        return None
    match = _NUMBER_PREFIX.match(text)
    if match is None:
        return None
    if strict and match.end() != len(text):
        return None
    literal = match.group(0)
    num = float(literal.replace("Infinity", "inf"))
    if strict and math.isinf(num):
        return None
    return num


def is_blank(value: Any) -> bool:
    """True for a missing cell: None or the empty string."""
    return value is None or (isinstance(value, str) and value == "")


# ---------------------------------------------------------------------------
# JSON safety
# ---------------------------------------------------------------------------

def json_safe_value(value: Any) -> Any:
    """Map +/-inf and NaN to None and numpy scalars to Python ones."""
    if isinstance(value, np.generic):
        value = value.item()
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return value


def records_json_safe(rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Copy rows so Starlette's JSONResponse (allow_nan=False) can serialize them."""
    return [{k: json_safe_value(v) for k, v in row.items()} for row in rows]
