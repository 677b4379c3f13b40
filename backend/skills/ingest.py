"""
Ingestion skill — decodes uploaded CSV / Excel bytes into a Dataset.

CSV cells are kept as raw text; Excel keeps native numbers. Empty cells
become "" (CSV) or None (Excel); type decisions are left to the pipeline.
"""

from __future__ import annotations

import io
import logging
from datetime import date, datetime

import pandas as pd

from core.models import Dataset
from core.utils import json_safe_value

logger = logging.getLogger("uvicorn.error")

EXCEL_EXTENSIONS = {"xlsx", "xls"}


class DatasetReadError(ValueError):
    """Raised when an uploaded file cannot be decoded into a table."""


def file_extension(filename: str) -> str:
    return (filename.rsplit(".", 1)[1].lower() if "." in filename else "").strip()


def _cell(value):
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return json_safe_value(value)


def _frame_to_dataset(df: pd.DataFrame) -> Dataset:
    headers = [str(c) for c in df.columns]
    tmp = df.astype(object)
    tmp = tmp.where(pd.notna(tmp), None)
    rows = [[_cell(v) for v in rec] for rec in tmp.itertuples(index=False, name=None)]
    return Dataset.from_table(headers, rows)


def read_csv_bytes(content: bytes) -> Dataset:
    df = pd.read_csv(
        io.BytesIO(content),
        dtype=str,
        keep_default_na=False,
        skip_blank_lines=True,
    )
    return _frame_to_dataset(df)


def read_excel_bytes(content: bytes) -> Dataset:
    df = pd.read_excel(io.BytesIO(content), sheet_name=0)
    return _frame_to_dataset(df)


def read_table(content: bytes, filename: str) -> Dataset:
    """Decode by extension; anything that is not Excel is read as CSV."""
    ext = file_extension(filename)
    try:
        if ext in EXCEL_EXTENSIONS:
            return read_excel_bytes(content)
        return read_csv_bytes(content)
    except Exception as e:
        logger.exception("Failed to read %s", filename)
        raise DatasetReadError(f"Failed to read {ext.upper() or 'file'}: {e}") from e
