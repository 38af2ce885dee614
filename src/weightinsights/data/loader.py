"""Load daily logs and merge per-metric sources into DailyRecords.

The JSON export holds one `{date: value}` mapping per metric:

    {
      "weights": {"2025-01-01": 80.2, ...},
      "calorieIntake": {...},
      "googleFitExpenditure": {...},
      "bodyFat": {...}
    }

Dates present in any source become one record; metrics missing on that date
are None.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Mapping, Union

import pandas as pd

from weightinsights.analytics.models import DailyRecord

logger = logging.getLogger(__name__)

# JSON key -> DailyRecord field
SOURCE_FIELDS = {
    "weights": "weight",
    "calorieIntake": "calorie_intake",
    "googleFitExpenditure": "expenditure",
    "bodyFat": "body_fat_percent",
}

RECORD_COLUMNS = list(SOURCE_FIELDS.values())


def _frame_to_records(df: pd.DataFrame) -> list[DailyRecord]:
    """Convert a date-indexed frame with RECORD_COLUMNS into sorted records."""
    dates = pd.to_datetime(
        pd.Series(df.index, index=df.index), format="mixed", errors="coerce"
    )
    invalid = dates.isna()
    for bad in df.index[invalid.to_numpy()]:
        logger.warning("Skipping invalid date: %r", bad)
    df = df.loc[~invalid.to_numpy()].copy()
    df.index = dates[~invalid].dt.normalize().to_numpy()
    df = df[~df.index.duplicated(keep="last")].sort_index()

    records = []
    for ts, row in df.iterrows():
        values = {}
        for column in RECORD_COLUMNS:
            value = row.get(column)
            values[column] = None if pd.isna(value) else float(value)
        records.append(DailyRecord(date=ts.date(), **values))
    return records


def merge_raw_data(raw: Mapping[str, Any]) -> list[DailyRecord]:
    """Merge per-metric date mappings into one record per date.

    Args:
        raw: Parsed data.json contents; unknown or missing sources are ignored

    Returns:
        Records sorted by date
    """
    columns = {}
    for source, field_name in SOURCE_FIELDS.items():
        mapping = raw.get(source) or {}
        if not isinstance(mapping, Mapping):
            logger.warning("Ignoring source %s: expected a date mapping", source)
            mapping = {}
        columns[field_name] = pd.to_numeric(pd.Series(mapping, dtype=object), errors="coerce")

    df = pd.DataFrame(columns, columns=RECORD_COLUMNS)
    if df.empty:
        return []

    records = _frame_to_records(df)
    logger.info("Merged data for %d unique dates", len(records))
    return records


def load_data_file(path: Union[str, Path]) -> list[DailyRecord]:
    """Read a data.json export and merge it.

    Raises:
        FileNotFoundError: If path does not exist
        ValueError: If the file is not a JSON object
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Data file not found: {path}")

    with open(path) as f:
        raw = json.load(f)
    if not isinstance(raw, dict):
        raise ValueError(f"Expected a JSON object in {path}")
    return merge_raw_data(raw)


def load_csv(path: Union[str, Path]) -> list[DailyRecord]:
    """Read a CSV with a `date` column and any of the record columns."""
    df = pd.read_csv(path)
    if "date" not in df.columns:
        raise ValueError(f"CSV {path} has no 'date' column")

    df = df.set_index("date")
    for column in RECORD_COLUMNS:
        if column not in df.columns:
            df[column] = float("nan")
        df[column] = pd.to_numeric(df[column], errors="coerce")
    return _frame_to_records(df[RECORD_COLUMNS])
