"""Raw data loading and merging."""

from __future__ import annotations

from weightinsights.data.loader import load_csv, load_data_file, merge_raw_data

__all__ = ["load_csv", "load_data_file", "merge_raw_data"]
