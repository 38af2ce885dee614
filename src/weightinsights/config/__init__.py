"""Configuration management."""

from __future__ import annotations

from weightinsights.config.settings import (
    AnalysisConfig,
    DetectorProfile,
    Settings,
    StatisticsConfig,
    StorageConfig,
    ViewConfig,
)

__all__ = [
    "AnalysisConfig",
    "DetectorProfile",
    "Settings",
    "StatisticsConfig",
    "StorageConfig",
    "ViewConfig",
]
