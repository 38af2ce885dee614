"""Application settings and configuration management."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Optional

import yaml

logger = logging.getLogger(__name__)


def _default_config_dir() -> Path:
    """Return the default configuration directory."""
    return Path.home() / ".weightinsights"


@dataclass
class AnalysisConfig:
    """Windows, multipliers and minimum sample sizes for the analytics engine."""

    sma_window: int = 7
    ema_window: int = 7
    rate_smoothing_window: int = 7  # smooths the daily SMA rate before x7
    rate_moving_average_window: int = 7
    tdee_diff_smoothing_window: int = 14
    adaptive_tdee_window: int = 28
    adaptive_tdee_min_coverage: float = 0.7
    std_dev_multiplier: float = 1.0  # SMA band half-width in std devs
    kcals_per_kg: float = 7700.0
    outlier_std_dev_threshold: float = 2.5
    rolling_volatility_window: int = 14
    min_points_for_regression: int = 7
    min_weeks_for_correlation: int = 4
    confidence_alpha: float = 0.05
    goal_tolerance_kg: float = 0.1


@dataclass
class DetectorProfile:
    """Plateau and trend-change sensitivity.

    Both detectors read the smoothed SMA series, so these thresholds are kept
    together with the smoothing windows they depend on.
    """

    plateau_rate_threshold_kg_week: float = 0.07
    plateau_min_duration_weeks: int = 3
    trend_change_window_days: int = 14
    trend_change_min_slope_diff_kg_week: float = 0.3

    @property
    def plateau_min_duration_days(self) -> int:
        return self.plateau_min_duration_weeks * 7

    @property
    def trend_change_min_slope_diff_daily(self) -> float:
        return self.trend_change_min_slope_diff_kg_week / 7


@dataclass
class StatisticsConfig:
    """Statistics backend selection ("scipy" or "fallback")."""

    backend: str = "scipy"


@dataclass
class StorageConfig:
    """Where goals and annotations are persisted."""

    data_dir: Path = field(default_factory=_default_config_dir)

    @property
    def goal_path(self) -> Path:
        return self.data_dir / "goal.json"

    @property
    def annotations_path(self) -> Path:
        return self.data_dir / "annotations.json"


@dataclass
class ViewConfig:
    """Defaults for the initial analysis window and presentation."""

    initial_view_months: int = 3
    theme: str = "light"


def _apply_section(target: Any, data: Any, section: str) -> None:
    """Copy known keys from a YAML mapping onto a config dataclass."""
    if not isinstance(data, dict):
        logger.warning("Ignoring non-mapping config section '%s'", section)
        return
    for f in fields(target):
        if f.name not in data:
            continue
        current = getattr(target, f.name)
        value = data[f.name]
        try:
            if isinstance(current, bool):
                value = bool(value)
            elif isinstance(current, int):
                value = int(value)
            elif isinstance(current, float):
                value = float(value)
            elif isinstance(current, Path):
                value = Path(value).expanduser()
        except (TypeError, ValueError):
            logger.warning(
                "Invalid value for %s.%s: %r (keeping %r)", section, f.name, value, current
            )
            continue
        setattr(target, f.name, value)


@dataclass
class Settings:
    """Main application settings."""

    analysis: AnalysisConfig = field(default_factory=AnalysisConfig)
    detectors: DetectorProfile = field(default_factory=DetectorProfile)
    statistics: StatisticsConfig = field(default_factory=StatisticsConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    view: ViewConfig = field(default_factory=ViewConfig)

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "Settings":
        """Load settings from YAML file or return defaults.

        Args:
            config_path: Path to config.yaml. If None, uses ~/.weightinsights/config.yaml

        Returns:
            Settings instance
        """
        if config_path is None:
            config_path = _default_config_dir() / "config.yaml"

        if not config_path.exists():
            return cls()

        try:
            with open(config_path) as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            logger.error("Could not parse %s, using defaults: %s", config_path, e)
            return cls()

        settings = cls()
        if not isinstance(data, dict):
            logger.error("Config file %s is not a mapping, using defaults", config_path)
            return settings

        for section in ("analysis", "detectors", "statistics", "storage", "view"):
            if section in data:
                _apply_section(getattr(settings, section), data[section], section)

        return settings

    def save(self, config_path: Optional[Path] = None) -> None:
        """Save current settings to YAML file.

        Args:
            config_path: Path to save config.yaml. If None, uses ~/.weightinsights/config.yaml
        """
        if config_path is None:
            config_path = _default_config_dir() / "config.yaml"

        config_path.parent.mkdir(parents=True, exist_ok=True)

        data = {}
        for section in ("analysis", "detectors", "statistics", "storage", "view"):
            obj = getattr(self, section)
            data[section] = {
                f.name: str(getattr(obj, f.name))
                if isinstance(getattr(obj, f.name), Path)
                else getattr(obj, f.name)
                for f in fields(obj)
            }

        with open(config_path, "w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)
