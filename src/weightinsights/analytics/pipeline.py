"""Daily record processing pipeline.

Turns the merged raw log into records carrying every derived field. Each step
takes a list of records and returns new records; the input is never mutated.

TDEE from the weight trend uses the energy content of body mass change:
    TDEE = intake - daily_rate * kcals_per_kg
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Iterable, Optional

from weightinsights.analytics.models import DailyRecord
from weightinsights.analytics.smoothing import (
    exponential_average,
    flag_outliers,
    is_valid,
    rolling_average,
    rolling_mean_and_std,
    rolling_volatility,
)
from weightinsights.analytics.stats import StatsBackend
from weightinsights.config.settings import AnalysisConfig

logger = logging.getLogger(__name__)


def normalize_records(records: Iterable[DailyRecord]) -> list[DailyRecord]:
    """Sort by date and keep at most one record per date (the last one seen)."""
    by_date: dict = {}
    for record in records:
        if record.date in by_date:
            logger.warning("Duplicate record for %s, keeping the later one", record.date)
        by_date[record.date] = record
    return [by_date[d] for d in sorted(by_date)]


def daily_balance(intake: Optional[float], expenditure: Optional[float]) -> Optional[float]:
    if is_valid(intake) and is_valid(expenditure):
        return intake - expenditure  # type: ignore[operator]
    return None


def _body_composition(records: list[DailyRecord]) -> list[DailyRecord]:
    out = []
    for r in records:
        lbm = fm = None
        bf = r.body_fat_percent
        if is_valid(r.weight) and is_valid(bf) and 0 <= bf < 100:  # type: ignore[operator]
            lbm = r.weight * (1 - bf / 100)  # type: ignore[operator]
            fm = r.weight * (bf / 100)  # type: ignore[operator]
        out.append(
            replace(r, lbm=lbm, fm=fm, net_balance=daily_balance(r.calorie_intake, r.expenditure))
        )
    return out


def _sma_and_bands(
    records: list[DailyRecord], config: AnalysisConfig, stats: StatsBackend
) -> list[DailyRecord]:
    weights = [r.weight for r in records]
    smas, std_devs = rolling_mean_and_std(weights, config.sma_window, stats)
    lbm_smas = rolling_average([r.lbm for r in records], config.sma_window)
    fm_smas = rolling_average([r.fm for r in records], config.sma_window)

    out = []
    for r, sma, sd, lbm_sma, fm_sma in zip(records, smas, std_devs, lbm_smas, fm_smas):
        lower = upper = None
        if sma is not None and sd is not None:
            lower = sma - config.std_dev_multiplier * sd
            upper = sma + config.std_dev_multiplier * sd
        out.append(
            replace(
                r,
                sma=sma,
                std_dev=sd,
                lower_bound=lower,
                upper_bound=upper,
                lbm_sma=lbm_sma,
                fm_sma=fm_sma,
            )
        )
    return out


def _ema(records: list[DailyRecord], config: AnalysisConfig) -> list[DailyRecord]:
    emas = exponential_average([r.weight for r in records], config.ema_window)
    return [replace(r, ema=e) for r, e in zip(records, emas)]


def _outliers(records: list[DailyRecord], config: AnalysisConfig) -> list[DailyRecord]:
    flags = flag_outliers(
        [r.weight for r in records],
        [r.sma for r in records],
        [r.std_dev for r in records],
        config.outlier_std_dev_threshold,
    )
    return [replace(r, is_outlier=f) for r, f in zip(records, flags)]


def _volatility(
    records: list[DailyRecord], config: AnalysisConfig, stats: StatsBackend
) -> list[DailyRecord]:
    vols = rolling_volatility(
        [r.weight for r in records],
        [r.sma for r in records],
        [r.is_outlier for r in records],
        config.rolling_volatility_window,
        stats,
    )
    return [replace(r, rolling_volatility=v) for r, v in zip(records, vols)]


def _daily_rates_and_tdee_trend(
    records: list[DailyRecord], config: AnalysisConfig
) -> list[DailyRecord]:
    out = []
    for i, r in enumerate(records):
        rate = tdee_trend = None
        if i > 0:
            prev = records[i - 1]
            if prev.sma is not None and r.sma is not None:
                gap = (r.date - prev.date).days
                if 0 < gap <= config.sma_window:
                    rate = (r.sma - prev.sma) / gap
                    if is_valid(prev.calorie_intake):
                        tdee_trend = prev.calorie_intake - rate * config.kcals_per_kg  # type: ignore[operator]
        out.append(replace(r, daily_sma_rate=rate, tdee_trend=tdee_trend))
    return out


def _adaptive_tdee(
    records: list[DailyRecord], config: AnalysisConfig, stats: StatsBackend
) -> list[DailyRecord]:
    window = config.adaptive_tdee_window
    out = []
    for i, r in enumerate(records):
        adaptive = None
        if window > 0 and i >= window - 1:
            start = records[i - window + 1]
            intakes = [
                p.calorie_intake
                for p in records[i - window + 1 : i + 1]
                if is_valid(p.calorie_intake)
            ]
            if (
                len(intakes) >= window * config.adaptive_tdee_min_coverage
                and start.sma is not None
                and r.sma is not None
            ):
                days = (r.date - start.date).days
                if days > 0:
                    daily_change = (r.sma - start.sma) / days
                    adaptive = stats.mean(intakes) - daily_change * config.kcals_per_kg  # type: ignore[operator]
        out.append(replace(r, adaptive_tdee=adaptive))
    return out


def _smoothed_rates_and_tdee_difference(
    records: list[DailyRecord], config: AnalysisConfig
) -> list[DailyRecord]:
    smoothed_daily = rolling_average(
        [r.daily_sma_rate for r in records], config.rate_smoothing_window
    )
    differences = [daily_balance(r.tdee_trend, r.expenditure) for r in records]
    smoothed_diff = rolling_average(differences, config.tdee_diff_smoothing_window)

    return [
        replace(
            r,
            smoothed_weekly_rate=rate * 7 if rate is not None else None,
            tdee_difference=diff,
            avg_tdee_difference=avg_diff,
        )
        for r, rate, diff, avg_diff in zip(records, smoothed_daily, differences, smoothed_diff)
    ]


def _rate_moving_average(records: list[DailyRecord], config: AnalysisConfig) -> list[DailyRecord]:
    averages = rolling_average(
        [r.smoothed_weekly_rate for r in records], config.rate_moving_average_window
    )
    return [replace(r, rate_moving_average=a) for r, a in zip(records, averages)]


def process_data(
    records: Iterable[DailyRecord],
    config: AnalysisConfig,
    stats: StatsBackend,
) -> list[DailyRecord]:
    """Run the full processing pipeline over a raw daily log.

    Args:
        records: Raw records in any order
        config: Smoothing windows and thresholds
        stats: Statistics backend

    Returns:
        Date-sorted records with all derived fields recomputed
    """
    processed = normalize_records(records)
    if not processed:
        logger.warning("No raw data to process")
        return []

    processed = _body_composition(processed)
    processed = _sma_and_bands(processed, config, stats)
    processed = _ema(processed, config)
    processed = _outliers(processed, config)
    processed = _volatility(processed, config, stats)
    processed = _daily_rates_and_tdee_trend(processed, config)
    processed = _adaptive_tdee(processed, config, stats)
    processed = _smoothed_rates_and_tdee_difference(processed, config)
    processed = _rate_moving_average(processed, config)

    logger.debug(
        "Processed %d records: sma=%d ema=%d rate=%d adaptive_tdee=%d volatility=%d",
        len(processed),
        sum(r.sma is not None for r in processed),
        sum(r.ema is not None for r in processed),
        sum(r.smoothed_weekly_rate is not None for r in processed),
        sum(r.adaptive_tdee is not None for r in processed),
        sum(r.rolling_volatility is not None for r in processed),
    )
    return processed
