"""Smoothing primitives for gap-ridden daily series.

Every function takes a list aligned with the daily records (one slot per
calendar day, `None` for a missing value) and returns a list of the same
length.

Simple moving average:
    SMA_i = mean of the valid values among x_{i-w+1} .. x_i

Exponential moving average (window w):
    alpha = 2 / (w + 1)
    E_i = alpha * x_i + (1 - alpha) * E_{i-1}

The EMA is seeded with the first valid value and carried forward unchanged
across missing days.
"""

from __future__ import annotations

import math
from collections import deque
from typing import Optional, Sequence

from weightinsights.analytics.stats import StatsBackend

Series = Sequence[Optional[float]]


def is_valid(value: Optional[float]) -> bool:
    """True for a real, non-NaN number."""
    return value is not None and not (isinstance(value, float) and math.isnan(value))


def rolling_average(series: Series, window_size: int) -> list[Optional[float]]:
    """Trailing rolling mean that skips missing values.

    A missing value still occupies a slot in the window and leaves it
    window_size positions later. The running sum is maintained incrementally
    so the whole pass is O(n).

    Args:
        series: Values in chronological order, None for missing days
        window_size: Number of slots in the trailing window

    Returns:
        Mean of the valid values currently in the window, or None when the
        window holds none

    Example:
        >>> rolling_average([70, None, 71, 69, 72], 3)
        [70.0, 70.0, 70.5, 70.0, 70.666...]
    """
    if window_size <= 0:
        return [None] * len(series)

    result: list[Optional[float]] = []
    window: deque[Optional[float]] = deque()
    total = 0.0
    count = 0

    for value in series:
        if is_valid(value):
            window.append(value)
            total += value  # type: ignore[operator]
            count += 1
        else:
            window.append(None)

        if len(window) > window_size:
            removed = window.popleft()
            if removed is not None:
                total -= removed
                count -= 1

        result.append(total / count if count > 0 else None)

    return result


def exponential_average(series: Series, window_size: int) -> list[Optional[float]]:
    """Exponential moving average with alpha = 2 / (window_size + 1).

    Returns all None when window_size is not positive. Days before the first
    valid value are None; later missing days repeat the previous EMA.
    """
    if window_size <= 0:
        return [None] * len(series)

    alpha = 2 / (window_size + 1)
    previous: Optional[float] = None
    result: list[Optional[float]] = []

    for value in series:
        if is_valid(value):
            if previous is None:
                previous = float(value)  # type: ignore[arg-type]
            else:
                previous = value * alpha + previous * (1 - alpha)  # type: ignore[operator]
        result.append(previous)

    return result


def rolling_mean_and_std(
    series: Series,
    window_size: int,
    stats: StatsBackend,
) -> tuple[list[Optional[float]], list[Optional[float]]]:
    """Trailing mean and sample standard deviation per index.

    The standard deviation is 0.0 when the window holds a single valid value
    and None when it holds none.
    """
    means = rolling_average(series, window_size)
    if window_size <= 0:
        return means, [None] * len(series)

    std_devs: list[Optional[float]] = []
    for i in range(len(series)):
        window = [v for v in series[max(0, i - window_size + 1) : i + 1] if is_valid(v)]
        std_devs.append(stats.std_dev(window) if window else None)

    return means, std_devs


def flag_outliers(
    values: Series,
    smoothed: Series,
    std_devs: Series,
    threshold: float,
) -> list[bool]:
    """Mark values farther than threshold standard deviations from the smooth.

    Windows with a standard deviation at or below 0.01 never flag anything.
    """
    flags = []
    for value, center, sd in zip(values, smoothed, std_devs):
        flags.append(
            is_valid(value)
            and is_valid(center)
            and is_valid(sd)
            and sd > 0.01  # type: ignore[operator]
            and abs(value - center) > threshold * sd  # type: ignore[operator]
        )
    return flags


def rolling_volatility(
    values: Series,
    smoothed: Series,
    outliers: Sequence[bool],
    window_size: int,
    stats: StatsBackend,
) -> list[Optional[float]]:
    """Sample std of (value - smoothed) over the trailing window.

    Outliers are excluded. Fewer than two usable deviations gives None.
    """
    deviations = [
        v - s if is_valid(v) and is_valid(s) and not o else None  # type: ignore[operator]
        for v, s, o in zip(values, smoothed, outliers)
    ]
    if window_size <= 0:
        return [None] * len(deviations)

    result: list[Optional[float]] = []
    for i in range(len(deviations)):
        window = [d for d in deviations[max(0, i - window_size + 1) : i + 1] if d is not None]
        result.append(stats.std_dev(window) if len(window) >= 2 else None)
    return result
