"""Tests for rolling and exponential smoothing over gap-ridden series."""

from __future__ import annotations

import math

import pytest

from weightinsights.analytics.smoothing import (
    exponential_average,
    flag_outliers,
    is_valid,
    rolling_average,
    rolling_mean_and_std,
    rolling_volatility,
)
from weightinsights.analytics.stats import ScipyStats

stats = ScipyStats()


class TestIsValid:
    """Tests for is_valid."""

    def test_numbers(self) -> None:
        assert is_valid(0)
        assert is_valid(-1.5)

    def test_missing(self) -> None:
        assert not is_valid(None)
        assert not is_valid(float("nan"))


class TestRollingAverage:
    """Tests for rolling_average."""

    def test_gap_is_skipped_but_occupies_slot(self) -> None:
        """The missing value still uses one of the three slots."""
        result = rolling_average([70, None, 71, 69, 72], 3)
        assert result[0] == pytest.approx(70.0)
        assert result[1] == pytest.approx(70.0)
        assert result[2] == pytest.approx(70.5)
        assert result[3] == pytest.approx(70.0)
        assert result[4] == pytest.approx(212 / 3)

    def test_output_length_matches_input(self) -> None:
        for series in ([], [1.0], [None, None], [1.0, None, 3.0, 4.0, None]):
            assert len(rolling_average(series, 3)) == len(series)

    def test_full_window_is_plain_mean(self) -> None:
        series = [80.0, 80.4, 79.8, 80.2, 80.6, 79.9, 80.1]
        assert rolling_average(series, 7)[-1] == pytest.approx(sum(series) / 7)

    def test_all_missing_window_is_none(self) -> None:
        assert rolling_average([70.0, None, None, None], 2) == [70.0, 70.0, None, None]

    def test_non_positive_window(self) -> None:
        assert rolling_average([1.0, 2.0], 0) == [None, None]

    def test_nan_treated_as_missing(self) -> None:
        assert rolling_average([70.0, math.nan, 72.0], 3)[-1] == pytest.approx(71.0)


class TestExponentialAverage:
    """Tests for exponential_average."""

    def test_seeded_with_first_value(self) -> None:
        result = exponential_average([None, 80.0, 82.0], 3)
        assert result[0] is None
        assert result[1] == pytest.approx(80.0)
        # alpha = 2 / 4 = 0.5
        assert result[2] == pytest.approx(81.0)

    def test_carried_across_gaps(self) -> None:
        result = exponential_average([80.0, None, None, 84.0], 3)
        assert result[1] == pytest.approx(80.0)
        assert result[2] == pytest.approx(80.0)
        assert result[3] == pytest.approx(82.0)

    def test_constant_series(self) -> None:
        assert all(v == pytest.approx(75.0) for v in exponential_average([75.0] * 10, 7))


class TestRollingMeanAndStd:
    """Tests for rolling_mean_and_std."""

    def test_single_value_has_zero_std(self) -> None:
        means, stds = rolling_mean_and_std([80.0, None], 3, stats)
        assert means == [80.0, 80.0]
        assert stds == [0.0, 0.0]

    def test_sample_std(self) -> None:
        _, stds = rolling_mean_and_std([1.0, 2.0, 3.0], 3, stats)
        assert stds[-1] == pytest.approx(1.0)

    def test_empty_window_is_none(self) -> None:
        means, stds = rolling_mean_and_std([None, None], 3, stats)
        assert means == [None, None]
        assert stds == [None, None]


class TestFlagOutliers:
    """Tests for flag_outliers."""

    def test_flags_beyond_threshold(self) -> None:
        flags = flag_outliers([80.0, 83.0], [80.0, 80.0], [1.0, 1.0], 2.5)
        assert flags == [False, True]

    def test_tiny_std_never_flags(self) -> None:
        assert flag_outliers([90.0], [80.0], [0.01], 2.5) == [False]

    def test_missing_inputs_never_flag(self) -> None:
        assert flag_outliers([None, 90.0], [80.0, None], [1.0, 1.0], 2.5) == [False, False]


class TestRollingVolatility:
    """Tests for rolling_volatility."""

    def test_needs_two_deviations(self) -> None:
        result = rolling_volatility([80.0, 81.0], [80.0, 80.0], [False, False], 5, stats)
        assert result[0] is None
        assert result[1] == pytest.approx(math.sqrt(0.5))

    def test_outliers_excluded(self) -> None:
        result = rolling_volatility(
            [80.0, 90.0, 80.0], [80.0, 80.0, 80.0], [False, True, False], 5, stats
        )
        assert result[-1] == pytest.approx(0.0)
