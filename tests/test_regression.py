"""Tests for least-squares regression with confidence bands."""

from __future__ import annotations

from dataclasses import replace
from datetime import date, timedelta

import pytest
from scipy import stats as scipy_stats

from weightinsights.analytics.regression import (
    calculate_linear_regression,
    linear_regression_with_ci,
    trend_weight,
)
from weightinsights.analytics.stats import ScipyStats

from helpers import START, make_records


def _points(values):
    return [(START + timedelta(days=i), v) for i, v in enumerate(values)]


NOISY = [80.0, 79.7, 79.9, 79.4, 79.6, 79.1, 79.3, 78.9, 79.0, 78.6]


class TestLinearRegressionWithCI:
    """Tests for linear_regression_with_ci."""

    def test_collinear_points(self) -> None:
        """Exactly linear data recovers slope and intercept with a zero-width band."""
        result = linear_regression_with_ci(
            _points([80.0 - 0.1 * i for i in range(10)]), 0.05, ScipyStats()
        )
        assert result.slope == pytest.approx(-0.1)
        assert result.intercept == pytest.approx(80.0)
        assert result.weekly_slope == pytest.approx(-0.7)
        for p in result.points:
            assert p.lower_ci == pytest.approx(p.regression_value)
            assert p.upper_ci == pytest.approx(p.regression_value)

    def test_empty(self) -> None:
        result = linear_regression_with_ci([], 0.05, ScipyStats())
        assert result.slope is None
        assert result.points == []

    def test_single_point(self) -> None:
        result = linear_regression_with_ci(_points([80.0]), 0.05, ScipyStats())
        assert result.slope is None
        assert result.intercept == pytest.approx(80.0)
        assert result.points[0].regression_value == pytest.approx(80.0)
        assert result.points[0].lower_ci is None

    def test_same_date_points_have_no_slope(self) -> None:
        points = [(START, 80.0), (START, 82.0)]
        result = linear_regression_with_ci(points, 0.05, ScipyStats())
        assert result.slope is None
        assert all(p.regression_value == pytest.approx(81.0) for p in result.points)

    def test_two_points_have_no_band(self) -> None:
        result = linear_regression_with_ci(_points([80.0, 79.0]), 0.05, ScipyStats())
        assert result.slope == pytest.approx(-1.0)
        assert [p.regression_value for p in result.points] == pytest.approx([80.0, 79.0])
        assert result.t_value is None
        assert all(p.lower_ci is None and p.upper_ci is None for p in result.points)

    def test_band_uses_t_quantile(self) -> None:
        result = linear_regression_with_ci(_points(NOISY), 0.05, ScipyStats())
        assert result.t_value == pytest.approx(scipy_stats.t.ppf(0.975, len(NOISY) - 2))
        assert result.t_approximate is False
        for p in result.points:
            assert p.lower_ci < p.regression_value < p.upper_ci

    def test_band_widest_at_edges(self) -> None:
        result = linear_regression_with_ci(_points(NOISY), 0.05, ScipyStats())
        widths = [p.upper_ci - p.lower_ci for p in result.points]
        middle = len(widths) // 2
        assert widths[0] > widths[middle]
        assert widths[-1] > widths[middle]

    def test_fallback_marks_approximation(self, fallback_stats) -> None:
        result = linear_regression_with_ci(_points(NOISY), 0.05, fallback_stats)
        assert result.t_value == pytest.approx(1.96)
        assert result.t_approximate is True

    def test_points_sorted_by_date(self) -> None:
        points = list(reversed(_points(NOISY)))
        result = linear_regression_with_ci(points, 0.05, ScipyStats())
        dates = [p.date for p in result.points]
        assert dates == sorted(dates)


class TestCalculateLinearRegression:
    """Tests for calculate_linear_regression."""

    def test_outliers_excluded(self) -> None:
        records = make_records([80.0 - 0.1 * i for i in range(10)])
        records[5] = replace(records[5], weight=95.0, is_outlier=True)
        result = calculate_linear_regression(
            records, None, None, 0.05, 7, ScipyStats()
        )
        assert len(result.points) == 9
        assert result.slope == pytest.approx(-0.1)

    def test_range_filter(self) -> None:
        records = make_records([80.0 - 0.1 * i for i in range(20)])
        start = START + timedelta(days=5)
        end = START + timedelta(days=14)
        result = calculate_linear_regression(records, start, end, 0.05, 7, ScipyStats())
        assert result.points[0].date == start
        assert result.points[-1].date == end

    def test_too_few_points(self) -> None:
        records = make_records([80.0, None, 79.8, None, 79.6])
        result = calculate_linear_regression(records, None, None, 0.05, 7, ScipyStats())
        assert result.slope is None
        assert result.points == []


class TestTrendWeight:
    """Tests for trend_weight."""

    def test_two_weeks_out(self) -> None:
        assert trend_weight(date(2025, 1, 1), 80.0, -0.5, date(2025, 1, 15)) == pytest.approx(79.0)

    def test_missing_inputs(self) -> None:
        assert trend_weight(None, 80.0, -0.5, date(2025, 1, 15)) is None
        assert trend_weight(date(2025, 1, 1), None, -0.5, date(2025, 1, 15)) is None
