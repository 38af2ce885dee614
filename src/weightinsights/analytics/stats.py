"""Statistics backends used by the analytics engine.

Two implementations of the same small interface are provided. `ScipyStats` is
the production backend. `FallbackStats` is fully deterministic arithmetic and
substitutes 1.96 (the two-tailed 95% normal quantile) for every t-quantile,
which understates confidence bands when degrees of freedom are small. Results
computed with it carry `t_approximate=True`.

The backend is chosen once, from configuration, with `make_stats_backend`.
"""

from __future__ import annotations

import math
from typing import Optional, Protocol, Sequence

import numpy as np
from scipy import stats as scipy_stats

NORMAL_95_QUANTILE = 1.96


class StatsBackend(Protocol):
    """Sample statistics needed by smoothing, regression and summaries."""

    approximate: bool

    def mean(self, values: Sequence[float]) -> Optional[float]: ...

    def std_dev(self, values: Sequence[float]) -> float: ...

    def correlation(self, xs: Sequence[float], ys: Sequence[float]) -> Optional[float]: ...

    def t_quantile(self, p: float, df: int) -> float: ...


class ScipyStats:
    """numpy/scipy backed statistics."""

    approximate = False

    def mean(self, values: Sequence[float]) -> Optional[float]:
        if len(values) == 0:
            return None
        return float(np.mean(values))

    def std_dev(self, values: Sequence[float]) -> float:
        """Sample standard deviation (n-1); 0.0 for fewer than two values."""
        if len(values) < 2:
            return 0.0
        return float(np.std(values, ddof=1))

    def correlation(self, xs: Sequence[float], ys: Sequence[float]) -> Optional[float]:
        if len(xs) != len(ys) or len(xs) < 2:
            return None
        x = np.asarray(xs, dtype=float)
        y = np.asarray(ys, dtype=float)
        if np.std(x) == 0 or np.std(y) == 0:
            return None
        r = float(np.corrcoef(x, y)[0, 1])
        return None if math.isnan(r) else r

    def t_quantile(self, p: float, df: int) -> float:
        return float(scipy_stats.t.ppf(p, df))


class FallbackStats:
    """Deterministic pure-arithmetic statistics with an approximate t-quantile."""

    approximate = True

    def mean(self, values: Sequence[float]) -> Optional[float]:
        if len(values) == 0:
            return None
        return sum(values) / len(values)

    def std_dev(self, values: Sequence[float]) -> float:
        n = len(values)
        if n < 2:
            return 0.0
        m = sum(values) / n
        return math.sqrt(sum((v - m) ** 2 for v in values) / (n - 1))

    def correlation(self, xs: Sequence[float], ys: Sequence[float]) -> Optional[float]:
        n = len(xs)
        if n != len(ys) or n < 2:
            return None
        mx = sum(xs) / n
        my = sum(ys) / n
        sxy = sum((x - mx) * (y - my) for x, y in zip(xs, ys))
        sxx = sum((x - mx) ** 2 for x in xs)
        syy = sum((y - my) ** 2 for y in ys)
        if sxx == 0 or syy == 0:
            return None
        return sxy / math.sqrt(sxx * syy)

    def t_quantile(self, p: float, df: int) -> float:
        return NORMAL_95_QUANTILE


_BACKENDS = {
    "scipy": ScipyStats,
    "fallback": FallbackStats,
}


def make_stats_backend(name: str = "scipy") -> StatsBackend:
    """Construct the named statistics backend.

    Raises:
        ValueError: If name is not a known backend
    """
    try:
        return _BACKENDS[name]()
    except KeyError:
        raise ValueError(
            f"Unknown statistics backend '{name}', expected one of {sorted(_BACKENDS)}"
        ) from None
