"""Pytest fixtures for weightinsights tests."""

from __future__ import annotations

import pytest

from weightinsights.analytics.stats import FallbackStats, ScipyStats
from weightinsights.config import Settings, StorageConfig
from weightinsights.store import Store


@pytest.fixture
def scipy_stats():
    return ScipyStats()


@pytest.fixture
def fallback_stats():
    return FallbackStats()


@pytest.fixture
def settings(tmp_path):
    """Default settings with storage redirected to a temp directory."""
    s = Settings()
    s.storage = StorageConfig(data_dir=tmp_path / "data")
    return s


@pytest.fixture
def store():
    return Store()
