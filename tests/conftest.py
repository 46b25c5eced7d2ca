"""Shared test fixtures."""

from __future__ import annotations

from datetime import date, timedelta
from typing import Callable, Sequence

import numpy as np
import pytest

from stock_pick_engine.contract.schemas.market import PricePoint

SeriesFactory = Callable[..., list[PricePoint]]


def build_series(
    closes: Sequence[float],
    volumes: Sequence[int] | None = None,
    *,
    start: date = date(2025, 1, 2),
) -> list[PricePoint]:
    """Build a daily PricePoint series (one calendar day apart) from closes."""
    if volumes is None:
        volumes = [1_000_000] * len(closes)
    assert len(volumes) == len(closes)
    return [
        PricePoint(
            date=start + timedelta(days=i),
            open=float(c),
            high=float(c) * 1.01,
            low=float(c) * 0.99,
            close=float(c),
            volume=int(v),
        )
        for i, (c, v) in enumerate(zip(closes, volumes))
    ]


@pytest.fixture
def make_series() -> SeriesFactory:
    return build_series


@pytest.fixture
def rsi_fixture_closes() -> list[float]:
    """15 closes, mostly rising: 9 up-days summing to 30, 5 down-days summing to 8."""
    return [100, 102, 101, 105, 107, 106, 110, 108, 112, 115, 113, 117, 120, 118, 122]


@pytest.fixture
def sample_series() -> list[PricePoint]:
    """100 days of synthetic OHLCV (seeded random walk)."""
    rng = np.random.default_rng(42)
    n = 100
    close = 50_000 * np.exp(np.cumsum(rng.normal(0.0, 0.015, n)))
    volume = rng.integers(500_000, 5_000_000, n)
    return build_series([round(float(c), 2) for c in close], [int(v) for v in volume])
