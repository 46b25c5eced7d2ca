"""Tests for the universe, theme providers and the price simulator."""

from datetime import date

import pytest

from stock_pick_engine.config.resolver import resolve_config
from stock_pick_engine.data.simulator import PriceSimulator
from stock_pick_engine.theme.providers import (
    RandomThemeScoreProvider,
    StaticThemeScoreProvider,
    build_theme_provider,
)
from stock_pick_engine.universe.kr import build_universe, lookup_listing

ASOF = date(2025, 3, 14)


# -------------------------
# universe
# -------------------------


def test_default_universe_has_twenty_unique_codes():
    listings = build_universe()
    assert len(listings) == 20
    assert len({item.code for item in listings}) == 20
    assert listings[0].code == "005930"
    assert all(len(item.code) == 6 for item in listings)


def test_universe_symbols_override_keeps_order():
    listings = build_universe(resolve_config({"universe": {"symbols": ["000660", "999999"]}}))
    assert [item.code for item in listings] == ["000660", "999999"]
    assert listings[0].name == "SK하이닉스"
    assert listings[1].name == "종목 999999"


def test_lookup_listing_known_code():
    assert lookup_listing("035420").name == "NAVER"


# -------------------------
# theme
# -------------------------


def test_random_theme_scores_in_range():
    provider = RandomThemeScoreProvider(seed=1)
    scores = [provider.theme_score("005930") for _ in range(200)]
    assert all(5.0 <= s < 15.0 for s in scores)


def test_random_theme_scores_reproducible_with_seed():
    a = RandomThemeScoreProvider(seed=7)
    b = RandomThemeScoreProvider(seed=7)
    assert [a.theme_score("x") for _ in range(5)] == [b.theme_score("x") for _ in range(5)]


def test_random_theme_rejects_inverted_band():
    with pytest.raises(ValueError):
        RandomThemeScoreProvider(low=10, high=5)


def test_static_theme_scores():
    provider = StaticThemeScoreProvider({"005930": 12}, default=3.0)
    assert provider.theme_score("005930") == 12.0
    assert provider.theme_score("000660") == 3.0


def test_build_theme_provider_static_uses_band_midpoint():
    cfg = resolve_config({"theme": {"source": "STATIC", "scores": {"005930": 14}}})
    provider = build_theme_provider(cfg)
    assert isinstance(provider, StaticThemeScoreProvider)
    assert provider.theme_score("005930") == 14.0
    assert provider.theme_score("000660") == 10.0


def test_build_theme_provider_random_by_default():
    assert isinstance(build_theme_provider(resolve_config()), RandomThemeScoreProvider)


# -------------------------
# simulator
# -------------------------


def test_simulator_shape_and_dates():
    series = PriceSimulator(seed=1).simulate("005930", asof=ASOF, length=90)
    assert len(series) == 90
    assert series[-1].date == ASOF
    assert all(a.date < b.date for a, b in zip(series, series[1:]))
    assert all(p.date.weekday() < 5 for p in series)


def test_simulator_prices_positive_and_consistent():
    series = PriceSimulator(seed=2).simulate("005930", asof=ASOF, length=120)
    for p in series:
        assert p.close > 0
        assert p.low <= min(p.open, p.close)
        assert p.high >= max(p.open, p.close)
        assert p.volume >= 100_000


def test_simulator_reproducible_with_seed():
    a = PriceSimulator(seed=9).simulate("005930", asof=ASOF, length=30)
    b = PriceSimulator(seed=9).simulate("005930", asof=ASOF, length=30)
    assert a == b


def test_simulator_zero_length_is_empty():
    assert PriceSimulator(seed=1).simulate("005930", asof=ASOF, length=0) == []
