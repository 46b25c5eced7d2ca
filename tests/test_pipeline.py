"""Tests for the daily pick pipeline."""

from datetime import date

import pytest

from stock_pick_engine.config.resolver import resolve_config
from stock_pick_engine.contract.schemas.market import NoSelection, RankingResult
from stock_pick_engine.data.simulator import PriceSimulator
from stock_pick_engine.exceptions import (
    ConfigurationError,
    ContractError,
    DataError,
    ExternalDataError,
    FatalPipelineError,
    SkipTicker,
)
from stock_pick_engine.pipeline.context import build_engine_context
from stock_pick_engine.pipeline.daily import PipelineServices, run
from stock_pick_engine.theme.providers import StaticThemeScoreProvider
from stock_pick_engine.universe.kr import Listing

ASOF = date(2025, 3, 14)

LISTINGS = [
    Listing("000001", "alpha", "IT"),
    Listing("000002", "beta", "금융"),
    Listing("000003", "gamma"),
]


def _ctx(**config):
    return build_engine_context(asof=ASOF, config=resolve_config(config), run_id="test-run")


def _services(load_series, *, simulator=None, listings=LISTINGS, scores=None):
    return PipelineServices(
        build_universe=lambda ctx: list(listings),
        load_series=load_series,
        theme_provider=StaticThemeScoreProvider(scores or {}, default=10.0),
        simulator=simulator,
    )


def _loader_from(table):
    def load(code, *, asof):
        value = table[code]
        if isinstance(value, Exception):
            raise value
        return value

    return load


def test_build_engine_context_notes_and_policy():
    ctx = _ctx(scoring={"weights": {"theme": 1.0}})
    assert ctx.run.run_id == "test-run"
    assert ctx.notes == {"asof": "2025-03-14", "run_id": "test-run"}
    assert ctx.policy.weights.theme == 1.0
    assert ctx.degraded is False


def test_build_engine_context_generates_run_id():
    ctx = build_engine_context(asof=ASOF)
    assert len(ctx.run.run_id) == 12


def test_build_engine_context_rejects_bad_policy():
    with pytest.raises(ConfigurationError):
        build_engine_context(asof=ASOF, config={"indicators": {"macd_fast": 40}})


def test_run_selects_highest_score(make_series):
    flat = make_series([100.0] * 30)
    surge = make_series([100.0 + (i % 3) for i in range(30)], [1_000_000] * 29 + [3_000_000])
    loader = _loader_from({"000001": flat, "000002": surge, "000003": flat})

    outcome = run(_ctx(), _services(loader))

    assert isinstance(outcome.result, RankingResult)
    assert outcome.selected is not None
    assert outcome.selected.code == "000002"
    assert outcome.selected.simulated is False
    assert [c.code for c in outcome.ranked][0] == "000002"
    assert outcome.result.ranked_codes[1:] == ["000001", "000003"]
    assert outcome.ctx.degraded is False
    assert outcome.skipped == []


def test_run_skips_failed_codes(make_series):
    series = make_series([100.0, 101.0, 102.0])
    loader = _loader_from(
        {
            "000001": SkipTicker("empty"),
            "000002": series,
            "000003": ExternalDataError("rate limited"),
        }
    )

    outcome = run(_ctx(), _services(loader))

    assert outcome.selected is not None
    assert outcome.selected.code == "000002"
    assert outcome.skipped == ["000001", "000003"]
    assert outcome.ctx.notes["skipped_codes"] == ["000001", "000003"]
    assert outcome.ctx.notes["scored_candidates"] == 1


def test_run_skips_unordered_series(make_series):
    good = make_series([100.0, 101.0, 102.0])
    reversed_series = list(reversed(make_series([100.0, 101.0, 102.0])))
    duplicated = [good[0], good[0]]
    loader = _loader_from({"000001": good, "000002": reversed_series, "000003": duplicated})

    outcome = run(_ctx(), _services(loader))

    assert outcome.selected is not None
    assert outcome.selected.code == "000001"
    assert outcome.skipped == ["000002", "000003"]
    assert [c.code for c in outcome.ranked] == ["000001"]


def test_run_without_simulator_and_no_data_is_no_selection():
    loader = _loader_from({code: DataError("bad") for code in ("000001", "000002", "000003")})

    outcome = run(_ctx(), _services(loader))

    assert isinstance(outcome.result, NoSelection)
    assert outcome.selected is None
    assert outcome.ranked == []
    assert len(outcome.skipped) == 3


def test_run_empty_universe_is_no_selection():
    outcome = run(_ctx(), _services(_loader_from({}), simulator=PriceSimulator(seed=1), listings=[]))
    assert isinstance(outcome.result, NoSelection)
    assert outcome.ctx.degraded is False


def test_run_falls_back_to_simulation():
    loader = _loader_from({code: SkipTicker("empty") for code in ("000001", "000002", "000003")})

    outcome = run(_ctx(simulation={"length": 40}), _services(loader, simulator=PriceSimulator(seed=3)))

    assert isinstance(outcome.result, RankingResult)
    assert outcome.ctx.degraded is True
    assert outcome.ctx.notes["degraded_reasons"] == ["no_real_candidates"]
    assert all(c.simulated for c in outcome.ranked)
    assert len(outcome.ranked) == 3
    assert all(len(c.price_series) == 40 for c in outcome.ranked)
    assert outcome.ranked[0].price_series[-1].date == ASOF


def test_run_simulate_only_skips_loading():
    def load(code, *, asof):
        raise AssertionError("loader must not be called")

    outcome = run(_ctx(), _services(load, simulator=PriceSimulator(seed=5)), simulate_only=True)

    assert outcome.selected is not None
    assert outcome.selected.simulated is True
    assert outcome.ctx.notes["degraded_reasons"] == ["simulate_only"]


def test_run_simulate_only_requires_simulator():
    with pytest.raises(ContractError):
        run(_ctx(), _services(_loader_from({})), simulate_only=True)


def test_run_wraps_unexpected_errors():
    loader = _loader_from({"000001": KeyError("boom")})
    with pytest.raises(FatalPipelineError) as exc:
        run(_ctx(), _services(loader))
    assert exc.value.context == {"code": "000001"}


def test_run_propagates_classified_fatal_errors():
    loader = _loader_from({"000001": ConfigurationError("bad")})
    with pytest.raises(ConfigurationError):
        run(_ctx(), _services(loader))


def test_run_is_deterministic_with_seed():
    loader = _loader_from({})

    def once():
        outcome = run(_ctx(), _services(loader, simulator=PriceSimulator(seed=11)), simulate_only=True)
        return [(c.code, c.total_score) for c in outcome.ranked]

    assert once() == once()


def test_run_uses_injected_theme_scores(make_series):
    series = make_series([100.0] * 30)
    loader = _loader_from({code: series for code in ("000001", "000002", "000003")})

    outcome = run(_ctx(), _services(loader, scores={"000003": 50.0}))

    assert outcome.selected is not None
    assert outcome.selected.code == "000003"
    assert outcome.selected.theme_score == 50.0
