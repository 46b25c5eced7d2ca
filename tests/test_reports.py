"""Tests for report building and text views."""

import json
from datetime import date

import pytest

from stock_pick_engine.config.resolver import resolve_config
from stock_pick_engine.contract.schemas.market import NoSelection
from stock_pick_engine.contract.schemas.reports import CandidateSummary, PickReport, StoredPick
from stock_pick_engine.domain.rules.chart_view import (
    format_history_table,
    format_indicators_table,
    format_price_table,
    format_ranking_table,
    format_report,
)
from stock_pick_engine.domain.rules.ranking import rank_candidates, score_candidate, select_top
from stock_pick_engine.pipeline.context import build_engine_context
from stock_pick_engine.pipeline.daily import PickOutcome
from stock_pick_engine.reports.json_report import build_report, render_json

ASOF = date(2025, 3, 14)


@pytest.fixture
def outcome(make_series):
    a = score_candidate(
        code="005930",
        name="삼성전자",
        sector="전자",
        price_series=make_series([100.0, 110.0], [1000, 3000]),
        theme_score=10.0,
    )
    b = score_candidate(code="000660", name="SK하이닉스", price_series=make_series([50.0]), theme_score=5.0)
    ctx = build_engine_context(asof=ASOF, config=resolve_config(), run_id="r1")
    return PickOutcome(ctx=ctx, result=select_top([a, b]), ranked=rank_candidates([a, b]), skipped=["035420"])


def test_summary_change_percent(make_series):
    cand = score_candidate(code="A", name="a", price_series=make_series([100.0, 110.0]), theme_score=0.0)
    summary = CandidateSummary.from_candidate(cand, rank=1)
    assert summary.change_percent == pytest.approx(10.0)
    assert summary.last_close == 110.0


def test_summary_single_point_has_no_change(make_series):
    cand = score_candidate(code="A", name="a", price_series=make_series([100.0]), theme_score=0.0)
    assert CandidateSummary.from_candidate(cand, rank=1).change_percent is None


def test_build_report_keeps_ranking(outcome):
    report = build_report(outcome)
    assert report.asof == ASOF
    assert report.run_id == "r1"
    assert report.selected is not None
    assert report.selected.code == "005930"
    assert [s.rank for s in report.ranking] == [1, 2]
    assert [s.code for s in report.ranking] == ["005930", "000660"]
    assert report.selected.total_score == outcome.selected.total_score
    assert report.skipped_codes == ["035420"]
    assert report.degraded is False


def test_build_report_no_selection():
    ctx = build_engine_context(asof=ASOF, run_id="r2")
    report = build_report(PickOutcome(ctx=ctx, result=NoSelection()))
    assert report.selected is None
    assert report.no_selection_reason == "no candidates"
    assert report.ranking == []


def test_report_requires_reason_without_selection():
    with pytest.raises(ValueError):
        PickReport(asof=ASOF, run_id="r", generated_at="2025-03-14T09:00:00")


def test_render_json_keeps_hangul(outcome):
    text = render_json(build_report(outcome))
    data = json.loads(text)
    assert data["selected"]["name"] == "삼성전자"
    assert data["asof"] == "2025-03-14"
    assert "삼성전자" in text


def test_stored_pick_from_summary(outcome):
    report = build_report(outcome)
    stored = StoredPick.from_summary(report.selected, asof=ASOF)
    assert stored.code == "005930"
    assert stored.price == 110.0
    assert stored.change_percent == pytest.approx(10.0)
    assert stored.total_score == report.selected.total_score


def test_format_report_table(outcome):
    text = format_report(build_report(outcome))
    assert "today's pick: 삼성전자 (005930) [전자]" in text
    assert "skipped: 035420" in text
    assert "SK하이닉스" in text
    assert "note: simulated" not in text


def test_format_report_no_selection():
    ctx = build_engine_context(asof=ASOF, run_id="r3")
    text = format_report(build_report(PickOutcome(ctx=ctx, result=NoSelection())))
    assert "no selection: no candidates" in text


def test_format_ranking_table_marks_simulated_and_limits_rows(make_series):
    candidates = [
        score_candidate(code=f"00000{i}", name=f"n{i}", price_series=make_series([100.0]), theme_score=i, simulated=True)
        for i in range(5)
    ]
    ranking = [CandidateSummary.from_candidate(c, rank=i + 1) for i, c in enumerate(rank_candidates(candidates))]

    text = format_ranking_table(ranking=ranking, top_n=2)
    assert "n4 *" in text
    assert "n3 *" in text
    assert "n2" not in text
    assert "n0" in format_ranking_table(ranking=ranking, top_n=0)


def test_format_indicators_table_shows_missing(make_series):
    cand = score_candidate(code="A", name="a", price_series=make_series([100.0, 101.0]), theme_score=0.0)
    text = format_indicators_table(summary=CandidateSummary.from_candidate(cand, rank=1))
    assert "rsi14" in text
    assert "volume_ratio" in text
    assert "-" in text


def test_format_price_table_last_n(make_series):
    series = make_series([100.0, 101.0, 102.0])
    text = format_price_table(price_series=series, last_n=2)
    assert "2025-01-02" not in text
    assert "2025-01-04" in text


def test_format_history_table():
    history = [StoredPick(date=ASOF, code="005930", name="삼성전자", total_score=51.5)]
    text = format_history_table(history=history)
    assert "2025-03-14" in text
    assert "51.50" in text
