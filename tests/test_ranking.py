"""Tests for candidate scoring and selection."""

import pytest

from stock_pick_engine.contract.schemas.market import Candidate, NoSelection, RankingResult
from stock_pick_engine.domain.rules.indicators import compute_indicators
from stock_pick_engine.domain.rules.ranking import rank_candidates, score_candidate, select_top
from stock_pick_engine.domain.rules.scoring import compute_technical_score, compute_total_score


def _candidate(code: str, total: float) -> Candidate:
    return Candidate(code=code, name=f"name-{code}", total_score=total)


def test_select_top_picks_highest_total():
    result = select_top([_candidate("A", 5), _candidate("B", 9), _candidate("C", 2)])
    assert isinstance(result, RankingResult)
    assert result.candidate.code == "B"
    assert result.total_score == 9
    assert result.ranked_codes == ["B", "A", "C"]


def test_select_top_tie_keeps_first_listed():
    result = select_top([_candidate("A", 5), _candidate("B", 9), _candidate("C", 9), _candidate("D", 2)])
    assert isinstance(result, RankingResult)
    assert result.candidate.code == "B"
    assert result.ranked_codes == ["B", "C", "A", "D"]


def test_select_top_empty_is_no_selection():
    result = select_top([])
    assert isinstance(result, NoSelection)
    assert result.reason == "no candidates"


def test_select_top_accepts_generator():
    result = select_top(_candidate(c, s) for c, s in [("X", 1.0), ("Y", 3.0)])
    assert isinstance(result, RankingResult)
    assert result.candidate.code == "Y"


def test_select_top_single_candidate_with_negative_score():
    result = select_top([_candidate("Z", -1.5)])
    assert isinstance(result, RankingResult)
    assert result.candidate.code == "Z"


def test_rank_candidates_does_not_mutate_input():
    items = [_candidate("A", 1), _candidate("B", 2)]
    ranked = rank_candidates(items)
    assert [c.code for c in ranked] == ["B", "A"]
    assert [c.code for c in items] == ["A", "B"]


def test_score_candidate_combines_indicators_and_theme(sample_series):
    cand = score_candidate(code="005930", name="삼성전자", price_series=sample_series, theme_score=12.0)

    ind = compute_indicators(sample_series)
    technical = compute_technical_score(ind)
    assert cand.derived == ind
    assert cand.technical_score == technical
    assert cand.total_score == pytest.approx(
        compute_total_score(ind.volatility, ind.volume_ratio, 12.0, technical)
    )
    assert cand.last_close == sample_series[-1].close
    assert cand.simulated is False


def test_score_candidate_with_empty_series_uses_theme_only():
    cand = score_candidate(code="000660", name="SK하이닉스", price_series=[], theme_score=10.0)
    assert cand.technical_score == 0
    assert cand.total_score == pytest.approx(2.0)
    assert cand.last_close is None


def test_candidate_rejects_unordered_series(make_series):
    series = make_series([100.0, 101.0])
    with pytest.raises(ValueError):
        Candidate(code="A", name="a", price_series=tuple(reversed(series)))
