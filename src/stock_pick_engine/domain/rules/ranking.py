"""Rules: candidate scoring and top-1 selection."""
from __future__ import annotations

from typing import Iterable, Sequence

from stock_pick_engine.contract.schemas.market import (
    Candidate,
    NoSelection,
    PricePoint,
    RankingResult,
)
from stock_pick_engine.contract.schemas.policy import DEFAULT_POLICY, ScoringPolicy
from stock_pick_engine.domain.rules.indicators import compute_indicators
from stock_pick_engine.domain.rules.scoring import compute_technical_score, compute_total_score


def score_candidate(
    *,
    code: str,
    name: str,
    price_series: Sequence[PricePoint],
    theme_score: float,
    sector: str | None = None,
    simulated: bool = False,
    policy: ScoringPolicy | None = None,
) -> Candidate:
    """指標計算→テクニカル点数→総合スコアまでを行い、不変の Candidate を返す."""
    p = policy or DEFAULT_POLICY
    derived = compute_indicators(price_series, policy=p.indicators)
    technical = compute_technical_score(derived, thresholds=p.thresholds)
    total = compute_total_score(
        derived.volatility,
        derived.volume_ratio,
        theme_score,
        technical,
        weights=p.weights,
    )
    return Candidate(
        code=code,
        name=name,
        sector=sector,
        price_series=tuple(price_series),
        theme_score=theme_score,
        derived=derived,
        technical_score=technical,
        total_score=total,
        simulated=simulated,
    )


def rank_candidates(candidates: Iterable[Candidate]) -> list[Candidate]:
    """total_score の降順に並べる（同点は入力順を保持する安定ソート）."""
    return sorted(candidates, key=lambda c: c.total_score, reverse=True)


def select_top(candidates: Iterable[Candidate]) -> RankingResult | NoSelection:
    """最上位 1 銘柄を返す. 候補が空なら NoSelection（例外にしない）."""
    ranked = rank_candidates(candidates)
    if not ranked:
        return NoSelection(reason="no candidates")

    best = ranked[0]
    return RankingResult(
        candidate=best,
        total_score=best.total_score,
        ranked_codes=[c.code for c in ranked],
    )
