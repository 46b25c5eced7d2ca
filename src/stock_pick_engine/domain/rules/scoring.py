"""Rules: technical score and composite ranking score."""
from __future__ import annotations

from stock_pick_engine.contract.schemas.market import IndicatorSet
from stock_pick_engine.contract.schemas.policy import (
    DEFAULT_POLICY,
    ScoreWeights,
    TechnicalThresholds,
)


def compute_technical_score(
    indicators: IndicatorSet,
    *,
    thresholds: TechnicalThresholds | None = None,
) -> float:
    """IndicatorSet を 0〜max_score（既定 10）の点数へ写像する.

    - RSI: 売られ過ぎ 3 / 買われ過ぎ 1 / それ以外 2（境界値 30, 70 は「それ以外」）
    - MACD: ライン > 0 で 2、それ以外 1
    - SMA: sma20 > sma60 で 2、それ以外 1（両方ある場合のみ）
    - 出来高比率: > 150 で 2、> 100 で 1、それ以外 0
    欠損した指標は加点しない。
    """
    t = thresholds or DEFAULT_POLICY.thresholds
    score = 0.0

    rsi = indicators.rsi14
    if rsi is not None:
        if rsi < t.rsi_oversold:
            score += 3
        elif rsi > t.rsi_overbought:
            score += 1
        else:
            score += 2

    if indicators.macd is not None:
        score += 2 if indicators.macd.line > 0 else 1

    if indicators.sma20 is not None and indicators.sma60 is not None:
        score += 2 if indicators.sma20 > indicators.sma60 else 1

    ratio = indicators.volume_ratio
    if ratio is not None:
        if ratio > t.volume_surge:
            score += 2
        elif ratio > t.volume_increase:
            score += 1

    return min(score, t.max_score)


def compute_total_score(
    volatility: float | None,
    volume_ratio: float | None,
    theme_score: float,
    technical_score: float,
    *,
    weights: ScoreWeights | None = None,
) -> float:
    """固定重みの総合スコア（正規化しない）.

    volatility*0.3 + volume_ratio*0.4 + theme_score*0.2 + technical_score*0.1
    欠損（None）の volatility / volume_ratio は 0 として扱う。
    """
    w = weights or DEFAULT_POLICY.weights
    return (
        (volatility or 0.0) * w.volatility
        + (volume_ratio or 0.0) * w.volume_ratio
        + theme_score * w.theme
        + technical_score * w.technical
    )
