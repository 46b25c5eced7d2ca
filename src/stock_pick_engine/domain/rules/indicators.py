"""Rules: technical indicators from a daily OHLCV series.

Every indicator is computed independently. A series that is too short for an
indicator's window yields ``None`` for that indicator only; nothing here raises
for insufficient data.
"""
from __future__ import annotations

import math
from typing import Sequence

import pandas as pd

from stock_pick_engine.contract.schemas.market import IndicatorSet, MacdValues, PricePoint
from stock_pick_engine.contract.schemas.policy import DEFAULT_POLICY, IndicatorPolicy
from stock_pick_engine.domain.rules.series_math import (
    Series,
    as_float_series,
    exponential_moving_average,
    log_returns,
    simple_moving_average,
)


def compute_indicators(
    price_series: Sequence[PricePoint],
    *,
    policy: IndicatorPolicy | None = None,
) -> IndicatorSet:
    """OHLCV 系列から IndicatorSet を計算する.

    Args:
        price_series: 日付昇順の PricePoint 列（終値 > 0 は PricePoint 側で保証）.
        policy: 指標期間. None の場合は既定値（20/60/14/12/26/20/20/252）.

    Returns:
        IndicatorSet: 系列長不足の指標は None.
    """
    p = policy or DEFAULT_POLICY.indicators
    closes = pd.Series([pt.close for pt in price_series], dtype="float64")
    volumes = pd.Series([pt.volume for pt in price_series], dtype="float64")

    return IndicatorSet(
        sma20=simple_moving_average(closes, p.sma_short),
        sma60=simple_moving_average(closes, p.sma_long),
        rsi14=calc_rsi(closes, p.rsi_period),
        macd=calc_macd(closes, fast=p.macd_fast, slow=p.macd_slow),
        volume_ratio=calc_volume_ratio(volumes, window=p.volume_window),
        volatility=calc_volatility(closes, p.volatility_period, trading_days=p.trading_days),
    )


def calc_rsi(closes: Series, period: int = 14) -> float | None:
    """RSI（単純平均版）. period + 1 本未満なら None.

    直近 period 個の上昇幅/下落幅の算術平均を用いる（Wilder 平滑化ではない）。
    平均下落幅が 0 の場合は 100。
    """
    s = as_float_series(closes)
    if len(s) < period + 1:
        return None

    delta = s.diff().iloc[1:]
    gains = delta.clip(lower=0).iloc[-period:]
    losses = (-delta).clip(lower=0).iloc[-period:]

    avg_gain = float(gains.sum()) / period
    avg_loss = float(losses.sum()) / period
    if avg_loss == 0:
        return 100.0

    rs = avg_gain / avg_loss
    return 100.0 - 100.0 / (1.0 + rs)


def calc_macd(closes: Series, *, fast: int = 12, slow: int = 26) -> MacdValues | None:
    """MACD ライン = EMA(fast) - EMA(slow). どちらかが欠損なら None.

    signal / histogram は 0 固定（MACD の履歴系列を持たないため）。
    """
    ema_fast = exponential_moving_average(closes, fast)
    ema_slow = exponential_moving_average(closes, slow)
    if ema_fast is None or ema_slow is None:
        return None
    return MacdValues(line=ema_fast - ema_slow, signal=0.0, histogram=0.0)


def calc_volume_ratio(volumes: Series, *, window: int = 20) -> float | None:
    """直近出来高 / 直近 min(window, n) 本の平均出来高 × 100.

    2 本未満なら None。平均が 0 以下なら 0（欠損ではない）。
    """
    s = as_float_series(volumes)
    if len(s) < 2:
        return None

    recent = float(s.iloc[-1])
    avg = float(s.iloc[-min(window, len(s)):].mean())
    if avg <= 0:
        return 0.0
    return recent / avg * 100.0


def calc_volatility(closes: Series, period: int = 20, *, trading_days: int = 252) -> float | None:
    """年率換算ボラティリティ（%）. period + 1 本未満なら None.

    直近 period 個の対数リターンの母分散（÷ period）を用いる。
    """
    s = as_float_series(closes)
    if len(s) < period + 1:
        return None

    recent = log_returns(s).iloc[-period:]
    mean = float(recent.sum()) / period
    variance = float(((recent - mean) ** 2).sum()) / period
    return math.sqrt(variance) * math.sqrt(trading_days) * 100.0
