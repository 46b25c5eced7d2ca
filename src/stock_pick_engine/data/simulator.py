"""模擬 OHLCV 生成（実データ取得不能時のフォールバック）。

設計意図:
- 外部 I/O を持たない決定論的（seed 指定時）なランダムウォークを返す。
- 幾何ランダムウォークで終値 > 0 を常に保証する。
- コアは模擬か実データかを区別しない（Candidate.simulated で表示側にだけ伝える）。
"""

from __future__ import annotations

import logging
from datetime import date

import numpy as np
import pandas as pd

from stock_pick_engine.contract.schemas.market import PricePoint

logger = logging.getLogger(__name__)


class PriceSimulator:
    """銘柄ごとの模擬日足を生成する.

    Args:
        seed: 乱数 seed. None なら毎回異なる系列.
        daily_sigma: 日次対数リターンの標準偏差.
    """

    def __init__(self, *, seed: int | None = None, daily_sigma: float = 0.02) -> None:
        self._rng = np.random.default_rng(seed)
        self._sigma = daily_sigma

    def simulate(self, code: str, *, asof: date, length: int = 90) -> list[PricePoint]:
        """asof を最終営業日とする length 本の日足を返す."""
        if length < 1:
            return []

        dates = pd.bdate_range(end=pd.Timestamp(asof), periods=length)
        base_price = float(self._rng.integers(10_000, 110_000))

        rets = self._rng.normal(0.0, self._sigma, size=length)
        close = base_price * np.exp(np.cumsum(rets))
        open_ = np.concatenate([[base_price], close[:-1]])
        spread = np.abs(self._rng.normal(0.0, self._sigma / 2, size=length)) * close
        high = np.maximum(open_, close) + spread
        low = np.maximum(np.minimum(open_, close) - spread, 0.0)
        volume = self._rng.integers(100_000, 5_000_000, size=length)

        logger.debug("Simulated %d bars for %s (base=%.0f)", length, code, base_price)
        return [
            PricePoint(
                date=d.date(),
                open=round(float(o), 2),
                high=round(float(h), 2),
                low=round(float(lo), 2),
                close=round(float(c), 2),
                volume=int(v),
            )
            for d, o, h, lo, c, v in zip(dates, open_, high, low, close, volume)
        ]
