# src/stock_pick_engine/data/loaders/chain.py
"""複数 transport のフォールバックチェーン（先勝ち）。

設計意図:
- 取得経路（KOSPI/KOSDAQ サフィックス、将来の別 API 等）を順序付きリストで注入する。
- 最初に成功した transport の結果を採用し、全滅なら最後の失敗を ExternalDataError で返す。
- 同日・同銘柄の再取得は DailyTTLCache で抑止する。
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Callable, Mapping, Sequence

from stock_pick_engine.contract.schemas.market import PricePoint
from stock_pick_engine.data.cache import DailyTTLCache
from stock_pick_engine.data.loaders.yfinance import YFinanceTransport
from stock_pick_engine.exceptions import (
    ExternalDataError,
    SkipTicker,
    StockPickEngineError,
)

logger = logging.getLogger(__name__)

Transport = Callable[..., list[PricePoint]]


class FallbackChainLoader:
    """transports を順に試し、最初の成功を返すローダ.

    Args:
        transports: `transport(code, asof=...) -> list[PricePoint]` の順序付き列。
        cache: 取得結果キャッシュ。None ならキャッシュしない。
    """

    def __init__(
        self,
        transports: Sequence[Transport],
        *,
        cache: DailyTTLCache[list[PricePoint]] | None = None,
    ) -> None:
        if not transports:
            raise ValueError("transports must not be empty.")
        self._transports = list(transports)
        self._cache = cache

    def __call__(self, code: str, *, asof: date) -> list[PricePoint]:
        return self.load(code, asof=asof)

    def load(self, code: str, *, asof: date) -> list[PricePoint]:
        """code の日足を取得する.

        Raises:
            SkipTicker: 全 transport がデータ無し（SkipTicker）だった場合。
            ExternalDataError: いずれかの transport が取得失敗し、成功が無かった場合。
        """
        if self._cache is not None:
            cached = self._cache.get(code, asof)
            if cached is not None:
                logger.debug("Cache hit for %s", code)
                return cached

        failures: list[StockPickEngineError] = []
        for transport in self._transports:
            name = getattr(transport, "name", type(transport).__name__)
            try:
                points = transport(code, asof=asof)
            except StockPickEngineError as e:
                logger.info("Transport %s failed for %s: %s", name, code, e)
                failures.append(e)
                continue

            if not points:
                failures.append(SkipTicker("Transport returned no data.", context={"transport": name}))
                continue

            if self._cache is not None:
                self._cache.set(code, asof, points)
            return points

        if failures and all(isinstance(f, SkipTicker) for f in failures):
            raise SkipTicker("No transport returned data.", context={"code": code})
        raise ExternalDataError(
            "All transports failed.",
            context={"code": code, "attempts": len(self._transports)},
        )


def build_default_loader(config: Mapping[str, Any]) -> FallbackChainLoader:
    """resolver 済み config の data セクションから yfinance チェーンを組み立てる."""
    data: Mapping[str, Any] = config.get("data", {}) or {}
    transports = [
        YFinanceTransport(
            suffix=suffix,
            lookback_days=int(data.get("lookback_days", 120)),
            interval=str(data.get("interval", "1d")),
        )
        for suffix in data.get("suffixes", [".KS", ".KQ"])
    ]
    cache: DailyTTLCache[list[PricePoint]] = DailyTTLCache(ttl_seconds=float(data.get("cache_ttl_seconds", 300)))
    return FallbackChainLoader(transports, cache=cache)
