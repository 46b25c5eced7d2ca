"""レポート（PickReport）と保存レコード（StoredPick）の契約定義。

設計意図:
- ランキング結果の数値を改変しない「表現層」の契約を固定する。
- 保存レコードは候補の要約のみを持ち、価格系列は保存しない（翌日には再取得する）。
"""

from __future__ import annotations

import datetime as dt
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from stock_pick_engine.contract.schemas.market import Candidate, IndicatorSet


class CandidateSummary(BaseModel):
    """候補 1 銘柄の要約（価格系列を除く）."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    rank: int = Field(..., ge=1, description="1 is best")
    code: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    sector: str | None = None

    last_close: float | None = Field(None, description="Latest close")
    change_percent: float | None = Field(None, description="Latest close vs previous close, percent")

    theme_score: float
    technical_score: float
    total_score: float
    indicators: IndicatorSet = Field(default_factory=IndicatorSet)

    simulated: bool = False

    @classmethod
    def from_candidate(cls, candidate: Candidate, *, rank: int) -> "CandidateSummary":
        series = candidate.price_series
        change: float | None = None
        if len(series) >= 2:
            prev = series[-2].close
            change = (series[-1].close - prev) / prev * 100.0

        return cls(
            rank=rank,
            code=candidate.code,
            name=candidate.name,
            sector=candidate.sector,
            last_close=candidate.last_close,
            change_percent=change,
            theme_score=candidate.theme_score,
            technical_score=candidate.technical_score,
            total_score=candidate.total_score,
            indicators=candidate.derived,
            simulated=candidate.simulated,
        )


class PickReport(BaseModel):
    """1 回の選定実行のレポート契約."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    asof: dt.date = Field(..., description="Selection date")
    run_id: str = Field(..., min_length=1, description="Run identifier")

    selected: CandidateSummary | None = Field(None, description="Top candidate; None means no selection")
    no_selection_reason: str | None = Field(None)
    ranking: list[CandidateSummary] = Field(default_factory=list, description="All candidates, best first")
    skipped_codes: list[str] = Field(default_factory=list)

    degraded: bool = Field(False, description="True if the ranking used simulated series")
    notes: dict[str, Any] = Field(default_factory=dict)

    generated_at: str = Field(
        ...,
        min_length=1,
        description="Generation timestamp (ISO8601 string, seconds).",
    )

    @model_validator(mode="after")
    def _validate_selection(self) -> "PickReport":
        if self.selected is None and not self.no_selection_reason:
            raise ValueError("no_selection_reason is required when selected is None.")
        if self.selected is not None:
            if not self.ranking or self.ranking[0].code != self.selected.code:
                raise ValueError("selected must be the first entry of ranking.")
        return self


class StoredPick(BaseModel):
    """保存される「今日の銘柄」/ 履歴の 1 レコード."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    date: dt.date
    code: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    price: float | None = None
    change_percent: float | None = None
    total_score: float
    simulated: bool = False

    @classmethod
    def from_summary(cls, summary: CandidateSummary, *, asof: dt.date) -> "StoredPick":
        return cls(
            date=asof,
            code=summary.code,
            name=summary.name,
            price=summary.last_close,
            change_percent=summary.change_percent,
            total_score=summary.total_score,
            simulated=summary.simulated,
        )
