"""スキーマ定義：銘柄選定エンジンの契約データ構造.
Notes:
    - 日次 OHLCV（PricePoint）とテクニカル指標（IndicatorSet）
    - 1 回のランキング実行における候補（Candidate）
    - ランキング結果（RankingResult / NoSelection）

Policy:
    - Pydantic を使用してデータ検証とシリアル化を行う
    - 指標の「欠損」は None で表現する（0 やエラーではない）
    - 生成後は不変（frozen=True）
"""

from __future__ import annotations

import datetime as dt
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, model_validator

# 基本型
Ticker = Annotated[str, Field(min_length=1, max_length=32, description="KRX stock code / ticker")]

FiniteFloat = Annotated[
    float,
    Field(allow_inf_nan=False, description="Finite float (NaN/inf should be filtered before validation)"),
]

NonNegativeFloat = Annotated[
    float,
    Field(ge=0.0, allow_inf_nan=False, description="Must be >= 0"),
]


# 日次OHLCVデータ
class PricePoint(BaseModel):
    """1 営業日分の OHLCV."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    date: dt.date
    open: NonNegativeFloat
    high: NonNegativeFloat
    low: NonNegativeFloat
    close: float = Field(gt=0.0, allow_inf_nan=False, description="Close price (must be > 0)")
    volume: int = Field(ge=0, description="Traded shares")


class MacdValues(BaseModel):
    """MACD.

    Notes:
        - signal / histogram は常に 0（MACD 系列を保持しないため）
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    line: FiniteFloat = Field(description="EMA(12) - EMA(26)")
    signal: FiniteFloat = Field(default=0.0)
    histogram: FiniteFloat = Field(default=0.0)


# テクニカル指標
class IndicatorSet(BaseModel):
    """テクニカル指標.

    Policy:
        - すべてのフィールドはオプション（None = 系列長不足による欠損）
        - 欠損は正常状態であり、他の指標の計算を妨げない
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    sma20: FiniteFloat | None = Field(default=None, description="SMA(20) of close")
    sma60: FiniteFloat | None = Field(default=None, description="SMA(60) of close")
    rsi14: FiniteFloat | None = Field(default=None, ge=0.0, le=100.0, description="RSI(14) 0-100")
    macd: MacdValues | None = Field(default=None)
    volume_ratio: NonNegativeFloat | None = Field(
        default=None, description="last volume / trailing average volume, percent"
    )
    volatility: NonNegativeFloat | None = Field(
        default=None, description="Annualized volatility of log returns, percent"
    )


# 候補銘柄
class Candidate(BaseModel):
    """1 回のランキング実行で評価される銘柄.

    Notes:
        - 実行ごとに新規生成し、スコア算出後は変更しない
        - 実行をまたいだ同一性は持たない（保存は外部の責務）
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    code: Ticker
    name: str = Field(min_length=1)
    sector: str | None = Field(default=None)

    price_series: tuple[PricePoint, ...] = Field(default=(), description="Chronological ascending")
    theme_score: FiniteFloat = Field(default=0.0, description="Injected theme relevance score")

    derived: IndicatorSet = Field(default_factory=IndicatorSet)
    technical_score: FiniteFloat = Field(default=0.0, ge=0.0, le=10.0)
    total_score: FiniteFloat = Field(default=0.0)

    simulated: bool = Field(default=False, description="True if the series is synthetic")

    @model_validator(mode="after")
    def _validate_order(self) -> "Candidate":
        """price_series が日付昇順であることを検証する."""
        dates = [p.date for p in self.price_series]
        if any(a >= b for a, b in zip(dates, dates[1:])):
            raise ValueError("price_series must be strictly ascending by date.")
        return self

    @property
    def last_close(self) -> float | None:
        """直近終値（系列が空なら None）."""
        if not self.price_series:
            return None
        return self.price_series[-1].close


class RankingResult(BaseModel):
    """ランキング結果（最上位 1 銘柄）."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    candidate: Candidate
    total_score: FiniteFloat
    ranked_codes: list[str] = Field(default_factory=list, description="All codes, best first")


class NoSelection(BaseModel):
    """選定なし（候補が空）. エラーではなく明示的な空状態."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    reason: str = Field(default="no candidates")
