"""スキーマ定義：指標計算とスコアリングの前提（ポリシー）.

このスキーマは市場データ（yfinance 等）では得られない、選定ルール側の前提を保持する。
例：指標の期間、総合スコアの重み、テクニカル点数の閾値と上限。

Policy:
    - Pydantic v2 による検証とシリアライズ
    - extra="forbid", frozen=True
    - 既定値は選定ルールの正準値。config で上書きできるが、通常は変更しない
"""

from __future__ import annotations

from typing import Annotated, Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, model_validator

Period = Annotated[int, Field(ge=1, le=1000)]
Weight = Annotated[float, Field(ge=0.0, allow_inf_nan=False)]


class IndicatorPolicy(BaseModel):
    """指標計算の期間.

    - volume_window: 出来高平均の最大窓（系列が短い場合は系列長まで縮む）
    - trading_days: 年率換算に用いる年間営業日数
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    sma_short: Period = Field(default=20)
    sma_long: Period = Field(default=60)
    rsi_period: Period = Field(default=14)
    macd_fast: Period = Field(default=12)
    macd_slow: Period = Field(default=26)
    volume_window: Period = Field(default=20)
    volatility_period: Period = Field(default=20)
    trading_days: Period = Field(default=252)

    @model_validator(mode="after")
    def _validate_macd(self) -> "IndicatorPolicy":
        if self.macd_fast >= self.macd_slow:
            raise ValueError("macd_fast must be smaller than macd_slow.")
        return self


class ScoreWeights(BaseModel):
    """総合スコアの重み（正規化しない固定ブレンド）."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    volatility: Weight = Field(default=0.3)
    volume_ratio: Weight = Field(default=0.4)
    theme: Weight = Field(default=0.2)
    technical: Weight = Field(default=0.1)


class TechnicalThresholds(BaseModel):
    """テクニカル点数の閾値と上限."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    rsi_oversold: float = Field(default=30.0, ge=0.0, le=100.0)
    rsi_overbought: float = Field(default=70.0, ge=0.0, le=100.0)
    volume_surge: float = Field(default=150.0, ge=0.0)
    volume_increase: float = Field(default=100.0, ge=0.0)
    max_score: float = Field(default=10.0, gt=0.0, le=10.0)

    @model_validator(mode="after")
    def _validate_bands(self) -> "TechnicalThresholds":
        if self.rsi_oversold > self.rsi_overbought:
            raise ValueError("rsi_oversold must be <= rsi_overbought.")
        if self.volume_increase > self.volume_surge:
            raise ValueError("volume_increase must be <= volume_surge.")
        return self


class ScoringPolicy(BaseModel):
    """選定ルール全体のスナップショット."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    indicators: IndicatorPolicy = Field(default_factory=IndicatorPolicy)
    weights: ScoreWeights = Field(default_factory=ScoreWeights)
    thresholds: TechnicalThresholds = Field(default_factory=TechnicalThresholds)

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "ScoringPolicy":
        """resolver 済み config の indicators / scoring セクションから生成する."""
        scoring: Mapping[str, Any] = config.get("scoring", {}) or {}
        return cls(
            indicators=IndicatorPolicy(**dict(config.get("indicators", {}) or {})),
            weights=ScoreWeights(**dict(scoring.get("weights", {}) or {})),
            thresholds=TechnicalThresholds(**dict(scoring.get("thresholds", {}) or {})),
        )


DEFAULT_POLICY = ScoringPolicy()
