"""パイプライン実行文脈（EngineContext）の組み立て。

設計意図:
- entrypoints（CLI）から渡された基準日・設定を、パイプライン内部で使う
  単一の実行文脈に正規化して固定する。
- pipeline はこの文脈のみを信頼し、外部 I/O や環境依存の取得をここに混入させない。
- 模擬データへのフォールバック（degraded）をここで表現できるようにする。
"""

from __future__ import annotations

import uuid
from datetime import date
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from stock_pick_engine.contract.schemas.policy import ScoringPolicy
from stock_pick_engine.exceptions import ConfigurationError


class RunContext(BaseModel):
    """1 回の選定実行の識別情報（不変）。"""

    model_config = ConfigDict(extra="forbid", frozen=True)

    asof: date = Field(..., description="Selection date")
    run_id: str = Field(..., min_length=1, description="Unique run identifier")


class EngineContext(BaseModel):
    """選定パイプラインが参照する実行文脈（不変）。"""

    model_config = ConfigDict(extra="forbid", frozen=True)

    run: RunContext = Field(..., description="RunContext (asof/run_id)")
    policy: ScoringPolicy = Field(default_factory=ScoringPolicy, description="Scoring policy for this run")

    # 設定は「解釈済み・正規化済み」を前提とする（resolver の出力を想定）
    config: dict[str, Any] = Field(default_factory=dict, description="Resolved config (normalized)")

    # 模擬データで選定した場合に True
    degraded: bool = Field(False, description="Whether the pick came from simulated data")

    # 監査・デバッグ用の付帯情報。keys は運用で統一する。
    notes: dict[str, Any] = Field(default_factory=dict, description="Diagnostic notes")

    def with_note(self, key: str, value: Any) -> "EngineContext":
        """frozen なので notes を更新した新インスタンスを返す。"""
        notes = dict(self.notes)
        notes[key] = value
        return self.model_copy(update={"notes": notes})

    def mark_degraded(self, reason: str) -> "EngineContext":
        """縮退フラグを立て、理由を notes に残した新インスタンスを返す。"""
        notes = dict(self.notes)
        reasons = list(notes.get("degraded_reasons", []))
        reasons.append(reason)
        notes["degraded_reasons"] = reasons
        return self.model_copy(update={"degraded": True, "notes": notes})


def build_engine_context(
    *,
    asof: date,
    config: dict[str, Any] | None = None,
    run_id: str | None = None,
) -> EngineContext:
    """基準日と resolver 済み設定から EngineContext を生成する。

    Args:
        asof: 選定基準日。
        config: resolver 済み設定（正規化済み dict）。未指定なら空 dict（全て既定値）。
        run_id: 実行 ID。未指定なら uuid4 の先頭 12 桁。

    Returns:
        EngineContext: パイプライン内部で参照する不変文脈。

    Raises:
        ConfigurationError: indicators / scoring セクションが不正な場合。
    """
    merged_config: dict[str, Any] = dict(config or {})
    try:
        policy = ScoringPolicy.from_config(merged_config)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid scoring policy: {e}") from e

    run = RunContext(asof=asof, run_id=run_id or uuid.uuid4().hex[:12])
    return EngineContext(
        run=run,
        policy=policy,
        config=merged_config,
        notes={"asof": asof.isoformat(), "run_id": run.run_id},
    )
