# src/stock_pick_engine/reports/json_report.py
"""JSON レポート生成（表現層）。

設計意図:
- PickOutcome（順位・スコア）を改変せず、要約して PickReport に包む。
- 出力（ファイル保存などの I/O）はここでは行わない。呼び出し側に委譲する。
"""

from __future__ import annotations

from datetime import datetime

from stock_pick_engine.contract.schemas.market import NoSelection
from stock_pick_engine.contract.schemas.reports import CandidateSummary, PickReport
from stock_pick_engine.pipeline.daily import PickOutcome


def build_report(outcome: PickOutcome) -> PickReport:
    """PickOutcome を PickReport として返す。

    Args:
        outcome: `pipeline/daily.run` の戻り値。

    Returns:
        PickReport: 選定銘柄（無ければ None と理由）と全候補の順位。
    """
    ctx = outcome.ctx
    ranking = [CandidateSummary.from_candidate(c, rank=i) for i, c in enumerate(outcome.ranked, start=1)]

    reason: str | None = None
    if isinstance(outcome.result, NoSelection):
        reason = outcome.result.reason

    return PickReport(
        asof=ctx.run.asof,
        run_id=ctx.run.run_id,
        selected=ranking[0] if outcome.selected is not None and ranking else None,
        no_selection_reason=reason,
        ranking=ranking,
        skipped_codes=list(outcome.skipped),
        degraded=ctx.degraded,
        notes=dict(ctx.notes),
        generated_at=_now_iso_seconds(),
    )


def render_json(report: PickReport, *, indent: int | None = 2) -> str:
    """PickReport を JSON 文字列にする（ハングルはエスケープしない）。"""
    return report.model_dump_json(indent=indent)


def _now_iso_seconds() -> str:
    """ISO8601 文字列（秒粒度）。"""
    return datetime.now().isoformat(timespec="seconds")
