"""日次の銘柄選定パイプライン（オーケストレーション）。

設計意図:
- 手続き（Step の順序）をここで固定し、各 Step の中身は別モジュールへ委譲する。
- 依存（universe / 価格取得 / テーマ点数 / 模擬データ）は services として注入し、
  テストや取得経路の差し替えを容易にする。
- 銘柄単位の取得失敗はスキップ、実データで選定できなければ模擬データへフォールバックする。
  フォールバックするかどうかは呼び出し側（config.simulation.fallback）が決め、コアは決めない。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable

from pydantic import ValidationError

from stock_pick_engine.contract.schemas.market import (
    Candidate,
    NoSelection,
    PricePoint,
    RankingResult,
)
from stock_pick_engine.data.simulator import PriceSimulator
from stock_pick_engine.domain.rules.ranking import rank_candidates, score_candidate, select_top
from stock_pick_engine.exceptions import (
    ContractError,
    DataError,
    FatalPipelineError,
    SkipTicker,
    StockPickEngineError,
)
from stock_pick_engine.pipeline.context import EngineContext
from stock_pick_engine.theme.providers import ThemeScoreProvider
from stock_pick_engine.universe.kr import Listing

logger = logging.getLogger(__name__)


# -------------------------
# Service contracts (DI)
# -------------------------


@dataclass(frozen=True)
class PipelineServices:
    """パイプラインが呼び出す機能群（依存注入）。

    load_series は `load_series(code, asof=...) -> list[PricePoint]`。
    daily.py は関数を呼び出して順番を制御するだけ。
    """

    build_universe: Callable[[EngineContext], list[Listing]]
    load_series: Callable[..., list[PricePoint]]
    theme_provider: ThemeScoreProvider

    # None ならフォールバックしない
    simulator: PriceSimulator | None = None


@dataclass(frozen=True)
class PickOutcome:
    """1 回の実行結果."""

    ctx: EngineContext
    result: RankingResult | NoSelection
    ranked: list[Candidate] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)

    @property
    def selected(self) -> Candidate | None:
        if isinstance(self.result, RankingResult):
            return self.result.candidate
        return None


# -------------------------
# Public API
# -------------------------


def run(ctx: EngineContext, services: PipelineServices, *, simulate_only: bool = False) -> PickOutcome:
    """日次選定を実行し、PickOutcome を返す。

    Args:
        ctx: `pipeline/context.py` で生成された実行文脈。
        services: 各 Step の実装（依存注入）。
        simulate_only: True なら実データを取得せず模擬データだけで選定する（simulator 必須）。

    Returns:
        PickOutcome: 最上位銘柄（または NoSelection）と全候補の順位。

    Raises:
        FatalPipelineError: 未分類例外（契約外）。
        ContractError: simulate_only なのに simulator が注入されていない場合。
        StockPickEngineError: その他、分類済み例外（設定不備など）。
    """
    if simulate_only and services.simulator is None:
        raise ContractError("simulate_only requires a simulator service.")

    # 1) Universe
    listings = services.build_universe(ctx)
    ctx = ctx.with_note("universe_size", len(listings))

    # 2) Per-code: load -> indicators -> scores
    candidates: list[Candidate] = []
    skipped: list[str] = []

    for listing in [] if simulate_only else listings:
        try:
            series = services.load_series(listing.code, asof=ctx.run.asof)
        except (SkipTicker, DataError) as e:
            logger.warning("Skipping %s (%s): %s", listing.code, listing.name, e)
            skipped.append(listing.code)
            continue
        except StockPickEngineError:
            raise
        except Exception as e:  # noqa: BLE001
            raise FatalPipelineError(
                f"Unhandled exception while loading series: {e}",
                context={"code": listing.code},
            ) from e

        try:
            candidates.append(_score(ctx, services, listing, series, simulated=False))
        except ValidationError as e:
            # 日付順不正・重複など、契約を満たさない系列は当該銘柄のみスキップ
            logger.warning("Skipping %s (%s): invalid price series: %s", listing.code, listing.name, e)
            skipped.append(listing.code)

    ctx = ctx.with_note("skipped_codes", skipped)
    ctx = ctx.with_note("scored_candidates", len(candidates))

    # 3) Ranking
    result = select_top(candidates)

    # 4) 実データで選定できなかった場合のみ模擬データで再実行
    if isinstance(result, NoSelection) and services.simulator is not None and listings:
        if simulate_only:
            ctx = ctx.mark_degraded("simulate_only")
        else:
            logger.warning("No real candidates available; falling back to simulated series.")
            ctx = ctx.mark_degraded("no_real_candidates")
        length = int(ctx.config.get("simulation", {}).get("length", 90))
        candidates = [
            _score(
                ctx,
                services,
                listing,
                services.simulator.simulate(listing.code, asof=ctx.run.asof, length=length),
                simulated=True,
            )
            for listing in listings
        ]
        result = select_top(candidates)

    if isinstance(result, RankingResult):
        logger.info(
            "Selected %s (%s) total_score=%.2f",
            result.candidate.name,
            result.candidate.code,
            result.total_score,
        )
    else:
        logger.info("No selection: %s", result.reason)

    return PickOutcome(ctx=ctx, result=result, ranked=rank_candidates(candidates), skipped=skipped)


def _score(
    ctx: EngineContext,
    services: PipelineServices,
    listing: Listing,
    series: list[PricePoint],
    *,
    simulated: bool,
) -> Candidate:
    return score_candidate(
        code=listing.code,
        name=listing.name,
        sector=listing.sector,
        price_series=series,
        theme_score=services.theme_provider.theme_score(listing.code),
        simulated=simulated,
        policy=ctx.policy,
    )
