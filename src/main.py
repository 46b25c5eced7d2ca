"""
src/main.py

このファイルは「リポジトリ直下（src/）での実行エントリポイント」です。

設計意図:
- CLI/バッチ前提の“入口”を 1 箇所（src/main.py）に固定する
- 引数→設定の上書き、services の組み立て、終了コードへの変換をここに閉じる
- 選定ロジック本体（stock_pick_engine.pipeline.daily.run）は入口に依存しない

終了コード:
- 0: 正常終了（銘柄を選定、または保存済みの今日の銘柄を表示）
- 1: 選定なし（候補が空）
- 2: 設定不備
- 3: その他の分類済みエラー
"""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import date
from typing import Any, Sequence

from stock_pick_engine.config.loader import load_config
from stock_pick_engine.config.resolver import resolve_config
from stock_pick_engine.contract.schemas.reports import StoredPick
from stock_pick_engine.data.loaders.chain import build_default_loader
from stock_pick_engine.data.simulator import PriceSimulator
from stock_pick_engine.domain.rules.chart_view import format_history_table, format_report
from stock_pick_engine.exceptions import ConfigurationError, StockPickEngineError
from stock_pick_engine.pipeline.context import EngineContext, build_engine_context
from stock_pick_engine.pipeline.daily import PipelineServices, run as run_pipeline
from stock_pick_engine.reports.json_report import build_report, render_json
from stock_pick_engine.storage.pick_store import PickStore
from stock_pick_engine.theme.providers import build_theme_provider
from stock_pick_engine.universe.kr import build_universe

logger = logging.getLogger("stock_pick_engine.main")

_LOG_FMT = "[%(asctime)s][%(name)s][%(levelname)s] %(message)s"
_DATE_FMT = "%Y-%m-%d %H:%M:%S"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="stock-pick",
        description="Pick today's KRX stock from technical indicators and a composite score.",
    )
    parser.add_argument("--config", help="JSON/YAML config file (default: $STOCK_PICK_CONFIG)")
    parser.add_argument("--asof", type=date.fromisoformat, help="Selection date YYYY-MM-DD (default: today)")
    parser.add_argument("--format", choices=["table", "json"], help="Output format")
    parser.add_argument("--simulate", action="store_true", help="Use simulated series only (no network)")
    parser.add_argument("--no-fallback", action="store_true", help="Do not fall back to simulated series")
    parser.add_argument("--seed", type=int, help="Seed for simulated series and random theme scores")
    parser.add_argument("--store", help="JSON file for today's pick and history")
    parser.add_argument("--refresh", action="store_true", help="Ignore today's stored pick and select again")
    parser.add_argument("--history", action="store_true", help="Print stored history and exit")
    parser.add_argument("--top", type=int, default=10, help="Rows in the ranking table (0 = all)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def run(argv: Sequence[str] | None = None) -> int:
    """
    共通実行関数（CLI/バッチから利用可能な薄い入口）。

    Args:
        argv: コマンドライン引数（sys.argv[1:] 相当）。None の場合は sys.argv[1:] を使用。

    Returns:
        終了コード（モジュール docstring 参照）。
    """
    args = build_parser().parse_args(list(sys.argv[1:] if argv is None else argv))
    _configure_logging(verbose=args.verbose)

    try:
        config = resolve_config(_apply_cli_overrides(load_config(args.config), args))
        ctx = build_engine_context(asof=args.asof or date.today(), config=config)
        store = _build_store(config)

        if args.history:
            if store is None:
                raise ConfigurationError("--history requires a store path (--store or store.path).")
            print(format_history_table(history=store.load_history()))
            return 0

        if store is not None and not args.refresh:
            saved = store.load_today(ctx.run.asof)
            if saved is not None:
                logger.info("Reusing today's pick %s (%s)", saved.name, saved.code)
                _print_saved(saved, fmt=config["format"])
                return 0

        outcome = run_pipeline(ctx, build_services(ctx), simulate_only=args.simulate)
        report = build_report(outcome)

        if store is not None and report.selected is not None:
            store.save_today(StoredPick.from_summary(report.selected, asof=report.asof))

    except ConfigurationError as e:
        logger.error("Configuration error: %s", e)
        return 2
    except StockPickEngineError as e:
        logger.error("%s: %s", e.code, e)
        return 3

    if config["format"] == "JSON":
        print(render_json(report))
    else:
        print(format_report(report, top_n=args.top))

    return 0 if report.selected is not None else 1


def build_services(ctx: EngineContext) -> PipelineServices:
    """resolver 済み設定から既定の services（yfinance チェーン・テーマ・模擬）を組み立てる。"""
    config = ctx.config
    simulation: dict[str, Any] = config.get("simulation", {})
    simulator = PriceSimulator(seed=simulation.get("seed")) if simulation.get("fallback", True) else None

    return PipelineServices(
        build_universe=lambda c: build_universe(c.config),
        load_series=build_default_loader(config),
        theme_provider=build_theme_provider(config),
        simulator=simulator,
    )


def _apply_cli_overrides(user_config: dict[str, Any], args: argparse.Namespace) -> dict[str, Any]:
    """CLI 引数を user config に上書きする（resolver で検証される）。"""
    cfg = dict(user_config)
    if args.format:
        cfg["format"] = args.format.upper()
    if args.store:
        cfg["store"] = {**cfg.get("store", {}), "path": args.store}

    simulation = dict(cfg.get("simulation", {}))
    theme = dict(cfg.get("theme", {}))
    if args.seed is not None:
        simulation["seed"] = args.seed
        theme["seed"] = args.seed
    if args.simulate:
        simulation["fallback"] = True
    elif args.no_fallback:
        simulation["fallback"] = False
    if simulation:
        cfg["simulation"] = simulation
    if theme:
        cfg["theme"] = theme
    return cfg


def _build_store(config: dict[str, Any]) -> PickStore | None:
    store_cfg: dict[str, Any] = config.get("store", {})
    path = store_cfg.get("path")
    if not path:
        return None
    return PickStore(path, history_limit=int(store_cfg.get("history_limit", 30)))


def _print_saved(saved: StoredPick, *, fmt: str) -> None:
    if fmt == "JSON":
        print(saved.model_dump_json(indent=2))
    else:
        print(f"today's pick (stored): {saved.name} ({saved.code})  total_score={saved.total_score:.2f}")


def _configure_logging(*, verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=_LOG_FMT,
        datefmt=_DATE_FMT,
        stream=sys.stderr,
    )


def main() -> None:
    """スクリプト実行用 main。"""
    exit_code = run()
    raise SystemExit(exit_code)


if __name__ == "__main__":
    main()
