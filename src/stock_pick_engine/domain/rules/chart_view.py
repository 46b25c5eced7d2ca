"""Rules: text table views for the ranking, indicators and price series."""
from __future__ import annotations

from typing import Sequence

from tabulate import tabulate # type: ignore

from stock_pick_engine.contract.schemas.market import PricePoint
from stock_pick_engine.contract.schemas.reports import CandidateSummary, PickReport, StoredPick


def format_ranking_table(
    *,
    ranking: Sequence[CandidateSummary],
    top_n: int = 10,
    tablefmt: str = "github",
) -> str:
    """候補の順位表を整形する（top_n <= 0 なら全件）."""
    rows_src = list(ranking) if top_n <= 0 else list(ranking)[:top_n]

    headers = ["rank", "code", "name", "close", "chg%", "vol%", "volume%", "theme", "tech", "total"]
    rows: list[list[object]] = []
    for s in rows_src:
        ind = s.indicators
        rows.append(
            [
                s.rank,
                s.code,
                s.name + (" *" if s.simulated else ""),
                s.last_close,
                s.change_percent,
                ind.volatility,
                ind.volume_ratio,
                s.theme_score,
                s.technical_score,
                s.total_score,
            ]
        )

    return tabulate(rows, headers=headers, tablefmt=tablefmt, floatfmt=".2f", missingval="-")


def format_indicators_table(*, summary: CandidateSummary, tablefmt: str = "github") -> str:
    """1 銘柄の指標を縦持ちで整形する（欠損は "-"）."""
    ind = summary.indicators
    macd = ind.macd
    rows: list[list[object]] = [
        ["sma20", ind.sma20],
        ["sma60", ind.sma60],
        ["rsi14", ind.rsi14],
        ["macd", macd.line if macd is not None else None],
        ["macd_signal", macd.signal if macd is not None else None],
        ["macd_hist", macd.histogram if macd is not None else None],
        ["volume_ratio", ind.volume_ratio],
        ["volatility", ind.volatility],
    ]
    return tabulate(rows, headers=["indicator", "value"], tablefmt=tablefmt, floatfmt=".4f", missingval="-")


def format_price_table(
    *,
    price_series: Sequence[PricePoint],
    last_n: int = 20,
    tablefmt: str = "github",
) -> str:
    """日次 OHLCV を整形する（直近 last_n 件、0 以下なら全件）."""
    points = list(price_series)
    if last_n > 0:
        points = points[-last_n:]

    headers = ["date", "open", "high", "low", "close", "volume"]
    rows = [[p.date.isoformat(), p.open, p.high, p.low, p.close, p.volume] for p in points]
    return tabulate(rows, headers=headers, tablefmt=tablefmt, floatfmt=".2f")


def format_history_table(*, history: Sequence[StoredPick], tablefmt: str = "github") -> str:
    """保存済み履歴を整形する（新しい順）."""
    headers = ["date", "code", "name", "price", "chg%", "total"]
    rows = [
        [h.date.isoformat(), h.code, h.name, h.price, h.change_percent, h.total_score]
        for h in history
    ]
    return tabulate(rows, headers=headers, tablefmt=tablefmt, floatfmt=".2f", missingval="-")


def format_report(report: PickReport, *, top_n: int = 10, tablefmt: str = "github") -> str:
    """レポート全体（選定銘柄 + 指標 + 順位表）をテキストにする."""
    lines: list[str] = [f"asof: {report.asof.isoformat()}  run_id: {report.run_id}"]

    if report.selected is None:
        lines.append(f"no selection: {report.no_selection_reason}")
        return "\n".join(lines)

    s = report.selected
    label = f"{s.name} ({s.code})"
    if s.sector:
        label += f" [{s.sector}]"
    lines.append(f"today's pick: {label}  total_score={s.total_score:.2f}")
    if report.degraded:
        lines.append("note: simulated series were used (real data unavailable)")
    if report.skipped_codes:
        lines.append(f"skipped: {', '.join(report.skipped_codes)}")

    lines.append("")
    lines.append(format_indicators_table(summary=s, tablefmt=tablefmt))
    lines.append("")
    lines.append(format_ranking_table(ranking=report.ranking, top_n=top_n, tablefmt=tablefmt))
    return "\n".join(lines)
