# src/stock_pick_engine/data/loaders/yfinance.py
"""yfinance 専用ローダ（外部I/Oを局所化）。

設計意図:
- 外部I/O（株価取得）をこのモジュールに閉じ込める。
- 返り値は PricePoint の日付昇順リスト（コアがそのまま扱える形）とする。
- 取得失敗は ExternalDataError、データ無しは SkipTicker として分類し、上位でスキップ可能にする。
- 終値が 0 以下・NaN の行はここで除外する（コアの前提）。
"""

from __future__ import annotations

import logging
import math
from datetime import date, datetime, timedelta
from typing import Any, Final, Protocol, cast

import pandas as pd
import yfinance as yf

from stock_pick_engine.contract.schemas.market import PricePoint
from stock_pick_engine.exceptions import DataError, ExternalDataError, SkipTicker

logger = logging.getLogger(__name__)

_REQUIRED_COLS: Final[list[str]] = ["Open", "High", "Low", "Close", "Volume"]


class _YFinanceDownload(Protocol):
    """yfinance の必要最小API（download）を型として定義する。

    yfinance は型スタブが不完全なことがあるため、mypy strict 下では
    Protocol + cast で外部境界を局所的に型付けする。
    """

    def download(
        self,
        *,
        tickers: str,
        start: datetime,
        end: datetime,
        interval: str,
        auto_adjust: bool,
        progress: bool,
        group_by: str,
        threads: bool,
    ) -> pd.DataFrame: ...


def to_yahoo_symbol(code: str, suffix: str = ".KS") -> str:
    """KRX 6 桁コードを Yahoo のティッカーへ変換する（例: 005930 -> 005930.KS）。"""
    code = code.strip()
    if "." in code:
        return code
    return f"{code}{suffix}"


class YFinanceTransport:
    """1 つの取引所サフィックスで日足を取得する transport.

    Args:
        suffix: ".KS"（KOSPI）/ ".KQ"（KOSDAQ）など。
        lookback_days: asof から遡る営業日数の目安（暦日で 2 倍取る）。
        interval: yfinance の interval。
    """

    def __init__(self, *, suffix: str = ".KS", lookback_days: int = 120, interval: str = "1d") -> None:
        self.suffix = suffix
        self.lookback_days = lookback_days
        self.interval = interval

    @property
    def name(self) -> str:
        return f"yfinance{self.suffix}"

    def __call__(self, code: str, *, asof: date) -> list[PricePoint]:
        return load_price_series(
            code,
            asof=asof,
            suffix=self.suffix,
            lookback_days=self.lookback_days,
            interval=self.interval,
        )


def load_price_series(
    code: str,
    *,
    asof: date,
    suffix: str = ".KS",
    lookback_days: int = 120,
    interval: str = "1d",
) -> list[PricePoint]:
    """yfinance で日足 OHLCV を取得し PricePoint 列へ変換する。

    Args:
        code: KRX 銘柄コード（例: "005930"）。
        asof: 基準日。これより後のデータは切り捨てる。
        suffix: Yahoo のティッカー接尾辞。
        lookback_days: 取得期間（営業日の目安）。
        interval: データ間隔。

    Returns:
        日付昇順の PricePoint リスト（終値 > 0 の行のみ）。

    Raises:
        ExternalDataError: ダウンロード失敗。
        SkipTicker: 取得結果が空、または有効行が残らない。
        DataError: 必須列の欠落。
    """
    if not isinstance(code, str) or not code.strip():
        raise DataError("code must be a non-empty string.")

    symbol = to_yahoo_symbol(code, suffix)
    start_dt, end_dt = _calc_date_range(asof=asof, lookback_days=lookback_days)

    # yfinance の型情報が不十分な環境でも mypy strict を通すための局所対処
    yfl = cast(_YFinanceDownload, yf)

    try:
        # yfinance の end は排他的なので翌日を指定
        df: pd.DataFrame = yfl.download(
            tickers=symbol,
            start=start_dt,
            end=end_dt,
            interval=interval,
            auto_adjust=True,
            progress=False,
            group_by="column",
            threads=False,
        )
    except Exception as e:  # noqa: BLE001
        raise ExternalDataError("yfinance download failed.", context={"symbol": symbol}) from e

    if df is None or df.empty:
        raise SkipTicker("No OHLCV data returned.", context={"symbol": symbol})

    df = _flatten_columns_if_needed(df)

    missing = [c for c in _REQUIRED_COLS if c not in df.columns]
    if missing:
        raise DataError("OHLCV missing required columns.", context={"symbol": symbol, "missing": missing})

    points = frame_to_price_points(df, asof=asof)
    if not points:
        raise SkipTicker("OHLCV became empty after cleaning.", context={"symbol": symbol})

    logger.debug("Loaded %d bars for %s", len(points), symbol)
    return points


def frame_to_price_points(df: pd.DataFrame, *, asof: date | None = None) -> list[PricePoint]:
    """yfinance 形式（DatetimeIndex + Open/High/Low/Close/Volume）を PricePoint 列へ落とす。

    - tz を落とし、asof 以前に切り詰める
    - 終値が NaN / 0 以下の行は除外する
    - 同一日付が重複した場合は後勝ち
    """
    frame = df.copy()
    if not isinstance(frame.index, pd.DatetimeIndex):
        frame.index = pd.to_datetime(frame.index)
    if frame.index.tz is not None:
        frame.index = frame.index.tz_convert(None)

    frame = frame[_REQUIRED_COLS].sort_index()
    if asof is not None:
        frame = frame.loc[frame.index.date <= asof]
    frame = frame[~frame.index.duplicated(keep="last")]

    points: list[PricePoint] = []
    for ts, row in frame.iterrows():
        close = _as_float(row["Close"])
        if close is None or close <= 0:
            continue
        points.append(
            PricePoint(
                date=cast(pd.Timestamp, ts).date(),
                open=_as_float(row["Open"]) or 0.0,
                high=_as_float(row["High"]) or 0.0,
                low=_as_float(row["Low"]) or 0.0,
                close=close,
                volume=int(_as_float(row["Volume"]) or 0),
            )
        )
    return points


def _as_float(value: Any) -> float | None:
    """NaN/inf/負値を None へ落とす（価格・出来高は非負）。"""
    try:
        v = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(v) or v < 0:
        return None
    return v


def _calc_date_range(*, asof: date, lookback_days: int) -> tuple[datetime, datetime]:
    """asof から取得期間を決める（営業日ではなく暦日で広めに取る）。"""
    start = datetime.combine(asof - timedelta(days=int(lookback_days * 2)), datetime.min.time())
    end = datetime.combine(asof + timedelta(days=1), datetime.min.time())
    return start, end


def _flatten_columns_if_needed(df: pd.DataFrame) -> pd.DataFrame:
    """MultiIndex columns（('Close', '005930.KS') 等）を 'Close' に潰す。"""
    if not isinstance(df.columns, pd.MultiIndex):
        return df

    out = df.copy()
    out.columns = out.columns.get_level_values(0)
    return out
