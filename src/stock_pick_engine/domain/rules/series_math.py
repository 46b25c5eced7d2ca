"""Rules: pure numeric helpers over a close-price series."""
from __future__ import annotations

from typing import Sequence

import numpy as np
import pandas as pd

Series = Sequence[float] | pd.Series


def as_float_series(values: Series) -> pd.Series:
    """任意の数値列を 0 始まり index の float64 Series に揃える."""
    if isinstance(values, pd.Series):
        return values.astype("float64").reset_index(drop=True)
    return pd.Series(list(values), dtype="float64")


def simple_moving_average(closes: Series, period: int) -> float | None:
    """直近 period 本の単純平均. 系列長不足なら None."""
    s = as_float_series(closes)
    if period <= 0 or len(s) < period:
        return None
    return float(s.iloc[-period:].mean())


def exponential_moving_average(closes: Series, period: int) -> float | None:
    """EMA の最終値. 系列長不足なら None.

    Notes:
        - 先頭値を初期値とし、系列全体に漸化式を適用する（SMA による助走なし）
        - ewm(span=period, adjust=False) と同値: m = 2 / (period + 1)
    """
    s = as_float_series(closes)
    if period <= 0 or len(s) < period:
        return None
    return float(s.ewm(span=period, adjust=False).mean().iloc[-1])


def log_returns(closes: Series) -> pd.Series:
    """ln(c[i] / c[i-1]) の系列（長さ len(closes) - 1）."""
    s = as_float_series(closes)
    if len(s) < 2:
        return pd.Series([], dtype="float64")
    ratio = s.iloc[1:].to_numpy() / s.iloc[:-1].to_numpy()
    return pd.Series(np.log(ratio), dtype="float64")
