"""テーマ点数の提供者（注入される協調者）。

設計意図:
- テーマ分析 API は未実装のため、コアは themeScore を不透明な数値入力として受け取るだけにする。
- 乱数はここに閉じ込め、指標計算・スコアリングの決定論を保つ。
"""

from __future__ import annotations

from typing import Any, Mapping, Protocol

import numpy as np


class ThemeScoreProvider(Protocol):
    """theme_score(code) -> float を返す協調者."""

    def theme_score(self, code: str) -> float: ...


class RandomThemeScoreProvider:
    """[low, high) の一様乱数（既定 5〜15）. seed を与えれば再現可能."""

    def __init__(self, *, low: float = 5.0, high: float = 15.0, seed: int | None = None) -> None:
        if low > high:
            raise ValueError("low must be <= high.")
        self._low = low
        self._high = high
        self._rng = np.random.default_rng(seed)

    def theme_score(self, code: str) -> float:
        return float(self._rng.uniform(self._low, self._high))


class StaticThemeScoreProvider:
    """銘柄コード → 点数の固定表. 未登録コードは default."""

    def __init__(self, scores: Mapping[str, float], *, default: float = 0.0) -> None:
        self._scores = {str(k): float(v) for k, v in scores.items()}
        self._default = float(default)

    def theme_score(self, code: str) -> float:
        return self._scores.get(code, self._default)


def build_theme_provider(config: Mapping[str, Any]) -> ThemeScoreProvider:
    """resolver 済み config の theme セクションから provider を生成する."""
    theme: Mapping[str, Any] = config.get("theme", {}) or {}
    source = str(theme.get("source", "RANDOM")).upper()
    low = float(theme.get("low", 5.0))
    high = float(theme.get("high", 15.0))

    if source == "STATIC":
        # 未登録銘柄は帯域の中央値で中立に扱う
        return StaticThemeScoreProvider(theme.get("scores", {}) or {}, default=(low + high) / 2.0)

    return RandomThemeScoreProvider(low=low, high=high, seed=theme.get("seed"))
