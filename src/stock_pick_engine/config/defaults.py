"""デフォルト設定（最小）。

設計意図:
- 日次の銘柄選定を動かすための「最低限の前提」を定義する。
- 環境依存・I/O・動的解決は行わない（resolver が責務を持つ）。
- 指標期間と重みは選定ルールの正準値。上書きは可能だが推奨しない。
"""

from __future__ import annotations


# ====================
# Universe / data
# ====================

UNIVERSE_DEFAULTS: dict[str, object] = {
    "universe": {
        "source": "STATIC",  # universe/kr.py の固定リスト
    },
}

DATA_DEFAULTS: dict[str, object] = {
    "data": {
        # 60 日移動平均が計算できる程度に暦日で広めに取る
        "lookback_days": 120,
        "interval": "1d",
        # KOSPI -> KOSDAQ の順に試す
        "suffixes": [".KS", ".KQ"],
        "cache_ttl_seconds": 300,
    },
}

# ====================
# Indicators / scoring
# ====================

INDICATOR_DEFAULTS: dict[str, object] = {
    "indicators": {
        "sma_short": 20,
        "sma_long": 60,
        "rsi_period": 14,
        "macd_fast": 12,
        "macd_slow": 26,
        "volume_window": 20,
        "volatility_period": 20,
        "trading_days": 252,
    },
}

SCORING_DEFAULTS: dict[str, object] = {
    "scoring": {
        "weights": {
            "volatility": 0.3,
            "volume_ratio": 0.4,
            "theme": 0.2,
            "technical": 0.1,
        },
        "thresholds": {
            "rsi_oversold": 30.0,
            "rsi_overbought": 70.0,
            "volume_surge": 150.0,
            "volume_increase": 100.0,
            "max_score": 10.0,
        },
    },
}

# ====================
# Collaborators
# ====================

THEME_DEFAULTS: dict[str, object] = {
    "theme": {
        "source": "RANDOM",  # RANDOM | STATIC
        "low": 5.0,
        "high": 15.0,
        "seed": None,
        "scores": {},
    },
}

SIMULATION_DEFAULTS: dict[str, object] = {
    "simulation": {
        "fallback": True,  # 実データで選定できない場合に模擬データで再実行する
        "length": 90,
        "seed": None,
    },
}

STORE_DEFAULTS: dict[str, object] = {
    "store": {
        "path": None,  # None ならピックを保存しない
        "history_limit": 30,
    },
}

# ====================
# Report defaults
# ====================

REPORT_DEFAULTS: dict[str, object] = {
    "format": "TABLE",
}
