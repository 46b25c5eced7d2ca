"""設定リゾルバ（defaults + user config の合成と正規化）。

設計意図:
- defaults（不変）と user config（可変）を合成し、パイプラインで扱いやすい形へ正規化する。
- I/O は loader に限定し、本モジュールは純粋関数として扱えるようにする。
- indicators / scoring は ScoringPolicy（pydantic）で検証し、それ以外は最低限の型・範囲をここで担保する。
"""

from __future__ import annotations

import math
from copy import deepcopy
from typing import Any, Mapping

from pydantic import ValidationError

from stock_pick_engine.config.defaults import (
    DATA_DEFAULTS,
    INDICATOR_DEFAULTS,
    REPORT_DEFAULTS,
    SCORING_DEFAULTS,
    SIMULATION_DEFAULTS,
    STORE_DEFAULTS,
    THEME_DEFAULTS,
    UNIVERSE_DEFAULTS,
)
from stock_pick_engine.contract.schemas.policy import ScoringPolicy
from stock_pick_engine.exceptions import ConfigurationError

_ALL_DEFAULTS: tuple[dict[str, object], ...] = (
    UNIVERSE_DEFAULTS,
    DATA_DEFAULTS,
    INDICATOR_DEFAULTS,
    SCORING_DEFAULTS,
    THEME_DEFAULTS,
    SIMULATION_DEFAULTS,
    STORE_DEFAULTS,
    REPORT_DEFAULTS,
)


def resolve_config(user_config: Mapping[str, Any] | None = None) -> dict[str, Any]:
    """defaults と user config を合成し、正規化済み config を返す。

    Args:
        user_config: loader が読み込んだユーザー設定（dict 相当）。

    Returns:
        正規化済み設定 dict（pipeline/context.py に渡せる形）。

    Raises:
        ConfigurationError: 設定の型が不正、値が許容範囲外など。
    """
    if user_config is None:
        user_config_dict: dict[str, Any] = {}
    else:
        if not isinstance(user_config, Mapping):
            raise ConfigurationError("user_config must be a mapping.")
        user_config_dict = dict(user_config)

    base: dict[str, Any] = {}
    for defaults in _ALL_DEFAULTS:
        base = _deep_merge(base, deepcopy(defaults))

    merged = _deep_merge(base, user_config_dict)
    return _normalize_config(merged)


def _deep_merge(base: dict[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """辞書を deep merge する（override が優先）。

    - dict 同士は再帰的に merge
    - それ以外（list/str/int/...）は override で上書き
    """
    if not isinstance(override, Mapping):
        raise ConfigurationError("override must be a mapping.")

    result = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, Mapping):
            result[key] = _deep_merge(result[key], value)
        elif isinstance(value, Mapping):
            result[key] = dict(value)
        else:
            result[key] = value
    return result


def _normalize_config(config: dict[str, Any]) -> dict[str, Any]:
    """最小の正規化（型・範囲・必須キー補完）を行う。"""
    cfg = dict(config)

    # ---- universe ----
    universe = _ensure_dict(cfg.get("universe"), name="universe")
    source = universe.get("source") or "STATIC"
    if not isinstance(source, str) or source.strip().upper() not in {"STATIC"}:
        raise ConfigurationError("universe.source must be one of: STATIC.")
    universe["source"] = source.strip().upper()
    if "symbols" in universe:
        universe["symbols"] = _as_symbol_list(universe["symbols"], name="universe.symbols")
    cfg["universe"] = universe

    # ---- data ----
    data = _ensure_dict(cfg.get("data"), name="data")
    data["lookback_days"] = _as_int(data.get("lookback_days"), name="data.lookback_days", min_value=10, max_value=5000)
    interval = data.get("interval")
    if not isinstance(interval, str) or not interval.strip():
        raise ConfigurationError("data.interval must be a non-empty string.")
    data["interval"] = interval.strip()
    data["suffixes"] = _as_symbol_list(data.get("suffixes"), name="data.suffixes")
    if not data["suffixes"]:
        raise ConfigurationError("data.suffixes must not be empty.")
    data["cache_ttl_seconds"] = _as_int(
        data.get("cache_ttl_seconds"), name="data.cache_ttl_seconds", min_value=0, max_value=86400
    )
    cfg["data"] = data

    # ---- indicators / scoring（ScoringPolicy で厳密検証） ----
    cfg["indicators"] = _ensure_dict(cfg.get("indicators"), name="indicators")
    cfg["scoring"] = _ensure_dict(cfg.get("scoring"), name="scoring")
    try:
        ScoringPolicy.from_config(cfg)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid indicators/scoring config: {e}") from e

    # ---- theme ----
    theme = _ensure_dict(cfg.get("theme"), name="theme")
    theme_source = theme.get("source")
    if not isinstance(theme_source, str) or theme_source.strip().upper() not in {"RANDOM", "STATIC"}:
        raise ConfigurationError("theme.source must be one of: RANDOM, STATIC.")
    theme["source"] = theme_source.strip().upper()
    theme["low"] = _as_float(theme.get("low"), name="theme.low")
    theme["high"] = _as_float(theme.get("high"), name="theme.high")
    if theme["low"] > theme["high"]:
        raise ConfigurationError("theme.low must be <= theme.high.")
    theme["seed"] = _as_optional_int(theme.get("seed"), name="theme.seed")
    scores = _ensure_dict(theme.get("scores"), name="theme.scores")
    theme["scores"] = {str(k): _as_float(v, name=f"theme.scores.{k}") for k, v in scores.items()}
    cfg["theme"] = theme

    # ---- simulation ----
    simulation = _ensure_dict(cfg.get("simulation"), name="simulation")
    simulation["fallback"] = _as_bool(simulation.get("fallback"), name="simulation.fallback")
    simulation["length"] = _as_int(simulation.get("length"), name="simulation.length", min_value=2, max_value=5000)
    simulation["seed"] = _as_optional_int(simulation.get("seed"), name="simulation.seed")
    cfg["simulation"] = simulation

    # ---- store ----
    store = _ensure_dict(cfg.get("store"), name="store")
    path = store.get("path")
    if path is not None and (not isinstance(path, str) or not path.strip()):
        raise ConfigurationError("store.path must be a non-empty string or null.")
    store["path"] = path.strip() if isinstance(path, str) else None
    store["history_limit"] = _as_int(store.get("history_limit"), name="store.history_limit", min_value=1, max_value=1000)
    cfg["store"] = store

    # ---- report ----
    fmt = cfg.get("format")
    if not isinstance(fmt, str) or fmt.strip().upper() not in {"TABLE", "JSON"}:
        raise ConfigurationError("format must be one of: TABLE, JSON.")
    cfg["format"] = fmt.strip().upper()

    return cfg


def _ensure_dict(value: Any, *, name: str) -> dict[str, Any]:
    """dict を要求し、None なら空 dict とする。"""
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigurationError(f"{name} must be a dict.")
    return dict(value)


def _as_bool(value: Any, *, name: str) -> bool:
    """bool を要求（厳格）。"""
    if isinstance(value, bool):
        return value
    raise ConfigurationError(f"{name} must be a bool.")


def _as_int(value: Any, *, name: str, min_value: int, max_value: int) -> int:
    """int を要求し、範囲チェックを行う（厳格）。"""
    if not isinstance(value, int) or isinstance(value, bool):
        raise ConfigurationError(f"{name} must be an int.")
    if value < min_value or value > max_value:
        raise ConfigurationError(f"{name} out of range: {value} (allowed: {min_value}-{max_value}).")
    return value


def _as_optional_int(value: Any, *, name: str) -> int | None:
    if value is None:
        return None
    if not isinstance(value, int) or isinstance(value, bool):
        raise ConfigurationError(f"{name} must be an int or null.")
    return value


def _as_float(value: Any, *, name: str) -> float:
    """有限の数値を要求し float へ寄せる（bool・NaN・inf は拒否）。"""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigurationError(f"{name} must be a number.")
    out = float(value)
    if not math.isfinite(out):
        raise ConfigurationError(f"{name} must be finite: {value}.")
    return out


def _as_symbol_list(value: Any, *, name: str) -> list[str]:
    """文字列リストを要求し、空白を除去する。"""
    if not isinstance(value, list):
        raise ConfigurationError(f"{name} must be a list of strings.")

    out: list[str] = []
    for item in value:
        if not isinstance(item, str):
            raise ConfigurationError(f"{name} must contain only strings.")
        s = item.strip()
        if s:
            out.append(s)
    return out
