"""設定ファイルローダ（I/O 境界）。

設計意図:
- JSON/YAML の読み込み（I/O）に責務を限定する。
- 合成・正規化・検証は resolver / schemas に寄せる。
- パス未指定時は環境変数 STOCK_PICK_CONFIG を参照する（CLI/cron 共通）。
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

import yaml

from stock_pick_engine.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "STOCK_PICK_CONFIG"


def load_config(path: str | Path | None = None) -> dict[str, Any]:
    """設定ファイルを読み込む（JSON / YAML）。

    Args:
        path: 設定ファイルパス。None の場合は環境変数 STOCK_PICK_CONFIG、
            それも無ければ空 dict（全て既定値）を返す。

    Returns:
        読み込まれた設定（辞書）。

    Raises:
        ConfigurationError: ファイルが存在しない、形式不正、読み込み失敗など。
    """
    if path is None:
        env_path = os.environ.get(CONFIG_ENV_VAR, "").strip()
        if not env_path:
            return {}
        path = env_path

    p = Path(path)
    if not p.is_file():
        raise ConfigurationError("Config file not found.", context={"path": str(p)})

    suffix = p.suffix.lower()
    if suffix == ".json":
        loader = _load_json
    elif suffix in {".yml", ".yaml"}:
        loader = _load_yaml
    else:
        raise ConfigurationError("Unsupported config format.", context={"suffix": suffix})

    try:
        data = loader(p)
    except ConfigurationError:
        raise
    except OSError as e:
        raise ConfigurationError("Failed to read config.", context={"path": str(p)}) from e

    logger.debug("Loaded config from %s (%d top-level keys)", p, len(data))
    return data


def _load_json(path: Path) -> dict[str, Any]:
    """JSON を読み込む。"""
    try:
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError("Config root must be a JSON object (dict).")

    return data


def _load_yaml(path: Path) -> dict[str, Any]:
    """YAML を読み込む。空ファイルは空 dict。"""
    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML: {e}") from e

    if data is None:
        return {}

    if not isinstance(data, dict):
        raise ConfigurationError("Config root must be a YAML mapping (dict).")

    return data
