# src/stock_pick_engine/storage/pick_store.py
"""「今日の銘柄」と履歴の JSON ファイル保存。

設計意図:
- 同じ暦日の再実行では保存済みの銘柄を再利用する（1 日 1 銘柄）。
- 履歴は新しい順に最大 history_limit 件（既定 30）だけ保持する。
- ファイル I/O はここに閉じ込め、失敗は StorageError に正規化する。
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from datetime import date
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from stock_pick_engine.contract.schemas.reports import StoredPick
from stock_pick_engine.exceptions import StorageError

logger = logging.getLogger(__name__)


class PickStore:
    """JSON ファイル 1 つに today / history を保持する.

    File layout::

        {"today": {...StoredPick...} | null, "history": [{...StoredPick...}, ...]}
    """

    def __init__(self, path: str | Path, *, history_limit: int = 30) -> None:
        if history_limit < 1:
            raise ValueError("history_limit must be >= 1.")
        self._path = Path(path)
        self._history_limit = history_limit

    @property
    def path(self) -> Path:
        return self._path

    def load_today(self, asof: date) -> StoredPick | None:
        """asof と同じ日付で保存された銘柄を返す. 日付が違えば None."""
        today = self._read().get("today")
        if today is None:
            return None
        pick = self._parse(today)
        if pick.date != asof:
            logger.debug("Stored pick is from %s, not %s", pick.date, asof)
            return None
        return pick

    def save_today(self, pick: StoredPick) -> None:
        """今日の銘柄を保存し、同時に履歴の先頭へ追加する."""
        data = self._read()
        data["today"] = pick.model_dump(mode="json")

        history = [h for h in data.get("history", []) if isinstance(h, dict)]
        history.insert(0, pick.model_dump(mode="json"))
        data["history"] = history[: self._history_limit]

        self._write(data)
        logger.info("Saved today's pick %s (%s) to %s", pick.name, pick.code, self._path)

    def clear_today(self) -> None:
        """今日の銘柄だけを消す（履歴は残す）."""
        data = self._read()
        if data.get("today") is None:
            return
        data["today"] = None
        self._write(data)

    def load_history(self) -> list[StoredPick]:
        """履歴を新しい順に返す."""
        return [self._parse(h) for h in self._read().get("history", [])]

    # -------------------------
    # I/O
    # -------------------------

    def _read(self) -> dict[str, Any]:
        if not self._path.exists():
            return {"today": None, "history": []}
        try:
            with self._path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError("Failed to read pick store.", context={"path": str(self._path)}) from e

        if not isinstance(data, dict):
            raise StorageError("Pick store root must be an object.", context={"path": str(self._path)})
        data.setdefault("today", None)
        data.setdefault("history", [])
        return data

    def _write(self, data: dict[str, Any]) -> None:
        """一時ファイルへ書いてから置き換える. 失敗時は一時ファイルを残さない."""
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=self._path.parent, prefix=".pick-", suffix=".json")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(data, f, ensure_ascii=False, indent=2)
                os.replace(tmp, self._path)
            except Exception:
                if os.path.exists(tmp):
                    os.unlink(tmp)
                raise
        except OSError as e:
            raise StorageError("Failed to write pick store.", context={"path": str(self._path)}) from e

    def _parse(self, raw: Any) -> StoredPick:
        try:
            return StoredPick.model_validate(raw)
        except ValidationError as e:
            raise StorageError("Corrupted pick record.", context={"path": str(self._path)}) from e
