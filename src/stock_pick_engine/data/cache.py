"""日次 OHLCV の TTL キャッシュ。

キーは「銘柄コード + 暦日」。同一日の再取得を TTL（既定 5 分）の間だけ抑止する。
インスタンス単位で保持し、モジュールグローバルな状態は持たない。
"""
from __future__ import annotations

import threading
import time
from datetime import date
from typing import Callable, Generic, TypeVar

T = TypeVar("T")


class DailyTTLCache(Generic[T]):
    """(code, day) -> value の TTL キャッシュ."""

    def __init__(self, ttl_seconds: float = 300, *, clock: Callable[[], float] = time.monotonic) -> None:
        self._ttl = float(ttl_seconds)
        self._clock = clock
        self._lock = threading.Lock()
        self._store: dict[str, tuple[float, T]] = {}

    @staticmethod
    def make_key(code: str, day: date) -> str:
        return f"stock_{code}_{day.isoformat()}"

    def get(self, code: str, day: date) -> T | None:
        """有効期限内の値を返す. 期限切れ/未登録は None."""
        key = self.make_key(code, day)
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return None
            created_at, value = entry
            if self._clock() - created_at >= self._ttl:
                del self._store[key]
                return None
            return value

    def set(self, code: str, day: date, value: T) -> None:
        """値を登録する. 同時に期限切れのエントリを掃除する."""
        if self._ttl <= 0:
            return
        with self._lock:
            now = self._clock()
            expired = [k for k, (created_at, _) in self._store.items() if now - created_at >= self._ttl]
            for k in expired:
                del self._store[k]
            self._store[self.make_key(code, day)] = (now, value)

    def clear(self) -> None:
        with self._lock:
            self._store.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)
