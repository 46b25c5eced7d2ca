"""Stock Pick Engine における例外定義モジュール.

Purpose:
    - 設定不備や契約違反を明確に区別する（利用者/開発者が原因を特定しやすい）
    - パイプライン制御（銘柄スキップ / バッチ停止）を明示する

Notes:
    - 例外メッセージは英語（ログ/CI の一貫性）。
    - 指標計算のデータ不足は例外ではなく None（欠損）で表現する。ここに定義しない。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Mapping

ErrorSeverity = Literal["error", "skip", "fatal"]


@dataclass(eq=False, slots=True)
class StockPickEngineError(Exception):
    """プロジェクト共通の基底例外.

    Attributes:
        - message: 例外メッセージ（英語）
        - code: 機械判定用の短い識別子
        - severity: パイプライン上の重要度（error/skip/fatal）
        - context: 追加情報（ticker, step など任意）
    """

    message: str
    code: str = "SPE_ERROR"
    severity: ErrorSeverity = "error"
    context: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        if not self.context:
            return self.message
        extra = ", ".join(f"{k}={v}" for k, v in self.context.items())
        return f"{self.message} ({extra})"

    def with_context(self, **kwargs: Any) -> "StockPickEngineError":
        """コンテキストを追加した同型例外を返す（raise はしない）."""
        merged = dict(self.context)
        merged.update(kwargs)
        return type(self)(self.message, context=merged)


class ContractError(StockPickEngineError):
    """呼び出し契約違反（開発者/利用者の誤用）.

    Examples:
        - 必須 service を注入せずにパイプラインを実行する
        - スキーマを満たさない入力を渡す
    """

    def __init__(self, message: str, *, context: Mapping[str, Any] | None = None) -> None:
        super().__init__(
            message=message,
            code="CONTRACT_ERROR",
            severity="fatal",
            context=dict(context or {}),
        )


class ConfigurationError(StockPickEngineError):
    """設定不備（起動前に検出したい種類のエラー）."""

    def __init__(self, message: str, *, context: Mapping[str, Any] | None = None) -> None:
        super().__init__(
            message=message,
            code="CONFIGURATION_ERROR",
            severity="fatal",
            context=dict(context or {}),
        )


class DataError(StockPickEngineError):
    """データ起因のエラー（列欠損/形式不正など）."""

    def __init__(self, message: str, *, context: Mapping[str, Any] | None = None) -> None:
        super().__init__(
            message=message,
            code="DATA_ERROR",
            severity="error",
            context=dict(context or {}),
        )


class ExternalDataError(DataError):
    """外部データ取得失敗（Examples: yfinance 失敗、レート制限、ネットワーク等）."""

    def __init__(self, message: str, *, context: Mapping[str, Any] | None = None) -> None:
        super().__init__(message, context=context)
        self.code = "EXTERNAL_DATA_ERROR"


class SkipTicker(StockPickEngineError):
    """当該銘柄をスキップするための制御例外.

    Examples:
        - OHLCV が空
        - 有効な終値（> 0）が 1 本も残らない
    """

    def __init__(self, message: str, *, context: Mapping[str, Any] | None = None) -> None:
        super().__init__(
            message=message,
            code="SKIP_TICKER",
            severity="skip",
            context=dict(context or {}),
        )


class StorageError(StockPickEngineError):
    """ピック保存先（JSON ファイル）の読み書き失敗."""

    def __init__(self, message: str, *, context: Mapping[str, Any] | None = None) -> None:
        super().__init__(
            message=message,
            code="STORAGE_ERROR",
            severity="error",
            context=dict(context or {}),
        )


class FatalPipelineError(StockPickEngineError):
    """バッチ全体を停止すべき致命的エラー.

    Examples:
        - 未分類例外（契約外）
        - ランキング結果と候補集合の不整合
    """

    def __init__(self, message: str, *, context: Mapping[str, Any] | None = None) -> None:
        super().__init__(
            message=message,
            code="FATAL_PIPELINE_ERROR",
            severity="fatal",
            context=dict(context or {}),
        )
