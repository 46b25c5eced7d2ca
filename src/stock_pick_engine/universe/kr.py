# src/stock_pick_engine/universe/kr.py
"""韓国株 Universe（固定リスト）。

設計意図:
- 日次選定の母集団として KRX 大型株 20 銘柄を固定で返す。
- config の universe.symbols で銘柄コードを上書きできる（名称は既知銘柄なら補完）。
- I/F（build_universe）は将来の動的 Universe でも維持する。
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping


@dataclass(frozen=True)
class Listing:
    """Universe の 1 銘柄（6 桁の KRX コード・銘柄名・業種）."""

    code: str
    name: str
    sector: str | None = None


_DEFAULT_KR_LISTINGS: tuple[Listing, ...] = (
    Listing("005930", "삼성전자", "전자"),
    Listing("000660", "SK하이닉스", "반도체"),
    Listing("035420", "NAVER", "IT"),
    Listing("051910", "LG화학", "화학"),
    Listing("005490", "POSCO홀딩스", "철강"),
    Listing("068270", "셀트리온", "바이오"),
    Listing("028260", "삼성물산", "무역"),
    Listing("373220", "LG에너지솔루션", "전지"),
    Listing("247540", "에코프로비엠", "전지소재"),
    Listing("086520", "에코프로", "전지소재"),
    Listing("003550", "LG", "전자"),
    Listing("066570", "LG전자", "전자"),
    Listing("017670", "SK텔레콤", "통신"),
    Listing("302440", "SK스퀘어", "투자"),
    Listing("105560", "KB금융", "금융"),
    Listing("055550", "신한지주", "금융"),
    Listing("005935", "삼성생명", "금융"),
    Listing("032830", "삼성화재", "금융"),
    Listing("078020", "금호석유", "화학"),
    Listing("009540", "현대제철", "철강"),
)

_BY_CODE: dict[str, Listing] = {item.code: item for item in _DEFAULT_KR_LISTINGS}


def build_universe(config: Mapping[str, Any] | None = None) -> list[Listing]:
    """韓国株 Universe を返す。

    Args:
        config: resolver 済み設定。universe.symbols があればそれを優先する。

    Returns:
        Listing のリスト（入力順 = ランキング同点時の優先順）。
    """
    cfg_universe: Any = (config or {}).get("universe", {})
    if isinstance(cfg_universe, dict):
        symbols = _coerce_symbols(cfg_universe.get("symbols"))
        if symbols:
            return [lookup_listing(code) for code in symbols]

    return list(_DEFAULT_KR_LISTINGS)


def lookup_listing(code: str) -> Listing:
    """既知コードなら既定の Listing、未知なら "종목 {code}" 名で返す。"""
    known = _BY_CODE.get(code)
    if known is not None:
        return known
    return Listing(code, f"종목 {code}")


def _coerce_symbols(value: Any) -> list[str]:
    """symbols を list[str] に正規化する（失敗時は空）。"""
    if not isinstance(value, list):
        return []

    out: list[str] = []
    for item in value:
        if isinstance(item, str):
            s = item.strip()
            if s:
                out.append(s)
    return out
