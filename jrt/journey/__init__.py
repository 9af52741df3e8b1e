"""
journey パッケージ — ジャーニースクリプトの再生ランタイム

スイート形式のジャーニーファイルは @journey デコレータで関数を登録する::

    from jrt.journey import journey

    @journey("Login")
    def login(page, context):
        page.goto("https://example.com/login")
        page.fill("#email", "user@example.com")

インライン形式は page / context を前提とした文の並びで、
inline_journey() で1つのジャーニーとして扱う。
"""

from __future__ import annotations

import logging
import runpy
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable

logger = logging.getLogger(__name__)


@dataclass
class Journey:
    """登録されたジャーニー。

    Attributes:
        name: ジャーニー名
        func: page, context を受け取る関数
    """

    name: str
    func: Callable[[Any, Any], Any]


# collect_journeys() の実行中に @journey が登録先として使う
_registry: list[Journey] = []


def journey(name: str) -> Callable[[Callable[[Any, Any], Any]], Callable[[Any, Any], Any]]:
    """関数をジャーニーとして登録するデコレータ。

    Args:
        name: ジャーニー名

    Returns:
        デコレータ（関数自体は変更しない）
    """
    def decorator(func: Callable[[Any, Any], Any]) -> Callable[[Any, Any], Any]:
        _registry.append(Journey(name=name, func=func))
        return func

    return decorator


def collect_journeys(path: Path) -> list[Journey]:
    """ジャーニーファイルを実行し、登録されたジャーニーを返す。

    Args:
        path: ジャーニーファイルのパス

    Returns:
        定義順のジャーニーリスト
    """
    _registry.clear()
    try:
        runpy.run_path(str(path), run_name="__journey__")
        journeys = list(_registry)
    finally:
        _registry.clear()
    logger.info("%d 件のジャーニーを読み込みました: %s", len(journeys), path)
    return journeys


def inline_journey(source: str, name: str = "inline") -> Journey:
    """インライン形式のソースを1つのジャーニーに包む。

    構文エラーは実行時にジャーニーの失敗として扱われる。

    Args:
        source: page / context を使う文の並び
        name: ジャーニー名

    Returns:
        ジャーニー
    """
    def run_inline(page: Any, context: Any) -> None:
        code = compile(source, "<inline>", "exec")
        exec(code, {"__name__": "__journey__", "page": page, "context": context})

    return Journey(name=name, func=run_inline)


__all__ = ["Journey", "collect_journeys", "inline_journey", "journey"]
