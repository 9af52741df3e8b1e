"""
ActionCapture — ブラウザ操作の生イベント収集

BrowserContext に記録用 JavaScript（injected.js）とバインディングを登録し、
ページ側で発生した操作を ActionInContext（生イベント）として通知する。

主な機能:
  - ページごとのエイリアス採番（page, page1, page2, ...）
  - openPage / closePage シグナルの発行
  - メインフレーム遷移の navigate イベント化
    （直前の操作が引き起こした遷移は記録しない）
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable

from pydantic import ValidationError

from .actions import ActionInContext

if TYPE_CHECKING:
    from playwright.async_api import BrowserContext, Frame, Page

logger = logging.getLogger(__name__)

# 注入スクリプトのパス
_INJECTED_JS_PATH = Path(__file__).parent / "injected.js"

# ページ側から呼び出すバインディング名（injected.js と一致させる）
BINDING_NAME = "__jrt_record_action"


class ActionCapture:
    """BrowserContext 上の操作を生イベントとして通知するキャプチャ。

    使用例::

        capture = ActionCapture(dedup.on_action)
        await capture.attach(context)
    """

    def __init__(
        self,
        on_event: Callable[[ActionInContext], Any],
        navigation_grace: float = 1.5,
    ) -> None:
        """キャプチャを初期化する。

        Args:
            on_event: 生イベントの通知先
            navigation_grace: 操作直後の遷移を操作由来とみなす秒数
        """
        self._on_event = on_event
        self._navigation_grace = navigation_grace
        self._aliases: dict[Any, str] = {}
        self._page_count = 0
        self._last_interaction: dict[str, float] = {}

    def alias_for(self, page: Page) -> str:
        """ページのエイリアスを返す。未登録なら採番する。"""
        alias = self._aliases.get(page)
        if alias is None:
            alias = self._register(page)
        return alias

    async def attach(self, context: BrowserContext) -> None:
        """BrowserContext に記録用スクリプトとバインディングを登録する。

        Args:
            context: 記録対象の BrowserContext
        """
        script = _INJECTED_JS_PATH.read_text(encoding="utf-8")
        await context.expose_binding(BINDING_NAME, self._on_binding)
        await context.add_init_script(script)
        context.on("page", self._on_page)
        for page in context.pages:
            self._on_page(page)
        logger.debug("記録用スクリプトを登録しました")

    # -------------------------------------------------------------------
    # ページ管理
    # -------------------------------------------------------------------

    def _register(self, page: Page) -> str:
        alias = "page" if self._page_count == 0 else f"page{self._page_count}"
        self._page_count += 1
        self._aliases[page] = alias
        return alias

    def _on_page(self, page: Page) -> None:
        if page in self._aliases:
            return
        alias = self._register(page)
        page.on("framenavigated", lambda frame: self._on_navigated(page, frame))
        page.on("close", lambda _page: self._emit(alias, {"name": "closePage"}))
        self._emit(alias, {"name": "openPage", "url": page.url or ""})

    # -------------------------------------------------------------------
    # イベント変換
    # -------------------------------------------------------------------

    def _on_binding(self, source: dict, payload: Any) -> None:
        page = source.get("page") if isinstance(source, dict) else None
        if page is None or not isinstance(payload, dict):
            logger.warning("不正なアクションデータ: %s", payload)
            return
        alias = self.alias_for(page)
        self._last_interaction[alias] = time.monotonic()
        self._emit(alias, payload)

    def _on_navigated(self, page: Page, frame: Frame) -> None:
        if frame.parent_frame is not None:
            return
        url = frame.url
        if not url or url == "about:blank":
            return

        alias = self.alias_for(page)
        last = self._last_interaction.get(alias)
        if last is not None and time.monotonic() - last < self._navigation_grace:
            # click / press による遷移は操作自体で再現される
            logger.debug("操作由来の遷移をスキップ: %s", url)
            return
        self._emit(alias, {"name": "navigate", "url": url})

    def _emit(self, alias: str, action: dict) -> None:
        try:
            event = ActionInContext(pageAlias=alias, action=action)
        except ValidationError as exc:
            logger.warning("アクションを解釈できません: %s (%s)", action, exc)
            return
        logger.debug("記録: %s %s", alias, event.action.name)
        self._on_event(event)
