"""
SessionController — 記録用ブラウザセッション管理

Playwright ブラウザの起動・終了・状態管理を担当する。
記録（または手動ブラウジング）1回分のブラウザと BrowserContext を保持し、
全ページが閉じられた時点でセッションを1度だけ終了する。

主な機能:
  - ブラウザと BrowserContext の起動
  - ページ生成と開始 URL の正規化・遷移
  - 全ページクローズ検出による自動終了
  - 外部からの停止要求（自動終了と競合しても終了処理は1回のみ）
  - ページ内ダイアログの自動クローズ
"""

from __future__ import annotations

import asyncio
import enum
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from playwright.async_api import Browser, BrowserContext, Dialog, Page

logger = logging.getLogger(__name__)

# スキームを補わない URL の接頭辞
_KNOWN_PREFIXES = ("http", "file://", "about:")


# ---------------------------------------------------------------------------
# エラー定義
# ---------------------------------------------------------------------------

class SessionLaunchError(Exception):
    """ブラウザセッションを起動できなかった場合のエラー。"""


class NavigationError(Exception):
    """開始ページへの遷移に失敗した場合のエラー。

    Attributes:
        target: 遷移先として解決された URL
    """

    def __init__(self, target: str, reason: str) -> None:
        self.target = target
        super().__init__(f"ページ遷移に失敗しました: {target} ({reason})")


# ---------------------------------------------------------------------------
# セッション状態
# ---------------------------------------------------------------------------

class SessionState(enum.Enum):
    """ブラウザセッションの状態。

    OPEN → CLOSING への遷移は request_close() だけが行う。
    """

    IDLE = "idle"
    LAUNCHING = "launching"
    OPEN = "open"
    CLOSING = "closing"
    CLOSED = "closed"


# ---------------------------------------------------------------------------
# URL 正規化
# ---------------------------------------------------------------------------

def resolve_target(target: str) -> str:
    """開始ページの指定を遷移可能な URL に正規化する。

    - 既存のローカルファイルなら file:// の絶対 URI
    - http / file:// / about: で始まらなければ http:// を補う
    - それ以外はそのまま

    Args:
        target: ユーザー指定の URL またはファイルパス

    Returns:
        遷移先 URL
    """
    path = Path(target)
    if path.exists():
        return path.resolve().as_uri()
    if not target.startswith(_KNOWN_PREFIXES):
        return "http://" + target
    return target


# ---------------------------------------------------------------------------
# SessionController 本体
# ---------------------------------------------------------------------------

class SessionController:
    """記録用ブラウザセッションの管理クラス。

    使用例::

        controller = SessionController(headed=True)
        await controller.open_session()
        await controller.open_page("example.com")
        await controller.wait_closed()
    """

    def __init__(
        self,
        headed: bool = True,
        channel: str = "chromium",
        viewport: tuple[int, int] = (1280, 720),
    ) -> None:
        """SessionController を初期化する。

        Args:
            headed: True でブラウザウィンドウを表示
            channel: ブラウザチャンネル（chromium / chrome / msedge）
            viewport: ビューポートサイズ (幅, 高さ)
        """
        self._headed = headed
        self._channel = channel
        self._viewport = viewport
        self._state: SessionState = SessionState.IDLE
        self._pw_instance: Optional[object] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self._shutdown_task: Optional[asyncio.Task] = None
        self._stop_requested = False
        self._disconnected = asyncio.Event()

    @property
    def state(self) -> SessionState:
        """現在のセッション状態を返す。"""
        return self._state

    @property
    def is_open(self) -> bool:
        """セッションが開いているかどうかを返す。"""
        return self._state == SessionState.OPEN

    @property
    def browser(self) -> Optional[Browser]:
        """現在の Browser を返す。未起動時は None。"""
        return self._browser

    @property
    def context(self) -> Optional[BrowserContext]:
        """現在の BrowserContext を返す。非オープン時は None。"""
        if not self.is_open:
            return None
        return self._context

    # -------------------------------------------------------------------
    # 起動
    # -------------------------------------------------------------------

    async def open_session(self) -> BrowserContext:
        """ブラウザと BrowserContext を起動する。

        Returns:
            生成した BrowserContext

        Raises:
            RuntimeError: 前のセッションがまだ終了していない場合
            SessionLaunchError: ブラウザを起動できなかった場合
        """
        if self._state in (SessionState.LAUNCHING, SessionState.OPEN, SessionState.CLOSING):
            raise RuntimeError(
                "既にアクティブなセッションがあります。"
                "先に close() を呼んでください。"
            )

        self._state = SessionState.LAUNCHING
        self._disconnected.clear()
        self._stop_requested = False
        logger.info("ブラウザを起動しています... (headed=%s, channel=%s)", self._headed, self._channel)

        try:
            from playwright.async_api import async_playwright

            pw = await async_playwright().start()
            self._pw_instance = pw

            launch_kwargs: dict = {"headless": not self._headed}
            if self._channel != "chromium":
                launch_kwargs["channel"] = self._channel
            self._browser = await pw.chromium.launch(**launch_kwargs)
            self._browser.on("disconnected", self._on_disconnected)

            self._context = await self._browser.new_context(
                viewport={"width": self._viewport[0], "height": self._viewport[1]},
            )
            self._context.on("page", self._on_page)
        except Exception as exc:
            logger.exception("ブラウザの起動に失敗しました")
            await self._release()
            self._state = SessionState.IDLE
            raise SessionLaunchError(f"ブラウザを起動できませんでした: {exc}") from exc

        self._state = SessionState.OPEN
        logger.info("ブラウザを起動しました")
        if self._stop_requested:
            self.request_close()
        return self._context

    async def open_page(self, target: Optional[str] = None) -> Page:
        """新しいページを生成し、指定があれば遷移する。

        遷移に失敗してもセッションは閉じない。

        Args:
            target: 開始 URL またはローカルファイルパス

        Returns:
            生成した Page

        Raises:
            RuntimeError: セッションが開いていない場合
            NavigationError: 遷移に失敗した場合
        """
        if not self.is_open or self._context is None:
            raise RuntimeError(
                "アクティブなセッションがありません。"
                "先に open_session() を呼んでください。"
            )

        page = await self._context.new_page()
        if target:
            url = resolve_target(target)
            try:
                await page.goto(url)
            except Exception as exc:
                logger.warning("ページ遷移に失敗しました: %s (%s)", url, exc)
                raise NavigationError(url, str(exc)) from exc
            logger.info("ページを開きました: %s", url)
        return page

    # -------------------------------------------------------------------
    # イベントハンドラ
    # -------------------------------------------------------------------

    def _on_page(self, page: Page) -> None:
        page.on("dialog", self._on_dialog)
        page.on("close", self._on_page_close)

    def _on_dialog(self, dialog: Dialog) -> None:
        # ダイアログは常に閉じる
        logger.debug("ダイアログを自動で閉じます: %s", dialog.type)
        asyncio.ensure_future(self._dismiss(dialog))

    async def _dismiss(self, dialog: Dialog) -> None:
        try:
            await dialog.dismiss()
        except Exception as exc:
            logger.debug("ダイアログのクローズをスキップ: %s", exc)

    def _on_page_close(self, page: Page) -> None:
        if self.has_open_pages():
            return
        logger.info("全ページが閉じられたためセッションを終了します")
        self.request_close()

    def _on_disconnected(self, browser: Optional[Browser] = None) -> None:
        logger.info("ブラウザとの接続が切れました")
        self._disconnected.set()
        # ユーザーがブラウザ自体を終了した場合も Playwright を解放する
        self.request_close()

    def has_open_pages(self) -> bool:
        """ブラウザ内のいずれかの Context にページが残っているかを返す。"""
        if self._browser is None:
            return False
        return any(len(ctx.pages) > 0 for ctx in self._browser.contexts)

    # -------------------------------------------------------------------
    # 終了
    # -------------------------------------------------------------------

    def request_close(self) -> bool:
        """セッション終了を要求する（1回限りのラッチ）。

        OPEN 状態からの最初の呼び出しだけが終了処理を開始する。

        Returns:
            この呼び出しで終了処理を開始した場合は True
        """
        if self._state != SessionState.OPEN:
            return False

        self._state = SessionState.CLOSING
        self._shutdown_task = asyncio.ensure_future(self._shutdown())
        return True

    def stop(self) -> None:
        """外部からの停止要求。自動終了と競合しても安全。

        起動中に届いた場合は起動完了直後に終了する。
        """
        if self._state == SessionState.LAUNCHING:
            self._stop_requested = True
            return
        if self.request_close():
            logger.info("停止要求によりセッションを終了します")

    async def close(self) -> None:
        """セッションを終了し、終了処理の完了を待つ。"""
        self.request_close()
        if self._shutdown_task is not None:
            await self._shutdown_task
        elif self._state == SessionState.IDLE:
            self._state = SessionState.CLOSED

    async def wait_closed(self) -> None:
        """ブラウザとの接続が切れるまで待機する。"""
        await self._disconnected.wait()

    async def _shutdown(self) -> None:
        logger.info("ブラウザを終了しています...")
        try:
            if self._browser is not None:
                await self._browser.close()
        except Exception:
            logger.exception("ブラウザの終了中にエラーが発生しました")
        finally:
            await self._release()
            self._state = SessionState.CLOSED
            self._disconnected.set()
            logger.info("ブラウザを終了しました")

    async def _release(self) -> None:
        try:
            if self._pw_instance is not None and hasattr(self._pw_instance, "stop"):
                await self._pw_instance.stop()
        except Exception:
            logger.exception("Playwright の停止中にエラーが発生しました")
        finally:
            self._browser = None
            self._context = None
            self._pw_instance = None
