"""
JourneyRecorder — ブラウザ操作の記録とスクリプト生成

1回の記録を最初から最後まで実行する。

処理の流れ:
  1. SessionController でブラウザを起動
  2. ActionCapture を BrowserContext に登録し、生イベントを
     ActionDeduplicator に流す
  3. 開始ページを開く
  4. ブラウザが閉じられる（全ページクローズ / 停止要求）まで待機
  5. コンパクト化したアクション列を ScriptWriter でソースに変換
"""

from __future__ import annotations

import logging
from typing import Optional

from ..config import JrtConfig
from .capture import ActionCapture
from .dedup import ActionDeduplicator
from .script_writer import ScriptWriter
from .session import NavigationError, SessionController

logger = logging.getLogger(__name__)


class JourneyRecorder:
    """ブラウザ操作を記録してジャーニースクリプトを生成するレコーダー。

    record() ごとに新しい重複排除エンジンを使う。

    使用例::

        recorder = JourneyRecorder(config)
        code = await recorder.record("example.com", is_suite=True)
    """

    def __init__(
        self,
        config: Optional[JrtConfig] = None,
        controller: Optional[SessionController] = None,
    ) -> None:
        """レコーダーを初期化する。

        Args:
            config: 実行時設定（None でデフォルト値）
            controller: セッション管理（None で設定から生成）
        """
        self._config = config or JrtConfig()
        self._controller = controller or SessionController(
            headed=self._config.headed,
            channel=self._config.channel,
            viewport=self._config.viewport,
        )
        self._dedup = ActionDeduplicator()
        self.navigation_error: Optional[NavigationError] = None

    @property
    def controller(self) -> SessionController:
        """セッション管理を返す。"""
        return self._controller

    @property
    def deduplicator(self) -> ActionDeduplicator:
        """重複排除エンジンを返す。"""
        return self._dedup

    async def record(self, url: Optional[str] = None, is_suite: bool = False) -> str:
        """ブラウザを起動し、閉じられるまで操作を記録する。

        開始ページへの遷移に失敗しても記録は続行する
        （エラーは navigation_error に保持する）。

        Args:
            url: 開始 URL またはローカルファイルパス（None で空ページ）
            is_suite: True でスイート形式のスクリプトを生成

        Returns:
            生成したジャーニースクリプト

        Raises:
            SessionLaunchError: ブラウザを起動できなかった場合
        """
        from playwright.async_api import Error as PlaywrightError

        self._dedup = ActionDeduplicator()
        self.navigation_error = None

        context = await self._controller.open_session()
        try:
            capture = ActionCapture(
                self._dedup.on_action,
                navigation_grace=self._config.navigation_grace,
            )
            # 起動中に停止要求が届いていれば既に終了処理が始まっている
            try:
                if self._controller.is_open:
                    await capture.attach(context)
                if self._controller.is_open:
                    try:
                        await self._controller.open_page(url)
                    except NavigationError as exc:
                        self.navigation_error = exc
                        logger.warning("開始ページを開けませんでした。記録は続行します: %s", exc)
            except PlaywrightError as exc:
                if self._controller.is_open:
                    raise
                logger.info("セッション終了中のため記録の準備を中断しました: %s", exc)

            logger.info("操作を記録中... ブラウザを閉じると記録が終了します。")
            await self._controller.wait_closed()
        finally:
            self._dedup.stop()
            await self._controller.close()

        writer = ScriptWriter(is_suite=is_suite, journey_name=self._config.journey_name)
        code = writer.generate_text(self._dedup.actions)
        logger.info("記録を終了しました (%d アクション)", len(self._dedup))
        self._dedup.clear()
        return code

    def stop(self) -> None:
        """記録中のセッションに停止を要求する。"""
        self._controller.stop()
