"""
JourneyGateway — 呼び出し側 UI に公開する操作の窓口

記録・実行・保存の3操作と、記録中の停止シグナルを提供する。
MCP サーバーや CLI はこのクラスを通じて各機能を呼び出す。

操作一覧:
  - record_journey: ブラウザ操作を記録し、スクリプトを返す
  - run_journey: スクリプトを別プロセスで実行し、出力を返す
  - save_file: 保存先を問い合わせてスクリプトを書き出す
  - stop: 記録中のセッションを終了させる
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Optional

from .config import JrtConfig
from .recorder import JourneyRecorder
from .runner import ExecutionHarness

logger = logging.getLogger(__name__)

# 既定ファイル名を受け取り、保存先パス（キャンセル時は None）を返す
PathPrompt = Callable[[str], Optional[str]]


def _cancel_prompt(default_name: str) -> Optional[str]:
    return None


class JourneyGateway:
    """記録・実行・保存の窓口。

    同時に進行できる記録は1つだけ。スイート実行の一時ファイルは
    固定パスのため、run_journey(is_suite=True) は呼び出し側で直列化すること。

    使用例::

        gateway = JourneyGateway(config, prompt_path=ask_path)
        code = await gateway.record_journey("example.com")
        output = await gateway.run_journey(code)
        gateway.save_file(code)
    """

    def __init__(
        self,
        config: Optional[JrtConfig] = None,
        harness: Optional[ExecutionHarness] = None,
        prompt_path: Optional[PathPrompt] = None,
        recorder_factory: Optional[Callable[[JrtConfig], JourneyRecorder]] = None,
    ) -> None:
        """窓口を初期化する。

        Args:
            config: 実行時設定（None でデフォルト値）
            harness: 実行ハーネス（None で設定から生成）
            prompt_path: 保存先の問い合わせ関数（None で常にキャンセル）
            recorder_factory: レコーダーの生成関数（None で JourneyRecorder）
        """
        self._config = config or JrtConfig()
        self._harness = harness or ExecutionHarness(
            self._config.runner_command,
            journeys_dir=self._config.journeys_dir,
            suite_file_name=self._config.suite_file_name,
        )
        self._prompt_path = prompt_path or _cancel_prompt
        self._recorder_factory = recorder_factory or JourneyRecorder
        self._recorder: Optional[JourneyRecorder] = None

    @property
    def config(self) -> JrtConfig:
        """実行時設定を返す。"""
        return self._config

    @property
    def is_recording(self) -> bool:
        """記録中かどうかを返す。"""
        return self._recorder is not None

    async def record_journey(self, url: Optional[str] = None, is_suite: bool = False) -> str:
        """ブラウザ操作を記録し、生成したスクリプトを返す。

        Args:
            url: 開始 URL またはローカルファイルパス
            is_suite: True でスイート形式

        Returns:
            生成したジャーニースクリプト

        Raises:
            RuntimeError: 既に記録中の場合
            SessionLaunchError: ブラウザを起動できなかった場合
        """
        if self._recorder is not None:
            raise RuntimeError("既に記録中です。先に stop() で終了してください。")

        recorder = self._recorder_factory(self._config)
        self._recorder = recorder
        try:
            return await recorder.record(url, is_suite=is_suite)
        finally:
            self._recorder = None

    async def run_journey(self, source_code: str, is_suite: bool = False) -> Optional[str]:
        """スクリプトを実行し、出力テキストを返す。

        Args:
            source_code: ジャーニーのソース
            is_suite: True でスイート（ファイル）モード

        Returns:
            カラーコード除去済みの出力。実行が完了しなかった場合は None
        """
        return await self._harness.run(source_code, is_suite=is_suite)

    def save_file(self, code: str) -> bool:
        """保存先を問い合わせ、スクリプトをそのまま書き出す。

        Args:
            code: 保存するソース

        Returns:
            ファイルを書き出した場合は True
        """
        try:
            chosen = self._prompt_path(self._config.default_save_name)
            if not chosen:
                logger.info("保存がキャンセルされました")
                return False
            path = Path(chosen)
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(code, encoding="utf-8")
        except Exception:
            logger.exception("スクリプトの保存に失敗しました")
            return False

        logger.info("スクリプトを保存しました: %s", path)
        return True

    def stop(self) -> None:
        """記録中のセッションに停止を要求する。記録中でなければ何もしない。"""
        recorder = self._recorder
        if recorder is None:
            logger.debug("記録中のセッションがないため停止要求を無視しました")
            return
        recorder.stop()
