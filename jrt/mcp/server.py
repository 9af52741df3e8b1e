"""
jrt MCP Server — ジャーニーの記録・実行・保存サーバー

FastMCP を使用して、JourneyGateway の操作を MCP ツールとして公開する。

ツール一覧:
  - jrt_record_journey: ブラウザ操作を記録してスクリプトを返す
  - jrt_run_journey: スクリプトを実行して出力を返す
  - jrt_save_file: スクリプトを指定パスに保存する
  - jrt_stop_recording: 記録中のブラウザを終了させる
"""

from __future__ import annotations

import logging
from typing import Optional

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError

from ..config import JrtConfig, load_config
from ..gateway import JourneyGateway
from ..recorder import SessionLaunchError

logger = logging.getLogger(__name__)


def create_server(
    config: Optional[JrtConfig] = None,
    gateway: Optional[JourneyGateway] = None,
) -> FastMCP:
    """jrt MCP サーバーを生成する。

    Args:
        config: サーバー設定。None の場合は設定ファイル・環境変数から読み込む。
        gateway: 操作窓口。None の場合は config から生成する。

    Returns:
        設定済みの FastMCP サーバーインスタンス
    """
    if config is None:
        config = load_config()

    mcp = FastMCP("jrt-journeys")

    # jrt_save_file の呼び出しごとに保存先を受け渡す
    save_request: dict = {"path": None}

    if gateway is None:
        gateway = JourneyGateway(
            config,
            prompt_path=lambda default_name: save_request["path"],
        )

    @mcp.tool
    async def jrt_record_journey(url: Optional[str] = None, is_suite: bool = False) -> str:
        """Open a browser, record user interactions until it is closed, and return the journey script.

        Args:
            url: Start URL or local file path. None opens a blank page.
            is_suite: True returns a journey file, False an inline snippet.

        Returns:
            Generated journey source code
        """
        try:
            return await gateway.record_journey(url, is_suite=is_suite)
        except SessionLaunchError as exc:
            raise ToolError(f"Recording did not start: {exc}") from exc

    @mcp.tool
    async def jrt_run_journey(source_code: str, is_suite: bool = False) -> str:
        """Run a journey script in a separate process and return its output.

        Args:
            source_code: Journey source (inline snippet or journey file)
            is_suite: True runs it as a journey file, False as an inline snippet.

        Returns:
            Runner output with colour codes removed. Empty when the run did not complete.
        """
        output = await gateway.run_journey(source_code, is_suite=is_suite)
        return output or ""

    @mcp.tool
    async def jrt_save_file(code: str, output_path: Optional[str] = None) -> bool:
        """Save a journey script.

        Args:
            code: Journey source to save
            output_path: Destination path. None cancels the save.

        Returns:
            True when the file was written
        """
        save_request["path"] = output_path
        try:
            return gateway.save_file(code)
        finally:
            save_request["path"] = None

    @mcp.tool
    async def jrt_stop_recording() -> str:
        """Stop the recording in progress (no-op when nothing is recording).

        Returns:
            Status message
        """
        if not gateway.is_recording:
            return "No recording in progress."
        gateway.stop()
        return "Stop requested."

    return mcp

