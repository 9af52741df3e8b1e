"""
CLI エントリポイント — Typer ベースのコマンドラインインターフェース

jrt コマンドとして以下のサブコマンドを提供する:
  - init: プロジェクト雛形生成
  - record: ブラウザ操作を記録してジャーニースクリプトを生成
  - run: ジャーニースクリプトを別プロセスで実行
  - serve: MCP サーバー起動
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

import typer

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Typer アプリ定義
# ---------------------------------------------------------------------------

app = typer.Typer(
    help=(
        "jrt — ブラウザ操作ジャーニーの記録・再生ツール\n\n"
        "基本の流れ:\n"
        "  1. jrt record example.com        操作を記録（ブラウザが開きます）\n"
        "  2. jrt run recorded.journey.py   記録したジャーニーを再生\n\n"
        "詳しくは各コマンドに --help を付けてください。"
    ),
    no_args_is_help=True,
)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="詳細ログを表示する"),
) -> None:
    """ログ出力を設定する。"""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(name)s - %(levelname)s - %(message)s",
    )


# ---------------------------------------------------------------------------
# init コマンド
# ---------------------------------------------------------------------------

@app.command()
def init(
    project_dir: Path = typer.Argument(
        Path("."), help="プロジェクトディレクトリ（デフォルト: カレント）",
    ),
) -> None:
    """プロジェクト雛形（ディレクトリ構造と設定テンプレート）を生成する。"""
    try:
        (project_dir / "journeys").mkdir(parents=True, exist_ok=True)

        config_path = project_dir / "jrt.yaml"
        if not config_path.exists():
            config_path.write_text(
                "# jrt プロジェクト設定\n"
                "# 環境変数 JRT_* と CLI 引数がこの設定より優先されます\n"
                "headed: true\n"
                "channel: chromium\n"
                "journeys_dir: journeys\n"
                "journey_name: Recorded journey\n",
                encoding="utf-8",
            )

        typer.echo(f"プロジェクトを初期化しました: {project_dir.resolve()}")
    except Exception as exc:
        typer.echo(f"エラー: {exc}", err=True)
        raise typer.Exit(code=1)


# ---------------------------------------------------------------------------
# record コマンド
# ---------------------------------------------------------------------------

@app.command()
def record(
    url: Optional[str] = typer.Argument(
        None, help="記録開始 URL またはローカルファイル（省略時は空ページ）",
    ),
    suite: bool = typer.Option(
        False, "--suite", help="ジャーニーファイル形式で出力する（デフォルト: インライン）",
    ),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="保存先ファイル（省略時は対話的に確認）",
    ),
    config_file: Optional[Path] = typer.Option(
        None, "--config", help="設定ファイル（デフォルト: ./jrt.yaml）",
    ),
) -> None:
    """ブラウザ操作を記録し、ジャーニースクリプトを生成する。

    ブラウザの全ページを閉じる（または Ctrl+C）と記録が終了します。
    """
    import asyncio

    from .config import load_config
    from .gateway import JourneyGateway
    from .recorder import SessionLaunchError

    config = load_config(config_file)
    if output is not None:
        gateway = JourneyGateway(config, prompt_path=lambda _default: str(output))
    else:
        gateway = JourneyGateway(config, prompt_path=_prompt_save_path)

    typer.echo("記録中... ブラウザを閉じると記録が終了します。")
    try:
        code = asyncio.run(_record_with_stop_signal(gateway, url, suite))
    except SessionLaunchError as exc:
        typer.echo(f"エラー: 記録を開始できませんでした: {exc}", err=True)
        raise typer.Exit(code=1)

    typer.echo(code)
    if gateway.save_file(code):
        typer.echo("保存しました。")


async def _record_with_stop_signal(gateway, url: Optional[str], is_suite: bool) -> str:
    """SIGINT を停止シグナルとして扱いながら記録する。"""
    import asyncio
    import signal

    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, gateway.stop)
    except (NotImplementedError, RuntimeError):
        # Windows のイベントループはシグナルハンドラ非対応
        logger.debug("SIGINT ハンドラを登録できませんでした")
    try:
        return await gateway.record_journey(url, is_suite=is_suite)
    finally:
        try:
            loop.remove_signal_handler(signal.SIGINT)
        except (NotImplementedError, RuntimeError):
            pass


def _prompt_save_path(default_name: str) -> Optional[str]:
    """保存するかを確認し、保存先パスを入力させる。"""
    if not typer.confirm("スクリプトを保存しますか?", default=True):
        return None
    return typer.prompt("保存先", default=default_name)


# ---------------------------------------------------------------------------
# run コマンド
# ---------------------------------------------------------------------------

@app.command()
def run(
    journey_file: str = typer.Argument(..., help="実行するジャーニー（- で標準入力）"),
    suite: bool = typer.Option(
        True, "--suite/--inline", help="ジャーニーファイル形式として実行するか",
    ),
    config_file: Optional[Path] = typer.Option(
        None, "--config", help="設定ファイル（デフォルト: ./jrt.yaml）",
    ),
) -> None:
    """ジャーニースクリプトを別プロセスで実行し、結果を表示する。"""
    import asyncio

    from .config import load_config
    from .runner import ExecutionHarness

    try:
        if journey_file == "-":
            source = sys.stdin.read()
        else:
            source = Path(journey_file).read_text(encoding="utf-8")
    except OSError as exc:
        typer.echo(f"エラー: {exc}", err=True)
        raise typer.Exit(code=1)

    config = load_config(config_file)
    harness = ExecutionHarness(
        config.runner_command,
        journeys_dir=config.journeys_dir,
        suite_file_name=config.suite_file_name,
    )
    result = asyncio.run(harness.execute(source, is_suite=suite))
    if result is None:
        typer.echo("エラー: ジャーニーの実行が完了しませんでした。", err=True)
        raise typer.Exit(code=1)

    typer.echo(result.output, nl=False)
    if not result.passed:
        raise typer.Exit(code=result.returncode)


# ---------------------------------------------------------------------------
# serve コマンド
# ---------------------------------------------------------------------------

@app.command()
def serve(
    headless: bool = typer.Option(False, "--headless", help="記録用ブラウザを表示しない"),
    journeys_dir: Optional[str] = typer.Option(
        None, "--journeys-dir", help="スイート実行用一時ファイルのディレクトリ",
    ),
    config_file: Optional[Path] = typer.Option(
        None, "--config", help="設定ファイル（デフォルト: ./jrt.yaml）",
    ),
) -> None:
    """記録・実行・保存の操作を MCP サーバーとして公開する。"""
    from .config import load_config
    from .mcp.server import create_server

    config = load_config(config_file)
    if headless:
        config.headed = False
    if journeys_dir is not None:
        config.journeys_dir = journeys_dir

    server = create_server(config=config)
    server.run()
