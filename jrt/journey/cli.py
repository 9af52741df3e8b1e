"""
ジャーニーランナー CLI — python -m jrt.journey

ExecutionHarness から子プロセスとして起動される。

使用例:
  python -m jrt.journey journeys/recorded.journey.py --no-headless
  python -m jrt.journey --inline --no-headless < snippet.py

結果はジャーニーごとに ✓ / ✗ で表示し、
1件でも失敗した場合（または実行対象がない場合）は終了コード 1 で終了する。
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

import typer

from . import Journey, collect_journeys, inline_journey
from .runner import JourneyOutcome, JourneyRunner

logger = logging.getLogger(__name__)

app = typer.Typer(
    help="jrt ジャーニーランナー — 記録したジャーニーを再生する",
    add_completion=False,
)


@app.command()
def main(
    journey_file: Optional[Path] = typer.Argument(
        None, help="ジャーニーファイル（--inline 指定時は不要）",
    ),
    inline: bool = typer.Option(
        False, "--inline", help="標準入力からインライン形式のジャーニーを読み込む",
    ),
    no_headless: bool = typer.Option(
        False, "--no-headless", help="ブラウザを表示して実行する",
    ),
) -> None:
    """ジャーニーを実行し、結果を表示する。"""
    journeys = _load_journeys(journey_file, inline)
    if not journeys:
        typer.echo("実行するジャーニーがありません。", err=True)
        raise typer.Exit(code=1)

    runner = JourneyRunner(headless=not no_headless)
    try:
        outcomes = runner.run(journeys)
    except Exception as exc:
        typer.echo(f"エラー: ブラウザを起動できませんでした: {exc}", err=True)
        raise typer.Exit(code=1)

    _print_outcomes(outcomes)
    if any(o.status == "failed" for o in outcomes):
        raise typer.Exit(code=1)


def _load_journeys(journey_file: Optional[Path], inline: bool) -> list[Journey]:
    """引数に応じてジャーニーを読み込む。"""
    if inline:
        source = sys.stdin.read()
        if not source.strip():
            return []
        return [inline_journey(source)]

    if journey_file is None:
        typer.echo("エラー: ジャーニーファイルを指定するか --inline を付けてください。", err=True)
        raise typer.Exit(code=2)

    try:
        return collect_journeys(journey_file)
    except Exception as exc:
        typer.echo(f"エラー: ジャーニーファイルを読み込めませんでした: {exc}", err=True)
        raise typer.Exit(code=1)


def _print_outcomes(outcomes: list[JourneyOutcome]) -> None:
    """ジャーニーごとの結果とサマリーを表示する。"""
    for outcome in outcomes:
        if outcome.status == "passed":
            typer.secho(
                f"✓ {outcome.name} ({outcome.duration_ms:.0f}ms)",
                fg=typer.colors.GREEN, color=True,
            )
        else:
            typer.secho(
                f"✗ {outcome.name} ({outcome.duration_ms:.0f}ms)",
                fg=typer.colors.RED, color=True,
            )
            typer.secho(f"    {outcome.error}", fg=typer.colors.RED, color=True)

    passed = sum(1 for o in outcomes if o.status == "passed")
    failed = len(outcomes) - passed
    typer.secho(
        f"\n{len(outcomes)} journeys: {passed} passed, {failed} failed",
        bold=True, color=True,
    )
