"""
ExecutionHarness — ジャーニーの別プロセス実行

ジャーニー（インラインのソース、またはスイート用ファイル）を
ジャーニーランナー CLI の子プロセスとして実行し、
標準出力・標準エラーをカラーコード除去済みのテキストとして返す。

実行モード:
  - インライン: ランナーを --inline で起動し、ソースを標準入力に書き込んで閉じる
  - スイート: ソースを固定パスの一時ファイルに保存し、そのパスを渡して起動

いずれのモードでも --no-headless を付与する。
実行中の例外はログに記録し、結果なし（None）として扱う。
スイート用の一時ファイルは固定パスのため、同時実行はできない。
"""

from __future__ import annotations

import asyncio
import codecs
import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence, Union

logger = logging.getLogger(__name__)

# ESC[ ... m 形式のカラーコード
_COLOR_CODE_PATTERN = re.compile(r"\x1b\[.*?m")

# 子プロセス出力の読み取り単位（バイト）
_READ_SIZE = 64 * 1024


def strip_color_codes(text: str = "") -> str:
    """ANSI カラーコードを取り除く。

    Args:
        text: 対象文字列

    Returns:
        カラーコード除去後の文字列
    """
    return _COLOR_CODE_PATTERN.sub("", text)


# ---------------------------------------------------------------------------
# エラー・データクラス
# ---------------------------------------------------------------------------

class ExecutionError(Exception):
    """ジャーニーの子プロセス実行に失敗した場合のエラー。"""


@dataclass
class JourneyRun:
    """1回の実行に関する情報。

    Attributes:
        source_code: 実行するソース
        is_suite: スイート形式かどうか
        temp_file: スイート実行用の一時ファイル（インラインでは None）
    """

    source_code: str
    is_suite: bool
    temp_file: Optional[Path] = None


@dataclass
class JourneyRunResult:
    """実行結果。

    Attributes:
        output: 標準出力 → 標準エラーの順に連結したテキスト
        returncode: ランナーの終了コード
    """

    output: str
    returncode: int

    @property
    def passed(self) -> bool:
        """全ジャーニーが成功したかどうかを返す。"""
        return self.returncode == 0


# ---------------------------------------------------------------------------
# ExecutionHarness 本体
# ---------------------------------------------------------------------------

class ExecutionHarness:
    """ジャーニーランナーを子プロセスで実行するハーネス。

    使用例::

        harness = ExecutionHarness(config.runner_command, config.journeys_dir)
        output = await harness.run(code, is_suite=False)
    """

    def __init__(
        self,
        runner_command: Sequence[str],
        journeys_dir: Union[str, Path] = "journeys",
        suite_file_name: str = "recorded.journey.py",
        env: Optional[dict[str, str]] = None,
    ) -> None:
        """ハーネスを初期化する。

        Args:
            runner_command: ランナー起動コマンド（引数はこの後ろに付く）
            journeys_dir: スイート用一時ファイルのディレクトリ
            suite_file_name: スイート用一時ファイル名
            env: 子プロセスの環境変数（None で現在の環境を引き継ぐ）
        """
        if not runner_command:
            raise ValueError("runner_command が空です")
        self._runner_command = list(runner_command)
        self._suite_file = Path(journeys_dir) / suite_file_name
        self._env = env

    @property
    def suite_file(self) -> Path:
        """スイート実行用一時ファイルのパスを返す。"""
        return self._suite_file

    def build_args(self, run: JourneyRun) -> list[str]:
        """ランナーに渡す引数を構築する。

        Args:
            run: 実行情報

        Returns:
            引数リスト
        """
        args = ["--no-headless"]
        if run.temp_file is None:
            args.append("--inline")
        else:
            args.insert(0, str(run.temp_file))
        return args

    async def run(self, source_code: str, is_suite: bool = False) -> Optional[str]:
        """ジャーニーを実行し、出力テキストを返す。

        Args:
            source_code: ジャーニーのソース
            is_suite: True でスイート（ファイル）モード

        Returns:
            出力テキスト。実行が完了しなかった場合は None
        """
        result = await self.execute(source_code, is_suite)
        if result is None:
            return None
        return result.output

    async def execute(self, source_code: str, is_suite: bool = False) -> Optional[JourneyRunResult]:
        """ジャーニーを実行し、出力と終了コードを返す。

        例外は送出せず、ログに記録して None を返す。

        Args:
            source_code: ジャーニーのソース
            is_suite: True でスイート（ファイル）モード

        Returns:
            実行結果。実行が完了しなかった場合は None
        """
        run = JourneyRun(source_code=source_code, is_suite=is_suite)
        try:
            try:
                return await self._execute(run)
            finally:
                self._cleanup(run)
        except Exception:
            logger.exception("ジャーニーの実行に失敗しました")
            return None

    async def _execute(self, run: JourneyRun) -> JourneyRunResult:
        if run.is_suite:
            self._suite_file.parent.mkdir(parents=True, exist_ok=True)
            run.temp_file = self._suite_file
            run.temp_file.write_text(run.source_code, encoding="utf-8")

        cmd = [*self._runner_command, *self.build_args(run)]
        logger.info("ジャーニーを実行します: %s", " ".join(cmd))

        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=self._env if self._env is not None else dict(os.environ),
            )
        except OSError as exc:
            raise ExecutionError(f"ランナーを起動できませんでした: {cmd[0]} ({exc})") from exc

        assert proc.stdin is not None and proc.stdout is not None and proc.stderr is not None

        try:
            if not run.is_suite:
                proc.stdin.write(run.source_code.encode("utf-8"))
                try:
                    await proc.stdin.drain()
                except (BrokenPipeError, ConnectionResetError):
                    logger.warning("ランナーが標準入力を読み取る前に終了しました")
            proc.stdin.close()

            # 両ストリームを並行して読み、stdout → stderr の順に連結する
            stdout_chunks, stderr_chunks = await asyncio.gather(
                _read_chunks(proc.stdout),
                _read_chunks(proc.stderr),
            )
            returncode = await proc.wait()
        finally:
            if proc.returncode is None:
                logger.warning("ランナーを強制終了します (pid %s)", proc.pid)
                try:
                    proc.kill()
                except ProcessLookupError:
                    pass
                await proc.wait()
        logger.info("ジャーニーの実行が終了しました (終了コード %d)", returncode)

        return JourneyRunResult(
            output="".join(stdout_chunks + stderr_chunks),
            returncode=returncode,
        )

    def _cleanup(self, run: JourneyRun) -> None:
        if run.temp_file is None:
            return
        try:
            run.temp_file.unlink(missing_ok=True)
        except OSError as exc:
            raise ExecutionError(f"一時ファイルを削除できませんでした: {run.temp_file}") from exc


def _split_pending_escape(text: str) -> tuple[str, str]:
    """末尾の未完了のカラーコード（ESC 以降に m も改行もない部分）を切り出す。

    Returns:
        (除去処理してよい部分, 次のブロックに持ち越す部分)
    """
    start = max(text.rfind("m"), text.rfind("\n")) + 1
    pos = text.find("\x1b", start)
    if pos == -1:
        return text, ""
    return text[:pos], text[pos:]


async def _read_chunks(stream: asyncio.StreamReader) -> list[str]:
    """ストリームをブロック単位で最後まで読み、カラーコード除去済みのチャンクを返す。

    行の長さに上限はない。ブロック境界で分断された UTF-8 文字と
    カラーコードは次のブロックと結合してから処理する。
    """
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    chunks: list[str] = []
    pending = ""
    while True:
        data = await stream.read(_READ_SIZE)
        if not data:
            break
        text, pending = _split_pending_escape(pending + decoder.decode(data))
        if text:
            chunks.append(strip_color_codes(text))
    rest = pending + decoder.decode(b"", final=True)
    if rest:
        chunks.append(strip_color_codes(rest))
    return chunks
