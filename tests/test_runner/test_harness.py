"""
Harness テスト — ジャーニーの別プロセス実行テスト

ジャーニーランナーの代わりに、引数と入力を出力する小さな
Python スクリプトを子プロセスとして起動し、
引数・出力の連結順・カラーコード除去・一時ファイルの扱いを検証する。
"""

from __future__ import annotations

import asyncio
import sys
import textwrap
from pathlib import Path

import pytest

from jrt.runner.harness import (
    ExecutionHarness,
    JourneyRun,
    JourneyRunResult,
    _read_chunks,
    _split_pending_escape,
    strip_color_codes,
)

# 引数と受け取ったソースを出力するランナーの代替
FAKE_RUNNER = textwrap.dedent('''
    import sys
    args = sys.argv[1:]
    if "--inline" in args:
        body = sys.stdin.read()
    else:
        with open(args[0], encoding="utf-8") as f:
            body = f.read()
    sys.stdout.write("\\x1b[32margs=" + " ".join(args) + "\\x1b[0m\\n")
    sys.stdout.write("body=" + body.strip() + "\\n")
    sys.stdout.flush()
    sys.stderr.write("\\x1b[1;31mwarn\\x1b[0m\\n")
    sys.exit(3 if "fail" in body else 0)
''')


@pytest.fixture
def harness(tmp_path: Path) -> ExecutionHarness:
    return ExecutionHarness(
        [sys.executable, "-c", FAKE_RUNNER],
        journeys_dir=tmp_path / "journeys",
    )


# ---------------------------------------------------------------------------
# strip_color_codes のテスト
# ---------------------------------------------------------------------------

class TestStripColorCodes:
    """カラーコード除去のテスト。"""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("\x1b[32m✓ ok\x1b[0m", "✓ ok"),
            ("\x1b[1;31mfail\x1b[0m done", "fail done"),
            ("plain", "plain"),
            ("", ""),
        ],
    )
    def test_strip(self, text, expected):
        """ESC[...m 形式のコードが取り除かれること。"""
        assert strip_color_codes(text) == expected

    def test_default_argument(self):
        """引数省略時は空文字列。"""
        assert strip_color_codes() == ""


# ---------------------------------------------------------------------------
# 引数構築のテスト
# ---------------------------------------------------------------------------

class TestBuildArgs:
    """build_args() のテスト。"""

    def test_inline_args(self, harness):
        """インラインは --no-headless --inline。"""
        run = JourneyRun(source_code="", is_suite=False)
        assert harness.build_args(run) == ["--no-headless", "--inline"]

    def test_suite_args(self, harness):
        """スイートはファイルパスの後に --no-headless。"""
        run = JourneyRun(source_code="", is_suite=True, temp_file=harness.suite_file)
        assert harness.build_args(run) == [str(harness.suite_file), "--no-headless"]

    def test_suite_file_location(self, harness, tmp_path):
        """スイート用ファイルは journeys ディレクトリの固定名。"""
        assert harness.suite_file == tmp_path / "journeys" / "recorded.journey.py"

    def test_empty_command_rejected(self):
        """空のランナーコマンドはエラー。"""
        with pytest.raises(ValueError):
            ExecutionHarness([])


# ---------------------------------------------------------------------------
# 実行のテスト
# ---------------------------------------------------------------------------

class TestExecute:
    """execute() / run() のテスト。"""

    @pytest.mark.asyncio
    async def test_inline_run(self, harness, tmp_path):
        """インラインではソースを標準入力で渡し、一時ファイルを作らないこと。"""
        result = await harness.execute('page.goto("http://a.com/")', is_suite=False)

        assert result == JourneyRunResult(
            output='args=--no-headless --inline\nbody=page.goto("http://a.com/")\nwarn\n',
            returncode=0,
        )
        assert not (tmp_path / "journeys").exists()

    @pytest.mark.asyncio
    async def test_suite_run_removes_temp_file(self, harness):
        """スイートでは一時ファイル経由で実行し、終了後に削除すること。"""
        result = await harness.execute("# suite body", is_suite=True)

        assert result is not None
        assert result.output.splitlines() == [
            f"args={harness.suite_file} --no-headless",
            "body=# suite body",
            "warn",
        ]
        assert not harness.suite_file.exists()
        assert harness.suite_file.parent.is_dir()

    @pytest.mark.asyncio
    async def test_failed_journey_returns_output(self, harness):
        """ランナーの失敗終了でも出力は返すこと。"""
        result = await harness.execute("fail()", is_suite=False)

        assert result is not None
        assert result.returncode == 3
        assert result.passed is False

        output = await harness.run("fail()", is_suite=False)
        assert output is not None and "body=fail()" in output

    @pytest.mark.asyncio
    async def test_runner_ignoring_stdin(self, tmp_path):
        """標準入力を読まないランナーでも完了すること。"""
        harness = ExecutionHarness(
            [sys.executable, "-c", "print('done')"],
            journeys_dir=tmp_path,
        )
        assert await harness.run("x = 1", is_suite=False) == "done\n"

    @pytest.mark.asyncio
    async def test_spawn_failure_returns_none(self, tmp_path):
        """ランナーを起動できなければ None を返し、一時ファイルも残さないこと。"""
        harness = ExecutionHarness(
            [str(tmp_path / "no-such-runner")],
            journeys_dir=tmp_path / "journeys",
        )

        assert await harness.execute("x = 1", is_suite=True) is None
        assert await harness.run("x = 1", is_suite=False) is None
        assert not harness.suite_file.exists()

    @pytest.mark.asyncio
    async def test_very_long_line_is_read_completely(self, tmp_path):
        """改行のない 2 MiB の出力でも最後まで読み取ること。"""
        script = textwrap.dedent('''
            import sys
            sys.stdout.write("x" * (2 * 1024 * 1024))
            sys.stdout.write("\\x1b[32m✓\\x1b[0m")
            sys.stdout.write("\\ndone\\n")
        ''')
        harness = ExecutionHarness([sys.executable, "-c", script], journeys_dir=tmp_path)

        output = await harness.run("x = 1", is_suite=False)

        assert output is not None
        assert output == "x" * (2 * 1024 * 1024) + "✓\ndone\n"

    @pytest.mark.asyncio
    async def test_read_failure_kills_runner(self, tmp_path, monkeypatch):
        """出力の読み取りに失敗したらランナーを終了させて None を返すこと。"""
        async def broken_reader(stream):
            raise RuntimeError("read failed")

        monkeypatch.setattr("jrt.runner.harness._read_chunks", broken_reader)
        harness = ExecutionHarness(
            [sys.executable, "-c", "import time; time.sleep(60)"],
            journeys_dir=tmp_path,
        )

        result = await asyncio.wait_for(harness.execute("x = 1", is_suite=False), timeout=30)

        assert result is None


# ---------------------------------------------------------------------------
# ブロック読み取りのテスト
# ---------------------------------------------------------------------------

class TestReadChunks:
    """ブロック境界をまたぐカラーコード・文字の扱いのテスト。"""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("plain", ("plain", "")),
            ("done\x1b[3", ("done", "\x1b[3")),
            ("a\x1b[32mb\x1b", ("a\x1b[32mb", "\x1b")),
            ("\x1b[32mok\x1b[0m", ("\x1b[32mok\x1b[0m", "")),
            ("\x1b[3\nnext", ("\x1b[3\nnext", "")),
        ],
    )
    def test_split_pending_escape(self, text, expected):
        """未完了のカラーコードだけが持ち越されること。"""
        assert _split_pending_escape(text) == expected

    @pytest.mark.asyncio
    async def test_escape_and_character_split_across_blocks(self, monkeypatch):
        """ブロック境界で分断されたカラーコードと UTF-8 文字が正しく処理されること。"""
        monkeypatch.setattr("jrt.runner.harness._READ_SIZE", 3)
        stream = asyncio.StreamReader()
        stream.feed_data("ab\x1b[32m✓\x1b[0m!\n".encode("utf-8"))
        stream.feed_eof()

        chunks = await _read_chunks(stream)

        assert "".join(chunks) == "ab✓!\n"
