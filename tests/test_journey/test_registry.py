"""
Journey 登録テスト — @journey デコレータとジャーニー収集のテスト
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from jrt.journey import Journey, collect_journeys, inline_journey


class TestCollectJourneys:
    """collect_journeys() のテスト。"""

    def test_collects_in_definition_order(self, tmp_path: Path):
        """ファイル内のジャーニーを定義順に返すこと。"""
        path = tmp_path / "sample.journey.py"
        path.write_text(
            "from jrt.journey import journey\n"
            "\n"
            "@journey('first')\n"
            "def first(page, context):\n"
            "    page.goto('http://a.com/')\n"
            "\n"
            "@journey('second')\n"
            "def second(page, context):\n"
            "    pass\n",
            encoding="utf-8",
        )

        journeys = collect_journeys(path)

        assert [j.name for j in journeys] == ["first", "second"]
        page = MagicMock()
        journeys[0].func(page, MagicMock())
        page.goto.assert_called_once_with("http://a.com/")

    def test_registry_not_shared_between_files(self, tmp_path: Path):
        """別ファイルの収集結果が混ざらないこと。"""
        a = tmp_path / "a.journey.py"
        a.write_text("from jrt.journey import journey\n@journey('a')\ndef a(page, context): pass\n")
        b = tmp_path / "b.journey.py"
        b.write_text("from jrt.journey import journey\n@journey('b')\ndef b(page, context): pass\n")

        collect_journeys(a)
        assert [j.name for j in collect_journeys(b)] == ["b"]

    def test_file_without_journeys(self, tmp_path: Path):
        """ジャーニーのないファイルは空リスト。"""
        path = tmp_path / "empty.py"
        path.write_text("x = 1\n")
        assert collect_journeys(path) == []

    def test_import_error_propagates(self, tmp_path: Path):
        """ファイル実行時のエラーはそのまま送出されること。"""
        path = tmp_path / "broken.py"
        path.write_text("raise RuntimeError('broken')\n")
        with pytest.raises(RuntimeError):
            collect_journeys(path)


class TestInlineJourney:
    """inline_journey() のテスト。"""

    def test_runs_with_page_and_context(self):
        """page / context を参照する文として実行されること。"""
        item = inline_journey("page.goto('http://a.com/')\np2 = context.new_page()\n")
        page, context = MagicMock(), MagicMock()

        item.func(page, context)

        assert isinstance(item, Journey)
        assert item.name == "inline"
        page.goto.assert_called_once_with("http://a.com/")
        context.new_page.assert_called_once()

    def test_syntax_error_raised_at_run_time(self):
        """構文エラーは実行時に送出されること。"""
        item = inline_journey("page.goto(")
        with pytest.raises(SyntaxError):
            item.func(MagicMock(), MagicMock())
