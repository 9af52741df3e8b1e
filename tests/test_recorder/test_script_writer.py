"""
ScriptWriter テスト — ジャーニースクリプト生成の単体テスト

アクションごとのコード行と、インライン / スイート形式の
出力全体を検証する。
"""

from __future__ import annotations

import ast

import pytest

from conftest import event
from jrt.recorder.script_writer import ScriptWriter, _escape_string, _function_name


# ---------------------------------------------------------------------------
# アクション → コード行
# ---------------------------------------------------------------------------

class TestActionToLine:
    """単一アクションの変換テスト。"""

    @pytest.fixture
    def writer(self) -> ScriptWriter:
        return ScriptWriter()

    @pytest.mark.parametrize(
        "action,expected",
        [
            ({"name": "navigate", "url": "http://a.com/"}, 'page.goto("http://a.com/")'),
            ({"name": "fill", "selector": "#name", "text": "Bob"}, 'page.fill("#name", "Bob")'),
            ({"name": "click", "selector": "#go"}, 'page.click("#go")'),
            ({"name": "click", "selector": "#go", "clickCount": 2}, 'page.dblclick("#go")'),
            ({"name": "click", "selector": "#go", "clickCount": 3}, 'page.click("#go", click_count=3)'),
            ({"name": "click", "selector": "#go", "button": "right"}, 'page.click("#go", button="right")'),
            ({"name": "check", "selector": "#agree"}, 'page.check("#agree")'),
            ({"name": "uncheck", "selector": "#agree"}, 'page.uncheck("#agree")'),
            ({"name": "press", "selector": "#q", "key": "Enter"}, 'page.press("#q", "Enter")'),
            ({"name": "select", "selector": "#c", "options": ["jp", "us"]}, 'page.select_option("#c", ["jp", "us"])'),
        ],
    )
    def test_main_page_actions(self, writer, action, expected):
        """主要アクションが Playwright の呼び出しになること。"""
        assert writer._action_to_line(event(**action)) == expected

    def test_secondary_page_alias(self, writer):
        """別ページのアクションはそのエイリアスを使うこと。"""
        line = writer._action_to_line(event("page1", name="click", selector="#x"))
        assert line == 'page1.click("#x")'

    def test_open_page(self, writer):
        """2枚目以降のページは context.new_page() で生成すること。"""
        assert writer._action_to_line(event("page", name="openPage")) == ""
        assert writer._action_to_line(event("page2", name="openPage")) == "page2 = context.new_page()"

    def test_close_page(self, writer):
        """closePage は2枚目以降のみ close() になること。"""
        assert writer._action_to_line(event("page", name="closePage")) == ""
        assert writer._action_to_line(event("page1", name="closePage")) == "page1.close()"

    def test_unknown_action_becomes_comment(self, writer):
        """未対応の種別はコメントとして残すこと。"""
        assert writer._action_to_line(event(name="hover", selector="#m")) == "# unsupported action: hover"
        assert writer._action_to_line(event(name="scroll")) == "# unsupported action: scroll"

    def test_strings_are_escaped(self, writer):
        """引用符・改行を含む値がエスケープされること。"""
        line = writer._action_to_line(
            event(name="fill", selector='input[name="q"]', text='say "hi"\nbye'),
        )
        assert line == 'page.fill("input[name=\\"q\\"]", "say \\"hi\\"\\nbye")'


# ---------------------------------------------------------------------------
# 出力全体
# ---------------------------------------------------------------------------

class TestGenerateText:
    """generate_text() のテスト。"""

    @pytest.fixture
    def actions(self):
        return [
            event(name="openPage", url="about:blank"),
            event(name="navigate", url="http://a.com/"),
            event(name="fill", selector="#name", text="Bob"),
            event(name="click", selector="#submit"),
        ]

    def test_inline_form(self, actions):
        """インライン形式は文の並びになること。"""
        code = ScriptWriter(is_suite=False).generate_text(actions)
        assert code == (
            'page.goto("http://a.com/")\n'
            'page.fill("#name", "Bob")\n'
            'page.click("#submit")\n'
        )

    def test_inline_empty(self):
        """アクションがなければ空文字列。"""
        assert ScriptWriter().generate_text([]) == ""

    def test_suite_form(self, actions):
        """スイート形式は @journey 関数を持つモジュールになること。"""
        code = ScriptWriter(is_suite=True, journey_name="Sign up").generate_text(actions)

        assert code.startswith("from jrt.journey import journey\n")
        assert '@journey("Sign up")\ndef sign_up(page, context):\n' in code
        assert '    page.fill("#name", "Bob")\n' in code
        ast.parse(code)

    def test_suite_empty_has_pass(self):
        """スイート形式で空の場合は pass を出力すること。"""
        code = ScriptWriter(is_suite=True).generate_text([])
        assert "def recorded_journey(page, context):\n    pass\n" in code
        ast.parse(code)

    def test_multi_page_suite_is_valid_python(self):
        """複数ページを含むスイートも構文的に正しいこと。"""
        actions = [
            event("page", name="click", selector="a[target=_blank]"),
            event("page1", name="openPage"),
            event("page1", name="fill", selector="#q", text="x"),
            event("page1", name="closePage"),
            event("page", name="hover", selector="#m"),
        ]
        code = ScriptWriter(is_suite=True).generate_text(actions)
        ast.parse(code)
        assert "    page1 = context.new_page()\n" in code
        assert "    # unsupported action: hover\n" in code


# ---------------------------------------------------------------------------
# ヘルパー関数
# ---------------------------------------------------------------------------

class TestHelpers:
    """関数名生成・エスケープのテスト。"""

    @pytest.mark.parametrize(
        "name,expected",
        [
            ("Recorded journey", "recorded_journey"),
            ("Login -> Checkout", "login_checkout"),
            ("2nd run", "journey_2nd_run"),
            ("ログイン", "journey_"),
        ],
    )
    def test_function_name(self, name, expected):
        """ジャーニー名から識別子を生成すること。"""
        assert _function_name(name) == expected

    def test_escape_backslash(self):
        """バックスラッシュがエスケープされること。"""
        assert _escape_string("a\\b") == "a\\\\b"
