"""
テスト共通フィクスチャ・Hypothesis ストラテジー定義

全テストモジュールで共有するフィクスチャとデータ生成器を提供する。
アクション生成ストラテジーは重複排除エンジンのプロパティテストで使用する。
"""

from __future__ import annotations

from pathlib import Path

import pytest
from hypothesis import strategies as st

from jrt.recorder.actions import ActionInContext


# ---------------------------------------------------------------------------
# pytest フィクスチャ
# ---------------------------------------------------------------------------

@pytest.fixture
def tmp_dir(tmp_path: Path) -> Path:
    """一時ディレクトリを提供する pytest フィクスチャ。"""
    return tmp_path


@pytest.fixture(autouse=True)
def _isolate_jrt_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """JRT_* 環境変数がテスト結果に影響しないよう取り除く。"""
    for key in (
        "JRT_HEADED",
        "JRT_CHANNEL",
        "JRT_VIEWPORT_WIDTH",
        "JRT_VIEWPORT_HEIGHT",
        "JRT_JOURNEYS_DIR",
        "JRT_RUNNER_COMMAND",
    ):
        monkeypatch.delenv(key, raising=False)


# ---------------------------------------------------------------------------
# イベント生成ヘルパー
# ---------------------------------------------------------------------------

def event(alias: str = "page", **action) -> ActionInContext:
    """ActionInContext を簡潔に生成するヘルパー。

    使用例::

        event(name="fill", selector="#name", text="Bo")
    """
    return ActionInContext(pageAlias=alias, action=action)


# ---------------------------------------------------------------------------
# Hypothesis ストラテジー
#
# 重複排除の規則が発火しやすいよう、セレクタ・URL・エイリアスは
# 少数の候補から選ぶ。
# ---------------------------------------------------------------------------

_aliases = st.sampled_from(["page", "page1"])
_selectors = st.sampled_from(["#name", "#submit", "#agree"])
_urls = st.sampled_from(["http://a.com/", "http://b.com/"])


def make_action_strategy():
    """アクション辞書を生成する Hypothesis ストラテジー。"""
    return st.one_of(
        st.builds(
            lambda sel, text: {"name": "fill", "selector": sel, "text": text},
            _selectors, st.text(max_size=5),
        ),
        st.builds(
            lambda sel, count: {"name": "click", "selector": sel, "clickCount": count},
            _selectors, st.integers(min_value=1, max_value=3),
        ),
        st.builds(lambda sel: {"name": "check", "selector": sel}, _selectors),
        st.builds(lambda sel: {"name": "uncheck", "selector": sel}, _selectors),
        st.builds(lambda url: {"name": "navigate", "url": url}, _urls),
        st.builds(lambda sel: {"name": "press", "selector": sel, "key": "Enter"}, _selectors),
        st.just({"name": "hover", "selector": "#name"}),
    )


def make_event_strategy():
    """ActionInContext を生成する Hypothesis ストラテジー。"""
    return st.builds(
        lambda alias, action: ActionInContext(pageAlias=alias, action=action),
        _aliases, make_action_strategy(),
    )


def make_event_list_strategy(max_size: int = 30):
    """生イベント列を生成する Hypothesis ストラテジー。"""
    return st.lists(make_event_strategy(), max_size=max_size)
