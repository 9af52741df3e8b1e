"""
ScriptWriter — コンパクト化したアクション列をジャーニースクリプトに変換

ActionDeduplicator が保持するアクション列を、jrt.journey ランナーで
再生できる Python ソースに変換する。

出力形式:
  - インライン: page / context を使う文の並び（--inline で標準入力から実行）
  - スイート: @journey デコレータ付き関数を持つモジュール（ファイルとして実行）
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import TYPE_CHECKING

from jinja2 import Environment, FileSystemLoader

if TYPE_CHECKING:
    from .actions import ActionInContext

logger = logging.getLogger(__name__)

# テンプレートディレクトリのパス
_TEMPLATES_DIR = Path(__file__).parent.parent / "templates"

# ランナーが生成済みのページ
_MAIN_PAGE_ALIAS = "page"


class ScriptWriter:
    """アクション列をジャーニースクリプトに変換するライター。

    使用例::

        writer = ScriptWriter(is_suite=True)
        code = writer.generate_text(dedup.actions)
    """

    def __init__(self, is_suite: bool = False, journey_name: str = "Recorded journey") -> None:
        """ライターを初期化する。

        Args:
            is_suite: True でスイート形式（ファイル）、False でインライン形式
            journey_name: スイート形式で使うジャーニー名
        """
        self.is_suite = is_suite
        self.journey_name = journey_name
        self._env = Environment(
            loader=FileSystemLoader(str(_TEMPLATES_DIR)),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )

    def generate_text(self, actions: list[ActionInContext]) -> str:
        """アクション列からスクリプトのソースを生成する。

        Args:
            actions: コンパクト化済みのアクション列

        Returns:
            Python ソース文字列
        """
        lines = [line for line in (self._action_to_line(a) for a in actions) if line]

        if self.is_suite:
            template = self._env.get_template("journey_suite.py.j2")
            code = template.render(
                lines=lines,
                journey_name=_escape_string(self.journey_name),
                function_name=_function_name(self.journey_name),
            )
        else:
            template = self._env.get_template("journey_inline.py.j2")
            code = template.render(lines=lines)

        logger.info("スクリプトを生成しました (%d 行, suite=%s)", len(lines), self.is_suite)
        return code

    def _action_to_line(self, item: ActionInContext) -> str:
        """単一アクションを Python コード行に変換する。

        Args:
            item: ページエイリアス付きアクション

        Returns:
            Python コード行（空文字列の場合はスキップ）
        """
        alias = item.pageAlias
        action = item.action
        name = action.name

        if name == "openPage":
            if alias == _MAIN_PAGE_ALIAS:
                return ""
            return f"{alias} = context.new_page()"

        if name == "closePage":
            if alias == _MAIN_PAGE_ALIAS:
                return ""
            return f"{alias}.close()"

        if name == "navigate":
            return f'{alias}.goto("{_escape_string(action.url)}")'

        selector = getattr(action, "selector", None)
        if not selector:
            return f"# unsupported action: {name}"
        target = f'"{_escape_string(selector)}"'

        if name == "click":
            count = action.clickCount
            options = ""
            if action.button != "left":
                options += f', button="{action.button}"'
            if count == 2:
                return f"{alias}.dblclick({target}{options})"
            if count > 2:
                options += f", click_count={count}"
            return f"{alias}.click({target}{options})"

        if name == "fill":
            return f'{alias}.fill({target}, "{_escape_string(action.text)}")'

        if name == "check":
            return f"{alias}.check({target})"

        if name == "uncheck":
            return f"{alias}.uncheck({target})"

        if name == "press":
            return f'{alias}.press({target}, "{_escape_string(action.key)}")'

        if name == "select":
            options = ", ".join(f'"{_escape_string(o)}"' for o in action.options)
            return f"{alias}.select_option({target}, [{options}])"

        return f"# unsupported action: {name}"


def _function_name(journey_name: str) -> str:
    """ジャーニー名から関数名を生成する。"""
    slug = re.sub(r"[^a-zA-Z0-9]+", "_", journey_name).strip("_").lower()
    if not slug or slug[0].isdigit():
        slug = f"journey_{slug}"
    return slug


def _escape_string(s: str) -> str:
    """Python 文字列リテラル用にエスケープする。

    Args:
        s: エスケープ対象の文字列

    Returns:
        エスケープ済み文字列
    """
    return s.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")
