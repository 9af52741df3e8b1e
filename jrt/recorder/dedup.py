"""
ActionDeduplicator — 記録中アクション列の重複排除エンジン

キャプチャ層から時系列順に届く生イベントを受け取り、
冗長な中間イベントを最終的な1アクションにまとめた
コンパクトなアクション列を維持する。

マージ規則（直前のアクションと同一ページエイリアスの場合のみ適用）:
  1. fill → fill（同一セレクタ）: 直前の fill を置き換える
  2. click → click（同一セレクタ、clickCount 増加）: 直前の click を置き換える
  3. navigate → navigate（同一 URL）: 新しいイベントを破棄する
  4. click → check / uncheck（同一セレクタ）: 直前の click を置き換える
  5. それ以外: 末尾に追加する

判定は純粋関数 decide_merge() に分離しており、規則ごとに単体テストできる。
"""

from __future__ import annotations

import enum
import logging
from typing import Any, Optional, Union

from .actions import ActionInContext

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# マージ判定
# ---------------------------------------------------------------------------

class MergeDecision(enum.Enum):
    """新しいイベントの扱い。"""

    APPEND = "append"
    REPLACE_LAST = "replace_last"
    DROP = "drop"

    @property
    def erase_previous(self) -> bool:
        """直前のエントリを取り除くかどうか。"""
        return self is MergeDecision.REPLACE_LAST

    @property
    def appends(self) -> bool:
        """新しいアクションを末尾に追加するかどうか。"""
        return self is not MergeDecision.DROP


# check / uncheck は直前の click を打ち消す
_TOGGLE_ACTIONS = frozenset({"check", "uncheck"})


def decide_merge(
    last: Optional[ActionInContext],
    incoming: ActionInContext,
) -> MergeDecision:
    """直前のアクションと新しいアクションからマージ方法を決定する。

    ページエイリアスが異なる場合はマージしない。
    未知のアクション種別は常に APPEND となり、例外は発生しない。

    Args:
        last: 直前に受理したアクション（未受理なら None）
        incoming: 新しく届いたアクション

    Returns:
        マージ判定
    """
    if last is None or last.pageAlias != incoming.pageAlias:
        return MergeDecision.APPEND

    prev = last.action
    action = incoming.action
    prev_selector = getattr(prev, "selector", None)
    same_selector = (
        prev_selector is not None
        and prev_selector == getattr(action, "selector", None)
    )

    if action.name == "fill" and prev.name == "fill" and same_selector:
        return MergeDecision.REPLACE_LAST

    if action.name == "click" and prev.name == "click" and same_selector:
        if action.clickCount > prev.clickCount:  # type: ignore[attr-defined]
            return MergeDecision.REPLACE_LAST

    if action.name == "navigate" and prev.name == "navigate":
        # 既に遷移先にいる
        if action.url == prev.url:  # type: ignore[attr-defined]
            return MergeDecision.DROP

    if action.name in _TOGGLE_ACTIONS and prev.name == "click" and same_selector:
        return MergeDecision.REPLACE_LAST

    return MergeDecision.APPEND


# ---------------------------------------------------------------------------
# ActionDeduplicator 本体
# ---------------------------------------------------------------------------

class ActionDeduplicator:
    """1回の記録セッション分のアクション列を保持する重複排除エンジン。

    記録ごとに新しいインスタンスを生成する。セッション終了時に stop() で
    受付を止め、スクリプト生成後に clear() で中身を破棄する。

    使用例::

        dedup = ActionDeduplicator()
        dedup.on_action({"pageAlias": "page", "action": {"name": "fill", ...}})
        actions = dedup.actions
    """

    def __init__(self) -> None:
        """空のアクション列で初期化する。"""
        self._actions: list[ActionInContext] = []
        self._last_action_context: Optional[ActionInContext] = None
        self._accepting = True

    @property
    def actions(self) -> list[ActionInContext]:
        """コンパクト化されたアクション列のコピーを返す。"""
        return list(self._actions)

    @property
    def last_action_context(self) -> Optional[ActionInContext]:
        """直前に受理したアクションを返す。"""
        return self._last_action_context

    @property
    def is_accepting(self) -> bool:
        """イベントを受け付けているかどうかを返す。"""
        return self._accepting

    def __len__(self) -> int:
        return len(self._actions)

    def on_action(
        self,
        event: Union[ActionInContext, dict[str, Any]],
    ) -> MergeDecision:
        """生イベントを1件処理する。

        Args:
            event: ActionInContext、または同じ形の辞書

        Returns:
            適用したマージ判定（受付停止後は DROP）
        """
        if not self._accepting:
            logger.debug("記録終了後のイベントを無視しました: %s", event)
            return MergeDecision.DROP

        if not isinstance(event, ActionInContext):
            event = ActionInContext.model_validate(event)

        decision = decide_merge(self._last_action_context, event)
        if decision is MergeDecision.DROP:
            logger.debug("重複した遷移を破棄しました: %s", event.action)
            return decision

        self._last_action_context = event
        if decision.erase_previous and self._actions:
            replaced = self._actions.pop()
            logger.debug("アクションを置き換えました: %s → %s", replaced.action.name, event.action.name)
        self._actions.append(event)
        return decision

    def stop(self) -> None:
        """イベントの受付を停止する。"""
        self._accepting = False

    def clear(self) -> None:
        """アクション列と直前コンテキストを破棄する。"""
        self._actions.clear()
        self._last_action_context = None
