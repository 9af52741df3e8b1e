"""
recorder パッケージ — ブラウザ操作の記録とジャーニースクリプト生成

主な機能:
  - SessionController: 記録用ブラウザセッションの起動と1回限りの終了
  - ActionCapture: ページ操作を生イベントとして収集
  - ActionDeduplicator: 生イベント列の重複排除
  - ScriptWriter: アクション列をジャーニースクリプトに変換
  - JourneyRecorder: 記録1回分の処理全体
"""

from __future__ import annotations

from .actions import ActionInContext, parse_action
from .capture import ActionCapture
from .dedup import ActionDeduplicator, MergeDecision, decide_merge
from .recorder import JourneyRecorder
from .script_writer import ScriptWriter
from .session import (
    NavigationError,
    SessionController,
    SessionLaunchError,
    SessionState,
    resolve_target,
)

__all__ = [
    "ActionCapture",
    "ActionDeduplicator",
    "ActionInContext",
    "JourneyRecorder",
    "MergeDecision",
    "NavigationError",
    "ScriptWriter",
    "SessionController",
    "SessionLaunchError",
    "SessionState",
    "decide_merge",
    "parse_action",
    "resolve_target",
]
