"""
アクションモデル — 記録対象となる高レベル操作の定義

ページ側のキャプチャスクリプトから届く生イベントを
Pydantic v2 モデルとして表現する。アクションは name フィールドで
種別を判別するタグ付きユニオンであり、未知の種別も GenericAction として
受け入れる（重複排除の既定ルールにそのまま流すため）。

主な型:
  - FillAction / ClickAction / CheckAction / UncheckAction / NavigateAction
  - PressAction / SelectAction / OpenPageAction / ClosePageAction
  - GenericAction: 上記以外の種別
  - ActionInContext: ページエイリアス付きの生イベント
"""

from __future__ import annotations

from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ---------------------------------------------------------------------------
# 基底モデル
# ---------------------------------------------------------------------------

class BaseAction(BaseModel):
    """全アクションの基底モデル。

    未定義フィールドも保持する（種別固有の付加情報を落とさないため）。
    """

    model_config = ConfigDict(extra="allow")

    name: str = Field(..., description="アクション種別")


# ---------------------------------------------------------------------------
# 種別ごとのアクション
# ---------------------------------------------------------------------------

class FillAction(BaseAction):
    """入力欄へのテキスト入力。キー入力ごとに最新の値で届く。"""

    name: Literal["fill"] = "fill"
    selector: str = Field(..., description="入力対象のセレクタ")
    text: str = Field(default="", description="入力後の値")


class ClickAction(BaseAction):
    """クリック操作。

    clickCount は同一要素への連続クリック回数
    （ダブルクリックなら 2）を表す。
    """

    name: Literal["click"] = "click"
    selector: str = Field(..., description="クリック対象のセレクタ")
    clickCount: int = Field(default=1, ge=1, description="連続クリック回数")
    button: Literal["left", "middle", "right"] = Field(default="left", description="マウスボタン")
    modifiers: int = Field(default=0, description="修飾キーのビットマスク")


class CheckAction(BaseAction):
    """チェックボックス / ラジオボタンのチェック。"""

    name: Literal["check"] = "check"
    selector: str


class UncheckAction(BaseAction):
    """チェックボックスのチェック解除。"""

    name: Literal["uncheck"] = "uncheck"
    selector: str


class NavigateAction(BaseAction):
    """ページ遷移。"""

    name: Literal["navigate"] = "navigate"
    url: str = Field(..., description="遷移先 URL")


class PressAction(BaseAction):
    """キー押下（Enter / Tab / Escape 等）。"""

    name: Literal["press"] = "press"
    selector: str
    key: str


class SelectAction(BaseAction):
    """select 要素の選択。"""

    name: Literal["select"] = "select"
    selector: str
    options: list[str] = Field(default_factory=list, description="選択された値のリスト")


class OpenPageAction(BaseAction):
    """新しいページ（タブ）が開かれたことを表すシグナル。"""

    name: Literal["openPage"] = "openPage"
    url: str = ""


class ClosePageAction(BaseAction):
    """ページ（タブ）が閉じられたことを表すシグナル。"""

    name: Literal["closePage"] = "closePage"


class GenericAction(BaseAction):
    """上記以外の種別。内容は解釈せずそのまま保持する。"""


Action = Union[
    FillAction,
    ClickAction,
    CheckAction,
    UncheckAction,
    NavigateAction,
    PressAction,
    SelectAction,
    OpenPageAction,
    ClosePageAction,
    GenericAction,
]

# name → モデルクラスの対応表
_ACTION_TYPES: dict[str, type[BaseAction]] = {
    "fill": FillAction,
    "click": ClickAction,
    "check": CheckAction,
    "uncheck": UncheckAction,
    "navigate": NavigateAction,
    "press": PressAction,
    "select": SelectAction,
    "openPage": OpenPageAction,
    "closePage": ClosePageAction,
}


def parse_action(data: Any) -> Action:
    """辞書（またはモデル）をアクションモデルに変換する。

    name に対応するモデルがなければ GenericAction として扱う。

    Args:
        data: アクション辞書、または BaseAction インスタンス

    Returns:
        種別に応じたアクションモデル

    Raises:
        pydantic.ValidationError: 既知の種別で必須フィールドが欠けている場合
    """
    if isinstance(data, BaseAction):
        return data
    if not isinstance(data, dict):
        raise ValueError(f"アクションは辞書で指定してください: {data!r}")
    model = _ACTION_TYPES.get(str(data.get("name", "")), GenericAction)
    return model.model_validate(data)  # type: ignore[return-value]


# ---------------------------------------------------------------------------
# 生イベント
# ---------------------------------------------------------------------------

class ActionInContext(BaseModel):
    """ページエイリアス付きのアクション（キャプチャ層が発行する生イベント）。"""

    pageAlias: str = Field(..., description="ページを識別するエイリアス（page, page1, ...）")
    action: Action = Field(..., description="アクション本体")

    @field_validator("action", mode="before")
    @classmethod
    def _coerce_action(cls, v: Any) -> Action:
        return parse_action(v)
