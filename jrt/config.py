"""
jrt 設定 — 設定ファイル・環境変数・CLI 引数からの設定読み込み

設定ファイル（jrt.yaml）、環境変数、CLI 引数で動作を制御する。
CLI 引数 > 環境変数 > 設定ファイル > デフォルト値 の優先順位で適用される。

環境変数一覧:
  JRT_HEADED          : 記録用ブラウザの表示モード（true/false, デフォルト: true）
  JRT_CHANNEL         : ブラウザチャンネル（chromium/chrome/msedge, デフォルト: chromium）
  JRT_VIEWPORT_WIDTH  : ビューポート幅（デフォルト: 1280）
  JRT_VIEWPORT_HEIGHT : ビューポート高さ（デフォルト: 720）
  JRT_JOURNEYS_DIR    : スイート実行用一時ファイルの置き場所（デフォルト: journeys）
  JRT_RUNNER_COMMAND  : ジャーニーランナーのコマンド（シェル形式, デフォルト: python -m jrt.journey）
"""

from __future__ import annotations

import logging
import os
import shlex
import sys
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Optional

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

logger = logging.getLogger(__name__)

# デフォルトの設定ファイル名
CONFIG_FILE_NAME = "jrt.yaml"

# ---------------------------------------------------------------------------
# 環境変数キー定数
# ---------------------------------------------------------------------------

_ENV_HEADED = "JRT_HEADED"
_ENV_CHANNEL = "JRT_CHANNEL"
_ENV_VIEWPORT_WIDTH = "JRT_VIEWPORT_WIDTH"
_ENV_VIEWPORT_HEIGHT = "JRT_VIEWPORT_HEIGHT"
_ENV_JOURNEYS_DIR = "JRT_JOURNEYS_DIR"
_ENV_RUNNER_COMMAND = "JRT_RUNNER_COMMAND"

_CHANNELS = ("chromium", "chrome", "msedge")


def _default_runner_command() -> list[str]:
    return [sys.executable, "-m", "jrt.journey"]


# ---------------------------------------------------------------------------
# 設定データクラス
# ---------------------------------------------------------------------------

@dataclass
class JrtConfig:
    """jrt の実行時設定。

    Attributes:
        headed: 記録用ブラウザを表示するか
        channel: ブラウザチャンネル
        viewport_width: ビューポート幅
        viewport_height: ビューポート高さ
        journeys_dir: スイート実行用一時ファイルのディレクトリ
        suite_file_name: スイート実行用一時ファイル名（固定）
        default_save_name: 保存ダイアログの既定ファイル名
        journey_name: スイート形式で生成するジャーニー名
        runner_command: ジャーニーランナーのコマンド
        navigation_grace: 操作直後の遷移を操作由来とみなす秒数
    """

    headed: bool = True
    channel: str = "chromium"
    viewport_width: int = 1280
    viewport_height: int = 720
    journeys_dir: str = "journeys"
    suite_file_name: str = "recorded.journey.py"
    default_save_name: str = "recorded.journey.py"
    journey_name: str = "Recorded journey"
    runner_command: list[str] = field(default_factory=_default_runner_command)
    navigation_grace: float = 1.5

    @property
    def viewport(self) -> tuple[int, int]:
        """ビューポートサイズ (幅, 高さ) を返す。"""
        return (self.viewport_width, self.viewport_height)


# ---------------------------------------------------------------------------
# 値の変換
# ---------------------------------------------------------------------------

def _parse_bool(value: str) -> bool:
    """文字列を bool に変換する。

    Args:
        value: "true", "1", "yes" → True、それ以外 → False

    Returns:
        変換結果
    """
    return value.lower() in ("true", "1", "yes")


def _set_int(config: JrtConfig, attr: str, raw: Any, source: str) -> None:
    try:
        setattr(config, attr, int(raw))
    except (TypeError, ValueError):
        logger.warning("%s の値が不正です: %s", source, raw)


# ---------------------------------------------------------------------------
# 設定ファイルからの読み込み
# ---------------------------------------------------------------------------

def load_config_file(path: Path, config: Optional[JrtConfig] = None) -> JrtConfig:
    """jrt.yaml を読み込んで設定に反映する。

    ファイルが存在しない場合は何もしない。未知のキーは警告して無視する。

    Args:
        path: 設定ファイルのパス
        config: ベースとなる設定（None でデフォルト値）

    Returns:
        設定ファイルを反映した設定
    """
    config = config or JrtConfig()
    if not path.exists():
        return config

    yaml = YAML(typ="safe")
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.load(f) or {}
    except (OSError, YAMLError) as exc:
        logger.warning("設定ファイルを読み込めませんでした: %s (%s)", path, exc)
        return config

    if not isinstance(data, dict):
        logger.warning("設定ファイルの形式が不正です: %s", path)
        return config

    known = {f.name for f in fields(JrtConfig)}
    for key, value in data.items():
        if key not in known:
            logger.warning("未知の設定項目を無視しました: %s", key)
            continue
        if key in ("viewport_width", "viewport_height"):
            _set_int(config, key, value, f"{path}:{key}")
        elif key == "headed":
            config.headed = value if isinstance(value, bool) else _parse_bool(str(value))
        elif key == "runner_command":
            config.runner_command = shlex.split(value) if isinstance(value, str) else [str(v) for v in value]
        elif key == "navigation_grace":
            try:
                config.navigation_grace = float(value)
            except (TypeError, ValueError):
                logger.warning("%s:navigation_grace の値が不正です: %s", path, value)
        else:
            setattr(config, key, str(value))

    logger.info("設定ファイルを読み込みました: %s", path)
    return config


# ---------------------------------------------------------------------------
# 環境変数からの読み込み
# ---------------------------------------------------------------------------

def load_config_from_env(config: Optional[JrtConfig] = None) -> JrtConfig:
    """環境変数を設定に反映する。

    設定されていない環境変数は既存の値を維持する。

    Args:
        config: ベースとなる設定（None でデフォルト値）

    Returns:
        環境変数を反映した設定
    """
    config = config or JrtConfig()

    if _ENV_HEADED in os.environ:
        config.headed = _parse_bool(os.environ[_ENV_HEADED])

    if _ENV_CHANNEL in os.environ:
        val = os.environ[_ENV_CHANNEL]
        if val in _CHANNELS:
            config.channel = val
        else:
            logger.warning("JRT_CHANNEL の値が不正です: %s", val)

    if _ENV_VIEWPORT_WIDTH in os.environ:
        _set_int(config, "viewport_width", os.environ[_ENV_VIEWPORT_WIDTH], _ENV_VIEWPORT_WIDTH)

    if _ENV_VIEWPORT_HEIGHT in os.environ:
        _set_int(config, "viewport_height", os.environ[_ENV_VIEWPORT_HEIGHT], _ENV_VIEWPORT_HEIGHT)

    if _ENV_JOURNEYS_DIR in os.environ:
        config.journeys_dir = os.environ[_ENV_JOURNEYS_DIR]

    if _ENV_RUNNER_COMMAND in os.environ:
        command = shlex.split(os.environ[_ENV_RUNNER_COMMAND])
        if command:
            config.runner_command = command
        else:
            logger.warning("JRT_RUNNER_COMMAND が空です")

    return config


def load_config(config_path: Optional[Path] = None) -> JrtConfig:
    """設定ファイル → 環境変数の順で設定を構築する。

    Args:
        config_path: 設定ファイルのパス（None でカレントの jrt.yaml）

    Returns:
        構築した設定
    """
    path = config_path if config_path is not None else Path(CONFIG_FILE_NAME)
    config = load_config_file(path)
    config = load_config_from_env(config)
    logger.debug("設定を読み込みました: %s", config)
    return config


# ---------------------------------------------------------------------------
# CLI 引数
# ---------------------------------------------------------------------------

def build_cli_parser():
    """MCP サーバー用の CLI 引数パーサーを構築する。

    Returns:
        argparse.ArgumentParser インスタンス
    """
    import argparse

    parser = argparse.ArgumentParser(
        description="jrt MCP Server - record and run browser journeys",
    )
    parser.add_argument(
        "--config", type=str, default=None,
        help=f"Config file path (default: ./{CONFIG_FILE_NAME})",
    )
    parser.add_argument(
        "--headless", action="store_true", default=None,
        help="Run the recording browser headless (default: headed)",
    )
    parser.add_argument(
        "--headed", action="store_true", default=None,
        help="Run the recording browser headed (default)",
    )
    parser.add_argument(
        "--channel", type=str, default=None, choices=list(_CHANNELS),
        help="Browser channel (default: chromium)",
    )
    parser.add_argument(
        "--journeys-dir", type=str, default=None,
        help="Directory for the suite-mode journey file (default: journeys)",
    )
    parser.add_argument(
        "--viewport", type=str, default=None,
        help="Viewport size as WIDTHxHEIGHT (e.g. 1920x1080)",
    )
    return parser


def apply_cli_args(config: JrtConfig, args: Any) -> JrtConfig:
    """CLI 引数を設定に適用する。

    CLI 引数が指定されている場合のみ上書きする。

    Args:
        config: ベースとなる設定（ファイル・環境変数から読み込み済み）
        args: argparse の解析結果

    Returns:
        CLI 引数が適用された設定
    """
    if getattr(args, "headless", None):
        config.headed = False
    elif getattr(args, "headed", None):
        config.headed = True

    channel = getattr(args, "channel", None)
    if channel is not None:
        config.channel = channel

    journeys_dir = getattr(args, "journeys_dir", None)
    if journeys_dir is not None:
        config.journeys_dir = journeys_dir

    viewport_str = getattr(args, "viewport", None)
    if viewport_str is not None:
        try:
            w, h = str(viewport_str).split("x")
            config.viewport_width = int(w)
            config.viewport_height = int(h)
        except (ValueError, AttributeError):
            logger.warning("--viewport の形式が不正です: %s (WIDTHxHEIGHT)", viewport_str)

    return config
