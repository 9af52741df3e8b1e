"""
jrt — ブラウザ操作ジャーニーの記録・再生ツール

ブラウザ上の操作を記録して重複を取り除き、再生可能なジャーニー
スクリプトに変換する。生成したスクリプトは別プロセスのランナーで
実行し、結果を呼び出し側に返す。
"""

from __future__ import annotations

from .config import JrtConfig, load_config
from .gateway import JourneyGateway

__version__ = "0.1.0"

__all__ = [
    "JourneyGateway",
    "JrtConfig",
    "__version__",
    "load_config",
]
