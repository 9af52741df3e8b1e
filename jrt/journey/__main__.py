"""
jrt ジャーニーランナーのエントリポイント

python -m jrt.journey でジャーニーを実行する。
"""

from __future__ import annotations

from .cli import app

app(prog_name="jrt-journey")
