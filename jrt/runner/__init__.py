"""
runner パッケージ — ジャーニーの別プロセス実行

主な機能:
  - ExecutionHarness: ジャーニーランナー CLI を子プロセスで実行し、出力を収集
  - strip_color_codes: 出力からの ANSI カラーコード除去
"""

from __future__ import annotations

from .harness import (
    ExecutionError,
    ExecutionHarness,
    JourneyRun,
    JourneyRunResult,
    strip_color_codes,
)

__all__ = [
    "ExecutionError",
    "ExecutionHarness",
    "JourneyRun",
    "JourneyRunResult",
    "strip_color_codes",
]
