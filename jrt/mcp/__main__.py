"""python -m jrt.mcp で MCP サーバーを起動する。

設定は jrt.yaml → JRT_* 環境変数 → 引数（--headless, --journeys-dir など）の順に重ねる。
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence

from ..config import apply_cli_args, build_cli_parser, load_config
from .server import create_server


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = build_cli_parser().parse_args(argv)
    config = load_config(Path(args.config) if args.config else None)
    create_server(config=apply_cli_args(config, args)).run()


if __name__ == "__main__":
    main()
