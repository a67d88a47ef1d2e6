from __future__ import annotations

import argparse
import asyncio
import os
import sys

from meme_trader.app.bootstrap import build_runtime
from meme_trader.core.config import load_config
from meme_trader.core.env import load_dotenv
from meme_trader.monitoring.logger import get_logger, setup_logging


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="meme-trader")
    p.add_argument("mode", choices=["paper", "live"])
    p.add_argument("--config", default="configs/default.yaml", help="Path to YAML config")
    return p


async def _amain(argv: list[str]) -> int:
    args = _build_parser().parse_args(argv)
    load_dotenv(".env")
    cfg = load_config(args.config)
    setup_logging(cfg.logging.level, file=cfg.logging.file, file_level=cfg.logging.file_level)
    get_logger("main").info("Starting in %s mode (ENV=%s)", args.mode, os.environ.get("ENV", "development"))
    runtime = build_runtime(cfg, mode=args.mode)
    await runtime.run()
    return 0


def main() -> None:
    try:
        rc = asyncio.run(_amain(sys.argv[1:]))
    except KeyboardInterrupt:
        rc = 130
    raise SystemExit(rc)


if __name__ == "__main__":
    main()
