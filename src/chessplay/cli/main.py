from __future__ import annotations

import argparse
import logging
from dataclasses import replace
from typing import List, Optional

import uvicorn

from chessplay.config import Settings, parse_log_level, parse_mode, parse_port
from chessplay.search.service import Difficulty


logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chessplay", description="Run the chessplay HTTP API or UCI engine"
    )
    parser.add_argument("--host", type=str, help="Bind address (env CHESSPLAY_HOST)")
    parser.add_argument("--port", type=parse_port, help="Bind port (env CHESSPLAY_PORT)")
    parser.add_argument(
        "--log-level", type=parse_log_level, help="Log level (env CHESSPLAY_LOG_LEVEL)"
    )
    parser.add_argument(
        "--difficulty",
        type=Difficulty.parse,
        help="Default difficulty: easy, medium, hard or 1..3 (env CHESSPLAY_DIFFICULTY)",
    )
    parser.add_argument(
        "--mode", type=parse_mode, help="Default game mode: ai or pvp (env CHESSPLAY_MODE)"
    )
    parser.add_argument(
        "--uci", action="store_true", help="Speak UCI on stdin/stdout instead of HTTP"
    )
    return parser


def resolve_settings(args: argparse.Namespace, base: Optional[Settings] = None) -> Settings:
    """Layer command-line flags over environment settings."""
    settings = base if base is not None else Settings.from_env()
    overrides = {
        name: getattr(args, name)
        for name in ("host", "port", "log_level", "difficulty", "mode")
        if getattr(args, name) is not None
    }
    return replace(settings, **overrides)


def main(argv: Optional[List[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        settings = resolve_settings(args)
    except ValueError as e:
        parser.error(str(e))

    if args.uci:
        from chessplay.protocol.uci.loop import run_uci

        # stdout carries the protocol; logs go to stderr.
        logging.basicConfig(level=settings.log_level)
        run_uci(difficulty=settings.difficulty)
        return

    from chessplay.protocol.http.app import create_app

    logger.info("starting http server", extra={"host": settings.host, "port": settings.port})
    uvicorn.run(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
