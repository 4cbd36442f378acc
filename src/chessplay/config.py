from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Mapping, Optional

from chessplay.engine.game import GameMode
from chessplay.search.service import Difficulty


LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


@dataclass(frozen=True)
class Settings:
    host: str = "127.0.0.1"
    port: int = 8000
    log_level: str = "INFO"
    difficulty: Difficulty = Difficulty.EASY
    mode: GameMode = GameMode.AI

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from ``CHESSPLAY_*`` environment variables.

        Raises:
            ValueError: If a variable holds an invalid value.
        """
        env = os.environ if environ is None else environ
        s = cls()
        if "CHESSPLAY_HOST" in env:
            s = replace(s, host=env["CHESSPLAY_HOST"])
        if "CHESSPLAY_PORT" in env:
            s = replace(s, port=parse_port(env["CHESSPLAY_PORT"]))
        if "CHESSPLAY_LOG_LEVEL" in env:
            s = replace(s, log_level=parse_log_level(env["CHESSPLAY_LOG_LEVEL"]))
        if "CHESSPLAY_DIFFICULTY" in env:
            s = replace(s, difficulty=Difficulty.parse(env["CHESSPLAY_DIFFICULTY"]))
        if "CHESSPLAY_MODE" in env:
            s = replace(s, mode=parse_mode(env["CHESSPLAY_MODE"]))
        return s


def parse_port(value: str) -> int:
    try:
        port = int(value)
    except ValueError as e:
        raise ValueError(f"invalid port: {value!r}") from e
    if not 1 <= port <= 65535:
        raise ValueError(f"port out of range: {port}")
    return port


def parse_log_level(value: str) -> str:
    level = value.strip().upper()
    if level not in LOG_LEVELS:
        raise ValueError(f"invalid log level: {value!r}")
    return level


def parse_mode(value: str) -> GameMode:
    try:
        return GameMode(value.strip().lower())
    except ValueError as e:
        raise ValueError(f"invalid game mode: {value!r}") from e
