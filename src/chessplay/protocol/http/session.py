from __future__ import annotations

import threading
import uuid
from dataclasses import dataclass, field
from typing import Dict, Optional

from ...engine.game import Game
from ...search.service import SearchAgent


@dataclass
class GameSession:
    """One game plus the agent that plays in it.

    ``lock`` serializes every request touching the session: search mutates
    the board in place and must never overlap another request.
    """

    game: Game
    agent: SearchAgent = field(default_factory=SearchAgent)
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False)


class InMemorySessionStore:
    """Thread-safe in-memory game session store.

    Responsibilities:
    - Create new sessions with unique `game_id`s
    - Retrieve existing sessions by `game_id`
    - Delete sessions
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._sessions: Dict[str, GameSession] = {}

    def create(self, session: Optional[GameSession] = None) -> str:
        """Create a new game session and return its `game_id`."""
        gid = str(uuid.uuid4())
        if session is None:
            session = GameSession(game=Game.new())
        with self._lock:
            self._sessions[gid] = session
        return gid

    def get(self, game_id: str) -> Optional[GameSession]:
        with self._lock:
            return self._sessions.get(game_id)

    def delete(self, game_id: str) -> bool:
        with self._lock:
            return self._sessions.pop(game_id, None) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
