"""
Session Manager - Creates and tracks game sessions.

LIFECYCLE:
1. Host creates a session (fresh, or resumed from the player's save)
2. During the game the host drives the session's GameSession
3. Every turn is checkpointed to the player's profile in storage
4. Game ends -> a session statistic is recorded, the save is kept
5. Host ends the session -> removed from memory, storage untouched

PERSISTENCE RULES:
- Sessions live in memory
- Saves and statistics live in KeyValueStorage, one profile per player
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
import logging
import random
import time
from typing import Any
import uuid

from ..catalog.config import DEFAULT_CONFIG, GameConfig
from ..climate_data import ClimateDataProvider
from ..persistence import BACKUP_KEY, SAVE_KEY, STATS_KEY, KeyValueStorage, MemoryStorage, PersistenceManager
from .game_loop import GameSession

logger = logging.getLogger(__name__)

DEFAULT_PROFILE = "default"


class SessionState(Enum):
    """State of a game session."""
    ACTIVE = "active"  # Game in progress
    GAME_OVER = "game_over"  # Game completed
    ABANDONED = "abandoned"  # Host ended it early


@dataclass
class Session:
    """An in-memory game session."""
    session_id: str
    profile: str
    game: GameSession
    created_at: float
    state: SessionState = SessionState.ACTIVE
    metadata: dict[str, Any] = field(default_factory=dict)

    def is_active(self) -> bool:
        return self.state == SessionState.ACTIVE

    def refresh_status(self) -> SessionState:
        """Sync the session state with the game's game_over flag."""
        if self.state == SessionState.ACTIVE and self.game.is_over:
            self.state = SessionState.GAME_OVER
        return self.state


def persistence_for_profile(
    storage: KeyValueStorage,
    config: GameConfig,
    profile: str = DEFAULT_PROFILE,
) -> PersistenceManager:
    """A PersistenceManager whose keys are namespaced by profile."""
    prefix = "" if profile == DEFAULT_PROFILE else f"{profile}_"
    return PersistenceManager(
        storage,
        config,
        save_key=prefix + SAVE_KEY,
        backup_key=prefix + BACKUP_KEY,
        stats_key=prefix + STATS_KEY,
    )


def saved_difficulty_or(storage: KeyValueStorage, difficulty: str, profile: str = DEFAULT_PROFILE) -> str:
    """Difficulty of the profile's saved game, or difficulty when there is none."""
    saved = persistence_for_profile(storage, DEFAULT_CONFIG, profile).saved_difficulty()
    return saved or difficulty


class SessionManager:
    """
    Manages game sessions.

    Responsibilities:
    - Create sessions, fresh or resumed from storage
    - Track active sessions
    - Clean up finished sessions
    """

    def __init__(
        self,
        storage: KeyValueStorage | None = None,
        climate_provider: ClimateDataProvider | None = None,
    ):
        self.storage = storage if storage is not None else MemoryStorage()
        self.climate_provider = climate_provider
        self._sessions: dict[str, Session] = {}

    def create_session(
        self,
        difficulty: str = "normal",
        profile: str = DEFAULT_PROFILE,
        resume: bool = False,
        seed: int | None = None,
    ) -> Session:
        """
        Create a new game session.

        Args:
            difficulty: Difficulty preset name
            profile: Storage namespace for saves and statistics
            resume: Continue the profile's saved game if there is one,
                on the difficulty it was saved with
            seed: Seed for the session rng (deterministic play)

        Raises ValueError for an unknown difficulty.
        """
        if resume:
            difficulty = saved_difficulty_or(self.storage, difficulty, profile)
        config = GameConfig.for_difficulty(difficulty)
        persistence = persistence_for_profile(self.storage, config, profile)
        game = GameSession(
            config=config,
            persistence=persistence,
            climate_provider=self.climate_provider,
            rng=random.Random(seed),
        )
        resumed = game.load() if resume else False

        session = Session(
            session_id=str(uuid.uuid4()),
            profile=profile,
            game=game,
            created_at=time.time(),
            metadata={"difficulty": difficulty, "resumed": resumed},
        )
        session.refresh_status()
        self._sessions[session.session_id] = session
        logger.info("Created session %s (%s, resumed=%s)", session.session_id, difficulty, resumed)
        return session

    def get_session(self, session_id: str) -> Session | None:
        return self._sessions.get(session_id)

    def end_session(self, session_id: str, reason: str = "completed") -> bool:
        """Remove a session from memory. Its save stays in storage."""
        session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        if reason == "completed":
            session.state = SessionState.GAME_OVER
        else:
            session.state = SessionState.ABANDONED
        logger.info("Ended session %s (%s)", session_id, reason)
        return True

    def list_active_sessions(self) -> list[str]:
        return [
            sid for sid, session in self._sessions.items()
            if session.is_active()
        ]

    def cleanup_stale_sessions(self, max_age_seconds: int = 3600) -> int:
        """End finished sessions older than max_age. Returns the count."""
        now = time.time()
        stale = [
            sid for sid, session in self._sessions.items()
            if now - session.created_at > max_age_seconds and session.refresh_status() != SessionState.ACTIVE
        ]
        for sid in stale:
            self.end_session(sid, reason="stale")
        return len(stale)
