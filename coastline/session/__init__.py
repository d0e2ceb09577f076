"""
Session Module - Manages game sessions.

A session represents one play-through:
- Created when the player starts or resumes a game
- Holds the current game state through a GameSession
- Checkpoints every turn to the player's profile
"""

from .manager import SessionManager, Session, SessionState, persistence_for_profile, saved_difficulty_or, DEFAULT_PROFILE
from .game_loop import GameSession

__all__ = [
    "SessionManager",
    "Session",
    "SessionState",
    "persistence_for_profile",
    "saved_difficulty_or",
    "DEFAULT_PROFILE",
    "GameSession",
]
