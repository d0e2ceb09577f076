"""
API Module - HTTP interface for game clients.

Exposes the engine via a REST API:
1. Create or resume game sessions
2. Place structures and advance turns
3. Save, load, export and import games
4. Refresh climate data and read summaries

Sessions are in memory; saves and statistics go to storage.
"""

from .schemas import (
    # Requests
    CreateSessionRequest,
    PlaceStructureRequest,
    ImportRequest,
    # Responses
    SessionResponse,
    GameStateResponse,
    TurnResponse,
    ActionResponse,
    ErrorResponse,
    # Enums
    ErrorCode,
    SessionStatus,
)
from .service import APIService
from .app import create_app

__all__ = [
    # Requests
    "CreateSessionRequest",
    "PlaceStructureRequest",
    "ImportRequest",
    # Responses
    "SessionResponse",
    "GameStateResponse",
    "TurnResponse",
    "ActionResponse",
    "ErrorResponse",
    # Enums
    "ErrorCode",
    "SessionStatus",
    # Service
    "APIService",
    "create_app",
]
