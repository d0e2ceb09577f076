"""
Pydantic Schemas for API - Request/response models for OpenAPI.

These models define the contract between a game client and the engine.
All responses include explicit types for OpenAPI schema generation.

Error Codes:
- SESSION_NOT_FOUND: Session does not exist or has ended
- INVALID_DIFFICULTY: Unknown difficulty preset
- INVALID_ACTION: A placement or selection was rejected
- GAME_OVER: The game has already ended
- NO_SAVED_GAME: There is no save to load or export
- VALIDATION_ERROR: Imported data failed validation
- STORAGE_ERROR: Storage could not be written
"""

from enum import Enum
from typing import Optional, Any
from pydantic import BaseModel, Field

from ..engine_core.state import BOARD_SIZE
from ..persistence.serialization import SessionStat


# =============================================================================
# Enums
# =============================================================================

class SessionStatus(str, Enum):
    """Session status values."""
    ACTIVE = "active"
    GAME_OVER = "game_over"
    ABANDONED = "abandoned"


class ErrorCode(str, Enum):
    """Structured error codes."""
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    INVALID_DIFFICULTY = "INVALID_DIFFICULTY"
    INVALID_ACTION = "INVALID_ACTION"
    GAME_OVER = "GAME_OVER"
    NO_SAVED_GAME = "NO_SAVED_GAME"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    STORAGE_ERROR = "STORAGE_ERROR"


# =============================================================================
# Shared Models
# =============================================================================

class ResourcesInfo(BaseModel):
    """The four city resources, each in [0, 100]."""
    money: float
    wellbeing: float
    environment: float
    resilience: float


class CellInfo(BaseModel):
    """One board cell."""
    row: int
    col: int
    type: str = Field(description="land or coast")
    structure: Optional[str] = None
    flooded: bool = False


class StructureInfo(BaseModel):
    """A buildable structure kind."""
    kind_id: str
    name: str
    cost: float
    effects: dict[str, float] = Field(default_factory=dict)
    placement_rule: str
    protects_from_flood: bool = False
    icon: str = ""


# =============================================================================
# Request Models
# =============================================================================

class CreateSessionRequest(BaseModel):
    """Request to start or resume a game."""
    difficulty: str = Field("normal", description="easy, normal, hard or realistic")
    profile: str = Field("default", pattern=r"^[A-Za-z0-9_-]+$", description="Save profile")
    resume: bool = Field(False, description="Continue the profile's saved game")
    seed: Optional[int] = Field(None, description="Seed for deterministic play")


class PlaceStructureRequest(BaseModel):
    """Request to build on a cell."""
    kind: str = Field(description="Structure kind id")
    row: int = Field(ge=0, lt=BOARD_SIZE)
    col: int = Field(ge=0, lt=BOARD_SIZE)


class ImportRequest(BaseModel):
    """An exported game: a bare serialized state or a full save record."""
    snapshot: dict[str, Any]


# =============================================================================
# Response Models
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str = Field(..., description="Human-readable error message")
    error_code: ErrorCode = Field(..., description="Machine-readable error code")
    details: Optional[dict[str, Any]] = Field(None, description="Additional error context")
    api_version: str = Field("v1", description="API version")


class SessionResponse(BaseModel):
    """Response containing session information."""
    session_id: str
    status: SessionStatus
    difficulty: str
    profile: str
    resumed: bool = False
    turn: int = 0
    year: int = 0
    created_at: float = 0.0
    api_version: str = "v1"


class GameStateResponse(BaseModel):
    """Complete game state for display."""
    session_id: str
    status: SessionStatus
    turn: int
    year: int
    resources: ResourcesInfo
    board: list[list[CellInfo]] = Field(default_factory=list)
    selected_cell: Optional[tuple[int, int]] = None
    game_over: bool = False
    outcome: Optional[str] = None
    score: int = 0
    sea_level_rise: float = 0.0
    achievements: list[str] = Field(default_factory=list)
    environmental_snapshot: Optional[dict[str, Any]] = None
    api_version: str = "v1"


class TurnResponse(BaseModel):
    """What happened during one turn."""
    session_id: str
    status: str = Field(description="continuing, no_op, turn_limit_reached, victory, defeat, timeout")
    turn: int
    year: int
    tags: list[str] = Field(default_factory=list)
    fired_rules: list[str] = Field(default_factory=list)
    rule_errors: list[str] = Field(default_factory=list)
    flooded_cells: int = 0
    unlocked_achievements: list[str] = Field(default_factory=list)
    external_event: Optional[str] = None
    score: int = 0
    checkpointed: bool = False
    game_state: GameStateResponse
    api_version: str = "v1"


class ActionResponse(BaseModel):
    """Result of a player action or import."""
    success: bool
    changes: list[str] = Field(default_factory=list)
    game_state: GameStateResponse
    api_version: str = "v1"


class SaveResponse(BaseModel):
    success: bool
    save_info: Optional[dict[str, Any]] = None


class LoadResponse(BaseModel):
    loaded: bool
    game_state: GameStateResponse


class ExportResponse(BaseModel):
    """Serialized game state, importable later."""
    session_id: str
    snapshot: dict[str, Any]


class ClimateRefreshResponse(BaseModel):
    """Which snapshot parts were refreshed; failed parts kept their last value."""
    session_id: str
    updated: list[str] = Field(default_factory=list)
    failed: dict[str, str] = Field(default_factory=dict)
    environmental_snapshot: Optional[dict[str, Any]] = None


class SummaryResponse(BaseModel):
    """Read-only state summary, optionally with advisor text."""
    session_id: str
    summary: dict[str, Any]
    advice: Optional[str] = None


class StatsResponse(BaseModel):
    """Session history for a profile, newest first."""
    profile: str
    sessions: list[SessionStat] = Field(default_factory=list)
    total_sessions: int = 0
    victories: int = 0
    defeats: int = 0
    best_score: int = 0
    average_score: int = 0


class StructureListResponse(BaseModel):
    structures: list[StructureInfo]


class EventListResponse(BaseModel):
    """Climate event rules in evaluation order, as plain data."""
    events: list[dict[str, Any]]


class SessionListResponse(BaseModel):
    """Response listing active sessions."""
    sessions: list[str]
    count: int


class EndSessionResponse(BaseModel):
    """Response after ending a session."""
    success: bool
    session_id: str


class ClearStatsResponse(BaseModel):
    success: bool
    profile: str


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    service: str
    version: str
