"""
Save format - Serialization, structural validation and restore.

Persisted models (pydantic):
- SaveRecord: {version, timestamp, difficulty, state}
- SerializedGameState: the persisted projection of GameState
- SessionStat: one finished (or abandoned) session

Validation is done by hand before any model is built so that every
problem is reported, and so that values pydantic would coerce (a
numeric string, a bool where a number belongs) are rejected instead.
"""

from datetime import datetime, timezone
import logging
import math
from typing import Any, Optional
import uuid

from pydantic import BaseModel, Field

from ..catalog.config import DIFFICULTY_SETTINGS, GameConfig
from ..catalog.structures import STRUCTURES
from ..catalog.validation import ValidationResult
from ..engine_core.end_conditions import calculate_score, determine_outcome
from ..engine_core.errors import RestoreFailed
from ..engine_core.state import (
    BOARD_SIZE,
    RESOURCE_NAMES,
    Cell,
    CellType,
    EnvironmentalSnapshot,
    GameOutcome,
    GameState,
    board_is_well_formed,
    create_cell,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Models
# =============================================================================

class SerializedCell(BaseModel):
    type: CellType
    structure: Optional[str] = None
    flooded: bool = False


class SerializedGameState(BaseModel):
    """Persisted fields of a GameState. UI-only and one-turn fields are absent."""
    money: float
    wellbeing: float
    environment: float
    resilience: float
    current_year: int
    turn: int
    game_over: bool
    board: list[list[SerializedCell]]
    outcome: Optional[GameOutcome] = None
    achievements: list[str] = Field(default_factory=list)
    environmental_snapshot: Optional[dict[str, Any]] = None
    last_saved: Optional[str] = None


class SaveRecord(BaseModel):
    version: str
    timestamp: str
    difficulty: str = "normal"
    state: SerializedGameState


class SessionStat(BaseModel):
    """Summary of one session, kept in the capped history."""
    model_config = {"frozen": True}

    id: str
    date: str
    final_year: int
    final_score: int
    turns: int
    outcome: GameOutcome
    resource_snapshot: dict[str, float]


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# =============================================================================
# Serialize
# =============================================================================

def serialize_state(state: GameState) -> dict[str, Any]:
    """
    Project a GameState onto its persisted fields.

    Drops selected_cell and flood_risk_bonus.
    """
    snapshot = state.environmental_snapshot
    return {
        "money": state.money,
        "wellbeing": state.wellbeing,
        "environment": state.environment,
        "resilience": state.resilience,
        "current_year": state.current_year,
        "turn": state.turn,
        "game_over": state.game_over,
        "board": [
            [
                {
                    "type": cell.type.value if isinstance(cell.type, CellType) else cell.type,
                    "structure": cell.structure,
                    "flooded": cell.flooded,
                }
                for cell in row
            ]
            for row in state.board
        ],
        "outcome": state.outcome.value if state.outcome is not None else None,
        "achievements": list(state.achievements),
        "environmental_snapshot": snapshot.to_dict() if snapshot is not None else None,
        "last_saved": now_iso(),
    }


def build_record(state: GameState, version: str, difficulty: str = "normal") -> SaveRecord:
    return SaveRecord(
        version=version,
        timestamp=now_iso(),
        difficulty=difficulty,
        state=SerializedGameState.model_validate(serialize_state(state)),
    )


def build_session_stat(state: GameState, config: GameConfig) -> SessionStat:
    return SessionStat(
        id=uuid.uuid4().hex[:12],
        date=now_iso(),
        final_year=state.current_year,
        final_score=calculate_score(state),
        turns=state.turn,
        outcome=determine_outcome(state, config),
        resource_snapshot=state.resources(),
    )


# =============================================================================
# Structural validation
# =============================================================================

REQUIRED_FIELDS = ("money", "wellbeing", "environment", "resilience", "current_year", "turn", "game_over", "board")
NUMERIC_FIELDS = RESOURCE_NAMES + ("current_year", "turn")
CELL_TYPES = tuple(t.value for t in CellType)
OUTCOMES = tuple(o.value for o in GameOutcome)
DIFFICULTIES = tuple(DIFFICULTY_SETTINGS)


def is_number(value: Any) -> bool:
    """A real, finite number. bool is not a number here."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return not (math.isnan(value) or math.isinf(value))


def validate_game_state(data: Any) -> ValidationResult:
    """
    Structural check of a serialized game state.

    Required fields present, numeric fields are numbers, board exactly
    6x6 with well-formed cells.
    """
    if not isinstance(data, dict):
        return ValidationResult.from_errors(["Game state must be an object"])

    errors: list[str] = []
    warnings: list[str] = []

    for name in REQUIRED_FIELDS:
        if name not in data:
            errors.append(f"Missing required field '{name}'")

    for name in NUMERIC_FIELDS:
        if name in data and not is_number(data[name]):
            errors.append(f"Field '{name}' must be a number")

    if "game_over" in data and not isinstance(data["game_over"], bool):
        errors.append("Field 'game_over' must be a boolean")

    if "board" in data:
        errors.extend(validate_board(data["board"]))

    outcome = data.get("outcome")
    if outcome is not None and outcome not in OUTCOMES:
        errors.append(f"Unknown outcome '{outcome}'")

    achievements = data.get("achievements")
    if achievements is not None and not (
        isinstance(achievements, list) and all(isinstance(a, str) for a in achievements)
    ):
        errors.append("Field 'achievements' must be a list of ids")

    snapshot = data.get("environmental_snapshot")
    if snapshot is not None and not isinstance(snapshot, dict):
        errors.append("Field 'environmental_snapshot' must be an object")

    for name in RESOURCE_NAMES:
        value = data.get(name)
        if is_number(value) and not 0 <= value <= 100:
            warnings.append(f"Field '{name}' is outside [0, 100] and will be clamped")

    return ValidationResult.from_errors(errors, warnings)


def validate_board(board: Any) -> list[str]:
    if not isinstance(board, list) or len(board) != BOARD_SIZE:
        return [f"Board must have {BOARD_SIZE} rows"]

    errors = []
    for r, row in enumerate(board):
        if not isinstance(row, list) or len(row) != BOARD_SIZE:
            errors.append(f"Board row {r} must have {BOARD_SIZE} cells")
            continue
        for c, cell in enumerate(row):
            if not isinstance(cell, dict):
                errors.append(f"Cell ({r}, {c}) must be an object")
                continue
            if cell.get("type") not in CELL_TYPES:
                errors.append(f"Cell ({r}, {c}) has invalid type {cell.get('type')!r}")
            structure = cell.get("structure")
            if structure is not None and not isinstance(structure, str):
                errors.append(f"Cell ({r}, {c}) has invalid structure")
            if not isinstance(cell.get("flooded", False), bool):
                errors.append(f"Cell ({r}, {c}) has invalid flooded flag")
    return errors


def validate_record(data: Any, version: str) -> ValidationResult:
    """Check a full save record: envelope, version and state."""
    if not isinstance(data, dict):
        return ValidationResult.from_errors(["Save record must be an object"])

    errors = []
    if not data.get("version"):
        errors.append("Save record has no version")
    elif data["version"] != version:
        errors.append(f"Incompatible save version '{data['version']}' (expected '{version}')")
    if not data.get("timestamp"):
        errors.append("Save record has no timestamp")
    warnings = []
    if "difficulty" in data and data["difficulty"] not in DIFFICULTIES:
        warnings.append(f"Unknown difficulty {data['difficulty']!r}; the session difficulty is used")
    if "state" not in data:
        errors.append("Save record has no state")
        return ValidationResult.from_errors(errors)

    state_result = validate_game_state(data["state"])
    errors.extend(state_result.errors)
    return ValidationResult.from_errors(errors, warnings + state_result.warnings)


def validate_live_state(state: GameState) -> ValidationResult:
    """Check an in-memory state before it is written."""
    if not board_is_well_formed(state.board):
        return ValidationResult.from_errors([f"Board must be a {BOARD_SIZE}x{BOARD_SIZE} grid of cells"])
    return validate_game_state(serialize_state(state))


# =============================================================================
# Restore
# =============================================================================

def sanitize_number(value: Any, default: float) -> float:
    """Numbers >= 0 pass through; anything else becomes the default."""
    if not is_number(value) or value < 0:
        return default
    return value


def restore_cell(data: Any, row: int, col: int) -> Cell:
    """
    Rebuild one cell. Malformed cells become a fresh cell for that
    position; structures not in the catalog are dropped.
    """
    cell = create_cell(row, col)
    if not isinstance(data, dict):
        return cell
    if data.get("type") in CELL_TYPES:
        cell.type = CellType(data["type"])
    structure = data.get("structure")
    if isinstance(structure, str) and structure in STRUCTURES:
        cell.structure = structure
    cell.flooded = data.get("flooded") is True
    return cell


def restore_board(data: Any) -> list[list[Cell]]:
    """Rebuild a 6x6 board, filling any missing or malformed part."""
    rows = data if isinstance(data, list) else []
    board = []
    for r in range(BOARD_SIZE):
        row = rows[r] if r < len(rows) and isinstance(rows[r], list) else []
        board.append([
            restore_cell(row[c] if c < len(row) else None, r, c)
            for c in range(BOARD_SIZE)
        ])
    return board


def restore(data: Any, config: GameConfig) -> GameState:
    """
    Reconstruct a full GameState from serialized data.

    Missing, negative or non-numeric scalars take the configured
    default. Raises RestoreFailed if the result still does not validate.
    """
    if not isinstance(data, dict):
        data = {}

    outcome = data.get("outcome")
    achievements = data.get("achievements")

    state = GameState(
        money=sanitize_number(data.get("money"), config.initial_money),
        wellbeing=sanitize_number(data.get("wellbeing"), config.initial_wellbeing),
        environment=sanitize_number(data.get("environment"), config.initial_environment),
        resilience=sanitize_number(data.get("resilience"), config.initial_resilience),
        current_year=int(sanitize_number(data.get("current_year"), config.initial_year)),
        turn=int(sanitize_number(data.get("turn"), 0)),
        board=restore_board(data.get("board")),
        game_over=data.get("game_over") is True,
        outcome=GameOutcome(outcome) if outcome in OUTCOMES else None,
        achievements=[a for a in achievements if isinstance(a, str)] if isinstance(achievements, list) else [],
        environmental_snapshot=EnvironmentalSnapshot.from_dict(data.get("environmental_snapshot")),
    )

    result = validate_live_state(state)
    if not result.valid:
        raise RestoreFailed(result.errors, "Restored state is invalid")
    return state
