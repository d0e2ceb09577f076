"""
Game State - The canonical mutable state of one play session.

Design principles:
- Explicitly owned: one GameState per session, passed to every operation
- Clamped at the point of mutation: resources never leave [0, 100]
- DOM-free: cells hold no rendering handles, the UI looks them up by coordinate
- Serializable: persistence projects it into a plain dict
"""

from __future__ import annotations
from copy import deepcopy
from dataclasses import dataclass, field, fields
from enum import Enum
import math
from typing import Any, Iterator, TYPE_CHECKING

if TYPE_CHECKING:
    from ..catalog.config import GameConfig


RESOURCE_NAMES = ("money", "wellbeing", "environment", "resilience")
RESOURCE_MIN = 0.0
RESOURCE_MAX = 100.0

BOARD_SIZE = 6
COAST_ROWS = 2  # The bottom rows of a fresh board are coast


def clamp(x: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, x))


class CellType(str, Enum):
    """Terrain of a board cell. Flooding is an overlay, not a type."""
    LAND = "land"
    COAST = "coast"


class GameOutcome(str, Enum):
    """Terminal outcome of a session."""
    VICTORY = "victory"
    DEFEAT = "defeat"
    TIMEOUT = "timeout"
    TURN_LIMIT = "turn_limit"
    INCOMPLETE = "incomplete"


@dataclass
class Cell:
    """A single board square."""
    type: CellType = CellType.LAND
    structure: str | None = None  # StructureKind id
    flooded: bool = False

    @property
    def is_coast(self) -> bool:
        return self.type == CellType.COAST


def default_cell_type(row: int) -> CellType:
    """Terrain a fresh board has at the given row."""
    return CellType.COAST if row >= BOARD_SIZE - COAST_ROWS else CellType.LAND


def create_cell(row: int, col: int) -> Cell:
    return Cell(type=default_cell_type(row))


def create_row(row: int) -> list[Cell]:
    return [create_cell(row, col) for col in range(BOARD_SIZE)]


def create_board() -> list[list[Cell]]:
    """Fresh 6x6 board: land on top, coast on the last two rows."""
    return [create_row(row) for row in range(BOARD_SIZE)]


def board_is_well_formed(board: Any) -> bool:
    """True if board is exactly BOARD_SIZE x BOARD_SIZE of Cell."""
    if not isinstance(board, list) or len(board) != BOARD_SIZE:
        return False
    for row in board:
        if not isinstance(row, list) or len(row) != BOARD_SIZE:
            return False
        if not all(isinstance(cell, Cell) for cell in row):
            return False
    return True


# =============================================================================
# Environmental snapshot (data supplied by the external data adapter)
# =============================================================================

@dataclass
class SeaLevelReading:
    current_rise: float  # metres above the 1993 baseline
    trend: float  # mm per year
    source: str = ""


@dataclass
class TemperatureReading:
    anomaly: float  # degrees C above baseline
    trend: float  # degrees C per decade


@dataclass
class CO2Reading:
    level: float  # ppm
    trend: float  # ppm per year


@dataclass
class ClimateEvent:
    """A recently observed real-world event."""
    title: str
    type: str
    magnitude: float  # 0.1 .. 1.0
    date: str = ""


@dataclass
class EnvironmentalSnapshot:
    """
    Last-known external trend data.

    Each part is refreshed independently; a failed fetch leaves the
    previous value in place.
    """
    sea_level: SeaLevelReading | None = None
    temperature: TemperatureReading | None = None
    co2: CO2Reading | None = None
    recent_events: list[ClimateEvent] = field(default_factory=list)
    last_updated: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "sea_level": _reading_to_dict(self.sea_level),
            "temperature": _reading_to_dict(self.temperature),
            "co2": _reading_to_dict(self.co2),
            "recent_events": [_reading_to_dict(e) for e in self.recent_events],
            "last_updated": self.last_updated,
        }

    @classmethod
    def from_dict(cls, data: Any) -> EnvironmentalSnapshot | None:
        """
        Rebuild from persisted data.

        Parts that are malformed are dropped rather than guessed.
        """
        if not isinstance(data, dict):
            return None
        events = []
        raw_events = data.get("recent_events")
        for raw in raw_events if isinstance(raw_events, list) else []:
            event = _reading_from_dict(ClimateEvent, raw)
            if event is not None:
                events.append(event)
        last_updated = data.get("last_updated")
        return cls(
            sea_level=_reading_from_dict(SeaLevelReading, data.get("sea_level")),
            temperature=_reading_from_dict(TemperatureReading, data.get("temperature")),
            co2=_reading_from_dict(CO2Reading, data.get("co2")),
            recent_events=events,
            last_updated=last_updated if isinstance(last_updated, str) else None,
        )


def _reading_to_dict(reading: Any) -> dict[str, Any] | None:
    if reading is None:
        return None
    return {f.name: getattr(reading, f.name) for f in fields(reading)}


def _reading_from_dict(reading_cls: type, data: Any) -> Any:
    if not isinstance(data, dict):
        return None
    try:
        return reading_cls(**{
            f.name: data[f.name] for f in fields(reading_cls) if f.name in data
        })
    except TypeError:
        return None


# =============================================================================
# Game state
# =============================================================================

@dataclass
class GameState:
    """
    Complete game state at a point in time.

    Resource attributes are clamped to [0, 100] on every assignment,
    including construction.
    """
    money: float = 100.0
    wellbeing: float = 50.0
    environment: float = 50.0
    resilience: float = 20.0

    current_year: int = 2025
    turn: int = 0

    board: list[list[Cell]] = field(default_factory=create_board)

    # UI-only, never persisted
    selected_cell: tuple[int, int] | None = None

    game_over: bool = False
    outcome: GameOutcome | None = None
    achievements: list[str] = field(default_factory=list)

    environmental_snapshot: EnvironmentalSnapshot | None = None

    # One-turn flood risk modifier, never persisted
    flood_risk_bonus: float = 0.0

    def __setattr__(self, name: str, value: Any) -> None:
        if name in RESOURCE_NAMES:
            value = float(value)
            if math.isnan(value):
                raise ValueError(f"{name} must be a number, got NaN")
            value = clamp(value, RESOURCE_MIN, RESOURCE_MAX)
        object.__setattr__(self, name, value)

    @classmethod
    def fresh(cls, config: GameConfig) -> GameState:
        """New-session state from configured starting values."""
        return cls(
            money=config.initial_money,
            wellbeing=config.initial_wellbeing,
            environment=config.initial_environment,
            resilience=config.initial_resilience,
            current_year=config.initial_year,
        )

    # -------------------------------------------------------------------------
    # Resources
    # -------------------------------------------------------------------------

    def adjust(self, resource: str, delta: float) -> float:
        """Add delta to one resource (clamped). Returns the new value."""
        if resource not in RESOURCE_NAMES:
            raise KeyError(f"Unknown resource: {resource}")
        setattr(self, resource, getattr(self, resource) + delta)
        return getattr(self, resource)

    def apply_delta(self, delta: dict[str, float]) -> None:
        """Apply a resource delta map. Unknown keys are ignored."""
        for resource, amount in delta.items():
            if resource in RESOURCE_NAMES:
                self.adjust(resource, amount)

    def resources(self) -> dict[str, float]:
        return {name: getattr(self, name) for name in RESOURCE_NAMES}

    # -------------------------------------------------------------------------
    # Board
    # -------------------------------------------------------------------------

    def cell(self, row: int, col: int) -> Cell:
        """Cell at (row, col). Raises IndexError when out of bounds."""
        if not (0 <= row < len(self.board)) or not (0 <= col < len(self.board[row])):
            raise IndexError(f"Cell ({row}, {col}) is off the board")
        return self.board[row][col]

    def iter_cells(self) -> Iterator[tuple[int, int, Cell]]:
        for r, row in enumerate(self.board):
            for c, cell in enumerate(row):
                yield r, c, cell

    def coastal_cells(self) -> list[Cell]:
        return [cell for _, _, cell in self.iter_cells() if cell.is_coast]

    def flooded_count(self) -> int:
        return sum(1 for _, _, cell in self.iter_cells() if cell.flooded)

    def selected(self) -> Cell | None:
        """Cell referenced by the UI selection, if any."""
        if self.selected_cell is None:
            return None
        return self.cell(*self.selected_cell)

    # -------------------------------------------------------------------------
    # Copying
    # -------------------------------------------------------------------------

    def clone(self) -> GameState:
        """Deep copy the state."""
        return deepcopy(self)

    def commit_from(self, other: GameState) -> None:
        """Overwrite every field with the values of another state."""
        for f in fields(self):
            setattr(self, f.name, getattr(other, f.name))
