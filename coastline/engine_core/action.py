"""
Action System - Player actions, their results, and turn outcomes.

Actions represent the player's direct moves (select a cell, place a
structure). Turn advancement is not an action: it is driven by the
turn engine and reports a TurnOutcome.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum

from ..catalog.event_dsl import OutcomeTag
from .errors import RuleEvaluationError
from .state import GameOutcome


class ActionType(Enum):
    """Types of player actions."""
    SELECT_CELL = "select_cell"
    PLACE_STRUCTURE = "place_structure"


@dataclass
class Action:
    """
    A player action to be applied to the game state.

    Validated and applied atomically by the reducer.
    """
    action_type: ActionType
    row: int | None = None
    col: int | None = None
    structure_kind: str | None = None

    @classmethod
    def select(cls, row: int, col: int) -> Action:
        """Factory for cell selection."""
        return cls(action_type=ActionType.SELECT_CELL, row=row, col=col)

    @classmethod
    def place(cls, kind: str, row: int, col: int) -> Action:
        """Factory for structure placement."""
        return cls(
            action_type=ActionType.PLACE_STRUCTURE,
            structure_kind=kind,
            row=row,
            col=col,
        )


@dataclass
class ActionResult:
    """
    Result of applying an action.

    The state is mutated in place on success; on failure it is untouched.
    """
    success: bool
    error: str | None = None
    error_code: str | None = None

    # Human-readable changes for the host UI
    state_changes: list[str] = field(default_factory=list)

    @classmethod
    def failure(cls, error: str, error_code: str | None = None) -> ActionResult:
        """Create a failure result."""
        return cls(success=False, error=error, error_code=error_code)

    @classmethod
    def ok(cls, changes: list[str] | None = None) -> ActionResult:
        """Create a success result."""
        return cls(success=True, state_changes=changes or [])


class TurnStatus(Enum):
    """What happened to the game as a whole during a turn."""
    CONTINUING = "continuing"
    NO_OP = "no_op"  # Game was already over
    TURN_LIMIT_REACHED = "turn_limit_reached"
    VICTORY = "victory"
    DEFEAT = "defeat"
    TIMEOUT = "timeout"

    @classmethod
    def from_outcome(cls, outcome: GameOutcome) -> TurnStatus:
        return {
            GameOutcome.VICTORY: cls.VICTORY,
            GameOutcome.DEFEAT: cls.DEFEAT,
            GameOutcome.TIMEOUT: cls.TIMEOUT,
            GameOutcome.TURN_LIMIT: cls.TURN_LIMIT_REACHED,
        }[outcome]

    @property
    def is_terminal(self) -> bool:
        return self not in (TurnStatus.CONTINUING, TurnStatus.NO_OP)


@dataclass
class TurnOutcome:
    """
    Structured result of advancing one turn.

    Presentation is left to the host: it reads tags and status and
    decides what to show.
    """
    status: TurnStatus
    turn: int
    year: int

    # Outcome tags in the order they fired
    tags: list[OutcomeTag] = field(default_factory=list)
    fired_rules: list[str] = field(default_factory=list)

    # Contained per-rule failures
    errors: list[RuleEvaluationError] = field(default_factory=list)

    flooded_cells: int = 0
    unlocked_achievements: list[str] = field(default_factory=list)
    external_event: str | None = None  # Title of the drawn external event
    score: int = 0
    checkpointed: bool = False

    @property
    def game_over(self) -> bool:
        return self.status != TurnStatus.CONTINUING

    @classmethod
    def no_op(cls, turn: int, year: int, score: int = 0) -> TurnOutcome:
        return cls(status=TurnStatus.NO_OP, turn=turn, year=year, score=score)
