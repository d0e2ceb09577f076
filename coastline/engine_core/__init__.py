"""
Engine Core - Deterministic game state management and turn simulation.

The engine is the runtime that:
1. Owns the per-session GameState
2. Applies player actions via the reducer
3. Advances turns, interpreting the climate event catalog
4. Evaluates end conditions
"""

from .state import GameState, Cell, CellType, GameOutcome, EnvironmentalSnapshot
from .errors import (
    CoastlineError,
    ValidationError,
    RestoreFailed,
    TransientFetchError,
    RuleEvaluationError,
    InvariantViolation,
)
from .action import Action, ActionType, ActionResult, TurnOutcome, TurnStatus
from .reducer import Reducer, apply_action
from .end_conditions import calculate_score, evaluate_end_conditions, determine_outcome, current_sea_level
from .event_resolver import RuleContext, EvaluationReport, evaluate_rules
from .turn_engine import TurnEngine, Checkpointer

__all__ = [
    "GameState",
    "Cell",
    "CellType",
    "GameOutcome",
    "EnvironmentalSnapshot",
    "CoastlineError",
    "ValidationError",
    "RestoreFailed",
    "TransientFetchError",
    "RuleEvaluationError",
    "InvariantViolation",
    "Action",
    "ActionType",
    "ActionResult",
    "TurnOutcome",
    "TurnStatus",
    "Reducer",
    "apply_action",
    "calculate_score",
    "evaluate_end_conditions",
    "determine_outcome",
    "current_sea_level",
    "RuleContext",
    "EvaluationReport",
    "evaluate_rules",
    "TurnEngine",
    "Checkpointer",
]
