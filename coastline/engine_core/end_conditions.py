"""
End Conditions - Victory, defeat and timeout evaluation.

Pure functions of GameState. The turn engine applies the result.

Precedence when several conditions hold at once:
    defeat > victory > timeout
"""

from __future__ import annotations
import math
from typing import TYPE_CHECKING

from ..catalog.config import SEA_LEVEL_PROJECTION
from .state import GameOutcome, GameState

if TYPE_CHECKING:
    from ..catalog.config import GameConfig

# Year the snapshot sea-level reading is taken to describe
SEA_LEVEL_REFERENCE_YEAR = 2025


def calculate_score(state: GameState) -> int:
    """wellbeing + money/10 + environment + resilience, halves rounded up, floored at 0."""
    score = state.wellbeing + state.money / 10 + state.environment + state.resilience
    return max(0, math.floor(score + 0.5))


def is_defeat(state: GameState, config: GameConfig) -> bool:
    defeat = config.defeat
    return (
        state.wellbeing <= defeat.min_wellbeing
        or state.money <= defeat.min_money
        or state.environment <= defeat.min_environment
    )


def is_victory(state: GameState, config: GameConfig) -> bool:
    victory = config.victory
    return (
        state.current_year >= victory.min_year
        and state.wellbeing >= victory.min_wellbeing
        and state.resilience >= victory.min_resilience
        and state.environment >= victory.min_environment
    )


def evaluate_end_conditions(state: GameState, config: GameConfig) -> GameOutcome | None:
    """
    Terminal outcome for the state, or None if play continues.

    Timeout is an absolute year horizon, independent of the turn cap;
    reaching it with a high enough score still counts as a victory.
    """
    if is_defeat(state, config):
        return GameOutcome.DEFEAT
    if is_victory(state, config):
        return GameOutcome.VICTORY
    if state.current_year >= config.timeout_year:
        if calculate_score(state) >= config.timeout_victory_score:
            return GameOutcome.VICTORY
        return GameOutcome.TIMEOUT
    return None


def determine_outcome(state: GameState, config: GameConfig) -> GameOutcome:
    """
    Outcome to report for a session statistic.

    Uses the recorded outcome when there is one, recomputes it for a
    finished game without one, and reports INCOMPLETE otherwise.
    """
    if not state.game_over:
        return GameOutcome.INCOMPLETE
    if state.outcome is not None:
        return state.outcome
    return evaluate_end_conditions(state, config) or GameOutcome.INCOMPLETE


def current_sea_level(state: GameState) -> float:
    """
    Sea level rise in metres for the state's year.

    Extrapolates from the observed snapshot when one is present,
    otherwise reads the projection table.
    """
    snapshot = state.environmental_snapshot
    if snapshot is not None and snapshot.sea_level is not None:
        reading = snapshot.sea_level
        years = state.current_year - SEA_LEVEL_REFERENCE_YEAR
        return reading.current_rise + years * reading.trend / 1000
    return projected_sea_level(state.current_year)


def projected_sea_level(year: int) -> float:
    """Rise of the latest projection entry at or before year (0 before the table)."""
    for entry_year, rise in reversed(SEA_LEVEL_PROJECTION):
        if year >= entry_year:
            return rise
    return 0.0
