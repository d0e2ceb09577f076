"""
Turn Engine - Advances the simulation one turn at a time.

A turn:
1. Advances the clock (turn + years_per_turn)
2. Stops at the turn cap
3. Runs every climate event rule in catalog order
4. Pays income
5. Maybe applies an externally observed event
6. Checks achievements
7. Evaluates end conditions
8. Checkpoints through the checkpointer

The whole turn runs on a copy of the state that is committed back at
the end, so callers never see a half-applied turn.
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging
import random
from typing import Protocol

from ..catalog.achievements import ACHIEVEMENTS, Achievement
from ..catalog.config import GameConfig
from ..catalog.event_dsl import ClimateEventRule, default_catalog
from ..catalog.validation import validate_catalog
from .action import TurnOutcome, TurnStatus
from .end_conditions import calculate_score, evaluate_end_conditions
from .errors import InvariantViolation
from .event_resolver import (
    RuleContext,
    check_achievements,
    contained,
    draw_external_event,
    evaluate_rules,
)
from .flooding import trigger_flood
from .state import GameOutcome, GameState, board_is_well_formed

logger = logging.getLogger(__name__)


class Checkpointer(Protocol):
    """Where the engine persists state after each turn."""

    def save(self, state: GameState) -> bool: ...

    def record_session(self, state: GameState) -> bool: ...


@dataclass
class TurnEngine:
    """
    Drives turns for one session's state.

    Stateless apart from the injected rng: the GameState is passed to
    every call.
    """
    config: GameConfig = field(default_factory=GameConfig)
    catalog: list[ClimateEventRule] = field(default_factory=default_catalog)
    rng: random.Random = field(default_factory=random.Random)
    checkpointer: Checkpointer | None = None
    achievements: list[Achievement] = field(default_factory=lambda: list(ACHIEVEMENTS))

    def __post_init__(self):
        result = validate_catalog(self.catalog)
        for error in result.errors:
            logger.warning("Event catalog: %s", error)

    def advance_turn(self, state: GameState) -> TurnOutcome:
        """Advance one turn and report what happened."""
        if state.game_over:
            return TurnOutcome.no_op(state.turn, state.current_year, calculate_score(state))

        if not board_is_well_formed(state.board):
            raise InvariantViolation("Board must be a 6x6 grid of cells")

        working = state.clone()
        working.turn += 1
        working.current_year += self.config.years_per_turn

        if working.turn > self.config.max_turns:
            working.game_over = True
            working.outcome = GameOutcome.TURN_LIMIT
            state.commit_from(working)
            logger.info("Turn limit reached at turn %d", state.turn)
            outcome = TurnOutcome(
                status=TurnStatus.TURN_LIMIT_REACHED,
                turn=state.turn,
                year=state.current_year,
                score=calculate_score(state),
            )
            outcome.checkpointed = self._checkpoint(state, terminal=True)
            return outcome

        # Spike set last turn applies to this turn only
        ctx = RuleContext(
            config=self.config,
            rng=self.rng,
            flood_risk_bonus=working.flood_risk_bonus,
        )
        working.flood_risk_bonus = 0.0

        report = evaluate_rules(self.catalog, working, ctx)

        working.adjust("money", self.config.income_per_turn)

        drawn, error = contained("external_event", lambda: draw_external_event(working, ctx))
        external_event = None
        if error is not None:
            report.errors.append(error)
        elif drawn is not None:
            external_event, tag = drawn
            if tag is not None:
                report.tags.append(tag)

        unlocked = check_achievements(self.achievements, working, ctx)

        result = evaluate_end_conditions(working, self.config)
        if result is not None:
            working.game_over = True
            working.outcome = result

        state.commit_from(working)

        status = TurnStatus.from_outcome(result) if result is not None else TurnStatus.CONTINUING
        outcome = TurnOutcome(
            status=status,
            turn=state.turn,
            year=state.current_year,
            tags=report.tags,
            fired_rules=report.fired_rules,
            errors=report.errors,
            flooded_cells=report.flooded_cells,
            unlocked_achievements=unlocked,
            external_event=external_event,
            score=calculate_score(state),
        )
        if result is not None:
            logger.info("Game over at %d: %s (score %d)", state.current_year, result.value, outcome.score)
        else:
            logger.debug("Turn %d complete, year %d, tags=%s", state.turn, state.current_year, report.tags)

        outcome.checkpointed = self._checkpoint(state, terminal=status.is_terminal)
        return outcome

    def trigger_flood(self, state: GameState) -> int:
        """Flood unprotected dry coast cells. Returns the count."""
        return trigger_flood(state, self.config)

    def _checkpoint(self, state: GameState, terminal: bool) -> bool:
        if self.checkpointer is None:
            return False
        saved = self.checkpointer.save(state)
        if terminal:
            self.checkpointer.record_session(state)
        return saved
