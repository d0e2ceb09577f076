"""
Reducer - Applies player actions to game state.

Player moves (selecting a cell, placing a structure) go through
Reducer.apply(). Turn advancement is handled by the TurnEngine.

Design principles:
- Validates before applying
- A rejected action leaves the state untouched
- Returns ActionResult with success/failure
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging

from ..catalog.structures import STRUCTURES, StructureKind
from .action import Action, ActionType, ActionResult
from .state import GameState

logger = logging.getLogger(__name__)


@dataclass
class Reducer:
    """
    Reducer applies player actions to game state.

    Stateless - all state is in GameState.
    The structure catalog provides costs, effects and placement rules.
    """
    structures: dict[str, StructureKind] = field(default_factory=lambda: dict(STRUCTURES))

    def apply(self, state: GameState, action: Action) -> ActionResult:
        """Apply an action to the game state."""
        if state.game_over:
            return ActionResult.failure("Game is over - no actions allowed", error_code="GAME_OVER")

        handler = self._get_handler(action.action_type)
        if not handler:
            return ActionResult.failure(
                f"No handler for action type: {action.action_type}",
                error_code="NO_HANDLER",
            )
        return handler(state, action)

    def _get_handler(self, action_type: ActionType):
        handlers = {
            ActionType.SELECT_CELL: self._handle_select,
            ActionType.PLACE_STRUCTURE: self._handle_place,
        }
        return handlers.get(action_type)

    def _in_bounds(self, state: GameState, action: Action) -> bool:
        if action.row is None or action.col is None:
            return False
        try:
            state.cell(action.row, action.col)
        except IndexError:
            return False
        return True

    def _handle_select(self, state: GameState, action: Action) -> ActionResult:
        if not self._in_bounds(state, action):
            return ActionResult.failure(
                f"Cell ({action.row}, {action.col}) is off the board",
                error_code="OUT_OF_BOUNDS",
            )
        state.selected_cell = (action.row, action.col)
        return ActionResult.ok([f"Selected cell ({action.row}, {action.col})"])

    def _handle_place(self, state: GameState, action: Action) -> ActionResult:
        kind = self.structures.get(action.structure_kind or "")
        if kind is None:
            return ActionResult.failure(
                f"Unknown structure: {action.structure_kind}",
                error_code="UNKNOWN_STRUCTURE",
            )

        if not self._in_bounds(state, action):
            return ActionResult.failure(
                f"Cell ({action.row}, {action.col}) is off the board",
                error_code="OUT_OF_BOUNDS",
            )

        cell = state.cell(action.row, action.col)
        if cell.structure is not None:
            return ActionResult.failure("Cell already has a structure", error_code="OCCUPIED")
        if cell.flooded:
            return ActionResult.failure("Cannot build on a flooded cell", error_code="FLOODED")
        if state.money < kind.cost:
            return ActionResult.failure(
                f"Not enough money: {kind.name} costs {kind.cost}",
                error_code="INSUFFICIENT_FUNDS",
            )
        if not kind.can_place(cell):
            return ActionResult.failure(
                f"{kind.name} must be built on an unflooded coastal cell",
                error_code="INVALID_PLACEMENT",
            )

        cell.structure = kind.kind_id
        state.adjust("money", -kind.cost)
        state.apply_delta(kind.effects)

        changes = [f"Built {kind.name} at ({action.row}, {action.col}) for {kind.cost}"]
        changes.extend(
            f"{resource} {amount:+g}" for resource, amount in kind.effects.items()
        )
        logger.debug("Placed %s at (%s, %s)", kind.kind_id, action.row, action.col)
        return ActionResult.ok(changes)


def apply_action(state: GameState, action: Action) -> ActionResult:
    """
    Convenience function to apply an action.

    Creates a Reducer over the default structure catalog and applies the action.
    """
    return Reducer().apply(state, action)
