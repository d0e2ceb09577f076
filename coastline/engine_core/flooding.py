"""
Flooding - Coastal flood resolution.
"""

from __future__ import annotations
import logging
from typing import TYPE_CHECKING

from ..catalog.structures import is_flood_protected

if TYPE_CHECKING:
    from ..catalog.config import GameConfig
    from .state import GameState

logger = logging.getLogger(__name__)


def trigger_flood(state: GameState, config: GameConfig) -> int:
    """
    Flood every unprotected coastal cell that is still dry.

    Idempotent: cells already flooded are skipped, so a second call
    floods nothing and applies no penalty. Each newly flooded cell
    costs the configured wellbeing and money penalty.

    Returns the number of newly flooded cells.
    """
    newly_flooded = 0
    for row, col, cell in state.iter_cells():
        if not cell.is_coast or cell.flooded:
            continue
        if is_flood_protected(cell):
            continue
        cell.flooded = True
        newly_flooded += 1
        state.adjust("wellbeing", -config.flood_wellbeing_penalty)
        state.adjust("money", -config.flood_money_penalty)
        logger.debug("Cell (%d, %d) flooded", row, col)

    if newly_flooded:
        logger.info("Coastal flood: %d cell(s) flooded", newly_flooded)
    return newly_flooded
