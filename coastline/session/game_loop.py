"""
Game Loop - The host-facing driver for one play-through.

The loop:
1. Player selects cells and places structures
2. Player ends the turn; the engine simulates climate events
3. The turn is checkpointed to storage
4. Host re-reads the state and shows what happened
5. Repeat until victory, defeat or timeout

Everything the UI may do to a game goes through GameSession.
"""

from __future__ import annotations
import logging
import random
from typing import Any, Mapping

from ..advisor import AdviceResult, AdvisorProvider, RuleOfThumbAdvisor, StateSummary, consult, summarize_state
from ..catalog.config import GameConfig
from ..catalog.event_dsl import ClimateEventRule, default_catalog
from ..climate_data import ClimateDataProvider, RefreshReport, refresh_snapshot, refresh_snapshot_async
from ..engine_core.action import Action, ActionResult, TurnOutcome
from ..engine_core.errors import CoastlineError, ValidationError
from ..engine_core.reducer import Reducer
from ..engine_core.state import GameState
from ..engine_core.turn_engine import TurnEngine
from ..persistence import PersistenceManager

logger = logging.getLogger(__name__)


class GameSession:
    """
    One game: its state, the engine that advances it and the manager
    that persists it.

    Usage:
        game = GameSession(GameConfig.for_difficulty("normal"), persistence)
        game.place_structure("mangrove", 4, 0)
        outcome = game.advance_turn()
        if outcome.game_over:
            show_end_screen(outcome.status, outcome.score)
    """

    def __init__(
        self,
        config: GameConfig,
        persistence: PersistenceManager,
        climate_provider: ClimateDataProvider | None = None,
        rng: random.Random | None = None,
        catalog: list[ClimateEventRule] | None = None,
        state: GameState | None = None,
    ):
        self.persistence = persistence
        self.climate_provider = climate_provider
        self.engine = TurnEngine(
            config=config,
            catalog=catalog if catalog is not None else default_catalog(),
            rng=rng or random.Random(),
            checkpointer=persistence,
        )
        self.reducer = Reducer()
        self.state = state if state is not None else GameState.fresh(config)

    @property
    def config(self) -> GameConfig:
        return self.engine.config

    @property
    def is_over(self) -> bool:
        return self.state.game_over

    # =========================================================================
    # Player actions
    # =========================================================================

    def advance_turn(self) -> TurnOutcome:
        return self.engine.advance_turn(self.state)

    def place_structure(self, kind: str, row: int, col: int) -> ActionResult:
        return self.reducer.apply(self.state, Action.place(kind, row, col))

    def select_cell(self, row: int, col: int) -> ActionResult:
        return self.reducer.apply(self.state, Action.select(row, col))

    # =========================================================================
    # Persistence
    # =========================================================================

    def save(self) -> bool:
        return self.persistence.save(self.state)

    def load(self) -> bool:
        """Replace the current state with the saved game, if there is one."""
        loaded = self.persistence.load()
        if loaded is None:
            return False
        self.state = loaded
        logger.info("Loaded game at year %d, turn %d", loaded.current_year, loaded.turn)
        return True

    def export_snapshot(self) -> dict[str, Any] | None:
        """Save the current state, then return its serialized form."""
        if not self.save():
            return None
        return self.persistence.export_snapshot()

    def import_snapshot(self, blob: str | bytes | Mapping[str, Any]) -> ActionResult:
        """Make an exported game the current one. Invalid input changes nothing."""
        try:
            state = self.persistence.import_snapshot(blob)
        except ValidationError as e:
            result = ActionResult.failure(str(e), error_code="VALIDATION_ERROR")
            result.state_changes = list(e.errors)
            return result
        except CoastlineError as e:
            return ActionResult.failure(str(e), error_code="STORAGE_ERROR")
        self.state = state
        return ActionResult.ok([f"Imported game at year {state.current_year}, turn {state.turn}"])

    # =========================================================================
    # Climate data
    # =========================================================================

    def refresh_climate_data(self, limit: int = 5) -> RefreshReport:
        """Merge fresh climate data into the state's snapshot."""
        if self.climate_provider is None:
            return RefreshReport(failed={"provider": "No climate data provider configured"})
        return refresh_snapshot(self.state, self.climate_provider, limit)

    async def refresh_climate_data_async(self, limit: int = 5) -> RefreshReport:
        if self.climate_provider is None:
            return RefreshReport(failed={"provider": "No climate data provider configured"})
        return await refresh_snapshot_async(self.state, self.climate_provider, limit)

    # =========================================================================
    # Read access
    # =========================================================================

    def summary(self) -> StateSummary:
        return summarize_state(self.state)

    def advise(self, provider: AdvisorProvider | None = None) -> AdviceResult:
        return consult(self.state, provider or RuleOfThumbAdvisor())
