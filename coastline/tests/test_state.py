"""
Tests for the game state.

Tests:
- Resource clamping
- Board layout
- Copying and committing
- Environmental snapshot rebuild
"""

import pytest

from ..catalog.config import GameConfig
from ..engine_core.state import (
    BOARD_SIZE,
    CellType,
    EnvironmentalSnapshot,
    GameState,
    board_is_well_formed,
)


class TestResourceClamping:
    """Resources stay within [0, 100] on every assignment."""

    def test_construction_is_clamped(self):
        state = GameState(money=150, wellbeing=-20)
        assert state.money == 100
        assert state.wellbeing == 0

    def test_assignment_is_clamped(self, state):
        state.environment = 250
        state.resilience = -1
        assert state.environment == 100
        assert state.resilience == 0

    def test_adjust_returns_clamped_value(self, state):
        assert state.adjust("wellbeing", 80) == 100
        assert state.adjust("money", -500) == 0

    def test_apply_delta_ignores_unknown_keys(self, state):
        state.apply_delta({"environment": 10, "happiness": 99})
        assert state.environment == 60

    def test_adjust_unknown_resource_raises(self, state):
        with pytest.raises(KeyError):
            state.adjust("happiness", 1)

    def test_nan_is_rejected(self, state):
        with pytest.raises(ValueError):
            state.money = float("nan")

    def test_non_resource_fields_are_not_clamped(self, state):
        state.current_year = 2150
        assert state.current_year == 2150


class TestFreshState:
    """GameState.fresh uses the configured starting values."""

    def test_starting_values(self, state):
        assert state.resources() == {
            "money": 100,
            "wellbeing": 50,
            "environment": 50,
            "resilience": 20,
        }
        assert state.current_year == 2025
        assert state.turn == 0
        assert not state.game_over
        assert state.outcome is None

    def test_board_layout(self, state):
        assert board_is_well_formed(state.board)
        for r, c, cell in state.iter_cells():
            expected = CellType.COAST if r >= BOARD_SIZE - 2 else CellType.LAND
            assert cell.type == expected
            assert cell.structure is None
            assert not cell.flooded
        assert len(state.coastal_cells()) == 2 * BOARD_SIZE

    def test_easy_money_is_clamped(self):
        state = GameState.fresh(GameConfig.for_difficulty("easy"))
        assert state.money == 100


class TestBoardAccess:
    def test_cell_out_of_bounds(self, state):
        with pytest.raises(IndexError):
            state.cell(6, 0)
        with pytest.raises(IndexError):
            state.cell(0, -1)

    def test_selected(self, state):
        assert state.selected() is None
        state.selected_cell = (4, 2)
        assert state.selected() is state.board[4][2]

    def test_short_board_is_malformed(self, state):
        assert not board_is_well_formed(state.board[:5])
        assert not board_is_well_formed([row[:5] for row in state.board])


class TestCopying:
    def test_clone_is_independent(self, state):
        copy = state.clone()
        copy.board[4][0].structure = "seawall"
        copy.money = 10
        assert state.board[4][0].structure is None
        assert state.money == 100

    def test_commit_from_overwrites(self, state):
        other = state.clone()
        other.turn = 7
        other.achievements.append("eco_warrior")
        state.commit_from(other)
        assert state.turn == 7
        assert state.achievements == ["eco_warrior"]


class TestEnvironmentalSnapshot:
    def test_from_dict_drops_malformed_parts(self):
        snapshot = EnvironmentalSnapshot.from_dict({
            "sea_level": {"current_rise": 0.1, "trend": 3.4},
            "temperature": {"trend": 0.02},
            "co2": "420",
            "recent_events": [{"title": "Storm", "type": "Severe Storms", "magnitude": 0.8}, "junk"],
            "last_updated": 12,
        })
        assert snapshot.sea_level.current_rise == 0.1
        assert snapshot.temperature is None
        assert snapshot.co2 is None
        assert [e.title for e in snapshot.recent_events] == ["Storm"]
        assert snapshot.last_updated is None

    def test_from_dict_non_mapping(self):
        assert EnvironmentalSnapshot.from_dict(None) is None
        assert EnvironmentalSnapshot.from_dict([1, 2]) is None
