"""
Tests for end conditions, score and sea level.
"""

import pytest

from ..engine_core.end_conditions import (
    calculate_score,
    current_sea_level,
    determine_outcome,
    evaluate_end_conditions,
    projected_sea_level,
)
from ..engine_core.state import EnvironmentalSnapshot, GameOutcome, GameState, SeaLevelReading


def make_state(**kwargs):
    values = dict(money=50, wellbeing=50, environment=50, resilience=20, current_year=2030)
    values.update(kwargs)
    return GameState(**values)


class TestScore:
    def test_fresh_score(self, state):
        assert calculate_score(state) == 130

    def test_money_counts_a_tenth(self):
        assert calculate_score(make_state(money=55, wellbeing=0, environment=0, resilience=0)) == 6

    def test_halves_round_up(self):
        assert calculate_score(make_state(money=45, wellbeing=0, environment=0, resilience=0)) == 5
        assert calculate_score(make_state(money=5, wellbeing=50, environment=50, resilience=100)) == 201

    def test_score_never_negative(self):
        assert calculate_score(make_state(money=0, wellbeing=0, environment=0, resilience=0)) == 0


class TestEndConditions:
    """Precedence is defeat > victory > timeout."""

    def test_play_continues(self, state, config):
        assert evaluate_end_conditions(state, config) is None

    @pytest.mark.parametrize("resource", ["money", "wellbeing", "environment"])
    def test_defeat_at_zero(self, config, resource):
        assert evaluate_end_conditions(make_state(**{resource: 0}), config) == GameOutcome.DEFEAT

    def test_zero_resilience_is_not_defeat(self, config):
        assert evaluate_end_conditions(make_state(resilience=0), config) is None

    def test_victory(self, config):
        state = make_state(current_year=2060, wellbeing=60, resilience=50, environment=40)
        assert evaluate_end_conditions(state, config) == GameOutcome.VICTORY

    def test_victory_needs_every_threshold(self, config):
        state = make_state(current_year=2060, wellbeing=60, resilience=49, environment=40)
        assert evaluate_end_conditions(state, config) is None

    def test_defeat_beats_victory(self, config):
        state = make_state(current_year=2060, wellbeing=60, resilience=50, environment=40, money=0)
        assert evaluate_end_conditions(state, config) == GameOutcome.DEFEAT

    def test_victory_beats_timeout(self, config):
        state = make_state(current_year=2100, wellbeing=60, resilience=50, environment=40)
        assert evaluate_end_conditions(state, config) == GameOutcome.VICTORY

    def test_timeout(self, config):
        state = make_state(current_year=2100, wellbeing=30, resilience=10, environment=30)
        assert evaluate_end_conditions(state, config) == GameOutcome.TIMEOUT

    def test_timeout_with_high_score_is_victory(self, config):
        state = make_state(current_year=2100, wellbeing=59, resilience=100, environment=100, money=100)
        assert calculate_score(state) >= 200
        assert evaluate_end_conditions(state, config) == GameOutcome.VICTORY


class TestDetermineOutcome:
    def test_incomplete_while_playing(self, state, config):
        assert determine_outcome(state, config) == GameOutcome.INCOMPLETE

    def test_recorded_outcome_wins(self, state, config):
        state.game_over = True
        state.outcome = GameOutcome.TURN_LIMIT
        assert determine_outcome(state, config) == GameOutcome.TURN_LIMIT

    def test_recomputed_when_missing(self, config):
        state = make_state(money=0)
        state.game_over = True
        assert determine_outcome(state, config) == GameOutcome.DEFEAT


class TestSeaLevel:
    def test_projection_steps(self):
        assert projected_sea_level(2019) == 0.0
        assert projected_sea_level(2025) == 0.02
        assert projected_sea_level(2027) == 0.02
        assert projected_sea_level(2065) == 0.30
        assert projected_sea_level(2150) == 0.85

    def test_from_projection_without_snapshot(self, state):
        state.current_year = 2050
        assert current_sea_level(state) == 0.20

    def test_extrapolated_from_snapshot(self, state):
        state.current_year = 2035
        state.environmental_snapshot = EnvironmentalSnapshot(
            sea_level=SeaLevelReading(current_rise=0.1, trend=4.0),
        )
        assert current_sea_level(state) == pytest.approx(0.14)
