"""
Tests for the turn engine.

Tests:
- Clock, income and checkpointing
- No-op once the game is over
- Turn cap
- Flood risk spikes last one turn
- Full scenarios ending in defeat
"""

import pytest

from ..catalog.event_dsl import (
    ClimateEventRule,
    ConditionKind,
    ConditionSpec,
    EffectKind,
    EffectSpec,
    OutcomeTag,
)
from ..engine_core.action import Action, TurnStatus
from ..engine_core.errors import InvariantViolation
from ..engine_core.reducer import apply_action
from ..engine_core.state import GameOutcome
from ..engine_core.turn_engine import TurnEngine
from ..persistence import PersistenceManager
from .conftest import FixedRandom


class TestAdvanceTurn:
    def test_clock_and_income(self, state, quiet_engine):
        state.money = 50
        outcome = quiet_engine.advance_turn(state)

        assert outcome.status == TurnStatus.CONTINUING
        assert not outcome.game_over
        assert state.turn == 1
        assert state.current_year == 2030
        assert state.money == 60
        assert (outcome.turn, outcome.year) == (1, 2030)
        assert outcome.tags == []

    def test_turn_is_checkpointed(self, state, quiet_engine, persistence):
        outcome = quiet_engine.advance_turn(state)

        assert outcome.checkpointed
        loaded = persistence.load()
        assert loaded.turn == 1
        assert loaded.current_year == 2030

    def test_without_checkpointer(self, state, config):
        engine = TurnEngine(config=config, rng=FixedRandom(0.99))
        assert not engine.advance_turn(state).checkpointed

    def test_no_op_when_game_over(self, state, quiet_engine, storage):
        state.game_over = True
        state.outcome = GameOutcome.VICTORY
        before = state.clone()

        outcome = quiet_engine.advance_turn(state)

        assert outcome.status == TurnStatus.NO_OP
        assert state == before
        assert storage.data == {}

    def test_malformed_board_is_fatal(self, state, quiet_engine):
        state.board = state.board[:5]
        with pytest.raises(InvariantViolation):
            quiet_engine.advance_turn(state)


class TestTurnLimit:
    def test_turn_limit_reached(self, state, config, persistence):
        engine = TurnEngine(
            config=config.with_overrides(max_turns=3),
            rng=FixedRandom(0.99),
            checkpointer=persistence,
        )
        for _ in range(3):
            assert engine.advance_turn(state).status == TurnStatus.CONTINUING

        outcome = engine.advance_turn(state)

        assert outcome.status == TurnStatus.TURN_LIMIT_REACHED
        assert outcome.game_over
        assert state.game_over
        assert state.outcome == GameOutcome.TURN_LIMIT
        assert state.turn == 4
        assert state.current_year == 2045

        stats = persistence.load_stats()
        assert len(stats) == 1
        assert stats[0].outcome == GameOutcome.TURN_LIMIT

        assert engine.advance_turn(state).status == TurnStatus.NO_OP
        assert state.turn == 4
        assert state.current_year == 2045


class TestRuleFailures:
    def test_broken_rule_does_not_stop_the_turn(self, state, config):
        broken = ClimateEventRule(
            rule_id="broken",
            name="Broken",
            conditions=(ConditionSpec(ConditionKind.YEAR_AT_LEAST, {}),),
            effect=EffectSpec(EffectKind.RESOURCE_DELTA, {"delta": {"money": -5}}, OutcomeTag.HEAT_WAVE),
        )
        engine = TurnEngine(config=config, catalog=[broken], rng=FixedRandom(0.99))
        state.money = 50

        outcome = engine.advance_turn(state)

        assert outcome.status == TurnStatus.CONTINUING
        assert [e.rule_id for e in outcome.errors] == ["broken"]
        assert state.money == 60

    def test_bad_external_event_is_contained(self, state, config):
        from ..engine_core.state import ClimateEvent, EnvironmentalSnapshot

        state.environmental_snapshot = EnvironmentalSnapshot(
            recent_events=[ClimateEvent(title="Bad", type="?", magnitude="huge")],
        )
        engine = TurnEngine(config=config, catalog=[], rng=FixedRandom(0.0))
        state.money = 50

        outcome = engine.advance_turn(state)

        assert [e.rule_id for e in outcome.errors] == ["external_event"]
        assert outcome.external_event is None
        assert state.money == 60


class TestFloodRiskSpike:
    def test_spike_applies_to_next_turn_only(self, state, config):
        spike = ClimateEventRule(
            rule_id="spike",
            name="Spike",
            conditions=(ConditionSpec(ConditionKind.YEAR_BEFORE, {"year": 2031}),),
            effect=EffectSpec(EffectKind.FLOOD_RISK_SPIKE, {"bonus": 0.2}, OutcomeTag.SEA_LEVEL_SPIKE),
        )
        flood = ClimateEventRule(
            rule_id="flood",
            name="Flood",
            conditions=(),
            effect=EffectSpec(EffectKind.FLOOD_CHECK, {"resilience_factor": 0.0}, OutcomeTag.FLOOD),
        )
        engine = TurnEngine(config=config, catalog=[spike, flood], rng=FixedRandom(0.15))

        first = engine.advance_turn(state)
        assert first.tags == [OutcomeTag.SEA_LEVEL_SPIKE]
        assert first.flooded_cells == 0
        assert state.flood_risk_bonus == 0.2

        second = engine.advance_turn(state)
        assert OutcomeTag.FLOOD in second.tags
        assert second.flooded_cells == 12
        assert state.flood_risk_bonus == 0.0


class TestScenarios:
    def test_industrial_sprawl_ends_in_defeat(self, state, quiet_engine, persistence):
        """Five industrial zones drive the environment to 0; the next turn is a defeat."""
        for col in range(5):
            assert apply_action(state, Action.place("industrial", 0, col)).success

        assert state.environment == 0
        assert state.money == 25

        outcome = quiet_engine.advance_turn(state)

        assert outcome.status == TurnStatus.DEFEAT
        assert state.game_over
        assert state.outcome == GameOutcome.DEFEAT
        assert persistence.load_stats()[0].outcome == GameOutcome.DEFEAT

        assert quiet_engine.advance_turn(state).status == TurnStatus.NO_OP

    def test_achievement_unlocked_during_turn(self, state, quiet_engine):
        state.environment = 85
        outcome = quiet_engine.advance_turn(state)
        assert outcome.unlocked_achievements == ["eco_warrior"]
        assert "eco_warrior" in state.achievements

    def test_seeded_runs_are_deterministic(self, config):
        import random

        from ..engine_core.state import GameState

        def play(seed):
            state = GameState.fresh(config)
            engine = TurnEngine(config=config, rng=random.Random(seed))
            history = []
            while not state.game_over:
                outcome = engine.advance_turn(state)
                history.append((outcome.status, tuple(outcome.tags), state.resources()))
            return history

        assert play(42) == play(42)


class TestEngineFlood:
    def test_trigger_flood_uses_config_penalties(self, state, config):
        engine = TurnEngine(config=config.with_overrides(flood_wellbeing_penalty=1, flood_money_penalty=2))
        assert engine.trigger_flood(state) == 12
        assert state.wellbeing == 38
        assert state.money == 76
