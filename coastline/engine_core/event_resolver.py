"""
Event Resolver - The single interpreter for event rules and achievements.

This module:
- Evaluates ConditionSpec values against a RuleContext
- Applies EffectSpec values to a GameState
- Runs a whole catalog with per-rule containment: outcomes and errors
  are collected, nothing propagates

A rule that raises (for example because external data is malformed) is
skipped as a whole: its effect is applied to a trial copy and only
committed if it completes.
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging
import random
from typing import Any, Callable, Iterable, TypeVar, TYPE_CHECKING

from ..catalog.event_dsl import (
    ClimateEventRule,
    ConditionKind,
    ConditionSpec,
    EffectKind,
    EffectSpec,
    OutcomeTag,
)
from ..catalog.structures import is_flood_protected
from .errors import InvariantViolation, RuleEvaluationError
from .flooding import trigger_flood
from .state import EnvironmentalSnapshot, GameState

if TYPE_CHECKING:
    from ..catalog.achievements import Achievement
    from ..catalog.config import GameConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class RuleContext:
    """
    Inputs a rule sees besides the state itself.

    `flood_risk_bonus` is the modifier carried into this turn; the state
    field is reset before rules run so a spike only lasts one turn.
    """
    config: GameConfig
    rng: random.Random
    flood_risk_bonus: float = 0.0


@dataclass
class EffectResult:
    outcome: OutcomeTag | None = None
    flooded_cells: int = 0


@dataclass
class EvaluationReport:
    """Everything a catalog pass produced."""
    tags: list[OutcomeTag] = field(default_factory=list)
    fired_rules: list[str] = field(default_factory=list)
    errors: list[RuleEvaluationError] = field(default_factory=list)
    flooded_cells: int = 0


# =============================================================================
# Containment
# =============================================================================

def contained(label: str, fn: Callable[[], T]) -> tuple[T | None, RuleEvaluationError | None]:
    """
    Run fn, turning any failure into a RuleEvaluationError value.

    InvariantViolation is a defect, not a rule failure, and is re-raised.
    """
    try:
        return fn(), None
    except InvariantViolation:
        raise
    except Exception as e:
        error = RuleEvaluationError(label, e)
        logger.warning("Non-fatal rule failure: %s", error)
        return None, error


# =============================================================================
# Conditions
# =============================================================================

def evaluate_condition(condition: ConditionSpec, state: GameState, ctx: RuleContext) -> bool:
    """Evaluate one condition. Raises on malformed params or data."""
    kind = condition.kind
    params = condition.params

    if kind == ConditionKind.YEAR_AT_LEAST:
        return state.current_year >= params["year"]
    if kind == ConditionKind.YEAR_BEFORE:
        return state.current_year < params["year"]
    if kind == ConditionKind.TURN_MULTIPLE_OF:
        return state.turn % params["divisor"] == 0
    if kind == ConditionKind.TURN_AFTER:
        return state.turn > params["turn"]
    if kind == ConditionKind.CHANCE:
        return ctx.rng.random() < params["probability"]
    if kind == ConditionKind.ENVIRONMENT_ABOVE:
        return state.environment > params["value"]
    if kind == ConditionKind.ENVIRONMENT_AT_LEAST:
        return state.environment >= params["value"]
    if kind == ConditionKind.RESILIENCE_AT_LEAST:
        return state.resilience >= params["value"]
    if kind == ConditionKind.RESILIENCE_BELOW:
        return state.resilience < params["value"]
    if kind == ConditionKind.TEMPERATURE_ANOMALY_ABOVE:
        snapshot = state.environmental_snapshot
        if snapshot is None or snapshot.temperature is None:
            return False
        return _as_number(snapshot.temperature.anomaly, "temperature anomaly") > params["value"]
    if kind == ConditionKind.COAST_FULLY_PROTECTED:
        coast = state.coastal_cells()
        return bool(coast) and all(is_flood_protected(cell) for cell in coast)

    raise ValueError(f"Unhandled condition kind: {kind}")


def conditions_hold(conditions: Iterable[ConditionSpec], state: GameState, ctx: RuleContext) -> bool:
    """All conditions hold. Short-circuits in declared order."""
    return all(evaluate_condition(c, state, ctx) for c in conditions)


# =============================================================================
# Effects
# =============================================================================

def apply_effect(effect: EffectSpec, state: GameState, ctx: RuleContext) -> EffectResult:
    """Apply one effect to the state. Raises on malformed params or data."""
    kind = effect.kind
    params = effect.params

    if kind == EffectKind.FLOOD_CHECK:
        flood_chance = (
            ctx.config.flood_risk_base
            - state.resilience * params["resilience_factor"]
            + ctx.flood_risk_bonus
        )
        if ctx.rng.random() < flood_chance:
            flooded = trigger_flood(state, ctx.config)
            return EffectResult(outcome=effect.outcome, flooded_cells=flooded)
        return EffectResult()

    if kind == EffectKind.RESOURCE_DELTA:
        _apply_checked_delta(state, params["delta"])
        return EffectResult(outcome=effect.outcome)

    if kind == EffectKind.RESOURCE_DELTA_IF_RESILIENCE_BELOW:
        if state.resilience < params["threshold"]:
            _apply_checked_delta(state, params["delta"])
            return EffectResult(outcome=effect.outcome)
        return EffectResult()

    if kind == EffectKind.FLOOD_RISK_SPIKE:
        state.flood_risk_bonus = _as_number(params["bonus"], "flood risk bonus")
        return EffectResult(outcome=effect.outcome)

    raise ValueError(f"Unhandled effect kind: {kind}")


def _apply_checked_delta(state: GameState, delta: dict[str, Any]) -> None:
    for resource, amount in delta.items():
        state.adjust(resource, _as_number(amount, resource))


def _as_number(value: Any, label: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"{label} must be a number, got {value!r}")
    return float(value)


# =============================================================================
# Catalog pass
# =============================================================================

def evaluate_rule(rule: ClimateEventRule, state: GameState, ctx: RuleContext) -> EffectResult | None:
    """
    Evaluate one rule against a trial copy of the state.

    Returns None when the conditions do not hold. The trial is committed
    only if the effect completes.
    """
    if not conditions_hold(rule.conditions, state, ctx):
        return None
    trial = state.clone()
    result = apply_effect(rule.effect, trial, ctx)
    state.commit_from(trial)
    return result


def evaluate_rules(
    rules: Iterable[ClimateEventRule],
    state: GameState,
    ctx: RuleContext,
) -> EvaluationReport:
    """
    Run every rule in catalog order.

    Multiple rules may fire in the same turn; there is no priority or
    exclusivity between them. Failures are collected, never raised.
    """
    report = EvaluationReport()
    for rule in rules:
        result, error = contained(rule.rule_id, lambda: evaluate_rule(rule, state, ctx))
        if error is not None:
            report.errors.append(error)
            continue
        if result is None:
            continue
        report.fired_rules.append(rule.rule_id)
        report.flooded_cells += result.flooded_cells
        if result.outcome is not None:
            report.tags.append(result.outcome)
        logger.debug("Rule '%s' fired -> %s", rule.rule_id, result.outcome)
    return report


def draw_external_event(state: GameState, ctx: RuleContext) -> tuple[str | None, OutcomeTag | None]:
    """
    Maybe apply one event from the external recent-events list.

    With the configured probability an event is drawn; if resilience is
    below the threshold a penalty scaled by the event magnitude is
    applied. Returns (event title or None, tag or None).
    """
    config = ctx.config
    if ctx.rng.random() >= config.external_event_probability:
        return None, None

    snapshot: EnvironmentalSnapshot | None = state.environmental_snapshot
    if snapshot is None or not snapshot.recent_events:
        return None, None

    events = snapshot.recent_events
    index = min(int(ctx.rng.random() * len(events)), len(events) - 1)
    event = events[index]

    if state.resilience >= config.external_event_resilience_threshold:
        return event.title, None

    magnitude = _as_number(event.magnitude, "event magnitude")
    if not 0 <= magnitude <= 1:
        raise ValueError(f"event magnitude out of range: {magnitude}")

    trial = state.clone()
    trial.adjust("wellbeing", -config.external_event_wellbeing_penalty * magnitude)
    trial.adjust("money", -config.external_event_money_penalty * magnitude)
    state.commit_from(trial)
    return event.title, OutcomeTag.EXTERNAL_EVENT_IMPACT


# =============================================================================
# Achievements
# =============================================================================

def check_achievements(
    achievements: Iterable[Achievement],
    state: GameState,
    ctx: RuleContext,
) -> list[str]:
    """
    Unlock achievements whose conditions now hold and pay their reward.

    Each achievement is granted at most once per session.
    """
    unlocked = []
    for achievement in achievements:
        if achievement.achievement_id in state.achievements:
            continue
        if conditions_hold(achievement.conditions, state, ctx):
            state.achievements.append(achievement.achievement_id)
            state.apply_delta(achievement.reward)
            unlocked.append(achievement.achievement_id)
            logger.info("Achievement unlocked: %s", achievement.achievement_id)
    return unlocked
