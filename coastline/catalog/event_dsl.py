"""
Event DSL - Declarative climate event rules.

Rules are tagged data, not closures:
- A rule holds a list of ConditionSpec (all must hold, checked in order)
  and one EffectSpec
- Each spec is a kind enum plus a parameter payload
- The engine's event resolver is the single interpreter for both

Because rules are data they can be serialized, validated, tested in
isolation and swapped without code changes.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class OutcomeTag(str, Enum):
    """Tag an effect returns when it changed something notable."""
    FLOOD = "FLOOD"
    STORM_DAMAGE = "STORM_DAMAGE"
    HEAT_WAVE = "HEAT_WAVE"
    POSITIVE_EVENT = "POSITIVE_EVENT"
    EXTREME_HEAT = "EXTREME_HEAT"
    SEA_LEVEL_SPIKE = "SEA_LEVEL_SPIKE"
    EXTERNAL_EVENT_IMPACT = "EXTERNAL_EVENT_IMPACT"


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    POSITIVE = "positive"


class ConditionKind(str, Enum):
    """Types of rule conditions."""
    # Clock
    YEAR_AT_LEAST = "year_at_least"
    YEAR_BEFORE = "year_before"
    TURN_MULTIPLE_OF = "turn_multiple_of"
    TURN_AFTER = "turn_after"

    # Randomness
    CHANCE = "chance"

    # Resources
    ENVIRONMENT_ABOVE = "environment_above"
    ENVIRONMENT_AT_LEAST = "environment_at_least"
    RESILIENCE_AT_LEAST = "resilience_at_least"
    RESILIENCE_BELOW = "resilience_below"

    # External data
    TEMPERATURE_ANOMALY_ABOVE = "temperature_anomaly_above"

    # Board
    COAST_FULLY_PROTECTED = "coast_fully_protected"


class EffectKind(str, Enum):
    """Types of rule effects."""
    FLOOD_CHECK = "flood_check"
    RESOURCE_DELTA = "resource_delta"
    RESOURCE_DELTA_IF_RESILIENCE_BELOW = "resource_delta_if_resilience_below"
    FLOOD_RISK_SPIKE = "flood_risk_spike"


@dataclass(frozen=True)
class ConditionSpec:
    """
    A condition evaluated against the rule context.

    Examples:
    - ConditionSpec(ConditionKind.YEAR_AT_LEAST, {"year": 2030})
    - ConditionSpec(ConditionKind.CHANCE, {"probability": 0.3})
    """
    kind: ConditionKind
    params: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind.value, "params": dict(self.params)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ConditionSpec:
        return cls(kind=ConditionKind(data["kind"]), params=dict(data.get("params", {})))


@dataclass(frozen=True)
class EffectSpec:
    """
    An effect applied when all conditions hold.

    `outcome` is the tag reported when the effect actually changed
    the state.
    """
    kind: EffectKind
    params: dict[str, Any] = field(default_factory=dict)
    outcome: OutcomeTag | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "params": dict(self.params),
            "outcome": self.outcome.value if self.outcome else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EffectSpec:
        outcome = data.get("outcome")
        return cls(
            kind=EffectKind(data["kind"]),
            params=dict(data.get("params", {})),
            outcome=OutcomeTag(outcome) if outcome else None,
        )


@dataclass(frozen=True)
class ClimateEventRule:
    """A catalog entry: conditions + effect + severity."""
    rule_id: str
    name: str
    conditions: tuple[ConditionSpec, ...]
    effect: EffectSpec
    severity: Severity = Severity.MEDIUM
    description: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "rule_id": self.rule_id,
            "name": self.name,
            "description": self.description,
            "severity": self.severity.value,
            "conditions": [c.to_dict() for c in self.conditions],
            "effect": self.effect.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ClimateEventRule:
        return cls(
            rule_id=data["rule_id"],
            name=data.get("name", data["rule_id"]),
            description=data.get("description", ""),
            severity=Severity(data.get("severity", Severity.MEDIUM.value)),
            conditions=tuple(ConditionSpec.from_dict(c) for c in data.get("conditions", [])),
            effect=EffectSpec.from_dict(data["effect"]),
        )


# =============================================================================
# Helper constructors
# =============================================================================

def year_at_least(year: int) -> ConditionSpec:
    return ConditionSpec(ConditionKind.YEAR_AT_LEAST, {"year": year})


def turn_multiple_of(divisor: int) -> ConditionSpec:
    return ConditionSpec(ConditionKind.TURN_MULTIPLE_OF, {"divisor": divisor})


def chance(probability: float) -> ConditionSpec:
    return ConditionSpec(ConditionKind.CHANCE, {"probability": probability})


def resource_delta(delta: dict[str, float], outcome: OutcomeTag) -> EffectSpec:
    return EffectSpec(EffectKind.RESOURCE_DELTA, {"delta": dict(delta)}, outcome)


# =============================================================================
# Reference catalog
# =============================================================================

CLIMATE_EVENTS: list[ClimateEventRule] = [
    ClimateEventRule(
        rule_id="sea_level_rise",
        name="Sea Level Rise",
        description="Sea level has risen noticeably. Unprotected coastal areas are at risk.",
        conditions=(year_at_least(2030), turn_multiple_of(3)),
        effect=EffectSpec(
            EffectKind.FLOOD_CHECK,
            {"resilience_factor": 0.01},
            OutcomeTag.FLOOD,
        ),
        severity=Severity.HIGH,
    ),
    ClimateEventRule(
        rule_id="intense_storm",
        name="Intense Storm",
        description="A powerful storm hits the coast and tests the city's resilience.",
        conditions=(
            chance(0.3),
            ConditionSpec(ConditionKind.TURN_AFTER, {"turn": 2}),
        ),
        effect=EffectSpec(
            EffectKind.RESOURCE_DELTA_IF_RESILIENCE_BELOW,
            {"threshold": 30, "delta": {"wellbeing": -10, "money": -5}},
            OutcomeTag.STORM_DAMAGE,
        ),
        severity=Severity.MEDIUM,
    ),
    ClimateEventRule(
        rule_id="heat_wave",
        name="Heat Wave",
        description="A long heat wave drives up energy consumption.",
        conditions=(chance(0.2), year_at_least(2040)),
        effect=resource_delta({"money": -8, "wellbeing": -5}, OutcomeTag.HEAT_WAVE),
        severity=Severity.LOW,
    ),
    ClimateEventRule(
        rule_id="environmental_awareness",
        name="Environmental Awareness",
        description="Residents rally behind green initiatives.",
        conditions=(
            chance(0.15),
            ConditionSpec(ConditionKind.ENVIRONMENT_ABOVE, {"value": 60}),
        ),
        effect=resource_delta({"wellbeing": 10, "money": 5}, OutcomeTag.POSITIVE_EVENT),
        severity=Severity.POSITIVE,
    ),
    ClimateEventRule(
        rule_id="extreme_heat",
        name="Observed Extreme Heat",
        description="Observed global temperature anomalies make heat waves more frequent and intense.",
        conditions=(
            ConditionSpec(ConditionKind.TEMPERATURE_ANOMALY_ABOVE, {"value": 1.2}),
            chance(0.4),
        ),
        effect=resource_delta({"wellbeing": -15, "money": -10}, OutcomeTag.EXTREME_HEAT),
        severity=Severity.HIGH,
    ),
    ClimateEventRule(
        rule_id="sea_level_acceleration",
        name="Sea Level Acceleration",
        description="Satellite altimetry shows sea level rise accelerating; flood risk is raised next turn.",
        conditions=(year_at_least(2040), turn_multiple_of(5)),
        effect=EffectSpec(
            EffectKind.FLOOD_RISK_SPIKE,
            {"bonus": 0.1},
            OutcomeTag.SEA_LEVEL_SPIKE,
        ),
        severity=Severity.MEDIUM,
    ),
]


def default_catalog() -> list[ClimateEventRule]:
    """A fresh copy of the reference catalog, in evaluation order."""
    return list(CLIMATE_EVENTS)
