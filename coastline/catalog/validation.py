"""
Catalog Validation - Checks that rule and structure catalogs are well-formed.

Validates that:
1. Rule ids are present and unique
2. Every condition/effect carries the parameters its kind needs
3. Probabilities are within [0, 1]
4. Resource deltas only name known resources
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Iterable

from .event_dsl import ClimateEventRule, ConditionKind, ConditionSpec, EffectKind, EffectSpec
from .structures import StructureKind

RESOURCE_KEYS = {"money", "wellbeing", "environment", "resilience"}

REQUIRED_CONDITION_PARAMS: dict[ConditionKind, tuple[str, ...]] = {
    ConditionKind.YEAR_AT_LEAST: ("year",),
    ConditionKind.YEAR_BEFORE: ("year",),
    ConditionKind.TURN_MULTIPLE_OF: ("divisor",),
    ConditionKind.TURN_AFTER: ("turn",),
    ConditionKind.CHANCE: ("probability",),
    ConditionKind.ENVIRONMENT_ABOVE: ("value",),
    ConditionKind.ENVIRONMENT_AT_LEAST: ("value",),
    ConditionKind.RESILIENCE_AT_LEAST: ("value",),
    ConditionKind.RESILIENCE_BELOW: ("value",),
    ConditionKind.TEMPERATURE_ANOMALY_ABOVE: ("value",),
    ConditionKind.COAST_FULLY_PROTECTED: (),
}

REQUIRED_EFFECT_PARAMS: dict[EffectKind, tuple[str, ...]] = {
    EffectKind.FLOOD_CHECK: ("resilience_factor",),
    EffectKind.RESOURCE_DELTA: ("delta",),
    EffectKind.RESOURCE_DELTA_IF_RESILIENCE_BELOW: ("threshold", "delta"),
    EffectKind.FLOOD_RISK_SPIKE: ("bonus",),
}


@dataclass
class ValidationResult:
    """Result of validation, with errors and warnings."""
    valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @classmethod
    def from_errors(cls, errors: list[str], warnings: list[str] | None = None) -> ValidationResult:
        return cls(valid=not errors, errors=errors, warnings=warnings or [])


def validate_catalog(rules: Iterable[ClimateEventRule]) -> ValidationResult:
    """Validate an ordered list of climate event rules."""
    errors: list[str] = []
    warnings: list[str] = []
    seen: set[str] = set()

    rules = list(rules)
    if not rules:
        warnings.append("Catalog is empty - no climate events will fire")

    for rule in rules:
        if not rule.rule_id:
            errors.append("Rule has empty rule_id")
        elif rule.rule_id in seen:
            errors.append(f"Duplicate rule_id '{rule.rule_id}'")
        seen.add(rule.rule_id)

        if not rule.conditions:
            warnings.append(f"Rule '{rule.rule_id}' has no conditions and fires every turn")

        for condition in rule.conditions:
            errors.extend(f"Rule '{rule.rule_id}': {e}" for e in validate_condition(condition))

        errors.extend(f"Rule '{rule.rule_id}': {e}" for e in _validate_effect(rule.effect))

    return ValidationResult.from_errors(errors, warnings)


def validate_condition(condition: ConditionSpec) -> list[str]:
    errors = []
    for name in REQUIRED_CONDITION_PARAMS.get(condition.kind, ()):
        if name not in condition.params:
            errors.append(f"condition '{condition.kind.value}' missing param '{name}'")

    if condition.kind == ConditionKind.CHANCE and "probability" in condition.params:
        p = condition.params["probability"]
        if not isinstance(p, (int, float)) or not 0 <= p <= 1:
            errors.append(f"chance probability must be within [0, 1], got {p!r}")

    if condition.kind == ConditionKind.TURN_MULTIPLE_OF:
        divisor = condition.params.get("divisor")
        if divisor is not None and (not isinstance(divisor, int) or divisor <= 0):
            errors.append(f"turn divisor must be a positive integer, got {divisor!r}")
    return errors


def _validate_effect(effect: EffectSpec) -> list[str]:
    errors = []
    for name in REQUIRED_EFFECT_PARAMS.get(effect.kind, ()):
        if name not in effect.params:
            errors.append(f"effect '{effect.kind.value}' missing param '{name}'")

    delta = effect.params.get("delta")
    if delta is not None:
        errors.extend(_validate_delta(delta))

    if effect.outcome is None:
        errors.append(f"effect '{effect.kind.value}' has no outcome tag")
    return errors


def _validate_delta(delta: object) -> list[str]:
    if not isinstance(delta, dict):
        return ["delta must be a mapping of resource -> amount"]
    errors = []
    for resource, amount in delta.items():
        if resource not in RESOURCE_KEYS:
            errors.append(f"delta names unknown resource '{resource}'")
        if not isinstance(amount, (int, float)):
            errors.append(f"delta for '{resource}' is not a number")
    return errors


def validate_structures(structures: dict[str, StructureKind]) -> ValidationResult:
    """Validate the structure catalog."""
    errors: list[str] = []
    for key, kind in structures.items():
        if key != kind.kind_id:
            errors.append(f"Structure key '{key}' does not match kind_id '{kind.kind_id}'")
        if kind.cost < 0:
            errors.append(f"Structure '{kind.kind_id}' has negative cost")
        errors.extend(f"Structure '{kind.kind_id}': {e}" for e in _validate_delta(kind.effects))
    return ValidationResult.from_errors(errors)
