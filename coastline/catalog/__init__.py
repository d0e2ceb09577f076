"""
Catalog - Static, immutable game configuration.

- GameConfig and difficulty presets
- Structure kinds and their placement rules
- Climate event rules as tagged data (the event DSL)
- Achievements
- Validation for all of the above

Nothing here is part of saved state.
"""

from .config import GameConfig, VictoryConditions, DefeatConditions, DIFFICULTY_SETTINGS, DEFAULT_CONFIG
from .structures import StructureKind, PlacementRule, STRUCTURES, is_flood_protected
from .event_dsl import (
    ClimateEventRule,
    ConditionKind,
    ConditionSpec,
    EffectKind,
    EffectSpec,
    OutcomeTag,
    Severity,
    CLIMATE_EVENTS,
    default_catalog,
)
from .achievements import Achievement, ACHIEVEMENTS
from .validation import ValidationResult, validate_catalog, validate_structures

__all__ = [
    "GameConfig",
    "VictoryConditions",
    "DefeatConditions",
    "DIFFICULTY_SETTINGS",
    "DEFAULT_CONFIG",
    "StructureKind",
    "PlacementRule",
    "STRUCTURES",
    "is_flood_protected",
    "ClimateEventRule",
    "ConditionKind",
    "ConditionSpec",
    "EffectKind",
    "EffectSpec",
    "OutcomeTag",
    "Severity",
    "CLIMATE_EVENTS",
    "default_catalog",
    "Achievement",
    "ACHIEVEMENTS",
    "ValidationResult",
    "validate_catalog",
    "validate_structures",
]
