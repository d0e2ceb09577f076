"""
Achievement catalog - one-time milestones with a resource reward.

Conditions reuse the event DSL so the same interpreter checks both.
"""

from __future__ import annotations
from dataclasses import dataclass, field

from .event_dsl import ConditionKind, ConditionSpec


@dataclass(frozen=True)
class Achievement:
    achievement_id: str
    name: str
    description: str
    conditions: tuple[ConditionSpec, ...]
    reward: dict[str, float] = field(default_factory=dict)


ACHIEVEMENTS: list[Achievement] = [
    Achievement(
        achievement_id="early_planner",
        name="Early Planner",
        description="Reach 50 resilience before 2050",
        conditions=(
            ConditionSpec(ConditionKind.YEAR_BEFORE, {"year": 2050}),
            ConditionSpec(ConditionKind.RESILIENCE_AT_LEAST, {"value": 50}),
        ),
        reward={"money": 50, "wellbeing": 10},
    ),
    Achievement(
        achievement_id="eco_warrior",
        name="Eco Warrior",
        description="Keep the environment at 80 or above",
        conditions=(
            ConditionSpec(ConditionKind.ENVIRONMENT_AT_LEAST, {"value": 80}),
        ),
        reward={"environment": 15, "resilience": 10},
    ),
    Achievement(
        achievement_id="coastal_guardian",
        name="Coastal Guardian",
        description="Protect every coastal cell with mangroves or seawalls",
        conditions=(
            ConditionSpec(ConditionKind.COAST_FULLY_PROTECTED),
        ),
        reward={"money": 100, "resilience": 20},
    ),
]

