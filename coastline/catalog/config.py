"""
Game configuration and difficulty presets.

All tunable constants live here so headless tests, the API and the CLI
share the same baseline.
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from typing import Any


@dataclass(frozen=True)
class VictoryConditions:
    """Thresholds that must all hold for a victory."""
    min_year: int = 2060
    min_wellbeing: float = 60
    min_resilience: float = 50
    min_environment: float = 40


@dataclass(frozen=True)
class DefeatConditions:
    """A resource at or below its threshold ends the game."""
    min_wellbeing: float = 0
    min_money: float = 0
    min_environment: float = 0


@dataclass(frozen=True)
class GameConfig:
    """
    Immutable game configuration.

    Only the difficulty name is saved; a resumed game rebuilds the rest
    from that preset.
    """
    difficulty: str = "normal"

    initial_year: int = 2025
    initial_money: float = 100
    initial_wellbeing: float = 50
    initial_environment: float = 50
    initial_resilience: float = 20

    years_per_turn: int = 5
    max_turns: int = 100

    flood_risk_base: float = 0.1
    flood_wellbeing_penalty: float = 5
    flood_money_penalty: float = 5

    income_per_turn: float = 10

    # Draw from the externally supplied recent-events list
    external_event_probability: float = 0.1
    external_event_resilience_threshold: float = 40
    external_event_wellbeing_penalty: float = 15
    external_event_money_penalty: float = 10

    victory: VictoryConditions = field(default_factory=VictoryConditions)
    defeat: DefeatConditions = field(default_factory=DefeatConditions)
    timeout_year: int = 2100
    timeout_victory_score: float = 200

    stats_history_limit: int = 20
    save_version: str = "1.0.0"

    @classmethod
    def for_difficulty(cls, name: str) -> GameConfig:
        """Config for a named difficulty preset."""
        try:
            overrides = DIFFICULTY_SETTINGS[name]
        except KeyError:
            raise ValueError(
                f"Unknown difficulty '{name}'. "
                f"Expected one of: {', '.join(DIFFICULTY_SETTINGS)}"
            )
        return cls(difficulty=name, **overrides)

    def with_overrides(self, **kwargs: Any) -> GameConfig:
        return replace(self, **kwargs)


DIFFICULTY_SETTINGS: dict[str, dict[str, Any]] = {
    "easy": {
        "initial_money": 150,
        "flood_risk_base": 0.05,
    },
    "normal": {
        "initial_money": 100,
        "flood_risk_base": 0.1,
    },
    "hard": {
        "initial_money": 70,
        "flood_risk_base": 0.15,
    },
    "realistic": {
        "initial_money": 50,
        "flood_risk_base": 0.2,
    },
}


# Projected sea level rise (metres) by year, used without live data
SEA_LEVEL_PROJECTION: list[tuple[int, float]] = [
    (2020, 0.00),
    (2025, 0.02),
    (2030, 0.05),
    (2035, 0.08),
    (2040, 0.12),
    (2045, 0.16),
    (2050, 0.20),
    (2055, 0.25),
    (2060, 0.30),
    (2070, 0.40),
    (2080, 0.55),
    (2090, 0.70),
    (2100, 0.85),
]

DEFAULT_CONFIG = GameConfig()
