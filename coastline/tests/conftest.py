"""
Pytest fixtures for Coastline tests.
"""

import random

import pytest

from ..catalog.config import DEFAULT_CONFIG, GameConfig
from ..engine_core.state import GameState
from ..engine_core.turn_engine import TurnEngine
from ..persistence import MemoryStorage, PersistenceManager


class FixedRandom(random.Random):
    """
    Rng whose random() replays the given values.

    The last value repeats once the sequence is exhausted, so
    FixedRandom(0.99) never passes a chance roll and FixedRandom(0.0)
    always does.
    """

    def __init__(self, *values: float):
        super().__init__(0)
        self.values = list(values) or [0.5]
        self.calls = 0

    def random(self) -> float:
        value = self.values[min(self.calls, len(self.values) - 1)]
        self.calls += 1
        return value


@pytest.fixture
def config() -> GameConfig:
    return DEFAULT_CONFIG


@pytest.fixture
def state(config: GameConfig) -> GameState:
    """Fresh normal-difficulty state."""
    return GameState.fresh(config)


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def persistence(storage: MemoryStorage, config: GameConfig) -> PersistenceManager:
    return PersistenceManager(storage, config)


@pytest.fixture
def quiet_engine(config: GameConfig, persistence: PersistenceManager) -> TurnEngine:
    """Engine whose chance rolls never pass, checkpointing to memory."""
    return TurnEngine(config=config, rng=FixedRandom(0.99), checkpointer=persistence)
