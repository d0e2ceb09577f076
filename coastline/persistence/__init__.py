"""
Persistence - Versioned saves, backup/restore, import/export and
session statistics over a key-value storage boundary.
"""

from .storage import KeyValueStorage, MemoryStorage, FileStorage
from .serialization import (
    SaveRecord,
    SerializedGameState,
    SessionStat,
    serialize_state,
    validate_game_state,
    validate_record,
    restore,
)
from .manager import PersistenceManager, SAVE_KEY, BACKUP_KEY, STATS_KEY

__all__ = [
    "KeyValueStorage",
    "MemoryStorage",
    "FileStorage",
    "SaveRecord",
    "SerializedGameState",
    "SessionStat",
    "serialize_state",
    "validate_game_state",
    "validate_record",
    "restore",
    "PersistenceManager",
    "SAVE_KEY",
    "BACKUP_KEY",
    "STATS_KEY",
]
