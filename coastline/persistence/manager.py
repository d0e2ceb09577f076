"""
Persistence Manager - Versioned save/load with backup, import/export
and session statistics.

Every boundary validates what crosses it:
- save() refuses to write an invalid state
- load() discards an invalid or incompatible record instead of coercing it
- import_snapshot() raises ValidationError and leaves storage untouched

The previous save, when it is a valid record, is copied to the backup
key before each write, and that copy completes before the new save is
written. A corrupt save never replaces a good backup.
"""

from __future__ import annotations
import json
import logging
from typing import Any, Mapping

from ..catalog.config import DEFAULT_CONFIG, DIFFICULTY_SETTINGS, GameConfig
from ..engine_core.errors import CoastlineError, ValidationError
from ..engine_core.state import GameOutcome, GameState
from .serialization import (
    SessionStat,
    build_record,
    build_session_stat,
    restore,
    validate_game_state,
    validate_live_state,
    validate_record,
)
from .storage import KeyValueStorage, MemoryStorage

logger = logging.getLogger(__name__)

SAVE_KEY = "coastline_save"
BACKUP_KEY = "coastline_backup"
STATS_KEY = "coastline_stats"


class PersistenceManager:
    """
    Durable storage of one player's game and session history.

    Implements the TurnEngine checkpointer interface (save and
    record_session).
    """

    def __init__(
        self,
        storage: KeyValueStorage | None = None,
        config: GameConfig = DEFAULT_CONFIG,
        save_key: str = SAVE_KEY,
        backup_key: str = BACKUP_KEY,
        stats_key: str = STATS_KEY,
    ):
        self.storage = storage if storage is not None else MemoryStorage()
        self.config = config
        self.save_key = save_key
        self.backup_key = backup_key
        self.stats_key = stats_key

    @property
    def version(self) -> str:
        return self.config.save_version

    # =========================================================================
    # Save / load
    # =========================================================================

    def save(self, state: GameState) -> bool:
        """Validate and write the state. Returns False if nothing was written."""
        result = validate_live_state(state)
        if not result.valid:
            logger.warning("Refusing to save invalid state: %s", "; ".join(result.errors))
            return False

        payload = build_record(state, self.version, self.config.difficulty).model_dump_json()

        try:
            self._backup_current()
        except Exception:
            logger.exception("Could not back up previous save; save aborted")
            return False

        try:
            self.storage.set(self.save_key, payload)
        except Exception:
            logger.exception("Save failed; restoring previous save from backup")
            self._restore_from_backup()
            return False

        logger.debug("Saved turn %d (year %d)", state.turn, state.current_year)
        return True

    def load(self) -> GameState | None:
        """
        Load the current save.

        Returns None when there is no save, or when it is invalid or from
        another version (the record is then cleared). Unreadable records
        fall back to the backup.
        """
        try:
            raw = self.storage.get(self.save_key)
            if raw is None:
                return None
            data = json.loads(raw)
        except Exception:
            logger.exception("Could not read save; trying backup")
            return self._load_backup()

        result = validate_record(data, self.version)
        if not result.valid:
            logger.warning("Discarding invalid save: %s", "; ".join(result.errors))
            self.clear()
            return None

        try:
            return restore(data["state"], self.config)
        except Exception:
            logger.exception("Could not restore save; trying backup")
            return self._load_backup()

    def restore(self, serialized: Mapping[str, Any]) -> GameState:
        """Rebuild a GameState from serialized data. Raises RestoreFailed."""
        return restore(dict(serialized), self.config)

    def clear(self) -> bool:
        """Remove the current save. Statistics are kept."""
        try:
            self.storage.remove(self.save_key)
        except Exception:
            logger.exception("Could not clear save")
            return False
        logger.info("Saved game cleared")
        return True

    def has_saved_game(self) -> bool:
        try:
            return self.storage.get(self.save_key) is not None
        except Exception:
            logger.exception("Could not check for saved game")
            return False

    def saved_difficulty(self) -> str | None:
        """Difficulty the current save was played on, if it names a known preset."""
        info = self.save_info()
        difficulty = info.get("difficulty") if info else None
        return difficulty if isinstance(difficulty, str) and difficulty in DIFFICULTY_SETTINGS else None

    def save_info(self) -> dict[str, Any] | None:
        """Timestamp, version, difficulty, year and turn of the current save."""
        data = self._read_json(self.save_key)
        if not isinstance(data, dict) or not isinstance(data.get("state"), dict):
            return None
        return {
            "timestamp": data.get("timestamp"),
            "version": data.get("version"),
            "difficulty": data.get("difficulty"),
            "year": data["state"].get("current_year"),
            "turn": data["state"].get("turn"),
        }

    # =========================================================================
    # Backup
    # =========================================================================

    def _backup_current(self) -> None:
        """Copy the current save to the backup key if it is a valid record."""
        current = self.storage.get(self.save_key)
        if current is None:
            return
        try:
            data = json.loads(current)
        except ValueError:
            data = None
        if not validate_record(data, self.version).valid:
            logger.warning("Current save is unusable; keeping the existing backup")
            return
        self.storage.set(self.backup_key, current)

    def _restore_from_backup(self) -> bool:
        try:
            backup = self.storage.get(self.backup_key)
            if backup is None:
                return False
            self.storage.set(self.save_key, backup)
        except Exception:
            logger.exception("Could not restore save from backup")
            return False
        logger.info("Previous save restored from backup")
        return True

    def _load_backup(self) -> GameState | None:
        try:
            raw = self.storage.get(self.backup_key)
            if raw is None:
                return None
            data = json.loads(raw)
            if not validate_record(data, self.version).valid:
                return None
            state = restore(data["state"], self.config)
        except Exception:
            logger.exception("Backup is unusable")
            return None
        logger.info("Loaded game from backup")
        return state

    # =========================================================================
    # Import / export
    # =========================================================================

    def export_snapshot(self) -> dict[str, Any] | None:
        """Serialized game state of the current save, or None."""
        data = self._read_json(self.save_key)
        if data is None or not validate_record(data, self.version).valid:
            return None
        return data["state"]

    def export_json(self) -> str | None:
        """The full current save record as JSON text, or None."""
        data = self._read_json(self.save_key)
        if data is None or not validate_record(data, self.version).valid:
            return None
        return json.dumps(data, indent=2)

    def import_snapshot(self, blob: str | bytes | Mapping[str, Any]) -> GameState:
        """
        Accept an exported game and make it the current save.

        blob may be JSON text or a mapping, holding either a bare
        serialized state or a full save record. Raises ValidationError
        before anything is written if it does not validate.
        """
        if isinstance(blob, (str, bytes)):
            try:
                data = json.loads(blob)
            except ValueError as e:
                raise ValidationError([f"Import is not valid JSON: {e}"])
        else:
            data = blob

        if not isinstance(data, Mapping):
            raise ValidationError(["Import must be a JSON object"])
        data = dict(data)

        if "state" in data and "version" in data:
            result = validate_record(data, self.version)
            state_data = data["state"]
        else:
            result = validate_game_state(data)
            state_data = data

        if not result.valid:
            logger.warning("Rejected import: %s", "; ".join(result.errors))
            raise ValidationError(result.errors, "Import rejected: " + "; ".join(result.errors))

        state = restore(state_data, self.config)
        if not self.save(state):
            raise CoastlineError("Imported game could not be written")
        logger.info("Imported game at year %d, turn %d", state.current_year, state.turn)
        return state

    # =========================================================================
    # Statistics
    # =========================================================================

    def record_session(self, state: GameState) -> bool:
        """Add a SessionStat for state, keeping the most recent sessions."""
        try:
            sessions = [build_session_stat(state, self.config)] + self.load_stats()
            # Stable sort keeps the new entry first on equal dates
            sessions.sort(key=lambda s: s.date, reverse=True)
            sessions = sessions[:self.config.stats_history_limit]
            payload = {"sessions": [s.model_dump(mode="json") for s in sessions]}
            self.storage.set(self.stats_key, json.dumps(payload))
        except Exception:
            logger.exception("Could not record session statistics")
            return False
        return True

    def load_stats(self) -> list[SessionStat]:
        """Session history, newest first. Malformed entries are skipped."""
        data = self._read_json(self.stats_key)
        if not isinstance(data, dict) or not isinstance(data.get("sessions"), list):
            return []

        sessions = []
        for entry in data["sessions"]:
            try:
                sessions.append(SessionStat.model_validate(entry))
            except ValueError:
                logger.warning("Skipping malformed session statistic")
        sessions.sort(key=lambda s: s.date, reverse=True)
        return sessions

    def stats_summary(self) -> dict[str, Any]:
        sessions = self.load_stats()
        scores = [s.final_score for s in sessions]
        return {
            "total_sessions": len(sessions),
            "victories": sum(1 for s in sessions if s.outcome == GameOutcome.VICTORY),
            "defeats": sum(1 for s in sessions if s.outcome == GameOutcome.DEFEAT),
            "best_score": max(scores) if scores else 0,
            "average_score": round(sum(scores) / len(scores)) if scores else 0,
        }

    def clear_stats(self) -> bool:
        try:
            self.storage.remove(self.stats_key)
        except Exception:
            logger.exception("Could not clear statistics")
            return False
        logger.info("Statistics cleared")
        return True

    def storage_info(self) -> dict[str, Any]:
        def size_kb(key: str) -> str:
            raw = self.storage.get(key)
            return f"{len(raw or '') / 1024:.2f} KB"

        return {
            "has_save": self.has_saved_game(),
            "save_size": size_kb(self.save_key),
            "stats_size": size_kb(self.stats_key),
            "total_sessions": len(self.load_stats()),
        }

    # =========================================================================
    # Helpers
    # =========================================================================

    def _read_json(self, key: str) -> Any:
        try:
            raw = self.storage.get(key)
            return json.loads(raw) if raw is not None else None
        except Exception:
            logger.exception("Could not read '%s'", key)
            return None
