"""
Tests for persistence.

Tests:
- Serialize / restore
- Save / load with version check and backup fallback
- Import / export
- Session statistics
- File storage
"""

import json

import pytest

from ..catalog.config import GameConfig
from ..engine_core.action import Action
from ..engine_core.errors import RestoreFailed, ValidationError
from ..engine_core.reducer import apply_action
from ..engine_core.state import GameOutcome, GameState
from ..persistence import (
    BACKUP_KEY,
    SAVE_KEY,
    STATS_KEY,
    FileStorage,
    MemoryStorage,
    PersistenceManager,
    restore,
    serialize_state,
    validate_game_state,
)


def played_state(config):
    """A state with some structures, a flood and an achievement."""
    state = GameState.fresh(config)
    apply_action(state, Action.place("mangrove", 4, 0))
    apply_action(state, Action.place("residential", 1, 1))
    state.board[5][3].flooded = True
    state.turn = 4
    state.current_year = 2045
    state.achievements.append("eco_warrior")
    return state


class FailingStorage(MemoryStorage):
    """MemoryStorage whose writes to the given keys raise."""

    def __init__(self, failing_keys=()):
        super().__init__()
        self.failing_keys = set(failing_keys)

    def set(self, key, value):
        if key in self.failing_keys:
            raise OSError(f"disk full writing {key}")
        super().set(key, value)


class TestSerialization:
    def test_round_trip(self, config):
        state = played_state(config)
        state.selected_cell = (1, 1)
        state.flood_risk_bonus = 0.1

        restored = restore(serialize_state(state), config)

        assert restored.resources() == state.resources()
        assert restored.board == state.board
        assert restored.turn == 4
        assert restored.current_year == 2045
        assert restored.achievements == ["eco_warrior"]
        assert restored.selected_cell is None
        assert restored.flood_risk_bonus == 0.0

    def test_ui_fields_are_not_serialized(self, state):
        data = serialize_state(state)
        assert "selected_cell" not in data
        assert "flood_risk_bonus" not in data
        assert data["last_saved"]

    def test_serialized_state_validates(self, state):
        assert validate_game_state(serialize_state(state)).valid

    def test_restore_defaults_bad_scalars(self, state, config):
        data = serialize_state(state)
        data["money"] = -5
        data["wellbeing"] = "lots"
        del data["turn"]

        restored = restore(data, config)

        assert restored.money == config.initial_money
        assert restored.wellbeing == config.initial_wellbeing
        assert restored.turn == 0

    def test_restore_drops_unknown_structures(self, state, config):
        data = serialize_state(state)
        data["board"][0][0]["structure"] = "castle"
        data["outcome"] = "surrender"

        restored = restore(data, config)

        assert restored.board[0][0].structure is None
        assert restored.outcome is None

    def test_restore_fills_missing_board(self, config):
        restored = restore({"money": 40}, config)
        assert restored.money == 40
        assert len(restored.board) == 6
        assert restored.board[5][0].is_coast


class TestValidation:
    def test_short_board_is_rejected(self, state):
        data = serialize_state(state)
        data["board"] = data["board"][:5]
        result = validate_game_state(data)
        assert not result.valid
        assert any("6 rows" in e for e in result.errors)

    def test_bool_is_not_a_number(self, state):
        data = serialize_state(state)
        data["money"] = True
        assert not validate_game_state(data).valid

    def test_missing_fields(self):
        result = validate_game_state({"money": 10})
        assert not result.valid
        assert "Missing required field 'board'" in result.errors

    def test_out_of_range_is_a_warning(self, state):
        data = serialize_state(state)
        data["money"] = 150
        result = validate_game_state(data)
        assert result.valid
        assert result.warnings


class TestSaveLoad:
    def test_round_trip(self, persistence, config):
        state = played_state(config)
        assert persistence.save(state)

        loaded = persistence.load()

        assert loaded.resources() == state.resources()
        assert loaded.board == state.board
        assert loaded.achievements == state.achievements
        assert loaded.turn == state.turn

    def test_load_without_save(self, persistence):
        assert persistence.load() is None
        assert not persistence.has_saved_game()

    def test_record_envelope(self, persistence, storage, state):
        persistence.save(state)
        record = json.loads(storage.data[SAVE_KEY])
        assert record["version"] == "1.0.0"
        assert record["timestamp"]
        assert record["difficulty"] == "normal"
        assert record["state"]["turn"] == 0

    def test_save_info(self, persistence, state):
        assert persistence.save_info() is None
        state.turn = 2
        persistence.save(state)
        info = persistence.save_info()
        assert info["turn"] == 2
        assert info["version"] == "1.0.0"

    def test_invalid_state_is_not_written(self, persistence, storage, state):
        state.board = state.board[:5]
        assert not persistence.save(state)
        assert storage.data == {}

    def test_incompatible_version_is_discarded(self, storage, config, state):
        PersistenceManager(storage, config.with_overrides(save_version="2.0.0")).save(state)

        manager = PersistenceManager(storage, config)

        assert manager.load() is None
        assert SAVE_KEY not in storage.data

    def test_previous_save_is_backed_up(self, persistence, storage, state):
        state.turn = 1
        persistence.save(state)
        state.turn = 2
        persistence.save(state)

        assert json.loads(storage.data[BACKUP_KEY])["state"]["turn"] == 1
        assert json.loads(storage.data[SAVE_KEY])["state"]["turn"] == 2

    def test_corrupt_save_falls_back_to_backup(self, persistence, storage, state):
        state.turn = 1
        persistence.save(state)
        state.turn = 2
        persistence.save(state)
        storage.data[SAVE_KEY] = "{not json"

        assert persistence.load().turn == 1

    def test_failed_write_keeps_previous_save(self, config, state):
        storage = FailingStorage()
        manager = PersistenceManager(storage, config)
        state.turn = 1
        manager.save(state)

        storage.failing_keys.add(SAVE_KEY)
        state.turn = 2
        assert not manager.save(state)

        assert manager.load().turn == 1

    def test_failed_backup_aborts_save(self, config, state):
        storage = FailingStorage()
        manager = PersistenceManager(storage, config)
        state.turn = 1
        manager.save(state)

        storage.failing_keys.add(BACKUP_KEY)
        state.turn = 2
        assert not manager.save(state)
        assert manager.load().turn == 1

    def test_corrupt_save_never_replaces_good_backup(self, config, state):
        storage = FailingStorage()
        manager = PersistenceManager(storage, config)
        state.money = 77
        manager.save(state)
        manager.save(state)
        storage.data[SAVE_KEY] = "{corrupt"
        assert manager.load().money == 77

        storage.failing_keys.add(SAVE_KEY)
        state.money = 33
        assert not manager.save(state)

        assert json.loads(storage.data[BACKUP_KEY])["state"]["money"] == 77
        assert manager.load().money == 77

    def test_saved_difficulty(self, storage, state):
        manager = PersistenceManager(storage, GameConfig.for_difficulty("hard"))
        assert manager.saved_difficulty() is None

        manager.save(state)

        assert manager.saved_difficulty() == "hard"
        assert manager.save_info()["difficulty"] == "hard"

    def test_unknown_saved_difficulty_is_ignored(self, persistence, storage, state):
        persistence.save(state)
        record = json.loads(storage.data[SAVE_KEY])
        record["difficulty"] = ["hard"]
        storage.data[SAVE_KEY] = json.dumps(record)

        assert persistence.saved_difficulty() is None
        assert persistence.load() is not None

    def test_clear_keeps_stats(self, persistence, storage, state):
        persistence.save(state)
        persistence.record_session(state)
        assert persistence.clear()
        assert SAVE_KEY not in storage.data
        assert STATS_KEY in storage.data

    def test_restore_raises_on_invalid_result(self, persistence, monkeypatch):
        from ..persistence import serialization

        monkeypatch.setattr(serialization, "restore_board", lambda data: [])
        with pytest.raises(RestoreFailed):
            persistence.restore({})


class TestImportExport:
    def test_export_is_the_serialized_state(self, persistence, config):
        state = played_state(config)
        persistence.save(state)
        snapshot = persistence.export_snapshot()
        assert snapshot["turn"] == 4
        assert snapshot["board"][4][0]["structure"] == "mangrove"

    def test_export_without_save(self, persistence):
        assert persistence.export_snapshot() is None
        assert persistence.export_json() is None

    def test_import_bare_state(self, persistence, config):
        data = serialize_state(played_state(config))
        state = persistence.import_snapshot(data)
        assert state.turn == 4
        assert persistence.load().turn == 4

    def test_import_exported_record_text(self, config, state):
        source = PersistenceManager(MemoryStorage(), config)
        source.save(played_state(config))
        target = PersistenceManager(MemoryStorage(), config)

        imported = target.import_snapshot(source.export_json())

        assert imported.board[4][0].structure == "mangrove"
        assert target.has_saved_game()

    def test_short_board_import_leaves_storage_unchanged(self, persistence, storage, state):
        persistence.save(state)
        before = dict(storage.data)
        data = serialize_state(state)
        data["board"] = data["board"][:5]

        with pytest.raises(ValidationError) as excinfo:
            persistence.import_snapshot(data)

        assert excinfo.value.errors
        assert storage.data == before

    def test_import_rejects_bad_json(self, persistence, storage):
        with pytest.raises(ValidationError):
            persistence.import_snapshot("{not json")
        with pytest.raises(ValidationError):
            persistence.import_snapshot("[1, 2, 3]")
        assert storage.data == {}

    def test_import_rejects_other_versions(self, persistence, state):
        record = {"version": "0.9", "timestamp": "2025-01-01T00:00:00", "state": serialize_state(state)}
        with pytest.raises(ValidationError):
            persistence.import_snapshot(record)


class TestMalformedValues:
    """Values of the wrong shape are rejected, never raised as TypeError."""

    def test_list_cell_type_import_is_rejected(self, persistence, storage, state):
        data = serialize_state(state)
        data["board"][0][0]["type"] = ["coast"]

        with pytest.raises(ValidationError):
            persistence.import_snapshot(data)
        assert storage.data == {}

    def test_dict_outcome_import_is_rejected(self, persistence, storage, state):
        data = serialize_state(state)
        data["outcome"] = {"x": 1}

        with pytest.raises(ValidationError):
            persistence.import_snapshot(data)
        assert storage.data == {}

    def test_non_object_snapshot_import_is_rejected(self, persistence, state):
        data = serialize_state(state)
        data["environmental_snapshot"] = 5

        with pytest.raises(ValidationError):
            persistence.import_snapshot(data)

    def test_dict_cell_type_in_save_is_discarded(self, persistence, storage, state):
        persistence.save(state)
        record = json.loads(storage.data[SAVE_KEY])
        record["state"]["board"][0][0]["type"] = {"a": 1}
        storage.data[SAVE_KEY] = json.dumps(record)

        assert persistence.load() is None
        assert SAVE_KEY not in storage.data

    def test_list_outcome_in_save_is_discarded(self, persistence, storage, state):
        persistence.save(state)
        record = json.loads(storage.data[SAVE_KEY])
        record["state"]["outcome"] = ["victory"]
        storage.data[SAVE_KEY] = json.dumps(record)

        assert persistence.load() is None

    def test_restore_ignores_unhashable_values(self, state, config):
        data = serialize_state(state)
        data["board"][5][0]["type"] = ["land"]
        data["outcome"] = {"x": 1}

        restored = restore(data, config)

        assert restored.board[5][0].is_coast
        assert restored.outcome is None


class TestStatistics:
    def test_newest_first_and_capped(self, storage, config, state):
        manager = PersistenceManager(storage, config.with_overrides(stats_history_limit=3))
        for turn in range(5):
            state.turn = turn
            assert manager.record_session(state)

        stats = manager.load_stats()

        assert len(stats) == 3
        assert [s.turns for s in stats] == [4, 3, 2]

    def test_session_stat_fields(self, persistence, state):
        state.game_over = True
        state.outcome = GameOutcome.VICTORY
        persistence.record_session(state)

        stat = persistence.load_stats()[0]

        assert stat.outcome == GameOutcome.VICTORY
        assert stat.final_score == 130
        assert stat.final_year == 2025
        assert stat.resource_snapshot["money"] == 100

    def test_unfinished_session_is_incomplete(self, persistence, state):
        persistence.record_session(state)
        assert persistence.load_stats()[0].outcome == GameOutcome.INCOMPLETE

    def test_summary(self, persistence, state):
        state.game_over = True
        state.outcome = GameOutcome.VICTORY
        persistence.record_session(state)
        state.outcome = GameOutcome.DEFEAT
        state.wellbeing = 0
        persistence.record_session(state)

        summary = persistence.stats_summary()

        assert summary["total_sessions"] == 2
        assert summary["victories"] == 1
        assert summary["defeats"] == 1
        assert summary["best_score"] == 130

    def test_malformed_entries_are_skipped(self, persistence, storage, state):
        persistence.record_session(state)
        data = json.loads(storage.data[STATS_KEY])
        data["sessions"].append({"id": "junk"})
        storage.data[STATS_KEY] = json.dumps(data)

        assert len(persistence.load_stats()) == 1

    def test_clear_stats(self, persistence, state):
        persistence.record_session(state)
        assert persistence.clear_stats()
        assert persistence.load_stats() == []

    def test_storage_info(self, persistence, state):
        persistence.save(state)
        persistence.record_session(state)

        info = persistence.storage_info()

        assert info["has_save"]
        assert info["total_sessions"] == 1
        assert info["save_size"].endswith(" KB")


class TestFileStorage:
    def test_set_get_remove(self, tmp_path):
        storage = FileStorage(tmp_path / "saves")
        assert storage.get("coastline_save") is None

        storage.set("coastline_save", '{"a": 1}')
        assert storage.get("coastline_save") == '{"a": 1}'
        assert (tmp_path / "saves" / "coastline_save.json").exists()

        storage.remove("coastline_save")
        storage.remove("coastline_save")
        assert storage.get("coastline_save") is None

    def test_no_temp_files_left(self, tmp_path):
        storage = FileStorage(tmp_path)
        storage.set("k", "v")
        storage.set("k", "w")
        assert [p.name for p in tmp_path.iterdir()] == ["k.json"]

    def test_rejects_unsafe_keys(self, tmp_path):
        storage = FileStorage(tmp_path)
        with pytest.raises(ValueError):
            storage.set("../escape", "x")

    def test_manager_over_files(self, tmp_path, config, state):
        manager = PersistenceManager(FileStorage(tmp_path), config)
        state.turn = 3
        assert manager.save(state)
        assert PersistenceManager(FileStorage(tmp_path), config).load().turn == 3
