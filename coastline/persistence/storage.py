"""
Key-value storage abstraction.

Separates persistence from game logic for testability.
"""

from __future__ import annotations
import logging
import os
from pathlib import Path
import re
import tempfile
from typing import Protocol, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class KeyValueStorage(Protocol):
    """
    String storage addressed by key.

    Implementations:
    - FileStorage: one file per key in a directory (production)
    - MemoryStorage: dict-backed (testing)

    set() raises on failure; callers decide how to recover.
    """

    def get(self, key: str) -> str | None:
        """Value for key, or None if absent."""
        ...

    def set(self, key: str, value: str) -> None:
        """Store value under key, replacing any previous value."""
        ...

    def remove(self, key: str) -> None:
        """Delete key. Missing keys are ignored."""
        ...


class MemoryStorage:
    """
    In-memory storage for testing.

    No file I/O - all data lives in a dict.
    """

    def __init__(self, initial: dict[str, str] | None = None):
        self.data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value

    def remove(self, key: str) -> None:
        self.data.pop(key, None)


_SAFE_KEY = re.compile(r"^[A-Za-z0-9_.-]+$")


class FileStorage:
    """
    File-based storage, one JSON file per key.

    Writes go to a temp file in the same directory and are renamed over
    the target, so a crash mid-write never leaves a truncated value.
    """

    def __init__(self, directory: Path | str = "saves"):
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        if not _SAFE_KEY.match(key):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self.directory / f"{key}.json"

    def get(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        path = self._path(key)
        fd, temp_path = tempfile.mkstemp(
            dir=self.directory,
            prefix=f".{key}_",
            suffix=".tmp",
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(value)
            Path(temp_path).replace(path)
        except Exception:
            try:
                os.unlink(temp_path)
            except OSError:
                pass
            raise
        logger.debug("Wrote %d bytes to %s", len(value), path)

    def remove(self, key: str) -> None:
        path = self._path(key)
        if path.exists():
            path.unlink()
