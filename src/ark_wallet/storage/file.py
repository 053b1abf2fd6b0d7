"""JSON-file key-value store.

All keys live in a single JSON object on disk. Every write rewrites the
whole file through a temporary sibling and ``os.replace`` so a crash never
leaves a half-written file behind.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

logger = logging.getLogger(__name__)


class FileStore:
    """Key-value store persisted as one JSON object file."""

    def __init__(self, path: str | Path) -> None:
        """Initialize the file store.

        Args:
            path: Location of the JSON file. Parent directories are created on write.
        """
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def get(self, key: str) -> str | None:
        value = self._read().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def delete(self, key: str) -> None:
        data = self._read()
        if data.pop(key, None) is not None:
            self._write(data)

    def close(self) -> None:
        """Nothing to release; every write is already flushed."""

    def _read(self) -> dict[str, object]:
        """Load the file, treating a missing or unreadable file as empty."""
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            logger.warning("Storage file %s is unreadable, treating as empty", self._path)
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: dict[str, object]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self._path.parent, prefix=f".{self._path.name}.")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(data, fh, indent=2, sort_keys=True)
            os.replace(tmp_name, self._path)
        except OSError:
            Path(tmp_name).unlink(missing_ok=True)
            raise
