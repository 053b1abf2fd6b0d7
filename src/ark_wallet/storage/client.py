"""Key-value storage abstraction with memory, JSON-file and SQLite backends."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from ark_wallet.config.settings import StorageConfig


class KeyValueStore(Protocol):
    """Protocol for durable string storage implementations.

    Reads return None for absent keys. Writes either persist before returning
    or raise (``OSError`` / ``SQLAlchemyError``).
    """

    def get(self, key: str) -> str | None: ...
    def set(self, key: str, value: str) -> None: ...
    def delete(self, key: str) -> None: ...
    def close(self) -> None: ...


def open_store(config: StorageConfig) -> KeyValueStore:
    """Create the storage backend selected by configuration.

    Args:
        config: Storage configuration with engine type and location.

    Raises:
        ValueError: If the storage engine type is invalid.
    """
    from ark_wallet.storage.file import FileStore
    from ark_wallet.storage.memory import MemoryStore
    from ark_wallet.storage.sqlite import SQLiteStore

    engine = str(config.engine).lower()

    if engine == "memory":
        return MemoryStore()
    if engine == "file":
        return FileStore(config.path)
    if engine == "sqlite":
        return SQLiteStore(config.dsn)
    msg = f"Unsupported storage engine: {engine}"
    raise ValueError(msg)
