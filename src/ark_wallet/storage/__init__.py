"""Durable key-value string storage."""

from ark_wallet.storage.client import KeyValueStore, open_store
from ark_wallet.storage.file import FileStore
from ark_wallet.storage.memory import MemoryStore
from ark_wallet.storage.sqlite import SQLiteStore

__all__ = ["FileStore", "KeyValueStore", "MemoryStore", "SQLiteStore", "open_store"]
