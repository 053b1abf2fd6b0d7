"""Wallet registry: ordered, persisted list of locally known wallets.

The registry is loaded once at startup and rewritten in full on every
mutation. Storage is best-effort: a failed write keeps the in-memory list
intact and is reported through ``last_warning`` instead of raising.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy.exc import SQLAlchemyError

from ark_wallet.errors.wallet_errors import DuplicateWalletError, PersistenceWarning

if TYPE_CHECKING:
    from collections.abc import Iterator

    from ark_wallet.storage.client import KeyValueStore

logger = logging.getLogger(__name__)

DEFAULT_REGISTRY_KEY = "ark_wallets"

_STORAGE_ERRORS = (OSError, SQLAlchemyError)


@dataclass(frozen=True)
class WalletRecord:
    """A wallet known to this client.

    Attributes:
        id: Identifier assigned by the wallet service.
        created_at: When the wallet was created (UTC).
    """

    id: str
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def to_dict(self) -> dict[str, str]:
        return {"id": self.id, "createdAt": self.created_at.isoformat()}

    @classmethod
    def from_dict(cls, data: Any) -> WalletRecord:
        """Parse a stored entry.

        Raises:
            ValueError: If the entry has no usable id or timestamp.
        """
        if not isinstance(data, dict):
            msg = "wallet entry is not an object"
            raise ValueError(msg)
        wallet_id = data.get("id")
        if not isinstance(wallet_id, str) or not wallet_id:
            msg = "wallet entry has no id"
            raise ValueError(msg)
        raw_created = data.get("createdAt")
        if raw_created is None:
            return cls(id=wallet_id)
        if not isinstance(raw_created, str):
            msg = f"wallet {wallet_id} has an invalid createdAt"
            raise ValueError(msg)
        # JavaScript's toISOString() ends in "Z"
        created = datetime.fromisoformat(raw_created.replace("Z", "+00:00"))
        if created.tzinfo is None:
            created = created.replace(tzinfo=UTC)
        return cls(id=wallet_id, created_at=created)


class WalletRegistry:
    """Insertion-ordered collection of ``WalletRecord`` with unique ids.

    Usage::

        registry = WalletRegistry(store)
        registry.load()
        registry.append(WalletRecord(id="w1"))
        if registry.last_warning:
            ...  # persisted in memory only
    """

    def __init__(self, store: KeyValueStore, *, key: str = DEFAULT_REGISTRY_KEY) -> None:
        """Initialize the registry.

        Args:
            store: Durable key-value storage handle.
            key: Storage key holding the serialized list.
        """
        self._store = store
        self._key = key
        self._records: list[WalletRecord] = []
        self._last_warning: PersistenceWarning | None = None

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def records(self) -> tuple[WalletRecord, ...]:
        """The known wallets in display order."""
        return tuple(self._records)

    @property
    def last_warning(self) -> PersistenceWarning | None:
        """Persistence failure from the most recent mutation, if any."""
        return self._last_warning

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[WalletRecord]:
        return iter(tuple(self._records))

    def __contains__(self, wallet_id: object) -> bool:
        return any(r.id == wallet_id for r in self._records)

    def get(self, wallet_id: str) -> WalletRecord | None:
        for record in self._records:
            if record.id == wallet_id:
                return record
        return None

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def load(self) -> tuple[WalletRecord, ...]:
        """Read the registry from storage.

        Absent, unreadable or unparsable data yields an empty registry.
        """
        self._last_warning = None
        try:
            raw = self._store.get(self._key)
        except _STORAGE_ERRORS as exc:
            logger.warning("Could not read wallet registry from storage", exc_info=True)
            self._last_warning = PersistenceWarning(f"wallet registry could not be read: {exc}")
            raw = None
        self._records = self._parse(raw) if raw else []
        logger.info("Loaded %d wallet(s) from registry", len(self._records))
        return self.records

    def append(self, record: WalletRecord) -> tuple[WalletRecord, ...]:
        """Add a wallet at the end and persist the full list.

        Raises:
            DuplicateWalletError: If a wallet with the same id is registered.
        """
        if record.id in self:
            raise DuplicateWalletError(record.id)
        self._records.append(record)
        logger.info("Registered wallet %s", record.id)
        self._persist()
        return self.records

    def remove(self, wallet_id: str) -> tuple[WalletRecord, ...]:
        """Drop a wallet by id and persist; unknown ids are a no-op."""
        self._last_warning = None
        remaining = [r for r in self._records if r.id != wallet_id]
        if len(remaining) == len(self._records):
            return self.records
        self._records = remaining
        logger.info("Removed wallet %s", wallet_id)
        self._persist()
        return self.records

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _parse(self, raw: str) -> list[WalletRecord]:
        try:
            entries = json.loads(raw)
            if not isinstance(entries, list):
                msg = "registry payload is not a list"
                raise ValueError(msg)
            parsed = [WalletRecord.from_dict(entry) for entry in entries]
        except ValueError:
            logger.warning("Stored wallet registry is corrupt, starting empty", exc_info=True)
            return []

        records: list[WalletRecord] = []
        seen: set[str] = set()
        for record in parsed:
            if record.id in seen:
                logger.warning("Dropping duplicate stored wallet %s", record.id)
                continue
            seen.add(record.id)
            records.append(record)
        return records

    def _persist(self) -> None:
        self._last_warning = None
        payload = json.dumps([r.to_dict() for r in self._records])
        try:
            self._store.set(self._key, payload)
        except _STORAGE_ERRORS as exc:
            warning = PersistenceWarning(f"wallet registry kept in memory only: {exc}")
            logger.warning("%s", warning.message)
            self._last_warning = warning
