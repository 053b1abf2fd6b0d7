"""SQLite key-value store built on a synchronous SQLAlchemy engine."""

from __future__ import annotations

from sqlalchemy import String, Text, create_engine, select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column


class _Base(DeclarativeBase):
    pass


class KeyValueEntry(_Base):
    """One stored string value."""

    __tablename__ = "kv_store"

    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)


class SQLiteStore:
    """Key-value store backed by a ``kv_store`` table.

    Usage::

        store = SQLiteStore("sqlite:///./ark_wallets.db")
        store.set("ark_wallets", "[]")
        store.close()
    """

    def __init__(self, dsn: str, *, echo: bool = False) -> None:
        """Initialize the store. The table is created on first use.

        Args:
            dsn: SQLAlchemy connection string.
            echo: Log emitted SQL.
        """
        self._dsn = dsn
        self._engine: Engine | None = create_engine(dsn, echo=echo)
        self._table_ready = False

    @property
    def engine(self) -> Engine:
        """Return the underlying engine.

        Raises:
            RuntimeError: If the store has been closed.
        """
        if self._engine is None:
            msg = "SQLiteStore is closed"
            raise RuntimeError(msg)
        return self._engine

    def _ready_engine(self) -> Engine:
        engine = self.engine
        if not self._table_ready:
            _Base.metadata.create_all(engine)
            self._table_ready = True
        return engine

    def get(self, key: str) -> str | None:
        with Session(self._ready_engine()) as session:
            return session.scalar(select(KeyValueEntry.value).where(KeyValueEntry.key == key))

    def set(self, key: str, value: str) -> None:
        with Session(self._ready_engine()) as session, session.begin():
            session.merge(KeyValueEntry(key=key, value=value))

    def delete(self, key: str) -> None:
        with Session(self._ready_engine()) as session, session.begin():
            entry = session.get(KeyValueEntry, key)
            if entry is not None:
                session.delete(entry)

    def close(self) -> None:
        """Dispose the engine and release all connections."""
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
