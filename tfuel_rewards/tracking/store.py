"""
Key-value persistence for client-side tracking state.

- MemoryStore: process-local dict with change listeners.
- SqlStore: SQLAlchemy-backed (SQLite file by default). Every read goes to
  the database, so writes from other processes are always observed.

Values are strings; get_json/set_json wrap JSON encoding. Listeners receive
the changed key after set/delete through this store instance.
"""

from __future__ import annotations

import json
import time
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Callable, Iterator

from sqlalchemy import Column, Integer, String, Text, create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from tfuel_rewards.rewards_logging import get_logger

logger = get_logger(__name__)

Listener = Callable[[str], None]


class KeyValueStore(ABC):
    def __init__(self) -> None:
        self._listeners: list[Listener] = []

    @abstractmethod
    def get(self, key: str) -> str | None: ...

    @abstractmethod
    def _write(self, key: str, value: str) -> None: ...

    @abstractmethod
    def _remove(self, key: str) -> None: ...

    def set(self, key: str, value: str) -> None:
        self._write(key, value)
        self._notify(key)

    def delete(self, key: str) -> None:
        self._remove(key)
        self._notify(key)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, key: str) -> None:
        for listener in list(self._listeners):
            listener(key)

    def get_json(self, key: str) -> Any | None:
        """Decoded JSON value, or None when missing or corrupt."""
        raw = self.get(key)
        if not raw:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning("store_value_corrupt", key=key)
            return None

    def set_json(self, key: str, value: Any) -> None:
        self.set(key, json.dumps(value, separators=(",", ":")))


class MemoryStore(KeyValueStore):
    def __init__(self, initial: dict[str, str] | None = None) -> None:
        super().__init__()
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def _write(self, key: str, value: str) -> None:
        self._data[key] = value

    def _remove(self, key: str) -> None:
        self._data.pop(key, None)


# -----------------------------------------------------------------------------
# SQLAlchemy store
# -----------------------------------------------------------------------------

Base = declarative_base()


class KvEntry(Base):
    """One persisted key (e.g. rewardsTracking.v1) with its JSON text value."""

    __tablename__ = "kv_entries"

    key = Column(String(128), primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(Integer, nullable=False)  # Unix seconds


def sqlite_url(path: str) -> str:
    return f"sqlite:///{path}"


class SqlStore(KeyValueStore):
    """Durable store over any SQLAlchemy URL; creates its table on first use."""

    def __init__(self, url: str) -> None:
        super().__init__()
        connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
        self.engine = create_engine(url, connect_args=connect_args, pool_pre_ping=True)
        self._session_factory = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)
        Base.metadata.create_all(bind=self.engine)
        logger.info("tracking_store_ready", url=url.split("?")[0].split("//")[-1])

    @contextmanager
    def _session_scope(self) -> Iterator[Session]:
        """Commits on success, rolls back on error."""
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def get(self, key: str) -> str | None:
        with self._session_scope() as session:
            row = session.get(KvEntry, key)
            return row.value if row else None

    def _write(self, key: str, value: str) -> None:
        with self._session_scope() as session:
            row = session.get(KvEntry, key)
            if row is None:
                session.add(KvEntry(key=key, value=value, updated_at=int(time.time())))
            else:
                row.value = value
                row.updated_at = int(time.time())

    def _remove(self, key: str) -> None:
        with self._session_scope() as session:
            row = session.get(KvEntry, key)
            if row is not None:
                session.delete(row)

    def dispose(self) -> None:
        self.engine.dispose()
