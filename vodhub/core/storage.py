"""Persisted key-value state for VodHub using SQLModel.

Every value is a JSON document that is read, modified and written back
whole. There are no partial updates.
"""

import json
import logging
from typing import Any

from sqlalchemy.pool import StaticPool
from sqlmodel import Field, Session, SQLModel, create_engine

logger = logging.getLogger(__name__)

CUSTOM_SOURCES_KEY = "custom_sources"
FAVORITES_KEY = "movie_favorites"
WATCH_HISTORY_KEY = "watch_history"
SEARCH_HISTORY_KEY = "search_history"


class KVEntry(SQLModel, table=True):
    """One stored JSON document."""

    __tablename__ = "kv_entry"

    key: str = Field(primary_key=True)
    value: str


class KeyValueStore:
    """Small JSON document store keyed by string."""

    def __init__(self, engine):
        self.engine = engine
        SQLModel.metadata.create_all(engine)

    def get_raw(self, key: str) -> str | None:
        with Session(self.engine) as session:
            entry = session.get(KVEntry, key)
            return entry.value if entry else None

    def get_json(self, key: str, default: Any) -> Any:
        """Decode the document stored under ``key``.

        Missing keys, undecodable values and values whose type differs from
        ``default`` all yield ``default``.
        """
        raw = self.get_raw(key)
        if raw is None:
            return default
        try:
            value = json.loads(raw)
        except ValueError as e:
            logger.warning(f"Discarding unreadable value for '{key}': {e}")
            return default
        if not isinstance(value, type(default)):
            logger.warning(
                f"Discarding value for '{key}': expected {type(default).__name__}, "
                f"got {type(value).__name__}"
            )
            return default
        return value

    def set_json(self, key: str, value: Any) -> None:
        with Session(self.engine) as session:
            session.merge(KVEntry(key=key, value=json.dumps(value, ensure_ascii=False)))
            session.commit()

    def delete(self, key: str) -> None:
        with Session(self.engine) as session:
            entry = session.get(KVEntry, key)
            if entry is not None:
                session.delete(entry)
                session.commit()


def create_store(database_url: str, echo: bool = False) -> KeyValueStore:
    """Build a store for ``database_url``.

    In-memory SQLite URLs share one connection so the data outlives a session.
    """
    connect_args = {}
    kwargs: dict[str, Any] = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False  # Needed for SQLite
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
    engine = create_engine(database_url, echo=echo, connect_args=connect_args, **kwargs)
    return KeyValueStore(engine)
