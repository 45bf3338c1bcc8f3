"""User library: favorites, watch history and recent searches."""

import logging
import time
from typing import List, Optional

from pydantic import TypeAdapter, ValidationError

from vodhub.core.storage import (
    FAVORITES_KEY,
    SEARCH_HISTORY_KEY,
    WATCH_HISTORY_KEY,
    KeyValueStore,
)
from vodhub.models.media import MediaItem, WatchRecord

logger = logging.getLogger(__name__)

_favorites_adapter = TypeAdapter(List[MediaItem])
_history_adapter = TypeAdapter(List[WatchRecord])


class Library:
    """Per-user lists persisted in the key-value store."""

    def __init__(
        self,
        store: KeyValueStore,
        watch_history_limit: int = 50,
        search_history_limit: int = 10,
    ):
        self.store = store
        self.watch_history_limit = watch_history_limit
        self.search_history_limit = search_history_limit

    def _load(self, key: str, adapter: TypeAdapter) -> list:
        raw = self.store.get_json(key, [])
        try:
            return adapter.validate_python(raw)
        except ValidationError as e:
            logger.warning(f"Discarding malformed '{key}': {e}")
            return []

    # --- Favorites ---

    def favorites(self) -> List[MediaItem]:
        return self._load(FAVORITES_KEY, _favorites_adapter)

    def is_favorite(self, item: MediaItem) -> bool:
        return any(f.identity == item.identity for f in self.favorites())

    def toggle_favorite(self, item: MediaItem) -> bool:
        """Add ``item`` to favorites, or remove it if already there.

        Returns True when the item is a favorite afterwards.
        """
        current = self.favorites()
        remaining = [f for f in current if f.identity != item.identity]
        added = len(remaining) == len(current)
        if added:
            remaining.append(MediaItem.model_validate(item.model_dump()))
        self.store.set_json(
            FAVORITES_KEY, _favorites_adapter.dump_python(remaining, mode="json")
        )
        return added

    def clear_favorites(self) -> None:
        self.store.delete(FAVORITES_KEY)

    # --- Watch history ---

    def watch_history(self) -> List[WatchRecord]:
        return self._load(WATCH_HISTORY_KEY, _history_adapter)

    def record_watch(self, item: MediaItem, now: Optional[int] = None) -> WatchRecord:
        """Put ``item`` at the front of the watch history."""
        watched_at = now if now is not None else int(time.time() * 1000)
        fields = item.model_dump()
        fields.pop("watched_at", None)
        record = WatchRecord(**fields, watched_at=watched_at)

        history = [r for r in self.watch_history() if r.identity != item.identity]
        history = [record] + history
        history = history[: self.watch_history_limit]
        self.store.set_json(
            WATCH_HISTORY_KEY, _history_adapter.dump_python(history, mode="json")
        )
        return record

    def clear_watch_history(self) -> None:
        self.store.delete(WATCH_HISTORY_KEY)

    # --- Search history ---

    def search_history(self) -> List[str]:
        return [t for t in self.store.get_json(SEARCH_HISTORY_KEY, []) if isinstance(t, str)]

    def save_search(self, term: str) -> List[str]:
        """Move ``term`` to the front of the recent searches."""
        if not term.strip():
            return self.search_history()
        updated = [term] + [t for t in self.search_history() if t != term]
        updated = updated[: self.search_history_limit]
        self.store.set_json(SEARCH_HISTORY_KEY, updated)
        return updated

    def remove_search(self, term: str) -> List[str]:
        updated = [t for t in self.search_history() if t != term]
        self.store.set_json(SEARCH_HISTORY_KEY, updated)
        return updated

    def clear_search_history(self) -> None:
        self.store.delete(SEARCH_HISTORY_KEY)
