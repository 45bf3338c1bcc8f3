"""Source registry: built-in sources plus user-added ones."""

import logging
import time
from typing import List

from pydantic import ValidationError

from vodhub.core.storage import CUSTOM_SOURCES_KEY, KeyValueStore
from vodhub.models.media import SourceConfig
from vodhub.providers.builtin import DEFAULT_SOURCES

logger = logging.getLogger(__name__)


class SourceRegistry:
    """Registry of VOD sources.

    Built-in sources come first and cannot be removed. Custom sources are
    persisted under ``custom_sources`` and are the only deletable entries.
    """

    def __init__(self, store: KeyValueStore, builtin=DEFAULT_SOURCES):
        self.store = store
        self._builtin = list(builtin)

    def _load_custom(self) -> List[SourceConfig]:
        custom = []
        taken = {s.key for s in self._builtin}
        for raw in self.store.get_json(CUSTOM_SOURCES_KEY, []):
            try:
                source = SourceConfig.model_validate(raw)
            except ValidationError as e:
                logger.warning(f"Skipping malformed custom source {raw!r}: {e}")
                continue
            if source.key in taken:
                logger.warning(f"Skipping custom source with duplicate key '{source.key}'")
                continue
            taken.add(source.key)
            source.is_custom = True
            custom.append(source)
        return custom

    def _save_custom(self, custom: List[SourceConfig]) -> None:
        self.store.set_json(CUSTOM_SOURCES_KEY, [s.model_dump() for s in custom])

    def all(self) -> List[SourceConfig]:
        """Get all sources, built-ins first."""
        return [s.model_copy() for s in self._builtin] + self._load_custom()

    def get(self, key: str) -> SourceConfig | None:
        """Get a source by key."""
        for source in self.all():
            if source.key == key:
                return source
        return None

    def resolve(self, key: str) -> SourceConfig:
        """Get a source by key, falling back to the first registered source."""
        sources = self.all()
        for source in sources:
            if source.key == key:
                return source
        logger.debug(f"Unknown source '{key}', using '{sources[0].key}'")
        return sources[0]

    def is_builtin(self, key: str) -> bool:
        return any(s.key == key for s in self._builtin)

    def add(self, name: str, url: str) -> SourceConfig:
        """Add a custom source and persist it.

        Names and URLs are not checked for duplicates.
        """
        custom = self._load_custom()
        taken = {s.key for s in self.all()}
        stamp = int(time.time() * 1000)
        key = f"custom_{stamp}"
        while key in taken:
            stamp += 1
            key = f"custom_{stamp}"

        source = SourceConfig(key=key, name=name, base_url=url, is_custom=True)
        self._save_custom(custom + [source])
        logger.info(f"Added custom source {source.key} ({source.name})")
        return source

    def remove(self, key: str) -> bool:
        """Remove a custom source.

        Returns False and leaves the registry untouched for built-in or
        unknown keys.
        """
        if self.is_builtin(key):
            return False
        custom = self._load_custom()
        remaining = [s for s in custom if s.key != key]
        if len(remaining) == len(custom):
            return False
        self._save_custom(remaining)
        logger.info(f"Removed custom source {key}")
        return True
