"""Fetch client for VOD source APIs with a TTL page cache."""

import asyncio
import logging
import math
import time
from typing import Any, Callable, List, Optional

import niquests
from cachetools import TTLCache

from vodhub.models.media import Category, MediaItem
from vodhub.providers import SourceRegistry
from vodhub.providers.normalizer import normalize_record

logger = logging.getLogger(__name__)

CacheKey = tuple[str, int, str, str]


class ListingCache:
    """Fetched pages keyed by (source, page, keyword, category).

    Entries are only usable while fresh. There is no size bound and no purge
    API; expiry is the only way an entry goes away.
    """

    def __init__(self, ttl: float = 300, timer: Callable[[], float] = time.monotonic):
        self._cache: TTLCache = TTLCache(maxsize=math.inf, ttl=ttl, timer=timer)

    @staticmethod
    def key(
        source_key: str,
        page: int,
        keyword: Optional[str] = None,
        category: Optional[Category] = None,
    ) -> CacheKey:
        if category is None or category == Category.ALL:
            category_part = "all"
        else:
            category_part = category.value
        return (source_key, page, keyword or "", category_part)

    def get(self, key: CacheKey) -> Optional[List[MediaItem]]:
        """Fresh copies of the cached items, None on a miss."""
        snapshot = self._cache.get(key)
        if snapshot is None:
            return None
        return [m.model_copy(deep=True) for m in snapshot]

    def set(self, key: CacheKey, items: List[MediaItem]) -> None:
        self._cache[key] = tuple(m.model_copy(deep=True) for m in items)

    def __len__(self) -> int:
        return len(self._cache)


class VodClient:
    """Client for the ``?ac=detail`` listing API shared by all VOD sources.

    ``fetch_listings`` never raises: any failure is logged and yields an
    empty list.
    """

    def __init__(
        self,
        registry: SourceRegistry,
        cache: ListingCache,
        timeout: float = 8,
        proxy: str | None = None,
        session: niquests.AsyncSession | None = None,
    ):
        self.registry = registry
        self.cache = cache
        self.timeout = timeout
        self.session = session or niquests.AsyncSession()
        if proxy:
            self.session.proxies = {"http": proxy, "https": proxy}

    async def aclose(self) -> None:
        """Properly close the internal HTTP session."""
        if self.session:
            await self.session.close()

    @staticmethod
    def build_params(
        page: int,
        keyword: Optional[str] = None,
        category: Optional[Category] = None,
    ) -> dict[str, str]:
        params = {"ac": "detail", "pg": str(page)}
        if keyword:
            params["wd"] = keyword
        if category is not None and category.code is not None:
            params["t"] = str(category.code)
        return params

    async def _get_json(self, url: str, params: dict[str, str]) -> Any:
        response = await self.session.get(url, params=params, timeout=self.timeout)
        response.raise_for_status()
        return response.json()

    async def fetch_listings(
        self,
        source_key: str,
        page: int = 1,
        keyword: Optional[str] = None,
        category: Optional[Category] = None,
    ) -> List[MediaItem]:
        """Fetch one page of listings from a source.

        Unknown source keys fall back to the first registered source. Items
        are tagged with the key of the source that actually answered.
        """
        cache_key = ListingCache.key(source_key, page, keyword, category)
        cached = self.cache.get(cache_key)
        if cached is not None:
            logger.debug(f"Cache hit for {cache_key}")
            return cached

        source = self.registry.resolve(source_key)
        params = self.build_params(page, keyword, category)

        try:
            data = await asyncio.wait_for(
                self._get_json(source.base_url, params), timeout=self.timeout
            )
        except asyncio.TimeoutError:
            logger.error(f"Timeout fetching from {source.name} after {self.timeout}s")
            return []
        except Exception as e:
            logger.error(f"Error fetching from {source.name}: {e}")
            return []

        records = data.get("list") if isinstance(data, dict) else None
        if not isinstance(records, list):
            logger.error(f"Unexpected response from {source.name}: no listing field")
            return []

        results = []
        for record in records:
            if not isinstance(record, dict):
                logger.warning(f"Skipping non-object record from {source.name}")
                continue
            results.append(normalize_record(record, source.key))

        self.cache.set(cache_key, results)
        return results
