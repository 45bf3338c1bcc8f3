"""Composition root: the objects one running VodHub instance shares."""

from dataclasses import dataclass

from vodhub.core.config import Settings
from vodhub.core.storage import KeyValueStore, create_store
from vodhub.providers import SourceRegistry
from vodhub.providers.client import ListingCache, VodClient
from vodhub.services.gemini import Curator, GeminiClient
from vodhub.services.library import Library


@dataclass
class AppContext:
    settings: Settings
    store: KeyValueStore
    registry: SourceRegistry
    cache: ListingCache
    client: VodClient
    curator: Curator
    library: Library

    async def aclose(self) -> None:
        await self.client.aclose()
        await self.curator.client.aclose()


def build_context(settings: Settings, store: KeyValueStore | None = None) -> AppContext:
    """Wire every service from ``settings``."""
    if store is None:
        store = create_store(settings.database_url, echo=settings.debug)
    registry = SourceRegistry(store)
    cache = ListingCache(ttl=settings.cache_ttl)
    client = VodClient(
        registry, cache, timeout=settings.fetch_timeout, proxy=settings.proxy
    )
    api_key = settings.gemini_api_key.get_secret_value() if settings.gemini_api_key else None
    gemini = GeminiClient(
        api_key,
        model=settings.gemini_model,
        base_url=settings.gemini_base_url,
        timeout=settings.gemini_timeout,
    )
    library = Library(
        store,
        watch_history_limit=settings.watch_history_limit,
        search_history_limit=settings.search_history_limit,
    )
    return AppContext(
        settings=settings,
        store=store,
        registry=registry,
        cache=cache,
        client=client,
        curator=Curator(gemini),
        library=library,
    )
