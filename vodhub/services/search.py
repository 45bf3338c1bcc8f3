"""Search service for aggregating and curating listings from VOD sources."""

import asyncio
import logging
from typing import List, Optional

from pydantic import BaseModel

from vodhub.context import AppContext
from vodhub.models.media import Category, MediaItem
from vodhub.providers import SourceRegistry
from vodhub.providers.client import VodClient
from vodhub.services.gemini import RECOMMEND_LIMIT

logger = logging.getLogger(__name__)


class DiscoverResult(BaseModel):
    """First page of a source together with recommended picks."""

    items: List[MediaItem]
    picks: List[MediaItem] = []


def dedupe_by_title_year(items: List[MediaItem]) -> List[MediaItem]:
    """Keep the first item for every (title, year) pair."""
    seen = set()
    unique = []
    for item in items:
        key = (item.title, item.year)
        if key in seen:
            continue
        seen.add(key)
        unique.append(item)
    return unique


async def search_all(
    client: VodClient,
    registry: SourceRegistry,
    keyword: str,
    source_count: int = 3,
) -> List[MediaItem]:
    """Search ``keyword`` on the first ``source_count`` sources concurrently.

    Results are concatenated in registry order, then deduplicated.
    """
    sources = registry.all()[:source_count]

    async def fetch_from_source(source):
        try:
            return await client.fetch_listings(source.key, 1, keyword)
        except Exception as e:
            logger.error(f"Error searching {source.name}: {e}", exc_info=e)
            return []

    source_results = await asyncio.gather(*[fetch_from_source(s) for s in sources])

    results: List[MediaItem] = []
    for result_list in source_results:
        results.extend(result_list)

    return dedupe_by_title_year(results)


def rerank_context(keyword: Optional[str], category: Category) -> Optional[str]:
    """Context string for reranking a page, None when no rerank applies."""
    if keyword:
        return keyword
    if category != Category.ALL:
        return f"热门{category.value}影视"
    return None


async def browse(
    ctx: AppContext,
    source_key: str,
    category: Category = Category.ALL,
    keyword: Optional[str] = None,
    page: int = 1,
) -> List[MediaItem]:
    """Fetch one page and rerank the first page of a filtered view."""
    results = await ctx.client.fetch_listings(source_key, page, keyword, category)

    context = rerank_context(keyword, category)
    if results and page == 1 and context:
        results = await ctx.curator.rerank(results, context)
    return results


async def recommend_picks(
    ctx: AppContext,
    source_key: str,
    category: Category = Category.ALL,
) -> List[MediaItem]:
    """Recommendations drawn from the first page of a source."""
    items = await browse(ctx, source_key, category)
    if not items:
        return []
    return await ctx.curator.recommend(items, ctx.library.favorites())


async def discover(
    ctx: AppContext,
    source_key: str,
    category: Category = Category.ALL,
) -> DiscoverResult:
    """Load the first page of a source and pick recommendations from it.

    Picks get at most ``picks_timeout`` seconds; after that the first four
    items stand in so the listing is never held up.
    """
    items = await browse(ctx, source_key, category)
    if not items:
        return DiscoverResult(items=[])

    timeout = ctx.settings.picks_timeout
    try:
        picks = await asyncio.wait_for(
            ctx.curator.recommend(items, ctx.library.favorites()), timeout=timeout
        )
    except asyncio.TimeoutError:
        logger.warning(f"Recommendations took longer than {timeout}s, using first items")
        picks = items[:RECOMMEND_LIMIT]
    return DiscoverResult(items=items, picks=picks)
