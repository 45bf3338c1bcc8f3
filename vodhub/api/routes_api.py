"""JSON API routes."""

from typing import Annotated, List
from urllib.parse import urlparse

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response
from pydantic import BaseModel

from vodhub.context import AppContext
from vodhub.models.media import Category, MediaItem, SourceConfig, WatchRecord
from vodhub.services.search import (
    DiscoverResult,
    browse,
    discover,
    recommend_picks,
    search_all,
)

router = APIRouter()


def get_context(request: Request) -> AppContext:
    return request.app.state.context


Context = Annotated[AppContext, Depends(get_context)]


@router.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "ok", "service": "vodhub"}


# --- Sources ---


class SourceCreate(BaseModel):
    """Request body for adding a custom source."""

    name: str
    url: str


@router.get("/sources", response_model=List[SourceConfig])
async def list_sources(ctx: Context):
    """List built-in sources followed by custom ones."""
    return ctx.registry.all()


@router.post("/sources", response_model=SourceConfig, status_code=201)
async def add_source(request: SourceCreate, ctx: Context):
    """Add a custom source."""
    parsed = urlparse(request.url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise HTTPException(
            status_code=400, detail="Invalid URL. Only http/https are allowed."
        )
    return ctx.registry.add(request.name, request.url)


@router.delete("/sources/{key}", status_code=204)
async def delete_source(key: str, ctx: Context):
    """Delete a custom source. Built-in sources cannot be deleted."""
    if ctx.registry.is_builtin(key):
        raise HTTPException(status_code=403, detail="Built-in sources cannot be deleted")
    if not ctx.registry.remove(key):
        raise HTTPException(status_code=404, detail="Source not found")
    return Response(status_code=204)


@router.get("/categories")
async def list_categories():
    """List browse categories with their provider type ids."""
    return {"categories": [{"name": c.value, "code": c.code} for c in Category]}


# --- Listings ---


@router.get("/listings", response_model=List[MediaItem])
async def api_listings(
    ctx: Context,
    source: str = Query("", description="Source key"),
    page: int = Query(1, ge=1),
    category: Category = Query(Category.ALL),
    q: str | None = Query(None, description="Keyword"),
):
    """Fetch one page from a source."""
    return await browse(ctx, source, category, q, page)


@router.get("/discover", response_model=DiscoverResult)
async def api_discover(
    ctx: Context,
    source: str = Query("", description="Source key"),
    category: Category = Query(Category.ALL),
):
    """First page of a source plus recommended picks."""
    result = await discover(ctx, source, category)
    if not result.items:
        raise HTTPException(status_code=503, detail="Nothing could be loaded")
    return result


@router.get("/picks", response_model=List[MediaItem])
async def api_picks(
    ctx: Context,
    source: str = Query("", description="Source key"),
    category: Category = Query(Category.ALL),
):
    """Recommendations for the first page of a source, without a time bound."""
    return await recommend_picks(ctx, source, category)


@router.get("/search", response_model=List[MediaItem])
async def api_search(ctx: Context, q: str = Query(..., min_length=1)):
    """Search the first sources at once and remember the term."""
    ctx.library.save_search(q)
    return await search_all(
        ctx.client, ctx.registry, q, ctx.settings.aggregate_sources
    )


@router.post("/insight")
async def api_insight(item: MediaItem, ctx: Context):
    """Short reason to watch an item."""
    return {"insight": await ctx.curator.insight(item)}


# --- Library ---


@router.get("/favorites", response_model=List[MediaItem])
async def list_favorites(ctx: Context):
    return ctx.library.favorites()


@router.post("/favorites")
async def toggle_favorite(item: MediaItem, ctx: Context):
    """Toggle an item in the favorites."""
    return {"favorite": ctx.library.toggle_favorite(item)}


@router.delete("/favorites", status_code=204)
async def clear_favorites(ctx: Context):
    ctx.library.clear_favorites()
    return Response(status_code=204)


@router.get("/history", response_model=List[WatchRecord])
async def list_history(ctx: Context):
    return ctx.library.watch_history()


@router.post("/history", response_model=WatchRecord)
async def record_watch(item: MediaItem, ctx: Context):
    return ctx.library.record_watch(item)


@router.delete("/history", status_code=204)
async def clear_history(ctx: Context):
    ctx.library.clear_watch_history()
    return Response(status_code=204)


@router.get("/search-history", response_model=List[str])
async def list_search_history(ctx: Context):
    return ctx.library.search_history()


@router.delete("/search-history", status_code=204)
async def clear_search_history(ctx: Context):
    ctx.library.clear_search_history()
    return Response(status_code=204)


@router.delete("/search-history/{term}", response_model=List[str])
async def remove_search_term(term: str, ctx: Context):
    return ctx.library.remove_search(term)
