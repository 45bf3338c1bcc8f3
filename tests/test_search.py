import asyncio
import time
from unittest.mock import AsyncMock, patch

import pytest

from vodhub.models.media import Category
from vodhub.services.search import (
    browse,
    dedupe_by_title_year,
    discover,
    recommend_picks,
    rerank_context,
    search_all,
)


@pytest.mark.asyncio
async def test_search_all_dedupes_by_title_and_year_first_source_wins(ctx, make_item):
    by_source = {
        "lzi": [make_item(id="1", title="Heat", year="1995", source="lzi")],
        "bfzy": [
            make_item(id="99", title="Heat", year="1995", source="bfzy"),
            make_item(id="100", title="Heat", year="2013", source="bfzy"),
        ],
        "ikun": [make_item(id="5", title="Ronin", year="1998", source="ikun")],
    }

    async def fake_fetch(source_key, page=1, keyword=None, category=None):
        assert page == 1 and keyword == "heat" and category is None
        return by_source[source_key]

    with patch.object(ctx.client, "fetch_listings", side_effect=fake_fetch) as mock_fetch:
        results = await search_all(ctx.client, ctx.registry, "heat", 3)

    assert mock_fetch.await_count == 3
    assert [(m.source, m.id) for m in results] == [
        ("lzi", "1"),
        ("bfzy", "100"),
        ("ikun", "5"),
    ]


@pytest.mark.asyncio
async def test_search_all_queries_only_first_sources(ctx):
    with patch.object(ctx.client, "fetch_listings", new_callable=AsyncMock) as mock_fetch:
        mock_fetch.return_value = []
        await search_all(ctx.client, ctx.registry, "x", 2)

    assert [c.args[0] for c in mock_fetch.call_args_list] == ["lzi", "bfzy"]


@pytest.mark.asyncio
async def test_search_all_keeps_registry_order_and_tolerates_failures(ctx, make_item):
    async def fake_fetch(source_key, page=1, keyword=None, category=None):
        if source_key == "lzi":
            raise RuntimeError("boom")
        return [make_item(id=source_key, title=f"T-{source_key}", source=source_key)]

    with patch.object(ctx.client, "fetch_listings", side_effect=fake_fetch):
        results = await search_all(ctx.client, ctx.registry, "x", 3)

    assert [m.source for m in results] == ["bfzy", "ikun"]


def test_dedupe_is_nominal(make_item):
    items = [
        make_item(id="1", title="Heat", year="1995"),
        make_item(id="2", title="Heat ", year="1995"),
        make_item(id="3", title="Heat", year="1995"),
    ]
    assert [m.id for m in dedupe_by_title_year(items)] == ["1", "2"]


def test_rerank_context():
    assert rerank_context("三体", Category.ALL) == "三体"
    assert rerank_context(None, Category.COMEDY) == "热门喜剧影视"
    assert rerank_context("", Category.ALL) is None


@pytest.mark.asyncio
async def test_browse_reranks_first_page_of_filtered_view(ctx, make_item):
    items = [make_item(id="1"), make_item(id="2")]
    with patch.object(
        ctx.client, "fetch_listings", new_callable=AsyncMock, return_value=items
    ), patch.object(
        ctx.curator, "rerank", new_callable=AsyncMock, return_value=items[::-1]
    ) as mock_rerank:
        results = await browse(ctx, "lzi", Category.ACTION)

    mock_rerank.assert_awaited_once_with(items, "热门动作影视")
    assert [m.id for m in results] == ["2", "1"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "category, keyword, page",
    [(Category.ALL, None, 1), (Category.ACTION, None, 2), (Category.ALL, "x", 3)],
)
async def test_browse_skips_rerank(ctx, make_item, category, keyword, page):
    items = [make_item()]
    with patch.object(
        ctx.client, "fetch_listings", new_callable=AsyncMock, return_value=items
    ) as mock_fetch, patch.object(ctx.curator, "rerank", new_callable=AsyncMock) as mock_rerank:
        results = await browse(ctx, "lzi", category, keyword, page)

    mock_fetch.assert_awaited_once_with("lzi", page, keyword, category)
    mock_rerank.assert_not_awaited()
    assert results == items


@pytest.mark.asyncio
async def test_discover_recommends_from_listing_and_favorites(ctx, make_item):
    items = [make_item(id=str(i)) for i in range(6)]
    favorite = make_item(id="fav", title="Fav")
    ctx.library.toggle_favorite(favorite)

    with patch.object(
        ctx.client, "fetch_listings", new_callable=AsyncMock, return_value=items
    ), patch.object(
        ctx.curator, "recommend", new_callable=AsyncMock, return_value=items[:2]
    ) as mock_recommend:
        result = await discover(ctx, "lzi")

    assert result.items == items
    assert result.picks == items[:2]
    pool, favorites = mock_recommend.await_args.args
    assert pool == items
    assert [f.id for f in favorites] == ["fav"]


@pytest.mark.asyncio
async def test_discover_with_nothing_loaded(ctx):
    with patch.object(
        ctx.client, "fetch_listings", new_callable=AsyncMock, return_value=[]
    ), patch.object(ctx.curator, "recommend", new_callable=AsyncMock) as mock_recommend:
        result = await discover(ctx, "lzi")

    assert result.items == []
    assert result.picks == []
    mock_recommend.assert_not_awaited()


@pytest.mark.asyncio
async def test_discover_does_not_wait_for_slow_recommendations(ctx, make_item):
    items = [make_item(id=str(i)) for i in range(6)]
    ctx.settings.picks_timeout = 0.05

    async def slow_recommend(pool, favorites):
        await asyncio.sleep(0.5)
        return pool[-1:]

    with patch.object(
        ctx.client, "fetch_listings", new_callable=AsyncMock, return_value=items
    ), patch.object(ctx.curator, "recommend", side_effect=slow_recommend):
        started = time.monotonic()
        result = await discover(ctx, "lzi")
        elapsed = time.monotonic() - started

    assert elapsed < 0.4
    assert result.items == items
    assert result.picks == items[:4]


@pytest.mark.asyncio
async def test_recommend_picks_uses_listing_and_favorites(ctx, make_item):
    items = [make_item(id=str(i)) for i in range(3)]
    with patch.object(
        ctx.client, "fetch_listings", new_callable=AsyncMock, return_value=items
    ), patch.object(
        ctx.curator, "recommend", new_callable=AsyncMock, return_value=items[2:]
    ) as mock_recommend:
        picks = await recommend_picks(ctx, "lzi")

    assert picks == items[2:]
    mock_recommend.assert_awaited_once_with(items, [])


@pytest.mark.asyncio
async def test_recommend_picks_with_empty_listing(ctx):
    with patch.object(
        ctx.client, "fetch_listings", new_callable=AsyncMock, return_value=[]
    ), patch.object(ctx.curator, "recommend", new_callable=AsyncMock) as mock_recommend:
        assert await recommend_picks(ctx, "lzi") == []
    mock_recommend.assert_not_awaited()
