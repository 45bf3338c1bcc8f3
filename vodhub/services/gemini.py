"""Gemini-backed curation: reranking, recommendations and short insights.

Every Curator operation makes a single attempt and falls back to a
deterministic result when the generative endpoint fails.
"""

import json
import logging
import re
from typing import Any, List, Sequence

import niquests

from vodhub.models.media import MediaItem

logger = logging.getLogger(__name__)

RERANK_LIMIT = 8
RECOMMEND_LIMIT = 4

INSIGHT_EMPTY_FALLBACK = "推荐理由：剧情扣人心弦，值得一睹。"
INSIGHT_ERROR_FALLBACK = "为您精选。"

STRING_ARRAY_SCHEMA = {"type": "ARRAY", "items": {"type": "STRING"}}


class GeminiError(Exception):
    """Domain exception for generative endpoint failures."""

    def __init__(self, message: str, original_exception: Exception = None):
        super().__init__(message)
        self.original_exception = original_exception


def parse_string_array(raw: str) -> List[str]:
    """Parse a JSON array of strings out of a model response.

    Markdown fences and prose around the array are tolerated. Non-string
    scalars are stringified; nested values are dropped.
    """
    s = (raw or "").strip()
    if not s:
        raise ValueError("empty response")
    s = re.sub(r"^```(?:json)?\s*", "", s, flags=re.IGNORECASE)
    s = re.sub(r"\s*```$", "", s)
    if "[" in s and "]" in s:
        s = s[s.find("[") : s.rfind("]") + 1]
    value = json.loads(s)
    if not isinstance(value, list):
        raise ValueError("not a JSON array")
    return [
        str(v) for v in value if isinstance(v, (str, int, float)) and not isinstance(v, bool)
    ]


class GeminiClient:
    """Minimal client for the ``generateContent`` REST endpoint."""

    def __init__(
        self,
        api_key: str | None,
        model: str = "gemini-3-flash-preview",
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        timeout: float = 20,
        session: niquests.AsyncSession | None = None,
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or niquests.AsyncSession()

    async def aclose(self) -> None:
        if self.session:
            await self.session.close()

    @staticmethod
    def _extract_text(data: Any) -> str:
        try:
            parts = data["candidates"][0]["content"]["parts"]
        except (KeyError, IndexError, TypeError) as e:
            raise GeminiError("Response has no candidate text", e)
        return "".join(p.get("text", "") for p in parts if isinstance(p, dict))

    async def generate(self, prompt: str, response_schema: dict | None = None) -> str:
        """Run one completion and return the response text."""
        if not self.api_key:
            raise GeminiError("No Gemini API key configured")

        body: dict[str, Any] = {"contents": [{"parts": [{"text": prompt}]}]}
        if response_schema is not None:
            body["generationConfig"] = {
                "responseMimeType": "application/json",
                "responseSchema": response_schema,
            }

        url = f"{self.base_url}/models/{self.model}:generateContent"
        try:
            response = await self.session.post(
                url,
                json=body,
                headers={"x-goog-api-key": self.api_key},
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except Exception as e:
            raise GeminiError(f"Gemini request failed: {e}", e)

        return self._extract_text(data)

    async def generate_string_list(self, prompt: str) -> List[str]:
        text = await self.generate(prompt, response_schema=STRING_ARRAY_SCHEMA)
        try:
            return parse_string_array(text)
        except ValueError as e:
            raise GeminiError(f"Malformed structured output: {e}", e)


class Curator:
    """Rerank, recommend and describe media items via Gemini."""

    def __init__(self, client: GeminiClient):
        self.client = client

    async def rerank(self, items: Sequence[MediaItem], context: str) -> List[MediaItem]:
        """Move the titles Gemini finds most relevant to the front.

        This is a stable partition: relative order inside the picked and the
        remaining group is unchanged.
        """
        if not items:
            return []

        meta = [
            {"title": m.title, "genre": m.genre, "desc": m.description[:100]}
            for m in items
        ]
        prompt = (
            f'Given the search context "{context}", analyze the following movies and '
            f"select the {RERANK_LIMIT} most relevant or high-quality ones.\n"
            f"Return only their titles in a JSON array.\n"
            f"Movies: {json.dumps(meta, ensure_ascii=False)}"
        )

        try:
            titles = await self.client.generate_string_list(prompt)
        except Exception as e:
            logger.warning(f"Gemini reranking failed, returning original order: {e}")
            return list(items)

        picked = set(titles[:RERANK_LIMIT])
        return sorted(items, key=lambda m: m.title not in picked)

    async def recommend(
        self, pool: Sequence[MediaItem], favorites: Sequence[MediaItem]
    ) -> List[MediaItem]:
        """Pick up to four items from ``pool`` matching the user's favorites.

        Ids that are not in the pool are ignored. Falls back to the first
        four pool items.
        """
        if not pool:
            return []

        pool_meta = [{"id": m.id, "title": m.title, "genre": m.genre} for m in pool]
        fav_meta = [{"id": m.id, "title": m.title, "genre": m.genre} for m in favorites]
        prompt = (
            f"You are a movie curator. Based on the user's favorite movies: "
            f"{json.dumps(fav_meta, ensure_ascii=False)},\n"
            f"select the {RECOMMEND_LIMIT} best matching movies from this current list: "
            f"{json.dumps(pool_meta, ensure_ascii=False)}.\n"
            f"If no favorites exist, just pick the {RECOMMEND_LIMIT} most globally "
            f"popular/interesting sounding ones.\n"
            f'Return only a JSON array of the "id" values string.'
        )

        try:
            ids = await self.client.generate_string_list(prompt)
        except Exception as e:
            logger.warning(f"Gemini recommendations failed: {e}")
            return list(pool[:RECOMMEND_LIMIT])

        by_id: dict[str, MediaItem] = {}
        for m in pool:
            by_id.setdefault(m.id, m)

        picks: List[MediaItem] = []
        seen = set()
        for item_id in ids:
            item = by_id.get(item_id)
            if item is None or item_id in seen:
                continue
            seen.add(item_id)
            picks.append(item)
            if len(picks) == RECOMMEND_LIMIT:
                break
        return picks

    async def insight(self, item: MediaItem) -> str:
        """Return a one-line reason to watch ``item``, in Chinese."""
        prompt = (
            f'Provide a very brief (20 words max) "AI Insight" for why someone should '
            f'watch the movie "{item.title}".\n'
            f"Context: {item.description[:200]}. Response in Chinese."
        )
        try:
            text = await self.client.generate(prompt)
        except Exception as e:
            logger.warning(f"Gemini insight failed for '{item.title}': {e}")
            return INSIGHT_ERROR_FALLBACK
        return text.strip() or INSIGHT_EMPTY_FALLBACK
