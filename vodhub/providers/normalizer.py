"""Normalization of raw VOD records into MediaItem objects.

Parsing here is lenient on purpose: missing or unparsable fields are
substituted with defaults instead of rejecting the record.
"""

import re
from typing import Any, List

from vodhub.models.media import MediaItem, PlayableEntry

DEFAULT_RATING = 7.0
DEFAULT_ENTRY_NAME = "正片"

SEGMENT_SEPARATOR = "#"
NAME_SEPARATOR = "$"

_LEADING_FLOAT = re.compile(r"^\s*[+-]?(\d+(\.\d*)?|\.\d+)")


def parse_rating(value: Any) -> float:
    """Parse a score like ``"8.5"`` or ``"8.5分"``.

    Empty, unparsable and zero scores fall back to DEFAULT_RATING.
    """
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value) or DEFAULT_RATING
    match = _LEADING_FLOAT.match(str(value or ""))
    if not match:
        return DEFAULT_RATING
    return float(match.group(0)) or DEFAULT_RATING


def parse_play_urls(value: str | None) -> List[PlayableEntry]:
    """Parse ``"Name1$url1#Name2$url2"`` into playable entries.

    A segment without ``$`` is a bare URL with the default name. Entries
    whose URL does not start with ``http`` are dropped; order is kept.
    """
    if not value:
        return []

    entries = []
    for segment in value.split(SEGMENT_SEPARATOR):
        parts = segment.split(NAME_SEPARATOR)
        if len(parts) == 1:
            name, url = DEFAULT_ENTRY_NAME, parts[0]
        else:
            name, url = parts[0] or DEFAULT_ENTRY_NAME, parts[1] or parts[0]
        url = url.strip()
        if not url.startswith("http"):
            continue
        entries.append(PlayableEntry(name=name.strip() or DEFAULT_ENTRY_NAME, url=url))
    return entries


def _text(record: dict, field: str) -> str:
    value = record.get(field)
    return "" if value is None else str(value)


def normalize_record(record: dict, source_key: str) -> MediaItem:
    """Map one provider record onto a MediaItem."""
    return MediaItem(
        id=_text(record, "vod_id"),
        title=_text(record, "vod_name"),
        rating=parse_rating(record.get("vod_score")),
        poster_url=_text(record, "vod_pic"),
        genre=_text(record, "vod_class"),
        area=_text(record, "vod_area"),
        year=_text(record, "vod_year"),
        description=_text(record, "vod_content"),
        source=source_key,
        update_time=_text(record, "vod_time"),
        director=_text(record, "vod_director"),
        actor=_text(record, "vod_actor"),
        play_urls=parse_play_urls(_text(record, "vod_play_url")),
    )
