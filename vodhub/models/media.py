"""Media models shared by the fetch client, curator and library."""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel


class PlayableEntry(BaseModel):
    """One playable stream or episode."""

    name: str
    url: str


class MediaItem(BaseModel):
    """A title as listed by a VOD source.

    ``id`` is only unique within ``source``.
    """

    id: str
    title: str
    rating: float = 7.0
    poster_url: str = ""
    genre: str = ""
    area: str = ""
    year: str = ""
    description: str = ""  # may contain HTML
    source: str
    update_time: str = ""
    director: str = ""
    actor: str = ""
    play_urls: List[PlayableEntry] = []

    @property
    def identity(self) -> tuple[str, str]:
        """Globally unique identity of the item."""
        return (self.source, self.id)


class WatchRecord(MediaItem):
    """A watched item with its capture time in epoch milliseconds."""

    watched_at: int


class SourceConfig(BaseModel):
    """A VOD source endpoint."""

    key: str
    name: str
    base_url: str
    is_custom: bool = False


class Category(str, Enum):
    """Browse categories offered by the VOD sources."""

    ALL = "全部"
    MOVIE = "电影"
    SERIES = "电视剧"
    VARIETY = "综艺"
    ANIME = "动漫"
    ACTION = "动作"
    COMEDY = "喜剧"
    ROMANCE = "爱情"
    SCIFI = "科幻"
    MYSTERY = "悬疑"
    HORROR = "恐怖"
    ANIMATION = "动画"
    DOCUMENTARY = "纪录片"
    CRIME = "犯罪"
    FANTASY = "奇幻"
    WAR = "战争"
    THRILLER = "惊悚"
    DRAMA = "剧情"

    @property
    def code(self) -> Optional[int]:
        """Provider type id, None for ALL."""
        return CATEGORY_CODES[self]


CATEGORY_CODES: dict[Category, Optional[int]] = {
    Category.ALL: None,
    Category.MOVIE: 1,
    Category.SERIES: 2,
    Category.VARIETY: 3,
    Category.ANIME: 4,
    Category.ACTION: 6,
    Category.COMEDY: 7,
    Category.ROMANCE: 8,
    Category.SCIFI: 9,
    Category.MYSTERY: 10,
    Category.HORROR: 11,
    Category.WAR: 12,
    Category.THRILLER: 13,
    Category.DRAMA: 14,
    Category.DOCUMENTARY: 20,
    Category.CRIME: 21,
    Category.FANTASY: 22,
    Category.ANIMATION: 24,
}
