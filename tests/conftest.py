import pytest

from vodhub.context import build_context
from vodhub.core.config import Settings
from vodhub.core.storage import create_store
from vodhub.models.media import MediaItem


@pytest.fixture
def store():
    """In-memory key-value store."""
    return create_store("sqlite://")


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        gemini_api_key=None,
        database_url="sqlite://",
        proxy=None,
    )


@pytest.fixture
def ctx(settings, store):
    return build_context(settings, store)


@pytest.fixture
def make_item():
    def _make(id="1", title="Movie", year="2020", source="lzi", **kwargs):
        return MediaItem(id=id, title=title, year=year, source=source, **kwargs)

    return _make
