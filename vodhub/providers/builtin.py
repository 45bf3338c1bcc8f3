"""Built-in VOD sources, in display order."""

from vodhub.models.media import SourceConfig

DEFAULT_SOURCES: tuple[SourceConfig, ...] = (
    SourceConfig(
        key="lzi",
        name="量子资源 (4K)",
        base_url="https://cj.lziapi.com/api.php/provide/vod/",
    ),
    SourceConfig(
        key="bfzy",
        name="播风资源 (HQ)",
        base_url="https://bfzyapi.com/api.php/provide/vod/",
    ),
    SourceConfig(
        key="ikun",
        name="Ikun资源 (HD)",
        base_url="https://www.ikunzyapi.com/api.php/provide/vod/",
    ),
    SourceConfig(
        key="kczy",
        name="快车资源",
        base_url="https://cj.kuaichezy.net/api.php/provide/vod/",
    ),
    SourceConfig(
        key="jszy",
        name="极速资源",
        base_url="https://jszyapi.com/api.php/provide/vod/",
    ),
    SourceConfig(
        key="snzy",
        name="蜗牛资源",
        base_url="https://www.snailzy.com/api.php/provide/vod/",
    ),
)
