"""URL finalization rules for sitemap items.

Each rule walks every item and claims the ones it is responsible for by
setting ``final.url`` and clearing ``final.should_process``.  Items that an
earlier rule has claimed are left alone.
"""

from typing import Callable, NamedTuple

from sitemapxml.models.configuration import SitemapConfiguration
from sitemapxml.models.sitemap_item import SitemapData

PluginProcess = Callable[[SitemapData, SitemapConfiguration], SitemapData]


class SitemapPlugin(NamedTuple):
    order: int
    process: PluginProcess
    name: str = ""


def collapse_bucket_paths(data: SitemapData, config: SitemapConfiguration) -> SitemapData:
    """Drop the two bucket folder segments from bucket page URLs.

    ``/buckets/a/b/page`` becomes ``/buckets/page``.  Paths with fewer than
    four segments are left for later rules.
    """
    for items in data.values():
        for item in items:
            if item.template != config.bucket_template or not item.final.should_process:
                continue
            segments = item.path.split("/")
            if len(segments) >= 4:
                del segments[len(segments) - 3:len(segments) - 1]
                item.final.url = "/".join(segments)
                item.final.should_process = False
    return data


def apply_default_urls(data: SitemapData, config: SitemapConfiguration) -> SitemapData:
    """Use the route's own URL path for every item no other rule claimed."""
    for items in data.values():
        for item in items:
            if item.final.should_process:
                item.final.url = item.path
                item.final.should_process = False
    return data


# The default rule must stay last.
DEFAULT_PLUGINS = (
    SitemapPlugin(order=1, process=collapse_bucket_paths, name="bucket"),
    SitemapPlugin(order=9999, process=apply_default_urls, name="default"),
)
