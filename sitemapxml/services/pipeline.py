import logging
import time
from typing import Iterable

from sitemapxml.models.configuration import SitemapConfiguration
from sitemapxml.models.sitemap_item import SitemapData
from sitemapxml.services.sitemap_plugins import DEFAULT_PLUGINS, SitemapPlugin

logger = logging.getLogger(__name__)


def process_sitemap(
    data: SitemapData,
    config: SitemapConfiguration,
    plugins: Iterable[SitemapPlugin] = DEFAULT_PLUGINS,
) -> SitemapData:
    """Run *plugins* over *data* in ascending ``order`` to set every final URL.

    Plugins with equal ``order`` run in the order they were given.  *data* is
    updated in place and also returned.
    """
    start = time.perf_counter()

    for plugin in sorted(plugins, key=lambda p: p.order):
        logger.debug("Running sitemap plugin %s (order %d)", plugin.name, plugin.order)
        data = plugin.process(data, config)

    unclaimed = sum(1 for items in data.values() for item in items if item.final.should_process)
    if unclaimed:
        logger.error("%d sitemap items have no final URL after processing", unclaimed)

    logger.debug("Sitemap plugins finished in %.1fms", (time.perf_counter() - start) * 1000)
    return data
