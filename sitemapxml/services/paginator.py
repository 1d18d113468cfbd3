"""Splits a finalized data set into sitemap pages and a sitemap index."""

import logging
import math
import re
from itertools import islice
from typing import Literal, NamedTuple, Optional

from sitemapxml.errors import InvalidPageNumber, InvalidRequestPath
from sitemapxml.models.sitemap_item import SitemapData

logger = logging.getLogger(__name__)

# /sitemap.xml, /sitemap-1.xml, /sitemap-01.xml ... (page numbers up to nine digits)
_SITEMAP_PATH = re.compile(r"/sitemap(?:-(\d{1,9}))?\.xml", re.IGNORECASE)


class SitemapSelection(NamedTuple):
    kind: Literal["sitemap", "index"]
    items: Optional[SitemapData] = None
    page_count: int = 0


def parse_sitemap_page(request_path: str) -> int:
    """Return the page number requested by *request_path* (0 for ``/sitemap.xml``).

    Raises:
        InvalidRequestPath: if the path is not a sitemap document path.
    """
    match = _SITEMAP_PATH.fullmatch(request_path)
    if not match:
        raise InvalidRequestPath(f"Not a sitemap path: {request_path}")
    return int(match.group(1)) if match.group(1) else 0


def count_sitemap_pages(total: int, max_per_sitemap: int) -> int:
    """Number of sitemap pages needed for *total* entries (0 when paging is off)."""
    if max_per_sitemap <= 0:
        return 0
    return max(1, math.ceil(total / max_per_sitemap))


def select_sitemap_page(data: SitemapData, max_per_sitemap: int, page: int) -> SitemapSelection:
    """Decide which document to render for *page*.

    With paging disabled (``max_per_sitemap == 0``) only the full sitemap
    exists.  With paging enabled and more entries than fit on one page,
    page 0 is the sitemap index and pages ``1..N`` are slices of the sorted
    entries.  Pages after the first start one entry early, so each repeats
    the last entry of the previous page.

    Raises:
        InvalidPageNumber: when *page* does not exist.
    """
    total = len(data)

    if max_per_sitemap == 0:
        if page != 0:
            raise InvalidPageNumber(f"Sitemap page {page} requested but paging is disabled")
        logger.debug("Rendering full sitemap with %d entries", total)
        return SitemapSelection(kind="sitemap", items=data)

    page_count = count_sitemap_pages(total, max_per_sitemap)

    if total <= max_per_sitemap:
        if page > 1:
            raise InvalidPageNumber(f"Invalid sitemap page {page}. Max pages: {page_count}.")
        logger.debug("All %d entries fit on one sitemap", total)
        return SitemapSelection(kind="sitemap", items=data, page_count=page_count)

    if page == 0:
        logger.debug("Generating sitemap index for %d pages", page_count)
        return SitemapSelection(kind="index", page_count=page_count)

    if page > page_count:
        raise InvalidPageNumber(f"Invalid sitemap page {page}. Max pages: {page_count}.")

    start = max((page - 1) * max_per_sitemap - 1, 0)
    items = dict(islice(data.items(), start, start + max_per_sitemap))
    logger.debug("Rendering sitemap page %d/%d from entry %d", page, page_count, start)
    return SitemapSelection(kind="sitemap", items=items, page_count=page_count)
