import logging
import time

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import Response
from slowapi import Limiter
from slowapi.util import get_remote_address

from sitemapxml.config import (
    DEFAULT_SITE_NAME,
    GRAPHQL_API_KEY,
    GRAPHQL_ENDPOINT,
    HOST_HEADER,
    PAGE_SIZE,
    RATE_LIMIT,
    SITES,
    build_sitemap_configuration,
    resolve_hostname,
)
from sitemapxml.errors import (
    ConfigurationDefect,
    InvalidPageNumber,
    InvalidRequestPath,
    UpstreamFetchFailure,
)
from sitemapxml.services.graphql_client import create_client_factory
from sitemapxml.services.paginator import parse_sitemap_page, select_sitemap_page
from sitemapxml.services.pipeline import process_sitemap
from sitemapxml.services.serializer import build_sitemap, build_sitemap_index
from sitemapxml.services.site_resolver import parse_sites, resolve_site_name
from sitemapxml.services.sitemap_service import GraphQLSitemapService

logger = logging.getLogger(__name__)

limiter = Limiter(key_func=get_remote_address)
router = APIRouter()

XML_MEDIA_TYPE = "text/xml; charset=utf-8"


@router.get(
    "/{sitemap_path:path}",
    response_class=Response,
    summary="Render a sitemap, sitemap page or sitemap index",
    description=(
        "`/sitemap.xml` returns the full sitemap, or the sitemap index when "
        "paging is enabled and the site has more entries than fit on one page.  "
        "`/sitemap-NN.xml` returns page *NN* of a paged sitemap."
    ),
)
@limiter.limit(RATE_LIMIT)
async def sitemap(request: Request, sitemap_path: str) -> Response:
    """Build the requested sitemap document for the site serving this host."""
    request_path = request.url.path
    try:
        page = parse_sitemap_page(request_path)
    except InvalidRequestPath:
        logger.warning("Tried to fetch a sitemap that didn't match format: %s", request_path)
        raise HTTPException(status_code=404, detail="Not found.")

    start = time.perf_counter()
    hostname = resolve_hostname(request.headers, HOST_HEADER)
    logger.info("Sitemap request received", extra={"path": request_path, "hostname": hostname})

    try:
        config = build_sitemap_configuration(hostname)
        site_name = resolve_site_name(hostname, parse_sites(SITES), DEFAULT_SITE_NAME)
        service = GraphQLSitemapService(
            site_name,
            create_client_factory(GRAPHQL_ENDPOINT, GRAPHQL_API_KEY),
            page_size=PAGE_SIZE,
        )
        data = await service.get_all_sitemap_items(config.languages)
    except ConfigurationDefect as exc:
        logger.error("Sitemap configuration error: %s", exc)
        raise HTTPException(status_code=500, detail=str(exc))
    except UpstreamFetchFailure as exc:
        logger.error("Error fetching sitemap data for %s: %s", hostname, exc)
        raise HTTPException(status_code=502, detail=str(exc))

    logger.debug("%d sitemap items returned", len(data))
    processed = process_sitemap(data, config)

    try:
        selection = select_sitemap_page(processed, config.max_pages_per_sitemap, page)
    except InvalidPageNumber as exc:
        logger.warning("%s (%s)", exc, request_path)
        raise HTTPException(status_code=404, detail="Not found.")

    if selection.kind == "index":
        content = build_sitemap_index(selection.page_count, config.hostname)
    else:
        content = build_sitemap(selection.items, config)
        logger.debug(
            "Rendered sitemap page %d of %d (%d entries)",
            page,
            selection.page_count,
            len(selection.items),
        )

    logger.debug("Sitemap generated in %.0fms", (time.perf_counter() - start) * 1000)
    return Response(content=content, media_type=XML_MEDIA_TYPE)
