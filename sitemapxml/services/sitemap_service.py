"""Aggregates per-language route data from the GraphQL endpoint into sitemap items."""

import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional, Sequence

from pydantic import ValidationError

from sitemapxml.errors import ConfigurationDefect, UpstreamFetchFailure
from sitemapxml.models.sitemap_item import FinalUrl, SitemapData, SitemapItem
from sitemapxml.models.sitemap_query import RouteResult, SitemapQueryResult
from sitemapxml.services.graphql_client import GraphQLRequestClient

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 100

# Change-frequency value marking routes that must stay out of the sitemap
DO_NOT_INCLUDE = "DoNotInclude"

SITEMAP_QUERY = """
query sitemap(
  $siteName: String!
  $language: String = "en"
  $pageSize: Int = 100
  $after: String = ""
) {
  site {
    siteInfo(site: $siteName) {
      routes(language: $language, first: $pageSize, after: $after) {
        total
        pageInfo {
          endCursor
          hasNext
        }
        results {
          route {
            path
            template {
              name
            }
            updated: field(name: "__Updated") {
              value
            }
            url {
              path
            }
            ... on _Sitemap {
              changeFrequency {
                ...enumVal
              }
            }
          }
        }
      }
    }
  }
}

fragment enumVal on LookupField {
  targetItem {
    field(name: "value") {
      value
    }
  }
}
"""


def parse_updated_date(value: Optional[str]) -> Optional[datetime]:
    """Parse a ``YYYYMMDD`` (optionally followed by a time part) value as a UTC date.

    Returns *None* when the value is missing or is not a valid calendar date.
    """
    if not value or len(value) < 8 or not value[:8].isdigit():
        return None
    try:
        return datetime(int(value[0:4]), int(value[4:6]), int(value[6:8]), tzinfo=timezone.utc)
    except ValueError:
        return None


def invert_sitemap_to_items(data: SitemapData) -> SitemapData:
    """Re-key language-keyed *data* by item path, with keys in ascending order.

    Sorting puts short paths such as the home page on the first sitemap page.
    A later record for the same item path and language replaces the earlier one.
    """
    unsorted: SitemapData = {}
    for items in data.values():
        for item in items:
            variants = unsorted.setdefault(item.item_path, [])
            for index, existing in enumerate(variants):
                if existing.language == item.language:
                    variants[index] = item
                    break
            else:
                variants.append(item)

    return {key: unsorted[key] for key in sorted(unsorted)}


class GraphQLSitemapService:
    """Collects sitemap items for a site from the GraphQL route query.

    Languages are fetched one after another, and the pages of a language
    follow the cursor chain, so results are deterministic.
    """

    def __init__(
        self,
        site_name: str,
        client_factory: Optional[Callable[[], GraphQLRequestClient]],
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> None:
        if not site_name:
            raise ConfigurationDefect("The service needs a site name")
        if client_factory is None:
            raise ConfigurationDefect("You should provide a clientFactory.")
        self.site_name = site_name
        self.page_size = page_size
        self._client = client_factory()

    async def get_all_sitemap_items(self, languages: Sequence[str]) -> SitemapData:
        """Fetch every language and return the path-keyed, sorted data set."""
        if not languages:
            raise ConfigurationDefect("The list of languages cannot be empty")

        raw_data: SitemapData = {}
        for language in languages:
            raw_data[language] = await self.get_sitemap_items(language)

        return invert_sitemap_to_items(raw_data)

    async def get_sitemap_items(self, language: str) -> List[SitemapItem]:
        """Return the included routes of *language* as fresh sitemap items."""
        logger.debug("Fetching sitemap data for %s", language)
        results = await self.fetch_routes(language)

        items: List[SitemapItem] = []
        for result in results:
            route = result.route
            if route.change_frequency_value == DO_NOT_INCLUDE:
                continue

            updated = route.updated.value if route.updated else None
            last_modified = parse_updated_date(updated)
            if last_modified is None:
                logger.warning(
                    "Unparsable last-updated value %r for %s [%s]", updated, route.path, language
                )

            items.append(
                SitemapItem(
                    item_path=route.path,
                    path=route.url.path,
                    last_modified=last_modified,
                    template=route.template.name,
                    language=language,
                    final=FinalUrl(),
                )
            )

        logger.debug("Mapped %d of %d routes for %s", len(items), len(results), language)
        return items

    async def fetch_routes(self, language: str) -> List[RouteResult]:
        """Follow the cursor chain for *language* and concatenate all route results.

        Raises:
            UpstreamFetchFailure: when a request fails or the response does not
                match the expected shape (including a missing or repeated cursor
                while more data is reported).
        """
        results: List[RouteResult] = []
        has_next = True
        after = ""

        while has_next:
            data = await self._client.request(
                SITEMAP_QUERY,
                {
                    "siteName": self.site_name,
                    "language": language,
                    "pageSize": self.page_size,
                    "after": after,
                },
            )
            try:
                routes = SitemapQueryResult.model_validate(data).site.site_info.routes
            except ValidationError as exc:
                raise UpstreamFetchFailure(
                    f"Unexpected route query response for {language}: {exc}"
                ) from exc

            results.extend(routes.results)
            has_next = routes.page_info.has_next
            cursor = routes.page_info.end_cursor

            if has_next and (not cursor or cursor == after):
                raise UpstreamFetchFailure(
                    f"Route query for {language} reported more data without a new cursor"
                )
            after = cursor or ""

            logger.debug(
                "Fetched %d/%d routes for %s (more: %s)", len(results), routes.total, language, has_next
            )

        return results
