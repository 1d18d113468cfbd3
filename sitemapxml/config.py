import os
from typing import Dict, Mapping, Optional

from pydantic import ValidationError

from sitemapxml.errors import ConfigurationDefect
from sitemapxml.models.configuration import SitemapConfiguration

# --------------------------------------------------
# Remote route query
# --------------------------------------------------
GRAPHQL_ENDPOINT = os.getenv("SITEMAP_GRAPHQL_ENDPOINT")
GRAPHQL_API_KEY = os.getenv("SITEMAP_GRAPHQL_API_KEY", "")
PAGE_SIZE = int(os.getenv("SITEMAP_PAGE_SIZE", "100"))

# --------------------------------------------------
# Sites / hosts
# --------------------------------------------------
# Header carrying the public hostname when it is not in "Host" (e.g. behind a proxy)
HOST_HEADER = os.getenv("SITEMAP_HOST_HEADER")
DEFAULT_SITE_NAME = os.getenv("SITEMAP_SITE_NAME", "default")
# JSON list of {"name": ..., "hostName": "example.com|*.example.com"}
SITES = os.getenv("SITEMAP_SITES", "")

# Per client IP; crawlers walk every page of a sitemap index in a burst
RATE_LIMIT = os.getenv("SITEMAP_RATE_LIMIT", "120/minute")

# --------------------------------------------------
# Per-request sitemap settings
# --------------------------------------------------
SETTING_PREFIX = "sitemapxml_"

DEFAULT_SETTINGS: Dict[str, str] = {
    "languages": "en",
    "default_language": "en",
    "include_alternate_links": "true",
    "include_x_default": "true",
    "href_lang_mode": "language-and-region",
}


def resolve_hostname(headers: Mapping[str, str], host_header: Optional[str] = None) -> str:
    """Return the public hostname of the request, without any port."""
    value = headers.get(host_header.lower()) if host_header else None
    if not value:
        value = headers.get("host") or "localhost"
    return value.split(":")[0]


def build_sitemap_configuration(
    hostname: str, environ: Optional[Mapping[str, str]] = None
) -> SitemapConfiguration:
    """Fold defaults and ``SITEMAPXML_*`` overrides into a :class:`SitemapConfiguration`.

    Keys are matched case-insensitively; the prefix is stripped and the rest
    lower-cased, so ``SITEMAPXML_MAX_PAGES_PER_SITEMAP`` sets
    ``max_pages_per_sitemap``.

    Raises:
        ConfigurationDefect: if a setting fails validation.
    """
    if environ is None:
        environ = os.environ

    settings: Dict[str, str] = {"hostname": hostname, **DEFAULT_SETTINGS}
    for key, value in environ.items():
        lowered = key.lower()
        if lowered.startswith(SETTING_PREFIX) and len(lowered) > len(SETTING_PREFIX):
            settings[lowered[len(SETTING_PREFIX):]] = value

    try:
        return SitemapConfiguration(**settings)
    except ValidationError as exc:
        raise ConfigurationDefect(f"Invalid sitemap configuration: {exc}") from exc
