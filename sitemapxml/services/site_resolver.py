"""Maps a request hostname to the name of the site whose routes are queried."""

import json
import logging
from fnmatch import fnmatchcase
from typing import List, NamedTuple

from sitemapxml.errors import ConfigurationDefect

logger = logging.getLogger(__name__)


class SiteInfo(NamedTuple):
    name: str
    host_patterns: List[str]


def parse_sites(raw: str) -> List[SiteInfo]:
    """Parse a JSON list of ``{"name", "hostName"}`` site definitions.

    ``hostName`` may hold several ``|``-separated patterns, each of which may
    use ``*`` as a wildcard.
    """
    if not raw.strip():
        return []
    try:
        entries = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ConfigurationDefect(f"SITEMAP_SITES is not valid JSON: {exc}") from exc
    if not isinstance(entries, list):
        raise ConfigurationDefect("SITEMAP_SITES must be a JSON list")

    sites: List[SiteInfo] = []
    for entry in entries:
        if not isinstance(entry, dict) or not entry.get("name"):
            raise ConfigurationDefect(f"Site definition without a name: {entry!r}")
        patterns = [p.strip().lower() for p in str(entry.get("hostName", "")).split("|") if p.strip()]
        sites.append(SiteInfo(name=entry["name"], host_patterns=patterns))
    return sites


def resolve_site_name(hostname: str, sites: List[SiteInfo], default: str) -> str:
    """Return the site serving *hostname*.

    Exact host matches win over wildcard matches; the first matching site in
    definition order is used.  Falls back to *default* when nothing matches.
    """
    host = hostname.lower()
    for site in sites:
        if host in site.host_patterns:
            return site.name
    for site in sites:
        if any("*" in p and fnmatchcase(host, p) for p in site.host_patterns):
            return site.name

    logger.debug("No site matched host %s, using %s", hostname, default)
    return default
