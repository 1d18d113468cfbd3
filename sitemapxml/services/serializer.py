"""XML rendering of sitemaps and sitemap indexes."""

from datetime import datetime, timezone
from typing import List, Optional
from xml.etree import ElementTree

from sitemapxml.models.configuration import HrefLangMode, SitemapConfiguration
from sitemapxml.models.sitemap_item import SitemapData, SitemapItem

SITEMAP_NS = "http://www.sitemaps.org/schemas/sitemap/0.9"
XHTML_NS = "http://www.w3.org/1999/xhtml"

XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>'


def href_lang(language: str, mode: HrefLangMode) -> str:
    """Return the ``hreflang`` value for *language* under *mode*.

    Only five-character ``ll-RR`` codes are shortened; anything else is
    returned unchanged.
    """
    if len(language) != 5 or mode == "language-and-region":
        return language
    if mode == "language-only":
        return language[0:2]
    return language[3:5]


def _lastmod(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.date().isoformat()


def _add_alternate(parent: ElementTree.Element, hreflang: str, href: str) -> None:
    ElementTree.SubElement(
        parent, "xhtml:link", {"rel": "alternate", "hreflang": hreflang, "href": href}
    )


def _add_url(
    urlset: ElementTree.Element,
    page: SitemapItem,
    variants: List[SitemapItem],
    config: SitemapConfiguration,
) -> None:
    base = f"https://{config.hostname}"

    url = ElementTree.SubElement(urlset, "url")
    ElementTree.SubElement(url, "loc").text = f"{base}{page.final.url}"
    lastmod = _lastmod(page.last_modified)
    if lastmod:
        ElementTree.SubElement(url, "lastmod").text = lastmod

    if not config.include_alternate_links:
        return

    for variant in variants:
        if variant.language != page.language:
            hreflang = href_lang(variant.language, config.href_lang_mode)
            _add_alternate(url, hreflang, f"{base}{variant.final.url}")

    if config.include_x_default:
        default = next((v for v in variants if v.language == config.default_language), None)
        if default is not None:
            _add_alternate(url, "x-default", f"{base}{default.final.url}")


def build_sitemap(pages: SitemapData, config: SitemapConfiguration) -> str:
    """Render *pages* as a ``<urlset>`` document.

    Entries are written per item path, then per configured language; a
    language without a variant for the path produces no entry.
    """
    urlset = ElementTree.Element("urlset", {"xmlns": SITEMAP_NS})
    if config.include_alternate_links:
        urlset.set("xmlns:xhtml", XHTML_NS)

    for variants in pages.values():
        for language in config.languages:
            page = next((v for v in variants if v.language == language), None)
            if page is not None:
                _add_url(urlset, page, variants, config)

    return XML_DECLARATION + ElementTree.tostring(urlset, encoding="unicode")


def build_sitemap_index(page_count: int, hostname: str) -> str:
    """Render a ``<sitemapindex>`` pointing at ``/sitemap-01.xml`` .. ``/sitemap-NN.xml``."""
    index = ElementTree.Element("sitemapindex", {"xmlns": SITEMAP_NS})
    for page in range(1, page_count + 1):
        sitemap = ElementTree.SubElement(index, "sitemap")
        ElementTree.SubElement(sitemap, "loc").text = f"https://{hostname}/sitemap-{page:02d}.xml"

    return ElementTree.tostring(index, encoding="unicode")
