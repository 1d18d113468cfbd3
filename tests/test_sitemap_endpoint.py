"""Tests for the sitemap endpoint.

The GraphQL-backed service is replaced with a mock returning a prepared
data set, so the tests cover request parsing, configuration, the plugin
pipeline, paging and XML rendering without network access.
"""

import os
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch
from xml.etree import ElementTree

import pytest
from fastapi.testclient import TestClient

from sitemapxml.errors import UpstreamFetchFailure
from sitemapxml.main import app
from sitemapxml.models.sitemap_item import SitemapItem
from sitemapxml.services.serializer import SITEMAP_NS

client = TestClient(app)

_NS = {"sm": SITEMAP_NS}


@pytest.fixture(autouse=True)
def reset_rate_limits():
    """Clear the slowapi in-memory counter before every test."""
    app.state.limiter._storage.reset()
    yield


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch):
    """Run every test with the default per-request settings."""
    for key in list(os.environ):
        if key.lower().startswith("sitemapxml_"):
            monkeypatch.delenv(key)
    yield


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _item(item_path: str, path: str, language: str = "en", template: str = "Page") -> SitemapItem:
    return SitemapItem(
        item_path=item_path,
        path=path,
        last_modified=datetime(2024, 3, 5, tzinfo=timezone.utc),
        template=template,
        language=language,
    )


def _dataset(count: int) -> dict:
    return {f"/home/p{i:02d}": [_item(f"/home/p{i:02d}", f"/p{i:02d}")] for i in range(count)}


def _mock_service(data=None, side_effect=None):
    """Patch the service class used by the router; returns the patcher."""
    service = MagicMock()
    service.get_all_sitemap_items = AsyncMock(return_value=data, side_effect=side_effect)
    return patch("sitemapxml.routers.sitemap.GraphQLSitemapService", return_value=service)


def _locs(body: str):
    root = ElementTree.fromstring(body)
    return root, [loc.text for loc in root.iter(f"{{{SITEMAP_NS}}}loc")]


# ---------------------------------------------------------------------------
# Unpaged sitemap
# ---------------------------------------------------------------------------

class TestSitemapUnpaged:
    def test_full_sitemap(self):
        data = {
            "/home": [_item("/home", "/")],
            "/home/buckets/x/y/story": [
                _item("/home/buckets/x/y/story", "/buckets/x/y/story", template="Bucket Page")
            ],
        }
        with _mock_service(data):
            resp = client.get("/sitemap.xml", headers={"host": "www.example.com:3000"})

        assert resp.status_code == 200
        assert resp.headers["content-type"] == "text/xml; charset=utf-8"
        root, locs = _locs(resp.text)
        assert root.tag == f"{{{SITEMAP_NS}}}urlset"
        assert locs == ["https://www.example.com/", "https://www.example.com/buckets/story"]

    def test_path_is_case_insensitive(self):
        with _mock_service({}):
            resp = client.get("/SiteMap.XML")
        assert resp.status_code == 200

    def test_empty_dataset(self):
        with _mock_service({}):
            resp = client.get("/sitemap.xml")
        assert resp.status_code == 200
        root, locs = _locs(resp.text)
        assert locs == []

    def test_page_requested_while_paging_disabled(self):
        with _mock_service(_dataset(3)):
            resp = client.get("/sitemap-01.xml")
        assert resp.status_code == 404

    def test_languages_come_from_settings(self, monkeypatch):
        monkeypatch.setenv("SITEMAPXML_LANGUAGES", "en|fr-CA")
        with _mock_service({}) as service_cls:
            client.get("/sitemap.xml")
        service_cls.return_value.get_all_sitemap_items.assert_awaited_once_with(["en", "fr-CA"])

    def test_alternate_links_rendered(self, monkeypatch):
        monkeypatch.setenv("SITEMAPXML_LANGUAGES", "en|fr-CA")
        monkeypatch.setenv("SITEMAPXML_HREF_LANG_MODE", "language-only")
        data = {"/home": [_item("/home", "/"), _item("/home", "/fr-ca", language="fr-CA")]}
        with _mock_service(data):
            resp = client.get("/sitemap.xml", headers={"host": "www.example.com"})

        assert resp.status_code == 200
        assert 'hreflang="fr"' in resp.text
        assert resp.text.count('hreflang="x-default"') == 2


# ---------------------------------------------------------------------------
# Paged sitemap
# ---------------------------------------------------------------------------

class TestSitemapPaged:
    @pytest.fixture(autouse=True)
    def paging(self, monkeypatch):
        monkeypatch.setenv("SITEMAPXML_MAX_PAGES_PER_SITEMAP", "10")

    def test_index_for_large_dataset(self):
        with _mock_service(_dataset(25)):
            resp = client.get("/sitemap.xml", headers={"host": "www.example.com"})

        assert resp.status_code == 200
        root, locs = _locs(resp.text)
        assert root.tag == f"{{{SITEMAP_NS}}}sitemapindex"
        assert locs == [
            "https://www.example.com/sitemap-01.xml",
            "https://www.example.com/sitemap-02.xml",
            "https://www.example.com/sitemap-03.xml",
        ]

    def test_specific_page(self):
        with _mock_service(_dataset(25)):
            resp = client.get("/sitemap-02.xml", headers={"host": "www.example.com"})

        assert resp.status_code == 200
        _, locs = _locs(resp.text)
        assert len(locs) == 10
        assert locs[0] == "https://www.example.com/p09"

    def test_page_beyond_range(self):
        with _mock_service(_dataset(25)):
            resp = client.get("/sitemap-04.xml")
        assert resp.status_code == 404

    def test_oversized_page_number_is_not_found(self):
        with _mock_service(_dataset(25)) as service_cls:
            resp = client.get("/sitemap-" + "1" * 4301 + ".xml")
        assert resp.status_code == 404
        service_cls.assert_not_called()

    def test_crawler_can_walk_every_index_page(self, monkeypatch):
        monkeypatch.setenv("SITEMAPXML_MAX_PAGES_PER_SITEMAP", "1")
        with _mock_service(_dataset(40)):
            statuses = {client.get(f"/sitemap-{page:02d}.xml").status_code for page in range(1, 41)}
        assert statuses == {200}

    def test_small_dataset_renders_sitemap(self):
        with _mock_service(_dataset(5)):
            resp = client.get("/sitemap.xml")
        root, locs = _locs(resp.text)
        assert root.tag == f"{{{SITEMAP_NS}}}urlset"
        assert len(locs) == 5


# ---------------------------------------------------------------------------
# Error handling
# ---------------------------------------------------------------------------

class TestSitemapErrors:
    def test_non_sitemap_path_is_not_found(self):
        with _mock_service({}) as service_cls:
            resp = client.get("/robots.txt")
        assert resp.status_code == 404
        service_cls.assert_not_called()

    def test_upstream_failure_returns_502(self):
        with _mock_service(side_effect=UpstreamFetchFailure("endpoint down")):
            resp = client.get("/sitemap.xml")
        assert resp.status_code == 502

    def test_invalid_setting_returns_500(self, monkeypatch):
        monkeypatch.setenv("SITEMAPXML_MAX_PAGES_PER_SITEMAP", "lots")
        with _mock_service({}):
            resp = client.get("/sitemap.xml")
        assert resp.status_code == 500

    def test_missing_endpoint_fails_before_fetching(self):
        with patch("sitemapxml.routers.sitemap.GRAPHQL_ENDPOINT", None):
            resp = client.get("/sitemap.xml")
        assert resp.status_code == 500
        assert "clientFactory" in resp.json()["detail"]

    def test_health_check_still_served(self):
        resp = client.get("/")
        assert resp.status_code == 200
        assert resp.json() == {"message": "Hello from SitemapXML"}
