"""HTTP API tests using FastAPI's TestClient with an injected service."""

import pytest
from fastapi.testclient import TestClient

from product_search import main
from product_search.cache import InMemoryCache
from product_search.search_service import SearchService


class _MissingCatalogService(SearchService):
    def reload(self, path=None):
        raise FileNotFoundError("Required data file missing and no download URL provided: data/none.json")


@pytest.fixture
def service(store):
    return SearchService(store, cache=InMemoryCache())


@pytest.fixture
def client(monkeypatch, service):
    monkeypatch.setattr(main, "get_service", lambda: service)
    return TestClient(main.app)


def test_search_endpoint(client):
    response = client.get("/search", params={"q": "widget price:<=60"})

    assert response.status_code == 200
    body = response.json()
    assert [item["id"] for item in body["items"]] == ["2", "3"]
    assert body["parsed"]["price"] == "price:<=60"
    assert body["parsed"]["keywords"] == ["widget"]


def test_search_paging_and_sort(client):
    body = client.get("/search", params={"q": "widget", "sort": "price_desc", "page": 2, "page_size": 1}).json()

    assert [item["id"] for item in body["items"]] == ["2"]
    assert body["currentPage"] == 2
    assert body["pageSize"] == 1
    assert body["hasMore"] is True


def test_search_rejects_unknown_sort(client):
    assert client.get("/search", params={"q": "widget", "sort": "bogus"}).status_code == 422


def test_search_rejects_page_zero(client):
    assert client.get("/search", params={"q": "widget", "page": 0}).status_code == 422


def test_health_reports_catalog_size(client):
    body = client.get("/health").json()

    assert body["products"] == 5
    assert body["cache"] == "memory"


def test_reload_without_catalog_is_unavailable(monkeypatch):
    monkeypatch.setattr(main, "get_service", lambda: _MissingCatalogService())
    client = TestClient(main.app)

    response = client.post("/reload")

    assert response.status_code == 503
    assert "data file missing" in response.json()["detail"]


def test_search_facet_filters(client):
    body = client.get("/search", params={"q": "", "category": "TV", "max_price": 700}).json()

    assert [item["id"] for item in body["items"]] == ["21"]


def test_search_brand_filter_excludes_everything_else(client):
    body = client.get("/search", params={"q": "widget", "brand": "sony"}).json()

    assert body["totalResults"] == 0


def test_search_rejects_inverted_price_bounds(client):
    response = client.get("/search", params={"min_price": 100, "max_price": 10})

    assert response.status_code == 422
