"""Tests for Imports API endpoints."""
import pytest
from httpx import AsyncClient

from tests.conftest import FakeFetcher, load_fixture

CSV_FEED = (
    "id,title,price,city,type\n"
    '1,"Flat, with harbour view","$1,200.50",Sydney,Apartment\n'
    "2,Family House,950000,Melbourne,House\n"
)


@pytest.mark.asyncio
async def test_list_formats(client: AsyncClient):
    """GET /api/v1/imports/formats lists every format with its display name."""
    response = await client.get("/api/v1/imports/formats")
    assert response.status_code == 200
    formats = {f["format"]: f["display_name"] for f in response.json()["data"]}
    assert len(formats) == 12
    assert formats["REAXML"] == "REAXML Feed (Australia)"


@pytest.mark.asyncio
async def test_detect_csv(client: AsyncClient):
    """POST /api/v1/imports/detect parses without persisting."""
    response = await client.post("/api/v1/imports/detect", json={"content": CSV_FEED, "country": "AU"})
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["strategy"] == "CSV/JSON Upload"
    assert data["format"] == "GENERIC_JSON"
    assert data["count"] == 2
    assert data["properties"][0]["price"] == 1200.5
    assert data["properties"][0]["currency"] == "AUD"

    listing = await client.get("/api/v1/properties", params={"tenant_id": "tenant-a"})
    assert listing.json()["data"]["total"] == 0


@pytest.mark.asyncio
async def test_detect_url(client: AsyncClient, fake_fetcher: FakeFetcher):
    """POST /api/v1/imports/detect with a URL reads JSON-LD from the fetched page."""
    url = "https://makler.example.de/expose/4711"
    fake_fetcher.pages[url] = load_fixture("listing_page.html")

    response = await client.post("/api/v1/imports/detect", json={"url": url})
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["format"] == "WEBSITE_SCRAPE"
    assert data["properties"][0]["country_code"] == "DE"
    assert data["properties"][0]["currency"] == "EUR"


@pytest.mark.asyncio
async def test_detect_with_explicit_format(client: AsyncClient, fake_fetcher: FakeFetcher):
    """An explicit format bypasses detection (a bare URL would otherwise go to JSON-LD)."""
    fake_fetcher.json_docs["https://agency.example.com/wp-json/wp/v2/properties?per_page=100&_embed=1"] = [
        {"id": 1, "title": {"rendered": "Flat"}, "acf": {"price": "1000", "city": "Leeds", "country": "UK"}},
    ]
    response = await client.post(
        "/api/v1/imports/detect",
        json={"url": "https://agency.example.com", "format": "WORDPRESS_API"},
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["format"] == "WORDPRESS_API"
    assert data["properties"][0]["external_id"] == "wp-1"
    assert data["properties"][0]["currency"] == "GBP"


@pytest.mark.asyncio
async def test_detect_unrecognised_content(client: AsyncClient):
    """Content no strategy accepts is a 422 with the error envelope."""
    response = await client.post("/api/v1/imports/detect", json={"content": "hello there"})
    assert response.status_code == 422
    body = response.json()
    assert body["success"] is False
    assert "No suitable import strategy" in body["message"]


@pytest.mark.asyncio
async def test_detect_empty_feed(client: AsyncClient):
    """A recognised but empty feed is rejected, not reported as a successful import."""
    response = await client.post("/api/v1/imports/detect", json={"content": '{"properties": []}'})
    assert response.status_code == 422
    assert response.json()["success"] is False


@pytest.mark.asyncio
async def test_request_requires_content_or_url(client: AsyncClient):
    response = await client.post("/api/v1/imports/detect", json={"country": "TR"})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_import_and_reimport(client: AsyncClient):
    """POST /api/v1/imports creates rows, then updates them on a second run."""
    payload = {"content": load_fixture("turkish_sample.xml"), "tenant_id": "tenant-a"}

    first = await client.post("/api/v1/imports", json=payload)
    assert first.status_code == 200
    result = first.json()["data"]
    assert result["success"] is True
    assert result["created_count"] == 3
    assert result["country_code"] == "TR"
    assert result["format"] == "SAHIBINDEN"
    assert first.json()["message"] == "Import completed: 3 new, 0 updated, 0 skipped"

    second = await client.post("/api/v1/imports", json=payload)
    result = second.json()["data"]
    assert result["created_count"] == 0
    assert result["updated_count"] == 3

    listing = await client.get("/api/v1/properties", params={"tenant_id": "tenant-a"})
    assert listing.json()["data"]["total"] == 3


@pytest.mark.asyncio
async def test_import_requires_tenant(client: AsyncClient):
    response = await client.post("/api/v1/imports", json={"content": CSV_FEED})
    assert response.status_code == 422
