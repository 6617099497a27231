"""Tests for Countries API endpoints."""
import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_list_countries(client: AsyncClient):
    response = await client.get("/api/v1/countries")
    assert response.status_code == 200
    codes = [c["code"] for c in response.json()["data"]]
    assert codes == ["AU", "TR", "UK", "DE", "FR", "ES"]


@pytest.mark.asyncio
async def test_get_country_case_insensitive(client: AsyncClient):
    response = await client.get("/api/v1/countries/de")
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["name"] == "Germany"
    assert data["currency"] == "EUR"
    assert data["default_formats"] == ["OPENIMMO", "WEBSITE_SCRAPE"]


@pytest.mark.asyncio
async def test_get_unknown_country(client: AsyncClient):
    response = await client.get("/api/v1/countries/XX")
    assert response.status_code == 404
    assert response.json()["success"] is False


@pytest.mark.asyncio
async def test_country_formats(client: AsyncClient):
    response = await client.get("/api/v1/countries/TR/formats")
    assert response.status_code == 200
    formats = [f["format"] for f in response.json()["data"]]
    assert formats[0] == "SAHIBINDEN"
    assert formats[-1] == "WEBSITE_SCRAPE"
