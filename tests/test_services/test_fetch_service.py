"""Tests for HttpFetcher — status handling and the log-and-return-None contract."""
import pytest
import requests

from app.services.fetch_service import HttpFetcher


class FakeResponse:
    def __init__(self, status_code: int, text: str = "", payload=None):
        self.status_code = status_code
        self.text = text
        self._payload = payload

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON object could be decoded")
        return self._payload


@pytest.fixture
def fetcher():
    f = HttpFetcher(max_retries=0)
    yield f
    f.close()


def _serve(monkeypatch, fetcher, response=None, error=None):
    def fake_get(url, timeout=None, headers=None):
        if error is not None:
            raise error
        return response

    monkeypatch.setattr(fetcher._session, "get", fake_get)


class TestStatusHandling:
    @pytest.mark.parametrize("status", [200, 201, 203, 299])
    def test_any_2xx_is_accepted(self, monkeypatch, fetcher, status):
        _serve(monkeypatch, fetcher, FakeResponse(status, text="<html></html>"))
        assert fetcher.get_text("https://example.com/listing") == "<html></html>"

    @pytest.mark.parametrize("status", [301, 404, 500])
    def test_non_2xx_returns_none(self, monkeypatch, fetcher, status):
        _serve(monkeypatch, fetcher, FakeResponse(status))
        assert fetcher.get("https://example.com/listing") is None


class TestFailures:
    def test_timeout_returns_none(self, monkeypatch, fetcher):
        _serve(monkeypatch, fetcher, error=requests.exceptions.Timeout())
        assert fetcher.get_text("https://example.com/slow") is None

    def test_connection_error_returns_none(self, monkeypatch, fetcher):
        _serve(monkeypatch, fetcher, error=requests.exceptions.ConnectionError("refused"))
        assert fetcher.get_json("https://example.com/wp-json/wp/v2/property") is None

    def test_invalid_json_returns_none(self, monkeypatch, fetcher):
        _serve(monkeypatch, fetcher, FakeResponse(200, text="not json"))
        assert fetcher.get_json("https://example.com/wp-json/wp/v2/property") is None

    def test_json_payload(self, monkeypatch, fetcher):
        _serve(monkeypatch, fetcher, FakeResponse(200, payload=[{"id": 1}]))
        assert fetcher.get_json("https://example.com/wp-json/wp/v2/property") == [{"id": 1}]
