"""HttpFetcher — the outbound HTTP capability injected into URL-based strategies.

Rules:
1. Browser-like User-Agent (listing pages often block unknown bots)
2. Retries with exponential backoff: 429/5xx retriable, other 4xx returns None
3. Per-request timeout from settings
4. Never raises: every failure is logged and reported as None
"""
import json
from typing import Any, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from app.config import settings
from app.core.logging import get_logger

logger = get_logger(__name__)


class HttpFetcher:
    """Shared requests.Session with bounded retries; safe to reuse across imports."""

    def __init__(
        self,
        user_agent: Optional[str] = None,
        timeout: Optional[int] = None,
        max_retries: Optional[int] = None,
        backoff_factor: Optional[float] = None,
    ):
        self.user_agent = user_agent or settings.fetch_user_agent
        self.timeout = timeout or settings.request_timeout
        self.max_retries = settings.fetch_max_retries if max_retries is None else max_retries
        self.backoff_factor = settings.fetch_backoff_factor if backoff_factor is None else backoff_factor

        self._session = requests.Session()
        retry_strategy = Retry(
            total=self.max_retries,
            backoff_factor=self.backoff_factor,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["GET"],
            raise_on_status=False,
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        self._session.mount("https://", adapter)
        self._session.mount("http://", adapter)
        self._session.headers.update({
            "User-Agent": self.user_agent,
            "Accept-Language": "en-US,en;q=0.9,tr;q=0.8",
        })

    def get(self, url: str, accept: str = "*/*") -> Optional[requests.Response]:
        """
        Fetch a URL.

        Returns the Response on any 2xx status, or None if:
        - HTTP 4xx/5xx after retries
        - Timeout or connection error
        """
        try:
            response = self._session.get(url, timeout=self.timeout, headers={"Accept": accept})
        except requests.exceptions.Timeout:
            logger.error("Timeout (%ds) fetching %s", self.timeout, url, extra={"url": url})
            return None
        except requests.exceptions.RequestException as e:
            logger.error("Request error for %s: %s", url, str(e), extra={"url": url})
            return None

        if 200 <= response.status_code < 300:
            return response
        logger.warning(
            "HTTP %d for %s", response.status_code, url,
            extra={"url": url, "status": response.status_code},
        )
        return None

    def get_text(self, url: str) -> Optional[str]:
        response = self.get(url, accept="text/html,application/xhtml+xml,*/*;q=0.8")
        if response is None:
            return None
        return response.text

    def get_json(self, url: str) -> Optional[Any]:
        """Fetch and decode a JSON document; None on HTTP failure or invalid JSON."""
        response = self.get(url, accept="application/json")
        if response is None:
            return None
        try:
            return response.json()
        except (ValueError, json.JSONDecodeError):
            logger.warning("Invalid JSON from %s", url, extra={"url": url})
            return None

    def close(self) -> None:
        """Close the HTTP session."""
        self._session.close()
