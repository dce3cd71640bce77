"""Pytest configuration and fixtures."""

import pytest

from docset_mcp.errors import FetchFailure


class FakeFetcher:
    """In-memory ``Fetcher``: maps URLs to bodies or HTTP status codes.

    Unknown URLs fail with 404. Every requested URL is recorded in
    ``calls`` (with its headers in ``headers``) in request order.
    """

    def __init__(self, pages: dict[str, str | int] | None = None):
        self.pages = dict(pages or {})
        self.calls: list[str] = []
        self.headers: list[dict[str, str]] = []

    async def fetch_text(self, url: str, headers: dict[str, str]) -> str:
        self.calls.append(url)
        self.headers.append(dict(headers))
        body = self.pages.get(url, 404)
        if isinstance(body, int):
            raise FetchFailure(url, status=body, reason="Not Found")
        return body


@pytest.fixture
def fake_fetcher():
    """Factory for ``FakeFetcher`` instances.

    Example usage::

        async def test_something(fake_fetcher):
            fetcher = fake_fetcher({"https://docs.example.com/": "<html>...</html>"})
            doc = await resolve_document(request, fetcher=fetcher)
    """
    return FakeFetcher


@pytest.fixture
def fixed_user_agent():
    """User-agent supplier returning a constant string."""
    return lambda: "docset-tests/1.0"


@pytest.fixture
def sample_base_url():
    """Sample documentation base URL."""
    return "https://docs.example.com"
