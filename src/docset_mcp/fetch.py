"""HTTP fetch capability injected into the docset pipeline.

The pipeline only depends on the ``Fetcher`` protocol. ``HttpFetcher`` is
the default implementation: httpx, per-host request spacing, and the SSRF
guard from ``docset_mcp.security``.
"""

import asyncio
import random
import time
from typing import Protocol
from urllib.parse import urlsplit

import httpx
from loguru import logger

from docset_mcp.config import settings
from docset_mcp.errors import FetchFailure
from docset_mcp.security import is_safe_url

USER_AGENTS: tuple[str, ...] = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.4 Safari/605.1.15",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 14.4; rv:125.0) "
    "Gecko/20100101 Firefox/125.0",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:125.0) "
    "Gecko/20100101 Firefox/125.0",
)


def random_user_agent() -> str:
    """Return the configured user agent, or a random browser one."""
    if settings.user_agent:
        return settings.user_agent
    return random.choice(USER_AGENTS)


class Fetcher(Protocol):
    """Protocol for text fetchers used by the docset pipeline."""

    async def fetch_text(self, url: str, headers: dict[str, str]) -> str:
        """Fetch *url* and return the decoded body.

        Raises:
            FetchFailure: On non-2xx responses or network errors.
        """
        ...


class HttpFetcher:
    """httpx-backed fetcher with per-host request spacing."""

    def __init__(
        self,
        timeout: float | None = None,
        min_interval: float | None = None,
        allow_private_hosts: bool | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.timeout = settings.fetch_timeout if timeout is None else timeout
        self.min_interval = (
            settings.fetch_min_interval if min_interval is None else min_interval
        )
        self.allow_private_hosts = (
            settings.allow_private_hosts
            if allow_private_hosts is None
            else allow_private_hosts
        )
        self._transport = transport
        self._host_locks: dict[str, asyncio.Lock] = {}
        self._last_request: dict[str, float] = {}

    async def _throttle(self, host: str) -> None:
        if self.min_interval <= 0:
            return
        lock = self._host_locks.setdefault(host, asyncio.Lock())
        async with lock:
            elapsed = time.monotonic() - self._last_request.get(host, 0.0)
            if elapsed < self.min_interval:
                await asyncio.sleep(self.min_interval - elapsed)
            self._last_request[host] = time.monotonic()

    async def fetch_text(self, url: str, headers: dict[str, str]) -> str:
        if not self.allow_private_hosts and not is_safe_url(url):
            raise FetchFailure(url, reason="blocked unsafe URL")

        await self._throttle((urlsplit(url).hostname or "").lower())

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=True,
                transport=self._transport,
            ) as client:
                resp = await client.get(url, headers=headers)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.debug(f"Network error fetching {url}: {e}")
            raise FetchFailure(url, reason=str(e) or type(e).__name__) from e

        if not resp.is_success:
            raise FetchFailure(url, status=resp.status_code, reason=resp.reason_phrase)

        # Redirects may land on a private address; re-check the final hop.
        final_url = str(resp.url)
        if (
            not self.allow_private_hosts
            and final_url != url
            and not is_safe_url(final_url)
        ):
            raise FetchFailure(url, reason=f"redirected to unsafe URL {final_url}")

        return resp.text


_default_fetcher: HttpFetcher | None = None


def get_default_fetcher() -> HttpFetcher:
    """Return the process-wide default ``HttpFetcher``, creating it lazily."""
    global _default_fetcher
    if _default_fetcher is None:
        _default_fetcher = HttpFetcher()
    return _default_fetcher
