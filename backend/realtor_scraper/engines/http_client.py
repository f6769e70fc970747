"""httpx client factory for outbound webhook calls.

Webhook consumers are arbitrary caller-supplied URLs, so every client built
here carries the same short timeout, a JSON content type and an identifying
user agent.
"""

from typing import Optional

import httpx

from realtor_scraper import __version__
from realtor_scraper.config import get_settings

# Upper bound on establishing the TCP/TLS connection to a webhook
CONNECT_TIMEOUT_SECONDS = 5.0


def webhook_headers(extra: Optional[dict[str, str]] = None) -> dict[str, str]:
    """Headers sent with every event POST."""
    headers = {
        "User-Agent": f"realtor-scraper/{__version__}",
        "Content-Type": "application/json",
        "Accept": "application/json, text/plain, */*",
    }
    if extra:
        headers.update(extra)
    return headers


def create_http_client(
    timeout: Optional[float] = None,
    headers: Optional[dict[str, str]] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.AsyncClient:
    """
    Build an AsyncClient for webhook delivery.

    Args:
        timeout: Whole-request timeout in seconds. Defaults to
            settings.webhook_timeout_seconds.
        headers: Extra headers merged over the webhook defaults.
        transport: Transport override (httpx.MockTransport in tests).
    """
    total = timeout if timeout is not None else get_settings().webhook_timeout_seconds

    return httpx.AsyncClient(
        timeout=httpx.Timeout(total, connect=min(total, CONNECT_TIMEOUT_SECONDS)),
        headers=webhook_headers(headers),
        transport=transport,
    )


class ManagedHttpClient:
    """
    Lazily created client, reused for every event of a run.

    The owner calls ``close`` once the run's terminal event is sent.
    """

    def __init__(
        self,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = create_http_client(timeout=self._timeout, transport=self._transport)
        return self._client

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None
