"""Webhook delivery of pipeline events."""

from typing import Optional

import httpx
import structlog

from realtor_scraper.engines.http_client import ManagedHttpClient
from realtor_scraper.engines.pipeline.models import PipelineEvent
from realtor_scraper.errors import DeliveryError

logger = structlog.get_logger()


class WebhookEmitter:
    """Posts events to the caller's webhook, best-effort.

    A failed delivery is logged and dropped: no retry, no exception to the
    caller. Event ordering is the caller's responsibility; ``emit`` returns
    only after the POST has finished, so sequential calls deliver in order.
    """

    def __init__(
        self,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._http = ManagedHttpClient(timeout=timeout, transport=transport)
        self.delivered = 0
        self.failed = 0

    async def _post(self, webhook_url: str, event: PipelineEvent) -> None:
        client = await self._http.get_client()
        try:
            response = await client.post(
                webhook_url,
                json=event.to_payload(),
            )
        except httpx.HTTPError as e:
            raise DeliveryError(f"{e.__class__.__name__}: {e}") from e

        if not response.is_success:
            raise DeliveryError(f"webhook responded {response.status_code}")

    async def emit(self, webhook_url: str, event: PipelineEvent) -> bool:
        """Deliver one event; True when the webhook accepted it."""
        if not webhook_url:
            return False

        try:
            await self._post(webhook_url, event)
        except DeliveryError as e:
            self.failed += 1
            logger.warning("Webhook POST failed", event_type=event.event, error=str(e))
            return False
        except Exception as e:
            self.failed += 1
            logger.error("Webhook POST error", event_type=event.event, error=str(e))
            return False

        self.delivered += 1
        logger.debug("Webhook delivered", event_type=event.event)
        return True

    async def close(self) -> None:
        await self._http.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
        return False
