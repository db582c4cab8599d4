from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from backend.internal_core.config import AdminConfig
from backend.internal_core.contracts import (
    EventRecord,
    event_deleted_payload,
    event_updated_payload,
)

logger = logging.getLogger(__name__)


class WebhookNotifier:
    """Best-effort POST of change payloads to the workflow webhooks.

    Each call makes at most one attempt with a fresh client. Non-2xx statuses
    and transport failures are logged and suppressed; nothing is retried.
    An unset URL skips the call entirely.

    Args:
        update_url: Webhook receiving ``event_updated`` payloads.
        delete_url: Webhook receiving ``event_deleted`` payloads.
        transport: Optional httpx transport, used by tests to intercept calls.
    """

    def __init__(
        self,
        update_url: Optional[str] = None,
        delete_url: Optional[str] = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.update_url = update_url
        self.delete_url = delete_url
        self._transport = transport

    @classmethod
    def from_config(cls, config: AdminConfig) -> "WebhookNotifier":
        return cls(update_url=config.update_webhook_url, delete_url=config.delete_webhook_url)

    async def notify_updated(self, record: EventRecord) -> bool:
        return await self._post("update", self.update_url, event_updated_payload(record))

    async def notify_deleted(self, event_id: int) -> bool:
        return await self._post("delete", self.delete_url, event_deleted_payload(event_id))

    async def _post(self, kind: str, url: Optional[str], payload: dict[str, Any]) -> bool:
        if not url:
            logger.debug("webhook not configured, skipping %s notification", kind)
            return False
        try:
            async with httpx.AsyncClient(transport=self._transport) as client:
                response = await client.post(
                    url,
                    json=payload,
                    headers={"Content-Type": "application/json"},
                )
                response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.error(
                "Failed to notify webhook (%s): status %s",
                kind,
                exc.response.status_code,
            )
            return False
        except httpx.HTTPError as exc:
            logger.error("Failed to notify webhook (%s): %s", kind, exc)
            return False
        except Exception:
            # Runs detached from the request; nothing above it may see this.
            logger.exception("Failed to notify webhook (%s)", kind)
            return False
        return True
