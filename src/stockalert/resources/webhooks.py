# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, Dict, List, Optional, Union

import httpx

from ..errors import ValidationError
from ..models import ListResponse, Webhook
from ..webhooks.parser import WEBHOOK_EVENTS, WebhookEvent, parse_webhook_event
from ..webhooks.signature import Payload, Timestamp, verify_signature
from .base import BaseResource


class WebhooksResource(BaseResource):
    """Webhook subscriptions plus helpers for handling deliveries."""

    async def list(self) -> ListResponse[Webhook]:
        return self._list(Webhook, await self._get("/webhooks"))

    async def create(self, url: str, events: Sequence[str]) -> Webhook:
        """Subscribe ``url`` to ``events``.

        The returned webhook carries the signing ``secret``; it is only
        shown once, so store it.
        """
        body = {"url": _require_url(url), "events": _require_events(events)}
        return self._model(Webhook, await self._post("/webhooks", body))

    async def retrieve(self, webhook_id: str) -> Webhook:
        webhook_id = self._require_str(webhook_id, "Webhook ID is required")
        return self._model(Webhook, await self._get(f"/webhooks/{self._segment(webhook_id)}"))

    async def remove(self, webhook_id: str) -> Dict[str, Any]:
        webhook_id = self._require_str(webhook_id, "Webhook ID is required")
        data = await self._delete(f"/webhooks/{self._segment(webhook_id)}")
        return data if isinstance(data, dict) else {"result": data}

    async def test(self, url: str) -> Dict[str, Any]:
        """Ask the server to send a test delivery to ``url``."""
        data = await self._post("/webhooks/test", {"url": _require_url(url)})
        return data if isinstance(data, dict) else {"result": data}

    # ---------- delivery helpers ----------
    @staticmethod
    def verify_signature(
        payload: Payload,
        signature: str,
        secret: str,
        timestamp: Optional[Timestamp] = None,
    ) -> bool:
        """See :func:`stockalert.webhooks.verify_signature`."""
        return verify_signature(payload, signature, secret, timestamp)

    @staticmethod
    def parse(payload: Union[Payload, Mapping[str, Any]]) -> WebhookEvent:
        """See :func:`stockalert.webhooks.parse_webhook_event`."""
        return parse_webhook_event(payload)


def _require_url(url: Any) -> str:
    if not isinstance(url, str) or not url.strip():
        raise ValidationError("Webhook URL is required")
    try:
        parsed = httpx.URL(url.strip())
    except httpx.InvalidURL:
        raise ValidationError(f"Invalid webhook URL: {url}") from None
    if parsed.scheme not in ("http", "https") or not parsed.host:
        raise ValidationError("Webhook URL must be an absolute http(s) URL")
    return url.strip()


def _require_events(events: Any) -> List[str]:
    if isinstance(events, str) or not isinstance(events, Sequence) or not events:
        raise ValidationError("At least one webhook event is required")
    unknown = [e for e in events if not isinstance(e, str) or e not in WEBHOOK_EVENTS]
    if unknown:
        raise ValidationError(f"Unknown webhook event: {unknown[0]}")
    return list(events)


__all__ = ["WebhooksResource"]
