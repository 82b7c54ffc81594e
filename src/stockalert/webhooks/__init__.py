# SPDX-License-Identifier: Apache-2.0
"""Inbound webhook helpers: signature verification and payload parsing.

These functions are usable without a client instance, e.g. inside a web
framework request handler::

    if not verify_signature(body, request.headers[SIGNATURE_HEADER], secret,
                            request.headers.get(TIMESTAMP_HEADER)):
        return 401
    event = parse_webhook_event(body)
"""

from .parser import WEBHOOK_EVENTS, WebhookEvent, WebhookEventData, parse_webhook_event
from .signature import SIGNATURE_HEADER, TIMESTAMP_HEADER, sign_payload, verify_signature

__all__ = [
    "WEBHOOK_EVENTS",
    "WebhookEvent",
    "WebhookEventData",
    "parse_webhook_event",
    "SIGNATURE_HEADER",
    "TIMESTAMP_HEADER",
    "sign_payload",
    "verify_signature",
]
