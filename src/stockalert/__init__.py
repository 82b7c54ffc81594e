# SPDX-License-Identifier: Apache-2.0
"""Async Python client for the StockAlert API."""

from __future__ import annotations

from ._version import __version__
from .client import EVENTS, StockAlert
from .errors import (
    ApiError,
    AuthenticationError,
    ErrorKind,
    NetworkError,
    RateLimitError,
    StockAlertError,
    ValidationError,
)
from .models import (
    Alert,
    AlertStatusChange,
    ApiKey,
    ClientConfig,
    ListResponse,
    ResponseMeta,
    Stock,
    UserSubscription,
    WatchlistItem,
    Webhook,
)
from .resources import AlertPager
from .settings import StockAlertSettings
from .webhooks import (
    SIGNATURE_HEADER,
    TIMESTAMP_HEADER,
    WEBHOOK_EVENTS,
    WebhookEvent,
    WebhookEventData,
    parse_webhook_event,
    sign_payload,
    verify_signature,
)

__all__ = [
    "__version__",
    "StockAlert",
    "StockAlertSettings",
    "ClientConfig",
    "EVENTS",
    # errors
    "StockAlertError",
    "ErrorKind",
    "ValidationError",
    "ApiError",
    "AuthenticationError",
    "RateLimitError",
    "NetworkError",
    # models
    "Alert",
    "AlertStatusChange",
    "AlertPager",
    "ApiKey",
    "ListResponse",
    "ResponseMeta",
    "Stock",
    "UserSubscription",
    "WatchlistItem",
    "Webhook",
    # webhooks
    "SIGNATURE_HEADER",
    "TIMESTAMP_HEADER",
    "WEBHOOK_EVENTS",
    "WebhookEvent",
    "WebhookEventData",
    "parse_webhook_event",
    "sign_payload",
    "verify_signature",
]
