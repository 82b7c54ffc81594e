# SPDX-License-Identifier: Apache-2.0
"""Resource façades exposed as attributes of :class:`stockalert.StockAlert`."""

from .alerts import AlertPager, AlertsResource
from .api_keys import ApiKeysResource
from .base import BaseResource
from .stocks import StocksResource
from .user import UserResource
from .watchlist import WatchlistResource
from .webhooks import WebhooksResource

__all__ = [
    "AlertPager",
    "AlertsResource",
    "ApiKeysResource",
    "BaseResource",
    "StocksResource",
    "UserResource",
    "WatchlistResource",
    "WebhooksResource",
]
