# SPDX-License-Identifier: Apache-2.0
"""StockAlert API client.

Usage:
    >>> async with StockAlert(api_key="sk_live_...") as client:
    ...     alert = await client.alerts.create("AAPL", "price_above", threshold=200)
    ...     async for alert in client.alerts.iterate(status="active"):
    ...         print(alert.symbol, alert.threshold)
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable
from typing import Any, Callable, Dict, List, Optional, Union

import httpx
from pydantic import ValidationError as PydanticValidationError

from .engine import RequestEngine
from .errors import ValidationError
from .http_client_protocol import AsyncHttpClientProtocol, AsyncHttpxClientAdapter
from .models import ClientConfig
from .resources import (
    AlertsResource,
    ApiKeysResource,
    StocksResource,
    UserResource,
    WatchlistResource,
    WebhooksResource,
)
from .security.mask import mask
from .settings import StockAlertSettings

EVENTS = ("request:start", "request:success", "request:error", "rate:limit")

EventHandler = Callable[[Dict[str, Any]], Any]


class StockAlert:
    """Async client for the StockAlert API.

    Either ``api_key`` (``sk_...``) or ``bearer_token`` is required. The
    client owns its request engine, so pending-request deduplication and
    rate-limit cooldowns are never shared between two client instances.

    Args:
        api_key: StockAlert API key, sent as ``X-API-Key``.
        bearer_token: Session token, sent as ``Authorization: Bearer``;
            preferred over the API key when both are set.
        base_url: API root, trailing slash optional.
        timeout: Per-attempt timeout in milliseconds.
        max_retries: Retries after the first attempt for transient failures.
        debug: Log every request and the masked configuration.
        user_agent: ``User-Agent`` header value.
        http_client: An ``httpx.AsyncClient`` or any
            :class:`AsyncHttpClientProtocol` implementation. Clients passed
            in are not closed by :meth:`aclose`.
        logger: Logger for client and engine output.
        clock: Epoch-seconds clock used for rate-limit cooldowns.
        sleep: Coroutine function used for retry waits.

    Raises:
        ValidationError: Missing or malformed credentials or options.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        *,
        bearer_token: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[int] = None,
        max_retries: Optional[int] = None,
        debug: Optional[bool] = None,
        user_agent: Optional[str] = None,
        http_client: Union[AsyncHttpClientProtocol, httpx.AsyncClient, None] = None,
        logger: Optional[logging.Logger] = None,
        clock: Optional[Callable[[], float]] = None,
        sleep: Optional[Callable[[float], Awaitable[Any]]] = None,
    ) -> None:
        options = {
            "api_key": api_key,
            "bearer_token": bearer_token,
            "base_url": base_url,
            "timeout": timeout,
            "max_retries": max_retries,
            "debug": debug,
            "user_agent": user_agent,
        }
        try:
            self.config = ClientConfig(**{k: v for k, v in options.items() if v is not None})
        except PydanticValidationError as exc:
            raise ValidationError(_first_error(exc)) from None

        self.log = logger or logging.getLogger(__name__)
        self._handlers: Dict[str, List[EventHandler]] = {name: [] for name in EVENTS}

        if isinstance(http_client, httpx.AsyncClient):
            http_client = AsyncHttpxClientAdapter(http_client)
        self._engine = RequestEngine(
            self.config,
            http_client=http_client,
            logger=self.log,
            emit=self._emit,
            clock=clock,
            sleep=sleep,
        )

        self.alerts = AlertsResource(self._engine)
        self.webhooks = WebhooksResource(self._engine)
        self.api_keys = ApiKeysResource(self._engine)
        self.watchlist = WatchlistResource(self._engine)
        self.stocks = StocksResource(self._engine)
        self.user = UserResource(self._engine)

        if self.config.debug:
            self.log.info("StockAlert client initialised: %s", self.get_config().model_dump())

    @classmethod
    def from_env(cls, settings: Optional[StockAlertSettings] = None, **kwargs: Any) -> StockAlert:
        """Build a client from ``STOCKALERT_*`` environment variables.

        Keyword arguments override the environment.
        """
        settings = settings or StockAlertSettings()
        options = settings.client_options()
        options.update(kwargs)
        return cls(**options)

    @property
    def engine(self) -> RequestEngine:
        return self._engine

    def get_config(self) -> ClientConfig:
        """Copy of the configuration with credentials masked."""
        update: Dict[str, Any] = {}
        if self.config.api_key:
            update["api_key"] = mask(self.config.api_key)
        if self.config.bearer_token:
            update["bearer_token"] = mask(self.config.bearer_token)
        return self.config.model_copy(update=update)

    # ---------- events ----------
    def on(self, event: str, handler: EventHandler) -> Callable[[], None]:
        """Register ``handler`` for a lifecycle event and return an unsubscriber.

        Events: ``request:start``, ``request:success``, ``request:error`` and
        ``rate:limit``. Handlers are called synchronously with a dict payload.
        """
        if event not in self._handlers:
            raise ValidationError(f"Unknown event: {event}")
        self._handlers[event].append(handler)

        def unsubscribe() -> None:
            if handler in self._handlers[event]:
                self._handlers[event].remove(handler)

        return unsubscribe

    def _emit(self, event: str, payload: Dict[str, Any]) -> None:
        for handler in list(self._handlers.get(event, ())):
            try:
                handler(payload)
            except Exception:
                self.log.exception("Error in event handler for %s", event)

    # ---------- lifecycle ----------
    async def aclose(self) -> None:
        await self._engine.aclose()

    async def __aenter__(self) -> StockAlert:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    def __repr__(self) -> str:
        return f"StockAlert(base_url={self.config.base_url!r})"


def _first_error(exc: PydanticValidationError) -> str:
    error = exc.errors()[0]
    cause = (error.get("ctx") or {}).get("error")
    if isinstance(cause, Exception) and str(cause):
        return str(cause)
    field = ".".join(str(part) for part in error.get("loc", ()))
    return f"{field}: {error['msg']}" if field else error["msg"]


__all__ = ["StockAlert", "EVENTS"]
