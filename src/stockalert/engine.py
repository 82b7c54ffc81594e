# SPDX-License-Identifier: Apache-2.0
"""Request execution engine.

Turns a logical resource call (method, path, query, body) into a reliable HTTP
exchange: auth header selection, per-attempt timeouts, retry with backoff,
rate-limit cooldown tracking, in-flight GET deduplication, envelope unwrapping
and error classification.

Usage:
    >>> engine = RequestEngine(ClientConfig(api_key="sk_test_key_123"))
    >>> alerts = await engine.execute("GET", "/alerts", params={"limit": 10})
"""

from __future__ import annotations

import asyncio
import logging
import math
import random
import time
from collections.abc import Awaitable, Mapping
from email.utils import parsedate_to_datetime
from typing import Any, Callable, Dict, Optional

import httpx

from .auth import resolve_auth
from .errors import (
    ApiError,
    AuthenticationError,
    NetworkError,
    RateLimitError,
    StockAlertError,
)
from .http_client_protocol import AsyncHttpClientProtocol, HttpResponse
from .metrics import (
    DEDUPLICATED_REQUESTS,
    ERRORS,
    LATENCY,
    RATE_LIMIT_REJECTIONS,
    REQUESTS,
    RETRIES,
)
from .models import ClientConfig
from .security.mask import safe_for_log

# Cooldown applied when a 429 carries neither Retry-After nor X-RateLimit-Reset
DEFAULT_RATE_LIMIT_COOLDOWN = 60.0

BACKOFF_BASE_MS = 1_000
BACKOFF_MAX_MS = 10_000
BACKOFF_JITTER = 0.3

EventEmitter = Callable[[str, Dict[str, Any]], None]
QueryValue = Any


class RequestEngine:
    """Executes StockAlert API calls for one client instance.

    The pending-request registry and the rate-limit map are owned by the
    engine instance; two clients in one process never share cooldowns.

    Args:
        config: Validated client configuration.
        http_client: Async HTTP client; defaults to an httpx adapter.
        logger: Logger used for retry and debug output.
        emit: Callback receiving ``(event_name, payload)`` lifecycle events.
        clock: Returns the current epoch time in seconds.
        sleep: Coroutine function used for backoff waits.
    """

    def __init__(
        self,
        config: ClientConfig,
        http_client: Optional[AsyncHttpClientProtocol] = None,
        logger: Optional[logging.Logger] = None,
        emit: Optional[EventEmitter] = None,
        clock: Optional[Callable[[], float]] = None,
        sleep: Optional[Callable[[float], Awaitable[Any]]] = None,
    ) -> None:
        self.config = config
        self.log = logger or logging.getLogger(__name__)
        self._emit = emit or (lambda *a, **k: None)
        self._clock = clock or time.time
        self._sleep = sleep or asyncio.sleep

        if http_client is None:
            from .http_client_protocol import get_default_async_http_client

            http_client = get_default_async_http_client()
        self.http_client = http_client

        # fingerprint -> in-flight GET task
        self._pending: Dict[str, asyncio.Future] = {}
        # shared task -> number of callers still awaiting it
        self._waiters: Dict[asyncio.Future, int] = {}
        # origin -> epoch ms before which no request may be sent
        self._rate_limit_reset: Dict[str, float] = {}

    # ---------- public ----------
    async def execute(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Mapping[str, QueryValue]] = None,
        headers: Optional[Mapping[str, str]] = None,
        body: Any = None,
        timeout: Optional[int] = None,
        retries: Optional[int] = None,
        signal: Optional[asyncio.Event] = None,
    ) -> Any:
        """Execute a call and return the unwrapped payload.

        Args:
            method: HTTP verb.
            path: Path relative to the base URL (``/alerts``).
            params: Query parameters; ``None`` and empty-string values are dropped.
            headers: Extra headers. An ``Authorization`` header disables built-in auth.
            body: JSON body for non-GET requests.
            timeout: Per-attempt timeout in milliseconds.
            retries: Retry ceiling overriding ``config.max_retries``.
            signal: Event that aborts the whole operation, retries included.

        Returns:
            The envelope's ``data``, or ``{"data": ..., "meta": ...}`` when the
            envelope carries ``meta``.

        Raises:
            RateLimitError: Cooldown in effect, or 429 after retries.
            AuthenticationError: 401 response.
            ApiError: Other non-2xx response or failed envelope.
            NetworkError: Timeout, transport failure or abort.
        """
        method = method.upper()
        url = self.build_url(path, params)
        fingerprint = f"{method}:{url}"

        if method == "GET":
            pending = self._pending.get(fingerprint)
            if pending is not None:
                DEDUPLICATED_REQUESTS.inc()
                if self.config.debug:
                    self.log.info("Deduplicating request: %s", fingerprint)
                return await self._join(pending)

        self._check_rate_limit(url)

        task = asyncio.ensure_future(
            self._run(method, url, path, headers, body, timeout, retries, signal)
        )
        if method == "GET":
            self._pending[fingerprint] = task
            task.add_done_callback(lambda done: self._forget(fingerprint, done))
            return await self._join(task)
        return await task

    def build_url(self, path: str, params: Optional[Mapping[str, QueryValue]] = None) -> httpx.URL:
        """Resolve ``path`` and ``params`` against the configured base URL."""
        if not path.startswith("/"):
            path = f"/{path}"
        query: Dict[str, str] = {}
        for key, value in (params or {}).items():
            if value is None or value == "":
                continue
            query[key] = _query_string(value)
        url = httpx.URL(f"{self.config.base_url}{path}")
        if query:
            url = url.copy_merge_params(query)
        return url

    @staticmethod
    def origin(url: httpx.URL) -> str:
        """Scheme and host (with non-default port) of ``url``."""
        port = f":{url.port}" if url.port else ""
        return f"{url.scheme}://{url.host}{port}"

    def rate_limit_reset(self, url: httpx.URL) -> Optional[float]:
        """Epoch ms of the stored cooldown for ``url``'s origin, if any."""
        return self._rate_limit_reset.get(self.origin(url))

    @property
    def pending_requests(self) -> int:
        return len(self._pending)

    async def aclose(self) -> None:
        await self.http_client.aclose()

    # ---------- execution ----------
    def _forget(self, fingerprint: str, task: asyncio.Future) -> None:
        if self._pending.get(fingerprint) is task:
            del self._pending[fingerprint]

    async def _join(self, task: asyncio.Future) -> Any:
        """Await a shared GET without letting one caller's cancellation reach the others.

        The shared task is cancelled only once its last waiter has gone.
        """
        self._waiters[task] = self._waiters.get(task, 0) + 1
        try:
            return await asyncio.shield(task)
        finally:
            remaining = self._waiters.pop(task) - 1
            if remaining:
                self._waiters[task] = remaining
            elif not task.done():
                task.cancel()

    async def _run(
        self,
        method: str,
        url: httpx.URL,
        path: str,
        headers: Optional[Mapping[str, str]],
        body: Any,
        timeout: Optional[int],
        retries: Optional[int],
        signal: Optional[asyncio.Event],
    ) -> Any:
        if signal is None:
            return await self._with_retries(method, url, path, headers, body, timeout, retries)

        if signal.is_set():
            raise NetworkError("Request aborted", retryable=False)

        work = asyncio.ensure_future(
            self._with_retries(method, url, path, headers, body, timeout, retries)
        )
        aborted = asyncio.ensure_future(signal.wait())
        try:
            done, _ = await asyncio.wait({work, aborted}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            aborted.cancel()
            if not work.done():
                work.cancel()

        if work in done:
            return work.result()
        error = NetworkError("Request aborted", retryable=False)
        self._emit("request:error", {"method": method, "path": path, "error": error})
        raise error

    async def _with_retries(
        self,
        method: str,
        url: httpx.URL,
        path: str,
        headers: Optional[Mapping[str, str]],
        body: Any,
        timeout: Optional[int],
        retries: Optional[int],
    ) -> Any:
        max_retries = self.config.max_retries if retries is None else max(0, retries)
        timeout_s = (self.config.timeout if timeout is None else timeout) / 1000
        request_headers = self._build_headers(headers)
        payload = body if method not in ("GET", "HEAD") else None

        self._emit("request:start", {"method": method, "path": path})
        started = time.perf_counter()

        attempt = 0
        while True:
            try:
                result = await self._attempt(method, url, request_headers, payload, timeout_s)
            except StockAlertError as exc:
                if not exc.retryable or attempt >= max_retries:
                    self._emit("request:error", {"method": method, "path": path, "error": exc})
                    raise
                delay = self._retry_delay(exc, attempt)
                RETRIES.labels(method=method, reason=exc.kind.value).inc()
                self.log.warning(
                    "Retry %d/%d for %s %s sleeping %.2fs: %s",
                    attempt + 1,
                    max_retries,
                    method,
                    url.path,
                    delay,
                    self._safe(exc.message),
                )
                await self._sleep(delay)
                attempt += 1
            else:
                duration_ms = (time.perf_counter() - started) * 1000
                self._emit(
                    "request:success", {"method": method, "path": path, "duration": duration_ms}
                )
                return result

    async def _attempt(
        self,
        method: str,
        url: httpx.URL,
        headers: Dict[str, str],
        body: Any,
        timeout_s: float,
    ) -> Any:
        REQUESTS.labels(method=method).inc()
        start = time.perf_counter()
        try:
            response = await asyncio.wait_for(
                self.http_client.request(
                    method, str(url), headers=headers, json=body, timeout=timeout_s
                ),
                timeout=timeout_s,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
            ERRORS.labels(method=method, code="timeout").inc()
            raise NetworkError("Request timeout") from exc
        except httpx.RequestError as exc:
            ERRORS.labels(method=method, code="network").inc()
            raise NetworkError(
                self._safe(f"Network request failed - check your connection ({exc})")
            ) from exc
        finally:
            LATENCY.labels(method=method).observe(time.perf_counter() - start)

        if response.status_code >= 400:
            ERRORS.labels(method=method, code=str(response.status_code)).inc()
        if self.config.debug:
            self.log.info(
                "%s %s - %d (%dms)",
                method,
                url.path,
                response.status_code,
                (time.perf_counter() - start) * 1000,
            )
        return self._handle_response(response, url)

    # ---------- response handling ----------
    def _handle_response(self, response: HttpResponse, url: httpx.URL) -> Any:
        status = response.status_code
        content_type = response.headers.get("content-type") or ""
        if "json" not in content_type.lower():
            raise ApiError(
                f"Invalid response content type: {content_type or 'missing'}",
                status,
                response.text,
                retryable=False,
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise NetworkError("Invalid JSON in response body") from exc

        envelope: Dict[str, Any] = payload if isinstance(payload, dict) else {}

        if status == 429:
            retry_after = self._record_rate_limit(url, response.headers)
            self._emit("rate:limit", {"retry_after": retry_after})
            raise RateLimitError(
                _error_message(envelope, "Rate limit exceeded"), retry_after, payload
            )

        if status == 401:
            raise AuthenticationError(_error_message(envelope, "Authentication failed"), payload)

        if not 200 <= status < 300:
            raise ApiError(_error_message(envelope, f"HTTP {status} error"), status, payload)

        if not envelope.get("success") or "data" not in envelope:
            raise ApiError(_error_message(envelope, "Request failed"), status, payload)

        if envelope.get("meta") is not None:
            return {"data": envelope["data"], "meta": envelope["meta"]}
        return envelope["data"]

    # ---------- rate limits ----------
    def _check_rate_limit(self, url: httpx.URL) -> None:
        origin = self.origin(url)
        reset_ms = self._rate_limit_reset.get(origin)
        if reset_ms is None:
            return
        now_ms = self._clock() * 1000
        if now_ms >= reset_ms:
            del self._rate_limit_reset[origin]
            return

        wait_seconds = math.ceil((reset_ms - now_ms) / 1000)
        RATE_LIMIT_REJECTIONS.inc()
        if self.config.debug:
            self.log.info("Rate limit in effect for %s, %ds remaining", origin, wait_seconds)
        raise RateLimitError(
            f"Rate limit in effect. Please wait {wait_seconds} seconds.", wait_seconds
        )

    def _record_rate_limit(self, url: httpx.URL, headers: Mapping[str, str]) -> float:
        """Store the cooldown signalled by a 429 and return it in seconds."""
        now = self._clock()
        retry_after = _parse_retry_after(headers.get("retry-after"), now)
        if retry_after is None:
            reset = _parse_reset(headers.get("x-ratelimit-reset"))
            if reset is not None:
                retry_after = max(0.0, reset - now)
        if retry_after is None:
            retry_after = DEFAULT_RATE_LIMIT_COOLDOWN

        self._rate_limit_reset[self.origin(url)] = (now + retry_after) * 1000
        self.log.warning("Rate limit hit for %s, retry after %.1fs", self.origin(url), retry_after)
        return retry_after

    # ---------- helpers ----------
    def _build_headers(self, override: Optional[Mapping[str, str]]) -> Dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "User-Agent": self.config.user_agent,
        }
        resolve_auth(self.config, override).apply(headers)
        if override:
            headers.update(override)
        return headers

    def _retry_delay(self, exc: StockAlertError, attempt: int) -> float:
        if isinstance(exc, RateLimitError) and exc.retry_after:
            return float(exc.retry_after)
        return self._backoff(attempt)

    @staticmethod
    def _backoff(attempt: int) -> float:
        """Exponential backoff in seconds with up to 30% jitter."""
        base = min(BACKOFF_BASE_MS * 2**attempt, BACKOFF_MAX_MS) / 1000
        return base + random.uniform(0, BACKOFF_JITTER * base)

    def _safe(self, msg: str) -> str:
        return safe_for_log(msg, self.config.api_key, self.config.bearer_token)


def _query_string(value: QueryValue) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ",".join(_query_string(v) for v in value)
    return str(value)


def _error_message(envelope: Mapping[str, Any], default: str) -> str:
    error = envelope.get("error")
    if isinstance(error, str) and error:
        return error
    if isinstance(error, Mapping):
        message = error.get("message")
        if isinstance(message, str) and message:
            return message
    return default


def _parse_retry_after(value: Optional[str], now: float) -> Optional[float]:
    """Retry-After as delta seconds or an HTTP date."""
    if not value:
        return None
    try:
        seconds = float(value)
    except ValueError:
        try:
            seconds = parsedate_to_datetime(value).timestamp() - now
        except (TypeError, ValueError):
            return None
    if not math.isfinite(seconds):
        return None
    return max(0.0, seconds)


def _parse_reset(value: Optional[str]) -> Optional[float]:
    """X-RateLimit-Reset as epoch seconds (or epoch milliseconds)."""
    if not value:
        return None
    try:
        reset = float(value)
    except ValueError:
        return None
    if not math.isfinite(reset):
        return None
    return reset / 1000 if reset > 1e12 else reset


__all__ = ["RequestEngine", "DEFAULT_RATE_LIMIT_COOLDOWN"]
