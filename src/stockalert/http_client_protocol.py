# SPDX-License-Identifier: Apache-2.0
"""HTTP client protocol for dependency injection."""

from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol, runtime_checkable

import httpx


@runtime_checkable
class HttpResponse(Protocol):
    """Protocol for HTTP response objects.

    ``headers`` must support case-insensitive lookup (``httpx.Headers`` does).
    """

    status_code: int
    headers: Mapping[str, str]
    text: str

    def json(self) -> Any:
        """Parse response as JSON."""
        ...


@runtime_checkable
class AsyncHttpClientProtocol(Protocol):
    """Protocol for async HTTP client implementations.

    This protocol allows for dependency injection of HTTP clients,
    enabling tests to inject fake transports instead of hitting the network.
    """

    async def request(
        self,
        method: str,
        url: str,
        headers: Optional[Mapping[str, str]] = None,
        json: Any = None,
        timeout: Optional[float] = None,
    ) -> HttpResponse:
        """Send a request.

        Args:
            method: HTTP verb
            url: Fully resolved request URL, query string included
            headers: Request headers
            json: JSON-serialisable body, or ``None`` for no body
            timeout: Request timeout in seconds

        Returns:
            HttpResponse: Response object with status, headers, and body
        """
        ...

    async def aclose(self) -> None:
        """Release pooled connections."""
        ...


class AsyncHttpxClientAdapter:
    """Adapter to make httpx.AsyncClient compatible with AsyncHttpClientProtocol.

    The underlying ``httpx.AsyncClient`` is created lazily on first use so the
    adapter can be constructed outside a running event loop.
    """

    def __init__(self, httpx_client: Optional[httpx.AsyncClient] = None):
        self._client = httpx_client
        self._owns_client = httpx_client is None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient()
        return self._client

    async def request(
        self,
        method: str,
        url: str,
        headers: Optional[Mapping[str, str]] = None,
        json: Any = None,
        timeout: Optional[float] = None,
    ) -> httpx.Response:
        """Send request using httpx."""
        return await self.client.request(
            method,
            url,
            headers=dict(headers or {}),
            json=json,
            timeout=timeout,
        )

    async def aclose(self) -> None:
        # Injected clients belong to the caller.
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None


def get_default_async_http_client() -> AsyncHttpClientProtocol:
    """Get default async HTTP client implementation."""
    return AsyncHttpxClientAdapter()


__all__ = [
    "HttpResponse",
    "AsyncHttpClientProtocol",
    "AsyncHttpxClientAdapter",
    "get_default_async_http_client",
]
