# SPDX-License-Identifier: Apache-2.0
"""Exception hierarchy for the StockAlert client.

Every exception carries a ``kind`` discriminator so calling code can branch
on it directly::

    try:
        await client.alerts.retrieve(alert_id)
    except StockAlertError as err:
        match err.kind:
            case ErrorKind.RATE_LIMIT:
                ...
            case ErrorKind.API if err.status_code == 404:
                ...
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional


class ErrorKind(str, Enum):
    """Discriminator shared by every StockAlert exception."""

    VALIDATION = "validation"
    AUTHENTICATION = "authentication"
    RATE_LIMIT = "rate_limit"
    API = "api"
    NETWORK = "network"


class StockAlertError(Exception):
    """Base class for all StockAlert errors."""

    kind: Optional[ErrorKind] = None

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    @property
    def retryable(self) -> bool:
        """Whether the request engine may retry after this error."""
        return False


class ValidationError(StockAlertError):
    """Caller-supplied input violates a contract. Raised before any network call."""

    kind = ErrorKind.VALIDATION


class ApiError(StockAlertError):
    """Non-2xx response, or a 2xx response whose envelope reports failure."""

    kind = ErrorKind.API

    def __init__(
        self,
        message: str,
        status_code: int,
        response: Any = None,
        retryable: Optional[bool] = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.response = response
        self._retryable = retryable

    @property
    def retryable(self) -> bool:
        if self._retryable is not None:
            return self._retryable
        return self.status_code >= 500

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, status_code={self.status_code})"


class AuthenticationError(ApiError):
    """The server rejected the credentials (HTTP 401)."""

    kind = ErrorKind.AUTHENTICATION

    def __init__(self, message: str = "Invalid API key", response: Any = None) -> None:
        super().__init__(message, 401, response)

    @property
    def retryable(self) -> bool:
        return False


class RateLimitError(ApiError):
    """HTTP 429 from the server, or a client-side cooldown still in effect.

    Args:
        message: Human readable description.
        retry_after: Seconds until the next request is allowed, when known.
    """

    kind = ErrorKind.RATE_LIMIT

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        retry_after: Optional[float] = None,
        response: Any = None,
    ) -> None:
        super().__init__(message, 429, response)
        self.retry_after = retry_after

    @property
    def retryable(self) -> bool:
        return True


class NetworkError(StockAlertError):
    """Transport failure: timeout, connection error or an undecodable body."""

    kind = ErrorKind.NETWORK

    def __init__(self, message: str = "Network request failed", retryable: bool = True) -> None:
        super().__init__(message)
        self._retryable = retryable

    @property
    def retryable(self) -> bool:
        return self._retryable


__all__ = [
    "ErrorKind",
    "StockAlertError",
    "ValidationError",
    "ApiError",
    "AuthenticationError",
    "RateLimitError",
    "NetworkError",
]
