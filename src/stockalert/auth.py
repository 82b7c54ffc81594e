from __future__ import annotations

# SPDX-License-Identifier: Apache-2.0
import abc
from typing import Mapping, Optional

from .models import ClientConfig


class AuthStrategy(abc.ABC):
    """Base class for authentication strategies."""

    @abc.abstractmethod
    def apply(self, headers: dict[str, str]) -> None:
        """Add auth information to request headers."""
        ...


class ApiKeyAuth(AuthStrategy):
    """``X-API-Key`` header auth used by server-side integrations."""

    def __init__(self, api_key: str) -> None:
        self.api_key = api_key

    def apply(self, headers: dict[str, str]) -> None:
        headers["X-API-Key"] = self.api_key


class BearerTokenAuth(AuthStrategy):
    """``Authorization: Bearer`` auth for session tokens."""

    def __init__(self, token: str) -> None:
        self.token = token

    def apply(self, headers: dict[str, str]) -> None:
        headers["Authorization"] = f"Bearer {self.token}"


class NoAuth(AuthStrategy):
    """Leaves headers untouched; used when the caller supplies Authorization."""

    def apply(self, headers: dict[str, str]) -> None:
        pass


def resolve_auth(
    config: ClientConfig, override_headers: Optional[Mapping[str, str]] = None
) -> AuthStrategy:
    """Pick exactly one auth strategy for a request.

    A caller-supplied ``Authorization`` header wins; otherwise the bearer token
    is preferred over the API key.
    """
    if override_headers and any(k.lower() == "authorization" for k in override_headers):
        return NoAuth()
    if config.bearer_token:
        return BearerTokenAuth(config.bearer_token)
    if config.api_key:
        return ApiKeyAuth(config.api_key)
    return NoAuth()


__all__ = ["AuthStrategy", "ApiKeyAuth", "BearerTokenAuth", "NoAuth", "resolve_auth"]
