# SPDX-License-Identifier: Apache-2.0
"""Environment settings for the StockAlert client.

Settings are read from environment variables prefixed with ``STOCKALERT_``
(for example ``STOCKALERT_API_KEY``) and validated by pydantic-settings.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .models import DEFAULT_BASE_URL, DEFAULT_MAX_RETRIES, DEFAULT_TIMEOUT_MS, DEFAULT_USER_AGENT


class StockAlertSettings(BaseSettings):
    """StockAlert API settings.

    Environment Variables:
        STOCKALERT_API_KEY: API key from the StockAlert dashboard (sk_...)
        STOCKALERT_BEARER_TOKEN: Session token, used instead of the API key when set
        STOCKALERT_BASE_URL: API base URL
        STOCKALERT_TIMEOUT: Per-attempt timeout in milliseconds
        STOCKALERT_MAX_RETRIES: Retry ceiling for transient failures
        STOCKALERT_DEBUG: Enable request logging
        STOCKALERT_USER_AGENT: User-Agent header value
    """

    model_config = SettingsConfigDict(env_prefix="STOCKALERT_", extra="ignore")

    api_key: Optional[str] = Field(None, description="StockAlert API key")
    bearer_token: Optional[str] = Field(None, description="Session bearer token")
    base_url: str = Field(DEFAULT_BASE_URL, description="StockAlert API base URL")
    timeout: int = Field(DEFAULT_TIMEOUT_MS, description="Request timeout in milliseconds")
    max_retries: int = Field(DEFAULT_MAX_RETRIES, description="Maximum retry attempts")
    debug: bool = False
    user_agent: str = DEFAULT_USER_AGENT

    def client_options(self) -> Dict[str, Any]:
        """Return keyword arguments accepted by :class:`stockalert.StockAlert`."""
        return self.model_dump()


__all__ = ["StockAlertSettings"]
