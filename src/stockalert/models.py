# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

from typing import Any, Dict, Generic, List, Literal, Optional, TypeVar

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from ._version import __version__

DEFAULT_BASE_URL = "https://stockalert.pro/api/v1"
DEFAULT_TIMEOUT_MS = 30_000
DEFAULT_MAX_RETRIES = 3
DEFAULT_USER_AGENT = f"stockalert-python/{__version__}"

API_KEY_PREFIX = "sk_"
API_KEY_MIN_LENGTH = 10

AlertStatus = Literal["active", "paused", "triggered"]
NotificationChannel = Literal["email", "sms"]
Intention = Literal["buy", "sell"]

ALERT_CONDITIONS = frozenset(
    {
        "price_above",
        "price_below",
        "price_change_up",
        "price_change_down",
        "new_high",
        "new_low",
        "reminder",
        "daily_reminder",
        "ma_crossover_golden",
        "ma_crossover_death",
        "ma_touch_above",
        "ma_touch_below",
        "volume_change",
        "rsi_limit",
        "pe_ratio_below",
        "pe_ratio_above",
        "forward_pe_below",
        "forward_pe_above",
        "earnings_announcement",
        "dividend_ex_date",
        "dividend_payment",
    }
)

# Conditions evaluated against a numeric threshold; every other condition
# must be created without one.
THRESHOLD_CONDITIONS = frozenset(
    {
        "price_above",
        "price_below",
        "price_change_up",
        "price_change_down",
        "volume_change",
        "rsi_limit",
        "pe_ratio_below",
        "pe_ratio_above",
        "forward_pe_below",
        "forward_pe_above",
    }
)


class ClientConfig(BaseModel):
    """Immutable configuration for a StockAlert client.

    ``timeout`` is expressed in milliseconds.
    """

    model_config = ConfigDict(frozen=True)

    api_key: Optional[str] = Field(None, description="StockAlert API key (sk_...)")
    bearer_token: Optional[str] = Field(None, description="Session bearer token")
    base_url: str = DEFAULT_BASE_URL
    timeout: int = Field(DEFAULT_TIMEOUT_MS, description="Per-attempt timeout in milliseconds")
    max_retries: int = Field(DEFAULT_MAX_RETRIES, ge=0)
    debug: bool = False
    user_agent: str = DEFAULT_USER_AGENT

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        if not v:
            raise ValueError("Base URL is required")
        return v[:-1] if v.endswith("/") else v

    @field_validator("timeout")
    @classmethod
    def validate_timeout(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("Timeout must be positive")
        return v

    @model_validator(mode="after")
    def validate_credentials(self) -> ClientConfig:
        if self.api_key:
            key = self.api_key
            if not key.startswith(API_KEY_PREFIX) or len(key) < API_KEY_MIN_LENGTH:
                raise ValueError("Invalid API key format")
        elif not self.bearer_token:
            raise ValueError("API key is required")
        return self


# ---------- response envelope ----------


class Pagination(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    page: Optional[int] = None
    limit: Optional[int] = None
    total: Optional[int] = None
    total_pages: Optional[int] = Field(
        None, validation_alias=AliasChoices("total_pages", "totalPages")
    )


class RateLimitInfo(BaseModel):
    model_config = ConfigDict(extra="allow")

    limit: Optional[int] = None
    remaining: Optional[int] = None
    reset: Optional[float] = None


class ResponseMeta(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    pagination: Optional[Pagination] = None
    rate_limit: Optional[RateLimitInfo] = Field(
        None, validation_alias=AliasChoices("rate_limit", "rateLimit")
    )


T = TypeVar("T")


class ListResponse(BaseModel, Generic[T]):
    """A page of results together with the envelope's ``meta`` block."""

    data: List[T]
    meta: Optional[ResponseMeta] = None


# ---------- resources ----------


class _Resource(BaseModel):
    model_config = ConfigDict(extra="allow")


class Alert(_Resource):
    id: str
    symbol: str
    condition: str
    threshold: Optional[float] = None
    notification: Optional[str] = None
    status: str
    created_at: Optional[str] = None
    initial_price: Optional[float] = None
    parameters: Optional[Dict[str, Any]] = None
    stocks: Optional[Dict[str, Any]] = None


class AlertStatusChange(_Resource):
    alert_id: str
    status: str


class Webhook(_Resource):
    id: str
    url: str
    events: List[str] = Field(default_factory=list)
    secret: Optional[str] = None
    is_active: Optional[bool] = None
    created_at: Optional[str] = None
    last_triggered_at: Optional[str] = None
    failure_count: Optional[int] = None


class WatchlistItem(_Resource):
    id: str
    stock_symbol: str
    intention: Optional[str] = None
    target_price: Optional[float] = None
    notes: Optional[str] = None
    auto_alerts_enabled: Optional[bool] = None
    stocks: Optional[Dict[str, Any]] = None


class Stock(_Resource):
    symbol: str
    name: Optional[str] = None
    last_price: Optional[float] = None


class ApiKey(_Resource):
    id: str
    name: str
    key: Optional[str] = None
    key_prefix: Optional[str] = None
    permissions: Optional[List[str]] = None
    created_at: Optional[str] = None
    last_used_at: Optional[str] = None


class UserSubscription(_Resource):
    account_type: str
    status: str


__all__ = [
    "ClientConfig",
    "ALERT_CONDITIONS",
    "THRESHOLD_CONDITIONS",
    "Pagination",
    "RateLimitInfo",
    "ResponseMeta",
    "ListResponse",
    "Alert",
    "AlertStatusChange",
    "Webhook",
    "WatchlistItem",
    "Stock",
    "ApiKey",
    "UserSubscription",
]
