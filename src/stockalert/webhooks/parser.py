# SPDX-License-Identifier: Apache-2.0
"""Structural validation of inbound webhook payloads."""

from __future__ import annotations

import json
import math
from typing import Any, Literal, Mapping, Optional, Union, get_args

from pydantic import BaseModel, ConfigDict, StrictFloat, StrictInt, StrictStr, field_validator
from pydantic import ValidationError as PydanticValidationError

from ..errors import ValidationError

WebhookEventName = Literal[
    "alert.triggered",
    "alert.created",
    "alert.updated",
    "alert.deleted",
    "alert.paused",
    "alert.activated",
]

WEBHOOK_EVENTS = frozenset(get_args(WebhookEventName))

Number = Union[StrictInt, StrictFloat]

INVALID_JSON = "Invalid JSON payload"
INVALID_STRUCTURE = "Invalid webhook payload structure"


def _is_finite(value: Union[int, float]) -> bool:
    # ints beyond float range overflow instead of reporting infinity
    try:
        return math.isfinite(value)
    except OverflowError:
        return False


class WebhookEventData(BaseModel):
    """Alert details carried by a webhook event."""

    model_config = ConfigDict(frozen=True, extra="allow")

    alert_id: StrictStr
    symbol: StrictStr
    condition: StrictStr
    notification: StrictStr
    status: StrictStr
    threshold: Optional[Number] = None
    triggered_at: Optional[StrictStr] = None
    price: Optional[Number] = None

    @field_validator("threshold", "price")
    @classmethod
    def finite(cls, v: Optional[float]) -> Optional[float]:
        if v is not None and not _is_finite(v):
            raise ValueError("must be finite")
        return v


class WebhookEvent(BaseModel):
    """A verified, immutable webhook event.

    ``timestamp`` is always numeric (epoch milliseconds) even when the wire
    form was a numeric string.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    id: StrictStr
    event: WebhookEventName
    timestamp: Number
    data: WebhookEventData

    @field_validator("timestamp", mode="before")
    @classmethod
    def numeric_timestamp(cls, v: Any) -> Union[int, float]:
        if isinstance(v, bool):
            raise ValueError("timestamp must be numeric")
        if isinstance(v, str):
            text = v.strip()
            try:
                v = int(text)
            except ValueError:
                try:
                    v = float(text)
                except ValueError:
                    raise ValueError("timestamp must be numeric") from None
        if not isinstance(v, (int, float)) or not _is_finite(v):
            raise ValueError("timestamp must be a finite number")
        return v


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Invalid JSON constant: {name}")


def _decode(payload: Union[bytes, bytearray, memoryview, str]) -> Any:
    if isinstance(payload, (bytes, bytearray, memoryview)):
        try:
            payload = bytes(payload).decode("utf-8")
        except UnicodeDecodeError:
            raise ValidationError(INVALID_JSON) from None
    try:
        return json.loads(payload, parse_constant=_reject_constant)
    except ValueError:
        raise ValidationError(INVALID_JSON) from None


def parse_webhook_event(
    payload: Union[bytes, bytearray, memoryview, str, Mapping[str, Any]],
) -> WebhookEvent:
    """Parse and validate a webhook payload.

    Args:
        payload: Raw body (bytes or str) or an already decoded mapping.

    Returns:
        The validated :class:`WebhookEvent`.

    Raises:
        ValidationError: ``"Invalid JSON payload"`` when the body cannot be
            decoded, ``"Invalid webhook payload structure"`` for any schema
            violation. Which field failed is deliberately not reported.
    """
    if isinstance(payload, (bytes, bytearray, memoryview, str)):
        payload = _decode(payload)

    if not isinstance(payload, Mapping):
        raise ValidationError(INVALID_STRUCTURE)
    try:
        return WebhookEvent.model_validate(dict(payload))
    except PydanticValidationError:
        raise ValidationError(INVALID_STRUCTURE) from None


__all__ = [
    "WEBHOOK_EVENTS",
    "WebhookEvent",
    "WebhookEventData",
    "parse_webhook_event",
]
