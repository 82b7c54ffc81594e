# SPDX-License-Identifier: Apache-2.0
"""HMAC-SHA256 signatures for inbound StockAlert webhooks.

Two signing modes are accepted:

* timestamped: ``HMAC(secret, "{timestamp}.{payload}")`` delivered as
  ``sha256=<hex>`` together with the ``X-StockAlert-Timestamp`` header;
* legacy: ``HMAC(secret, payload)`` as bare hex, without timestamp binding.

Timestamp freshness is not checked here; callers wanting replay protection
must compare the timestamp against their own clock.
"""

from __future__ import annotations

import hashlib
import hmac
import re
from typing import Optional, Union

SIGNATURE_HEADER = "X-StockAlert-Signature"
TIMESTAMP_HEADER = "X-StockAlert-Timestamp"
SIGNATURE_PREFIX = "sha256="

_HEX = re.compile(r"^(?:[0-9a-fA-F]{2})+$")

Payload = Union[bytes, bytearray, memoryview, str]
Timestamp = Union[str, int, float]


def _payload_text(payload: Payload) -> Optional[str]:
    if isinstance(payload, str):
        return payload
    if isinstance(payload, (bytes, bytearray, memoryview)):
        try:
            return bytes(payload).decode("utf-8")
        except UnicodeDecodeError:
            return None
    return None


def _timestamp_text(timestamp: Optional[Timestamp]) -> Optional[str]:
    if timestamp is None or isinstance(timestamp, bool):
        return None
    if isinstance(timestamp, float) and timestamp.is_integer():
        return str(int(timestamp))
    if isinstance(timestamp, (int, float)):
        return str(timestamp)
    if isinstance(timestamp, str) and timestamp.strip():
        return timestamp.strip()
    return None


def _digest(text: str, secret: str, timestamp: Optional[str]) -> bytes:
    message = f"{timestamp}.{text}" if timestamp is not None else text
    return hmac.new(secret.encode("utf-8"), message.encode("utf-8"), hashlib.sha256).digest()


def sign_payload(payload: Payload, secret: str, timestamp: Optional[Timestamp] = None) -> str:
    """Compute the signature StockAlert sends for ``payload``.

    Returns ``sha256=<hex>`` when a timestamp is given, bare hex otherwise.
    """
    text = _payload_text(payload)
    if text is None:
        raise TypeError("payload must be str or UTF-8 bytes")
    ts = _timestamp_text(timestamp)
    if timestamp is not None and ts is None:
        raise ValueError("timestamp must be a non-empty string or a number")
    hexdigest = _digest(text, secret, ts).hex()
    return f"{SIGNATURE_PREFIX}{hexdigest}" if ts is not None else hexdigest


def verify_signature(
    payload: Payload,
    signature: str,
    secret: str,
    timestamp: Optional[Timestamp] = None,
) -> bool:
    """Check a webhook signature in constant time.

    Args:
        payload: Raw request body, exactly as received.
        signature: Signature header value, with or without ``sha256=``.
        secret: The webhook's signing secret.
        timestamp: Timestamp header value; omit (``None``) for legacy
            signatures. An empty value is rejected, never treated as legacy.

    Returns:
        True if the signature matches. Malformed input of any kind yields
        False; this function never raises.
    """
    text = _payload_text(payload)
    if not text or not isinstance(signature, str) or not isinstance(secret, str) or not secret:
        return False

    provided = signature.strip()
    if provided.lower().startswith(SIGNATURE_PREFIX):
        provided = provided[len(SIGNATURE_PREFIX):]
    if not _HEX.match(provided):
        return False

    # only an omitted timestamp selects legacy mode
    ts = _timestamp_text(timestamp)
    if timestamp is not None and ts is None:
        return False

    try:
        expected = _digest(text, secret, ts)
    except UnicodeEncodeError:
        return False
    received = bytes.fromhex(provided)
    if len(received) != len(expected):
        return False
    return hmac.compare_digest(received, expected)


__all__ = [
    "SIGNATURE_HEADER",
    "TIMESTAMP_HEADER",
    "sign_payload",
    "verify_signature",
]
