# SPDX-License-Identifier: Apache-2.0
"""Masking utilities for API keys and bearer tokens."""

from __future__ import annotations

from typing import Optional


def mask(value: Optional[str], head: int = 6, tail: int = 4) -> str:
    """Mask a credential, keeping a short prefix and suffix.

    Args:
        value: The secret string to mask
        head: Number of leading characters to keep (default: 6)
        tail: Number of trailing characters to keep (default: 4)

    Returns:
        ``"<head>...<tail>"``, or ``"sk_***"`` for short/empty values

    Examples:
        >>> mask("sk_test_key_123")
        'sk_tes..._123'
        >>> mask("sk_short")
        'sk_***'
        >>> mask(None)
        'sk_***'
    """
    if not value or len(value) <= head + 2:
        return "sk_***"
    return f"{value[:head]}...{value[-tail:]}"


def safe_for_log(msg: str, *secrets: Optional[str]) -> str:
    """Replace any secrets in a log message with masked versions.

    Args:
        msg: The log message that may contain secrets
        *secrets: Secret strings to mask; ``None`` entries are ignored

    Returns:
        Log message with all secrets replaced by masked versions

    Examples:
        >>> safe_for_log("key sk_live_abcdef123456 rejected", "sk_live_abcdef123456")
        'key sk_liv...3456 rejected'
    """
    for secret in secrets:
        if secret:
            msg = msg.replace(secret, mask(secret))
    return msg
