# SPDX-License-Identifier: Apache-2.0
"""Security utilities for the StockAlert client."""

from .mask import mask, safe_for_log

__all__ = ["mask", "safe_for_log"]
