# SPDX-License-Identifier: Apache-2.0
"""Fakes shared by the StockAlert test suite."""

from __future__ import annotations

from .api import (
    ALERT_ID,
    API_KEY,
    FakeClock,
    FakeStockAlertApi,
    RecordingSleep,
    ResponseSpec,
    envelope,
)

__all__ = [
    "ALERT_ID",
    "API_KEY",
    "FakeClock",
    "FakeStockAlertApi",
    "RecordingSleep",
    "ResponseSpec",
    "envelope",
]
