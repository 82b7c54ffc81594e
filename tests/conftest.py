# SPDX-License-Identifier: Apache-2.0
"""Shared test fixtures for the StockAlert test suite.

FIXTURES PROVIDED:
- fake_api: FakeStockAlertApi serving canned envelopes via httpx.MockTransport
- clock / sleep: deterministic time so retry and cooldown tests never wait
- client: StockAlert wired to all of the above
- alert_payload / webhook_payload: realistic response and delivery bodies
"""

from __future__ import annotations

from typing import Any

import pytest

from stockalert import StockAlert
from tests.fakes import ALERT_ID, API_KEY, FakeClock, FakeStockAlertApi, RecordingSleep


@pytest.fixture
def fake_api() -> FakeStockAlertApi:
    return FakeStockAlertApi()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sleep(clock: FakeClock) -> RecordingSleep:
    return RecordingSleep(clock)


@pytest.fixture
async def client(fake_api: FakeStockAlertApi, clock: FakeClock, sleep: RecordingSleep):
    http_client = fake_api.http_client()
    sa = StockAlert(
        api_key=API_KEY,
        base_url="https://api.test/api/v1",
        http_client=http_client,
        clock=clock,
        sleep=sleep,
    )
    yield sa
    await sa.aclose()
    await http_client.aclose()


@pytest.fixture
def alert_payload() -> dict[str, Any]:
    return {
        "id": ALERT_ID,
        "symbol": "AAPL",
        "condition": "price_above",
        "threshold": 200,
        "notification": "email",
        "status": "active",
        "created_at": "2025-01-15T10:00:00Z",
        "initial_price": 185.5,
        "parameters": None,
    }


@pytest.fixture
def webhook_payload() -> dict[str, Any]:
    return {
        "id": "evt_01HQ3Z",
        "event": "alert.triggered",
        "timestamp": 1700000000000,
        "data": {
            "alert_id": ALERT_ID,
            "symbol": "AAPL",
            "condition": "price_above",
            "notification": "email",
            "status": "triggered",
            "threshold": 200,
            "price": 201.25,
            "triggered_at": "2023-11-14T22:13:20Z",
        },
    }
