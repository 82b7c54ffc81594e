# SPDX-License-Identifier: Apache-2.0
"""Alerts façade: validation, wire mapping, pagination and batch create."""

from __future__ import annotations

import asyncio
import json

import pytest

from stockalert import Alert, AlertPager, ApiError, ValidationError
from tests.fakes import ALERT_ID, envelope


def _alert(alert_payload, **changes):
    return {**alert_payload, **changes}


class TestCreate:
    @pytest.mark.asyncio
    async def test_creates_price_alert(self, client, fake_api, alert_payload):
        fake_api.configure_response("POST", r"/alerts$", body=envelope(alert_payload))

        alert = await client.alerts.create("aapl", "price_above", threshold=200)

        assert isinstance(alert, Alert)
        assert alert.status == "active"
        assert alert.symbol == "AAPL"
        assert fake_api.last_json() == {
            "symbol": "AAPL",
            "condition": "price_above",
            "notification": "email",
            "threshold": 200,
        }

    @pytest.mark.asyncio
    async def test_missing_threshold_rejected_before_network(self, client, fake_api):
        with pytest.raises(ValidationError, match="Threshold is required for price_above"):
            await client.alerts.create("AAPL", "price_above")
        assert fake_api.requests == []

    @pytest.mark.asyncio
    async def test_threshold_forbidden_for_event_conditions(self, client, fake_api):
        with pytest.raises(ValidationError, match="Threshold is not allowed for new_high"):
            await client.alerts.create("AAPL", "new_high", threshold=1)
        assert fake_api.requests == []

    @pytest.mark.asyncio
    async def test_event_condition_without_threshold(self, client, fake_api, alert_payload):
        fake_api.configure_response(
            "POST", r"/alerts$", body=envelope(_alert(alert_payload, condition="new_high"))
        )
        await client.alerts.create("AAPL", "new_high", notification="sms")
        assert fake_api.last_json() == {
            "symbol": "AAPL",
            "condition": "new_high",
            "notification": "sms",
        }

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "kwargs, message",
        [
            ({"symbol": "", "condition": "price_above", "threshold": 1}, "Symbol is required"),
            ({"symbol": "AAPL!", "condition": "price_above", "threshold": 1}, "Invalid symbol"),
            ({"symbol": "TOOLONGSYMBOL", "condition": "new_low"}, "Invalid symbol"),
            ({"symbol": "AAPL", "condition": "price_sideways"}, "Condition must be one of"),
            ({"symbol": "AAPL", "condition": "price_above", "threshold": "200"}, "must be a number"),
            ({"symbol": "AAPL", "condition": "price_above", "threshold": True}, "must be a number"),
            (
                {"symbol": "AAPL", "condition": "price_above", "threshold": float("nan")},
                "finite",
            ),
            (
                {"symbol": "AAPL", "condition": "price_above", "threshold": 10**400},
                "finite",
            ),
            (
                {"symbol": "AAPL", "condition": "price_above", "threshold": 1, "notification": "fax"},
                "Notification must be one of",
            ),
            ({"symbol": "AAPL", "condition": "rsi_limit", "threshold": 101}, "between 0 and 100"),
            ({"symbol": "AAPL", "condition": "rsi_limit", "threshold": -1}, "between 0 and 100"),
            ({"symbol": "AAPL", "condition": "ma_touch_above"}, "ma_period must be 50 or 200"),
            (
                {"symbol": "AAPL", "condition": "ma_touch_below", "parameters": {"ma_period": 100}},
                "ma_period must be 50 or 200",
            ),
            ({"symbol": "AAPL", "condition": "reminder"}, "YYYY-MM-DD"),
            (
                {"symbol": "AAPL", "condition": "reminder", "parameters": {"date": "31/01/2025"}},
                "YYYY-MM-DD",
            ),
            (
                {"symbol": "AAPL", "condition": "reminder", "parameters": {"date": "2025-02-30"}},
                "not a valid date",
            ),
            (
                {"symbol": "AAPL", "condition": "new_high", "parameters": ["x"]},
                "Parameters must be an object",
            ),
        ],
    )
    async def test_invalid_input(self, client, fake_api, kwargs, message):
        with pytest.raises(ValidationError, match=message):
            await client.alerts.create(**kwargs)
        assert fake_api.requests == []

    @pytest.mark.asyncio
    async def test_condition_specific_parameters_are_sent(self, client, fake_api, alert_payload):
        fake_api.configure_response("POST", r"/alerts$", body=envelope(alert_payload))
        await client.alerts.create("MSFT", "ma_touch_above", parameters={"ma_period": 200})
        await client.alerts.create("MSFT", "reminder", parameters={"date": "2025-01-31"})
        await client.alerts.create("BRK.B", "rsi_limit", threshold=30)

        sent = [json.loads(r.content) for r in fake_api.requests]
        assert sent[0]["parameters"] == {"ma_period": 200}
        assert sent[1]["parameters"] == {"date": "2025-01-31"}
        assert sent[2]["symbol"] == "BRK.B"


class TestCrud:
    @pytest.mark.asyncio
    async def test_retrieve(self, client, fake_api, alert_payload):
        fake_api.configure_response("GET", rf"/alerts/{ALERT_ID}$", body=envelope(alert_payload))
        alert = await client.alerts.retrieve(ALERT_ID)
        assert alert.id == ALERT_ID
        assert alert.initial_price == 185.5

    @pytest.mark.asyncio
    @pytest.mark.parametrize("bad_id", ["", "   ", "not-a-uuid", None])
    async def test_alert_ids_must_be_uuids(self, client, fake_api, bad_id):
        with pytest.raises(ValidationError, match="Alert ID"):
            await client.alerts.retrieve(bad_id)
        with pytest.raises(ValidationError, match="Alert ID"):
            await client.alerts.remove(bad_id)
        assert fake_api.requests == []

    @pytest.mark.asyncio
    async def test_update_puts_changed_fields(self, client, fake_api, alert_payload):
        fake_api.configure_response(
            "PUT", rf"/alerts/{ALERT_ID}$", body=envelope(_alert(alert_payload, threshold=210))
        )
        alert = await client.alerts.update(ALERT_ID, threshold=210)
        assert alert.threshold == 210
        assert fake_api.last_json() == {"threshold": 210}

    @pytest.mark.asyncio
    async def test_update_requires_a_field(self, client, fake_api):
        with pytest.raises(ValidationError, match="at least one field"):
            await client.alerts.update(ALERT_ID)
        assert fake_api.requests == []

    @pytest.mark.asyncio
    async def test_update_rejects_triggered_status(self, client):
        with pytest.raises(ValidationError, match="Status must be one of: active, paused"):
            await client.alerts.update(ALERT_ID, status="triggered")

    @pytest.mark.asyncio
    async def test_update_of_missing_alert_is_not_retried(self, client, fake_api, sleep):
        fake_api.configure_response(
            "PUT", r"/alerts/", status=404, body={"success": False, "error": "Alert not found"}
        )
        with pytest.raises(ApiError) as exc_info:
            await client.alerts.update(ALERT_ID, threshold=210)
        assert exc_info.value.status_code == 404
        assert len(fake_api.requests) == 1
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_remove_returns_status_change(self, client, fake_api):
        fake_api.configure_response(
            "DELETE",
            rf"/alerts/{ALERT_ID}$",
            body=envelope({"alert_id": ALERT_ID, "status": "deleted"}),
        )
        result = await client.alerts.remove(ALERT_ID)
        assert result.alert_id == ALERT_ID
        assert result.status == "deleted"

    @pytest.mark.asyncio
    async def test_pause_and_activate(self, client, fake_api, alert_payload):
        fake_api.configure_response(
            "POST", r"/pause$", body=envelope(_alert(alert_payload, status="paused"))
        )
        fake_api.configure_response("POST", r"/activate$", body=envelope(alert_payload))

        assert (await client.alerts.pause(ALERT_ID)).status == "paused"
        assert (await client.alerts.activate(ALERT_ID)).status == "active"
        assert [r.url.path for r in fake_api.requests] == [
            f"/api/v1/alerts/{ALERT_ID}/pause",
            f"/api/v1/alerts/{ALERT_ID}/activate",
        ]

    @pytest.mark.asyncio
    async def test_history(self, client, fake_api):
        entries = [{"triggered_at": "2025-01-02T10:00:00Z", "price": 201.0}]
        meta = {"pagination": {"page": 1, "limit": 20, "total": 1, "totalPages": 1}}
        fake_api.configure_response("GET", r"/history$", body=envelope(entries, meta))

        history = await client.alerts.history(ALERT_ID, page=1, limit=20)

        assert history.data == entries
        assert history.meta.pagination.total_pages == 1
        assert fake_api.requests[0].url.params["limit"] == "20"

    @pytest.mark.asyncio
    async def test_malformed_alert_payload_is_api_error(self, client, fake_api):
        fake_api.configure_response("GET", r"/alerts/", body=envelope({"unexpected": True}))
        with pytest.raises(ApiError, match="Unexpected Alert payload"):
            await client.alerts.retrieve(ALERT_ID)


class TestList:
    @pytest.mark.asyncio
    async def test_filters_use_wire_names(self, client, fake_api, alert_payload):
        meta = {"pagination": {"page": 2, "limit": 10, "total": 11, "totalPages": 2}}
        fake_api.configure_response("GET", r"/alerts$", body=envelope([alert_payload], meta))

        page = await client.alerts.list(
            page=2,
            limit=10,
            status="active",
            symbol="aapl",
            sort_field="created_at",
            sort_direction="desc",
        )

        params = fake_api.requests[0].url.params
        assert params["page"] == "2"
        assert params["symbol"] == "AAPL"
        assert params["sortField"] == "created_at"
        assert params["sortDirection"] == "desc"
        assert page.data[0].id == ALERT_ID
        assert page.meta.pagination.total == 11

    @pytest.mark.asyncio
    async def test_list_without_meta(self, client, fake_api, alert_payload):
        fake_api.configure_response("GET", r"/alerts$", body=envelope([alert_payload]))
        page = await client.alerts.list()
        assert len(page.data) == 1
        assert page.meta is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "kwargs, message",
        [
            ({"limit": 0}, "Limit must be between 1 and 100"),
            ({"limit": 101}, "Limit must be between 1 and 100"),
            ({"page": 0}, "Page must be at least 1"),
            ({"status": "deleted"}, "Status must be one of"),
            ({"condition": "price_sideways"}, "Condition must be one of"),
            ({"sort_direction": "up"}, "Sort direction must be one of"),
        ],
    )
    async def test_invalid_filters(self, client, fake_api, kwargs, message):
        with pytest.raises(ValidationError, match=message):
            await client.alerts.list(**kwargs)
        assert fake_api.requests == []


class TestIterate:
    def _serve_pages(self, fake_api, alert_payload, sizes, limit):
        total = sum(sizes)
        for number, size in enumerate(sizes, start=1):
            alerts = [_alert(alert_payload, id=f"{number}-{i}") for i in range(size)]
            meta = {
                "pagination": {
                    "page": number,
                    "limit": limit,
                    "total": total,
                    "totalPages": len(sizes),
                }
            }
            fake_api.configure_response(
                "GET", r"/alerts$", body=envelope(alerts, meta), once=True
            )

    @pytest.mark.asyncio
    async def test_walks_every_page_and_stops_on_short_page(self, client, fake_api, alert_payload):
        self._serve_pages(fake_api, alert_payload, [2, 2, 1], limit=2)

        ids = [alert.id async for alert in client.alerts.iterate(limit=2)]

        assert ids == ["1-0", "1-1", "2-0", "2-1", "3-0"]
        assert [r.url.params["page"] for r in fake_api.requests] == ["1", "2", "3"]

    @pytest.mark.asyncio
    async def test_stops_when_pagination_reports_last_page(self, client, fake_api, alert_payload):
        self._serve_pages(fake_api, alert_payload, [2, 2], limit=2)

        pages = [page async for page in client.alerts.iterate(limit=2).pages()]

        assert len(pages) == 2
        assert len(fake_api.requests) == 2

    @pytest.mark.asyncio
    async def test_pager_is_restartable(self, client, fake_api, alert_payload):
        pager = client.alerts.iterate(limit=2, status="active")
        assert isinstance(pager, AlertPager)

        self._serve_pages(fake_api, alert_payload, [1], limit=2)
        first = [a.id async for a in pager]
        self._serve_pages(fake_api, alert_payload, [1], limit=2)
        second = [a.id async for a in pager]

        assert first == second == ["1-0"]
        assert all(r.url.params["page"] == "1" for r in fake_api.requests)
        assert all(r.url.params["status"] == "active" for r in fake_api.requests)

    @pytest.mark.asyncio
    async def test_filters_are_validated_immediately(self, client, fake_api):
        with pytest.raises(ValidationError):
            client.alerts.iterate(status="bogus")
        assert fake_api.requests == []


class TestCreateBatch:
    @pytest.mark.asyncio
    async def test_results_keep_input_order(self, client, fake_api, alert_payload):
        fake_api.configure_response("POST", r"/alerts$", body=envelope(alert_payload))
        items = [
            {"symbol": "AAPL", "condition": "price_above", "threshold": 200},
            {"symbol": "MSFT", "condition": "new_high"},
            {"symbol": "TSLA", "condition": "price_below", "threshold": 150, "notification": "sms"},
        ]

        results = await client.alerts.create_batch(items)

        assert len(results) == 3
        assert all(isinstance(a, Alert) for a in results)
        sent = sorted(json.loads(r.content)["symbol"] for r in fake_api.requests)
        assert sent == ["AAPL", "MSFT", "TSLA"]

    @pytest.mark.asyncio
    async def test_invalid_item_reports_index_before_any_request(self, client, fake_api):
        items = [
            {"symbol": "AAPL", "condition": "price_above", "threshold": 200},
            {"symbol": "MSFT", "condition": "price_above"},
        ]
        with pytest.raises(ValidationError, match="^Alert at index 1: Threshold is required"):
            await client.alerts.create_batch(items)
        assert fake_api.requests == []

    @pytest.mark.asyncio
    async def test_unknown_fields_are_rejected(self, client, fake_api):
        with pytest.raises(ValidationError, match="Alert at index 0: Unknown fields: colour"):
            await client.alerts.create_batch(
                [{"symbol": "AAPL", "condition": "new_high", "colour": 1}]
            )
        assert fake_api.requests == []

    @pytest.mark.asyncio
    async def test_at_most_five_requests_in_flight(self, client, fake_api, alert_payload):
        in_flight = 0
        peak = 0
        original = client.engine.execute

        async def tracking_execute(*args, **kwargs):
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            try:
                await asyncio.sleep(0.01)
                return await original(*args, **kwargs)
            finally:
                in_flight -= 1

        client.engine.execute = tracking_execute
        fake_api.configure_response("POST", r"/alerts$", body=envelope(alert_payload))
        items = [{"symbol": f"S{i}", "condition": "new_high"} for i in range(12)]

        results = await client.alerts.create_batch(items)

        assert len(results) == 12
        assert peak == 5
