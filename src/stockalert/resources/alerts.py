# SPDX-License-Identifier: Apache-2.0
"""Alerts resource: CRUD, status changes, history, pagination and batch create."""

from __future__ import annotations

import asyncio
import re
from collections.abc import AsyncIterator, Mapping, Sequence
from datetime import datetime
from typing import Any, Dict, List, Optional

from ..errors import ValidationError
from ..models import (
    ALERT_CONDITIONS,
    THRESHOLD_CONDITIONS,
    Alert,
    AlertStatusChange,
    ListResponse,
)
from .base import BaseResource

ALERT_STATUSES = ("active", "paused", "triggered")
UPDATABLE_STATUSES = ("active", "paused")
NOTIFICATION_CHANNELS = ("email", "sms")
SORT_DIRECTIONS = ("asc", "desc")

MA_PERIODS = (50, 200)
MA_TOUCH_CONDITIONS = frozenset({"ma_touch_above", "ma_touch_below"})

MAX_PAGE_SIZE = 100
BATCH_CONCURRENCY = 5

_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_CREATE_FIELDS = frozenset({"symbol", "condition", "threshold", "notification", "parameters"})


class AlertPager:
    """Lazy, restartable iteration over every alert matching a filter.

    Each ``async for`` starts a fresh cursor at page 1, so the same pager can
    be iterated more than once. Iteration stops on a short page or when
    ``meta.pagination`` reports the last page.

    Usage:
        >>> async for alert in client.alerts.iterate(status="active"):
        ...     print(alert.symbol)
        >>> async for page in client.alerts.iterate().pages():
        ...     print(len(page.data))
    """

    def __init__(self, resource: AlertsResource, params: Dict[str, Any], limit: int) -> None:
        self._resource = resource
        self._params = params
        self._limit = limit

    def __aiter__(self) -> AsyncIterator[Alert]:
        return self._alerts()

    async def _alerts(self) -> AsyncIterator[Alert]:
        async for page in self.pages():
            for alert in page.data:
                yield alert

    async def pages(self) -> AsyncIterator[ListResponse[Alert]]:
        """Yield whole pages, starting from page 1."""
        page_number = 1
        while True:
            params = {**self._params, "page": page_number, "limit": self._limit}
            page = await self._resource._fetch(params)
            yield page
            if self._exhausted(page, page_number):
                return
            page_number += 1

    def _exhausted(self, page: ListResponse[Alert], page_number: int) -> bool:
        if len(page.data) < self._limit:
            return True
        pagination = page.meta.pagination if page.meta else None
        if pagination is None:
            return False
        if pagination.total_pages is not None and page_number >= pagination.total_pages:
            return True
        if pagination.total is not None and page_number * self._limit >= pagination.total:
            return True
        return False


class AlertsResource(BaseResource):
    """Operations on ``/alerts``. Alert ids are UUIDs."""

    async def list(
        self,
        *,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        status: Optional[str] = None,
        condition: Optional[str] = None,
        search: Optional[str] = None,
        symbol: Optional[str] = None,
        sort_field: Optional[str] = None,
        sort_direction: Optional[str] = None,
    ) -> ListResponse[Alert]:
        """List alerts, one page at a time."""
        params = self._list_params(
            page=page,
            limit=limit,
            status=status,
            condition=condition,
            search=search,
            symbol=symbol,
            sort_field=sort_field,
            sort_direction=sort_direction,
        )
        return await self._fetch(params)

    def iterate(
        self,
        *,
        status: Optional[str] = None,
        condition: Optional[str] = None,
        search: Optional[str] = None,
        symbol: Optional[str] = None,
        sort_field: Optional[str] = None,
        sort_direction: Optional[str] = None,
        limit: int = MAX_PAGE_SIZE,
    ) -> AlertPager:
        """Return an :class:`AlertPager` over all matching alerts.

        Filters are validated immediately; no request is made until the pager
        is iterated.
        """
        params = self._list_params(
            limit=limit,
            status=status,
            condition=condition,
            search=search,
            symbol=symbol,
            sort_field=sort_field,
            sort_direction=sort_direction,
        )
        params.pop("limit")
        return AlertPager(self, params, limit)

    async def create(
        self,
        symbol: str,
        condition: str,
        threshold: Optional[float] = None,
        notification: str = "email",
        parameters: Optional[Mapping[str, Any]] = None,
    ) -> Alert:
        """Create an alert.

        Args:
            symbol: Ticker, upper-cased before sending.
            condition: One of the supported alert conditions.
            threshold: Required for threshold conditions (``price_above``,
                ``rsi_limit``...), rejected for all others.
            notification: ``"email"`` or ``"sms"``.
            parameters: Condition specific options, e.g. ``{"ma_period": 50}``
                for ``ma_touch_above`` or ``{"date": "2025-01-31"}`` for
                ``reminder``.

        Raises:
            ValidationError: Before any request when the arguments are invalid.
        """
        body = self._create_body(symbol, condition, threshold, notification, parameters)
        return self._model(Alert, await self._post("/alerts", body))

    async def create_batch(self, items: Sequence[Mapping[str, Any]]) -> List[Alert]:
        """Create several alerts with at most five requests in flight.

        Every item is validated before the first request is sent. Results are
        returned in input order; the first failed request is raised.
        """
        bodies = [self._batch_body(index, item) for index, item in enumerate(items)]
        semaphore = asyncio.Semaphore(BATCH_CONCURRENCY)

        async def submit(body: Dict[str, Any]) -> Alert:
            async with semaphore:
                return self._model(Alert, await self._post("/alerts", body))

        return list(await asyncio.gather(*(submit(body) for body in bodies)))

    async def retrieve(self, alert_id: str) -> Alert:
        alert_id = self._require_uuid(alert_id, "Alert ID")
        return self._model(Alert, await self._get(f"/alerts/{self._segment(alert_id)}"))

    async def update(
        self,
        alert_id: str,
        *,
        threshold: Optional[float] = None,
        notification: Optional[str] = None,
        parameters: Optional[Mapping[str, Any]] = None,
        status: Optional[str] = None,
    ) -> Alert:
        """Update an alert. At least one field must be given."""
        alert_id = self._require_uuid(alert_id, "Alert ID")
        if threshold is not None:
            self._number(threshold, "Threshold")
        if notification is not None:
            self._choice(notification, NOTIFICATION_CHANNELS, "Notification")
        if parameters is not None and not isinstance(parameters, Mapping):
            raise ValidationError("Parameters must be an object")
        if status is not None:
            self._choice(status, UPDATABLE_STATUSES, "Status")

        body = self._compact(
            {
                "threshold": threshold,
                "notification": notification,
                "parameters": dict(parameters) if parameters is not None else None,
                "status": status,
            }
        )
        if not body:
            raise ValidationError("Provide at least one field to update")
        return self._model(Alert, await self._put(f"/alerts/{self._segment(alert_id)}", body))

    async def remove(self, alert_id: str) -> AlertStatusChange:
        alert_id = self._require_uuid(alert_id, "Alert ID")
        data = await self._delete(f"/alerts/{self._segment(alert_id)}")
        return self._model(AlertStatusChange, data)

    async def pause(self, alert_id: str) -> Alert:
        return await self._transition(alert_id, "pause")

    async def activate(self, alert_id: str) -> Alert:
        return await self._transition(alert_id, "activate")

    async def history(
        self, alert_id: str, *, page: Optional[int] = None, limit: Optional[int] = None
    ) -> ListResponse[Dict[str, Any]]:
        """Trigger history of one alert."""
        alert_id = self._require_uuid(alert_id, "Alert ID")
        params: Dict[str, Any] = {}
        if page is not None:
            params["page"] = self._int_range(page, "Page", 1)
        if limit is not None:
            params["limit"] = self._int_range(limit, "Limit", 1, MAX_PAGE_SIZE)
        result = await self._get(f"/alerts/{self._segment(alert_id)}/history", params)
        return self._list(Dict[str, Any], result)

    # ---------- internals ----------
    async def _fetch(self, params: Mapping[str, Any]) -> ListResponse[Alert]:
        return self._list(Alert, await self._get("/alerts", params))

    async def _transition(self, alert_id: str, action: str) -> Alert:
        alert_id = self._require_uuid(alert_id, "Alert ID")
        return self._model(Alert, await self._post(f"/alerts/{self._segment(alert_id)}/{action}"))

    def _list_params(
        self,
        *,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        status: Optional[str] = None,
        condition: Optional[str] = None,
        search: Optional[str] = None,
        symbol: Optional[str] = None,
        sort_field: Optional[str] = None,
        sort_direction: Optional[str] = None,
    ) -> Dict[str, Any]:
        params: Dict[str, Any] = {}
        if page is not None:
            params["page"] = self._int_range(page, "Page", 1)
        if limit is not None:
            params["limit"] = self._int_range(limit, "Limit", 1, MAX_PAGE_SIZE)
        if status is not None:
            params["status"] = self._choice(status, ALERT_STATUSES, "Status")
        if condition is not None:
            params["condition"] = self._choice(condition, ALERT_CONDITIONS, "Condition")
        if search is not None:
            if not isinstance(search, str):
                raise ValidationError("Search must be a string")
            params["search"] = search
        if symbol is not None:
            params["symbol"] = self._symbol(symbol)
        if sort_field is not None:
            params["sortField"] = self._require_str(sort_field, "Sort field must be a string")
        if sort_direction is not None:
            params["sortDirection"] = self._choice(
                sort_direction, SORT_DIRECTIONS, "Sort direction"
            )
        return params

    def _batch_body(self, index: int, item: Any) -> Dict[str, Any]:
        try:
            if not isinstance(item, Mapping):
                raise ValidationError("Alert must be an object")
            unknown = set(item) - _CREATE_FIELDS
            if unknown:
                raise ValidationError(f"Unknown fields: {', '.join(sorted(map(str, unknown)))}")
            return self._create_body(
                item.get("symbol"),
                item.get("condition"),
                item.get("threshold"),
                item.get("notification", "email"),
                item.get("parameters"),
            )
        except ValidationError as exc:
            raise ValidationError(f"Alert at index {index}: {exc.message}") from None

    def _create_body(
        self,
        symbol: Any,
        condition: Any,
        threshold: Any,
        notification: Any,
        parameters: Any,
    ) -> Dict[str, Any]:
        symbol = self._symbol(symbol)
        condition = self._require_str(condition, "Condition is required")
        self._choice(condition, ALERT_CONDITIONS, "Condition")
        self._choice(notification, NOTIFICATION_CHANNELS, "Notification")

        if condition in THRESHOLD_CONDITIONS:
            if threshold is None:
                raise ValidationError(f"Threshold is required for {condition} alerts")
            self._number(threshold, "Threshold")
            if condition == "rsi_limit" and not 0 <= threshold <= 100:
                raise ValidationError("RSI threshold must be between 0 and 100")
        elif threshold is not None:
            raise ValidationError(f"Threshold is not allowed for {condition} alerts")

        if parameters is not None and not isinstance(parameters, Mapping):
            raise ValidationError("Parameters must be an object")
        params = dict(parameters or {})
        if condition in MA_TOUCH_CONDITIONS:
            period = params.get("ma_period")
            if isinstance(period, bool) or period not in MA_PERIODS:
                raise ValidationError(f"parameters.ma_period must be 50 or 200 for {condition}")
        if condition == "reminder":
            _require_date(params.get("date"))

        body: Dict[str, Any] = {
            "symbol": symbol,
            "condition": condition,
            "notification": notification,
        }
        if threshold is not None:
            body["threshold"] = threshold
        if parameters is not None:
            body["parameters"] = params
        return body


def _require_date(value: Any) -> None:
    if not isinstance(value, str) or not _DATE.match(value):
        raise ValidationError("parameters.date must be in YYYY-MM-DD format")
    try:
        datetime.strptime(value, "%Y-%m-%d")
    except ValueError:
        raise ValidationError(f"parameters.date is not a valid date: {value}") from None


__all__ = ["AlertsResource", "AlertPager"]
