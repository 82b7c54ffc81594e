# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

from typing import Any, Dict, Optional

from ..errors import ValidationError
from ..models import ListResponse, WatchlistItem
from .base import BaseResource

INTENTIONS = ("buy", "sell")
_UPDATE_FIELDS = frozenset({"intention", "target_price", "notes", "auto_alerts_enabled"})


class WatchlistResource(BaseResource):
    """Operations on ``/watchlist``."""

    async def list(self) -> ListResponse[WatchlistItem]:
        return self._list(WatchlistItem, await self._get("/watchlist"))

    async def create(
        self,
        stock_symbol: str,
        intention: str,
        *,
        target_price: Optional[float] = None,
        notes: Optional[str] = None,
        auto_alerts_enabled: Optional[bool] = None,
    ) -> WatchlistItem:
        """Add a stock to the watchlist."""
        body: Dict[str, Any] = {
            "stock_symbol": self._symbol(stock_symbol, "Stock symbol"),
            "intention": self._choice(intention, INTENTIONS, "Intention"),
        }
        body.update(
            self._fields(
                {
                    "target_price": target_price,
                    "notes": notes,
                    "auto_alerts_enabled": auto_alerts_enabled,
                }
            )
        )
        return self._model(WatchlistItem, await self._post("/watchlist", body))

    async def update(self, item_id: str, **fields: Any) -> WatchlistItem:
        """Patch a watchlist item.

        Accepted fields: ``intention``, ``target_price``, ``notes`` and
        ``auto_alerts_enabled``. At least one is required.
        """
        item_id = self._require_str(item_id, "Watchlist item ID is required")
        unknown = set(fields) - _UPDATE_FIELDS
        if unknown:
            raise ValidationError(f"Unknown watchlist fields: {', '.join(sorted(unknown))}")
        body = self._fields(fields)
        if not body:
            raise ValidationError("Provide at least one field to update")
        data = await self._patch(f"/watchlist/{self._segment(item_id)}", body)
        return self._model(WatchlistItem, data)

    async def remove(self, item_id: str) -> Dict[str, Any]:
        item_id = self._require_str(item_id, "Watchlist item ID is required")
        data = await self._delete(f"/watchlist/{self._segment(item_id)}")
        return data if isinstance(data, dict) else {"result": data}

    async def swap_intention(
        self, item_id: str, stock_symbol: str, new_intention: str
    ) -> Dict[str, Any]:
        """Move an item between the buy and sell lists."""
        body = {
            "item_id": self._require_str(item_id, "item_id is required"),
            "stock_symbol": self._symbol(stock_symbol, "Stock symbol"),
            "new_intention": self._choice(new_intention, INTENTIONS, "new_intention"),
        }
        data = await self._put("/watchlist/order", body)
        return data if isinstance(data, dict) else {"result": data}

    def _fields(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        body = self._compact(fields)
        if "intention" in body:
            self._choice(body["intention"], INTENTIONS, "Intention")
        if "target_price" in body:
            self._number(body["target_price"], "Target price")
        if "notes" in body and not isinstance(body["notes"], str):
            raise ValidationError("Notes must be a string")
        if "auto_alerts_enabled" in body and not isinstance(body["auto_alerts_enabled"], bool):
            raise ValidationError("auto_alerts_enabled must be a boolean")
        return body


__all__ = ["WatchlistResource"]
