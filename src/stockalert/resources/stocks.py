# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Dict, Optional

from ..errors import ValidationError
from ..models import Stock
from .base import BaseResource


class StocksResource(BaseResource):
    async def retrieve(self, symbol: str, fields: Optional[Sequence[str]] = None) -> Stock:
        """Fetch quote data for ``symbol``, optionally limited to ``fields``."""
        symbol = self._symbol(symbol, "Stock symbol")
        params: Dict[str, Any] = {}
        if fields:
            if isinstance(fields, str) or not all(isinstance(f, str) and f for f in fields):
                raise ValidationError("Fields must be a list of field names")
            params["fields"] = list(fields)
        return self._model(Stock, await self._get(f"/stocks/{self._segment(symbol)}", params))


__all__ = ["StocksResource"]
