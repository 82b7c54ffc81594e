# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Dict, Optional

from ..errors import ValidationError
from ..models import ApiKey, ListResponse
from .base import BaseResource


class ApiKeysResource(BaseResource):
    """Operations on ``/api-keys``."""

    async def list(self) -> ListResponse[ApiKey]:
        return self._list(ApiKey, await self._get("/api-keys"))

    async def create(self, name: str, permissions: Optional[Sequence[str]] = None) -> ApiKey:
        """Create a key. The full ``key`` value is only returned here."""
        body: Dict[str, Any] = {"name": self._require_str(name, "API key name is required")}
        if permissions is not None:
            if isinstance(permissions, str) or not isinstance(permissions, Sequence):
                raise ValidationError("Permissions must be a list of strings")
            if not all(isinstance(p, str) for p in permissions):
                raise ValidationError("Permissions must be a list of strings")
            body["permissions"] = list(permissions)
        return self._model(ApiKey, await self._post("/api-keys", body))

    async def remove(self, key_id: str) -> Dict[str, Any]:
        key_id = self._require_str(key_id, "API key ID is required")
        data = await self._delete(f"/api-keys/{self._segment(key_id)}")
        return data if isinstance(data, dict) else {"result": data}


__all__ = ["ApiKeysResource"]
