# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

import math
import re
import uuid
from collections.abc import Mapping
from typing import Any, Dict, Optional, Type, TypeVar
from urllib.parse import quote

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from ..engine import RequestEngine
from ..errors import ApiError, ValidationError
from ..models import ListResponse

B = TypeVar("B", bound=BaseModel)
M = TypeVar("M")

SYMBOL_PATTERN = re.compile(r"^[A-Z0-9][A-Z0-9.\-]{0,9}$")


class BaseResource:
    """Shared plumbing for resource façades.

    Façades validate their arguments synchronously, map them to a method,
    path, query and body, and hand the call to the client's
    :class:`RequestEngine`. Validation always happens before the engine is
    touched, so an invalid call never produces HTTP traffic.

    Usage:
        >>> class Things(BaseResource):
        ...     async def retrieve(self, thing_id):
        ...         data = await self._get(f"/things/{self._segment(thing_id)}")
        ...         return self._model(Thing, data)
    """

    def __init__(self, engine: RequestEngine) -> None:
        self._engine = engine

    # ---------- HTTP verbs ----------
    async def _get(self, path: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        return await self._engine.execute("GET", path, params=params)

    async def _post(self, path: str, body: Any = None) -> Any:
        return await self._engine.execute("POST", path, body=body)

    async def _put(self, path: str, body: Any = None) -> Any:
        return await self._engine.execute("PUT", path, body=body)

    async def _patch(self, path: str, body: Any = None) -> Any:
        return await self._engine.execute("PATCH", path, body=body)

    async def _delete(self, path: str) -> Any:
        return await self._engine.execute("DELETE", path)

    # ---------- response mapping ----------
    @staticmethod
    def _model(model: Type[B], data: Any) -> B:
        try:
            return model.model_validate(data)
        except PydanticValidationError as exc:
            raise ApiError(
                f"Unexpected {model.__name__} payload in response", 200, data, retryable=False
            ) from exc

    @staticmethod
    def _list(model: Type[M], result: Any) -> ListResponse[M]:
        """Build a :class:`ListResponse` from ``data`` or ``{data, meta}``."""
        if isinstance(result, Mapping) and "data" in result:
            payload = {"data": result["data"], "meta": result.get("meta")}
        else:
            payload = {"data": result}
        name = getattr(model, "__name__", "item")
        try:
            return ListResponse[model].model_validate(payload)
        except PydanticValidationError as exc:
            raise ApiError(
                f"Unexpected {name} list in response", 200, result, retryable=False
            ) from exc

    # ---------- validation helpers ----------
    @staticmethod
    def _segment(value: str) -> str:
        """Percent-encode a value for use as one path segment."""
        return quote(value, safe="")

    @staticmethod
    def _require_str(value: Any, message: str) -> str:
        if not isinstance(value, str) or not value.strip():
            raise ValidationError(message)
        return value.strip()

    @classmethod
    def _require_uuid(cls, value: Any, label: str) -> str:
        text = cls._require_str(value, f"{label} is required")
        try:
            uuid.UUID(text)
        except ValueError:
            raise ValidationError(f"{label} must be a valid UUID") from None
        return text

    @classmethod
    def _symbol(cls, value: Any, label: str = "Symbol") -> str:
        text = cls._require_str(value, f"{label} is required").upper()
        if not SYMBOL_PATTERN.match(text):
            raise ValidationError(f"Invalid {label.lower()} format: {text}")
        return text

    @staticmethod
    def _number(value: Any, label: str) -> float:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValidationError(f"{label} must be a number")
        try:
            finite = math.isfinite(value)
        except OverflowError:
            finite = False
        if not finite:
            raise ValidationError(f"{label} must be a finite number")
        return value

    @staticmethod
    def _choice(value: Any, allowed: Any, label: str) -> Any:
        try:
            known = value in allowed
        except TypeError:
            known = False
        if not known:
            options = ", ".join(str(a) for a in sorted(allowed))
            raise ValidationError(f"{label} must be one of: {options}")
        return value

    @staticmethod
    def _int_range(value: Any, label: str, low: int, high: Optional[int] = None) -> int:
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValidationError(f"{label} must be an integer")
        if value < low or (high is not None and value > high):
            bounds = f"between {low} and {high}" if high is not None else f"at least {low}"
            raise ValidationError(f"{label} must be {bounds}")
        return value

    @staticmethod
    def _compact(fields: Dict[str, Any]) -> Dict[str, Any]:
        """Drop keys whose value is ``None``."""
        return {k: v for k, v in fields.items() if v is not None}


__all__ = ["BaseResource", "SYMBOL_PATTERN"]
