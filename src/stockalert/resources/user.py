# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

from ..models import UserSubscription
from .base import BaseResource


class UserResource(BaseResource):
    async def get_subscription(self) -> UserSubscription:
        return self._model(UserSubscription, await self._get("/user/subscription"))


__all__ = ["UserResource"]
