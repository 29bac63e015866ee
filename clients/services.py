"""Domain client for FreshBooks services (the billable kinds of work)."""

from __future__ import annotations

import logging

from clients._base import BaseFreshBooksClient
from models import Service

__all__ = ["ServicesClient"]

logger = logging.getLogger("freshtime.client")


class ServicesClient:
    def __init__(self, base: BaseFreshBooksClient) -> None:
        self._base = base

    async def list_services(self, business_id: int) -> list[Service]:
        raw = await self._base.get_paginated(
            f"/comments/business/{business_id}/services", "services"
        )
        services: list[Service] = []
        for item in raw:
            try:
                services.append(Service.from_api(item))
            except (KeyError, TypeError, ValueError):
                logger.debug("Skipping malformed service record: %r", item.get("id"))
        return services
