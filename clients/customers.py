"""Domain client for FreshBooks clients (the people and companies being billed)."""

from __future__ import annotations

import logging

from clients._base import BaseFreshBooksClient
from models import Client

__all__ = ["CustomersClient"]

logger = logging.getLogger("freshtime.client")


class CustomersClient:
    def __init__(self, base: BaseFreshBooksClient) -> None:
        self._base = base

    async def list_clients(self, account_id: str) -> list[Client]:
        raw = await self._base.get_paginated(
            f"/accounting/account/{account_id}/users/clients", "clients"
        )
        clients: list[Client] = []
        for item in raw:
            try:
                clients.append(Client.from_api(item))
            except (KeyError, TypeError, ValueError):
                logger.debug("Skipping malformed client record: %r", item.get("id"))
        return clients

    async def client_names(self, account_id: str) -> dict[int, str]:
        """Map every client id to its display name, draining all pages."""
        return {c.id: c.display_name for c in await self.list_clients(account_id)}
