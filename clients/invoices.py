"""Domain client for FreshBooks invoices."""

from __future__ import annotations

import logging

from _errors import ApiError, FreshtimeError
from clients._base import BaseFreshBooksClient
from models import Invoice, InvoiceDraft

__all__ = ["InvoicesClient"]

logger = logging.getLogger("freshtime.client")


class InvoicesClient:
    def __init__(self, base: BaseFreshBooksClient) -> None:
        self._base = base

    @staticmethod
    def _path(account_id: str) -> str:
        return f"/accounting/account/{account_id}/invoices/invoices"

    async def create(self, account_id: str, draft: InvoiceDraft) -> Invoice:
        data = await self._base.post(self._path(account_id), draft.to_api())
        try:
            return Invoice.from_api(data["response"]["result"]["invoice"])
        except (KeyError, TypeError, ValueError) as exc:
            raise ApiError(200, "Unexpected invoice response", str(data)) from exc

    async def share_link(self, account_id: str, invoice_id: int) -> str | None:
        """Client-facing link for *invoice_id*, or None when it cannot be read.

        Accounts without the ``invoices:read`` scope get an error here; that
        is reported as "unavailable" instead of failing the caller.
        """
        try:
            data = await self._base.get(f"{self._path(account_id)}/{invoice_id}/share_link")
            link = data["response"]["result"]["share_link"]
        except (FreshtimeError, KeyError, TypeError) as exc:
            logger.info("Share link for invoice %d unavailable: %s", invoice_id, exc)
            return None
        return str(link) if link else None
