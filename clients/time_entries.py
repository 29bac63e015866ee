"""Domain client for FreshBooks time-entry operations.

Uses composition: holds a reference to :class:`BaseFreshBooksClient` for HTTP
transport and delegates all network I/O through it.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from _errors import FreshtimeError
from clients._base import BaseFreshBooksClient
from models import BillingOutcome, TimeEntry

__all__ = ["TimeEntriesClient"]

logger = logging.getLogger("freshtime.client")


class TimeEntriesClient:
    """High-level operations on timetracking time entries."""

    def __init__(self, base: BaseFreshBooksClient) -> None:
        self._base = base

    @staticmethod
    def _path(business_id: int) -> str:
        return f"/timetracking/business/{business_id}/time_entries"

    # -- read methods -------------------------------------------------------

    async def list_for_range(
        self,
        business_id: int,
        start_date: str,
        end_date: str,
    ) -> list[TimeEntry]:
        """Entries started between *start_date* and *end_date* (inclusive, local wall-clock)."""
        raw = await self._base.get_paginated(
            self._path(business_id),
            "time_entries",
            {
                "started_from": f"{start_date}T00:00:00",
                "started_to": f"{end_date}T23:59:59",
            },
        )
        return self._decode(raw)

    async def list_unbilled(self, business_id: int, client_id: int) -> list[TimeEntry]:
        """Billable entries for *client_id* that have not been invoiced yet."""
        raw = await self._base.get_paginated(
            self._path(business_id),
            "time_entries",
            {
                "client_id": str(client_id),
                "billed": "false",
                "billable": "true",
            },
        )
        return self._decode(raw)

    # -- write methods ------------------------------------------------------

    async def create(
        self,
        business_id: int,
        *,
        client_id: int,
        duration: int,
        note: str,
        started_at: str,
        billable: bool = True,
        project_id: int | None = None,
        service_id: int | None = None,
    ) -> TimeEntry:
        body: dict[str, Any] = {
            "client_id": client_id,
            "duration": duration,
            "note": note,
            "billable": billable,
            "started_at": started_at,
            "is_logged": True,
        }
        if project_id:
            body["project_id"] = project_id
        if service_id:
            body["service_id"] = service_id
        data = await self._base.post(self._path(business_id), {"time_entry": body})
        return TimeEntry.from_api(data["time_entry"])

    async def mark_billed(
        self,
        business_id: int,
        entries: Iterable[TimeEntry],
    ) -> BillingOutcome:
        """Flag each entry as billed, one request at a time in input order.

        A failed entry is recorded and the loop moves on; earlier updates are
        never rolled back.  ``started_at``/``duration``/``is_logged`` are sent
        again because the API rejects partial updates without them.
        """
        outcome = BillingOutcome()
        for entry in entries:
            try:
                await self._base.put(
                    f"{self._path(business_id)}/{entry.id}",
                    {
                        "time_entry": {
                            "billed": True,
                            "started_at": entry.started_at,
                            "is_logged": True,
                            "duration": entry.duration,
                        }
                    },
                )
            except FreshtimeError as exc:
                logger.warning("Could not mark time entry %d as billed: %s", entry.id, exc)
                outcome.failed[entry.id] = str(exc)
            else:
                outcome.billed.append(entry.id)
        return outcome

    # -- helpers ------------------------------------------------------------

    @staticmethod
    def _decode(raw: list[dict[str, Any]]) -> list[TimeEntry]:
        entries: list[TimeEntry] = []
        for item in raw:
            try:
                entries.append(TimeEntry.from_api(item))
            except (KeyError, TypeError, ValueError):
                logger.debug("Skipping malformed time entry: %r", item.get("id"))
        return entries
