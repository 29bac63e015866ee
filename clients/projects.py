"""Domain client for FreshBooks projects."""

from __future__ import annotations

import logging

from clients._base import BaseFreshBooksClient
from models import Project

__all__ = ["ProjectsClient"]

logger = logging.getLogger("freshtime.client")


class ProjectsClient:
    def __init__(self, base: BaseFreshBooksClient) -> None:
        self._base = base

    async def list_projects(
        self, business_id: int, client_id: int | None = None
    ) -> list[Project]:
        """All projects of the business, narrowed to one client when given."""
        params = {"client_id": str(client_id)} if client_id is not None else None
        raw = await self._base.get_paginated(
            f"/projects/business/{business_id}/projects", "projects", params
        )
        projects: list[Project] = []
        for item in raw:
            try:
                projects.append(Project.from_api(item))
            except (KeyError, TypeError, ValueError):
                logger.debug("Skipping malformed project record: %r", item.get("id"))
        return projects
