"""Client registry for the FreshBooks domain resources.

One registry per CLI invocation; built around a single
:class:`BaseFreshBooksClient` so every resource shares the session.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from clients._base import BaseFreshBooksClient
from clients.customers import CustomersClient
from clients.identity import IdentityClient
from clients.invoices import InvoicesClient
from clients.projects import ProjectsClient
from clients.services import ServicesClient
from clients.time_entries import TimeEntriesClient

__all__ = ["FreshBooksClientRegistry"]


@dataclass
class FreshBooksClientRegistry:
    """Holds domain client instances sharing one transport."""

    base: BaseFreshBooksClient
    customers: CustomersClient = field(init=False)
    time_entries: TimeEntriesClient = field(init=False)
    invoices: InvoicesClient = field(init=False)
    identity: IdentityClient = field(init=False)
    projects: ProjectsClient = field(init=False)
    services: ServicesClient = field(init=False)

    def __post_init__(self) -> None:
        self.customers = CustomersClient(self.base)
        self.time_entries = TimeEntriesClient(self.base)
        self.invoices = InvoicesClient(self.base)
        self.identity = IdentityClient(self.base)
        self.projects = ProjectsClient(self.base)
        self.services = ServicesClient(self.base)

    async def close(self) -> None:
        await self.base.close()

    async def __aenter__(self) -> FreshBooksClientRegistry:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()
