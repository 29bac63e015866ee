"""Typed records exchanged between the resources, the domain logic and rendering."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from _constants import LINE_TYPE_NORMAL

__all__ = [
    "BillingOutcome",
    "Client",
    "ClientSummary",
    "Identity",
    "Invoice",
    "InvoiceDraft",
    "InvoiceLine",
    "Money",
    "Project",
    "Service",
    "TimeEntry",
    "WeeklySummary",
]


@dataclass(frozen=True)
class TimeEntry:
    id: int
    client_id: int
    duration: int  # seconds
    started_at: str  # UTC ISO datetime
    local_started_at: str | None = None  # wall-clock, no offset
    note: str = ""
    billable: bool = True

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> TimeEntry:
        return cls(
            id=int(data["id"]),
            client_id=int(data.get("client_id") or 0),
            duration=max(int(data.get("duration") or 0), 0),
            started_at=str(data.get("started_at") or ""),
            local_started_at=data.get("local_started_at") or None,
            note=data.get("note") or "",
            billable=bool(data.get("billable", True)),
        )


@dataclass(frozen=True)
class Client:
    id: int
    organization: str = ""
    fname: str = ""
    lname: str = ""

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Client:
        return cls(
            id=int(data["id"]),
            organization=data.get("organization") or "",
            fname=data.get("fname") or "",
            lname=data.get("lname") or "",
        )

    @property
    def display_name(self) -> str:
        """Organization, else "first last", else ``Client #<id>``."""
        if self.organization:
            return self.organization
        person = f"{self.fname} {self.lname}".strip()
        return person or f"Client #{self.id}"


@dataclass(frozen=True)
class Project:
    id: int
    title: str = ""
    client_id: int | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Project:
        client_id = data.get("client_id")
        return cls(
            id=int(data["id"]),
            title=data.get("title") or f"Project #{data['id']}",
            client_id=int(client_id) if client_id else None,
        )


@dataclass(frozen=True)
class Service:
    id: int
    name: str = ""

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Service:
        return cls(id=int(data["id"]), name=data.get("name") or f"Service #{data['id']}")


@dataclass(frozen=True)
class Identity:
    account_id: str
    business_id: int


@dataclass
class ClientSummary:
    name: str
    daily: list[float]  # Mon..Fri
    total: float


@dataclass
class WeeklySummary:
    week_start: str
    week_end: str
    clients: list[ClientSummary] = field(default_factory=list)
    grand_total: float = 0.0


@dataclass(frozen=True)
class Money:
    amount: str
    code: str

    def to_api(self) -> dict[str, str]:
        return {"amount": self.amount, "code": self.code}


@dataclass(frozen=True)
class InvoiceLine:
    name: str
    description: str
    qty: str
    unit_cost: Money
    type: int = LINE_TYPE_NORMAL

    def to_api(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "name": self.name,
            "description": self.description,
            "qty": self.qty,
            "unit_cost": self.unit_cost.to_api(),
        }


@dataclass
class InvoiceDraft:
    customer_id: int
    create_date: str
    lines: list[InvoiceLine]
    status: int
    notes: str | None = None

    def to_api(self) -> dict[str, Any]:
        invoice: dict[str, Any] = {
            "customerid": self.customer_id,
            "create_date": self.create_date,
            "lines": [line.to_api() for line in self.lines],
            "status": self.status,
        }
        if self.notes:
            invoice["notes"] = self.notes
        return {"invoice": invoice}


@dataclass(frozen=True)
class Invoice:
    id: int
    invoice_number: str
    amount: Money
    status: str = ""
    client_view_link: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Invoice:
        amount = data.get("amount") or {}
        links = data.get("links") or {}
        return cls(
            id=int(data.get("invoiceid") or data["id"]),
            invoice_number=str(data.get("invoice_number", "")),
            amount=Money(amount=str(amount.get("amount", "")), code=str(amount.get("code", ""))),
            status=str(data.get("v3_status") or ""),
            client_view_link=links.get("client_view") or None,
        )


@dataclass
class BillingOutcome:
    """Result of marking a batch of entries as billed, one request per entry."""

    billed: list[int] = field(default_factory=list)
    failed: dict[int, str] = field(default_factory=dict)

    @property
    def attempted(self) -> int:
        return len(self.billed) + len(self.failed)

    @property
    def ok(self) -> bool:
        return not self.failed
