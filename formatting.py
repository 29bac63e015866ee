"""Text and JSON rendering of command results."""

from __future__ import annotations

import json
from dataclasses import asdict
from datetime import date
from typing import TYPE_CHECKING

from _constants import DAY_HEADERS, WORKWEEK_DAYS
from models import WeeklySummary

if TYPE_CHECKING:
    from commands.invoice import InvoiceReport

__all__ = [
    "format_choices",
    "format_clients",
    "format_invoice_report",
    "format_json",
    "format_table",
]

NAME_WIDTH = 20
COL_WIDTH = 6
ID_WIDTH = 8

_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def _format_hours(hours: float) -> str:
    return "—" if hours == 0 else f"{hours:.1f}"


def _format_date_range(start: str, end: str) -> str:
    s = date.fromisoformat(start)
    e = date.fromisoformat(end)
    return f"{_MONTHS[s.month - 1]} {s.day} – {_MONTHS[e.month - 1]} {e.day}, {e.year}"


def format_table(summary: WeeklySummary) -> str:
    lines = [f"Week of {_format_date_range(summary.week_start, summary.week_end)}", ""]

    header = (
        "Client".ljust(NAME_WIDTH)
        + "".join(d.rjust(COL_WIDTH) for d in DAY_HEADERS)
        + "  Total"
    )
    separator = "─" * len(header)
    lines += [header, separator]

    for client in summary.clients:
        lines.append(
            client.name[:NAME_WIDTH].ljust(NAME_WIDTH)
            + "".join(_format_hours(h).rjust(COL_WIDTH) for h in client.daily)
            + _format_hours(client.total).rjust(COL_WIDTH + 1)
            + "h"
        )
    lines.append(separator)

    daily_totals = [
        round(sum(c.daily[i] for c in summary.clients), 2) for i in range(WORKWEEK_DAYS)
    ]
    lines.append(
        "Total".ljust(NAME_WIDTH)
        + "".join(_format_hours(h).rjust(COL_WIDTH) for h in daily_totals)
        + _format_hours(summary.grand_total).rjust(COL_WIDTH + 1)
        + "h"
    )
    return "\n".join(lines)


def format_json(summary: WeeklySummary) -> str:
    return json.dumps(asdict(summary), indent=2)


def format_clients(names: dict[int, str]) -> str:
    lines = ["ID".ljust(ID_WIDTH) + "Name", "─" * 40]
    for client_id, name in names.items():
        lines.append(str(client_id).ljust(ID_WIDTH) + name)
    if not names:
        lines.append("No clients found.")
    return "\n".join(lines)


def format_choices(label: str, choices: list[tuple[int, str]]) -> str:
    """Numbered menu, one ``N) name (ID: id)`` line per choice."""
    lines = [f"{label}:"]
    for number, (choice_id, name) in enumerate(choices, start=1):
        lines.append(f"  {number}) {name} (ID: {choice_id})")
    return "\n".join(lines)


def format_invoice_report(report: InvoiceReport) -> str:
    """Render the outcome of the invoice workflow.

    Three shapes: nothing to invoice, a dry-run preview, or the created
    invoice followed by its share link and billing status.
    """
    if report.nothing_to_invoice:
        return "No unbilled time entries found for this client."

    currency = report.currency
    if report.dry_run or report.invoice is None:
        out = [
            "Dry run — no invoice created.",
            "",
            f"Entries: {len(report.entries)}",
            f"Hours:   {report.hours:.2f}",
            f"Rate:    {report.rate} {currency}/hr",
            f"Status:  {report.status}",
            f"Total:   {report.total} {currency}",
            "",
            "Line items:",
        ]
        out += [f"  {line.description}  {line.qty}h  {line.name}" for line in report.lines]
        return "\n".join(out)

    invoice = report.invoice
    out = [
        f"Invoice #{invoice.invoice_number} created ({report.status}).",
        f"ID:      {invoice.id}",
        f"Entries: {len(report.entries)}",
        f"Hours:   {report.hours:.2f}",
        f"Total:   {invoice.amount.amount or report.total} {invoice.amount.code or currency}",
    ]
    if report.share_link:
        out.append(f"Link:    {report.share_link}")
    else:
        out.append("Link:    (share link unavailable — may need invoices:read scope)")

    billing = report.billing
    if billing is None or billing.ok:
        out.append(f"Billed:  {len(report.entries)} entries marked as billed")
    else:
        out.append(
            f"Warning: Failed to mark entries as billed — "
            f"{len(billing.billed)} of {billing.attempted} marked."
        )
        out += [f"  #{entry_id}: {reason}" for entry_id, reason in billing.failed.items()]
    return "\n".join(out)
