"""Invoice command: turn a client's unbilled time into a FreshBooks invoice."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

import click

from _auth import AppContext, command_error_handler, open_registry
from _constants import DEFAULT_CURRENCY, DEFAULT_LINE_NAME, INVOICE_STATUS_CODES
from _errors import ConfigError
from clients import FreshBooksClientRegistry
from config import Config
from formatting import format_invoice_report
from models import BillingOutcome, Invoice, InvoiceDraft, InvoiceLine, Money, TimeEntry

logger = logging.getLogger("freshtime.cli")

__all__ = [
    "InvoiceOptions",
    "InvoiceReport",
    "build_invoice_lines",
    "register",
    "run_invoice",
]

_CENTS = Decimal("0.01")


@dataclass
class InvoiceOptions:
    rate: str | None = None
    currency: str | None = None
    status: str | None = None
    notes: str | None = None
    dry_run: bool = False
    create_date: date | None = None


@dataclass
class InvoiceReport:
    """Everything the invoice command did, for rendering."""

    client_id: int
    entries: list[TimeEntry] = field(default_factory=list)
    lines: list[InvoiceLine] = field(default_factory=list)
    rate: str = ""
    currency: str = ""
    status: str = ""
    hours: float = 0.0
    total: str = "0.00"
    dry_run: bool = False
    invoice: Invoice | None = None
    share_link: str | None = None
    billing: BillingOutcome | None = None

    @property
    def nothing_to_invoice(self) -> bool:
        return not self.entries


def build_invoice_lines(
    entries: Sequence[TimeEntry],
    rate: str,
    currency: str,
) -> list[InvoiceLine]:
    """One line per entry, in input order."""
    lines: list[InvoiceLine] = []
    for entry in entries:
        local = entry.local_started_at or ""
        lines.append(
            InvoiceLine(
                name=entry.note or DEFAULT_LINE_NAME,
                description=local.split("T", 1)[0],
                qty=f"{entry.duration / 3600:.2f}",
                unit_cost=Money(amount=rate, code=currency),
            )
        )
    return lines


def _resolve_rate(client_id: int, options: InvoiceOptions, config: Config) -> str:
    rate = options.rate or config.rate_for(client_id)
    if not rate:
        raise ConfigError(
            f"No rate configured for client {client_id}. "
            f"Use --rate <amount> or set client_rates.{client_id} in config."
        )
    try:
        value = Decimal(rate)
    except InvalidOperation as exc:
        raise ConfigError(f"Invalid hourly rate {rate!r} for client {client_id}.") from exc
    if not value.is_finite() or value < 0:
        raise ConfigError(f"Invalid hourly rate {rate!r} for client {client_id}.")
    return rate


def _resolve_status(options: InvoiceOptions, config: Config) -> str:
    status = (options.status or config.invoice_status).lower()
    if status not in INVOICE_STATUS_CODES:
        raise ConfigError(
            f"Invalid invoice status {status!r}; expected one of {sorted(INVOICE_STATUS_CODES)}."
        )
    return status


async def run_invoice(
    registry: FreshBooksClientRegistry,
    config: Config,
    client_id: int,
    options: InvoiceOptions,
) -> InvoiceReport:
    """Invoice every unbilled, billable entry of *client_id*.

    Stops early when there is nothing to bill, fails before any write when no
    rate can be resolved, and never writes in dry-run mode.  After the invoice
    exists, the share link and the billed flags are best effort: their
    failures land in the report instead of raising.
    """
    report = InvoiceReport(client_id=client_id, dry_run=options.dry_run)
    entries = await registry.time_entries.list_unbilled(config.business_id, client_id)
    if not entries:
        return report
    report.entries = entries

    report.rate = _resolve_rate(client_id, options, config)
    report.currency = options.currency or config.default_currency or DEFAULT_CURRENCY
    report.status = _resolve_status(options, config)
    report.lines = build_invoice_lines(entries, report.rate, report.currency)

    total_seconds = sum(e.duration for e in entries)
    report.hours = total_seconds / 3600
    report.total = str(
        (Decimal(total_seconds) / 3600 * Decimal(report.rate)).quantize(_CENTS, ROUND_HALF_UP)
    )

    if options.dry_run:
        return report

    draft = InvoiceDraft(
        customer_id=client_id,
        create_date=(options.create_date or date.today()).isoformat(),
        lines=report.lines,
        status=INVOICE_STATUS_CODES[report.status],
        notes=options.notes,
    )
    report.invoice = await registry.invoices.create(config.account_id, draft)
    logger.info(
        "Created invoice %s (id=%d) for client %d",
        report.invoice.invoice_number,
        report.invoice.id,
        client_id,
    )

    report.share_link = (
        await registry.invoices.share_link(config.account_id, report.invoice.id)
        or report.invoice.client_view_link
    )
    report.billing = await registry.time_entries.mark_billed(config.business_id, entries)
    return report


def register(cli: click.Group) -> None:
    """Register the ``invoice`` command on *cli*."""

    @cli.command()
    @click.argument("client_id", type=int)
    @click.option("--rate", default=None, help="Override the hourly rate for this run.")
    @click.option("--currency", default=None, help="Override currency code (default: config or USD).")
    @click.option(
        "--status",
        type=click.Choice(sorted(INVOICE_STATUS_CODES), case_sensitive=False),
        default=None,
        help="Invoice status (default: config invoice_status or draft).",
    )
    @click.option("--notes", default=None, help="Add notes to the invoice.")
    @click.option("--dry-run", is_flag=True, help="Show what would be invoiced without creating it.")
    @click.pass_obj
    @command_error_handler("Failed to create the invoice.")
    def invoice(
        app: AppContext,
        client_id: int,
        rate: str | None,
        currency: str | None,
        status: str | None,
        notes: str | None,
        dry_run: bool,
    ) -> None:
        """Create an invoice for all unbilled time entries for a client."""
        options = InvoiceOptions(
            rate=rate, currency=currency, status=status, notes=notes, dry_run=dry_run
        )

        async def _run() -> InvoiceReport:
            async with open_registry(app) as (registry, config):
                return await run_invoice(registry, config, client_id, options)

        click.echo(format_invoice_report(asyncio.run(_run())))
