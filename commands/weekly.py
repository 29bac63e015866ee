"""Weekly summary command: Monday-Friday hours per client."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from datetime import date, datetime, timedelta

import click

from _auth import AppContext, command_error_handler, open_registry
from _constants import WORKWEEK_DAYS
from clients import FreshBooksClientRegistry
from config import Config
from formatting import format_json, format_table
from models import ClientSummary, TimeEntry, WeeklySummary

logger = logging.getLogger("freshtime.cli")

__all__ = ["build_summary", "get_week_range", "register", "run_weekly"]


def get_week_range(reference: date) -> tuple[str, str]:
    """Return the Monday and the Friday of the week containing *reference*.

    Sunday belongs to the week that started six days earlier.
    """
    monday = reference - timedelta(days=reference.weekday())
    friday = monday + timedelta(days=WORKWEEK_DAYS - 1)
    return monday.isoformat(), friday.isoformat()


def _entry_day(entry: TimeEntry) -> date | None:
    """Calendar day of an entry, by local start time when the API provides one."""
    stamp = entry.local_started_at or entry.started_at
    try:
        return datetime.fromisoformat(stamp.replace("Z", "+00:00")).date()
    except ValueError:
        return None


def _hours(seconds: float) -> float:
    return round(seconds / 3600, 2)


def build_summary(
    entries: Iterable[TimeEntry],
    client_names: dict[int, str],
    week_start: str,
) -> WeeklySummary:
    """Bucket *entries* into per-client Mon..Fri hour totals.

    Weekend entries are dropped.  Each day is rounded to 2 decimals, the
    client total is the rounded sum of the rounded days and the grand total
    the rounded sum of client totals.
    """
    monday = date.fromisoformat(week_start)
    week_end = (monday + timedelta(days=WORKWEEK_DAYS - 1)).isoformat()

    by_client: dict[int, list[int]] = {}
    for entry in entries:
        day = _entry_day(entry)
        if day is None:
            logger.debug("Skipping time entry %d without a start time", entry.id)
            continue
        day_index = day.weekday()
        if day_index >= WORKWEEK_DAYS:
            continue
        daily = by_client.setdefault(entry.client_id, [0] * WORKWEEK_DAYS)
        daily[day_index] += entry.duration

    clients: list[ClientSummary] = []
    grand_total = 0.0
    for client_id, seconds in by_client.items():
        daily_hours = [_hours(s) for s in seconds]
        total = round(sum(daily_hours), 2)
        grand_total += total
        clients.append(
            ClientSummary(
                name=client_names.get(client_id) or f"Client #{client_id}",
                daily=daily_hours,
                total=total,
            )
        )

    clients.sort(key=lambda c: (c.name.casefold(), c.name))
    return WeeklySummary(
        week_start=week_start,
        week_end=week_end,
        clients=clients,
        grand_total=round(grand_total, 2),
    )


async def run_weekly(
    registry: FreshBooksClientRegistry,
    config: Config,
    week_of: date | None = None,
) -> WeeklySummary:
    """Fetch the week's entries and the client names concurrently, then aggregate.

    If either fetch fails the other is cancelled and the first failure is
    raised on its own.
    """
    week_start, week_end = get_week_range(week_of or date.today())
    logger.debug("Building weekly summary for %s..%s", week_start, week_end)

    try:
        async with asyncio.TaskGroup() as tg:
            entries_task = tg.create_task(
                registry.time_entries.list_for_range(config.business_id, week_start, week_end)
            )
            names_task = tg.create_task(registry.customers.client_names(config.account_id))
    except ExceptionGroup as group:
        raise group.exceptions[0] from None
    return build_summary(entries_task.result(), names_task.result(), week_start)


def register(cli: click.Group) -> None:
    """Register the ``weekly`` command on *cli*."""

    @cli.command()
    @click.option(
        "--week-of",
        type=click.DateTime(formats=["%Y-%m-%d"]),
        default=None,
        help="Show the week containing this date (YYYY-MM-DD).",
    )
    @click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
    @click.pass_obj
    @command_error_handler("Failed to build the weekly summary.")
    def weekly(app: AppContext, week_of: datetime | None, as_json: bool) -> None:
        """Show weekly time summary grouped by client."""

        async def _run() -> WeeklySummary:
            async with open_registry(app) as (registry, config):
                return await run_weekly(
                    registry, config, week_of.date() if week_of else None
                )

        summary = asyncio.run(_run())
        click.echo(format_json(summary) if as_json else format_table(summary))
