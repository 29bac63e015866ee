"""Timer commands: ``start``, ``stop`` and ``status``.

``start`` records the start time on disk, ``stop`` logs the elapsed time
as a time entry and clears the timer.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import UTC, datetime

import click

from _auth import AppContext, command_error_handler, open_registry
from _errors import ConfigError
from clients import FreshBooksClientRegistry
from config import Config
from models import TimeEntry
from project_config import resolve_entry_target
from timer_state import TimerState, format_elapsed

logger = logging.getLogger("freshtime.cli")

__all__ = ["register", "stop_timer"]


async def stop_timer(
    registry: FreshBooksClientRegistry,
    config: Config,
    state: TimerState,
    note: str,
    now: datetime | None = None,
) -> tuple[TimeEntry, int]:
    """Log the running timer as a time entry; returns the entry and its seconds."""
    seconds = state.elapsed_seconds(now)
    entry = await registry.time_entries.create(
        config.business_id,
        client_id=state.client_id,
        duration=seconds,
        note=note,
        started_at=state.started_at.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%SZ"),
        billable=state.billable,
        project_id=state.project_id,
        service_id=state.service_id,
    )
    return entry, seconds


def register(cli: click.Group) -> None:
    """Register ``start``, ``stop`` and ``status`` on *cli*."""

    @cli.command()
    @click.option("-m", "--message", default="", help="Note for the time entry.")
    @click.option("--client", "client_id", type=int, help="Client ID (overrides .freshtime.json).")
    @click.option("--project", "project_id", type=int, help="Project ID (overrides .freshtime.json).")
    @click.option("--service", "service_id", type=int, help="Service ID (overrides .freshtime.json).")
    @click.option("--no-billable", is_flag=True, help="Mark as non-billable.")
    @click.pass_obj
    @command_error_handler("Failed to start the timer.")
    def start(
        app: AppContext,
        message: str,
        client_id: int | None,
        project_id: int | None,
        service_id: int | None,
        no_billable: bool,
    ) -> None:
        """Start a time tracking timer."""
        running = app.timer.load()
        if running is not None:
            raise ConfigError(
                f"Timer already running (started {format_elapsed(running.elapsed_seconds())} "
                f"ago, note: {running.note!r}). Run `freshtime stop` first."
            )
        target = resolve_entry_target(client_id, project_id, service_id)
        app.timer.save(
            TimerState(
                started_at=datetime.now(UTC),
                client_id=target.client_id,
                note=message,
                project_id=target.project_id,
                service_id=target.service_id,
                billable=not no_billable,
            )
        )
        click.echo(f"Timer started: {message}" if message else "Timer started")

    @cli.command()
    @click.option("-m", "--message", default="", help="Override the note set at start.")
    @click.pass_obj
    @command_error_handler("Failed to stop the timer.")
    def stop(app: AppContext, message: str) -> None:
        """Stop the running timer and log the time entry."""
        state = app.timer.load()
        if state is None:
            raise ConfigError("No timer running.")
        note = message or state.note

        async def _run() -> tuple[TimeEntry, int]:
            async with open_registry(app) as (registry, config):
                return await stop_timer(registry, config, state, note)

        entry, seconds = asyncio.run(_run())
        try:
            app.timer.clear()
        except OSError as exc:
            logger.warning("Failed to clear timer state: %s", exc)
        click.echo(f"Stopped. Logged {seconds / 3600:.2f}h: {note} (entry #{entry.id})")

    @cli.command()
    @click.pass_obj
    @command_error_handler("Failed to read the timer.")
    def status(app: AppContext) -> None:
        """Show the current timer status."""
        state = app.timer.load()
        if state is None:
            click.echo("No timer running.")
            return
        click.echo(f"Timer running: {format_elapsed(state.elapsed_seconds())}")
        if state.note:
            click.echo(f"Note: {state.note}")
        click.echo(f"Client: {state.client_id}")
        if state.project_id is not None:
            click.echo(f"Project: {state.project_id}")
