"""Log command: record a single time entry."""

from __future__ import annotations

import asyncio
import re
from datetime import UTC, datetime

import click

from _auth import AppContext, command_error_handler, open_registry
from _errors import ConfigError
from models import TimeEntry
from project_config import resolve_entry_target

__all__ = ["parse_duration", "register"]

_DURATION_RE = re.compile(r"^(?:(\d+)h)?(?:(\d+)m)?$")


def parse_duration(text: str) -> int:
    """Parse ``2h``, ``30m`` or ``1h30m`` into seconds."""
    match = _DURATION_RE.match(text.strip().lower())
    if match is None or not any(match.groups()):
        raise ConfigError(f"Invalid duration {text!r} (expected format: 2h, 30m, 1h30m)")
    hours, minutes = (int(g) if g else 0 for g in match.groups())
    seconds = hours * 3600 + minutes * 60
    if seconds <= 0:
        raise ConfigError(f"Duration must be positive, got {text!r}")
    return seconds


def register(cli: click.Group) -> None:
    """Register the ``log`` command on *cli*."""

    @cli.command()
    @click.option("-m", "--message", required=True, help="Note for the time entry.")
    @click.option("-d", "--duration", required=True, help="Duration (e.g. 2h, 30m, 1h30m).")
    @click.option("--client", "client_id", type=int, help="Client ID (overrides .freshtime.json).")
    @click.option("--project", "project_id", type=int, help="Project ID (overrides .freshtime.json).")
    @click.option("--service", "service_id", type=int, help="Service ID (overrides .freshtime.json).")
    @click.option("--no-billable", is_flag=True, help="Mark as non-billable.")
    @click.pass_obj
    @command_error_handler("Failed to create the time entry.")
    def log(
        app: AppContext,
        message: str,
        duration: str,
        client_id: int | None,
        project_id: int | None,
        service_id: int | None,
        no_billable: bool,
    ) -> None:
        """Log a time entry."""
        target = resolve_entry_target(client_id, project_id, service_id)
        seconds = parse_duration(duration)

        async def _run() -> TimeEntry:
            async with open_registry(app) as (registry, config):
                return await registry.time_entries.create(
                    config.business_id,
                    client_id=target.client_id,
                    duration=seconds,
                    note=message,
                    started_at=datetime.now(UTC).strftime("%Y-%m-%dT%H:%M:%SZ"),
                    billable=not no_billable,
                    project_id=target.project_id,
                    service_id=target.service_id,
                )

        entry = asyncio.run(_run())
        click.echo(f"Logged {seconds / 3600:.2f}h: {message} (entry #{entry.id})")
