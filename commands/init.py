"""Init command: pick per-directory defaults and write ``.freshtime.json``."""

from __future__ import annotations

import asyncio

import click

from _auth import AppContext, command_error_handler, open_registry
from _errors import ConfigError
from formatting import format_choices
from project_config import PROJECT_CONFIG_FILE, ProjectConfig, save_project_config

__all__ = ["register", "sorted_choices"]


def sorted_choices(names: dict[int, str]) -> list[tuple[int, str]]:
    """``(id, name)`` pairs ordered by name, case-insensitively."""
    return sorted(names.items(), key=lambda item: (item[1].casefold(), item[1], item[0]))


def _pick(label: str, names: dict[int, str]) -> int:
    choices = sorted_choices(names)
    click.echo("\n" + format_choices(label, choices))
    number = click.prompt(
        f"Select {label.lower()} [1-{len(choices)}]",
        type=click.IntRange(1, len(choices)),
    )
    choice_id, name = choices[number - 1]
    click.echo(f"Selected: {name}")
    return choice_id


def register(cli: click.Group) -> None:
    """Register the ``init`` command on *cli*."""

    @cli.command()
    @click.pass_obj
    @command_error_handler(f"Failed to write {PROJECT_CONFIG_FILE}.")
    def init(app: AppContext) -> None:
        """Initialize .freshtime.json in the current directory."""

        async def _run() -> ProjectConfig:
            async with open_registry(app) as (registry, config):
                clients = await registry.customers.client_names(config.account_id)
                if not clients:
                    raise ConfigError("No clients found on this account.")
                client_id = _pick("Client", clients)

                projects = await registry.projects.list_projects(config.business_id, client_id)
                project_id = None
                if projects:
                    project_id = _pick("Project", {p.id: p.title for p in projects})
                else:
                    click.echo("No projects found for this client, skipping.")

                services = await registry.services.list_services(config.business_id)
                service_id = None
                if services:
                    service_id = _pick("Service", {s.id: s.name for s in services})
                else:
                    click.echo("No services found, skipping.")

                return ProjectConfig(client_id, project_id, service_id)

        path = save_project_config(asyncio.run(_run()))
        click.echo(f"Wrote {path.name}")
