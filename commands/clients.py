"""Clients command: list client ids and display names."""

from __future__ import annotations

import asyncio

import click

from _auth import AppContext, command_error_handler, open_registry
from formatting import format_clients

__all__ = ["register"]


def register(cli: click.Group) -> None:
    """Register the ``clients`` command on *cli*."""

    @cli.command()
    @click.pass_obj
    @command_error_handler("Failed to list clients.")
    def clients(app: AppContext) -> None:
        """List clients with their IDs."""

        async def _run() -> dict[int, str]:
            async with open_registry(app) as (registry, config):
                return await registry.customers.client_names(config.account_id)

        click.echo(format_clients(asyncio.run(_run())))
