"""Command module loader.

Each module in ``AVAILABLE_COMMANDS`` exposes ``register(cli)`` and adds its
commands to the root click group.
"""

from __future__ import annotations

import importlib
import logging

import click

logger = logging.getLogger("freshtime.cli")

__all__ = ["AVAILABLE_COMMANDS", "load_commands"]

AVAILABLE_COMMANDS: dict[str, str] = {
    "setup": "commands.setup",
    "weekly": "commands.weekly",
    "clients": "commands.clients",
    "invoice": "commands.invoice",
    "log": "commands.log",
    "timer": "commands.timer",
    "init": "commands.init",
}


def load_commands(cli: click.Group) -> list[str]:
    """Import every command module and register it on *cli*.

    Returns the list of loaded module names.
    """
    loaded: list[str] = []
    for name, module_path in AVAILABLE_COMMANDS.items():
        module = importlib.import_module(module_path)
        module.register(cli)
        loaded.append(name)
    logger.debug("Loaded command modules: %s", loaded)
    return loaded
