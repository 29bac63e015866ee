"""freshtime -- FreshBooks weekly time summaries and invoicing from the terminal.

Entry point for the ``freshtime`` console script.  Commands live in the
``commands`` package and register themselves on the root group.
"""

from __future__ import annotations

import importlib.metadata
import logging
import os
from pathlib import Path

import click

from _auth import AppContext
from commands import load_commands
from config import JsonConfigStore
from timer_state import TIMER_FILE, JsonTimerStore

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logger = logging.getLogger("freshtime.cli")

try:
    _APP_VERSION: str = importlib.metadata.version("freshtime")
except importlib.metadata.PackageNotFoundError:
    _APP_VERSION = os.environ.get("APP_VERSION", "dev")


def configure_logging(verbose: bool) -> None:
    """Configure logging; LOG_LEVEL env var overrides the default WARNING level."""
    level = "DEBUG" if verbose else os.environ.get("LOG_LEVEL", "WARNING").upper()
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    logging.getLogger().setLevel(level)
    # httpx logs every request at INFO.
    logging.getLogger("httpx").setLevel(logging.DEBUG if verbose else logging.WARNING)


# ---------------------------------------------------------------------------
# Root group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(_APP_VERSION, prog_name="freshtime")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Path to the config file (default: ~/.config/freshtime/config.json). "
    "The timer state is kept beside it.",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, config_path: Path | None) -> None:
    """FreshBooks weekly time summary CLI."""
    configure_logging(verbose)
    # Tests inject their own context through CliRunner.invoke(obj=...).
    if ctx.obj is None:
        timer_path = config_path.parent / TIMER_FILE if config_path else None
        ctx.obj = AppContext(
            store=JsonConfigStore(config_path), timer=JsonTimerStore(timer_path)
        )


load_commands(cli)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
