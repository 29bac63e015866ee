"""Setup and refresh commands: obtain, persist and rotate OAuth credentials."""

from __future__ import annotations

import asyncio
import logging
import tempfile
from pathlib import Path

import click

from _auth import AppContext, command_error_handler
from _constants import OAUTH_REDIRECT_URI
from _errors import ConfigError
from clients import FreshBooksClientRegistry
from clients._base import BaseFreshBooksClient
from config import Config, JsonConfigStore, OAuthApp
from oauth_server import authorize_url, self_signed_context, wait_for_auth_code

logger = logging.getLogger("freshtime.cli")

__all__ = ["complete_setup", "register", "run_refresh"]


def _require_oauth_app(app: AppContext) -> OAuthApp:
    if app.oauth_app is None:
        raise ConfigError(
            "Missing FRESHBOOKS_CLIENT_ID or FRESHBOOKS_CLIENT_SECRET environment variables."
        )
    return app.oauth_app


async def complete_setup(app: AppContext, code: str) -> Config:
    """Exchange *code*, resolve the account and save the resulting config.

    Rates, currency and invoice status from an existing config are kept.
    """
    oauth_app = _require_oauth_app(app)
    pending = Config(access_token="", account_id="", business_id=0)
    # No store: nothing is persisted until identity resolution succeeded.
    base = BaseFreshBooksClient(pending, None, oauth_app, base_url=app.base_url)
    async with FreshBooksClientRegistry(base) as registry:
        session = await registry.base.exchange_code(code, OAUTH_REDIRECT_URI)
        identity = await registry.identity.get_identity()

    try:
        previous: Config | None = app.store.load()
    except ConfigError:
        previous = None

    config = Config(
        access_token=session.access_token,
        refresh_token=session.refresh_token,
        account_id=identity.account_id,
        business_id=identity.business_id,
    )
    if previous is not None:
        config.client_rates = previous.client_rates
        config.default_currency = previous.default_currency
        config.invoice_status = previous.invoice_status
    app.store.save(config)
    logger.info("Saved config for account %s", identity.account_id)
    return config


async def run_refresh(app: AppContext) -> None:
    config = app.store.load()
    async with BaseFreshBooksClient(
        config, app.store, app.oauth_app, base_url=app.base_url
    ) as base:
        await base.refresh_tokens()


def register(cli: click.Group) -> None:
    """Register the ``setup`` and ``refresh`` commands on *cli*."""

    @cli.command()
    @click.option(
        "--timeout",
        type=float,
        default=300.0,
        show_default=True,
        help="Seconds to wait for the browser redirect.",
    )
    @click.pass_obj
    @command_error_handler("Setup failed.")
    def setup(app: AppContext, timeout: float) -> None:
        """Authenticate with FreshBooks via OAuth."""
        oauth_app = _require_oauth_app(app)
        click.echo("Open this link to authorize freshtime:\n")
        click.echo(f"  {authorize_url(oauth_app)}\n")
        click.echo("Waiting for authorization...")

        async def _run() -> Config:
            with tempfile.TemporaryDirectory() as tmp:
                ssl_context = self_signed_context(Path(tmp))
                code = await wait_for_auth_code(ssl_context=ssl_context, timeout=timeout)
            click.echo("Exchanging code for token...")
            return await complete_setup(app, code)

        config = asyncio.run(_run())
        click.echo("\nSetup complete.")
        click.echo(f"  Account:  {config.account_id}")
        click.echo(f"  Business: {config.business_id}")
        if isinstance(app.store, JsonConfigStore):
            click.echo(f"  Config saved to: {app.store.path}")

    @cli.command()
    @click.pass_obj
    @command_error_handler("Token refresh failed.")
    def refresh(app: AppContext) -> None:
        """Refresh OAuth tokens (silent on success, stderr on error)."""
        asyncio.run(run_refresh(app))
