"""Shared authentication and error-handling helpers for CLI commands."""

from __future__ import annotations

import functools
import logging
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import ParamSpec, TypeVar

import click

from _constants import API_BASE_URL, REAUTH_HINT
from _errors import AuthError, FreshtimeError
from clients import FreshBooksClientRegistry
from clients._base import BaseFreshBooksClient
from config import Config, ConfigStore, JsonConfigStore, OAuthApp
from timer_state import JsonTimerStore

logger = logging.getLogger("freshtime.cli")

__all__ = ["AppContext", "command_error_handler", "open_registry"]

P = ParamSpec("P")
R = TypeVar("R")


@dataclass
class AppContext:
    """Collaborators shared by every command of one invocation."""

    store: ConfigStore = field(default_factory=JsonConfigStore)
    oauth_app: OAuthApp | None = field(default_factory=OAuthApp.from_env)
    base_url: str = API_BASE_URL
    timer: JsonTimerStore = field(default_factory=JsonTimerStore)

    def client_for(self, config: Config) -> BaseFreshBooksClient:
        return BaseFreshBooksClient(
            config, self.store, self.oauth_app, base_url=self.base_url
        )


@asynccontextmanager
async def open_registry(
    app: AppContext,
) -> AsyncIterator[tuple[FreshBooksClientRegistry, Config]]:
    """Load config and yield a registry bound to it; closes the transport on exit."""
    config = app.store.load()
    async with FreshBooksClientRegistry(app.client_for(config)) as registry:
        yield registry, config


def command_error_handler(
    error_message: str,
) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """Decorator that maps failures of a command to ``click.ClickException``.

    AuthError becomes the re-authentication hint, other known errors keep
    their message, anything unexpected is logged and reported generically.
    """

    def decorator(fn: Callable[P, R]) -> Callable[P, R]:
        @functools.wraps(fn)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            try:
                return fn(*args, **kwargs)
            except click.ClickException:
                raise
            except AuthError as exc:
                logger.debug("%s: unauthorized: %s", fn.__name__, exc.body)
                raise click.ClickException(f"Token expired. {REAUTH_HINT}") from exc
            except FreshtimeError as exc:
                raise click.ClickException(str(exc)) from exc
            except Exception:
                logger.exception("%s failed", fn.__name__)
                raise click.ClickException(error_message) from None

        return wrapper

    return decorator
