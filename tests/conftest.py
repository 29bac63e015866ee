"""Pytest configuration for freshtime tests.

Keeps the real config file and OAuth app credentials out of every test and
provides shared fixtures for the transport and the registry.
"""

from __future__ import annotations

import os
from collections.abc import AsyncGenerator
from pathlib import Path
from typing import Any

import pytest
import pytest_asyncio

os.environ.pop("FRESHBOOKS_CLIENT_ID", None)
os.environ.pop("FRESHBOOKS_CLIENT_SECRET", None)
os.environ.setdefault("FRESHTIME_CONFIG", "/nonexistent/freshtime-test/config.json")

from _auth import AppContext
from _errors import ConfigError
from clients import FreshBooksClientRegistry
from clients._base import BaseFreshBooksClient
from config import Config, OAuthApp
from timer_state import JsonTimerStore

BASE_URL = "https://api.freshbooks.test"
ACCOUNT_ID = "acc123"
BUSINESS_ID = 77


class MemoryConfigStore:
    """In-memory ``ConfigStore`` that records every save."""

    def __init__(self, config: Config | None = None) -> None:
        self.config = config
        self.saved: list[dict[str, Any]] = []

    def load(self) -> Config:
        if self.config is None:
            raise ConfigError("Config not found. Run `freshtime setup` to configure your token.")
        return Config.from_dict(self.config.to_dict())

    def save(self, config: Config) -> None:
        self.saved.append(config.to_dict())
        self.config = Config.from_dict(config.to_dict())


def make_config(**overrides: Any) -> Config:
    values: dict[str, Any] = {
        "access_token": "old-token",
        "refresh_token": "refresh-1",
        "account_id": ACCOUNT_ID,
        "business_id": BUSINESS_ID,
        "client_rates": {"42": "150.00"},
    }
    values.update(overrides)
    return Config(**values)


def time_entry_json(
    entry_id: int,
    *,
    client_id: int = 42,
    duration: int = 3600,
    local: str | None = "2025-01-06T09:00:00",
    started_at: str = "2025-01-06T14:00:00Z",
    note: str = "",
) -> dict[str, Any]:
    return {
        "id": entry_id,
        "client_id": client_id,
        "duration": duration,
        "started_at": started_at,
        "local_started_at": local,
        "note": note,
        "billable": True,
    }


@pytest.fixture
def oauth_app() -> OAuthApp:
    return OAuthApp(client_id="client-id", client_secret="client-secret")


@pytest.fixture
def config() -> Config:
    return make_config()


@pytest.fixture
def store(config: Config) -> MemoryConfigStore:
    return MemoryConfigStore(config)


@pytest_asyncio.fixture
async def base_client(
    config: Config, store: MemoryConfigStore, oauth_app: OAuthApp
) -> AsyncGenerator[BaseFreshBooksClient, None]:
    c = BaseFreshBooksClient(config, store, oauth_app, base_url=BASE_URL)
    yield c
    await c.close()


@pytest.fixture
def registry(base_client: BaseFreshBooksClient) -> FreshBooksClientRegistry:
    return FreshBooksClientRegistry(base_client)


@pytest.fixture
def timer(tmp_path: Path) -> JsonTimerStore:
    return JsonTimerStore(tmp_path / "timer.json")


@pytest.fixture
def app(store: MemoryConfigStore, oauth_app: OAuthApp, timer: JsonTimerStore) -> AppContext:
    return AppContext(store=store, oauth_app=oauth_app, base_url=BASE_URL, timer=timer)
