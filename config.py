"""Persisted CLI configuration and the store abstraction the transport writes through."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol

from _constants import DEFAULT_INVOICE_STATUS
from _errors import ConfigError

__all__ = [
    "Config",
    "ConfigStore",
    "JsonConfigStore",
    "OAuthApp",
    "default_config_path",
]

logger = logging.getLogger("freshtime.cli")

_PRIVATE_MODE = 0o600

CONFIG_ENV_VAR = "FRESHTIME_CONFIG"


def default_config_path() -> Path:
    """Return ``$FRESHTIME_CONFIG`` or ``~/.config/freshtime/config.json``."""
    override = os.environ.get(CONFIG_ENV_VAR, "").strip()
    if override:
        return Path(override).expanduser()
    return Path.home() / ".config" / "freshtime" / "config.json"


@dataclass
class Config:
    access_token: str
    account_id: str
    business_id: int
    refresh_token: str | None = None
    client_rates: dict[str, str] = field(default_factory=dict)
    default_currency: str | None = None
    invoice_status: str = DEFAULT_INVOICE_STATUS

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Config:
        try:
            return cls(
                access_token=str(data["access_token"]),
                account_id=str(data["account_id"]),
                business_id=int(data["business_id"]),
                refresh_token=data.get("refresh_token") or None,
                client_rates={str(k): str(v) for k, v in (data.get("client_rates") or {}).items()},
                default_currency=data.get("default_currency") or None,
                invoice_status=data.get("invoice_status") or DEFAULT_INVOICE_STATUS,
            )
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise ConfigError(f"Invalid config file: {exc}") from exc

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "access_token": self.access_token,
            "account_id": self.account_id,
            "business_id": self.business_id,
        }
        if self.refresh_token:
            out["refresh_token"] = self.refresh_token
        if self.client_rates:
            out["client_rates"] = dict(self.client_rates)
        if self.default_currency:
            out["default_currency"] = self.default_currency
        if self.invoice_status != DEFAULT_INVOICE_STATUS:
            out["invoice_status"] = self.invoice_status
        return out

    def rate_for(self, client_id: int) -> str | None:
        return self.client_rates.get(str(client_id)) or None


class ConfigStore(Protocol):
    def load(self) -> Config: ...

    def save(self, config: Config) -> None: ...


class JsonConfigStore:
    """Config persisted as pretty-printed JSON in a single file."""

    def __init__(self, path: Path | None = None) -> None:
        self.path: Path = path or default_config_path()

    def load(self) -> Config:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigError(
                "Config not found. Run `freshtime setup` to configure your token."
            ) from exc
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ConfigError(f"Invalid config file {self.path}: {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigError(f"Invalid config file {self.path}: expected a JSON object")
        return Config.from_dict(data)

    def save(self, config: Config) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        # Tokens live in this file. Created owner-only; an existing file is tightened.
        fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, _PRIVATE_MODE)
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            os.fchmod(fh.fileno(), _PRIVATE_MODE)
            fh.write(json.dumps(config.to_dict(), indent=2) + "\n")
        logger.debug("Config saved to %s", self.path)


@dataclass(frozen=True)
class OAuthApp:
    """OAuth client credentials of the registered FreshBooks app."""

    client_id: str
    client_secret: str

    @classmethod
    def from_env(cls) -> OAuthApp | None:
        client_id = os.environ.get("FRESHBOOKS_CLIENT_ID", "").strip()
        client_secret = os.environ.get("FRESHBOOKS_CLIENT_SECRET", "").strip()
        if not client_id or not client_secret:
            return None
        return cls(client_id=client_id, client_secret=client_secret)
