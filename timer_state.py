"""On-disk state of the running timer (``freshtime start`` / ``stop``).

At most one timer runs at a time; its state lives in ``timer.json`` next
to the config file until ``stop`` logs it as a time entry.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from _errors import ConfigError
from config import default_config_path

__all__ = [
    "TIMER_FILE",
    "JsonTimerStore",
    "TimerState",
    "default_timer_path",
    "format_elapsed",
]

logger = logging.getLogger("freshtime.cli")

TIMER_FILE = "timer.json"

# Entries shorter than a minute are logged as one minute.
MIN_LOGGED_SECONDS = 60


def default_timer_path() -> Path:
    return default_config_path().parent / TIMER_FILE


@dataclass(frozen=True)
class TimerState:
    started_at: datetime  # timezone-aware
    client_id: int
    note: str = ""
    project_id: int | None = None
    service_id: int | None = None
    billable: bool = True

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TimerState:
        try:
            started_at = datetime.fromisoformat(str(data["started_at"]).replace("Z", "+00:00"))
            if started_at.tzinfo is None:
                started_at = started_at.replace(tzinfo=UTC)
            return cls(
                started_at=started_at,
                client_id=int(data["client_id"]),
                note=data.get("note") or "",
                project_id=int(data["project_id"]) if data.get("project_id") else None,
                service_id=int(data["service_id"]) if data.get("service_id") else None,
                billable=bool(data.get("billable", True)),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise ConfigError(f"Corrupt timer state: {exc}") from exc

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "started_at": self.started_at.isoformat(),
            "note": self.note,
            "client_id": self.client_id,
            "billable": self.billable,
        }
        if self.project_id is not None:
            out["project_id"] = self.project_id
        if self.service_id is not None:
            out["service_id"] = self.service_id
        return out

    def elapsed_seconds(self, now: datetime | None = None) -> int:
        """Whole seconds since the start, never less than a minute."""
        now = now or datetime.now(UTC)
        return max(round((now - self.started_at).total_seconds()), MIN_LOGGED_SECONDS)


def format_elapsed(seconds: float) -> str:
    """``1h5m`` style; minutes only below an hour."""
    hours, minutes = divmod(int(seconds) // 60, 60)
    return f"{hours}h{minutes}m" if hours else f"{minutes}m"


class JsonTimerStore:
    def __init__(self, path: Path | None = None) -> None:
        self.path: Path = path or default_timer_path()

    def load(self) -> TimerState | None:
        """The running timer, or None when no timer is running."""
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ConfigError(f"Corrupt timer state in {self.path}: {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigError(f"Corrupt timer state in {self.path}: expected a JSON object")
        return TimerState.from_dict(data)

    def save(self, state: TimerState) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(state.to_dict(), indent=2) + "\n", encoding="utf-8")
        logger.debug("Timer state saved to %s", self.path)

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)
