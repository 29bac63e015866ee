"""Per-directory defaults for new time entries (``.freshtime.json``).

``freshtime init`` writes the file; ``log`` and ``start`` read it from the
current directory whenever ``--client``, ``--project`` or ``--service`` is
not given on the command line.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from _errors import ConfigError

__all__ = [
    "PROJECT_CONFIG_FILE",
    "ProjectConfig",
    "load_project_config",
    "resolve_entry_target",
    "save_project_config",
]

logger = logging.getLogger("freshtime.cli")

PROJECT_CONFIG_FILE = ".freshtime.json"

_ID_FIELDS = ("client_id", "project_id", "service_id")


def _optional_id(value: Any) -> int | None:
    # Zero means unset.
    if value in (None, "", 0):
        return None
    return int(value)


@dataclass(frozen=True)
class ProjectConfig:
    client_id: int | None = None
    project_id: int | None = None
    service_id: int | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ProjectConfig:
        try:
            return cls(**{name: _optional_id(data.get(name)) for name in _ID_FIELDS})
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"Invalid {PROJECT_CONFIG_FILE}: {exc}") from exc

    def to_dict(self) -> dict[str, int]:
        return {
            name: value for name in _ID_FIELDS if (value := getattr(self, name)) is not None
        }


def load_project_config(directory: Path | None = None) -> ProjectConfig | None:
    """Read ``.freshtime.json`` from *directory* (default: the working directory).

    Returns None when there is no such file.
    """
    path = (directory or Path.cwd()) / PROJECT_CONFIG_FILE
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    except OSError as exc:
        raise ConfigError(f"Could not read {path}: {exc}") from exc
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Invalid {PROJECT_CONFIG_FILE}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid {PROJECT_CONFIG_FILE}: expected a JSON object")
    logger.debug("Loaded project defaults from %s", path)
    return ProjectConfig.from_dict(data)


def save_project_config(project: ProjectConfig, directory: Path | None = None) -> Path:
    path = (directory or Path.cwd()) / PROJECT_CONFIG_FILE
    try:
        path.write_text(json.dumps(project.to_dict(), indent=2) + "\n", encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Could not write {path}: {exc}") from exc
    logger.debug("Project defaults written to %s", path)
    return path


def resolve_entry_target(
    client_id: int | None,
    project_id: int | None,
    service_id: int | None,
    directory: Path | None = None,
) -> ProjectConfig:
    """Fill options missing from the command line with the directory defaults.

    Raises:
        ConfigError: No client on the command line nor in ``.freshtime.json``.
    """
    defaults = load_project_config(directory) or ProjectConfig()
    target = ProjectConfig(
        client_id=client_id or defaults.client_id,
        project_id=project_id or defaults.project_id,
        service_id=service_id or defaults.service_id,
    )
    if target.client_id is None:
        raise ConfigError(
            "No client specified. Use --client or run `freshtime init` "
            f"to create {PROJECT_CONFIG_FILE}."
        )
    return target
