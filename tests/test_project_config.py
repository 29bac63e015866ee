"""Tests for project_config.py -- the per-directory ``.freshtime.json`` defaults."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from _errors import ConfigError
from project_config import (
    PROJECT_CONFIG_FILE,
    ProjectConfig,
    load_project_config,
    resolve_entry_target,
    save_project_config,
)


def _write(directory: Path, data: object) -> None:
    (directory / PROJECT_CONFIG_FILE).write_text(json.dumps(data), encoding="utf-8")


class TestLoadProjectConfig:
    def test_missing_file_is_none(self, tmp_path: Path) -> None:
        assert load_project_config(tmp_path) is None

    def test_reads_ids(self, tmp_path: Path) -> None:
        _write(tmp_path, {"client_id": 42, "project_id": 5, "service_id": 9})
        assert load_project_config(tmp_path) == ProjectConfig(42, 5, 9)

    def test_zero_and_missing_are_unset(self, tmp_path: Path) -> None:
        _write(tmp_path, {"client_id": 42, "project_id": 0})
        assert load_project_config(tmp_path) == ProjectConfig(42, None, None)

    def test_defaults_to_working_directory(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        _write(tmp_path, {"client_id": 7})
        monkeypatch.chdir(tmp_path)
        assert load_project_config() == ProjectConfig(client_id=7)

    @pytest.mark.parametrize(
        ("content", "match"),
        [
            ("{oops", "Invalid .freshtime.json"),
            ("[42]", "expected a JSON object"),
            ('{"client_id": "acme"}', "Invalid .freshtime.json"),
        ],
    )
    def test_invalid(self, tmp_path: Path, content: str, match: str) -> None:
        (tmp_path / PROJECT_CONFIG_FILE).write_text(content, encoding="utf-8")
        with pytest.raises(ConfigError, match=match):
            load_project_config(tmp_path)


class TestSaveProjectConfig:
    def test_unset_ids_omitted(self, tmp_path: Path) -> None:
        path = save_project_config(ProjectConfig(client_id=42, service_id=9), tmp_path)
        assert path == tmp_path / PROJECT_CONFIG_FILE
        assert json.loads(path.read_text(encoding="utf-8")) == {"client_id": 42, "service_id": 9}
        assert load_project_config(tmp_path) == ProjectConfig(42, None, 9)

    def test_unwritable_directory(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="Could not write"):
            save_project_config(ProjectConfig(client_id=1), tmp_path / "missing")


class TestResolveEntryTarget:
    def test_flags_override_file(self, tmp_path: Path) -> None:
        _write(tmp_path, {"client_id": 42, "project_id": 5, "service_id": 9})
        assert resolve_entry_target(7, None, 3, tmp_path) == ProjectConfig(7, 5, 3)

    def test_file_fills_missing_flags(self, tmp_path: Path) -> None:
        _write(tmp_path, {"client_id": 42, "project_id": 5})
        assert resolve_entry_target(None, None, None, tmp_path) == ProjectConfig(42, 5, None)

    def test_flags_without_file(self, tmp_path: Path) -> None:
        assert resolve_entry_target(7, None, None, tmp_path) == ProjectConfig(client_id=7)

    def test_no_client_anywhere(self, tmp_path: Path) -> None:
        _write(tmp_path, {"project_id": 5})
        with pytest.raises(ConfigError, match="freshtime init"):
            resolve_entry_target(None, None, None, tmp_path)
