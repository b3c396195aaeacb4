"""CLI tests for init, validate and settings assembly."""

import json
from pathlib import Path

import pytest
import typer
import yaml
from typer.testing import CliRunner

from mdserve.cli import app, build_settings, render_starter_config

runner = CliRunner()


@pytest.fixture(autouse=True)
def in_tmp(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.chdir(tmp_path)
    return tmp_path


def test_init_writes_yaml(in_tmp: Path) -> None:
    """init writes a starter YAML config that loads back."""
    result = runner.invoke(app, ["init"])

    assert result.exit_code == 0
    data = yaml.safe_load((in_tmp / "mdserve.yaml").read_text(encoding="utf-8"))
    assert data["watch"] is True
    assert data["watchDebounce"] == 500


def test_init_json_refuses_overwrite(in_tmp: Path) -> None:
    """An existing file is kept unless --force is given."""
    assert runner.invoke(app, ["init", "--format", "json"]).exit_code == 0
    assert runner.invoke(app, ["init", "--format", "json"]).exit_code == 1
    assert runner.invoke(app, ["init", "--format", "json", "--force"]).exit_code == 0
    assert json.loads((in_tmp / "mdserve.json").read_text(encoding="utf-8"))["port"] == 3000


def test_init_rejects_unknown_format() -> None:
    """Only yaml and json are supported."""
    assert runner.invoke(app, ["init", "--format", "toml"]).exit_code == 2


def test_starter_config_mentions_auth() -> None:
    """The YAML starter documents the sign-in settings."""
    assert "authProvider: GOOGLE" in render_starter_config("yaml")


def test_validate_valid_and_invalid(in_tmp: Path) -> None:
    """validate exits non-zero for configs with errors."""
    (in_tmp / "good.yaml").write_text("port: 8080\nwatch: true\n", encoding="utf-8")
    (in_tmp / "bad.json").write_text('{"port": "8080"}', encoding="utf-8")
    (in_tmp / "broken.json").write_text("{", encoding="utf-8")

    assert runner.invoke(app, ["validate", "good.yaml"]).exit_code == 0
    assert runner.invoke(app, ["validate", "bad.json"]).exit_code == 1
    assert runner.invoke(app, ["validate", "broken.json"]).exit_code == 1


def test_validate_without_config_file() -> None:
    """validate fails when no default config exists."""
    assert runner.invoke(app, ["validate"]).exit_code == 1


def test_build_settings_cli_overrides_file(in_tmp: Path) -> None:
    """CLI options take precedence over the discovered config file."""
    (in_tmp / "docs").mkdir()
    (in_tmp / "mdserve.yaml").write_text(
        "directory: docs\nport: 4000\nwatchDebounce: 200\n", encoding="utf-8"
    )

    settings = build_settings(
        directory=None,
        port=5000,
        host="127.0.0.1",
        verbose=False,
        watch=True,
        watch_debounce=None,
        auth=False,
        auth_config=None,
        config=None,
    )

    assert settings.port == 5000
    assert settings.watch is True
    assert settings.watch_debounce == 200
    assert settings.root == (in_tmp / "docs").resolve()


def test_build_settings_rejects_missing_directory(in_tmp: Path) -> None:
    """Serving a directory that does not exist is an error."""
    with pytest.raises(typer.Exit):
        build_settings(
            directory=in_tmp / "missing",
            port=None,
            host="127.0.0.1",
            verbose=False,
            watch=False,
            watch_debounce=None,
            auth=False,
            auth_config=None,
            config=None,
        )


def test_build_settings_auth_requires_config(in_tmp: Path) -> None:
    """--auth without OAuth settings is an error."""
    with pytest.raises(typer.Exit):
        build_settings(
            directory=in_tmp,
            port=None,
            host="127.0.0.1",
            verbose=False,
            watch=False,
            watch_debounce=None,
            auth=True,
            auth_config=None,
            config=None,
        )
