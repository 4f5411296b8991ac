"""CLI tests for configuration commands."""

import os
from pathlib import Path
from typing import Any

from click.testing import CliRunner

from themekit.cli import cli
from themekit.config import ConfigManager


def _env_with_home(tmp_path: Path) -> dict[str, Any]:
    # None removes the variable for the duration of the invocation.
    env: dict[str, Any] = {key: None for key in os.environ if key.startswith("THEMEKIT")}
    env["HOME"] = str(tmp_path)
    return env


def _config_path(tmp_path: Path) -> Path:
    return tmp_path / ".themekit" / "config.yaml"


def test_config_view_creates_and_displays_config(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)

    result = runner.invoke(cli, ["config", "view"], env=env)

    assert result.exit_code == 0
    assert "backups:" in result.output
    assert _config_path(tmp_path).exists()


def test_config_view_honors_config_option(tmp_path: Path) -> None:
    runner = CliRunner()
    path = tmp_path / "custom.yaml"
    ConfigManager(config_path=path).save({"device": {"platform": "rg35xx"}})

    result = runner.invoke(
        cli, ["--config", str(path), "config", "view"], env=_env_with_home(tmp_path)
    )

    assert result.exit_code == 0
    assert "rg35xx" in result.output
    assert not _config_path(tmp_path).exists()


def test_config_set_updates_value_and_writes_diff(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)

    result = runner.invoke(
        cli, ["config", "set", "backups.max_backups", "--value", "5"], env=env
    )

    assert result.exit_code == 0
    assert "max_backups: 5" in result.output

    manager = ConfigManager(config_path=_config_path(tmp_path), env={})
    config = manager.load(include_env=False)
    assert config.backups.max_backups == 5


def test_config_set_rejects_invalid_value(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)

    result = runner.invoke(
        cli, ["config", "set", "backups.max_backups", "--value", "0"], env=env
    )

    assert result.exit_code != 0
    manager = ConfigManager(config_path=_config_path(tmp_path), env={})
    assert manager.load(include_env=False).backups.max_backups == 3


def test_config_set_same_value_reports_no_change(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)

    runner.invoke(cli, ["config", "set", "export.author", "--value", "Me"], env=env)
    result = runner.invoke(cli, ["config", "set", "export.author", "--value", "Me"], env=env)

    assert result.exit_code == 0
    assert "No changes applied" in result.output


def test_config_edit_applies_changes(tmp_path: Path, monkeypatch) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)

    manager = ConfigManager(config_path=_config_path(tmp_path), env={})
    manager.ensure_exists()

    def _mock_edit(text: str, **_: Any) -> str:
        return text.replace("max_backups: 3", "max_backups: 4")

    monkeypatch.setattr("themekit.cli.click.edit", _mock_edit)

    result = runner.invoke(cli, ["config", "edit"], env=env)

    assert result.exit_code == 0
    assert "updated" in result.output.lower()

    config = manager.load(include_env=False)
    assert config.backups.max_backups == 4


def test_config_edit_rejects_invalid_yaml(tmp_path: Path, monkeypatch) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)

    monkeypatch.setattr("themekit.cli.click.edit", lambda text, **_: "backups: [oops")

    result = runner.invoke(cli, ["config", "edit"], env=env)

    assert result.exit_code != 0
    assert "Invalid YAML" in result.output
