"""Unit tests for configuration management."""

from pathlib import Path

import pytest

from themekit.config import (
    ConfigError,
    ConfigManager,
    ThemeKitConfig,
    flatten_for_env,
    resolve_with_precedence,
)


def _fresh_manager(tmp_path: Path) -> ConfigManager:
    return ConfigManager(tmp_path / "config.yaml", env={})


def test_ensure_exists_creates_default_file(tmp_path: Path) -> None:
    manager = _fresh_manager(tmp_path)

    path = manager.ensure_exists()

    assert path.exists()
    text = path.read_text(encoding="utf-8")
    assert "themekit configuration file" in text
    assert "Last updated:" in text

    config = manager.load(include_env=False)
    assert isinstance(config, ThemeKitConfig)
    assert config.device.sdcard_root == "/mnt/SDCARD"


def test_default_path_expands_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("HOME", str(tmp_path))

    manager = ConfigManager()

    assert manager.config_path == tmp_path / ".themekit" / "config.yaml"


def test_resolve_with_precedence_respects_order(tmp_path: Path) -> None:
    manager = _fresh_manager(tmp_path)
    manager.ensure_exists()

    manager.save({"device": {"platform": "rg35xx"}, "backups": {"max_backups": 5}})

    env = {"THEMEKIT__BACKUPS__MAX_BACKUPS": "7", "THEMEKIT__EXPORT__AUTHOR": "Env Author"}
    cli = {"backups.max_backups": 2}

    config = manager.load(cli_overrides=cli, env_overrides=env)

    assert config.device.platform == "rg35xx"
    assert config.export.author == "Env Author"
    # CLI overrides take precedence over environment
    assert config.backups.max_backups == 2


def test_environment_is_read_from_the_injected_mapping(tmp_path: Path) -> None:
    manager = ConfigManager(tmp_path / "config.yaml", env={"THEMEKIT__CLI__QUIET_DEFAULT": "true"})

    assert manager.load().cli.quiet_default is True
    assert manager.load(include_env=False).cli.quiet_default is False


def test_invalid_yaml_raises_config_error(tmp_path: Path) -> None:
    manager = _fresh_manager(tmp_path)
    manager.ensure_exists()

    manager.config_path.write_text("- not-a-mapping", encoding="utf-8")

    with pytest.raises(ConfigError):
        manager.load()

    manager.config_path.write_text("device: [unclosed", encoding="utf-8")

    with pytest.raises(ConfigError):
        manager.load()


def test_flatten_for_env_round_trips_defaults() -> None:
    flat = flatten_for_env(ThemeKitConfig())

    assert flat["THEMEKIT__DEVICE__PLATFORM"] == "tg5040"
    assert flat["THEMEKIT__BACKUPS__MAX_BACKUPS"] == "3"
    assert flat["THEMEKIT__DEVICE__LIVE_THEME_DIR"] == "null"


def test_resolve_with_precedence_invalid_value_raises() -> None:
    with pytest.raises(ConfigError):
        resolve_with_precedence(
            defaults=ThemeKitConfig(),
            file_overrides={"backups": {"max_backups": "not-an-int"}},
        )

    with pytest.raises(ConfigError):
        resolve_with_precedence(defaults=ThemeKitConfig(), cli_overrides={"backups.max_backups": 0})


def test_unknown_keys_are_rejected() -> None:
    with pytest.raises(ConfigError):
        resolve_with_precedence(
            defaults=ThemeKitConfig(), file_overrides={"device": {"colour": "red"}}
        )
