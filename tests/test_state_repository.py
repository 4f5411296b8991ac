"""Applied-component state repository tests."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from themekit.state import (
    AppliedState,
    MissingStateError,
    StateError,
    StateRepository,
    applied_name,
    record_applied,
)


def test_load_missing_state_raises(tmp_path: Path) -> None:
    repo = StateRepository(tmp_path)

    with pytest.raises(MissingStateError):
        repo.load()

    assert repo.load_or_default("1.2.3").application_info.version == "1.2.3"


def test_save_and_load_round_trip(tmp_path: Path) -> None:
    repo = StateRepository(tmp_path)
    state = record_applied(AppliedState(), "icon", "Neon.icon")

    repo.save(state)
    loaded = repo.load()

    assert repo.path == tmp_path / "state.json"
    assert loaded.applied_components.icons == "Neon.icon"
    assert loaded.current_theme is None


def test_record_applied_returns_updated_copy() -> None:
    """The input document is never modified."""
    original = AppliedState()

    updated = record_applied(original, "theme", "Neon.theme")
    updated = record_applied(updated, "led", "Pulse.led")

    assert original.current_theme is None
    assert original.applied_components.leds is None
    assert applied_name(updated, "theme") == "Neon.theme"
    assert applied_name(updated, "led") == "Pulse.led"
    assert applied_name(updated, "font") is None


def test_unknown_component_kind_raises() -> None:
    with pytest.raises(StateError):
        record_applied(AppliedState(), "sound", "Beeps")
    with pytest.raises(StateError):
        applied_name(AppliedState(), "sound")


def test_load_invalid_state_raises(tmp_path: Path) -> None:
    (tmp_path / "state.json").write_text("not json", encoding="utf-8")

    with pytest.raises(StateError):
        StateRepository(tmp_path).load()


def test_load_undecodable_state_raises(tmp_path: Path) -> None:
    (tmp_path / "state.json").write_bytes(b"\xff\xfe{not utf-8")

    with pytest.raises(StateError):
        StateRepository(tmp_path).load()


def test_load_unreadable_state_raises(tmp_path: Path) -> None:
    """A state path that cannot be read raises StateError rather than OSError."""
    (tmp_path / "state.json").mkdir()

    with pytest.raises(StateError):
        StateRepository(tmp_path).load()


def test_record_replaces_unreadable_state(tmp_path: Path) -> None:
    """A corrupt file is discarded so the completed change is still recorded."""
    (tmp_path / "state.json").write_text("not json", encoding="utf-8")
    repo = StateRepository(tmp_path)

    state = repo.record("wallpaper", "Sunset.bg", version="0.1.0")

    stored = json.loads((tmp_path / "state.json").read_text(encoding="utf-8"))
    assert state.applied_components.wallpapers == "Sunset.bg"
    assert stored["applied_components"]["wallpapers"] == "Sunset.bg"
    assert stored["application_info"]["version"] == "0.1.0"


def test_record_keeps_earlier_entries(tmp_path: Path) -> None:
    repo = StateRepository(tmp_path)

    repo.record("theme", "Neon.theme")
    repo.record("accent", "Warm.acc")

    loaded = repo.load()
    assert loaded.current_theme == "Neon.theme"
    assert loaded.applied_components.accents == "Warm.acc"
