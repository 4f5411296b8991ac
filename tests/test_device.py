"""Device path and settings file tests."""

from __future__ import annotations

from pathlib import Path

from themekit.config.models import DeviceSettings
from themekit.device import (
    DevicePaths,
    extract_system_tag,
    read_accent_file,
    read_led_file,
    strip_system_tag,
    to_display_hex,
    to_storage_hex,
    write_accent_file,
    write_led_file,
)
from themekit.manifest import AccentColors, LEDSettings, LEDZone


def test_system_tag_helpers() -> None:
    assert extract_system_tag("Game Boy Advance (GBA)") == "GBA"
    assert extract_system_tag("Ports") is None
    assert strip_system_tag("Game Boy Advance (GBA)") == "Game Boy Advance"


def test_discover_systems_skips_hidden_and_untagged(tmp_path: Path) -> None:
    roms = tmp_path / "Roms"
    for name in ("Super Nintendo (SFC)", "Ports", ".media", "Atari (ATARI)"):
        (roms / name).mkdir(parents=True)
    (roms / "readme (TXT)").write_text("not a directory", encoding="utf-8")

    systems = DevicePaths(root=tmp_path).discover_systems()

    assert [system.name for system in systems] == ["Atari (ATARI)", "Super Nintendo (SFC)"]
    assert systems[1].tag == "SFC"
    assert systems[1].display_name == "Super Nintendo"


def test_resolve_rebases_stock_mount_point(tmp_path: Path) -> None:
    device = DevicePaths(root=tmp_path)

    assert device.resolve("/mnt/SDCARD/Roms/.media/x.png") == tmp_path / "Roms" / ".media" / "x.png"
    assert device.resolve(str(tmp_path / "bg.png")) == tmp_path / "bg.png"


def test_resolve_collapses_parent_segments(tmp_path: Path) -> None:
    """A recorded path that climbs off the card is never treated as on it."""
    device = DevicePaths(root=tmp_path / "SDCARD")

    assert device.resolve("/mnt/SDCARD/Roms/../bg.png") == tmp_path / "SDCARD" / "bg.png"
    assert device.contains(device.resolve("/mnt/SDCARD/Roms/.media/x.png"))
    assert not device.contains(device.resolve("/mnt/SDCARD/../../outside_card.txt"))
    assert not device.contains(tmp_path / "SDCARD" / ".." / "outside_card.txt")


def test_from_settings_honors_live_theme_override(tmp_path: Path) -> None:
    settings = DeviceSettings(
        sdcard_root=str(tmp_path), platform="rg35xx", live_theme_dir=str(tmp_path / "live")
    )

    device = DevicePaths.from_settings(settings)

    assert device.live_theme_dir == tmp_path / "live"
    assert device.tools_icon() == tmp_path / "Tools" / ".media" / "rg35xx.png"
    assert device.font_file("og_font") == tmp_path / ".system" / "res" / "font2.ttf"


def test_hex_conversions() -> None:
    assert to_storage_hex("#A1B2C3") == "0xA1B2C3"
    assert to_display_hex("0xA1B2C3") == "#A1B2C3"
    assert to_display_hex("#A1B2C3") == "#A1B2C3"


def test_accent_file_round_trip_preserves_other_keys(tmp_path: Path) -> None:
    """Color keys are rewritten in place and unrelated settings survive."""
    path = tmp_path / "minuisettings.txt"
    path.write_text("font=2\ncolor1=0x000000\nvolume=8\n", encoding="utf-8")
    colors = AccentColors(color1="#ABCDEF", color4="#010203")

    write_accent_file(path, colors)

    lines = path.read_text(encoding="utf-8").splitlines()
    assert lines[:3] == ["font=2", "color1=0xABCDEF", "volume=8"]
    assert "color4=0x010203" in lines
    assert read_accent_file(path) == colors


def test_read_accent_file_missing_returns_none(tmp_path: Path) -> None:
    assert read_accent_file(tmp_path / "absent.txt") is None
    assert read_led_file(tmp_path / "absent.txt") is None


def test_led_file_round_trip(tmp_path: Path) -> None:
    path = tmp_path / "ledsettings_brick.txt"
    settings = LEDSettings(
        f1_key=LEDZone(effect=3, color1="#FF00FF", speed=250),
        lr_triggers=LEDZone(brightness=10, filename="pulse.txt"),
    )

    write_led_file(path, settings)

    text = path.read_text(encoding="utf-8")
    assert text.startswith("[F1 key]\neffect=3\ncolor1=0xFF00FF\n")
    assert "\n\n[L&R triggers]\n" in text
    assert read_led_file(path) == settings
    assert not list(tmp_path.glob(".*.tmp"))
