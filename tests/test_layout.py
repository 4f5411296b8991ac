"""Package layout classification and manifest rebuild tests."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from themekit.device import DevicePaths
from themekit.manifest import load_theme_manifest
from themekit.packages import ThemeEngine, Workspace, rebuild_component_manifest, rebuild_theme_manifest
from themekit.packages.layout import classify, list_wallpaper_name


def test_classify_menu_and_system_wallpapers(device: DevicePaths) -> None:
    root = classify("wallpapers", "SystemWallpapers/Root.png", device)
    system = classify("wallpapers", "SystemWallpapers/Game Boy (GB).png", device)
    listing = classify("wallpapers", "ListWallpapers/Game Boy-list (GB).png", device)
    collection = classify("wallpapers", "CollectionWallpapers/Favorites.png", device)

    assert root is not None and root.device_path == device.root_wallpaper()
    assert root.metadata["WallpaperType"] == "Main"
    assert system is not None and system.device_path == device.system_wallpaper("Game Boy (GB)")
    assert system.metadata["SystemTag"] == "GB"
    assert listing is not None
    assert listing.device_path == device.system_list_wallpaper("Game Boy (GB)")
    assert collection is not None
    assert collection.device_path == device.collection_wallpaper("Favorites")


def test_classify_rejects_unrecognized_names(device: DevicePaths) -> None:
    assert classify("wallpapers", "SystemWallpapers/Untagged.png", device) is None
    assert classify("wallpapers", "SystemWallpapers/Root.jpg", device) is None
    assert classify("icons", "Elsewhere/Root.png", device) is None
    assert classify("fonts", "Comic.ttf", device) is None


def test_classify_icons_prefers_installed_system_directory(device: DevicePaths) -> None:
    """A tag match wins over the system name spelled in the package."""
    icon = classify("icons", "SystemIcons/Nintendo Game Boy (GB).png", device)
    special = classify("icons", "SystemIcons/Tools.png", device)
    tool = classify("icons", "ToolIcons/Clock.png", device)

    assert icon is not None and icon.device_path == device.system_icon("Game Boy (GB)")
    assert special is not None and special.device_path == device.tools_icon()
    assert special.metadata == {"IconType": "Special", "SystemName": "Tools", "SystemTag": "TOOLS"}
    assert tool is not None and tool.device_path == device.tool_icon("Clock")


def test_classify_overlays_and_fonts(device: DevicePaths) -> None:
    overlay = classify("overlays", "GBA/scanlines.png", device)
    font = classify("fonts", "Next.backup.ttf", device)

    assert overlay is not None
    assert overlay.device_path == device.overlay_dir("GBA") / "scanlines.png"
    assert font is not None and font.slot == "next_backup"
    assert font.device_path == device.font_file("next_backup")


def test_list_wallpaper_name() -> None:
    assert list_wallpaper_name("Game Boy", "GB") == "Game Boy-list (GB).png"


def test_rebuilt_theme_manifest_matches_export(device: DevicePaths, workspace: Workspace) -> None:
    """Rebuilding from the files must reproduce the mappings written by export."""
    export = ThemeEngine(workspace, device).export()
    exported = load_theme_manifest(export.package_path)

    rebuilt = rebuild_theme_manifest(export.package_path, device)

    def pairs(manifest) -> set[tuple[str, str]]:
        return {(m.package_path, m.device_path) for m in manifest.path_mappings.all()}

    assert pairs(rebuilt) == pairs(exported)
    assert rebuilt.content == exported.content
    assert rebuilt.theme_info.name == "theme_1"


def test_rebuild_theme_manifest_from_bare_files(tmp_path: Path, device: DevicePaths) -> None:
    package = tmp_path / "Hand Made.theme"
    (package / "Icons" / "SystemIcons").mkdir(parents=True)
    (package / "Icons" / "SystemIcons" / "Game Boy Advance (GBA).png").write_bytes(b"icon")
    (package / "Fonts").mkdir()
    (package / "Fonts" / "OG.ttf").write_bytes(b"font")

    manifest = rebuild_theme_manifest(package, device)

    assert manifest.name == "Hand Made"
    assert manifest.content.icons.count == 1
    assert manifest.content.fonts.og_replaced
    assert manifest.theme_info.systems == ["GBA"]
    assert manifest.accent_colors is None


def test_rebuild_theme_manifest_tolerates_undecodable_settings(
    tmp_path: Path, device: DevicePaths, caplog: pytest.LogCaptureFixture
) -> None:
    """A settings file that is not UTF-8 is logged and left out of the manifest."""
    package = tmp_path / "Odd.theme"
    (package / "Settings").mkdir(parents=True)
    (package / "Settings" / "minuisettings.txt").write_bytes(b"color1=\xff\xfe\n")

    with caplog.at_level(logging.WARNING, logger="themekit.packages.layout"):
        manifest = rebuild_theme_manifest(package, device)

    assert manifest.accent_colors is None
    assert manifest.content.settings.count == 1
    assert "Unable to read accent settings" in caplog.text


def test_rebuild_font_component(tmp_path: Path, device: DevicePaths) -> None:
    package = tmp_path / "Pixel.font"
    package.mkdir()
    (package / "OG.ttf").write_bytes(b"font")
    (package / "Next.ttf").write_bytes(b"font")

    manifest = rebuild_component_manifest(package, "font", device, author="Tester")

    assert manifest.component_type == "font"
    assert manifest.author == "Tester"
    assert {mapping.device_path for mapping in manifest.mappings()} == {
        str(device.font_file("og_font")),
        str(device.font_file("next_font")),
    }
