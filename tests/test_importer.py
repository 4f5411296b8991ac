"""Component import tests."""

from __future__ import annotations

import pytest

from themekit.device import DevicePaths
from themekit.manifest import (
    AccentColors,
    AccentManifest,
    InvalidManifestError,
    UnknownComponentTypeError,
    create_minimal,
    load_component_manifest,
    save_manifest,
)
from themekit.packages import ComponentImporter, ThemeEngine, Workspace
from themekit.state import StateRepository


def test_import_wallpaper_component_records_state(
    device: DevicePaths, workspace: Workspace
) -> None:
    """Importing an exported wallpaper pack puts its files back and records it."""
    ThemeEngine(workspace, device).export_component("wallpaper")
    device.root_wallpaper().write_bytes(b"changed")

    result = ComponentImporter(workspace, device).import_component("wallpaper", "wallpaper_1")

    assert result.placed == 9
    assert not result.manifest_rebuilt
    assert device.root_wallpaper().read_bytes() == b"root-wallpaper"
    state = StateRepository(workspace.root).load()
    assert state.applied_components.wallpapers == "wallpaper_1.bg"
    assert state.current_theme is None


def test_import_without_manifest_derives_one(device: DevicePaths, workspace: Workspace) -> None:
    """A hand-made pack without a manifest is classified by its file names."""
    package = workspace.area_dir("wallpaper", "imports") / "Custom.bg"
    (package / "SystemWallpapers").mkdir(parents=True)
    (package / "ListWallpapers").mkdir()
    (package / "SystemWallpapers" / "Root.png").write_bytes(b"custom-root")
    (package / "ListWallpapers" / "Game Boy-list (GB).png").write_bytes(b"custom-list")
    (package / "notes.txt").write_text("ignored", encoding="utf-8")

    result = ComponentImporter(workspace, device).import_component("wallpaper", "Custom")

    assert result.manifest_rebuilt
    assert result.placed == 2
    assert device.root_wallpaper().read_bytes() == b"custom-root"
    assert device.system_list_wallpaper("Game Boy (GB)").read_bytes() == b"custom-list"
    manifest = load_component_manifest(package)
    assert manifest.name == "Custom.bg"
    assert len(manifest.mappings()) == 2


def test_import_accent_pack_rewrites_colors_only(
    device: DevicePaths, workspace: Workspace
) -> None:
    """Accent packs change the color keys and leave other settings alone."""
    package = workspace.area_dir("accent", "imports") / "Warm.acc"
    manifest = create_minimal("accent", "Warm", "Tester")
    assert isinstance(manifest, AccentManifest)
    manifest.accent_colors = AccentColors(color1="#112233")
    save_manifest(package, manifest)

    result = ComponentImporter(workspace, device).import_component("accent", "Warm")

    assert result.settings_written == ["accents"]
    text = device.accent_settings_file.read_text(encoding="utf-8")
    assert "color1=0x112233" in text
    assert "font=1" in text
    assert "haptics=0" in text
    assert StateRepository(workspace.root).load().applied_components.accents == "Warm.acc"


def test_import_rejects_manifest_of_another_type(
    device: DevicePaths, workspace: Workspace
) -> None:
    package = workspace.area_dir("icon", "imports") / "Wrong.icon"
    save_manifest(package, create_minimal("wallpaper", "Wrong"))

    with pytest.raises(InvalidManifestError):
        ComponentImporter(workspace, device).import_component("icon", "Wrong")


def test_import_unknown_type_raises(device: DevicePaths, workspace: Workspace) -> None:
    with pytest.raises(UnknownComponentTypeError):
        ComponentImporter(workspace, device).import_component("sound", "Beep")


def test_import_overlay_pack_replaces_existing_overlays(
    device: DevicePaths, workspace: Workspace
) -> None:
    """Overlays added after the pack was exported do not survive an import."""
    ThemeEngine(workspace, device).export_component("overlay")
    (device.overlay_dir("GB") / "extra.png").write_bytes(b"added-later")
    device.overlay_dir("GBA").mkdir()
    (device.overlay_dir("GBA") / "scanlines.png").write_bytes(b"added-later")

    result = ComponentImporter(workspace, device).import_component("overlay", "overlay_1")

    assert result.cleared == 3
    assert result.placed == 1
    remaining = sorted(
        path.relative_to(device.overlays_dir).as_posix()
        for path in device.overlays_dir.rglob("*.png")
    )
    assert remaining == ["GB/grid.png"]
    assert device.root_wallpaper().is_file()
