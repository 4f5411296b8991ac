"""Manifest schema, validation, and persistence tests."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from themekit.manifest import (
    AccentManifest,
    FontManifest,
    InvalidManifestError,
    MissingManifestError,
    PathMapping,
    ThemeManifest,
    UnknownComponentTypeError,
    WallpaperManifest,
    check_manifest,
    create_default,
    create_minimal,
    load_component_manifest,
    load_manifest,
    load_theme_manifest,
    save_manifest,
    validate_manifest,
)


def test_default_manifest_passes_strict_validation_once_authored() -> None:
    manifest = create_default("Neon", "Someone")

    assert validate_manifest(manifest, strict=True) == []
    assert manifest.theme_info.systems == ["all"]
    assert manifest.theme_info.repository_url.startswith("https://github.com/")


def test_strict_validation_reports_every_problem() -> None:
    """Strict mode needs the full provenance block; permissive only a name."""
    manifest = ThemeManifest()
    manifest.theme_info.name = "Bare"
    manifest.theme_info.repository_url = "https://example.com/repo"

    problems = validate_manifest(manifest, strict=True)

    assert problems == [
        "author",
        "description",
        "repository_url",
        "commit",
        "branch",
        "device",
        "systems",
    ]
    assert validate_manifest(manifest, strict=False) == []

    with pytest.raises(InvalidManifestError) as excinfo:
        check_manifest(manifest, strict=True)
    assert excinfo.value.problems == problems
    assert "repository_url must start with" in str(excinfo.value)


def test_permissive_validation_requires_a_name() -> None:
    assert validate_manifest(ThemeManifest(), strict=False) == ["name"]
    assert validate_manifest(create_minimal("icon", ""), strict=False) == ["name"]
    assert validate_manifest(create_minimal("icon", "Icons"), strict=True) == ["author"]


def test_create_minimal_rejects_unknown_type() -> None:
    with pytest.raises(UnknownComponentTypeError):
        create_minimal("sound", "Beeps")


def test_missing_and_malformed_manifests_are_distinguished(tmp_path: Path) -> None:
    with pytest.raises(MissingManifestError):
        load_manifest(tmp_path)

    (tmp_path / "manifest.json").write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(InvalidManifestError):
        load_manifest(tmp_path)

    (tmp_path / "manifest.json").write_text("{broken", encoding="utf-8")
    with pytest.raises(InvalidManifestError):
        load_manifest(tmp_path)


def test_component_type_selects_schema(tmp_path: Path) -> None:
    save_manifest(tmp_path, create_minimal("accent", "Warm", "Me"))

    loaded = load_manifest(tmp_path)

    assert isinstance(loaded, AccentManifest)
    assert loaded.accent_colors.color2 == "#9B2257"
    assert isinstance(load_component_manifest(tmp_path), AccentManifest)


def test_unknown_component_type_in_document(tmp_path: Path) -> None:
    document = {"component_info": {"name": "Beeps", "type": "sound"}}
    (tmp_path / "manifest.json").write_text(json.dumps(document), encoding="utf-8")

    with pytest.raises(UnknownComponentTypeError) as excinfo:
        load_manifest(tmp_path)

    assert excinfo.value.problems == ["component_info.type"]


def test_theme_loader_refuses_component_documents(tmp_path: Path) -> None:
    save_manifest(tmp_path, create_minimal("wallpaper", "Walls"))

    with pytest.raises(InvalidManifestError):
        load_theme_manifest(tmp_path)


def test_unknown_keys_are_ignored(tmp_path: Path) -> None:
    document = {"theme_info": {"name": "Future", "mood": "calm"}, "extra_block": {"a": 1}}
    (tmp_path / "manifest.json").write_text(json.dumps(document), encoding="utf-8")

    manifest = load_theme_manifest(tmp_path, strict=False)

    assert manifest.name == "Future"


def test_save_manifest_refreshes_theme_content(tmp_path: Path) -> None:
    """Content flags and counts are always recomputed from the mappings."""
    manifest = create_default("Neon", "Me")
    manifest.content.icons.count = 99
    mappings = manifest.path_mappings
    mappings.wallpapers.append(
        PathMapping(
            package_path="Wallpapers/SystemWallpapers/Root.png",
            device_path="/mnt/SDCARD/bg.png",
            metadata={"WallpaperType": "Main"},
        )
    )
    mappings.icons.append(
        PathMapping(
            package_path="Icons/ToolIcons/Clock.png",
            device_path="/mnt/SDCARD/Tools/tg5040/.media/Clock.png",
            metadata={"IconType": "Tool"},
        )
    )
    mappings.overlays.append(
        PathMapping(
            package_path="Overlays/GBA/grid.png",
            device_path="/mnt/SDCARD/Overlays/GBA/grid.png",
            metadata={"SystemTag": "GBA"},
        )
    )
    mappings.fonts["next_font"] = PathMapping(
        package_path="Fonts/Next.ttf", device_path="/mnt/SDCARD/.system/res/font1.ttf"
    )
    before = manifest.theme_info.updated_date

    save_manifest(tmp_path, manifest)
    stored = load_theme_manifest(tmp_path, strict=True)

    assert stored.content.wallpapers.count == 1
    assert stored.content.icons.count == 1
    assert stored.content.icons.tool_count == 1
    assert stored.content.overlays.systems == ["GBA"]
    assert stored.content.fonts.next_replaced
    assert not stored.content.fonts.og_replaced
    assert not stored.content.settings.present
    assert stored.theme_info.updated_date >= before


def test_component_content_lists_stems(tmp_path: Path) -> None:
    manifest = WallpaperManifest.model_validate(
        {
            "component_info": {"name": "Walls", "type": "wallpaper"},
            "path_mappings": [
                {
                    "package_path": "ListWallpapers/Game Boy-list (GB).png",
                    "device_path": "/mnt/SDCARD/Roms/Game Boy (GB)/.media/bglist.png",
                    "metadata": {"WallpaperType": "List"},
                },
                {
                    "package_path": "SystemWallpapers/Root.png",
                    "device_path": "/mnt/SDCARD/bg.png",
                    "metadata": {"WallpaperType": "Main"},
                },
            ],
        }
    )

    save_manifest(tmp_path, manifest)
    stored = load_component_manifest(tmp_path)

    assert isinstance(stored, WallpaperManifest)
    assert stored.content.count == 2
    assert stored.content.list_wallpapers == ["Game Boy-list (GB)"]
    assert stored.content.system_wallpapers == ["Root"]


def test_font_component_content(tmp_path: Path) -> None:
    manifest = create_minimal("font", "Pixel")
    assert isinstance(manifest, FontManifest)
    manifest.path_mappings["og_font"] = PathMapping(
        package_path="OG.ttf", device_path="/mnt/SDCARD/.system/res/font2.ttf"
    )

    save_manifest(tmp_path, manifest)

    assert load_component_manifest(tmp_path).content.og_replaced  # type: ignore[union-attr]
