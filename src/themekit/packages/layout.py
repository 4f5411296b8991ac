"""Package layout table, live-device probes, and filename classification.

Every category of content (wallpapers, icons, overlays, fonts, settings) is
described once here. Export walks the live device with the probes and
records a `Placement` for every file it finds; manifest rebuild walks a
package's files and classifies them back into the same placements. Both
directions share the package-relative names defined below, which keeps an
exported package re-importable and a rebuilt manifest identical to the one
written at export time.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Callable, Iterator, Optional

from themekit.device.paths import (
    DevicePaths,
    extract_system_tag,
    strip_system_tag,
)
from themekit.device.settings import read_accent_file, read_led_file
from themekit.manifest import (
    COMPONENT_MODELS,
    MANIFEST_FILENAME,
    PREVIEW_FILENAME,
    AccentColors,
    ComponentManifest,
    ManifestError,
    LEDSettings,
    PathMapping,
    ThemeManifest,
    UnknownComponentTypeError,
    create_default,
    create_minimal,
    load_manifest,
)
from themekit.manifest.models import (
    AccentManifest,
    FontManifest,
    IconManifest,
    LEDManifest,
    OverlayManifest,
    WallpaperManifest,
)

from .resolver import base_name

LOGGER = logging.getLogger(__name__)

SYSTEM_WALLPAPERS = "SystemWallpapers"
LIST_WALLPAPERS = "ListWallpapers"
COLLECTION_WALLPAPERS = "CollectionWallpapers"
SYSTEM_ICONS = "SystemIcons"
TOOL_ICONS = "ToolIcons"
COLLECTION_ICONS = "CollectionIcons"

FONT_PACKAGE_FILES = {
    "og_font": "OG.ttf",
    "og_backup": "OG.backup.ttf",
    "next_font": "Next.ttf",
    "next_backup": "Next.backup.ttf",
}
SETTINGS_PACKAGE_FILES = {
    "accents": "minuisettings.txt",
    "leds": "ledsettings_brick.txt",
}

# Menu entries whose wallpaper lives outside `Roms/`.
_MENU_WALLPAPERS = ("Root", "Root-Media", "Recently Played", "Tools", "Collections")
# Menu entries whose icon lives outside `Roms/.media`, with their fixed tags.
_SPECIAL_ICONS = {"Collections": "COLLECTIONS", "Recently Played": "RECENT", "Tools": "TOOLS"}

_LIST_SUFFIX = "-list"


@dataclass(frozen=True)
class Placement:
    """One file's position inside a category and on the device.

    Attributes:
        relative: POSIX path relative to the category root (for example
            `SystemWallpapers/Root.png`).
        device_path: Absolute device location.
        metadata: Classification stored with the mapping.
        slot: Dictionary key for fonts and settings; None for list categories.
    """

    relative: str
    device_path: Path
    metadata: dict[str, str] = field(default_factory=dict)
    slot: Optional[str] = None


@dataclass(frozen=True)
class Category:
    """Where a category of content sits in theme and component packages.

    Attributes:
        key: Mapping group in a theme manifest (`wallpapers`, `icons`, ...).
        theme_prefix: Subtree holding the category inside a full theme.
        component_prefix: Subtree holding it inside a component package.
        subdirs: Directories created for the category's package layout.
        component_type: Component package type, when the category has one.
    """

    key: str
    theme_prefix: str
    component_prefix: str
    subdirs: tuple[str, ...] = ()
    component_type: Optional[str] = None

    def theme_path(self, relative: str) -> str:
        return f"{self.theme_prefix}{relative}"

    def component_path(self, relative: str) -> str:
        return f"{self.component_prefix}{relative}"

    def strip_theme_prefix(self, package_path: str) -> str:
        """Return `package_path` relative to the category root in a theme."""
        if package_path.startswith(self.theme_prefix):
            return package_path[len(self.theme_prefix) :]
        return package_path

    def reroot(self, package_path: str) -> str:
        """Move a theme-relative path into the component package layout."""
        return self.component_path(self.strip_theme_prefix(package_path))


CATEGORIES: dict[str, Category] = {
    "wallpapers": Category(
        key="wallpapers",
        theme_prefix="Wallpapers/",
        component_prefix="",
        subdirs=(SYSTEM_WALLPAPERS, LIST_WALLPAPERS, COLLECTION_WALLPAPERS),
        component_type="wallpaper",
    ),
    "icons": Category(
        key="icons",
        theme_prefix="Icons/",
        component_prefix="",
        subdirs=(SYSTEM_ICONS, TOOL_ICONS, COLLECTION_ICONS),
        component_type="icon",
    ),
    "overlays": Category(
        key="overlays",
        theme_prefix="Overlays/",
        component_prefix="Systems/",
        subdirs=("",),
        component_type="overlay",
    ),
    "fonts": Category(
        key="fonts",
        theme_prefix="Fonts/",
        component_prefix="",
        subdirs=("",),
        component_type="font",
    ),
    "settings": Category(key="settings", theme_prefix="Settings/", component_prefix="", subdirs=("",)),
}

COMPONENT_CATEGORIES: dict[str, Category] = {
    category.component_type: category
    for category in CATEGORIES.values()
    if category.component_type is not None
}


def create_theme_layout(package_dir: Path) -> None:
    """Create the canonical directory layout of a full theme package."""
    for category in CATEGORIES.values():
        for subdir in category.subdirs:
            (package_dir / category.theme_prefix / subdir).mkdir(parents=True, exist_ok=True)


def create_component_layout(package_dir: Path, component_type: str) -> None:
    """Create the canonical directory layout of a component package."""
    package_dir.mkdir(parents=True, exist_ok=True)
    category = COMPONENT_CATEGORIES.get(component_type)
    if category is None:
        return
    for subdir in category.subdirs:
        (package_dir / category.component_prefix / subdir).mkdir(parents=True, exist_ok=True)


# Probes: live device -> placements ------------------------------------------


def probe_wallpapers(device: DevicePaths) -> Iterator[Placement]:
    """Yield every wallpaper present on the live device."""
    menu_locations = {
        "Root": (device.root_wallpaper(), "Main"),
        "Root-Media": (device.root_media_wallpaper(), "Media"),
        "Recently Played": (device.recently_played_wallpaper(), "Media"),
        "Tools": (device.tools_wallpaper(), "Media"),
        "Collections": (device.collections_wallpaper(), "Media"),
    }
    for name in _MENU_WALLPAPERS:
        path, kind = menu_locations[name]
        if path.is_file():
            yield Placement(
                relative=f"{SYSTEM_WALLPAPERS}/{name}.png",
                device_path=path,
                metadata={"WallpaperType": kind, "SystemName": name},
            )

    for system in device.discover_systems():
        metadata = {"SystemName": system.name, "SystemTag": system.tag}
        background = device.system_wallpaper(system.name)
        if background.is_file():
            yield Placement(
                relative=f"{SYSTEM_WALLPAPERS}/{system.name}.png",
                device_path=background,
                metadata={"WallpaperType": "System", **metadata},
            )
        listing = device.system_list_wallpaper(system.name)
        if listing.is_file():
            yield Placement(
                relative=f"{LIST_WALLPAPERS}/{list_wallpaper_name(system.display_name, system.tag)}",
                device_path=listing,
                metadata={"WallpaperType": "List", **metadata},
            )

    for collection in device.list_collections():
        path = device.collection_wallpaper(collection)
        if path.is_file():
            yield Placement(
                relative=f"{COLLECTION_WALLPAPERS}/{collection}.png",
                device_path=path,
                metadata={"WallpaperType": "Collection", "CollectionName": collection},
            )


def probe_icons(device: DevicePaths) -> Iterator[Placement]:
    """Yield every menu, system, tool, and collection icon on the device."""
    special_locations = {
        "Collections": device.collections_icon(),
        "Recently Played": device.recently_played_icon(),
        "Tools": device.tools_icon(),
    }
    for name, tag in _SPECIAL_ICONS.items():
        path = special_locations[name]
        if path.is_file():
            yield Placement(
                relative=f"{SYSTEM_ICONS}/{name}.png",
                device_path=path,
                metadata={"IconType": "Special", "SystemName": name, "SystemTag": tag},
            )

    for system in device.discover_systems():
        path = device.system_icon(system.name)
        if path.is_file():
            yield Placement(
                relative=f"{SYSTEM_ICONS}/{system.name}.png",
                device_path=path,
                metadata={"IconType": "System", "SystemName": system.name, "SystemTag": system.tag},
            )

    for tool in device.list_tools():
        path = device.tool_icon(tool)
        if path.is_file():
            yield Placement(
                relative=f"{TOOL_ICONS}/{tool}.png",
                device_path=path,
                metadata={"IconType": "Tool", "ToolName": tool},
            )

    for collection in device.list_collections():
        path = device.collection_icon(collection)
        if path.is_file():
            yield Placement(
                relative=f"{COLLECTION_ICONS}/{collection}.png",
                device_path=path,
                metadata={"IconType": "Collection", "CollectionName": collection},
            )


def probe_overlays(device: DevicePaths) -> Iterator[Placement]:
    """Yield every overlay image under `Overlays/<TAG>/`."""
    if not device.overlays_dir.is_dir():
        return
    for tag_dir in sorted(device.overlays_dir.iterdir()):
        if not tag_dir.is_dir() or tag_dir.name.startswith("."):
            continue
        for image in sorted(tag_dir.glob("*.png")):
            yield Placement(
                relative=f"{tag_dir.name}/{image.name}",
                device_path=image,
                metadata={"SystemTag": tag_dir.name},
            )


def probe_fonts(device: DevicePaths) -> Iterator[Placement]:
    """Yield the current and backup fonts that exist on the device."""
    for slot, filename in FONT_PACKAGE_FILES.items():
        path = device.font_file(slot)
        if path.is_file():
            yield Placement(relative=filename, device_path=path, metadata={"FontSlot": slot}, slot=slot)


def probe_settings(device: DevicePaths) -> Iterator[Placement]:
    """Yield the accent and LED settings files that exist on the device."""
    locations = {"accents": device.accent_settings_file, "leds": device.led_settings_file}
    for slot, filename in SETTINGS_PACKAGE_FILES.items():
        path = locations[slot]
        if path.is_file():
            yield Placement(relative=filename, device_path=path, metadata={"Setting": slot}, slot=slot)


PROBES: dict[str, Callable[[DevicePaths], Iterator[Placement]]] = {
    "wallpapers": probe_wallpapers,
    "icons": probe_icons,
    "overlays": probe_overlays,
    "fonts": probe_fonts,
    "settings": probe_settings,
}


# Classification: package file -> placement ----------------------------------


def list_wallpaper_name(display_name: str, tag: str) -> str:
    """Return the package file name of a system's list wallpaper."""
    return f"{display_name}{_LIST_SUFFIX} ({tag}).png"


def classify(category_key: str, relative: str, device: DevicePaths) -> Optional[Placement]:
    """Classify a file by its path relative to the category root.

    Args:
        category_key: One of the `CATEGORIES` keys.
        relative: POSIX path inside the category (no theme or component prefix).
        device: Device layout used to compute destinations.

    Returns:
        Placement | None: Destination and metadata, or None when the name
        does not match any known location.
    """
    classifier = _CLASSIFIERS[category_key]
    return classifier(PurePosixPath(relative), device)


def _classify_wallpaper(path: PurePosixPath, device: DevicePaths) -> Optional[Placement]:
    if path.suffix.lower() != ".png" or len(path.parts) != 2:
        return None
    group, stem, relative = path.parts[0], path.stem, path.as_posix()

    if group == SYSTEM_WALLPAPERS:
        if stem == "Root":
            return Placement(relative, device.root_wallpaper(), {"WallpaperType": "Main", "SystemName": stem})
        menu = {
            "Root-Media": device.root_media_wallpaper,
            "Recently Played": device.recently_played_wallpaper,
            "Tools": device.tools_wallpaper,
            "Collections": device.collections_wallpaper,
        }
        if stem in menu:
            return Placement(relative, menu[stem](), {"WallpaperType": "Media", "SystemName": stem})
        tag = extract_system_tag(stem)
        if not tag:
            return None
        system = _system_dirname(stem, tag, device)
        return Placement(
            relative,
            device.system_wallpaper(system),
            {"WallpaperType": "System", "SystemName": system, "SystemTag": tag},
        )

    if group == LIST_WALLPAPERS:
        tag = extract_system_tag(stem)
        if not tag:
            return None
        display = strip_system_tag(stem)
        if display.endswith(_LIST_SUFFIX):
            display = display[: -len(_LIST_SUFFIX)]
        display = display.strip()
        system = _system_dirname(f"{display} ({tag})", tag, device)
        return Placement(
            relative,
            device.system_list_wallpaper(system),
            {"WallpaperType": "List", "SystemName": system, "SystemTag": tag},
        )

    if group == COLLECTION_WALLPAPERS:
        return Placement(
            relative,
            device.collection_wallpaper(stem),
            {"WallpaperType": "Collection", "CollectionName": stem},
        )
    return None


def _classify_icon(path: PurePosixPath, device: DevicePaths) -> Optional[Placement]:
    if path.suffix.lower() != ".png" or len(path.parts) != 2:
        return None
    group, stem, relative = path.parts[0], path.stem, path.as_posix()

    if group == SYSTEM_ICONS:
        if stem in _SPECIAL_ICONS:
            special = {
                "Collections": device.collections_icon,
                "Recently Played": device.recently_played_icon,
                "Tools": device.tools_icon,
            }
            return Placement(
                relative,
                special[stem](),
                {"IconType": "Special", "SystemName": stem, "SystemTag": _SPECIAL_ICONS[stem]},
            )
        tag = extract_system_tag(stem)
        if not tag:
            return None
        system = _system_dirname(stem, tag, device)
        return Placement(
            relative,
            device.system_icon(system),
            {"IconType": "System", "SystemName": system, "SystemTag": tag},
        )

    if group == TOOL_ICONS:
        return Placement(relative, device.tool_icon(stem), {"IconType": "Tool", "ToolName": stem})
    if group == COLLECTION_ICONS:
        return Placement(
            relative, device.collection_icon(stem), {"IconType": "Collection", "CollectionName": stem}
        )
    return None


def _classify_overlay(path: PurePosixPath, device: DevicePaths) -> Optional[Placement]:
    if path.suffix.lower() != ".png" or len(path.parts) != 2:
        return None
    tag, filename = path.parts
    return Placement(path.as_posix(), device.overlay_dir(tag) / filename, {"SystemTag": tag})


def _classify_font(path: PurePosixPath, device: DevicePaths) -> Optional[Placement]:
    for slot, filename in FONT_PACKAGE_FILES.items():
        if path.as_posix() == filename:
            return Placement(filename, device.font_file(slot), {"FontSlot": slot}, slot=slot)
    return None


def _classify_setting(path: PurePosixPath, device: DevicePaths) -> Optional[Placement]:
    locations = {"accents": device.accent_settings_file, "leds": device.led_settings_file}
    for slot, filename in SETTINGS_PACKAGE_FILES.items():
        if path.as_posix() == filename:
            return Placement(filename, locations[slot], {"Setting": slot}, slot=slot)
    return None


_CLASSIFIERS: dict[str, Callable[[PurePosixPath, DevicePaths], Optional[Placement]]] = {
    "wallpapers": _classify_wallpaper,
    "icons": _classify_icon,
    "overlays": _classify_overlay,
    "fonts": _classify_font,
    "settings": _classify_setting,
}


def _system_dirname(name: str, tag: str, device: DevicePaths) -> str:
    """Prefer the installed ROM directory carrying `tag` over the package's name."""
    for system in device.discover_systems():
        if system.tag == tag:
            return system.name
    return name


def to_mapping(placement: Placement, package_path: str) -> PathMapping:
    """Build a manifest mapping for a placement stored at `package_path`."""
    return PathMapping(
        package_path=package_path,
        device_path=str(placement.device_path),
        metadata=dict(placement.metadata),
    )


def add_mapping(mappings: object, placement: Placement, mapping: PathMapping) -> None:
    """Append `mapping` to a list group or store it under its slot key."""
    if isinstance(mappings, dict):
        mappings[placement.slot or PurePosixPath(mapping.package_path).stem] = mapping
    elif isinstance(mappings, list):
        mappings.append(mapping)
    else:
        raise TypeError(f"Unsupported mapping container: {type(mappings).__name__}")


# Manifest rebuild -----------------------------------------------------------


def scan_category(root: Path, category_key: str, device: DevicePaths) -> list[Placement]:
    """Classify every file below `root`, which is the category's directory.

    Unrecognized files are logged and skipped.
    """
    if not root.is_dir():
        return []
    placements: list[Placement] = []
    for path in sorted(root.rglob("*")):
        if not path.is_file() or path.name.startswith("."):
            continue
        relative = path.relative_to(root).as_posix()
        if relative in (MANIFEST_FILENAME, PREVIEW_FILENAME):
            continue
        placement = classify(category_key, relative, device)
        if placement is None:
            LOGGER.debug("Unrecognized %s file %s", category_key, path)
            continue
        placements.append(placement)
    return placements


def read_package_accents(path: Path) -> Optional[AccentColors]:
    """Read a package accent file; an unreadable file is logged and ignored."""
    try:
        return read_accent_file(path)
    except (OSError, UnicodeDecodeError) as exc:
        LOGGER.warning("Unable to read accent settings %s: %s", path, exc)
        return None


def read_package_leds(path: Path) -> Optional[LEDSettings]:
    try:
        return read_led_file(path)
    except (OSError, UnicodeDecodeError) as exc:
        LOGGER.warning("Unable to read LED settings %s: %s", path, exc)
        return None


def rebuild_theme_manifest(
    package_dir: Path, device: DevicePaths, name: Optional[str] = None
) -> ThemeManifest:
    """Derive a theme manifest from the files present in a package.

    Provenance, accent colors, and LED settings are kept from the existing
    manifest when it can be read; mappings and content are recomputed.

    Args:
        package_dir: Full theme package directory.
        device: Device layout used to compute destinations.
        name: Theme name for a fresh manifest; defaults to the directory name.

    Returns:
        ThemeManifest: Manifest with refreshed mappings and content counts.
    """
    manifest = _existing_theme_manifest(package_dir)
    if manifest is None:
        manifest = create_default(name or base_name(package_dir.name, "theme"))
    elif name:
        manifest.theme_info.name = name

    groups = manifest.path_mappings
    for group in ("wallpapers", "icons", "overlays"):
        getattr(groups, group).clear()
    groups.fonts.clear()
    groups.settings.clear()

    for category in CATEGORIES.values():
        for placement in scan_category(package_dir / category.theme_prefix, category.key, device):
            mapping = to_mapping(placement, category.theme_path(placement.relative))
            add_mapping(getattr(groups, category.key), placement, mapping)

    settings_dir = package_dir / CATEGORIES["settings"].theme_prefix
    if manifest.accent_colors is None:
        accents = settings_dir / SETTINGS_PACKAGE_FILES["accents"]
        manifest.accent_colors = read_package_accents(accents)
    if manifest.led_settings is None:
        manifest.led_settings = read_package_leds(settings_dir / SETTINGS_PACKAGE_FILES["leds"])

    tags = {
        mapping.metadata["SystemTag"]
        for mapping in groups.wallpapers + groups.icons + groups.overlays
        if mapping.metadata.get("SystemTag") and mapping.metadata.get("IconType") != "Special"
    }
    if tags:
        manifest.theme_info.systems = sorted(tags)
    manifest.refresh_content()
    return manifest


def rebuild_component_manifest(
    package_dir: Path, component_type: str, device: DevicePaths, author: str = ""
) -> ComponentManifest:
    """Derive a component manifest from the files present in a package.

    Accent and LED packs are read from `minuisettings.txt` and
    `ledsettings_brick.txt` at the package root when present.

    Raises:
        UnknownComponentTypeError: If `component_type` is not recognized.
    """
    if component_type not in COMPONENT_MODELS:
        raise UnknownComponentTypeError(f"unknown component type: {component_type}", ["type"])

    existing = _existing_component_manifest(package_dir, component_type)
    name = existing.name if existing else package_dir.name
    author = existing.author if existing and existing.author else author
    manifest = create_minimal(component_type, name, author)
    if existing is not None:
        manifest.component_info = existing.component_info

    if isinstance(manifest, AccentManifest):
        colors = read_package_accents(package_dir / SETTINGS_PACKAGE_FILES["accents"])
        if colors is not None:
            manifest.accent_colors = colors
        elif isinstance(existing, AccentManifest):
            manifest.accent_colors = existing.accent_colors
    elif isinstance(manifest, LEDManifest):
        settings = read_package_leds(package_dir / SETTINGS_PACKAGE_FILES["leds"])
        if settings is not None:
            manifest.led_settings = settings
        elif isinstance(existing, LEDManifest):
            manifest.led_settings = existing.led_settings
    elif isinstance(manifest, (WallpaperManifest, IconManifest, OverlayManifest, FontManifest)):
        category = COMPONENT_CATEGORIES[component_type]
        for placement in scan_category(package_dir / category.component_prefix, category.key, device):
            mapping = to_mapping(placement, category.component_path(placement.relative))
            add_mapping(manifest.path_mappings, placement, mapping)

    manifest.refresh_content()
    return manifest


def _existing_theme_manifest(package_dir: Path) -> Optional[ThemeManifest]:
    try:
        manifest = load_manifest(package_dir)
    except ManifestError as exc:
        LOGGER.debug("Rebuilding %s from scratch: %s", package_dir, exc)
        return None
    return manifest if isinstance(manifest, ThemeManifest) else None


def _existing_component_manifest(package_dir: Path, component_type: str) -> Optional[ComponentManifest]:
    try:
        manifest = load_manifest(package_dir)
    except ManifestError as exc:
        LOGGER.debug("Rebuilding %s from scratch: %s", package_dir, exc)
        return None
    if isinstance(manifest, ThemeManifest) or manifest.component_type != component_type:
        return None
    return manifest


__all__ = [
    "Placement",
    "Category",
    "CATEGORIES",
    "COMPONENT_CATEGORIES",
    "PROBES",
    "FONT_PACKAGE_FILES",
    "SETTINGS_PACKAGE_FILES",
    "create_theme_layout",
    "create_component_layout",
    "probe_wallpapers",
    "probe_icons",
    "probe_overlays",
    "probe_fonts",
    "probe_settings",
    "list_wallpaper_name",
    "classify",
    "scan_category",
    "to_mapping",
    "add_mapping",
    "read_package_accents",
    "read_package_leds",
    "rebuild_theme_manifest",
    "rebuild_component_manifest",
]
