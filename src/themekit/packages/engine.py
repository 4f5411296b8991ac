"""Apply full themes to the device and export the live device state."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional

from themekit import application_version
from themekit.config.models import ExportSettings
from themekit.device.paths import COLLECTIONS, RECENTLY_PLAYED, TOOLS, DevicePaths
from themekit.device.settings import (
    read_accent_file,
    read_led_file,
    write_accent_file,
    write_led_file,
)
from themekit.manifest import (
    AccentColors,
    AccentManifest,
    ComponentManifest,
    LEDManifest,
    LEDSettings,
    PathMapping,
    ThemeManifest,
    create_default,
    create_minimal,
    load_theme_manifest,
    save_manifest,
)
from themekit.state import StateRepository

from .errors import PackageError, TransferError
from .fileops import (
    clean_directory,
    copy_directory,
    copy_file,
    package_file,
    remove_directory,
    remove_file,
)
from .layout import (
    CATEGORIES,
    COMPONENT_CATEGORIES,
    PROBES,
    SETTINGS_PACKAGE_FILES,
    add_mapping,
    create_component_layout,
    create_theme_layout,
    to_mapping,
)
from .preview import (
    component_preview_candidates,
    install_preview,
    theme_preview_candidates,
    write_solid_image,
)
from .resolver import Workspace, base_name

LOGGER = logging.getLogger(__name__)

SPECIAL_ICON_FILENAME = "icon.png"
# Categories whose device locations are emptied before new files are placed.
CLEARED_CATEGORIES = ("wallpapers", "icons", "overlays")
DEFAULT_WALLPAPER_NAME = "Default"


@dataclass
class PlacementReport:
    """Outcome of placing a package's mappings on the device."""

    placed: int = 0
    skipped: list[str] = field(default_factory=list)


@dataclass
class ApplyResult:
    """Summary of an applied theme.

    Attributes:
        name: Package directory name.
        package_path: Location of the applied package.
        files_cleared: Device files removed before the mappings were placed.
        files_copied: Files copied into the live theme directory.
        mappings_placed: Mapped files copied to their device destinations.
        skipped: Package paths of mappings that were not placed.
        settings_written: Device settings files rewritten from the manifest.
    """

    name: str
    package_path: Path
    files_cleared: int = 0
    files_copied: int = 0
    mappings_placed: int = 0
    skipped: list[str] = field(default_factory=list)
    settings_written: list[str] = field(default_factory=list)

    @property
    def message(self) -> str:
        return (
            f"Applied {self.name}: {self.files_copied} theme files, "
            f"{self.mappings_placed} mapped files, {len(self.skipped)} skipped"
        )


@dataclass
class ExportResult:
    """Summary of an export.

    Attributes:
        name: Package directory name.
        package_path: Location of the new package.
        counts: Files exported per category.
        failures: Error text for categories that failed part way.
        preview: Preview file name, if one was written.
    """

    name: str
    package_path: Path
    counts: dict[str, int] = field(default_factory=dict)
    failures: dict[str, str] = field(default_factory=dict)
    preview: Optional[str] = None

    @property
    def total(self) -> int:
        return sum(self.counts.values())

    @property
    def message(self) -> str:
        return f"Exported {self.total} files to {self.name}"


@dataclass
class ResetResult:
    """Summary of a wallpaper reset or purge.

    Attributes:
        removed: Wallpaper files deleted from the device.
        written: Locations that received the default background.
    """

    removed: int = 0
    written: list[Path] = field(default_factory=list)

    @property
    def message(self) -> str:
        if self.written:
            return (
                f"Reset {len(self.written)} wallpapers to the default background, "
                f"{self.removed} removed"
            )
        return f"Removed {self.removed} wallpapers"


def place_mappings(
    package_dir: Path, mappings: Iterable[PathMapping], device: DevicePaths
) -> PlacementReport:
    """Copy each mapped package file to its device destination.

    A mapping is skipped with a warning when its package file is missing or
    lies outside the package, or when its destination lies outside the SD
    card.

    Raises:
        TransferError: If an existing file cannot be copied.
    """
    report = PlacementReport()
    for mapping in mappings:
        source = package_file(package_dir, mapping.package_path)
        if source is None:
            LOGGER.warning("Skipping dangling mapping %s in %s", mapping.package_path, package_dir)
            report.skipped.append(mapping.package_path)
            continue
        destination = device.resolve(mapping.device_path)
        if not device.contains(destination):
            LOGGER.warning(
                "Skipping mapping %s: %s is outside the SD card", mapping.package_path, destination
            )
            report.skipped.append(mapping.package_path)
            continue
        copy_file(source, destination)
        report.placed += 1
    return report


def clear_category(category_key: str, device: DevicePaths) -> int:
    """Remove every file of a category from the device.

    Clearing touches exactly the locations an export of the category
    would read.

    Args:
        category_key: One of the `CLEARED_CATEGORIES`.
        device: Device to clear.

    Returns:
        int: Number of files removed.

    Raises:
        TransferError: If a file cannot be removed.
    """
    removed = 0
    for placement in list(PROBES[category_key](device)):
        if remove_file(placement.device_path):
            removed += 1
    LOGGER.debug("Cleared %d %s from the device", removed, category_key)
    return removed



def write_settings_blocks(
    device: DevicePaths,
    accent_colors: Optional[AccentColors],
    led_settings: Optional[LEDSettings],
) -> list[str]:
    """Write manifest accent and LED blocks to the device settings files.

    Returns:
        list[str]: Names of the settings written (`accents`, `leds`).

    Raises:
        TransferError: If a settings file cannot be written.
    """
    written: list[str] = []
    try:
        if accent_colors is not None:
            write_accent_file(device.accent_settings_file, accent_colors)
            written.append("accents")
        if led_settings is not None:
            write_led_file(device.led_settings_file, led_settings)
            written.append("leds")
    except OSError as exc:
        raise TransferError(f"Failed to write device settings: {exc}") from exc
    return written


def replace_live_theme(source_dir: Path, device: DevicePaths) -> int:
    """Replace the live theme directory with the contents of `source_dir`.

    The tool, Collections, and Recently Played subtrees are not copied into
    the live theme; their icons are installed at their own device locations
    instead. The two menu icons are best effort.

    Returns:
        int: Number of files copied.

    Raises:
        TransferError: If the live theme cannot be replaced.
    """
    live_dir = device.live_theme_dir
    remove_directory(live_dir)
    try:
        live_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise TransferError(f"Failed to create {live_dir}: {exc}") from exc

    tools_subdir = f"{TOOLS}/{device.platform}"
    copied = copy_directory(source_dir, live_dir, exclude=(tools_subdir, COLLECTIONS, RECENTLY_PLAYED))

    tool_media = source_dir / TOOLS / device.platform / ".media"
    if tool_media.is_dir():
        clean_directory(device.tool_media_dir)
        copied += copy_directory(tool_media, device.tool_media_dir)

    special_icons = {
        source_dir / COLLECTIONS / SPECIAL_ICON_FILENAME: device.collections_icon(),
        source_dir / RECENTLY_PLAYED / SPECIAL_ICON_FILENAME: device.recently_played_icon(),
    }
    for source, destination in special_icons.items():
        if not source.is_file():
            continue
        try:
            copy_file(source, destination)
            copied += 1
        except TransferError as exc:
            LOGGER.warning("Unable to install menu icon %s: %s", destination, exc)
    return copied


class ThemeEngine:
    """Apply full theme packages and export the live device as packages."""

    def __init__(
        self,
        workspace: Workspace,
        device: DevicePaths,
        *,
        export_settings: Optional[ExportSettings] = None,
        state: Optional[StateRepository] = None,
    ) -> None:
        self._workspace = workspace
        self._device = device
        self._export = export_settings or ExportSettings()
        self._state = state or StateRepository(workspace.root)

    def apply(self, name: str) -> ApplyResult:
        """Install a full theme onto the live device.

        The manifest must pass strict validation before anything on the
        device is touched. Every one of the `CLEARED_CATEGORIES` is emptied on
        the device first, even when the theme carries none of its files, so
        the device ends up holding exactly what the theme maps.

        Args:
            name: Theme name, with or without the `.theme` extension.

        Returns:
            ApplyResult: Counts of copied and skipped files.

        Raises:
            PackageNotFoundError: If the theme is not in the workspace.
            ManifestError: If the manifest is missing or fails validation.
            TransferError: If copying to the device fails.
        """
        package_dir = self._workspace.find_package(name, "theme")
        manifest = load_theme_manifest(package_dir, strict=True)
        LOGGER.info("Applying theme %s from %s", manifest.name, package_dir)

        result = ApplyResult(name=package_dir.name, package_path=package_dir)
        for category_key in CLEARED_CATEGORIES:
            result.files_cleared += clear_category(category_key, self._device)
        result.files_copied = replace_live_theme(package_dir, self._device)

        report = place_mappings(package_dir, manifest.path_mappings.all(), self._device)
        result.mappings_placed = report.placed
        result.skipped = report.skipped
        result.settings_written = write_settings_blocks(
            self._device, manifest.accent_colors, manifest.led_settings
        )

        self._state.record("theme", package_dir.name, application_version())
        LOGGER.info(result.message)
        return result

    def purge_wallpapers(self) -> ResetResult:
        """Delete every wallpaper from the device.

        Raises:
            TransferError: If a wallpaper cannot be removed.
        """
        result = ResetResult(removed=clear_category("wallpapers", self._device))
        LOGGER.info(result.message)
        return result

    def reset(self, background: Optional[Path] = None) -> ResetResult:
        """Replace every wallpaper with a single default background.

        All wallpapers are purged first. The background is then installed at
        each fixed menu location and for every discovered system.

        Args:
            background: Image to install; a plain black image sized for the
                device is generated when omitted.

        Returns:
            ResetResult: Files removed and locations written.

        Raises:
            TransferError: If a wallpaper cannot be removed or written.
        """
        device = self._device
        result = ResetResult(removed=clear_category("wallpapers", device))
        targets = [
            device.root_wallpaper(),
            device.root_media_wallpaper(),
            device.recently_played_wallpaper(),
            device.tools_wallpaper(),
        ]
        targets.extend(device.system_wallpaper(system.name) for system in device.discover_systems())

        if background is None:
            source = write_solid_image(targets[0])
            result.written.append(targets[0])
            targets = targets[1:]
        else:
            source = background
        for target in targets:
            copy_file(source, target)
            result.written.append(target)

        self._state.record("wallpaper", DEFAULT_WALLPAPER_NAME, application_version())
        LOGGER.info(result.message)
        return result

    def export(self, name: Optional[str] = None) -> ExportResult:
        """Snapshot the live device into a new full theme package.

        Args:
            name: Explicit package name; a `theme_<N>` name is generated when
                omitted.

        Returns:
            ExportResult: Per-category counts and any category failures.

        Raises:
            PackageExistsError: If an explicit name is already taken.
        """
        package_dir = self._workspace.allocate_export("theme", name)
        create_theme_layout(package_dir)
        result = ExportResult(name=package_dir.name, package_path=package_dir)

        manifest = self._new_theme_manifest(base_name(package_dir.name, "theme"))
        for category in CATEGORIES.values():
            group = getattr(manifest.path_mappings, category.key)
            try:
                for placement in PROBES[category.key](self._device):
                    package_path = category.theme_path(placement.relative)
                    copy_file(placement.device_path, package_dir / package_path)
                    add_mapping(group, placement, to_mapping(placement, package_path))
                    result.counts[category.key] = result.counts.get(category.key, 0) + 1
            except (OSError, PackageError) as exc:
                LOGGER.error("Export of %s failed: %s", category.key, exc)
                result.failures[category.key] = str(exc)

        manifest.accent_colors = self._read_live_accents()
        manifest.led_settings = self._read_live_leds()

        tags = {
            mapping.metadata["SystemTag"]
            for mapping in manifest.path_mappings.all()
            if mapping.metadata.get("SystemTag") and mapping.metadata.get("IconType") != "Special"
        }
        manifest.theme_info.systems = sorted(tags) or ["all"]

        result.preview = install_preview(
            package_dir,
            theme_preview_candidates(package_dir, manifest.path_mappings.wallpapers),
            title=manifest.name,
        )
        save_manifest(package_dir, manifest)
        LOGGER.info(result.message)
        return result

    def export_component(self, component_type: str, name: Optional[str] = None) -> ExportResult:
        """Snapshot one category of the live device as a component package.

        Args:
            component_type: `wallpaper`, `icon`, `accent`, `led`, `font`, or
                `overlay`.
            name: Explicit package name; `<type>_<N>` is generated when omitted.

        Raises:
            UnknownComponentTypeError: If `component_type` is not recognized.
            PackageExistsError: If an explicit name is already taken.
        """
        manifest = create_minimal(component_type, "", self._export.author)
        package_dir = self._workspace.allocate_export(component_type, name)
        create_component_layout(package_dir, component_type)
        manifest.component_info.name = package_dir.name
        result = ExportResult(name=package_dir.name, package_path=package_dir)

        if isinstance(manifest, (AccentManifest, LEDManifest)):
            self._export_settings_component(manifest, package_dir, result)
        else:
            category = COMPONENT_CATEGORIES[component_type]
            try:
                for placement in PROBES[category.key](self._device):
                    package_path = category.component_path(placement.relative)
                    copy_file(placement.device_path, package_dir / package_path)
                    add_mapping(manifest.path_mappings, placement, to_mapping(placement, package_path))
                    result.counts[category.key] = result.counts.get(category.key, 0) + 1
            except (OSError, PackageError) as exc:
                LOGGER.error("Export of %s failed: %s", category.key, exc)
                result.failures[category.key] = str(exc)

        if component_type != "led":
            result.preview = install_preview(
                package_dir,
                component_preview_candidates(component_type, package_dir, manifest.mappings()),
                title=package_dir.name,
            )
        save_manifest(package_dir, manifest)
        LOGGER.info(result.message)
        return result

    def _export_settings_component(
        self, manifest: ComponentManifest, package_dir: Path, result: ExportResult
    ) -> None:
        if isinstance(manifest, AccentManifest):
            slot, source = "accents", self._device.accent_settings_file
            colors = self._read_live_accents()
            if colors is not None:
                manifest.accent_colors = colors
        else:
            slot, source = "leds", self._device.led_settings_file
            leds = self._read_live_leds()
            if leds is not None and isinstance(manifest, LEDManifest):
                manifest.led_settings = leds

        if not source.is_file():
            LOGGER.warning("No %s settings on the device; exporting defaults", slot)
            return
        try:
            copy_file(source, package_dir / SETTINGS_PACKAGE_FILES[slot])
            result.counts[slot] = 1
        except TransferError as exc:
            LOGGER.error("Export of %s failed: %s", slot, exc)
            result.failures[slot] = str(exc)

    def _new_theme_manifest(self, name: str) -> ThemeManifest:
        manifest = create_default(name, self._export.author)
        info = manifest.theme_info
        info.description = self._export.description
        info.repository_url = self._export.repository_url
        info.commit = self._export.commit
        info.branch = self._export.branch
        info.device = self._device.device
        return manifest

    def _read_live_accents(self) -> Optional[AccentColors]:
        try:
            return read_accent_file(self._device.accent_settings_file)
        except (OSError, UnicodeDecodeError) as exc:
            LOGGER.warning("Unable to read accent settings: %s", exc)
            return None

    def _read_live_leds(self) -> Optional[LEDSettings]:
        try:
            return read_led_file(self._device.led_settings_file)
        except (OSError, UnicodeDecodeError) as exc:
            LOGGER.warning("Unable to read LED settings: %s", exc)
            return None


__all__ = [
    "ThemeEngine",
    "ApplyResult",
    "ExportResult",
    "ResetResult",
    "PlacementReport",
    "place_mappings",
    "clear_category",
    "write_settings_blocks",
    "replace_live_theme",
]
