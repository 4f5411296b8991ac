"""Install single component packages onto the device."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from themekit import application_version
from themekit.device.paths import DevicePaths
from themekit.manifest import (
    COMPONENT_TYPES,
    AccentManifest,
    ComponentManifest,
    InvalidManifestError,
    LEDManifest,
    MissingManifestError,
    UnknownComponentTypeError,
    load_component_manifest,
    save_manifest,
)
from themekit.state import StateRepository

from .engine import CLEARED_CATEGORIES, clear_category, place_mappings, write_settings_blocks
from .layout import COMPONENT_CATEGORIES, rebuild_component_manifest
from .resolver import Workspace

LOGGER = logging.getLogger(__name__)


@dataclass
class ImportResult:
    """Summary of an installed component package.

    Attributes:
        component_type: Type of the installed component.
        name: Package directory name.
        package_path: Location of the package.
        cleared: Device files of the same category removed before placing.
        placed: Files copied to the device.
        skipped: Package paths of mappings that were not placed.
        settings_written: Settings files rewritten (`accents`, `leds`).
        manifest_rebuilt: Whether the manifest was derived from the files.
    """

    component_type: str
    name: str
    package_path: Path
    cleared: int = 0
    placed: int = 0
    skipped: list[str] = field(default_factory=list)
    settings_written: list[str] = field(default_factory=list)
    manifest_rebuilt: bool = False

    @property
    def message(self) -> str:
        if self.settings_written:
            return f"Imported {self.component_type} {self.name}: wrote {', '.join(self.settings_written)}"
        return f"Imported {self.component_type} {self.name}: {self.placed} files placed"


class ComponentImporter:
    """Locate a component package and install it on the device."""

    def __init__(
        self,
        workspace: Workspace,
        device: DevicePaths,
        *,
        state: Optional[StateRepository] = None,
    ) -> None:
        self._workspace = workspace
        self._device = device
        self._state = state or StateRepository(workspace.root)

    def import_component(self, component_type: str, name: str) -> ImportResult:
        """Install the component package `name` of the given type.

        A package without a manifest has one derived from its file names,
        which is then saved into the package. Packages of the
        `CLEARED_CATEGORIES` replace every file of their category on the device.

        Args:
            component_type: `wallpaper`, `icon`, `accent`, `led`, `font`, or
                `overlay`.
            name: Package name, with or without its extension.

        Returns:
            ImportResult: Counts of placed and skipped files.

        Raises:
            UnknownComponentTypeError: If `component_type` is not recognized.
            PackageNotFoundError: If the package is not in the workspace.
            ManifestError: If an existing manifest is invalid or of another type.
            TransferError: If copying to the device fails.
        """
        if component_type not in COMPONENT_TYPES:
            raise UnknownComponentTypeError(f"unknown component type: {component_type}", ["type"])

        package_dir = self._workspace.find_package(name, component_type)
        result = ImportResult(component_type=component_type, name=package_dir.name, package_path=package_dir)
        manifest = self._load(package_dir, component_type, result)

        if isinstance(manifest, AccentManifest):
            result.settings_written = write_settings_blocks(self._device, manifest.accent_colors, None)
        elif isinstance(manifest, LEDManifest):
            result.settings_written = write_settings_blocks(self._device, None, manifest.led_settings)
        else:
            category_key = COMPONENT_CATEGORIES[component_type].key
            if category_key in CLEARED_CATEGORIES:
                result.cleared = clear_category(category_key, self._device)
            report = place_mappings(package_dir, manifest.mappings(), self._device)
            result.placed = report.placed
            result.skipped = report.skipped

        self._state.record(component_type, package_dir.name, application_version())
        LOGGER.info(result.message)
        return result

    def _load(self, package_dir: Path, component_type: str, result: ImportResult) -> ComponentManifest:
        try:
            manifest = load_component_manifest(package_dir)
        except MissingManifestError:
            LOGGER.info("No manifest in %s; deriving one from its files", package_dir.name)
            manifest = rebuild_component_manifest(package_dir, component_type, self._device)
            save_manifest(package_dir, manifest)
            result.manifest_rebuilt = True
            return manifest

        if manifest.component_type != component_type:
            raise InvalidManifestError(
                f"{package_dir.name} is a {manifest.component_type} package, not {component_type}"
            )
        return manifest


__all__ = ["ComponentImporter", "ImportResult"]
