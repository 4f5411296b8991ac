"""Split a full theme package into single-purpose component packages."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from functools import partial
from pathlib import Path
from typing import Callable, Optional

from themekit.manifest import (
    AccentColors,
    AccentManifest,
    ComponentManifest,
    LEDManifest,
    LEDSettings,
    ThemeManifest,
    create_minimal,
    load_theme_manifest,
    save_manifest,
)

from .errors import DeconstructionError, PackageError
from .fileops import copy_file, package_file, remove_directory
from .layout import (
    CATEGORIES,
    SETTINGS_PACKAGE_FILES,
    Category,
    create_component_layout,
    read_package_accents,
    read_package_leds,
)
from .preview import component_preview_candidates, install_preview
from .resolver import Workspace, base_name

LOGGER = logging.getLogger(__name__)

Populate = Callable[[Path, ComponentManifest], None]


@dataclass
class DeconstructionResult:
    """Component packages produced from one theme.

    Attributes:
        theme: Name of the source theme package.
        components: Component type mapped to the created package directory.
        failures: Component type mapped to the error that stopped it.
    """

    theme: str
    components: dict[str, Path] = field(default_factory=dict)
    failures: dict[str, str] = field(default_factory=dict)

    @property
    def message(self) -> str:
        return f"Deconstructed {self.theme} into {len(self.components)} component packages"


class Deconstructor:
    """Create component packages from the categories a theme carries."""

    def __init__(self, workspace: Workspace) -> None:
        self._workspace = workspace

    def deconstruct(self, name: str) -> DeconstructionResult:
        """Write one component package per category present in a theme.

        Components are written to `<Category>/Exports/<theme base><ext>`.
        A category that fails is logged and recorded without stopping the
        others.

        Args:
            name: Theme name, with or without the `.theme` extension.

        Returns:
            DeconstructionResult: Created packages and per-category failures.

        Raises:
            PackageNotFoundError: If the theme is not in the workspace.
            ManifestError: If the theme manifest fails strict validation.
            DeconstructionError: If no component could be extracted.
        """
        package_dir = self._workspace.find_package(name, "theme")
        manifest = load_theme_manifest(package_dir, strict=True)
        manifest.refresh_content()
        base = base_name(package_dir.name, "theme")
        author = manifest.author
        result = DeconstructionResult(theme=package_dir.name)
        content = manifest.content

        for category in CATEGORIES.values():
            if category.component_type is None:
                continue
            summary = getattr(content, category.key)
            if summary.present and summary.count > 0:
                populate = partial(_copy_category, package_dir, manifest, category)
                self._build(result, category.component_type, base, author, populate)

        if content.settings.accents_included:
            colors = manifest.accent_colors or _settings_file_accents(package_dir)
            if colors is None:
                LOGGER.warning("Theme %s lists accents but carries no colors", package_dir.name)
            else:
                self._build(result, "accent", base, author, partial(_set_accents, colors))

        if content.settings.leds_included:
            leds = manifest.led_settings or _settings_file_leds(package_dir)
            if leds is None:
                LOGGER.warning("Theme %s lists LEDs but carries no LED settings", package_dir.name)
            else:
                self._build(result, "led", base, author, partial(_set_leds, leds))

        if not result.components:
            raise DeconstructionError(f"no components extracted from {package_dir.name}")
        LOGGER.info(result.message)
        return result

    def _build(
        self,
        result: DeconstructionResult,
        component_type: str,
        base: str,
        author: str,
        populate: Populate,
    ) -> None:
        target = self._workspace.allocate_derived(component_type, base)
        try:
            component = create_minimal(component_type, target.name, author)
            create_component_layout(target, component_type)
            populate(target, component)
            if component_type != "led":
                install_preview(
                    target,
                    component_preview_candidates(component_type, target, component.mappings()),
                    title=target.name,
                )
            save_manifest(target, component)
        except (OSError, PackageError) as exc:
            LOGGER.error("Failed to extract %s from %s: %s", component_type, result.theme, exc)
            result.failures[component_type] = str(exc)
            remove_directory(target)
            return
        LOGGER.debug("Extracted %s component to %s", component_type, target)
        result.components[component_type] = target


def _copy_category(
    package_dir: Path,
    manifest: ThemeManifest,
    category: Category,
    component_dir: Path,
    component: ComponentManifest,
) -> None:
    """Copy a category's files into a component, re-rooting each mapping."""
    group = getattr(manifest.path_mappings, category.key)
    items = list(group.items()) if isinstance(group, dict) else [(None, mapping) for mapping in group]
    target = getattr(component, "path_mappings")

    for slot, mapping in items:
        source = package_file(package_dir, mapping.package_path)
        if source is None:
            LOGGER.warning("Skipping dangling mapping %s", mapping.package_path)
            continue
        rerooted = mapping.model_copy(update={"package_path": category.reroot(mapping.package_path)})
        destination = component_dir / rerooted.package_path
        if not destination.resolve().is_relative_to(component_dir.resolve()):
            LOGGER.warning("Skipping mapping %s outside the component", mapping.package_path)
            continue
        copy_file(source, destination)
        if slot is None:
            target.append(rerooted)
        else:
            target[slot] = rerooted


def _set_accents(colors: AccentColors, component_dir: Path, component: ComponentManifest) -> None:
    if isinstance(component, AccentManifest):
        component.accent_colors = colors.model_copy()


def _set_leds(leds: LEDSettings, component_dir: Path, component: ComponentManifest) -> None:
    if isinstance(component, LEDManifest):
        component.led_settings = leds.model_copy(deep=True)


def _settings_file_accents(package_dir: Path) -> Optional[AccentColors]:
    path = package_dir / CATEGORIES["settings"].theme_prefix / SETTINGS_PACKAGE_FILES["accents"]
    return read_package_accents(path)


def _settings_file_leds(package_dir: Path) -> Optional[LEDSettings]:
    path = package_dir / CATEGORIES["settings"].theme_prefix / SETTINGS_PACKAGE_FILES["leds"]
    return read_package_leds(path)


__all__ = ["Deconstructor", "DeconstructionResult"]
