"""Canonical workspace locations and package name allocation."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from themekit.manifest import (
    COMPONENT_EXTENSIONS,
    THEME_EXTENSION,
    ManifestError,
    load_manifest,
)

from .errors import PackageExistsError, PackageNotFoundError

LOGGER = logging.getLogger(__name__)

PACKAGE_KINDS: tuple[str, ...] = ("theme", *COMPONENT_EXTENSIONS)

EXTENSIONS: dict[str, str] = {"theme": THEME_EXTENSION, **COMPONENT_EXTENSIONS}

CATEGORY_DIRS: dict[str, str] = {
    "theme": "Themes",
    "wallpaper": "Wallpapers",
    "icon": "Icons",
    "accent": "Accents",
    "led": "LEDs",
    "font": "Fonts",
    "overlay": "Overlays",
}

AREA_DIRS: dict[str, str] = {"imports": "Imports", "exports": "Exports"}

BACKUPS_DIRNAME = "Backups"
CATALOG_DIRNAME = "Catalog"
CATALOG_SECTIONS = ("Themes", "Overlays")
LOGS_DIRNAME = "Logs"


@dataclass(frozen=True)
class PackageEntry:
    """A package found while listing the workspace.

    Attributes:
        name: Directory name including its extension.
        kind: Package kind (`theme`, `wallpaper`, ...).
        area: `imports`, `exports`, or `backups`.
        path: Absolute package directory.
        manifest_status: `ok`, `missing`, or `invalid`.
    """

    name: str
    kind: str
    area: str
    path: Path
    manifest_status: str


def extension_for(kind: str) -> str:
    """Return the directory extension for a package kind.

    Raises:
        ValueError: If `kind` is not a known package kind.
    """
    try:
        return EXTENSIONS[kind]
    except KeyError as exc:
        raise ValueError(f"Unknown package kind: {kind}") from exc


def with_extension(name: str, kind: str) -> str:
    """Return `name` ending in the extension for `kind`."""
    extension = extension_for(kind)
    if name.endswith(extension):
        return name
    return f"{name}{extension}"


def base_name(name: str, kind: Optional[str] = None) -> str:
    """Strip a package extension from `name`.

    When `kind` is omitted any known extension is removed.
    """
    extensions = [extension_for(kind)] if kind else list(EXTENSIONS.values())
    for extension in extensions:
        if name.endswith(extension):
            return name[: -len(extension)]
    return name


def next_sequential_name(directory: Path, prefix: str, extension: str = "") -> str:
    """Return `<prefix><N><extension>` for the lowest free `N >= 1`.

    Args:
        directory: Directory whose entries must not be reused.
        prefix: Name prefix such as `theme_` or `backup`.
        extension: Suffix appended after the number.

    Returns:
        str: Unused name within `directory`.
    """
    number = 1
    while (directory / f"{prefix}{number}{extension}").exists():
        number += 1
    return f"{prefix}{number}{extension}"


def unique_name(directory: Path, base: str, extension: str) -> str:
    """Return `<base><extension>`, or `<base>_<N><extension>` when taken."""
    candidate = f"{base}{extension}"
    number = 2
    while (directory / candidate).exists():
        candidate = f"{base}_{number}{extension}"
        number += 1
    return candidate


class Workspace:
    """Resolve canonical package locations under a workspace root."""

    def __init__(self, root: Path) -> None:
        self._root = root

    @property
    def root(self) -> Path:
        return self._root

    @property
    def backups_dir(self) -> Path:
        return self._root / BACKUPS_DIRNAME

    @property
    def logs_dir(self) -> Path:
        return self._root / LOGS_DIRNAME

    def catalog_dir(self, section: str = "Themes") -> Path:
        """Return the catalog cache directory for `Themes` or `Overlays`."""
        if section not in CATALOG_SECTIONS:
            raise ValueError(f"Unknown catalog section: {section}")
        return self._root / CATALOG_DIRNAME / section

    def category_dir(self, kind: str) -> Path:
        try:
            return self._root / CATEGORY_DIRS[kind]
        except KeyError as exc:
            raise ValueError(f"Unknown package kind: {kind}") from exc

    def area_dir(self, kind: str, area: str) -> Path:
        """Return `<Category>/Imports` or `<Category>/Exports`."""
        try:
            return self.category_dir(kind) / AREA_DIRS[area]
        except KeyError as exc:
            raise ValueError(f"Unknown package area: {area}") from exc

    def ensure_structure(self) -> list[Path]:
        """Create every workspace directory that does not exist yet.

        Returns:
            list[Path]: Directories that were created.
        """
        targets = [self.area_dir(kind, area) for kind in PACKAGE_KINDS for area in AREA_DIRS]
        targets.append(self.backups_dir)
        targets.extend(self.catalog_dir(section) for section in CATALOG_SECTIONS)
        targets.append(self.logs_dir)

        created: list[Path] = []
        for target in targets:
            if not target.is_dir():
                target.mkdir(parents=True, exist_ok=True)
                created.append(target)
        if created:
            LOGGER.info("Created %d workspace directories under %s", len(created), self._root)
        return created

    def find_package(self, name: str, kind: str = "theme") -> Path:
        """Locate a package by name, searching Imports before Exports.

        Args:
            name: Package name, with or without its extension.
            kind: Package kind.

        Returns:
            Path: Package directory.

        Raises:
            PackageNotFoundError: If no directory with that name exists.
        """
        dirname = with_extension(name, kind)
        searched: list[Path] = []
        for area in AREA_DIRS:
            candidate = self.area_dir(kind, area) / dirname
            if candidate.is_dir():
                return candidate
            searched.append(candidate.parent)
        locations = ", ".join(str(path) for path in searched)
        raise PackageNotFoundError(f"{kind} package {dirname!r} not found in {locations}")

    def allocate_export(self, kind: str, name: Optional[str] = None) -> Path:
        """Reserve a directory path for a new exported package.

        Generated names take the lowest free `<kind>_<N>`; explicit names must
        not exist yet. The directory itself is not created.

        Raises:
            PackageExistsError: If an explicit name is already taken.
        """
        directory = self.area_dir(kind, "exports")
        directory.mkdir(parents=True, exist_ok=True)
        extension = extension_for(kind)
        if name is None:
            return directory / next_sequential_name(directory, f"{kind}_", extension)

        target = directory / with_extension(name, kind)
        if target.exists():
            raise PackageExistsError(f"Package already exists: {target}")
        return target

    def allocate_derived(self, kind: str, base: str) -> Path:
        """Reserve `<base><ext>` in the exports area, suffixing `_<N>` on collision."""
        directory = self.area_dir(kind, "exports")
        directory.mkdir(parents=True, exist_ok=True)
        return directory / unique_name(directory, base, extension_for(kind))

    def backup_path(self, name: str) -> Path:
        return self.backups_dir / with_extension(name, "theme")

    def list_packages(
        self, kind: Optional[str] = None, area: Optional[str] = None
    ) -> list[PackageEntry]:
        """List packages with the status of their manifests.

        Args:
            kind: Restrict to one package kind.
            area: Restrict to `imports`, `exports`, or `backups`.

        Returns:
            list[PackageEntry]: Entries sorted by kind, area, then name.
        """
        locations: list[tuple[str, str, Path]] = []
        kinds = [kind] if kind else list(PACKAGE_KINDS)
        for entry_kind in kinds:
            for entry_area in AREA_DIRS:
                if area in (None, entry_area):
                    locations.append((entry_kind, entry_area, self.area_dir(entry_kind, entry_area)))
        if area in (None, "backups") and kind in (None, "theme"):
            locations.append(("theme", "backups", self.backups_dir))

        entries: list[PackageEntry] = []
        for entry_kind, entry_area, directory in locations:
            if not directory.is_dir():
                continue
            extension = extension_for(entry_kind)
            for child in sorted(directory.iterdir()):
                if not child.is_dir() or not child.name.endswith(extension):
                    continue
                entries.append(
                    PackageEntry(
                        name=child.name,
                        kind=entry_kind,
                        area=entry_area,
                        path=child,
                        manifest_status=_manifest_status(child),
                    )
                )
        return entries


def _manifest_status(package_dir: Path) -> str:
    if not (package_dir / "manifest.json").is_file():
        return "missing"
    try:
        load_manifest(package_dir)
    except ManifestError as exc:
        LOGGER.debug("Manifest in %s is invalid: %s", package_dir, exc)
        return "invalid"
    return "ok"


__all__ = [
    "PACKAGE_KINDS",
    "EXTENSIONS",
    "CATEGORY_DIRS",
    "PackageEntry",
    "Workspace",
    "extension_for",
    "with_extension",
    "base_name",
    "next_sequential_name",
    "unique_name",
]
