"""Backups of the live theme and their rotation."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Optional

from themekit.config.models import BackupSettings
from themekit.device.paths import COLLECTIONS, RECENTLY_PLAYED, TOOLS, DevicePaths
from themekit.manifest import (
    MANIFEST_FILENAME,
    ManifestError,
    ThemeManifest,
    create_default,
    load_theme_manifest,
    save_manifest,
)

from .engine import SPECIAL_ICON_FILENAME, replace_live_theme
from .errors import LiveThemeMissingError, PackageExistsError, PackageNotFoundError, TransferError
from .fileops import copy_directory, copy_file, remove_directory
from .resolver import Workspace, base_name, unique_name, with_extension

LOGGER = logging.getLogger(__name__)

BACKUP_AUTHOR = "System"
BACKUP_PREFIX = "backup"
_SEQUENTIAL_PATTERN = re.compile(rf"^{BACKUP_PREFIX}(\d+)\.theme$")


@dataclass
class BackupResult:
    """Summary of a created or restored backup.

    Attributes:
        name: Backup directory name.
        path: Backup directory.
        files_copied: Files copied by the operation.
        rotated: Backups removed by the rotation that followed creation.
    """

    name: str
    path: Path
    files_copied: int = 0
    rotated: list[str] = field(default_factory=list)

    @property
    def message(self) -> str:
        return f"{self.name}: {self.files_copied} files"


@dataclass(frozen=True)
class BackupInfo:
    """A backup found in the workspace."""

    name: str
    path: Path
    modified: datetime
    systems: tuple[str, ...] = ()


class BackupManager:
    """Create, restore, list, and rotate backups of the live theme."""

    def __init__(
        self,
        workspace: Workspace,
        device: DevicePaths,
        settings: Optional[BackupSettings] = None,
    ) -> None:
        self._workspace = workspace
        self._device = device
        self._settings = settings or BackupSettings()

    def create_backup(self, name: Optional[str] = None) -> BackupResult:
        """Copy the live theme and its menu icons into a new backup.

        Args:
            name: Backup name; generated from the configured naming strategy
                when omitted.

        Returns:
            BackupResult: The created backup and any backups rotated away.

        Raises:
            LiveThemeMissingError: If there is no live theme to back up.
            PackageExistsError: If an explicit name is already taken.
            TransferError: If copying fails; the partial backup is removed.
        """
        live_dir = self._device.live_theme_dir
        if not live_dir.is_dir():
            raise LiveThemeMissingError(f"Live theme directory does not exist: {live_dir}")

        target = self._allocate(name)
        LOGGER.info("Backing up %s to %s", live_dir, target)
        try:
            copied = copy_directory(live_dir, target)
            copied += self._copy_menu_assets(target)
            manifest = self._backup_manifest(base_name(target.name, "theme"), live_dir)
            save_manifest(target, manifest)
        except TransferError:
            remove_directory(target)
            raise
        except OSError as exc:
            remove_directory(target)
            raise TransferError(f"Failed to write backup {target}: {exc}") from exc

        result = BackupResult(name=target.name, path=target, files_copied=copied)
        if self._settings.rotate_on_create:
            result.rotated = self.rotate()
        return result

    def restore_backup(self, name: str) -> BackupResult:
        """Replace the live theme with a backup's contents.

        Backups only need a name in their manifest to be restorable.

        Raises:
            PackageNotFoundError: If the backup does not exist.
            ManifestError: If the backup manifest is missing or unnamed.
            TransferError: If copying to the device fails.
        """
        path = self._workspace.backup_path(name)
        if not path.is_dir():
            raise PackageNotFoundError(f"Backup not found: {path}")
        load_theme_manifest(path, strict=False)

        LOGGER.info("Restoring backup %s", path.name)
        copied = replace_live_theme(path, self._device)
        return BackupResult(name=path.name, path=path, files_copied=copied)

    def list_backups(self) -> list[BackupInfo]:
        """Return backups sorted from oldest to newest modification time."""
        directory = self._workspace.backups_dir
        if not directory.is_dir():
            return []

        backups: list[BackupInfo] = []
        for entry in directory.iterdir():
            if not entry.is_dir() or not entry.name.endswith(".theme"):
                continue
            try:
                modified = datetime.fromtimestamp(entry.stat().st_mtime)
            except OSError as exc:
                LOGGER.warning("Unable to stat backup %s: %s", entry, exc)
                continue
            backups.append(
                BackupInfo(name=entry.name, path=entry, modified=modified, systems=_systems(entry))
            )
        backups.sort(key=lambda info: (info.modified, info.name))
        return backups

    def rotate(self, max_backups: Optional[int] = None) -> list[str]:
        """Delete the oldest backups until at most `max_backups` remain.

        A backup that cannot be deleted is logged and the rest still rotate.

        Returns:
            list[str]: Names of removed backups.
        """
        keep = max_backups if max_backups is not None else self._settings.max_backups
        backups = self.list_backups()
        excess = len(backups) - max(keep, 0)
        removed: list[str] = []
        for info in backups[: max(excess, 0)]:
            try:
                remove_directory(info.path)
            except TransferError as exc:
                LOGGER.warning("Unable to remove old backup %s: %s", info.name, exc)
                continue
            LOGGER.info("Removed old backup %s", info.name)
            removed.append(info.name)
        return removed

    def _allocate(self, name: Optional[str]) -> Path:
        directory = self._workspace.backups_dir
        directory.mkdir(parents=True, exist_ok=True)
        if name is not None:
            target = directory / with_extension(name, "theme")
            if target.exists():
                raise PackageExistsError(f"Backup already exists: {target.name}")
            return target

        if self._settings.naming == "sequential":
            highest = 0
            for entry in directory.iterdir():
                match = _SEQUENTIAL_PATTERN.match(entry.name)
                if match:
                    highest = max(highest, int(match.group(1)))
            return directory / f"{BACKUP_PREFIX}{highest + 1}.theme"

        stamp = datetime.now().strftime(self._settings.timestamp_format)
        return directory / unique_name(directory, f"{BACKUP_PREFIX}_{stamp}", ".theme")

    def _copy_menu_assets(self, target: Path) -> int:
        copied = 0
        tool_media = self._device.tool_media_dir
        if tool_media.is_dir():
            try:
                copied += copy_directory(tool_media, target / TOOLS / self._device.platform / ".media")
            except TransferError as exc:
                LOGGER.warning("Unable to back up tool icons: %s", exc)

        icons = {
            self._device.collections_icon(): target / COLLECTIONS / SPECIAL_ICON_FILENAME,
            self._device.recently_played_icon(): target / RECENTLY_PLAYED / SPECIAL_ICON_FILENAME,
        }
        for source, destination in icons.items():
            if not source.is_file():
                continue
            try:
                copy_file(source, destination)
                copied += 1
            except TransferError as exc:
                LOGGER.warning("Unable to back up %s: %s", source, exc)
        return copied

    def _backup_manifest(self, name: str, live_dir: Path) -> ThemeManifest:
        manifest = create_default(name, BACKUP_AUTHOR)
        manifest.theme_info.device = self._device.device
        manifest.theme_info.systems = detect_systems(live_dir) or ["all"]
        return manifest


def detect_systems(live_dir: Path) -> list[str]:
    """Return the sorted names of the live theme's top-level directories."""
    if not live_dir.is_dir():
        return []
    return sorted(
        entry.name for entry in live_dir.iterdir() if entry.is_dir() and not entry.name.startswith(".")
    )


def _systems(backup_dir: Path) -> tuple[str, ...]:
    if not (backup_dir / MANIFEST_FILENAME).is_file():
        return ()
    try:
        manifest = load_theme_manifest(backup_dir)
    except ManifestError as exc:
        LOGGER.debug("Unable to read backup manifest %s: %s", backup_dir, exc)
        return ()
    return tuple(manifest.theme_info.systems)


__all__ = ["BackupManager", "BackupResult", "BackupInfo", "detect_systems"]
