"""Theme and component package operations."""

from .archive import extract_archive
from .backup import BackupInfo, BackupManager, BackupResult
from .deconstruct import DeconstructionResult, Deconstructor
from .engine import ApplyResult, ExportResult, ResetResult, ThemeEngine
from .errors import (
    ArchiveError,
    DeconstructionError,
    LiveThemeMissingError,
    PackageError,
    PackageExistsError,
    PackageNotFoundError,
    TransferError,
    UnsafeArchiveError,
)
from .importer import ComponentImporter, ImportResult
from .layout import rebuild_component_manifest, rebuild_theme_manifest
from .resolver import PACKAGE_KINDS, PackageEntry, Workspace

__all__ = [
    "ThemeEngine",
    "ApplyResult",
    "ExportResult",
    "ResetResult",
    "Deconstructor",
    "DeconstructionResult",
    "BackupManager",
    "BackupResult",
    "BackupInfo",
    "ComponentImporter",
    "ImportResult",
    "extract_archive",
    "rebuild_theme_manifest",
    "rebuild_component_manifest",
    "Workspace",
    "PackageEntry",
    "PACKAGE_KINDS",
    "PackageError",
    "PackageNotFoundError",
    "PackageExistsError",
    "TransferError",
    "LiveThemeMissingError",
    "DeconstructionError",
    "ArchiveError",
    "UnsafeArchiveError",
]
