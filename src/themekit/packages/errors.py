"""Exceptions raised by package operations."""

from __future__ import annotations


class PackageError(Exception):
    """Base class for package operation failures."""


class PackageNotFoundError(PackageError):
    """Raised when a named package cannot be located in the workspace."""


class PackageExistsError(PackageError):
    """Raised when a user-specified package or backup name is already taken."""


class TransferError(PackageError):
    """Raised when copying or removing files fails."""


class LiveThemeMissingError(PackageError):
    """Raised when the live theme directory does not exist on the device."""


class DeconstructionError(PackageError):
    """Raised when a theme yields no component packages."""


class ArchiveError(PackageError):
    """Raised when a package archive cannot be extracted."""


class UnsafeArchiveError(ArchiveError):
    """Raised when an archive entry would escape the extraction directory."""
