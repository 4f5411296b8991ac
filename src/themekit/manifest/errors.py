"""Manifest loading and validation errors."""

from __future__ import annotations

from typing import Sequence


class ManifestError(Exception):
    """Base exception for manifest operations."""


class MissingManifestError(ManifestError):
    """Raised when a package has no manifest file."""


class InvalidManifestError(ManifestError):
    """Raised when a manifest exists but cannot be parsed or fails validation.

    Attributes:
        problems: Names of the missing or invalid fields, when known.
    """

    def __init__(self, message: str, problems: Sequence[str] = ()) -> None:
        super().__init__(message)
        self.problems = list(problems)


class UnknownComponentTypeError(InvalidManifestError):
    """Raised when a component manifest declares an unrecognized type."""
