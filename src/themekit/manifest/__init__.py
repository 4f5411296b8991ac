"""Manifest schema, validation, and persistence for theme packages."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from .errors import (
    InvalidManifestError,
    ManifestError,
    MissingManifestError,
    UnknownComponentTypeError,
)
from .models import (
    COMPONENT_EXTENSIONS,
    COMPONENT_MODELS,
    COMPONENT_TYPES,
    MANIFEST_FILENAME,
    PREVIEW_FILENAME,
    THEME_EXTENSION,
    AccentColors,
    AccentManifest,
    AnyManifest,
    ComponentHeader,
    ComponentInfo,
    ComponentManifest,
    FontManifest,
    IconManifest,
    LEDManifest,
    LEDSettings,
    LEDZone,
    OverlayManifest,
    PathMapping,
    ThemeInfo,
    ThemeManifest,
    WallpaperManifest,
)
from .validation import check_manifest, create_default, create_minimal, validate_manifest

LOGGER = logging.getLogger(__name__)


def manifest_path(package_dir: Path) -> Path:
    """Return the manifest location for a package directory."""
    return package_dir / MANIFEST_FILENAME


def load_theme_manifest(package_dir: Path, *, strict: Optional[bool] = None) -> ThemeManifest:
    """Load a full theme manifest.

    Args:
        package_dir: Package root containing `manifest.json`.
        strict: `True` for strict validation, `False` for permissive, `None`
            to skip validation.

    Returns:
        ThemeManifest: Parsed manifest.

    Raises:
        MissingManifestError: If the manifest file does not exist.
        InvalidManifestError: If it cannot be parsed, is not a theme
            manifest, or fails validation.
    """
    data = _read_json(package_dir)
    if "component_info" in data:
        raise InvalidManifestError(
            f"{manifest_path(package_dir)} describes a component, not a full theme"
        )
    try:
        manifest = ThemeManifest.model_validate(data)
    except ValidationError as exc:
        raise InvalidManifestError(f"Invalid theme manifest {manifest_path(package_dir)}: {exc}") from exc

    if strict is not None:
        check_manifest(manifest, strict=strict)
    return manifest


def load_component_manifest(package_dir: Path) -> ComponentManifest:
    """Load a component manifest, choosing the schema from its header.

    Raises:
        MissingManifestError: If the manifest file does not exist.
        UnknownComponentTypeError: If `component_info.type` is not recognized.
        InvalidManifestError: If the document does not match its schema.
    """
    data = _read_json(package_dir)
    return parse_component_manifest(data, source=str(manifest_path(package_dir)))


def parse_component_manifest(data: dict[str, Any], *, source: str = "<memory>") -> ComponentManifest:
    """Decode a component manifest document.

    The common `component_info` header is read first; its `type` selects
    the typed schema used for the rest of the document.
    """
    try:
        header = ComponentHeader.model_validate(data)
    except ValidationError as exc:
        raise InvalidManifestError(f"Invalid component manifest header in {source}: {exc}") from exc

    component_type = header.component_info.type
    model = COMPONENT_MODELS.get(component_type)
    if model is None:
        raise UnknownComponentTypeError(
            f"unknown component type {component_type!r} in {source}", ["component_info.type"]
        )
    try:
        return model.model_validate(data)  # type: ignore[return-value]
    except ValidationError as exc:
        raise InvalidManifestError(f"Invalid {component_type} manifest {source}: {exc}") from exc


def load_manifest(package_dir: Path) -> AnyManifest:
    """Load whichever manifest kind the package carries."""
    data = _read_json(package_dir)
    if "component_info" in data:
        return parse_component_manifest(data, source=str(manifest_path(package_dir)))
    try:
        return ThemeManifest.model_validate(data)
    except ValidationError as exc:
        raise InvalidManifestError(f"Invalid theme manifest {manifest_path(package_dir)}: {exc}") from exc


def save_manifest(package_dir: Path, manifest: AnyManifest) -> Path:
    """Recompute content fields, stamp the update time, and write the manifest.

    Args:
        package_dir: Package root.
        manifest: Manifest to persist.

    Returns:
        Path: Location of the written file.
    """
    manifest.refresh_content()
    manifest.touch()
    path = manifest_path(package_dir)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(manifest.model_dump_json(indent=2) + "\n", encoding="utf-8")
    LOGGER.debug("Wrote manifest %s", path)
    return path


def _read_json(package_dir: Path) -> dict[str, Any]:
    path = manifest_path(package_dir)
    if not path.is_file():
        raise MissingManifestError(f"No manifest found at {path}")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise InvalidManifestError(f"Unable to read manifest {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise InvalidManifestError(f"Manifest {path} must contain a JSON object")
    return data


__all__ = [
    "MANIFEST_FILENAME",
    "PREVIEW_FILENAME",
    "THEME_EXTENSION",
    "COMPONENT_EXTENSIONS",
    "COMPONENT_TYPES",
    "ManifestError",
    "MissingManifestError",
    "InvalidManifestError",
    "UnknownComponentTypeError",
    "PathMapping",
    "AccentColors",
    "LEDZone",
    "LEDSettings",
    "ThemeInfo",
    "ThemeManifest",
    "ComponentInfo",
    "ComponentManifest",
    "WallpaperManifest",
    "IconManifest",
    "AccentManifest",
    "LEDManifest",
    "FontManifest",
    "OverlayManifest",
    "AnyManifest",
    "manifest_path",
    "load_theme_manifest",
    "load_component_manifest",
    "parse_component_manifest",
    "load_manifest",
    "save_manifest",
    "validate_manifest",
    "check_manifest",
    "create_default",
    "create_minimal",
]
