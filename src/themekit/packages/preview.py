"""Preview image selection and generated placeholders."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Optional, Sequence

from PIL import Image, ImageDraw

from themekit.manifest import PREVIEW_FILENAME, PathMapping

from .errors import TransferError
from .fileops import copy_file

LOGGER = logging.getLogger(__name__)

PLACEHOLDER_SIZE = (640, 480)
PLACEHOLDER_BACKGROUND = "#1E2329"
PLACEHOLDER_FOREGROUND = "#FFFFFF"
DEFAULT_BACKGROUND_SIZE = (1024, 768)
DEFAULT_BACKGROUND_COLOR = "#000000"


def write_placeholder(path: Path, title: str) -> Path:
    """Render a flat placeholder preview captioned with `title`.

    Args:
        path: Output PNG location.
        title: Caption drawn in the image center.

    Returns:
        Path: The written image.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    image = Image.new("RGB", PLACEHOLDER_SIZE, color=PLACEHOLDER_BACKGROUND)
    draw = ImageDraw.Draw(image)
    left, top, right, bottom = draw.textbbox((0, 0), title)
    position = (
        (PLACEHOLDER_SIZE[0] - (right - left)) / 2,
        (PLACEHOLDER_SIZE[1] - (bottom - top)) / 2,
    )
    draw.text(position, title, fill=PLACEHOLDER_FOREGROUND)
    image.save(path, format="PNG")
    return path


def write_solid_image(
    path: Path,
    color: str = DEFAULT_BACKGROUND_COLOR,
    size: tuple[int, int] = DEFAULT_BACKGROUND_SIZE,
) -> Path:
    """Render a single-color PNG, used as the default wallpaper.

    Raises:
        TransferError: If the image cannot be written.
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        Image.new("RGB", size, color=color).save(path, format="PNG")
    except OSError as exc:
        raise TransferError(f"Failed to write {path}: {exc}") from exc
    return path


def install_preview(
    package_dir: Path,
    candidates: Iterable[Optional[Path]],
    *,
    title: str,
    placeholder: bool = True,
) -> Optional[str]:
    """Write `preview.png` from the first existing candidate.

    Falls back to a placeholder when no candidate exists. Failures are
    logged and never raised.

    Args:
        package_dir: Package receiving the preview.
        candidates: Images in order of preference; None entries are skipped.
        title: Caption used for the placeholder.
        placeholder: Whether to render a placeholder when nothing matches.

    Returns:
        str | None: Preview file name relative to the package, or None when
        no preview was written.
    """
    target = package_dir / PREVIEW_FILENAME
    for candidate in candidates:
        if candidate is None or not candidate.is_file():
            continue
        try:
            copy_file(candidate, target)
        except TransferError as exc:
            LOGGER.warning("Unable to use %s as preview: %s", candidate, exc)
            continue
        LOGGER.debug("Preview for %s taken from %s", package_dir.name, candidate)
        return PREVIEW_FILENAME

    if not placeholder:
        return None
    try:
        write_placeholder(target, title)
    except OSError as exc:
        LOGGER.warning("Unable to write placeholder preview for %s: %s", package_dir, exc)
        return None
    return PREVIEW_FILENAME


def theme_preview_candidates(package_dir: Path, mappings: Sequence[PathMapping]) -> list[Path]:
    """Return a full theme's preview candidates in order of preference.

    Root wallpaper, root media wallpaper, Recently Played wallpaper, then the
    first system wallpaper.
    """
    by_name = {mapping.metadata.get("SystemName"): mapping for mapping in mappings}
    candidates = [
        package_dir / by_name[name].package_path
        for name in ("Root", "Root-Media", "Recently Played")
        if name in by_name
    ]
    candidates.extend(_first_of_kind(package_dir, mappings, "WallpaperType", "System"))
    return candidates


def component_preview_candidates(
    component_type: str, package_dir: Path, mappings: Sequence[PathMapping]
) -> list[Path]:
    """Return a component package's preview candidates in order of preference.

    Wallpapers prefer the Recently Played wallpaper then the first system
    wallpaper; icons the Collections icon then the first system icon;
    overlays their first image. Other types only get a placeholder.
    """
    if component_type == "wallpaper":
        recent = [
            package_dir / mapping.package_path
            for mapping in mappings
            if mapping.metadata.get("SystemName") == "Recently Played"
        ]
        return recent[:1] + _first_of_kind(package_dir, mappings, "WallpaperType", "System")
    if component_type == "icon":
        collections = [
            package_dir / mapping.package_path
            for mapping in mappings
            if mapping.metadata.get("SystemTag") == "COLLECTIONS"
        ]
        return collections[:1] + _first_of_kind(package_dir, mappings, "IconType", "System")
    if component_type == "overlay":
        return [package_dir / mapping.package_path for mapping in mappings[:1]]
    return []


def _first_of_kind(
    package_dir: Path, mappings: Sequence[PathMapping], key: str, value: str
) -> list[Path]:
    for mapping in mappings:
        if mapping.metadata.get(key) == value:
            return [package_dir / mapping.package_path]
    return []


__all__ = [
    "install_preview",
    "write_placeholder",
    "write_solid_image",
    "theme_preview_candidates",
    "component_preview_candidates",
]
