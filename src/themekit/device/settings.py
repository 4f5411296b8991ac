"""Readers and writers for the device accent and LED settings files."""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

from themekit.manifest.models import LED_ZONE_SECTIONS, AccentColors, LEDSettings, LEDZone

LOGGER = logging.getLogger(__name__)

ACCENT_KEYS = ("color1", "color2", "color3", "color4", "color5", "color6")
LED_KEYS = ("effect", "color1", "color2", "speed", "brightness", "trigger", "filename", "inbrightness")
_LED_FIELDS = {section: field for field, section in LED_ZONE_SECTIONS.items()}


def to_storage_hex(color: str) -> str:
    """Convert `#RRGGBB` to the `0xRRGGBB` form stored on the device."""
    if color.startswith("#"):
        return "0x" + color[1:]
    return color


def to_display_hex(color: str) -> str:
    """Convert `0xRRGGBB` to the `#RRGGBB` form used in manifests."""
    if color.startswith("0x"):
        return "#" + color[2:]
    return color


def read_accent_file(path: Path) -> Optional[AccentColors]:
    """Read accent colors from a `key=value` settings file.

    Args:
        path: Settings file to read.

    Returns:
        AccentColors | None: Colors in display form, or None when the file
        is absent. Slots missing from the file keep their defaults.
    """
    if not path.is_file():
        return None

    values: dict[str, str] = {}
    for key, value in _parse_key_values(path.read_text(encoding="utf-8")):
        if key in ACCENT_KEYS:
            values[key] = to_display_hex(value)
    return AccentColors(**values)


def write_accent_file(path: Path, colors: AccentColors) -> None:
    """Write accent colors into a settings file, preserving other keys.

    Existing lines are kept in order; color keys are rewritten in storage
    form and any color key not yet present is appended.
    """
    existing = path.read_text(encoding="utf-8").splitlines() if path.is_file() else []
    pending = {key: to_storage_hex(getattr(colors, key)) for key in ACCENT_KEYS}

    lines: list[str] = []
    for line in existing:
        key = line.split("=", 1)[0].strip() if "=" in line else ""
        if key in pending:
            lines.append(f"{key}={pending.pop(key)}")
        else:
            lines.append(line)
    lines.extend(f"{key}={value}" for key, value in pending.items())

    _atomic_write(path, "\n".join(lines) + "\n")
    LOGGER.debug("Wrote accent colors to %s", path)


def read_led_file(path: Path) -> Optional[LEDSettings]:
    """Read LED zone profiles from an INI-style settings file.

    Returns:
        LEDSettings | None: Parsed zones, or None when the file is absent.
        Unknown sections are ignored and missing zones keep their defaults.
    """
    if not path.is_file():
        return None

    zones: dict[str, dict[str, object]] = {}
    current: Optional[dict[str, object]] = None
    for raw in path.read_text(encoding="utf-8").splitlines():
        line = raw.strip()
        if not line:
            continue
        if line.startswith("[") and line.endswith("]"):
            field = _LED_FIELDS.get(line[1:-1])
            current = zones.setdefault(field, {}) if field else None
            continue
        if current is None or "=" not in line:
            continue
        key, value = (part.strip() for part in line.split("=", 1))
        if key in ("color1", "color2"):
            current[key] = to_display_hex(value)
        elif key == "filename":
            current[key] = value
        elif key in LED_KEYS:
            try:
                current[key] = int(value)
            except ValueError:
                LOGGER.warning("Ignoring non-numeric %s=%r in %s", key, value, path)

    return LEDSettings(**{field: LEDZone(**values) for field, values in zones.items()})


def write_led_file(path: Path, settings: LEDSettings) -> None:
    """Write the four LED zones to `path` through a temporary file."""
    blocks: list[str] = []
    for section, zone in settings.zones():
        lines = [f"[{section}]"]
        for key in LED_KEYS:
            value = getattr(zone, key)
            if key in ("color1", "color2"):
                value = to_storage_hex(value)
            lines.append(f"{key}={value}")
        blocks.append("\n".join(lines))
    _atomic_write(path, "\n\n".join(blocks) + "\n")
    LOGGER.debug("Wrote LED settings to %s", path)


def _parse_key_values(text: str) -> list[tuple[str, str]]:
    pairs: list[tuple[str, str]] = []
    for line in text.splitlines():
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        pairs.append((key.strip(), value.strip()))
    return pairs


def _atomic_write(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(text)
        os.replace(tmp_name, path)
    except OSError:
        Path(tmp_name).unlink(missing_ok=True)
        raise


__all__ = [
    "to_storage_hex",
    "to_display_hex",
    "read_accent_file",
    "write_accent_file",
    "read_led_file",
    "write_led_file",
]
