"""Path arithmetic and discovery for the device SD card layout."""

from __future__ import annotations

import logging
import posixpath
import re
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Optional

from themekit.config.models import DeviceSettings

LOGGER = logging.getLogger(__name__)

DEFAULT_SDCARD_ROOT = PurePosixPath("/mnt/SDCARD")
SYSTEM_TAG_PATTERN = re.compile(r"\((.*?)\)")

MEDIA_DIRNAME = ".media"
BACKGROUND_FILENAME = "bg.png"
LIST_BACKGROUND_FILENAME = "bglist.png"
RECENTLY_PLAYED = "Recently Played"
COLLECTIONS = "Collections"
TOOLS = "Tools"
ROMS = "Roms"
OVERLAYS = "Overlays"

FONT_FILES = {
    "og_font": "font2.ttf",
    "og_backup": "font2.backup.ttf",
    "next_font": "font1.ttf",
    "next_backup": "font1.backup.ttf",
}
ACCENT_SETTINGS_FILENAME = "minuisettings.txt"
LED_SETTINGS_FILENAME = "ledsettings_brick.txt"


def extract_system_tag(name: str) -> Optional[str]:
    """Return the first parenthesised token of a system directory name.

    >>> extract_system_tag("Game Boy Advance (GBA)")
    'GBA'
    """
    match = SYSTEM_TAG_PATTERN.search(name)
    if match is None:
        return None
    return match.group(1)


def strip_system_tag(name: str) -> str:
    """Return `name` without its parenthesised tag and surrounding space."""
    return SYSTEM_TAG_PATTERN.sub("", name, count=1).strip()


@dataclass(frozen=True)
class SystemInfo:
    """A ROM system directory discovered on the device.

    Attributes:
        name: Directory name, e.g. `Game Boy (GB)`.
        tag: Parenthesised tag, e.g. `GB`.
        display_name: Name without the tag, e.g. `Game Boy`.
    """

    name: str
    tag: str
    display_name: str


@dataclass(frozen=True)
class DevicePaths:
    """Every device location a theme package can read from or write to."""

    root: Path
    platform: str = "tg5040"
    device: str = "brick"
    live_theme_override: Optional[Path] = None

    @classmethod
    def from_settings(cls, settings: DeviceSettings) -> "DevicePaths":
        """Build device paths from configuration."""
        live = Path(settings.live_theme_dir).expanduser() if settings.live_theme_dir else None
        return cls(
            root=Path(settings.sdcard_root).expanduser(),
            platform=settings.platform,
            device=settings.device,
            live_theme_override=live,
        )

    def resolve(self, device_path: str) -> Path:
        """Map a recorded device path onto this SD card.

        Manifests record absolute paths; paths under the stock mount point
        are rebased onto `root` so packages work against any card location.
        `..` segments are collapsed first, so a path that climbs out of the
        mount point is not rebased. Use `contains` before writing.
        """
        recorded = PurePosixPath(posixpath.normpath(device_path))
        try:
            relative = recorded.relative_to(DEFAULT_SDCARD_ROOT)
        except ValueError:
            return Path(recorded)
        return self.root.joinpath(*relative.parts)

    def contains(self, path: Path) -> bool:
        """Return whether `path` lies on this SD card once links and `..` are resolved."""
        return path.resolve().is_relative_to(self.root.resolve())

    # Live theme and fixed menu locations ------------------------------------

    @property
    def live_theme_dir(self) -> Path:
        if self.live_theme_override is not None:
            return self.live_theme_override
        return self.root / ".system" / "theme"

    @property
    def root_media_dir(self) -> Path:
        return self.root / MEDIA_DIRNAME

    @property
    def roms_dir(self) -> Path:
        return self.root / ROMS

    @property
    def tools_dir(self) -> Path:
        return self.root / TOOLS / self.platform

    @property
    def tool_media_dir(self) -> Path:
        return self.tools_dir / MEDIA_DIRNAME

    @property
    def collections_dir(self) -> Path:
        return self.root / COLLECTIONS

    @property
    def recently_played_dir(self) -> Path:
        return self.root / RECENTLY_PLAYED

    @property
    def overlays_dir(self) -> Path:
        return self.root / OVERLAYS

    @property
    def fonts_dir(self) -> Path:
        return self.root / ".system" / "res"

    @property
    def settings_dir(self) -> Path:
        return self.root / ".userdata" / "shared"

    @property
    def accent_settings_file(self) -> Path:
        return self.settings_dir / ACCENT_SETTINGS_FILENAME

    @property
    def led_settings_file(self) -> Path:
        return self.settings_dir / LED_SETTINGS_FILENAME

    # Wallpapers ---------------------------------------------------------------

    def root_wallpaper(self) -> Path:
        return self.root / BACKGROUND_FILENAME

    def root_media_wallpaper(self) -> Path:
        return self.root_media_dir / BACKGROUND_FILENAME

    def recently_played_wallpaper(self) -> Path:
        return self.recently_played_dir / MEDIA_DIRNAME / BACKGROUND_FILENAME

    def tools_wallpaper(self) -> Path:
        return self.tool_media_dir / BACKGROUND_FILENAME

    def collections_wallpaper(self) -> Path:
        return self.collections_dir / MEDIA_DIRNAME / BACKGROUND_FILENAME

    def system_wallpaper(self, system: str) -> Path:
        return self.roms_dir / system / MEDIA_DIRNAME / BACKGROUND_FILENAME

    def system_list_wallpaper(self, system: str) -> Path:
        return self.roms_dir / system / MEDIA_DIRNAME / LIST_BACKGROUND_FILENAME

    def collection_wallpaper(self, collection: str) -> Path:
        return self.collections_dir / collection / MEDIA_DIRNAME / BACKGROUND_FILENAME

    # Icons --------------------------------------------------------------------

    def system_icon(self, system: str) -> Path:
        return self.roms_dir / MEDIA_DIRNAME / f"{system}.png"

    def collections_icon(self) -> Path:
        return self.root_media_dir / f"{COLLECTIONS}.png"

    def recently_played_icon(self) -> Path:
        return self.root_media_dir / f"{RECENTLY_PLAYED}.png"

    def tools_icon(self) -> Path:
        return self.root / TOOLS / MEDIA_DIRNAME / f"{self.platform}.png"

    def tool_icon(self, tool: str) -> Path:
        return self.tool_media_dir / f"{tool}.png"

    def collection_icon(self, collection: str) -> Path:
        return self.collections_dir / MEDIA_DIRNAME / f"{collection}.png"

    # Overlays and fonts -------------------------------------------------------

    def overlay_dir(self, tag: str) -> Path:
        return self.overlays_dir / tag

    def font_file(self, slot: str) -> Path:
        """Return the device font file for a slot key such as `og_font`.

        Raises:
            KeyError: If `slot` is not a known font slot.
        """
        return self.fonts_dir / FONT_FILES[slot]

    # Discovery ----------------------------------------------------------------

    def discover_systems(self) -> list[SystemInfo]:
        """List ROM system directories carrying a `(TAG)` suffix.

        Hidden directories and directories without a tag are skipped.
        """
        systems: list[SystemInfo] = []
        for entry in _visible_dirs(self.roms_dir):
            tag = extract_system_tag(entry.name)
            if not tag:
                LOGGER.debug("Skipping untagged system directory %s", entry)
                continue
            systems.append(
                SystemInfo(name=entry.name, tag=tag, display_name=strip_system_tag(entry.name))
            )
        return systems

    def list_tools(self) -> list[str]:
        return [entry.name for entry in _visible_dirs(self.tools_dir)]

    def list_collections(self) -> list[str]:
        return [entry.name for entry in _visible_dirs(self.collections_dir)]


def _visible_dirs(directory: Path) -> list[Path]:
    if not directory.is_dir():
        return []
    return sorted(
        (entry for entry in directory.iterdir() if entry.is_dir() and not entry.name.startswith(".")),
        key=lambda entry: entry.name.lower(),
    )


__all__ = [
    "DevicePaths",
    "SystemInfo",
    "FONT_FILES",
    "extract_system_tag",
    "strip_system_tag",
]
