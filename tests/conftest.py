"""Shared fixtures that lay out a fake device SD card and workspace."""

from __future__ import annotations

from pathlib import Path
from typing import Iterator

import pytest

from themekit.device import DevicePaths
from themekit.logs import reset_logging
from themekit.packages import Workspace

ACCENT_TEXT = (
    "font=1\n"
    "color1=0xFF0000\n"
    "color2=0x00FF00\n"
    "color3=0x0000FF\n"
    "color4=0xFFFFFF\n"
    "color5=0x000000\n"
    "color6=0x123456\n"
    "haptics=0\n"
)

LED_TEXT = (
    "[F1 key]\n"
    "effect=2\n"
    "color1=0xFF0000\n"
    "color2=0x000000\n"
    "speed=500\n"
    "brightness=80\n"
    "trigger=1\n"
    "filename=\n"
    "inbrightness=100\n"
    "\n"
    "[Top bar]\n"
    "effect=4\n"
    "color1=0x00FF00\n"
    "color2=0x0000FF\n"
    "speed=1000\n"
    "brightness=50\n"
    "trigger=2\n"
    "filename=\n"
    "inbrightness=60\n"
)

# Relative path on the card -> contents. Two tagged systems, one tool, one
# collection, and every menu location are populated.
SDCARD_FILES: dict[str, bytes] = {
    "bg.png": b"root-wallpaper",
    ".media/bg.png": b"root-media-wallpaper",
    ".media/Recently Played.png": b"recent-icon",
    ".media/Collections.png": b"collections-icon",
    "Recently Played/.media/bg.png": b"recent-wallpaper",
    "Collections/.media/bg.png": b"collections-wallpaper",
    "Collections/.media/Favorites.png": b"favorites-icon",
    "Collections/Favorites/.media/bg.png": b"favorites-wallpaper",
    "Roms/Game Boy (GB)/.media/bg.png": b"gb-wallpaper",
    "Roms/Game Boy (GB)/.media/bglist.png": b"gb-list-wallpaper",
    "Roms/Game Boy Advance (GBA)/.media/bg.png": b"gba-wallpaper",
    "Roms/.media/Game Boy (GB).png": b"gb-icon",
    "Roms/.media/Game Boy Advance (GBA).png": b"gba-icon",
    "Tools/.media/tg5040.png": b"tools-icon",
    "Tools/tg5040/.media/bg.png": b"tools-wallpaper",
    "Tools/tg5040/.media/Clock.png": b"clock-icon",
    "Tools/tg5040/Clock/launch.sh": b"#!/bin/sh\n",
    "Overlays/GB/grid.png": b"gb-overlay",
    ".system/res/font1.ttf": b"next-font",
    ".system/res/font2.ttf": b"og-font",
    ".system/theme/skin.txt": b"live-theme",
    ".system/theme/assets/ui.png": b"live-ui",
    ".userdata/shared/minuisettings.txt": ACCENT_TEXT.encode("utf-8"),
    ".userdata/shared/ledsettings_brick.txt": LED_TEXT.encode("utf-8"),
}

# Files a full theme export picks up, per category.
EXPORT_COUNTS = {"wallpapers": 9, "icons": 7, "overlays": 1, "fonts": 2, "settings": 2}


def build_sdcard(root: Path) -> DevicePaths:
    """Write the fake card under `root` and return its device paths.

    Args:
        root: Directory standing in for `/mnt/SDCARD`.

    Returns:
        DevicePaths: Layout rooted at `root`.
    """
    for relative, payload in SDCARD_FILES.items():
        target = root / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(payload)
    return DevicePaths(root=root)


def snapshot(root: Path) -> dict[str, bytes]:
    """Return every file below `root` keyed by its POSIX relative path."""
    return {
        path.relative_to(root).as_posix(): path.read_bytes()
        for path in sorted(root.rglob("*"))
        if path.is_file()
    }


@pytest.fixture(autouse=True)
def _isolated_logging() -> Iterator[None]:
    yield
    reset_logging()


@pytest.fixture
def sdcard_root(tmp_path: Path) -> Path:
    return tmp_path / "SDCARD"


@pytest.fixture
def device(sdcard_root: Path) -> DevicePaths:
    return build_sdcard(sdcard_root)


@pytest.fixture
def workspace(tmp_path: Path) -> Workspace:
    workspace = Workspace(tmp_path / "workspace")
    workspace.ensure_structure()
    return workspace
