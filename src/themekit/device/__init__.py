"""Device layout helpers and settings file codecs."""

from .paths import FONT_FILES, DevicePaths, SystemInfo, extract_system_tag, strip_system_tag
from .settings import (
    read_accent_file,
    read_led_file,
    to_display_hex,
    to_storage_hex,
    write_accent_file,
    write_led_file,
)

__all__ = [
    "DevicePaths",
    "SystemInfo",
    "FONT_FILES",
    "extract_system_tag",
    "strip_system_tag",
    "read_accent_file",
    "write_accent_file",
    "read_led_file",
    "write_led_file",
    "to_storage_hex",
    "to_display_hex",
]
