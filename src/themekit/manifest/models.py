"""Manifest data models for full themes and component packages."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import PurePosixPath
from typing import Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

MANIFEST_FILENAME = "manifest.json"
PREVIEW_FILENAME = "preview.png"
DEFAULT_VERSION = "1.0.0"

ComponentType = Literal["wallpaper", "icon", "accent", "led", "font", "overlay"]

COMPONENT_TYPES: tuple[str, ...] = ("wallpaper", "icon", "accent", "led", "font", "overlay")
THEME_EXTENSION = ".theme"
COMPONENT_EXTENSIONS: Dict[str, str] = {
    "wallpaper": ".bg",
    "icon": ".icon",
    "accent": ".acc",
    "led": ".led",
    "font": ".font",
    "overlay": ".over",
}

FONT_SLOTS: tuple[str, ...] = ("og_font", "og_backup", "next_font", "next_backup")
SETTINGS_SLOTS: tuple[str, ...] = ("accents", "leds")

LED_ZONE_SECTIONS: Dict[str, str] = {
    "f1_key": "F1 key",
    "f2_key": "F2 key",
    "top_bar": "Top bar",
    "lr_triggers": "L&R triggers",
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ManifestModel(BaseModel):
    """Shared configuration for manifest models.

    Unknown keys are ignored so packages written by newer tools still load.
    """

    model_config = ConfigDict(extra="ignore")


class PathMapping(ManifestModel):
    """Binding between a package file and its destination on the device.

    Attributes:
        package_path: POSIX path relative to the package root.
        device_path: Absolute destination on the device.
        metadata: Classification used to re-derive either path later
            (`WallpaperType`, `IconType`, `SystemTag`, ...).
    """

    package_path: str
    device_path: str
    metadata: Dict[str, str] = Field(default_factory=dict)

    @property
    def kind(self) -> str:
        """Return the wallpaper or icon type recorded in the metadata."""
        return self.metadata.get("WallpaperType") or self.metadata.get("IconType", "")


class AccentColors(ManifestModel):
    """Six accent color slots in `#RRGGBB` display form."""

    color1: str = "#FFFFFF"
    color2: str = "#9B2257"
    color3: str = "#1E2329"
    color4: str = "#FFFFFF"
    color5: str = "#000000"
    color6: str = "#FFFFFF"


class LEDZone(ManifestModel):
    """Lighting profile for a single LED zone."""

    effect: int = 1
    color1: str = "#FFFFFF"
    color2: str = "#000000"
    speed: int = 1000
    brightness: int = 100
    trigger: int = 1
    filename: str = ""
    inbrightness: int = 100


class LEDSettings(ManifestModel):
    """Lighting profiles for the four LED zones."""

    f1_key: LEDZone = Field(default_factory=LEDZone)
    f2_key: LEDZone = Field(default_factory=LEDZone)
    top_bar: LEDZone = Field(default_factory=LEDZone)
    lr_triggers: LEDZone = Field(default_factory=LEDZone)

    def zones(self) -> list[tuple[str, LEDZone]]:
        """Return `(section name, zone)` pairs in file order."""
        return [(section, getattr(self, field)) for field, section in LED_ZONE_SECTIONS.items()]


# Full theme manifest ---------------------------------------------------------


class ThemeInfo(ManifestModel):
    """Identifying and provenance metadata for a full theme."""

    name: str = ""
    author: str = ""
    description: str = ""
    repository_url: str = ""
    commit: str = ""
    branch: str = ""
    device: str = ""
    systems: List[str] = Field(default_factory=list)
    version: str = DEFAULT_VERSION
    creation_date: datetime = Field(default_factory=_utcnow)
    updated_date: datetime = Field(default_factory=_utcnow)
    exported_by: str = ""
    tags: List[str] = Field(default_factory=list)


class WallpaperContent(ManifestModel):
    present: bool = False
    count: int = 0


class IconContent(ManifestModel):
    present: bool = False
    count: int = 0
    system_count: int = 0
    tool_count: int = 0
    collection_count: int = 0


class OverlayContent(ManifestModel):
    present: bool = False
    count: int = 0
    systems: List[str] = Field(default_factory=list)


class FontContent(ManifestModel):
    present: bool = False
    count: int = 0
    og_replaced: bool = False
    next_replaced: bool = False


class SettingsContent(ManifestModel):
    present: bool = False
    count: int = 0
    accents_included: bool = False
    leds_included: bool = False


class ThemeContent(ManifestModel):
    """Per-category presence flags and counts derived from the mappings."""

    wallpapers: WallpaperContent = Field(default_factory=WallpaperContent)
    icons: IconContent = Field(default_factory=IconContent)
    overlays: OverlayContent = Field(default_factory=OverlayContent)
    fonts: FontContent = Field(default_factory=FontContent)
    settings: SettingsContent = Field(default_factory=SettingsContent)


class ThemePathMappings(ManifestModel):
    wallpapers: List[PathMapping] = Field(default_factory=list)
    icons: List[PathMapping] = Field(default_factory=list)
    overlays: List[PathMapping] = Field(default_factory=list)
    fonts: Dict[str, PathMapping] = Field(default_factory=dict)
    settings: Dict[str, PathMapping] = Field(default_factory=dict)

    def all(self) -> list[PathMapping]:
        """Return every mapping across all categories."""
        return [
            *self.wallpapers,
            *self.icons,
            *self.overlays,
            *self.fonts.values(),
            *self.settings.values(),
        ]


class ThemeManifest(ManifestModel):
    """Manifest of a full theme package."""

    theme_info: ThemeInfo = Field(default_factory=ThemeInfo)
    component_type: Literal["Theme"] = "Theme"
    content: ThemeContent = Field(default_factory=ThemeContent)
    path_mappings: ThemePathMappings = Field(default_factory=ThemePathMappings)
    accent_colors: Optional[AccentColors] = None
    led_settings: Optional[LEDSettings] = None
    preview_image: str = PREVIEW_FILENAME

    @property
    def name(self) -> str:
        return self.theme_info.name

    @property
    def author(self) -> str:
        return self.theme_info.author

    def refresh_content(self) -> None:
        """Recompute every content field from the path mappings."""
        mappings = self.path_mappings
        self.content = ThemeContent(
            wallpapers=WallpaperContent(
                present=bool(mappings.wallpapers), count=len(mappings.wallpapers)
            ),
            icons=_icon_content(mappings.icons),
            overlays=OverlayContent(
                present=bool(mappings.overlays),
                count=len(mappings.overlays),
                systems=_overlay_systems(mappings.overlays),
            ),
            fonts=_font_content(mappings.fonts),
            settings=SettingsContent(
                present=bool(mappings.settings),
                count=len(mappings.settings),
                accents_included=self.accent_colors is not None or "accents" in mappings.settings,
                leds_included=self.led_settings is not None or "leds" in mappings.settings,
            ),
        )

    def touch(self) -> None:
        """Mark the manifest as updated now."""
        self.theme_info.updated_date = _utcnow()


# Component manifests ---------------------------------------------------------


class ComponentInfo(ManifestModel):
    """Header shared by every component manifest."""

    name: str = ""
    type: str = ""
    version: str = DEFAULT_VERSION
    author: str = ""
    creation_date: datetime = Field(default_factory=_utcnow)
    updated_date: datetime = Field(default_factory=_utcnow)
    exported_by: str = ""
    tags: List[str] = Field(default_factory=list)


class ComponentHeader(ManifestModel):
    """Minimal view of a component manifest used to pick its schema."""

    component_info: ComponentInfo


class _ComponentManifest(ManifestModel):
    component_info: ComponentInfo = Field(default_factory=ComponentInfo)

    @property
    def name(self) -> str:
        return self.component_info.name

    @property
    def author(self) -> str:
        return self.component_info.author

    @property
    def component_type(self) -> str:
        return self.component_info.type

    def mappings(self) -> list[PathMapping]:
        """Return the file mappings carried by this component."""
        return []

    def refresh_content(self) -> None:
        """Recompute content fields from the mappings."""

    def touch(self) -> None:
        self.component_info.updated_date = _utcnow()


class WallpaperComponentContent(ManifestModel):
    present: bool = False
    count: int = 0
    system_wallpapers: List[str] = Field(default_factory=list)
    list_wallpapers: List[str] = Field(default_factory=list)
    collection_wallpapers: List[str] = Field(default_factory=list)


class WallpaperManifest(_ComponentManifest):
    content: WallpaperComponentContent = Field(default_factory=WallpaperComponentContent)
    path_mappings: List[PathMapping] = Field(default_factory=list)
    preview_image: str = PREVIEW_FILENAME

    def mappings(self) -> list[PathMapping]:
        return list(self.path_mappings)

    def refresh_content(self) -> None:
        content = WallpaperComponentContent(
            present=bool(self.path_mappings), count=len(self.path_mappings)
        )
        for mapping in self.path_mappings:
            stem = PurePosixPath(mapping.package_path).stem
            kind = mapping.metadata.get("WallpaperType", "")
            if kind == "List":
                content.list_wallpapers.append(stem)
            elif kind == "Collection":
                content.collection_wallpapers.append(stem)
            else:
                content.system_wallpapers.append(stem)
        self.content = content


class IconComponentContent(IconContent):
    system_icons: List[str] = Field(default_factory=list)
    tool_icons: List[str] = Field(default_factory=list)
    collection_icons: List[str] = Field(default_factory=list)


class IconManifest(_ComponentManifest):
    content: IconComponentContent = Field(default_factory=IconComponentContent)
    path_mappings: List[PathMapping] = Field(default_factory=list)
    preview_image: str = PREVIEW_FILENAME

    def mappings(self) -> list[PathMapping]:
        return list(self.path_mappings)

    def refresh_content(self) -> None:
        summary = _icon_content(self.path_mappings)
        content = IconComponentContent(**summary.model_dump())
        for mapping in self.path_mappings:
            stem = PurePosixPath(mapping.package_path).stem
            kind = mapping.metadata.get("IconType", "")
            if kind == "Tool":
                content.tool_icons.append(stem)
            elif kind == "Collection":
                content.collection_icons.append(stem)
            else:
                content.system_icons.append(stem)
        self.content = content


class AccentManifest(_ComponentManifest):
    accent_colors: AccentColors = Field(default_factory=AccentColors)
    preview_image: str = PREVIEW_FILENAME


class LEDManifest(_ComponentManifest):
    led_settings: LEDSettings = Field(default_factory=LEDSettings)


class FontManifest(_ComponentManifest):
    content: FontContent = Field(default_factory=FontContent)
    path_mappings: Dict[str, PathMapping] = Field(default_factory=dict)
    preview_image: str = PREVIEW_FILENAME

    def mappings(self) -> list[PathMapping]:
        return list(self.path_mappings.values())

    def refresh_content(self) -> None:
        self.content = _font_content(self.path_mappings)


class OverlayManifest(_ComponentManifest):
    content: OverlayContent = Field(default_factory=OverlayContent)
    path_mappings: List[PathMapping] = Field(default_factory=list)
    preview_image: str = PREVIEW_FILENAME

    def mappings(self) -> list[PathMapping]:
        return list(self.path_mappings)

    def refresh_content(self) -> None:
        self.content = OverlayContent(
            present=bool(self.path_mappings),
            count=len(self.path_mappings),
            systems=_overlay_systems(self.path_mappings),
        )


ComponentManifest = Union[
    WallpaperManifest,
    IconManifest,
    AccentManifest,
    LEDManifest,
    FontManifest,
    OverlayManifest,
]
AnyManifest = Union[ThemeManifest, ComponentManifest]

COMPONENT_MODELS: Dict[str, type[_ComponentManifest]] = {
    "wallpaper": WallpaperManifest,
    "icon": IconManifest,
    "accent": AccentManifest,
    "led": LEDManifest,
    "font": FontManifest,
    "overlay": OverlayManifest,
}


def _icon_content(mappings: List[PathMapping]) -> IconContent:
    kinds = [mapping.metadata.get("IconType", "System") for mapping in mappings]
    return IconContent(
        present=bool(mappings),
        count=len(mappings),
        system_count=sum(1 for kind in kinds if kind in {"System", "Special"}),
        tool_count=kinds.count("Tool"),
        collection_count=kinds.count("Collection"),
    )


def _font_content(mappings: Dict[str, PathMapping]) -> FontContent:
    return FontContent(
        present=bool(mappings),
        count=len(mappings),
        og_replaced="og_font" in mappings,
        next_replaced="next_font" in mappings,
    )


def _overlay_systems(mappings: List[PathMapping]) -> List[str]:
    tags = {mapping.metadata.get("SystemTag", "") for mapping in mappings}
    return sorted(tag for tag in tags if tag)


__all__ = [
    "MANIFEST_FILENAME",
    "PREVIEW_FILENAME",
    "DEFAULT_VERSION",
    "ComponentType",
    "COMPONENT_TYPES",
    "THEME_EXTENSION",
    "COMPONENT_EXTENSIONS",
    "FONT_SLOTS",
    "SETTINGS_SLOTS",
    "LED_ZONE_SECTIONS",
    "PathMapping",
    "AccentColors",
    "LEDZone",
    "LEDSettings",
    "ThemeInfo",
    "ThemeContent",
    "ThemePathMappings",
    "ThemeManifest",
    "ComponentInfo",
    "ComponentHeader",
    "WallpaperManifest",
    "IconManifest",
    "AccentManifest",
    "LEDManifest",
    "FontManifest",
    "OverlayManifest",
    "ComponentManifest",
    "AnyManifest",
    "COMPONENT_MODELS",
]
