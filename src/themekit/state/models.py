"""Models for the applied-component state file."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field


class AppliedComponents(BaseModel):
    """Name of the package last applied for each component category."""

    wallpapers: Optional[str] = None
    icons: Optional[str] = None
    accents: Optional[str] = None
    leds: Optional[str] = None
    fonts: Optional[str] = None
    overlays: Optional[str] = None


class ApplicationInfo(BaseModel):
    """Version of the tool that last wrote the state file."""

    version: str = "0.0.0"
    build_date: str = Field(default_factory=lambda: date.today().isoformat())


class AppliedState(BaseModel):
    """Full document recording what is currently installed on the device.

    Attributes:
        last_updated: Time of the last save.
        current_theme: Name of the full theme last applied, if any.
        applied_components: Per-category component names.
        application_info: Version of the writer.
    """

    last_updated: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    current_theme: Optional[str] = None
    applied_components: AppliedComponents = Field(default_factory=AppliedComponents)
    application_info: ApplicationInfo = Field(default_factory=ApplicationInfo)


__all__ = ["AppliedComponents", "ApplicationInfo", "AppliedState"]
