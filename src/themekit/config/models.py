"""Configuration models describing themekit settings."""

from __future__ import annotations

from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class ThemeKitBaseModel(BaseModel):
    """Shared configuration for themekit settings models."""

    model_config = ConfigDict(extra="forbid")


class DeviceSettings(ThemeKitBaseModel):
    """Location and identity of the handheld's SD card.

    Attributes:
        sdcard_root: Mount point of the SD card whose layout themes target.
        platform: Platform directory name used under `Tools/`.
        device: Device identifier written into exported manifests.
        live_theme_dir: Directory holding the live theme; defaults to
            `<sdcard_root>/.system/theme` when unset.
    """

    sdcard_root: str = "/mnt/SDCARD"
    platform: str = "tg5040"
    device: str = "brick"
    live_theme_dir: Optional[str] = None


class WorkspaceSettings(ThemeKitBaseModel):
    """Location of the package workspace.

    Attributes:
        root: Directory holding `Themes/`, `Backups/`, and the other package
            areas; defaults to the current directory when unset.
    """

    root: Optional[str] = None

    def resolve_root(self) -> Path:
        """Return the workspace root as an absolute path."""

        if self.root:
            return Path(self.root).expanduser().resolve()
        return Path.cwd()


class BackupSettings(ThemeKitBaseModel):
    """Backup naming and retention policy.

    Attributes:
        max_backups: Number of backups kept after rotation.
        naming: Strategy for generated names (`backup_<timestamp>` or `backup<N>`).
        timestamp_format: `strftime` pattern used by the timestamp strategy.
        rotate_on_create: Whether creating a backup prunes old ones.
    """

    max_backups: int = Field(default=3, ge=1)
    naming: Literal["timestamp", "sequential"] = "timestamp"
    timestamp_format: str = "%Y%m%d_%H%M%S"
    rotate_on_create: bool = True


class ExportSettings(ThemeKitBaseModel):
    """Provenance defaults stamped into exported theme manifests.

    Attributes:
        author: Author recorded for exports.
        description: Description recorded for exports.
        repository_url: GitHub repository URL recorded for exports.
        commit: Commit reference recorded for exports.
        branch: Branch recorded for exports.
    """

    author: str = "AuthorName"
    description: str = "Exported system theme"
    repository_url: str = "https://github.com/[username]/[repo]"
    commit: str = "[commit-hash-will-go-here]"
    branch: str = "main"


class LoggingSettings(ThemeKitBaseModel):
    """Runtime logging configuration.

    Attributes:
        level: Logging verbosity level.
        max_size_mb: Maximum log size before rotation.
        backup_count: Number of historical log files to retain.
    """

    level: str = "WARNING"
    max_size_mb: int = 1
    backup_count: int = 3


class CLIOptions(ThemeKitBaseModel):
    """CLI presentation defaults.

    Attributes:
        quiet_default: Whether commands suppress non-error output by default.
        summary_default: Whether commands only print summary lines by default.
    """

    quiet_default: bool = False
    summary_default: bool = False


class ThemeKitConfig(ThemeKitBaseModel):
    """Top-level configuration for themekit.

    Attributes:
        device: SD card location and identity.
        workspace: Package workspace location.
        backups: Backup naming and retention.
        export: Provenance defaults for exports.
        logging: Logging configuration.
        cli: CLI presentation defaults.
    """

    device: DeviceSettings = Field(default_factory=DeviceSettings)
    workspace: WorkspaceSettings = Field(default_factory=WorkspaceSettings)
    backups: BackupSettings = Field(default_factory=BackupSettings)
    export: ExportSettings = Field(default_factory=ExportSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    cli: CLIOptions = Field(default_factory=CLIOptions)


__all__ = [
    "ThemeKitBaseModel",
    "DeviceSettings",
    "WorkspaceSettings",
    "BackupSettings",
    "ExportSettings",
    "LoggingSettings",
    "CLIOptions",
    "ThemeKitConfig",
]
