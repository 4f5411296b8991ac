"""Command line interface for themekit."""

from __future__ import annotations

import difflib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, NoReturn, Optional

import click
import yaml
from click.core import ParameterSource
from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table

from themekit.config import ConfigError, ConfigManager, ThemeKitConfig, resolve_with_precedence
from themekit.device import DevicePaths
from themekit.logs import configure_logging
from themekit.manifest import (
    COMPONENT_TYPES,
    AnyManifest,
    InvalidManifestError,
    ManifestError,
    ThemeManifest,
    check_manifest,
    load_manifest,
    save_manifest,
)
from themekit.packages import (
    PACKAGE_KINDS,
    ArchiveError,
    BackupManager,
    ComponentImporter,
    Deconstructor,
    LiveThemeMissingError,
    PackageError,
    PackageExistsError,
    PackageNotFoundError,
    ThemeEngine,
    Workspace,
    extract_archive,
    rebuild_component_manifest,
    rebuild_theme_manifest,
)
from themekit.packages.resolver import extension_for, with_extension
from themekit.state import StateError, StateRepository, applied_name

console = Console()

_ERROR_CODES: tuple[tuple[type[Exception], str], ...] = (
    (ConfigError, "config_error"),
    (PackageNotFoundError, "not_found"),
    (LiveThemeMissingError, "not_found"),
    (PackageExistsError, "package_exists"),
    (ArchiveError, "archive_error"),
    (ManifestError, "invalid_manifest"),
    (PackageError, "package_error"),
    (StateError, "package_error"),
    (click.ClickException, "cli_error"),
)


@dataclass
class _Invocation:
    """Options given to the top-level group."""

    config_path: Optional[Path] = None
    workspace_root: Optional[str] = None
    sdcard_root: Optional[str] = None
    verbose: bool = False


@dataclass
class _Session:
    """Configuration and resolved locations shared by package commands."""

    config: ThemeKitConfig
    workspace: Workspace
    device: DevicePaths


def _handle_cli_error(
    message: str,
    *,
    code: str,
    json_output: bool,
    details: Any | None = None,
    original: Exception | None = None,
) -> NoReturn:
    """Emit a standardized error and terminate the command appropriately.

    Args:
        message: Human-readable error message.
        code: Machine-readable error identifier.
        json_output: Indicates whether JSON mode is active.
        details: Optional structured details to include in the payload.
        original: Original exception for chaining when not using JSON.

    Raises:
        SystemExit: When emitting JSON output to terminate the command.
        click.ClickException: For non-JSON flows to surface the error.
    """

    if json_output:
        payload: dict[str, Any] = {"error": {"code": code, "message": message}}
        if details is not None:
            payload["error"]["details"] = details
        console.print_json(data=payload)
        raise SystemExit(1)

    if isinstance(original, click.ClickException):
        raise original

    raise click.ClickException(message) from original


def _fail(exc: Exception, *, action: str, json_output: bool) -> NoReturn:
    """Map an exception raised by a command body to its error code.

    Args:
        exc: Exception raised while running the command.
        action: Short description used in the unexpected-error message.
        json_output: Indicates whether JSON mode is active.
    """

    for error_type, code in _ERROR_CODES:
        if isinstance(exc, error_type):
            details = None
            if isinstance(exc, InvalidManifestError) and exc.problems:
                details = {"problems": list(exc.problems)}
            _handle_cli_error(
                str(exc), code=code, json_output=json_output, details=details, original=exc
            )

    _handle_cli_error(
        f"Unexpected error while {action}: {exc}",
        code="internal_error",
        json_output=json_output,
        details={"exception": type(exc).__name__},
        original=exc,
    )


def _emit_message(message: Any, *, mode: str, quiet: bool, summary_only: bool) -> None:
    """Conditionally print CLI output according to quiet/summary settings.

    Args:
        message: Renderable or string to emit.
        mode: Output mode identifier (`detail`, `summary`, `warning`, or `error`).
        quiet: Whether quiet mode is active.
        summary_only: Whether only summary lines should be emitted.
    """

    if quiet and mode != "error":
        return

    important_modes = {"summary", "warning", "error"}
    if summary_only and mode not in important_modes:
        return

    console.print(message)


def _format_summary_line(command: str, target: Path | str, metrics: dict[str, Any]) -> str:
    """Return a consistent summary line for CLI commands.

    Args:
        command: Command name to include in the summary.
        target: Package or directory the command acted on.
        metrics: Ordered mapping of metric names to values.

    Returns:
        str: Rich-formatted summary string.
    """

    parts = ", ".join(f"{key}={value}" for key, value in metrics.items())
    return f"[green]{command} summary for {target}: {parts}.[/green]"


def _assign_nested(target: dict[str, Any], path: list[str], value: Any) -> None:
    """Assign a nested value within a dictionary for a dotted path.

    Args:
        target: Mapping to mutate in-place.
        path: Sequence of keys representing the nested location.
        value: Value to assign at the nested location.

    Raises:
        ConfigError: If a non-mapping value is encountered along the path.
    """

    node = target
    for segment in path[:-1]:
        existing = node.get(segment)
        if existing is None:
            existing = {}
            node[segment] = existing
        elif not isinstance(existing, dict):
            raise ConfigError(
                f"Cannot assign into '{segment}' because it is not a mapping in the config file."
            )
        node = existing
    node[path[-1]] = value


def _output_options(command: Callable[..., Any]) -> Callable[..., Any]:
    """Attach the shared `--json`, `--summary`, and `--quiet` flags."""

    command = click.option("--quiet", is_flag=True, help="Suppress non-error output.")(command)
    command = click.option(
        "--summary", "summary_mode", is_flag=True, help="Only emit summary lines."
    )(command)
    command = click.option(
        "--json", "json_output", is_flag=True, help="Emit machine-readable JSON output."
    )(command)
    return command


def _resolve_output_modes(
    ctx: click.Context,
    config: ThemeKitConfig,
    *,
    json_output: bool,
    quiet: bool,
    summary_mode: bool,
) -> tuple[bool, bool]:
    """Combine output flags with configured defaults.

    Returns:
        tuple[bool, bool]: Effective quiet and summary-only switches.

    Raises:
        click.ClickException: If the requested modes conflict.
    """

    explicit_quiet = ctx.get_parameter_source("quiet") == ParameterSource.COMMANDLINE
    explicit_summary = ctx.get_parameter_source("summary_mode") == ParameterSource.COMMANDLINE

    quiet_enabled = quiet if explicit_quiet else config.cli.quiet_default
    summary_only = summary_mode if explicit_summary else config.cli.summary_default

    if json_output:
        if explicit_quiet and quiet_enabled:
            raise click.ClickException("--json cannot be combined with --quiet.")
        if explicit_summary and summary_only:
            raise click.ClickException("--json cannot be combined with --summary.")
        return False, False

    if quiet_enabled and summary_only:
        raise click.ClickException(
            "Quiet and summary modes cannot both be enabled. Adjust CLI defaults or flags."
        )
    return quiet_enabled, summary_only


def _config_manager(ctx: click.Context) -> ConfigManager:
    invocation = ctx.find_object(_Invocation) or _Invocation()
    return ConfigManager(invocation.config_path)


def _open_session(ctx: click.Context) -> _Session:
    """Load configuration, resolve the workspace and device, and start logging.

    Raises:
        ConfigError: If the configuration cannot be loaded.
    """

    invocation = ctx.find_object(_Invocation) or _Invocation()
    manager = ConfigManager(invocation.config_path)
    manager.ensure_exists()

    overrides: dict[str, Any] = {}
    if invocation.workspace_root:
        overrides["workspace.root"] = invocation.workspace_root
    if invocation.sdcard_root:
        overrides["device.sdcard_root"] = invocation.sdcard_root
    config = manager.load(cli_overrides=overrides)

    workspace = Workspace(config.workspace.resolve_root())
    device = DevicePaths.from_settings(config.device)
    configure_logging(
        config.logging,
        workspace.logs_dir,
        level_override="DEBUG" if invocation.verbose else None,
    )
    return _Session(config=config, workspace=workspace, device=device)


def _kind_from_path(package_dir: Path) -> Optional[str]:
    for kind in PACKAGE_KINDS:
        if package_dir.name.endswith(extension_for(kind)):
            return kind
    return None


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="themekit")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    envvar="THEMEKIT_CONFIG",
    help="Configuration file to use instead of ~/.themekit/config.yaml.",
)
@click.option(
    "--workspace",
    "workspace_root",
    type=click.Path(file_okay=False, path_type=str),
    help="Workspace directory holding Themes, Backups, and component packages.",
)
@click.option(
    "--sdcard",
    "sdcard_root",
    type=click.Path(file_okay=False, path_type=str),
    help="Device SD card root (defaults to /mnt/SDCARD).",
)
@click.option("-v", "--verbose", is_flag=True, help="Write debug messages to the log file.")
@click.pass_context
def cli(
    ctx: click.Context,
    config_path: Optional[Path],
    workspace_root: Optional[str],
    sdcard_root: Optional[str],
    verbose: bool,
) -> None:
    """themekit installs, exports, and backs up themes for handheld devices."""

    if workspace_root:
        workspace_root = str(Path(workspace_root).expanduser().resolve())
    if sdcard_root:
        sdcard_root = str(Path(sdcard_root).expanduser().resolve())
    ctx.obj = _Invocation(
        config_path=config_path,
        workspace_root=workspace_root,
        sdcard_root=sdcard_root,
        verbose=verbose,
    )


@cli.command()
@_output_options
@click.pass_context
def init(ctx: click.Context, json_output: bool, summary_mode: bool, quiet: bool) -> None:
    """Create the workspace directory structure and a default config file."""
    try:
        session = _open_session(ctx)
        quiet_enabled, summary_only = _resolve_output_modes(
            ctx, session.config, json_output=json_output, quiet=quiet, summary_mode=summary_mode
        )
        created = session.workspace.ensure_structure()

        if json_output:
            console.print_json(
                data={
                    "workspace": str(session.workspace.root),
                    "created": [str(path) for path in created],
                }
            )
            return

        for path in created:
            _emit_message(
                f"  - {path}", mode="detail", quiet=quiet_enabled, summary_only=summary_only
            )
        _emit_message(
            _format_summary_line("Init", session.workspace.root, {"created": len(created)}),
            mode="summary",
            quiet=quiet_enabled,
            summary_only=summary_only,
        )
    except Exception as exc:
        _fail(exc, action="initializing the workspace", json_output=json_output)


@cli.command()
@click.argument("name")
@_output_options
@click.pass_context
def apply(
    ctx: click.Context, name: str, json_output: bool, summary_mode: bool, quiet: bool
) -> None:
    """Install the full theme package NAME onto the device."""
    try:
        session = _open_session(ctx)
        quiet_enabled, summary_only = _resolve_output_modes(
            ctx, session.config, json_output=json_output, quiet=quiet, summary_mode=summary_mode
        )
        engine = ThemeEngine(session.workspace, session.device, export_settings=session.config.export)
        result = engine.apply(name)

        if json_output:
            console.print_json(
                data={
                    "name": result.name,
                    "package_path": str(result.package_path),
                    "files_cleared": result.files_cleared,
                    "files_copied": result.files_copied,
                    "mappings_placed": result.mappings_placed,
                    "skipped": result.skipped,
                    "settings_written": result.settings_written,
                }
            )
            return

        for skipped in result.skipped:
            _emit_message(
                f"[yellow]Mapping skipped: {skipped}[/yellow]",
                mode="warning",
                quiet=quiet_enabled,
                summary_only=summary_only,
            )
        _emit_message(
            _format_summary_line(
                "Apply",
                result.name,
                {
                    "cleared": result.files_cleared,
                    "theme_files": result.files_copied,
                    "mapped": result.mappings_placed,
                    "skipped": len(result.skipped),
                },
            ),
            mode="summary",
            quiet=quiet_enabled,
            summary_only=summary_only,
        )
    except Exception as exc:
        _fail(exc, action="applying the theme", json_output=json_output)


@cli.command()
@click.argument("name", required=False)
@click.option(
    "--component",
    "component_type",
    type=click.Choice(COMPONENT_TYPES),
    help="Export a single component category instead of a full theme.",
)
@_output_options
@click.pass_context
def export(
    ctx: click.Context,
    name: Optional[str],
    component_type: Optional[str],
    json_output: bool,
    summary_mode: bool,
    quiet: bool,
) -> None:
    """Snapshot the live device into a new package named NAME."""
    try:
        session = _open_session(ctx)
        quiet_enabled, summary_only = _resolve_output_modes(
            ctx, session.config, json_output=json_output, quiet=quiet, summary_mode=summary_mode
        )
        engine = ThemeEngine(session.workspace, session.device, export_settings=session.config.export)
        if component_type:
            result = engine.export_component(component_type, name)
        else:
            result = engine.export(name)

        if json_output:
            console.print_json(
                data={
                    "name": result.name,
                    "package_path": str(result.package_path),
                    "counts": result.counts,
                    "failures": result.failures,
                    "preview": result.preview,
                    "total": result.total,
                }
            )
            return

        for category, count in result.counts.items():
            _emit_message(
                f"  - {category}: {count}",
                mode="detail",
                quiet=quiet_enabled,
                summary_only=summary_only,
            )
        for category, error in result.failures.items():
            _emit_message(
                f"[yellow]{category} export incomplete: {error}[/yellow]",
                mode="warning",
                quiet=quiet_enabled,
                summary_only=summary_only,
            )
        _emit_message(
            _format_summary_line(
                "Export",
                result.name,
                {"files": result.total, "failures": len(result.failures)},
            ),
            mode="summary",
            quiet=quiet_enabled,
            summary_only=summary_only,
        )
    except Exception as exc:
        _fail(exc, action="exporting", json_output=json_output)


@cli.command()
@click.argument("name")
@_output_options
@click.pass_context
def deconstruct(
    ctx: click.Context, name: str, json_output: bool, summary_mode: bool, quiet: bool
) -> None:
    """Split the theme package NAME into component packages."""
    try:
        session = _open_session(ctx)
        quiet_enabled, summary_only = _resolve_output_modes(
            ctx, session.config, json_output=json_output, quiet=quiet, summary_mode=summary_mode
        )
        result = Deconstructor(session.workspace).deconstruct(name)

        if json_output:
            console.print_json(
                data={
                    "theme": result.theme,
                    "components": {kind: str(path) for kind, path in result.components.items()},
                    "failures": result.failures,
                }
            )
            return

        for kind, path in result.components.items():
            _emit_message(
                f"  - {kind}: {path.name}",
                mode="detail",
                quiet=quiet_enabled,
                summary_only=summary_only,
            )
        for kind, error in result.failures.items():
            _emit_message(
                f"[yellow]{kind} package not created: {error}[/yellow]",
                mode="warning",
                quiet=quiet_enabled,
                summary_only=summary_only,
            )
        _emit_message(
            _format_summary_line(
                "Deconstruct",
                result.theme,
                {"components": len(result.components), "failures": len(result.failures)},
            ),
            mode="summary",
            quiet=quiet_enabled,
            summary_only=summary_only,
        )
    except Exception as exc:
        _fail(exc, action="deconstructing the theme", json_output=json_output)


@cli.command("import")
@click.argument("component_type", metavar="TYPE", type=click.Choice(COMPONENT_TYPES))
@click.argument("name")
@_output_options
@click.pass_context
def import_component(
    ctx: click.Context,
    component_type: str,
    name: str,
    json_output: bool,
    summary_mode: bool,
    quiet: bool,
) -> None:
    """Install the TYPE component package NAME onto the device."""
    try:
        session = _open_session(ctx)
        quiet_enabled, summary_only = _resolve_output_modes(
            ctx, session.config, json_output=json_output, quiet=quiet, summary_mode=summary_mode
        )
        result = ComponentImporter(session.workspace, session.device).import_component(
            component_type, name
        )

        if json_output:
            console.print_json(
                data={
                    "type": result.component_type,
                    "name": result.name,
                    "package_path": str(result.package_path),
                    "cleared": result.cleared,
                    "placed": result.placed,
                    "skipped": result.skipped,
                    "settings_written": result.settings_written,
                    "manifest_rebuilt": result.manifest_rebuilt,
                }
            )
            return

        if result.manifest_rebuilt:
            _emit_message(
                f"[yellow]{result.name} had no manifest; one was derived from its files.[/yellow]",
                mode="warning",
                quiet=quiet_enabled,
                summary_only=summary_only,
            )
        for skipped in result.skipped:
            _emit_message(
                f"[yellow]Mapping skipped: {skipped}[/yellow]",
                mode="warning",
                quiet=quiet_enabled,
                summary_only=summary_only,
            )
        _emit_message(
            _format_summary_line(
                "Import",
                result.name,
                {
                    "cleared": result.cleared,
                    "placed": result.placed,
                    "skipped": len(result.skipped),
                    "settings": len(result.settings_written),
                },
            ),
            mode="summary",
            quiet=quiet_enabled,
            summary_only=summary_only,
        )
    except Exception as exc:
        _fail(exc, action="importing the component", json_output=json_output)


@cli.command()
@click.option(
    "--background",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Image to install instead of the generated black background.",
)
@_output_options
@click.pass_context
def reset(
    ctx: click.Context,
    background: Optional[Path],
    json_output: bool,
    summary_mode: bool,
    quiet: bool,
) -> None:
    """Replace every wallpaper on the device with one default background."""
    try:
        session = _open_session(ctx)
        quiet_enabled, summary_only = _resolve_output_modes(
            ctx, session.config, json_output=json_output, quiet=quiet, summary_mode=summary_mode
        )
        engine = ThemeEngine(session.workspace, session.device, export_settings=session.config.export)
        result = engine.reset(background)

        if json_output:
            console.print_json(
                data={
                    "removed": result.removed,
                    "written": [str(path) for path in result.written],
                }
            )
            return

        for path in result.written:
            _emit_message(
                f"  - {path}", mode="detail", quiet=quiet_enabled, summary_only=summary_only
            )
        _emit_message(
            _format_summary_line(
                "Reset",
                session.device.root,
                {"removed": result.removed, "written": len(result.written)},
            ),
            mode="summary",
            quiet=quiet_enabled,
            summary_only=summary_only,
        )
    except Exception as exc:
        _fail(exc, action="resetting the wallpapers", json_output=json_output)


@cli.command()
@_output_options
@click.pass_context
def purge(ctx: click.Context, json_output: bool, summary_mode: bool, quiet: bool) -> None:
    """Delete every wallpaper from the device."""
    try:
        session = _open_session(ctx)
        quiet_enabled, summary_only = _resolve_output_modes(
            ctx, session.config, json_output=json_output, quiet=quiet, summary_mode=summary_mode
        )
        engine = ThemeEngine(session.workspace, session.device, export_settings=session.config.export)
        result = engine.purge_wallpapers()

        if json_output:
            console.print_json(data={"removed": result.removed})
            return

        _emit_message(
            _format_summary_line("Purge", session.device.root, {"removed": result.removed}),
            mode="summary",
            quiet=quiet_enabled,
            summary_only=summary_only,
        )
    except Exception as exc:
        _fail(exc, action="purging the wallpapers", json_output=json_output)


@cli.group()
def backup() -> None:
    """Create, restore, list, and rotate backups of the live theme."""


@backup.command("create")
@click.argument("name", required=False)
@_output_options
@click.pass_context
def backup_create(
    ctx: click.Context,
    name: Optional[str],
    json_output: bool,
    summary_mode: bool,
    quiet: bool,
) -> None:
    """Back up the live theme, optionally as NAME."""
    try:
        session = _open_session(ctx)
        quiet_enabled, summary_only = _resolve_output_modes(
            ctx, session.config, json_output=json_output, quiet=quiet, summary_mode=summary_mode
        )
        manager = BackupManager(session.workspace, session.device, session.config.backups)
        result = manager.create_backup(name)

        if json_output:
            console.print_json(
                data={
                    "name": result.name,
                    "path": str(result.path),
                    "files_copied": result.files_copied,
                    "rotated": result.rotated,
                }
            )
            return

        for removed in result.rotated:
            _emit_message(
                f"  - removed old backup {removed}",
                mode="detail",
                quiet=quiet_enabled,
                summary_only=summary_only,
            )
        _emit_message(
            _format_summary_line(
                "Backup",
                result.name,
                {"files": result.files_copied, "rotated": len(result.rotated)},
            ),
            mode="summary",
            quiet=quiet_enabled,
            summary_only=summary_only,
        )
    except Exception as exc:
        _fail(exc, action="creating the backup", json_output=json_output)


@backup.command("restore")
@click.argument("name")
@_output_options
@click.pass_context
def backup_restore(
    ctx: click.Context, name: str, json_output: bool, summary_mode: bool, quiet: bool
) -> None:
    """Replace the live theme with the backup NAME."""
    try:
        session = _open_session(ctx)
        quiet_enabled, summary_only = _resolve_output_modes(
            ctx, session.config, json_output=json_output, quiet=quiet, summary_mode=summary_mode
        )
        manager = BackupManager(session.workspace, session.device, session.config.backups)
        result = manager.restore_backup(name)

        if json_output:
            console.print_json(
                data={
                    "name": result.name,
                    "path": str(result.path),
                    "files_copied": result.files_copied,
                }
            )
            return

        _emit_message(
            _format_summary_line("Restore", result.name, {"files": result.files_copied}),
            mode="summary",
            quiet=quiet_enabled,
            summary_only=summary_only,
        )
    except Exception as exc:
        _fail(exc, action="restoring the backup", json_output=json_output)


@backup.command("list")
@_output_options
@click.pass_context
def backup_list(ctx: click.Context, json_output: bool, summary_mode: bool, quiet: bool) -> None:
    """Show backups from oldest to newest."""
    try:
        session = _open_session(ctx)
        quiet_enabled, summary_only = _resolve_output_modes(
            ctx, session.config, json_output=json_output, quiet=quiet, summary_mode=summary_mode
        )
        backups = BackupManager(
            session.workspace, session.device, session.config.backups
        ).list_backups()

        if json_output:
            console.print_json(
                data={
                    "backups": [
                        {
                            "name": info.name,
                            "path": str(info.path),
                            "modified": info.modified.isoformat(),
                            "systems": list(info.systems),
                        }
                        for info in backups
                    ]
                }
            )
            return

        if backups:
            table = Table(title="Backups")
            table.add_column("Name", style="cyan")
            table.add_column("Modified")
            table.add_column("Systems")
            for info in backups:
                table.add_row(
                    info.name,
                    info.modified.strftime("%Y-%m-%d %H:%M:%S"),
                    ", ".join(info.systems) or "-",
                )
            _emit_message(table, mode="detail", quiet=quiet_enabled, summary_only=summary_only)
        _emit_message(
            _format_summary_line(
                "Backups", session.workspace.backups_dir, {"count": len(backups)}
            ),
            mode="summary",
            quiet=quiet_enabled,
            summary_only=summary_only,
        )
    except Exception as exc:
        _fail(exc, action="listing backups", json_output=json_output)


@backup.command("rotate")
@click.option(
    "--keep",
    type=click.IntRange(min=1),
    default=None,
    help="Number of backups to keep (defaults to backups.max_backups).",
)
@_output_options
@click.pass_context
def backup_rotate(
    ctx: click.Context,
    keep: Optional[int],
    json_output: bool,
    summary_mode: bool,
    quiet: bool,
) -> None:
    """Delete the oldest backups beyond the retention limit."""
    try:
        session = _open_session(ctx)
        quiet_enabled, summary_only = _resolve_output_modes(
            ctx, session.config, json_output=json_output, quiet=quiet, summary_mode=summary_mode
        )
        removed = BackupManager(session.workspace, session.device, session.config.backups).rotate(
            keep
        )

        if json_output:
            console.print_json(data={"removed": removed})
            return

        for name in removed:
            _emit_message(
                f"  - removed {name}", mode="detail", quiet=quiet_enabled, summary_only=summary_only
            )
        _emit_message(
            _format_summary_line(
                "Rotate", session.workspace.backups_dir, {"removed": len(removed)}
            ),
            mode="summary",
            quiet=quiet_enabled,
            summary_only=summary_only,
        )
    except Exception as exc:
        _fail(exc, action="rotating backups", json_output=json_output)


@cli.command()
@click.argument("archive", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("name")
@click.option(
    "--kind",
    type=click.Choice(PACKAGE_KINDS),
    default="theme",
    show_default=True,
    help="Package kind the archive contains.",
)
@_output_options
@click.pass_context
def extract(
    ctx: click.Context,
    archive: Path,
    name: str,
    kind: str,
    json_output: bool,
    summary_mode: bool,
    quiet: bool,
) -> None:
    """Unpack the ZIP ARCHIVE into the Imports area as package NAME."""
    try:
        session = _open_session(ctx)
        quiet_enabled, summary_only = _resolve_output_modes(
            ctx, session.config, json_output=json_output, quiet=quiet, summary_mode=summary_mode
        )
        destination = session.workspace.area_dir(kind, "imports") / with_extension(name, kind)
        if destination.exists():
            raise PackageExistsError(f"Package already exists: {destination}")
        files = extract_archive(archive.expanduser().resolve(), destination)

        if json_output:
            console.print_json(
                data={"name": destination.name, "path": str(destination), "files": len(files)}
            )
            return

        _emit_message(
            _format_summary_line("Extract", destination.name, {"files": len(files)}),
            mode="summary",
            quiet=quiet_enabled,
            summary_only=summary_only,
        )
    except Exception as exc:
        _fail(exc, action="extracting the archive", json_output=json_output)


@cli.command()
@click.argument("path", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option(
    "--type",
    "package_type",
    type=click.Choice(PACKAGE_KINDS),
    default=None,
    help="Package kind; detected from the directory extension when omitted.",
)
@_output_options
@click.pass_context
def rebuild(
    ctx: click.Context,
    path: Path,
    package_type: Optional[str],
    json_output: bool,
    summary_mode: bool,
    quiet: bool,
) -> None:
    """Derive and write the manifest of the package at PATH from its files."""
    try:
        session = _open_session(ctx)
        quiet_enabled, summary_only = _resolve_output_modes(
            ctx, session.config, json_output=json_output, quiet=quiet, summary_mode=summary_mode
        )
        package_dir = path.expanduser().resolve()
        kind = package_type or _kind_from_path(package_dir)
        if kind is None:
            raise click.ClickException(
                f"Cannot tell the package kind of {package_dir.name}; pass --type."
            )

        manifest: AnyManifest
        if kind == "theme":
            manifest = rebuild_theme_manifest(package_dir, session.device)
        else:
            manifest = rebuild_component_manifest(
                package_dir, kind, session.device, author=session.config.export.author
            )
        save_manifest(package_dir, manifest)
        if isinstance(manifest, ThemeManifest):
            mappings = len(manifest.path_mappings.all())
        else:
            mappings = len(manifest.mappings())

        if json_output:
            console.print_json(
                data={"path": str(package_dir), "kind": kind, "mappings": mappings}
            )
            return

        _emit_message(
            _format_summary_line("Rebuild", package_dir.name, {"kind": kind, "mappings": mappings}),
            mode="summary",
            quiet=quiet_enabled,
            summary_only=summary_only,
        )
    except Exception as exc:
        _fail(exc, action="rebuilding the manifest", json_output=json_output)


@cli.command()
@click.argument("path", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option("--strict", is_flag=True, help="Require the full provenance block.")
@_output_options
@click.pass_context
def validate(
    ctx: click.Context,
    path: Path,
    strict: bool,
    json_output: bool,
    summary_mode: bool,
    quiet: bool,
) -> None:
    """Check the manifest of the package at PATH."""
    try:
        session = _open_session(ctx)
        quiet_enabled, summary_only = _resolve_output_modes(
            ctx, session.config, json_output=json_output, quiet=quiet, summary_mode=summary_mode
        )
        package_dir = path.expanduser().resolve()
        manifest = load_manifest(package_dir)
        check_manifest(manifest, strict=strict)
        kind = "theme" if isinstance(manifest, ThemeManifest) else manifest.component_type

        if json_output:
            console.print_json(
                data={"path": str(package_dir), "kind": kind, "strict": strict, "valid": True}
            )
            return

        _emit_message(
            _format_summary_line(
                "Validate", package_dir.name, {"kind": kind, "strict": strict, "valid": True}
            ),
            mode="summary",
            quiet=quiet_enabled,
            summary_only=summary_only,
        )
    except Exception as exc:
        _fail(exc, action="validating the manifest", json_output=json_output)


@cli.command("list")
@click.argument("kind", required=False, type=click.Choice(PACKAGE_KINDS))
@click.option(
    "--area",
    type=click.Choice(["imports", "exports", "backups"]),
    default=None,
    help="Only show packages in one workspace area.",
)
@_output_options
@click.pass_context
def list_packages(
    ctx: click.Context,
    kind: Optional[str],
    area: Optional[str],
    json_output: bool,
    summary_mode: bool,
    quiet: bool,
) -> None:
    """List workspace packages, optionally only those of KIND."""
    try:
        session = _open_session(ctx)
        quiet_enabled, summary_only = _resolve_output_modes(
            ctx, session.config, json_output=json_output, quiet=quiet, summary_mode=summary_mode
        )
        entries = session.workspace.list_packages(kind, area)

        if json_output:
            console.print_json(
                data={
                    "packages": [
                        {
                            "name": entry.name,
                            "kind": entry.kind,
                            "area": entry.area,
                            "path": str(entry.path),
                            "manifest": entry.manifest_status,
                        }
                        for entry in entries
                    ]
                }
            )
            return

        if entries:
            table = Table(title="Packages")
            table.add_column("Name", style="cyan")
            table.add_column("Kind")
            table.add_column("Area")
            table.add_column("Manifest")
            for entry in entries:
                status_style = {"ok": "green", "missing": "yellow"}.get(entry.manifest_status, "red")
                table.add_row(
                    entry.name,
                    entry.kind,
                    entry.area,
                    f"[{status_style}]{entry.manifest_status}[/{status_style}]",
                )
            _emit_message(table, mode="detail", quiet=quiet_enabled, summary_only=summary_only)
        invalid = sum(1 for entry in entries if entry.manifest_status == "invalid")
        _emit_message(
            _format_summary_line(
                "List", session.workspace.root, {"packages": len(entries), "invalid": invalid}
            ),
            mode="summary",
            quiet=quiet_enabled,
            summary_only=summary_only,
        )
    except Exception as exc:
        _fail(exc, action="listing packages", json_output=json_output)


@cli.command()
@_output_options
@click.pass_context
def status(ctx: click.Context, json_output: bool, summary_mode: bool, quiet: bool) -> None:
    """Show which packages are applied and where the device lives."""
    try:
        session = _open_session(ctx)
        quiet_enabled, summary_only = _resolve_output_modes(
            ctx, session.config, json_output=json_output, quiet=quiet, summary_mode=summary_mode
        )
        state = StateRepository(session.workspace.root).load_or_default()
        applied = {kind: applied_name(state, kind) for kind in ("theme", *COMPONENT_TYPES)}
        live_dir = session.device.live_theme_dir
        systems = session.device.discover_systems()

        if json_output:
            console.print_json(
                data={
                    "workspace": str(session.workspace.root),
                    "sdcard_root": str(session.device.root),
                    "live_theme_present": live_dir.is_dir(),
                    "systems": [system.name for system in systems],
                    "applied": applied,
                    "last_updated": state.last_updated.isoformat(),
                }
            )
            return

        table = Table(title="Applied packages")
        table.add_column("Kind", style="cyan")
        table.add_column("Package")
        for kind, package in applied.items():
            table.add_row(kind, package or "-")
        _emit_message(table, mode="detail", quiet=quiet_enabled, summary_only=summary_only)
        if not live_dir.is_dir():
            _emit_message(
                f"[yellow]Live theme directory not found: {live_dir}[/yellow]",
                mode="warning",
                quiet=quiet_enabled,
                summary_only=summary_only,
            )
        _emit_message(
            _format_summary_line(
                "Status",
                session.workspace.root,
                {
                    "applied": sum(1 for package in applied.values() if package),
                    "systems": len(systems),
                },
            ),
            mode="summary",
            quiet=quiet_enabled,
            summary_only=summary_only,
        )
    except Exception as exc:
        _fail(exc, action="reading status", json_output=json_output)


@cli.group()
def config() -> None:
    """Manage themekit configuration files and overrides."""


@config.command("view")
@click.option("--no-env", is_flag=True, help="Ignore environment overrides when displaying output.")
@click.pass_context
def config_view(ctx: click.Context, no_env: bool) -> None:
    """Display the effective configuration after applying precedence rules.

    Args:
        ctx: Click context carrying the group options.
        no_env: If True, ignore environment-derived overrides.

    Raises:
        click.ClickException: If configuration cannot be loaded.
    """
    manager = _config_manager(ctx)
    try:
        manager.ensure_exists()
        loaded = manager.load(include_env=not no_env)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    yaml_text = yaml.safe_dump(loaded.model_dump(mode="python"), sort_keys=False)
    console.print(Syntax(yaml_text, "yaml", word_wrap=True))


@config.command("set")
@click.argument("key")
@click.option("--value", required=True, help="Value to assign to KEY.")
@click.pass_context
def config_set(ctx: click.Context, key: str, value: str) -> None:
    """Persist a configuration value expressed as a dotted KEY.

    Args:
        ctx: Click context carrying the group options.
        key: Dotted path describing the configuration field to update.
        value: YAML-literal value to write into the configuration file.

    Raises:
        click.ClickException: If parsing, assignment, or validation fails.
    """
    manager = _config_manager(ctx)
    manager.ensure_exists()

    before = manager.read_text().splitlines()
    segments = [segment.strip() for segment in key.split(".") if segment.strip()]
    if not segments:
        raise click.ClickException("KEY must specify a dotted path such as 'backups.max_backups'.")

    try:
        parsed_value = yaml.safe_load(value)
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Unable to parse value: {exc}") from exc

    try:
        file_data = manager.load_file_overrides()
        _assign_nested(file_data, segments, parsed_value)
        resolve_with_precedence(defaults=ThemeKitConfig(), file_overrides=file_data)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    manager.save(file_data)
    after = manager.read_text().splitlines()

    diff = list(
        difflib.unified_diff(
            before,
            after,
            fromfile="config.yaml (before)",
            tofile="config.yaml (after)",
            lineterm="",
        )
    )
    # The header stamp changes on every save.
    changed = [
        line
        for line in diff
        if line.startswith(("+", "-")) and not line.startswith(("+++", "---", "+# Last", "-# Last"))
    ]

    if changed:
        console.print(Syntax("\n".join(diff), "diff", word_wrap=False))
    else:
        console.print("[yellow]No changes applied; value already up to date.[/yellow]")
        return

    console.print(f"[green]Updated {'.'.join(segments)}.[/green]")


@config.command("edit")
@click.pass_context
def config_edit(ctx: click.Context) -> None:
    """Open the configuration file in an interactive editor session.

    Raises:
        click.ClickException: If edited content is invalid or cannot be saved.
    """
    manager = _config_manager(ctx)
    manager.ensure_exists()

    original = manager.read_text()
    edited = click.edit(original, extension=".yaml")

    if edited is None:
        console.print("[yellow]Edit cancelled; no changes applied.[/yellow]")
        return

    if edited == original:
        console.print("[yellow]No changes detected.[/yellow]")
        return

    try:
        parsed = yaml.safe_load(edited) or {}
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Invalid YAML: {exc}") from exc

    if not isinstance(parsed, dict):
        raise click.ClickException("Configuration file must contain a top-level mapping.")

    try:
        resolve_with_precedence(defaults=ThemeKitConfig(), file_overrides=parsed)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    manager.save(parsed)
    console.print("[green]Configuration updated successfully.[/green]")


def main() -> None:
    """Invoke the Click CLI as the console script entry point."""
    cli()


if __name__ == "__main__":
    main()
