"""File transfer primitives used by every package operation."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path, PurePosixPath
from typing import Iterable, Optional

from .errors import TransferError

LOGGER = logging.getLogger(__name__)

_CHUNK_SIZE = 64 * 1024


def copy_file(src: Path, dst: Path) -> None:
    """Copy a single file, creating parent directories as needed.

    The destination receives the source's permission bits.

    Raises:
        TransferError: If the source cannot be read or the destination written.
    """
    try:
        dst.parent.mkdir(parents=True, exist_ok=True)
        with src.open("rb") as reader, dst.open("wb") as writer:
            shutil.copyfileobj(reader, writer, _CHUNK_SIZE)
        shutil.copymode(src, dst)
    except OSError as exc:
        raise TransferError(f"Failed to copy {src} to {dst}: {exc}") from exc


def copy_directory(src: Path, dst: Path, exclude: Iterable[str] = ()) -> int:
    """Recursively copy `src` into `dst`.

    Args:
        src: Directory to copy.
        dst: Destination directory; created when missing.
        exclude: POSIX subpaths relative to `src` that are skipped along
            with their subtrees.

    Returns:
        int: Number of files copied.

    Raises:
        TransferError: On the first failing entry; the copy stops there.
    """
    excluded = {PurePosixPath(item).as_posix().strip("/") for item in exclude}
    return _copy_tree(src, dst, src, excluded)


def _copy_tree(src: Path, dst: Path, top: Path, excluded: set[str]) -> int:
    try:
        dst.mkdir(parents=True, exist_ok=True)
        shutil.copymode(src, dst)
        entries = sorted(src.iterdir())
    except OSError as exc:
        raise TransferError(f"Failed to copy {src} to {dst}: {exc}") from exc

    copied = 0
    for entry in entries:
        relative = entry.relative_to(top).as_posix()
        if relative in excluded:
            LOGGER.debug("Skipping excluded path %s", relative)
            continue
        target = dst / entry.name
        if entry.is_dir():
            copied += _copy_tree(entry, target, top, excluded)
        else:
            copy_file(entry, target)
            copied += 1
    return copied


def package_file(package_dir: Path, package_path: str) -> Optional[Path]:
    """Return the file a mapping names inside `package_dir`.

    Returns:
        Path | None: The file, or None when it is missing or lies outside
        the package once links and `..` are resolved.
    """
    source = (package_dir / package_path).resolve()
    if not source.is_relative_to(package_dir.resolve()) or not source.is_file():
        return None
    return source


def remove_file(path: Path) -> bool:
    """Delete a single file; an absent file is ignored.

    Returns:
        bool: Whether a file was removed.

    Raises:
        TransferError: If the file exists but cannot be removed.
    """
    try:
        path.unlink()
    except FileNotFoundError:
        return False
    except OSError as exc:
        raise TransferError(f"Failed to remove {path}: {exc}") from exc
    return True


def remove_directory(path: Path) -> None:
    """Delete `path` and its contents; absent paths are ignored.

    Raises:
        TransferError: If the tree cannot be removed.
    """
    if not path.exists():
        return
    try:
        if path.is_dir() and not path.is_symlink():
            shutil.rmtree(path)
        else:
            path.unlink()
    except OSError as exc:
        raise TransferError(f"Failed to remove {path}: {exc}") from exc


def clean_directory(path: Path) -> int:
    """Remove every child of `path`, keeping (or creating) the directory.

    Entries that cannot be removed are logged and left in place.

    Returns:
        int: Number of entries removed.
    """
    try:
        path.mkdir(parents=True, exist_ok=True)
        entries = list(path.iterdir())
    except OSError as exc:
        raise TransferError(f"Failed to prepare {path}: {exc}") from exc

    removed = 0
    for entry in entries:
        try:
            if entry.is_dir() and not entry.is_symlink():
                shutil.rmtree(entry)
            else:
                entry.unlink()
            removed += 1
        except OSError as exc:
            LOGGER.warning("Unable to remove %s: %s", entry, exc)
    return removed


__all__ = [
    "copy_file",
    "copy_directory",
    "package_file",
    "remove_file",
    "remove_directory",
    "clean_directory",
]
