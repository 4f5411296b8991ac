"""Safe extraction of downloaded package archives."""

from __future__ import annotations

import logging
import os
import shutil
import zipfile
from collections import Counter
from pathlib import Path, PurePosixPath
from typing import Optional

from .errors import ArchiveError, UnsafeArchiveError
from .fileops import remove_directory

LOGGER = logging.getLogger(__name__)

MACOS_METADATA_DIR = "__MACOSX"
COMMON_ROOT_THRESHOLD = 0.9


def extract_archive(archive: Path, destination: Path) -> list[Path]:
    """Extract a ZIP archive into `destination` without nesting or escaping.

    Entries are planned in full before anything is written. macOS metadata
    and hidden files are skipped. When nearly every entry shares one
    top-level directory named like the destination (same name, or the same
    package extension), that directory is stripped so `Foo.theme.zip`
    containing `Foo.theme/...` does not extract to `Foo.theme/Foo.theme/...`.

    Args:
        archive: ZIP file to read.
        destination: Directory to create and fill; must not hold files yet.

    Returns:
        list[Path]: Extracted files.

    Raises:
        UnsafeArchiveError: If an entry would be written outside `destination`.
        ArchiveError: If the archive cannot be read or written. The
            destination is removed on any failure.
    """
    if destination.exists() and any(destination.iterdir()):
        raise ArchiveError(f"Extraction target is not empty: {destination}")

    try:
        with zipfile.ZipFile(archive) as bundle:
            members = [info for info in bundle.infolist() if not _ignored(info.filename)]
            strip = _root_to_strip(members, destination)
            plan = _plan(members, destination, strip)
            written = _write(bundle, plan, destination)
    except ArchiveError:
        remove_directory(destination)
        raise
    except (OSError, zipfile.BadZipFile, zipfile.LargeZipFile) as exc:
        remove_directory(destination)
        raise ArchiveError(f"Failed to extract {archive}: {exc}") from exc

    LOGGER.info("Extracted %d files from %s into %s", len(written), archive.name, destination)
    return written


def _ignored(name: str) -> bool:
    path = PurePosixPath(name)
    return MACOS_METADATA_DIR in path.parts or path.name.startswith(".")


def _root_to_strip(members: list[zipfile.ZipInfo], destination: Path) -> Optional[str]:
    """Return the shared top-level directory to drop, if any."""
    total = len(members)
    if not total:
        return None

    roots: Counter[str] = Counter()
    for info in members:
        parts = info.filename.split("/")
        if len(parts) > 1 and parts[0]:
            roots[parts[0]] += 1
    candidates = sorted(roots.items(), key=lambda item: (-item[1], item[0]))
    common = next(
        (root for root, count in candidates if count == total or count / total > COMMON_ROOT_THRESHOLD),
        None,
    )
    if common is None or common in (".", ".."):
        return None

    dest_name = destination.name
    extension = os.path.splitext(dest_name)[1]
    if common == dest_name or (extension and common.endswith(extension)):
        LOGGER.debug("Stripping common archive root %s", common)
        return common
    return None


def _plan(
    members: list[zipfile.ZipInfo], destination: Path, strip: Optional[str]
) -> list[tuple[zipfile.ZipInfo, Path]]:
    base = os.path.normpath(os.path.abspath(destination))
    plan: list[tuple[zipfile.ZipInfo, Path]] = []
    for info in members:
        name = info.filename
        if strip and name.startswith(f"{strip}/"):
            name = name[len(strip) + 1 :]
            if not name:
                continue
        target = os.path.normpath(os.path.join(base, name))
        if target != base and not target.startswith(base + os.sep):
            raise UnsafeArchiveError(f"Archive entry escapes the extraction directory: {info.filename}")
        plan.append((info, Path(target)))
    return plan


def _write(
    bundle: zipfile.ZipFile, plan: list[tuple[zipfile.ZipInfo, Path]], destination: Path
) -> list[Path]:
    destination.mkdir(parents=True, exist_ok=True)
    written: list[Path] = []
    for info, target in plan:
        if info.is_dir():
            target.mkdir(parents=True, exist_ok=True)
            continue
        target.parent.mkdir(parents=True, exist_ok=True)
        with bundle.open(info) as reader, target.open("wb") as writer:
            shutil.copyfileobj(reader, writer)
        written.append(target)
    return written


__all__ = ["extract_archive", "COMMON_ROOT_THRESHOLD"]
