"""Safe archive extraction tests."""

from __future__ import annotations

import zipfile
from pathlib import Path

import pytest

from themekit.packages import ArchiveError, UnsafeArchiveError, extract_archive


def _zip(path: Path, entries: dict[str, bytes]) -> Path:
    """Write a ZIP archive containing `entries` verbatim.

    Args:
        path: Archive location.
        entries: Member names mapped to their contents.

    Returns:
        Path: The written archive.
    """
    with zipfile.ZipFile(path, "w") as bundle:
        for name, payload in entries.items():
            bundle.writestr(name, payload)
    return path


def test_matching_top_level_directory_is_stripped(tmp_path: Path) -> None:
    """`Foo.theme.zip` holding `Foo.theme/...` must not nest the directory."""
    archive = _zip(
        tmp_path / "Foo.theme.zip",
        {
            "Foo.theme/manifest.json": b"{}",
            "Foo.theme/Wallpapers/SystemWallpapers/Root.png": b"png",
            "__MACOSX/Foo.theme/._manifest.json": b"junk",
            "Foo.theme/.DS_Store": b"junk",
        },
    )
    destination = tmp_path / "out" / "Foo.theme"

    written = extract_archive(archive, destination)

    assert (destination / "manifest.json").read_bytes() == b"{}"
    assert (destination / "Wallpapers/SystemWallpapers/Root.png").is_file()
    assert not (destination / "Foo.theme").exists()
    assert not (destination / "__MACOSX").exists()
    assert not (destination / ".DS_Store").exists()
    assert len(written) == 2


def test_root_with_same_extension_is_stripped(tmp_path: Path) -> None:
    archive = _zip(tmp_path / "pack.zip", {"Other Name.theme/manifest.json": b"{}"})
    destination = tmp_path / "Mine.theme"

    extract_archive(archive, destination)

    assert (destination / "manifest.json").is_file()


def test_unrelated_top_level_directory_is_kept(tmp_path: Path) -> None:
    archive = _zip(tmp_path / "pack.zip", {"docs/readme.txt": b"hi", "docs/more.txt": b"more"})
    destination = tmp_path / "Mine.theme"

    extract_archive(archive, destination)

    assert (destination / "docs" / "readme.txt").read_bytes() == b"hi"


def test_traversal_entry_is_rejected_before_writing(tmp_path: Path) -> None:
    """An entry escaping the destination aborts the whole extraction."""
    archive = _zip(
        tmp_path / "evil.zip",
        {"manifest.json": b"{}", "../escaped.txt": b"owned"},
    )
    destination = tmp_path / "out" / "Evil.theme"

    with pytest.raises(UnsafeArchiveError):
        extract_archive(archive, destination)

    assert not (tmp_path / "out" / "escaped.txt").exists()
    assert not destination.exists()


def test_non_empty_destination_is_refused(tmp_path: Path) -> None:
    archive = _zip(tmp_path / "pack.zip", {"manifest.json": b"{}"})
    destination = tmp_path / "Mine.theme"
    destination.mkdir()
    (destination / "keep.txt").write_text("keep", encoding="utf-8")

    with pytest.raises(ArchiveError):
        extract_archive(archive, destination)

    assert (destination / "keep.txt").is_file()


def test_corrupt_archive_raises_archive_error(tmp_path: Path) -> None:
    archive = tmp_path / "broken.zip"
    archive.write_bytes(b"not a zip file")
    destination = tmp_path / "Broken.theme"

    with pytest.raises(ArchiveError):
        extract_archive(archive, destination)

    assert not destination.exists()
