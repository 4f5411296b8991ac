"""File transfer primitive tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from themekit.packages import TransferError
from themekit.packages.fileops import (
    clean_directory,
    copy_directory,
    copy_file,
    package_file,
    remove_directory,
    remove_file,
)


def test_copy_file_creates_parents(tmp_path: Path) -> None:
    source = tmp_path / "a.txt"
    source.write_text("alpha", encoding="utf-8")

    copy_file(source, tmp_path / "deep" / "nested" / "a.txt")

    assert (tmp_path / "deep" / "nested" / "a.txt").read_text(encoding="utf-8") == "alpha"


def test_copy_file_missing_source_raises(tmp_path: Path) -> None:
    with pytest.raises(TransferError):
        copy_file(tmp_path / "missing.txt", tmp_path / "out.txt")


def test_copy_directory_honors_excludes(tmp_path: Path) -> None:
    """Excluded subpaths are skipped together with everything below them."""
    source = tmp_path / "src"
    for relative in ("keep.txt", "Tools/tg5040/.media/x.png", "Tools/other.txt", "Collections/icon.png"):
        target = source / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(relative, encoding="utf-8")

    copied = copy_directory(source, tmp_path / "dst", exclude=("Tools/tg5040", "Collections"))

    assert copied == 2
    assert (tmp_path / "dst" / "keep.txt").is_file()
    assert (tmp_path / "dst" / "Tools" / "other.txt").is_file()
    assert not (tmp_path / "dst" / "Tools" / "tg5040").exists()
    assert not (tmp_path / "dst" / "Collections").exists()


def test_remove_directory_ignores_missing(tmp_path: Path) -> None:
    remove_directory(tmp_path / "absent")

    target = tmp_path / "tree"
    (target / "child").mkdir(parents=True)
    remove_directory(target)
    assert not target.exists()


def test_clean_directory_keeps_the_directory(tmp_path: Path) -> None:
    target = tmp_path / "media"
    (target / "sub").mkdir(parents=True)
    (target / "a.png").write_bytes(b"a")

    removed = clean_directory(target)

    assert removed == 2
    assert target.is_dir()
    assert list(target.iterdir()) == []


def test_package_file_stays_inside_the_package(tmp_path: Path) -> None:
    package = tmp_path / "Neon.theme"
    (package / "Fonts").mkdir(parents=True)
    (package / "Fonts" / "OG.ttf").write_bytes(b"font")
    (tmp_path / "secret.txt").write_text("secret", encoding="utf-8")

    assert package_file(package, "Fonts/OG.ttf") == (package / "Fonts" / "OG.ttf").resolve()
    assert package_file(package, "Fonts/../Fonts/OG.ttf") is not None
    assert package_file(package, "../secret.txt") is None
    assert package_file(package, str(tmp_path / "secret.txt")) is None
    assert package_file(package, "Fonts/Missing.ttf") is None
    assert package_file(package, "Fonts") is None


def test_remove_file_reports_whether_it_removed(tmp_path: Path) -> None:
    target = tmp_path / "bg.png"
    target.write_bytes(b"bg")

    assert remove_file(target) is True
    assert not target.exists()
    assert remove_file(target) is False
