# tests/test_path_validation.py
import os
from pathlib import Path

import pytest

from sandbox_fs.result import ErrorKind
from sandbox_fs.services.filesystem import FileSystemService, is_within_root


@pytest.fixture
def fs(tmp_path: Path) -> FileSystemService:
    return FileSystemService(tmp_path / "root")


def test_empty_path_is_invalid(fs: FileSystemService):
    assert fs.validate_path("").kind is ErrorKind.INVALID_PATH


def test_nul_byte_is_invalid(fs: FileSystemService):
    assert fs.validate_path("a\x00b").kind is ErrorKind.INVALID_PATH


def test_dot_is_the_root(fs: FileSystemService):
    assert fs.validate_path(".").unwrap() == fs.root
    assert fs.validate_path("a/..").unwrap() == fs.root


@pytest.mark.parametrize(
    "rel",
    [
        "..",
        "../x",
        "../../etc/passwd",
        "a/../../x",
        "a/b/c/../../../../x",
        "./a/./../..",
    ],
)
def test_climbing_above_root_is_rejected(fs: FileSystemService, rel: str):
    assert fs.validate_path(rel).kind is ErrorKind.PATH_ESCAPES_ROOT


def test_climbing_through_existing_dirs_is_rejected(fs: FileSystemService):
    fs.mkdir("a/b/c")
    assert fs.validate_path("a/b/c/../../../../x").kind is ErrorKind.PATH_ESCAPES_ROOT


def test_dotdot_that_stays_inside_is_allowed(fs: FileSystemService):
    assert fs.validate_path("a/b/../c.txt").unwrap() == fs.root / "a" / "c.txt"


def test_non_existent_target_is_allowed(fs: FileSystemService):
    assert fs.validate_path("new/dir/file.txt").unwrap() == fs.root / "new" / "dir" / "file.txt"


def test_unrelated_absolute_path_is_rejected(fs: FileSystemService):
    assert fs.validate_path("/etc/passwd").kind is ErrorKind.PATH_ESCAPES_ROOT


def test_sibling_with_shared_prefix_is_rejected(tmp_path: Path):
    fs = FileSystemService(tmp_path / "b")
    (tmp_path / "bc").mkdir()
    assert fs.validate_path("../bc").kind is ErrorKind.PATH_ESCAPES_ROOT
    assert fs.validate_path("../b-evil/x").kind is ErrorKind.PATH_ESCAPES_ROOT


def test_is_within_root_checks_separator_boundary():
    root = os.path.join(os.sep, "a", "b")
    assert is_within_root(root, root)
    assert is_within_root(os.path.join(root, "c"), root)
    assert not is_within_root(os.path.join(os.sep, "a", "bc"), root)
    assert not is_within_root(os.path.join(os.sep, "a", "b-evil"), root)
    assert not is_within_root(os.path.join(os.sep, "a"), root)


def test_is_within_filesystem_root():
    assert is_within_root(os.path.join(os.sep, "etc"), os.sep)


@pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unavailable")
def test_symlink_pointing_outside_is_rejected(fs: FileSystemService, tmp_path: Path):
    outside = tmp_path / "outside"
    outside.mkdir()
    (outside / "secret.txt").write_bytes(b"secret")
    os.symlink(outside, fs.root / "link")

    assert fs.validate_path("link/secret.txt").kind is ErrorKind.PATH_ESCAPES_ROOT
    assert fs.exists("link/secret.txt") is False
    assert fs.write("link/new.txt", b"x").kind is ErrorKind.PATH_ESCAPES_ROOT
    assert not (outside / "new.txt").exists()


@pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unavailable")
def test_symlink_inside_root_is_followed(fs: FileSystemService):
    fs.write("real/f.txt", b"inside")
    os.symlink(fs.root / "real", fs.root / "alias")
    assert fs.validate_path("alias/f.txt").unwrap() == fs.root / "real" / "f.txt"
    assert fs.read("alias/f.txt").unwrap() == b"inside"


@pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unavailable")
def test_root_given_through_symlink(tmp_path: Path):
    real = tmp_path / "real-root"
    real.mkdir()
    os.symlink(real, tmp_path / "link-root")
    fs = FileSystemService(tmp_path / "link-root")
    assert fs.root == real.resolve()
    assert fs.write("a.txt", b"x").ok
    assert (real / "a.txt").read_bytes() == b"x"
