# sandbox_fs/services/filesystem.py
from __future__ import annotations

import logging
import os
import stat
from pathlib import Path
from typing import List, Union

from sandbox_fs.result import (
    InvalidPath,
    IoError,
    NotADirectory,
    PathEscapesRoot,
    Result,
    Timestamp,
)

logger = logging.getLogger(__name__)

# Text <-> bytes without transcoding validation: undecodable bytes survive
# the round trip as lone surrogates.
_TEXT_ENCODING = "utf-8"
_TEXT_ERRORS = "surrogateescape"


def is_within_root(candidate: str, root: str) -> bool:
    """
    True when `candidate` equals `root` or lies below it.
    The byte after the root prefix must be a separator: /a/bc is not under /a/b.
    """
    if candidate == root:
        return True
    prefix = root if root.endswith(os.sep) else root + os.sep
    return candidate.startswith(prefix)


class FileSystemService:
    """
    Sandbox all file operations inside SANDBOX_ROOT.

    Every operation takes a caller-supplied relative path and funnels it
    through `validate_path` before touching the disk. Fallible operations
    return a `Result`; nothing raises for expected filesystem conditions.
    """

    def __init__(self, root: Path, create: bool = True):
        root = Path(root)
        if create:
            root.mkdir(parents=True, exist_ok=True)
        self._root = root.resolve()

    @property
    def root(self) -> Path:
        return self._root

    # ---------- Validation ----------

    def validate_path(self, rel: str) -> Result[Path]:
        if not rel:
            return Result.failure(InvalidPath("Empty path"))
        if "\x00" in rel:
            return Result.failure(InvalidPath("Path contains a NUL byte"))

        try:
            # Symlinks in the existing prefix are followed; a missing suffix
            # is normalized lexically.
            p = (self._root / rel).resolve(strict=False)
        except (OSError, RuntimeError, ValueError) as e:
            return Result.failure(InvalidPath(f"Cannot normalize path {rel!r}: {e}"))

        if not is_within_root(str(p), str(self._root)):
            logger.warning("path escapes sandbox root: %r -> %s", rel, p)
            return Result.failure(PathEscapesRoot("Path escapes root directory"))
        return Result.success(p)

    def absolute(self, rel: str) -> Path:
        """
        Join root and `rel` without validation or normalization.
        Not safe for access decisions; use `validate_path` for that.
        """
        return self._root / rel

    # ---------- Queries ----------

    def exists(self, rel: str) -> bool:
        res = self.validate_path(rel)
        if not res:
            return False
        try:
            return res.value.exists()
        except OSError:
            return False

    def size(self, rel: str) -> Result[int]:
        res = self.validate_path(rel)
        if not res:
            return Result.failure(res.error)
        try:
            st = res.value.stat()
        except OSError as e:
            return self._io_failure("Failed to get file size", e)
        if not stat.S_ISREG(st.st_mode):
            return Result.failure(IoError(f"Failed to get file size: not a regular file: {rel}"))
        return Result.success(st.st_size)

    def mtime(self, rel: str) -> Result[Timestamp]:
        res = self.validate_path(rel)
        if not res:
            return Result.failure(res.error)
        try:
            st = res.value.stat()
        except OSError as e:
            return self._io_failure("Failed to get mtime", e)
        return Result.success(st.st_mtime_ns // 1_000_000)

    def set_mtime(self, rel: str, ts: Timestamp) -> Result[None]:
        res = self.validate_path(rel)
        if not res:
            return Result.failure(res.error)
        p = res.value
        try:
            atime_ns = p.stat().st_atime_ns
            os.utime(p, ns=(atime_ns, int(ts) * 1_000_000))
        except (OSError, OverflowError, ValueError) as e:
            return self._io_failure("Failed to set mtime", e)
        return Result.success()

    # ---------- Read / write ----------

    def read(self, rel: str) -> Result[bytes]:
        res = self.validate_path(rel)
        if not res:
            return Result.failure(res.error)
        p = res.value
        try:
            f = p.open("rb")
        except OSError as e:
            return self._io_failure(f"Failed to open file: {p}", e)
        with f:
            try:
                expected = os.fstat(f.fileno()).st_size
                data = f.read(expected)
            except OSError as e:
                return self._io_failure("Failed to read file", e)
        if len(data) != expected:
            return Result.failure(
                IoError(f"Failed to read file: short read ({len(data)} of {expected} bytes)")
            )
        return Result.success(data)

    def read_string(self, rel: str) -> Result[str]:
        res = self.read(rel)
        if not res:
            return Result.failure(res.error)
        return Result.success(res.value.decode(_TEXT_ENCODING, _TEXT_ERRORS))

    def write(self, rel: str, content: Union[bytes, bytearray, memoryview, str]) -> Result[None]:
        res = self.validate_path(rel)
        if not res:
            return Result.failure(res.error)
        p = res.value

        if isinstance(content, str):
            try:
                content = content.encode(_TEXT_ENCODING, _TEXT_ERRORS)
            except UnicodeEncodeError as e:
                return self._io_failure("Failed to encode content", e)

        try:
            p.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            return self._io_failure("Failed to create directories", e)

        try:
            f = p.open("wb")
        except OSError as e:
            return self._io_failure(f"Failed to open file for writing: {p}", e)
        with f:
            try:
                f.write(content)
            except OSError as e:
                return self._io_failure("Failed to write file", e)
        return Result.success()

    def remove(self, rel: str) -> Result[None]:
        res = self.validate_path(rel)
        if not res:
            return Result.failure(res.error)
        p = res.value
        try:
            if p.is_dir():
                p.rmdir()
            else:
                p.unlink()
        except FileNotFoundError:
            # Already gone
            pass
        except OSError as e:
            return self._io_failure("Failed to remove file", e)
        return Result.success()

    # ---------- Directories ----------

    def mkdir(self, rel: str) -> Result[None]:
        res = self.validate_path(rel)
        if not res:
            return Result.failure(res.error)
        try:
            res.value.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            return self._io_failure("Failed to create directory", e)
        return Result.success()

    def list(self, rel_dir: str = "") -> Result[List[str]]:
        res = self._resolve_dir(rel_dir)
        if not res:
            return Result.failure(res.error)
        if res.value is None:
            return Result.success([])
        try:
            entries = [self._relative(child) for child in res.value.iterdir()]
        except OSError as e:
            return self._io_failure("Failed to list directory", e)
        return Result.success(sorted(entries))

    def list_recursive(self, rel_dir: str = "") -> Result[List[str]]:
        res = self._resolve_dir(rel_dir)
        if not res:
            return Result.failure(res.error)
        if res.value is None:
            return Result.success([])

        def _raise(err: OSError):
            raise err

        entries: List[str] = []
        try:
            for dirpath, _dirnames, filenames in os.walk(res.value, onerror=_raise):
                for name in filenames:
                    child = Path(dirpath) / name
                    if child.is_file():
                        entries.append(self._relative(child))
        except OSError as e:
            return self._io_failure("Failed to list directory", e)
        return Result.success(sorted(entries))

    # ---------- Internals ----------

    def _resolve_dir(self, rel_dir: str) -> Result:
        """
        Directory target for listings: root for "", validated path otherwise.
        Success with value None means "does not exist" (empty listing).
        """
        if not rel_dir:
            target = self._root
        else:
            res = self.validate_path(rel_dir)
            if not res:
                return res
            target = res.value

        try:
            st = target.stat()
        except (FileNotFoundError, NotADirectoryError):
            return Result.success(None)
        except OSError as e:
            return self._io_failure("Failed to list directory", e)
        if not stat.S_ISDIR(st.st_mode):
            return Result.failure(NotADirectory(f"Not a directory: {rel_dir}"))
        return Result.success(target)

    def _relative(self, p: Path) -> str:
        return p.relative_to(self._root).as_posix()

    @staticmethod
    def _io_failure(what: str, exc: Exception) -> Result:
        logger.debug("%s: %s", what, exc)
        return Result.failure(IoError.from_os_error(what, exc))
