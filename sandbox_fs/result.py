# sandbox_fs/result.py
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar

T = TypeVar("T")

# Milliseconds since the Unix epoch
Timestamp = int


class ErrorKind(str, Enum):
    INVALID_PATH = "InvalidPath"
    PATH_ESCAPES_ROOT = "PathEscapesRoot"
    IO_ERROR = "IoError"
    NOT_A_DIRECTORY = "NotADirectory"


class SandboxError(Exception):
    """
    Base class for every failure the sandboxed filesystem reports.
    Subclasses pin the ErrorKind so callers can branch on either.
    """
    kind: ErrorKind = ErrorKind.IO_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"kind": self.kind.value, "message": self.message}


class InvalidPath(SandboxError):
    kind = ErrorKind.INVALID_PATH


class PathEscapesRoot(SandboxError, PermissionError):
    kind = ErrorKind.PATH_ESCAPES_ROOT


class IoError(SandboxError):
    kind = ErrorKind.IO_ERROR

    @classmethod
    def from_os_error(cls, what: str, exc: Exception) -> "IoError":
        err = cls(f"{what}: {getattr(exc, 'strerror', None) or exc}")
        err.__cause__ = exc
        return err


class NotADirectory(SandboxError):
    kind = ErrorKind.NOT_A_DIRECTORY


@dataclass(frozen=True)
class Result(Generic[T]):
    """
    Success value or SandboxError. Service operations return these instead of
    raising; `unwrap()` converts back to exception style at the tool boundary.
    """
    value: Optional[T] = None
    error: Optional[SandboxError] = None

    @classmethod
    def success(cls, value: Optional[T] = None) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: SandboxError) -> "Result[T]":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def kind(self) -> Optional[ErrorKind]:
        return self.error.kind if self.error is not None else None

    def unwrap(self) -> T:
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]

    def __bool__(self) -> bool:
        return self.ok
