"""Error taxonomy shared by scanning, previewing, and dispatch.

Per-entry failures are represented as ``ErrorKind`` data on entries and
preview payloads. Only the two fatal conditions are exceptions.
"""

from __future__ import annotations

import errno
from enum import Enum


class ErrorKind(str, Enum):
    """Recoverable error categories surfaced as data."""

    NOT_FOUND = "not_found"
    PERMISSION_DENIED = "permission_denied"
    IO_ERROR = "io_error"
    UNSUPPORTED = "unsupported"
    INVALID_SEQUENCE = "invalid_sequence"

    @property
    def label(self) -> str:
        """Short human label used in status rows."""
        return _LABELS[self]


_LABELS = {
    ErrorKind.NOT_FOUND: "not found",
    ErrorKind.PERMISSION_DENIED: "permission denied",
    ErrorKind.IO_ERROR: "I/O error",
    ErrorKind.UNSUPPORTED: "unsupported",
    ErrorKind.INVALID_SEQUENCE: "invalid key sequence",
}


def error_kind_for_exception(exc: BaseException) -> ErrorKind:
    """Map an ``OSError`` (or anything else) onto ``ErrorKind``."""
    if isinstance(exc, (FileNotFoundError, NotADirectoryError)):
        return ErrorKind.NOT_FOUND
    if isinstance(exc, PermissionError):
        return ErrorKind.PERMISSION_DENIED
    if isinstance(exc, OSError):
        if exc.errno in {errno.ENOENT, errno.ENOTDIR, errno.ELOOP}:
            return ErrorKind.NOT_FOUND
        if exc.errno in {errno.EACCES, errno.EPERM}:
            return ErrorKind.PERMISSION_DENIED
    return ErrorKind.IO_ERROR


def describe_exception(exc: BaseException) -> str:
    """Return a compact one-line description for status messages."""
    if isinstance(exc, OSError) and exc.strerror:
        return exc.strerror
    text = str(exc).strip()
    return text or type(exc).__name__


class LazyfmError(Exception):
    """Base class for fatal engine errors."""


class StartupDirectoryError(LazyfmError):
    """The initial working directory cannot be listed."""

    def __init__(self, path, kind: ErrorKind, detail: str = "") -> None:
        self.path = path
        self.kind = kind
        self.detail = detail
        message = f"Cannot open {path}: {kind.label}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


class CompletionChannelBroken(LazyfmError):
    """A background worker died outside per-entry error handling."""


__all__ = [
    "ErrorKind",
    "error_kind_for_exception",
    "describe_exception",
    "LazyfmError",
    "StartupDirectoryError",
    "CompletionChannelBroken",
]
