"""Domain datatypes for scanned directory entries and listings."""

from __future__ import annotations

import stat
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path

from ..errors import ErrorKind


class EntryKind(str, Enum):
    FILE = "file"
    DIRECTORY = "directory"
    SYMLINK = "symlink"
    OTHER = "other"


class SortKey(str, Enum):
    NAME = "name"
    SIZE = "size"
    MODIFIED = "modified"


@dataclass(frozen=True)
class SortPolicy:
    """Ordering policy applied to listing entries.

    ``reverse`` flips only the primary key; the name tie-break stays ascending.
    """

    key: SortKey = SortKey.NAME
    directories_first: bool = True
    reverse: bool = False

    def with_key(self, key: SortKey) -> SortPolicy:
        return replace(self, key=key)

    def describe(self) -> str:
        """Return a compact label such as ``name`` or ``size desc, mixed``."""
        parts = [self.key.value + (" desc" if self.reverse else "")]
        if not self.directories_first:
            parts.append("mixed")
        return ", ".join(parts)


@dataclass(frozen=True)
class Entry:
    """One filesystem object with metadata observed at scan time."""

    name: str
    path: Path
    kind: EntryKind
    size_bytes: int | None = None
    modified_at: float | None = None
    permissions: int = 0
    link_target: str | None = None
    target_is_directory: bool = False
    error: ErrorKind | None = None

    @property
    def is_directory_like(self) -> bool:
        """Directories and symlinks resolving to directories."""
        if self.kind is EntryKind.DIRECTORY:
            return True
        return self.kind is EntryKind.SYMLINK and self.target_is_directory

    @property
    def is_hidden(self) -> bool:
        return self.name.startswith(".")

    @property
    def mode_string(self) -> str:
        """``ls -l`` style permission string, e.g. ``drwxr-xr-x``."""
        if not self.permissions:
            return "?" * 10
        return stat.filemode(self.permissions)


@dataclass(frozen=True)
class DirectoryListing:
    """Immutable, ordered snapshot of one directory at one generation."""

    directory: Path
    generation: int
    entries: tuple[Entry, ...] = ()
    scan_started_at: float = 0.0
    scan_completed: bool = True
    sort_policy: SortPolicy = field(default_factory=SortPolicy)
    error: ErrorKind | None = None
    signature: str | None = None

    def __len__(self) -> int:
        return len(self.entries)

    def index_of(self, name: str) -> int | None:
        for idx, entry in enumerate(self.entries):
            if entry.name == name:
                return idx
        return None


__all__ = [
    "EntryKind",
    "SortKey",
    "SortPolicy",
    "Entry",
    "DirectoryListing",
]
