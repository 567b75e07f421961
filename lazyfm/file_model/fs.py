"""Directory enumeration and per-entry metadata collection.

Runs on scanner worker threads. Per-entry failures are recorded on the entry
(``Entry.error``) instead of aborting the scan, so inaccessible or broken
children still show up in the listing.
"""

from __future__ import annotations

import logging
import os
import stat
import time
from collections.abc import Callable
from pathlib import Path

from ..errors import ErrorKind, error_kind_for_exception
from .sorting import sort_entries
from .types import DirectoryListing, Entry, EntryKind, SortPolicy
from .watch import build_directory_signature

logger = logging.getLogger(__name__)

STALE_CHECK_INTERVAL = 256


def _kind_for_mode(mode: int) -> EntryKind:
    if stat.S_ISLNK(mode):
        return EntryKind.SYMLINK
    if stat.S_ISDIR(mode):
        return EntryKind.DIRECTORY
    if stat.S_ISREG(mode):
        return EntryKind.FILE
    return EntryKind.OTHER


def entry_access_error(path: Path, kind: EntryKind) -> ErrorKind | None:
    """Return ``PERMISSION_DENIED`` when ``path`` cannot be opened by this user.

    Directories need read and search permission; files need read permission.
    Special files and symlinks are not probed here.
    """
    if kind is EntryKind.DIRECTORY:
        required = os.R_OK | os.X_OK
    elif kind is EntryKind.FILE:
        required = os.R_OK
    else:
        return None
    try:
        if os.access(path, required):
            return None
    except OSError as exc:
        return error_kind_for_exception(exc)
    return ErrorKind.PERMISSION_DENIED


def build_entry(name: str, path: Path) -> Entry:
    """Collect metadata for one child path, recording failures as data."""
    try:
        st = os.lstat(path)
    except OSError as exc:
        return Entry(name=name, path=path, kind=EntryKind.OTHER, error=error_kind_for_exception(exc))

    kind = _kind_for_mode(st.st_mode)
    link_target: str | None = None
    target_is_directory = False
    error: ErrorKind | None = None
    size_bytes: int | None = int(st.st_size)

    if kind is EntryKind.SYMLINK:
        try:
            link_target = os.readlink(path)
        except OSError as exc:
            error = error_kind_for_exception(exc)
        try:
            target_stat = os.stat(path)
        except OSError as exc:
            # Dangling or looping link.
            error = error or error_kind_for_exception(exc)
        else:
            target_is_directory = stat.S_ISDIR(target_stat.st_mode)
            size_bytes = int(target_stat.st_size)
            if error is None:
                error = entry_access_error(path, EntryKind.DIRECTORY if target_is_directory else EntryKind.FILE)
    else:
        error = entry_access_error(path, kind)

    return Entry(
        name=name,
        path=path,
        kind=kind,
        size_bytes=size_bytes,
        modified_at=float(st.st_mtime),
        permissions=int(st.st_mode),
        link_target=link_target,
        target_is_directory=target_is_directory,
        error=error,
    )


def scan_directory(
    directory: Path,
    generation: int,
    sort_policy: SortPolicy,
    show_hidden: bool = False,
    is_stale: Callable[[], bool] | None = None,
    clock: Callable[[], float] = time.time,
) -> DirectoryListing:
    """Enumerate ``directory`` into a sorted ``DirectoryListing``.

    ``is_stale`` is polled every ``STALE_CHECK_INTERVAL`` entries; once it
    reports ``True`` the scan stops and the partial listing is returned with
    ``scan_completed=False``. A directory that cannot be opened yields an
    empty listing carrying the directory-level ``error``.

    The change signature is taken before enumeration starts, so anything
    modified during the scan is reported by the next watch check.
    """
    started_at = clock()
    signature = build_directory_signature(directory, show_hidden)
    entries: list[Entry] = []
    try:
        with os.scandir(directory) as children:
            for count, child in enumerate(children, start=1):
                if not show_hidden and child.name.startswith("."):
                    continue
                entries.append(build_entry(child.name, directory / child.name))
                if is_stale is not None and count % STALE_CHECK_INTERVAL == 0 and is_stale():
                    logger.debug("Abandoning stale scan of %s at generation %d", directory, generation)
                    return DirectoryListing(
                        directory=directory,
                        generation=generation,
                        entries=sort_entries(entries, sort_policy),
                        scan_started_at=started_at,
                        scan_completed=False,
                        sort_policy=sort_policy,
                    )
    except OSError as exc:
        kind = error_kind_for_exception(exc)
        logger.info("Cannot scan %s: %s", directory, kind.label)
        return DirectoryListing(
            directory=directory,
            generation=generation,
            entries=(),
            scan_started_at=started_at,
            scan_completed=True,
            sort_policy=sort_policy,
            error=kind,
            signature=signature,
        )

    return DirectoryListing(
        directory=directory,
        generation=generation,
        entries=sort_entries(entries, sort_policy),
        scan_started_at=started_at,
        scan_completed=True,
        sort_policy=sort_policy,
        signature=signature,
    )


def probe_directory(directory: Path) -> ErrorKind | None:
    """Return why ``directory`` cannot be listed, or ``None`` when it can."""
    try:
        with os.scandir(directory) as children:
            next(children, None)
    except OSError as exc:
        return error_kind_for_exception(exc)
    return None


__all__ = [
    "STALE_CHECK_INTERVAL",
    "entry_access_error",
    "build_entry",
    "scan_directory",
    "probe_directory",
]
