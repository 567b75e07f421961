"""Poll-based change detection for the directory on screen.

A digest covers the directory's own stat data and its children's names and
stat metadata. Scans record the digest they started from; later checks run on
a worker and the engine rescans when a check disagrees with the listing on
screen.
"""

from __future__ import annotations

import hashlib
import os
from dataclasses import dataclass
from pathlib import Path


def _update_digest(digest, token: str) -> None:
    """Append a token plus separator byte to a hash digest."""
    digest.update(token.encode("utf-8", errors="surrogateescape"))
    digest.update(b"\0")


def build_directory_signature(directory: Path, show_hidden: bool) -> str:
    """Return a digest of ``directory`` child names and stat metadata."""
    digest = hashlib.blake2b(digest_size=20)
    _update_digest(digest, f"dir:{directory}")
    _update_digest(digest, f"show_hidden:{1 if show_hidden else 0}")
    try:
        st = os.stat(directory)
    except FileNotFoundError:
        _update_digest(digest, "missing")
        return digest.hexdigest()
    except OSError:
        _update_digest(digest, "error")
        return digest.hexdigest()
    _update_digest(digest, f"dir_stat:{st.st_mtime_ns}:{st.st_mode}")

    children: list[tuple[str, int, int, int]] = []
    try:
        with os.scandir(directory) as entries:
            for child in entries:
                if not show_hidden and child.name.startswith("."):
                    continue
                try:
                    child_stat = child.stat(follow_symlinks=False)
                except OSError:
                    children.append((child.name, 0, 0, 0))
                    continue
                children.append((child.name, child_stat.st_mtime_ns, child_stat.st_size, child_stat.st_mode))
    except OSError:
        _update_digest(digest, "children:error")
        return digest.hexdigest()

    children.sort()
    for name, mtime_ns, size, mode in children:
        _update_digest(digest, f"child:{name}:{mtime_ns}:{size}:{mode}")
    return digest.hexdigest()


@dataclass(frozen=True)
class DirectorySignature:
    """Result of one background check of a directory."""

    directory: Path
    show_hidden: bool
    signature: str


@dataclass
class DirectoryWatch:
    """Schedules checks of the watched directory and judges their results.

    Only one check is in flight at a time. Signatures are compared against
    the one recorded by the scan that produced the listing on screen, so a
    change made while the directory was not being watched is still noticed.
    """

    poll_seconds: float = 1.0
    directory: Path | None = None
    signature: str | None = None
    last_poll: float | None = None
    in_flight: bool = False

    def reset(self, directory: Path) -> None:
        self.directory = directory
        self.signature = None
        self.last_poll = None
        self.in_flight = False

    def due(self, directory: Path, now: float) -> bool:
        """Return ``True`` and mark a check in flight when one should start."""
        if self.poll_seconds <= 0:
            return False
        if directory != self.directory:
            self.reset(directory)
        if self.in_flight:
            return False
        if self.last_poll is not None and (now - self.last_poll) < self.poll_seconds:
            return False
        self.last_poll = now
        self.in_flight = True
        return True

    def settle(self) -> None:
        self.in_flight = False

    def observe(self, expected: str | None, signature: str) -> bool:
        """Record ``signature`` and report whether the listing on screen is out of date.

        ``expected`` is the signature stored on that listing. Listings built
        without one are compared against the previous check instead.
        """
        baseline = expected if expected is not None else self.signature
        self.signature = signature
        return baseline is not None and baseline != signature


__all__ = ["build_directory_signature", "DirectorySignature", "DirectoryWatch"]
