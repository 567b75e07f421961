"""In-memory LRU cache of directory listings keyed by path.

Only the main loop reads or writes the cache. A path can be marked dirty
with an invalidation generation; ``get`` then refuses listings older than the
mark while ``peek`` still returns them so the stale listing can stay on screen
until the rescan lands.
"""

from __future__ import annotations

from collections import OrderedDict
from pathlib import Path

from .types import DirectoryListing

DEFAULT_CACHE_CAPACITY = 64


class DirectoryCache:
    """Recency-ordered listing store with per-path invalidation marks."""

    def __init__(self, capacity: int = DEFAULT_CACHE_CAPACITY) -> None:
        self.capacity = max(1, int(capacity))
        self._listings: OrderedDict[Path, DirectoryListing] = OrderedDict()
        self._invalidated_at: dict[Path, int] = {}

    def __len__(self) -> int:
        return len(self._listings)

    def __contains__(self, path: object) -> bool:
        return path in self._listings

    def paths(self) -> list[Path]:
        """Cached paths from least to most recently used."""
        return list(self._listings)

    def is_dirty(self, path: Path) -> bool:
        listing = self._listings.get(path)
        if listing is None:
            return False
        mark = self._invalidated_at.get(path)
        return mark is not None and listing.generation < mark

    def get(self, path: Path) -> DirectoryListing | None:
        """Return a fresh listing for ``path`` or ``None`` on miss/dirty."""
        listing = self._listings.get(path)
        if listing is None:
            return None
        self._listings.move_to_end(path)
        if self.is_dirty(path):
            return None
        return listing

    def peek(self, path: Path) -> DirectoryListing | None:
        """Return whatever is cached for ``path``, dirty or not."""
        listing = self._listings.get(path)
        if listing is not None:
            self._listings.move_to_end(path)
        return listing

    def put(self, path: Path, listing: DirectoryListing) -> None:
        """Store ``listing``, evicting least-recently-used paths over capacity."""
        self._listings[path] = listing
        self._listings.move_to_end(path)
        mark = self._invalidated_at.get(path)
        if mark is not None and listing.generation >= mark:
            del self._invalidated_at[path]
        while len(self._listings) > self.capacity:
            evicted, _listing = self._listings.popitem(last=False)
            self._invalidated_at.pop(evicted, None)

    def invalidate(self, path: Path, generation: int) -> None:
        """Mark ``path`` dirty for listings older than ``generation``."""
        if path not in self._listings:
            return
        previous = self._invalidated_at.get(path, 0)
        self._invalidated_at[path] = max(previous, generation)

    def invalidate_all(self, generation: int) -> None:
        for path in self._listings:
            self.invalidate(path, generation)

    def discard(self, path: Path) -> None:
        self._listings.pop(path, None)
        self._invalidated_at.pop(path, None)

    def clear(self) -> None:
        self._listings.clear()
        self._invalidated_at.clear()


__all__ = ["DEFAULT_CACHE_CAPACITY", "DirectoryCache"]
