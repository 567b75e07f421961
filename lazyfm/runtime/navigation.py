"""Navigation state: directory history, cursor memory, selection, sort, filter.

This module intentionally has no UI or threading concerns. ``NavigationState``
is owned by the main loop and is the single source of truth for what the user
is looking at. Mutators are synchronous; when a directory change needs fresh
data they bump the generation and return a ``Transition`` so the caller can
issue the scan.
"""

from __future__ import annotations

import fnmatch
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from pathlib import Path

from ..file_model.cache import DirectoryCache
from ..file_model.sorting import resort_listing
from ..file_model.types import DirectoryListing, Entry, SortKey, SortPolicy

MAX_DIRECTORY_HISTORY = 256


class DirectoryHistory:
    """Bounded back/forward stacks of visited directories.

    Adjacent duplicate directories are suppressed to avoid no-op steps.
    """

    def __init__(self, max_entries: int = MAX_DIRECTORY_HISTORY) -> None:
        self.max_entries = max(1, max_entries)
        self.back: list[Path] = []
        self.forward: list[Path] = []

    def _append_unique(self, stack: list[Path], directory: Path) -> None:
        if stack and stack[-1] == directory:
            return
        stack.append(directory)
        overflow = len(stack) - self.max_entries
        if overflow > 0:
            del stack[:overflow]

    def record(self, origin: Path) -> None:
        """Push ``origin`` onto the back stack and clear forward history."""
        self._append_unique(self.back, origin)
        self.forward.clear()

    def go_back(self, current: Path) -> Path | None:
        while self.back and self.back[-1] == current:
            self.back.pop()
        if not self.back:
            return None
        target = self.back.pop()
        self._append_unique(self.forward, current)
        return target

    def go_forward(self, current: Path) -> Path | None:
        while self.forward and self.forward[-1] == current:
            self.forward.pop()
        if not self.forward:
            return None
        target = self.forward.pop()
        self._append_unique(self.back, current)
        return target


class SelectionSet:
    """Insertion-ordered set of absolute paths, independent of any listing."""

    def __init__(self) -> None:
        self._paths: dict[Path, None] = {}

    def __contains__(self, path: object) -> bool:
        return path in self._paths

    def __len__(self) -> int:
        return len(self._paths)

    def __iter__(self) -> Iterator[Path]:
        return iter(list(self._paths))

    def toggle(self, path: Path) -> bool:
        """Flip membership of ``path``; return ``True`` when now selected."""
        if path in self._paths:
            del self._paths[path]
            return False
        self._paths[path] = None
        return True

    def add(self, path: Path) -> None:
        self._paths.setdefault(path, None)

    def discard(self, path: Path) -> None:
        self._paths.pop(path, None)

    def clear(self) -> None:
        self._paths.clear()

    def paths(self) -> tuple[Path, ...]:
        return tuple(self._paths)


@dataclass(frozen=True)
class Transition:
    """Result of a directory change; ``needs_scan`` asks the caller to scan."""

    directory: Path
    generation: int
    needs_scan: bool


def build_name_filter(text: str) -> Callable[[Entry], bool] | None:
    """Return an entry predicate for ``text``.

    Text containing glob metacharacters is matched with ``fnmatch``; anything
    else is a case-insensitive substring match. Empty text means no filter.
    """
    needle = text.strip()
    if not needle:
        return None
    if any(ch in needle for ch in "*?["):
        pattern = needle.casefold()
        return lambda entry: fnmatch.fnmatchcase(entry.name.casefold(), pattern)
    folded = needle.casefold()
    return lambda entry: folded in entry.name.casefold()


class NavigationState:
    """Main-loop-owned navigation model."""

    def __init__(
        self,
        start_directory: Path,
        cache: DirectoryCache,
        sort_policy: SortPolicy | None = None,
        show_hidden: bool = False,
    ) -> None:
        self.current_directory = start_directory
        self.cache = cache
        self.history = DirectoryHistory()
        self.cursor_by_directory: dict[Path, int] = {}
        self.current_generation = 0
        self.selection = SelectionSet()
        self.sort_policy = sort_policy if sort_policy is not None else SortPolicy()
        self.show_hidden = show_hidden
        self.filter_text = ""
        self.filter_predicate: Callable[[Entry], bool] | None = None
        self.listing: DirectoryListing | None = None
        self.visible_entries: tuple[Entry, ...] = ()
        self.cursor = 0
        self.awaiting_generation: int | None = None
        self._restore_cursor: int | None = None
        self._focus_name: str | None = None

    @property
    def loading(self) -> bool:
        return self.awaiting_generation is not None

    @property
    def directory_stack(self) -> tuple[Path, ...]:
        """Visited directories in order: back stack, current, forward stack."""
        return (*self.history.back, self.current_directory, *reversed(self.history.forward))

    def bump_generation(self) -> int:
        self.current_generation += 1
        return self.current_generation

    def cursor_entry(self) -> Entry | None:
        if not self.visible_entries:
            return None
        return self.visible_entries[self.cursor]

    def target_paths(self) -> tuple[Path, ...]:
        """Selected paths, or the cursor entry's path when nothing is selected."""
        if self.selection:
            return self.selection.paths()
        entry = self.cursor_entry()
        return (entry.path,) if entry is not None else ()

    # Directory transitions.

    def _goto(self, target: Path, focus_name: str | None = None) -> Transition:
        self.cursor_by_directory[self.current_directory] = self.cursor
        self.current_directory = target
        self._restore_cursor = self.cursor_by_directory.get(target)
        self._focus_name = focus_name if self._restore_cursor is None else None
        self.filter_text = ""
        self.filter_predicate = None
        self.listing = None
        self.visible_entries = ()
        self.cursor = 0

        listing = self.cache.get(target)
        if listing is not None:
            self.awaiting_generation = None
            self.apply_listing(listing)
            return Transition(directory=target, generation=self.current_generation, needs_scan=False)

        generation = self.bump_generation()
        self.awaiting_generation = generation
        stale = self.cache.peek(target)
        if stale is not None:
            self.apply_listing(stale)
        return Transition(directory=target, generation=generation, needs_scan=True)

    def enter(self, child_name: str) -> Transition | None:
        """Descend into ``child_name`` when it is an accessible directory."""
        entry = next((item for item in self.visible_entries if item.name == child_name), None)
        if entry is None or not entry.is_directory_like or entry.error is not None:
            return None
        self.history.record(self.current_directory)
        return self._goto(entry.path)

    def enter_path(self, directory: Path) -> Transition | None:
        """Jump directly to ``directory`` and record it in history."""
        if directory == self.current_directory:
            return None
        self.history.record(self.current_directory)
        return self._goto(directory)

    def parent(self) -> Transition | None:
        parent = self.current_directory.parent
        if parent == self.current_directory:
            return None
        child_name = self.current_directory.name
        self.history.record(self.current_directory)
        return self._goto(parent, focus_name=child_name)

    def back(self) -> Transition | None:
        target = self.history.go_back(self.current_directory)
        if target is None:
            return None
        return self._goto(target)

    def forward(self) -> Transition | None:
        target = self.history.go_forward(self.current_directory)
        if target is None:
            return None
        return self._goto(target)

    def request_rescan(self) -> Transition:
        """Invalidate the current directory and ask for a fresh scan."""
        generation = self.bump_generation()
        self.cache.invalidate(self.current_directory, generation)
        self.awaiting_generation = generation
        return Transition(directory=self.current_directory, generation=generation, needs_scan=True)

    def invalidate_all(self) -> Transition:
        generation = self.bump_generation()
        self.cache.invalidate_all(generation)
        self.awaiting_generation = generation
        return Transition(directory=self.current_directory, generation=generation, needs_scan=True)

    def set_show_hidden(self, show_hidden: bool) -> Transition | None:
        """Hidden entries are filtered at scan time, so toggling rescans."""
        if show_hidden == self.show_hidden:
            return None
        self.show_hidden = show_hidden
        return self.invalidate_all()

    # Listing installation and local view changes.

    def apply_listing(self, listing: DirectoryListing) -> bool:
        """Install ``listing`` when it belongs to the current directory.

        Keeps the cursor on the same entry when possible; after a directory
        change the remembered cursor index is restored and clamped.
        """
        if listing.directory != self.current_directory:
            return False
        if self.awaiting_generation is not None and listing.generation >= self.awaiting_generation:
            self.awaiting_generation = None
        previous = self.cursor_entry()
        self.listing = resort_listing(listing, self.sort_policy)
        self._refresh_visible(previous.name if previous is not None else None)
        return True

    def _refresh_visible(self, keep_name: str | None) -> None:
        entries = self.listing.entries if self.listing is not None else ()
        if self.filter_predicate is not None:
            entries = tuple(entry for entry in entries if self.filter_predicate(entry))
        self.visible_entries = entries

        target_index: int | None = None
        if self._focus_name is not None and self.listing is not None:
            target_index = self._index_of(self._focus_name)
            self._focus_name = None
        elif self._restore_cursor is not None and self.listing is not None:
            target_index = self._restore_cursor
            self._restore_cursor = None
        elif keep_name is not None:
            target_index = self._index_of(keep_name)
        self.cursor = self._clamp(self.cursor if target_index is None else target_index)

    def _index_of(self, name: str) -> int | None:
        for idx, entry in enumerate(self.visible_entries):
            if entry.name == name:
                return idx
        return None

    def _clamp(self, index: int) -> int:
        if not self.visible_entries:
            return 0
        return max(0, min(index, len(self.visible_entries) - 1))

    def move_cursor(self, delta: int) -> bool:
        """Move the cursor by ``delta`` clamped to the visible entries."""
        previous = self.cursor
        self.cursor = self._clamp(self.cursor + delta)
        return self.cursor != previous

    def move_cursor_to(self, index: int) -> bool:
        previous = self.cursor
        self.cursor = self._clamp(index)
        return self.cursor != previous

    def focus_name(self, name: str) -> bool:
        idx = self._index_of(name)
        if idx is None:
            return False
        self.move_cursor_to(idx)
        return True

    def toggle_selection(self, path: Path) -> bool:
        return self.selection.toggle(path)

    def select_all_visible(self) -> None:
        for entry in self.visible_entries:
            self.selection.add(entry.path)

    def clear_selection(self) -> None:
        self.selection.clear()

    def set_sort_policy(self, policy: SortPolicy) -> None:
        """Reorder already-fetched entries; never rescans or touches selection."""
        self.sort_policy = policy
        if self.listing is None:
            return
        previous = self.cursor_entry()
        self.listing = resort_listing(self.listing, policy)
        self._refresh_visible(previous.name if previous is not None else None)

    def set_sort(self, key: SortKey) -> None:
        self.set_sort_policy(self.sort_policy.with_key(key))

    def toggle_directories_first(self) -> None:
        policy = self.sort_policy
        self.set_sort_policy(SortPolicy(policy.key, not policy.directories_first, policy.reverse))

    def toggle_reverse(self) -> None:
        policy = self.sort_policy
        self.set_sort_policy(SortPolicy(policy.key, policy.directories_first, not policy.reverse))

    def set_filter(self, text: str) -> None:
        previous = self.cursor_entry()
        self.filter_text = text.strip()
        self.filter_predicate = build_name_filter(self.filter_text)
        self._refresh_visible(previous.name if previous is not None else None)

    def clear_filter(self) -> None:
        self.set_filter("")


__all__ = [
    "MAX_DIRECTORY_HISTORY",
    "DirectoryHistory",
    "SelectionSet",
    "Transition",
    "build_name_filter",
    "NavigationState",
]
