"""Tests for listing sort policies."""

from __future__ import annotations

import unittest
from pathlib import Path

from lazyfm.file_model import DirectoryListing, Entry, EntryKind, SortKey, SortPolicy, resort_listing, sort_entries


def _file(name: str, size: int = 0, modified: float = 0.0) -> Entry:
    return Entry(name=name, path=Path("/d") / name, kind=EntryKind.FILE, size_bytes=size, modified_at=modified)


def _dir(name: str) -> Entry:
    return Entry(name=name, path=Path("/d") / name, kind=EntryKind.DIRECTORY, size_bytes=4096)


def _names(entries) -> list[str]:
    return [entry.name for entry in entries]


class SortEntriesTests(unittest.TestCase):
    def test_directories_first_then_case_insensitive_name(self) -> None:
        entries = [_file("b.txt"), _dir("c"), _file("A.txt"), _dir("B")]

        ordered = sort_entries(entries, SortPolicy())

        self.assertEqual(_names(ordered), ["B", "c", "A.txt", "b.txt"])

    def test_symlink_to_directory_sorts_with_directories(self) -> None:
        link = Entry(name="z-link", path=Path("/d/z-link"), kind=EntryKind.SYMLINK, target_is_directory=True)
        ordered = sort_entries([_file("a"), link], SortPolicy())

        self.assertEqual(_names(ordered), ["z-link", "a"])

    def test_mixed_order_when_directories_first_disabled(self) -> None:
        ordered = sort_entries([_file("b"), _dir("c"), _file("a")], SortPolicy(directories_first=False))

        self.assertEqual(_names(ordered), ["a", "b", "c"])

    def test_size_sort_breaks_ties_by_name(self) -> None:
        entries = [_file("b", size=10), _file("a", size=10), _file("c", size=1)]

        ordered = sort_entries(entries, SortPolicy(key=SortKey.SIZE))

        self.assertEqual(_names(ordered), ["c", "a", "b"])

    def test_reverse_applies_to_primary_key_only(self) -> None:
        entries = [_file("b", size=10), _file("a", size=10), _file("c", size=1)]

        ordered = sort_entries(entries, SortPolicy(key=SortKey.SIZE, reverse=True))

        self.assertEqual(_names(ordered), ["a", "b", "c"])

    def test_modified_sort_puts_unknown_times_first(self) -> None:
        unknown = Entry(name="u", path=Path("/d/u"), kind=EntryKind.FILE)
        entries = [_file("new", modified=20.0), unknown, _file("old", modified=10.0)]

        ordered = sort_entries(entries, SortPolicy(key=SortKey.MODIFIED))

        self.assertEqual(_names(ordered), ["u", "old", "new"])

    def test_sorting_is_idempotent(self) -> None:
        entries = [_file("b", size=3), _dir("x"), _file("a", size=3), _file("C", size=1)]
        policy = SortPolicy(key=SortKey.SIZE, reverse=True)

        once = sort_entries(entries, policy)

        self.assertEqual(sort_entries(once, policy), once)


class ResortListingTests(unittest.TestCase):
    def test_same_policy_returns_same_listing(self) -> None:
        listing = DirectoryListing(directory=Path("/d"), generation=1, entries=(_file("a"),))

        self.assertIs(resort_listing(listing, SortPolicy()), listing)

    def test_new_policy_creates_new_listing(self) -> None:
        listing = DirectoryListing(
            directory=Path("/d"),
            generation=1,
            entries=sort_entries([_file("a", size=5), _file("b", size=1)], SortPolicy()),
        )
        policy = SortPolicy(key=SortKey.SIZE)

        resorted = resort_listing(listing, policy)

        self.assertIsNot(resorted, listing)
        self.assertEqual(_names(resorted.entries), ["b", "a"])
        self.assertEqual(resorted.sort_policy, policy)
        self.assertEqual(_names(listing.entries), ["a", "b"])


if __name__ == "__main__":
    unittest.main()
