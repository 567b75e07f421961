"""Tests for navigation history, cursor memory, selection, sort and filter."""

from __future__ import annotations

import unittest
from pathlib import Path

from lazyfm.file_model import DirectoryCache, DirectoryListing, Entry, EntryKind, SortKey, SortPolicy, sort_entries
from lazyfm.runtime.navigation import DirectoryHistory, NavigationState, build_name_filter

ROOT = Path("/a")
CHILD = ROOT / "c"


def _file(directory: Path, name: str, size: int = 0) -> Entry:
    return Entry(name=name, path=directory / name, kind=EntryKind.FILE, size_bytes=size)


def _dir(directory: Path, name: str) -> Entry:
    return Entry(name=name, path=directory / name, kind=EntryKind.DIRECTORY)


def _listing(directory: Path, generation: int, *entries: Entry) -> DirectoryListing:
    return DirectoryListing(
        directory=directory,
        generation=generation,
        entries=sort_entries(entries, SortPolicy()),
        sort_policy=SortPolicy(),
    )


def _state_with(*listings: DirectoryListing) -> NavigationState:
    cache = DirectoryCache()
    for listing in listings:
        cache.put(listing.directory, listing)
    state = NavigationState(ROOT, cache)
    state.apply_listing(cache.get(ROOT))
    return state


def _root_listing() -> DirectoryListing:
    return _listing(ROOT, 0, _file(ROOT, "b.txt", 10), _dir(ROOT, "c"), _file(ROOT, "d.txt"))


def _child_listing(generation: int = 0, count: int = 4) -> DirectoryListing:
    return _listing(CHILD, generation, *(_file(CHILD, f"f{idx}.txt", idx) for idx in range(count)))


class DirectoryTransitionTests(unittest.TestCase):
    def test_enter_uncached_directory_bumps_generation_and_requests_scan(self) -> None:
        state = _state_with(_root_listing())

        transition = state.enter("c")

        self.assertIsNotNone(transition)
        self.assertEqual(transition.directory, CHILD)
        self.assertTrue(transition.needs_scan)
        self.assertEqual(transition.generation, 1)
        self.assertEqual(state.current_generation, 1)
        self.assertTrue(state.loading)
        self.assertEqual(state.visible_entries, ())

    def test_enter_cached_directory_keeps_generation(self) -> None:
        state = _state_with(_root_listing(), _child_listing())

        transition = state.enter("c")

        self.assertFalse(transition.needs_scan)
        self.assertEqual(state.current_generation, 0)
        self.assertFalse(state.loading)
        self.assertEqual(len(state.visible_entries), 4)

    def test_enter_dirty_directory_shows_stale_listing_while_scanning(self) -> None:
        cache = DirectoryCache()
        cache.put(ROOT, _root_listing())
        cache.put(CHILD, _child_listing())
        cache.invalidate(CHILD, 1)
        state = NavigationState(ROOT, cache)
        state.apply_listing(cache.get(ROOT))

        transition = state.enter("c")

        self.assertTrue(transition.needs_scan)
        self.assertTrue(state.loading)
        self.assertEqual(len(state.visible_entries), 4)

    def test_enter_refuses_files_and_unknown_names(self) -> None:
        state = _state_with(_root_listing())

        self.assertIsNone(state.enter("b.txt"))
        self.assertIsNone(state.enter("nope"))
        self.assertEqual(state.current_directory, ROOT)
        self.assertEqual(state.current_generation, 0)

    def test_listing_for_other_directory_is_not_installed(self) -> None:
        state = _state_with(_root_listing())
        state.enter("c")

        self.assertFalse(state.apply_listing(_root_listing()))
        self.assertEqual(state.visible_entries, ())
        self.assertTrue(state.apply_listing(_child_listing(generation=1)))
        self.assertFalse(state.loading)

    def test_parent_focuses_directory_that_was_left(self) -> None:
        state = _state_with(_root_listing(), _child_listing())
        state.current_directory = CHILD
        state.apply_listing(_child_listing())

        state.parent()

        self.assertEqual(state.current_directory, ROOT)
        self.assertEqual(state.cursor_entry().name, "c")

    def test_filesystem_root_has_no_parent(self) -> None:
        state = NavigationState(Path("/"), DirectoryCache())
        self.assertIsNone(state.parent())


class SelectionPersistenceTests(unittest.TestCase):
    def test_selection_and_cursor_survive_back_and_forward(self) -> None:
        state = _state_with(_root_listing(), _child_listing())
        state.enter("c")
        state.move_cursor(1)
        state.toggle_selection(CHILD / "f1.txt")
        state.move_cursor(1)
        state.toggle_selection(CHILD / "f2.txt")

        state.back()
        self.assertEqual(state.current_directory, ROOT)
        self.assertEqual(state.cursor_entry().name, "c")

        transition = state.forward()
        self.assertEqual(transition.directory, CHILD)
        self.assertEqual(state.selection.paths(), (CHILD / "f1.txt", CHILD / "f2.txt"))
        self.assertEqual(state.cursor, 2)

    def test_restored_cursor_is_clamped_when_directory_shrank(self) -> None:
        state = _state_with(_root_listing(), _child_listing())
        state.enter("c")
        state.move_cursor_to(3)
        state.back()
        state.cache.invalidate(CHILD, state.bump_generation())

        transition = state.forward()
        self.assertTrue(transition.needs_scan)
        state.apply_listing(_child_listing(generation=transition.generation, count=2))

        self.assertEqual(state.cursor, 1)
        self.assertEqual(state.cursor_entry().name, "f1.txt")

    def test_cursor_is_zero_for_empty_listing(self) -> None:
        state = _state_with(_root_listing(), _listing(CHILD, 0))
        state.enter("c")

        self.assertEqual(state.cursor, 0)
        self.assertIsNone(state.cursor_entry())
        self.assertFalse(state.move_cursor(5))
        self.assertEqual(state.target_paths(), ())

    def test_target_paths_prefers_selection_over_cursor(self) -> None:
        state = _state_with(_root_listing())
        self.assertEqual(state.target_paths(), (ROOT / "c",))

        state.toggle_selection(ROOT / "d.txt")
        state.toggle_selection(ROOT / "b.txt")

        self.assertEqual(state.target_paths(), (ROOT / "d.txt", ROOT / "b.txt"))

    def test_toggle_twice_removes_path(self) -> None:
        state = _state_with(_root_listing())
        self.assertTrue(state.toggle_selection(ROOT / "b.txt"))
        self.assertFalse(state.toggle_selection(ROOT / "b.txt"))
        self.assertEqual(len(state.selection), 0)

    def test_select_all_visible_respects_filter(self) -> None:
        state = _state_with(_root_listing())
        state.set_filter("txt")
        state.select_all_visible()

        self.assertEqual(set(state.selection), {ROOT / "b.txt", ROOT / "d.txt"})


class CursorBoundsTests(unittest.TestCase):
    def test_move_cursor_clamps_to_entry_range(self) -> None:
        state = _state_with(_root_listing())

        self.assertTrue(state.move_cursor(10))
        self.assertEqual(state.cursor, 2)
        self.assertFalse(state.move_cursor(1))
        self.assertTrue(state.move_cursor(-10))
        self.assertEqual(state.cursor, 0)

    def test_back_restores_in_bounds_cursor_for_any_history(self) -> None:
        for count in range(0, 6):
            for remembered in range(0, 6):
                with self.subTest(count=count, remembered=remembered):
                    state = _state_with(_root_listing(), _child_listing(count=5))
                    state.enter("c")
                    state.move_cursor_to(remembered)
                    state.parent()
                    state.cache.put(CHILD, _child_listing(count=count))
                    state.back()

                    if count == 0:
                        self.assertEqual(state.cursor, 0)
                    else:
                        self.assertTrue(0 <= state.cursor < count)


class SortAndFilterTests(unittest.TestCase):
    def test_sort_keeps_cursor_entry_and_selection(self) -> None:
        state = _state_with(_root_listing())
        state.toggle_selection(ROOT / "d.txt")
        state.focus_name("b.txt")

        state.set_sort(SortKey.SIZE)
        first_order = [entry.name for entry in state.visible_entries]
        state.set_sort(SortKey.SIZE)

        self.assertEqual([entry.name for entry in state.visible_entries], first_order)
        self.assertEqual(first_order, ["c", "d.txt", "b.txt"])
        self.assertEqual(state.cursor_entry().name, "b.txt")
        self.assertEqual(state.selection.paths(), (ROOT / "d.txt",))
        self.assertEqual(state.current_generation, 0)

    def test_toggles_update_policy(self) -> None:
        state = _state_with(_root_listing())

        state.toggle_directories_first()
        self.assertEqual([entry.name for entry in state.visible_entries], ["b.txt", "c", "d.txt"])
        state.toggle_reverse()
        self.assertEqual(state.sort_policy, SortPolicy(SortKey.NAME, False, True))
        self.assertEqual([entry.name for entry in state.visible_entries], ["d.txt", "c", "b.txt"])

    def test_filter_narrows_visible_entries_and_clears_on_directory_change(self) -> None:
        state = _state_with(_root_listing(), _child_listing())

        state.set_filter("*.TXT")
        self.assertEqual([entry.name for entry in state.visible_entries], ["b.txt", "d.txt"])
        state.clear_filter()
        self.assertEqual(len(state.visible_entries), 3)

        state.set_filter("c")
        state.enter("c")
        self.assertEqual(state.filter_text, "")
        self.assertEqual(len(state.visible_entries), 4)

    def test_show_hidden_toggle_invalidates_and_rescans(self) -> None:
        state = _state_with(_root_listing())

        transition = state.set_show_hidden(True)

        self.assertTrue(transition.needs_scan)
        self.assertTrue(state.cache.is_dirty(ROOT))
        self.assertIsNone(state.set_show_hidden(True))

    def test_request_rescan_marks_current_directory_dirty(self) -> None:
        state = _state_with(_root_listing())

        transition = state.request_rescan()

        self.assertEqual(transition.generation, 1)
        self.assertTrue(state.cache.is_dirty(ROOT))
        self.assertTrue(state.loading)


class NameFilterTests(unittest.TestCase):
    def test_substring_is_case_insensitive(self) -> None:
        predicate = build_name_filter("READ")
        self.assertTrue(predicate(_file(ROOT, "readme.md")))
        self.assertFalse(predicate(_file(ROOT, "notes.md")))

    def test_blank_text_means_no_filter(self) -> None:
        self.assertIsNone(build_name_filter("   "))


class DirectoryHistoryTests(unittest.TestCase):
    def test_history_is_bounded(self) -> None:
        history = DirectoryHistory(max_entries=3)
        for idx in range(5):
            history.record(Path(f"/d{idx}"))

        self.assertEqual(history.back, [Path("/d2"), Path("/d3"), Path("/d4")])

    def test_new_record_clears_forward_history(self) -> None:
        history = DirectoryHistory()
        history.record(Path("/a"))
        self.assertEqual(history.go_back(Path("/b")), Path("/a"))
        self.assertEqual(history.forward, [Path("/b")])

        history.record(Path("/a"))
        self.assertEqual(history.forward, [])


if __name__ == "__main__":
    unittest.main()
