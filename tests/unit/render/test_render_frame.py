"""Tests for frame layout and text fitting."""

from __future__ import annotations

import unittest
from dataclasses import replace
from pathlib import Path

from lazyfm.errors import ErrorKind
from lazyfm.file_model import Entry, EntryKind, SortPolicy
from lazyfm.preview import ErrorPreview, TextPreview
from lazyfm.render import build_frame, entry_label, fit_width, footer_row, format_entry_row, format_size, header_row, preview_lines
from lazyfm.runtime.engine import RenderEntry, RenderState

ROOT = Path("/w")


def _snapshot(count: int = 3, cursor: int | None = 0, **overrides) -> RenderState:
    entries = tuple(
        RenderEntry(
            entry=Entry(name=f"f{idx}.txt", path=ROOT / f"f{idx}.txt", kind=EntryKind.FILE, size_bytes=idx),
            selected=False,
            is_cursor=idx == cursor,
        )
        for idx in range(count)
    )
    state = RenderState(
        current_directory=ROOT,
        visible_entries=entries,
        preview=None,
        status_message="",
        mode="idle",
        prompt=None,
        pending_keys="",
        loading=False,
        filter_text="",
        sort_policy=SortPolicy(),
        selection_count=0,
        generation=0,
    )
    return replace(state, **overrides)


def _strip_styles(row: str) -> str:
    return row.replace("\x1b[7m", "").replace("\x1b[1m", "").replace("\x1b[0m", "")


class TextFittingTests(unittest.TestCase):
    def test_fit_width_pads_and_clips(self) -> None:
        self.assertEqual(fit_width("abc", 5), "abc  ")
        self.assertEqual(fit_width("abcdef", 3), "abc")
        self.assertEqual(fit_width("x", 0), "")

    def test_wide_characters_count_double(self) -> None:
        self.assertEqual(fit_width("日本語", 5), "日本 ")

    def test_format_size(self) -> None:
        self.assertEqual(format_size(None), "")
        self.assertEqual(format_size(512), "512B")
        self.assertEqual(format_size(2048), "2.0K")
        self.assertEqual(format_size(5 * 1024 * 1024), "5.0M")

    def test_entry_labels(self) -> None:
        directory = Entry(name="docs", path=ROOT / "docs", kind=EntryKind.DIRECTORY)
        link = Entry(
            name="cur",
            path=ROOT / "cur",
            kind=EntryKind.SYMLINK,
            link_target="releases/1",
            target_is_directory=True,
        )

        self.assertEqual(entry_label(directory), "docs/")
        self.assertEqual(entry_label(link), "cur@/ -> releases/1")


class RowTests(unittest.TestCase):
    def test_cursor_row_is_reverse_video_and_selection_marked(self) -> None:
        entry = Entry(name="a.txt", path=ROOT / "a.txt", kind=EntryKind.FILE, size_bytes=10)

        row = format_entry_row(RenderEntry(entry=entry, selected=True, is_cursor=True), 20)

        self.assertTrue(row.startswith("\x1b[7m*"))
        self.assertEqual(len(_strip_styles(row)), 20)
        self.assertTrue(_strip_styles(row).rstrip().endswith("10B"))

    def test_entry_error_replaces_size(self) -> None:
        entry = Entry(name="x", path=ROOT / "x", kind=EntryKind.FILE, error=ErrorKind.PERMISSION_DENIED)

        row = format_entry_row(RenderEntry(entry=entry, selected=False, is_cursor=False), 30)

        self.assertIn("permission denied", row)

    def test_header_lists_filter_selection_and_loading(self) -> None:
        header = header_row(_snapshot(filter_text="txt", selection_count=2, loading=True))

        self.assertEqual(header, "/w  [name]  filter: txt  2 selected  loading...")

    def test_footer_prefers_prompt_then_pending_keys(self) -> None:
        self.assertEqual(footer_row(_snapshot(prompt="filter: a", pending_keys="g", status_message="x")), "filter: a")
        self.assertEqual(footer_row(_snapshot(pending_keys="3g", status_message="x")), "3g")
        self.assertEqual(footer_row(_snapshot(status_message="done")), "done")

    def test_preview_lines(self) -> None:
        self.assertEqual(preview_lines(None, loading=True), ["loading..."])
        self.assertEqual(preview_lines(TextPreview(lines=("a",), truncated=True), loading=False), ["a", "..."])
        error_lines = preview_lines(ErrorPreview(kind=ErrorKind.NOT_FOUND, detail="gone"), loading=False)
        self.assertEqual(error_lines[-1], "gone")


class BuildFrameTests(unittest.TestCase):
    def test_frame_has_exact_row_count_and_width(self) -> None:
        frame = build_frame(_snapshot(preview=TextPreview(lines=("hello",))), 40, 8)

        self.assertEqual(len(frame), 8)
        for row in frame:
            self.assertEqual(len(_strip_styles(row)), 40)
        self.assertIn("hello", frame[1])
        self.assertIn("|", frame[1])

    def test_listing_scrolls_to_keep_cursor_visible(self) -> None:
        frame = build_frame(_snapshot(count=30, cursor=25), 60, 10)

        body = "\n".join(frame[1:-1])
        self.assertIn("f25.txt", body)
        self.assertNotIn("f0.txt", body)

    def test_empty_and_loading_placeholders(self) -> None:
        self.assertIn("(empty)", build_frame(_snapshot(count=0, cursor=None), 40, 5)[1])
        self.assertIn("(loading)", build_frame(_snapshot(count=0, cursor=None, loading=True), 40, 5)[1])


if __name__ == "__main__":
    unittest.main()
