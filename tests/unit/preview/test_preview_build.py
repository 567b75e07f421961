"""Tests for preview payload construction."""

from __future__ import annotations

import tempfile
import unittest
from pathlib import Path
from unittest import mock

from lazyfm.errors import ErrorKind
from lazyfm.file_model import build_entry
from lazyfm.preview import (
    DirectoryPreview,
    ErrorPreview,
    TextPreview,
    UnsupportedPreview,
    build_preview,
    payload_summary,
    sanitize_terminal_text,
)
from lazyfm.preview.build import decode_prefix, guess_language, read_prefix


class TextPreviewTests(unittest.TestCase):
    def test_small_text_file_is_read_fully(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp).resolve() / "notes.txt"
            path.write_text("one\ntwo\n", encoding="utf-8")

            payload = build_preview(build_entry("notes.txt", path))

            self.assertIsInstance(payload, TextPreview)
            self.assertEqual(payload.lines, ("one", "two"))
            self.assertFalse(payload.truncated)

    def test_large_file_reads_bounded_prefix(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp).resolve() / "big.log"
            path.write_text("x" * 5000, encoding="utf-8")

            data, truncated = read_prefix(path, 100)
            payload = build_preview(build_entry("big.log", path), max_bytes=100)

            self.assertEqual(len(data), 100)
            self.assertTrue(truncated)
            self.assertTrue(payload.truncated)
            self.assertEqual(payload.lines, ("x" * 100,))

    def test_line_limit_truncates(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp).resolve() / "lines.txt"
            path.write_text("\n".join(str(idx) for idx in range(50)), encoding="utf-8")

            payload = build_preview(build_entry("lines.txt", path), max_lines=10)

            self.assertEqual(len(payload.lines), 10)
            self.assertTrue(payload.truncated)

    def test_language_is_guessed_from_filename(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp).resolve() / "script.py"
            path.write_text("print('hi')\n", encoding="utf-8")

            payload = build_preview(build_entry("script.py", path))

            self.assertEqual(payload.language, "Python")
            self.assertIsNone(guess_language(Path("no-extension-here")))

    def test_control_bytes_are_neutralized(self) -> None:
        self.assertEqual(sanitize_terminal_text("a\x1b[2Jb\tc"), "a\\x1b[2Jb\tc")
        self.assertEqual(sanitize_terminal_text("plain"), "plain")

    def test_truncated_multibyte_character_is_not_an_error(self) -> None:
        data = "héllo".encode("utf-8")[:2]

        self.assertEqual(decode_prefix(data, truncated=True), "h")

    def test_invalid_utf8_falls_back_to_latin1(self) -> None:
        self.assertEqual(decode_prefix(b"caf\xe9", truncated=False), "café")


class NonTextPreviewTests(unittest.TestCase):
    def test_nul_bytes_mark_file_unsupported(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp).resolve() / "blob.dat"
            path.write_bytes(b"abc\x00def")

            payload = build_preview(build_entry("blob.dat", path))

            self.assertEqual(payload, UnsupportedPreview(reason="binary"))

    def test_known_binary_suffix_is_not_read(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp).resolve() / "image.png"
            path.write_text("not really a png", encoding="utf-8")

            with mock.patch("lazyfm.preview.build.read_prefix") as read_prefix_mock:
                payload = build_preview(build_entry("image.png", path))

            read_prefix_mock.assert_not_called()
            self.assertIsInstance(payload, UnsupportedPreview)

    def test_directory_summary_counts_children_without_recursing(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp).resolve()
            (root / "sub").mkdir()
            (root / "sub" / "deep.txt").write_text("x", encoding="utf-8")
            (root / "a.txt").write_text("x", encoding="utf-8")
            (root / ".hidden").write_text("x", encoding="utf-8")

            payload = build_preview(build_entry(root.name, root))

            self.assertIsInstance(payload, DirectoryPreview)
            self.assertEqual(payload.child_count, 3)
            self.assertEqual(payload.directory_count, 1)
            self.assertEqual(payload.file_count, 2)
            self.assertEqual(payload.hidden_count, 1)
            self.assertEqual(payload.sample_names, (".hidden", "a.txt", "sub"))
            self.assertIn("3 items", payload_summary(payload))

    def test_read_failure_becomes_error_payload(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp).resolve() / "vanishing.txt"
            path.write_text("x", encoding="utf-8")
            entry = build_entry("vanishing.txt", path)

            with mock.patch("lazyfm.preview.build.read_prefix", side_effect=PermissionError(13, "Permission denied")):
                payload = build_preview(entry)

            self.assertIsInstance(payload, ErrorPreview)
            self.assertIs(payload.kind, ErrorKind.PERMISSION_DENIED)
            self.assertEqual(payload.detail, "Permission denied")

    def test_deleted_file_becomes_not_found(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp).resolve() / "gone.txt"
            path.write_text("x", encoding="utf-8")
            entry = build_entry("gone.txt", path)
            path.unlink()

            payload = build_preview(entry)

            self.assertIsInstance(payload, ErrorPreview)
            self.assertIs(payload.kind, ErrorKind.NOT_FOUND)


if __name__ == "__main__":
    unittest.main()
