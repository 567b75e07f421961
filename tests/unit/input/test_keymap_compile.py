"""Tests for keymap parsing and compilation."""

from __future__ import annotations

import unittest

from lazyfm.input.keymap import (
    DEFAULT_KEYMAP,
    Action,
    CaptureMode,
    CommandTemplate,
    Keymap,
    KeymapError,
    parse_binding,
    parse_sequence,
)


class ParseSequenceTests(unittest.TestCase):
    def test_literal_characters_split_and_named_keys_kept(self) -> None:
        self.assertEqual(parse_sequence("gg"), ("g", "g"))
        self.assertEqual(parse_sequence("g g"), ("g", "g"))
        self.assertEqual(parse_sequence("CTRL_U"), ("CTRL_U",))
        self.assertEqual(parse_sequence("z CTRL_H"), ("z", "CTRL_H"))

    def test_lone_space_means_space_key(self) -> None:
        self.assertEqual(parse_sequence(" "), ("SPACE",))

    def test_empty_sequence_is_rejected(self) -> None:
        with self.assertRaises(KeymapError):
            parse_sequence("")


class ParseBindingTests(unittest.TestCase):
    def test_action_names(self) -> None:
        self.assertIs(parse_binding("move_down"), Action.MOVE_DOWN)
        with self.assertRaises(KeymapError):
            parse_binding("fly")

    def test_shell_prefixes_select_capture_mode(self) -> None:
        inherit = parse_binding("!less {cursor}")
        capture = parse_binding("$du -sh {selection}")
        discard = parse_binding("&xdg-open {cursor}")

        self.assertEqual(inherit, CommandTemplate("less", ("{cursor}",), capture=CaptureMode.INHERIT, rescan=True))
        self.assertIs(capture.capture, CaptureMode.CAPTURE)
        self.assertEqual(capture.args, ("-sh", "{selection}"))
        self.assertIs(discard.capture, CaptureMode.DISCARD)
        self.assertFalse(discard.rescan)

    def test_explicit_mapping(self) -> None:
        template = parse_binding(
            {"program": "tar", "args": ["czf", "{input}.tgz", "{selection}"], "capture": "capture", "rescan": True}
        )

        self.assertEqual(template.program, "tar")
        self.assertTrue(template.needs_input)
        self.assertTrue(template.rescan)

    def test_malformed_commands_are_rejected(self) -> None:
        for value in ("!", "$'unterminated", {"args": ["x"]}, {"program": "x", "args": [1]}, {"program": "x", "capture": "pipe"}, 42):
            with self.subTest(value=value), self.assertRaises(KeymapError):
                parse_binding(value)


class KeymapCompileTests(unittest.TestCase):
    def test_default_keymap_compiles_without_warnings(self) -> None:
        keymap = Keymap.compile(DEFAULT_KEYMAP)

        self.assertIs(keymap.lookup(("g", "g")), Action.GO_TOP)
        self.assertTrue(keymap.is_prefix(("g",)))
        self.assertFalse(keymap.is_prefix(("g", "g")))
        self.assertIs(keymap.lookup(("SPACE",)), Action.TOGGLE_SELECTION)

    def test_overrides_replace_and_unbind(self) -> None:
        keymap = Keymap.compile(DEFAULT_KEYMAP, {"j": "move_up", "q": None})

        self.assertIs(keymap.lookup(("j",)), Action.MOVE_UP)
        self.assertIsNone(keymap.lookup(("q",)))

    def test_shorter_binding_shadows_longer_sequence(self) -> None:
        with self.assertLogs("lazyfm.input.keymap", level="WARNING") as logs:
            keymap = Keymap.compile({"g": "go_top", "g g": "go_bottom"})

        self.assertIs(keymap.lookup(("g",)), Action.GO_TOP)
        self.assertIsNone(keymap.lookup(("g", "g")))
        self.assertFalse(keymap.is_prefix(("g",)))
        self.assertIn("shadowed", logs.output[0])

    def test_invalid_entries_are_skipped(self) -> None:
        with self.assertLogs("lazyfm.input.keymap", level="WARNING"):
            keymap = Keymap.compile({"j": "move_down", "x": "explode"})

        self.assertEqual(list(keymap.bindings), [("j",)])

    def test_describe_lists_sorted_labels(self) -> None:
        keymap = Keymap.compile({"j": "move_down", "d u": "$du -sh {selection}"})

        self.assertEqual(keymap.describe(), [("d u", "du -sh {selection}"), ("j", "move_down")])


if __name__ == "__main__":
    unittest.main()
