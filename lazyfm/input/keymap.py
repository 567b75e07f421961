"""Keymap compilation: key sequences to built-in actions or command templates.

A keymap is supplied as plain data, ``{sequence: binding}``, and compiled once
into a lookup table of key-token tuples. Bindings are either the name of a
built-in ``Action`` or an external ``CommandTemplate``:

- ``"move_down"``: built-in action name
- ``"!less {cursor}"``: run in the foreground with the terminal handed over
- ``"$du -sh {selection}"``: run and capture output into the status line
- ``"&xdg-open {cursor}"``: spawn detached, output discarded
- ``{"program": ..., "args": [...], "capture": ..., "rescan": ...}``: explicit

Sequences are space separated key tokens (``"g g"``, ``"CTRL_U"``); a token
that is not a named key is split into characters, so ``"gg"`` equals ``"g g"``.
"""

from __future__ import annotations

import logging
import shlex
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum

from .keys import is_named_key

logger = logging.getLogger(__name__)


class Action(str, Enum):
    """Closed set of built-in actions."""

    MOVE_DOWN = "move_down"
    MOVE_UP = "move_up"
    PAGE_DOWN = "page_down"
    PAGE_UP = "page_up"
    HALF_PAGE_DOWN = "half_page_down"
    HALF_PAGE_UP = "half_page_up"
    GO_TOP = "go_top"
    GO_BOTTOM = "go_bottom"
    OPEN = "open"
    PARENT = "parent"
    BACK = "back"
    FORWARD = "forward"
    GO_HOME = "go_home"
    TOGGLE_SELECTION = "toggle_selection"
    SELECT_ALL = "select_all"
    CLEAR_SELECTION = "clear_selection"
    SORT_BY_NAME = "sort_by_name"
    SORT_BY_SIZE = "sort_by_size"
    SORT_BY_MODIFIED = "sort_by_modified"
    TOGGLE_DIRECTORIES_FIRST = "toggle_directories_first"
    TOGGLE_REVERSE = "toggle_reverse"
    TOGGLE_HIDDEN = "toggle_hidden"
    FILTER = "filter"
    CLEAR_FILTER = "clear_filter"
    RENAME = "rename"
    MAKE_DIRECTORY = "make_directory"
    TOUCH = "touch"
    DELETE = "delete"
    SHELL_COMMAND = "shell_command"
    RESCAN = "rescan"
    QUIT = "quit"
    QUIT_AND_EMIT = "quit_and_emit"
    QUIT_CD = "quit_cd"


PROMPT_ACTIONS = frozenset(
    {Action.FILTER, Action.RENAME, Action.MAKE_DIRECTORY, Action.TOUCH, Action.DELETE, Action.SHELL_COMMAND}
)
COUNTED_ACTIONS = frozenset(
    {
        Action.MOVE_DOWN,
        Action.MOVE_UP,
        Action.PAGE_DOWN,
        Action.PAGE_UP,
        Action.HALF_PAGE_DOWN,
        Action.HALF_PAGE_UP,
        Action.TOGGLE_SELECTION,
        Action.PARENT,
        Action.BACK,
        Action.FORWARD,
    }
)


class CaptureMode(str, Enum):
    """How the process runner treats a command's stdio."""

    INHERIT = "inherit"
    CAPTURE = "capture"
    DISCARD = "discard"


_SHELL_PREFIXES = {
    "!": CaptureMode.INHERIT,
    "$": CaptureMode.CAPTURE,
    "&": CaptureMode.DISCARD,
}


@dataclass(frozen=True)
class CommandTemplate:
    """External command with ``{cursor}``/``{name}``/``{cwd}``/``{selection}``/``{input}`` slots."""

    program: str
    args: tuple[str, ...] = ()
    cwd: str | None = None
    capture: CaptureMode = CaptureMode.INHERIT
    rescan: bool = False
    prompt: str | None = None

    @property
    def needs_input(self) -> bool:
        return any("{input}" in part for part in (self.program, *self.args))


Binding = Action | CommandTemplate


class KeymapError(ValueError):
    """A single keymap entry could not be compiled."""


def parse_sequence(sequence: str) -> tuple[str, ...]:
    """Split a keymap sequence string into key tokens."""
    tokens: list[str] = []
    for part in sequence.split():
        if is_named_key(part):
            tokens.append(part)
        else:
            tokens.extend(part)
    if not tokens and sequence == " ":
        tokens.append("SPACE")
    if not tokens:
        raise KeymapError(f"empty key sequence: {sequence!r}")
    return tuple(tokens)


def parse_binding(value: object) -> Binding:
    """Compile one keymap value into an ``Action`` or ``CommandTemplate``."""
    if isinstance(value, Action | CommandTemplate):
        return value
    if isinstance(value, str):
        text = value.strip()
        if text[:1] in _SHELL_PREFIXES:
            capture = _SHELL_PREFIXES[text[0]]
            try:
                parts = shlex.split(text[1:])
            except ValueError as exc:
                raise KeymapError(f"cannot parse command {value!r}: {exc}") from exc
            if not parts:
                raise KeymapError(f"empty command: {value!r}")
            return CommandTemplate(
                program=parts[0],
                args=tuple(parts[1:]),
                capture=capture,
                rescan=capture is not CaptureMode.DISCARD,
            )
        try:
            return Action(text)
        except ValueError as exc:
            raise KeymapError(f"unknown action: {value!r}") from exc
    if isinstance(value, Mapping):
        program = value.get("program")
        if not isinstance(program, str) or not program.strip():
            raise KeymapError(f"command needs a program: {value!r}")
        raw_args = value.get("args", ())
        if not isinstance(raw_args, list | tuple) or not all(isinstance(arg, str) for arg in raw_args):
            raise KeymapError(f"command args must be strings: {value!r}")
        cwd = value.get("cwd")
        prompt = value.get("prompt")
        try:
            capture = CaptureMode(value.get("capture", CaptureMode.INHERIT.value))
        except ValueError as exc:
            raise KeymapError(f"unknown capture mode: {value!r}") from exc
        return CommandTemplate(
            program=program.strip(),
            args=tuple(raw_args),
            cwd=cwd if isinstance(cwd, str) else None,
            capture=capture,
            rescan=bool(value.get("rescan", False)),
            prompt=prompt if isinstance(prompt, str) else None,
        )
    raise KeymapError(f"unsupported binding: {value!r}")


class Keymap:
    """Compiled sequence table plus the set of strict prefixes."""

    def __init__(self, bindings: dict[tuple[str, ...], Binding]) -> None:
        self.bindings = bindings
        self.prefixes: frozenset[tuple[str, ...]] = frozenset(
            sequence[:idx] for sequence in bindings for idx in range(1, len(sequence))
        )

    @classmethod
    def compile(cls, *mappings: Mapping[str, object]) -> Keymap:
        """Merge ``mappings`` left to right and compile them.

        ``None``/empty values unbind. Invalid entries and sequences shadowed by
        a shorter complete binding are dropped with a warning.
        """
        merged: dict[tuple[str, ...], Binding] = {}
        for mapping in mappings:
            for raw_sequence, raw_value in mapping.items():
                try:
                    sequence = parse_sequence(str(raw_sequence))
                    if raw_value is None or raw_value == "":
                        merged.pop(sequence, None)
                        continue
                    merged[sequence] = parse_binding(raw_value)
                except KeymapError as exc:
                    logger.warning("Ignoring keymap entry %r: %s", raw_sequence, exc)

        compiled: dict[tuple[str, ...], Binding] = {}
        for sequence in sorted(merged, key=len):
            shadow = next((sequence[:idx] for idx in range(1, len(sequence)) if sequence[:idx] in compiled), None)
            if shadow is not None:
                logger.warning(
                    "Ignoring keymap entry %r: shadowed by %r",
                    " ".join(sequence),
                    " ".join(shadow),
                )
                continue
            compiled[sequence] = merged[sequence]
        return cls(compiled)

    def lookup(self, sequence: tuple[str, ...]) -> Binding | None:
        return self.bindings.get(sequence)

    def is_prefix(self, sequence: tuple[str, ...]) -> bool:
        return sequence in self.prefixes

    def describe(self) -> list[tuple[str, str]]:
        """``(sequence, binding)`` label pairs sorted by sequence, for help output."""
        rows: list[tuple[str, str]] = []
        for sequence, binding in self.bindings.items():
            if isinstance(binding, Action):
                label = binding.value
            else:
                label = " ".join((binding.program, *binding.args))
            rows.append((" ".join(sequence), label))
        rows.sort()
        return rows


DEFAULT_KEYMAP: dict[str, object] = {
    "j": Action.MOVE_DOWN.value,
    "DOWN": Action.MOVE_DOWN.value,
    "k": Action.MOVE_UP.value,
    "UP": Action.MOVE_UP.value,
    "CTRL_F": Action.PAGE_DOWN.value,
    "PAGE_DOWN": Action.PAGE_DOWN.value,
    "CTRL_B": Action.PAGE_UP.value,
    "PAGE_UP": Action.PAGE_UP.value,
    "CTRL_D": Action.HALF_PAGE_DOWN.value,
    "CTRL_U": Action.HALF_PAGE_UP.value,
    "g g": Action.GO_TOP.value,
    "HOME": Action.GO_TOP.value,
    "G": Action.GO_BOTTOM.value,
    "END": Action.GO_BOTTOM.value,
    "l": Action.OPEN.value,
    "RIGHT": Action.OPEN.value,
    "ENTER": Action.OPEN.value,
    "h": Action.PARENT.value,
    "LEFT": Action.PARENT.value,
    "BACKSPACE": Action.PARENT.value,
    "H": Action.BACK.value,
    "L": Action.FORWARD.value,
    "g h": Action.GO_HOME.value,
    "SPACE": Action.TOGGLE_SELECTION.value,
    "v": Action.SELECT_ALL.value,
    "u": Action.CLEAR_SELECTION.value,
    "s n": Action.SORT_BY_NAME.value,
    "s s": Action.SORT_BY_SIZE.value,
    "s m": Action.SORT_BY_MODIFIED.value,
    "s d": Action.TOGGLE_DIRECTORIES_FIRST.value,
    "s r": Action.TOGGLE_REVERSE.value,
    "z h": Action.TOGGLE_HIDDEN.value,
    ".": Action.TOGGLE_HIDDEN.value,
    "/": Action.FILTER.value,
    "ESC": Action.CLEAR_FILTER.value,
    "r": Action.RENAME.value,
    "m": Action.MAKE_DIRECTORY.value,
    "t": Action.TOUCH.value,
    "D": Action.DELETE.value,
    "!": Action.SHELL_COMMAND.value,
    "CTRL_R": Action.RESCAN.value,
    "q": Action.QUIT.value,
    "Q": Action.QUIT_AND_EMIT.value,
    "CTRL_Q": Action.QUIT_CD.value,
    "p": "$cp -r -- {selection} {cwd}/",
    "d u": "$du -sh -- {selection}",
}


def default_keymap() -> Keymap:
    return Keymap.compile(DEFAULT_KEYMAP)


__all__ = [
    "Action",
    "PROMPT_ACTIONS",
    "COUNTED_ACTIONS",
    "CaptureMode",
    "CommandTemplate",
    "Binding",
    "KeymapError",
    "parse_sequence",
    "parse_binding",
    "Keymap",
    "DEFAULT_KEYMAP",
    "default_keymap",
]
