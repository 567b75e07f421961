"""External command requests built from templates and navigation state.

The dispatcher never runs anything. It expands a ``CommandTemplate`` against
the current cursor, selection, and directory into a ``CommandRequest`` that
the process runner executes.
"""

from __future__ import annotations

import shlex
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from .keymap import CaptureMode, CommandTemplate


@dataclass(frozen=True)
class CommandRequest:
    """Opaque "run this" request handed to the process runner."""

    program: str
    args: tuple[str, ...]
    cwd: Path
    capture_mode: CaptureMode = CaptureMode.INHERIT
    rescan: bool = False
    env: Mapping[str, str] = field(default_factory=dict)
    # Dropped from the selection once the command succeeds.
    clears_selection: tuple[Path, ...] = ()

    @property
    def argv(self) -> list[str]:
        return [self.program, *self.args]

    def display(self) -> str:
        return shlex.join(self.argv)


@dataclass(frozen=True)
class TemplateContext:
    """Values substituted into command templates."""

    cwd: Path
    cursor: Path | None
    targets: tuple[Path, ...]
    input_text: str = ""


def _substitute(part: str, context: TemplateContext) -> str:
    cursor = str(context.cursor) if context.cursor is not None else ""
    name = context.cursor.name if context.cursor is not None else ""
    return (
        part.replace("{cwd}", str(context.cwd))
        .replace("{cursor}", cursor)
        .replace("{name}", name)
        .replace("{input}", context.input_text)
        .replace("{selection}", " ".join(shlex.quote(str(path)) for path in context.targets))
    )


def expand_arguments(parts: tuple[str, ...], context: TemplateContext) -> tuple[str, ...]:
    """Expand placeholders; a bare ``{selection}`` becomes one argument per target."""
    out: list[str] = []
    for part in parts:
        if part == "{selection}":
            out.extend(str(path) for path in context.targets)
            continue
        out.append(_substitute(part, context))
    return tuple(out)


def selection_environment(context: TemplateContext) -> dict[str, str]:
    """Environment variables describing the targets for shell commands."""
    return {
        "LAZYFM_CWD": str(context.cwd),
        "LAZYFM_CURSOR": str(context.cursor) if context.cursor is not None else "",
        "LAZYFM_SELECTION": "\n".join(str(path) for path in context.targets),
    }


def expand_template(template: CommandTemplate, context: TemplateContext) -> CommandRequest:
    """Build a ``CommandRequest`` for ``template`` under ``context``."""
    cwd = context.cwd
    if template.cwd:
        expanded_cwd = Path(_substitute(template.cwd, context)).expanduser()
        cwd = expanded_cwd if expanded_cwd.is_absolute() else context.cwd / expanded_cwd
    return CommandRequest(
        program=_substitute(template.program, context),
        args=expand_arguments(template.args, context),
        cwd=cwd,
        capture_mode=template.capture,
        rescan=template.rescan,
        env=selection_environment(context),
    )


__all__ = [
    "CommandRequest",
    "TemplateContext",
    "expand_arguments",
    "selection_environment",
    "expand_template",
]
