"""Interactive bootstrap: wires the engine to the terminal and process runner.

The loop is wiring only. Keys are read without blocking, the engine drains
its completion channel for at most one render tick, and the latest snapshot
is redrawn when it changed or the terminal was resized.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from ..config import save_show_hidden
from ..input.keymap import Action, Keymap
from ..input.keys import read_key
from ..render import build_frame
from ..terminal import TerminalController
from .engine import RENDER_TICK_SECONDS, Engine, EngineOptions, RenderState
from .process import run_command_request

logger = logging.getLogger(__name__)

MAX_KEYS_PER_TICK = 64


@dataclass(frozen=True)
class SessionResult:
    """How the session ended and which paths it emitted."""

    action: Action | None
    paths: tuple[Path, ...] | None


class FrameSink:
    """Keeps the newest snapshot until the loop draws it."""

    def __init__(self) -> None:
        self.snapshot: RenderState | None = None
        self.dirty = False

    def __call__(self, snapshot: RenderState) -> None:
        self.snapshot = snapshot
        self.dirty = True


def run_main_loop(
    engine: Engine,
    terminal: TerminalController,
    stdin_fd: int,
    sink: FrameSink,
    read_key_fn: Callable[..., str] = read_key,
    tick_seconds: float = RENDER_TICK_SECONDS,
) -> None:
    """Run until the engine reports a quit request."""
    last_size: tuple[int, int] | None = None
    while not engine.quit_requested:
        size = terminal.size()
        if size != last_size:
            last_size = size
            engine.dispatcher.page_size = max(1, size[1] - 2)
            sink.dirty = sink.snapshot is not None
        if sink.dirty and sink.snapshot is not None:
            terminal.write_frame(build_frame(sink.snapshot, *size))
            sink.dirty = False

        handled = 0
        while handled < MAX_KEYS_PER_TICK and not engine.quit_requested:
            key = read_key_fn(stdin_fd, timeout_ms=0)
            if not key:
                break
            handled += 1
            for request in engine.handle_key(key):
                outcome = run_command_request(request, terminal.disable_tui_mode, terminal.enable_tui_mode)
                engine.complete_command(request, outcome)
                sink.dirty = True
        if engine.quit_requested:
            break
        engine.tick(0.0 if handled else tick_seconds)


def run_file_manager(
    start_directory: Path,
    *,
    options: EngineOptions,
    keymap: Keymap,
    opener: tuple[str, ...] = (),
) -> SessionResult:
    """Browse from ``start_directory`` until a quit action.

    Raises ``StartupDirectoryError`` before the terminal is touched when the
    start directory cannot be listed.
    """
    sink = FrameSink()
    engine = Engine(
        start_directory,
        options=options,
        keymap=keymap,
        opener=opener,
        render=sink,
        on_show_hidden_changed=save_show_hidden,
    )
    engine.start()

    stdin_fd = sys.stdin.fileno()
    terminal = TerminalController(stdin_fd, sys.stdout.fileno())
    with terminal.raw_mode():
        run_main_loop(engine, terminal, stdin_fd, sink)
    logger.info(
        "Exiting with generation %d, %d stale results discarded",
        engine.state.current_generation,
        engine.discarded_count,
    )
    return SessionResult(action=engine.quit_action, paths=engine.emitted)


__all__ = ["MAX_KEYS_PER_TICK", "SessionResult", "FrameSink", "run_main_loop", "run_file_manager"]
