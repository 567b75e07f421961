"""Terminal control helpers for the TUI session.

Owns raw-mode lifecycle and alternate-screen switching. Foreground commands
hand the terminal back by calling ``disable_tui_mode``/``enable_tui_mode``
around the child process.
"""

from __future__ import annotations

import contextlib
import os
import shutil
import termios
import tty

_ENTER_TUI = b"\x1b[?1049h\x1b[?25l"
_EXIT_TUI = b"\x1b[?25h\x1b[?1049l"


class TerminalController:
    """Manage terminal mode transitions and full-frame writes."""

    def __init__(self, stdin_fd: int, stdout_fd: int) -> None:
        self.stdin_fd = stdin_fd
        self.stdout_fd = stdout_fd
        self._saved_tty_state = termios.tcgetattr(stdin_fd)
        self._tui_enabled = False

    def enable_tui_mode(self) -> None:
        """Enter raw mode on the alternate screen with the cursor hidden."""
        tty.setraw(self.stdin_fd, termios.TCSAFLUSH)
        os.write(self.stdout_fd, _ENTER_TUI)
        self._tui_enabled = True

    def disable_tui_mode(self) -> None:
        """Show the cursor, leave the alternate screen, restore tty settings."""
        if not self._tui_enabled:
            return
        os.write(self.stdout_fd, _EXIT_TUI)
        self._tui_enabled = False
        termios.tcsetattr(self.stdin_fd, termios.TCSAFLUSH, self._saved_tty_state)

    def size(self) -> tuple[int, int]:
        """Return ``(columns, rows)`` with a conservative fallback."""
        term = shutil.get_terminal_size((80, 24))
        return max(1, term.columns), max(1, term.lines)

    def write_frame(self, rows: list[str]) -> None:
        """Redraw the whole screen from the top-left corner."""
        payload = "\x1b[H" + "\r\n".join(f"{row}\x1b[K" for row in rows) + "\x1b[J"
        os.write(self.stdout_fd, payload.encode("utf-8", errors="replace"))

    @contextlib.contextmanager
    def raw_mode(self):
        """Context manager that brackets code with TUI enter/exit calls."""
        try:
            self.enable_tui_mode()
            yield
        finally:
            self.disable_tui_mode()


__all__ = ["TerminalController"]
