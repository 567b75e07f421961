"""External command execution for dispatcher requests.

Foreground commands run while the TUI is suspended. Captured commands run to
completion with their output returned for the status line; those that change
the filesystem (``rescan`` requests) are never timed out, the rest are killed
after ``CAPTURE_TIMEOUT_SECONDS``. Discarded commands are spawned detached and
not waited for. Failures are returned in the ``CommandOutcome`` rather than
raised, for UI-friendly handling.
"""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
from collections.abc import Callable, Mapping
from dataclasses import dataclass

from ..input.commands import CommandRequest
from ..input.keymap import CaptureMode

logger = logging.getLogger(__name__)

CAPTURE_TIMEOUT_SECONDS = 60.0


@dataclass(frozen=True)
class CommandOutcome:
    returncode: int | None
    stdout: str = ""
    stderr: str = ""
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and (self.returncode is None or self.returncode == 0)

    def summary(self, request: CommandRequest) -> str:
        """One status-line message for the finished command."""
        if self.error is not None:
            return self.error
        if self.returncode not in (None, 0):
            detail = _last_line(self.stderr) or _last_line(self.stdout)
            suffix = f": {detail}" if detail else ""
            return f"{request.program} exited with {self.returncode}{suffix}"
        return _last_line(self.stdout)


def _last_line(text: str) -> str:
    lines = [line for line in text.splitlines() if line.strip()]
    return lines[-1].strip() if lines else ""


def resolve_opener(environ: Mapping[str, str] | None = None) -> tuple[str, ...]:
    """Return the ``$VISUAL``/``$EDITOR`` argv prefix, or ``()`` when unset."""
    env = os.environ if environ is None else environ
    for name in ("VISUAL", "EDITOR"):
        value = env.get(name, "").strip()
        if not value:
            continue
        try:
            parts = shlex.split(value)
        except ValueError:
            logger.warning("Cannot parse $%s=%r", name, value)
            continue
        if parts:
            return tuple(parts)
    return ()


def run_command_request(
    request: CommandRequest,
    disable_tui_mode: Callable[[], None],
    enable_tui_mode: Callable[[], None],
) -> CommandOutcome:
    """Execute ``request`` according to its capture mode."""
    env = {**os.environ, **request.env}
    logger.info("Running %s in %s (%s)", request.display(), request.cwd, request.capture_mode.value)

    if request.capture_mode is CaptureMode.CAPTURE:
        try:
            proc = subprocess.run(
                request.argv,
                cwd=request.cwd,
                env=env,
                stdin=subprocess.DEVNULL,
                capture_output=True,
                text=True,
                errors="replace",
                timeout=None if request.rescan else CAPTURE_TIMEOUT_SECONDS,
                check=False,
            )
        except subprocess.TimeoutExpired:
            return CommandOutcome(returncode=None, error=f"{request.program} timed out")
        except OSError as exc:
            return CommandOutcome(returncode=None, error=f"Failed to run {request.program}: {exc}")
        return CommandOutcome(returncode=proc.returncode, stdout=proc.stdout, stderr=proc.stderr)

    if request.capture_mode is CaptureMode.DISCARD:
        try:
            subprocess.Popen(
                request.argv,
                cwd=request.cwd,
                env=env,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                start_new_session=True,
            )
        except OSError as exc:
            return CommandOutcome(returncode=None, error=f"Failed to run {request.program}: {exc}")
        return CommandOutcome(returncode=None)

    disable_tui_mode()
    try:
        proc = subprocess.run(request.argv, cwd=request.cwd, env=env, check=False)
    except OSError as exc:
        return CommandOutcome(returncode=None, error=f"Failed to run {request.program}: {exc}")
    finally:
        enable_tui_mode()
    return CommandOutcome(returncode=proc.returncode)


__all__ = [
    "CAPTURE_TIMEOUT_SECONDS",
    "CommandOutcome",
    "resolve_opener",
    "run_command_request",
]
