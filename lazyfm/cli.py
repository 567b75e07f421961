"""Command-line front door for lazyfm.

Parses CLI options, loads config and the keymap, configures logging, and
dispatches into the interactive runtime. Paths emitted on quit are written to
stdout or to the ``--choose-file``/``--choose-dir`` targets.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from dataclasses import replace
from pathlib import Path

from .config import load_config, load_engine_options, load_keymap_overrides
from .errors import LazyfmError
from .input.keymap import DEFAULT_KEYMAP, Action, Keymap
from .runtime.process import resolve_opener

LOG_ENV_VAR = "LAZYFM_LOG"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s [%(threadName)s] %(message)s"


def configure_logging(log_file: str | None) -> None:
    """Log to ``log_file`` (or ``$LAZYFM_LOG``); otherwise stay silent.

    The TUI owns the terminal, so nothing is ever logged to stderr.
    """
    target = log_file or os.environ.get(LOG_ENV_VAR, "").strip()
    root = logging.getLogger("lazyfm")
    if not target:
        root.addHandler(logging.NullHandler())
        return
    handler = logging.FileHandler(target, encoding="utf-8")
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
    root.setLevel(logging.DEBUG)
    root.propagate = False


def write_paths(paths: tuple[Path, ...], target: str | None) -> None:
    """Write one path per line to ``target`` or stdout."""
    text = "".join(f"{path}\n" for path in paths)
    if target is None:
        sys.stdout.write(text)
        return
    try:
        Path(target).write_text(text, encoding="utf-8")
    except OSError as exc:
        raise SystemExit(f"Cannot write {target}: {exc}") from exc


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lazyfm",
        description="Browse directories, preview files, and run commands on selections.",
    )
    parser.add_argument("path", nargs="?", default=None, help="Directory to start in. Defaults to current directory.")
    parser.add_argument(
        "--choose-file",
        metavar="FILE",
        help="On quit-and-emit, write the selected paths to FILE instead of stdout.",
    )
    parser.add_argument(
        "--choose-dir",
        metavar="FILE",
        help="On quit-cd, write the current directory to FILE instead of stdout.",
    )
    parser.add_argument("--show-hidden", action="store_true", help="Show dotfiles regardless of saved preference.")
    parser.add_argument("--log-file", metavar="PATH", help=f"Write debug logs to PATH (or set ${LOG_ENV_VAR}).")
    parser.add_argument("--print-keymap", action="store_true", help="Print the effective keymap and exit.")
    return parser


def main(argv: list[str] | None = None, default_path: Path | None = None) -> None:
    """Parse CLI arguments and launch lazyfm.

    ``default_path`` is primarily for tests; when omitted the current working
    directory is used.
    """
    args = build_parser().parse_args(argv)
    configure_logging(args.log_file)

    config = load_config()
    keymap = Keymap.compile(DEFAULT_KEYMAP, load_keymap_overrides(config))
    if args.print_keymap:
        width = max((len(sequence) for sequence, _ in keymap.describe()), default=0)
        for sequence, label in keymap.describe():
            sys.stdout.write(f"{sequence.ljust(width)}  {label}\n")
        return

    if default_path is None:
        default_path = Path.cwd()
    path = Path(args.path or default_path).expanduser().absolute()
    if not path.exists():
        raise SystemExit(f"Path not found: {path}")
    if not path.is_dir():
        path = path.parent

    options = load_engine_options(config)
    if args.show_hidden:
        options = replace(options, show_hidden=True)

    from .runtime.app import run_file_manager

    try:
        result = run_file_manager(path, options=options, keymap=keymap, opener=resolve_opener())
    except LazyfmError as exc:
        logging.getLogger(__name__).error("Fatal: %s", exc)
        raise SystemExit(str(exc)) from exc

    if result.paths is None:
        return
    target = args.choose_dir if result.action is Action.QUIT_CD else args.choose_file
    write_paths(result.paths, target)
