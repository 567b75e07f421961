"""Build preview payloads for one entry.

Runs on preview worker threads. Text files are read through a bounded prefix,
directories are summarized with a single non-recursive ``scandir`` pass, and
binary or special files are reported as unsupported without being read.
Failures become ``ErrorPreview`` payloads.
"""

from __future__ import annotations

import codecs
import os
import re
from pathlib import Path

from ..errors import describe_exception, error_kind_for_exception
from ..file_model.types import Entry, EntryKind
from .payload import DirectoryPreview, ErrorPreview, PreviewPayload, TextPreview, UnsupportedPreview

PREVIEW_MAX_BYTES = 64 * 1024
PREVIEW_MAX_LINES = 400
DIRECTORY_SAMPLE_NAMES = 24
DIRECTORY_MAX_ENTRIES = 10_000
BINARY_SNIFF_BYTES = 8 * 1024

_CONTROL_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f]")

BINARY_SUFFIXES = frozenset(
    {
        ".7z", ".a", ".avi", ".bin", ".bmp", ".bz2", ".class", ".dll", ".dmg", ".doc",
        ".docx", ".dylib", ".exe", ".flac", ".gif", ".gz", ".ico", ".iso", ".jar", ".jpeg",
        ".jpg", ".mkv", ".mov", ".mp3", ".mp4", ".o", ".ogg", ".otf", ".pdf", ".png",
        ".pyc", ".so", ".sqlite", ".tar", ".tgz", ".ttf", ".wav", ".webm", ".webp",
        ".woff", ".woff2", ".xls", ".xlsx", ".xz", ".zip", ".zst",
    }
)


def sanitize_terminal_text(source: str) -> str:
    """Escape terminal control bytes so previews cannot move the cursor or ring the bell."""
    if _CONTROL_RE.search(source) is None:
        return source

    out: list[str] = []
    for ch in source:
        code = ord(ch)
        if ch in {"\n", "\r", "\t"}:
            out.append(ch)
            continue
        if code < 32 or code == 127 or 0x80 <= code <= 0x9F:
            out.append(f"\\x{code:02x}")
            continue
        out.append(ch)
    return "".join(out)


def read_prefix(path: Path, max_bytes: int) -> tuple[bytes, bool]:
    """Read at most ``max_bytes`` from ``path``; return ``(data, truncated)``."""
    with path.open("rb") as handle:
        data = handle.read(max_bytes + 1)
    if len(data) > max_bytes:
        return data[:max_bytes], True
    return data, False


def decode_prefix(data: bytes, truncated: bool) -> str:
    """Decode a file prefix, tolerating a multi-byte character cut at the end.

    UTF-8 (with or without BOM) is tried first; latin-1 is the fallback.
    """
    if data.startswith(codecs.BOM_UTF8):
        data = data[len(codecs.BOM_UTF8):]
    decoder = codecs.getincrementaldecoder("utf-8")()
    try:
        return decoder.decode(data, final=not truncated)
    except UnicodeDecodeError:
        return data.decode("latin-1")


def looks_binary(sample: bytes) -> bool:
    return b"\x00" in sample[:BINARY_SNIFF_BYTES]


def guess_language(path: Path) -> str | None:
    """Return the Pygments lexer name for ``path`` or ``None`` when unknown."""
    from pygments.lexers import get_lexer_for_filename
    from pygments.util import ClassNotFound

    try:
        lexer = get_lexer_for_filename(path.name)
    except ClassNotFound:
        return None
    return lexer.name


def build_text_preview(path: Path, max_bytes: int, max_lines: int) -> PreviewPayload:
    data, truncated = read_prefix(path, max_bytes)
    if looks_binary(data):
        return UnsupportedPreview(reason="binary")
    text = sanitize_terminal_text(decode_prefix(data, truncated))
    lines = text.splitlines()
    if len(lines) > max_lines:
        lines = lines[:max_lines]
        truncated = True
    return TextPreview(lines=tuple(lines), truncated=truncated, language=guess_language(path))


def build_directory_preview(
    path: Path,
    sample_names: int = DIRECTORY_SAMPLE_NAMES,
    max_entries: int = DIRECTORY_MAX_ENTRIES,
) -> DirectoryPreview:
    """Count immediate children of ``path`` without recursing."""
    child_count = 0
    directory_count = 0
    hidden_count = 0
    names: list[str] = []
    truncated = False
    with os.scandir(path) as children:
        for child in children:
            if child_count >= max_entries:
                truncated = True
                break
            child_count += 1
            if child.name.startswith("."):
                hidden_count += 1
            try:
                if child.is_dir():
                    directory_count += 1
            except OSError:
                pass
            names.append(child.name)
    names.sort(key=lambda name: (name.casefold(), name))
    return DirectoryPreview(
        child_count=child_count,
        directory_count=directory_count,
        file_count=child_count - directory_count,
        hidden_count=hidden_count,
        sample_names=tuple(names[:sample_names]),
        truncated=truncated,
    )


def build_preview(
    entry: Entry,
    max_bytes: int = PREVIEW_MAX_BYTES,
    max_lines: int = PREVIEW_MAX_LINES,
    sample_names: int = DIRECTORY_SAMPLE_NAMES,
) -> PreviewPayload:
    """Produce the preview payload for ``entry``; never raises ``OSError``."""
    if entry.error is not None:
        return ErrorPreview(kind=entry.error)
    try:
        if entry.is_directory_like:
            return build_directory_preview(entry.path, sample_names=sample_names)
        if entry.kind is EntryKind.OTHER:
            return UnsupportedPreview(reason="special file")
        if entry.path.suffix.lower() in BINARY_SUFFIXES:
            return UnsupportedPreview(reason="binary")
        if entry.kind is EntryKind.SYMLINK and not entry.path.is_file():
            return UnsupportedPreview(reason="special file")
        return build_text_preview(entry.path, max_bytes, max_lines)
    except OSError as exc:
        return ErrorPreview(kind=error_kind_for_exception(exc), detail=describe_exception(exc))


__all__ = [
    "PREVIEW_MAX_BYTES",
    "PREVIEW_MAX_LINES",
    "BINARY_SUFFIXES",
    "sanitize_terminal_text",
    "read_prefix",
    "decode_prefix",
    "looks_binary",
    "guess_language",
    "build_text_preview",
    "build_directory_preview",
    "build_preview",
]
