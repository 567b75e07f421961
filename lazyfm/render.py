"""Plain two-column rendering of a ``RenderState`` snapshot.

Presentation only and side-effect free: turns a snapshot into a list of
screen rows that ``TerminalController.write_frame`` draws. Styling is limited
to reverse video for the cursor row and bold for the header.
"""

from __future__ import annotations

import unicodedata

from .file_model.types import Entry, EntryKind
from .preview.payload import (
    DirectoryPreview,
    ErrorPreview,
    PreviewPayload,
    TextPreview,
    UnsupportedPreview,
    payload_summary,
)
from .runtime.engine import RenderEntry, RenderState

LISTING_WIDTH_RATIO = 0.45
_REVERSE = "\x1b[7m"
_BOLD = "\x1b[1m"
_RESET = "\x1b[0m"


def char_display_width(ch: str) -> int:
    """Terminal columns used by ``ch``: 0 for combining marks, 2 for wide."""
    if unicodedata.combining(ch):
        return 0
    if unicodedata.east_asian_width(ch) in {"W", "F"}:
        return 2
    return 1


def fit_width(text: str, width: int) -> str:
    """Clip ``text`` to ``width`` columns and pad it with spaces."""
    if width <= 0:
        return ""
    out: list[str] = []
    col = 0
    for ch in text.expandtabs(4):
        w = char_display_width(ch)
        if col + w > width:
            break
        out.append(ch)
        col += w
    return "".join(out) + " " * (width - col)


def format_size(size_bytes: int | None) -> str:
    if size_bytes is None:
        return ""
    value = float(size_bytes)
    for unit in ("B", "K", "M", "G", "T"):
        if value < 1024 or unit == "T":
            return f"{int(value)}{unit}" if unit == "B" else f"{value:.1f}{unit}"
        value /= 1024
    return ""


def entry_label(entry: Entry) -> str:
    if entry.kind is EntryKind.DIRECTORY:
        return entry.name + "/"
    if entry.kind is EntryKind.SYMLINK:
        suffix = "/" if entry.target_is_directory else ""
        target = f" -> {entry.link_target}" if entry.link_target else ""
        return f"{entry.name}@{suffix}{target}"
    return entry.name


def format_entry_row(item: RenderEntry, width: int) -> str:
    entry = item.entry
    marker = "*" if item.selected else " "
    if entry.error is not None:
        detail = entry.error.label
    elif entry.kind is EntryKind.FILE:
        detail = format_size(entry.size_bytes)
    else:
        detail = ""
    name_width = max(1, width - len(detail) - 3)
    row = f"{marker} {fit_width(entry_label(entry), name_width)}{detail}".ljust(width)
    row = fit_width(row, width)
    return f"{_REVERSE}{row}{_RESET}" if item.is_cursor else row


def preview_lines(payload: PreviewPayload | None, loading: bool) -> list[str]:
    if payload is None:
        return ["loading..."] if loading else []
    if isinstance(payload, TextPreview):
        lines = list(payload.lines)
        if payload.truncated:
            lines.append("...")
        return lines
    if isinstance(payload, DirectoryPreview):
        lines = [payload_summary(payload), ""]
        lines.extend(payload.sample_names)
        if payload.child_count > len(payload.sample_names):
            lines.append("...")
        return lines
    if isinstance(payload, UnsupportedPreview | ErrorPreview):
        lines = [payload_summary(payload)]
        if isinstance(payload, ErrorPreview) and payload.detail:
            lines.append(payload.detail)
        return lines
    return []


def _listing_window(count: int, cursor: int | None, height: int) -> int:
    if cursor is None or count <= height:
        return 0
    return max(0, min(cursor - height // 2, count - height))


def header_row(state: RenderState) -> str:
    parts = [str(state.current_directory)]
    parts.append(f"[{state.sort_policy.describe()}]")
    if state.filter_text:
        parts.append(f"filter: {state.filter_text}")
    if state.selection_count:
        parts.append(f"{state.selection_count} selected")
    if state.loading:
        parts.append("loading...")
    return "  ".join(parts)


def footer_row(state: RenderState) -> str:
    if state.prompt is not None:
        return state.prompt
    if state.pending_keys:
        return state.pending_keys
    return state.status_message


def build_frame(state: RenderState, columns: int, rows: int) -> list[str]:
    """Return exactly ``rows`` screen rows for ``state``."""
    columns = max(10, columns)
    rows = max(3, rows)
    body_height = rows - 2
    left_width = max(8, int(columns * LISTING_WIDTH_RATIO))
    right_width = max(0, columns - left_width - 1)

    entries = state.visible_entries
    start = _listing_window(len(entries), state.cursor_index, body_height)
    window = entries[start : start + body_height]
    preview = preview_lines(state.preview, state.cursor_index is not None)

    frame = [f"{_BOLD}{fit_width(header_row(state), columns)}{_RESET}"]
    for idx in range(body_height):
        if idx < len(window):
            left = format_entry_row(window[idx], left_width)
        elif idx == 0 and not entries:
            left = fit_width("  (loading)" if state.loading else "  (empty)", left_width)
        else:
            left = " " * left_width
        right = fit_width(preview[idx], right_width) if idx < len(preview) else " " * right_width
        frame.append(f"{left}|{right}")
    frame.append(fit_width(footer_row(state), columns))
    return frame


__all__ = [
    "char_display_width",
    "fit_width",
    "format_size",
    "entry_label",
    "format_entry_row",
    "preview_lines",
    "header_row",
    "footer_row",
    "build_frame",
]
