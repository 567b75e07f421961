"""Preview payload variants and the result record posted by workers."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from ..errors import ErrorKind


@dataclass(frozen=True)
class TextPreview:
    """Bounded excerpt of a text file."""

    lines: tuple[str, ...]
    truncated: bool = False
    language: str | None = None


@dataclass(frozen=True)
class DirectoryPreview:
    """Shallow summary of a directory's immediate children."""

    child_count: int
    directory_count: int
    file_count: int
    hidden_count: int = 0
    sample_names: tuple[str, ...] = ()
    truncated: bool = False


@dataclass(frozen=True)
class UnsupportedPreview:
    reason: str = "binary"


@dataclass(frozen=True)
class ErrorPreview:
    kind: ErrorKind
    detail: str = ""


PreviewPayload = TextPreview | DirectoryPreview | UnsupportedPreview | ErrorPreview


@dataclass(frozen=True)
class PreviewResult:
    """Completed preview for ``for_path`` stamped with its request generation."""

    for_path: Path
    generation: int
    request_id: int
    payload: PreviewPayload


def payload_summary(payload: PreviewPayload) -> str:
    """One-line description used in logs and the plain renderer header."""
    if isinstance(payload, TextPreview):
        suffix = "+" if payload.truncated else ""
        language = f" {payload.language}" if payload.language else ""
        return f"text{language} ({len(payload.lines)}{suffix} lines)"
    if isinstance(payload, DirectoryPreview):
        suffix = "+" if payload.truncated else ""
        return (
            f"{payload.child_count}{suffix} items: "
            f"{payload.directory_count} dirs, {payload.file_count} files"
        )
    if isinstance(payload, UnsupportedPreview):
        return f"no preview ({payload.reason})"
    return f"error: {payload.kind.label}"


__all__ = [
    "TextPreview",
    "DirectoryPreview",
    "UnsupportedPreview",
    "ErrorPreview",
    "PreviewPayload",
    "PreviewResult",
    "payload_summary",
]
