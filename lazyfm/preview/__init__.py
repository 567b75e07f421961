"""Preview payload types and builders."""

from __future__ import annotations

from .build import build_directory_preview, build_preview, build_text_preview, sanitize_terminal_text
from .payload import (
    DirectoryPreview,
    ErrorPreview,
    PreviewPayload,
    PreviewResult,
    TextPreview,
    UnsupportedPreview,
    payload_summary,
)

__all__ = [
    "build_directory_preview",
    "build_preview",
    "build_text_preview",
    "sanitize_terminal_text",
    "DirectoryPreview",
    "ErrorPreview",
    "PreviewPayload",
    "PreviewResult",
    "TextPreview",
    "UnsupportedPreview",
    "payload_summary",
]
