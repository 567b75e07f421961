"""Bounded background preview generation.

Only the entry under focus is worth previewing, so every new request prunes
queued requests for other entries before it is admitted. Requests already
running are left alone; their results are rejected by the main loop.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from ..file_model.types import Entry
from ..preview.build import PREVIEW_MAX_BYTES, PREVIEW_MAX_LINES, build_preview
from ..preview.payload import PreviewPayload, PreviewResult
from .completion import CompletionChannel
from .worker_pool import BoundedWorkerPool, RequestTicket

logger = logging.getLogger(__name__)

DEFAULT_PREVIEW_WORKERS = 2


@dataclass(frozen=True)
class PreviewRequest:
    request_id: int
    entry: Entry
    generation: int

    @property
    def path(self) -> Path:
        return self.entry.path


class PreviewPump(BoundedWorkerPool):
    """Fixed worker budget producing ``PreviewResult`` completions."""

    thread_name = "lazyfm-preview"

    def __init__(
        self,
        channel: CompletionChannel,
        max_workers: int = DEFAULT_PREVIEW_WORKERS,
        max_bytes: int = PREVIEW_MAX_BYTES,
        max_lines: int = PREVIEW_MAX_LINES,
        build_fn: Callable[..., PreviewPayload] = build_preview,
    ) -> None:
        super().__init__(channel, max_workers=max_workers)
        self.max_bytes = max_bytes
        self.max_lines = max_lines
        self._build_fn = build_fn

    def request(self, entry: Entry, generation: int) -> RequestTicket:
        """Queue a preview for ``entry`` and return immediately."""
        with self._lock:
            request_id = self._allocate_request_id()
        self._submit(entry.path, PreviewRequest(request_id=request_id, entry=entry, generation=generation))
        return RequestTicket(request_id=request_id, path=entry.path, generation=generation)

    def _prune_locked(self, incoming: PreviewRequest) -> None:
        stale_keys = [key for key, queued in self._pending.items() if queued.path != incoming.path]
        for key in stale_keys:
            del self._pending[key]
        if stale_keys:
            self.dropped_count += len(stale_keys)
            logger.debug("Dropped %d superseded preview requests", len(stale_keys))

    def _execute(self, request: PreviewRequest) -> PreviewResult:
        payload = self._build_fn(request.entry, max_bytes=self.max_bytes, max_lines=self.max_lines)
        return PreviewResult(
            for_path=request.path,
            generation=request.generation,
            request_id=request.request_id,
            payload=payload,
        )


__all__ = ["DEFAULT_PREVIEW_WORKERS", "PreviewRequest", "PreviewPump"]
