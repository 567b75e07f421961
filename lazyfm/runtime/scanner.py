"""Background directory scanner feeding the completion channel."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from ..file_model.fs import scan_directory
from ..file_model.types import DirectoryListing, SortPolicy
from .completion import CompletionChannel
from .worker_pool import BoundedWorkerPool, RequestTicket

DEFAULT_SCAN_WORKERS = 2


@dataclass(frozen=True)
class ScanRequest:
    request_id: int
    path: Path
    generation: int
    sort_policy: SortPolicy
    show_hidden: bool


class Scanner(BoundedWorkerPool):
    """Enumerates directories off the main loop.

    A scan whose generation falls behind ``current_generation()`` is not
    killed; it checks periodically and gives up early, and the main loop
    discards whatever it posts.
    """

    thread_name = "lazyfm-scanner"

    def __init__(
        self,
        channel: CompletionChannel,
        current_generation: Callable[[], int],
        max_workers: int = DEFAULT_SCAN_WORKERS,
        scan_fn: Callable[..., DirectoryListing] = scan_directory,
    ) -> None:
        super().__init__(channel, max_workers=max_workers)
        self._current_generation = current_generation
        self._scan_fn = scan_fn

    def request(
        self,
        path: Path,
        generation: int,
        *,
        sort_policy: SortPolicy,
        show_hidden: bool = False,
    ) -> RequestTicket:
        """Queue a scan of ``path`` and return immediately."""
        with self._lock:
            request_id = self._allocate_request_id()
        request = ScanRequest(
            request_id=request_id,
            path=path,
            generation=generation,
            sort_policy=sort_policy,
            show_hidden=show_hidden,
        )
        self._submit(path, request)
        return RequestTicket(request_id=request_id, path=path, generation=generation)

    def _execute(self, request: ScanRequest) -> DirectoryListing:
        return self._scan_fn(
            request.path,
            request.generation,
            request.sort_policy,
            show_hidden=request.show_hidden,
            is_stale=lambda: self._current_generation() > request.generation,
        )


__all__ = ["DEFAULT_SCAN_WORKERS", "ScanRequest", "Scanner"]
