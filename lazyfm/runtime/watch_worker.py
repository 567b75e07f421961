"""Background signature checks for the directory on screen."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from ..file_model.watch import DirectorySignature, build_directory_signature
from .completion import CompletionChannel
from .worker_pool import BoundedWorkerPool, RequestTicket

_WATCH_KEY = "watch"


@dataclass(frozen=True)
class SignatureRequest:
    request_id: int
    path: Path
    generation: int
    show_hidden: bool


class WatchWorker(BoundedWorkerPool):
    """Computes directory signatures off the main loop.

    All checks share one queue key, so a newer check replaces one that has not
    started yet.
    """

    thread_name = "lazyfm-watch"

    def __init__(
        self,
        channel: CompletionChannel,
        signature_fn: Callable[[Path, bool], str] = build_directory_signature,
    ) -> None:
        super().__init__(channel, max_workers=1)
        self._signature_fn = signature_fn

    def request(self, path: Path, generation: int, *, show_hidden: bool) -> RequestTicket:
        with self._lock:
            request_id = self._allocate_request_id()
        self._submit(
            _WATCH_KEY,
            SignatureRequest(request_id=request_id, path=path, generation=generation, show_hidden=show_hidden),
        )
        return RequestTicket(request_id=request_id, path=path, generation=generation)

    def _execute(self, request: SignatureRequest) -> DirectorySignature:
        return DirectorySignature(
            directory=request.path,
            show_hidden=request.show_hidden,
            signature=self._signature_fn(request.path, request.show_hidden),
        )


__all__ = ["SignatureRequest", "WatchWorker"]
