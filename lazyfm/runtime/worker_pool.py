"""Bounded pool of daemon worker threads draining a keyed request queue.

Workers are spawned on demand up to ``max_workers`` and exit when the queue is
empty. Requests share a key (usually a path); queueing a request whose key is
already pending replaces the older one. Subclasses can prune the queue further
before each new request is admitted.
"""

from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from collections.abc import Hashable
from dataclasses import dataclass
from pathlib import Path

from .completion import CompletionChannel, CompletionResult, WorkerFailure

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RequestTicket:
    """Handle returned to the main loop for one queued request."""

    request_id: int
    path: Path
    generation: int


class BoundedWorkerPool:
    """Latest-request-wins queue serviced by at most ``max_workers`` threads."""

    thread_name = "lazyfm-worker"

    def __init__(self, channel: CompletionChannel, max_workers: int = 2) -> None:
        self._channel = channel
        self.max_workers = max(1, int(max_workers))
        self._lock = threading.Lock()
        self._pending: OrderedDict[Hashable, object] = OrderedDict()
        self._active_workers = 0
        self._next_request_id = 1
        self.dropped_count = 0

    def _execute(self, request) -> CompletionResult:
        raise NotImplementedError

    def _generation_of(self, request) -> int:
        return int(request.generation)

    def _prune_locked(self, incoming) -> None:
        """Hook to drop queued requests made obsolete by ``incoming``."""

    def _allocate_request_id(self) -> int:
        request_id = self._next_request_id
        self._next_request_id += 1
        return request_id

    def _submit(self, key: Hashable, request) -> None:
        spawn = False
        with self._lock:
            self._prune_locked(request)
            if key in self._pending:
                del self._pending[key]
                self.dropped_count += 1
            self._pending[key] = request
            if self._active_workers < self.max_workers:
                self._active_workers += 1
                spawn = True
        if spawn:
            worker = threading.Thread(target=self._worker, name=self.thread_name, daemon=True)
            worker.start()

    def _worker(self) -> None:
        while True:
            with self._lock:
                if not self._pending:
                    self._active_workers -= 1
                    return
                _key, request = self._pending.popitem(last=False)

            try:
                result = self._execute(request)
            except Exception as exc:
                logger.exception("%s crashed while handling %r", self.thread_name, request)
                self._channel.post(
                    self._generation_of(request),
                    WorkerFailure(worker_name=self.thread_name, detail=f"{type(exc).__name__}: {exc}"),
                )
                continue
            self._channel.post(self._generation_of(request), result)

    def pending_count(self) -> int:
        with self._lock:
            return len(self._pending)

    def pending_requests(self) -> list[object]:
        with self._lock:
            return list(self._pending.values())


__all__ = ["RequestTicket", "BoundedWorkerPool"]
