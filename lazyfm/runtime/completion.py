"""Completion channel between background workers and the main loop.

Workers post ``(generation, result)`` pairs; only the main loop drains. The
drain call is the loop's single blocking point and is bounded by the render
tick so keystrokes keep being serviced.
"""

from __future__ import annotations

from dataclasses import dataclass
from queue import Empty, Queue

from ..file_model.types import DirectoryListing
from ..file_model.watch import DirectorySignature
from ..preview.payload import PreviewResult


@dataclass(frozen=True)
class WorkerFailure:
    """A worker died outside per-entry error handling."""

    worker_name: str
    detail: str


CompletionResult = DirectoryListing | PreviewResult | DirectorySignature | WorkerFailure


@dataclass(frozen=True)
class Completion:
    generation: int
    result: CompletionResult


class CompletionChannel:
    """Multi-producer queue of completions drained by one consumer."""

    def __init__(self) -> None:
        self._queue: Queue[Completion] = Queue()

    def post(self, generation: int, result: CompletionResult) -> None:
        self._queue.put(Completion(generation=generation, result=result))

    def drain(self, timeout: float = 0.0) -> list[Completion]:
        """Return all pending completions, waiting up to ``timeout`` for the first."""
        out: list[Completion] = []
        try:
            if timeout > 0:
                out.append(self._queue.get(timeout=timeout))
            else:
                out.append(self._queue.get_nowait())
        except Empty:
            return out
        while True:
            try:
                out.append(self._queue.get_nowait())
            except Empty:
                break
        return out

    def pending(self) -> int:
        return self._queue.qsize()


__all__ = ["WorkerFailure", "CompletionResult", "Completion", "CompletionChannel"]
