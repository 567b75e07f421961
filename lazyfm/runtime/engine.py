"""Main-loop core: owns navigation state and merges background completions.

``Engine`` is the only object that touches ``NavigationState``,
``DirectoryCache`` and the dispatcher. Keys arrive through ``handle_key``;
worker results arrive through ``tick``, which blocks on the completion channel
for at most one render tick. Every completion is checked against the current
generation before it can reach visible state, and preview results must also
match the latest preview ticket, so late results are inert.

A ``RenderState`` snapshot is passed to the ``render`` callback after every
change. The engine never draws and never runs external commands; command
requests are returned to the caller, which reports back via
``complete_command``.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from ..errors import CompletionChannelBroken, StartupDirectoryError
from ..file_model.cache import DEFAULT_CACHE_CAPACITY, DirectoryCache
from ..file_model.fs import probe_directory, scan_directory
from ..file_model.types import DirectoryListing, Entry, SortPolicy
from ..file_model.watch import DirectorySignature, DirectoryWatch, build_directory_signature
from ..input.commands import CommandRequest
from ..input.dispatcher import DEFAULT_PAGE_SIZE, CommandDispatcher
from ..input.keymap import Action, Keymap, default_keymap
from ..preview.build import PREVIEW_MAX_BYTES, PREVIEW_MAX_LINES, build_preview
from ..preview.payload import PreviewPayload, PreviewResult, payload_summary
from .completion import Completion, CompletionChannel, WorkerFailure
from .navigation import NavigationState, Transition
from .preview_pump import DEFAULT_PREVIEW_WORKERS, PreviewPump
from .process import CommandOutcome
from .scanner import DEFAULT_SCAN_WORKERS, Scanner
from .watch_worker import WatchWorker
from .worker_pool import RequestTicket

logger = logging.getLogger(__name__)

STATUS_MESSAGE_SECONDS = 4.0
RENDER_TICK_SECONDS = 0.05


@dataclass(frozen=True)
class EngineOptions:
    show_hidden: bool = False
    sort_policy: SortPolicy = field(default_factory=SortPolicy)
    preview_max_bytes: int = PREVIEW_MAX_BYTES
    preview_max_lines: int = PREVIEW_MAX_LINES
    preview_workers: int = DEFAULT_PREVIEW_WORKERS
    scan_workers: int = DEFAULT_SCAN_WORKERS
    cache_capacity: int = DEFAULT_CACHE_CAPACITY
    watch_poll_seconds: float = 1.0
    page_size: int = DEFAULT_PAGE_SIZE
    status_seconds: float = STATUS_MESSAGE_SECONDS


@dataclass(frozen=True)
class RenderEntry:
    entry: Entry
    selected: bool
    is_cursor: bool


@dataclass(frozen=True)
class RenderState:
    """Immutable snapshot consumed by the presentation layer."""

    current_directory: Path
    visible_entries: tuple[RenderEntry, ...]
    preview: PreviewPayload | None
    status_message: str
    mode: str
    prompt: str | None
    pending_keys: str
    loading: bool
    filter_text: str
    sort_policy: SortPolicy
    selection_count: int
    generation: int

    @property
    def cursor_index(self) -> int | None:
        for idx, item in enumerate(self.visible_entries):
            if item.is_cursor:
                return idx
        return None


class Engine:
    """Single-threaded coordinator between input, workers, and rendering."""

    def __init__(
        self,
        start_directory: Path,
        *,
        options: EngineOptions | None = None,
        keymap: Keymap | None = None,
        opener: tuple[str, ...] = (),
        home: Path | None = None,
        render: Callable[[RenderState], None] | None = None,
        on_show_hidden_changed: Callable[[bool], None] | None = None,
        scan_fn: Callable[..., DirectoryListing] = scan_directory,
        build_fn: Callable[..., PreviewPayload] = build_preview,
        signature_fn: Callable[[Path, bool], str] = build_directory_signature,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.options = options if options is not None else EngineOptions()
        self.channel = CompletionChannel()
        self.cache = DirectoryCache(self.options.cache_capacity)
        self.state = NavigationState(
            start_directory,
            self.cache,
            sort_policy=self.options.sort_policy,
            show_hidden=self.options.show_hidden,
        )
        self.scanner = Scanner(
            self.channel,
            current_generation=lambda: self.state.current_generation,
            max_workers=self.options.scan_workers,
            scan_fn=scan_fn,
        )
        self.preview_pump = PreviewPump(
            self.channel,
            max_workers=self.options.preview_workers,
            max_bytes=self.options.preview_max_bytes,
            max_lines=self.options.preview_max_lines,
            build_fn=build_fn,
        )
        self.dispatcher = CommandDispatcher(
            self.state,
            keymap if keymap is not None else default_keymap(),
            opener=opener,
            home=home,
            page_size=self.options.page_size,
        )
        self.watch = DirectoryWatch(poll_seconds=self.options.watch_poll_seconds)
        self.watch_worker = WatchWorker(self.channel, signature_fn=signature_fn)
        self.preview: PreviewPayload | None = None
        self.preview_entry: Entry | None = None
        self._preview_ticket: RequestTicket | None = None
        self.status_message = ""
        self._status_until = 0.0
        self.quit_requested = False
        self.quit_action: Action | None = None
        self.emitted: tuple[Path, ...] | None = None
        self.discarded_count = 0
        self._render = render
        self._on_show_hidden_changed = on_show_hidden_changed
        self._clock = clock

    def start(self) -> None:
        """Validate the start directory and issue the first scan."""
        directory = self.state.current_directory
        kind = probe_directory(directory)
        if kind is not None:
            raise StartupDirectoryError(directory, kind)
        self._apply_transition(self.state.request_rescan())
        self._emit()

    # Input.

    def handle_key(self, key: str) -> list[CommandRequest]:
        """Feed one key token; return command requests for the caller to run."""
        show_hidden = self.state.show_hidden
        outcome = self.dispatcher.feed(key)
        if outcome.transition is not None:
            self._apply_transition(outcome.transition)
        if outcome.status is not None:
            self.set_status(outcome.status)
        if outcome.quit:
            self.quit_requested = True
            self.quit_action = outcome.quit_action
            self.emitted = outcome.emit
        if self.state.show_hidden != show_hidden and self._on_show_hidden_changed is not None:
            self._on_show_hidden_changed(self.state.show_hidden)
        self._sync_preview()
        self._emit()
        return list(outcome.commands)

    def complete_command(self, request: CommandRequest, outcome: CommandOutcome) -> None:
        """Report a finished command.

        Paths the request consumed leave the selection only when it succeeded.
        Rescans when the request asks for it.
        """
        if outcome.ok:
            for path in request.clears_selection:
                self.state.selection.discard(path)
        else:
            logger.warning("Command %s failed: %s", request.display(), outcome.summary(request))
        message = outcome.summary(request)
        if message:
            self.set_status(message)
        if request.rescan:
            self._apply_transition(self.state.invalidate_all())
        self._sync_preview()
        self._emit()

    def set_status(self, message: str) -> None:
        self.status_message = message
        self._status_until = self._clock() + self.options.status_seconds if message else 0.0

    # Background completions.

    def tick(self, timeout: float = RENDER_TICK_SECONDS) -> bool:
        """Drain completions for up to ``timeout`` seconds and merge them."""
        changed = False
        for completion in self.channel.drain(timeout):
            if self._merge(completion):
                changed = True
        now = self._clock()
        self._poll_watch(now)
        if self.status_message and self._status_until and now >= self._status_until:
            self.status_message = ""
            self._status_until = 0.0
            changed = True
        if changed:
            self._sync_preview()
            self._emit()
        return changed

    def _merge(self, completion: Completion) -> bool:
        result = completion.result
        if isinstance(result, WorkerFailure):
            logger.error("Worker %s failed: %s", result.worker_name, result.detail)
            raise CompletionChannelBroken(f"{result.worker_name}: {result.detail}")
        if isinstance(result, DirectorySignature):
            self.watch.settle()
        if completion.generation < self.state.current_generation:
            self._discard(completion, "stale generation")
            return False

        if isinstance(result, DirectoryListing):
            if not result.scan_completed:
                self._discard(completion, "incomplete scan")
                return False
            self.cache.put(result.directory, result)
            if not self.state.apply_listing(result):
                return False
            if result.error is not None:
                self.set_status(f"{result.directory}: {result.error.label}")
            return True

        if isinstance(result, PreviewResult):
            ticket = self._preview_ticket
            if ticket is None or ticket.request_id != result.request_id:
                self._discard(completion, "superseded preview")
                return False
            self.preview = result.payload
            logger.debug("Preview for %s: %s", result.for_path, payload_summary(result.payload))
            return True

        if isinstance(result, DirectorySignature):
            return self._check_signature(result)
        return False

    def _discard(self, completion: Completion, reason: str) -> None:
        self.discarded_count += 1
        logger.debug(
            "Discarded %s (%s): generation %d, current %d",
            type(completion.result).__name__,
            reason,
            completion.generation,
            self.state.current_generation,
        )

    def _poll_watch(self, now: float) -> None:
        state = self.state
        if state.loading or not self.watch.due(state.current_directory, now):
            return
        self.watch_worker.request(state.current_directory, state.current_generation, show_hidden=state.show_hidden)

    def _check_signature(self, result: DirectorySignature) -> bool:
        state = self.state
        if state.loading or result.directory != state.current_directory or result.show_hidden != state.show_hidden:
            return False
        expected = state.listing.signature if state.listing is not None else None
        if not self.watch.observe(expected, result.signature):
            return False
        logger.info("Change detected in %s", result.directory)
        self._apply_transition(state.request_rescan())
        return True

    # Requests.

    def _apply_transition(self, transition: Transition) -> None:
        if transition.needs_scan:
            self.scanner.request(
                transition.directory,
                transition.generation,
                sort_policy=self.state.sort_policy,
                show_hidden=self.state.show_hidden,
            )
        if self.watch.directory != self.state.current_directory:
            self.watch.reset(self.state.current_directory)

    def _sync_preview(self) -> None:
        """Request a preview when the entry under the cursor changed."""
        entry = self.state.cursor_entry()
        if entry is None:
            self.preview = None
            self.preview_entry = None
            self._preview_ticket = None
            return
        ticket = self._preview_ticket
        if (
            entry == self.preview_entry
            and ticket is not None
            and ticket.generation == self.state.current_generation
        ):
            return
        if self.preview_entry is None or entry.path != self.preview_entry.path:
            self.preview = None
        self.preview_entry = entry
        self._preview_ticket = self.preview_pump.request(entry, self.state.current_generation)

    # Output.

    def snapshot(self) -> RenderState:
        state = self.state
        prompt = self.dispatcher.prompt
        return RenderState(
            current_directory=state.current_directory,
            visible_entries=tuple(
                RenderEntry(entry=entry, selected=entry.path in state.selection, is_cursor=idx == state.cursor)
                for idx, entry in enumerate(state.visible_entries)
            ),
            preview=self.preview,
            status_message=self.status_message,
            mode=self.dispatcher.mode.value,
            prompt=f"{prompt.label}: {prompt.text}" if prompt is not None else None,
            pending_keys=self.dispatcher.pending_display(),
            loading=state.loading,
            filter_text=state.filter_text,
            sort_policy=state.sort_policy,
            selection_count=len(state.selection),
            generation=state.current_generation,
        )

    def _emit(self) -> None:
        if self._render is not None:
            self._render(self.snapshot())


__all__ = [
    "STATUS_MESSAGE_SECONDS",
    "RENDER_TICK_SECONDS",
    "EngineOptions",
    "RenderEntry",
    "RenderState",
    "Engine",
]
