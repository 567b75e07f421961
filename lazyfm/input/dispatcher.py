"""Keystroke dispatcher: a three-state machine over a compiled keymap.

``IDLE`` waits for a key. ``PENDING_SEQUENCE`` holds a count prefix and/or a
partially matched multi-key binding. ``AWAITING_INPUT`` collects prompt text
for actions such as filter or rename. Unmatched sequences fall back to
``IDLE`` silently without side effects.

Built-in actions mutate ``NavigationState`` directly. External actions are
expanded into ``CommandRequest`` objects reported in the ``DispatchOutcome``;
nothing is executed here.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from ..errors import ErrorKind
from ..file_model.types import SortKey
from ..runtime.navigation import NavigationState, Transition
from .commands import CommandRequest, TemplateContext, expand_template, selection_environment
from .key_registry import KeyComboBinding, KeyComboRegistry
from .keymap import COUNTED_ACTIONS, Action, Binding, CaptureMode, CommandTemplate, Keymap

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 20


class DispatcherMode(str, Enum):
    IDLE = "idle"
    PENDING_SEQUENCE = "pending_sequence"
    AWAITING_INPUT = "awaiting_input"


@dataclass
class PromptState:
    """Free-text input being collected for ``purpose``."""

    purpose: Action | CommandTemplate
    label: str
    text: str = ""
    restore_filter: str = ""


@dataclass
class DispatchOutcome:
    """Side effects the main loop must carry out after one key."""

    transition: Transition | None = None
    commands: list[CommandRequest] = field(default_factory=list)
    quit: bool = False
    quit_action: Action | None = None
    emit: tuple[Path, ...] | None = None
    status: str | None = None
    changed: bool = False


_SORT_ACTIONS = {
    Action.SORT_BY_NAME: SortKey.NAME,
    Action.SORT_BY_SIZE: SortKey.SIZE,
    Action.SORT_BY_MODIFIED: SortKey.MODIFIED,
}


class CommandDispatcher:
    """Resolve key tokens into built-in mutations or external command requests."""

    def __init__(
        self,
        state: NavigationState,
        keymap: Keymap,
        *,
        opener: tuple[str, ...] = (),
        home: Path | None = None,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> None:
        self.state = state
        self.keymap = keymap
        self.opener = tuple(opener)
        self.home = home if home is not None else Path.home()
        self.page_size = max(1, page_size)
        self.pending_keys: tuple[str, ...] = ()
        self.count_buffer = ""
        self.prompt: PromptState | None = None
        self._outcome = DispatchOutcome()
        self._prompt_keys = KeyComboRegistry(fallback=self._prompt_insert).register_bindings(
            KeyComboBinding(("ESC", "CTRL_C", "CTRL_G"), self._prompt_cancel),
            KeyComboBinding(("ENTER",), self._prompt_confirm),
            KeyComboBinding(("BACKSPACE",), self._prompt_backspace),
            KeyComboBinding(("CTRL_U",), self._prompt_clear),
            KeyComboBinding(("CTRL_W",), self._prompt_delete_word),
            KeyComboBinding(("SPACE",), self._prompt_insert),
        )

    @property
    def mode(self) -> DispatcherMode:
        if self.prompt is not None:
            return DispatcherMode.AWAITING_INPUT
        if self.pending_keys or self.count_buffer:
            return DispatcherMode.PENDING_SEQUENCE
        return DispatcherMode.IDLE

    def pending_display(self) -> str:
        """Typed-but-unresolved keys, e.g. ``3g``."""
        return self.count_buffer + "".join(
            key if len(key) == 1 else f"<{key}>" for key in self.pending_keys
        )

    def feed(self, key: str) -> DispatchOutcome:
        """Advance the state machine by one key token."""
        if key == " ":
            key = "SPACE"
        self._outcome = DispatchOutcome()
        if self.prompt is not None:
            self._prompt_keys.dispatch(key)
            return self._outcome

        if self._is_count_digit(key):
            self.count_buffer += key
            self._outcome.changed = True
            return self._outcome

        sequence = (*self.pending_keys, key)
        binding = self.keymap.lookup(sequence)
        if binding is not None:
            count = int(self.count_buffer) if self.count_buffer else None
            self._reset_pending()
            self._outcome.changed = True
            self._invoke(binding, count)
            return self._outcome
        if self.keymap.is_prefix(sequence):
            self.pending_keys = sequence
            self._outcome.changed = True
            return self._outcome

        if self.pending_keys or self.count_buffer:
            logger.debug(
                "Absorbed %s: %r",
                ErrorKind.INVALID_SEQUENCE.value,
                self.count_buffer + " ".join(sequence),
            )
            self._outcome.changed = True
        self._reset_pending()
        return self._outcome

    def _is_count_digit(self, key: str) -> bool:
        if self.pending_keys or len(key) != 1 or not key.isdigit():
            return False
        if key == "0" and not self.count_buffer:
            return False
        return self.keymap.lookup((key,)) is None and not self.keymap.is_prefix((key,))

    def _reset_pending(self) -> None:
        self.pending_keys = ()
        self.count_buffer = ""

    def _template_context(self, input_text: str = "") -> TemplateContext:
        entry = self.state.cursor_entry()
        return TemplateContext(
            cwd=self.state.current_directory,
            cursor=entry.path if entry is not None else None,
            targets=self.state.target_paths(),
            input_text=input_text,
        )

    def _set_transition(self, transition: Transition | None) -> None:
        if transition is not None:
            self._outcome.transition = transition

    # Binding invocation.

    def _invoke(self, binding: Binding, count: int | None) -> None:
        if isinstance(binding, CommandTemplate):
            if binding.needs_input:
                self._open_prompt(binding, binding.prompt or binding.program)
                return
            self._outcome.commands.append(expand_template(binding, self._template_context()))
            return
        if binding is Action.FILTER:
            self._open_prompt(binding, "filter", text=self.state.filter_text)
            return
        if binding is Action.RENAME:
            entry = self.state.cursor_entry()
            if entry is not None:
                self._open_prompt(binding, "rename", text=entry.name)
            return
        if binding is Action.MAKE_DIRECTORY:
            self._open_prompt(binding, "mkdir")
            return
        if binding is Action.TOUCH:
            self._open_prompt(binding, "touch")
            return
        if binding is Action.DELETE:
            targets = self.state.target_paths()
            if targets:
                noun = "item" if len(targets) == 1 else "items"
                self._open_prompt(binding, f"delete {len(targets)} {noun}? [y/N]")
            return
        if binding is Action.SHELL_COMMAND:
            self._open_prompt(binding, "shell")
            return
        repeat = max(1, count or 1) if binding in COUNTED_ACTIONS else 1
        self._apply_builtin(binding, count, repeat)

    def _apply_builtin(self, action: Action, count: int | None, repeat: int) -> None:
        state = self.state
        if action is Action.MOVE_DOWN:
            state.move_cursor(repeat)
        elif action is Action.MOVE_UP:
            state.move_cursor(-repeat)
        elif action is Action.PAGE_DOWN:
            state.move_cursor(self.page_size * repeat)
        elif action is Action.PAGE_UP:
            state.move_cursor(-self.page_size * repeat)
        elif action is Action.HALF_PAGE_DOWN:
            state.move_cursor(max(1, self.page_size // 2) * repeat)
        elif action is Action.HALF_PAGE_UP:
            state.move_cursor(-max(1, self.page_size // 2) * repeat)
        elif action is Action.GO_TOP:
            state.move_cursor_to(count - 1 if count else 0)
        elif action is Action.GO_BOTTOM:
            state.move_cursor_to(count - 1 if count else len(state.visible_entries) - 1)
        elif action is Action.OPEN:
            self._open_cursor_entry()
        elif action in {Action.PARENT, Action.BACK, Action.FORWARD}:
            step = {Action.PARENT: state.parent, Action.BACK: state.back, Action.FORWARD: state.forward}[action]
            for _ in range(repeat):
                transition = step()
                if transition is None:
                    break
                self._set_transition(transition)
        elif action is Action.GO_HOME:
            self._set_transition(state.enter_path(self.home))
        elif action is Action.TOGGLE_SELECTION:
            for _ in range(repeat):
                entry = state.cursor_entry()
                if entry is None:
                    break
                state.toggle_selection(entry.path)
                state.move_cursor(1)
        elif action is Action.SELECT_ALL:
            state.select_all_visible()
        elif action is Action.CLEAR_SELECTION:
            state.clear_selection()
        elif action in _SORT_ACTIONS:
            state.set_sort(_SORT_ACTIONS[action])
            self._outcome.status = f"sort: {state.sort_policy.describe()}"
        elif action is Action.TOGGLE_DIRECTORIES_FIRST:
            state.toggle_directories_first()
            self._outcome.status = f"sort: {state.sort_policy.describe()}"
        elif action is Action.TOGGLE_REVERSE:
            state.toggle_reverse()
            self._outcome.status = f"sort: {state.sort_policy.describe()}"
        elif action is Action.TOGGLE_HIDDEN:
            self._set_transition(state.set_show_hidden(not state.show_hidden))
            self._outcome.status = "hidden files shown" if state.show_hidden else "hidden files hidden"
        elif action is Action.CLEAR_FILTER:
            if state.filter_text:
                state.clear_filter()
            self._outcome.status = ""
        elif action is Action.RESCAN:
            self._set_transition(state.request_rescan())
        elif action in {Action.QUIT, Action.QUIT_AND_EMIT, Action.QUIT_CD}:
            self._outcome.quit = True
            self._outcome.quit_action = action
            if action is Action.QUIT_AND_EMIT:
                self._outcome.emit = state.target_paths()
            elif action is Action.QUIT_CD:
                self._outcome.emit = (state.current_directory,)

    def _open_cursor_entry(self) -> None:
        entry = self.state.cursor_entry()
        if entry is None:
            return
        if entry.error is not None:
            self._outcome.status = f"{entry.name}: {entry.error.label}"
            return
        if entry.is_directory_like:
            self._set_transition(self.state.enter(entry.name))
            return
        if not self.opener:
            self._outcome.status = "Cannot open: $EDITOR is not set."
            return
        context = self._template_context()
        self._outcome.commands.append(
            CommandRequest(
                program=self.opener[0],
                args=(*self.opener[1:], str(entry.path)),
                cwd=self.state.current_directory,
                capture_mode=CaptureMode.INHERIT,
                rescan=True,
                env=selection_environment(context),
            )
        )

    # Prompt handling.

    def _open_prompt(self, purpose: Action | CommandTemplate, label: str, text: str = "") -> None:
        self.prompt = PromptState(purpose=purpose, label=label, text=text, restore_filter=self.state.filter_text)

    def _prompt_edited(self) -> None:
        self._outcome.changed = True
        if self.prompt is not None and self.prompt.purpose is Action.FILTER:
            self.state.set_filter(self.prompt.text)

    def _prompt_insert(self, key: str) -> bool:
        if key == "SPACE":
            key = " "
        if len(key) != 1 or not key.isprintable():
            return False
        self.prompt.text += key
        self._prompt_edited()
        return True

    def _prompt_backspace(self, _key: str) -> bool:
        self.prompt.text = self.prompt.text[:-1]
        self._prompt_edited()
        return True

    def _prompt_clear(self, _key: str) -> bool:
        self.prompt.text = ""
        self._prompt_edited()
        return True

    def _prompt_delete_word(self, _key: str) -> bool:
        trimmed = self.prompt.text.rstrip()
        cut = trimmed.rfind(" ")
        self.prompt.text = trimmed[: cut + 1] if cut >= 0 else ""
        self._prompt_edited()
        return True

    def _prompt_cancel(self, _key: str) -> bool:
        prompt = self.prompt
        self.prompt = None
        self._outcome.changed = True
        if prompt.purpose is Action.FILTER:
            self.state.set_filter(prompt.restore_filter)
        return True

    def _prompt_confirm(self, _key: str) -> bool:
        prompt = self.prompt
        self.prompt = None
        self._outcome.changed = True
        text = prompt.text
        purpose = prompt.purpose
        if isinstance(purpose, CommandTemplate):
            self._outcome.commands.append(expand_template(purpose, self._template_context(text)))
        elif purpose is Action.FILTER:
            self.state.set_filter(text)
        elif purpose is Action.RENAME:
            self._confirm_rename(text.strip())
        elif purpose is Action.MAKE_DIRECTORY:
            self._confirm_create(text.strip(), "mkdir", "-p")
        elif purpose is Action.TOUCH:
            self._confirm_create(text.strip(), "touch")
        elif purpose is Action.DELETE:
            self._confirm_delete(text.strip().lower() in {"y", "yes"})
        elif purpose is Action.SHELL_COMMAND:
            self._confirm_shell(text.strip())
        return True

    def _file_operation(self, program: str, *args: str, consumes: tuple[Path, ...] = ()) -> CommandRequest:
        return CommandRequest(
            program=program,
            args=args,
            cwd=self.state.current_directory,
            capture_mode=CaptureMode.CAPTURE,
            rescan=True,
            env=selection_environment(self._template_context()),
            clears_selection=tuple(path for path in consumes if path in self.state.selection),
        )

    def _confirm_rename(self, new_name: str) -> None:
        entry = self.state.cursor_entry()
        if entry is None or not new_name or new_name == entry.name:
            return
        if "/" in new_name or new_name in {".", ".."}:
            self._outcome.status = f"invalid name: {new_name}"
            return
        target = self.state.current_directory / new_name
        self._outcome.commands.append(
            self._file_operation("mv", "-n", "--", str(entry.path), str(target), consumes=(entry.path,))
        )

    def _confirm_create(self, name: str, program: str, *flags: str) -> None:
        if not name:
            return
        target = Path(name).expanduser()
        if not target.is_absolute():
            target = self.state.current_directory / target
        self._outcome.commands.append(self._file_operation(program, *flags, "--", str(target)))

    def _confirm_delete(self, confirmed: bool) -> None:
        if not confirmed:
            self._outcome.status = "delete cancelled"
            return
        targets = self.state.target_paths()
        if not targets:
            return
        self._outcome.commands.append(
            self._file_operation("rm", "-rf", "--", *(str(path) for path in targets), consumes=targets)
        )

    def _confirm_shell(self, command: str) -> None:
        if not command:
            return
        context = self._template_context(command)
        self._outcome.commands.append(
            CommandRequest(
                program="sh",
                args=("-c", command, "sh", *(str(path) for path in context.targets)),
                cwd=self.state.current_directory,
                capture_mode=CaptureMode.INHERIT,
                rescan=True,
                env=selection_environment(context),
            )
        )


__all__ = [
    "DEFAULT_PAGE_SIZE",
    "DispatcherMode",
    "PromptState",
    "DispatchOutcome",
    "CommandDispatcher",
]
