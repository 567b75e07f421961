"""Input-layer public API: key decoding, keymaps, and the dispatcher.

Low-level terminal decoding (``read_key``) is kept separate from keymap
compilation and the dispatcher state machine that consumes its tokens.
"""

from .commands import CommandRequest, TemplateContext, expand_template
from .dispatcher import CommandDispatcher, DispatcherMode, DispatchOutcome
from .key_registry import KeyComboBinding, KeyComboRegistry
from .keymap import DEFAULT_KEYMAP, Action, CaptureMode, CommandTemplate, Keymap, default_keymap
from .keys import read_key

__all__ = [
    "CommandRequest",
    "TemplateContext",
    "expand_template",
    "CommandDispatcher",
    "DispatcherMode",
    "DispatchOutcome",
    "KeyComboBinding",
    "KeyComboRegistry",
    "DEFAULT_KEYMAP",
    "Action",
    "CaptureMode",
    "CommandTemplate",
    "Keymap",
    "default_keymap",
    "read_key",
]
