"""Token-to-handler tables for modal key handling.

Prompt editing and the terminal front-end both need small exact-match tables
with a fallback for unbound keys (e.g. inserting typed characters), so
handlers receive the key token they were invoked for.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

KeyHandler = Callable[[str], bool]


@dataclass(frozen=True)
class KeyComboBinding:
    """One handler reachable through several key tokens."""

    combos: tuple[str, ...]
    handler: KeyHandler


class KeyComboRegistry:
    """Exact-match key table with an optional fallback handler."""

    def __init__(self, fallback: KeyHandler | None = None) -> None:
        self._fallback = fallback
        self._handlers: dict[str, KeyHandler] = {}

    def register_bindings(self, *bindings: KeyComboBinding) -> KeyComboRegistry:
        """Register bindings, later ones overwriting earlier combos."""
        for binding in bindings:
            for combo in binding.combos:
                self._handlers[combo] = binding.handler
        return self

    def __contains__(self, key: object) -> bool:
        return key in self._handlers

    def dispatch(self, key: str) -> bool:
        """Run the handler for ``key`` (or the fallback); ``False`` when unhandled."""
        handler = self._handlers.get(key, self._fallback)
        if handler is None:
            return False
        return handler(key)


__all__ = ["KeyHandler", "KeyComboBinding", "KeyComboRegistry"]
