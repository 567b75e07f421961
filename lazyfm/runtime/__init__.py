"""Main-loop runtime: engine, background workers, and interactive bootstrap.

Submodules are imported lazily; ``lazyfm.input`` depends on
``runtime.navigation`` while ``runtime.engine`` depends on ``lazyfm.input``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .engine import Engine, EngineOptions, RenderEntry, RenderState

_ENGINE_EXPORTS = {"Engine", "EngineOptions", "RenderEntry", "RenderState"}


def run_file_manager(*args, **kwargs):
    """Lazily import the interactive entrypoint."""
    from .app import run_file_manager as _run_file_manager

    return _run_file_manager(*args, **kwargs)


def __getattr__(name: str):
    if name in _ENGINE_EXPORTS:
        from . import engine as _engine

        return getattr(_engine, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "Engine",
    "EngineOptions",
    "RenderEntry",
    "RenderState",
    "run_file_manager",
]
