"""Persistent JSON config helpers.

Stores the hidden-file preference, default sort policy, keymap overrides and
worker/cache tuning. All access is defensive: malformed or missing config
falls back to defaults, and invalid individual values are ignored.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from platformdirs import user_config_dir

from .file_model.cache import DEFAULT_CACHE_CAPACITY
from .file_model.types import SortKey, SortPolicy
from .preview.build import PREVIEW_MAX_BYTES, PREVIEW_MAX_LINES
from .runtime.engine import EngineOptions
from .runtime.preview_pump import DEFAULT_PREVIEW_WORKERS
from .runtime.scanner import DEFAULT_SCAN_WORKERS

logger = logging.getLogger(__name__)

APP_NAME = "lazyfm"
CONFIG_FILENAME = "config.json"
CONFIG_PATH = Path(user_config_dir(APP_NAME, appauthor=False)) / CONFIG_FILENAME

DEFAULT_WATCH_POLL_SECONDS = 1.0
MAX_WORKERS = 16


def load_config() -> dict[str, object]:
    """Load the persisted JSON config object.

    Returns an empty dict when the file is missing, unreadable, malformed, or
    does not decode to a top-level JSON object.
    """
    try:
        data = json.loads(CONFIG_PATH.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return {}
    except (OSError, ValueError) as exc:
        logger.warning("Ignoring unreadable config %s: %s", CONFIG_PATH, exc)
        return {}
    return data if isinstance(data, dict) else {}


def save_config(data: dict[str, object]) -> None:
    """Persist config data as pretty-printed JSON.

    Write failures are logged and otherwise ignored; losing a preference is
    never fatal.
    """
    try:
        CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
        CONFIG_PATH.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
    except (OSError, TypeError, ValueError) as exc:
        logger.warning("Could not save config %s: %s", CONFIG_PATH, exc)


def load_show_hidden(data: dict[str, object] | None = None) -> bool:
    """Only explicit booleans are accepted; anything else means ``False``."""
    value = (load_config() if data is None else data).get("show_hidden")
    return value if isinstance(value, bool) else False


def save_show_hidden(show_hidden: bool) -> None:
    config = load_config()
    config["show_hidden"] = bool(show_hidden)
    save_config(config)


def load_sort_policy(data: dict[str, object] | None = None) -> SortPolicy:
    """Read ``{"sort": {"key", "directories_first", "reverse"}}``."""
    value = (load_config() if data is None else data).get("sort")
    default = SortPolicy()
    if not isinstance(value, dict):
        return default
    try:
        key = SortKey(value.get("key", default.key.value))
    except ValueError:
        key = default.key
    directories_first = value.get("directories_first")
    reverse = value.get("reverse")
    return SortPolicy(
        key=key,
        directories_first=directories_first if isinstance(directories_first, bool) else default.directories_first,
        reverse=reverse if isinstance(reverse, bool) else default.reverse,
    )


def load_keymap_overrides(data: dict[str, object] | None = None) -> dict[str, object]:
    """Return user keymap entries; values are validated when compiled."""
    value = (load_config() if data is None else data).get("keymap")
    if not isinstance(value, dict):
        return {}
    return {str(sequence): binding for sequence, binding in value.items()}


def _load_positive_int(data: dict[str, object], key: str, default: int, upper: int | None = None) -> int:
    value = data.get(key)
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        return default
    return min(value, upper) if upper is not None else value


def _load_non_negative_float(data: dict[str, object], key: str, default: float) -> float:
    value = data.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
        return default
    return float(value)


def load_engine_options(data: dict[str, object] | None = None) -> EngineOptions:
    """Collect every engine tunable from config, defaulting invalid values."""
    config = load_config() if data is None else data
    return EngineOptions(
        show_hidden=load_show_hidden(config),
        sort_policy=load_sort_policy(config),
        preview_max_bytes=_load_positive_int(config, "preview_max_bytes", PREVIEW_MAX_BYTES),
        preview_max_lines=_load_positive_int(config, "preview_max_lines", PREVIEW_MAX_LINES),
        preview_workers=_load_positive_int(config, "preview_workers", DEFAULT_PREVIEW_WORKERS, MAX_WORKERS),
        scan_workers=_load_positive_int(config, "scan_workers", DEFAULT_SCAN_WORKERS, MAX_WORKERS),
        cache_capacity=_load_positive_int(config, "cache_capacity", DEFAULT_CACHE_CAPACITY),
        watch_poll_seconds=_load_non_negative_float(config, "watch_poll_seconds", DEFAULT_WATCH_POLL_SECONDS),
    )
