"""Debug logging switch shared by all Production Values entries."""

from __future__ import annotations

import logging


_LOGGER_NAMESPACE = "custom_components.production_values"

# Entries that asked for debug logging; the namespace logs at DEBUG while
# at least one of them is loaded.
_DEBUG_ENTRIES: set[str] = set()


def _apply_level() -> None:
    logger = logging.getLogger(_LOGGER_NAMESPACE)
    logger.setLevel(logging.DEBUG if _DEBUG_ENTRIES else logging.INFO)


def set_debug_enabled(entry_id: str, value: bool) -> None:
    """Record the debug option of an entry and update the logger level."""
    if value:
        _DEBUG_ENTRIES.add(entry_id)
    else:
        _DEBUG_ENTRIES.discard(entry_id)
    _apply_level()


def clear_debug(entry_id: str) -> None:
    """Forget an unloaded entry."""
    set_debug_enabled(entry_id, False)


def debug_enabled() -> bool:
    """Return whether verbose debug logging is enabled for any entry."""
    return bool(_DEBUG_ENTRIES)
