"""Label translation for production values."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional

from homeassistant.core import CALLBACK_TYPE, HomeAssistant
from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers.dispatcher import (
    async_dispatcher_connect,
    async_dispatcher_send,
)
from homeassistant.util.json import load_json_object

from .const import DEFAULT_LANGUAGE, DOMAIN

_LOGGER = logging.getLogger(__name__)


def flatten_catalog(mapping: Mapping[str, Any], prefix: str = "") -> Dict[str, str]:
    """Flatten a nested label catalog into dotted keys.

    {"lbl": {"tanklevel": "Tank Level"}} -> {"lbl.tanklevel": "Tank Level"}
    Non-string leaves are ignored.
    """
    flat: Dict[str, str] = {}
    for key, value in mapping.items():
        full_key = f"{prefix}.{key}" if prefix else str(key)
        if isinstance(value, Mapping):
            flat.update(flatten_catalog(value, full_key))
        elif isinstance(value, str):
            flat[full_key] = value
    return flat


def load_catalogs(directory: Path) -> Dict[str, Dict[str, str]]:
    """Load every <language>.json catalog found in directory.

    Blocking, run it in the executor.
    """
    catalogs: Dict[str, Dict[str, str]] = {}
    if not directory.is_dir():
        return catalogs
    for path in sorted(directory.glob("*.json")):
        try:
            catalogs[path.stem] = flatten_catalog(load_json_object(path))
        except HomeAssistantError as err:
            _LOGGER.warning("Skipping label catalog %s: %s", path.name, err)
    return catalogs


async def async_load_catalogs(
    hass: HomeAssistant, directory: Path
) -> Dict[str, Dict[str, str]]:
    return await hass.async_add_executor_job(load_catalogs, directory)


class LabelTranslator:
    """Resolves label keys for the active language and announces language changes."""

    def __init__(
        self,
        hass: HomeAssistant,
        entry_id: str,
        language: Optional[str],
        catalogs: Mapping[str, Mapping[str, str]],
        fallback_language: str = DEFAULT_LANGUAGE,
    ) -> None:
        self.hass = hass
        self.entry_id = entry_id
        self._catalogs = {lang: dict(entries) for lang, entries in catalogs.items()}
        self._fallback_language = fallback_language
        self._language = language or fallback_language
        self._missing_logged: set[str] = set()

    @property
    def signal_language(self) -> str:
        return f"{DOMAIN}_{self.entry_id}_language"

    @property
    def language(self) -> str:
        return self._language

    @property
    def languages(self) -> list[str]:
        return sorted(self._catalogs)

    def _lookup(self, language: str, key: str) -> Optional[str]:
        catalog = self._catalogs.get(language)
        if catalog is None and "-" in language:
            # "fr-CA" falls back to "fr"
            catalog = self._catalogs.get(language.split("-", 1)[0])
        if catalog is None:
            return None
        return catalog.get(key)

    def translate(self, key: str) -> str:
        """Return the label for key in the active language.

        Falls back to the fallback language, then to the key itself.
        """
        text = self._lookup(self._language, key)
        if text is None:
            text = self._lookup(self._fallback_language, key)
        if text is None:
            if key not in self._missing_logged:
                self._missing_logged.add(key)
                _LOGGER.debug("No label for key %s (language %s)", key, self._language)
            return key
        return text

    def async_set_language(self, language: str) -> bool:
        """Switch the active language; returns True if it changed."""
        if not language or language == self._language:
            return False
        _LOGGER.debug("Label language changed from %s to %s", self._language, language)
        self._language = language
        self._missing_logged.clear()
        async_dispatcher_send(self.hass, self.signal_language)
        return True

    def async_subscribe_language_changed(
        self, handler: Callable[[], None]
    ) -> CALLBACK_TYPE:
        """Subscribe to language changes; returns the unsubscribe callable."""
        return async_dispatcher_connect(self.hass, self.signal_language, handler)
