"""Cached production value bound to one SCADA variable."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Callable, Dict, List, MutableMapping, Optional, Protocol

from homeassistant.core import CALLBACK_TYPE, callback

from .variable_state import VariableValue

_LOGGER = logging.getLogger(__name__)


class DisplayFormat(str, Enum):
    """How the display layer should render a value."""

    DEFAULT = "default"
    NUMBER = "number"
    GAUGE = "gauge"
    TEXT = "text"


class ProductionValueEvent(str, Enum):
    """Notifications raised by a production value. None carries a payload."""

    VALUE = "value"
    UNIT = "unit"
    LABEL = "label"


class _ValueLoggerAdapter(logging.LoggerAdapter):
    """Prefixes messages with the value identity and adds it to the record."""

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> tuple[Any, MutableMapping[str, Any]]:
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return f"{self.extra['project']}#{self.extra['variable']}: {msg}", kwargs


class VariableSourceProtocol(Protocol):
    def try_lookup(self, project_name: str, variable_name: str) -> bool: ...

    def async_subscribe_variable_changed(
        self, handler: Callable[[str, VariableValue, Optional[str]], None]
    ) -> CALLBACK_TYPE: ...

    def close(self) -> None: ...


class LabelResolverProtocol(Protocol):
    def translate(self, key: str) -> str: ...

    def async_subscribe_language_changed(
        self, handler: Callable[[], None]
    ) -> CALLBACK_TYPE: ...


class ProductionValue:
    """Last known value and unit of a SCADA variable, with a localized label.

    The value is fetched lazily: reading it while nothing has been received
    asks the source to resolve the variable, and the value itself arrives
    through the source's variable-changed signal. Value notifications are
    raised on every update, unit notifications only when the unit changes,
    label notifications whenever the resolver's language changes.
    """

    def __init__(
        self,
        resolver: Optional[LabelResolverProtocol],
        source: VariableSourceProtocol,
        project_name: str,
        variable_name: str,
        label_key: str,
        *,
        owns_source: bool = False,
    ) -> None:
        self._project_name = project_name
        self._variable_name = variable_name
        self._label_key = label_key
        self._resolver = resolver
        self._source = source
        self._owns_source = owns_source

        self._logger: Optional[_ValueLoggerAdapter] = _ValueLoggerAdapter(
            _LOGGER, {"project": project_name, "variable": variable_name}
        )

        self._value: Optional[VariableValue] = None
        self._has_value = False
        self._unit: Optional[str] = None
        self._lookup_succeeded = False
        self._closed = False

        self.display_format: DisplayFormat = DisplayFormat.DEFAULT
        self.string_format: Optional[str] = None

        self._listeners: Dict[ProductionValueEvent, List[Callable[[], None]]] = {
            event: [] for event in ProductionValueEvent
        }

        self.ensure_initialized()

        self._unsub_variable: Optional[CALLBACK_TYPE] = (
            source.async_subscribe_variable_changed(self._handle_variable_changed)
        )
        self._unsub_language: Optional[CALLBACK_TYPE] = None
        if resolver is not None:
            self._unsub_language = resolver.async_subscribe_language_changed(
                self._handle_language_changed
            )

    @property
    def _log(self) -> logging.Logger | logging.LoggerAdapter:
        # After close() messages go to the module logger without identity
        return self._logger if self._logger is not None else _LOGGER

    @property
    def project_name(self) -> str:
        return self._project_name

    @property
    def variable_name(self) -> str:
        return self._variable_name

    @property
    def label_key(self) -> str:
        return self._label_key

    @property
    def has_value(self) -> bool:
        """True once a value was received or set."""
        return self._has_value

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def cached_value(self) -> Optional[VariableValue]:
        """Last known value; triggers a lookup if nothing was received yet."""
        if not self._has_value:
            self.ensure_initialized()
        return self._value

    @cached_value.setter
    def cached_value(self, value: Optional[VariableValue]) -> None:
        self._value = value
        self._has_value = True
        self._notify(ProductionValueEvent.VALUE)

    @property
    def unit(self) -> Optional[str]:
        return self._unit

    def _set_unit(self, unit: Optional[str]) -> None:
        if unit == self._unit:
            return
        self._unit = unit
        self._notify(ProductionValueEvent.UNIT)

    @property
    def label(self) -> str:
        """Localized label, resolved on every read."""
        if self._resolver is None:
            return self._label_key
        return self._resolver.translate(self._label_key)

    def ensure_initialized(self) -> None:
        """Ask the source to resolve the variable if no value is known yet.

        A successful lookup is only recorded; the value itself comes in
        through the variable-changed signal. A failed lookup is retried on
        the next read.
        """
        if self._has_value or self._lookup_succeeded or self._closed:
            return

        self._log.debug("Initializing production value")
        try:
            found = self._source.try_lookup(self._project_name, self._variable_name)
        except Exception as err:
            self._log.debug("Lookup raised: %s", err)
            found = False

        if found:
            self._lookup_succeeded = True
        else:
            self._log.warning("Could not retrieve variable")

    def async_add_listener(
        self, event: ProductionValueEvent, update_callback: Callable[[], None]
    ) -> CALLBACK_TYPE:
        """Listen for one kind of change; returns the unsubscribe callable."""
        listeners = self._listeners[ProductionValueEvent(event)]
        listeners.append(update_callback)

        @callback
        def remove_listener() -> None:
            if update_callback in listeners:
                listeners.remove(update_callback)

        return remove_listener

    def _notify(self, event: ProductionValueEvent) -> None:
        for update_callback in list(self._listeners[event]):
            try:
                update_callback()
            except Exception:
                self._log.exception("Error in %s listener", event.value)

    @callback
    def _handle_variable_changed(
        self, variable_name: str, value: VariableValue, unit: Optional[str]
    ) -> None:
        if self._closed or variable_name != self._variable_name:
            return
        self._log.debug("New value found for variable %s", variable_name)
        self.cached_value = value
        self._set_unit(unit)

    @callback
    def _handle_language_changed(self) -> None:
        if self._closed:
            return
        self._notify(ProductionValueEvent.LABEL)

    def close(self) -> None:
        """Unsubscribe from both collaborators and release owned resources.

        The resolver is never closed here; the source only when owned.
        Safe to call multiple times.
        """
        if self._closed:
            return
        self._closed = True

        for unsub in (self._unsub_variable, self._unsub_language):
            if unsub is None:
                continue
            try:
                unsub()
            except Exception as err:
                self._log.debug("Error while unsubscribing: %s", err)
        self._unsub_variable = None
        self._unsub_language = None

        if self._owns_source:
            try:
                self._source.close()
            except Exception as err:
                self._log.debug("Error closing variable source: %s", err)

        for listeners in self._listeners.values():
            listeners.clear()

        self._log.debug("Production value closed")
        self._logger = None

    def __str__(self) -> str:
        return (
            f"ProductionValue. Label: {self.label}\tProjectName: {self._project_name}"
            f"\tVariableName: {self._variable_name}\tCachedValue: {self._value}"
            f"\tStringFormat: {self.string_format}"
            f"\tDisplayFormat: {self.display_format.value}\tUnit: {self._unit}"
        )
