"""Variable source for one SCADA project."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional, Set

from homeassistant.core import CALLBACK_TYPE, HomeAssistant
from homeassistant.helpers.dispatcher import (
    async_dispatcher_connect,
    async_dispatcher_send,
)

from .const import DOMAIN
from .debug import debug_enabled
from .payload import PayloadError, is_valid_variable_name, parse_push_payload
from .variable_state import VariableState, VariableValue, is_supported_value

_LOGGER = logging.getLogger(__name__)

VariableChangedHandler = Callable[[str, VariableValue, Optional[str]], None]


@dataclass
class VariableSource:
    """Holds the last known state of a project's variables and broadcasts changes.

    Every accepted update is broadcast on ``signal_variable`` as
    ``(name, value, unit)``; subscribers filter on the variable name.
    """

    hass: HomeAssistant
    entry_id: str
    project_name: str
    data: Dict[str, VariableState] = field(default_factory=dict)
    declared: Set[str] = field(default_factory=set)
    last_message_at: Optional[datetime] = None
    messages_received: int = 0
    rejected_messages: int = 0
    _registered: Set[str] = field(default_factory=set, init=False, repr=False)
    _closed: bool = field(default=False, init=False)
    # Lock to protect concurrent access to data
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False, repr=False)

    @property
    def signal_variable(self) -> str:
        return f"{DOMAIN}_{self.entry_id}_variable"

    @property
    def signal_diagnostics(self) -> str:
        return f"{DOMAIN}_{self.entry_id}_diagnostics"

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def registered(self) -> frozenset[str]:
        """Variables at least one consumer successfully looked up."""
        return frozenset(self._registered)

    def try_lookup(self, project_name: str, variable_name: str) -> bool:
        """Try to resolve a variable of this project.

        A successful lookup registers interest in the variable; its value is
        delivered through the variable-changed signal, not returned here.
        """
        if self._closed:
            return False
        if project_name != self.project_name:
            return False
        if not is_valid_variable_name(variable_name):
            return False
        if variable_name not in self.declared and variable_name not in self.data:
            return False
        self._registered.add(variable_name)
        return True

    def async_subscribe_variable_changed(
        self, handler: VariableChangedHandler
    ) -> CALLBACK_TYPE:
        """Subscribe to variable changes; returns the unsubscribe callable."""
        return async_dispatcher_connect(self.hass, self.signal_variable, handler)

    def get_state(self, variable_name: str) -> Optional[VariableState]:
        return self.data.get(variable_name)

    async def async_handle_message(self, payload: Dict[str, Any]) -> int:
        """Apply a push message from the runtime and broadcast every update.

        Returns the number of variables broadcast. Raises PayloadError when
        the message is rejected.
        """
        if self._closed:
            _LOGGER.debug(
                "Ignoring message for closed source of project %s", self.project_name
            )
            return 0

        try:
            updates = parse_push_payload(payload)
        except PayloadError as err:
            self.rejected_messages += 1
            _LOGGER.warning(
                "Rejected message for project %s: %s", self.project_name, err
            )
            raise

        if debug_enabled():
            _LOGGER.debug(
                "Processing message for project %s: %s",
                self.project_name,
                [update.name for update in updates],
            )

        now = time.time()
        async with self._lock:
            for update in updates:
                self.data[update.name] = VariableState(
                    value=update.value,
                    unit=update.unit,
                    timestamp=update.timestamp,
                    last_seen=now,
                )
            self.messages_received += 1
            self.last_message_at = datetime.now(timezone.utc)

        # Broadcast outside the lock so subscribers may read state. The
        # dispatcher logs and contains exceptions raised by subscribers.
        for update in updates:
            async_dispatcher_send(
                self.hass, self.signal_variable, update.name, update.value, update.unit
            )
        async_dispatcher_send(self.hass, self.signal_diagnostics)

        _LOGGER.debug(
            "Applied %d variable update(s) for project %s",
            len(updates),
            self.project_name,
        )
        return len(updates)

    async def async_update_variable(
        self,
        variable_name: str,
        value: VariableValue,
        unit: Optional[str] = None,
        timestamp: Optional[str] = None,
    ) -> None:
        """Apply a single variable update."""
        if not is_supported_value(value):
            raise PayloadError(
                f"unsupported value type {type(value).__name__} for {variable_name}"
            )
        entry: Dict[str, Any] = {"value": value, "unit": unit}
        if timestamp is not None:
            entry["timestamp"] = timestamp
        await self.async_handle_message({"variables": {variable_name: entry}})

    def close(self) -> None:
        """Release the source. Safe to call multiple times."""
        if self._closed:
            return
        self._closed = True
        self.data.clear()
        self._registered.clear()
        _LOGGER.debug("Closed variable source for project %s", self.project_name)
