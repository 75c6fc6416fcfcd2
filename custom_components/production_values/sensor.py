"""Sensor platform for Production Values."""

from __future__ import annotations

import logging
import math
from typing import Any, Optional

from homeassistant.components.sensor import SensorEntity
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import CALLBACK_TYPE, HomeAssistant, callback
from homeassistant.helpers.entity_platform import AddEntitiesCallback

from .const import (
    ATTR_DISPLAY_FORMAT,
    ATTR_LABEL_KEY,
    ATTR_PROJECT,
    ATTR_TIMESTAMP,
    ATTR_VARIABLE,
    CONF_DISPLAY_FORMAT,
    CONF_LABEL_KEY,
    CONF_STRING_FORMAT,
    CONF_VARIABLE_NAME,
    DOMAIN,
    OPTION_VALUES,
)
from .production_value import DisplayFormat, ProductionValue, ProductionValueEvent
from .runtime import ProductionValuesRuntimeData
from .source import VariableSource

_LOGGER = logging.getLogger(__name__)


def _to_number(value: Any) -> Optional[float | int]:
    """Return value as a number, or None for text and booleans."""
    # bool is an int subclass but a state, not a measurement
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        try:
            number = float(value)
        except ValueError:
            return None
        return number if math.isfinite(number) else None
    return None


def _is_numeric(value: Any) -> bool:
    return _to_number(value) is not None


def format_value(value: Any, string_format: Optional[str]) -> Any:
    """Render a numeric value with a format spec such as ".2f".

    Numeric strings are converted first. Text, booleans, missing values and
    unusable format specs leave the value unchanged.
    """
    number = _to_number(value)
    if number is None or not string_format:
        return value
    try:
        return format(number, string_format)
    except (TypeError, ValueError):
        _LOGGER.debug("Cannot apply format %s to %s", string_format, value)
        return value


def build_production_value(
    runtime: ProductionValuesRuntimeData, config: dict[str, Any]
) -> ProductionValue:
    """Create a production value from one configured options entry."""
    value = ProductionValue(
        runtime.translator,
        runtime.source,
        runtime.source.project_name,
        config[CONF_VARIABLE_NAME],
        config.get(CONF_LABEL_KEY) or config[CONF_VARIABLE_NAME],
    )
    try:
        value.display_format = DisplayFormat(
            config.get(CONF_DISPLAY_FORMAT, DisplayFormat.DEFAULT)
        )
    except ValueError:
        _LOGGER.warning(
            "Unknown display format %s for %s, using default",
            config.get(CONF_DISPLAY_FORMAT),
            config[CONF_VARIABLE_NAME],
        )
    value.string_format = config.get(CONF_STRING_FORMAT) or None
    return value


async def async_setup_entry(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up one sensor per configured production value."""
    runtime: ProductionValuesRuntimeData = hass.data[DOMAIN][entry.entry_id]

    entities: list[ProductionValueSensor] = []
    seen: set[str] = set()
    for config in entry.options.get(OPTION_VALUES, []):
        variable_name = config.get(CONF_VARIABLE_NAME)
        if not variable_name or variable_name in seen:
            continue
        seen.add(variable_name)
        entities.append(
            ProductionValueSensor(
                entry.entry_id, runtime.source, build_production_value(runtime, config)
            )
        )

    _LOGGER.debug(
        "Adding %d production value sensor(s) for project %s",
        len(entities),
        runtime.source.project_name,
    )
    async_add_entities(entities)


class ProductionValueSensor(SensorEntity):
    """Displays a production value: label as name, cached value and unit."""

    _attr_should_poll = False

    def __init__(
        self, entry_id: str, source: VariableSource, production_value: ProductionValue
    ) -> None:
        self._source = source
        self._value = production_value
        self._attr_unique_id = f"{entry_id}_{production_value.variable_name}"
        self._unsubs: list[CALLBACK_TYPE] = []
        self._write_pending = False

    @property
    def production_value(self) -> ProductionValue:
        return self._value

    @property
    def name(self) -> str:
        return self._value.label

    @property
    def native_value(self) -> Any:
        return format_value(self._value.cached_value, self._value.string_format)

    @property
    def native_unit_of_measurement(self) -> Optional[str]:
        # Text states cannot carry a unit of measurement
        if not _is_numeric(self._value.cached_value):
            return None
        return self._value.unit

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        attrs: dict[str, Any] = {
            ATTR_PROJECT: self._value.project_name,
            ATTR_VARIABLE: self._value.variable_name,
            ATTR_LABEL_KEY: self._value.label_key,
            ATTR_DISPLAY_FORMAT: self._value.display_format.value,
        }
        state = self._source.get_state(self._value.variable_name)
        if state is not None and state.timestamp:
            attrs[ATTR_TIMESTAMP] = state.timestamp
        return attrs

    async def async_added_to_hass(self) -> None:
        await super().async_added_to_hass()
        for event in ProductionValueEvent:
            self._unsubs.append(
                self._value.async_add_listener(event, self._handle_change)
            )

    async def async_will_remove_from_hass(self) -> None:
        """Unsubscribe from updates and release the production value."""
        while self._unsubs:
            self._unsubs.pop()()
        self._value.close()
        await super().async_will_remove_from_hass()

    @callback
    def _handle_change(self) -> None:
        # One inbound event raises value and unit notifications back to back;
        # write the state once after both have landed.
        if self._write_pending:
            return
        self._write_pending = True
        self.hass.loop.call_soon(self._async_write_pending_state)

    @callback
    def _async_write_pending_state(self) -> None:
        self._write_pending = False
        if self._value.closed or self.hass is None:
            return
        self.async_write_ha_state()
