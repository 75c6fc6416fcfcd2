"""Service handlers for pushing variable values and overriding the label language."""

from __future__ import annotations

import logging
from typing import Any

import voluptuous as vol

from homeassistant.core import HomeAssistant, ServiceCall
from homeassistant.exceptions import ServiceValidationError

from .const import (
    ATTR_ENTRY_ID,
    ATTR_LANGUAGE,
    ATTR_VARIABLES,
    DOMAIN,
    SERVICE_PUSH_VALUES,
    SERVICE_SET_LANGUAGE,
)
from .payload import PayloadError
from .runtime import ProductionValuesRuntimeData

_LOGGER = logging.getLogger(__name__)

PUSH_VALUES_SCHEMA = vol.Schema(
    {
        vol.Optional(ATTR_ENTRY_ID): str,
        vol.Required(ATTR_VARIABLES): dict,
    }
)

SET_LANGUAGE_SCHEMA = vol.Schema(
    {
        vol.Optional(ATTR_ENTRY_ID): str,
        vol.Required(ATTR_LANGUAGE): vol.All(str, vol.Length(min=2, max=16)),
    }
)


def _resolve_runtimes(
    hass: HomeAssistant, entry_id: str | None, *, require_single: bool = False
) -> list[ProductionValuesRuntimeData]:
    """Return the runtime of entry_id, or of every loaded entry.

    With require_single, omitting entry_id is only allowed while exactly one
    entry is loaded.
    """
    domain_data: dict[str, Any] = hass.data.get(DOMAIN, {})
    if entry_id:
        runtime = domain_data.get(entry_id)
        if not isinstance(runtime, ProductionValuesRuntimeData):
            raise ServiceValidationError(f"Unknown config entry {entry_id}")
        return [runtime]
    runtimes = [
        runtime
        for key, runtime in domain_data.items()
        if not key.startswith("_") and isinstance(runtime, ProductionValuesRuntimeData)
    ]
    if require_single and len(runtimes) > 1:
        raise ServiceValidationError(
            f"{len(runtimes)} projects are loaded; entry_id is required"
        )
    return runtimes


async def async_handle_push_values(call: ServiceCall) -> None:
    """Forward pushed variables to the variable source of one project."""
    runtimes = _resolve_runtimes(
        call.hass, call.data.get(ATTR_ENTRY_ID), require_single=True
    )
    payload = {"variables": call.data[ATTR_VARIABLES]}
    for runtime in runtimes:
        try:
            await runtime.source.async_handle_message(payload)
        except PayloadError as err:
            raise ServiceValidationError(f"Invalid variables: {err}") from err


async def async_handle_set_language(call: ServiceCall) -> None:
    """Override the label language; stops following the core language."""
    language = call.data[ATTR_LANGUAGE]
    for runtime in _resolve_runtimes(call.hass, call.data.get(ATTR_ENTRY_ID)):
        runtime.follow_core_language = False
        if runtime.translator.async_set_language(language):
            _LOGGER.info(
                "Label language of project %s set to %s",
                runtime.source.project_name,
                language,
            )


def async_register_services(hass: HomeAssistant) -> None:
    """Register all Production Values services."""
    hass.services.async_register(
        DOMAIN,
        SERVICE_PUSH_VALUES,
        async_handle_push_values,
        schema=PUSH_VALUES_SCHEMA,
    )
    hass.services.async_register(
        DOMAIN,
        SERVICE_SET_LANGUAGE,
        async_handle_set_language,
        schema=SET_LANGUAGE_SCHEMA,
    )


def async_unregister_services(hass: HomeAssistant) -> None:
    """Unregister all Production Values services."""
    for service in (SERVICE_PUSH_VALUES, SERVICE_SET_LANGUAGE):
        if hass.services.has_service(DOMAIN, service):
            hass.services.async_remove(DOMAIN, service)
            _LOGGER.debug("Unregistered service %s.%s", DOMAIN, service)
