"""Production Values integration for Home Assistant."""

from __future__ import annotations

import logging
from pathlib import Path

from homeassistant.config_entries import ConfigEntry
from homeassistant.const import EVENT_CORE_CONFIG_UPDATE, Platform
from homeassistant.core import Event, HomeAssistant, callback
from homeassistant.exceptions import ConfigEntryNotReady

from .const import (
    CONF_DECLARED_VARIABLES,
    CONF_PROJECT_NAME,
    CONF_VARIABLE_NAME,
    DEBUG_LOG,
    DEFAULT_LANGUAGE,
    DOMAIN,
    LABELS_DIRECTORY,
    OPTION_DEBUG_LOG,
    OPTION_VALUES,
)
from .debug import clear_debug, set_debug_enabled
from .runtime import ProductionValuesRuntimeData
from .services import async_register_services, async_unregister_services
from .source import VariableSource
from .translation import LabelTranslator, async_load_catalogs

_LOGGER = logging.getLogger(__name__)

PLATFORMS: list[Platform] = [Platform.SENSOR]


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Set up Production Values from a config entry."""
    domain_data = hass.data.setdefault(DOMAIN, {})

    options = dict(entry.options) if entry.options else {}
    debug_option = options.get(OPTION_DEBUG_LOG)
    set_debug_enabled(
        entry.entry_id, DEBUG_LOG if debug_option is None else bool(debug_option)
    )

    project_name = entry.data.get(CONF_PROJECT_NAME)
    if not project_name:
        raise ConfigEntryNotReady("Missing SCADA project name")

    _LOGGER.debug("Setting up production values for project %s", project_name)

    # Every configured variable is declared so lookups succeed before its
    # first value arrives.
    declared = set(entry.data.get(CONF_DECLARED_VARIABLES, []))
    declared.update(
        value[CONF_VARIABLE_NAME]
        for value in options.get(OPTION_VALUES, [])
        if value.get(CONF_VARIABLE_NAME)
    )
    source = VariableSource(
        hass=hass,
        entry_id=entry.entry_id,
        project_name=project_name,
        declared=declared,
    )

    catalogs = await async_load_catalogs(
        hass, Path(__file__).parent / LABELS_DIRECTORY
    )
    translator = LabelTranslator(
        hass,
        entry.entry_id,
        hass.config.language,
        catalogs,
        fallback_language=DEFAULT_LANGUAGE,
    )

    runtime = ProductionValuesRuntimeData(source=source, translator=translator)

    @callback
    def _handle_core_config_update(event: Event) -> None:
        if not runtime.follow_core_language:
            return
        if "language" in event.data:
            translator.async_set_language(hass.config.language)

    runtime.unsub_language = hass.bus.async_listen(
        EVENT_CORE_CONFIG_UPDATE, _handle_core_config_update
    )

    domain_data[entry.entry_id] = runtime

    if not domain_data.get("_service_registered"):
        async_register_services(hass)
        domain_data["_service_registered"] = True

    try:
        await hass.config_entries.async_forward_entry_setups(entry, PLATFORMS)
    except Exception:
        runtime.unsub_language()
        source.close()
        domain_data.pop(entry.entry_id, None)
        raise

    entry.async_on_unload(entry.add_update_listener(_async_reload_entry))
    return True


async def _async_reload_entry(hass: HomeAssistant, entry: ConfigEntry) -> None:
    """Reload the entry when its options change."""
    await hass.config_entries.async_reload(entry.entry_id)


async def async_unload_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Unload a config entry."""
    domain_data = hass.data.get(DOMAIN)
    if not domain_data or entry.entry_id not in domain_data:
        return True

    unload_ok = await hass.config_entries.async_unload_platforms(entry, PLATFORMS)
    if not unload_ok:
        return False

    data: ProductionValuesRuntimeData = domain_data.pop(entry.entry_id)
    if data.unsub_language:
        data.unsub_language()
        data.unsub_language = None
    data.source.close()
    clear_debug(entry.entry_id)

    # Clean up services if this is the last entry
    remaining_entries = [k for k in domain_data if not k.startswith("_")]
    if not remaining_entries:
        async_unregister_services(hass)
        hass.data.pop(DOMAIN, None)

    return True
