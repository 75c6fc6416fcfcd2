"""Config flow for the Production Values integration."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import voluptuous as vol

from homeassistant import config_entries
from homeassistant.core import callback
from homeassistant.data_entry_flow import FlowResult

from .const import (
    CONF_DECLARED_VARIABLES,
    CONF_DISPLAY_FORMAT,
    CONF_LABEL_KEY,
    CONF_PROJECT_NAME,
    CONF_STRING_FORMAT,
    CONF_VARIABLE_NAME,
    DOMAIN,
    OPTION_DEBUG_LOG,
    OPTION_VALUES,
)
from .payload import is_valid_variable_name
from .production_value import DisplayFormat

_LOGGER = logging.getLogger(__name__)

MAX_PROJECT_NAME_LENGTH = 64


def _validate_project_name(project_name: str) -> bool:
    if not project_name or len(project_name) > MAX_PROJECT_NAME_LENGTH:
        return False
    return project_name.isprintable()


def _parse_declared_variables(raw: str) -> list[str]:
    """Split a comma or newline separated list of variable names."""
    names: list[str] = []
    for part in raw.replace("\n", ",").split(","):
        name = part.strip()
        if name and name not in names:
            names.append(name)
    return names


class ProductionValuesConfigFlow(config_entries.ConfigFlow, domain=DOMAIN):
    """Handle a config flow for one SCADA project."""

    VERSION = 1

    async def async_step_user(self, user_input: Optional[Dict[str, Any]] = None) -> FlowResult:
        schema = vol.Schema(
            {
                vol.Required(CONF_PROJECT_NAME): str,
                vol.Optional(CONF_DECLARED_VARIABLES, default=""): str,
            }
        )
        if user_input is None:
            return self.async_show_form(step_id="user", data_schema=schema)

        project_name = user_input[CONF_PROJECT_NAME].strip()
        if not _validate_project_name(project_name):
            return self.async_show_form(
                step_id="user",
                data_schema=schema,
                errors={"base": "invalid_project_name"},
            )

        declared = _parse_declared_variables(user_input.get(CONF_DECLARED_VARIABLES, ""))
        if any(not is_valid_variable_name(name) for name in declared):
            return self.async_show_form(
                step_id="user",
                data_schema=schema,
                errors={"base": "invalid_variable_name"},
            )

        await self.async_set_unique_id(project_name)
        self._abort_if_unique_id_configured()

        _LOGGER.debug("Creating entry for project %s", project_name)
        return self.async_create_entry(
            title=project_name,
            data={
                CONF_PROJECT_NAME: project_name,
                CONF_DECLARED_VARIABLES: declared,
            },
        )

    @staticmethod
    @callback
    def async_get_options_flow(
        config_entry: config_entries.ConfigEntry,
    ) -> config_entries.OptionsFlow:
        return ProductionValuesOptionsFlowHandler(config_entry)


class ProductionValuesOptionsFlowHandler(config_entries.OptionsFlow):
    def __init__(self, config_entry: config_entries.ConfigEntry) -> None:
        self._config_entry = config_entry

    def _current_values(self) -> list[Dict[str, Any]]:
        return [dict(value) for value in self._config_entry.options.get(OPTION_VALUES, [])]

    def _save(self, **changes: Any) -> FlowResult:
        options = dict(self._config_entry.options)
        options.update(changes)
        return self.async_create_entry(title="", data=options)

    async def async_step_init(self, user_input: Optional[Dict[str, Any]] = None) -> FlowResult:
        return self.async_show_menu(
            step_id="init",
            menu_options={
                "add_value": "Add a production value",
                "remove_value": "Remove a production value",
                "settings": "Settings",
            },
        )

    async def async_step_add_value(
        self, user_input: Optional[Dict[str, Any]] = None
    ) -> FlowResult:
        schema = vol.Schema(
            {
                vol.Required(CONF_VARIABLE_NAME): str,
                vol.Optional(CONF_LABEL_KEY, default=""): str,
                vol.Optional(
                    CONF_DISPLAY_FORMAT, default=DisplayFormat.DEFAULT.value
                ): vol.In([fmt.value for fmt in DisplayFormat]),
                vol.Optional(CONF_STRING_FORMAT, default=""): str,
            }
        )
        if user_input is None:
            return self.async_show_form(step_id="add_value", data_schema=schema)

        variable_name = user_input[CONF_VARIABLE_NAME].strip()
        if not is_valid_variable_name(variable_name):
            return self.async_show_form(
                step_id="add_value",
                data_schema=schema,
                errors={"base": "invalid_variable_name"},
            )

        values = self._current_values()
        if any(value.get(CONF_VARIABLE_NAME) == variable_name for value in values):
            return self.async_show_form(
                step_id="add_value",
                data_schema=schema,
                errors={"base": "already_configured"},
            )

        values.append(
            {
                CONF_VARIABLE_NAME: variable_name,
                CONF_LABEL_KEY: user_input.get(CONF_LABEL_KEY, "").strip() or variable_name,
                CONF_DISPLAY_FORMAT: user_input.get(
                    CONF_DISPLAY_FORMAT, DisplayFormat.DEFAULT.value
                ),
                CONF_STRING_FORMAT: user_input.get(CONF_STRING_FORMAT, "").strip(),
            }
        )
        return self._save(**{OPTION_VALUES: values})

    async def async_step_remove_value(
        self, user_input: Optional[Dict[str, Any]] = None
    ) -> FlowResult:
        values = self._current_values()
        names = [value[CONF_VARIABLE_NAME] for value in values]
        if not names:
            return self.async_abort(reason="no_values")

        if user_input is None:
            return self.async_show_form(
                step_id="remove_value",
                data_schema=vol.Schema({vol.Required(CONF_VARIABLE_NAME): vol.In(names)}),
            )

        remaining = [
            value
            for value in values
            if value[CONF_VARIABLE_NAME] != user_input[CONF_VARIABLE_NAME]
        ]
        return self._save(**{OPTION_VALUES: remaining})

    async def async_step_settings(
        self, user_input: Optional[Dict[str, Any]] = None
    ) -> FlowResult:
        if user_input is None:
            current = bool(self._config_entry.options.get(OPTION_DEBUG_LOG, False))
            return self.async_show_form(
                step_id="settings",
                data_schema=vol.Schema(
                    {vol.Required(OPTION_DEBUG_LOG, default=current): bool}
                ),
            )
        return self._save(**{OPTION_DEBUG_LOG: bool(user_input[OPTION_DEBUG_LOG])})
