"""Tests for the Production Values config and options flows."""

from unittest.mock import AsyncMock, patch

import pytest
from homeassistant import config_entries
from homeassistant.data_entry_flow import FlowResultType
from pytest_homeassistant_custom_component.common import MockConfigEntry

from custom_components.production_values.const import (
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

SETUP_ENTRY = "custom_components.production_values.async_setup_entry"


@pytest.mark.asyncio
async def test_user_flow_success(hass):
    """Create an entry for a SCADA project."""
    with patch(SETUP_ENTRY, AsyncMock(return_value=True)):
        init_result = await hass.config_entries.flow.async_init(
            DOMAIN, context={"source": config_entries.SOURCE_USER}
        )
        assert init_result["type"] == FlowResultType.FORM
        assert init_result["step_id"] == "user"

        result = await hass.config_entries.flow.async_configure(
            init_result["flow_id"],
            user_input={
                CONF_PROJECT_NAME: " Plant1 ",
                CONF_DECLARED_VARIABLES: "TankLevel, LineSpeed\nTankLevel",
            },
        )

    assert result["type"] == FlowResultType.CREATE_ENTRY
    assert result["title"] == "Plant1"
    entry = result["result"]
    assert entry.unique_id == "Plant1"
    assert entry.data[CONF_PROJECT_NAME] == "Plant1"
    assert entry.data[CONF_DECLARED_VARIABLES] == ["TankLevel", "LineSpeed"]


@pytest.mark.asyncio
async def test_user_flow_invalid_project(hass):
    """Reject an empty project name."""
    init_result = await hass.config_entries.flow.async_init(
        DOMAIN, context={"source": config_entries.SOURCE_USER}
    )
    result = await hass.config_entries.flow.async_configure(
        init_result["flow_id"], user_input={CONF_PROJECT_NAME: "   "}
    )

    assert result["type"] == FlowResultType.FORM
    assert result["errors"]["base"] == "invalid_project_name"


@pytest.mark.asyncio
async def test_user_flow_duplicate_project(hass):
    """Abort when the project already has an entry."""
    MockConfigEntry(
        domain=DOMAIN, unique_id="Plant1", data={CONF_PROJECT_NAME: "Plant1"}
    ).add_to_hass(hass)

    init_result = await hass.config_entries.flow.async_init(
        DOMAIN, context={"source": config_entries.SOURCE_USER}
    )
    result = await hass.config_entries.flow.async_configure(
        init_result["flow_id"], user_input={CONF_PROJECT_NAME: "Plant1"}
    )

    assert result["type"] == FlowResultType.ABORT
    assert result["reason"] == "already_configured"


@pytest.mark.asyncio
async def test_options_add_and_remove_value(hass):
    """Add a production value, reject a duplicate, then remove it."""
    entry = MockConfigEntry(
        domain=DOMAIN, unique_id="Plant1", data={CONF_PROJECT_NAME: "Plant1"}
    )
    entry.add_to_hass(hass)

    with patch(SETUP_ENTRY, AsyncMock(return_value=True)):
        menu = await hass.config_entries.options.async_init(entry.entry_id)
        assert menu["type"] == FlowResultType.MENU

        form = await hass.config_entries.options.async_configure(
            menu["flow_id"], {"next_step_id": "add_value"}
        )
        assert form["step_id"] == "add_value"

        result = await hass.config_entries.options.async_configure(
            form["flow_id"],
            {
                CONF_VARIABLE_NAME: "TankLevel",
                CONF_LABEL_KEY: "lbl.tanklevel",
                CONF_DISPLAY_FORMAT: "gauge",
                CONF_STRING_FORMAT: ".1f",
            },
        )
        assert result["type"] == FlowResultType.CREATE_ENTRY
        assert entry.options[OPTION_VALUES] == [
            {
                CONF_VARIABLE_NAME: "TankLevel",
                CONF_LABEL_KEY: "lbl.tanklevel",
                CONF_DISPLAY_FORMAT: "gauge",
                CONF_STRING_FORMAT: ".1f",
            }
        ]

        menu = await hass.config_entries.options.async_init(entry.entry_id)
        form = await hass.config_entries.options.async_configure(
            menu["flow_id"], {"next_step_id": "add_value"}
        )
        duplicate = await hass.config_entries.options.async_configure(
            form["flow_id"], {CONF_VARIABLE_NAME: "TankLevel"}
        )
        assert duplicate["type"] == FlowResultType.FORM
        assert duplicate["errors"]["base"] == "already_configured"

        menu = await hass.config_entries.options.async_init(entry.entry_id)
        form = await hass.config_entries.options.async_configure(
            menu["flow_id"], {"next_step_id": "remove_value"}
        )
        result = await hass.config_entries.options.async_configure(
            form["flow_id"], {CONF_VARIABLE_NAME: "TankLevel"}
        )
        assert result["type"] == FlowResultType.CREATE_ENTRY
        assert entry.options[OPTION_VALUES] == []


@pytest.mark.asyncio
async def test_options_label_key_defaults_to_variable(hass):
    """Use the variable name as label key when none is given."""
    entry = MockConfigEntry(
        domain=DOMAIN, unique_id="Plant1", data={CONF_PROJECT_NAME: "Plant1"}
    )
    entry.add_to_hass(hass)

    with patch(SETUP_ENTRY, AsyncMock(return_value=True)):
        menu = await hass.config_entries.options.async_init(entry.entry_id)
        form = await hass.config_entries.options.async_configure(
            menu["flow_id"], {"next_step_id": "add_value"}
        )
        await hass.config_entries.options.async_configure(
            form["flow_id"], {CONF_VARIABLE_NAME: "LineSpeed"}
        )

    value = entry.options[OPTION_VALUES][0]
    assert value[CONF_LABEL_KEY] == "LineSpeed"
    assert value[CONF_DISPLAY_FORMAT] == "default"


@pytest.mark.asyncio
async def test_options_remove_without_values(hass):
    """Abort removal when nothing is configured."""
    entry = MockConfigEntry(
        domain=DOMAIN, unique_id="Plant1", data={CONF_PROJECT_NAME: "Plant1"}
    )
    entry.add_to_hass(hass)

    menu = await hass.config_entries.options.async_init(entry.entry_id)
    result = await hass.config_entries.options.async_configure(
        menu["flow_id"], {"next_step_id": "remove_value"}
    )

    assert result["type"] == FlowResultType.ABORT
    assert result["reason"] == "no_values"


@pytest.mark.asyncio
async def test_options_settings(hass):
    """Toggle debug logging."""
    entry = MockConfigEntry(
        domain=DOMAIN, unique_id="Plant1", data={CONF_PROJECT_NAME: "Plant1"}
    )
    entry.add_to_hass(hass)

    with patch(SETUP_ENTRY, AsyncMock(return_value=True)):
        menu = await hass.config_entries.options.async_init(entry.entry_id)
        form = await hass.config_entries.options.async_configure(
            menu["flow_id"], {"next_step_id": "settings"}
        )
        result = await hass.config_entries.options.async_configure(
            form["flow_id"], {OPTION_DEBUG_LOG: True}
        )

    assert result["type"] == FlowResultType.CREATE_ENTRY
    assert entry.options[OPTION_DEBUG_LOG] is True
