"""Shared test configuration for the Production Values integration."""

from unittest.mock import MagicMock

import pytest

pytest_plugins = "pytest_homeassistant_custom_component"


@pytest.fixture(autouse=True)
def auto_enable_custom_integrations(enable_custom_integrations):
    """Enable loading this custom integration in all tests."""
    yield


@pytest.fixture
def mock_hass():
    """Create a mock Home Assistant instance for dispatcher-level tests."""
    hass = MagicMock()
    hass.loop = MagicMock()
    return hass
