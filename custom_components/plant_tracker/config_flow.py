"""Configuration flow for the Plant Tracker integration.

The config flow creates the single Plant Tracker entry. The options flow
selects the conversation agent used for care plans and the location used for
weather lookups.
"""

from __future__ import annotations

import logging
from typing import Any

import homeassistant.helpers.config_validation as cv
import voluptuous as vol
from homeassistant import config_entries
from homeassistant.config_entries import ConfigEntry, ConfigFlowResult, OptionsFlow
from homeassistant.core import callback
from homeassistant.helpers import selector

from .const import (
    CONF_CARE_PLAN_AGENT,
    CONF_WEATHER_LATITUDE,
    CONF_WEATHER_LONGITUDE,
    DEFAULT_NAME,
    DOMAIN,
)

_LOGGER = logging.getLogger(__name__)

STEP_USER_DATA_SCHEMA = vol.Schema(
    {
        vol.Optional("name", default=DEFAULT_NAME): cv.string,
    }
)


class ConfigFlow(config_entries.ConfigFlow, domain=DOMAIN):
    """Handle the initial configuration flow for Plant Tracker."""

    VERSION = 1
    MINOR_VERSION = 1

    async def async_step_user(
        self, user_input: dict[str, Any] | None = None
    ) -> ConfigFlowResult:
        """Handle the first step of the configuration flow.

        Args:
            user_input: The user's input from the form, if any.

        Returns:
            A ConfigFlowResult indicating the next step or completion.
        """
        await self.async_set_unique_id(DOMAIN)
        self._abort_if_unique_id_configured()

        if user_input is not None:
            name = user_input.get("name", DEFAULT_NAME)
            _LOGGER.debug("Creating Plant Tracker entry %s", name)
            return self.async_create_entry(title=name, data={"name": name})

        return self.async_show_form(step_id="user", data_schema=STEP_USER_DATA_SCHEMA)

    @staticmethod
    @callback
    def async_get_options_flow(config_entry: ConfigEntry) -> OptionsFlowHandler:
        """Get the options flow for this handler."""
        return OptionsFlowHandler(config_entry)


class OptionsFlowHandler(OptionsFlow):
    """Handles the options flow for Plant Tracker."""

    def __init__(self, config_entry: ConfigEntry) -> None:
        """Initialize the options flow handler.

        Args:
            config_entry: The configuration entry.
        """
        self._config_entry = config_entry

    def _get_options_schema(self) -> vol.Schema:
        """Build the options form with the current values suggested."""
        options = self._config_entry.options
        latitude = options.get(CONF_WEATHER_LATITUDE, self.hass.config.latitude)
        longitude = options.get(CONF_WEATHER_LONGITUDE, self.hass.config.longitude)
        return vol.Schema(
            {
                vol.Optional(
                    CONF_CARE_PLAN_AGENT,
                    description={"suggested_value": options.get(CONF_CARE_PLAN_AGENT)},
                ): selector.ConversationAgentSelector(),
                vol.Optional(
                    CONF_WEATHER_LATITUDE, default=latitude
                ): selector.NumberSelector(
                    selector.NumberSelectorConfig(
                        min=-90, max=90, step="any", mode=selector.NumberSelectorMode.BOX
                    )
                ),
                vol.Optional(
                    CONF_WEATHER_LONGITUDE, default=longitude
                ): selector.NumberSelector(
                    selector.NumberSelectorConfig(
                        min=-180, max=180, step="any", mode=selector.NumberSelectorMode.BOX
                    )
                ),
            }
        )

    async def async_step_init(
        self, user_input: dict[str, Any] | None = None
    ) -> ConfigFlowResult:
        """Show and save the options form.

        Args:
            user_input: The submitted options, if any.

        Returns:
            A ConfigFlowResult that either shows the form or stores the options.
        """
        if user_input is not None:
            _LOGGER.debug("Saving Plant Tracker options: %s", user_input)
            return self.async_create_entry(title="", data=user_input)

        return self.async_show_form(step_id="init", data_schema=self._get_options_schema())
