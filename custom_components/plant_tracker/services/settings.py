"""Services for global settings, weather and lookups."""

from __future__ import annotations

import logging
from typing import Any

from homeassistant.core import HomeAssistant, ServiceCall

from ..coordinator import PlantTrackerCoordinator
from .common import async_run_action, require_plant

_LOGGER = logging.getLogger(__name__)


async def handle_update_settings(
    hass: HomeAssistant, coordinator: PlantTrackerCoordinator, call: ServiceCall
) -> None:
    """Handle update settings service call."""
    await async_run_action(
        hass, "update settings", coordinator.async_update_settings(**call.data)
    )


async def handle_set_weather_override(
    hass: HomeAssistant, coordinator: PlantTrackerCoordinator, call: ServiceCall
) -> None:
    """Handle set weather override service call."""
    plant_id = call.data["plant_id"]
    require_plant(coordinator, plant_id)
    await async_run_action(
        hass,
        "set weather override",
        coordinator.async_set_weather_override(
            plant_id, call.data.get("temp_c"), call.data.get("rh")
        ),
    )


async def handle_clear_weather_override(
    hass: HomeAssistant, coordinator: PlantTrackerCoordinator, call: ServiceCall
) -> None:
    """Handle clear weather override service call."""
    plant_id = call.data["plant_id"]
    require_plant(coordinator, plant_id)
    await async_run_action(
        hass,
        "clear weather override",
        coordinator.async_clear_weather_override(plant_id),
    )


async def handle_fetch_weather(
    hass: HomeAssistant, coordinator: PlantTrackerCoordinator, call: ServiceCall
) -> dict[str, Any]:
    """Fetch current weather for one plant, or for the global settings."""
    plant_id = call.data.get("plant_id")
    if plant_id:
        require_plant(coordinator, plant_id)
        plant = await async_run_action(
            hass, "fetch weather", coordinator.async_fetch_weather_override(plant_id)
        )
        override = plant.weather_override if plant else None
        return {"weather": override.to_dict() if override else None}

    reading = await async_run_action(
        hass, "fetch weather", coordinator.async_fetch_weather()
    )
    if reading is None:
        _LOGGER.warning("No weather available")
    return {"weather": reading.to_dict() if reading else None}


async def handle_suggest_taxonomy(
    hass: HomeAssistant, coordinator: PlantTrackerCoordinator, call: ServiceCall
) -> dict[str, Any]:
    """Return taxonomy suggestions for a plant name."""
    suggestions = await coordinator.async_suggest_taxonomy(call.data["name"])
    _LOGGER.debug("Found %d taxonomy suggestions", len(suggestions))
    return {"suggestions": suggestions}


async def handle_generate_care_plan(
    hass: HomeAssistant, coordinator: PlantTrackerCoordinator, call: ServiceCall
) -> dict[str, Any]:
    """Generate a care plan and optionally apply it to a plant."""
    plant_id = call.data.get("plant_id")
    if plant_id:
        require_plant(coordinator, plant_id)
    plan = await async_run_action(
        hass,
        "generate care plan",
        coordinator.async_generate_care_plan(
            call.data["name"], plant_id, call.data.get("apply", False)
        ),
    )
    return {"plan": plan}
