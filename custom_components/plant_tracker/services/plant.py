"""Services related to plants, their tasks and observations."""

from __future__ import annotations

import logging
from typing import Any

from homeassistant.core import HomeAssistant, ServiceCall
from homeassistant.exceptions import ServiceValidationError

from ..const import DOMAIN
from ..coordinator import PlantTrackerCoordinator
from .common import async_run_action, require_plant

_LOGGER = logging.getLogger(__name__)


def _plant_fields(data: dict[str, Any]) -> dict[str, Any]:
    """Return the plant fields of a service payload."""
    fields = {k: v for k, v in data.items() if k != "plant_id" and v is not None}
    if "last_watered" in fields:
        fields["last_watered"] = fields["last_watered"].isoformat()
    return fields


async def handle_add_plant(
    hass: HomeAssistant, coordinator: PlantTrackerCoordinator, call: ServiceCall
) -> None:
    """Handle add plant service call."""
    _LOGGER.debug("Service call: add_plant with data: %s", call.data)
    fields = _plant_fields(dict(call.data))
    name = fields.pop("name")
    plant = await async_run_action(
        hass, "add plant", coordinator.async_add_plant(name, **fields)
    )
    hass.bus.async_fire(
        f"{DOMAIN}_plant_added", {"plant_id": plant.id, "name": plant.name}
    )


async def handle_update_plant(
    hass: HomeAssistant, coordinator: PlantTrackerCoordinator, call: ServiceCall
) -> None:
    """Handle update plant service call."""
    plant_id = call.data["plant_id"]
    require_plant(coordinator, plant_id)
    updates = _plant_fields(dict(call.data))
    if not updates:
        _LOGGER.warning("No fields to update for plant %s", plant_id)
        return
    await async_run_action(
        hass, "update plant", coordinator.async_update_plant(plant_id, **updates)
    )


async def handle_remove_plant(
    hass: HomeAssistant, coordinator: PlantTrackerCoordinator, call: ServiceCall
) -> None:
    """Handle remove plant service call."""
    plant_id = call.data["plant_id"]
    removed = await async_run_action(
        hass, "remove plant", coordinator.async_remove_plant(plant_id)
    )
    if not removed:
        raise ServiceValidationError(f"Plant '{plant_id}' not found.")
    hass.bus.async_fire(f"{DOMAIN}_plant_removed", {"plant_id": plant_id})


async def handle_water_plant(
    hass: HomeAssistant, coordinator: PlantTrackerCoordinator, call: ServiceCall
) -> None:
    """Handle water plant service call."""
    plant_id = call.data["plant_id"]
    require_plant(coordinator, plant_id)
    plant = await async_run_action(
        hass,
        "water plant",
        coordinator.async_water_plant(plant_id, call.data.get("date")),
    )
    hass.bus.async_fire(
        f"{DOMAIN}_plant_watered",
        {"plant_id": plant_id, "date": plant.last_watered, "next_due": plant.next_due},
    )


async def handle_add_task(
    hass: HomeAssistant, coordinator: PlantTrackerCoordinator, call: ServiceCall
) -> None:
    """Handle add task service call."""
    plant_id = call.data["plant_id"]
    require_plant(coordinator, plant_id)
    await async_run_action(
        hass,
        "add task",
        coordinator.async_add_task(
            plant_id,
            call.data["type"],
            call.data["every_days"],
            call.data.get("last_done"),
        ),
    )


async def handle_remove_task(
    hass: HomeAssistant, coordinator: PlantTrackerCoordinator, call: ServiceCall
) -> None:
    """Handle remove task service call."""
    plant_id = call.data["plant_id"]
    require_plant(coordinator, plant_id)
    await async_run_action(
        hass,
        "remove task",
        coordinator.async_remove_task(plant_id, call.data["index"]),
    )


async def handle_complete_task(
    hass: HomeAssistant, coordinator: PlantTrackerCoordinator, call: ServiceCall
) -> None:
    """Handle complete task service call."""
    plant_id = call.data["plant_id"]
    require_plant(coordinator, plant_id)
    await async_run_action(
        hass,
        "complete task",
        coordinator.async_complete_task(
            plant_id, call.data["index"], call.data.get("date")
        ),
    )


async def handle_add_observation(
    hass: HomeAssistant, coordinator: PlantTrackerCoordinator, call: ServiceCall
) -> dict[str, Any]:
    """Handle add observation service call."""
    plant_id = call.data["plant_id"]
    require_plant(coordinator, plant_id)
    observation = await async_run_action(
        hass,
        "add observation",
        coordinator.async_add_observation(
            plant_id,
            note=call.data.get("note", ""),
            image=call.data.get("image"),
            set_cover=call.data.get("set_cover", False),
        ),
    )
    return observation.to_dict()


async def handle_set_cover(
    hass: HomeAssistant, coordinator: PlantTrackerCoordinator, call: ServiceCall
) -> None:
    """Handle set cover service call."""
    plant_id = call.data["plant_id"]
    require_plant(coordinator, plant_id)
    await async_run_action(
        hass,
        "set cover photo",
        coordinator.async_set_cover(plant_id, call.data["observation_id"]),
    )
