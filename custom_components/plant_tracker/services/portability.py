"""Services for snapshots, the care calendar and schedule queries."""

from __future__ import annotations

import logging
from typing import Any

from homeassistant.components.persistent_notification import (
    async_create as create_notification,
)
from homeassistant.core import HomeAssistant, ServiceCall

from ..const import DOMAIN
from ..coordinator import PlantTrackerCoordinator
from .common import async_run_action

_LOGGER = logging.getLogger(__name__)


def _web_path(hass: HomeAssistant, path: str) -> str | None:
    """Return the /local URL of a file below the www directory, if it is one."""
    www = hass.config.path("www")
    if path.startswith(www):
        return path.replace(www, "/local", 1)
    return None


async def handle_export_plants(
    hass: HomeAssistant, coordinator: PlantTrackerCoordinator, call: ServiceCall
) -> dict[str, Any]:
    """Handle export plants service call."""
    path = await async_run_action(
        hass,
        "export plants",
        coordinator.async_export_to_file(call.data.get("output_dir")),
    )
    url = _web_path(hass, path)
    hass.bus.async_fire(
        f"{DOMAIN}_plants_exported",
        {"file_path": path, "url": url, "plants_count": len(coordinator.plants)},
    )
    create_notification(
        hass,
        f"Plants exported successfully.\nPath: {path}",
        title="Plant Tracker Export",
    )
    return {"file_path": path, "url": url}


async def handle_import_plants(
    hass: HomeAssistant, coordinator: PlantTrackerCoordinator, call: ServiceCall
) -> dict[str, Any]:
    """Handle import plants service call."""
    if call.data.get("file_path"):
        action = coordinator.async_import_from_file(call.data["file_path"])
    else:
        action = coordinator.async_import_snapshot(call.data["snapshot"])
    count = await async_run_action(hass, "import plants", action)

    _LOGGER.info("Imported %d plants", count)
    create_notification(
        hass,
        f"Imported {count} plants.",
        title="Plant Tracker Import",
    )
    return {"imported_count": count}


async def handle_export_calendar(
    hass: HomeAssistant, coordinator: PlantTrackerCoordinator, call: ServiceCall
) -> dict[str, Any]:
    """Write the care calendar as an ICS file."""
    path = await async_run_action(
        hass,
        "export calendar",
        coordinator.async_export_calendar(call.data.get("file_path")),
    )
    return {"file_path": path, "url": _web_path(hass, path)}


async def handle_get_schedule(
    hass: HomeAssistant, coordinator: PlantTrackerCoordinator, call: ServiceCall
) -> dict[str, Any]:
    """Return the schedule of every plant."""
    schedules = coordinator.get_schedules(
        status=call.data.get("status"), sort_by=call.data.get("sort_by", "due")
    )
    return {"plants": [schedule.to_dict() for schedule in schedules]}
