"""Plant Tracker integration."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from functools import partial
from typing import Any, cast

from aiohttp import BodyPartReader, web
from homeassistant.components.http import HomeAssistantView
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant, SupportsResponse
from homeassistant.helpers import config_validation as cv
from homeassistant.helpers.typing import ConfigType

from .const import DOMAIN, PLATFORMS
from .coordinator import PlantTrackerCoordinator
from .exceptions import PlantTrackerError
from .image_manager import detect_mime
from .plant_repository import PlantRepository
from .services import (
    ADD_OBSERVATION_SCHEMA,
    ADD_PLANT_SCHEMA,
    ADD_TASK_SCHEMA,
    CLEAR_WEATHER_OVERRIDE_SCHEMA,
    COMPLETE_TASK_SCHEMA,
    EXPORT_CALENDAR_SCHEMA,
    EXPORT_PLANTS_SCHEMA,
    FETCH_WEATHER_SCHEMA,
    GENERATE_CARE_PLAN_SCHEMA,
    GET_SCHEDULE_SCHEMA,
    IMPORT_PLANTS_SCHEMA,
    REMOVE_PLANT_SCHEMA,
    REMOVE_TASK_SCHEMA,
    SET_COVER_SCHEMA,
    SET_WEATHER_OVERRIDE_SCHEMA,
    SUGGEST_TAXONOMY_SCHEMA,
    UPDATE_PLANT_SCHEMA,
    UPDATE_SETTINGS_SCHEMA,
    WATER_PLANT_SCHEMA,
    plant,
    portability,
    settings,
)

CONFIG_SCHEMA = cv.config_entry_only_config_schema(DOMAIN)

_LOGGER = logging.getLogger(__name__)


@dataclass
class PlantTrackerRuntimeData:
    """Runtime data for the Plant Tracker integration."""

    coordinator: PlantTrackerCoordinator


type PlantTrackerConfigEntry = ConfigEntry[PlantTrackerRuntimeData]


_NONE = SupportsResponse.NONE
_OPTIONAL = SupportsResponse.OPTIONAL
_ONLY = SupportsResponse.ONLY

# (name, handler, schema, response support)
SERVICES: list[tuple[str, Any, Any, SupportsResponse]] = [
    ("add_plant", plant.handle_add_plant, ADD_PLANT_SCHEMA, _NONE),
    ("update_plant", plant.handle_update_plant, UPDATE_PLANT_SCHEMA, _NONE),
    ("remove_plant", plant.handle_remove_plant, REMOVE_PLANT_SCHEMA, _NONE),
    ("water_plant", plant.handle_water_plant, WATER_PLANT_SCHEMA, _NONE),
    ("add_task", plant.handle_add_task, ADD_TASK_SCHEMA, _NONE),
    ("remove_task", plant.handle_remove_task, REMOVE_TASK_SCHEMA, _NONE),
    ("complete_task", plant.handle_complete_task, COMPLETE_TASK_SCHEMA, _NONE),
    ("add_observation", plant.handle_add_observation, ADD_OBSERVATION_SCHEMA, _OPTIONAL),
    ("set_cover", plant.handle_set_cover, SET_COVER_SCHEMA, _NONE),
    ("update_settings", settings.handle_update_settings, UPDATE_SETTINGS_SCHEMA, _NONE),
    (
        "set_weather_override",
        settings.handle_set_weather_override,
        SET_WEATHER_OVERRIDE_SCHEMA,
        _NONE,
    ),
    (
        "clear_weather_override",
        settings.handle_clear_weather_override,
        CLEAR_WEATHER_OVERRIDE_SCHEMA,
        _NONE,
    ),
    ("fetch_weather", settings.handle_fetch_weather, FETCH_WEATHER_SCHEMA, _OPTIONAL),
    ("suggest_taxonomy", settings.handle_suggest_taxonomy, SUGGEST_TAXONOMY_SCHEMA, _ONLY),
    (
        "generate_care_plan",
        settings.handle_generate_care_plan,
        GENERATE_CARE_PLAN_SCHEMA,
        _OPTIONAL,
    ),
    ("export_plants", portability.handle_export_plants, EXPORT_PLANTS_SCHEMA, _OPTIONAL),
    ("import_plants", portability.handle_import_plants, IMPORT_PLANTS_SCHEMA, _OPTIONAL),
    (
        "export_calendar",
        portability.handle_export_calendar,
        EXPORT_CALENDAR_SCHEMA,
        _OPTIONAL,
    ),
    ("get_schedule", portability.handle_get_schedule, GET_SCHEDULE_SCHEMA, _ONLY),
]


def _register_services(hass: HomeAssistant, coordinator: PlantTrackerCoordinator) -> None:
    """Register services for the Plant Tracker integration."""
    for service_name, handler, schema, supports_response in SERVICES:
        hass.services.async_register(
            DOMAIN,
            service_name,
            cast(Any, partial(handler, hass, coordinator)),
            schema=schema,
            supports_response=supports_response,
        )


def _async_remove_services(hass: HomeAssistant) -> None:
    """Remove services for the Plant Tracker integration."""
    for service_name, *_ in SERVICES:
        hass.services.async_remove(DOMAIN, service_name)


async def async_setup(hass: HomeAssistant, config: ConfigType) -> bool:
    """Set up the Plant Tracker component."""
    return True


async def async_setup_entry(hass: HomeAssistant, entry: PlantTrackerConfigEntry) -> bool:
    """Set up Plant Tracker from a config entry."""
    _LOGGER.debug("Setting up Plant Tracker for entry %s", entry.entry_id)

    coordinator = PlantTrackerCoordinator(
        hass,
        config_entry=entry,
        options=dict(entry.options),
        repository=PlantRepository(hass),
    )
    await coordinator.async_load()

    entry.runtime_data = PlantTrackerRuntimeData(coordinator=coordinator)
    entry.async_on_unload(entry.add_update_listener(_async_update_listener))

    hass.http.register_view(PlantPhotoView(coordinator))
    hass.http.register_view(SnapshotUploadView(coordinator))

    _register_services(hass, coordinator)

    _LOGGER.debug("Setting up platforms: %s", PLATFORMS)
    await hass.config_entries.async_forward_entry_setups(entry, PLATFORMS)

    await coordinator.async_config_entry_first_refresh()
    return True


async def async_unload_entry(hass: HomeAssistant, entry: PlantTrackerConfigEntry) -> bool:
    """Unload a config entry."""
    _LOGGER.debug("Unloading config entry %s for Plant Tracker", entry.entry_id)

    unload_ok = await hass.config_entries.async_unload_platforms(entry, PLATFORMS)
    if unload_ok:
        _async_remove_services(hass)
        _LOGGER.info("Unloaded Plant Tracker for entry %s", entry.entry_id)
        return True

    _LOGGER.error("Failed to unload platforms for entry %s", entry.entry_id)
    return False


async def _async_update_listener(hass: HomeAssistant, entry: ConfigEntry) -> None:
    """Handle options update."""
    await hass.config_entries.async_reload(entry.entry_id)


class PlantPhotoView(HomeAssistantView):
    """Serves stored observation photos."""

    url = "/api/plant_tracker/photo/{file_id}"
    name = "api:plant_tracker:photo"
    requires_auth = True

    def __init__(self, coordinator: PlantTrackerCoordinator) -> None:
        """Initialize the view."""
        self.coordinator = coordinator

    async def get(self, request: web.Request, file_id: str) -> web.Response:
        """Return the bytes of a photo."""
        data = await self.coordinator.repository.async_get_file(file_id)
        if data is None:
            return web.Response(status=404, text="Photo not found")
        return web.Response(body=data, content_type=detect_mime(data))


class SnapshotUploadView(HomeAssistantView):
    """Imports a snapshot uploaded as a multipart file."""

    url = "/api/plant_tracker/import"
    name = "api:plant_tracker:import"
    requires_auth = True

    def __init__(self, coordinator: PlantTrackerCoordinator) -> None:
        """Initialize the view."""
        self.coordinator = coordinator

    async def post(self, request: web.Request) -> web.Response:
        """Handle the POST request for file upload."""
        reader = await request.multipart()
        file_field = await reader.next()

        if not isinstance(file_field, BodyPartReader) or file_field.name != "file":
            return web.Response(status=400, text="No file provided")

        try:
            snapshot = json.loads(await file_field.read(decode=True))
        except ValueError:
            return self.json({"success": False, "error": "File is not valid JSON"})

        try:
            count = await self.coordinator.async_import_snapshot(snapshot)
        except PlantTrackerError as err:
            _LOGGER.exception("Error importing uploaded snapshot")
            return self.json({"success": False, "error": str(err)})

        return self.json({"success": True, "imported_count": count})
