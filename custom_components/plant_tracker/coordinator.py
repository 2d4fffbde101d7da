"""Data update coordinator for the Plant Tracker integration."""

from __future__ import annotations

import logging
import os
from datetime import date
from typing import Any

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.helpers.update_coordinator import DataUpdateCoordinator

from .calendar_exporter import CalendarEntry, build_entries, build_ics
from .collaborators import (
    ConversationCarePlanGenerator,
    GbifTaxonomyLookup,
    OpenMeteoWeatherLookup,
    WeatherReading,
)
from .const import (
    CALENDAR_FILE,
    CONF_CARE_PLAN_AGENT,
    CONF_WEATHER_LATITUDE,
    CONF_WEATHER_LONGITUDE,
    DUE_CLASSES,
    EVENT_OBSERVE,
    EVENT_TASK_PREFIX,
    EVENT_WATER,
    UPDATE_INTERVAL,
)
from .exceptions import PlantStorageError
from .image_manager import ImageManager
from .import_export_manager import ImportExportManager
from .models import Observation, Plant, Settings, Task, WeatherOverride
from .plant_repository import PlantRepository, SettingsStore
from .scheduler import PlantSchedule, build_schedule, next_due_from
from .utils import DateInput, format_date, generate_id, now_iso, today

_LOGGER = logging.getLogger(__name__)

# Fields that only the coordinator's own actions may change
PROTECTED_FIELDS = {"id", "history", "observations", "created_at", "updated_at", "next_due"}


class PlantTrackerCoordinator(DataUpdateCoordinator):
    """Owns the plant collection and the global settings.

    Every user action works on a copy of the stored plant, writes it through
    the repository and only then replaces the in-memory plant, so a failed
    write leaves the coordinator unchanged. Schedules are recomputed on every
    change and on each periodic refresh, since "today" moves on its own.
    """

    def __init__(
        self,
        hass: HomeAssistant,
        config_entry: ConfigEntry | None = None,
        options: dict | None = None,
        repository: PlantRepository | None = None,
        settings_store: SettingsStore | None = None,
        image_manager: ImageManager | None = None,
        taxonomy_lookup: GbifTaxonomyLookup | None = None,
        weather_lookup: OpenMeteoWeatherLookup | None = None,
        care_plan_generator: ConversationCarePlanGenerator | None = None,
    ) -> None:
        """Initialize the Plant Tracker coordinator.

        Args:
            hass: The Home Assistant instance.
            config_entry: The config entry owning this coordinator (optional).
            options: Configuration options from the config entry (optional).
            repository: Plant and blob persistence.
            settings_store: Persistence of the global settings.
            image_manager: Photo preparation.
            taxonomy_lookup: Taxonomy suggestion collaborator.
            weather_lookup: Weather collaborator.
            care_plan_generator: Care plan collaborator.
        """
        super().__init__(
            hass,
            _LOGGER,
            config_entry=config_entry,
            name="Plant Tracker Coordinator",
            update_interval=UPDATE_INTERVAL,
        )

        self.hass = hass
        self.options = options or {}
        self.plants: dict[str, Plant] = {}
        self.settings = Settings()
        self.schedules: dict[str, PlantSchedule] = {}

        self.repository = repository or PlantRepository(hass)
        self.settings_store = settings_store or SettingsStore(hass)
        self.image_manager = image_manager or ImageManager(hass)
        self.import_export_manager = ImportExportManager(hass, self.repository)
        self.taxonomy_lookup = taxonomy_lookup or GbifTaxonomyLookup(hass)
        self.weather_lookup = weather_lookup or OpenMeteoWeatherLookup(hass)
        self.care_plan_generator = care_plan_generator or ConversationCarePlanGenerator(
            hass, self.options.get(CONF_CARE_PLAN_AGENT)
        )

    # =============================================================================
    # DATA UPDATE COORDINATOR OVERRIDE
    # =============================================================================

    async def _async_update_data(self) -> dict[str, Any]:
        """Recompute schedules, called periodically by the DataUpdateCoordinator."""
        self.update_data_property()
        return self.data

    async def async_load(self) -> None:
        """Load plants and settings from persistent storage."""
        await self.repository.async_load()
        self.plants = {plant.id: plant for plant in await self.repository.async_all()}
        self.settings = await self.settings_store.async_load()
        self.update_data_property()
        _LOGGER.info("Loaded %d plants", len(self.plants))

    def update_data_property(self) -> None:
        """Update `self.data` with fresh schedules for the current date."""
        reference = today()
        self.schedules = {
            plant_id: build_schedule(plant, self.settings, reference)
            for plant_id, plant in self.plants.items()
        }
        self.data = {
            "plants": self.plants,
            "schedules": self.schedules,
            "settings": self.settings,
        }

    def _publish(self) -> None:
        self.update_data_property()
        self.async_set_updated_data(self.data)

    # =============================================================================
    # PLANT MANAGEMENT METHODS
    # =============================================================================

    def get_plant(self, plant_id: str) -> Plant | None:
        """Return the plant with the given id, if any."""
        return self.plants.get(plant_id)

    def _copy_plant(self, plant_id: str) -> Plant:
        """Return an editable copy of a stored plant.

        Raises:
            ValueError: If the plant does not exist.
        """
        plant = self.plants.get(plant_id)
        if plant is None:
            raise ValueError(f"Plant {plant_id} does not exist")
        return Plant.from_dict(plant.to_dict())

    async def _async_store(self, plant: Plant) -> Plant:
        """Refresh the cached next due date, persist the plant and publish it."""
        plant.next_due = next_due_from(plant, self.settings, today()).isoformat()
        plant.updated_at = now_iso()
        await self.repository.async_put(plant)
        self.plants[plant.id] = plant
        self._publish()
        return plant

    async def async_add_plant(self, name: str, **fields: Any) -> Plant:
        """Create a new plant.

        Args:
            name: Display name of the plant.
            **fields: Any other plant fields; invalid values fall back to
                their defaults.

        Returns:
            The stored Plant.
        """
        for key in PROTECTED_FIELDS.intersection(fields):
            _LOGGER.warning("Ignoring protected field %s for new plant", key)
            del fields[key]
        plant = Plant.from_dict(
            {**fields, "id": generate_id(), "name": name, "created_at": now_iso()}
        )
        await self._async_store(plant)
        _LOGGER.info("Added plant %s (%s)", plant.name, plant.id)
        return plant

    async def async_update_plant(self, plant_id: str, **updates: Any) -> Plant:
        """Update the editable attributes of an existing plant.

        Args:
            plant_id: The ID of the plant to update.
            **updates: Keyword arguments for the fields to update.

        Returns:
            The updated Plant object.

        Raises:
            ValueError: If the plant does not exist.
        """
        data = self._copy_plant(plant_id).to_dict()
        for key, value in updates.items():
            if key in data and key not in PROTECTED_FIELDS:
                data[key] = value
            else:
                _LOGGER.warning("Invalid field %s for plant %s", key, plant_id)
        return await self._async_store(Plant.from_dict(data))

    async def async_remove_plant(self, plant_id: str) -> bool:
        """Remove a plant and the files no other plant references.

        Returns:
            True if the plant was removed, False if it was not found.
        """
        plant = self.plants.get(plant_id)
        if plant is None:
            return False

        await self.repository.async_delete(plant_id)
        del self.plants[plant_id]

        still_referenced = set()
        for other in self.plants.values():
            still_referenced |= other.referenced_file_ids()
        for file_id in plant.referenced_file_ids() - still_referenced:
            await self.repository.async_delete_file(file_id)

        self._publish()
        _LOGGER.info("Removed plant %s", plant_id)
        return True

    async def async_water_plant(self, plant_id: str, when: DateInput = None) -> Plant:
        """Record a watering on the given date, defaulting to today."""
        plant = self._copy_plant(plant_id)
        watered = format_date(when) or today().isoformat()
        plant.last_watered = watered
        plant.record_event(EVENT_WATER, watered)
        return await self._async_store(plant)

    # =============================================================================
    # TASKS
    # =============================================================================

    @staticmethod
    def _task_at(plant: Plant, index: int) -> Task:
        if not 0 <= index < len(plant.tasks):
            raise ValueError(f"Plant {plant.id} has no task {index}")
        return plant.tasks[index]

    async def async_add_task(
        self,
        plant_id: str,
        task_type: str,
        every_days: int,
        last_done: DateInput = None,
    ) -> Plant:
        """Add a recurring task to a plant."""
        plant = self._copy_plant(plant_id)
        plant.tasks.append(
            Task.from_dict(
                {"type": task_type, "every_days": every_days, "last_done": last_done}
            )
        )
        return await self._async_store(plant)

    async def async_remove_task(self, plant_id: str, index: int) -> Plant:
        """Remove the task at index from a plant."""
        plant = self._copy_plant(plant_id)
        self._task_at(plant, index)
        del plant.tasks[index]
        return await self._async_store(plant)

    async def async_complete_task(
        self, plant_id: str, index: int, when: DateInput = None
    ) -> Plant:
        """Mark the task at index as done on the given date, defaulting to today."""
        plant = self._copy_plant(plant_id)
        task = self._task_at(plant, index)
        done = format_date(when) or today().isoformat()
        task.last_done = done
        plant.record_event(f"{EVENT_TASK_PREFIX}{task.type}", done)
        return await self._async_store(plant)

    # =============================================================================
    # OBSERVATIONS
    # =============================================================================

    async def async_add_observation(
        self,
        plant_id: str,
        note: str = "",
        image: str | None = None,
        set_cover: bool = False,
    ) -> Observation:
        """Record a note or photo for a plant.

        Args:
            plant_id: The ID of the plant.
            note: Optional free text.
            image: Optional base64 photo, with or without a data URL header.
            set_cover: Use the photo as the plant's cover.

        Returns:
            The stored Observation.
        """
        plant = self._copy_plant(plant_id)

        file_id = None
        if image:
            photo = await self.image_manager.async_prepare_photo(image)
            file_id = await self.repository.async_put_file(photo)

        observation = Observation(
            id=generate_id(),
            at=now_iso(),
            type="photo" if file_id else "note",
            note=(note or "").strip(),
            file_id=file_id,
        )
        plant.observations.append(observation)
        plant.record_event(EVENT_OBSERVE)
        if file_id and set_cover:
            plant.cover_file_id = file_id

        try:
            await self._async_store(plant)
        except PlantStorageError:
            await self.repository.async_delete_file(file_id)
            raise
        return observation

    async def async_set_cover(self, plant_id: str, observation_id: str) -> Plant:
        """Use the photo of an observation as the plant's cover."""
        plant = self._copy_plant(plant_id)
        observation = plant.get_observation(observation_id)
        if observation is None or not observation.file_id:
            raise ValueError(
                f"Observation {observation_id} of plant {plant_id} has no photo"
            )
        plant.cover_file_id = observation.file_id
        return await self._async_store(plant)

    async def async_get_photo(self, plant_id: str, observation_id: str) -> bytes | None:
        """Return the photo bytes of an observation, if it has one."""
        plant = self.plants.get(plant_id)
        observation = plant.get_observation(observation_id) if plant else None
        if observation is None:
            raise ValueError(f"Observation {observation_id} of plant {plant_id} not found")
        return await self.repository.async_get_file(observation.file_id)

    # =============================================================================
    # SETTINGS AND WEATHER
    # =============================================================================

    async def async_update_settings(self, **changes: Any) -> Settings:
        """Change the global settings and persist them."""
        data = self.settings.to_dict()
        for key, value in changes.items():
            if key in data:
                data[key] = value
            else:
                _LOGGER.warning("Invalid settings field %s", key)
        settings = Settings.from_dict(data)
        await self.settings_store.async_save(settings)
        self.settings = settings
        self._publish()
        return settings

    def _coordinates(self) -> tuple[float, float]:
        latitude = self.options.get(CONF_WEATHER_LATITUDE)
        longitude = self.options.get(CONF_WEATHER_LONGITUDE)
        if latitude is None or longitude is None:
            return self.hass.config.latitude, self.hass.config.longitude
        return latitude, longitude

    async def async_fetch_weather(self) -> WeatherReading | None:
        """Store the current outdoor conditions in the global settings."""
        reading = await self.weather_lookup.async_current(*self._coordinates())
        if reading is None:
            return None
        await self.async_update_settings(
            temp_c=reading.temperature_c, rh=reading.relative_humidity_pct
        )
        return reading

    async def async_set_weather_override(
        self,
        plant_id: str,
        temp_c: float | None = None,
        rh: float | None = None,
    ) -> Plant:
        """Give a plant its own temperature and humidity."""
        plant = self._copy_plant(plant_id)
        plant.weather_override = WeatherOverride.from_dict(
            {"temp_c": temp_c, "rh": rh, "fetched_at": now_iso()}
        )
        return await self._async_store(plant)

    async def async_clear_weather_override(self, plant_id: str) -> Plant:
        """Make a plant follow the global settings again."""
        plant = self._copy_plant(plant_id)
        plant.weather_override = None
        return await self._async_store(plant)

    async def async_fetch_weather_override(self, plant_id: str) -> Plant | None:
        """Fetch current weather into a plant's override.

        Indoor plants get the outdoor reading adjusted by -2 °C and +10% RH.

        Returns:
            The updated plant, or None when no weather is available.
        """
        plant = self._copy_plant(plant_id)
        reading = await self.weather_lookup.async_current(*self._coordinates())
        if reading is None:
            return None

        temp_c = reading.temperature_c
        rh = reading.relative_humidity_pct
        if not plant.is_outdoor:
            temp_c -= 2
            rh = min(100.0, rh + 10)
        return await self.async_set_weather_override(plant_id, temp_c, rh)

    # =============================================================================
    # COLLABORATORS
    # =============================================================================

    async def async_suggest_taxonomy(self, name: str) -> list[dict[str, str]]:
        """Return taxonomy suggestions for a plant name."""
        return [s.to_dict() for s in await self.taxonomy_lookup.async_suggest(name)]

    async def async_generate_care_plan(
        self, name: str, plant_id: str | None = None, apply: bool = False
    ) -> dict[str, Any] | None:
        """Ask the care plan generator for a plan and optionally apply it.

        Returns:
            The partial plant payload, or None when no plan is available.
        """
        context: dict[str, Any] = {}
        if plant_id:
            plant = self._copy_plant(plant_id)
            context = {
                "location": plant.location,
                "exposure": plant.exposure,
                "pot_diameter_in": plant.pot_diameter_in,
            }

        plan = await self.care_plan_generator.async_generate(name, context)
        if plan and apply and plant_id:
            updates = {k: v for k, v in plan.items() if k != "care_summary"}
            await self.async_update_plant(plant_id, **updates)
        return plan

    # =============================================================================
    # SCHEDULES, CALENDAR AND PORTABILITY
    # =============================================================================

    def get_schedules(
        self, status: str | None = None, sort_by: str = "due"
    ) -> list[PlantSchedule]:
        """Return plant schedules, optionally filtered by due status.

        Args:
            status: One of DUE_CLASSES; anything else returns every plant.
            sort_by: `due` (soonest first) or `name`.
        """
        schedules = list(self.schedules.values())
        if status in DUE_CLASSES:
            schedules = [s for s in schedules if s.status == status]
        if sort_by == "name":
            return sorted(schedules, key=lambda s: (s.name.lower(), s.next_due))
        return sorted(schedules, key=lambda s: (s.next_due, s.name.lower()))

    def calendar_entries(self, reference: date | None = None) -> list[CalendarEntry]:
        """Return the calendar entries of every plant."""
        return build_entries(self.plants.values(), self.settings, reference or today())

    async def async_export_calendar(self, path: str | None = None) -> str:
        """Write the care calendar as an ICS file and return its path."""
        path = path or self.hass.config.path(*CALENDAR_FILE)
        ics = build_ics(self.plants.values(), self.settings)
        await self.hass.async_add_executor_job(self._write_text_sync, path, ics)
        _LOGGER.info("Exported care calendar to %s", path)
        return path

    @staticmethod
    def _write_text_sync(path: str, text: str) -> None:
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "w", encoding="utf-8", newline="") as file:
            file.write(text)

    async def async_export_snapshot(self) -> dict[str, Any]:
        """Return a self-contained snapshot of every plant."""
        return await self.import_export_manager.async_export()

    async def async_export_to_file(self, output_dir: str | None = None) -> str:
        """Write a snapshot file and return its path."""
        return await self.import_export_manager.async_export_to_file(output_dir)

    async def async_import_snapshot(self, snapshot: Any) -> int:
        """Import a snapshot and reload the plants."""
        count = await self.import_export_manager.async_import(snapshot)
        await self._async_reload_plants()
        return count

    async def async_import_from_file(self, path: str) -> int:
        """Import a snapshot file and reload the plants."""
        count = await self.import_export_manager.async_import_from_file(path)
        await self._async_reload_plants()
        return count

    async def _async_reload_plants(self) -> None:
        self.plants = {plant.id: plant for plant in await self.repository.async_all()}
        self._publish()
