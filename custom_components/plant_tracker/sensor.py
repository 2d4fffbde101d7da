"""Sensor platform for Plant Tracker.

Every plant gets a date sensor holding its next watering day, with the rest
of its schedule in the attributes. Two global sensors summarize how many
plants need attention and the current seasonal multiplier.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any

from homeassistant.components.sensor import SensorDeviceClass, SensorEntity
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.helpers import entity_registry as er
from homeassistant.helpers.device_registry import DeviceInfo
from homeassistant.helpers.entity_platform import AddEntitiesCallback
from homeassistant.helpers.update_coordinator import CoordinatorEntity

from .const import DEFAULT_NAME, DOMAIN, DUE_CLASSES, DUE_OVERDUE, DUE_TODAY
from .coordinator import PlantTrackerCoordinator
from .interval_model import seasonal_multiplier
from .utils import to_date

_LOGGER = logging.getLogger(__name__)


async def async_setup_entry(
    hass: HomeAssistant,
    config_entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up the Plant Tracker sensor platform from a config entry."""
    coordinator = config_entry.runtime_data.coordinator

    plant_entities: dict[str, PlantWateringSensor] = {
        plant_id: PlantWateringSensor(coordinator, plant_id)
        for plant_id in coordinator.plants
    }
    async_add_entities(
        [
            PlantsDueSensor(coordinator, config_entry.entry_id),
            SeasonalFactorSensor(coordinator, config_entry.entry_id),
            *plant_entities.values(),
        ]
    )

    async def _handle_coordinator_update_async() -> None:
        """Add new plant sensors and remove those of deleted plants."""
        await _update_plant_entities(
            hass, coordinator, plant_entities, async_add_entities
        )

    def _listener_callback() -> None:
        """Handle coordinator updates."""
        hass.async_create_task(_handle_coordinator_update_async())

    config_entry.async_on_unload(coordinator.async_add_listener(_listener_callback))


async def _update_plant_entities(
    hass: HomeAssistant,
    coordinator: PlantTrackerCoordinator,
    plant_entities: dict[str, PlantWateringSensor],
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Keep one sensor per plant known to the coordinator."""
    new_entities = []
    for plant_id in coordinator.plants:
        if plant_id not in plant_entities:
            entity = PlantWateringSensor(coordinator, plant_id)
            plant_entities[plant_id] = entity
            new_entities.append(entity)

    if new_entities:
        async_add_entities(new_entities)

    entity_registry = er.async_get(hass)
    removed_plant_ids = set(plant_entities) - set(coordinator.plants)
    for plant_id in removed_plant_ids:
        entity = plant_entities.pop(plant_id)
        _LOGGER.debug("Removing sensor of deleted plant %s", plant_id)
        if entity.registry_entry:
            entity_registry.async_remove(entity.registry_entry.entity_id)
        else:
            await entity.async_remove()


class PlantWateringSensor(CoordinatorEntity[PlantTrackerCoordinator], SensorEntity):
    """The next watering day of a single plant.

    The attributes carry the due status, the humanized label, the modeled
    interval, the hydration percentage, the estimated water volume and the
    schedule of every task, which is what a dashboard card needs.
    """

    _attr_device_class = SensorDeviceClass.DATE
    _attr_icon = "mdi:watering-can"

    def __init__(self, coordinator: PlantTrackerCoordinator, plant_id: str) -> None:
        """Initialize the plant watering sensor.

        Args:
            coordinator: The data update coordinator.
            plant_id: The ID of the plant.
        """
        super().__init__(coordinator)
        self.plant_id = plant_id
        plant = coordinator.plants[plant_id]
        self._attr_name = f"{plant.name or 'Plant'} next watering"
        self._attr_unique_id = f"{DOMAIN}_{plant_id}_next_watering"
        self._attr_device_info = DeviceInfo(
            identifiers={(DOMAIN, plant_id)},
            name=plant.name or plant_id,
            model=" ".join(p for p in (plant.genus, plant.species) if p) or "Plant",
            manufacturer=DEFAULT_NAME,
        )

    @property
    def available(self) -> bool:
        """Return True while the plant exists."""
        return super().available and self.plant_id in self.coordinator.schedules

    @property
    def native_value(self) -> date | None:
        """Return the next watering date."""
        schedule = self.coordinator.schedules.get(self.plant_id)
        return to_date(schedule.next_due) if schedule else None

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        """Return the schedule and care details of the plant."""
        plant = self.coordinator.plants.get(self.plant_id)
        schedule = self.coordinator.schedules.get(self.plant_id)
        if not plant or not schedule:
            return {}

        return {
            "plant_id": plant.id,
            "status": schedule.status,
            "label": schedule.label,
            "interval_days": schedule.interval_days,
            "hydration": schedule.hydration,
            "water_ml": list(schedule.water_ml) if schedule.water_ml else None,
            "last_watered": plant.last_watered,
            "family": plant.family,
            "genus": plant.genus,
            "species": plant.species,
            "cultivar": plant.cultivar,
            "light_level": plant.light_level,
            "soil_type": plant.soil_type,
            "location": plant.location,
            "room": plant.room,
            "cover_file_id": plant.cover_file_id,
            "observations": len(plant.observations),
            "tasks": [
                {
                    "index": task.index,
                    "type": task.type,
                    "every_days": task.every_days,
                    "due": task.due,
                    "status": task.status,
                    "label": task.label,
                }
                for task in schedule.tasks
            ],
        }


class PlantsDueSensor(CoordinatorEntity[PlantTrackerCoordinator], SensorEntity):
    """Number of plants that are due or overdue for watering."""

    _attr_icon = "mdi:sprout"

    def __init__(self, coordinator: PlantTrackerCoordinator, entry_id: str) -> None:
        super().__init__(coordinator)
        self._attr_name = "Plants needing water"
        self._attr_unique_id = f"{DOMAIN}_{entry_id}_plants_due"

    @property
    def native_value(self) -> int:
        """Return the count of due and overdue plants."""
        return sum(
            1
            for schedule in self.coordinator.schedules.values()
            if schedule.status in (DUE_OVERDUE, DUE_TODAY)
        )

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        """Return the number of plants in every due class."""
        counts = {status: 0 for status in DUE_CLASSES}
        for schedule in self.coordinator.schedules.values():
            counts[schedule.status] += 1
        return {"total": len(self.coordinator.schedules), **counts}


class SeasonalFactorSensor(CoordinatorEntity[PlantTrackerCoordinator], SensorEntity):
    """The global seasonal multiplier applied to watering intervals."""

    _attr_icon = "mdi:weather-partly-cloudy"

    def __init__(self, coordinator: PlantTrackerCoordinator, entry_id: str) -> None:
        super().__init__(coordinator)
        self._attr_name = "Seasonal watering factor"
        self._attr_unique_id = f"{DOMAIN}_{entry_id}_seasonal_factor"

    @property
    def native_value(self) -> float:
        """Return the seasonal multiplier for the global settings."""
        return round(seasonal_multiplier(self.coordinator.settings), 3)

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        """Return the settings the factor was computed from."""
        settings = self.coordinator.settings
        return {"season": settings.season, "temp_c": settings.temp_c, "rh": settings.rh}
