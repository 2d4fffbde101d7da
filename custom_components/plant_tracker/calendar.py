"""Calendar platform for Plant Tracker.

A single calendar shows the next watering of every plant and the next
occurrence of each of its recurring tasks as all-day events.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta

from homeassistant.components.calendar import CalendarEntity, CalendarEvent
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.helpers.entity_platform import AddEntitiesCallback
from homeassistant.util import dt as dt_util

from .calendar_exporter import CalendarEntry
from .const import DOMAIN
from .coordinator import PlantTrackerCoordinator

_LOGGER = logging.getLogger(__name__)


async def async_setup_entry(
    hass: HomeAssistant,
    config_entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up the Plant Tracker care calendar from a config entry."""
    coordinator = config_entry.runtime_data.coordinator
    async_add_entities([PlantCareCalendar(coordinator, config_entry.entry_id)], True)


def entry_to_event(entry: CalendarEntry) -> CalendarEvent:
    """Convert a care calendar entry into an all-day CalendarEvent."""
    return CalendarEvent(
        start=entry.start,
        end=entry.start + timedelta(days=1),
        summary=entry.summary,
        description=entry.description,
        uid=entry.uid,
    )


class PlantCareCalendar(CalendarEntity):
    """Calendar of upcoming watering and task dates for all plants."""

    _attr_icon = "mdi:calendar-clock"

    def __init__(self, coordinator: PlantTrackerCoordinator, entry_id: str) -> None:
        """Initialize the PlantCareCalendar.

        Args:
            coordinator: The data update coordinator.
            entry_id: The config entry the calendar belongs to.
        """
        self.coordinator = coordinator
        self._attr_name = "Plant Care"
        self._attr_unique_id = f"{DOMAIN}_{entry_id}_calendar"
        self._events: list[CalendarEvent] = []

    @property
    def event(self) -> CalendarEvent | None:
        """Return the next event that has not ended yet."""
        now = dt_util.now()
        return next(
            (event for event in self._events if event.end_datetime_local > now),
            None,
        )

    async def async_get_events(
        self, hass: HomeAssistant, start_date: datetime, end_date: datetime
    ) -> list[CalendarEvent]:
        """Return the events overlapping a time range.

        Args:
            hass: The Home Assistant instance.
            start_date: The start of the date range.
            end_date: The end of the date range.

        Returns:
            A list of `CalendarEvent` objects.
        """
        return [
            event
            for event in self._events
            if event.end_datetime_local > start_date
            and event.start_datetime_local < end_date
        ]

    def _generate_events(self) -> None:
        """Rebuild the events from the coordinator's plants."""
        events = [entry_to_event(entry) for entry in self.coordinator.calendar_entries()]
        self._events = sorted(events, key=lambda e: e.start_datetime_local)
        _LOGGER.debug("Generated %d care events", len(self._events))

    async def async_update(self) -> None:
        """Update the calendar's list of events."""
        self._generate_events()
