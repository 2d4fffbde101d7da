"""Tests for the calendar platform of the Plant Tracker integration."""

from datetime import timedelta
from unittest.mock import MagicMock, Mock

import pytest
from homeassistant.util import dt as dt_util

from custom_components.plant_tracker.calendar import (
    PlantCareCalendar,
    async_setup_entry,
    entry_to_event,
)
from custom_components.plant_tracker.calendar_exporter import CalendarEntry
from custom_components.plant_tracker.const import DOMAIN


def _entry(uid: str, offset: int) -> CalendarEntry:
    return CalendarEntry(
        uid=uid,
        plant_id="p1",
        kind="water",
        start=dt_util.now().date() + timedelta(days=offset),
        summary=f"Event {uid}",
        description="Every 7d",
    )


# --------------------
# Fixtures
# --------------------
@pytest.fixture
def mock_coordinator():
    """Create a mock PlantTrackerCoordinator for calendar testing."""
    coordinator = Mock()
    coordinator.hass = Mock()
    coordinator.calendar_entries = Mock(
        return_value=[_entry("later", 5), _entry("past", -3), _entry("soon", 1)]
    )
    return coordinator


@pytest.fixture
def calendar(mock_coordinator) -> PlantCareCalendar:
    """Fixture for the care calendar."""
    return PlantCareCalendar(mock_coordinator, "entry_1")


# --------------------
# async_setup_entry
# --------------------
async def test_async_setup_entry_adds_entities(mock_coordinator):
    """Test that `async_setup_entry` adds one calendar."""
    hass = MagicMock()
    added_entities = []

    def async_add_entities(entities, update_before_add=False):
        added_entities.extend(entities)
        assert update_before_add is True

    await async_setup_entry(
        hass,
        Mock(entry_id="entry_1", runtime_data=Mock(coordinator=mock_coordinator)),
        async_add_entities,
    )

    assert len(added_entities) == 1
    assert isinstance(added_entities[0], PlantCareCalendar)


def test_calendar_identity(calendar: PlantCareCalendar):
    """Test the name and unique id of the calendar."""
    assert calendar.name == "Plant Care"
    assert calendar.unique_id == f"{DOMAIN}_entry_1_calendar"


def test_entry_to_event_is_all_day():
    """Test that entries become all-day events."""
    entry = _entry("water", 2)

    event = entry_to_event(entry)

    assert event.start == entry.start
    assert event.end == entry.start + timedelta(days=1)
    assert event.all_day
    assert event.uid == "water"
    assert event.description == "Every 7d"


async def test_events_are_sorted(calendar: PlantCareCalendar):
    """Test that events are sorted by start date."""
    await calendar.async_update()

    events = await calendar.async_get_events(
        MagicMock(),
        dt_util.now() - timedelta(days=30),
        dt_util.now() + timedelta(days=30),
    )
    assert [event.uid for event in events] == ["past", "soon", "later"]


async def test_next_event_skips_past_events(calendar: PlantCareCalendar):
    """Test that the current event is the next one that has not ended."""
    await calendar.async_update()

    assert calendar.event.uid == "soon"


async def test_get_events_filters_by_range(calendar: PlantCareCalendar):
    """Test that only events overlapping the range are returned."""
    await calendar.async_update()
    start = dt_util.start_of_local_day() + timedelta(days=4)

    events = await calendar.async_get_events(
        MagicMock(), start, start + timedelta(days=3)
    )

    assert [event.uid for event in events] == ["later"]


async def test_no_events(mock_coordinator, calendar: PlantCareCalendar):
    """Test a calendar without plants."""
    mock_coordinator.calendar_entries.return_value = []
    await calendar.async_update()

    assert calendar.event is None
