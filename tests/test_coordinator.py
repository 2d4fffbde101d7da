"""Tests for the Plant Tracker coordinator."""

import os
from datetime import date
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from homeassistant.core import HomeAssistant

from custom_components.plant_tracker.blob_store import BlobStore
from custom_components.plant_tracker.collaborators import (
    TaxonomySuggestion,
    WeatherReading,
)
from custom_components.plant_tracker.coordinator import PlantTrackerCoordinator
from custom_components.plant_tracker.exceptions import PlantStorageError
from custom_components.plant_tracker.plant_repository import (
    PlantRepository,
    SettingsStore,
)

TODAY = date(2024, 3, 10)


@pytest.fixture
def fixed_today():
    """Pin the coordinator's notion of today."""
    with patch(
        "custom_components.plant_tracker.coordinator.today", return_value=TODAY
    ):
        yield TODAY


@pytest.fixture
def blob_dir(tmp_path):
    """Directory holding the blobs of the coordinator's repository."""
    return tmp_path / "files"


@pytest.fixture
async def coordinator(
    hass: HomeAssistant, mock_store, fixed_today, blob_dir
) -> PlantTrackerCoordinator:
    """Create a loaded coordinator backed by a mocked Store."""
    coordinator = PlantTrackerCoordinator(
        hass,
        config_entry=None,
        repository=PlantRepository(hass, BlobStore(hass, str(blob_dir))),
        settings_store=SettingsStore(hass),
        taxonomy_lookup=MagicMock(),
        weather_lookup=MagicMock(),
        care_plan_generator=MagicMock(),
    )
    await coordinator.async_load()
    return coordinator


async def test_coordinator_load_data(coordinator: PlantTrackerCoordinator, mock_store):
    """Test loading an empty store creates default settings."""
    assert coordinator.plants == {}
    assert coordinator.settings.season == "growing"
    assert coordinator.data["schedules"] == {}


async def test_coordinator_load_existing_plants(
    hass: HomeAssistant, mock_store, fixed_today, blob_dir
):
    """Test that stored plants are loaded and scheduled."""
    mock_store.async_load.return_value = {
        "plants": {"p1": {"name": "Fern", "last_watered": "2024-03-05"}}
    }
    coordinator = PlantTrackerCoordinator(
        hass,
        config_entry=None,
        repository=PlantRepository(hass, BlobStore(hass, str(blob_dir))),
    )

    await coordinator.async_load()

    assert coordinator.plants["p1"].name == "Fern"
    assert coordinator.schedules["p1"].next_due == "2024-03-12"


async def test_coordinator_loads_plants_with_late_dates(
    hass: HomeAssistant, mock_store, fixed_today, blob_dir
):
    """Test that records due past the calendar range do not stop loading."""
    mock_store.async_load.return_value = {
        "plants": {
            "p1": {
                "name": "Ivy",
                "last_watered": "9999-12-30",
                "tasks": [{"type": "prune", "every_days": 30}],
            },
            "p2": {"name": "Fern", "last_watered": "2024-03-05"},
        }
    }
    coordinator = PlantTrackerCoordinator(
        hass,
        config_entry=None,
        repository=PlantRepository(hass, BlobStore(hass, str(blob_dir))),
    )

    await coordinator.async_load()

    assert coordinator.schedules["p1"].next_due == "9999-12-31"
    assert coordinator.schedules["p1"].tasks[0].due is None
    assert coordinator.schedules["p2"].next_due == "2024-03-12"
    assert [entry.plant_id for entry in coordinator.calendar_entries()] == ["p2"]


async def test_add_plant(coordinator: PlantTrackerCoordinator, mock_store):
    """Test adding a plant caches its next due date and persists it."""
    plant = await coordinator.async_add_plant(
        "Monstera", interval_days=10, light_level="high", history=["ignored"]
    )

    assert plant.name == "Monstera"
    assert plant.interval_days == 10
    assert plant.history == []
    assert plant.created_at is not None
    assert plant.next_due == "2024-03-20"
    assert coordinator.plants[plant.id] is plant
    assert plant.id in coordinator.schedules
    assert mock_store.async_save.await_count >= 1


async def test_update_plant(coordinator: PlantTrackerCoordinator):
    """Test updating editable fields and ignoring protected ones."""
    plant = await coordinator.async_add_plant("Fern")

    updated = await coordinator.async_update_plant(
        plant.id, room="Kitchen", interval_days=3, id="hijack", bogus=1
    )

    assert updated.id == plant.id
    assert updated.room == "Kitchen"
    assert updated.next_due == "2024-03-13"
    assert "hijack" not in coordinator.plants


async def test_update_unknown_plant(coordinator: PlantTrackerCoordinator):
    """Test that unknown plants are rejected."""
    with pytest.raises(ValueError):
        await coordinator.async_update_plant("missing", name="x")


async def test_water_plant(coordinator: PlantTrackerCoordinator):
    """Test that watering records the date and moves the due date."""
    plant = await coordinator.async_add_plant("Fern")

    watered = await coordinator.async_water_plant(plant.id)
    assert watered.last_watered == "2024-03-10"
    assert watered.history[-1].type == "water"
    assert watered.next_due == "2024-03-17"

    watered = await coordinator.async_water_plant(plant.id, date(2024, 3, 5))
    assert watered.last_watered == "2024-03-05"
    assert watered.next_due == "2024-03-12"
    assert coordinator.schedules[plant.id].status == "soon"


async def test_failed_write_leaves_plant_unchanged(
    coordinator: PlantTrackerCoordinator, mock_store
):
    """Test that a failing store leaves the in-memory plant untouched."""
    plant = await coordinator.async_add_plant("Fern")
    mock_store.async_save.side_effect = OSError("disk full")

    with pytest.raises(PlantStorageError):
        await coordinator.async_water_plant(plant.id)

    assert coordinator.plants[plant.id].last_watered is None
    assert coordinator.plants[plant.id].history == []


async def test_tasks(coordinator: PlantTrackerCoordinator):
    """Test adding, completing and removing a task."""
    plant = await coordinator.async_add_plant("Fern")

    plant = await coordinator.async_add_task(plant.id, "fertilize", 14)
    assert plant.tasks[0].type == "fertilize"
    assert coordinator.schedules[plant.id].tasks[0].due == "2024-03-24"

    plant = await coordinator.async_complete_task(plant.id, 0, "2024-03-08")
    assert plant.tasks[0].last_done == "2024-03-08"
    assert plant.history[-1].type == "task:fertilize"
    assert coordinator.schedules[plant.id].tasks[0].due == "2024-03-22"

    with pytest.raises(ValueError):
        await coordinator.async_complete_task(plant.id, 3)

    plant = await coordinator.async_remove_task(plant.id, 0)
    assert plant.tasks == []
    with pytest.raises(ValueError):
        await coordinator.async_remove_task(plant.id, 0)


async def test_add_note_observation(coordinator: PlantTrackerCoordinator):
    """Test recording a note."""
    plant = await coordinator.async_add_plant("Fern")

    observation = await coordinator.async_add_observation(plant.id, note=" new leaf ")

    assert observation.type == "note"
    assert observation.note == "new leaf"
    assert observation.file_id is None
    stored = coordinator.plants[plant.id]
    assert stored.observations == [observation]
    assert stored.history[-1].type == "observe"


async def test_add_photo_observation(coordinator: PlantTrackerCoordinator, photo_data_url):
    """Test recording a photo and using it as the cover."""
    plant = await coordinator.async_add_plant("Fern")

    observation = await coordinator.async_add_observation(
        plant.id, image=photo_data_url, set_cover=True
    )

    assert observation.type == "photo"
    assert coordinator.plants[plant.id].cover_file_id == observation.file_id
    photo = await coordinator.async_get_photo(plant.id, observation.id)
    assert photo.startswith(b"\xff\xd8")


async def test_failed_observation_removes_new_photo(
    coordinator: PlantTrackerCoordinator, mock_store, photo_data_url, blob_dir
):
    """Test that a photo is not left behind when the plant cannot be saved."""
    plant = await coordinator.async_add_plant("Fern")
    mock_store.async_save.side_effect = OSError("disk full")

    with pytest.raises(PlantStorageError):
        await coordinator.async_add_observation(plant.id, image=photo_data_url)

    assert [name for name in os.listdir(blob_dir) if name.endswith(".bin")] == []
    assert coordinator.plants[plant.id].observations == []


async def test_set_cover(coordinator: PlantTrackerCoordinator, photo_data_url):
    """Test choosing the cover photo."""
    plant = await coordinator.async_add_plant("Fern")
    photo = await coordinator.async_add_observation(plant.id, image=photo_data_url)
    note = await coordinator.async_add_observation(plant.id, note="dry soil")

    plant = await coordinator.async_set_cover(plant.id, photo.id)
    assert plant.cover_file_id == photo.file_id

    with pytest.raises(ValueError):
        await coordinator.async_set_cover(plant.id, note.id)
    with pytest.raises(ValueError):
        await coordinator.async_get_photo(plant.id, "missing")


async def test_remove_plant_deletes_unreferenced_photos(
    coordinator: PlantTrackerCoordinator, photo_data_url
):
    """Test that removing a plant deletes only the photos nobody else uses."""
    fern = await coordinator.async_add_plant("Fern")
    cactus = await coordinator.async_add_plant("Cactus")
    own = await coordinator.async_add_observation(fern.id, image=photo_data_url)
    shared = await coordinator.async_add_observation(fern.id, image=photo_data_url)
    coordinator.plants[cactus.id].cover_file_id = shared.file_id

    assert await coordinator.async_remove_plant(fern.id) is True

    assert fern.id not in coordinator.plants
    assert fern.id not in coordinator.schedules
    assert await coordinator.repository.async_get_file(own.file_id) is None
    assert await coordinator.repository.async_get_file(shared.file_id) is not None
    assert await coordinator.async_remove_plant("missing") is False


async def test_update_settings(coordinator: PlantTrackerCoordinator, mock_store):
    """Test that settings changes are saved and rescheduled."""
    plant = await coordinator.async_add_plant("Fern", last_watered="2024-03-10")

    settings = await coordinator.async_update_settings(season="dormant", bogus=1)

    assert settings.season == "dormant"
    mock_store.async_save.assert_awaited_with(settings.to_dict())
    # 7 * 1.2 = 8.4
    assert coordinator.schedules[plant.id].next_due == "2024-03-18"


async def test_weather_override(coordinator: PlantTrackerCoordinator):
    """Test setting and clearing a plant's own weather."""
    plant = await coordinator.async_add_plant("Fern")

    plant = await coordinator.async_set_weather_override(plant.id, 20.0, 100.0)
    assert plant.weather_override.temp_c == 20.0
    assert plant.weather_override.rh == 100.0
    assert plant.weather_override.fetched_at is not None

    plant = await coordinator.async_clear_weather_override(plant.id)
    assert plant.weather_override is None


async def test_fetch_weather_override_adjusts_indoor_plants(
    coordinator: PlantTrackerCoordinator,
):
    """Test that indoor plants get a cooler, more humid reading."""
    coordinator.weather_lookup.async_current = AsyncMock(
        return_value=WeatherReading(20.0, 95.0)
    )
    indoor = await coordinator.async_add_plant("Fern")
    outdoor = await coordinator.async_add_plant("Agave", location="outdoor")

    indoor = await coordinator.async_fetch_weather_override(indoor.id)
    outdoor = await coordinator.async_fetch_weather_override(outdoor.id)

    assert indoor.weather_override.temp_c == 18.0
    assert indoor.weather_override.rh == 100.0
    assert outdoor.weather_override.temp_c == 20.0
    assert outdoor.weather_override.rh == 95.0


async def test_fetch_weather_uses_configured_location(
    hass: HomeAssistant, coordinator: PlantTrackerCoordinator
):
    """Test that global weather is stored in the settings."""
    coordinator.options = {"weather_latitude": 52.1, "weather_longitude": 5.1}
    coordinator.weather_lookup.async_current = AsyncMock(
        return_value=WeatherReading(12.5, 80.0)
    )

    reading = await coordinator.async_fetch_weather()

    assert reading.temperature_c == 12.5
    assert coordinator.settings.temp_c == 12.5
    assert coordinator.settings.rh == 80.0
    coordinator.weather_lookup.async_current.assert_awaited_once_with(52.1, 5.1)


async def test_fetch_weather_unavailable(coordinator: PlantTrackerCoordinator):
    """Test that a missing reading leaves the settings alone."""
    coordinator.weather_lookup.async_current = AsyncMock(return_value=None)
    plant = await coordinator.async_add_plant("Fern")

    assert await coordinator.async_fetch_weather() is None
    assert await coordinator.async_fetch_weather_override(plant.id) is None
    assert coordinator.settings.temp_c is None


async def test_suggest_taxonomy(coordinator: PlantTrackerCoordinator):
    """Test that suggestions are returned as dictionaries."""
    coordinator.taxonomy_lookup.async_suggest = AsyncMock(
        return_value=[TaxonomySuggestion(family="Araceae", genus="Monstera")]
    )

    suggestions = await coordinator.async_suggest_taxonomy("monstera")

    assert suggestions[0]["family"] == "Araceae"
    assert suggestions[0]["genus"] == "Monstera"


async def test_generate_care_plan_applies_to_plant(coordinator: PlantTrackerCoordinator):
    """Test applying a generated care plan."""
    plant = await coordinator.async_add_plant("Monstera", location="outdoor")
    plan = {
        "genus": "Monstera",
        "interval_days": 9,
        "tasks": [{"type": "fertilize", "every_days": 30}],
        "care_summary": "Bright indirect light.",
    }
    coordinator.care_plan_generator.async_generate = AsyncMock(return_value=plan)

    result = await coordinator.async_generate_care_plan("Monstera", plant.id, apply=True)

    assert result == plan
    context = coordinator.care_plan_generator.async_generate.call_args[0][1]
    assert context["location"] == "outdoor"
    updated = coordinator.plants[plant.id]
    assert updated.genus == "Monstera"
    assert updated.interval_days == 9
    assert updated.tasks[0].every_days == 30


async def test_generate_care_plan_without_apply(coordinator: PlantTrackerCoordinator):
    """Test that a plan is only returned unless applied."""
    plant = await coordinator.async_add_plant("Fern")
    coordinator.care_plan_generator.async_generate = AsyncMock(
        return_value={"interval_days": 3}
    )

    await coordinator.async_generate_care_plan("Fern", plant.id)

    assert coordinator.plants[plant.id].interval_days == 7


async def test_get_schedules(coordinator: PlantTrackerCoordinator):
    """Test filtering and sorting schedules."""
    await coordinator.async_add_plant("Zamioculcas", last_watered="2024-03-09")
    await coordinator.async_add_plant("Aloe", last_watered="2024-03-01")
    await coordinator.async_add_plant("Basil", last_watered="2024-03-03")

    by_due = coordinator.get_schedules()
    assert [s.name for s in by_due] == ["Aloe", "Basil", "Zamioculcas"]
    assert [s.status for s in by_due] == ["overdue", "due", "ok"]

    by_name = coordinator.get_schedules(sort_by="name")
    assert [s.name for s in by_name] == ["Aloe", "Basil", "Zamioculcas"]

    overdue = coordinator.get_schedules(status="overdue")
    assert [s.name for s in overdue] == ["Aloe"]
    assert len(coordinator.get_schedules(status="all")) == 3


async def test_calendar_entries(coordinator: PlantTrackerCoordinator):
    """Test that every plant has a watering entry."""
    plant = await coordinator.async_add_plant("Fern", last_watered="2024-03-05")
    await coordinator.async_add_task(plant.id, "mist", 2)

    entries = coordinator.calendar_entries()

    assert [entry.kind for entry in entries] == ["water", "mist"]
    assert entries[0].start == date(2024, 3, 12)


async def test_export_calendar(coordinator: PlantTrackerCoordinator, tmp_path):
    """Test writing the ICS file with CRLF line endings."""
    await coordinator.async_add_plant("Fern")
    path = str(tmp_path / "calendar" / "plants.ics")

    assert await coordinator.async_export_calendar(path) == path

    with open(path, "rb") as file:
        content = file.read()
    assert content.startswith(b"BEGIN:VCALENDAR\r\n")
    assert b"SUMMARY:Water Fern\r\n" in content


async def test_snapshot_round_trip(coordinator: PlantTrackerCoordinator, photo_data_url):
    """Test exporting and importing through the coordinator."""
    plant = await coordinator.async_add_plant("Fern")
    await coordinator.async_add_observation(plant.id, image=photo_data_url, set_cover=True)
    snapshot = await coordinator.async_export_snapshot()
    snapshot["plants"][0]["name"] = "Renamed fern"

    assert await coordinator.async_import_snapshot(snapshot) == 1

    assert coordinator.plants[plant.id].name == "Renamed fern"
    assert coordinator.plants[plant.id].cover_file_id is not None


async def test_update_data_recomputes_schedules(coordinator: PlantTrackerCoordinator):
    """Test that the periodic refresh recomputes schedules."""
    plant = await coordinator.async_add_plant("Fern")
    coordinator.schedules = {}

    data = await coordinator._async_update_data()

    assert plant.id in data["schedules"]
    assert data["settings"] is coordinator.settings
