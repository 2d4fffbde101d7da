"""Persistence for Plant Tracker records, blobs and settings."""

from __future__ import annotations

import logging

from homeassistant.core import HomeAssistant
from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers.storage import Store

from .blob_store import BlobStore
from .const import (
    SETTINGS_STORAGE_KEY,
    SETTINGS_STORAGE_VERSION,
    STORAGE_KEY,
    STORAGE_VERSION,
)
from .exceptions import PlantStorageError
from .models import Plant, Settings

_LOGGER = logging.getLogger(__name__)

_STORE_ERRORS = (OSError, ValueError, TypeError, HomeAssistantError)


class PlantRepository:
    """Keyed store of plant records plus an independent blob store.

    Records are stored whole: `async_put` replaces any existing record with
    the same id. Deleting a record leaves the blobs it references in place.
    """

    def __init__(self, hass: HomeAssistant, blob_store: BlobStore | None = None) -> None:
        """Initialize the PlantRepository.

        Args:
            hass: The Home Assistant instance.
            blob_store: Blob store for photos, defaults to one under the
                config directory.
        """
        self.hass = hass
        self.store = Store(hass, STORAGE_VERSION, STORAGE_KEY)
        self.blob_store = blob_store or BlobStore(hass)
        self._plants: dict[str, dict] | None = None

    async def async_load(self) -> None:
        """Load plant records from persistent storage."""
        try:
            data = await self.store.async_load()
        except _STORE_ERRORS as err:
            raise PlantStorageError(f"Could not load plants: {err}") from err

        self._plants = {}
        if not data:
            _LOGGER.info("No stored plants found, starting fresh")
            return

        for plant_id, raw in (data.get("plants") or {}).items():
            if not isinstance(raw, dict):
                _LOGGER.warning("Skipping malformed plant record %s", plant_id)
                continue
            try:
                plant = Plant.from_dict({"id": plant_id, **raw})
            except ValueError as err:
                _LOGGER.warning("Skipping plant record %s: %s", plant_id, err)
                continue
            self._plants[plant.id] = plant.to_dict()
        _LOGGER.info("Loaded %d plants", len(self._plants))

    async def _async_records(self) -> dict[str, dict]:
        if self._plants is None:
            await self.async_load()
        return self._plants

    async def _async_commit(self, records: dict[str, dict]) -> None:
        """Save records, keeping the previous view if the save fails."""
        try:
            await self.store.async_save({"plants": records})
        except _STORE_ERRORS as err:
            raise PlantStorageError(f"Could not save plants: {err}") from err
        self._plants = records

    async def async_put(self, plant: Plant) -> None:
        """Insert or fully replace a plant record."""
        records = dict(await self._async_records())
        records[plant.id] = plant.to_dict()
        await self._async_commit(records)
        _LOGGER.debug("Stored plant %s", plant.id)

    async def async_put_many(self, plants: list[Plant]) -> None:
        """Insert or fully replace several plant records in a single save.

        Either every record is stored or, when the save fails, none is.
        """
        records = dict(await self._async_records())
        for plant in plants:
            records[plant.id] = plant.to_dict()
        await self._async_commit(records)
        _LOGGER.debug("Stored %d plants", len(plants))

    async def async_get(self, plant_id: str) -> Plant | None:
        """Return a copy of the plant with the given id, or None."""
        raw = (await self._async_records()).get(plant_id)
        return Plant.from_dict(raw) if raw is not None else None

    async def async_all(self) -> list[Plant]:
        """Return copies of every stored plant, in no particular order."""
        return [Plant.from_dict(raw) for raw in (await self._async_records()).values()]

    async def async_delete(self, plant_id: str) -> None:
        """Remove a plant record; unknown ids are ignored."""
        records = await self._async_records()
        if plant_id not in records:
            return
        records = dict(records)
        del records[plant_id]
        await self._async_commit(records)
        _LOGGER.debug("Deleted plant %s", plant_id)

    async def async_put_file(self, data: bytes) -> str:
        """Store a blob under a new id and return the id."""
        return await self.blob_store.async_put(data)

    async def async_get_file(self, file_id: str | None) -> bytes | None:
        """Return the bytes of a blob, or None if it does not exist."""
        return await self.blob_store.async_get(file_id)

    async def async_delete_file(self, file_id: str | None) -> None:
        """Delete a blob."""
        await self.blob_store.async_delete(file_id)


class SettingsStore:
    """Persists the global Settings as a single record."""

    def __init__(self, hass: HomeAssistant) -> None:
        self.hass = hass
        self.store = Store(hass, SETTINGS_STORAGE_VERSION, SETTINGS_STORAGE_KEY)

    async def async_load(self) -> Settings:
        """Return the stored settings, creating defaults on first use."""
        try:
            data = await self.store.async_load()
        except _STORE_ERRORS as err:
            raise PlantStorageError(f"Could not load settings: {err}") from err

        if data is None:
            settings = Settings()
            await self.async_save(settings)
            _LOGGER.info("Created default settings")
            return settings
        return Settings.from_dict(data)

    async def async_save(self, settings: Settings) -> None:
        """Persist the settings."""
        try:
            await self.store.async_save(settings.to_dict())
        except _STORE_ERRORS as err:
            raise PlantStorageError(f"Could not save settings: {err}") from err
