"""Snapshot export and import for Plant Tracker."""

from __future__ import annotations

import json
import logging
import os
from typing import Any

from homeassistant.core import HomeAssistant
from homeassistant.util import dt as dt_util

from .const import EXPORT_DIR, SNAPSHOT_VERSION
from .exceptions import PlantStorageError, SnapshotError
from .image_manager import from_data_url, to_data_url
from .models import Plant
from .plant_repository import PlantRepository

_LOGGER = logging.getLogger(__name__)

IMAGE_DATA_KEYS = ("image_data", "imageData")
FILE_ID_KEYS = ("file_id", "fileId")


def _first_value(data: dict, keys: tuple[str, ...]) -> Any:
    for key in keys:
        if data.get(key):
            return data[key]
    return None


def validate_snapshot(snapshot: Any) -> list[dict]:
    """Check the structure of a snapshot and return its plant entries.

    Raises:
        SnapshotError: If the snapshot is not a mapping, its plants are not a
            list, or any entry is not a mapping with an id.
    """
    if not isinstance(snapshot, dict):
        raise SnapshotError("Snapshot must be a JSON object")
    plants = snapshot.get("plants")
    if not isinstance(plants, list):
        raise SnapshotError("Snapshot 'plants' must be a list")
    for index, entry in enumerate(plants):
        if not isinstance(entry, dict):
            raise SnapshotError(f"Plant entry {index} is not an object")
        plant_id = entry.get("id")
        if not isinstance(plant_id, str) or not plant_id.strip():
            raise SnapshotError(f"Plant entry {index} has no id")
    return plants


class ImportExportManager:
    """Produces self-contained snapshots and merges them back in."""

    def __init__(self, hass: HomeAssistant, repository: PlantRepository) -> None:
        """Initialize the ImportExportManager.

        Args:
            hass: Home Assistant instance.
            repository: The repository snapshots are read from and written to.
        """
        self.hass = hass
        self.repository = repository

    async def async_export(self) -> dict[str, Any]:
        """Return a snapshot of every plant with photos inlined as data URLs."""
        exported = []
        for plant in await self.repository.async_all():
            data = plant.to_dict()
            for obs in data["observations"]:
                if not obs.get("file_id"):
                    continue
                blob = await self.repository.async_get_file(obs["file_id"])
                if blob is None:
                    _LOGGER.warning(
                        "File %s of plant %s is missing, exporting the reference only",
                        obs["file_id"],
                        plant.id,
                    )
                    continue
                obs["image_data"] = await self.hass.async_add_executor_job(
                    to_data_url, blob
                )
            exported.append(data)

        return {
            "version": SNAPSHOT_VERSION,
            "exportedAt": dt_util.utcnow().isoformat(),
            "plants": exported,
        }

    async def async_import(self, snapshot: Any) -> int:
        """Merge a snapshot into the repository.

        Every plant in the snapshot replaces the stored plant with the same
        id. Inline images are stored as new blobs when the observation has no
        usable file reference; corrupt images are skipped. All plants are
        saved together, and the new blobs are deleted again when that fails.

        Args:
            snapshot: The decoded snapshot.

        Returns:
            The number of imported plants.
        """
        entries = validate_snapshot(snapshot)

        created: list[str] = []
        try:
            plants = [await self._async_rehydrate(entry, created) for entry in entries]
            await self.repository.async_put_many(plants)
        except PlantStorageError:
            await self._async_discard_files(created)
            raise

        _LOGGER.info("Imported %d plants", len(plants))
        return len(plants)

    async def _async_discard_files(self, file_ids: list[str]) -> None:
        """Delete blobs written by an import that did not complete."""
        for file_id in file_ids:
            try:
                await self.repository.async_delete_file(file_id)
            except PlantStorageError as err:
                _LOGGER.warning("Could not delete file %s of failed import: %s", file_id, err)

    async def _async_rehydrate(self, entry: dict, created: list[str]) -> Plant:
        """Turn a snapshot entry into a Plant, storing its inline images.

        The ids of newly stored blobs are appended to created.
        """
        remapped: dict[str, str] = {}
        observations = []

        raw_observations = entry.get("observations")
        for raw in raw_observations if isinstance(raw_observations, list) else []:
            if not isinstance(raw, dict):
                continue
            obs = {k: v for k, v in raw.items() if k not in IMAGE_DATA_KEYS + FILE_ID_KEYS}
            file_id = _first_value(raw, FILE_ID_KEYS)
            image_data = _first_value(raw, IMAGE_DATA_KEYS)

            if image_data and (
                not file_id or await self.repository.async_get_file(file_id) is None
            ):
                try:
                    blob = from_data_url(image_data)
                except ValueError as err:
                    _LOGGER.warning(
                        "Skipping corrupt image of observation %s on plant %s: %s",
                        raw.get("id"),
                        entry["id"],
                        err,
                    )
                    file_id = None
                else:
                    new_id = await self.repository.async_put_file(blob)
                    created.append(new_id)
                    if file_id:
                        remapped[file_id] = new_id
                    file_id = new_id

            obs["file_id"] = file_id
            observations.append(obs)

        plant = Plant.from_dict({**entry, "observations": observations})
        if plant.cover_file_id in remapped:
            plant.cover_file_id = remapped[plant.cover_file_id]
        return plant

    async def async_export_to_file(self, output_dir: str | None = None) -> str:
        """Write a snapshot to a timestamped JSON file and return its path."""
        snapshot = await self.async_export()
        output_dir = output_dir or self.hass.config.path(*EXPORT_DIR)
        return await self.hass.async_add_executor_job(
            self._write_snapshot_sync, snapshot, output_dir
        )

    def _write_snapshot_sync(self, snapshot: dict[str, Any], output_dir: str) -> str:
        """Synchronous helper to write the snapshot file."""
        os.makedirs(output_dir, exist_ok=True)
        timestamp = dt_util.now().strftime("%Y%m%d_%H%M%S")
        path = os.path.join(output_dir, f"plants_export_{timestamp}.json")
        with open(path, "w", encoding="utf-8") as file:
            json.dump(snapshot, file, indent=2)
        _LOGGER.info("Exported %d plants to %s", len(snapshot["plants"]), path)
        return path

    async def async_import_from_file(self, path: str) -> int:
        """Import a snapshot from a JSON file and return the plant count."""
        snapshot = await self.hass.async_add_executor_job(self._read_snapshot_sync, path)
        return await self.async_import(snapshot)

    def _read_snapshot_sync(self, path: str) -> Any:
        """Synchronous helper to read a snapshot file."""
        if not os.path.exists(path):
            raise SnapshotError(f"Snapshot file not found: {path}")
        try:
            with open(path, encoding="utf-8") as file:
                return json.load(file)
        except (OSError, ValueError) as err:
            raise SnapshotError(f"Could not read snapshot {path}: {err}") from err
