"""Binary blob storage for Plant Tracker photos."""

from __future__ import annotations

import logging
import os
import re
import tempfile

from homeassistant.core import HomeAssistant

from .const import BLOB_DIR, BLOB_ID_PREFIX
from .exceptions import PlantStorageError
from .utils import generate_id

_LOGGER = logging.getLogger(__name__)

_VALID_BLOB_ID = re.compile(r"^[A-Za-z0-9_-]+$")


class BlobStore:
    """Stores raw binary data under freshly generated ids.

    Blobs are never updated in place: every write creates a new file, so
    concurrent writes cannot corrupt each other. The store does not know
    which plant references a blob.
    """

    def __init__(self, hass: HomeAssistant, storage_dir: str | None = None) -> None:
        """Initialize the BlobStore.

        Args:
            hass: Home Assistant instance.
            storage_dir: Directory to store blobs, defaults to BLOB_DIR in the
                config directory.
        """
        self.hass = hass
        self.storage_dir = storage_dir or hass.config.path(BLOB_DIR)

    def _path_for(self, blob_id: str) -> str | None:
        """Return the file path of a blob id, or None for a malformed id."""
        if not isinstance(blob_id, str) or not _VALID_BLOB_ID.match(blob_id):
            return None
        return os.path.join(self.storage_dir, f"{blob_id}.bin")

    async def async_put(self, data: bytes) -> str:
        """Store data under a new id and return the id."""
        blob_id = generate_id(BLOB_ID_PREFIX)
        await self.hass.async_add_executor_job(self._write_sync, blob_id, data)
        return blob_id

    def _write_sync(self, blob_id: str, data: bytes) -> None:
        """Write a blob atomically through a temporary file."""
        path = self._path_for(blob_id)
        try:
            os.makedirs(self.storage_dir, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self.storage_dir, suffix=".tmp")
            try:
                with os.fdopen(fd, "wb") as tmp:
                    tmp.write(data)
                os.replace(tmp_path, path)
            except OSError:
                if os.path.exists(tmp_path):
                    os.remove(tmp_path)
                raise
        except OSError as err:
            raise PlantStorageError(f"Could not write file {blob_id}: {err}") from err
        _LOGGER.debug("Stored blob %s (%d bytes)", blob_id, len(data))

    async def async_get(self, blob_id: str | None) -> bytes | None:
        """Return the data of a blob, or None if it does not exist."""
        if not blob_id:
            return None
        return await self.hass.async_add_executor_job(self._read_sync, blob_id)

    def _read_sync(self, blob_id: str) -> bytes | None:
        path = self._path_for(blob_id)
        if path is None or not os.path.exists(path):
            return None
        try:
            with open(path, "rb") as blob:
                return blob.read()
        except OSError as err:
            raise PlantStorageError(f"Could not read file {blob_id}: {err}") from err

    async def async_delete(self, blob_id: str | None) -> None:
        """Delete a blob; unknown ids are ignored."""
        if not blob_id:
            return
        await self.hass.async_add_executor_job(self._delete_sync, blob_id)

    def _delete_sync(self, blob_id: str) -> None:
        path = self._path_for(blob_id)
        if path is None or not os.path.exists(path):
            return
        try:
            os.remove(path)
        except OSError as err:
            raise PlantStorageError(f"Could not delete file {blob_id}: {err}") from err
        _LOGGER.debug("Deleted blob %s", blob_id)
