"""Tests for the Plant Tracker integration setup."""

import json
from unittest.mock import AsyncMock, MagicMock, Mock

from aiohttp import BodyPartReader
from homeassistant.core import HomeAssistant

from custom_components.plant_tracker import (
    SERVICES,
    PlantPhotoView,
    SnapshotUploadView,
    _async_remove_services,
    _register_services,
)
from custom_components.plant_tracker.const import DOMAIN
from custom_components.plant_tracker.exceptions import SnapshotError


def test_service_names_are_unique():
    """Test that every service is declared once."""
    names = [name for name, *_ in SERVICES]
    assert len(names) == 19
    assert len(set(names)) == len(names)


async def test_register_and_remove_services(hass: HomeAssistant):
    """Test that services are registered for the domain and removed on unload."""
    _register_services(hass, Mock())

    for name, *_ in SERVICES:
        assert hass.services.has_service(DOMAIN, name)

    _async_remove_services(hass)

    for name, *_ in SERVICES:
        assert not hass.services.has_service(DOMAIN, name)


# ============================================================================
# Views
# ============================================================================


async def test_photo_view_returns_bytes(image_factory):
    """Test that stored photos are served with their MIME type."""
    coordinator = Mock()
    coordinator.repository.async_get_file = AsyncMock(return_value=image_factory(fmt="JPEG"))

    response = await PlantPhotoView(coordinator).get(MagicMock(), "abc")

    assert response.status == 200
    assert response.content_type == "image/jpeg"
    coordinator.repository.async_get_file.assert_awaited_once_with("abc")


async def test_photo_view_missing_photo():
    """Test that unknown photos answer 404."""
    coordinator = Mock()
    coordinator.repository.async_get_file = AsyncMock(return_value=None)

    response = await PlantPhotoView(coordinator).get(MagicMock(), "missing")

    assert response.status == 404


def _upload_request(payload: bytes, name: str = "file") -> MagicMock:
    field = MagicMock(spec=BodyPartReader)
    field.name = name
    field.read = AsyncMock(return_value=payload)
    reader = MagicMock()
    reader.next = AsyncMock(return_value=field)
    request = MagicMock()
    request.multipart = AsyncMock(return_value=reader)
    return request


async def test_upload_view_imports_snapshot():
    """Test importing an uploaded snapshot."""
    coordinator = Mock()
    coordinator.async_import_snapshot = AsyncMock(return_value=2)
    snapshot = {"plants": [{"id": "p1"}, {"id": "p2"}]}

    response = await SnapshotUploadView(coordinator).post(
        _upload_request(json.dumps(snapshot).encode())
    )

    assert json.loads(response.body) == {"success": True, "imported_count": 2}
    coordinator.async_import_snapshot.assert_awaited_once_with(snapshot)


async def test_upload_view_rejects_bad_uploads():
    """Test missing fields, invalid JSON and rejected snapshots."""
    coordinator = Mock()
    coordinator.async_import_snapshot = AsyncMock(side_effect=SnapshotError("No plants"))
    view = SnapshotUploadView(coordinator)

    missing = await view.post(_upload_request(b"{}", name="other"))
    assert missing.status == 400

    invalid = await view.post(_upload_request(b"not json"))
    assert json.loads(invalid.body) == {"success": False, "error": "File is not valid JSON"}

    rejected = await view.post(_upload_request(b'{"plants": "nope"}'))
    assert json.loads(rejected.body) == {"success": False, "error": "No plants"}
