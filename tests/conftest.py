"""Global fixtures for Plant Tracker tests."""

from base64 import b64encode
from io import BytesIO
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from PIL import Image

from homeassistant.core import HomeAssistant

pytest_plugins = "pytest_homeassistant_custom_component"


def _make_image(size=(40, 30), fmt="PNG", mode="RGB") -> bytes:
    output = BytesIO()
    Image.new(mode, size).save(output, fmt)
    return output.getvalue()


@pytest.fixture
def image_factory():
    """Return a function that generates small images as bytes."""
    return _make_image


@pytest.fixture
def photo_data_url() -> str:
    """A small PNG photo encoded as a data URL."""
    return "data:image/png;base64," + b64encode(_make_image()).decode("ascii")


@pytest.fixture
def mock_hass(tmp_path) -> MagicMock:
    """Mock Home Assistant instance with an inline executor."""
    hass = MagicMock(spec=HomeAssistant)

    async def run_immediately(f, *args):
        return f(*args)

    # Mock async_add_executor_job to run the function immediately and return awaitable
    hass.async_add_executor_job = MagicMock(side_effect=run_immediately)
    hass.config = MagicMock()
    hass.config.path = MagicMock(
        side_effect=lambda *parts: str(tmp_path.joinpath("config", *parts))
    )
    return hass


@pytest.fixture
def mock_store():
    """Mock the Store class used by the repository and the settings store."""
    with patch(
        "custom_components.plant_tracker.plant_repository.Store"
    ) as mock_store_cls:
        mock_store_instance = mock_store_cls.return_value
        mock_store_instance.async_load = AsyncMock(return_value=None)
        mock_store_instance.async_save = AsyncMock()
        yield mock_store_instance
