"""Shared helpers for Plant Tracker service handlers."""

from __future__ import annotations

import logging
from collections.abc import Awaitable
from typing import TypeVar

from homeassistant.components.persistent_notification import (
    async_create as create_notification,
)
from homeassistant.core import HomeAssistant
from homeassistant.exceptions import HomeAssistantError, ServiceValidationError

from ..const import DEFAULT_NAME, DOMAIN
from ..coordinator import PlantTrackerCoordinator

_LOGGER = logging.getLogger(__name__)

_T = TypeVar("_T")


def require_plant(coordinator: PlantTrackerCoordinator, plant_id: str) -> None:
    """Raise ServiceValidationError if the plant does not exist."""
    if plant_id not in coordinator.plants:
        _LOGGER.error("Plant %s does not exist", plant_id)
        raise ServiceValidationError(f"Plant '{plant_id}' not found.")


async def async_run_action(
    hass: HomeAssistant, description: str, action: Awaitable[_T]
) -> _T:
    """Await a coordinator action, reporting failures to the user.

    Invalid references and out-of-range dates become ServiceValidationError;
    other Home Assistant errors raise a persistent notification and are
    re-raised.
    """
    try:
        return await action
    except (ValueError, OverflowError) as err:
        _LOGGER.error("Failed to %s: %s", description, err)
        raise ServiceValidationError(str(err)) from err
    except HomeAssistantError as err:
        _LOGGER.exception("Failed to %s: %s", description, err)
        create_notification(
            hass,
            f"Failed to {description}: {err}",
            title=f"{DEFAULT_NAME} Error",
            notification_id=f"{DOMAIN}_error",
        )
        raise
