"""Exceptions raised by the Plant Tracker integration."""

from homeassistant.exceptions import HomeAssistantError


class PlantTrackerError(HomeAssistantError):
    """Base error for Plant Tracker."""


class PlantStorageError(PlantTrackerError):
    """Raised when the plant store or the blob store fails."""


class SnapshotError(PlantTrackerError):
    """Raised when an import snapshot is rejected before any write."""
