"""Interval model for Plant Tracker.

Pure functions that turn qualitative plant attributes and the global settings
into dimensionless multipliers for the watering interval. A multiplier above 1
means "water less often", below 1 "water more often". Nothing here performs
I/O or reads ambient state: every input is passed in explicitly.
"""

from __future__ import annotations

from .const import (
    DEFAULT_POT_SIZE,
    INTERVAL_MULTIPLIER_RANGE,
    LARGE_POT_MIN_IN,
    MICRO_MULTIPLIER_RANGE,
    POT_SIZE_FACTORS,
    SEASON_FACTORS,
    SMALL_POT_MAX_IN,
    VPD_FACTOR_RANGE,
)
from .models import Plant, Settings, WeatherOverride
from .utils import VPDCalculator, clamp, is_finite_number


def pot_category_from_inches(inches: float | None) -> str:
    """Map a pot diameter in inches to a pot size category."""
    if not is_finite_number(inches) or inches <= 0:
        return DEFAULT_POT_SIZE
    if inches <= SMALL_POT_MAX_IN:
        return "small"
    if inches >= LARGE_POT_MIN_IN:
        return "large"
    return "medium"


def resolve_pot_size(pot_size: str | None, diameter_in: float | None = None) -> str:
    """Return the stored pot category, or the one derived from the diameter."""
    if pot_size in POT_SIZE_FACTORS:
        return pot_size
    return pot_category_from_inches(diameter_in)


def interval_multiplier(
    light_level: str | None, pot_size: str | float | None = None
) -> float:
    """Return the pot size multiplier, clamped to [0.5, 1.5].

    The light level is accepted for callers that pass a plant's full
    conditions but does not change the interval.

    Args:
        light_level: low, medium or high.
        pot_size: A pot size category, or a pot diameter in inches.
    """
    if isinstance(pot_size, str):
        category = resolve_pot_size(pot_size)
    else:
        category = pot_category_from_inches(pot_size)

    return clamp(POT_SIZE_FACTORS[category], *INTERVAL_MULTIPLIER_RANGE)


def plant_interval_multiplier(plant: Plant) -> float:
    """Return the interval multiplier for a stored plant."""
    return interval_multiplier(
        plant.light_level, resolve_pot_size(plant.pot_size, plant.pot_diameter_in)
    )


def micro_environment_multiplier(plant: Plant) -> float:
    """Return the soil, exposure and indoor/outdoor multiplier in [0.8, 1.3]."""
    multiplier = 1.0
    if plant.soil_type == "cactus":
        multiplier *= 1.2
    if plant.soil_type == "aroid":
        multiplier *= 0.95
    if plant.is_outdoor:
        multiplier *= 0.95
    if plant.exposure in ("S", "W"):
        multiplier *= 0.95
    if plant.exposure == "N":
        multiplier *= 1.05
    return clamp(multiplier, *MICRO_MULTIPLIER_RANGE)


def vpd_factor(temperature_c: float | None, humidity_rh: float | None) -> float:
    """Return the drying-speed factor for the given conditions.

    Neutral (1.0) unless both temperature and humidity are finite numbers.
    """
    vpd = VPDCalculator.calculate_vpd(temperature_c, humidity_rh)
    if vpd is None:
        return 1.0
    return clamp(1.0 - (vpd - 0.8) * 0.3, *VPD_FACTOR_RANGE)


def seasonal_multiplier(
    settings: Settings, weather_override: WeatherOverride | None = None
) -> float:
    """Return the season factor multiplied by the VPD factor.

    Temperature and humidity are taken from the override when finite and fall
    back to the global settings field by field.
    """
    season_factor = SEASON_FACTORS.get(settings.season, 1.0)

    temperature = settings.temp_c
    humidity = settings.rh
    if weather_override is not None:
        if is_finite_number(weather_override.temp_c):
            temperature = weather_override.temp_c
        if is_finite_number(weather_override.rh):
            humidity = weather_override.rh

    return season_factor * vpd_factor(temperature, humidity)
