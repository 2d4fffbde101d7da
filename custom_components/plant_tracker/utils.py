"""Utility functions for date handling, rounding and VPD in plant_tracker."""

from __future__ import annotations

import math
import uuid
from datetime import date, datetime

from dateutil import parser
from homeassistant.util import dt as dt_util

DateInput = str | datetime | date | None


def parse_date_field(date_value: DateInput) -> datetime | None:
    """Parse various date inputs into a datetime object."""
    if date_value is None:
        return None
    if isinstance(date_value, datetime):
        return date_value
    if isinstance(date_value, date):
        return datetime.combine(date_value, datetime.min.time())
    if isinstance(date_value, str):
        try:
            return parser.isoparse(date_value)
        except (ValueError, TypeError, OverflowError):
            return None
    return None


def to_date(date_value: DateInput) -> date | None:
    """Return the calendar date of a date input, or None."""
    dt = parse_date_field(date_value)
    if dt is None:
        return None
    return dt.date()


def format_date(date_value: DateInput) -> str | None:
    """Format a date input into an ISO calendar date string (YYYY-MM-DD)."""
    day = to_date(date_value)
    if day is None:
        return None
    return day.isoformat()


def today() -> date:
    """Return the current local calendar date."""
    return dt_util.now().date()


def now_iso() -> str:
    """Return the current UTC time as an ISO timestamp."""
    return dt_util.utcnow().isoformat()


def calculate_days_since(start_date: DateInput, end_date: DateInput = None) -> int:
    """Return the number of days from start_date to end_date.

    If end_date is None, uses today.
    """
    start = to_date(start_date)
    end = to_date(end_date) if end_date else today()
    if start is None or end is None:
        return 0
    return (end - start).days


def clamp(value: float, minimum: float, maximum: float) -> float:
    """Clamp value into [minimum, maximum]."""
    return max(minimum, min(maximum, value))


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return math.floor(value + 0.5)


def is_finite_number(value) -> bool:
    """Return True for real, finite numbers (bools excluded)."""
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


def generate_id(prefix: str = "") -> str:
    """Generate an opaque unique identifier."""
    return f"{prefix}{uuid.uuid4().hex}"


class VPDCalculator:
    """A utility class for calculating Vapor Pressure Deficit (VPD)."""

    @staticmethod
    def saturation_vapor_pressure(temperature_c: float) -> float:
        """Return the saturation vapor pressure in kPa (Tetens formula)."""
        return 0.6108 * math.exp((17.27 * temperature_c) / (temperature_c + 237.3))

    @staticmethod
    def calculate_vpd(temperature_c: float, humidity_rh: float) -> float | None:
        """
        Calculate Vapor Pressure Deficit (VPD) in kPa.

        Args:
            temperature_c: Temperature in degrees Celsius.
            humidity_rh: Relative humidity in percent, clamped to 0-100.

        Returns:
            The VPD in kilopascals (kPa), or None if inputs are not finite numbers.
        """
        if not is_finite_number(temperature_c) or not is_finite_number(humidity_rh):
            return None
        if temperature_c <= -237.3:
            return None

        rh = clamp(humidity_rh, 0, 100)
        svp = VPDCalculator.saturation_vapor_pressure(temperature_c)
        return svp * (1 - rh / 100)
