"""Due-date engine for Plant Tracker.

Combines the interval model with a plant's care history to produce the next
watering date and the next date of every recurring task, and classifies due
dates into statuses used for sorting, filtering and display.
"""

from __future__ import annotations

import logging
import math
from dataclasses import asdict, dataclass, field
from datetime import date, timedelta

from .const import (
    DUE_OK,
    DUE_OVERDUE,
    DUE_SOON,
    DUE_TODAY,
    SOON_DAYS,
    VOLUME_FACTOR_RANGE,
)
from .interval_model import (
    micro_environment_multiplier,
    plant_interval_multiplier,
    seasonal_multiplier,
)
from .models import Plant, Settings, Task
from .utils import DateInput, clamp, is_finite_number, round_half_up, to_date
from .utils import today as local_today

_LOGGER = logging.getLogger(__name__)


def _resolve_day(value: DateInput, today: date | None) -> date:
    """Return the date of value, falling back to today."""
    return to_date(value) or today or local_today()


def modeled_interval_days(plant: Plant, settings: Settings) -> int:
    """Return the base interval after every multiplier, floored at 1 day."""
    base = max(1, plant.interval_days)
    tuning = 1 + (plant.tune_interval_pct or 0) / 100
    interval = (
        base
        * plant_interval_multiplier(plant)
        * seasonal_multiplier(settings, plant.weather_override)
        * micro_environment_multiplier(plant)
        * tuning
    )
    return max(1, round_half_up(interval))


def next_due_from(plant: Plant, settings: Settings, today: date | None = None) -> date:
    """Return the next watering date of a plant.

    The modeled interval is added to the last-watered date, or to today when
    the plant has never been watered. Dates past the calendar range are
    clamped to date.max.
    """
    since = _resolve_day(plant.last_watered, today)
    try:
        return since + timedelta(days=modeled_interval_days(plant, settings))
    except OverflowError:
        _LOGGER.warning("Next watering of plant %s is out of range", plant.id)
        return date.max


def next_task_due(
    task: Task, last_done: DateInput = None, today: date | None = None
) -> date | None:
    """Return the next due date of a task, or None if it cannot be scheduled.

    Args:
        task: The task definition.
        last_done: Last completion date, or a fallback such as the plant's
            last-watered date. Defaults to today.
        today: Reference date, defaults to the current local date.
    """
    if not task.type or not task.every_days or task.every_days < 1:
        return None
    since = _resolve_day(last_done, today)
    try:
        return since + timedelta(days=max(1, task.every_days))
    except OverflowError:
        _LOGGER.warning("Next %s task is out of range", task.type)
        return None


def days_until(due: DateInput, today: date | None = None) -> int:
    """Return the signed number of days from today to due."""
    reference = today or local_today()
    return (_resolve_day(due, reference) - reference).days


def human_due(due: DateInput, today: date | None = None) -> str:
    """Return a human readable label for a due date."""
    delta = days_until(due, today)
    if delta < -1:
        return f"{abs(delta)} days overdue"
    if delta == -1:
        return "1 day overdue"
    if delta == 0:
        return "due today"
    if delta == 1:
        return "due tomorrow"
    return f"in {delta} days"


def due_class(due: DateInput, today: date | None = None) -> str:
    """Bucket a due date into overdue, due, soon or ok."""
    delta = days_until(due, today)
    if delta <= -1:
        return DUE_OVERDUE
    if delta == 0:
        return DUE_TODAY
    if delta <= SOON_DAYS:
        return DUE_SOON
    return DUE_OK


def estimate_water_ml(
    diameter_in: float | None, factor: float = 1.0
) -> tuple[int, int] | None:
    """Estimate the water volume per watering in millilitres.

    The pot is modeled as a cylinder whose height is 0.9 times its diameter;
    10-15% of that volume is recommended, scaled by factor clamped to
    [0.7, 1.3].

    Returns:
        A (min, max) tuple, or None for a missing or non-positive diameter.
    """
    if not is_finite_number(diameter_in) or diameter_in <= 0:
        return None
    diameter_m = diameter_in * 0.0254
    height_m = diameter_m * 0.9
    volume_ml = math.pi * (diameter_m / 2) ** 2 * height_m * 1000 * 1000
    scale = clamp(factor if is_finite_number(factor) else 1.0, *VOLUME_FACTOR_RANGE)
    return (
        round_half_up(volume_ml * 0.10 * scale),
        round_half_up(volume_ml * 0.15 * scale),
    )


def plant_water_range(plant: Plant, settings: Settings) -> tuple[int, int] | None:
    """Estimate the water volume range for a stored plant."""
    factor = (
        seasonal_multiplier(settings, plant.weather_override)
        * micro_environment_multiplier(plant)
        * (1 + (plant.tune_volume_pct or 0) / 100)
    )
    return estimate_water_ml(plant.pot_diameter_in, factor)


def hydration_pct(plant: Plant, settings: Settings, today: date | None = None) -> int:
    """Return the share of the current watering interval still remaining."""
    reference = today or local_today()
    last = _resolve_day(plant.last_watered, reference)
    total = (next_due_from(plant, settings, reference) - last).days
    if total <= 0:
        return 0
    used = (reference - last).days
    return int(clamp(round_half_up((total - used) / total * 100), 0, 100))


@dataclass
class TaskSchedule:
    """Schedule of one task of a plant."""

    index: int
    type: str
    every_days: int | None
    due: str | None
    status: str | None
    label: str | None


@dataclass
class PlantSchedule:
    """Everything the dashboard needs to know about when a plant needs care."""

    plant_id: str
    name: str
    next_due: str
    status: str
    label: str
    interval_days: int
    hydration: int
    water_ml: tuple[int, int] | None
    tasks: list[TaskSchedule] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Convert the dataclass instance to a dictionary."""
        data = asdict(self)
        data["water_ml"] = list(self.water_ml) if self.water_ml else None
        return data


def build_schedule(
    plant: Plant, settings: Settings, today: date | None = None
) -> PlantSchedule:
    """Compute the full schedule of a plant from its stored fields."""
    reference = today or local_today()
    due = next_due_from(plant, settings, reference)

    tasks = []
    for index, task in enumerate(plant.tasks):
        task_due = next_task_due(task, task.last_done or plant.last_watered, reference)
        tasks.append(
            TaskSchedule(
                index=index,
                type=task.type,
                every_days=task.every_days,
                due=task_due.isoformat() if task_due else None,
                status=due_class(task_due, reference) if task_due else None,
                label=human_due(task_due, reference) if task_due else None,
            )
        )

    return PlantSchedule(
        plant_id=plant.id,
        name=plant.name,
        next_due=due.isoformat(),
        status=due_class(due, reference),
        label=human_due(due, reference),
        interval_days=modeled_interval_days(plant, settings),
        hydration=hydration_pct(plant, settings, reference),
        water_ml=plant_water_range(plant, settings),
        tasks=tasks,
    )
