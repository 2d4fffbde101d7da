"""Data models for the Plant Tracker integration.

This file defines the dataclasses that represent the records stored by the
integration: plants and the tasks, history events and observations they own,
the per-plant weather override, and the process-wide settings. Every
`from_dict` factory applies the documented defaults, so records read from
storage or from an import snapshot are always complete and valid.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field, fields
from typing import Any

from .const import (
    DEFAULT_INTERVAL_DAYS,
    DEFAULT_LIGHT_LEVEL,
    DEFAULT_LOCATION,
    DEFAULT_SEASON,
    DEFAULT_SOIL_TYPE,
    EXPOSURES,
    HISTORY_LIMIT,
    LIGHT_LEVELS,
    LOCATIONS,
    MAX_CADENCE_DAYS,
    OBSERVATION_TYPES,
    POT_SIZES,
    SEASONS,
    SOIL_TYPES,
)
from .utils import format_date, generate_id, now_iso

# Keys written by the original web app, mapped to their current field names
PLANT_FIELD_ALIASES = {
    "intervalDays": "interval_days",
    "baseIntervalDays": "interval_days",
    "lastWatered": "last_watered",
    "lightLevel": "light_level",
    "potSize": "pot_size",
    "potSizeIn": "pot_diameter_in",
    "potDiameterIn": "pot_diameter_in",
    "soilType": "soil_type",
    "inout": "location",
    "roomLabel": "room",
    "tuneIntervalPct": "tune_interval_pct",
    "tuneVolumePct": "tune_volume_pct",
    "weatherOverride": "weather_override",
    "nextDue": "next_due",
    "coverFileId": "cover_file_id",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
}
TASK_FIELD_ALIASES = {"everyDays": "every_days", "lastDone": "last_done"}
OBSERVATION_FIELD_ALIASES = {"fileId": "file_id"}
WEATHER_FIELD_ALIASES = {
    "tempC": "temp_c",
    "temperatureC": "temp_c",
    "relativeHumidityPct": "rh",
    "fetchedAt": "fetched_at",
}
SETTINGS_FIELD_ALIASES = {
    "tempC": "temp_c",
    "sortBy": "sort_by",
    "filter": "status_filter",
}


def _migrate_keys(data: dict, aliases: dict[str, str]) -> dict:
    """Return a copy of data with legacy keys renamed."""
    data = data.copy()  # Don't modify original
    for old, new in aliases.items():
        if old in data:
            value = data.pop(old)
            if new not in data:
                data[new] = value
    return data


def _coerce_str(value: Any, default: str = "") -> str:
    if isinstance(value, str):
        return value.strip()
    return default


def _coerce_optional_str(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _coerce_choice(value: Any, choices: list[str], default: str) -> str:
    if isinstance(value, str) and value in choices:
        return value
    return default


def _coerce_float(value: Any) -> float | None:
    if isinstance(value, bool) or value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _coerce_positive_int(value: Any, maximum: int = MAX_CADENCE_DAYS) -> int | None:
    """Return value as an int in [1, maximum], or None when it is missing or invalid."""
    number = _coerce_float(value)
    if number is None:
        return None
    number = int(math.floor(number + 0.5))
    return number if 1 <= number <= maximum else None


def _as_list(value: Any) -> list:
    return value if isinstance(value, list) else []


def _coerce_bool(value: Any, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.lower() in ("true", "false"):
        return value.lower() == "true"
    return default


@dataclass(frozen=True)
class HistoryEvent:
    """An immutable entry in a plant's care log.

    Attributes:
        type: `water`, `observe` or `task:<type>`.
        at: ISO date or timestamp of the event.
    """

    type: str
    at: str

    def to_dict(self) -> dict:
        """Convert the dataclass instance to a dictionary."""
        return asdict(self)

    @staticmethod
    def from_dict(data: dict) -> HistoryEvent:
        """Create a HistoryEvent instance from a dictionary."""
        return HistoryEvent(
            type=_coerce_str(data.get("type")),
            at=_coerce_str(data.get("at")) or now_iso(),
        )


@dataclass
class Task:
    """A recurring care task owned by a plant.

    Attributes:
        type: Free-form tag such as fertilize, repot, prune, inspect or mist.
        every_days: Cadence in days; None when missing or invalid.
        last_done: ISO date of the last completion, if any.
    """

    type: str = ""
    every_days: int | None = None
    last_done: str | None = None

    def to_dict(self) -> dict:
        """Convert the dataclass instance to a dictionary."""
        return asdict(self)

    @staticmethod
    def from_dict(data: dict) -> Task:
        """Create a Task instance from a dictionary, applying defaults."""
        data = _migrate_keys(data, TASK_FIELD_ALIASES)
        return Task(
            type=_coerce_str(data.get("type")),
            every_days=_coerce_positive_int(data.get("every_days")),
            last_done=format_date(data.get("last_done")),
        )


@dataclass(frozen=True)
class Observation:
    """A note or photo recorded for a plant.

    Attributes:
        id: Unique identifier of the observation.
        at: ISO timestamp of when it was recorded.
        type: `photo` or `note`.
        note: Optional free text.
        file_id: Reference to a blob in the blob store, for photos.
    """

    id: str
    at: str
    type: str = "note"
    note: str = ""
    file_id: str | None = None

    def to_dict(self) -> dict:
        """Convert the dataclass instance to a dictionary."""
        return asdict(self)

    @staticmethod
    def from_dict(data: dict) -> Observation:
        """Create an Observation instance from a dictionary.

        Inline image payloads are not part of the stored record and are
        dropped here.
        """
        data = _migrate_keys(data, OBSERVATION_FIELD_ALIASES)
        file_id = _coerce_optional_str(data.get("file_id"))
        return Observation(
            id=_coerce_str(data.get("id")) or generate_id(),
            at=_coerce_str(data.get("at")) or now_iso(),
            type=_coerce_choice(
                data.get("type"), OBSERVATION_TYPES, "photo" if file_id else "note"
            ),
            note=_coerce_str(data.get("note")),
            file_id=file_id,
        )


@dataclass
class WeatherOverride:
    """Weather conditions captured for a single plant."""

    temp_c: float | None = None
    rh: float | None = None
    fetched_at: str | None = None

    def to_dict(self) -> dict:
        """Convert the dataclass instance to a dictionary."""
        return asdict(self)

    @staticmethod
    def from_dict(data: dict) -> WeatherOverride:
        """Create a WeatherOverride instance from a dictionary."""
        data = _migrate_keys(data, WEATHER_FIELD_ALIASES)
        return WeatherOverride(
            temp_c=_coerce_float(data.get("temp_c")),
            rh=_coerce_float(data.get("rh")),
            fetched_at=_coerce_optional_str(data.get("fetched_at")),
        )


@dataclass
class Settings:
    """Process-wide settings passed into every scheduling call.

    Attributes:
        season: growing, peak or dormant.
        temp_c: Ambient temperature in degrees Celsius, if known.
        rh: Ambient relative humidity in percent, if known.
        view: Preferred dashboard view.
        sort_by: Preferred sort order of plant lists.
        status_filter: Preferred due-status filter of plant lists.
    """

    season: str = DEFAULT_SEASON
    temp_c: float | None = None
    rh: float | None = None
    view: str = "list"
    sort_by: str = "due"
    status_filter: str = "all"

    def to_dict(self) -> dict:
        """Convert the dataclass instance to a dictionary."""
        return asdict(self)

    @staticmethod
    def from_dict(data: dict | None) -> Settings:
        """Create a Settings instance, ignoring unknown keys."""
        if not isinstance(data, dict):
            return Settings()
        data = _migrate_keys(data, SETTINGS_FIELD_ALIASES)
        defaults = Settings()
        return Settings(
            season=_coerce_choice(data.get("season"), SEASONS, DEFAULT_SEASON),
            temp_c=_coerce_float(data.get("temp_c")),
            rh=_coerce_float(data.get("rh")),
            view=_coerce_str(data.get("view")) or defaults.view,
            sort_by=_coerce_str(data.get("sort_by")) or defaults.sort_by,
            status_filter=_coerce_str(data.get("status_filter"))
            or defaults.status_filter,
        )


@dataclass
class Plant:
    """Represents a single plant and everything needed to schedule its care.

    Attributes:
        id: Opaque unique identifier, never reused.
        name: Display name.
        family: Taxonomic family.
        genus: Taxonomic genus.
        species: Species epithet or binomial.
        cultivar: Cultivar name.
        light_level: low, medium or high.
        pot_size: Pot size category, or None to derive it from the diameter.
        pot_diameter_in: Pot diameter in inches.
        soil_type: generic, aroid or cactus.
        material: Pot material.
        drainage: Whether the pot drains.
        location: indoor or outdoor.
        exposure: Compass exposure N, E, S, W or empty.
        room: Free-form room label.
        notes: Free-form notes.
        interval_days: Base watering interval in days.
        last_watered: ISO date of the last watering; None means today.
        tune_interval_pct: Percentage added to the modeled interval.
        tune_volume_pct: Percentage added to the water volume estimate.
        weather_override: Weather captured for this plant only.
        next_due: Cached next watering date, recomputed on every write.
        tasks: Recurring care tasks.
        history: Care log, capped at HISTORY_LIMIT entries.
        observations: Notes and photos.
        cover_file_id: Blob id of the photo representing the plant.
        created_at: ISO timestamp of creation.
        updated_at: ISO timestamp of the last write.
    """

    id: str
    name: str = ""
    family: str = ""
    genus: str = ""
    species: str = ""
    cultivar: str = ""
    light_level: str = DEFAULT_LIGHT_LEVEL
    pot_size: str | None = None
    pot_diameter_in: float | None = None
    soil_type: str = DEFAULT_SOIL_TYPE
    material: str = ""
    drainage: bool = True
    location: str = DEFAULT_LOCATION
    exposure: str = ""
    room: str = ""
    notes: str = ""
    interval_days: int = DEFAULT_INTERVAL_DAYS
    last_watered: str | None = None
    tune_interval_pct: float = 0.0
    tune_volume_pct: float = 0.0
    weather_override: WeatherOverride | None = None
    next_due: str | None = None
    tasks: list[Task] = field(default_factory=list)
    history: list[HistoryEvent] = field(default_factory=list)
    observations: list[Observation] = field(default_factory=list)
    cover_file_id: str | None = None
    created_at: str | None = None
    updated_at: str | None = None

    def to_dict(self) -> dict:
        """Convert the dataclass instance to a dictionary.

        Returns:
            A flat, JSON-serialisable representation of the Plant.
        """
        return asdict(self)

    @property
    def is_outdoor(self) -> bool:
        """Return True when the plant lives outdoors."""
        return self.location == "outdoor"

    def record_event(self, event_type: str, at: str | None = None) -> HistoryEvent:
        """Append a history event, evicting the oldest beyond HISTORY_LIMIT."""
        event = HistoryEvent(type=event_type, at=at or now_iso())
        self.history.append(event)
        if len(self.history) > HISTORY_LIMIT:
            del self.history[: len(self.history) - HISTORY_LIMIT]
        return event

    def get_observation(self, observation_id: str) -> Observation | None:
        """Return the observation with the given id, if any."""
        return next((obs for obs in self.observations if obs.id == observation_id), None)

    def referenced_file_ids(self) -> set[str]:
        """Return every blob id this plant points at."""
        file_ids = {obs.file_id for obs in self.observations if obs.file_id}
        if self.cover_file_id:
            file_ids.add(self.cover_file_id)
        return file_ids

    @staticmethod
    def from_dict(data: dict) -> Plant:
        """Create a Plant instance from a dictionary.

        This factory method migrates legacy field names, ignores keys that do
        not correspond to dataclass fields and replaces missing or invalid
        values with their documented defaults.

        Args:
            data: A dictionary containing the plant data.

        Returns:
            A new instance of the Plant class.

        Raises:
            ValueError: If the record has no id.
        """
        data = _migrate_keys(data, PLANT_FIELD_ALIASES)

        if "pot_diameter_in" not in data and "potDiameterCm" in data:
            diameter_cm = _coerce_float(data["potDiameterCm"])
            if diameter_cm is not None:
                data["pot_diameter_in"] = diameter_cm / 2.54

        plant_id = _coerce_str(data.get("id"))
        if not plant_id:
            raise ValueError("Plant record has no id")

        allowed_keys = {f.name for f in fields(Plant)}
        data = {k: v for k, v in data.items() if k in allowed_keys}

        diameter = _coerce_float(data.get("pot_diameter_in"))
        exposure = data.get("exposure")
        weather = data.get("weather_override")
        history = [
            HistoryEvent.from_dict(evt)
            for evt in _as_list(data.get("history"))
            if isinstance(evt, dict)
        ]

        return Plant(
            id=plant_id,
            name=_coerce_str(data.get("name")),
            family=_coerce_str(data.get("family")),
            genus=_coerce_str(data.get("genus")),
            species=_coerce_str(data.get("species")),
            cultivar=_coerce_str(data.get("cultivar")),
            light_level=_coerce_choice(
                data.get("light_level"), LIGHT_LEVELS, DEFAULT_LIGHT_LEVEL
            ),
            pot_size=data.get("pot_size") if data.get("pot_size") in POT_SIZES else None,
            pot_diameter_in=diameter if diameter and diameter > 0 else None,
            soil_type=_coerce_choice(data.get("soil_type"), SOIL_TYPES, DEFAULT_SOIL_TYPE),
            material=_coerce_str(data.get("material")),
            drainage=_coerce_bool(data.get("drainage"), True),
            location=_coerce_choice(data.get("location"), LOCATIONS, DEFAULT_LOCATION),
            exposure=_coerce_choice(
                exposure.upper() if isinstance(exposure, str) else exposure,
                EXPOSURES,
                "",
            ),
            room=_coerce_str(data.get("room")),
            notes=_coerce_str(data.get("notes")),
            interval_days=_coerce_positive_int(data.get("interval_days"))
            or DEFAULT_INTERVAL_DAYS,
            last_watered=format_date(data.get("last_watered")),
            tune_interval_pct=_coerce_float(data.get("tune_interval_pct")) or 0.0,
            tune_volume_pct=_coerce_float(data.get("tune_volume_pct")) or 0.0,
            weather_override=(
                WeatherOverride.from_dict(weather) if isinstance(weather, dict) else None
            ),
            next_due=format_date(data.get("next_due")),
            tasks=[
                Task.from_dict(task)
                for task in _as_list(data.get("tasks"))
                if isinstance(task, dict)
            ],
            history=history[-HISTORY_LIMIT:],
            observations=[
                Observation.from_dict(obs)
                for obs in _as_list(data.get("observations"))
                if isinstance(obs, dict)
            ],
            cover_file_id=_coerce_optional_str(data.get("cover_file_id")),
            created_at=_coerce_optional_str(data.get("created_at")),
            updated_at=_coerce_optional_str(data.get("updated_at")),
        )

