"""Service schemas for Plant Tracker."""

from __future__ import annotations

import voluptuous as vol
from homeassistant.helpers import config_validation as cv

from .const import (
    DUE_CLASSES,
    EXPOSURES,
    LIGHT_LEVELS,
    LOCATIONS,
    MAX_CADENCE_DAYS,
    POT_SIZES,
    SEASONS,
    SOIL_TYPES,
)

_PERCENT = vol.All(vol.Coerce(float), vol.Range(min=-90, max=200))
_CADENCE = vol.All(vol.Coerce(int), vol.Range(min=1, max=MAX_CADENCE_DAYS))

PLANT_FIELDS = {
    vol.Optional("family"): cv.string,
    vol.Optional("genus"): cv.string,
    vol.Optional("species"): cv.string,
    vol.Optional("cultivar"): cv.string,
    vol.Optional("light_level"): vol.In(LIGHT_LEVELS),
    vol.Optional("pot_size"): vol.In(POT_SIZES),
    vol.Optional("pot_diameter_in"): cv.positive_float,
    vol.Optional("soil_type"): vol.In(SOIL_TYPES),
    vol.Optional("material"): cv.string,
    vol.Optional("drainage"): cv.boolean,
    vol.Optional("location"): vol.In(LOCATIONS),
    vol.Optional("exposure"): vol.In(EXPOSURES),
    vol.Optional("room"): cv.string,
    vol.Optional("notes"): cv.string,
    vol.Optional("interval_days"): _CADENCE,
    vol.Optional("last_watered"): cv.date,
    vol.Optional("tune_interval_pct"): _PERCENT,
    vol.Optional("tune_volume_pct"): _PERCENT,
}

# Plant services
ADD_PLANT_SCHEMA = vol.Schema(
    {
        vol.Required("name"): cv.string,
        **PLANT_FIELDS,
    },
)

UPDATE_PLANT_SCHEMA = vol.Schema(
    {
        vol.Required("plant_id"): cv.string,
        vol.Optional("name"): cv.string,
        **PLANT_FIELDS,
    },
)

REMOVE_PLANT_SCHEMA = vol.Schema(
    {
        vol.Required("plant_id"): cv.string,
    },
)

WATER_PLANT_SCHEMA = vol.Schema(
    {
        vol.Required("plant_id"): cv.string,
        vol.Optional("date"): cv.date,
    },
)

# Task services
ADD_TASK_SCHEMA = vol.Schema(
    {
        vol.Required("plant_id"): cv.string,
        vol.Required("type"): cv.string,
        vol.Required("every_days"): _CADENCE,
        vol.Optional("last_done"): cv.date,
    },
)

REMOVE_TASK_SCHEMA = vol.Schema(
    {
        vol.Required("plant_id"): cv.string,
        vol.Required("index"): vol.All(vol.Coerce(int), vol.Range(min=0)),
    },
)

COMPLETE_TASK_SCHEMA = vol.Schema(
    {
        vol.Required("plant_id"): cv.string,
        vol.Required("index"): vol.All(vol.Coerce(int), vol.Range(min=0)),
        vol.Optional("date"): cv.date,
    },
)

# Observation services
ADD_OBSERVATION_SCHEMA = vol.All(
    vol.Schema(
        {
            vol.Required("plant_id"): cv.string,
            vol.Optional("note"): cv.string,
            vol.Optional("image"): cv.string,
            vol.Optional("set_cover", default=False): cv.boolean,
        },
    ),
    cv.has_at_least_one_key("note", "image"),
)

SET_COVER_SCHEMA = vol.Schema(
    {
        vol.Required("plant_id"): cv.string,
        vol.Required("observation_id"): cv.string,
    },
)

# Settings and weather services
UPDATE_SETTINGS_SCHEMA = vol.Schema(
    {
        vol.Optional("season"): vol.In(SEASONS),
        vol.Optional("temp_c"): vol.Any(None, vol.Coerce(float)),
        vol.Optional("rh"): vol.Any(None, vol.All(vol.Coerce(float), vol.Range(min=0, max=100))),
        vol.Optional("view"): cv.string,
        vol.Optional("sort_by"): vol.In(["due", "name"]),
        vol.Optional("status_filter"): vol.In(["all", *DUE_CLASSES]),
    },
)

SET_WEATHER_OVERRIDE_SCHEMA = vol.Schema(
    {
        vol.Required("plant_id"): cv.string,
        vol.Optional("temp_c"): vol.Coerce(float),
        vol.Optional("rh"): vol.All(vol.Coerce(float), vol.Range(min=0, max=100)),
    },
)

CLEAR_WEATHER_OVERRIDE_SCHEMA = vol.Schema(
    {
        vol.Required("plant_id"): cv.string,
    },
)

FETCH_WEATHER_SCHEMA = vol.Schema(
    {
        vol.Optional("plant_id"): cv.string,
    },
)

# Lookup services
SUGGEST_TAXONOMY_SCHEMA = vol.Schema(
    {
        vol.Required("name"): cv.string,
    },
)

GENERATE_CARE_PLAN_SCHEMA = vol.Schema(
    {
        vol.Required("name"): cv.string,
        vol.Optional("plant_id"): cv.string,
        vol.Optional("apply", default=False): cv.boolean,
    },
)

# Portability and schedule services
EXPORT_PLANTS_SCHEMA = vol.Schema(
    {
        vol.Optional("output_dir"): cv.string,
    },
)

IMPORT_PLANTS_SCHEMA = vol.All(
    vol.Schema(
        {
            vol.Optional("file_path"): cv.string,
            vol.Optional("snapshot"): dict,
        },
    ),
    cv.has_at_least_one_key("file_path", "snapshot"),
)

EXPORT_CALENDAR_SCHEMA = vol.Schema(
    {
        vol.Optional("file_path"): cv.string,
    },
)

GET_SCHEDULE_SCHEMA = vol.Schema(
    {
        vol.Optional("status", default="all"): vol.In(["all", *DUE_CLASSES]),
        vol.Optional("sort_by", default="due"): vol.In(["due", "name"]),
    },
)
