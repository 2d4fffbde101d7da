"""Service handlers for Plant Tracker."""

from ..service_schemas import (
    ADD_OBSERVATION_SCHEMA,
    ADD_PLANT_SCHEMA,
    ADD_TASK_SCHEMA,
    CLEAR_WEATHER_OVERRIDE_SCHEMA,
    COMPLETE_TASK_SCHEMA,
    EXPORT_CALENDAR_SCHEMA,
    EXPORT_PLANTS_SCHEMA,
    FETCH_WEATHER_SCHEMA,
    GENERATE_CARE_PLAN_SCHEMA,
    GET_SCHEDULE_SCHEMA,
    IMPORT_PLANTS_SCHEMA,
    REMOVE_PLANT_SCHEMA,
    REMOVE_TASK_SCHEMA,
    SET_COVER_SCHEMA,
    SET_WEATHER_OVERRIDE_SCHEMA,
    SUGGEST_TAXONOMY_SCHEMA,
    UPDATE_PLANT_SCHEMA,
    UPDATE_SETTINGS_SCHEMA,
    WATER_PLANT_SCHEMA,
)
from . import plant, portability, settings

__all__ = [
    "ADD_OBSERVATION_SCHEMA",
    "ADD_PLANT_SCHEMA",
    "ADD_TASK_SCHEMA",
    "CLEAR_WEATHER_OVERRIDE_SCHEMA",
    "COMPLETE_TASK_SCHEMA",
    "EXPORT_CALENDAR_SCHEMA",
    "EXPORT_PLANTS_SCHEMA",
    "FETCH_WEATHER_SCHEMA",
    "GENERATE_CARE_PLAN_SCHEMA",
    "GET_SCHEDULE_SCHEMA",
    "IMPORT_PLANTS_SCHEMA",
    "REMOVE_PLANT_SCHEMA",
    "REMOVE_TASK_SCHEMA",
    "SET_COVER_SCHEMA",
    "SET_WEATHER_OVERRIDE_SCHEMA",
    "SUGGEST_TAXONOMY_SCHEMA",
    "UPDATE_PLANT_SCHEMA",
    "UPDATE_SETTINGS_SCHEMA",
    "WATER_PLANT_SCHEMA",
    "plant",
    "portability",
    "settings",
]
