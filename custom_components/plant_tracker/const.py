"""Constants for the Plant Tracker integration."""

from datetime import timedelta

DOMAIN = "plant_tracker"
DEFAULT_NAME = "Plant Tracker"

STORAGE_VERSION = 1
STORAGE_KEY = f"{DOMAIN}_plants"
SETTINGS_STORAGE_VERSION = 1
SETTINGS_STORAGE_KEY = f"{DOMAIN}_settings"

# Blob files live below the HA config directory
BLOB_DIR = f"{DOMAIN}/files"
BLOB_ID_PREFIX = "file-"

EXPORT_DIR = ("www", DOMAIN, "exports")
CALENDAR_FILE = ("www", DOMAIN, "plant_care.ics")
SNAPSHOT_VERSION = 2

PLATFORMS: list[str] = [
    "calendar",
    "sensor",
]

UPDATE_INTERVAL = timedelta(hours=1)

# Options
CONF_CARE_PLAN_AGENT = "care_plan_agent_id"
CONF_WEATHER_LATITUDE = "weather_latitude"
CONF_WEATHER_LONGITUDE = "weather_longitude"

# Plant attribute vocabularies
LIGHT_LEVELS = ["low", "medium", "high"]
POT_SIZES = ["tiny", "small", "medium", "large", "huge"]
SOIL_TYPES = ["generic", "aroid", "cactus"]
LOCATIONS = ["indoor", "outdoor"]
EXPOSURES = ["", "N", "E", "S", "W"]
SEASONS = ["growing", "peak", "dormant"]
OBSERVATION_TYPES = ["photo", "note"]
TASK_TYPES = ["fertilize", "repot", "prune", "inspect", "mist"]

DEFAULT_LIGHT_LEVEL = "medium"
DEFAULT_POT_SIZE = "medium"
DEFAULT_SOIL_TYPE = "generic"
DEFAULT_LOCATION = "indoor"
DEFAULT_SEASON = "growing"
DEFAULT_INTERVAL_DAYS = 7
MAX_CADENCE_DAYS = 3650

HISTORY_LIMIT = 200

# History event tags
EVENT_WATER = "water"
EVENT_OBSERVE = "observe"
EVENT_TASK_PREFIX = "task:"

# Interval model tables
POT_SIZE_FACTORS = {
    "tiny": 0.7,
    "small": 0.85,
    "medium": 1.0,
    "large": 1.1,
    "huge": 1.25,
}
SEASON_FACTORS = {
    "growing": 1.0,
    "peak": 0.9,
    "dormant": 1.2,
}
INTERVAL_MULTIPLIER_RANGE = (0.5, 1.5)
MICRO_MULTIPLIER_RANGE = (0.8, 1.3)
VPD_FACTOR_RANGE = (0.75, 1.15)
VOLUME_FACTOR_RANGE = (0.7, 1.3)

# Pot diameter thresholds (inches) used when no category is stored
SMALL_POT_MAX_IN = 4
LARGE_POT_MIN_IN = 10

# Due classes
DUE_OVERDUE = "overdue"
DUE_TODAY = "due"
DUE_SOON = "soon"
DUE_OK = "ok"
DUE_CLASSES = [DUE_OVERDUE, DUE_TODAY, DUE_SOON, DUE_OK]
SOON_DAYS = 2

# Calendar feed
ICS_PRODID = "-//Plant Tracker//EN"
ICS_UID_DOMAIN = "plant-tracker"

# Photo capture
MAX_PHOTO_WIDTH = 1600
PHOTO_JPEG_QUALITY = 85

# Collaborators
GBIF_SUGGEST_URL = "https://api.gbif.org/v1/species/suggest"
OPEN_METEO_URL = "https://api.open-meteo.com/v1/forecast"
TAXONOMY_SUGGESTION_LIMIT = 8
LOOKUP_TIMEOUT = 10
