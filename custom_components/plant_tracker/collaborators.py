"""Optional lookups used while editing plants.

Each collaborator wraps a network service or conversation agent and returns
either a value or None (an empty list for suggestions). Failures are logged
and never raised, so scheduling keeps working when a service is down.
"""

from __future__ import annotations

import asyncio
import json
import logging
import re
from dataclasses import asdict, dataclass
from typing import Any

import aiohttp

from homeassistant.components import conversation
from homeassistant.core import Context, HomeAssistant
from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers.aiohttp_client import async_get_clientsession

from .const import (
    GBIF_SUGGEST_URL,
    LIGHT_LEVELS,
    LOOKUP_TIMEOUT,
    MAX_CADENCE_DAYS,
    OPEN_METEO_URL,
    SOIL_TYPES,
    TAXONOMY_SUGGESTION_LIMIT,
)
from .utils import is_finite_number

_LOGGER = logging.getLogger(__name__)

_LOOKUP_ERRORS = (aiohttp.ClientError, asyncio.TimeoutError, ValueError)
_JSON_OBJECT = re.compile(r"\{.*\}", re.DOTALL)


@dataclass(frozen=True)
class TaxonomySuggestion:
    """A candidate classification for a plant name."""

    family: str = ""
    genus: str = ""
    species: str = ""
    cultivar: str = ""
    scientific_name: str = ""

    def to_dict(self) -> dict:
        """Convert the dataclass instance to a dictionary."""
        return asdict(self)


@dataclass(frozen=True)
class WeatherReading:
    """Current conditions at a location."""

    temperature_c: float
    relative_humidity_pct: float

    def to_dict(self) -> dict:
        """Convert the dataclass instance to a dictionary."""
        return asdict(self)


def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


class GbifTaxonomyLookup:
    """Suggests classifications from the GBIF species-suggest API."""

    def __init__(self, hass: HomeAssistant, url: str = GBIF_SUGGEST_URL) -> None:
        self.hass = hass
        self.url = url

    async def async_suggest(self, name: str) -> list[TaxonomySuggestion]:
        """Return up to TAXONOMY_SUGGESTION_LIMIT distinct suggestions for name."""
        query = _text(name)
        if not query:
            return []

        session = async_get_clientsession(self.hass)
        try:
            async with asyncio.timeout(LOOKUP_TIMEOUT):
                response = await session.get(
                    self.url, params={"q": query, "limit": TAXONOMY_SUGGESTION_LIMIT}
                )
                response.raise_for_status()
                payload = await response.json()
        except _LOOKUP_ERRORS as err:
            _LOGGER.warning("Taxonomy lookup for '%s' failed: %s", query, err)
            return []

        if not isinstance(payload, list):
            _LOGGER.warning("Unexpected taxonomy response for '%s'", query)
            return []
        return self._dedupe(payload)

    @staticmethod
    def _dedupe(payload: list) -> list[TaxonomySuggestion]:
        """Keep the first suggestion of every genus, species and family."""
        seen = set()
        suggestions = []
        for item in payload:
            if not isinstance(item, dict):
                continue
            suggestion = TaxonomySuggestion(
                family=_text(item.get("family")),
                genus=_text(item.get("genus")),
                species=_text(item.get("species") or item.get("specificEpithet")),
                scientific_name=_text(item.get("scientificName")),
            )
            key = (suggestion.genus, suggestion.species, suggestion.family)
            if key in seen or not any(key):
                continue
            seen.add(key)
            suggestions.append(suggestion)
            if len(suggestions) >= TAXONOMY_SUGGESTION_LIMIT:
                break
        return suggestions


class OpenMeteoWeatherLookup:
    """Fetches current temperature and humidity from Open-Meteo."""

    def __init__(self, hass: HomeAssistant, url: str = OPEN_METEO_URL) -> None:
        self.hass = hass
        self.url = url

    async def async_current(
        self, latitude: float, longitude: float
    ) -> WeatherReading | None:
        """Return the current conditions at the given coordinates, or None."""
        session = async_get_clientsession(self.hass)
        params = {
            "latitude": latitude,
            "longitude": longitude,
            "current": "temperature_2m,relative_humidity_2m",
        }
        try:
            async with asyncio.timeout(LOOKUP_TIMEOUT):
                response = await session.get(self.url, params=params)
                response.raise_for_status()
                payload = await response.json()
        except _LOOKUP_ERRORS as err:
            _LOGGER.warning("Weather lookup failed: %s", err)
            return None

        current = payload.get("current") if isinstance(payload, dict) else None
        if not isinstance(current, dict):
            _LOGGER.warning("Weather response has no current conditions")
            return None

        temperature = current.get("temperature_2m")
        humidity = current.get("relative_humidity_2m")
        if not is_finite_number(temperature) or not is_finite_number(humidity):
            _LOGGER.warning("Weather response has no usable readings")
            return None
        return WeatherReading(float(temperature), float(humidity))


def extract_json_object(text: str) -> dict | None:
    """Return the first JSON object embedded in text, if any."""
    match = _JSON_OBJECT.search(text or "")
    if not match:
        return None
    try:
        data = json.loads(match.group(0))
    except ValueError:
        return None
    return data if isinstance(data, dict) else None


def normalize_care_plan(data: dict) -> dict[str, Any]:
    """Reduce a generated care plan to the plant fields it can safely set.

    Unknown keys and invalid values are dropped; legacy camelCase keys are
    accepted.
    """
    plan: dict[str, Any] = {}
    for key in ("family", "genus", "species", "cultivar"):
        if _text(data.get(key)):
            plan[key] = _text(data[key])

    light = data.get("light_level", data.get("lightLevel"))
    if light in LIGHT_LEVELS:
        plan["light_level"] = light
    soil = data.get("soil_type", data.get("soilType"))
    if soil in SOIL_TYPES:
        plan["soil_type"] = soil

    interval = data.get(
        "interval_days", data.get("baseIntervalDays", data.get("intervalDays"))
    )
    if is_finite_number(interval) and 1 <= interval <= MAX_CADENCE_DAYS:
        plan["interval_days"] = int(round(interval))

    diameter = data.get("pot_diameter_in", data.get("potDiameterIn"))
    if is_finite_number(diameter) and diameter > 0:
        plan["pot_diameter_in"] = float(diameter)

    tasks = []
    for task in data.get("tasks") or []:
        if not isinstance(task, dict):
            continue
        every = task.get("every_days", task.get("everyDays"))
        if _text(task.get("type")) and is_finite_number(every) and 1 <= every <= MAX_CADENCE_DAYS:
            tasks.append({"type": _text(task["type"]), "every_days": int(round(every))})
    if tasks:
        plan["tasks"] = tasks

    summary = _text(data.get("care_summary") or data.get("careSummary"))
    if summary:
        plan["care_summary"] = summary
    return plan


class ConversationCarePlanGenerator:
    """Asks a Home Assistant conversation agent for a care plan."""

    def __init__(self, hass: HomeAssistant, agent_id: str | None) -> None:
        self.hass = hass
        self.agent_id = agent_id

    def _build_prompt(self, name: str, context: dict[str, Any]) -> str:
        location = context.get("location") or "indoor"
        exposure = context.get("exposure") or ""
        diameter = context.get("pot_diameter_in") or ""
        return (
            "You are a plant care assistant. Generate a beginner-friendly care "
            f'plan for "{name}".\n'
            "Return a single JSON object with these exact keys:\n"
            '{"family": string, "genus": string, "species": string, '
            '"cultivar": string, "light_level": "low"|"medium"|"high", '
            '"soil_type": "generic"|"aroid"|"cactus", '
            f'"interval_days": number (baseline watering interval for {location} {exposure}), '
            '"tasks": [{"type": "fertilize"|"repot"|"prune"|"inspect"|"mist", '
            '"every_days": number}], "care_summary": string, '
            f'"pot_diameter_in": number (suggested for pot {diameter})}}\n'
            "Only return JSON."
        )

    async def async_generate(
        self, name: str, context: dict[str, Any] | None = None
    ) -> dict[str, Any] | None:
        """Return a partial plant payload for name, or None."""
        if not self.agent_id or not _text(name):
            return None

        prompt = self._build_prompt(_text(name), context or {})
        try:
            result = await conversation.async_converse(
                self.hass,
                text=prompt,
                conversation_id=None,
                context=Context(),
                agent_id=self.agent_id,
            )
        except HomeAssistantError as err:
            _LOGGER.warning("Care plan generation for '%s' failed: %s", name, err)
            return None

        speech = None
        if result and result.response and result.response.speech:
            speech = result.response.speech.get("plain", {}).get("speech")
        data = extract_json_object(speech) if speech else None
        if data is None:
            _LOGGER.warning("Care plan for '%s' was not valid JSON", name)
            return None
        return normalize_care_plan(data) or None
