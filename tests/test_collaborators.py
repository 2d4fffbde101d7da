"""Tests for the optional lookup collaborators."""

from unittest.mock import AsyncMock, MagicMock, Mock, patch

import aiohttp
import pytest
from homeassistant.exceptions import HomeAssistantError

from custom_components.plant_tracker.collaborators import (
    ConversationCarePlanGenerator,
    GbifTaxonomyLookup,
    OpenMeteoWeatherLookup,
    TaxonomySuggestion,
    extract_json_object,
    normalize_care_plan,
)

SESSION = "custom_components.plant_tracker.collaborators.async_get_clientsession"


def _session(payload=None, error=None) -> MagicMock:
    """Return a mock client session answering with payload or raising error."""
    response = MagicMock()
    response.raise_for_status = Mock()
    response.json = AsyncMock(return_value=payload)
    session = MagicMock()
    session.get = AsyncMock(return_value=response, side_effect=error)
    return session


# ============================================================================
# Taxonomy
# ============================================================================


async def test_suggest_deduplicates(mock_hass):
    """Test that suggestions are deduplicated and empty entries dropped."""
    payload = [
        {"family": "Araceae", "genus": "Monstera", "species": "Monstera deliciosa", "scientificName": "Monstera deliciosa Liebm."},
        {"family": "Araceae", "genus": "Monstera", "species": "Monstera deliciosa", "scientificName": "duplicate"},
        {"family": "Araceae", "genus": "Monstera", "specificEpithet": "adansonii"},
        {"rank": "KINGDOM"},
        "not an object",
    ]
    session = _session(payload)

    with patch(SESSION, return_value=session):
        suggestions = await GbifTaxonomyLookup(mock_hass).async_suggest(" monstera ")

    assert suggestions == [
        TaxonomySuggestion(
            family="Araceae",
            genus="Monstera",
            species="Monstera deliciosa",
            scientific_name="Monstera deliciosa Liebm.",
        ),
        TaxonomySuggestion(family="Araceae", genus="Monstera", species="adansonii"),
    ]
    params = session.get.call_args.kwargs["params"]
    assert params == {"q": "monstera", "limit": 8}


async def test_suggest_is_limited(mock_hass):
    """Test that at most eight suggestions are returned."""
    payload = [{"genus": f"Genus{i}"} for i in range(20)]

    with patch(SESSION, return_value=_session(payload)):
        suggestions = await GbifTaxonomyLookup(mock_hass).async_suggest("plant")

    assert len(suggestions) == 8


async def test_suggest_failure_returns_empty(mock_hass):
    """Test that network errors are swallowed at the boundary."""
    with patch(SESSION, return_value=_session(error=aiohttp.ClientError("offline"))):
        assert await GbifTaxonomyLookup(mock_hass).async_suggest("fern") == []

    with patch(SESSION, return_value=_session({"unexpected": True})):
        assert await GbifTaxonomyLookup(mock_hass).async_suggest("fern") == []


async def test_suggest_empty_name(mock_hass):
    """Test that no request is made for an empty name."""
    session = _session([])
    with patch(SESSION, return_value=session):
        assert await GbifTaxonomyLookup(mock_hass).async_suggest("  ") == []
    session.get.assert_not_called()


# ============================================================================
# Weather
# ============================================================================


async def test_weather_current(mock_hass):
    """Test reading current conditions."""
    session = _session({"current": {"temperature_2m": 21.4, "relative_humidity_2m": 55}})

    with patch(SESSION, return_value=session):
        reading = await OpenMeteoWeatherLookup(mock_hass).async_current(52.1, 5.1)

    assert reading.temperature_c == 21.4
    assert reading.relative_humidity_pct == 55.0
    params = session.get.call_args.kwargs["params"]
    assert params["latitude"] == 52.1
    assert params["current"] == "temperature_2m,relative_humidity_2m"


@pytest.mark.parametrize(
    "payload",
    [
        {},
        {"current": None},
        {"current": {"temperature_2m": 20}},
        {"current": {"temperature_2m": "warm", "relative_humidity_2m": 50}},
        [],
    ],
)
async def test_weather_unusable_response(mock_hass, payload):
    """Test that incomplete responses yield None."""
    with patch(SESSION, return_value=_session(payload)):
        assert await OpenMeteoWeatherLookup(mock_hass).async_current(0, 0) is None


async def test_weather_failure(mock_hass):
    """Test that timeouts yield None."""
    with patch(SESSION, return_value=_session(error=TimeoutError())):
        assert await OpenMeteoWeatherLookup(mock_hass).async_current(0, 0) is None


# ============================================================================
# Care plans
# ============================================================================


def test_extract_json_object():
    """Test finding a JSON object inside free text."""
    text = 'Here you go:\n```json\n{"genus": "Ficus", "interval_days": 7}\n```'
    assert extract_json_object(text) == {"genus": "Ficus", "interval_days": 7}
    assert extract_json_object("no json here") is None
    assert extract_json_object("{not: valid}") is None
    assert extract_json_object("") is None


def test_normalize_care_plan():
    """Test reducing a generated plan to valid plant fields."""
    plan = normalize_care_plan(
        {
            "family": " Moraceae ",
            "genus": "Ficus",
            "species": "",
            "lightLevel": "high",
            "soil_type": "peat",
            "baseIntervalDays": 6.6,
            "potDiameterIn": 8,
            "tasks": [
                {"type": "fertilize", "everyDays": 30},
                {"type": "", "every_days": 10},
                {"type": "mist", "every_days": 0},
                "nonsense",
            ],
            "careSummary": "Keep away from drafts.",
            "unknown": "dropped",
        }
    )

    assert plan == {
        "family": "Moraceae",
        "genus": "Ficus",
        "light_level": "high",
        "interval_days": 7,
        "pot_diameter_in": 8.0,
        "tasks": [{"type": "fertilize", "every_days": 30}],
        "care_summary": "Keep away from drafts.",
    }


def _conversation_result(speech: str) -> MagicMock:
    result = MagicMock()
    result.response.speech = {"plain": {"speech": speech}}
    return result


async def test_generate_care_plan(mock_hass):
    """Test asking the conversation agent for a plan."""
    generator = ConversationCarePlanGenerator(mock_hass, "conversation.ollama")

    with patch("homeassistant.components.conversation.async_converse") as mock_converse:
        mock_converse.return_value = _conversation_result(
            '{"genus": "Monstera", "light_level": "medium", "interval_days": 8}'
        )

        plan = await generator.async_generate("Monstera", {"location": "indoor"})

    assert plan == {"genus": "Monstera", "light_level": "medium", "interval_days": 8}
    mock_converse.assert_awaited_once()
    kwargs = mock_converse.call_args.kwargs
    assert kwargs["agent_id"] == "conversation.ollama"
    assert '"Monstera"' in kwargs["text"]


async def test_generate_care_plan_without_agent(mock_hass):
    """Test that no plan is generated without a configured agent."""
    with patch("homeassistant.components.conversation.async_converse") as mock_converse:
        assert await ConversationCarePlanGenerator(mock_hass, None).async_generate("Fern") is None
    mock_converse.assert_not_called()


async def test_generate_care_plan_failures(mock_hass):
    """Test that agent errors and invalid answers yield None."""
    generator = ConversationCarePlanGenerator(mock_hass, "conversation.ollama")

    with patch(
        "homeassistant.components.conversation.async_converse",
        side_effect=HomeAssistantError("agent down"),
    ):
        assert await generator.async_generate("Fern") is None

    with patch("homeassistant.components.conversation.async_converse") as mock_converse:
        mock_converse.return_value = _conversation_result("I don't know that plant.")
        assert await generator.async_generate("Fern") is None

    with patch("homeassistant.components.conversation.async_converse") as mock_converse:
        mock_converse.return_value = _conversation_result('{"light_level": "blinding"}')
        assert await generator.async_generate("Fern") is None
