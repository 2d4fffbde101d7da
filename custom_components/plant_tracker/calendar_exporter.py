"""Calendar feed generation for Plant Tracker."""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime

from homeassistant.util import dt as dt_util

from .const import EVENT_WATER, ICS_PRODID, ICS_UID_DOMAIN
from .interval_model import resolve_pot_size
from .models import Plant, Settings
from .scheduler import next_due_from, next_task_due

CRLF = "\r\n"
_ICS_RESERVED = re.compile(r"([,;\\])")
_UID_UNSAFE = re.compile(r"[^A-Za-z0-9_.-]+")
ICS_LINE_OCTETS = 75


@dataclass(frozen=True)
class CalendarEntry:
    """A single all-day care event."""

    uid: str
    plant_id: str
    kind: str
    start: date
    summary: str
    description: str | None = None


def escape_ics(value: str) -> str:
    """Escape reserved punctuation and line breaks of an ICS text value."""
    escaped = _ICS_RESERVED.sub(r"\\\1", value or "")
    return escaped.replace("\r\n", "\\n").replace("\n", "\\n")


def uid_token(value: str) -> str:
    """Reduce a free-form value to characters that are safe inside a UID."""
    return _UID_UNSAFE.sub("-", value or "").strip("-") or "item"


def fold_ics_line(line: str) -> str:
    """Fold a content line into chunks of at most 75 octets.

    Continuation lines start with a single space, and multi-byte characters
    are never split.
    """
    chunks = []
    current = ""
    size = 0
    for char in line:
        width = len(char.encode("utf-8"))
        if size + width > ICS_LINE_OCTETS:
            chunks.append(current)
            current = " "
            size = 1
        current += char
        size += width
    chunks.append(current)
    return CRLF.join(chunks)


def plant_description(plant: Plant) -> str:
    """Return the taxonomy and growing conditions of a plant as text."""
    lines = []
    if plant.family:
        lines.append(f"Family: {plant.family}")
    taxon = " ".join(part for part in (plant.genus, plant.species) if part)
    if taxon:
        lines.append(f"Taxon: {taxon}")
    if plant.cultivar:
        lines.append(f"Cultivar: {plant.cultivar}")
    lines.append(f"Light: {plant.light_level}")
    lines.append(f"Pot: {resolve_pot_size(plant.pot_size, plant.pot_diameter_in)}")
    lines.append(f"Base interval: {plant.interval_days}d")
    return "\n".join(lines)


def build_entries(
    plants: Iterable[Plant], settings: Settings, today: date | None = None
) -> list[CalendarEntry]:
    """Return the watering entry and every schedulable task entry of each plant.

    Tasks without a type or cadence, and dates past the calendar range, are
    left out.
    """
    entries = []
    for plant in plants:
        name = plant.name or "plant"
        plant_token = uid_token(plant.id)
        watering = next_due_from(plant, settings, today)
        if watering < date.max:
            entries.append(
                CalendarEntry(
                    uid=f"{plant_token}-{EVENT_WATER}@{ICS_UID_DOMAIN}",
                    plant_id=plant.id,
                    kind=EVENT_WATER,
                    start=watering,
                    summary=f"Water {name}",
                    description=plant_description(plant),
                )
            )
        for index, task in enumerate(plant.tasks):
            due = next_task_due(task, task.last_done or plant.last_watered, today)
            if due is None or due == date.max:
                continue
            entries.append(
                CalendarEntry(
                    uid=f"{plant_token}-{uid_token(task.type)}-{index}@{ICS_UID_DOMAIN}",
                    plant_id=plant.id,
                    kind=task.type,
                    start=due,
                    summary=f"{task.type[:1].upper()}{task.type[1:]} {plant.name}".strip(),
                    description=f"Every {task.every_days}d",
                )
            )
    return entries


def build_ics(
    plants: Iterable[Plant],
    settings: Settings,
    now: datetime | None = None,
) -> str:
    """Render the care calendar of all plants as an iCalendar document."""
    now = now or dt_util.utcnow()
    stamp = dt_util.as_utc(now).strftime("%Y%m%dT%H%M%SZ")
    today = dt_util.as_local(now).date()

    lines = ["BEGIN:VCALENDAR", "VERSION:2.0", f"PRODID:{ICS_PRODID}"]
    for entry in build_entries(plants, settings, today):
        lines.extend(
            [
                "BEGIN:VEVENT",
                f"UID:{entry.uid}",
                f"DTSTAMP:{stamp}",
                f"DTSTART;VALUE=DATE:{entry.start.strftime('%Y%m%d')}",
                f"SUMMARY:{escape_ics(entry.summary)}",
            ]
        )
        if entry.description:
            lines.append(f"DESCRIPTION:{escape_ics(entry.description)}")
        lines.append("END:VEVENT")
    lines.append("END:VCALENDAR")
    return CRLF.join(fold_ics_line(line) for line in lines) + CRLF
