"""Normalization and filtering of raw departure records."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
import logging
import math
from typing import Any, Iterable

logger = logging.getLogger(__name__)

DIRECTION_PLACEHOLDER = "—"

CANCELLATION_PHRASES = (
    "cancelled",
    "cancellation",
    "ausfall",
    "entfällt",
    "not operating",
    "nicht in betrieb",
    "service suspended",
)


class MalformedRecord(Exception):
    """Raised when a raw departure cannot be read as a record at all."""


@dataclass(frozen=True)
class NormalizedDeparture:
    """Canonical departure record."""

    when: datetime | None
    planned_when: datetime | None
    line: str
    direction: str
    cancelled: bool = False
    delay: int = 0
    remarks: tuple[str, ...] = ()
    realtime_updated_at: datetime | None = None

    def to_record(self) -> dict[str, Any]:
        """Return the record in upstream field names; normalize() maps it back to self."""
        return {
            "when": _format_time(self.when),
            "plannedWhen": _format_time(self.planned_when),
            "line": {"name": self.line},
            "direction": self.direction,
            "cancelled": self.cancelled,
            "delay": self.delay,
            "remarks": [{"text": remark} for remark in self.remarks],
            "realtimeDataUpdatedAt": _format_time(self.realtime_updated_at),
        }


@dataclass(frozen=True)
class FilterSettings:
    """Windows and thresholds for filter_departures."""

    look_ahead_minutes: int = 60
    max_rows: int = 5
    past_tolerance_minutes: int = 5
    stale_realtime_minutes: int = 10
    max_stale_deviation_minutes: int = 15


def parse_time(value: Any) -> datetime | None:
    """Parse an ISO-8601 string or a unix timestamp into an aware datetime."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if not isinstance(value, str):
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed


def _format_time(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _line_name(line: Any) -> str:
    if isinstance(line, dict):
        return str(line.get("name") or line.get("id") or "")
    if line is None:
        return ""
    return str(line)


def _direction(raw: dict[str, Any]) -> str:
    direction = raw.get("direction")
    if direction:
        return str(direction)
    destination = raw.get("destination")
    if isinstance(destination, dict) and destination.get("name"):
        return str(destination["name"])
    if raw.get("directionId"):
        return str(raw["directionId"])
    return DIRECTION_PLACEHOLDER


def _remarks(raw_remarks: Any) -> tuple[str, ...]:
    if not isinstance(raw_remarks, list):
        return ()
    remarks = []
    for remark in raw_remarks:
        if isinstance(remark, dict):
            text = remark.get("text") or remark.get("summary")
        else:
            text = remark
        if text:
            remarks.append(str(text))
    return tuple(remarks)


def _delay(value: Any) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


def normalize(raw: dict[str, Any] | NormalizedDeparture) -> NormalizedDeparture:
    """Map the field-name variants of a raw departure onto NormalizedDeparture.

    Missing fields get placeholder defaults; only a record that is not a
    mapping at all raises MalformedRecord.
    """
    if isinstance(raw, NormalizedDeparture):
        return raw
    if not isinstance(raw, dict):
        raise MalformedRecord(f"Departure record is not a mapping: {type(raw).__name__}")

    planned_when = parse_time(raw.get("plannedWhen"))
    when = parse_time(raw.get("when")) or planned_when
    return NormalizedDeparture(
        when=when,
        planned_when=planned_when,
        line=_line_name(raw.get("line")),
        direction=_direction(raw),
        cancelled=bool(raw.get("cancelled")),
        delay=_delay(raw.get("delay")),
        remarks=_remarks(raw.get("remarks")),
        realtime_updated_at=parse_time(raw.get("realtimeDataUpdatedAt")),
    )


def normalize_all(raws: Iterable[Any]) -> list[NormalizedDeparture]:
    """Normalize a batch, skipping records that are not readable at all."""
    departures = []
    for raw in raws:
        try:
            departures.append(normalize(raw))
        except MalformedRecord as exc:
            logger.warning("Skipping departure record: %s", exc)
    return departures


def has_cancellation_remark(departure: NormalizedDeparture) -> bool:
    for remark in departure.remarks:
        text = remark.lower()
        if any(phrase in text for phrase in CANCELLATION_PHRASES):
            return True
    return False


def _is_stale_and_deviating(departure: NormalizedDeparture, now: datetime, settings: FilterSettings) -> bool:
    if departure.realtime_updated_at is None or departure.when is None:
        return False
    data_age = now - departure.realtime_updated_at
    if data_age <= timedelta(minutes=settings.stale_realtime_minutes):
        return False
    planned = departure.planned_when or departure.when
    deviation = abs(departure.when - planned)
    return deviation > timedelta(minutes=settings.max_stale_deviation_minutes)


def filter_departures(
    departures: Iterable[NormalizedDeparture],
    now: datetime,
    settings: FilterSettings = FilterSettings(),
) -> list[NormalizedDeparture]:
    """Drop invalid, out-of-window, stale or cancelled departures; sort and cap."""
    latest = now + timedelta(minutes=settings.look_ahead_minutes)
    earliest = now - timedelta(minutes=settings.past_tolerance_minutes)

    kept = []
    for departure in departures:
        if departure.when is None or departure.cancelled:
            continue
        if departure.when > latest:
            continue
        if departure.when < earliest:
            continue
        if _is_stale_and_deviating(departure, now, settings):
            continue
        if has_cancellation_remark(departure):
            continue
        kept.append(departure)

    kept.sort(key=lambda departure: departure.when)
    return kept[: settings.max_rows]


def process_departures(
    raws: Iterable[Any],
    now: datetime,
    settings: FilterSettings = FilterSettings(),
) -> list[NormalizedDeparture]:
    """Normalize a raw batch and filter it down to the rows to display."""
    return filter_departures(normalize_all(raws), now, settings)


def minutes_until(when: datetime, now: datetime) -> int:
    """Whole minutes until departure, rounded half up and never negative."""
    minutes = math.floor((when - now).total_seconds() / 60.0 + 0.5)
    return max(0, minutes)


__all__ = [
    "CANCELLATION_PHRASES",
    "DIRECTION_PLACEHOLDER",
    "FilterSettings",
    "MalformedRecord",
    "NormalizedDeparture",
    "filter_departures",
    "minutes_until",
    "normalize",
    "normalize_all",
    "parse_time",
    "process_departures",
]
