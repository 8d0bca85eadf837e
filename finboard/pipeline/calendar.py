"""Economic calendar normalization.

Calendar feeds arrive as loosely typed attribute bags converted from XML: one
``<event>`` may come through as a mapping or several as a list, attributes may
sit flat on the record or under a ``"$"`` key, and dates and times use
US-style strings such as ``11/21/2025`` and ``2:30pm``. Every record is mapped
into an :class:`EconomicEvent` on its own so a single bad record is skipped
and reported without losing the rest of the batch.
"""

import logging
import math
import re
import secrets
from collections.abc import Mapping
from datetime import date, datetime, time, timezone, tzinfo as TzInfo
from typing import Any

from dateutil import parser as date_parser

from finboard.core.errors import MalformedPayloadError, RecordParseError
from finboard.core.time_utils import Clock, utc_now
from finboard.core.types import CalendarBatch, EconomicEvent, Impact, SkippedRecord

logger = logging.getLogger(__name__)

DEFAULT_CURRENCY = "USD"
DEFAULT_TITLE = "Economic Event"

_US_DATE_RE = re.compile(r"^(\d{1,2})[/-](\d{1,2})[/-](\d{4})$")
_CLOCK_RE = re.compile(r"^(\d{1,2}):(\d{2})\s*([ap]m)?$", re.IGNORECASE)
_NUMBER_RE = re.compile(r"^([-+]?\d*\.?\d+)\s*([kmbt])?$", re.IGNORECASE)
_SCALES = {"k": 1e3, "m": 1e6, "b": 1e9, "t": 1e12}
_IMPACT_ORDER = (("high", Impact.HIGH), ("medium", Impact.MEDIUM), ("low", Impact.LOW))


def parse_impact(value: Any) -> Impact:
    """Classify impact text by case-insensitive substring, defaulting to Low."""

    if isinstance(value, Impact):
        return value
    text = _text(value)
    if not text:
        return Impact.LOW
    lowered = text.lower()
    for token, impact in _IMPACT_ORDER:
        if token in lowered:
            return impact
    return Impact.LOW


def parse_time(text: str | None) -> time | None:
    """Parse ``H:MM am|pm`` or 24-hour ``HH:MM``.

    Returns ``None`` when the text is not a clock reading at all (``All Day``,
    ``Tentative``). A clock reading with impossible values raises
    :class:`RecordParseError`.
    """

    if not text:
        return None
    match = _CLOCK_RE.match(text.strip())
    if match is None:
        return None

    hour = int(match.group(1))
    minute = int(match.group(2))
    period = (match.group(3) or "").lower()

    if minute > 59:
        raise RecordParseError(f"invalid minutes in time {text!r}")
    if period:
        if not 1 <= hour <= 12:
            raise RecordParseError(f"invalid 12-hour clock value {text!r}")
        if period == "pm" and hour < 12:
            hour += 12
        elif period == "am" and hour == 12:
            hour = 0
    elif hour > 23:
        raise RecordParseError(f"invalid 24-hour clock value {text!r}")

    return time(hour, minute)


def _parse_day(text: str, tzinfo: TzInfo) -> tuple[date, time | None] | None:
    match = _US_DATE_RE.match(text)
    if match is not None:
        month, day, year = (int(part) for part in match.groups())
        try:
            return date(year, month, day), None
        except ValueError:
            return None

    try:
        parsed = date_parser.parse(text, dayfirst=False)
    except (ValueError, OverflowError):
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(tzinfo)
    return parsed.date(), parsed.time()


def parse_date(
    date_text: str | None,
    time_text: str | None = None,
    *,
    now: Clock = utc_now,
    tzinfo: TzInfo = timezone.utc,
) -> datetime:
    """Combine calendar date and time strings into one aware timestamp.

    A missing or unreadable date yields ``now()``. A missing or non-clock time
    falls back to the time carried by the date string, which is midnight for
    plain dates.
    """

    cleaned = (date_text or "").strip()
    if not cleaned:
        return now()

    parsed_day = _parse_day(cleaned, tzinfo)
    if parsed_day is None:
        logger.debug("calendar_date_unparseable", extra={"date": cleaned})
        return now()

    day, embedded_time = parsed_day
    clock = parse_time(time_text)
    if clock is None:
        clock = embedded_time or time(0, 0)
    return datetime.combine(day, clock, tzinfo=tzinfo)


def parse_number(value: Any) -> float | None:
    """Read figures like ``0.3%``, ``1,234`` or ``245K``; anything else is ``None``."""

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
        return number if math.isfinite(number) else None
    text = _text(value)
    if not text:
        return None
    cleaned = text.replace(",", "").replace("%", "").strip()
    match = _NUMBER_RE.match(cleaned)
    if match is None:
        return None
    number = float(match.group(1))
    suffix = (match.group(2) or "").lower()
    if suffix:
        number *= _SCALES[suffix]
    return number if math.isfinite(number) else None


def extract_calendar_records(payload: Any) -> list[Any]:
    """Return the raw event records from any accepted calendar payload shape."""

    if payload is None or payload == "":
        return []
    if isinstance(payload, list):
        return list(payload)
    if not isinstance(payload, Mapping):
        raise MalformedPayloadError(f"calendar payload has unexpected type {type(payload).__name__}")

    if "weeklyevents" in payload:
        batch = payload["weeklyevents"]
        if not isinstance(batch, Mapping):
            return []
        return _as_list(batch.get("event"))
    if "event" in payload:
        return _as_list(payload["event"])
    if "events" in payload:
        return _as_list(payload["events"])
    return [payload]


def normalize_event(
    record: Any,
    *,
    now: Clock = utc_now,
    tzinfo: TzInfo = timezone.utc,
    seen_ids: set[str] | None = None,
) -> EconomicEvent:
    if not isinstance(record, Mapping):
        raise RecordParseError(f"event record has unexpected type {type(record).__name__}")

    attrs = record.get("$")
    attrs = attrs if isinstance(attrs, Mapping) else {}

    def field(name: str) -> str | None:
        if name in attrs:
            return _text(attrs[name])
        return _text(record.get(name))

    occurs_at = parse_date(field("date"), field("time"), now=now, tzinfo=tzinfo)
    actual = parse_number(field("actual"))
    forecast = parse_number(field("forecast"))
    previous = parse_number(field("previous"))

    # Reserve the id only once the record is known to be usable.
    seen = seen_ids if seen_ids is not None else set()
    return EconomicEvent(
        id=_unique_id(field("id"), seen),
        occurs_at=occurs_at,
        currency=field("currency") or DEFAULT_CURRENCY,
        title=field("title") or DEFAULT_TITLE,
        impact=parse_impact(field("impact")),
        actual=actual,
        forecast=forecast,
        previous=previous,
        country=field("country") or "",
    )


def normalize_calendar(
    payload: Any,
    *,
    now: Clock = utc_now,
    tzinfo: TzInfo = timezone.utc,
) -> CalendarBatch:
    """Fold a calendar payload into events, collecting unparseable records instead of failing."""

    records = extract_calendar_records(payload)
    events: list[EconomicEvent] = []
    skipped: list[SkippedRecord] = []
    seen_ids: set[str] = set()

    for index, record in enumerate(records):
        try:
            events.append(normalize_event(record, now=now, tzinfo=tzinfo, seen_ids=seen_ids))
        except (RecordParseError, ValueError, TypeError) as exc:
            skipped.append(SkippedRecord(index=index, reason=str(exc)))
            logger.warning("calendar_record_skipped", extra={"index": index, "reason": str(exc)})

    logger.info(
        "calendar_normalized",
        extra={"records": len(records), "events": len(events), "skipped": len(skipped)},
    )
    return CalendarBatch(events=tuple(events), skipped=tuple(skipped))


def generate_event_id() -> str:
    return f"event-{secrets.token_hex(8)}"


def _unique_id(raw_id: str | None, seen: set[str]) -> str:
    if not raw_id:
        event_id = generate_event_id()
        while event_id in seen:
            event_id = generate_event_id()
    else:
        event_id = raw_id
        suffix = 2
        while event_id in seen:
            event_id = f"{raw_id}-{suffix}"
            suffix += 1
    seen.add(event_id)
    return event_id


def _as_list(value: Any) -> list[Any]:
    if value is None or value == "":
        return []
    if isinstance(value, list):
        return list(value)
    return [value]


def _text(value: Any) -> str | None:
    """Collapse an XML-derived value (string, text node mapping, list) to stripped text."""

    if value is None:
        return None
    if isinstance(value, list):
        return _text(value[0]) if value else None
    if isinstance(value, Mapping):
        for key in ("_", "#text"):
            if key in value:
                return _text(value[key])
        return None
    text = str(value).strip()
    return text or None
