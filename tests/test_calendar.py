"""Calendar normalizer tests: clock parsing, impact classification and per-record skipping."""

import json
from datetime import datetime, time, timezone

import pytest
from dateutil import tz

from finboard.core.errors import MalformedPayloadError, RecordParseError
from finboard.core.types import Impact, record_to_dict
from finboard.pipeline.calendar import (
    extract_calendar_records,
    normalize_calendar,
    normalize_event,
    parse_date,
    parse_impact,
    parse_number,
    parse_time,
)
from finboard.pipeline.upstream import xml_to_dict

FROZEN = datetime(2025, 11, 19, 9, 0, tzinfo=timezone.utc)


def frozen_now() -> datetime:
    return FROZEN


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("2:30pm", time(14, 30)),
        ("2:30 pm", time(14, 30)),
        ("2:30 PM", time(14, 30)),
        ("12:00am", time(0, 0)),
        ("12:15pm", time(12, 15)),
        ("9:05am", time(9, 5)),
        ("14:45", time(14, 45)),
        ("0:00", time(0, 0)),
    ],
)
def test_parse_time_clock_readings(text: str, expected: time) -> None:
    assert parse_time(text) == expected


@pytest.mark.parametrize("text", [None, "", "All Day", "Tentative", "Day 2"])
def test_parse_time_non_clock_text_is_none(text) -> None:
    assert parse_time(text) is None


@pytest.mark.parametrize("text", ["25:00", "13:00pm", "0:30am", "10:75"])
def test_parse_time_rejects_impossible_values(text: str) -> None:
    with pytest.raises(RecordParseError):
        parse_time(text)


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("High", Impact.HIGH),
        ("HIGH Impact Expected", Impact.HIGH),
        ("medium", Impact.MEDIUM),
        ("Low Impact Expected", Impact.LOW),
        ("Holiday", Impact.LOW),
        ("", Impact.LOW),
        (None, Impact.LOW),
        (Impact.MEDIUM, Impact.MEDIUM),
    ],
)
def test_parse_impact_is_case_insensitive_with_low_default(value, expected: Impact) -> None:
    assert parse_impact(value) is expected


def test_parse_date_combines_us_date_and_clock() -> None:
    assert parse_date("11/21/2025", "2:30 pm", now=frozen_now) == datetime(
        2025, 11, 21, 14, 30, tzinfo=timezone.utc
    )
    assert parse_date("11-21-2025", "8:30am", now=frozen_now) == datetime(
        2025, 11, 21, 8, 30, tzinfo=timezone.utc
    )


def test_parse_date_without_clock_uses_midnight() -> None:
    expected = datetime(2025, 11, 21, tzinfo=timezone.utc)
    assert parse_date("11/21/2025", "All Day", now=frozen_now) == expected
    assert parse_date("11/21/2025", None, now=frozen_now) == expected


def test_parse_date_reads_iso_timestamps() -> None:
    assert parse_date("2025-11-21T13:30:00Z", now=frozen_now) == datetime(
        2025, 11, 21, 13, 30, tzinfo=timezone.utc
    )


@pytest.mark.parametrize("text", [None, "", "   ", "tbd", "13/45/2025"])
def test_parse_date_falls_back_to_now(text) -> None:
    assert parse_date(text, "2:30pm", now=frozen_now) == FROZEN


def test_parse_date_applies_configured_timezone() -> None:
    eastern = tz.gettz("America/New_York")
    moment = parse_date("11/21/2025", "8:30am", now=frozen_now, tzinfo=eastern)

    assert moment.tzinfo is eastern
    assert moment.astimezone(timezone.utc) == datetime(2025, 11, 21, 13, 30, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("0.3%", 0.3),
        ("-0.1%", -0.1),
        ("1,234", 1234.0),
        ("245K", 245000.0),
        ("1.2B", 1.2e9),
        (52.1, 52.1),
        ("", None),
        ("n/a", None),
        (None, None),
        (float("nan"), None),
        ("9" * 400, None),
        ("9" * 306 + "T", None),
    ],
)
def test_parse_number(value, expected) -> None:
    assert parse_number(value) == expected


def test_single_event_from_xml_normalizes_end_to_end() -> None:
    """A lone <event> with no id still yields one UTC event with a generated id."""

    payload = xml_to_dict(
        b"<weeklyevents>"
        b'<event date="11/21/2025" time="2:30 pm" currency="USD">'
        b"<title>Retail Sales m/m</title>"
        b"</event>"
        b"</weeklyevents>"
    )

    batch = normalize_calendar(payload, now=frozen_now)

    assert len(batch.events) == 1
    assert batch.skipped == ()
    event = batch.events[0]
    assert event.occurs_at == datetime(2025, 11, 21, 14, 30, tzinfo=timezone.utc)
    assert event.id
    assert event.impact is Impact.LOW
    assert event.title == "Retail Sales m/m"
    assert event.currency == "USD"


def test_single_and_list_shapes_are_equivalent() -> None:
    record = {"id": "e1", "date": "11/21/2025", "time": "8:30am", "title": "CPI", "impact": "High"}

    single = normalize_calendar({"weeklyevents": {"event": record}}, now=frozen_now)
    many = normalize_calendar({"weeklyevents": {"event": [record]}}, now=frozen_now)

    assert single.events == many.events


@pytest.mark.parametrize(
    ("payload", "count"),
    [
        (None, 0),
        ("", 0),
        ({"weeklyevents": ""}, 0),
        ([{"title": "a"}, {"title": "b"}], 2),
        ({"events": [{"title": "a"}]}, 1),
        ({"event": {"title": "a"}}, 1),
        ({"title": "bare record"}, 1),
    ],
)
def test_extract_calendar_records_shapes(payload, count: int) -> None:
    assert len(extract_calendar_records(payload)) == count


def test_extract_calendar_records_rejects_scalars() -> None:
    with pytest.raises(MalformedPayloadError):
        extract_calendar_records(42)


def test_attributes_under_dollar_key_are_read() -> None:
    record = {
        "$": {"id": "ff-1", "date": "11/20/2025", "time": "10:00am", "currency": "EUR"},
        "title": "German PPI m/m",
        "impact": {"_": "Medium Impact Expected"},
        "forecast": "0.2%",
        "previous": "-0.1%",
    }

    event = normalize_event(record, now=frozen_now)

    assert event.id == "ff-1"
    assert event.currency == "EUR"
    assert event.impact is Impact.MEDIUM
    assert event.forecast == 0.2
    assert event.previous == -0.1
    assert event.actual is None
    assert event.occurs_at == datetime(2025, 11, 20, 10, 0, tzinfo=timezone.utc)


def test_missing_fields_get_defaults() -> None:
    event = normalize_event({}, now=frozen_now)

    assert event.currency == "USD"
    assert event.title == "Economic Event"
    assert event.impact is Impact.LOW
    assert event.country == ""
    assert event.occurs_at == FROZEN


def test_malformed_records_are_skipped_not_fatal() -> None:
    records = [
        {"id": "ok-1", "date": "11/21/2025", "time": "8:30am"},
        {"id": "bad-time", "date": "11/21/2025", "time": "25:00"},
        "not a record",
        {"id": "ok-2", "date": "11/22/2025", "time": "1:00pm"},
    ]

    batch = normalize_calendar(records, now=frozen_now)

    assert [event.id for event in batch.events] == ["ok-1", "ok-2"]
    assert [skipped.index for skipped in batch.skipped] == [1, 2]
    assert len(batch.events) <= len(records)


def test_ids_are_unique_within_a_batch() -> None:
    records = [{"id": "dup"}, {"id": "dup"}, {}, {}, {"id": "dup"}]

    ids = [event.id for event in normalize_calendar(records, now=frozen_now).events]

    assert len(ids) == len(set(ids)) == 5
    assert ids[:2] == ["dup", "dup-2"]
    assert ids[4] == "dup-3"


def test_skipped_record_does_not_reserve_its_id() -> None:
    records = [
        {"id": "x", "date": "11/21/2025", "time": "25:00"},
        {"id": "x", "date": "11/21/2025", "time": "8:30am"},
    ]

    batch = normalize_calendar(records, now=frozen_now)

    assert [event.id for event in batch.events] == ["x"]
    assert [skipped.index for skipped in batch.skipped] == [0]


def test_overflowing_figures_become_null_in_json_output() -> None:
    """Figures too large for a float must not leak into records as infinity."""

    event = normalize_event(
        {"id": "big", "date": "11/21/2025", "forecast": "9" * 400, "previous": "5T"},
        now=frozen_now,
    )

    assert event.forecast is None
    assert event.previous == 5e12
    assert "Infinity" not in json.dumps(record_to_dict(event))
