"""Display formatting tests for prices, deltas and relative times."""

from datetime import datetime, timedelta, timezone

import pytest

from finboard.core.formatting import (
    format_change,
    format_currency,
    format_number,
    format_percent,
    format_time_ago,
)

NOW = datetime(2025, 11, 19, 12, 0, tzinfo=timezone.utc)


def test_numbers_group_thousands() -> None:
    assert format_number(1234567.891) == "1,234,567.89"
    assert format_number(28500000000, 0) == "28,500,000,000"
    assert format_number(0.62154, 4) == "0.6215"


def test_currency_and_change_signs() -> None:
    assert format_currency(43250.5) == "$43,250.50"
    assert format_currency(-3.2) == "-$3.20"
    assert format_change(1150.5) == "+$1,150.50"
    assert format_change(-0.0087, 4) == "-$0.0087"
    assert format_change(0) == "+$0.00"


def test_percent_is_already_scaled() -> None:
    assert format_percent(2.7316) == "+2.73%"
    assert format_percent(-1.49) == "-1.49%"


@pytest.mark.parametrize(
    ("delta", "expected"),
    [
        (timedelta(seconds=30), "0 min ago"),
        (timedelta(minutes=45), "45 min ago"),
        (timedelta(hours=3, minutes=10), "3 hr ago"),
        (timedelta(hours=25), "1 day ago"),
        (timedelta(days=3), "3 days ago"),
        (timedelta(minutes=-5), "0 min ago"),
    ],
)
def test_time_ago(delta: timedelta, expected: str) -> None:
    assert format_time_ago(NOW - delta, NOW) == expected
