"""Time helpers for consistent UTC timestamps across services."""

from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Return current UTC datetime with timezone attached."""

    return datetime.now(timezone.utc)


def isoformat_utc(moment: datetime) -> str:
    """Render an aware datetime as ISO-8601 in UTC with a trailing Z."""

    return moment.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")
