"""Display helpers turning canonical numbers and timestamps into en-US strings."""

from datetime import datetime

from finboard.core.time_utils import utc_now


def format_number(value: float, decimals: int = 2) -> str:
    """Group thousands with commas and pin the number of decimals."""

    return f"{value:,.{decimals}f}"


def format_currency(value: float, decimals: int = 2) -> str:
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.{decimals}f}"


def format_change(value: float, decimals: int = 2) -> str:
    """Signed currency delta, non-negative values get a leading plus."""

    prefix = "+" if value >= 0 else ""
    return prefix + format_currency(value, decimals)


def format_percent(value: float, decimals: int = 2) -> str:
    """Format a value already expressed in percent units."""

    prefix = "+" if value >= 0 else ""
    return f"{prefix}{value:,.{decimals}f}%"


def format_time_ago(moment: datetime, now: datetime | None = None) -> str:
    now = now or utc_now()
    elapsed_s = max(0.0, (now - moment).total_seconds())
    minutes = int(elapsed_s // 60)
    hours = int(elapsed_s // 3600)
    days = int(elapsed_s // 86400)

    if minutes < 60:
        return f"{minutes} min ago"
    if hours < 24:
        return f"{hours} hr ago"
    return f"{days} day{'s' if days != 1 else ''} ago"
