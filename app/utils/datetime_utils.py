"""
Datetime utilities.

Provides timezone-aware datetime functions and calendar month windows.
All windows are half-open: [start, end).
"""

from datetime import UTC, datetime, timedelta


def utc_now() -> datetime:
    """
    Get current UTC datetime with timezone info.

    Returns:
        Current datetime in UTC with timezone awareness
    """
    return datetime.now(UTC)


def start_of_month(moment: datetime | None = None) -> datetime:
    """
    Get the first instant of the month containing moment.

    Args:
        moment: Reference time (defaults to now)

    Returns:
        Month start in UTC
    """
    moment = moment or utc_now()
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return moment.astimezone(UTC).replace(
        day=1, hour=0, minute=0, second=0, microsecond=0
    )


def start_of_next_month(moment: datetime | None = None) -> datetime:
    """Get the first instant of the month after the one containing moment."""
    start = start_of_month(moment)
    if start.month == 12:
        return start.replace(year=start.year + 1, month=1)
    return start.replace(month=start.month + 1)


def start_of_previous_month(moment: datetime | None = None) -> datetime:
    """Get the first instant of the month before the one containing moment."""
    return start_of_month(start_of_month(moment) - timedelta(days=1))


def previous_month_period(
    moment: datetime | None = None,
) -> tuple[datetime, datetime]:
    """
    Get the previous calendar month as a half-open window.

    Args:
        moment: Reference time (defaults to now)

    Returns:
        (start, end) where end is the start of the reference month
    """
    return start_of_previous_month(moment), start_of_month(moment)


def current_month_period(
    moment: datetime | None = None,
) -> tuple[datetime, datetime]:
    """Get the current calendar month as a half-open window."""
    return start_of_month(moment), start_of_next_month(moment)
