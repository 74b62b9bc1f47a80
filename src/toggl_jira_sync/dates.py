"""Resolution of user supplied date boundaries."""

import re
from datetime import datetime, timedelta

from toggl_jira_sync.errors import InvalidInput, OutOfRange

MAX_DAYS_AGO = 365

_INTEGER_PATTERN = re.compile(r"^\d+$")
_NEGATIVE_INTEGER_PATTERN = re.compile(r"^-\d+$")


def is_integer_input(value: str | int) -> bool:
    """Check whether input is a day count rather than a date."""
    return bool(_INTEGER_PATTERN.match(str(value).strip()))


def parse_date_input(value: str | int | None, now: datetime | None = None) -> datetime | None:
    """Turn a boundary given as days ago or as a date into a datetime.

    Args:
        value: Number of days before today (e.g. "7") or an ISO date
            (e.g. "2024-01-15").
        now: Reference instant. Defaults to the current local time.

    Returns:
        The resolved datetime, truncated to start of day for day counts.
        None if the value is neither a day count nor a parseable date.

    Raises:
        InvalidInput: If the value is missing or a negative integer.
        OutOfRange: If the day count is larger than 365.
    """
    if value is None:
        raise InvalidInput("Date input is required")

    text = str(value).strip()
    if not text:
        raise InvalidInput("Date input is required")

    if _NEGATIVE_INTEGER_PATTERN.match(text):
        raise InvalidInput(f"Invalid days ago: {int(text)}. Must be a non-negative integer.")

    if _INTEGER_PATTERN.match(text):
        days_ago = int(text)
        if days_ago > MAX_DAYS_AGO:
            raise OutOfRange(f"Invalid days ago: {days_ago}. Maximum is {MAX_DAYS_AGO} days.")

        reference = (now or datetime.now()) - timedelta(days=days_ago)
        return reference.replace(hour=0, minute=0, second=0, microsecond=0)

    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return None
