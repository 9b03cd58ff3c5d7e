"""Timestamp parsing utilities."""
from datetime import date, datetime, timezone
from typing import Union


def parse_timestamp(s: str) -> datetime:
    """
    Parse a timestamp string into a timezone-aware datetime object.

    Supports multiple formats:
    - ISO format with "Z" suffix: "2024-01-02T09:10:00Z"
    - ISO format with timezone: "2024-01-02T09:10:00+00:00"
    - ISO format without timezone: "2024-01-02T09:10:00"
    - Space-separated: "2024-01-02 09:10:00"
    - Plain date: "2024-01-02" (midnight UTC)

    Args:
        s: Timestamp string

    Returns:
        datetime object (naive inputs are assumed to be UTC)

    Raises:
        ValueError: If timestamp cannot be parsed
    """
    if not s:
        raise ValueError("Empty timestamp string")

    # Strip whitespace
    s = s.strip()

    # Convert trailing "Z" to "+00:00" for ISO format compatibility
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"

    # Try ISO format first
    try:
        return ensure_aware(datetime.fromisoformat(s))
    except ValueError:
        pass

    # Try replacing space with "T" for ISO-like format
    if " " in s and "T" not in s:
        try:
            return ensure_aware(datetime.fromisoformat(s.replace(" ", "T")))
        except ValueError:
            pass

    raise ValueError(f"Unable to parse timestamp: {s}. Expected ISO format (e.g., '2024-01-02T09:10:00Z' or '2024-01-02T09:10:00+00:00')")


def ensure_aware(dt: datetime) -> datetime:
    """Attach UTC to naive datetimes; aware ones are returned unchanged."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def coerce_timestamp(value: Union[str, date, datetime, None]):
    """Validator helper: accept strings, dates and datetimes; None passes through."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return ensure_aware(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if isinstance(value, str):
        return parse_timestamp(value)
    return value


def utc_midnight(year: int, month: int, day: int) -> datetime:
    """
    Midnight of a calendar day, expressed in UTC.

    Serializing this value yields "YYYY-MM-DDT00:00:00+00:00", so the stored
    calendar date is the intended one whatever the local timezone of the
    process that later reads it.
    """
    return datetime(year, month, day, tzinfo=timezone.utc)
