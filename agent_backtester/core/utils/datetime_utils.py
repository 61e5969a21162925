"""
Datetime helpers.

All timestamps inside the platform are timezone-aware UTC datetimes.
"""

from datetime import UTC, datetime

import pandas as pd


def ensure_utc(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime (naive values are taken as UTC)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def parse_timestamp(value: str) -> datetime:
    """Parse a date or datetime string into an aware UTC datetime.

    Raises:
        ValueError: If the string cannot be parsed
    """
    text = value.strip()
    if not text:
        raise ValueError("Empty timestamp")
    parsed = pd.Timestamp(text)
    if pd.isna(parsed):
        raise ValueError(f"Invalid timestamp: {value}")
    return ensure_utc(parsed.to_pydatetime())


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)
