"""Timestamp arithmetic and decoding for lease dates.

Two decoders are provided:

- ``decode_timestamp_approx``: the fixed calendar every lease date is computed
  with (365-day years, 30-day months, no leap years). It drifts against the real
  calendar and can report month 13 for the last five days of a year; that drift
  is part of the published values and is reproduced exactly.
- ``decode_timestamp_exact``: calendar-accurate UTC decoding, opt-in.
"""

import time
from datetime import datetime, timezone
from typing import Callable, NamedTuple

SECONDS_PER_MINUTE = 60
SECONDS_PER_HOUR = 60 * SECONDS_PER_MINUTE
SECONDS_PER_DAY = 24 * SECONDS_PER_HOUR
DAYS_PER_MONTH = 30
DAYS_PER_YEAR = 365
SECONDS_PER_MONTH = DAYS_PER_MONTH * SECONDS_PER_DAY
SECONDS_PER_YEAR = DAYS_PER_YEAR * SECONDS_PER_DAY
EPOCH_YEAR = 1970

# Rent (and utility) deadlines advance by this fixed step
RENT_PERIOD_SECONDS = 30 * SECONDS_PER_DAY

CALENDAR_APPROXIMATE = "approximate"
CALENDAR_EXACT = "exact"

Clock = Callable[[], int]


class DateTimeParts(NamedTuple):
    """Decoded timestamp."""

    year: int
    month: int
    day: int
    hour: int
    minute: int
    second: int


def system_clock() -> int:
    """Current time as whole epoch seconds."""
    return int(time.time())


def lease_duration_seconds(years: int, months: int, days: int) -> int:
    """Convert a (years, months, days) lease term using the fixed calendar.

    Raises:
        ValueError: If any component is negative
    """
    if years < 0 or months < 0 or days < 0:
        raise ValueError(
            f"Lease duration components must be non-negative: years={years}, months={months}, days={days}"
        )
    return years * SECONDS_PER_YEAR + months * SECONDS_PER_MONTH + days * SECONDS_PER_DAY


def _split_time_of_day(seconds: int) -> tuple[int, int, int]:
    hour = seconds // SECONDS_PER_HOUR
    seconds %= SECONDS_PER_HOUR
    return hour, seconds // SECONDS_PER_MINUTE, seconds % SECONDS_PER_MINUTE


def decode_timestamp_approx(timestamp: int) -> DateTimeParts:
    """Decode epoch seconds with the fixed 365-day-year / 30-day-month calendar.

    Args:
        timestamp: Non-negative epoch seconds

    Returns:
        DateTimeParts; month ranges 1..13, day 1..30
    """
    if timestamp < 0:
        raise ValueError(f"Timestamp must be non-negative: {timestamp}")

    year = EPOCH_YEAR + timestamp // SECONDS_PER_YEAR
    remaining = timestamp % SECONDS_PER_YEAR

    month = 1 + remaining // SECONDS_PER_MONTH
    remaining %= SECONDS_PER_MONTH

    day = 1 + remaining // SECONDS_PER_DAY
    remaining %= SECONDS_PER_DAY

    hour, minute, second = _split_time_of_day(remaining)
    return DateTimeParts(year, month, day, hour, minute, second)


def decode_timestamp_exact(timestamp: int) -> DateTimeParts:
    """Decode epoch seconds into the real UTC calendar date and time."""
    if timestamp < 0:
        raise ValueError(f"Timestamp must be non-negative: {timestamp}")
    moment = datetime.fromtimestamp(timestamp, tz=timezone.utc)
    return DateTimeParts(
        moment.year, moment.month, moment.day, moment.hour, moment.minute, moment.second
    )


def decode_timestamp(timestamp: int, calendar: str = CALENDAR_APPROXIMATE) -> DateTimeParts:
    """Decode with the named calendar ("approximate" or "exact")."""
    if calendar == CALENDAR_APPROXIMATE:
        return decode_timestamp_approx(timestamp)
    if calendar == CALENDAR_EXACT:
        return decode_timestamp_exact(timestamp)
    raise ValueError(f"Unknown calendar: {calendar!r}")


__all__ = [
    "CALENDAR_APPROXIMATE",
    "CALENDAR_EXACT",
    "Clock",
    "DateTimeParts",
    "RENT_PERIOD_SECONDS",
    "SECONDS_PER_DAY",
    "SECONDS_PER_MONTH",
    "SECONDS_PER_YEAR",
    "decode_timestamp",
    "decode_timestamp_approx",
    "decode_timestamp_exact",
    "lease_duration_seconds",
    "system_clock",
]
