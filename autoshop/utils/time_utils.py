# autoshop/utils/time_utils.py
"""Helpers for HH:MM time-of-day strings"""
from datetime import date, time, timedelta
from typing import Iterator, Union


def time_to_minutes(value: Union[str, time]) -> int:
    """Minutes since midnight for an HH:MM string or a time"""
    if isinstance(value, time):
        return value.hour * 60 + value.minute
    hours, minutes = value.split(":")[:2]
    return int(hours) * 60 + int(minutes)


def minutes_to_time(minutes: int) -> str:
    hours, mins = divmod(minutes, 60)
    return f"{hours:02d}:{mins:02d}"


def normalize_time(value: Union[str, time]) -> str:
    """
    Normalize a time-of-day to HH:MM.

    Accepts "HH:MM", "HH:MM:SS" or a datetime.time. Seconds are dropped.
    Raises ValueError for anything else.
    """
    if isinstance(value, time):
        return value.strftime("%H:%M")
    if isinstance(value, str):
        parts = value.strip().split(":")
        if len(parts) in (2, 3) and all(part.isdigit() for part in parts):
            hours, minutes = int(parts[0]), int(parts[1])
            if 0 <= hours < 24 and 0 <= minutes < 60:
                return f"{hours:02d}:{minutes:02d}"
    raise ValueError(f"Invalid time of day: {value!r}, expected HH:MM")


def parse_time(value: Union[str, time]) -> time:
    hours, minutes = divmod(time_to_minutes(normalize_time(value)), 60)
    return time(hours, minutes)


def iter_dates(start: date, end: date) -> Iterator[date]:
    """Every calendar day from start to end, both inclusive"""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)
