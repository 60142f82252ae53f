import logging
from datetime import date, datetime, time, timedelta
from typing import List

import pytz

from ..errors import InvalidTimeError
from .domain import TimeSlot, WallClock

logger = logging.getLogger(__name__)

UTC = "UTC"

# Abbreviations people type into the booking form
ZONE_ABBREVIATIONS = {
    "EST": "America/New_York",
    "CST": "America/Chicago",
    "MST": "America/Denver",
    "PST": "America/Los_Angeles",
    "GMT": "Europe/London",
    "UTC": UTC,
}

WALL_CLOCK_FORMAT = "%Y-%m-%d %H:%M"


def normalize_zone(value) -> str:
    """
    Resolve an abbreviation or IANA name to a canonical IANA zone name.
    Anything unrecognized degrades to UTC.
    """
    if not value or not isinstance(value, str):
        return UTC

    value = value.strip()
    mapped = ZONE_ABBREVIATIONS.get(value.upper())
    if mapped:
        return mapped

    try:
        return pytz.timezone(value).zone
    except pytz.exceptions.UnknownTimeZoneError:
        logger.warning(f"Unrecognized timezone {value!r}, falling back to UTC")
        return UTC


def get_zone(value) -> pytz.BaseTzInfo:
    return pytz.timezone(normalize_zone(value))


def to_24_hour(hour: int, ampm: str) -> int:
    if not isinstance(hour, int) or not 1 <= hour <= 12:
        raise InvalidTimeError(f"Hour must be between 1 and 12, got {hour!r}", hour=hour)
    marker = str(ampm or "").strip().upper()
    if marker not in ("AM", "PM"):
        raise InvalidTimeError(f"Expected AM or PM, got {ampm!r}", ampm=ampm)
    if marker == "AM":
        return 0 if hour == 12 else hour
    return 12 if hour == 12 else hour + 12


def to_12_hour(hour24: int):
    ampm = "AM" if hour24 < 12 else "PM"
    hour = hour24 % 12
    return (12 if hour == 0 else hour), ampm


def to_utc(year: int, month: int, day: int, hour: int, minute: int, ampm: str, zone: str = UTC) -> datetime:
    """
    Interpret a 12-hour wall clock as local time in `zone` and return the
    matching aware UTC instant. The offset comes from the zone's rules for
    that calendar date, so DST is honoured.
    """
    hour24 = to_24_hour(hour, ampm)
    if not isinstance(minute, int) or not 0 <= minute <= 59:
        raise InvalidTimeError(f"Minute must be between 0 and 59, got {minute!r}", minute=minute)

    try:
        naive = datetime(year, month, day, hour24, minute)
    except (TypeError, ValueError) as e:
        raise InvalidTimeError(f"Invalid calendar date {year}-{month}-{day}: {e}") from e

    zone_name = normalize_zone(zone)
    tz = pytz.timezone(zone_name)
    # is_dst=False: wall clocks inside a DST gap/overlap resolve to standard time
    local = tz.normalize(tz.localize(naive, is_dst=False))
    instant = local.astimezone(pytz.utc)

    expected = naive.strftime(WALL_CLOCK_FORMAT)
    actual = instant.astimezone(tz).strftime(WALL_CLOCK_FORMAT)
    if actual != expected:
        logger.warning(
            f"Round-trip check for {expected} in {zone_name} came back as {actual}; keeping {instant.isoformat()}"
        )
    return instant


def wall_clock_to_utc(wall_clock: WallClock, zone: str = UTC) -> datetime:
    return to_utc(
        wall_clock.year,
        wall_clock.month,
        wall_clock.day,
        wall_clock.hour,
        wall_clock.minute,
        wall_clock.ampm,
        zone,
    )


def ensure_utc(instant: datetime) -> datetime:
    """Naive datetimes are taken to already be UTC."""
    if instant.tzinfo is None:
        return pytz.utc.localize(instant)
    return instant.astimezone(pytz.utc)


def from_utc(instant: datetime, zone: str = UTC) -> datetime:
    return ensure_utc(instant).astimezone(get_zone(zone))


def to_wall_clock(instant: datetime, zone: str = UTC) -> WallClock:
    local = from_utc(instant, zone)
    hour, ampm = to_12_hour(local.hour)
    return WallClock(local.year, local.month, local.day, hour, local.minute, ampm)


def generate_time_slots(
    day: date,
    zone: str = UTC,
    start_hour: int = 9,
    end_hour: int = 17,
    interval_minutes: int = 30,
) -> List[TimeSlot]:
    if interval_minutes <= 0:
        raise InvalidTimeError("Slot interval must be positive", interval_minutes=interval_minutes)
    if not 0 <= start_hour < end_hour <= 24:
        raise InvalidTimeError(
            "Business hours must satisfy 0 <= start < end <= 24",
            start_hour=start_hour,
            end_hour=end_hour,
        )

    zone_name = normalize_zone(zone)
    tz = pytz.timezone(zone_name)
    window_start = tz.localize(datetime.combine(day, time(start_hour))).astimezone(pytz.utc)
    if end_hour == 24:
        window_end = tz.localize(datetime.combine(day + timedelta(days=1), time(0))).astimezone(pytz.utc)
    else:
        window_end = tz.localize(datetime.combine(day, time(end_hour))).astimezone(pytz.utc)

    step = timedelta(minutes=interval_minutes)
    slots = []
    cursor = window_start
    while cursor < window_end:
        slots.append(TimeSlot(start_utc=cursor, end_utc=min(cursor + step, window_end), timezone=zone_name))
        cursor += step
    return slots


def slots_overlap(a: TimeSlot, b: TimeSlot) -> bool:
    return a.start_utc < b.end_utc and b.start_utc < a.end_utc
