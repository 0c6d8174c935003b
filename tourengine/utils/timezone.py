"""
Timezone utilities for tour dates.
Resolves the business timezone and derives the local calendar date used
for day-type pricing.
"""
from datetime import date, datetime, time

import pytz

# Walla Walla, WA
DEFAULT_TIMEZONE = 'America/Los_Angeles'


def is_valid_timezone(tz_string):
    """
    Validate timezone string against pytz database.

    Args:
        tz_string: Timezone string to validate (e.g., 'America/Los_Angeles')

    Returns:
        bool: True if valid IANA timezone
    """
    if not tz_string:
        return False
    return tz_string in pytz.all_timezones


def get_business_timezone(tz_string=None):
    """
    Get the pytz timezone the business operates in.

    Falls back to DEFAULT_TIMEZONE when tz_string is missing or invalid.
    """
    if tz_string and is_valid_timezone(tz_string):
        return pytz.timezone(tz_string)
    return pytz.timezone(DEFAULT_TIMEZONE)


def to_local_date(value, tz_string=None):
    """
    Resolve the calendar date of a tour in the business timezone.

    Args:
        value: date, datetime (naive = already local wall clock) or
               'YYYY-MM-DD' / ISO datetime string

    Returns:
        date: Local calendar date
    """
    if isinstance(value, str):
        value = datetime.fromisoformat(value) if 'T' in value else date.fromisoformat(value)

    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(get_business_timezone(tz_string))
        return value.date()

    return value


def combine_local(tour_date, clock, tz_string=None):
    """
    Combine a tour date and a wall-clock time into a naive local datetime.

    Aware datetimes are converted to the business timezone first and the
    tzinfo dropped, so schedule arithmetic happens on wall-clock minutes.

    Args:
        tour_date: date (ignored when clock is a datetime)
        clock: time, datetime, or 'HH:MM' string
    """
    if isinstance(clock, str):
        clock = time.fromisoformat(clock)

    if isinstance(clock, datetime):
        if clock.tzinfo is not None:
            clock = clock.astimezone(get_business_timezone(tz_string)).replace(tzinfo=None)
        return clock

    return datetime.combine(tour_date, clock.replace(tzinfo=None))
