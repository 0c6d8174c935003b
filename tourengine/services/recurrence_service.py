"""
Recurrence service for tourengine.
Expands a RecurrenceRule into concrete event dates.
"""
import logging
from datetime import date, timedelta
from typing import List, Optional, Union

from tourengine.models.recurrence import EndType, Frequency, RecurrenceRule

logger = logging.getLogger(__name__)

# Safety ceiling, applies even when an explicit count is larger
MAX_INSTANCES = 52
# Highest anchor day that exists in every month
MAX_DAY_OF_MONTH = 28


def _js_weekday(d: date) -> int:
    """Weekday numbered 0=Sunday .. 6=Saturday."""
    return (d.weekday() + 1) % 7


def _instance_limit(rule: RecurrenceRule) -> int:
    if rule.end_type is EndType.COUNT and rule.count is not None:
        return max(1, min(rule.count, MAX_INSTANCES))
    return MAX_INSTANCES


def _until(rule: RecurrenceRule) -> Optional[date]:
    if rule.end_type is EndType.UNTIL_DATE:
        return rule.until_date
    return None


def _add_month(year: int, month: int):
    return (year + 1, 1) if month == 12 else (year, month + 1)


def generate_instance_dates(start_date: Union[date, str], rule: RecurrenceRule) -> List[str]:
    """
    Generate the dates of a recurring event.

    The start date is always the first instance, even when it does not
    match days_of_week. Weekly/biweekly step 7/14 days and keep a candidate
    only when days_of_week is empty or contains its weekday. Monthly uses
    day_of_month (or the start day) capped at 28, and skips a month whose
    candidate would roll into the next month.

    Generation ends at until_date (inclusive) or after count instances,
    and never exceeds MAX_INSTANCES. An unsupported frequency yields only
    the start date.

    Args:
        start_date: First occurrence (date or 'YYYY-MM-DD')
        rule: Recurrence rule

    Returns:
        Ordered list of 'YYYY-MM-DD' strings
    """
    if isinstance(start_date, str):
        start_date = date.fromisoformat(start_date)

    dates = [start_date]

    if not rule.is_supported:
        logger.warning(f"Unsupported recurrence frequency {rule.frequency!r}; returning start date only")
        return [start_date.isoformat()]

    limit = _instance_limit(rule)
    until = _until(rule)

    if rule.frequency is Frequency.MONTHLY:
        dates.extend(_monthly(start_date, rule, limit, until))
    else:
        dates.extend(_stepped(start_date, rule, limit, until))

    return [d.isoformat() for d in dates]


def _stepped(start_date: date, rule: RecurrenceRule, limit: int, until: Optional[date]) -> List[date]:
    step = timedelta(days=rule.frequency.step_days)
    found = []
    current = start_date

    # Bounded scan: a filter that never matches must still terminate
    for _ in range(MAX_INSTANCES):
        if len(found) + 1 >= limit:
            break
        current += step
        if until is not None and current > until:
            break
        if rule.days_of_week and _js_weekday(current) not in rule.days_of_week:
            continue
        found.append(current)

    return found


def _monthly(start_date: date, rule: RecurrenceRule, limit: int, until: Optional[date]) -> List[date]:
    anchor = min(rule.day_of_month or start_date.day, MAX_DAY_OF_MONTH)
    found = []
    year, month = start_date.year, start_date.month

    for _ in range(MAX_INSTANCES):
        if len(found) + 1 >= limit:
            break
        year, month = _add_month(year, month)
        try:
            candidate = date(year, month, anchor)
        except ValueError:
            # Day does not exist in this month: skip it rather than clamp
            continue
        if until is not None and candidate > until:
            break
        found.append(candidate)

    return found
