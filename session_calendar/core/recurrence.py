from datetime import datetime, timedelta
from typing import List, Tuple

from dateutil.relativedelta import relativedelta

from .domain import RecurrenceRule

DEFAULT_OCCURRENCES = 5

Occurrence = Tuple[datetime, datetime]


def _add_months(instant: datetime, months: int) -> datetime:
    # Day-of-month overflow rolls into the next month (Jan 31 + 1 -> Mar 2/3)
    first_of_month = instant.replace(day=1) + relativedelta(months=months)
    return first_of_month + timedelta(days=instant.day - 1)


def shift(instant: datetime, rule: RecurrenceRule, index: int) -> datetime:
    if rule == RecurrenceRule.DAILY:
        return instant + timedelta(days=index)
    if rule == RecurrenceRule.WEEKLY:
        return instant + timedelta(days=7 * index)
    if rule == RecurrenceRule.MONTHLY:
        return _add_months(instant, index)
    return instant


def expand(first_start: datetime, first_end: datetime, rule=RecurrenceRule.NONE, count: int = DEFAULT_OCCURRENCES) -> List[Occurrence]:
    """
    Fan a first occurrence out into `count` occurrences of the cadence.
    The first pair is returned unchanged; `none` yields just that pair.
    """
    rule = RecurrenceRule(rule)
    if count < 1:
        raise ValueError(f"count must be at least 1, got {count}")
    if rule == RecurrenceRule.NONE:
        return [(first_start, first_end)]
    # End follows the shifted start so a month roll-over cannot invert a window
    length = first_end - first_start
    occurrences = []
    for i in range(count):
        start = shift(first_start, rule, i)
        occurrences.append((start, start + length))
    return occurrences
