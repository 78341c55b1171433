"""
Recurrence rules for recurring invoice templates.

Periods are calendar-aware: weekly = 7 days, monthly/quarterly/yearly use
relativedelta, which clamps to the last day of shorter months. The n-th
instance is always computed from start_date (start + n periods), never by
stepping from the previous instance, so 31 Jan -> 29 Feb -> 31 Mar does not
drift to the 29th.
"""

from datetime import date
from typing import Optional

from dateutil.relativedelta import relativedelta

from app.core.enums import RecurringFrequency, RecurringStatus

_MONTHS_PER_PERIOD = {
    RecurringFrequency.monthly: 1,
    RecurringFrequency.quarterly: 3,
    RecurringFrequency.yearly: 12,
}


def step(start: date, frequency: str, n: int = 1) -> date:
    """Date n periods after start."""
    freq = RecurringFrequency(frequency)
    if freq == RecurringFrequency.weekly:
        return start + relativedelta(days=7 * n)
    return start + relativedelta(months=_MONTHS_PER_PERIOD[freq] * n)


def next_instance_date(template) -> date:
    """Date of the next invoice the template would produce."""
    return step(template.start_date, template.frequency, (template.occurrences_generated or 0) + 1)


def is_due(template, today: date) -> bool:
    """
    A new instance is due when nothing has been generated yet, or when the
    previous instance date plus one period has been reached. Templates that
    have not started yet are never due.
    """
    if template.status != RecurringStatus.active.value:
        return False
    if template.start_date > today:
        return False
    if template.end_date is not None and template.end_date < today:
        return False
    if not template.occurrences_generated:
        return True
    return next_instance_date(template) <= today


def should_complete(template, today: date) -> bool:
    """End date passed, or the next instance would fall after it."""
    if template.status == RecurringStatus.completed.value or template.end_date is None:
        return False
    if template.end_date < today:
        return True
    return next_instance_date(template) > template.end_date


def last_instance_date(template) -> Optional[date]:
    if not template.occurrences_generated:
        return None
    return step(template.start_date, template.frequency, template.occurrences_generated)
