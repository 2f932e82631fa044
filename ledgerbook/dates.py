import re
from datetime import date
from typing import Iterator, Optional
from dateutil.relativedelta import relativedelta

from ledgerbook.models import DayOfMonth, DateParseError, MAX_DAY


TODAY = "today"
DATE_PATTERN = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")


def today() -> date:
    return date.today()


def parse_date(text: str) -> date:
    """Parse yyyy-mm-dd, or the literal 'today'. No other ISO 8601 forms."""
    if text == TODAY:
        return today()
    if not isinstance(text, str) or not DATE_PATTERN.fullmatch(text):
        raise DateParseError(f"Expected a date of the form yyyy-mm-dd, got {text!r}")
    try:
        return date.fromisoformat(text)
    except ValueError:
        raise DateParseError(f"Expected a date of the form yyyy-mm-dd, got {text!r}") from None


def format_date(d: date) -> str:
    return d.isoformat()


def next_month(d: date) -> Optional[date]:
    """Same day number one calendar month later, or None past day 28."""
    if d.day > MAX_DAY:
        return None
    return d + relativedelta(months=1)


def month_cursor(start: date, until: Optional[date] = None) -> Iterator[date]:
    current = start if start.day <= MAX_DAY else None
    while current is not None:
        if until is not None and current > until:
            return
        yield current
        current = next_month(current)


def previous_occurrence(day: DayOfMonth, reference: date) -> date:
    if reference.day >= day.value:
        return reference.replace(day=day.value)
    if reference.month == 1:
        return date(reference.year - 1, 12, day.value)
    return date(reference.year, reference.month - 1, day.value)


def next_occurrence(day: DayOfMonth, reference: date) -> date:
    return next_month(previous_occurrence(day, reference))
