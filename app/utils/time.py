"""Time utilities."""
from datetime import UTC, date, datetime


def utcnow() -> datetime:
    """Return current UTC time with timezone awareness."""

    return datetime.now(tz=UTC)


def today() -> date:
    """Return the current calendar date (UTC)."""

    return utcnow().date()


def days_between(start: date, end: date) -> int:
    """Whole days elapsed from ``start`` to ``end`` (negative if ``end`` is earlier)."""

    return (end - start).days


def age_in_months(birth_date: date | None, reference: date) -> int | None:
    """Age in completed months at ``reference``."""

    if birth_date is None:
        return None
    months = (reference.year - birth_date.year) * 12 + (reference.month - birth_date.month)
    if reference.day < birth_date.day:
        months -= 1
    return max(months, 0)


def subtract_months(reference: date, months: int) -> date:
    """Return ``reference`` shifted back by ``months``, clamping the day to the month length."""

    year = reference.year
    month = reference.month - months
    while month <= 0:
        month += 12
        year -= 1
    for day in (reference.day, 30, 29, 28):
        try:
            return date(year, month, day)
        except ValueError:
            continue
    raise ValueError(f"cannot shift {reference} back by {months} months")


def format_br(value: date) -> str:
    """Format a date as dd/mm/yyyy for alert texts."""

    return value.strftime("%d/%m/%Y")


__all__ = ["utcnow", "today", "days_between", "age_in_months", "subtract_months", "format_br"]
