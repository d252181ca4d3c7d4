# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Calendar helpers shared by the services. Pure functions, no I/O.
"""

import calendar
from datetime import date, datetime, timedelta, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes read back from the store."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def add_months(moment: datetime, months: int) -> datetime:
    """
    Shift by calendar months. A day past the end of the target month rolls
    over into the following month (Nov 30 + 3 months is Mar 2, or Mar 1 in
    a leap year).
    """
    month_index = moment.month - 1 + months
    year = moment.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    shifted = moment.replace(year=year, month=month, day=min(moment.day, last_day))
    return shifted + timedelta(days=max(0, moment.day - last_day))


def age_on(birth_date: date, today: date) -> int:
    """Whole years lived as of ``today``; a birthday falling today counts."""
    years = today.year - birth_date.year
    had_birthday = (today.month, today.day) >= (birth_date.month, birth_date.day)
    return years if had_birthday else years - 1
