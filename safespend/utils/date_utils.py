"""Date manipulation utilities"""

import calendar
from datetime import date, datetime, timedelta, timezone
from typing import List

from safespend.domain.exceptions import InvalidArgumentError


def generate_date_range(start: date, end: date) -> List[date]:
    """Generate list of dates from start to end (inclusive)"""
    days = (end - start).days + 1
    return [start + timedelta(days=i) for i in range(days)]


def days_between(start: date, end: date) -> int:
    """Signed number of days from start to end"""
    return (end - start).days


def first_day_of_month(day: date) -> date:
    return day.replace(day=1)


def days_in_month(month: date) -> int:
    return calendar.monthrange(month.year, month.month)[1]


def last_day_of_month(month: date) -> date:
    return month.replace(day=days_in_month(month))


def parse_month(value: str) -> date:
    """
    Parse a "YYYY-MM" string into the first day of that month.

    Raises:
        InvalidArgumentError: If the value is not a valid year-month
    """
    try:
        return datetime.strptime(value.strip(), "%Y-%m").date()
    except (AttributeError, ValueError) as e:
        raise InvalidArgumentError(f"Invalid month '{value}', expected YYYY-MM") from e


def month_bounds(month: date) -> tuple[datetime, datetime]:
    """UTC instants [start, end) covering the calendar month of `month`"""
    start = datetime.combine(first_day_of_month(month), datetime.min.time(), tzinfo=timezone.utc)
    end = datetime.combine(last_day_of_month(month) + timedelta(days=1), datetime.min.time(), tzinfo=timezone.utc)
    return start, end


def start_of_day(day: date) -> datetime:
    """Midnight UTC at the start of `day`"""
    return datetime.combine(day, datetime.min.time(), tzinfo=timezone.utc)
