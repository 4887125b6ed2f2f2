from datetime import date, timedelta
from typing import AbstractSet, Iterator


def weekday_index(day: date) -> int:
    """Weekday number with 0=Sunday .. 6=Saturday."""
    return day.isoweekday() % 7


def is_rest_day(day: date, rest_days: AbstractSet[int]) -> bool:
    return weekday_index(day) in rest_days


def iter_dates(start: date, end: date) -> Iterator[date]:
    """Yield every calendar date from start to end inclusive."""
    for offset in range(day_count(start, end)):
        yield start + timedelta(days=offset)


def iter_study_dates(start: date, end: date, rest_days: AbstractSet[int]) -> Iterator[date]:
    for day in iter_dates(start, end):
        if not is_rest_day(day, rest_days):
            yield day


def date_for_day_number(start: date, day_number: int) -> date:
    """Map a 1-based day number onto the calendar."""
    return start + timedelta(days=day_number - 1)


def day_count(start: date, end: date) -> int:
    return (end - start).days + 1
