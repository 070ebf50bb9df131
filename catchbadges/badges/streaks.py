'''Consecutive-run helpers for days, weeks, months and weekends.'''

from __future__ import annotations

from datetime import date, timedelta
from typing import Callable, Hashable, Iterable, TypeVar

U = TypeVar('U', bound=Hashable)

# Weekend anchors at most this many days apart are consecutive weekends
WEEKEND_GAP_DAYS = 8


def longest_unit_run(units: Iterable[U], successor: Callable[[U], U]) -> int:
    '''Longest run of units where each one is the successor of the previous.'''
    ordered = sorted(set(units))
    if not ordered:
        return 0
    best = current = 1
    for prev, unit in zip(ordered, ordered[1:]):
        if successor(prev) == unit:
            current += 1
            best = max(best, current)
        else:
            current = 1
    return best


def next_day(day: date) -> date:
    return day + timedelta(days=1)


def longest_run(dates: Iterable[date]) -> int:
    '''Longest run of consecutive calendar days.

    The caller filters the dates (any log, a catch, no skunk); this only
    measures runs. No dates is 0, one date is 1.
    '''
    return longest_unit_run(dates, next_day)


def current_streak(dates: Iterable[date], today: date) -> int:
    '''Consecutive days ending at the most recent date, walking backward.

    A streak is still current when its last day is today or yesterday,
    since today's trip may not be logged yet. Anything older is 0.
    '''
    days = set(dates)
    if not days:
        return 0
    latest = max(days)
    if latest > today or (today - latest).days > 1:
        return 0
    streak = 0
    cursor = latest
    while cursor in days:
        streak += 1
        cursor -= timedelta(days=1)
    return streak


def month_key(day: date) -> tuple[int, int]:
    return day.year, day.month


def next_month(key: tuple[int, int]) -> tuple[int, int]:
    year, month = key
    return (year + 1, 1) if month == 12 else (year, month + 1)


def parse_month(value: str | tuple[int, int] | date) -> tuple[int, int]:
    '''Accept a (year, month) pair, a date or a "YYYY-MM" string.'''
    if isinstance(value, date):
        return month_key(value)
    if isinstance(value, tuple):
        return value
    year, month = value.split('-')[:2]
    return int(year), int(month)


def week_key(day: date) -> date:
    '''Monday of the ISO week.'''
    return day - timedelta(days=day.weekday())


def next_week(key: date) -> date:
    return key + timedelta(days=7)


def weekend_key(day: date) -> date | None:
    '''Saturday anchoring the weekend, or None on a weekday.'''
    weekday = day.weekday()
    if weekday == 5:
        return day
    if weekday == 6:
        return day - timedelta(days=1)
    return None


def longest_weekend_run(dates: Iterable[date]) -> int:
    anchors = sorted({a for a in (weekend_key(d) for d in dates) if a is not None})
    if not anchors:
        return 0
    best = current = 1
    for prev, anchor in zip(anchors, anchors[1:]):
        if (anchor - prev).days <= WEEKEND_GAP_DAYS:
            current += 1
            best = max(best, current)
        else:
            current = 1
    return best
