import math
from datetime import date, datetime
from decimal import Decimal
from typing import Any

import pendulum

from catchbadges.utils.constants import (
    MOON_PHASE_BUCKETS,
    SEASON_ALIASES,
    SEASON_MONTHS,
)


def normalize_season(name: Any) -> str | None:
    if not isinstance(name, str):
        return None
    key = name.strip().lower()
    key = SEASON_ALIASES.get(key, key)
    return key if key in SEASON_MONTHS else None


def moon_bucket(phase: str | None) -> str | None:
    '''Collapse a named moon phase into full/new/waxing/waning.'''
    if not phase:
        return None
    needle = phase.strip().lower()
    for bucket, labels in MOON_PHASE_BUCKETS.items():
        if needle == bucket or needle in (label.lower() for label in labels):
            return bucket
    return None


def to_number(value: Any) -> int | float | None:
    '''Parse a stored numeric value, returning None for anything unusable.'''
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float, Decimal)):
        return normalize_number(value)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            return normalize_number(float(text))
        except ValueError:
            return None
    return None


def normalize_number(value: Any) -> int | float:
    '''Integral values become int, everything else float. None becomes 0.'''
    if value is None:
        return 0
    number = float(value)
    if number.is_integer():
        return int(number)
    return number


def compare(actual: Any, operator: str | None, expected: Any, upper: Any = None) -> bool:
    '''Apply a comparison operator. A missing value never satisfies anything.'''
    actual = to_number(actual)
    expected = to_number(expected)
    if actual is None or expected is None:
        return False
    op = (operator or '>=').strip()
    if op == '>=':
        return actual >= expected
    if op == '>':
        return actual > expected
    if op == '<=':
        return actual <= expected
    if op == '<':
        return actual < expected
    if op in ('=', '=='):
        return actual == expected
    if op == 'between':
        upper = to_number(upper)
        if upper is None:
            return False
        return expected <= actual <= upper
    return False


def progress_percentage(current: Any, required: Any) -> int:
    current = to_number(current) or 0
    required = to_number(required)
    if required is None or required <= 0:
        return 0
    # half-up, so 12.5% shows as 13
    return min(100, math.floor(current / required * 100 + 0.5))


def to_date(value: Any) -> date | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        parsed = pendulum.parse(value.strip(), strict=False)
        return parsed.date() if isinstance(parsed, datetime) else parsed
    return None


def today(tz: str = 'UTC') -> date:
    return pendulum.today(tz).date()
