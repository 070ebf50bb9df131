from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Mapping

from catchbadges.badges.interface import EvaluationContext
from catchbadges.badges.registry import registry
from catchbadges.badges.rules.environment import condition
from catchbadges.badges.rules.variety import first_visits
from catchbadges.models.badge import RequirementSpec
from catchbadges.repositories.query import (
    Aggregate,
    Where,
    count_of,
    distinct_of,
    matches_all,
    one_of,
    positive,
    sum_of,
)
from catchbadges.utils.constants import (
    COMBO_DAY_CONDITIONS,
    COMBO_RECORD_CONDITIONS,
    DAY_SEGMENTS,
    MOON_PHASE_BUCKETS,
    SEASON_MONTHS,
    SOLUNAR_PERIODS,
)
from catchbadges.utils.helper import moon_bucket, normalize_season, to_number

logger = logging.getLogger(__name__)

DAY_AGGREGATES = {
    'total': sum_of('total'),
    'species': distinct_of('species', 'species'),
    'flies': distinct_of('flies', 'fly'),
    'locations': distinct_of('locations', 'location'),
}


def _text(value: Any) -> str | None:
    return value.strip().lower() if isinstance(value, str) and value.strip() else None


def record_condition(key: str, value: Any) -> Where | None:
    '''Filter for one per-log condition, or None if it can never match.'''
    if key == 'time_of_day':
        label = _text(value)
        if label in DAY_SEGMENTS:
            return one_of('time_of_day', DAY_SEGMENTS[label])
        return Where('time_of_day', '=', label) if label else None
    if key in ('time_before', 'time_after', 'size', 'quantity'):
        number = to_number(value)
        if number is None:
            return None
        if key == 'time_before':
            return Where('hour', '<', number)
        if key == 'time_after':
            return Where('hour', '>=', number)
        column = 'max_size' if key == 'size' else 'quantity'
        return Where(column, '>=', number)
    if key == 'moon_phase':
        bucket = moon_bucket(_text(value))
        return one_of('moon_phase', MOON_PHASE_BUCKETS[bucket]) if bucket else None
    if key == 'season':
        season = normalize_season(value)
        return one_of('month', SEASON_MONTHS[season]) if season else None
    if key == 'weather':
        return condition('weather', _text(value))
    if key == 'solunar':
        positions = SOLUNAR_PERIODS.get(_text(value) or '')
        return one_of('moon_position', positions) if positions else None
    return None


class ComboRequirement:
    '''All listed conditions met by one log (and its day) at the same time.

    Conditions come from `extra`. Per-log ones are ANDed into one filter;
    daily_* ones must hold for the day that log was made. An unknown key or
    category means the badge can never be earned and nothing is queried.
    '''

    kinds = ('combo',)

    def build(
        self, extra: Mapping[str, Any]
    ) -> tuple[list[Where], dict[str, float], bool] | None:
        terms: list[Where] = [positive()]
        day_minimums: dict[str, float] = {}
        new_location = False
        for key, value in extra.items():
            if key == 'new_location':
                new_location = bool(value)
            elif key in COMBO_DAY_CONDITIONS:
                number = to_number(value)
                if number is None:
                    return None
                day_minimums[COMBO_DAY_CONDITIONS[key]] = number
            elif key in COMBO_RECORD_CONDITIONS:
                term = record_condition(key, value)
                if term is None:
                    return None
                terms.append(term)
            else:
                logger.debug(f'Unknown combo condition {key!r}')
                return None
        return terms, day_minimums, new_location

    def evaluate(self, spec: RequirementSpec, ctx: EvaluationContext) -> bool:
        if not spec.extra:
            return False
        built = self.build(spec.extra)
        if built is None:
            return False
        terms, day_minimums, new_location = built

        if new_location:
            return self._first_visit_match(ctx, terms, day_minimums)
        if not day_minimums:
            return ctx.activity.exists_matching(ctx.user_id, terms)

        aggregates: list[Aggregate] = [DAY_AGGREGATES[name] for name in day_minimums]
        aggregates.append(count_of('matching', *terms))
        days = ctx.activity.grouped_many(ctx.user_id, 'date', aggregates)
        return any(self._day_ok(day, day_minimums) for day in days.values())

    @staticmethod
    def _day_ok(day: Mapping[str, Any], minimums: Mapping[str, float]) -> bool:
        if day.get('matching', 0) < 1:
            return False
        return all(day.get(name, 0) >= needed for name, needed in minimums.items())

    def _first_visit_match(
        self,
        ctx: EvaluationContext,
        terms: list[Where],
        day_minimums: dict[str, float],
    ) -> bool:
        records = ctx.activity.records_for_user(ctx.user_id)
        by_day = defaultdict(list)
        for record in records:
            by_day[record.date].append(record)

        for record in first_visits(records):
            if not matches_all(terms, record):
                continue
            day = {
                name: DAY_AGGREGATES[name].evaluate(by_day[record.date])
                for name in day_minimums
            }
            day['matching'] = 1
            if self._day_ok(day, day_minimums):
                return True
        return False


registry.register(ComboRequirement())
