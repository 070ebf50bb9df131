'''Challenge badges: a second dispatch on the requirement field.

Most challenges are small predicates over the raw logs. A few reuse another
requirement kind (consistency, daily variety) or a statistic.
'''

from __future__ import annotations

import dataclasses
import logging
from collections import Counter
from datetime import date
from typing import Callable

from catchbadges.badges.interface import EvaluationContext
from catchbadges.badges.registry import registry
from catchbadges.badges.rules.consistency import consecutive_months, consecutive_weeks
from catchbadges.badges.rules.common import stat_key
from catchbadges.models.activity_record import ActivityRecord
from catchbadges.models.badge import RequirementSpec
from catchbadges.repositories.query import (
    Aggregate,
    Where,
    count_of,
    max_of,
    one_of,
    positive,
    sum_of,
)
from catchbadges.utils.constants import (
    CONDITION_LOG_FIELDS,
    DAY_SEGMENTS,
    TROPHY_SIZE,
)
from catchbadges.utils.helper import compare, to_date

logger = logging.getLogger(__name__)

Measure = Callable[[RequirementSpec, EvaluationContext], 'int | float | None']

# challenge field -> requirement kind it is evaluated as
DELEGATED_KINDS = {
    'consecutive_months': 'consecutive_months',
    'weekend_streak': 'weekend_streak',
    'weekday_streak': 'weekday_streak',
    'daily_locations': 'daily_locations',
    'daily_flies': 'daily_flies',
    'daily_rods': 'daily_rods',
}

# challenge fields answered straight from the statistics map
STAT_FIELDS = (
    'skunk_count',
    'notes_count',
    'daily_species',
    'daily_quantity',
    'daily_trophies',
    'late_fishing',
)

# challenge field -> (group by, per-group aggregate)
DOMINANCE = {
    'single_fly_catches': ('fly', sum_of('total')),
    'single_rod_catches': ('rod', sum_of('total')),
    'single_location_catches': ('location', sum_of('total')),
}


def _dominance(field: str) -> Measure:
    group_by, aggregate = DOMINANCE[field]

    def measure(spec: RequirementSpec, ctx: EvaluationContext) -> int | float:
        return ctx.activity.max_grouped_by(ctx.user_id, group_by, aggregate)

    return measure


def _condition_logged(field: str) -> Measure:
    column = CONDITION_LOG_FIELDS[field]

    def measure(spec: RequirementSpec, ctx: EvaluationContext) -> int | float:
        row = ctx.activity.aggregate_many(
            ctx.user_id, [count_of('logged', Where(column, 'not_empty'))]
        )
        return row.get('logged', 0)

    return measure


def personal_bests(records: list[ActivityRecord]) -> int:
    '''Times a log beat the largest fish logged before it.

    The first sized fish sets the bar; it is not itself a personal best.
    '''
    best: float | None = None
    count = 0
    for record in records:
        if record.max_size is None or record.max_size <= 0:
            continue
        if best is None:
            best = record.max_size
        elif record.max_size > best:
            best = record.max_size
            count += 1
    return count


def daily_totals(ctx: EvaluationContext, *extra: Aggregate) -> list[tuple[date, dict]]:
    '''(day, aggregates) for every day fished, oldest first.'''
    days = ctx.activity.grouped_many(
        ctx.user_id, 'date', [sum_of('total'), *extra]
    )
    return sorted(((to_date(d), v) for d, v in days.items()), key=lambda item: item[0])


def comebacks(ctx: EvaluationContext, *, trophy: bool = False) -> int:
    '''Days that follow a skunked fishing day and produce a fish (or a trophy).'''
    extra = (count_of('trophies', Where('max_size', '>=', TROPHY_SIZE)),) if trophy else ()
    days = daily_totals(ctx, *extra)
    count = 0
    for (_, previous), (_, current) in zip(days, days[1:]):
        if previous['total'] > 0:
            continue
        if trophy and current.get('trophies', 0) > 0:
            count += 1
        elif not trophy and current['total'] > 0:
            count += 1
    return count


def full_days(ctx: EvaluationContext) -> int:
    '''Days with a log in every day segment.'''
    aggregates = [
        count_of(segment, one_of('time_of_day', labels))
        for segment, labels in DAY_SEGMENTS.items()
    ]
    days = ctx.activity.grouped_many(ctx.user_id, 'date', aggregates)
    return sum(1 for day in days.values() if all(day[s] > 0 for s in DAY_SEGMENTS))


def widest_size_range(ctx: EvaluationContext) -> int | float:
    sized = Where('max_size', '>', 0)
    days = ctx.activity.grouped_many(
        ctx.user_id,
        'date',
        [
            max_of('largest', 'max_size', sized),
            Aggregate('smallest', 'min', 'max_size', (sized,)),
        ],
    )
    return max((d['largest'] - d['smallest'] for d in days.values()), default=0)


def monthly_species_max(records: list[ActivityRecord]) -> int:
    '''Most fish of one species caught within a single calendar month.'''
    caught: Counter = Counter()
    for record in records:
        if record.user_fish_id is None:
            continue
        caught[(record.date.year, record.date.month, record.user_fish_id)] += record.quantity
    return max(caught.values(), default=0)


class ChallengeRequirement:
    kinds = ('challenge',)

    def __init__(self) -> None:
        self.measures: dict[str, Measure] = {
            'pb_count': lambda s, c: personal_bests(c.activity.records_for_user(c.user_id)),
            'monthly_species_max': lambda s, c: monthly_species_max(
                c.activity.records_for_user(c.user_id)
            ),
            'full_day_fishing': lambda s, c: full_days(c),
            'comeback_after_skunk': lambda s, c: comebacks(c),
            'trophy_after_skunk': lambda s, c: comebacks(c, trophy=True),
            'daily_size_range': lambda s, c: widest_size_range(c),
            'weekly_catch_streak': lambda s, c: consecutive_weeks(c, positive()),
            'monthly_catch_streak': lambda s, c: consecutive_months(c, positive()),
        }
        for field in DOMINANCE:
            self.measures[field] = _dominance(field)
        for field in CONDITION_LOG_FIELDS:
            self.measures[field] = _condition_logged(field)
        for field in STAT_FIELDS:
            self.measures[field] = lambda s, c: c.stat(stat_key(s.field))

    def fields(self) -> set[str]:
        return set(self.measures) | set(DELEGATED_KINDS) | {'early_start'}

    def evaluate(self, spec: RequirementSpec, ctx: EvaluationContext) -> bool:
        field = spec.field or ''
        if field in DELEGATED_KINDS:
            delegate = dataclasses.replace(spec, kind=DELEGATED_KINDS[field])
            return registry.resolve(delegate.kind).evaluate(delegate, ctx)
        if field == 'early_start':
            # "<" 5 reads as a fish before 5am
            if spec.value is None or spec.operator not in ('<', '<=', '>', '>='):
                return False
            return ctx.activity.exists_matching(
                ctx.user_id, [Where('hour', spec.operator, spec.value), positive()]
            )
        measure = self.measures.get(field)
        if measure is None:
            logger.debug(f'Unknown challenge field {field!r}')
            return False
        return compare(measure(spec, ctx), spec.operator, spec.value, spec.value2)


registry.register(ChallengeRequirement())
