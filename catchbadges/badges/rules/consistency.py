from __future__ import annotations

from catchbadges.badges.interface import EvaluationContext
from catchbadges.badges.registry import registry
from catchbadges.badges.streaks import (
    longest_unit_run,
    longest_weekend_run,
    next_month,
    next_week,
    parse_month,
    week_key,
)
from catchbadges.models.badge import RequirementSpec
from catchbadges.repositories.query import Where, one_of, positive
from catchbadges.utils.helper import compare, to_date

WEEKDAYS = Where('weekday', 'between', (1, 5))
WEEKEND = one_of('weekday', (6, 7))


def consecutive_months(ctx: EvaluationContext, *where: Where) -> int:
    months = ctx.activity.distinct_values(ctx.user_id, 'year_month', list(where))
    return longest_unit_run((parse_month(m) for m in months), next_month)


def consecutive_weeks(ctx: EvaluationContext, *where: Where) -> int:
    days = ctx.activity.distinct_values(ctx.user_id, 'date', list(where))
    return longest_unit_run((week_key(to_date(d)) for d in days), next_week)


def consecutive_weekends(ctx: EvaluationContext) -> int:
    days = ctx.activity.distinct_values(ctx.user_id, 'date', [WEEKEND])
    return longest_weekend_run(to_date(d) for d in days)


class ConsistencyRequirement:
    '''Runs over weeks, months and weekends rather than single days.

    consecutive_months counts months with any log, monthly_streak and
    weekly_streak only count periods with a catch. weekday_streak is the
    number of distinct Monday-Friday dates fished.
    '''

    kinds = (
        'consecutive_months',
        'monthly_streak',
        'weekly_streak',
        'weekend_streak',
        'weekday_streak',
    )

    def measure(self, kind: str, ctx: EvaluationContext) -> int:
        if kind == 'consecutive_months':
            return consecutive_months(ctx)
        if kind == 'monthly_streak':
            return consecutive_months(ctx, positive())
        if kind == 'weekly_streak':
            return consecutive_weeks(ctx, positive())
        if kind == 'weekend_streak':
            return consecutive_weekends(ctx)
        return ctx.activity.distinct_count(ctx.user_id, 'date', [WEEKDAYS])

    def evaluate(self, spec: RequirementSpec, ctx: EvaluationContext) -> bool:
        return compare(self.measure(spec.kind, ctx), spec.operator, spec.value, spec.value2)


registry.register(ConsistencyRequirement())
