from __future__ import annotations

from catchbadges.badges.interface import EvaluationContext
from catchbadges.badges.registry import registry
from catchbadges.badges.rules.common import at_least, minimum
from catchbadges.models.badge import RequirementSpec
from catchbadges.repositories.query import Where, positive
from catchbadges.utils.constants import DAY_SEGMENTS


def time_bucket(operator: str | None) -> str | None:
    '''"<" reads as before the early cutoff, ">" as after the night cutoff.'''
    if operator in ('<', '<='):
        return 'early_morning_catches'
    if operator in ('>', '>='):
        return 'night_catches'
    return None


class TimeRangeRequirement:
    kinds = ('time_range', 'count_time')

    def evaluate(self, spec: RequirementSpec, ctx: EvaluationContext) -> bool:
        bucket = time_bucket(spec.operator)
        if bucket is None:
            return False
        # value is the hour cutoff, value2 the number of fish
        needed = 1 if spec.kind == 'time_range' else (spec.value2 or 1)
        return at_least(ctx.stat(bucket), needed)


class GoldenHourRequirement:
    kinds = ('count_golden_hour',)

    def evaluate(self, spec: RequirementSpec, ctx: EvaluationContext) -> bool:
        return at_least(ctx.stat('golden_hour_catches'), minimum(spec))


class TimeBetweenRequirement:
    '''A catch with its hour in [value, value2]; value > value2 wraps past midnight.'''

    kinds = ('time_between',)

    def evaluate(self, spec: RequirementSpec, ctx: EvaluationContext) -> bool:
        if spec.value is None or spec.value2 is None:
            return False
        start, end = int(spec.value), int(spec.value2)
        windows = [(start, end)] if start <= end else [(start, 23), (0, end)]
        return any(
            ctx.activity.exists_matching(
                ctx.user_id, [Where('hour', 'between', window), positive()]
            )
            for window in windows
        )


class TimeVarietyRequirement:
    '''Catches in more than one day segment; all of them for "all_periods".'''

    kinds = ('time_variety',)

    def evaluate(self, spec: RequirementSpec, ctx: EvaluationContext) -> bool:
        covered = sum(
            1 for segment in DAY_SEGMENTS if (ctx.stat(f'{segment}_catches') or 0) > 0
        )
        if spec.operator == 'all_periods':
            return covered == len(DAY_SEGMENTS)
        return covered > 1


registry.register(TimeRangeRequirement())
registry.register(GoldenHourRequirement())
registry.register(TimeBetweenRequirement())
registry.register(TimeVarietyRequirement())
