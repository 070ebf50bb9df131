from __future__ import annotations

from typing import Iterable

from catchbadges.badges.interface import EvaluationContext
from catchbadges.badges.registry import registry
from catchbadges.badges.rules.common import at_least, extra_text, minimum
from catchbadges.models.badge import RequirementSpec
from catchbadges.repositories.query import Where, positive
from catchbadges.utils.constants import HOLIDAYS, SEASON_MONTHS
from catchbadges.utils.helper import compare, normalize_season, to_number


def caught_on(ctx: EvaluationContext, days: Iterable[tuple[int, int]]) -> bool:
    '''A positive log on any of the (month, day) pairs, in any year.'''
    for month, day in days:
        found = ctx.activity.exists_matching(
            ctx.user_id,
            [Where('month', '=', month), Where('day', '=', day), positive()],
        )
        if found:
            return True
    return False


class SeasonRequirement:
    kinds = ('season', 'count_season')

    def evaluate(self, spec: RequirementSpec, ctx: EvaluationContext) -> bool:
        season = normalize_season(extra_text(spec, 'season'))
        if season is None:
            return False
        caught = ctx.stat(f'{season}_catches')
        if spec.kind == 'season':
            return at_least(caught, 1)
        return at_least(caught, minimum(spec))


class CalendarVarietyRequirement:
    '''Distinct seasons or months fished. "=" is exact.'''

    kinds = ('season_variety', 'month_variety')

    def evaluate(self, spec: RequirementSpec, ctx: EvaluationContext) -> bool:
        if spec.kind == 'season_variety':
            actual, everything = ctx.stat('seasons_fished'), len(SEASON_MONTHS)
        else:
            actual, everything = ctx.stat('months_fished'), 12
        if spec.operator == 'all':
            return compare(actual, '=', everything)
        return compare(actual, spec.operator, spec.value)


class SpecificDateRequirement:
    kinds = ('specific_date',)

    def evaluate(self, spec: RequirementSpec, ctx: EvaluationContext) -> bool:
        month = to_number(spec.extra.get('month'))
        day = to_number(spec.extra.get('day'))
        if month is None or day is None:
            return False
        return caught_on(ctx, [(int(month), int(day))])


class HolidayRequirement:
    kinds = ('holiday',)

    def evaluate(self, spec: RequirementSpec, ctx: EvaluationContext) -> bool:
        return caught_on(ctx, HOLIDAYS)


class BirthdayRequirement:
    kinds = ('birthday',)

    def evaluate(self, spec: RequirementSpec, ctx: EvaluationContext) -> bool:
        profile = ctx.users.profile(ctx.user_id)
        if profile is None or profile.birthday is None:
            return False
        return caught_on(ctx, [(profile.birthday.month, profile.birthday.day)])


registry.register(SeasonRequirement())
registry.register(CalendarVarietyRequirement())
registry.register(SpecificDateRequirement())
registry.register(HolidayRequirement())
registry.register(BirthdayRequirement())
