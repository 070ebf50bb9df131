from __future__ import annotations

from catchbadges.badges.interface import EvaluationContext
from catchbadges.badges.registry import registry
from catchbadges.badges.rules.common import at_least, extra_text, minimum
from catchbadges.models.activity_record import ActivityRecord
from catchbadges.models.badge import RequirementSpec
from catchbadges.repositories.query import Where, distinct_of, positive, sum_of
from catchbadges.utils.helper import compare

# kind -> column counted distinctly within one day
DAILY_COLUMNS = {
    'daily_locations': 'location',
    'daily_flies': 'fly',
    'daily_rods': 'rod',
    'daily_species_variety': 'species',
}

WHOLE_HISTORY_COLUMNS = {
    'rod_variety': 'rod',
    'fly_variety': 'fly',
}


def best_daily_variety(ctx: EvaluationContext, column: str) -> int | float:
    return ctx.activity.max_grouped_by(ctx.user_id, 'date', distinct_of('n', column))


def first_visits(records: list[ActivityRecord]) -> list[ActivityRecord]:
    '''The logs made on the first day at each location (records are oldest first).'''
    first_day: dict[int, object] = {}
    for record in records:
        if record.user_location_id is not None:
            first_day.setdefault(record.user_location_id, record.date)
    return [
        r
        for r in records
        if r.user_location_id is not None and first_day[r.user_location_id] == r.date
    ]


class DailyVarietyRequirement:
    kinds = tuple(DAILY_COLUMNS)

    def evaluate(self, spec: RequirementSpec, ctx: EvaluationContext) -> bool:
        best = best_daily_variety(ctx, DAILY_COLUMNS[spec.kind])
        return compare(best, spec.operator, spec.value, spec.value2)


class GearVarietyRequirement:
    '''Distinct rods or flies that produced at least one fish.'''

    kinds = tuple(WHOLE_HISTORY_COLUMNS)

    def evaluate(self, spec: RequirementSpec, ctx: EvaluationContext) -> bool:
        used = ctx.activity.distinct_count(
            ctx.user_id, WHOLE_HISTORY_COLUMNS[spec.kind], [positive()]
        )
        return compare(used, spec.operator, spec.value, spec.value2)


class FlyTypeRequirement:
    kinds = ('count_fly_type',)

    def evaluate(self, spec: RequirementSpec, ctx: EvaluationContext) -> bool:
        fly_type = extra_text(spec, 'type', 'fly_type')
        if fly_type is None:
            return False
        row = ctx.activity.aggregate_many(
            ctx.user_id, [sum_of('caught', Where('fly_type', '=', fly_type))]
        )
        return at_least(row.get('caught'), minimum(spec))


class NewSpotSuccessRequirement:
    '''Locations where the first day there produced a fish.'''

    kinds = ('new_spot_success',)

    def evaluate(self, spec: RequirementSpec, ctx: EvaluationContext) -> bool:
        records = ctx.activity.records_for_user(ctx.user_id)
        spots = {r.user_location_id for r in first_visits(records) if r.quantity > 0}
        return at_least(len(spots), spec.value or 1)


registry.register(DailyVarietyRequirement())
registry.register(GearVarietyRequirement())
registry.register(FlyTypeRequirement())
registry.register(NewSpotSuccessRequirement())
