from __future__ import annotations

from catchbadges.badges.interface import EvaluationContext
from catchbadges.badges.registry import registry
from catchbadges.badges.rules.common import at_least, extra_text, minimum
from catchbadges.models.badge import RequirementSpec
from catchbadges.repositories.query import one_of, positive, sum_of
from catchbadges.utils.constants import MOON_PHASE_BUCKETS, MOON_POSITIONS, SOLUNAR_PERIODS
from catchbadges.utils.helper import compare, moon_bucket


def variety(actual, spec: RequirementSpec, everything: int) -> bool:
    # "all" means every bucket, and "=" stays exact
    if spec.operator == 'all':
        return compare(actual, '=', everything)
    return compare(actual, spec.operator, spec.value)


class MoonPhaseRequirement:
    kinds = ('moon_phase', 'count_moon')

    def evaluate(self, spec: RequirementSpec, ctx: EvaluationContext) -> bool:
        bucket = moon_bucket(extra_text(spec, 'phase', 'moon_phase'))
        if bucket is None:
            return False
        caught = ctx.stat(f'{bucket}_moon_catches')
        if spec.kind == 'moon_phase':
            return at_least(caught, 1)
        return at_least(caught, minimum(spec))


class MoonVarietyRequirement:
    kinds = ('moon_variety',)

    def evaluate(self, spec: RequirementSpec, ctx: EvaluationContext) -> bool:
        return variety(ctx.stat('moon_phases_fished'), spec, len(MOON_PHASE_BUCKETS))


class MoonPositionVarietyRequirement:
    kinds = ('moon_position_variety',)

    def evaluate(self, spec: RequirementSpec, ctx: EvaluationContext) -> bool:
        return variety(ctx.stat('moon_positions_fished'), spec, len(MOON_POSITIONS))


class SolunarRequirement:
    '''Catches while the moon sat in a solunar period (major, minor, above, below).'''

    kinds = ('solunar', 'count_solunar')

    def period(self, spec: RequirementSpec) -> tuple[str, ...] | None:
        name = extra_text(spec, 'period', 'solunar') or (spec.operator or '').lower()
        return SOLUNAR_PERIODS.get(name)

    def evaluate(self, spec: RequirementSpec, ctx: EvaluationContext) -> bool:
        positions = self.period(spec)
        if positions is None:
            return False
        in_period = one_of('moon_position', positions)
        if spec.kind == 'solunar':
            return ctx.activity.exists_matching(ctx.user_id, [in_period, positive()])
        row = ctx.activity.aggregate_many(ctx.user_id, [sum_of('caught', in_period)])
        return at_least(row.get('caught'), minimum(spec))


registry.register(MoonPhaseRequirement())
registry.register(MoonVarietyRequirement())
registry.register(MoonPositionVarietyRequirement())
registry.register(SolunarRequirement())
