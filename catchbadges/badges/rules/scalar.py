from __future__ import annotations

from catchbadges.badges.interface import EvaluationContext
from catchbadges.badges.registry import registry
from catchbadges.badges.rules.common import StatRequirement, at_least, stat_key
from catchbadges.models.badge import RequirementSpec
from catchbadges.utils.constants import SCALAR_KINDS, SIZE_TIER_STATS
from catchbadges.utils.helper import compare


class StatThresholdRequirement(StatRequirement):
    '''count, max, streaks, account age, per-entity and single-day maxima.

    Also the fallback for kinds nobody registered.
    '''

    kinds = SCALAR_KINDS
    default_fields = {
        'streak': 'longest_streak',
        'catch_streak': 'catch_streak',
        'no_skunk': 'no_skunk_streak',
        'account_age': 'account_age',
        'location_visits': 'location_max_visits',
        'species_max': 'species_max_count',
        'rod_max': 'rod_max_catches',
        'fly_max': 'fly_max_catches',
        'daily_max': 'daily_max',
        'daily_species': 'daily_species_max',
    }

    def evaluate(self, spec: RequirementSpec, ctx: EvaluationContext) -> bool:
        if spec.kind == 'exists':
            key = self.target(spec)
            return key is not None and at_least(ctx.stat(key), spec.value or 1)
        return super().evaluate(spec, ctx)


class PartitionedCountRequirement(StatRequirement):
    '''count_where: the field already names the partition.

    With value2 the badge reads "value2 logs with field >= value", so a bare
    size field is mapped to the size-tier count for `value`.
    '''

    kinds = ('count_where',)

    def evaluate(self, spec: RequirementSpec, ctx: EvaluationContext) -> bool:
        if not spec.field:
            return False
        tiers = SIZE_TIER_STATS.get(spec.field)
        if tiers is not None:
            if spec.value is None:
                return False
            key = tiers.get(int(spec.value))
            if key is None:
                return False
            return at_least(ctx.stat(key), spec.value2 if spec.value2 is not None else 1)
        key = stat_key(spec.field)
        if spec.value2 is not None:
            return at_least(ctx.stat(key), spec.value2)
        return compare(ctx.stat(key), spec.operator, spec.value)


fallback = StatThresholdRequirement()
registry.register(fallback)
registry.register_fallback(fallback)
registry.register(PartitionedCountRequirement())
