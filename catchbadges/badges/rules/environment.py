from __future__ import annotations

from catchbadges.badges.interface import EvaluationContext
from catchbadges.badges.registry import registry
from catchbadges.badges.rules.common import at_least, extra_text
from catchbadges.models.badge import RequirementSpec
from catchbadges.repositories.query import Where, one_of, positive, sum_of
from catchbadges.utils.constants import (
    DIRECTIONAL_CATEGORIES,
    ENVIRONMENT_KINDS,
    ENVIRONMENT_VOCABULARIES,
)


def condition(dimension: str, category: str | None) -> Where | None:
    '''Filter for a category label, or None when the label is unknown.'''
    if category is None:
        return None
    entry = ENVIRONMENT_VOCABULARIES.get(dimension, {}).get(category)
    if entry is None:
        return None
    column, raw_values = entry
    return one_of(column, raw_values)


class EnvironmentRequirement:
    '''Weather and water conditions, by category label.

    "weather" checks for any catch in the category, "count_weather" sums the
    fish caught in it. The label comes from extra[dimension] (or
    extra["category"]); wind and pressure badges may instead give a
    direction through the operator, e.g. ">=" for windy.
    '''

    kinds = ENVIRONMENT_KINDS

    def resolve(self, spec: RequirementSpec) -> tuple[Where | None, int | float]:
        counted = spec.kind.startswith('count_')
        dimension = spec.kind[len('count_'):] if counted else spec.kind

        category = extra_text(spec, dimension, 'category')
        if category is not None:
            needed = spec.value2 if spec.value2 is not None else spec.value
        else:
            category = DIRECTIONAL_CATEGORIES.get(dimension, {}).get(spec.operator or '')
            # value is the measurement here, only value2 can be a count
            needed = spec.value2
        if not counted or needed is None:
            needed = 1
        return condition(dimension, category), needed

    def evaluate(self, spec: RequirementSpec, ctx: EvaluationContext) -> bool:
        matching, needed = self.resolve(spec)
        if matching is None:
            return False
        if not spec.kind.startswith('count_'):
            return ctx.activity.exists_matching(ctx.user_id, [matching, positive()])
        row = ctx.activity.aggregate_many(ctx.user_id, [sum_of('caught', matching)])
        return at_least(row.get('caught'), needed)


registry.register(EnvironmentRequirement())
