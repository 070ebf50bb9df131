from __future__ import annotations

from typing import Any

from catchbadges.badges.interface import EvaluationContext
from catchbadges.models.badge import RequirementSpec
from catchbadges.utils.constants import STAT_FIELD_ALIASES
from catchbadges.utils.helper import compare


def stat_key(field: str | None) -> str | None:
    if not field:
        return None
    return STAT_FIELD_ALIASES.get(field, field)


def minimum(spec: RequirementSpec, default: int = 1) -> int | float:
    '''Count threshold: value2 when given, then value, then `default`.'''
    if spec.value2 is not None:
        return spec.value2
    if spec.value is not None:
        return spec.value
    return default


def extra_text(spec: RequirementSpec, *keys: str) -> str | None:
    '''First non-empty string among the extra keys, lowercased.'''
    for key in keys:
        value = spec.extra.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip().lower()
    return None


def at_least(actual: Any, threshold: Any) -> bool:
    return compare(actual, '>=', threshold)


class StatRequirement:
    '''Compares one statistic against the badge threshold.'''

    kinds: tuple[str, ...] = ()

    # kind -> statistic used when the badge names no field
    default_fields: dict[str, str] = {}

    def target(self, spec: RequirementSpec) -> str | None:
        return stat_key(spec.field) or self.default_fields.get(spec.kind)

    def evaluate(self, spec: RequirementSpec, ctx: EvaluationContext) -> bool:
        key = self.target(spec)
        if key is None:
            return False
        return compare(ctx.stat(key), spec.operator, spec.value, spec.value2)
