from __future__ import annotations

from catchbadges.badges.interface import EvaluationContext
from catchbadges.badges.registry import registry
from catchbadges.models.badge import RequirementSpec
from catchbadges.repositories.query import Where, max_of
from catchbadges.utils.helper import compare

WITH_FRIENDS = Where('friend_count', '>', 0)
SOLO = Where('friend_count', '=', 0)


class SocialRequirement:
    '''Companions tagged on logs, plus follower relationships.'''

    kinds = (
        'friend_days',
        'solo_days',
        'max_friends',
        'friend_count',
        'followers',
        'following',
    )

    def measure(self, kind: str, ctx: EvaluationContext) -> int | float:
        if kind == 'friend_days':
            return ctx.activity.distinct_count(ctx.user_id, 'date', [WITH_FRIENDS])
        if kind == 'solo_days':
            return ctx.activity.distinct_count(ctx.user_id, 'date', [SOLO])
        if kind == 'max_friends':
            row = ctx.activity.aggregate_many(
                ctx.user_id, [max_of('most', 'friend_count')]
            )
            return row.get('most', 0)
        if kind == 'friend_count':
            return ctx.activity.companion_count(ctx.user_id)
        if kind == 'followers':
            return ctx.users.follower_count(ctx.user_id)
        return ctx.users.following_count(ctx.user_id)

    def evaluate(self, spec: RequirementSpec, ctx: EvaluationContext) -> bool:
        return compare(self.measure(spec.kind, ctx), spec.operator, spec.value, spec.value2)


registry.register(SocialRequirement())
