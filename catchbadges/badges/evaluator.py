from __future__ import annotations

import logging
from datetime import date
from typing import Callable

# Importing the rule modules registers their requirement kinds
from catchbadges.badges.rules import (  # noqa: F401
    challenge,
    combo,
    consistency,
    environment,
    lunar,
    scalar,
    seasonal,
    social,
    time_window,
    variety,
)
from catchbadges.badges.interface import (
    ActivityRepository,
    EvaluationContext,
    StatisticsMap,
    UserDirectory,
)
from catchbadges.badges.registry import RequirementRegistry, registry
from catchbadges.models.badge import RequirementSpec

logger = logging.getLogger(__name__)

# Bad badge data surfaces as one of these; treat it as "not earned"
MALFORMED_DATA_ERRORS = (KeyError, TypeError, ValueError, ArithmeticError, AttributeError)


class RequirementEvaluator:
    def __init__(
        self,
        activity: ActivityRepository,
        users: UserDirectory,
        clock: Callable[[], date],
        requirements: RequirementRegistry = registry,
    ) -> None:
        self.activity = activity
        self.users = users
        self.clock = clock
        self.requirements = requirements

    def context(self, user_id: int, stats: StatisticsMap) -> EvaluationContext:
        return EvaluationContext(
            user_id=user_id,
            stats=stats,
            activity=self.activity,
            users=self.users,
            today=self.clock(),
        )

    def is_satisfied(
        self, spec: RequirementSpec, stats: StatisticsMap, user_id: int
    ) -> bool:
        return self.check(spec, self.context(user_id, stats))

    def check(self, spec: RequirementSpec, ctx: EvaluationContext, label: str = '') -> bool:
        '''Decide one requirement. Never raises for bad badge data.

        Repository errors propagate so a pass never runs on partial data.
        '''
        requirement = self.requirements.resolve(spec.kind)
        try:
            return bool(requirement.evaluate(spec, ctx))
        except MALFORMED_DATA_ERRORS as e:
            logger.debug(
                f'Requirement {label or spec.kind!r} not satisfiable '
                f'for user {ctx.user_id}: {e!r}'
            )
            return False
