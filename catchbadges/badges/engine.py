from __future__ import annotations

import logging
from datetime import date
from typing import Callable, Iterable

from catchbadges.badges.errors import BadgeEvaluationError
from catchbadges.badges.evaluator import RequirementEvaluator
from catchbadges.badges.interface import (
    ActivityRepository,
    AwardStore,
    StatisticsMap,
    UserDirectory,
)
from catchbadges.badges.results import BadgeProgress, SyncResult
from catchbadges.badges.rules.common import stat_key
from catchbadges.badges.stats import StatsAggregator
from catchbadges.models.badge import BadgeCatalog, BadgeDefinition
from catchbadges.utils.env import badge_timezone
from catchbadges.utils.helper import progress_percentage, today
from catchbadges.utils.tracing import add_span_metadata, trace_span

logger = logging.getLogger(__name__)


class BadgeLifecycleManager:
    '''Moves (user, badge) pairs between unearned and earned.

    Every pass computes the statistics once, reads the earned set once and
    evaluates each active badge once against that snapshot. All decisions
    are made before the first write.
    '''

    def __init__(
        self,
        catalog: BadgeCatalog,
        activity: ActivityRepository,
        users: UserDirectory,
        awards: AwardStore,
        clock: Callable[[], date] | None = None,
    ) -> None:
        self.catalog = catalog
        self.awards = awards
        clock = clock or (lambda: today(badge_timezone()))
        self.aggregator = StatsAggregator(activity, users, clock)
        self.evaluator = RequirementEvaluator(activity, users, clock)

    def compute_stats(self, user_id: int) -> StatisticsMap:
        return self.aggregator.compute(user_id)

    def _satisfied(
        self,
        user_id: int,
        stats: StatisticsMap,
        badges: Iterable[BadgeDefinition],
    ) -> dict[int, bool]:
        ctx = self.evaluator.context(user_id, stats)
        decisions: dict[int, bool] = {}
        for badge in badges:
            with trace_span(
                'badges.evaluate', {'badge': badge.slug, 'kind': badge.requirement.kind}
            ):
                decisions[badge.id] = self.evaluator.check(badge.requirement, ctx, badge.slug)
        return decisions

    def _run(self, user_id: int, award: bool, revoke: bool) -> SyncResult:
        try:
            stats = self.compute_stats(user_id)
            earned_ids = self.awards.earned_badge_ids(user_id)
            candidates = [
                b
                for b in self.catalog
                if (award and b.id not in earned_ids) or (revoke and b.id in earned_ids)
            ]
            decisions = self._satisfied(user_id, stats, candidates)

            to_award = tuple(
                b for b in candidates if b.id not in earned_ids and decisions[b.id]
            )
            # Earned badges that left the active catalog are not touched
            to_revoke = tuple(
                b for b in candidates if b.id in earned_ids and not decisions[b.id]
            )

            if to_award or to_revoke:
                self.awards.apply(
                    user_id,
                    [b.id for b in to_award],
                    [b.id for b in to_revoke],
                    stats,
                )
        except BadgeEvaluationError:
            raise
        except Exception as e:
            logger.exception(f'Badge pass failed for user {user_id}')
            raise BadgeEvaluationError(user_id, str(e)) from e

        add_span_metadata('earned', len(to_award))
        add_span_metadata('revoked', len(to_revoke))
        if to_award or to_revoke:
            logger.info(
                f'User {user_id}: earned {[b.slug for b in to_award]}, '
                f'revoked {[b.slug for b in to_revoke]}'
            )
        return SyncResult(user_id, to_award, to_revoke, stats)

    def award_eligible(self, user_id: int) -> list[BadgeDefinition]:
        with trace_span('badges.award_eligible', {'user_id': user_id}):
            return list(self._run(user_id, award=True, revoke=False).earned)

    def revoke_ineligible(self, user_id: int) -> list[BadgeDefinition]:
        with trace_span('badges.revoke_ineligible', {'user_id': user_id}):
            return list(self._run(user_id, award=False, revoke=True).revoked)

    def sync(self, user_id: int) -> SyncResult:
        with trace_span('badges.sync', {'user_id': user_id}):
            return self._run(user_id, award=True, revoke=True)

    def progress(
        self,
        user_id: int,
        badge: BadgeDefinition,
        stats: StatisticsMap | None = None,
        earned_ids: set[int] | None = None,
    ) -> BadgeProgress:
        '''How close the user is to a badge. Pass `stats` when showing many.'''
        if stats is None:
            stats = self.compute_stats(user_id)
        if earned_ids is None:
            earned_ids = self.awards.earned_badge_ids(user_id)
        spec = badge.requirement
        key = stat_key(spec.field)
        current = (stats.get(key) if key else None) or 0
        return BadgeProgress(
            badge=badge,
            current=current,
            required=spec.value,
            percentage=progress_percentage(current, spec.value),
            earned=badge.id in earned_ids,
        )

    def progress_all(self, user_id: int) -> list[BadgeProgress]:
        with trace_span('badges.progress_all', {'user_id': user_id}):
            stats = self.compute_stats(user_id)
            earned_ids = self.awards.earned_badge_ids(user_id)
            return [self.progress(user_id, b, stats, earned_ids) for b in self.catalog]
