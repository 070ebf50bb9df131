from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Iterable

from catchbadges.badges.engine import BadgeLifecycleManager
from catchbadges.badges.errors import BadgeEvaluationError
from catchbadges.badges.results import SyncResult
from catchbadges.models.badge import Badge, BadgeCatalog
from catchbadges.models.fishing_log import FishingLog
from catchbadges.models.user import User
from catchbadges.models.user_badge import UserBadge
from catchbadges.utils.constants import (
    BADGE_SYNC_BACKOFF_SECONDS,
    BADGE_SYNC_MAX_ATTEMPTS,
)
from catchbadges.utils.env import int_setting
from catchbadges.utils.tracing import trace_span

logger = logging.getLogger(__name__)


def build_manager(catalog: BadgeCatalog | None = None) -> BadgeLifecycleManager:
    '''Lifecycle manager wired to Postgres.'''
    return BadgeLifecycleManager(
        catalog if catalog is not None else Badge.load_catalog(),
        FishingLog(),
        User(),
        UserBadge(),
    )


class CheckUserBadgesJob:
    '''Sync one user's badges, retrying when the pass cannot complete.'''

    def __init__(
        self,
        user_id: int,
        manager: BadgeLifecycleManager,
        max_attempts: int | None = None,
        backoff_seconds: int | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.user_id = user_id
        self.manager = manager
        self.max_attempts = max(
            1,
            max_attempts
            if max_attempts is not None
            else int_setting('BADGE_SYNC_MAX_ATTEMPTS', BADGE_SYNC_MAX_ATTEMPTS),
        )
        self.backoff_seconds = (
            backoff_seconds
            if backoff_seconds is not None
            else int_setting('BADGE_SYNC_BACKOFF_SECONDS', BADGE_SYNC_BACKOFF_SECONDS)
        )
        self._sleep = sleep

    def handle(self) -> SyncResult:
        attempt = 1
        while True:
            try:
                result = self.manager.sync(self.user_id)
            except BadgeEvaluationError as e:
                if attempt >= self.max_attempts:
                    logger.error(
                        f'Badge check for user {self.user_id} failed after '
                        f'{attempt} attempts: {e}'
                    )
                    raise
                logger.warning(
                    f'Badge check for user {self.user_id} failed '
                    f'(attempt {attempt}/{self.max_attempts}), '
                    f'retrying in {self.backoff_seconds}s: {e}'
                )
                self._sleep(self.backoff_seconds)
                attempt += 1
                continue

            logger.info(
                f'Badge check completed for user {self.user_id}: '
                f'{len(result.earned)} earned, {len(result.revoked)} revoked'
            )
            return result


@dataclass
class ResyncSummary:
    users: int = 0
    earned: int = 0
    revoked: int = 0
    failed: list[int] = field(default_factory=list)


def resync_all_users(
    manager: BadgeLifecycleManager,
    user_ids: Iterable[int] | None = None,
    **job_options,
) -> ResyncSummary:
    '''Nightly re-sync. One user at a time; a failing user does not stop the run.'''
    summary = ResyncSummary()
    ids = list(user_ids) if user_ids is not None else User.all_ids()
    with trace_span('badges.resync_all', {'users': len(ids)}):
        for user_id in ids:
            summary.users += 1
            try:
                result = CheckUserBadgesJob(user_id, manager, **job_options).handle()
            except BadgeEvaluationError:
                summary.failed.append(user_id)
                continue
            summary.earned += len(result.earned)
            summary.revoked += len(result.revoked)
    logger.info(
        f'Re-synced {summary.users} users: {summary.earned} earned, '
        f'{summary.revoked} revoked, {len(summary.failed)} failed'
    )
    return summary
