from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Hashable, Iterable, Mapping, Protocol, Sequence, runtime_checkable

from catchbadges.models.activity_record import ActivityRecord
from catchbadges.repositories.query import Aggregate, Where

Number = int | float
StatisticsMap = Mapping[str, Number]


@dataclass(frozen=True)
class UserProfile:
    id: int
    created_at: datetime | date | None = None
    birthday: date | None = None


@runtime_checkable
class ActivityRepository(Protocol):
    '''Read-only queries over one user's fishing logs.'''

    def records_for_user(self, user_id: int) -> list[ActivityRecord]:
        '''All logs for the user, oldest first (date, time, id).'''
        ...

    def aggregate_many(
        self, user_id: int, aggregates: Sequence[Aggregate]
    ) -> dict[str, Number]:
        '''Evaluate several aggregates in one query, keyed by aggregate name.'''
        ...

    def grouped_many(
        self,
        user_id: int,
        group_by: str,
        aggregates: Sequence[Aggregate],
        where: Sequence[Where] = (),
    ) -> dict[Hashable, dict[str, Number]]:
        '''Group by a field (null groups dropped) and aggregate each group.'''
        ...

    def distinct_count(
        self, user_id: int, column: str, where: Sequence[Where] = ()
    ) -> int: ...

    def distinct_values(
        self, user_id: int, column: str, where: Sequence[Where] = ()
    ) -> set[Any]: ...

    def exists_matching(self, user_id: int, where: Sequence[Where]) -> bool: ...

    def companion_count(self, user_id: int) -> int:
        '''Distinct friends tagged across all of the user's logs.'''
        ...


@runtime_checkable
class UserDirectory(Protocol):
    def profile(self, user_id: int) -> UserProfile | None: ...

    def follower_count(self, user_id: int) -> int: ...

    def following_count(self, user_id: int) -> int: ...


@runtime_checkable
class AwardStore(Protocol):
    def earned_badge_ids(self, user_id: int) -> set[int]: ...

    def apply(
        self,
        user_id: int,
        award_ids: Iterable[int],
        revoke_ids: Iterable[int],
        snapshot: Mapping[str, Number],
    ) -> None:
        '''Insert missing awards and delete revoked ones, all or nothing.'''
        ...


@dataclass(frozen=True)
class EvaluationContext:
    '''Everything a requirement may look at during one pass for one user.'''

    user_id: int
    stats: StatisticsMap
    activity: ActivityRepository
    users: UserDirectory
    today: date

    def stat(self, key: str) -> Number | None:
        return self.stats.get(key)


@runtime_checkable
class Requirement(Protocol):
    kinds: tuple[str, ...]

    def evaluate(self, spec: Any, ctx: EvaluationContext) -> bool:
        '''
        Return True when the requirement holds. Missing or malformed data is
        False, only repository failures may raise.
        '''
        ...

