'''In-memory collaborators for the badge engine.

Used for tests and for evaluating a catalog against a history that is already
loaded (e.g. a preview before saving a log).
'''

from __future__ import annotations

from collections import defaultdict
from datetime import datetime, timezone
from typing import Any, Hashable, Iterable, Mapping, Sequence

from catchbadges.badges.interface import UserProfile
from catchbadges.models.activity_record import ActivityRecord
from catchbadges.repositories.base import ActivityQueriesMixin
from catchbadges.repositories.query import Aggregate, Where, lookup_field, matches_all


class InMemoryActivityRepository(ActivityQueriesMixin):
    def __init__(self, records: Iterable[ActivityRecord] = ()) -> None:
        self._records: list[ActivityRecord] = list(records)
        self.query_count = 0

    def add(self, record: ActivityRecord) -> None:
        self._records.append(record)

    def remove(self, record_id: int) -> None:
        self._records = [r for r in self._records if r.id != record_id]

    def records_for_user(self, user_id: int) -> list[ActivityRecord]:
        self.query_count += 1
        return self._for_user(user_id)

    def _for_user(self, user_id: int) -> list[ActivityRecord]:
        mine = [r for r in self._records if r.user_id == user_id]
        return sorted(mine, key=lambda r: (r.date, r.time is None, r.time or 0, r.id))

    def aggregate_many(
        self, user_id: int, aggregates: Sequence[Aggregate]
    ) -> dict[str, int | float]:
        self.query_count += 1
        records = self._for_user(user_id)
        return {agg.name: agg.evaluate(records) for agg in aggregates}

    def grouped_many(
        self,
        user_id: int,
        group_by: str,
        aggregates: Sequence[Aggregate],
        where: Sequence[Where] = (),
    ) -> dict[Hashable, dict[str, int | float]]:
        self.query_count += 1
        read = lookup_field(group_by).read
        groups: dict[Hashable, list[ActivityRecord]] = defaultdict(list)
        for record in self._for_user(user_id):
            if not matches_all(where, record):
                continue
            key = read(record)
            if key is not None:
                groups[key].append(record)
        return {
            key: {agg.name: agg.evaluate(members) for agg in aggregates}
            for key, members in groups.items()
        }

    def max_grouped_by(
        self,
        user_id: int,
        group_by: str,
        aggregate: Aggregate,
        where: Sequence[Where] = (),
    ) -> int | float:
        groups = self.grouped_many(user_id, group_by, [aggregate], where)
        return max((g[aggregate.name] for g in groups.values()), default=0)

    def exists_matching(self, user_id: int, where: Sequence[Where]) -> bool:
        self.query_count += 1
        return any(matches_all(where, r) for r in self._for_user(user_id))

    def companion_count(self, user_id: int) -> int:
        self.query_count += 1
        friends: set[int] = set()
        for record in self._for_user(user_id):
            friends.update(record.friend_ids)
        return len(friends)


class InMemoryUserDirectory:
    def __init__(
        self,
        profiles: Iterable[UserProfile] = (),
        follows: Iterable[tuple[int, int]] = (),
    ) -> None:
        self._profiles = {p.id: p for p in profiles}
        # (follower_id, following_id)
        self._follows = set(follows)

    def add_profile(self, profile: UserProfile) -> None:
        self._profiles[profile.id] = profile

    def follow(self, follower_id: int, following_id: int) -> None:
        self._follows.add((follower_id, following_id))

    def profile(self, user_id: int) -> UserProfile | None:
        return self._profiles.get(user_id)

    def follower_count(self, user_id: int) -> int:
        return sum(1 for _, following in self._follows if following == user_id)

    def following_count(self, user_id: int) -> int:
        return sum(1 for follower, _ in self._follows if follower == user_id)


class InMemoryAwardStore:
    def __init__(self) -> None:
        self.awards: dict[tuple[int, int], dict[str, Any]] = {}

    def earned_badge_ids(self, user_id: int) -> set[int]:
        return {badge_id for (uid, badge_id) in self.awards if uid == user_id}

    def apply(
        self,
        user_id: int,
        award_ids: Iterable[int],
        revoke_ids: Iterable[int],
        snapshot: Mapping[str, Any],
    ) -> None:
        # changes land on a copy that replaces the store only once complete
        awards = dict(self.awards)
        for badge_id in award_ids:
            if (user_id, badge_id) not in awards:
                awards[(user_id, badge_id)] = self._new_row(snapshot)
        for badge_id in revoke_ids:
            awards.pop((user_id, badge_id), None)
        self.awards = awards

    def _new_row(self, snapshot: Mapping[str, Any]) -> dict[str, Any]:
        return {
            'earned_at': datetime.now(timezone.utc),
            'earned_data': dict(snapshot),
            'is_notified': False,
        }
