from __future__ import annotations

from typing import Any, Sequence

from catchbadges.repositories.query import Aggregate, Where, distinct_of


class ActivityQueriesMixin:
    '''Queries that reduce to grouped_many / aggregate_many.

    Implementations provide aggregate_many and grouped_many; these helpers
    reuse them so both backends agree on the derived answers.
    '''

    def aggregate_many(self, user_id: int, aggregates: Sequence[Aggregate]) -> dict:
        raise NotImplementedError

    def grouped_many(
        self,
        user_id: int,
        group_by: str,
        aggregates: Sequence[Aggregate],
        where: Sequence[Where] = (),
    ) -> dict:
        raise NotImplementedError

    def distinct_count(
        self, user_id: int, column: str, where: Sequence[Where] = ()
    ) -> int:
        row = self.aggregate_many(user_id, [distinct_of('n', column, *where)])
        return int(row.get('n') or 0)

    def distinct_values(
        self, user_id: int, column: str, where: Sequence[Where] = ()
    ) -> set[Any]:
        return set(self.grouped_many(user_id, column, [], where))
