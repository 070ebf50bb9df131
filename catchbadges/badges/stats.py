from __future__ import annotations

import logging
from datetime import date
from types import MappingProxyType
from typing import Callable

from catchbadges.badges.interface import ActivityRepository, StatisticsMap, UserDirectory
from catchbadges.badges.streaks import current_streak, longest_run
from catchbadges.repositories.query import (
    Aggregate,
    Where,
    count_of,
    distinct_of,
    max_of,
    one_of,
    sum_of,
)
from catchbadges.utils.constants import (
    DAY_SEGMENTS,
    EARLY_HOUR_CUTOFF,
    FRESHWATER,
    GOLDEN_HOURS,
    MOON_HORIZON,
    MOON_PHASE_BUCKETS,
    NIGHT_HOUR_CUTOFF,
    OVER_30_SIZE,
    OVER_40_SIZE,
    SALTWATER,
    SALTWATER_SIZE_TIERS,
    SALTWATER_TROPHY_SIZE,
    SEASON_MONTHS,
    TROPHY_SIZE,
)
from catchbadges.utils.helper import normalize_number, to_date
from catchbadges.utils.tracing import trace_span

logger = logging.getLogger(__name__)

FRESH = Where('water_type', '=', FRESHWATER)
SALT = Where('water_type', '=', SALTWATER)
SKUNK = Where('quantity', '=', 0)


def at_least(size: int) -> Where:
    return Where('max_size', '>=', size)


TOTALS = (
    sum_of('total_caught'),
    count_of('log_count'),
    max_of('max_size', 'max_size'),
    max_of('max_weight', 'max_weight'),
    distinct_of('species_count', 'species'),
    distinct_of('location_count', 'location'),
    distinct_of('rod_count', 'rod'),
    distinct_of('fly_count', 'fly'),
    count_of('notes_count', Where('notes', 'not_empty')),
    count_of('skunk_count', SKUNK),
    count_of('weight_logged_count', Where('max_weight', '>', 0)),
    count_of('trophy_count', at_least(TROPHY_SIZE)),
    count_of('over_30_count', at_least(OVER_30_SIZE)),
    count_of('over_40_count', at_least(OVER_40_SIZE)),
)

WATER_TYPES = (
    max_of('freshwater_max_size', 'max_size', FRESH),
    count_of('freshwater_trophy_count', FRESH, at_least(TROPHY_SIZE)),
    count_of('freshwater_over_30_count', FRESH, at_least(OVER_30_SIZE)),
    count_of('freshwater_over_40_count', FRESH, at_least(OVER_40_SIZE)),
    max_of('saltwater_max_size', 'max_size', SALT),
    count_of('saltwater_trophy_count', SALT, at_least(SALTWATER_TROPHY_SIZE)),
) + tuple(
    count_of(f'saltwater_over_{size}_count', SALT, at_least(size))
    for size in SALTWATER_SIZE_TIERS
)

TIME_OF_DAY = (
    sum_of('early_morning_catches', Where('hour', '<', EARLY_HOUR_CUTOFF)),
    sum_of('night_catches', Where('hour', '>=', NIGHT_HOUR_CUTOFF)),
    sum_of('golden_hour_catches', one_of('hour', GOLDEN_HOURS)),
) + tuple(
    sum_of(f'{segment}_catches', one_of('time_of_day', labels))
    for segment, labels in DAY_SEGMENTS.items()
)

LUNAR = (
    tuple(
        sum_of(f'{bucket}_moon_catches', one_of('moon_phase', phases))
        for bucket, phases in MOON_PHASE_BUCKETS.items()
    )
    + tuple(
        count_of(f'_{bucket}_moon_logs', one_of('moon_phase', phases))
        for bucket, phases in MOON_PHASE_BUCKETS.items()
    )
    + tuple(
        sum_of(f'moon_{side}_horizon_catches', one_of('moon_position', positions))
        for side, positions in MOON_HORIZON.items()
    )
    + (distinct_of('moon_positions_fished', 'moon_position'),)
)

SEASONS = (
    tuple(
        sum_of(f'{season}_catches', one_of('month', months))
        for season, months in SEASON_MONTHS.items()
    )
    + tuple(
        count_of(f'_{season}_logs', one_of('month', months))
        for season, months in SEASON_MONTHS.items()
    )
    + (distinct_of('months_fished', 'month'),)
)

DAILY = (
    sum_of('total'),
    distinct_of('species', 'species'),
    count_of('trophies', at_least(TROPHY_SIZE)),
    count_of('freshwater_trophies', FRESH, at_least(TROPHY_SIZE)),
    count_of('saltwater_trophies', SALT, at_least(SALTWATER_TROPHY_SIZE)),
)

# statistic -> (group by, per-group aggregate)
PER_ENTITY: dict[str, tuple[str, Aggregate]] = {
    'location_max_visits': ('location', count_of('visits')),
    'species_max_count': ('species', sum_of('total')),
    'rod_max_catches': ('rod', sum_of('total')),
    'fly_max_catches': ('fly', sum_of('total')),
}


class StatsAggregator:
    '''Builds the statistics map for one user.

    A fixed number of queries per user: one per category, one grouped by
    date (daily maxima and streaks), one per entity maximum and the profile.
    The result is read-only.
    '''

    def __init__(
        self,
        activity: ActivityRepository,
        users: UserDirectory,
        clock: Callable[[], date],
    ) -> None:
        self.activity = activity
        self.users = users
        self.clock = clock

    def compute(self, user_id: int) -> StatisticsMap:
        with trace_span('badges.compute_stats', {'user_id': user_id}):
            stats: dict[str, int | float] = {}
            for aggregates in (TOTALS, WATER_TYPES, TIME_OF_DAY, LUNAR, SEASONS):
                stats.update(self.activity.aggregate_many(user_id, aggregates))

            stats['moon_phases_fished'] = sum(
                1 for bucket in MOON_PHASE_BUCKETS if stats.pop(f'_{bucket}_moon_logs') > 0
            )
            stats['seasons_fished'] = sum(
                1 for season in SEASON_MONTHS if stats.pop(f'_{season}_logs') > 0
            )

            stats.update(self._daily(user_id))

            for key, (group_by, aggregate) in PER_ENTITY.items():
                stats[key] = self.activity.max_grouped_by(user_id, group_by, aggregate)

            stats['account_age'] = self._account_age(user_id)

            frozen = {k: normalize_number(v) for k, v in stats.items()}
            logger.debug(f'Computed {len(frozen)} statistics for user {user_id}')
            return MappingProxyType(frozen)

    def _daily(self, user_id: int) -> dict[str, int | float]:
        days = self.activity.grouped_many(user_id, 'date', DAILY)

        def best(name: str) -> int | float:
            return max((d[name] for d in days.values()), default=0)

        fished = [to_date(day) for day in days]
        catch_days = [to_date(day) for day, d in days.items() if d['total'] > 0]
        return {
            'daily_max': best('total'),
            'daily_species_max': best('species'),
            'max_daily_trophies': best('trophies'),
            'freshwater_max_daily_trophies': best('freshwater_trophies'),
            'saltwater_max_daily_trophies': best('saltwater_trophies'),
            'longest_streak': longest_run(fished),
            'catch_streak': longest_run(catch_days),
            'no_skunk_streak': longest_run(catch_days),
            'current_streak': current_streak(fished, self.clock()),
        }

    def _account_age(self, user_id: int) -> int:
        profile = self.users.profile(user_id)
        joined = to_date(profile.created_at) if profile else None
        if joined is None:
            return 0
        return max(0, (self.clock() - joined).days)
