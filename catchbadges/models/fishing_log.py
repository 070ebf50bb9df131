from __future__ import annotations

from typing import Any, Hashable, Sequence

from catchbadges.database.db_manager import DBManager
from catchbadges.models.activity_record import ActivityRecord
from catchbadges.models.base import BaseModel
from catchbadges.repositories.base import ActivityQueriesMixin
from catchbadges.repositories.query import (
    Aggregate,
    Where,
    compile_where,
    lookup_field,
)
from catchbadges.utils.helper import normalize_number

LOGS_FROM = '''
FROM fishing_logs fl
LEFT JOIN user_fish uf ON uf.id = fl.user_fish_id
LEFT JOIN user_flies ufl ON ufl.id = fl.user_fly_id
LEFT JOIN user_weather uw ON uw.id = fl.user_weather_id
LEFT JOIN user_water_conditions uwc ON uwc.id = fl.user_water_condition_id
WHERE fl.user_id = %s
'''

RECORD_COLUMNS = '''
fl.id, fl.user_id, fl.date, fl.time, fl.time_of_day, fl.quantity,
fl.max_size, fl.max_weight, fl.user_fish_id, uf.water_type,
fl.user_location_id, fl.user_rod_id, fl.user_fly_id, ufl.type AS fly_type,
fl.moon_phase, fl.moon_altitude, fl.moon_position, fl.notes,
uw.temperature AS air_temperature, uw.cloud, uw.wind, uw.precipitation,
uw.barometric_pressure, uwc.temperature AS water_temperature, uwc.clarity,
uwc.level AS water_level, uwc.speed AS water_speed, uwc.surface_condition,
uwc.tide,
ARRAY(
    SELECT flf.user_friend_id FROM fishing_log_user_friend flf
    WHERE flf.fishing_log_id = fl.id
) AS friend_ids
'''


def _select_list(aggregates: Sequence[Aggregate]) -> tuple[str, list[Any]]:
    parts: list[str] = []
    params: list[Any] = []
    for agg in aggregates:
        sql, agg_params = agg.compile()
        parts.append(f'{sql} AS "{agg.name}"')
        params.extend(agg_params)
    return ', '.join(parts), params


def _numbers(row: dict[str, Any], aggregates: Sequence[Aggregate]) -> dict[str, Any]:
    return {agg.name: normalize_number(row.get(agg.name)) for agg in aggregates}


class FishingLog(ActivityQueriesMixin, BaseModel):
    '''ActivityRepository over the fishing_logs table and its lookups.

    Every method is one round trip; aggregates are folded into a single
    SELECT with FILTER clauses.
    '''

    table = 'fishing_logs'

    def records_for_user(self, user_id: int) -> list[ActivityRecord]:
        with DBManager() as db:
            rows = db.fetchall(
                f'SELECT {RECORD_COLUMNS} {LOGS_FROM} '
                'ORDER BY fl.date, fl.time NULLS LAST, fl.id',
                (user_id,),
            )
        return [ActivityRecord.from_row(row) for row in rows]

    def aggregate_many(
        self, user_id: int, aggregates: Sequence[Aggregate]
    ) -> dict[str, int | float]:
        if not aggregates:
            return {}
        select_sql, params = _select_list(aggregates)
        with DBManager() as db:
            row = db.fetchone(f'SELECT {select_sql} {LOGS_FROM}', (*params, user_id))
        return _numbers(row or {}, aggregates)

    def _grouped_sql(
        self,
        group_by: str,
        aggregates: Sequence[Aggregate],
        where: Sequence[Where],
    ) -> tuple[str, list[Any], list[Any]]:
        key = lookup_field(group_by).sql
        select_sql, select_params = _select_list(aggregates)
        where_sql, where_params = compile_where(where)
        columns = f'{key} AS group_key' + (f', {select_sql}' if select_sql else '')
        sql = (
            f'SELECT {columns} {LOGS_FROM} '
            f'AND {key} IS NOT NULL AND {where_sql} GROUP BY {key}'
        )
        return sql, select_params, where_params

    def grouped_many(
        self,
        user_id: int,
        group_by: str,
        aggregates: Sequence[Aggregate],
        where: Sequence[Where] = (),
    ) -> dict[Hashable, dict[str, int | float]]:
        sql, select_params, where_params = self._grouped_sql(group_by, aggregates, where)
        with DBManager() as db:
            rows = db.fetchall(sql, (*select_params, user_id, *where_params))
        return {row['group_key']: _numbers(row, aggregates) for row in rows}

    def max_grouped_by(
        self,
        user_id: int,
        group_by: str,
        aggregate: Aggregate,
        where: Sequence[Where] = (),
    ) -> int | float:
        sql, select_params, where_params = self._grouped_sql(group_by, [aggregate], where)
        with DBManager() as db:
            row = db.fetchone(
                f'SELECT COALESCE(MAX(g."{aggregate.name}"), 0) AS best FROM ({sql}) g',
                (*select_params, user_id, *where_params),
            )
        return normalize_number(row['best']) if row else 0

    def exists_matching(self, user_id: int, where: Sequence[Where]) -> bool:
        where_sql, params = compile_where(where)
        with DBManager() as db:
            row = db.fetchone(
                f'SELECT EXISTS (SELECT 1 {LOGS_FROM} AND {where_sql}) AS found',
                (user_id, *params),
            )
        return bool(row and row['found'])

    def companion_count(self, user_id: int) -> int:
        with DBManager() as db:
            row = db.fetchone(
                '''
                SELECT COUNT(DISTINCT flf.user_friend_id) AS cnt
                FROM fishing_log_user_friend flf
                JOIN fishing_logs fl ON fl.id = flf.fishing_log_id
                WHERE fl.user_id = %s
                ''',
                (user_id,),
            )
        return int(row['cnt']) if row else 0
