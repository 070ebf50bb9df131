from contextlib import contextmanager
from typing import Any, ClassVar, Iterable, Iterator, Sequence, cast

from psycopg.types.json import Json

from catchbadges.database.db_manager import DBManager


def _adapt(value: Any) -> Any:
    # dicts go to JSON/JSONB columns
    return Json(value) if isinstance(value, dict) else value


@contextmanager
def _session(db: DBManager | None) -> Iterator[DBManager]:
    '''Reuse the caller's transaction, or run in one of our own.'''
    if db is not None:
        yield db
        return
    with DBManager() as own:
        yield own


class BaseModel:
    table: ClassVar[str]
    pk: ClassVar[str] = 'id'

    @classmethod
    def get_many(
        cls,
        where: str = '',
        params: Iterable[Any] = (),
        order_by: str = '',
        columns: str = '*',
    ) -> list[dict[str, Any]]:
        query_parts: list[str] = [f'SELECT {columns} FROM {cls.table}']
        if where:
            query_parts.append(f'WHERE {where}')
        if order_by:
            query_parts.append(f'ORDER BY {order_by}')

        with DBManager() as db:
            rows = db.fetchall(' '.join(query_parts), tuple(params))
        return cast(list[dict[str, Any]], rows)

    @classmethod
    def count(cls, where: str = '', params: Iterable[Any] = ()) -> int:
        where_clause = f' WHERE {where}' if where else ''
        with DBManager() as db:
            row = db.fetchone(
                f'SELECT COUNT(*) AS cnt FROM {cls.table}{where_clause}', tuple(params)
            )
        return int(row['cnt']) if row and row.get('cnt') is not None else 0

    @classmethod
    def create_if_absent(
        cls,
        conflict_cols: Sequence[str],
        values: dict[str, Any],
        db: DBManager | None = None,
    ) -> bool:
        '''Insert unless a row with the same conflict columns exists.

        Returns True when a row was inserted. Pass `db` to run inside an
        open transaction.
        '''
        cols = list(values.keys())
        col_list = ', '.join(cols)
        placeholders = ', '.join(['%s'] * len(cols))
        conflict = ', '.join(conflict_cols)
        sql = (
            f'INSERT INTO {cls.table} ({col_list}) VALUES ({placeholders}) '
            f'ON CONFLICT ({conflict}) DO NOTHING RETURNING {cls.pk}'
        )
        with _session(db) as conn:
            rows = conn.fetchall(sql, tuple(_adapt(values[c]) for c in cols))
        return bool(rows)

    @classmethod
    def delete_where(
        cls, where: str, params: Iterable[Any] = (), db: DBManager | None = None
    ) -> None:
        with _session(db) as conn:
            conn.execute(f'DELETE FROM {cls.table} WHERE {where}', tuple(params))
