import logging
import os
from functools import wraps
from typing import Any, Callable, Iterable, List, Optional, TypeVar

import psycopg
from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool

T = TypeVar('T')

logger = logging.getLogger(__name__)


def require_connection(func: Callable) -> Callable:
    '''Decorator to ensure DBManager is used within a context manager.'''

    @wraps(func)
    def wrapper(self: 'DBManager', *args, **kwargs) -> Any:
        if not self._connected:
            raise RuntimeError(
                'DBManager is not in a context. Use "with DBManager() as db:"'
            )
        return func(self, *args, **kwargs)

    return wrapper


def _database_url() -> str:
    url = os.getenv('DATABASE_URL')
    if not url:
        raise RuntimeError('DATABASE_URL is not set.')
    return url


class DBManager:
    '''Postgres access for the badge engine: one transaction per context.'''

    # Shared pool across the process
    _pool: ConnectionPool | None = None

    def __init__(self) -> None:
        self._connected: bool = False
        self._conn: psycopg.Connection | None = None
        self._from_pool: bool = False

    @classmethod
    def init_pool(
        cls,
        db_url: Optional[str] = None,
        min_size: int = 1,
        max_size: int = 10,
    ) -> None:
        '''Initialize the process-wide pool. Safe to call more than once.'''
        if cls._pool is not None:
            return
        cls._pool = ConnectionPool(
            conninfo=db_url or _database_url(),
            min_size=min_size,
            max_size=max_size,
            kwargs={'row_factory': dict_row},
            open=True,
        )
        logger.info(f'Initialized Postgres connection pool (max_size={max_size})')

    @classmethod
    def close_pool(cls) -> None:
        if cls._pool is not None:
            try:
                cls._pool.close()
            finally:
                cls._pool = None

    def _open(self) -> None:
        pool = self.__class__._pool
        if pool is not None:
            self._conn = pool.getconn()
            self._from_pool = True
        else:
            self._conn = psycopg.connect(_database_url(), row_factory=dict_row)
            self._from_pool = False

    def _release(self) -> None:
        pool = self.__class__._pool
        try:
            if self._conn is None:
                return
            if self._from_pool and pool is not None:
                # a broken connection is discarded by the pool on put
                pool.putconn(self._conn)
            else:
                self._conn.close()
        finally:
            self._conn = None
            self._from_pool = False

    def __enter__(self) -> 'DBManager':
        self._open()
        self._connected = True
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if not self._connected:
            return
        try:
            assert self._conn is not None
            if exc_type is None:
                self._conn.commit()
            else:
                self._conn.rollback()
        finally:
            self._release()
            self._connected = False

    def _reconnect(self) -> None:
        try:
            self._release()
        except Exception as e:
            logger.warning(f'Error while closing connection during reconnect: {e}')
        self._open()

    def _run_with_retry(self, fn: Callable[[], T]) -> T:
        '''Run fn, reconnecting and retrying once on a dropped connection.'''
        try:
            return fn()
        except (psycopg.OperationalError, psycopg.InterfaceError) as e:
            logger.warning(
                f'DB operation failed due to connection issue: {e}. '
                f'Reconnecting and retrying once...'
            )
            self._reconnect()
            return fn()

    def _exec(self, query: str, params: Iterable[Any] | None) -> None:
        assert self._conn is not None
        with self._conn.cursor() as cur:
            cur.execute(query, tuple(params or ()))

    def _select(self, query: str, params: Iterable[Any] | None) -> List[dict[str, Any]]:
        assert self._conn is not None
        with self._conn.cursor() as cur:
            cur.execute(query, tuple(params or ()))
            return cur.fetchall()

    @require_connection
    def execute(self, query: str, params: Iterable[Any] | None = None) -> None:
        try:
            self._run_with_retry(lambda: self._exec(query, params))
        except Exception as e:
            logger.error(f'execute() error: {e}\nQuery: {query}\nParams: {params}')
            raise

    @require_connection
    def fetchall(
        self, query: str, params: Iterable[Any] | None = None
    ) -> List[dict[str, Any]]:
        try:
            return self._run_with_retry(lambda: self._select(query, params))
        except Exception as e:
            logger.error(f'fetchall() error: {e}\nQuery: {query}\nParams: {params}')
            raise

    @require_connection
    def fetchone(
        self, query: str, params: Iterable[Any] | None = None
    ) -> Optional[dict[str, Any]]:
        try:
            rows = self._run_with_retry(lambda: self._select(query, params))
        except Exception as e:
            logger.error(f'fetchone() error: {e}\nQuery: {query}\nParams: {params}')
            raise
        return rows[0] if rows else None
