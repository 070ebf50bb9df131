import contextlib
from dataclasses import dataclass, field
from datetime import date, time
from typing import Any, Iterator

import pytest

from catchbadges.badges.engine import BadgeLifecycleManager
from catchbadges.badges.interface import EvaluationContext, UserProfile
from catchbadges.models.activity_record import ActivityRecord
from catchbadges.models.badge import BadgeCatalog, BadgeDefinition, RequirementSpec
from catchbadges.repositories.memory import (
    InMemoryActivityRepository,
    InMemoryAwardStore,
    InMemoryUserDirectory,
)

TODAY = date(2024, 6, 15)
USER_ID = 1


@dataclass
class FakeDB:
    fetchone_results: list[Any] = field(default_factory=list)
    fetchall_results: list[Any] = field(default_factory=list)
    executed: list[tuple[str, tuple[Any, ...]]] = field(default_factory=list)
    last_query: str | None = None
    last_params: tuple[Any, ...] | None = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False

    def fetchone(self, query: str, params=None):
        self.last_query = query
        self.last_params = tuple(params or ())
        if self.fetchone_results:
            return self.fetchone_results.pop(0)

    def fetchall(self, query: str, params=None):
        self.last_query = query
        self.last_params = tuple(params or ())
        if self.fetchall_results:
            return self.fetchall_results.pop(0)
        return []

    def execute(self, query: str, params=None) -> None:
        self.executed.append((query, tuple(params or ())))


class FakeDBManager:
    def __init__(self, db: FakeDB):
        self._db = db

    def __call__(self):
        return self._db


@contextlib.contextmanager
def patched_dbmanager(monkeypatch, target_module, db: FakeDB) -> Iterator[FakeDB]:
    monkeypatch.setattr(target_module, 'DBManager', FakeDBManager(db))
    yield db


@pytest.fixture()
def fake_db() -> FakeDB:
    return FakeDB()


@pytest.fixture()
def clean_registry():
    from catchbadges.badges.registry import registry

    by_kind = dict(registry._by_kind)  # type: ignore[attr-defined]
    fallback = registry._fallback  # type: ignore[attr-defined]
    registry._by_kind.clear()  # type: ignore[attr-defined]
    registry._fallback = None  # type: ignore[attr-defined]
    try:
        yield registry
    finally:
        registry._by_kind.clear()  # type: ignore[attr-defined]
        registry._by_kind.update(by_kind)  # type: ignore[attr-defined]
        registry._fallback = fallback  # type: ignore[attr-defined]


_ids = iter(range(1, 1_000_000))


def log(day: date, quantity: int = 1, **fields) -> ActivityRecord:
    '''A fishing log for USER_ID; `hour` is shorthand for time.'''
    hour = fields.pop('hour', None)
    if hour is not None:
        fields['time'] = time(hour, 0)
    fields.setdefault('user_id', USER_ID)
    return ActivityRecord(id=next(_ids), date=day, quantity=quantity, **fields)


def spec(kind: str, **values) -> RequirementSpec:
    return RequirementSpec(kind=kind, **values)


def badge(badge_id: int, kind: str, slug: str | None = None, **values) -> BadgeDefinition:
    return BadgeDefinition(
        id=badge_id,
        slug=slug or f'badge-{badge_id}',
        name=slug or f'Badge {badge_id}',
        requirement=spec(kind, **values),
        sort_order=badge_id,
    )


@pytest.fixture()
def activity() -> InMemoryActivityRepository:
    return InMemoryActivityRepository()


@pytest.fixture()
def users() -> InMemoryUserDirectory:
    return InMemoryUserDirectory(
        [UserProfile(id=USER_ID, created_at=date(2024, 1, 1), birthday=date(1990, 3, 14))]
    )


@pytest.fixture()
def awards() -> InMemoryAwardStore:
    return InMemoryAwardStore()


@pytest.fixture()
def make_manager(activity, users, awards):
    def _make(*badges: BadgeDefinition) -> BadgeLifecycleManager:
        return BadgeLifecycleManager(
            BadgeCatalog.of(badges), activity, users, awards, clock=lambda: TODAY
        )

    return _make


@pytest.fixture()
def make_context(activity, users):
    '''Context for USER_ID with stats computed from the current logs.'''

    def _make() -> EvaluationContext:
        manager = BadgeLifecycleManager(
            BadgeCatalog(), activity, users, InMemoryAwardStore(), clock=lambda: TODAY
        )
        stats = manager.compute_stats(USER_ID)
        return manager.evaluator.context(USER_ID, stats)

    return _make


@pytest.fixture()
def check(make_context):
    '''Evaluate one requirement against the current logs, fail-closed.'''
    from catchbadges.badges.evaluator import RequirementEvaluator

    def _check(kind: str, **values) -> bool:
        ctx = make_context()
        evaluator = RequirementEvaluator(ctx.activity, ctx.users, lambda: TODAY)
        return evaluator.check(spec(kind, **values), ctx)

    return _check
