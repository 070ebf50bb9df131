from datetime import date, datetime

import pytest

import catchbadges.models.base as base_module
import catchbadges.models.fishing_log as fishing_log_module
import catchbadges.models.user as user_module
import catchbadges.models.user_badge as user_badge_module
from catchbadges.models.badge import Badge, BadgeDefinition, RequirementSpec
from catchbadges.models.fishing_log import FishingLog
from catchbadges.models.user import User
from catchbadges.models.user_badge import UserBadge
from catchbadges.repositories.query import Where, count_of, distinct_of, positive, sum_of
from tests.conftest import FakeDB, patched_dbmanager


def test_requirement_spec_from_row_parses_values_and_extra():
    spec = RequirementSpec.from_row(
        {
            'requirement_type': ' combo ',
            'requirement_field': None,
            'requirement_operator': '>=',
            'requirement_value': '20',
            'requirement_value2': 2.5,
            'requirement_extra': '{"size": 20, "moon_phase": "new"}',
        }
    )
    assert spec.kind == 'combo'
    assert spec.field is None
    assert spec.value == 20
    assert spec.value2 == 2.5
    assert dict(spec.extra) == {'size': 20, 'moon_phase': 'new'}


def test_requirement_spec_from_row_drops_bad_data():
    spec = RequirementSpec.from_row(
        {
            'requirement_type': 42,
            'requirement_value': 'many',
            'requirement_extra': '[1, 2]',
        }
    )
    assert spec.kind == ''
    assert spec.value is None
    assert dict(spec.extra) == {}
    assert dict(RequirementSpec.from_row({'requirement_extra': '{nope'}).extra) == {}


def test_requirement_spec_defaults():
    spec = RequirementSpec(kind='x')
    assert spec.field is None
    assert spec.operator is None
    assert spec.value is None
    assert dict(spec.extra) == {}
    assert RequirementSpec(kind='y').extra is not spec.extra


def test_load_catalog_reads_active_badges_in_order(monkeypatch, fake_db):
    fake_db.fetchall_results = [
        [
            {'id': 2, 'slug': 'b', 'name': 'B', 'sort_order': 2,
             'requirement_type': 'count', 'requirement_value': 5},
            {'id': 1, 'slug': 'a', 'name': 'A', 'sort_order': 1,
             'requirement_type': 'max', 'requirement_field': 'max_size'},
        ]
    ]
    with patched_dbmanager(monkeypatch, base_module, fake_db):
        catalog = Badge.load_catalog()

    assert 'is_active = TRUE' in fake_db.last_query
    assert [b.slug for b in catalog] == ['a', 'b']
    assert len(catalog) == 2
    assert all(isinstance(b, BadgeDefinition) for b in catalog)


class _TrackingDB(FakeDB):
    '''Counts transactions and fails the statement numbered `fail_at`.'''

    def __init__(self, fail_at=None):
        super().__init__()
        self.fail_at = fail_at
        self.statements = 0
        self.transactions = 0
        self.rolled_back = False

    def __enter__(self):
        self.transactions += 1
        return self

    def __exit__(self, exc_type, exc, tb):
        self.rolled_back = exc_type is not None
        return False

    def _count(self):
        self.statements += 1
        if self.statements == self.fail_at:
            raise ConnectionError('db down')

    def fetchall(self, query, params=None):
        self._count()
        return super().fetchall(query, params)

    def execute(self, query, params=None):
        self._count()
        super().execute(query, params)


def test_user_badge_apply_runs_in_one_transaction(monkeypatch):
    db = _TrackingDB()
    db.fetchall_results = [[{'badge_id': 3}, {'badge_id': 4}], [{'id': 1}]]
    with patched_dbmanager(monkeypatch, base_module, db):
        assert UserBadge.earned_badge_ids(9) == {3, 4}
        with patched_dbmanager(monkeypatch, user_badge_module, db):
            UserBadge.apply(9, [5], [3], {'total_caught': 15})
            insert_sql, insert_params = db.last_query, db.last_params

    assert db.transactions == 2
    assert 'ON CONFLICT (user_id, badge_id) DO NOTHING' in insert_sql
    assert insert_params[:2] == (9, 5)
    assert insert_params[3].obj == {'total_caught': 15}
    assert insert_params[4] is False
    assert db.executed == [
        ('DELETE FROM user_badges WHERE user_id = %s AND badge_id = %s', (9, 3))
    ]


def test_user_badge_apply_failure_rolls_back_the_whole_pass(monkeypatch):
    db = _TrackingDB(fail_at=2)
    with patched_dbmanager(monkeypatch, base_module, db):
        with patched_dbmanager(monkeypatch, user_badge_module, db):
            with pytest.raises(ConnectionError):
                UserBadge.apply(9, [5, 6], [3], {})

    # the first insert shared the transaction that saw the failure
    assert db.transactions == 1
    assert db.rolled_back is True
    assert db.executed == []


def test_user_badge_apply_without_changes_opens_nothing(monkeypatch):
    db = _TrackingDB()
    with patched_dbmanager(monkeypatch, user_badge_module, db):
        UserBadge.apply(9, [], [], {})
    assert db.transactions == 0


def test_user_profile_and_follow_counts(monkeypatch, fake_db):
    fake_db.fetchone_results = [
        {'id': 9, 'created_at': datetime(2024, 1, 1, 12), 'birthday': '1990-03-14'},
        {'cnt': 4},
    ]
    with patched_dbmanager(monkeypatch, user_module, fake_db):
        with patched_dbmanager(monkeypatch, base_module, fake_db):
            profile = User.profile(9)
            followers = User.follower_count(9)

    assert profile.birthday == date(1990, 3, 14)
    assert followers == 4
    assert 'following_id = %s' in fake_db.last_query


def test_aggregate_many_single_query_with_user_last(monkeypatch, fake_db):
    fake_db.fetchone_results = [{'caught': 12, 'species': 3, 'early': None}]
    aggregates = [
        sum_of('caught'),
        distinct_of('species', 'species'),
        count_of('early', Where('hour', '<', 7)),
    ]
    with patched_dbmanager(monkeypatch, fishing_log_module, fake_db):
        row = FishingLog().aggregate_many(9, aggregates)

    assert row == {'caught': 12, 'species': 3, 'early': 0}
    assert 'FILTER (WHERE' in fake_db.last_query
    assert 'WHERE fl.user_id = %s' in fake_db.last_query
    assert fake_db.last_params == (7, 9)


def test_grouped_many_and_max_grouped_by(monkeypatch, fake_db):
    fake_db.fetchall_results = [
        [
            {'group_key': date(2024, 6, 1), 'total': 3},
            {'group_key': date(2024, 6, 2), 'total': 0},
        ]
    ]
    fake_db.fetchone_results = [{'best': 4}]
    with patched_dbmanager(monkeypatch, fishing_log_module, fake_db):
        repo = FishingLog()
        days = repo.grouped_many(9, 'date', [sum_of('total')], [positive()])
        grouped_sql, grouped_params = fake_db.last_query, fake_db.last_params
        best = repo.max_grouped_by(9, 'location', count_of('visits'))

    assert days[date(2024, 6, 1)] == {'total': 3}
    assert 'GROUP BY fl.date' in grouped_sql
    assert 'fl.date IS NOT NULL' in grouped_sql
    assert grouped_params == (9, 0)
    assert best == 4
    assert 'MAX(g."visits")' in fake_db.last_query


def test_exists_matching_and_records(monkeypatch, fake_db):
    fake_db.fetchone_results = [{'found': True}]
    fake_db.fetchall_results = [
        [
            {'id': 1, 'user_id': 9, 'date': date(2024, 6, 1), 'quantity': None,
             'friend_ids': [4, 5], 'moon_phase': 'Full Moon'},
        ]
    ]
    with patched_dbmanager(monkeypatch, fishing_log_module, fake_db):
        repo = FishingLog()
        found = repo.exists_matching(9, [positive()])
        exists_params = fake_db.last_params
        records = repo.records_for_user(9)

    assert found is True
    assert exists_params == (9, 0)
    assert records[0].quantity == 0
    assert records[0].skunked is True
    assert records[0].friend_ids == frozenset({4, 5})
    assert 'ORDER BY fl.date' in fake_db.last_query
