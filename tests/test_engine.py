from datetime import date

import pytest

from catchbadges.badges.errors import BadgeEvaluationError
from tests.conftest import USER_ID, badge, log


def _fifteen_fish(activity):
    activity.add(log(date(2024, 6, 1), 10))
    activity.add(log(date(2024, 6, 2), 5))


def test_sync_awards_then_revokes_when_logs_removed(activity, awards, make_manager):
    catch_15 = badge(1, 'count', 'catch-15', field='total_caught', operator='>=', value=15)
    manager = make_manager(catch_15)
    _fifteen_fish(activity)

    result = manager.sync(USER_ID)

    assert [b.slug for b in result.earned] == ['catch-15']
    assert result.revoked == ()
    assert awards.awards[(USER_ID, 1)]['earned_data']['total_caught'] == 15
    assert awards.awards[(USER_ID, 1)]['is_notified'] is False

    activity.remove(next(r.id for r in activity.records_for_user(USER_ID) if r.quantity == 5))
    result = manager.sync(USER_ID)

    assert result.earned == ()
    assert [b.slug for b in result.revoked] == ['catch-15']
    assert (USER_ID, 1) not in awards.awards


def test_sync_is_idempotent(activity, awards, make_manager):
    manager = make_manager(
        badge(1, 'count', field='total_caught', operator='>=', value=15),
        badge(2, 'count', field='total_caught', operator='>=', value=100),
    )
    _fifteen_fish(activity)

    first = manager.sync(USER_ID)
    earned_at = awards.awards[(USER_ID, 1)]['earned_at']
    second = manager.sync(USER_ID)

    assert first.changed is True
    assert second.changed is False
    assert awards.earned_badge_ids(USER_ID) == {1}
    assert awards.awards[(USER_ID, 1)]['earned_at'] == earned_at


def test_award_eligible_never_revokes(activity, awards, make_manager):
    manager = make_manager(badge(1, 'count', field='total_caught', operator='>=', value=15))
    awards.apply(USER_ID, [1], [], {})

    assert manager.award_eligible(USER_ID) == []
    assert awards.earned_badge_ids(USER_ID) == {1}

    revoked = manager.revoke_ineligible(USER_ID)
    assert [b.id for b in revoked] == [1]
    assert awards.earned_badge_ids(USER_ID) == set()


def test_inactive_earned_badges_are_untouched(activity, awards, make_manager):
    manager = make_manager(badge(1, 'count', field='total_caught', operator='>=', value=1))
    awards.apply(USER_ID, [99], [], {})

    manager.sync(USER_ID)

    assert 99 in awards.earned_badge_ids(USER_ID)


def test_grand_slam_needs_three_species_on_one_day(activity, awards, make_manager):
    manager = make_manager(badge(7, 'combo', 'grand-slam', extra={'daily_species': 3}))
    activity.add(log(date(2024, 6, 1), 1, user_fish_id=1))
    activity.add(log(date(2024, 6, 1), 1, user_fish_id=2))
    activity.add(log(date(2024, 6, 3), 1, user_fish_id=3))

    assert manager.sync(USER_ID).earned == ()

    activity.add(log(date(2024, 6, 3), 1, user_fish_id=1))
    activity.add(log(date(2024, 6, 3), 1, user_fish_id=2))
    assert [b.slug for b in manager.sync(USER_ID).earned] == ['grand-slam']


def test_four_seasons_needs_all_four(activity, make_manager):
    manager = make_manager(badge(4, 'season_variety', operator='=', value=4))
    for month in (1, 4, 7):
        activity.add(log(date(2024, month, 1), 1))

    assert manager.sync(USER_ID).earned == ()

    activity.add(log(date(2024, 10, 1), 0))
    assert len(manager.sync(USER_ID).earned) == 1


def test_stats_computed_once_per_pass(activity, make_manager, monkeypatch):
    manager = make_manager(
        badge(1, 'count', field='total_caught', value=1),
        badge(2, 'max', field='max_size', value=10),
        badge(3, 'streak', value=2),
    )
    _fifteen_fish(activity)
    calls = []
    original = manager.aggregator.compute
    monkeypatch.setattr(
        manager.aggregator, 'compute', lambda uid: calls.append(uid) or original(uid)
    )

    manager.sync(USER_ID)

    assert calls == [USER_ID]


def test_progress(activity, awards, make_manager):
    catch_5 = badge(1, 'count', field='total_caught', operator='>=', value=5)
    no_threshold = badge(2, 'count', field='total_caught', operator='>=', value=0)
    catch_10 = badge(3, 'count', field='total_caught', operator='>=', value=10)
    manager = make_manager(catch_5, no_threshold, catch_10)
    activity.add(log(date(2024, 6, 1), 3))

    progress = manager.progress(USER_ID, catch_5)
    assert progress.current == 3
    assert progress.required == 5
    assert progress.percentage == 60
    assert progress.earned is False
    assert manager.progress(USER_ID, no_threshold).percentage == 0

    activity.add(log(date(2024, 6, 2), 12))
    manager.sync(USER_ID)
    items = {p.badge.id: p for p in manager.progress_all(USER_ID)}
    assert items[1].percentage == 100
    assert items[1].earned is True
    assert items[3].as_dict()['percentage'] == 100


def test_repository_failure_raises_and_writes_nothing(activity, awards, make_manager, monkeypatch):
    manager = make_manager(
        badge(1, 'count', field='total_caught', value=1),
        badge(2, 'holiday'),
    )
    _fifteen_fish(activity)

    def _fail(*a, **k):
        raise ConnectionError('db down')

    monkeypatch.setattr(activity, 'exists_matching', _fail)

    with pytest.raises(BadgeEvaluationError):
        manager.sync(USER_ID)
    assert awards.earned_badge_ids(USER_ID) == set()


def test_failed_write_leaves_earned_badges_unchanged(activity, awards, make_manager, monkeypatch):
    manager = make_manager(
        badge(1, 'count', field='total_caught', value=1),
        badge(2, 'count', field='total_caught', value=10),
        badge(3, 'count', field='total_caught', value=1000),
    )
    _fifteen_fish(activity)
    awards.apply(USER_ID, [3], [], {})
    rows = []
    original = awards._new_row

    def _fail_second(snapshot):
        if rows:
            raise ConnectionError('db down')
        rows.append(original(snapshot))
        return rows[-1]

    monkeypatch.setattr(awards, '_new_row', _fail_second)

    with pytest.raises(BadgeEvaluationError):
        manager.sync(USER_ID)
    assert awards.earned_badge_ids(USER_ID) == {3}

    monkeypatch.undo()
    result = manager.sync(USER_ID)
    assert [b.id for b in result.earned] == [1, 2]
    assert [b.id for b in result.revoked] == [3]
    assert awards.earned_badge_ids(USER_ID) == {1, 2}
