from datetime import date

from catchbadges.badges.rules.challenge import monthly_species_max, personal_bests
from tests.conftest import log


def test_consecutive_months_counts_any_log(activity, check):
    activity.add(log(date(2023, 11, 20), 0))
    activity.add(log(date(2023, 12, 2), 1))
    activity.add(log(date(2024, 1, 9), 0))

    assert check('consecutive_months', operator='>=', value=3)
    # only December produced a fish
    assert not check('monthly_streak', operator='>=', value=2)


def test_weekly_and_weekend_streaks(activity, check):
    # Saturdays and Sundays across three weekends
    for day in (date(2024, 6, 1), date(2024, 6, 9), date(2024, 6, 15)):
        activity.add(log(day, 1))

    assert check('weekend_streak', operator='>=', value=3)
    assert check('weekly_streak', operator='>=', value=3)
    assert not check('weekday_streak', operator='>=', value=1)

    activity.add(log(date(2024, 6, 12), 0))
    assert check('weekday_streak', operator='>=', value=1)


def test_challenge_delegates_to_other_kinds(activity, check):
    activity.add(log(date(2024, 6, 1), 1, user_location_id=1))
    activity.add(log(date(2024, 6, 1), 1, user_location_id=2))

    assert check('challenge', field='daily_locations', operator='>=', value=2)
    assert not check('challenge', field='daily_locations', operator='>=', value=3)


def test_challenge_statistic_fields(activity, check):
    activity.add(log(date(2024, 6, 1), 0))
    activity.add(log(date(2024, 6, 2), 0, notes='nothing'))

    assert check('challenge', field='skunk_count', operator='>=', value=2)
    assert check('challenge', field='notes_count', operator='>=', value=1)


def test_personal_bests_skip_the_first_fish():
    records = [
        log(date(2024, 6, 1), 1, max_size=12),
        log(date(2024, 6, 2), 1, max_size=10),
        log(date(2024, 6, 3), 1, max_size=14),
        log(date(2024, 6, 4), 1),
        log(date(2024, 6, 5), 1, max_size=15),
    ]
    assert personal_bests(records) == 2
    assert personal_bests([]) == 0


def test_monthly_species_max():
    records = [
        log(date(2024, 6, 1), 4, user_fish_id=1),
        log(date(2024, 6, 20), 3, user_fish_id=1),
        log(date(2024, 7, 1), 5, user_fish_id=1),
        log(date(2024, 6, 2), 6, user_fish_id=2),
    ]
    assert monthly_species_max(records) == 7


def test_comebacks(activity, check):
    activity.add(log(date(2024, 6, 1), 0))
    activity.add(log(date(2024, 6, 4), 2, max_size=12))

    assert check('challenge', field='comeback_after_skunk', operator='>=', value=1)
    assert not check('challenge', field='trophy_after_skunk', operator='>=', value=1)

    activity.add(log(date(2024, 6, 5), 0))
    activity.add(log(date(2024, 6, 6), 1, max_size=21))
    assert check('challenge', field='trophy_after_skunk', operator='>=', value=1)
    assert check('challenge', field='comeback_after_skunk', operator='>=', value=2)


def test_full_day_and_size_range(activity, check):
    day = date(2024, 6, 1)
    activity.add(log(day, 1, time_of_day='Dawn', max_size=8))
    activity.add(log(day, 1, time_of_day='Midday', max_size=20))
    assert not check('challenge', field='full_day_fishing', operator='>=', value=1)

    activity.add(log(day, 0, time_of_day='Evening'))
    assert check('challenge', field='full_day_fishing', operator='>=', value=1)
    assert check('challenge', field='daily_size_range', operator='>=', value=12)
    assert not check('challenge', field='daily_size_range', operator='>=', value=13)


def test_dominance_and_condition_logging(activity, check):
    activity.add(log(date(2024, 6, 1), 30, user_fly_id=1, tide='High'))
    activity.add(log(date(2024, 6, 2), 25, user_fly_id=1))
    activity.add(log(date(2024, 6, 3), 40, user_fly_id=2, tide=' '))

    assert check('challenge', field='single_fly_catches', operator='>=', value=55)
    assert check('challenge', field='tide_count', operator='=', value=1)


def test_early_start_compares_the_hour(activity, check):
    activity.add(log(date(2024, 6, 1), 1, hour=5))

    assert check('challenge', field='early_start', operator='<', value=6)
    assert not check('challenge', field='early_start', operator='<', value=5)
    assert not check('challenge', field='early_start', operator='between', value=5)


def test_unknown_challenge_field_is_not_earned(activity, check):
    activity.add(log(date(2024, 6, 1), 10))

    assert not check('challenge', field='released_count', operator='>=', value=1)
    assert not check('challenge', operator='>=', value=1)


def test_challenge_field_vocabulary():
    from catchbadges.badges.rules.challenge import ChallengeRequirement

    fields = ChallengeRequirement().fields()
    for field in ('pb_count', 'early_start', 'weekend_streak', 'tide_count', 'late_fishing'):
        assert field in fields
    assert 'released_count' not in fields
