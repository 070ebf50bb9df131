from datetime import date

import pytest

from catchbadges.badges.evaluator import RequirementEvaluator
from catchbadges.badges.interface import EvaluationContext
from catchbadges.models.badge import RequirementSpec
from tests.conftest import TODAY, USER_ID, log, spec


class _Exploding:
    kinds = ('boom',)

    def __init__(self, error: Exception):
        self.error = error

    def evaluate(self, spec, ctx):
        raise self.error


def _ctx(activity, users, stats=None) -> EvaluationContext:
    return EvaluationContext(
        user_id=USER_ID, stats=stats or {}, activity=activity, users=users, today=TODAY
    )


def test_malformed_requirement_data_is_not_earned(activity, users, clean_registry):
    evaluator = RequirementEvaluator(activity, users, lambda: TODAY, clean_registry)
    for error in (KeyError('x'), TypeError('x'), ValueError('x'), ZeroDivisionError()):
        clean_registry._by_kind.clear()  # type: ignore[attr-defined]
        clean_registry.register(_Exploding(error))
        assert evaluator.check(spec('boom'), _ctx(activity, users)) is False


def test_repository_failures_propagate(activity, users, clean_registry):
    clean_registry.register(_Exploding(ConnectionError('db down')))
    evaluator = RequirementEvaluator(activity, users, lambda: TODAY, clean_registry)

    with pytest.raises(ConnectionError):
        evaluator.check(spec('boom'), _ctx(activity, users))


def test_unknown_kind_uses_statistic_fallback(activity, users):
    evaluator = RequirementEvaluator(activity, users, lambda: TODAY)
    stats = {'total_caught': 12}

    assert evaluator.is_satisfied(
        spec('mystery', field='total_caught', operator='>=', value=10), stats, USER_ID
    )
    assert not evaluator.is_satisfied(spec('mystery', operator='>=', value=1), stats, USER_ID)


@pytest.mark.parametrize(
    'row',
    [
        {'requirement_type': 'count', 'requirement_field': 'total_caught'},
        {'requirement_type': 'count', 'requirement_field': 'total_caught',
         'requirement_value': 'lots'},
        {'requirement_type': 'count', 'requirement_field': 'not_a_stat',
         'requirement_value': 1},
        {'requirement_type': 'count_where', 'requirement_field': 'max_size',
         'requirement_value': None, 'requirement_value2': 1},
        {'requirement_type': 'combo', 'requirement_extra': '{broken json'},
        {'requirement_type': 'count_moon', 'requirement_extra': '{"phase": 7}'},
        {'requirement_type': 'specific_date', 'requirement_extra': '{"month": 2}'},
        {'requirement_type': 'count_rod_type', 'requirement_value': 50,
         'requirement_extra': '{"type": "spinning"}'},
        {'requirement_type': None},
    ],
)
def test_absent_or_broken_requirements_fail_closed(activity, users, row):
    activity.add(log(date(2024, 2, 29), 100, max_size=50, moon_phase='Full Moon'))
    evaluator = RequirementEvaluator(activity, users, lambda: TODAY)
    stats = {'total_caught': 100, 'trophy_count': 1}

    assert evaluator.is_satisfied(RequirementSpec.from_row(row), stats, USER_ID) is False
