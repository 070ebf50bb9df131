import pytest

import catchbadges.badges.evaluator  # noqa: F401
from catchbadges.badges.registry import registry
from catchbadges.badges.rules.challenge import ChallengeRequirement
from catchbadges.badges.rules.scalar import StatThresholdRequirement
from catchbadges.utils.constants import REQUIREMENT_KINDS


class _Rule:
    def __init__(self, *kinds):
        self.kinds = kinds

    def evaluate(self, spec, ctx):
        return True


class _OtherRule(_Rule):
    pass


def test_every_requirement_kind_is_registered():
    assert registry.missing(REQUIREMENT_KINDS) == set()
    assert len(set(REQUIREMENT_KINDS)) == len(REQUIREMENT_KINDS)


def test_unknown_kind_resolves_to_fallback():
    assert isinstance(registry.resolve('count_rod_type'), StatThresholdRequirement)
    assert isinstance(registry.resolve('challenge'), ChallengeRequirement)


def test_first_registration_wins(clean_registry):
    first = _Rule('a', 'b')
    clean_registry.register(first)
    clean_registry.register(_OtherRule('b', 'c'))

    assert clean_registry.resolve('b') is first
    assert clean_registry.kinds() == {'a', 'b', 'c'}
    assert len(clean_registry.all()) == 2


def test_resolve_without_fallback_raises(clean_registry):
    with pytest.raises(LookupError):
        clean_registry.resolve('anything')
