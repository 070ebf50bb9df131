from __future__ import annotations

import logging
from typing import Iterable

from catchbadges.badges.interface import Requirement

logger = logging.getLogger(__name__)


class RequirementRegistry:
    '''Requirement kind -> the one requirement that evaluates it.

    Unknown kinds resolve to the fallback (a plain statistic lookup).
    '''

    def __init__(self) -> None:
        self._by_kind: dict[str, Requirement] = {}
        self._fallback: Requirement | None = None

    def register(self, requirement: Requirement) -> None:
        for kind in requirement.kinds:
            current = self._by_kind.get(kind)
            # First registration wins; re-importing a rules module is a no-op
            if current is None:
                self._by_kind[kind] = requirement
            elif type(current) is not type(requirement):
                logger.warning(
                    f'Requirement kind {kind!r} already handled by '
                    f'{type(current).__name__}, ignoring {type(requirement).__name__}'
                )

    def register_fallback(self, requirement: Requirement) -> None:
        self._fallback = requirement

    def resolve(self, kind: str) -> Requirement:
        requirement = self._by_kind.get(kind, self._fallback)
        if requirement is None:
            raise LookupError('No fallback requirement registered')
        return requirement

    def kinds(self) -> set[str]:
        return set(self._by_kind)

    def missing(self, expected: Iterable[str]) -> set[str]:
        return set(expected) - set(self._by_kind)

    def all(self) -> list[Requirement]:
        seen: list[Requirement] = []
        for requirement in self._by_kind.values():
            if requirement not in seen:
                seen.append(requirement)
        return seen


registry = RequirementRegistry()
