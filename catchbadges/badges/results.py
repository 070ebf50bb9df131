from __future__ import annotations

from dataclasses import dataclass, field

from catchbadges.badges.interface import StatisticsMap
from catchbadges.models.badge import BadgeDefinition


@dataclass(frozen=True)
class SyncResult:
    user_id: int
    earned: tuple[BadgeDefinition, ...] = ()
    revoked: tuple[BadgeDefinition, ...] = ()
    stats: StatisticsMap = field(default_factory=dict)

    @property
    def changed(self) -> bool:
        return bool(self.earned or self.revoked)


@dataclass(frozen=True)
class BadgeProgress:
    badge: BadgeDefinition
    current: int | float
    required: int | float | None
    percentage: int
    earned: bool

    def as_dict(self) -> dict:
        return {
            'badge_id': self.badge.id,
            'slug': self.badge.slug,
            'current': self.current,
            'required': self.required,
            'percentage': self.percentage,
            'earned': self.earned,
        }
