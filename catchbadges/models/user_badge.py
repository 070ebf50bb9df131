from datetime import datetime, timezone
from typing import Any, Iterable, Mapping

from catchbadges.database.db_manager import DBManager
from catchbadges.models.base import BaseModel


class UserBadge(BaseModel):
    '''Earned badges. One row per (user_id, badge_id).'''

    table = 'user_badges'

    @classmethod
    def earned_badge_ids(cls, user_id: int) -> set[int]:
        rows = cls.get_many('user_id = %s', (user_id,), columns='badge_id')
        return {row['badge_id'] for row in rows}

    @classmethod
    def apply(
        cls,
        user_id: int,
        award_ids: Iterable[int],
        revoke_ids: Iterable[int],
        snapshot: Mapping[str, Any],
    ) -> None:
        '''Awards and revocations for one pass, committed in one transaction.'''
        award_ids, revoke_ids = list(award_ids), list(revoke_ids)
        if not award_ids and not revoke_ids:
            return
        earned_at = datetime.now(timezone.utc)
        with DBManager() as db:
            for badge_id in award_ids:
                cls.create_if_absent(
                    ('user_id', 'badge_id'),
                    {
                        'user_id': user_id,
                        'badge_id': badge_id,
                        'earned_at': earned_at,
                        'earned_data': dict(snapshot),
                        'is_notified': False,
                    },
                    db=db,
                )
            for badge_id in revoke_ids:
                cls.delete_where(
                    'user_id = %s AND badge_id = %s', (user_id, badge_id), db=db
                )
