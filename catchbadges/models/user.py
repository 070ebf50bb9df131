from typing import Optional

from catchbadges.badges.interface import UserProfile
from catchbadges.database.db_manager import DBManager
from catchbadges.models.base import BaseModel
from catchbadges.utils.helper import to_date


class User(BaseModel):
    table = 'users'
    pk = 'id'

    @classmethod
    def profile(cls, user_id: int) -> Optional[UserProfile]:
        with DBManager() as db:
            row = db.fetchone(
                'SELECT id, created_at, birthday FROM users WHERE id = %s',
                (user_id,),
            )
        if not row:
            return None
        return UserProfile(
            id=row['id'],
            created_at=row.get('created_at'),
            birthday=to_date(row.get('birthday')),
        )

    @classmethod
    def follower_count(cls, user_id: int) -> int:
        return UserFollow.count('following_id = %s', (user_id,))

    @classmethod
    def following_count(cls, user_id: int) -> int:
        return UserFollow.count('follower_id = %s', (user_id,))

    @classmethod
    def all_ids(cls) -> list[int]:
        rows = cls.get_many(order_by='id', columns='id')
        return [row['id'] for row in rows]


class UserFollow(BaseModel):
    table = 'user_follows'
