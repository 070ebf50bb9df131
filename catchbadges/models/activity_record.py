from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, time
from typing import Any, Mapping

from catchbadges.utils.helper import to_date


@dataclass(frozen=True)
class ActivityRecord:
    '''One fishing log, flattened with its species, fly, weather and water rows.

    The engine only reads these. quantity is never None here, a missing
    quantity is read as 0 and a 0 quantity is a skunk.
    '''

    id: int
    user_id: int
    date: date
    time: time | None = None
    time_of_day: str | None = None
    quantity: int = 0
    max_size: float | None = None
    max_weight: float | None = None
    user_fish_id: int | None = None
    water_type: str | None = None
    user_location_id: int | None = None
    user_rod_id: int | None = None
    user_fly_id: int | None = None
    fly_type: str | None = None
    friend_ids: frozenset[int] = field(default_factory=frozenset)
    moon_phase: str | None = None
    moon_altitude: float | None = None
    moon_position: str | None = None
    notes: str | None = None
    air_temperature: str | None = None
    cloud: str | None = None
    wind: str | None = None
    precipitation: str | None = None
    barometric_pressure: str | None = None
    water_temperature: str | None = None
    clarity: str | None = None
    water_level: str | None = None
    water_speed: str | None = None
    surface_condition: str | None = None
    tide: str | None = None

    @property
    def skunked(self) -> bool:
        return self.quantity == 0

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> 'ActivityRecord':
        values = {k: row[k] for k in cls.__dataclass_fields__ if k in row}
        values['date'] = to_date(row['date'])
        values['quantity'] = int(row.get('quantity') or 0)
        values['friend_ids'] = frozenset(row.get('friend_ids') or ())
        return cls(**values)
