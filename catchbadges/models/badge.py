from __future__ import annotations

import dataclasses
import json
import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Iterable, Iterator, Mapping

from catchbadges.models.base import BaseModel
from catchbadges.utils.helper import to_number

logger = logging.getLogger(__name__)


def _extra(value: Any) -> Mapping[str, Any]:
    if isinstance(value, str):
        try:
            value = json.loads(value) if value.strip() else {}
        except ValueError:
            logger.warning(f'Ignoring unparseable requirement_extra: {value!r}')
            return MappingProxyType({})
    if not isinstance(value, Mapping):
        return MappingProxyType({})
    return MappingProxyType(dict(value))


@dataclass(frozen=True)
class RequirementSpec:
    kind: str
    field: str | None = None
    operator: str | None = None
    value: int | float | None = None
    value2: int | float | None = None
    extra: Mapping[str, Any] = dataclasses.field(
        default_factory=lambda: MappingProxyType({})
    )

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> 'RequirementSpec':
        '''Build from a badges row. Never raises on bad data, it just drops it.'''
        kind = row.get('requirement_type')
        field_name = row.get('requirement_field')
        operator = row.get('requirement_operator')
        return cls(
            kind=kind.strip() if isinstance(kind, str) else '',
            field=field_name.strip() if isinstance(field_name, str) else None,
            operator=operator.strip() if isinstance(operator, str) else None,
            value=to_number(row.get('requirement_value')),
            value2=to_number(row.get('requirement_value2')),
            extra=_extra(row.get('requirement_extra')),
        )


@dataclass(frozen=True)
class BadgeDefinition:
    id: int
    slug: str
    name: str
    requirement: RequirementSpec
    icon: str | None = None
    description: str | None = None
    category: str | None = None
    rarity: str | None = None
    sort_order: int = 0

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> 'BadgeDefinition':
        return cls(
            id=row['id'],
            slug=row.get('slug') or str(row['id']),
            name=row.get('name') or '',
            requirement=RequirementSpec.from_row(row),
            icon=row.get('icon'),
            description=row.get('description'),
            category=row.get('category'),
            rarity=row.get('rarity'),
            sort_order=int(row.get('sort_order') or 0),
        )


@dataclass(frozen=True)
class BadgeCatalog:
    '''The active badges, loaded once and passed around read-only.'''

    badges: tuple[BadgeDefinition, ...] = ()

    @classmethod
    def of(cls, badges: Iterable[BadgeDefinition]) -> 'BadgeCatalog':
        return cls(tuple(sorted(badges, key=lambda b: (b.sort_order, b.id))))

    def __iter__(self) -> Iterator[BadgeDefinition]:
        return iter(self.badges)

    def __len__(self) -> int:
        return len(self.badges)


class Badge(BaseModel):
    table = 'badges'

    @classmethod
    def load_catalog(cls) -> BadgeCatalog:
        rows = cls.get_many('is_active = TRUE', order_by='sort_order, id')
        catalog = BadgeCatalog.of(BadgeDefinition.from_row(row) for row in rows)
        logger.info(f'Loaded {len(catalog)} active badges')
        return catalog
