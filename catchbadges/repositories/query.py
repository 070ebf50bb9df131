'''Filter and aggregate terms over fishing logs.

Every term names a field from FIELDS. Each field knows its SQL expression
(against the joined fishing_logs query in catchbadges.models.fishing_log) and
how to read the same value off an ActivityRecord, so one term can be compiled
to SQL or evaluated in memory.
'''

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Iterable, Sequence

from catchbadges.utils.helper import normalize_number

if TYPE_CHECKING:
    from catchbadges.models.activity_record import ActivityRecord


def _lower(value: str | None) -> str | None:
    return value.strip().lower() if isinstance(value, str) else None


def _hour(r: 'ActivityRecord') -> int | None:
    return r.time.hour if r.time is not None else None


@dataclass(frozen=True)
class Field:
    sql: str
    read: Callable[['ActivityRecord'], Any]


FIELDS: dict[str, Field] = {
    'id': Field('fl.id', lambda r: r.id),
    'date': Field('fl.date', lambda r: r.date),
    'year_month': Field(
        "to_char(fl.date, 'YYYY-MM')", lambda r: f'{r.date.year:04d}-{r.date.month:02d}'
    ),
    'month': Field('EXTRACT(MONTH FROM fl.date)::int', lambda r: r.date.month),
    'day': Field('EXTRACT(DAY FROM fl.date)::int', lambda r: r.date.day),
    # ISO weekday, Monday = 1
    'weekday': Field('EXTRACT(ISODOW FROM fl.date)::int', lambda r: r.date.isoweekday()),
    'hour': Field('EXTRACT(HOUR FROM fl.time)::int', _hour),
    'time': Field('fl.time', lambda r: r.time),
    'time_of_day': Field('LOWER(fl.time_of_day)', lambda r: _lower(r.time_of_day)),
    'quantity': Field('COALESCE(fl.quantity, 0)', lambda r: r.quantity or 0),
    'max_size': Field('fl.max_size', lambda r: r.max_size),
    'max_weight': Field('fl.max_weight', lambda r: r.max_weight),
    'notes': Field('fl.notes', lambda r: r.notes),
    'species': Field('fl.user_fish_id', lambda r: r.user_fish_id),
    'location': Field('fl.user_location_id', lambda r: r.user_location_id),
    'rod': Field('fl.user_rod_id', lambda r: r.user_rod_id),
    'fly': Field('fl.user_fly_id', lambda r: r.user_fly_id),
    'water_type': Field('LOWER(uf.water_type)', lambda r: _lower(r.water_type)),
    'fly_type': Field('LOWER(ufl.type)', lambda r: _lower(r.fly_type)),
    'moon_phase': Field('fl.moon_phase', lambda r: r.moon_phase),
    'moon_position': Field('fl.moon_position', lambda r: r.moon_position),
    'air_temperature': Field('LOWER(uw.temperature)', lambda r: _lower(r.air_temperature)),
    'cloud': Field('LOWER(uw.cloud)', lambda r: _lower(r.cloud)),
    'wind': Field('LOWER(uw.wind)', lambda r: _lower(r.wind)),
    'precipitation': Field('LOWER(uw.precipitation)', lambda r: _lower(r.precipitation)),
    'barometric_pressure': Field(
        'LOWER(uw.barometric_pressure)', lambda r: _lower(r.barometric_pressure)
    ),
    'water_temperature': Field(
        'LOWER(uwc.temperature)', lambda r: _lower(r.water_temperature)
    ),
    'clarity': Field('LOWER(uwc.clarity)', lambda r: _lower(r.clarity)),
    'water_level': Field('LOWER(uwc.level)', lambda r: _lower(r.water_level)),
    'water_speed': Field('LOWER(uwc.speed)', lambda r: _lower(r.water_speed)),
    'surface_condition': Field(
        'LOWER(uwc.surface_condition)', lambda r: _lower(r.surface_condition)
    ),
    'tide': Field('LOWER(uwc.tide)', lambda r: _lower(r.tide)),
    'friend_count': Field(
        '(SELECT COUNT(*) FROM fishing_log_user_friend flf '
        'WHERE flf.fishing_log_id = fl.id)',
        lambda r: len(r.friend_ids),
    ),
}

WHERE_OPS = (
    '=',
    '!=',
    '>',
    '>=',
    '<',
    '<=',
    'in',
    'between',
    'not_null',
    'is_null',
    'not_empty',
)

AGGREGATE_FNS = ('sum', 'count', 'max', 'min', 'count_distinct')


def lookup_field(name: str) -> Field:
    try:
        return FIELDS[name]
    except KeyError:
        raise ValueError(f'Unknown activity field: {name}') from None


@dataclass(frozen=True)
class Where:
    '''One filter term. For "in" the value is a sequence, for "between" a pair.'''

    field: str
    op: str
    value: Any = None

    def __post_init__(self) -> None:
        lookup_field(self.field)
        if self.op not in WHERE_OPS:
            raise ValueError(f'Unknown filter operator: {self.op}')

    def compile(self) -> tuple[str, list[Any]]:
        expr = lookup_field(self.field).sql
        if self.op == 'in':
            return f'{expr} = ANY(%s)', [list(self.value)]
        if self.op == 'between':
            low, high = self.value
            return f'{expr} BETWEEN %s AND %s', [low, high]
        if self.op == 'not_null':
            return f'{expr} IS NOT NULL', []
        if self.op == 'is_null':
            return f'{expr} IS NULL', []
        if self.op == 'not_empty':
            return f"NULLIF(TRIM({expr}::text), '') IS NOT NULL", []
        return f'{expr} {self.op} %s', [self.value]

    def matches(self, record: 'ActivityRecord') -> bool:
        actual = lookup_field(self.field).read(record)
        if self.op == 'is_null':
            return actual is None
        if actual is None:
            return False
        if self.op == 'not_null':
            return True
        if self.op == 'not_empty':
            return bool(str(actual).strip())
        if self.op == 'in':
            return actual in tuple(self.value)
        if self.op == 'between':
            low, high = self.value
            return low <= actual <= high
        if self.op == '=':
            return actual == self.value
        if self.op == '!=':
            return actual != self.value
        if self.op == '>':
            return actual > self.value
        if self.op == '>=':
            return actual >= self.value
        if self.op == '<':
            return actual < self.value
        return actual <= self.value


def compile_where(terms: Iterable[Where]) -> tuple[str, list[Any]]:
    '''AND the terms together. An empty filter compiles to TRUE.'''
    parts: list[str] = []
    params: list[Any] = []
    for term in terms:
        sql, term_params = term.compile()
        parts.append(sql)
        params.extend(term_params)
    if not parts:
        return 'TRUE', []
    return ' AND '.join(parts), params


def matches_all(terms: Iterable[Where], record: 'ActivityRecord') -> bool:
    return all(term.matches(record) for term in terms)


@dataclass(frozen=True)
class Aggregate:
    '''A named aggregate over the logs that pass `where`.'''

    name: str
    fn: str
    field: str | None = None
    where: tuple[Where, ...] = ()

    def __post_init__(self) -> None:
        if self.fn not in AGGREGATE_FNS:
            raise ValueError(f'Unknown aggregate: {self.fn}')
        if self.fn != 'count' and self.field is None:
            raise ValueError(f'{self.fn} needs a field')
        if self.field is not None:
            lookup_field(self.field)

    def compile(self) -> tuple[str, list[Any]]:
        params: list[Any] = []
        filter_sql = ''
        if self.where:
            where_sql, params = compile_where(self.where)
            filter_sql = f' FILTER (WHERE {where_sql})'

        if self.fn == 'count':
            return f'COUNT(*){filter_sql}', params
        expr = lookup_field(self.field).sql  # type: ignore[arg-type]
        if self.fn == 'count_distinct':
            return f'COUNT(DISTINCT {expr}){filter_sql}', params
        return f'COALESCE({self.fn.upper()}({expr}){filter_sql}, 0)', params

    def evaluate(self, records: Iterable['ActivityRecord']) -> int | float:
        '''In-memory equivalent of the compiled SQL.'''
        matched = [r for r in records if matches_all(self.where, r)]
        if self.fn == 'count':
            return len(matched)
        read = lookup_field(self.field).read  # type: ignore[arg-type]
        values = [v for v in (read(r) for r in matched) if v is not None]
        if self.fn == 'count_distinct':
            return len(set(values))
        if self.fn == 'sum':
            return normalize_number(sum(values))
        if not values:
            return 0
        return normalize_number(max(values) if self.fn == 'max' else min(values))


def sum_of(name: str, *where: Where, column: str = 'quantity') -> Aggregate:
    return Aggregate(name, 'sum', column, tuple(where))


def count_of(name: str, *where: Where) -> Aggregate:
    return Aggregate(name, 'count', None, tuple(where))


def max_of(name: str, column: str, *where: Where) -> Aggregate:
    return Aggregate(name, 'max', column, tuple(where))


def distinct_of(name: str, column: str, *where: Where) -> Aggregate:
    return Aggregate(name, 'count_distinct', column, tuple(where))


def positive() -> Where:
    return Where('quantity', '>', 0)


def one_of(column: str, values: Sequence[Any]) -> Where:
    return Where(column, 'in', tuple(values))
