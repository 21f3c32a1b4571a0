"""Builds parameterised SQL statements from dataclass entities and filters.

An entity is a dataclass with a ``table_name`` class variable.  Column mapping
is described through field metadata created with :func:`mapped`; filter
criteria are described with :func:`criterion`.
"""

from __future__ import annotations

from dataclasses import MISSING, dataclass, field, fields, is_dataclass
from enum import Enum, IntEnum
from typing import Any, Iterable, Sequence

_COLUMN = "column"
_AUTO_GENERATED = "auto_generated"
_NOT_MAPPED = "not_mapped"
_RELATION = "relation"


def mapped(*, column=None, auto_generated=False, not_mapped=False,
           default=MISSING, default_factory=MISSING):
    """Declare an entity field together with its column mapping."""
    metadata = {
        _COLUMN: column,
        _AUTO_GENERATED: auto_generated,
        _NOT_MAPPED: not_mapped,
    }
    return field(default=default, default_factory=default_factory, metadata=metadata)


def criterion(*, column, relation, default=MISSING, default_factory=MISSING):
    """Declare a filter field compared against ``column`` with ``relation``."""
    metadata = {_COLUMN: column, _RELATION: relation}
    return field(default=default, default_factory=default_factory, metadata=metadata)


class SelectType(IntEnum):
    """Kind of select clause to produce."""

    ALL = 0
    COUNT = 1
    SUM = 2
    SPECIAL = 3


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


@dataclass
class SortField:
    field_name: str
    direction: SortDirection = SortDirection.ASC


@dataclass
class SelectBuildRequest:
    """Settings for building a select statement."""

    filter: Any = None
    sorts: list = field(default_factory=list)
    select_type: SelectType = SelectType.ALL
    special_select: str = ""
    take: int = 0
    skip: int = 0

    def with_filter(self, filter):
        self.filter = filter
        return self

    def with_sorts(self, sorts):
        self.sorts = list(sorts)
        return self

    def set_select_type(self, select_type, special_select):
        self.select_type = select_type
        self.special_select = special_select
        return self

    def need_take(self, take):
        self.take = take
        return self

    def need_skip(self, skip):
        self.skip = skip
        return self


@dataclass(frozen=True)
class UpdateValue:
    field_name: str
    new_value: Any


class UpdateValues(list):
    """Ordered collection of column assignments for an update statement."""

    def and_update(self, field_name, new_value):
        return UpdateValues([*self, UpdateValue(field_name, new_value)])


def set_update(field_name, new_value):
    """Start a collection of column assignments."""
    return UpdateValues([UpdateValue(field_name, new_value)])


def _is_mapped(f) -> bool:
    return not f.metadata.get(_NOT_MAPPED, False)


def _is_auto_generated(f) -> bool:
    return bool(f.metadata.get(_AUTO_GENERATED, False))


def _column_of(f) -> str:
    return f.metadata.get(_COLUMN) or f.name


def build_query(entity, request):
    """Build a select statement and its parameters for ``entity``."""
    parts = [build_select(entity, request.select_type, request.special_select)]
    parts.append(f"\nfrom {entity.table_name}")
    where, values = build_where(request.filter, 1)
    parts.append(where)
    parts.append(build_sorter(request.sorts))
    if request.take:
        parts.append(f"\n LIMIT {request.take}")
    if request.skip:
        parts.append(f"\n OFFSET {request.skip}")
    return "".join(parts), values


def build_update(entity, values, filter):
    """Build an update statement and its parameters."""
    if not values:
        raise ValueError("update parameters does not exists")

    sets = []
    params = []
    for index, value in enumerate(values, start=1):
        sets.append(f"{value.field_name} = ${index}")
        params.append(value.new_value)

    where, where_values = build_where(filter, len(params) + 1)
    params.extend(where_values)
    query = f"update {entity.table_name}\n set " + ",\n".join(sets) + where
    return query, params


def build_delete(entity, filter):
    """Build a delete statement and its parameters."""
    where, values = build_where(filter, 1)
    return f"delete from {entity.table_name}{where}", values


def build_insert(entity, without_autogenerated):
    """Build an insert statement; auto-generated columns may be left to the database."""
    count = sum(
        1
        for f in fields(entity)
        if _is_mapped(f) and not (without_autogenerated and _is_auto_generated(f))
    )
    placeholders = ", ".join(f"${i}" for i in range(1, count + 1))
    query = (
        f"insert into {entity.table_name}"
        f"\n\t({column_names(entity, without_autogenerated)})"
        f"\nvalues\n\t({placeholders})"
    )
    if without_autogenerated:
        query += f"\nreturning {column_names_with_aliases(entity, True)}"
    return query


def rows_to_entities(entity, rows: Iterable[Sequence[Any]]):
    """Turn result rows into entity instances, matching mapped fields by position."""
    names = [f.name for f in fields(entity) if _is_mapped(f)]
    entities = []
    for row in rows:
        values = tuple(row)
        if len(values) != len(names):
            raise ValueError(
                f"expected {len(names)} columns in row, got {len(values)}"
            )
        entities.append(entity(**dict(zip(names, values))))
    return entities


def build_select(entity, select_type, special_select):
    """Build the select clause."""
    special_select = special_select or "*"
    if select_type == SelectType.ALL:
        return f"select {column_names_with_aliases(entity, False)}"
    if select_type == SelectType.SUM:
        return f"select sum({special_select})"
    if select_type == SelectType.COUNT:
        return f"select count({special_select})"
    return f"select {special_select}"


def column_names(entity, without_autogenerated):
    """Comma separated mapped column names."""
    return ", ".join(
        _column_of(f)
        for f in fields(entity)
        if _is_mapped(f) and not (without_autogenerated and _is_auto_generated(f))
    )


def column_names_with_aliases(entity, only_autogenerated):
    """Comma separated column names aliased to their field names."""
    columns = []
    for f in fields(entity):
        if only_autogenerated and not _is_auto_generated(f):
            continue
        if not _is_mapped(f):
            continue
        column = f.metadata.get(_COLUMN)
        columns.append(f"{column} as {f.name}" if column else f.name)
    return ", ".join(columns)


def _is_zero(value) -> bool:
    return value is None or not value


def build_where(filter, first_param_index):
    """Build a where clause from a filter dataclass, numbering parameters from ``first_param_index``."""
    if filter is None:
        return "", []

    parts = ["\n where 1 = 1"]
    values: list = []
    if is_dataclass(filter) and not isinstance(filter, type):
        for f in fields(filter):
            value = getattr(filter, f.name)
            if _is_zero(value):
                continue
            column = f.metadata.get(_COLUMN, "")
            relation = f.metadata.get(_RELATION, "")
            if relation in ("=", "<", ">"):
                parts.append(
                    f"\n  and {column} {relation} ${len(values) + first_param_index}"
                )
                values.append(value)
            elif relation == "like":
                parts.append(
                    f"\n  and {column} like '%' || ${len(values) + first_param_index} || '%'"
                )
                values.append(str(value))
            elif relation == "in":
                if not isinstance(value, (list, tuple)):
                    raise TypeError(f"unsupported value for 'in' criterion: {value!r}")
                params = []
                for item in value:
                    params.append(f"${len(values) + first_param_index}")
                    values.append(item)
                parts.append(f"\n  and {column} in ({', '.join(params)})")
    return "".join(parts), values


def _direction_text(direction) -> str:
    return direction.value if isinstance(direction, Enum) else str(direction)


def build_sorter(sort_fields):
    """Build the order by clause; defaults to newest first."""
    if not sort_fields:
        return "\n order by created desc"
    return "\n order by " + ", ".join(
        f"{s.field_name} {_direction_text(s.direction)}" for s in sort_fields
    )