# pyright: reportAny=false, reportExplicitAny=false
"""In-memory query engine over entity listings.

Queries read each selected type through :meth:`EntityManager.list` and do
all filtering, sorting and pagination in memory. There are no indexes; cost
grows linearly with the number of entity files.
"""

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Final

import pendulum
from pendulum import DateTime

from specstore.entities import BaseEntity, EntityManager, parse_entity_id
from specstore.enums import EntityType, Priority
from specstore.exceptions import InvalidEntityIdError, UnknownEntityTypeError

_PRIORITY_RANK: Final = {priority: rank for rank, priority in enumerate(Priority)}
_TYPE_RANK: Final = {entity_type: rank for rank, entity_type in enumerate(EntityType)}
_EARLIEST: Final = pendulum.datetime(1, 1, 1, tz="UTC")


class SortField(StrEnum):
    """Fields query results can be ordered by."""

    NUMBER = "number"
    NAME = "name"
    PRIORITY = "priority"
    CREATED_AT = "created_at"
    UPDATED_AT = "updated_at"


class SortDirection(StrEnum):
    """Sort direction."""

    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True, slots=True)
class EntityQuery:
    """Filter, sort and pagination options.

    Empty tuples and None mean "no filter".

    Attributes:
        types: Entity types to include.
        ids: Composed entity IDs to include (resolved by type and number).
        priorities: Priorities to include.
        statuses: Status values to include.
        draft: Only drafts (True), only finalized entities (False), or both.
        search: Case-insensitive text matched against name, description
            and slug.
        order_by: Sort field.
        direction: Sort direction.
        offset: Number of matching entities to skip.
        limit: Maximum number of entities to return.
    """

    types: tuple[EntityType, ...] = ()
    ids: tuple[str, ...] = ()
    priorities: tuple[Priority, ...] = ()
    statuses: tuple[str, ...] = ()
    draft: bool | None = None
    search: str | None = None
    order_by: SortField = SortField.NUMBER
    direction: SortDirection = SortDirection.ASC
    offset: int = 0
    limit: int | None = None

    def __post_init__(self) -> None:
        if self.offset < 0:
            msg = f"offset must be >= 0, got {self.offset}"
            raise ValueError(msg)
        if self.limit is not None and self.limit < 0:
            msg = f"limit must be >= 0, got {self.limit}"
            raise ValueError(msg)


@dataclass(frozen=True, slots=True)
class QueryResult:
    """A page of query results.

    Attributes:
        items: Matching entities on this page, in sort order.
        total: Number of entities on this page.
        total_unpaginated: Number of entities matching before pagination.
    """

    items: tuple[BaseEntity, ...] = field(default_factory=tuple)
    total: int = 0
    total_unpaginated: int = 0


def _parse_ids(ids: Iterable[str]) -> set[tuple[EntityType, int]]:
    """Resolve composed IDs; IDs that cannot be parsed match nothing."""
    keys: set[tuple[EntityType, int]] = set()
    for entity_id in ids:
        try:
            parsed = parse_entity_id(entity_id)
        except (InvalidEntityIdError, UnknownEntityTypeError):
            continue
        keys.add((parsed.entity_type, parsed.number))
    return keys


def _matches(entity: BaseEntity, query: EntityQuery, id_keys: set[tuple[EntityType, int]]) -> bool:
    if query.ids and (type(entity).entity_type, entity.number) not in id_keys:
        return False
    if query.priorities and entity.priority not in query.priorities:
        return False
    if query.statuses and str(getattr(entity, "status", "")) not in query.statuses:
        return False
    if query.draft is not None and entity.draft != query.draft:
        return False
    if query.search:
        needle = query.search.casefold()
        haystack = " ".join((entity.name, entity.description, entity.slug or ""))
        if needle not in haystack.casefold():
            return False
    return True


def _instant(value: str) -> DateTime:
    # Offsets and date-only values compare as instants, not as text
    parsed = pendulum.parse(value)
    return parsed if isinstance(parsed, DateTime) else _EARLIEST


def _sort_key(order_by: SortField) -> Callable[[BaseEntity], tuple[Any, ...]]:
    def key(entity: BaseEntity) -> tuple[Any, ...]:
        tie = (_TYPE_RANK[type(entity).entity_type], entity.number)
        match order_by:
            case SortField.NAME:
                return (entity.name.casefold(), *tie)
            case SortField.PRIORITY:
                return (_PRIORITY_RANK[entity.priority], *tie)
            case SortField.CREATED_AT:
                return (_instant(entity.created_at), *tie)
            case SortField.UPDATED_AT:
                return (_instant(entity.updated_at), *tie)
            case _:
                return (entity.number, _TYPE_RANK[type(entity).entity_type])

    return key


def run_query(
    managers: Iterable[EntityManager[Any]],
    query: EntityQuery,
) -> QueryResult:
    """Run a query across entity managers.

    Args:
        managers: Managers of every entity type that may be queried.
        query: Query options.

    Returns:
        The requested page of matching entities.
    """
    id_keys = _parse_ids(query.ids)
    selected = [m for m in managers if not query.types or m.entity_type in query.types]

    matching = [
        entity
        for manager in selected
        for entity in manager.list()
        if _matches(entity, query, id_keys)
    ]
    matching.sort(key=_sort_key(query.order_by), reverse=query.direction == SortDirection.DESC)

    end = None if query.limit is None else query.offset + query.limit
    page = tuple(matching[query.offset : end])
    return QueryResult(items=page, total=len(page), total_unpaginated=len(matching))
