"""Static table of entity kinds.

Each entity type has exactly one canonical ID prefix, used for every file
and ID this package writes. Alias prefixes found in older specs folders are
accepted when parsing and never produced.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Final

from specstore.enums import EntityType
from specstore.exceptions import UnknownEntityTypeError

ENTITY_FILE_EXTENSION: Final = ".yml"
DRAFT_MARKER: Final = ".draft"


@dataclass(frozen=True, slots=True)
class EntityKind:
    """Naming and storage facts for one entity type.

    Attributes:
        entity_type: The entity type.
        prefix: Canonical three-letter ID prefix.
        aliases: Legacy prefixes accepted when parsing.
        folder: Folder holding the entity files, relative to the specs root.
        attribute: Name of the registry property exposing the manager.
    """

    entity_type: EntityType
    prefix: str
    aliases: tuple[str, ...]
    folder: str
    attribute: str

    @property
    def prefixes(self) -> tuple[str, ...]:
        """All prefixes accepted for this kind, canonical first."""
        return (self.prefix, *self.aliases)


ENTITY_KINDS: Final[tuple[EntityKind, ...]] = (
    EntityKind(
        EntityType.BUSINESS_REQUIREMENT,
        prefix="brd",
        aliases=("brq",),
        folder="requirements/business",
        attribute="business_requirements",
    ),
    EntityKind(
        EntityType.TECHNICAL_REQUIREMENT,
        prefix="prd",
        aliases=("trq",),
        folder="requirements/technical",
        attribute="technical_requirements",
    ),
    EntityKind(
        EntityType.PLAN,
        prefix="pln",
        aliases=(),
        folder="plans",
        attribute="plans",
    ),
    EntityKind(
        EntityType.COMPONENT,
        prefix="cmp",
        aliases=(),
        folder="components",
        attribute="components",
    ),
    EntityKind(
        EntityType.CONSTITUTION,
        prefix="con",
        aliases=("cns", "cos"),
        folder="constitutions",
        attribute="constitutions",
    ),
    EntityKind(
        EntityType.DECISION,
        prefix="dec",
        aliases=("dcs",),
        folder="decisions",
        attribute="decisions",
    ),
    EntityKind(
        EntityType.MILESTONE,
        prefix="mls",
        aliases=(),
        folder="milestones",
        attribute="milestones",
    ),
)

_KINDS_BY_TYPE: Final = MappingProxyType({kind.entity_type: kind for kind in ENTITY_KINDS})
_KINDS_BY_PREFIX: Final = MappingProxyType(
    {prefix: kind for kind in ENTITY_KINDS for prefix in kind.prefixes}
)


def kind_for_type(entity_type: EntityType | str) -> EntityKind:
    """Look up the kind for an entity type.

    Raises:
        UnknownEntityTypeError: If the type is not known.
    """
    try:
        return _KINDS_BY_TYPE[EntityType(entity_type)]
    except ValueError as e:
        msg = f"Unknown entity type: {entity_type}"
        raise UnknownEntityTypeError(msg, value=str(entity_type)) from e


def kind_for_prefix(prefix: str) -> EntityKind:
    """Look up the kind for a canonical or alias prefix.

    Raises:
        UnknownEntityTypeError: If the prefix is not known.
    """
    kind = _KINDS_BY_PREFIX.get(prefix.lower())
    if kind is None:
        msg = f"Unknown entity prefix: {prefix}"
        raise UnknownEntityTypeError(msg, value=prefix)
    return kind


def known_prefixes() -> frozenset[str]:
    """Every prefix accepted when parsing, canonical and alias."""
    return frozenset(_KINDS_BY_PREFIX)
