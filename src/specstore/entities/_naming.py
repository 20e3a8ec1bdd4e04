"""File naming and ID utilities for specification entities.

This module owns the reversible mapping between ``(prefix, number, slug)``
and entity file names, plus the composed ID strings entities use to refer
to each other.

File names:
    Finalized: ``{prefix}-{NNN}-{slug}.yml``
    Flagged draft: ``{prefix}-{NNN}.draft.yml``

Composed IDs:
    ``{prefix}-{NNN}`` or ``{prefix}-{NNN}-{slug}``, optionally with a
    ``.yml``/``.yaml`` suffix when copied from a file name.
"""

import re
from dataclasses import dataclass
from typing import Final

from specstore.enums import EntityType
from specstore.exceptions import InvalidEntityIdError

from ._kinds import DRAFT_MARKER, ENTITY_FILE_EXTENSION, EntityKind, kind_for_prefix, kind_for_type

NUMBER_WIDTH: Final = 3
SLUG_MAX_LENGTH: Final = 50

SLUG_PATTERN: Final = re.compile(r"^[a-z0-9]+(-[a-z0-9]+)*$")

_FILENAME_PATTERN: Final = re.compile(
    r"^(?P<prefix>[a-z]{3})-(?P<number>\d+)"
    r"(?:-(?P<slug>[a-z0-9]+(?:-[a-z0-9]+)*)|(?P<draft>\.draft))$"
)
_ENTITY_ID_PATTERN: Final = re.compile(
    r"^(?P<prefix>[a-z]{3})-(?P<number>\d+)(?:-(?P<slug>[a-z0-9-]+))?$"
)
_ID_SUFFIXES: Final = (".yml", ".yaml")


# =============================================================================
# Dataclasses
# =============================================================================


@dataclass(frozen=True, slots=True)
class ParsedFilename:
    """Components recovered from an entity file name.

    Attributes:
        prefix: The ID prefix found in the name.
        number: The entity number.
        slug: The slug for finalized entities, None for drafts.
        draft: Whether the name uses the flagged-draft form.
    """

    prefix: str
    number: int
    slug: str | None
    draft: bool


@dataclass(frozen=True, slots=True)
class EntityId:
    """A parsed composed entity ID.

    Attributes:
        kind: The entity kind resolved from the prefix.
        number: The entity number.
        slug: The slug part, if present. Display-only; never used to resolve.
    """

    kind: EntityKind
    number: int
    slug: str | None = None

    @property
    def entity_type(self) -> EntityType:
        """The entity type the ID refers to."""
        return self.kind.entity_type

    def __str__(self) -> str:
        return format_entity_id(self.kind.entity_type, self.number, self.slug)


# =============================================================================
# Slugs
# =============================================================================


def normalize_slug(value: str) -> str:
    """Tidy an author-supplied slug.

    Trims whitespace, strips leading and trailing dashes and collapses runs
    of dashes. The result is not validated.
    """
    return re.sub(r"-{2,}", "-", value.strip().strip("-"))


def is_valid_slug(value: str) -> bool:
    """Check whether a value is a well-formed slug."""
    return bool(SLUG_PATTERN.match(value))


def slugify(text: str, max_length: int = SLUG_MAX_LENGTH) -> str:
    """Derive a slug from a display name.

    Args:
        text: The text to convert.
        max_length: Maximum length of the slug.

    Returns:
        A lowercase, dash-separated slug. Empty if the text has no
        alphanumeric characters.
    """
    slug = text.lower()
    slug = re.sub(r"[^a-z0-9]+", "-", slug)
    slug = slug.strip("-")
    if len(slug) > max_length:
        slug = slug[:max_length].rstrip("-")
    return slug


# =============================================================================
# File Names
# =============================================================================


def format_entity_filename(prefix: str, number: int, slug: str) -> str:
    """Build the file name of a finalized entity.

    Raises:
        ValueError: If the number is not positive or the slug is malformed.
    """
    if number < 1:
        msg = f"Entity number must be positive, got {number}"
        raise ValueError(msg)
    if not is_valid_slug(slug):
        msg = f"Invalid slug: {slug!r}"
        raise ValueError(msg)
    return f"{prefix}-{number:0{NUMBER_WIDTH}d}-{slug}{ENTITY_FILE_EXTENSION}"


def format_draft_filename(prefix: str, number: int) -> str:
    """Build the file name of a flagged draft entity.

    Raises:
        ValueError: If the number is not positive.
    """
    if number < 1:
        msg = f"Entity number must be positive, got {number}"
        raise ValueError(msg)
    return f"{prefix}-{number:0{NUMBER_WIDTH}d}{DRAFT_MARKER}{ENTITY_FILE_EXTENSION}"


def parse_entity_filename(name: str) -> ParsedFilename | None:
    """Recover the components of an entity file name.

    Accepts names with or without the ``.yml`` extension, as returned by
    the file store listing.

    Args:
        name: The file name or base name.

    Returns:
        The parsed components, or None if the name is not an entity file.
    """
    base = name.removesuffix(ENTITY_FILE_EXTENSION)
    match = _FILENAME_PATTERN.match(base)
    if match is None:
        return None

    number = int(match.group("number"))
    if number < 1:
        return None

    return ParsedFilename(
        prefix=match.group("prefix"),
        number=number,
        slug=match.group("slug"),
        draft=match.group("draft") is not None,
    )


# =============================================================================
# Composed IDs
# =============================================================================


def format_entity_id(
    entity_type: EntityType | str,
    number: int,
    slug: str | None = None,
) -> str:
    """Build a composed ID such as ``pln-007`` or ``pln-007-auth-flow``."""
    prefix = kind_for_type(entity_type).prefix
    base = f"{prefix}-{number:0{NUMBER_WIDTH}d}"
    return f"{base}-{slug}" if slug else base


def parse_entity_id(text: str) -> EntityId:
    """Parse a composed ID.

    Legacy alias prefixes resolve to their entity type. A trailing
    ``.yml``/``.yaml`` or ``.draft`` suffix is ignored.

    Args:
        text: The ID to parse.

    Returns:
        The parsed ID.

    Raises:
        InvalidEntityIdError: If the text is not shaped like an entity ID.
        UnknownEntityTypeError: If the prefix is not a known entity prefix.
    """
    value = text.strip()
    for suffix in _ID_SUFFIXES:
        value = value.removesuffix(suffix)
    value = value.removesuffix(DRAFT_MARKER)

    match = _ENTITY_ID_PATTERN.match(value)
    if match is None:
        msg = f"Invalid entity ID format: {text}"
        raise InvalidEntityIdError(msg, value=text)

    number = int(match.group("number"))
    if number < 1:
        msg = f"Invalid entity ID format: {text}"
        raise InvalidEntityIdError(msg, value=text)

    kind = kind_for_prefix(match.group("prefix"))
    return EntityId(kind=kind, number=number, slug=match.group("slug") or None)
