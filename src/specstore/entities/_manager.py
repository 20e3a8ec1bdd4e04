# pyright: reportAny=false, reportExplicitAny=false
"""Entity manager for one entity type.

The manager composes a :class:`~specstore.storage.YamlFileStore` for file
access and a :class:`~specstore.storage.CounterStore` for number allocation.
It owns the file naming rules, validates every write against the type's
schema, and reads tolerantly: a file that cannot be parsed or validated is
reported as a validation warning and treated as absent.

File layout inside the type's folder::

    {prefix}-{NNN}-{slug}.yml     finalized entity
    {prefix}-{NNN}.draft.yml      flagged draft (``draft: true``)
"""

from collections import defaultdict
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Final

from pydantic import ValidationError
from structlog.typing import FilteringBoundLogger

from specstore.enums import EntityType
from specstore.exceptions import (
    DraftNotFoundError,
    DuplicateSlugError,
    EntityExistsError,
    EntityNotFoundError,
    EntityValidationError,
    StoreError,
)
from specstore.storage import CounterStore, YamlFileStore
from specstore.utils import create_default_logger

from ._envelopes import EnvelopeDraft, EnvelopeDraftStore
from ._kinds import ENTITY_FILE_EXTENSION, EntityKind
from ._models import BaseEntity, now_iso
from ._naming import (
    ParsedFilename,
    format_draft_filename,
    format_entity_filename,
    format_entity_id,
    normalize_slug,
    parse_entity_filename,
    slugify,
)

# Keys callers may not change through update()
_IMMUTABLE_FIELDS: Final = ("type", "number", "created_at")


@dataclass(frozen=True, slots=True)
class ValidationWarning:
    """A file that was skipped because it could not be read as an entity.

    Attributes:
        entity_type: The entity type whose folder holds the file.
        file_name: The file name, relative to the type's folder.
        message: Why the file was skipped.
    """

    entity_type: EntityType
    file_name: str
    message: str


@dataclass(frozen=True, slots=True)
class _Located[EntityT: BaseEntity]:
    entity: EntityT
    file_name: str


def format_validation_errors(error: ValidationError) -> list[str]:
    """Render pydantic errors as one ``field: message`` string each."""
    messages: list[str] = []
    for detail in error.errors():
        location = ".".join(str(part) for part in detail["loc"])
        messages.append(f"{location}: {detail['msg']}" if location else detail["msg"])
    return messages


class EntityManager[EntityT: BaseEntity]:
    """CRUD operations for the entities of one type.

    Attributes:
        kind: Naming and storage facts for the entity type.
        schema: Pydantic model entities are validated against.
        folder: Folder holding the entity files, relative to the specs root.
    """

    __slots__: Final = (
        "_counter",
        "_drafts",
        "_kind",
        "_logger",
        "_schema",
        "_store",
        "_warnings",
    )

    _store: YamlFileStore
    _counter: CounterStore
    _kind: EntityKind
    _schema: type[EntityT]
    _drafts: EnvelopeDraftStore
    _logger: FilteringBoundLogger
    _warnings: list[ValidationWarning]

    def __init__(
        self,
        store: YamlFileStore,
        counter: CounterStore,
        kind: EntityKind,
        schema: type[EntityT],
        *,
        drafts: EnvelopeDraftStore | None = None,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        """Initialize the entity manager.

        Args:
            store: File store rooted at the specs folder.
            counter: Counter store issuing entity numbers.
            kind: Naming and storage facts for the entity type.
            schema: Pydantic model for the entity type.
            drafts: Shared envelope draft store. One is created when omitted.
            logger: Logger to use; a stderr logger is created when omitted.
        """
        base_logger = logger if logger is not None else create_default_logger()
        self._store = store
        self._counter = counter
        self._kind = kind
        self._schema = schema
        self._logger = base_logger.bind(entity_type=str(kind.entity_type))
        self._drafts = drafts if drafts is not None else EnvelopeDraftStore(store, base_logger)
        self._warnings = []

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def kind(self) -> EntityKind:
        """Get the entity kind."""
        return self._kind

    @property
    def entity_type(self) -> EntityType:
        """Get the entity type."""
        return self._kind.entity_type

    @property
    def schema(self) -> type[EntityT]:
        """Get the entity schema."""
        return self._schema

    @property
    def folder(self) -> str:
        """Get the entity folder relative to the specs root."""
        return self._kind.folder

    @property
    def validation_warnings(self) -> tuple[ValidationWarning, ...]:
        """Files skipped by read operations since the last clear."""
        return tuple(self._warnings)

    def clear_validation_warnings(self) -> None:
        """Forget previously recorded validation warnings."""
        self._warnings.clear()

    def ensure_folder(self) -> Path:
        """Create the entity folder if it does not exist."""
        return self._store.ensure_folder(self._kind.folder)

    # -------------------------------------------------------------------------
    # Naming
    # -------------------------------------------------------------------------

    def file_name_for(self, entity: BaseEntity) -> str:
        """Compute the file name an entity is stored under."""
        if entity.draft:
            return format_draft_filename(self._kind.prefix, entity.number)
        # Finalized entities always carry a slug once validated
        return format_entity_filename(self._kind.prefix, entity.number, entity.slug or "")

    def entity_id(self, entity: BaseEntity) -> str:
        """Compose the reference ID of an entity (``pln-001-slug``)."""
        return format_entity_id(self.entity_type, entity.number, entity.slug)

    def _relative(self, file_name: str) -> str:
        return f"{self._kind.folder}/{file_name}"

    def _scan(self) -> list[tuple[ParsedFilename, str]]:
        """List entity files of this type with their parsed names."""
        found: list[tuple[ParsedFilename, str]] = []
        for base_name in self._store.list_files(self._kind.folder, ENTITY_FILE_EXTENSION):
            parsed = parse_entity_filename(base_name)
            if parsed is None or parsed.prefix not in self._kind.prefixes:
                continue
            found.append((parsed, base_name + ENTITY_FILE_EXTENSION))
        return found

    def _ordered(
        self, candidates: list[tuple[ParsedFilename, str]]
    ) -> list[tuple[ParsedFilename, str]]:
        # Finalized before draft, canonical prefix before aliases
        return sorted(
            candidates,
            key=lambda item: (item[0].draft, item[0].prefix != self._kind.prefix, item[1]),
        )

    # -------------------------------------------------------------------------
    # Tolerant reads
    # -------------------------------------------------------------------------

    def _skip(self, file_name: str, message: str) -> None:
        self._warnings.append(ValidationWarning(self.entity_type, file_name, message))
        self._logger.warning("entity_skipped", file_name=file_name, reason=message)

    def _load_file(self, parsed: ParsedFilename, file_name: str) -> EntityT | None:
        """Read and validate one file; problems are recorded, never raised."""
        try:
            raw = self._store.read_yaml(self._relative(file_name))
        except StoreError as e:
            self._skip(file_name, str(e))
            return None

        if not isinstance(raw, dict):
            self._skip(file_name, f"Expected a YAML mapping, got {type(raw).__name__}")
            return None

        try:
            entity = self._schema.model_validate(raw)
        except ValidationError as e:
            self._skip(file_name, "; ".join(format_validation_errors(e)))
            return None

        if entity.number != parsed.number:
            self._skip(file_name, f"File name number {parsed.number} != content number {entity.number}")
            return None
        if entity.draft != parsed.draft:
            self._skip(file_name, "Draft flag does not match file name")
            return None
        if not parsed.draft and entity.slug != parsed.slug:
            self._skip(file_name, f"File name slug {parsed.slug!r} != content slug {entity.slug!r}")
            return None

        return entity

    def _first_valid(
        self, candidates: list[tuple[ParsedFilename, str]]
    ) -> _Located[EntityT] | None:
        for parsed, file_name in self._ordered(candidates):
            entity = self._load_file(parsed, file_name)
            if entity is not None:
                return _Located(entity, file_name)
        return None

    def _locate(self, number: int, *, draft: bool | None = None) -> _Located[EntityT] | None:
        candidates = [
            item
            for item in self._scan()
            if item[0].number == number and (draft is None or item[0].draft == draft)
        ]
        return self._first_valid(candidates)

    def get(self, number: int) -> EntityT | None:
        """Get an entity by number.

        A finalized file is preferred over a flagged draft with the same
        number.

        Returns:
            The entity, or None if no readable, schema-valid file exists.
        """
        located = self._locate(number)
        return located.entity if located is not None else None

    def get_by_slug(self, slug: str) -> EntityT | None:
        """Get a finalized entity by slug.

        Returns:
            The entity, or None if no readable, schema-valid file exists.
        """
        wanted = normalize_slug(slug)
        candidates = [
            item for item in self._scan() if not item[0].draft and item[0].slug == wanted
        ]
        located = self._first_valid(candidates)
        return located.entity if located is not None else None

    def entity_exists(self, number: int) -> bool:
        """Check for a finalized file with this number (name only, not content)."""
        return any(not parsed.draft and parsed.number == number for parsed, _ in self._scan())

    def draft_exists(self, number: int) -> bool:
        """Check for a flagged draft file with this number (name only, not content)."""
        return any(parsed.draft and parsed.number == number for parsed, _ in self._scan())

    def exists(self, number: int) -> bool:
        """Check for any file, finalized or draft, with this number."""
        return any(parsed.number == number for parsed, _ in self._scan())

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def _validate(self, payload: dict[str, Any], number: int | None) -> EntityT:
        try:
            return self._schema.model_validate(payload)
        except ValidationError as e:
            errors = format_validation_errors(e)
            msg = f"Invalid {self.entity_type} data: {'; '.join(errors)}"
            raise EntityValidationError(
                msg,
                entity_type=str(self.entity_type),
                number=number,
                errors=errors,
            ) from e

    def _check_slug_available(self, entity: BaseEntity, *, own_number: int | None) -> None:
        if entity.draft or entity.slug is None:
            return
        for parsed, file_name in self._scan():
            if parsed.draft or parsed.slug != entity.slug or parsed.number == own_number:
                continue
            msg = f"Slug {entity.slug!r} is already used by {file_name}"
            raise DuplicateSlugError(
                msg,
                entity_type=str(self.entity_type),
                number=entity.number,
                slug=entity.slug,
            )

    def _ensure_unoccupied(self, number: int) -> None:
        if self.exists(number):
            msg = f"{self.entity_type} number {number} is already in use"
            raise EntityExistsError(
                msg,
                entity_type=str(self.entity_type),
                number=number,
                errors=[msg],
            )

    def _with_slug(self, payload: dict[str, Any]) -> dict[str, Any]:
        # Finalized entities without a slug take one derived from the name
        slug = payload.get("slug")
        if isinstance(slug, str):
            slug = normalize_slug(slug)
        if payload.get("draft") or slug:
            return payload
        name = payload.get("name")
        if isinstance(name, str) and slugify(name):
            return {**payload, "slug": slugify(name)}
        return payload

    def _write(self, entity: BaseEntity) -> str:
        file_name = self.file_name_for(entity)
        self._store.write_yaml(self._relative(file_name), entity.to_document())
        return file_name

    def create(self, data: dict[str, Any], number: int | None = None) -> EntityT:
        """Create a new entity.

        The payload is validated before a number is allocated, so rejected
        data neither consumes a number nor writes a file. ``type`` is always
        set to this manager's type; timestamps are filled when absent.

        Args:
            data: Entity fields. ``number`` in the payload is ignored.
            number: Explicit number to use instead of allocating one. The
                counter is not advanced for explicit numbers.

        Returns:
            The created entity.

        Raises:
            EntityValidationError: If the data fails schema validation.
            DuplicateSlugError: If another finalized entity has the slug.
            EntityExistsError: If the number is already used on disk.
            StoreIOError: If the counter or entity file cannot be written.
        """
        now = now_iso()
        payload = self._with_slug(
            {
                "created_at": now,
                "updated_at": now,
                **data,
                "type": str(self.entity_type),
            }
        )

        if number is not None:
            entity = self._validate({**payload, "number": number}, number)
            self._check_slug_available(entity, own_number=number)
            self._ensure_unoccupied(number)
        else:
            provisional = self._counter.get_last_id(self.entity_type) + 1
            entity = self._validate({**payload, "number": provisional}, None)
            self._check_slug_available(entity, own_number=None)
            allocated = self._counter.get_next_id(self.entity_type)
            self._ensure_unoccupied(allocated)
            entity = entity.model_copy(update={"number": allocated})

        file_name = self._write(entity)
        self._logger.info("entity_created", number=entity.number, file_name=file_name)
        return entity

    def update(self, number: int, changes: dict[str, Any]) -> EntityT:
        """Apply a partial update to an entity.

        ``type``, ``number`` and ``created_at`` cannot be changed; values for
        them in ``changes`` are ignored. When the slug or draft flag changes,
        the entity moves to its new file name: the new file is written first
        and the old one removed afterwards.

        Args:
            number: Number of the entity to update.
            changes: Fields to replace (shallow merge).

        Returns:
            The updated entity.

        Raises:
            EntityNotFoundError: If no entity has this number.
            EntityValidationError: If the merged data fails validation.
            DuplicateSlugError: If the new slug is taken.
            StoreIOError: If the file cannot be written or the old one removed.
        """
        located = self._locate(number)
        if located is None:
            msg = f"{self.entity_type} {number} not found"
            raise EntityNotFoundError(msg, entity_type=str(self.entity_type), number=number)

        existing = located.entity
        editable = {key: value for key, value in changes.items() if key not in _IMMUTABLE_FIELDS}
        payload = {
            **existing.to_document(),
            **editable,
            "type": str(self.entity_type),
            "number": number,
            "created_at": existing.created_at,
            "updated_at": now_iso(),
        }
        entity = self._validate(payload, number)
        self._check_slug_available(entity, own_number=number)

        file_name = self._write(entity)
        if file_name != located.file_name:
            self._store.delete(self._relative(located.file_name))
            self._logger.info(
                "entity_renamed",
                number=number,
                old_file_name=located.file_name,
                file_name=file_name,
            )

        self._logger.info("entity_updated", number=number, fields=sorted(editable))
        return entity

    def promote(self, number: int, slug: str | None = None) -> EntityT:
        """Turn a flagged draft into a finalized entity.

        Args:
            number: Number of the flagged draft.
            slug: Slug for the finalized entity. Defaults to the draft's slug
                or one derived from its name.

        Returns:
            The finalized entity.

        Raises:
            EntityNotFoundError: If no flagged draft has this number.
            EntityValidationError: If the finalized data fails validation.
            DuplicateSlugError: If the slug is taken.
        """
        located = self._locate(number, draft=True)
        if located is None:
            msg = f"{self.entity_type} draft {number} not found"
            raise EntityNotFoundError(msg, entity_type=str(self.entity_type), number=number)

        draft = located.entity
        new_slug = slug or draft.slug or slugify(draft.name)
        payload = {
            **draft.to_document(),
            "draft": False,
            "slug": new_slug,
            "updated_at": now_iso(),
        }
        entity = self._validate(payload, number)
        self._check_slug_available(entity, own_number=number)

        file_name = self._write(entity)
        self._store.delete(self._relative(located.file_name))
        self._logger.info("entity_promoted", number=number, file_name=file_name)
        return entity

    def delete(self, number: int) -> None:
        """Delete an entity. Its number is never reissued.

        Raises:
            EntityNotFoundError: If no entity has this number.
            StoreIOError: If the file cannot be removed.
        """
        located = self._locate(number)
        if located is None:
            msg = f"{self.entity_type} {number} not found"
            raise EntityNotFoundError(msg, entity_type=str(self.entity_type), number=number)

        self._store.delete(self._relative(located.file_name))
        self._logger.info("entity_deleted", number=number, file_name=located.file_name)

    # -------------------------------------------------------------------------
    # Envelope drafts
    # -------------------------------------------------------------------------

    def save_draft(
        self,
        data: dict[str, Any],
        *,
        state: dict[str, Any] | None = None,
        draft_id: str | None = None,
    ) -> EnvelopeDraft:
        """Save in-progress data for this type as an envelope draft.

        Raises:
            DraftNotFoundError: If ``draft_id`` is not a draft of this type.
        """
        return self._drafts.save(self.entity_type, data, state=state, draft_id=draft_id)

    def load_draft(self, draft_id: str) -> EnvelopeDraft | None:
        """Load an envelope draft of this type, or None."""
        draft = self._drafts.load(draft_id)
        if draft is None or draft.type != self.entity_type:
            return None
        return draft

    def list_drafts(self) -> list[EnvelopeDraft]:
        """List the envelope drafts of this type."""
        return self._drafts.list_drafts(self.entity_type)

    def delete_draft(self, draft_id: str) -> None:
        """Delete an envelope draft of this type.

        Raises:
            DraftNotFoundError: If the draft does not exist for this type.
        """
        if self.load_draft(draft_id) is None:
            msg = f"Draft not found: {draft_id}"
            raise DraftNotFoundError(msg, draft_id=draft_id)
        self._drafts.delete(draft_id)

    def promote_draft(self, draft_id: str, changes: dict[str, Any] | None = None) -> EntityT:
        """Create an entity from an envelope draft.

        The draft data (with ``changes`` applied on top) goes through
        :meth:`create`. If that fails the draft is left untouched. After a
        successful create the draft, and any other draft of this type with
        identical data, is removed on a best-effort basis.

        Raises:
            DraftNotFoundError: If the draft does not exist for this type.
            EntityValidationError: If the accumulated data is not a valid entity.
        """
        draft = self.load_draft(draft_id)
        if draft is None:
            msg = f"Draft not found: {draft_id}"
            raise DraftNotFoundError(msg, draft_id=draft_id)

        entity = self.create({**draft.data, **(changes or {})})

        try:
            self._drafts.delete(draft_id)
        except (DraftNotFoundError, StoreError) as e:
            self._logger.warning("draft_cleanup_failed", draft_id=draft_id, error=str(e))
        _ = self._drafts.discard_matching(self.entity_type, draft.data)

        self._logger.info("draft_promoted", draft_id=draft_id, number=entity.number)
        return entity

    # -------------------------------------------------------------------------
    # Listing
    # -------------------------------------------------------------------------

    def list(self) -> list[EntityT]:
        """List all readable entities, sorted by number.

        Unreadable or invalid files are skipped and recorded as validation
        warnings. When a number has both a finalized file and a flagged
        draft, the finalized entity is returned.
        """
        by_number: defaultdict[int, list[tuple[ParsedFilename, str]]] = defaultdict(list)
        for item in self._scan():
            by_number[item[0].number].append(item)

        entities: list[EntityT] = []
        for number in sorted(by_number):
            located = self._first_valid(by_number[number])
            if located is not None:
                entities.append(located.entity)
        return entities
