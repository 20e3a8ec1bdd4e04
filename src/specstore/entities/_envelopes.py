# pyright: reportAny=false, reportExplicitAny=false
"""Envelope drafts for in-progress entity authoring.

An envelope draft is free-form: it holds whatever partial entity data and
workflow state a guided authoring session has gathered so far, and does not
have to satisfy the entity schema. Envelopes live in ``.drafts/`` under the
specs root as ``draft-NNN.yaml`` and are shared by all entity types; each
envelope records the type it is meant to become.

Envelope drafts are unrelated to flagged drafts (entities saved with
``draft: true``), which are real entities stored in the type's folder.
"""

import re
from typing import Any, ClassVar, Final

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from structlog.typing import FilteringBoundLogger

from specstore.enums import EntityType
from specstore.exceptions import DraftNotFoundError, StoreError
from specstore.storage import YamlFileStore

from ._models import IsoTimestamp, now_iso

DRAFTS_FOLDER: Final = ".drafts"
DRAFT_EXTENSION: Final = ".yaml"

_DRAFT_ID_PATTERN: Final = re.compile(r"^draft-(\d{3,})$")


class EnvelopeDraft(BaseModel):
    """A stored in-progress entity.

    Attributes:
        id: Draft ID (``draft-NNN``), scoped to the drafts folder.
        type: Entity type the draft will become.
        data: Partial entity fields gathered so far.
        state: Opaque workflow state owned by the authoring session.
        created_at: When the draft was first saved.
        updated_at: When the draft was last saved.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="forbid")

    id: str = Field(pattern=r"^draft-\d{3,}$")
    type: EntityType
    data: dict[str, Any] = Field(default_factory=dict)
    state: dict[str, Any] = Field(default_factory=dict)
    created_at: IsoTimestamp
    updated_at: IsoTimestamp


class EnvelopeDraftStore:
    """Reads and writes envelope drafts in the shared drafts folder."""

    __slots__: Final = ("_logger", "_store")

    _store: YamlFileStore
    _logger: FilteringBoundLogger

    def __init__(self, store: YamlFileStore, logger: FilteringBoundLogger) -> None:
        self._store = store
        self._logger = logger

    @staticmethod
    def _path(draft_id: str) -> str:
        return f"{DRAFTS_FOLDER}/{draft_id}{DRAFT_EXTENSION}"

    def _draft_ids(self) -> list[str]:
        return [
            name
            for name in self._store.list_files(DRAFTS_FOLDER, DRAFT_EXTENSION)
            if _DRAFT_ID_PATTERN.match(name)
        ]

    def next_draft_id(self) -> str:
        """Allocate the next free draft ID (highest existing + 1)."""
        highest = 0
        for draft_id in self._draft_ids():
            match = _DRAFT_ID_PATTERN.match(draft_id)
            if match is not None:
                highest = max(highest, int(match.group(1)))
        return f"draft-{highest + 1:03d}"

    def exists(self, draft_id: str) -> bool:
        """Check whether a draft file exists."""
        return self._store.exists(self._path(draft_id))

    def load(self, draft_id: str) -> EnvelopeDraft | None:
        """Load a draft.

        Returns:
            The draft, or None if it does not exist or cannot be parsed.
        """
        if not _DRAFT_ID_PATTERN.match(draft_id) or not self.exists(draft_id):
            return None
        try:
            return EnvelopeDraft.model_validate(self._store.read_yaml(self._path(draft_id)))
        except (StoreError, ValidationError) as e:
            self._logger.warning("draft_skipped", draft_id=draft_id, error=str(e))
            return None

    def save(
        self,
        entity_type: EntityType,
        data: dict[str, Any],
        *,
        state: dict[str, Any] | None = None,
        draft_id: str | None = None,
    ) -> EnvelopeDraft:
        """Create or overwrite a draft.

        Args:
            entity_type: Entity type the draft will become.
            data: Partial entity data.
            state: Workflow state; kept from the existing draft when None.
            draft_id: ID of an existing draft to overwrite. A new ID is
                allocated when omitted.

        Returns:
            The saved draft.

        Raises:
            DraftNotFoundError: If ``draft_id`` names a draft that does not
                exist or belongs to another entity type.
            StoreIOError: If the draft cannot be written.
        """
        now = now_iso()
        if draft_id is None:
            draft = EnvelopeDraft(
                id=self.next_draft_id(),
                type=entity_type,
                data=data,
                state=state or {},
                created_at=now,
                updated_at=now,
            )
        else:
            existing = self.load(draft_id)
            if existing is None or existing.type != entity_type:
                msg = f"Draft not found: {draft_id}"
                raise DraftNotFoundError(msg, draft_id=draft_id)
            draft = existing.model_copy(
                update={
                    "data": data,
                    "state": existing.state if state is None else state,
                    "updated_at": now,
                }
            )

        self._store.write_yaml(self._path(draft.id), draft.model_dump(mode="json"))
        self._logger.info("draft_saved", draft_id=draft.id, entity_type=str(entity_type))
        return draft

    def list_drafts(self, entity_type: EntityType | None = None) -> list[EnvelopeDraft]:
        """List readable drafts, optionally only those of one type."""
        drafts: list[EnvelopeDraft] = []
        for draft_id in self._draft_ids():
            draft = self.load(draft_id)
            if draft is None:
                continue
            if entity_type is None or draft.type == entity_type:
                drafts.append(draft)
        return drafts

    def delete(self, draft_id: str) -> None:
        """Delete a draft and remove the drafts folder if it is now empty.

        Raises:
            DraftNotFoundError: If the draft does not exist.
        """
        if not _DRAFT_ID_PATTERN.match(draft_id) or not self.exists(draft_id):
            msg = f"Draft not found: {draft_id}"
            raise DraftNotFoundError(msg, draft_id=draft_id)

        self._store.delete(self._path(draft_id))
        self._store.remove_empty_dir(DRAFTS_FOLDER)
        self._logger.info("draft_deleted", draft_id=draft_id)

    def discard_matching(self, entity_type: EntityType, data: dict[str, Any]) -> list[str]:
        """Best-effort removal of drafts whose data equals ``data``.

        Used after an entity has been created from a draft so that copies of
        the same draft do not linger. Failures are logged and skipped.

        Returns:
            IDs of the drafts that were removed.
        """
        removed: list[str] = []
        for draft in self.list_drafts(entity_type):
            if draft.data != data:
                continue
            try:
                self.delete(draft.id)
            except (DraftNotFoundError, StoreError) as e:
                self._logger.warning("draft_cleanup_failed", draft_id=draft.id, error=str(e))
                continue
            removed.append(draft.id)
        return removed
