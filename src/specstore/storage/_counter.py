# pyright: reportAny=false, reportExplicitAny=false
"""Per-type number allocation backed by ``specs.json``.

The metadata document has the shape::

    {"lastIds": {"plan": 3, "component": 0, ...}, "version": "1.0.0"}

``get_next_id`` is the only place entity numbers come from. Its
read-increment-write runs without a suspension point inside one process,
but nothing locks the file against a second process doing the same.
"""

from pathlib import Path
from typing import Annotated, Any, ClassVar, Final

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from structlog.typing import FilteringBoundLogger

from specstore.enums import EntityType
from specstore.exceptions import StoreParseError
from specstore.utils import create_default_logger

from ._file_store import YamlFileStore

DEFAULT_METADATA_FILE: Final = "specs.json"
DEFAULT_METADATA_VERSION: Final = "1.0.0"


def _empty_last_ids() -> dict[str, int]:
    return {str(entity_type): 0 for entity_type in EntityType}


class SpecsMetadata(BaseModel):
    """Contents of the metadata document.

    Attributes:
        version: Format version of the specs folder.
        last_ids: Last number issued per entity type; types that are missing
            from the document read as 0.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )

    version: str = Field(
        default=DEFAULT_METADATA_VERSION,
        min_length=1,
        description="Format version of the specs folder",
    )
    last_ids: dict[str, Annotated[int, Field(ge=0)]] = Field(
        default_factory=_empty_last_ids,
        alias="lastIds",
        description="Last number issued per entity type",
    )

    @field_validator("last_ids", mode="after")
    @classmethod
    def _fill_missing_types(cls, value: dict[str, int]) -> dict[str, int]:
        return {**_empty_last_ids(), **value}

    def last_id(self, entity_type: EntityType | str) -> int:
        """Get the last issued number for a type (0 if none)."""
        return self.last_ids.get(str(entity_type), 0)

    def to_document(self) -> dict[str, Any]:
        """Serialize to the on-disk JSON shape."""
        return self.model_dump(by_alias=True)


class MetadataCache:
    """Holds the most recently loaded metadata for one counter store.

    The cache never expires on its own; call :meth:`invalidate` when the
    file may have been changed by someone else.
    """

    __slots__: Final = ("_value",)

    _value: SpecsMetadata | None

    def __init__(self) -> None:
        self._value = None

    def get(self) -> SpecsMetadata | None:
        """Return the cached metadata, or None when empty."""
        return self._value

    def set(self, value: SpecsMetadata) -> None:
        """Replace the cached metadata."""
        self._value = value

    def invalidate(self) -> None:
        """Drop the cached metadata so the next load reads the file."""
        self._value = None


class CounterStore:
    """Allocates monotonically increasing numbers per entity type.

    Attributes:
        store: File store rooted at the specs folder.
        metadata_file: Name of the metadata document relative to the root.
        cache: The metadata cache owned by this counter.
    """

    __slots__: Final = ("_cache", "_logger", "_metadata_file", "_store")

    _store: YamlFileStore
    _metadata_file: str
    _cache: MetadataCache
    _logger: FilteringBoundLogger

    def __init__(
        self,
        store: YamlFileStore,
        *,
        metadata_file: str = DEFAULT_METADATA_FILE,
        cache: MetadataCache | None = None,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        """Initialize the counter store.

        Args:
            store: File store rooted at the specs folder.
            metadata_file: Name of the metadata document.
            cache: Cache to use; a private one is created when omitted.
            logger: Logger to use; a stderr logger is created when omitted.
        """
        self._store = store
        self._metadata_file = metadata_file
        self._cache = cache if cache is not None else MetadataCache()
        self._logger = logger if logger is not None else create_default_logger()

    @property
    def store(self) -> YamlFileStore:
        """Get the underlying file store."""
        return self._store

    @property
    def metadata_file(self) -> str:
        """Get the metadata document name."""
        return self._metadata_file

    @property
    def cache(self) -> MetadataCache:
        """Get the metadata cache."""
        return self._cache

    def metadata_exists(self) -> bool:
        """Check whether the metadata document exists on disk."""
        return self._store.exists(self._metadata_file)

    def load_metadata(self) -> SpecsMetadata:
        """Load the metadata document, creating a default one if absent.

        Returns:
            The cached metadata when available, otherwise the file contents.

        Raises:
            StoreIOError: If the document cannot be read or written.
            StoreParseError: If the document is not valid metadata.
        """
        cached = self._cache.get()
        if cached is not None:
            return cached

        if not self.metadata_exists():
            metadata = SpecsMetadata()
            self._save(metadata)
            self._logger.info("metadata_created", path=str(self._metadata_path()))
            return metadata

        data = self._store.read_json(self._metadata_file)
        try:
            metadata = SpecsMetadata.model_validate(data)
        except ValidationError as e:
            msg = f"Invalid metadata document: {e.error_count()} error(s)"
            raise StoreParseError(
                msg,
                path=self._metadata_path(),
                content_type="json",
                cause=e,
            ) from e

        self._cache.set(metadata)
        return metadata

    def get_next_id(self, entity_type: EntityType | str) -> int:
        """Issue the next number for an entity type.

        The incremented counter is persisted before the number is returned,
        so an issued number is never handed out again by this folder.

        Args:
            entity_type: The entity type to allocate for.

        Returns:
            The newly issued number (1 for the first entity of a type).

        Raises:
            StoreIOError: If the metadata document cannot be written.
        """
        metadata = self.load_metadata()
        next_id = metadata.last_id(entity_type) + 1

        updated = metadata.model_copy(
            update={"last_ids": {**metadata.last_ids, str(entity_type): next_id}}
        )
        self._save(updated)

        self._logger.debug("counter_advanced", entity_type=str(entity_type), number=next_id)
        return next_id

    def get_last_id(self, entity_type: EntityType | str) -> int:
        """Get the last issued number for a type without advancing it."""
        return self.load_metadata().last_id(entity_type)

    def update_version(self, version: str) -> None:
        """Rewrite the format version tag, keeping the counters."""
        metadata = self.load_metadata()
        self._save(metadata.model_copy(update={"version": version}))
        self._logger.info("metadata_version_updated", version=version)

    def invalidate_cache(self) -> None:
        """Force the next load to re-read the metadata document."""
        self._cache.invalidate()

    def _metadata_path(self) -> Path:
        return self._store.full_path(self._metadata_file)

    def _save(self, metadata: SpecsMetadata) -> None:
        self._store.write_json(self._metadata_file, metadata.to_document())
        self._cache.set(metadata)
