# pyright: reportAny=false, reportExplicitAny=false
"""Registry of entity managers for one specs folder.

This module provides the SpecManager class, the composition root that wires
one :class:`~specstore.entities.EntityManager` per entity type against a
shared file store and counter.
"""

from pathlib import Path
from typing import Any, Final, Self

from structlog.typing import FilteringBoundLogger

from specstore.config import StoreConfig
from specstore.entities import (
    ENTITY_KINDS,
    SCHEMAS,
    BaseEntity,
    BusinessRequirement,
    Component,
    Constitution,
    Decision,
    EntityManager,
    EnvelopeDraftStore,
    Milestone,
    Plan,
    TechnicalRequirement,
    ValidationWarning,
    kind_for_type,
)
from specstore.enums import EntityType
from specstore.storage import DEFAULT_METADATA_FILE, CounterStore, YamlFileStore
from specstore.utils import create_default_logger

from ._migrator import MigrationResult, SpecMetadataMigrator
from ._query import EntityQuery, QueryResult, run_query
from ._references import ReferenceValidationResult, ReferenceValidator

__all__ = ["SpecManager"]


class SpecManager:
    """Entry point to a specs folder.

    Exposes one entity manager per type as a named property and offers the
    operations that span types: folder initialization, counter migration,
    validation warnings, queries and reference validation.

    Attributes:
        root: The specs folder.
        store: The shared file store.
        counter: The shared number counter.
    """

    __slots__: Final = (
        "_counter",
        "_logger",
        "_managers",
        "_references",
        "_store",
    )

    _store: YamlFileStore
    _counter: CounterStore
    _managers: dict[EntityType, EntityManager[Any]]
    _references: ReferenceValidator
    _logger: FilteringBoundLogger

    def __init__(
        self,
        root: Path | str,
        *,
        metadata_file: str = DEFAULT_METADATA_FILE,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        """Initialize the registry. No files are touched.

        Args:
            root: The specs folder. It does not need to exist yet.
            metadata_file: Name of the counter document inside ``root``.
            logger: Logger shared by all components; a stderr logger is
                created when omitted.
        """
        self._logger = logger if logger is not None else create_default_logger()
        self._store = YamlFileStore(root)
        self._counter = CounterStore(self._store, metadata_file=metadata_file, logger=self._logger)
        drafts = EnvelopeDraftStore(self._store, self._logger)
        self._managers = {
            kind.entity_type: EntityManager(
                self._store,
                self._counter,
                kind,
                SCHEMAS[kind.entity_type],
                drafts=drafts,
                logger=self._logger,
            )
            for kind in ENTITY_KINDS
        }
        self._references = ReferenceValidator(self.manager_for)

    @classmethod
    def from_config(
        cls,
        config: StoreConfig,
        *,
        base_dir: Path | None = None,
        logger: FilteringBoundLogger | None = None,
    ) -> Self:
        """Create a registry from configuration.

        Args:
            config: Store configuration.
            base_dir: Directory a relative ``config.root`` is resolved
                against. Defaults to the current directory.
            logger: Logger to use.
        """
        root = config.root if base_dir is None else base_dir / config.root
        return cls(root, metadata_file=config.metadata_file, logger=logger)

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def root(self) -> Path:
        """Get the specs folder."""
        return self._store.root

    @property
    def store(self) -> YamlFileStore:
        """Get the shared file store."""
        return self._store

    @property
    def counter(self) -> CounterStore:
        """Get the shared number counter."""
        return self._counter

    @property
    def managers(self) -> tuple[EntityManager[Any], ...]:
        """All entity managers, in entity type order."""
        return tuple(self._managers.values())

    @property
    def business_requirements(self) -> EntityManager[BusinessRequirement]:
        """Manager for business requirements."""
        return self._managers[EntityType.BUSINESS_REQUIREMENT]

    @property
    def technical_requirements(self) -> EntityManager[TechnicalRequirement]:
        """Manager for technical requirements."""
        return self._managers[EntityType.TECHNICAL_REQUIREMENT]

    @property
    def plans(self) -> EntityManager[Plan]:
        """Manager for plans."""
        return self._managers[EntityType.PLAN]

    @property
    def components(self) -> EntityManager[Component]:
        """Manager for components."""
        return self._managers[EntityType.COMPONENT]

    @property
    def constitutions(self) -> EntityManager[Constitution]:
        """Manager for constitutions."""
        return self._managers[EntityType.CONSTITUTION]

    @property
    def decisions(self) -> EntityManager[Decision]:
        """Manager for decisions."""
        return self._managers[EntityType.DECISION]

    @property
    def milestones(self) -> EntityManager[Milestone]:
        """Manager for milestones."""
        return self._managers[EntityType.MILESTONE]

    def manager_for(self, entity_type: EntityType | str) -> EntityManager[Any]:
        """Get the manager for an entity type.

        Raises:
            UnknownEntityTypeError: If the type is not known.
        """
        return self._managers[kind_for_type(entity_type).entity_type]

    # -------------------------------------------------------------------------
    # Cross-type operations
    # -------------------------------------------------------------------------

    def ensure_folders(self) -> list[Path]:
        """Create the specs folder and every entity folder.

        Returns:
            The entity folder paths.

        Raises:
            StoreIOError: If a folder cannot be created.
        """
        _ = self._store.ensure_folder()
        return [manager.ensure_folder() for manager in self._managers.values()]

    def migrate_metadata(self) -> MigrationResult:
        """Seed the counter from existing files if ``specs.json`` is missing."""
        migrator = SpecMetadataMigrator(self._counter, self._managers.values(), self._logger)
        return migrator.migrate()

    def get_validation_warnings(self) -> list[ValidationWarning]:
        """Collect the validation warnings recorded by every manager."""
        return [
            warning
            for manager in self._managers.values()
            for warning in manager.validation_warnings
        ]

    def clear_validation_warnings(self) -> None:
        """Forget the validation warnings of every manager."""
        for manager in self._managers.values():
            manager.clear_validation_warnings()

    def query(self, query: EntityQuery | None = None) -> QueryResult:
        """Filter, sort and paginate entities across types."""
        return run_query(self._managers.values(), query if query is not None else EntityQuery())

    def resolve(self, entity_id: str) -> BaseEntity | None:
        """Resolve a composed entity ID (``pln-001-slug``) to its entity."""
        return self._references.resolve(entity_id)

    def validate_reference(self, entity_id: str) -> ReferenceValidationResult:
        """Check that an entity exists and that its references resolve."""
        return self._references.validate(entity_id)
