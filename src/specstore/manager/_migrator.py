"""Bootstrap the number counter from specs created before it existed."""

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any, Final

from structlog.typing import FilteringBoundLogger

from specstore.entities import EntityManager
from specstore.exceptions import StoreError
from specstore.storage import CounterStore


@dataclass(frozen=True, slots=True)
class MigrationResult:
    """Outcome of a metadata migration.

    Attributes:
        migrated: True if the counter was built by this run, False if the
            metadata document already existed.
        last_ids: Last issued number per entity type after the run.
    """

    migrated: bool
    last_ids: dict[str, int]


class SpecMetadataMigrator:
    """Seeds ``specs.json`` so new numbers never collide with old files.

    When the metadata document is missing, every entity type is listed and
    the counter is advanced to the highest number found by replaying
    :meth:`CounterStore.get_next_id`, the same path ``create`` uses. A type
    whose folder cannot be listed counts as having no entities.
    """

    __slots__: Final = ("_counter", "_logger", "_managers")

    _counter: CounterStore
    _managers: tuple[EntityManager[Any], ...]
    _logger: FilteringBoundLogger

    def __init__(
        self,
        counter: CounterStore,
        managers: Iterable[EntityManager[Any]],
        logger: FilteringBoundLogger,
    ) -> None:
        self._counter = counter
        self._managers = tuple(managers)
        self._logger = logger

    def needs_migration(self) -> bool:
        """Check whether the metadata document is missing."""
        return not self._counter.metadata_exists()

    def _highest_number(self, manager: EntityManager[Any]) -> int:
        try:
            entities = manager.list()
        except StoreError as e:
            self._logger.warning(
                "migration_list_failed",
                entity_type=str(manager.entity_type),
                error=str(e),
            )
            return 0
        return max((entity.number for entity in entities), default=0)

    def migrate(self) -> MigrationResult:
        """Run the migration if the metadata document does not exist.

        Returns:
            The migration outcome. Running it again is a no-op that reports
            ``migrated=False`` and the unchanged counters.

        Raises:
            StoreIOError: If the metadata document cannot be written.
        """
        # Another instance may have written the document since our last load
        self._counter.invalidate_cache()

        if not self.needs_migration():
            metadata = self._counter.load_metadata()
            return MigrationResult(migrated=False, last_ids=dict(metadata.last_ids))

        highest = {manager.entity_type: self._highest_number(manager) for manager in self._managers}

        _ = self._counter.load_metadata()
        for entity_type, count in highest.items():
            for _step in range(count):
                _ = self._counter.get_next_id(entity_type)

        last_ids = dict(self._counter.load_metadata().last_ids)
        self._logger.info("metadata_migrated", last_ids=last_ids)
        return MigrationResult(migrated=True, last_ids=last_ids)
