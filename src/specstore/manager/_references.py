# pyright: reportAny=false, reportExplicitAny=false
"""Advisory cross-entity reference validation.

References are composed ID strings embedded in entity payloads. They are
not checked at write time; this validator resolves them after the fact.
Resolution is by type prefix and number only: the slug part of an ID is a
display hint and a stale slug does not make a reference invalid.
"""

from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from typing import Any, Final

from specstore.entities import (
    BaseEntity,
    EntityManager,
    Plan,
    PlanCriteriaRef,
    parse_entity_id,
)
from specstore.enums import EntityType
from specstore.exceptions import InvalidEntityIdError, UnknownEntityTypeError


@dataclass(frozen=True, slots=True)
class ReferenceValidationResult:
    """Outcome of validating one entity ID and its references.

    Attributes:
        valid: True when the entity exists and all its references resolve.
        entity: The resolved entity, if it was found.
        errors: Human-readable problems, one per unresolved reference.
    """

    valid: bool
    entity: BaseEntity | None = None
    errors: tuple[str, ...] = field(default_factory=tuple)


# (field name, referenced ID, message used when the reference is missing)
type _Reference = tuple[str, str, str]


def _iter_references(entity: BaseEntity) -> Iterator[_Reference]:
    for ref in getattr(entity, "depends_on", None) or ():
        yield "depends_on", ref, f"Referenced entity not found in depends_on: {ref}"

    if isinstance(entity, Plan) and entity.criteria is not None:
        ref = entity.criteria.requirement
        yield "criteria.requirement", ref, f"Referenced requirement not found: {ref}"

    supersedes = getattr(entity, "supersedes", None)
    if isinstance(supersedes, str) and supersedes:
        yield "supersedes", supersedes, f"Referenced decision not found in supersedes: {supersedes}"

    for ref in getattr(entity, "technical_dependencies", None) or ():
        yield (
            "technical_dependencies",
            ref,
            f"Referenced entity not found in technical_dependencies: {ref}",
        )


class ReferenceValidator:
    """Resolves entity IDs and checks the references they carry.

    Validation recurses into every referenced entity. An entity that is
    already being validated higher up the chain counts as resolved, so
    reference cycles terminate.
    """

    __slots__: Final = ("_manager_for",)

    _manager_for: Callable[[EntityType], EntityManager[Any]]

    def __init__(self, manager_for: Callable[[EntityType], EntityManager[Any]]) -> None:
        """Initialize the validator.

        Args:
            manager_for: Returns the entity manager for an entity type.
        """
        self._manager_for = manager_for

    def resolve(self, entity_id: str) -> BaseEntity | None:
        """Resolve an entity ID to the entity it names.

        Returns:
            The entity, or None if the ID is malformed or nothing matches.
        """
        try:
            parsed = parse_entity_id(entity_id)
        except (InvalidEntityIdError, UnknownEntityTypeError):
            return None
        return self._manager_for(parsed.entity_type).get(parsed.number)

    def validate(self, entity_id: str) -> ReferenceValidationResult:
        """Validate an entity ID and, recursively, everything it references."""
        return self._validate(entity_id, set())

    def _validate(
        self,
        entity_id: str,
        in_progress: set[tuple[EntityType, int]],
    ) -> ReferenceValidationResult:
        try:
            parsed = parse_entity_id(entity_id)
        except (InvalidEntityIdError, UnknownEntityTypeError) as e:
            return ReferenceValidationResult(valid=False, errors=(str(e),))

        entity = self._manager_for(parsed.entity_type).get(parsed.number)
        if entity is None:
            return ReferenceValidationResult(valid=False, errors=(f"Entity not found: {entity_id}",))

        key = (parsed.entity_type, parsed.number)
        if key in in_progress:
            return ReferenceValidationResult(valid=True, entity=entity)

        in_progress.add(key)
        try:
            errors = self._check_references(entity, in_progress)
        finally:
            in_progress.discard(key)

        return ReferenceValidationResult(valid=not errors, entity=entity, errors=tuple(errors))

    def _check_references(
        self,
        entity: BaseEntity,
        in_progress: set[tuple[EntityType, int]],
    ) -> list[str]:
        errors: list[str] = []
        for field_name, ref, missing_message in _iter_references(entity):
            result = self._validate(ref, in_progress)
            if result.entity is None:
                errors.append(missing_message)
            elif not result.valid:
                errors.append(f"Referenced entity in {field_name} has invalid references: {ref}")

        if isinstance(entity, Plan) and entity.criteria is not None:
            errors.extend(self._check_criterion(entity.criteria))
        return errors

    def _check_criterion(self, ref: PlanCriteriaRef) -> list[str]:
        requirement = self.resolve(ref.requirement)
        if requirement is None:
            return []

        criteria = getattr(requirement, "criteria", None)
        if not isinstance(criteria, list):
            return []
        if any(criterion.id == ref.criteria for criterion in criteria):
            return []
        return [f"Referenced criterion not found on {ref.requirement}: {ref.criteria}"]
