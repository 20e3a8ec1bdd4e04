# pyright: reportAny=false, reportExplicitAny=false
"""Pydantic schemas for specification entities.

Every entity shares the fields of :class:`BaseEntity`; each entity type adds
its own payload. Models reject unknown keys so a typo in a hand-edited file
surfaces as a validation error instead of being dropped on the next write.
"""

from datetime import date, datetime
from typing import Annotated, Any, ClassVar, Final, Literal, Self

import pendulum
from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

from specstore.enums import (
    ComponentType,
    ConsequenceType,
    ConstitutionStatus,
    CriteriaStatus,
    DecisionStatus,
    EntityType,
    Priority,
    ReferenceType,
    ScopeItemType,
    WorkStatus,
)

from ._naming import SLUG_PATTERN, normalize_slug


def _coerce_timestamp(value: Any) -> Any:
    """Accept ISO-8601 strings and datetimes, returning an ISO string.

    YAML loaders turn unquoted timestamps into datetime objects; those are
    converted back so the stored form is always a string.
    """
    if isinstance(value, datetime):
        return pendulum.instance(value).to_iso8601_string()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, str):
        # pendulum's ParserError is a ValueError, which pydantic reports
        _ = pendulum.parse(value)
        return value
    msg = f"Expected an ISO-8601 timestamp, got {type(value).__name__}"
    raise ValueError(msg)


IsoTimestamp = Annotated[str, BeforeValidator(_coerce_timestamp)]


def now_iso() -> str:
    """Current UTC time as an ISO-8601 string."""
    return pendulum.now("UTC").to_iso8601_string()


class _Model(BaseModel):
    model_config: ClassVar[ConfigDict] = ConfigDict(extra="forbid")


# =============================================================================
# Shared Payload Models
# =============================================================================


class Criterion(_Model):
    """An acceptance criterion on a requirement."""

    id: str = Field(pattern=r"^crit-\d{3}$", description="Criterion ID (crit-NNN)")
    description: str = Field(min_length=1)
    status: CriteriaStatus = CriteriaStatus.NEEDS_REVIEW


class Reference(_Model):
    """An external reference supporting an entity.

    The required companion field depends on ``type``: ``url`` for URLs,
    ``library`` and ``search_term`` for documentation, ``path`` for files
    and ``code`` for code snippets.
    """

    type: ReferenceType
    name: str = Field(min_length=1)
    description: str = ""
    importance: Priority = Priority.MEDIUM
    url: str | None = None
    mime_type: str | None = None
    library: str | None = None
    search_term: str | None = None
    path: str | None = None
    code: str | None = None
    language: str | None = None

    _REQUIRED: ClassVar[dict[ReferenceType, tuple[str, ...]]] = {
        ReferenceType.URL: ("url",),
        ReferenceType.DOCUMENTATION: ("library", "search_term"),
        ReferenceType.FILE: ("path",),
        ReferenceType.CODE: ("code",),
        ReferenceType.OTHER: (),
    }

    @model_validator(mode="after")
    def _check_companion_fields(self) -> Self:
        missing = [name for name in self._REQUIRED[self.type] if not getattr(self, name)]
        if missing:
            msg = f"{self.type} reference requires: {', '.join(missing)}"
            raise ValueError(msg)
        return self


class BusinessValue(_Model):
    """A statement of value delivered by a business requirement."""

    type: str = Field(default="other", min_length=1)
    value: str = Field(min_length=1)


class Stakeholder(_Model):
    """A party with an interest in a business requirement."""

    role: str = Field(min_length=1)
    interest: str = ""
    importance: Priority = Priority.MEDIUM


class UserStory(_Model):
    """A user story in "as a / I want / so that" form."""

    role: str = Field(min_length=1)
    feature: str = Field(min_length=1)
    benefit: str = Field(min_length=1)


class Constraint(_Model):
    """A technical constraint."""

    type: str = Field(default="other", min_length=1)
    description: str = Field(min_length=1)


class PlanCriteriaRef(_Model):
    """The requirement criterion a plan fulfils."""

    requirement: str = Field(min_length=1, description="Requirement entity ID")
    criteria: str = Field(pattern=r"^crit-\d{3}$", description="Criterion ID")


class ScopeItem(_Model):
    """One in-scope or out-of-scope item of a plan."""

    type: ScopeItemType
    description: str = Field(min_length=1)
    rationale: str = ""


class Task(_Model):
    """A unit of work in a plan."""

    id: str = Field(pattern=r"^task-\d{3}$")
    task: str = Field(min_length=1)
    priority: Priority = Priority.MEDIUM
    status: WorkStatus = WorkStatus.NOT_STARTED
    depends_on: list[str] = Field(default_factory=list)
    considerations: list[str] = Field(default_factory=list)


class Article(_Model):
    """One principle of a constitution."""

    id: str = Field(pattern=r"^art-\d{3}$")
    title: str = Field(min_length=1)
    principle: str = Field(min_length=1)
    rationale: str = ""


class Consequence(_Model):
    """An expected outcome of a decision."""

    type: ConsequenceType
    description: str = Field(min_length=1)
    mitigation: str | None = None


# =============================================================================
# Entities
# =============================================================================


_TIMESTAMP_FIELDS: Final = ("created_at", "updated_at")


class BaseEntity(_Model):
    """Fields common to every entity.

    A finalized entity must carry a slug; a flagged draft (``draft: true``)
    may omit it because its file name does not include one.
    """

    entity_type: ClassVar[EntityType]

    type: str
    number: int = Field(ge=1, description="Sequential number, unique per type")
    slug: str | None = Field(default=None, description="File-safe identifier")
    name: str = Field(min_length=1, description="Display name")
    description: str = ""
    priority: Priority = Priority.MEDIUM
    draft: bool = False
    created_at: IsoTimestamp
    updated_at: IsoTimestamp

    @field_validator("slug", mode="before")
    @classmethod
    def _normalize_slug(cls, value: Any) -> Any:
        if isinstance(value, str):
            return normalize_slug(value) or None
        return value

    @field_validator("slug", mode="after")
    @classmethod
    def _check_slug(cls, value: str | None) -> str | None:
        if value is not None and not SLUG_PATTERN.match(value):
            msg = "Slug must contain only lowercase letters, numbers, and single dashes"
            raise ValueError(msg)
        return value

    @model_validator(mode="after")
    def _require_slug_when_final(self) -> Self:
        if not self.draft and self.slug is None:
            msg = "slug is required for non-draft entities"
            raise ValueError(msg)
        return self

    def to_document(self) -> dict[str, Any]:
        """Serialize for storage.

        Unset optional fields are omitted and the timestamps are moved to
        the end of the document.
        """
        data = self.model_dump(mode="json", exclude_none=True)
        timestamps = {name: data.pop(name) for name in _TIMESTAMP_FIELDS}
        return {**data, **timestamps}


class BusinessRequirement(BaseEntity):
    """A business requirement."""

    entity_type: ClassVar[EntityType] = EntityType.BUSINESS_REQUIREMENT

    type: Literal["business-requirement"] = "business-requirement"
    status: WorkStatus = WorkStatus.NOT_STARTED
    business_value: list[BusinessValue] = Field(default_factory=list)
    stakeholders: list[Stakeholder] = Field(default_factory=list)
    user_stories: list[UserStory] = Field(default_factory=list)
    criteria: list[Criterion] = Field(default_factory=list)
    references: list[Reference] = Field(default_factory=list)


class TechnicalRequirement(BaseEntity):
    """A technical requirement."""

    entity_type: ClassVar[EntityType] = EntityType.TECHNICAL_REQUIREMENT

    type: Literal["technical-requirement"] = "technical-requirement"
    status: WorkStatus = WorkStatus.NOT_STARTED
    technical_context: str = ""
    implementation_approach: str | None = None
    technical_dependencies: list[str] = Field(
        default_factory=list,
        description="Entity IDs this requirement depends on",
    )
    constraints: list[Constraint] = Field(default_factory=list)
    criteria: list[Criterion] = Field(default_factory=list)
    references: list[Reference] = Field(default_factory=list)


class Plan(BaseEntity):
    """An implementation plan."""

    entity_type: ClassVar[EntityType] = EntityType.PLAN

    type: Literal["plan"] = "plan"
    status: WorkStatus = WorkStatus.NOT_STARTED
    criteria: PlanCriteriaRef | None = None
    scope: list[ScopeItem] = Field(default_factory=list)
    depends_on: list[str] = Field(
        default_factory=list,
        description="Entity IDs this plan depends on",
    )
    tasks: list[Task] = Field(default_factory=list)
    milestones: list[str] = Field(default_factory=list)
    references: list[Reference] = Field(default_factory=list)


class Component(BaseEntity):
    """A deployable or reusable part of the system."""

    entity_type: ClassVar[EntityType] = EntityType.COMPONENT

    type: Literal["component"] = "component"
    status: WorkStatus = WorkStatus.NOT_STARTED
    component_type: ComponentType = ComponentType.OTHER
    folder: str = "."
    tech_stack: list[str] = Field(default_factory=list)
    depends_on: list[str] = Field(
        default_factory=list,
        description="Entity IDs this component depends on",
    )
    references: list[Reference] = Field(default_factory=list)


class Constitution(BaseEntity):
    """A set of guiding principles."""

    entity_type: ClassVar[EntityType] = EntityType.CONSTITUTION

    type: Literal["constitution"] = "constitution"
    status: ConstitutionStatus = ConstitutionStatus.ACTIVE
    articles: list[Article] = Field(default_factory=list)


class Decision(BaseEntity):
    """An architecture decision record."""

    entity_type: ClassVar[EntityType] = EntityType.DECISION

    type: Literal["decision"] = "decision"
    status: DecisionStatus = DecisionStatus.PROPOSED
    decision: str = ""
    context: str = ""
    alternatives: list[str] = Field(default_factory=list)
    consequences: list[Consequence] = Field(default_factory=list)
    supersedes: str | None = Field(default=None, description="Entity ID of the replaced decision")
    references: list[Reference] = Field(default_factory=list)


class Milestone(BaseEntity):
    """A delivery checkpoint."""

    entity_type: ClassVar[EntityType] = EntityType.MILESTONE

    type: Literal["milestone"] = "milestone"
    status: WorkStatus = WorkStatus.NOT_STARTED
    target_date: IsoTimestamp | None = None
    references: list[Reference] = Field(default_factory=list)


SCHEMAS: Final[dict[EntityType, type[BaseEntity]]] = {
    model.entity_type: model
    for model in (
        BusinessRequirement,
        TechnicalRequirement,
        Plan,
        Component,
        Constitution,
        Decision,
        Milestone,
    )
}
