"""Enumeration types for specstore."""

from enum import StrEnum

# =============================================================================
# Entity Types
# =============================================================================


class EntityType(StrEnum):
    """Kinds of specification entity.

    Each type has its own folder, number sequence and schema.
    """

    BUSINESS_REQUIREMENT = "business-requirement"
    TECHNICAL_REQUIREMENT = "technical-requirement"
    PLAN = "plan"
    COMPONENT = "component"
    CONSTITUTION = "constitution"
    DECISION = "decision"
    MILESTONE = "milestone"


class Priority(StrEnum):
    """Priority of an entity or task, from most to least urgent."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    NICE_TO_HAVE = "nice-to-have"


# =============================================================================
# Status Enums
# =============================================================================


class WorkStatus(StrEnum):
    """Progress of requirements, plans, components and milestones."""

    NOT_STARTED = "not-started"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    VERIFIED = "verified"
    BLOCKED = "blocked"


class CriteriaStatus(StrEnum):
    """Review state of an acceptance criterion."""

    NEEDS_REVIEW = "needs-review"
    APPROVED = "approved"
    REJECTED = "rejected"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


class ConstitutionStatus(StrEnum):
    """Lifecycle of a constitution."""

    DRAFT = "draft"
    ACTIVE = "active"
    DEPRECATED = "deprecated"


class DecisionStatus(StrEnum):
    """Lifecycle of an architecture decision record."""

    PROPOSED = "proposed"
    ACCEPTED = "accepted"
    DEPRECATED = "deprecated"
    SUPERSEDED = "superseded"


# =============================================================================
# Payload Enums
# =============================================================================


class ComponentType(StrEnum):
    """Architectural role of a component."""

    APP = "app"
    SERVICE = "service"
    LIBRARY = "library"
    OTHER = "other"


class ConsequenceType(StrEnum):
    """Kind of decision consequence."""

    POSITIVE = "positive"
    NEGATIVE = "negative"
    RISK = "risk"


class ReferenceType(StrEnum):
    """Kind of external reference attached to an entity."""

    URL = "url"
    DOCUMENTATION = "documentation"
    FILE = "file"
    CODE = "code"
    OTHER = "other"


class ScopeItemType(StrEnum):
    """Whether a plan scope item is in or out of scope."""

    IN_SCOPE = "in-scope"
    OUT_OF_SCOPE = "out-of-scope"
