"""Specification entities.

This package provides the entity schemas, the static table of entity kinds,
file naming and ID utilities, envelope drafts, and the generic
:class:`EntityManager` that performs CRUD for one entity type.
"""

from specstore.entities._envelopes import (
    DRAFTS_FOLDER,
    EnvelopeDraft,
    EnvelopeDraftStore,
)
from specstore.entities._kinds import (
    ENTITY_FILE_EXTENSION,
    ENTITY_KINDS,
    EntityKind,
    kind_for_prefix,
    kind_for_type,
    known_prefixes,
)
from specstore.entities._manager import (
    EntityManager,
    ValidationWarning,
    format_validation_errors,
)
from specstore.entities._models import (
    SCHEMAS,
    Article,
    BaseEntity,
    BusinessRequirement,
    BusinessValue,
    Component,
    Consequence,
    Constitution,
    Constraint,
    Criterion,
    Decision,
    Milestone,
    Plan,
    PlanCriteriaRef,
    Reference,
    ScopeItem,
    Stakeholder,
    Task,
    TechnicalRequirement,
    UserStory,
    now_iso,
)
from specstore.entities._naming import (
    EntityId,
    ParsedFilename,
    format_draft_filename,
    format_entity_filename,
    format_entity_id,
    is_valid_slug,
    normalize_slug,
    parse_entity_filename,
    parse_entity_id,
    slugify,
)

__all__ = [
    "DRAFTS_FOLDER",
    "ENTITY_FILE_EXTENSION",
    "ENTITY_KINDS",
    "SCHEMAS",
    "Article",
    "BaseEntity",
    "BusinessRequirement",
    "BusinessValue",
    "Component",
    "Consequence",
    "Constitution",
    "Constraint",
    "Criterion",
    "Decision",
    "EntityId",
    "EntityKind",
    "EntityManager",
    "EnvelopeDraft",
    "EnvelopeDraftStore",
    "Milestone",
    "ParsedFilename",
    "Plan",
    "PlanCriteriaRef",
    "Reference",
    "ScopeItem",
    "Stakeholder",
    "Task",
    "TechnicalRequirement",
    "UserStory",
    "ValidationWarning",
    "format_draft_filename",
    "format_entity_filename",
    "format_entity_id",
    "format_validation_errors",
    "is_valid_slug",
    "kind_for_prefix",
    "kind_for_type",
    "known_prefixes",
    "normalize_slug",
    "now_iso",
    "parse_entity_filename",
    "parse_entity_id",
    "slugify",
]
