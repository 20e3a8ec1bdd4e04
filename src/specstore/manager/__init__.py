"""Specs folder registry and cross-entity operations.

This package provides the SpecManager registry, the legacy metadata
migrator, the reference validator and the in-memory query engine.
"""

from specstore.manager._migrator import MigrationResult, SpecMetadataMigrator
from specstore.manager._query import (
    EntityQuery,
    QueryResult,
    SortDirection,
    SortField,
    run_query,
)
from specstore.manager._references import ReferenceValidationResult, ReferenceValidator
from specstore.manager._spec_manager import SpecManager

__all__ = [
    "EntityQuery",
    "MigrationResult",
    "QueryResult",
    "ReferenceValidationResult",
    "ReferenceValidator",
    "SortDirection",
    "SortField",
    "SpecManager",
    "SpecMetadataMigrator",
    "run_query",
]
