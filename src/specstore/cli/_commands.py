# pyright: reportUnusedCallResult=false, reportAny=false, reportExplicitAny=false
# ruff: noqa: D415, PLR0913, TC003
"""Commands for working with a specs folder.

Commands: init, migrate, list, get, create, delete, validate, warnings,
drafts.
"""

from pathlib import Path
from typing import Annotated, Any, Never

from cyclopts import App, Parameter

from specstore.entities import (
    BaseEntity,
    EntityManager,
    EnvelopeDraft,
    ValidationWarning,
    kind_for_prefix,
    kind_for_type,
    known_prefixes,
    parse_entity_id,
)
from specstore.enums import EntityType, Priority
from specstore.exceptions import EntityValidationError, SpecStoreError
from specstore.manager import EntityQuery, SortDirection, SortField, SpecManager
from specstore.storage import read_yaml

from ._context import CLIContext, OutputFormat
from ._shared import (
    ExitCode,
    confirm_destructive,
    exit_code_for_exception,
    exit_with_error,
    format_json,
    format_table,
    format_yaml,
    get_error_console,
)

__all__ = [
    "create",
    "delete",
    "drafts",
    "get",
    "init",
    "list_entities",
    "migrate",
    "register_commands",
    "validate",
    "warnings",
]


# =============================================================================
# Helpers
# =============================================================================


def get_spec_manager() -> SpecManager:
    """Get a SpecManager configured from the current CLIContext."""
    ctx = CLIContext.get_current()
    base_dir = ctx.project_root if ctx.project_root is not None else Path.cwd()
    return SpecManager.from_config(ctx.config, base_dir=base_dir, logger=ctx.logger)


def resolve_entity_type(value: str) -> EntityType:
    """Resolve a type name (``plan``) or file prefix (``pln``) to a type.

    Raises:
        UnknownEntityTypeError: If the value is neither.
    """
    if value.lower() in known_prefixes():
        return kind_for_prefix(value).entity_type
    return kind_for_type(value).entity_type


def entity_to_dict(manager: EntityManager[Any], entity: BaseEntity) -> dict[str, Any]:
    """Convert an entity to its document form, led by its composed ID."""
    return {"id": manager.entity_id(entity), **entity.to_document()}


def _fail(error: SpecStoreError | ValueError) -> Never:
    console = get_error_console()
    if isinstance(error, EntityValidationError):
        for line in error.errors:
            console.print(f"  - {line}", markup=False, soft_wrap=True)
    exit_with_error(str(error), exit_code_for_exception(error), console=console)


def _output(data: dict[str, Any] | list[dict[str, Any]], format_: OutputFormat) -> None:
    if format_ == OutputFormat.JSON:
        print(format_json(data))
    else:
        print(format_yaml(data), end="")


def _entity_row(manager: EntityManager[Any], entity: BaseEntity) -> list[str]:
    return [
        manager.entity_id(entity),
        entity.name,
        str(entity.type),
        str(getattr(entity, "status", "")),
        str(entity.priority),
        "yes" if entity.draft else "",
    ]


def _warning_to_dict(warning: ValidationWarning) -> dict[str, Any]:
    return {
        "type": str(warning.entity_type),
        "file": warning.file_name,
        "message": warning.message,
    }


def _draft_to_dict(draft: EnvelopeDraft) -> dict[str, Any]:
    return draft.model_dump(mode="json")


# =============================================================================
# Setup Commands
# =============================================================================


def init() -> None:
    """Create the specs folder layout and seed the number counter

    Creates one folder per entity type. When ``specs.json`` is missing it is
    built from the highest number already present on disk.
    """
    try:
        manager = get_spec_manager()
        manager.ensure_folders()
        result = manager.migrate_metadata()
    except SpecStoreError as e:
        _fail(e)

    print(f"Initialized specs folder at {manager.root}")
    if result.migrated:
        print(f"Created {manager.counter.metadata_file}")


def migrate(
    *,
    format_: Annotated[
        OutputFormat,
        Parameter(name=["--format"], help="Output format"),
    ] = OutputFormat.TABLE,
) -> None:
    """Build specs.json from existing entity files if it is missing

    Args:
        format_: Output format.
    """
    try:
        result = get_spec_manager().migrate_metadata()
    except SpecStoreError as e:
        _fail(e)

    if format_ != OutputFormat.TABLE:
        _output({"migrated": result.migrated, "last_ids": result.last_ids}, format_)
        return

    status = "Migrated existing entity files" if result.migrated else "Metadata already present"
    print(status)
    rows = [[entity_type, str(last_id)] for entity_type, last_id in result.last_ids.items()]
    print(format_table(["Type", "Last ID"], rows))


# =============================================================================
# Entity Commands
# =============================================================================


def list_entities(
    entity_type: str | None = None,
    /,
    *,
    status: Annotated[
        list[str] | None,
        Parameter(name=["--status", "-s"], help="Filter by status (can be repeated)"),
    ] = None,
    priority: Annotated[
        list[Priority] | None,
        Parameter(name=["--priority", "-p"], help="Filter by priority (can be repeated)"),
    ] = None,
    search: Annotated[
        str | None,
        Parameter(name=["--search", "-q"], help="Text matched against name, description and slug"),
    ] = None,
    draft: Annotated[
        bool | None,
        Parameter(name=["--draft"], help="Only drafts (--draft) or only finalized (--no-draft)"),
    ] = None,
    order_by: Annotated[
        SortField,
        Parameter(name=["--order-by"], help="Sort field"),
    ] = SortField.NUMBER,
    desc: Annotated[
        bool,
        Parameter(name=["--desc"], help="Sort in descending order"),
    ] = False,
    limit: Annotated[
        int | None,
        Parameter(name=["--limit", "-n"], help="Maximum number of entities"),
    ] = None,
    offset: Annotated[
        int,
        Parameter(name=["--offset"], help="Number of entities to skip"),
    ] = 0,
    format_: Annotated[
        OutputFormat,
        Parameter(name=["--format"], help="Output format"),
    ] = OutputFormat.TABLE,
) -> None:
    """List entities, optionally restricted to one type

    Args:
        entity_type: Entity type name or file prefix (e.g. plan or pln).
        status: Status values to include.
        priority: Priorities to include.
        search: Case-insensitive search text.
        draft: Restrict to drafts or finalized entities.
        order_by: Sort field.
        desc: Sort descending.
        limit: Maximum number of entities to show.
        offset: Number of matching entities to skip.
        format_: Output format.
    """
    try:
        manager = get_spec_manager()
        query = EntityQuery(
            types=(resolve_entity_type(entity_type),) if entity_type else (),
            priorities=tuple(priority or ()),
            statuses=tuple(status or ()),
            draft=draft,
            search=search,
            order_by=order_by,
            direction=SortDirection.DESC if desc else SortDirection.ASC,
            offset=offset,
            limit=limit,
        )
        result = manager.query(query)
    except (SpecStoreError, ValueError) as e:
        _fail(e)

    if format_ != OutputFormat.TABLE:
        _output(
            [entity_to_dict(manager.manager_for(item.type), item) for item in result.items],
            format_,
        )
        return

    if not result.items:
        print("No entities found.")
        return

    headers = ["ID", "Name", "Type", "Status", "Priority", "Draft"]
    rows = [_entity_row(manager.manager_for(item.type), item) for item in result.items]
    print(format_table(headers, rows))
    if result.total != result.total_unpaginated:
        print(f"Showing {result.total} of {result.total_unpaginated}")


def get(
    entity_id: str,
    /,
    *,
    format_: Annotated[
        OutputFormat,
        Parameter(name=["--format"], help="Output format"),
    ] = OutputFormat.YAML,
) -> None:
    """Show one entity

    Args:
        entity_id: Entity ID (e.g. pln-001 or pln-001-rollout).
        format_: Output format.
    """
    try:
        parsed = parse_entity_id(entity_id)
        manager = get_spec_manager().manager_for(parsed.entity_type)
        entity = manager.get(parsed.number)
    except SpecStoreError as e:
        _fail(e)

    if entity is None:
        exit_with_error(f"Entity not found: {entity_id}", ExitCode.NOT_FOUND)

    if format_ == OutputFormat.TABLE:
        headers = ["ID", "Name", "Type", "Status", "Priority", "Draft"]
        print(format_table(headers, [_entity_row(manager, entity)]))
        return
    _output(entity_to_dict(manager, entity), format_)


def create(
    entity_type: str,
    file: Path,
    /,
    *,
    number: Annotated[
        int | None,
        Parameter(name=["--number"], help="Use this number instead of the next free one"),
    ] = None,
    format_: Annotated[
        OutputFormat,
        Parameter(name=["--format"], help="Output format"),
    ] = OutputFormat.TABLE,
) -> None:
    """Create an entity from a YAML file of fields

    Args:
        entity_type: Entity type name or file prefix.
        file: YAML file holding the entity fields.
        number: Explicit entity number.
        format_: Output format.
    """
    ctx = CLIContext.get_current()
    try:
        resolved = resolve_entity_type(entity_type)
        data = read_yaml(file)
        if not isinstance(data, dict):
            exit_with_error(
                f"Expected a mapping of entity fields in {file}",
                ExitCode.VALIDATION_ERROR,
            )

        spec_manager = get_spec_manager()
        if ctx.config.auto_migrate:
            spec_manager.migrate_metadata()
        manager = spec_manager.manager_for(resolved)
        entity = manager.create(data, number)
    except SpecStoreError as e:
        _fail(e)

    if format_ == OutputFormat.TABLE:
        print(f"Created {manager.entity_id(entity)}")
        return
    _output(entity_to_dict(manager, entity), format_)


def delete(
    entity_id: str,
    /,
    *,
    force: Annotated[
        bool,
        Parameter(name=["--force", "-f"], help="Delete without confirmation"),
    ] = False,
) -> None:
    """Delete an entity file

    Args:
        entity_id: Entity ID (e.g. dec-004).
        force: Skip the confirmation prompt.
    """
    console = get_error_console()
    try:
        parsed = parse_entity_id(entity_id)
        manager = get_spec_manager().manager_for(parsed.entity_type)
        if not manager.exists(parsed.number):
            exit_with_error(f"Entity not found: {entity_id}", ExitCode.NOT_FOUND, console=console)

        if not confirm_destructive(f"Delete {entity_id}?", force=force, console=console):
            exit_with_error(
                "Deletion cancelled (use --force to delete non-interactively)",
                ExitCode.CANCELLED,
                console=console,
            )

        manager.delete(parsed.number)
    except SpecStoreError as e:
        _fail(e)

    print(f"Deleted {entity_id}")


def validate(
    entity_id: str,
    /,
    *,
    format_: Annotated[
        OutputFormat,
        Parameter(name=["--format"], help="Output format"),
    ] = OutputFormat.TABLE,
) -> None:
    """Check that an entity exists and that its references resolve

    Exits with code 2 when a reference is unresolved.

    Args:
        entity_id: Entity ID (e.g. pln-001).
        format_: Output format.
    """
    try:
        parse_entity_id(entity_id)
        result = get_spec_manager().validate_reference(entity_id)
    except SpecStoreError as e:
        _fail(e)

    if result.entity is None:
        exit_with_error(f"Entity not found: {entity_id}", ExitCode.NOT_FOUND)

    if format_ != OutputFormat.TABLE:
        _output({"id": entity_id, "valid": result.valid, "errors": list(result.errors)}, format_)
    elif result.valid:
        print(f"{entity_id}: all references resolve")
    else:
        print(f"{entity_id}: {len(result.errors)} unresolved reference(s)")
        for error in result.errors:
            print(f"  - {error}")

    if not result.valid:
        raise SystemExit(ExitCode.VALIDATION_ERROR)


def warnings(
    *,
    format_: Annotated[
        OutputFormat,
        Parameter(name=["--format"], help="Output format"),
    ] = OutputFormat.TABLE,
) -> None:
    """List entity files that were skipped because they failed to load

    Args:
        format_: Output format.
    """
    try:
        manager = get_spec_manager()
        manager.clear_validation_warnings()
        manager.query()
        found = manager.get_validation_warnings()
    except SpecStoreError as e:
        _fail(e)

    if format_ != OutputFormat.TABLE:
        _output([_warning_to_dict(warning) for warning in found], format_)
        return

    if not found:
        print("No validation warnings.")
        return

    rows = [[str(w.entity_type), w.file_name, w.message] for w in found]
    print(format_table(["Type", "File", "Message"], rows))


def drafts(
    entity_type: str | None = None,
    /,
    *,
    format_: Annotated[
        OutputFormat,
        Parameter(name=["--format"], help="Output format"),
    ] = OutputFormat.TABLE,
) -> None:
    """List saved envelope drafts

    Args:
        entity_type: Entity type name or file prefix to filter by.
        format_: Output format.
    """
    try:
        spec_manager = get_spec_manager()
        if entity_type:
            managers = (spec_manager.manager_for(resolve_entity_type(entity_type)),)
        else:
            managers = spec_manager.managers
        found = sorted(
            (draft for manager in managers for draft in manager.list_drafts()),
            key=lambda draft: draft.id,
        )
    except SpecStoreError as e:
        _fail(e)

    if format_ != OutputFormat.TABLE:
        _output([_draft_to_dict(draft) for draft in found], format_)
        return

    if not found:
        print("No drafts found.")
        return

    rows = [
        [draft.id, str(draft.type), str(draft.data.get("name", "")), draft.updated_at]
        for draft in found
    ]
    print(format_table(["ID", "Type", "Name", "Updated"], rows))


def register_commands(app: App) -> None:
    """Register all commands with the CLI app."""
    app.command(init, name="init")
    app.command(migrate, name="migrate")
    app.command(list_entities, name="list")
    app.command(get, name="get")
    app.command(create, name="create")
    app.command(delete, name="delete")
    app.command(validate, name="validate")
    app.command(warnings, name="warnings")
    app.command(drafts, name="drafts")
