# pyright: reportAny=false, reportUnknownVariableType=false, reportUnknownArgumentType=false
"""File I/O utilities for the specstore file store.

This module provides functions for reading and writing YAML entity files
and the JSON metadata document. All write operations use atomic patterns
to prevent data corruption.
"""

import tempfile
from pathlib import Path
from typing import Any

import orjson
import yaml

from specstore.exceptions import StoreIOError, StoreParseError

__all__ = [
    "dump_yaml",
    "read_json",
    "read_yaml",
    "write_json_atomic",
    "write_yaml_atomic",
]


def _atomic_write(path: Path, content: bytes | str) -> None:
    """Write content to a file atomically.

    Writes to a temporary file in the same directory, then renames to the
    target path. This ensures the file is either fully written or not at all.

    Args:
        path: Destination file path.
        content: Content to write (bytes or string).

    Raises:
        StoreIOError: If the write operation fails.
    """
    temp_path: Path | None = None
    try:
        # Create parent directories if needed
        path.parent.mkdir(parents=True, exist_ok=True)

        is_bytes = isinstance(content, bytes)
        mode = "wb" if is_bytes else "w"
        encoding = None if is_bytes else "utf-8"

        with tempfile.NamedTemporaryFile(
            mode=mode,
            dir=path.parent,
            delete=False,
            suffix=".tmp",
            encoding=encoding,
        ) as f:
            _ = f.write(content)
            temp_path = Path(f.name)

        # Path.replace() is atomic on both POSIX and Windows
        _ = temp_path.replace(path)

    except OSError as e:
        if temp_path is not None:
            temp_path.unlink(missing_ok=True)
        msg = f"Failed to write file: {e}"
        raise StoreIOError(msg, path=path, operation="write", cause=e) from e


# =============================================================================
# JSON
# =============================================================================


def read_json(
    path: Path,
) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
    """Read and parse a JSON file.

    Args:
        path: Path to the JSON file.

    Returns:
        The parsed JSON data as a dictionary.

    Raises:
        StoreIOError: If the file cannot be read.
        StoreParseError: If the content is not valid JSON or not a dictionary.
    """
    try:
        content = path.read_bytes()
    except OSError as e:
        msg = f"Failed to read file: {e}"
        raise StoreIOError(msg, path=path, operation="read", cause=e) from e

    try:
        data = orjson.loads(content)
    except orjson.JSONDecodeError as e:
        msg = f"Invalid JSON: {e}"
        raise StoreParseError(msg, path=path, content_type="json", cause=e) from e

    if not isinstance(data, dict):
        msg = f"Expected JSON object, got {type(data).__name__}"
        raise StoreParseError(msg, path=path, content_type="json")

    return data


def write_json_atomic(
    path: Path,
    data: dict[str, Any],  # pyright: ignore[reportExplicitAny]
) -> None:
    """Write a dictionary as JSON atomically.

    Args:
        path: Destination file path.
        data: Dictionary to serialize as JSON.

    Raises:
        StoreIOError: If serialization or the write operation fails.
    """
    try:
        content = orjson.dumps(
            data,
            option=orjson.OPT_INDENT_2 | orjson.OPT_SORT_KEYS,
        )
    except TypeError as e:
        msg = f"Failed to serialize JSON: {e}"
        raise StoreIOError(msg, path=path, operation="write", cause=e) from e

    _atomic_write(path, content + b"\n")


# =============================================================================
# YAML
# =============================================================================


class _SpecDumper(yaml.SafeDumper):
    """Safe dumper with indented sequences and literal multiline strings."""

    def increase_indent(self, flow: bool = False, indentless: bool = False) -> None:  # noqa: FBT001, FBT002
        # Indent block sequences under their parent key
        super().increase_indent(flow, False)  # noqa: FBT003


_LINE_BREAKS = "\n\x85\u2028\u2029"


def _keeps_trailing_breaks(value: str) -> bool:
    """Check whether a literal block for ``value`` would need ``|+`` chomping."""
    return value[-1] in _LINE_BREAKS and (len(value) == 1 or value[-2] in _LINE_BREAKS)


def _represent_str(dumper: yaml.SafeDumper, value: str) -> yaml.ScalarNode:
    # A keep-chomped block ends the fragment with "..." and absorbs the blank
    # separator lines added by dump_yaml, so such values stay double-quoted
    if "\n" in value and not _keeps_trailing_breaks(value):
        return dumper.represent_scalar("tag:yaml.org,2002:str", value, style="|")
    return dumper.represent_scalar("tag:yaml.org,2002:str", value)


_SpecDumper.add_representer(str, _represent_str)


def _dump_fragment(value: Any) -> str:  # pyright: ignore[reportExplicitAny]
    return yaml.dump(
        value,
        Dumper=_SpecDumper,
        default_flow_style=False,
        sort_keys=False,
        allow_unicode=True,
        width=2**31 - 1,
    )


def _indent(text: str) -> str:
    return "".join(
        f"  {line}" if line.strip() else line for line in text.splitlines(keepends=True)
    )


def _is_object_list(value: Any) -> bool:  # pyright: ignore[reportExplicitAny]
    return (
        isinstance(value, list)
        and len(value) > 0
        and all(isinstance(item, dict) for item in value)
    )


def dump_yaml(data: dict[str, Any]) -> str:  # pyright: ignore[reportExplicitAny]
    """Serialize a mapping to human-readable YAML.

    Keys keep their insertion order, long lines are never wrapped and
    multiline strings use literal block style. Top-level lists of mappings
    are separated from their neighbours and from each other by blank lines.

    Args:
        data: Mapping to serialize.

    Returns:
        The YAML document text.
    """
    blocks: list[tuple[str, bool]] = []
    for key, value in data.items():
        if _is_object_list(value):
            items = [_indent(_dump_fragment([item])) for item in value]
            blocks.append((f"{key}:\n" + "\n".join(items), True))
        else:
            blocks.append((_dump_fragment({key: value}), False))

    parts: list[str] = []
    for index, (text, spaced) in enumerate(blocks):
        if index > 0 and (spaced or blocks[index - 1][1]):
            parts.append("\n")
        parts.append(text)
    return "".join(parts)


def read_yaml(path: Path) -> Any:  # pyright: ignore[reportExplicitAny]
    """Read and parse a YAML file.

    Args:
        path: Path to the YAML file.

    Returns:
        The parsed YAML document (``None`` for an empty file).

    Raises:
        StoreIOError: If the file cannot be read.
        StoreParseError: If the content is not valid YAML.
    """
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        msg = f"Failed to read file: {e}"
        raise StoreIOError(msg, path=path, operation="read", cause=e) from e

    try:
        return yaml.safe_load(content)
    except yaml.YAMLError as e:
        msg = f"Invalid YAML: {e}"
        raise StoreParseError(msg, path=path, content_type="yaml", cause=e) from e


def write_yaml_atomic(
    path: Path,
    data: dict[str, Any],  # pyright: ignore[reportExplicitAny]
) -> None:
    """Write a dictionary as YAML atomically.

    Args:
        path: Destination file path.
        data: Dictionary to serialize.

    Raises:
        StoreIOError: If serialization or the write operation fails.
    """
    try:
        content = dump_yaml(data)
    except yaml.YAMLError as e:
        msg = f"Failed to serialize YAML: {e}"
        raise StoreIOError(msg, path=path, operation="write", cause=e) from e

    _atomic_write(path, content)
