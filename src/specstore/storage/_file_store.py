# pyright: reportAny=false, reportExplicitAny=false
"""Folder-rooted document store for YAML and JSON files."""

import contextlib
from pathlib import Path
from typing import Any, Final

from specstore.exceptions import StoreIOError

from ._io import read_json, read_yaml, write_json_atomic, write_yaml_atomic


class YamlFileStore:
    """Reads and writes structured documents under a single root folder.

    Every path handed to the store is relative to ``root``. The store performs
    no schema validation; callers layer that on top.

    Writes go through a temporary file that is renamed into place, so a
    reader never observes a half-written document. Two processes writing the
    same file concurrently still race; the last rename wins.

    Attributes:
        root: The folder all relative paths resolve against.
    """

    __slots__: Final = ("_root",)

    _root: Path

    def __init__(self, root: Path | str) -> None:
        """Initialize the store.

        Args:
            root: The folder all relative paths resolve against. It does not
                need to exist yet.
        """
        self._root = Path(root)

    @property
    def root(self) -> Path:
        """Get the root folder."""
        return self._root

    def full_path(self, relative_path: str | Path) -> Path:
        """Resolve a path relative to the root folder."""
        return self._root / relative_path

    def ensure_folder(self, relative_path: str | Path = "") -> Path:
        """Create a folder (and parents) if it does not exist.

        Args:
            relative_path: Folder path relative to the root.

        Returns:
            The absolute folder path.

        Raises:
            StoreIOError: If the folder cannot be created.
        """
        path = self.full_path(relative_path)
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            msg = f"Failed to create folder: {e}"
            raise StoreIOError(msg, path=path, operation="mkdir", cause=e) from e
        return path

    def exists(self, relative_path: str | Path) -> bool:
        """Check whether a path exists, treating any stat failure as absent."""
        try:
            return self.full_path(relative_path).exists()
        except OSError:
            return False

    def read_yaml(self, relative_path: str | Path) -> Any:
        """Read and parse a YAML document.

        Raises:
            StoreIOError: If the file cannot be read.
            StoreParseError: If the file is not valid YAML.
        """
        return read_yaml(self.full_path(relative_path))

    def write_yaml(self, relative_path: str | Path, data: dict[str, Any]) -> None:
        """Serialize ``data`` as YAML, creating parent folders as needed.

        Raises:
            StoreIOError: If the file cannot be written.
        """
        write_yaml_atomic(self.full_path(relative_path), data)

    def read_json(self, relative_path: str | Path) -> dict[str, Any]:
        """Read and parse a JSON object document.

        Raises:
            StoreIOError: If the file cannot be read.
            StoreParseError: If the file is not a valid JSON object.
        """
        return read_json(self.full_path(relative_path))

    def write_json(self, relative_path: str | Path, data: dict[str, Any]) -> None:
        """Serialize ``data`` as JSON, creating parent folders as needed.

        Raises:
            StoreIOError: If the file cannot be written.
        """
        write_json_atomic(self.full_path(relative_path), data)

    def delete(self, relative_path: str | Path) -> None:
        """Remove a file.

        Raises:
            StoreIOError: If the file does not exist or cannot be removed.
        """
        path = self.full_path(relative_path)
        try:
            path.unlink()
        except OSError as e:
            msg = f"Failed to delete file: {e}"
            raise StoreIOError(msg, path=path, operation="delete", cause=e) from e

    def list_files(self, sub_path: str | Path, extension: str) -> list[str]:
        """List file base names with the given extension in a folder.

        The extension is stripped from each returned name; a name such as
        ``pln-001.draft.yml`` listed with ``.yml`` comes back as
        ``pln-001.draft``. A missing folder yields an empty list.

        Args:
            sub_path: Folder path relative to the root.
            extension: Suffix to match, including the leading dot.

        Returns:
            Sorted base names of the matching files.

        Raises:
            StoreIOError: If the folder exists but cannot be listed.
        """
        folder = self.full_path(sub_path)
        try:
            entries = list(folder.iterdir())
        except (FileNotFoundError, NotADirectoryError):
            return []
        except OSError as e:
            msg = f"Failed to list folder: {e}"
            raise StoreIOError(msg, path=folder, operation="list", cause=e) from e

        return sorted(
            entry.name[: -len(extension)]
            for entry in entries
            if entry.name.endswith(extension)
            and len(entry.name) > len(extension)
            and entry.is_file()
        )

    def remove_empty_dir(self, sub_path: str | Path) -> None:
        """Remove a folder if it is empty; any failure is ignored."""
        with contextlib.suppress(OSError):
            self.full_path(sub_path).rmdir()
