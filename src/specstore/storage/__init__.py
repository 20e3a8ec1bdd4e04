"""Storage layer for specstore.

This package provides the folder-rooted YAML/JSON file store and the
per-type number counter persisted in ``specs.json``.
"""

from specstore.storage._counter import (
    DEFAULT_METADATA_FILE,
    DEFAULT_METADATA_VERSION,
    CounterStore,
    MetadataCache,
    SpecsMetadata,
)
from specstore.storage._file_store import YamlFileStore
from specstore.storage._io import (
    dump_yaml,
    read_json,
    read_yaml,
    write_json_atomic,
    write_yaml_atomic,
)

__all__ = [
    "DEFAULT_METADATA_FILE",
    "DEFAULT_METADATA_VERSION",
    "CounterStore",
    "MetadataCache",
    "SpecsMetadata",
    "YamlFileStore",
    "dump_yaml",
    "read_json",
    "read_yaml",
    "write_json_atomic",
    "write_yaml_atomic",
]
