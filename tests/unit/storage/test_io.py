"""Unit tests for store file I/O utilities."""

from pathlib import Path

import pytest
import yaml
from pyfakefs.fake_filesystem import FakeFilesystem

from specstore.exceptions import StoreIOError, StoreParseError
from specstore.storage import (
    dump_yaml,
    read_json,
    read_yaml,
    write_json_atomic,
    write_yaml_atomic,
)


class TestReadJson:
    def test_reads_valid_json_object(self, fs: FakeFilesystem) -> None:
        path = Path("/specs/specs.json")
        fs.create_file(path, contents='{"version": "1.0.0", "lastIds": {"plan": 3}}')

        result = read_json(path)

        assert result == {"version": "1.0.0", "lastIds": {"plan": 3}}

    def test_raises_store_io_error_for_missing_file(self, fs: FakeFilesystem) -> None:
        path = Path("/specs/missing.json")

        with pytest.raises(StoreIOError) as exc_info:
            read_json(path)

        assert exc_info.value.path == path
        assert exc_info.value.operation == "read"
        assert exc_info.value.cause is not None

    def test_raises_store_parse_error_for_invalid_json(self, fs: FakeFilesystem) -> None:
        path = Path("/specs/invalid.json")
        fs.create_file(path, contents="not valid json {")

        with pytest.raises(StoreParseError) as exc_info:
            read_json(path)

        assert exc_info.value.path == path
        assert exc_info.value.content_type == "json"
        assert exc_info.value.cause is not None

    def test_raises_store_parse_error_for_json_array(self, fs: FakeFilesystem) -> None:
        path = Path("/specs/array.json")
        fs.create_file(path, contents="[1, 2, 3]")

        with pytest.raises(StoreParseError, match="Expected JSON object"):
            read_json(path)


class TestWriteJsonAtomic:
    def test_writes_sorted_indented_json(self, fs: FakeFilesystem) -> None:
        path = Path("/specs/specs.json")

        write_json_atomic(path, {"version": "1.0.0", "lastIds": {"plan": 1}})

        assert path.read_text() == (
            '{\n  "lastIds": {\n    "plan": 1\n  },\n  "version": "1.0.0"\n}\n'
        )

    def test_creates_parent_directories(self, fs: FakeFilesystem) -> None:
        path = Path("/deep/nested/specs.json")

        write_json_atomic(path, {"a": 1})

        assert path.exists()

    def test_leaves_no_temporary_files(self, fs: FakeFilesystem) -> None:
        path = Path("/specs/specs.json")

        write_json_atomic(path, {"a": 1})
        write_json_atomic(path, {"a": 2})

        assert [p.name for p in Path("/specs").iterdir()] == ["specs.json"]
        assert read_json(path) == {"a": 2}

    def test_raises_store_io_error_for_unserializable_data(self, fs: FakeFilesystem) -> None:
        path = Path("/specs/specs.json")

        with pytest.raises(StoreIOError) as exc_info:
            write_json_atomic(path, {"bad": object()})

        assert exc_info.value.operation == "write"
        assert not path.exists()


class TestReadYaml:
    def test_reads_mapping(self, fs: FakeFilesystem) -> None:
        path = Path("/specs/plans/pln-001-rollout.yml")
        fs.create_file(path, contents="name: Rollout\nnumber: 1\n")

        assert read_yaml(path) == {"name": "Rollout", "number": 1}

    def test_returns_none_for_empty_file(self, fs: FakeFilesystem) -> None:
        path = Path("/specs/empty.yml")
        fs.create_file(path, contents="")

        assert read_yaml(path) is None

    def test_raises_store_parse_error_for_invalid_yaml(self, fs: FakeFilesystem) -> None:
        path = Path("/specs/broken.yml")
        fs.create_file(path, contents="name: [unclosed\n")

        with pytest.raises(StoreParseError) as exc_info:
            read_yaml(path)

        assert exc_info.value.content_type == "yaml"

    def test_raises_store_io_error_for_missing_file(self, fs: FakeFilesystem) -> None:
        with pytest.raises(StoreIOError) as exc_info:
            read_yaml(Path("/specs/missing.yml"))

        assert exc_info.value.operation == "read"


class TestDumpYaml:
    def test_preserves_key_order(self) -> None:
        text = dump_yaml({"type": "plan", "number": 1, "name": "Rollout"})

        assert text == "type: plan\nnumber: 1\nname: Rollout\n"

    def test_uses_literal_block_for_multiline_strings(self) -> None:
        text = dump_yaml({"description": "line one\nline two\n"})

        assert text.startswith("description: |")
        assert yaml.safe_load(text) == {"description": "line one\nline two\n"}

    def test_does_not_wrap_long_lines(self) -> None:
        long_value = "word " * 60

        text = dump_yaml({"description": long_value.strip()})

        assert len(text.splitlines()) == 1

    def test_indents_sequences_under_their_key(self) -> None:
        text = dump_yaml({"tech_stack": ["python", "yaml"]})

        assert text == "tech_stack:\n  - python\n  - yaml\n"

    def test_separates_object_lists_with_blank_lines(self) -> None:
        data = {
            "name": "Checkout",
            "criteria": [
                {"id": "crit-001", "description": "First"},
                {"id": "crit-002", "description": "Second"},
            ],
            "created_at": "2025-01-02T03:04:05Z",
        }

        text = dump_yaml(data)

        assert text == (
            "name: Checkout\n"
            "\n"
            "criteria:\n"
            "  - id: crit-001\n"
            "    description: First\n"
            "\n"
            "  - id: crit-002\n"
            "    description: Second\n"
            "\n"
            "created_at: '2025-01-02T03:04:05Z'\n"
        )
        assert yaml.safe_load(text) == data

    @pytest.mark.parametrize(
        "description",
        [
            "First paragraph.\n\nSecond paragraph.\n\n",
            "Trailing blank lines\n\n\n",
            "\n",
            "\n\n",
        ],
    )
    def test_reads_back_strings_with_trailing_blank_lines(self, description: str) -> None:
        data = {
            "name": "Rollout",
            "description": description,
            "created_at": "2025-01-02T03:04:05Z",
        }

        text = dump_yaml(data)

        assert "\n...\n" not in text
        assert yaml.safe_load(text) == data

    def test_reads_back_trailing_blank_lines_inside_object_lists(self) -> None:
        data = {
            "criteria": [
                {"id": "crit-001", "description": "First\n\n"},
                {"id": "crit-002", "description": "Second\n"},
            ],
            "updated_at": "2025-01-02T03:04:05Z",
        }

        assert yaml.safe_load(dump_yaml(data)) == data

    def test_keeps_unicode_unescaped(self) -> None:
        text = dump_yaml({"name": "Überblick"})

        assert "Überblick" in text


class TestWriteYamlAtomic:
    def test_writes_document_that_reads_back(self, fs: FakeFilesystem) -> None:
        path = Path("/specs/decisions/dec-001-use-yaml.yml")
        data = {"name": "Use YAML", "alternatives": ["json", "toml"]}

        write_yaml_atomic(path, data)

        assert read_yaml(path) == data

    def test_overwrites_existing_file(self, fs: FakeFilesystem) -> None:
        path = Path("/specs/plans/pln-001-rollout.yml")
        fs.create_file(path, contents="name: Old\n")

        write_yaml_atomic(path, {"name": "New"})

        assert read_yaml(path) == {"name": "New"}
