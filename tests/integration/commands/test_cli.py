# pyright: reportAny=false
"""Integration tests for the specstore commands."""

import io
from collections.abc import Callable
from pathlib import Path

import orjson
import pytest
import yaml

from specstore.cli import ExitCode
from specstore.manager import SpecManager

RunCli = Callable[..., int]


def write_payload(path: Path, data: object) -> Path:
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return path


def legacy_plan(number: int, slug: str) -> str:
    return yaml.safe_dump(
        {
            "type": "plan",
            "number": number,
            "slug": slug,
            "name": slug.title(),
            "created_at": "2024-01-01T00:00:00Z",
            "updated_at": "2024-01-01T00:00:00Z",
        }
    )


@pytest.fixture
def specs(project_root: Path) -> Path:
    return project_root / "specs"


@pytest.fixture
def create_plan(
    specstore_cli_with_exit_code: RunCli, project_root: Path
) -> Callable[..., int]:
    """Create a plan through the CLI from keyword fields."""

    def _create(**fields: object) -> int:
        payload = write_payload(project_root / "payload.yml", fields)
        return specstore_cli_with_exit_code("create", "plan", str(payload))

    return _create


class TestInit:
    def test_creates_layout_and_counter(
        self,
        specstore_cli_with_exit_code: RunCli,
        specs: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        exit_code = specstore_cli_with_exit_code("init")

        assert exit_code == ExitCode.SUCCESS
        assert (specs / "plans").is_dir()
        assert (specs / "requirements" / "technical").is_dir()
        assert (specs / "specs.json").is_file()
        out = capsys.readouterr().out
        assert f"Initialized specs folder at {specs}" in out
        assert "Created specs.json" in out

    def test_second_run_keeps_counter(
        self,
        specstore_cli_with_exit_code: RunCli,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        specstore_cli_with_exit_code("init")
        capsys.readouterr()

        exit_code = specstore_cli_with_exit_code("init")

        assert exit_code == ExitCode.SUCCESS
        assert "Created specs.json" not in capsys.readouterr().out

    def test_root_option_moves_specs_folder(
        self, specstore_cli_with_exit_code: RunCli, project_root: Path
    ) -> None:
        exit_code = specstore_cli_with_exit_code("--root", "docs/specs", "init")

        assert exit_code == ExitCode.SUCCESS
        assert (project_root / "docs" / "specs" / "plans").is_dir()
        assert not (project_root / "specs").exists()

    def test_config_file_sets_root(
        self, specstore_cli_with_exit_code: RunCli, project_root: Path
    ) -> None:
        (project_root / "specstore.toml").write_text('root = "design"\n')

        specstore_cli_with_exit_code("init")

        assert (project_root / "design" / "specs.json").is_file()


class TestMigrate:
    def test_seeds_counter_from_legacy_files(
        self,
        specstore_cli_with_exit_code: RunCli,
        specs: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        (specs / "plans").mkdir(parents=True)
        (specs / "plans" / "pln-006-legacy.yml").write_text(legacy_plan(6, "legacy"))

        exit_code = specstore_cli_with_exit_code("migrate", "--format", "json")

        assert exit_code == ExitCode.SUCCESS
        result = orjson.loads(capsys.readouterr().out)
        assert result["migrated"] is True
        assert result["last_ids"]["plan"] == 6

    def test_reports_existing_metadata(
        self,
        specstore_cli_with_exit_code: RunCli,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        specstore_cli_with_exit_code("init")
        capsys.readouterr()

        specstore_cli_with_exit_code("migrate")

        out = capsys.readouterr().out
        assert "Metadata already present" in out
        assert "Last ID" in out


class TestCreate:
    def test_creates_entity_file(
        self,
        create_plan: Callable[..., int],
        specs: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        exit_code = create_plan(name="Rollout plan", priority="high")

        assert exit_code == ExitCode.SUCCESS
        assert "Created pln-001-rollout-plan" in capsys.readouterr().out
        document = yaml.safe_load((specs / "plans" / "pln-001-rollout-plan.yml").read_text())
        assert document["priority"] == "high"

    def test_accepts_prefix_as_type(
        self,
        specstore_cli_with_exit_code: RunCli,
        project_root: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        payload = write_payload(project_root / "decision.yml", {"name": "Use YAML"})

        exit_code = specstore_cli_with_exit_code("create", "DEC", str(payload))

        assert exit_code == ExitCode.SUCCESS
        assert "Created dec-001-use-yaml" in capsys.readouterr().out

    def test_explicit_number(
        self,
        specstore_cli_with_exit_code: RunCli,
        project_root: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        payload = write_payload(project_root / "payload.yml", {"name": "Later"})

        exit_code = specstore_cli_with_exit_code("create", "plan", str(payload), "--number", "7")

        assert exit_code == ExitCode.SUCCESS
        assert "Created pln-007-later" in capsys.readouterr().out

    def test_json_output(
        self,
        specstore_cli_with_exit_code: RunCli,
        project_root: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        payload = write_payload(project_root / "payload.yml", {"name": "Rollout"})

        specstore_cli_with_exit_code("create", "plan", str(payload), "--format", "json")

        result = orjson.loads(capsys.readouterr().out)
        assert result["id"] == "pln-001-rollout"
        assert result["type"] == "plan"
        assert result["number"] == 1

    def test_continues_after_legacy_numbers(
        self,
        create_plan: Callable[..., int],
        specs: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        (specs / "plans").mkdir(parents=True)
        (specs / "plans" / "pln-003-legacy.yml").write_text(legacy_plan(3, "legacy"))

        create_plan(name="Fresh")

        assert "Created pln-004-fresh" in capsys.readouterr().out

    def test_invalid_fields(
        self,
        create_plan: Callable[..., int],
        specs: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        exit_code = create_plan(name="Bad", priority="urgent")

        assert exit_code == ExitCode.VALIDATION_ERROR
        err = capsys.readouterr().err
        assert "  - priority:" in err
        assert "Error: Invalid plan data" in err
        assert list((specs / "plans").glob("*.yml")) == []

    def test_duplicate_slug(
        self, create_plan: Callable[..., int], capsys: pytest.CaptureFixture[str]
    ) -> None:
        create_plan(name="Rollout")

        exit_code = create_plan(name="Rollout")

        assert exit_code == ExitCode.VALIDATION_ERROR
        assert "Slug 'rollout' is already used by pln-001-rollout.yml" in capsys.readouterr().err

    def test_unknown_type(
        self,
        specstore_cli_with_exit_code: RunCli,
        project_root: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        payload = write_payload(project_root / "payload.yml", {"name": "Epic"})

        exit_code = specstore_cli_with_exit_code("create", "epic", str(payload))

        assert exit_code == ExitCode.VALIDATION_ERROR
        assert "Unknown entity type: epic" in capsys.readouterr().err

    def test_payload_must_be_a_mapping(
        self,
        specstore_cli_with_exit_code: RunCli,
        project_root: Path,
    ) -> None:
        payload = write_payload(project_root / "payload.yml", ["not", "a", "mapping"])

        exit_code = specstore_cli_with_exit_code("create", "plan", str(payload))

        assert exit_code == ExitCode.VALIDATION_ERROR

    def test_missing_payload_file(
        self, specstore_cli_with_exit_code: RunCli, project_root: Path
    ) -> None:
        exit_code = specstore_cli_with_exit_code(
            "create", "plan", str(project_root / "missing.yml")
        )

        assert exit_code == ExitCode.IO_ERROR


class TestGet:
    def test_yaml_output(
        self,
        create_plan: Callable[..., int],
        specstore_cli_with_exit_code: RunCli,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        create_plan(name="Rollout", description="Ship it")
        capsys.readouterr()

        exit_code = specstore_cli_with_exit_code("get", "pln-001")

        assert exit_code == ExitCode.SUCCESS
        document = yaml.safe_load(capsys.readouterr().out)
        assert document["id"] == "pln-001-rollout"
        assert document["description"] == "Ship it"

    def test_table_output(
        self,
        create_plan: Callable[..., int],
        specstore_cli_with_exit_code: RunCli,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        create_plan(name="Rollout")
        capsys.readouterr()

        specstore_cli_with_exit_code("get", "pln-001-rollout", "--format", "table")

        out = capsys.readouterr().out
        assert "pln-001-rollout" in out
        assert "not-started" in out

    def test_not_found(
        self, specstore_cli_with_exit_code: RunCli, capsys: pytest.CaptureFixture[str]
    ) -> None:
        exit_code = specstore_cli_with_exit_code("get", "pln-009")

        assert exit_code == ExitCode.NOT_FOUND
        assert "Entity not found: pln-009" in capsys.readouterr().err

    def test_malformed_id(self, specstore_cli_with_exit_code: RunCli) -> None:
        assert specstore_cli_with_exit_code("get", "plan-one") == ExitCode.VALIDATION_ERROR


class TestList:
    def test_empty(
        self, specstore_cli_with_exit_code: RunCli, capsys: pytest.CaptureFixture[str]
    ) -> None:
        exit_code = specstore_cli_with_exit_code("list")

        assert exit_code == ExitCode.SUCCESS
        assert "No entities found." in capsys.readouterr().out

    def test_table_across_types(
        self,
        create_plan: Callable[..., int],
        specstore_cli_with_exit_code: RunCli,
        project_root: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        create_plan(name="Rollout")
        payload = write_payload(project_root / "component.yml", {"name": "Store"})
        specstore_cli_with_exit_code("create", "component", str(payload))
        capsys.readouterr()

        specstore_cli_with_exit_code("list")

        out = capsys.readouterr().out
        assert "pln-001-rollout" in out
        assert "cmp-001-store" in out

    def test_filter_by_type(
        self,
        create_plan: Callable[..., int],
        specstore_cli_with_exit_code: RunCli,
        project_root: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        create_plan(name="Rollout")
        payload = write_payload(project_root / "component.yml", {"name": "Store"})
        specstore_cli_with_exit_code("create", "component", str(payload))
        capsys.readouterr()

        specstore_cli_with_exit_code("list", "cmp", "--format", "json")

        result = orjson.loads(capsys.readouterr().out)
        assert [item["id"] for item in result] == ["cmp-001-store"]

    def test_filter_by_priority(
        self,
        create_plan: Callable[..., int],
        specstore_cli_with_exit_code: RunCli,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        create_plan(name="Urgent", priority="high")
        create_plan(name="Someday", priority="low")
        capsys.readouterr()

        specstore_cli_with_exit_code("list", "--priority", "high", "--format", "json")

        result = orjson.loads(capsys.readouterr().out)
        assert [item["name"] for item in result] == ["Urgent"]

    def test_pagination_note(
        self,
        create_plan: Callable[..., int],
        specstore_cli_with_exit_code: RunCli,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        create_plan(name="First")
        create_plan(name="Second")
        capsys.readouterr()

        specstore_cli_with_exit_code("list", "--limit", "1")

        out = capsys.readouterr().out
        assert "pln-001-first" in out
        assert "pln-002-second" not in out
        assert "Showing 1 of 2" in out

    def test_order_by_name_descending(
        self,
        create_plan: Callable[..., int],
        specstore_cli_with_exit_code: RunCli,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        create_plan(name="Alpha")
        create_plan(name="Beta")
        capsys.readouterr()

        specstore_cli_with_exit_code("list", "--order-by", "name", "--desc", "--format", "json")

        result = orjson.loads(capsys.readouterr().out)
        assert [item["name"] for item in result] == ["Beta", "Alpha"]

    def test_negative_offset(self, specstore_cli_with_exit_code: RunCli) -> None:
        assert specstore_cli_with_exit_code("list", "--offset=-1") == ExitCode.VALIDATION_ERROR

    def test_unknown_type(self, specstore_cli_with_exit_code: RunCli) -> None:
        assert specstore_cli_with_exit_code("list", "epic") == ExitCode.VALIDATION_ERROR


class TestDelete:
    def test_force_deletes_file(
        self,
        create_plan: Callable[..., int],
        specstore_cli_with_exit_code: RunCli,
        specs: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        create_plan(name="Rollout")
        capsys.readouterr()

        exit_code = specstore_cli_with_exit_code("delete", "pln-001", "--force")

        assert exit_code == ExitCode.SUCCESS
        assert "Deleted pln-001" in capsys.readouterr().out
        assert not (specs / "plans" / "pln-001-rollout.yml").exists()

    def test_non_interactive_without_force_is_cancelled(
        self,
        create_plan: Callable[..., int],
        specstore_cli_with_exit_code: RunCli,
        specs: Path,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        create_plan(name="Rollout")
        monkeypatch.setattr("sys.stdin", io.StringIO())

        exit_code = specstore_cli_with_exit_code("delete", "pln-001")

        assert exit_code == ExitCode.CANCELLED
        assert "Deletion cancelled" in capsys.readouterr().err
        assert (specs / "plans" / "pln-001-rollout.yml").exists()

    def test_missing_entity(self, specstore_cli_with_exit_code: RunCli) -> None:
        assert specstore_cli_with_exit_code("delete", "pln-001", "-f") == ExitCode.NOT_FOUND

    def test_number_is_not_reused(
        self,
        create_plan: Callable[..., int],
        specstore_cli_with_exit_code: RunCli,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        create_plan(name="First")
        specstore_cli_with_exit_code("delete", "pln-001", "-f")
        capsys.readouterr()

        create_plan(name="Second")

        assert "Created pln-002-second" in capsys.readouterr().out


class TestValidate:
    def test_all_references_resolve(
        self,
        create_plan: Callable[..., int],
        specstore_cli_with_exit_code: RunCli,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        create_plan(name="Base")
        create_plan(name="Follow up", depends_on=["pln-001-base"])
        capsys.readouterr()

        exit_code = specstore_cli_with_exit_code("validate", "pln-002")

        assert exit_code == ExitCode.SUCCESS
        assert "pln-002: all references resolve" in capsys.readouterr().out

    def test_unresolved_reference(
        self,
        create_plan: Callable[..., int],
        specstore_cli_with_exit_code: RunCli,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        create_plan(name="Orphan", depends_on=["cmp-004-gone"])
        capsys.readouterr()

        exit_code = specstore_cli_with_exit_code("validate", "pln-001")

        assert exit_code == ExitCode.VALIDATION_ERROR
        out = capsys.readouterr().out
        assert "pln-001: 1 unresolved reference(s)" in out
        assert "  - Referenced entity not found in depends_on: cmp-004-gone" in out

    def test_json_output(
        self,
        create_plan: Callable[..., int],
        specstore_cli_with_exit_code: RunCli,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        create_plan(name="Orphan", depends_on=["cmp-004"])
        capsys.readouterr()

        specstore_cli_with_exit_code("validate", "pln-001", "--format", "json")

        result = orjson.loads(capsys.readouterr().out)
        assert result == {
            "id": "pln-001",
            "valid": False,
            "errors": ["Referenced entity not found in depends_on: cmp-004"],
        }

    def test_missing_entity(self, specstore_cli_with_exit_code: RunCli) -> None:
        assert specstore_cli_with_exit_code("validate", "pln-003") == ExitCode.NOT_FOUND

    def test_malformed_id(self, specstore_cli_with_exit_code: RunCli) -> None:
        assert specstore_cli_with_exit_code("validate", "plan") == ExitCode.VALIDATION_ERROR


class TestWarnings:
    def test_none(
        self, specstore_cli_with_exit_code: RunCli, capsys: pytest.CaptureFixture[str]
    ) -> None:
        exit_code = specstore_cli_with_exit_code("warnings")

        assert exit_code == ExitCode.SUCCESS
        assert "No validation warnings." in capsys.readouterr().out

    def test_lists_skipped_files(
        self,
        specstore_cli_with_exit_code: RunCli,
        specs: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        (specs / "decisions").mkdir(parents=True)
        (specs / "decisions" / "dec-002-broken.yml").write_text("name: [broken\n")

        specstore_cli_with_exit_code("warnings", "--format", "json")

        result = orjson.loads(capsys.readouterr().out)
        assert len(result) == 1
        assert result[0]["type"] == "decision"
        assert result[0]["file"] == "dec-002-broken.yml"
        assert result[0]["message"].startswith("Invalid YAML")


class TestDrafts:
    def test_none(
        self, specstore_cli_with_exit_code: RunCli, capsys: pytest.CaptureFixture[str]
    ) -> None:
        specstore_cli_with_exit_code("drafts")

        assert "No drafts found." in capsys.readouterr().out

    def test_lists_envelope_drafts(
        self,
        specstore_cli_with_exit_code: RunCli,
        specs: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        manager = SpecManager(specs)
        manager.plans.save_draft({"name": "Half done"})
        manager.decisions.save_draft({"name": "Undecided"})

        specstore_cli_with_exit_code("drafts")
        out = capsys.readouterr().out
        assert "draft-001" in out
        assert "Half done" in out
        assert "draft-002" in out

        specstore_cli_with_exit_code("drafts", "decision", "--format", "json")
        result = orjson.loads(capsys.readouterr().out)
        assert [draft["id"] for draft in result] == ["draft-002"]
        assert result[0]["data"] == {"name": "Undecided"}
