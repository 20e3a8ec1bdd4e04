"""End-to-end scenarios against a real specs folder."""

from pathlib import Path

import orjson
import pytest
import yaml
from structlog.typing import FilteringBoundLogger

from specstore.enums import EntityType
from specstore.exceptions import EntityExistsError
from specstore.manager import EntityQuery, SpecManager


def write_yaml(path: Path, data: dict[str, object]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump(data, sort_keys=False), encoding="utf-8")


@pytest.fixture
def legacy_specs(tmp_path: Path) -> Path:
    """A specs folder written before specs.json existed, using old prefixes."""
    root = tmp_path / "specs"
    stamp = {"created_at": "2024-03-01T09:00:00Z", "updated_at": "2024-03-01T09:00:00Z"}
    write_yaml(
        root / "requirements" / "business" / "brq-002-checkout.yml",
        {
            "type": "business-requirement",
            "number": 2,
            "slug": "checkout",
            "name": "Checkout",
            "criteria": [{"id": "crit-001", "description": "Pay in one step"}],
            **stamp,
        },
    )
    write_yaml(
        root / "decisions" / "dcs-005-yaml-storage.yml",
        {
            "type": "decision",
            "number": 5,
            "slug": "yaml-storage",
            "name": "YAML storage",
            "decision": "Keep entities in YAML",
            **stamp,
        },
    )
    write_yaml(
        root / "plans" / "pln-001-checkout-rollout.yml",
        {
            "type": "plan",
            "number": 1,
            "slug": "checkout-rollout",
            "name": "Checkout rollout",
            "criteria": {"requirement": "brq-002-checkout", "criteria": "crit-001"},
            **stamp,
        },
    )
    return root


def test_legacy_folder_lifecycle(legacy_specs: Path, logger: FilteringBoundLogger) -> None:
    manager = SpecManager(legacy_specs, logger=logger)

    migration = manager.migrate_metadata()
    assert migration.migrated is True
    counters = orjson.loads((legacy_specs / "specs.json").read_bytes())["lastIds"]
    assert counters["business-requirement"] == 2
    assert counters["decision"] == 5
    assert counters["plan"] == 1

    # Old prefixes stay readable and references through them resolve
    assert manager.validate_reference("pln-001").valid is True

    decision = manager.decisions.create(
        {"name": "Atomic writes", "supersedes": "dec-005-yaml-storage"}
    )
    assert manager.decisions.entity_id(decision) == "dec-006-atomic-writes"
    assert (legacy_specs / "decisions" / "dec-006-atomic-writes.yml").is_file()
    assert manager.validate_reference("dec-006").valid is True

    draft = manager.plans.create({"name": "Payment retries", "draft": True})
    assert draft.number == 2
    promoted = manager.plans.promote(2)
    assert promoted.slug == "payment-retries"

    manager.plans.update(2, {"slug": "retries", "depends_on": ["pln-001-checkout-rollout"]})
    assert sorted(p.name for p in (legacy_specs / "plans").iterdir()) == [
        "pln-001-checkout-rollout.yml",
        "pln-002-retries.yml",
    ]
    assert manager.validate_reference("pln-002-retries").valid is True

    manager.plans.delete(1)
    result = manager.validate_reference("pln-002")
    assert result.valid is False
    assert result.errors == (
        "Referenced entity not found in depends_on: pln-001-checkout-rollout",
    )

    assert manager.plans.create({"name": "Next"}).number == 3


def test_state_is_shared_through_the_folder(tmp_path: Path, logger: FilteringBoundLogger) -> None:
    root = tmp_path / "specs"
    first = SpecManager(root, logger=logger)
    first.ensure_folders()
    first.migrate_metadata()
    first.components.create({"name": "Store"})
    first.components.create({"name": "Counter"})

    second = SpecManager(root, logger=logger)

    assert [c.slug for c in second.components.list()] == ["store", "counter"]
    assert second.counter.get_last_id(EntityType.COMPONENT) == 2
    assert second.components.create({"name": "Cli"}).number == 3


def test_corrupt_files_do_not_block_the_folder(
    tmp_path: Path, logger: FilteringBoundLogger
) -> None:
    root = tmp_path / "specs"
    manager = SpecManager(root, logger=logger)
    manager.milestones.create({"name": "Beta", "target_date": "2025-09-01"})
    (root / "milestones" / "mls-002-gamma.yml").write_text(":\n  - [unbalanced\n")
    (root / "milestones" / "mls-003-delta.yml").write_text("type: milestone\nnumber: 3\n")

    result = manager.query(EntityQuery(types=(EntityType.MILESTONE,)))

    assert [entity.name for entity in result.items] == ["Beta"]
    assert sorted(w.file_name for w in manager.get_validation_warnings()) == [
        "mls-002-gamma.yml",
        "mls-003-delta.yml",
    ]

    # Numbers held by unreadable files are burned, never reissued
    for _attempt in range(2):
        with pytest.raises(EntityExistsError):
            manager.milestones.create({"name": "Epsilon"})
    assert manager.milestones.create({"name": "Epsilon"}).number == 4
