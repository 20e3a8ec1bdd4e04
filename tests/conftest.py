"""Shared test fixtures for specstore tests."""

import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
import structlog
from rich.console import Console
from structlog.testing import LogCapture
from structlog.typing import FilteringBoundLogger

from specstore.manager import SpecManager
from specstore.storage import CounterStore, YamlFileStore

EntityData = dict[str, Any]


@pytest.fixture
def console() -> Console:
    return Console(
        width=70,
        force_terminal=True,
        highlight=False,
        color_system=None,
        legacy_windows=False,
    )


@pytest.fixture
def log_capture() -> LogCapture:
    """Collect every event logged through the ``logger`` fixture."""
    return LogCapture()


@pytest.fixture
def logger(log_capture: LogCapture) -> FilteringBoundLogger:
    """A debug-level logger whose events land in ``log_capture``."""
    return structlog.wrap_logger(
        structlog.ReturnLogger(),
        processors=[log_capture],
        wrapper_class=structlog.make_filtering_bound_logger(logging.DEBUG),
    )


@pytest.fixture
def specs_root(tmp_path: Path) -> Path:
    """Path of a specs folder that does not exist yet."""
    return tmp_path / "specs"


@pytest.fixture
def file_store(specs_root: Path) -> YamlFileStore:
    return YamlFileStore(specs_root)


@pytest.fixture
def counter(file_store: YamlFileStore, logger: FilteringBoundLogger) -> CounterStore:
    return CounterStore(file_store, logger=logger)


@pytest.fixture
def spec_manager(specs_root: Path, logger: FilteringBoundLogger) -> SpecManager:
    return SpecManager(specs_root, logger=logger)


@pytest.fixture
def write_entity_file(specs_root: Path) -> Callable[[str, str], Path]:
    """Return a function that writes raw text to a file under the specs root."""

    def _write(relative_path: str, content: str) -> Path:
        path = specs_root / relative_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    return _write


def plan_data(name: str = "Rollout plan", **overrides: Any) -> EntityData:
    """Minimal valid payload for a plan."""
    return {"name": name, **overrides}


def decision_data(name: str = "Use YAML files", **overrides: Any) -> EntityData:
    """Minimal valid payload for a decision."""
    return {
        "name": name,
        "decision": "Store entities as YAML files",
        "context": "Entities are edited by hand",
        **overrides,
    }


def requirement_data(name: str = "Fast checkout", **overrides: Any) -> EntityData:
    """Business requirement payload with one acceptance criterion."""
    return {
        "name": name,
        "criteria": [{"id": "crit-001", "description": "Checkout completes in 3 steps"}],
        **overrides,
    }
