"""Pytest configuration and fixtures."""
import json
from typing import Any, Optional

import pytest

from fakes import START_WORKFLOW, FakeStore, FakeTypeLoader
from workflow_execute.config import reset_settings
from workflow_execute.credentials import CredentialsOverwrites
from workflow_execute.hooks import ExternalHooks
from workflow_execute.services import Services
from workflow_runtime import WorkflowDefinition, parse_workflow


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Keep settings and the user folder inside the test's tmp dir."""
    monkeypatch.setenv("WORKFLOW_EXECUTE_USER_FOLDER", str(tmp_path / "user"))
    monkeypatch.delenv("WORKFLOW_EXECUTE_ENCRYPTION_KEY", raising=False)
    monkeypatch.delenv("WORKFLOW_EXECUTE_DATABASE_URL", raising=False)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def write_workflow(tmp_path):
    """Write workflow data to a JSON file and return its path."""
    def _write(data: Any, name: str = "workflow.json") -> str:
        path = tmp_path / name
        path.write_text(data if isinstance(data, str) else json.dumps(data), encoding="utf-8")
        return str(path)

    return _write


@pytest.fixture
def start_workflow() -> WorkflowDefinition:
    return parse_workflow({"id": "5", "name": "Stored", **START_WORKFLOW})


@pytest.fixture
def make_services():
    """Services wired with fakes for storage and type loading."""
    def _make(store: Optional[FakeStore] = None, node_classes=(), overwrites: Optional[str] = None, **kwargs) -> Services:
        return Services(
            store=store or FakeStore(),
            type_loader=FakeTypeLoader(*node_classes),
            credentials_overwrites=CredentialsOverwrites(overwrites),
            external_hooks=ExternalHooks(),
            **kwargs,
        )

    return _make
