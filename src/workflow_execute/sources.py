"""
Workflow source resolution: a workflow comes from exactly one of a JSON
file or the workflow store.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Protocol

from pydantic import ValidationError

from workflow_execute.barrier import InitBarrier
from workflow_execute.errors import InvalidFormatError, NotFoundError, UsageError
from workflow_execute.observability import get_logger
from workflow_runtime import WorkflowDefinition, parse_workflow

logger = get_logger(__name__)

STORAGE = "storage"

_WORKFLOW_ID_RE = re.compile(r"^[A-Za-z0-9_-]{1,36}$")


class WorkflowLookup(Protocol):
    async def find_workflow_by_id(self, workflow_id: str) -> Optional[WorkflowDefinition]:
        ...


def is_workflow_id_valid(workflow_id: Any) -> bool:
    """Whether ``workflow_id`` can reference a stored workflow."""
    if workflow_id is None or isinstance(workflow_id, bool):
        return False
    return bool(_WORKFLOW_ID_RE.match(str(workflow_id)))


@dataclass(frozen=True)
class WorkflowSource:
    workflow: WorkflowDefinition
    workflow_id: Optional[str]
    origin: str


class WorkflowSourceResolver:
    """
    Resolves the workflow of a run.

    The store is only touched for ``--id`` runs, and only once the storage
    readiness point of the barrier has passed.
    """

    def __init__(self, store: WorkflowLookup, barrier: InitBarrier):
        self._store = store
        self._barrier = barrier

    async def resolve(self, file_path: Optional[str] = None, workflow_id: Optional[str] = None) -> WorkflowSource:
        """
        Raises:
            UsageError: If neither or both sources are given
            NotFoundError: If the file or stored workflow does not exist
            InvalidFormatError: If the file does not hold workflow data
        """
        if not file_path and not workflow_id:
            raise UsageError('Either option "--id" or "--file" have to be set!')
        if file_path and workflow_id:
            raise UsageError('Either "id" or "file" can be set never both!')

        if file_path:
            return self.from_file(file_path)
        return await self.from_store(workflow_id)

    def from_file(self, file_path: str) -> WorkflowSource:
        invalid = f'The file "{file_path}" does not contain valid workflow data.'
        try:
            content = Path(file_path).read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise NotFoundError(f'The file "{file_path}" could not be found.') from e
        except UnicodeDecodeError as e:
            raise InvalidFormatError(invalid) from e

        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise InvalidFormatError(invalid) from e

        # Basic structural check before full validation
        if not isinstance(data, dict) or data.get("nodes") is None or data.get("connections") is None:
            raise InvalidFormatError(invalid)

        try:
            workflow = parse_workflow(data)
        except ValidationError as e:
            raise InvalidFormatError(invalid) from e

        workflow_id = workflow.id if is_workflow_id_valid(workflow.id) else None
        logger.debug(f"Loaded workflow from {file_path}", extra={"workflow_id": workflow_id})
        return WorkflowSource(workflow=workflow, workflow_id=workflow_id, origin="file")

    async def from_store(self, workflow_id: str) -> WorkflowSource:
        await self._barrier.wait(STORAGE)

        workflow = await self._store.find_workflow_by_id(workflow_id)
        if workflow is None:
            raise NotFoundError(f'The workflow with the id "{workflow_id}" does not exist.', origin="id")

        logger.debug("Loaded workflow from store", extra={"workflow_id": workflow_id})
        return WorkflowSource(
            workflow=workflow,
            workflow_id=workflow_id if is_workflow_id_valid(workflow_id) else None,
            origin="id",
        )
