"""
Dispatch of a validated workflow to the engine, and the wait for its result.
"""

from __future__ import annotations

from typing import Protocol

from workflow_execute.credentials import CredentialsSnapshot
from workflow_execute.errors import FatalError
from workflow_execute.observability import get_logger
from workflow_execute.services import EngineProtocol
from workflow_runtime import ExecutionRequest, ExecutionResult, WorkflowDefinition, WorkflowNode

logger = get_logger(__name__)

EXECUTION_MODE = "cli"


class ResultSource(Protocol):
    async def wait(self, execution_id: str) -> ExecutionResult:
        ...


class ExecutionDispatcher:
    """Builds the execution request and hands it to the engine."""

    def __init__(self, engine: EngineProtocol):
        self._engine = engine

    @staticmethod
    def build_request(
        workflow: WorkflowDefinition,
        start_node: WorkflowNode,
        credentials: CredentialsSnapshot,
    ) -> ExecutionRequest:
        return ExecutionRequest(
            credentials=credentials,
            execution_mode=EXECUTION_MODE,
            start_nodes=(start_node.name,),
            workflow_data=workflow,
        )

    def dispatch(self, request: ExecutionRequest) -> str:
        """
        Submit the request. Returns the execution handle without waiting.

        Raises:
            FatalError: If the engine refuses the request
        """
        try:
            execution_id = self._engine.dispatch(request)
        except Exception as e:
            raise FatalError(f"Engine rejected the execution: {e}") from e
        logger.info("Execution dispatched", extra={"execution_id": execution_id, "workflow_id": request.workflow_data.id})
        return execution_id


class CompletionWaiter:
    """Waits for the single result of a dispatched execution."""

    def __init__(self, results: ResultSource):
        self._results = results

    async def wait(self, execution_id: str) -> ExecutionResult:
        """
        Raises:
            FatalError: If the engine fails the execution instead of delivering a result
        """
        try:
            result = await self._results.wait(execution_id)
        except Exception as e:
            raise FatalError(f"Execution {execution_id} failed: {e}") from e
        if result is None:
            raise FatalError("Workflow did not return any data!")
        return result
