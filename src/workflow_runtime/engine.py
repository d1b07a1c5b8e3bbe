"""
Workflow Engine - Asynchronous dispatch of workflow executions.

WorkflowRunner.dispatch() hands back an execution id immediately and runs
the workflow as a background task. ActiveExecutions correlates each id with
the single result the run eventually delivers.
"""

from __future__ import annotations

import asyncio
import logging
import time
import traceback
import uuid
from typing import Any, Dict, List, Optional, Set

from node_registry import NodeExecutionContext, NodeOperationError, NodeTypes

from .graph import CompiledGraph, CompiledNode
from .models import (
    ExecutionErrorInfo,
    ExecutionRequest,
    ExecutionResult,
    TaskData,
    credential_reference_name,
    utc_now,
)


logger = logging.getLogger(__name__)


class UnknownExecutionError(KeyError):
    """The execution id was never issued, or its result was already taken."""


class ActiveExecutions:
    """
    Table of running executions.

    Every execution id maps to exactly one future. wait() may consume it
    once; afterwards the id is forgotten.
    """

    def __init__(self):
        self._executions: Dict[str, asyncio.Future] = {}
        self._consumed: Set[str] = set()

    def add(self) -> str:
        execution_id = str(uuid.uuid4())
        self._executions[execution_id] = asyncio.get_running_loop().create_future()
        return execution_id

    def resolve(self, execution_id: str, result: ExecutionResult) -> None:
        future = self._executions.get(execution_id)
        if future is not None and not future.done():
            future.set_result(result)

    def reject(self, execution_id: str, error: BaseException) -> None:
        future = self._executions.get(execution_id)
        if future is not None and not future.done():
            future.set_exception(error)

    async def wait(self, execution_id: str) -> ExecutionResult:
        """Suspend until the execution delivers its result."""
        if execution_id in self._consumed:
            raise UnknownExecutionError(f"Result of execution {execution_id} was already consumed")
        future = self._executions.get(execution_id)
        if future is None:
            raise UnknownExecutionError(f"Unknown execution: {execution_id}")

        self._consumed.add(execution_id)
        try:
            return await future
        finally:
            del self._executions[execution_id]


class WorkflowRunner:
    """
    Executes workflows in the background.

    Usage:
        runner = WorkflowRunner(node_types, active_executions)
        execution_id = runner.dispatch(request)
        result = await active_executions.wait(execution_id)

    A failing node ends the run and is reported inside the result
    (``data.resultData.error``). Only a crash of the engine itself rejects
    the execution.
    """

    def __init__(self, node_types: NodeTypes, active_executions: ActiveExecutions):
        self._node_types = node_types
        self._active_executions = active_executions
        self._tasks: Dict[str, asyncio.Task] = {}

    def dispatch(self, request: ExecutionRequest) -> str:
        """Start the execution and return its id without waiting for it."""
        execution_id = self._active_executions.add()
        task = asyncio.create_task(self._run(execution_id, request), name=f"execution-{execution_id}")
        self._tasks[execution_id] = task
        task.add_done_callback(lambda _: self._tasks.pop(execution_id, None))
        logger.debug(f"Dispatched execution {execution_id} (mode={request.execution_mode})")
        return execution_id

    async def _run(self, execution_id: str, request: ExecutionRequest) -> None:
        try:
            result = await self.execute(request)
        except Exception as e:
            logger.error(f"Execution {execution_id} crashed: {e}")
            self._active_executions.reject(execution_id, e)
            return
        self._active_executions.resolve(execution_id, result)

    async def execute(self, request: ExecutionRequest) -> ExecutionResult:
        result = ExecutionResult(mode=request.execution_mode)
        result_data = result.data.result_data

        try:
            graph = CompiledGraph(request.workflow_data, request.start_nodes)
        except ValueError as e:
            result_data.error = ExecutionErrorInfo(message=f"Compilation failed: {e}", stack=traceback.format_exc())
            result.stopped_at = utc_now()
            return result

        outputs: Dict[str, List[List[Dict[str, Any]]]] = {}
        for name in graph.execution_order:
            compiled = graph.get_node(name)

            if name in request.start_nodes:
                input_data = [{"json": {}}]
            else:
                input_data = graph.get_input_data(name, outputs)
                if not input_data:
                    # Nothing reached this node
                    continue

            if compiled.disabled:
                outputs[name] = [input_data]
                continue

            task_data, output = await self._execute_node(compiled, input_data, request)
            result_data.run_data[name] = [task_data]
            result_data.last_node_executed = name

            if task_data.error is not None:
                logger.error(f"Node {name} failed: {task_data.error.message}")
                result_data.error = task_data.error
                break
            outputs[name] = output

        result.finished = result_data.error is None
        result.stopped_at = utc_now()
        return result

    async def _execute_node(
        self,
        compiled: CompiledNode,
        input_data: List[Dict[str, Any]],
        request: ExecutionRequest,
    ) -> tuple[TaskData, Optional[List[List[Dict[str, Any]]]]]:
        started = utc_now()
        start_time = time.perf_counter()

        try:
            node = self._node_types.create_node(compiled.node.type)
            if node is None:
                raise NodeOperationError(f"Unrecognized node type: {compiled.node.type}")

            node.set_context(NodeExecutionContext(
                parameters=compiled.node.parameters,
                credentials=self._node_credentials(compiled, request),
                input_data=input_data,
                workflow_id=request.workflow_data.id,
                node_name=compiled.name,
            ))
            # Nodes are synchronous
            output = await asyncio.to_thread(node.execute)
        except Exception as e:
            error = ExecutionErrorInfo(message=str(e), stack=traceback.format_exc(), node=compiled.name)
            return TaskData(
                start_time=started,
                execution_time=(time.perf_counter() - start_time) * 1000,
                error=error,
            ), None

        return TaskData(
            start_time=started,
            execution_time=(time.perf_counter() - start_time) * 1000,
            data={"main": output},
        ), output

    @staticmethod
    def _node_credentials(compiled: CompiledNode, request: ExecutionRequest) -> Dict[str, Dict[str, Any]]:
        """Pick this node's credentials out of the request snapshot."""
        resolved: Dict[str, Dict[str, Any]] = {}
        for cred_type, reference in compiled.node.credentials.items():
            name = credential_reference_name(reference)
            data = request.credentials.get(cred_type, {}).get(name)
            if data is None:
                raise NodeOperationError(f'Credentials "{name}" of type "{cred_type}" are not available')
            resolved[cred_type] = data
        return resolved


__all__ = [
    "ActiveExecutions",
    "WorkflowRunner",
    "UnknownExecutionError",
]
