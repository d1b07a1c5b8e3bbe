"""
WorkflowRun - Executes one workflow per invocation.

    INIT -> RESOLVE_SOURCE -> VALIDATE_START_NODE -> AWAIT_BARRIER
         -> DISPATCH -> AWAIT_COMPLETION -> CLASSIFY

Initialization of storage, types, credential overwrites and hooks starts
first and runs in the background; each step waits only for the subsystems it
needs. Any failure ends the run with the outcome of its error. Nothing is
retried.
"""

from __future__ import annotations

import traceback
from dataclasses import dataclass
from typing import Optional

import click

from workflow_execute.barrier import InitBarrier
from workflow_execute.credentials import WorkflowCredentials
from workflow_execute.dispatch import CompletionWaiter, ExecutionDispatcher
from workflow_execute.entry_point import StartNodeValidator
from workflow_execute.errors import ExecutionError, FatalError, Outcome, WorkflowExecuteError
from workflow_execute.hooks import AFTER_EXECUTE, BEFORE_EXECUTE
from workflow_execute.observability import get_logger
from workflow_execute.outcome import SEPARATOR, OutcomeClassifier
from workflow_execute.services import Services
from workflow_execute.sources import STORAGE, WorkflowSourceResolver
from workflow_runtime import ExecutionResult

logger = get_logger(__name__)

TYPES = "types"
CREDENTIALS_OVERWRITES = "credentials_overwrites"
EXTERNAL_HOOKS = "external_hooks"


@dataclass
class RunReport:
    """What a run ended with."""
    outcome: Outcome
    error: Optional[WorkflowExecuteError] = None
    execution_id: Optional[str] = None
    result: Optional[ExecutionResult] = None

    @property
    def is_success(self) -> bool:
        return self.outcome == Outcome.SUCCESS


class WorkflowRun:
    """
    Orchestrates a single headless workflow execution.

    Usage:
        services = build_services(get_settings())
        report = await WorkflowRun(services).run(file_path="workflow.json")
    """

    def __init__(self, services: Services):
        self._services = services
        self._validator = StartNodeValidator(services.entry_predicate)
        self._dispatcher = ExecutionDispatcher(services.engine)
        self._waiter = CompletionWaiter(services.active_executions)
        self._classifier = OutcomeClassifier()

    def start_initialization(self, barrier: InitBarrier) -> None:
        services = self._services
        barrier.start(STORAGE, services.store.init())
        barrier.start(TYPES, services.type_loader.init())
        barrier.start(CREDENTIALS_OVERWRITES, services.credentials_overwrites.init())
        barrier.start(EXTERNAL_HOOKS, services.external_hooks.init())

    async def run(self, file_path: Optional[str] = None, workflow_id: Optional[str] = None) -> RunReport:
        barrier = InitBarrier()
        report = RunReport(outcome=Outcome.FATAL)
        try:
            self.start_initialization(barrier)
            report.outcome = await self._execute(barrier, report, file_path, workflow_id)
        except WorkflowExecuteError as e:
            report.outcome = e.outcome
            report.error = e
            self._report_failure(e, report)
        except Exception as e:
            error = FatalError(str(e) or type(e).__name__)
            error.__cause__ = e
            report.error = error
            self._report_failure(error, report)
        finally:
            await barrier.close()
            await self._services.store.close()
        return report

    async def _execute(
        self,
        barrier: InitBarrier,
        report: RunReport,
        file_path: Optional[str],
        workflow_id: Optional[str],
    ) -> Outcome:
        services = self._services

        resolver = WorkflowSourceResolver(services.store, barrier)
        source = await resolver.resolve(file_path=file_path, workflow_id=workflow_id)
        workflow = source.workflow

        start_node = self._validator.find_start_node(workflow)
        logger.debug(f"Starting from node '{start_node.name}'", extra={"workflow_id": source.workflow_id})

        # Everything below needs the full initialization
        await barrier.wait(STORAGE)
        loaded = await barrier.wait(TYPES)
        await barrier.wait(CREDENTIALS_OVERWRITES)
        await barrier.wait(EXTERNAL_HOOKS)

        await services.node_types.init(loaded.node_types)
        await services.credential_types.init(loaded.credential_types)

        credentials = await WorkflowCredentials(
            services.store,
            services.credentials_overwrites,
            services.credential_types,
        ).resolve(workflow.nodes)

        request = self._dispatcher.build_request(workflow, start_node, credentials)
        await services.external_hooks.run(BEFORE_EXECUTE, request)

        report.execution_id = self._dispatcher.dispatch(request)
        report.result = await self._waiter.wait(report.execution_id)

        try:
            return self._classifier.classify(report.result)
        finally:
            await self._run_after_hooks(report)

    async def _run_after_hooks(self, report: RunReport) -> None:
        """The result is final by now; a failing hook is only logged."""
        try:
            await self._services.external_hooks.run(AFTER_EXECUTE, report.execution_id, report.result)
        except Exception:
            logger.exception(f"Hook {AFTER_EXECUTE} failed", extra={"execution_id": report.execution_id})

    def _report_failure(self, error: WorkflowExecuteError, report: RunReport) -> None:
        if error.outcome not in (Outcome.EXECUTION_ERROR, Outcome.FATAL):
            # Problems with the invocation itself
            click.echo(error.message)
            logger.warning(error.message, extra={"outcome": error.outcome.value})
            return

        extra = {"execution_id": report.execution_id}
        click.echo("Error executing workflow. See log messages for details.", err=True)
        logger.error("\nExecution error:", extra=extra)
        logger.info(SEPARATOR, extra=extra)
        logger.error(error.message, extra=extra)
        logger.error(self._stack(error), extra=extra)

    @staticmethod
    def _stack(error: WorkflowExecuteError) -> str:
        if isinstance(error, ExecutionError) and error.stack:
            return error.stack
        cause = error.__cause__ or error
        return "".join(traceback.format_exception(type(cause), cause, cause.__traceback__))
