"""
Workflow Runtime - Execution engine for n8n-compatible workflows.

This package provides:
- WorkflowDefinition: JSON structure describing a workflow
- ExecutionRequest / ExecutionResult: what goes into and comes out of a run
- CompiledGraph: the slice of a workflow reachable from its start nodes
- WorkflowRunner / ActiveExecutions: background dispatch and result delivery
"""

from .models import (
    ExecutionErrorInfo,
    ExecutionRequest,
    ExecutionResult,
    WorkflowDefinition,
    WorkflowNode,
    parse_workflow,
)
from .graph import CompiledGraph
from .engine import ActiveExecutions, UnknownExecutionError, WorkflowRunner

__all__ = [
    # Models
    "WorkflowDefinition",
    "WorkflowNode",
    "ExecutionRequest",
    "ExecutionResult",
    "ExecutionErrorInfo",
    "parse_workflow",
    # Graph
    "CompiledGraph",
    # Engine
    "ActiveExecutions",
    "UnknownExecutionError",
    "WorkflowRunner",
]
