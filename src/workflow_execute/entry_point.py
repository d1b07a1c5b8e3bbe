"""
Entry point check: a workflow can only run headless if it has a node the
run can start from.
"""

from __future__ import annotations

from typing import Callable, Iterable

from workflow_execute.errors import MissingEntryPointError
from workflow_runtime import WorkflowDefinition, WorkflowNode

DEFAULT_ENTRY_NODE_TYPES = ("n8n-nodes-base.start",)

EntryPredicate = Callable[[WorkflowNode], bool]


def entry_types_predicate(node_types: Iterable[str] = DEFAULT_ENTRY_NODE_TYPES) -> EntryPredicate:
    """Predicate accepting nodes whose type is one of ``node_types``."""
    accepted = frozenset(node_types)

    def is_entry(node: WorkflowNode) -> bool:
        return node.type in accepted

    return is_entry


class StartNodeValidator:
    """Finds the node a headless run starts from."""

    def __init__(self, predicate: EntryPredicate | None = None):
        self._predicate = predicate or entry_types_predicate()

    def find_start_node(self, workflow: WorkflowDefinition) -> WorkflowNode:
        """
        First node, in list order, accepted by the predicate.

        Raises:
            MissingEntryPointError: If no node qualifies
        """
        for node in workflow.nodes:
            if self._predicate(node):
                return node
        raise MissingEntryPointError('The workflow does not contain a "Start" node. So it can not be executed.')
