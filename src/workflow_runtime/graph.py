"""
Compiled Graph - Executable slice of a workflow.

Takes a WorkflowDefinition plus the start nodes of a run and compiles the
part of the workflow reachable from them into a topologically ordered DAG.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from .models import WorkflowDefinition, WorkflowNode


logger = logging.getLogger(__name__)


@dataclass
class CompiledNode:
    """A node in the compiled graph with its connections."""
    node: WorkflowNode
    upstream: List[str] = field(default_factory=list)
    downstream: List[str] = field(default_factory=list)

    @property
    def name(self) -> str:
        return self.node.name

    @property
    def disabled(self) -> bool:
        return self.node.disabled


class CompiledGraph:
    """
    Workflow compiled for a single run.

    Only nodes reachable from ``start_nodes`` are part of the graph; anything
    else in the workflow is never executed.
    """

    def __init__(self, workflow: WorkflowDefinition, start_nodes: Sequence[str]):
        missing = [name for name in start_nodes if workflow.get_node(name) is None]
        if missing:
            raise ValueError(f"Start nodes not found in workflow: {missing}")

        self._nodes: Dict[str, CompiledNode] = {}
        self._build_nodes(workflow, start_nodes)
        self._execution_order = self._compute_execution_order()

    def _build_nodes(self, workflow: WorkflowDefinition, start_nodes: Sequence[str]) -> None:
        queue = list(start_nodes)
        while queue:
            name = queue.pop(0)
            if name in self._nodes:
                continue
            node = workflow.get_node(name)
            if node is None:
                logger.warning(f"Connection points to unknown node: {name}")
                continue
            downstream = workflow.get_downstream_nodes(name)
            self._nodes[name] = CompiledNode(node=node, downstream=downstream)
            queue.extend(downstream)

        # Only edges inside the reachable slice count as dependencies
        for name, compiled in self._nodes.items():
            for target in compiled.downstream:
                if target in self._nodes:
                    self._nodes[target].upstream.append(name)

    def _compute_execution_order(self) -> List[str]:
        """Kahn's algorithm; ties broken by discovery order."""
        in_degree: Dict[str, int] = {name: len(node.upstream) for name, node in self._nodes.items()}
        queue = [name for name, degree in in_degree.items() if degree == 0]
        order: List[str] = []

        while queue:
            name = queue.pop(0)
            order.append(name)
            for target in self._nodes[name].downstream:
                if target in in_degree:
                    in_degree[target] -= 1
                    if in_degree[target] == 0:
                        queue.append(target)

        if len(order) != len(self._nodes):
            remaining = sorted(set(self._nodes) - set(order))
            raise ValueError(f"Workflow has cycles involving: {remaining}")
        return order

    @property
    def execution_order(self) -> List[str]:
        return self._execution_order.copy()

    def get_node(self, name: str) -> Optional[CompiledNode]:
        return self._nodes.get(name)

    def get_input_data(self, name: str, outputs: Dict[str, List[List[Dict[str, Any]]]]) -> List[Dict[str, Any]]:
        """Items produced by the upstream nodes on their main outputs."""
        items: List[Dict[str, Any]] = []
        for upstream_name in self._nodes[name].upstream:
            for branch in outputs.get(upstream_name, []):
                items.extend(branch)
        return items


__all__ = ["CompiledGraph", "CompiledNode"]
