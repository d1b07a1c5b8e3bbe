"""
BaseNode - Contract every node type loaded by the registry implements.

Nodes declare ``type``, ``version`` and an n8n style ``description`` dict,
receive a NodeExecutionContext through set_context() and return their output
from execute() as branches of items: List[List[{"json": {...}}]].
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, TypedDict


class NodeExecutionData(TypedDict, total=False):
    """A single item flowing between nodes."""
    json: Dict[str, Any]
    binary: Dict[str, Any]


class NodeOperationError(Exception):
    """Raised by a node when it cannot complete its operation."""


class NodeExecutionContext:
    """
    Runtime context provided to nodes during execution.
    """

    def __init__(
        self,
        parameters: Dict[str, Any],
        credentials: Dict[str, Dict[str, Any]],
        input_data: List[NodeExecutionData],
        workflow_id: Optional[str] = None,
        node_name: Optional[str] = None,
    ) -> None:
        self._parameters = parameters
        self._credentials = credentials
        self._input_data = input_data
        self.workflow_id = workflow_id
        self.node_name = node_name

    def get_node_parameter(self, name: str, default: Any = None) -> Any:
        return self._parameters.get(name, default)

    def get_credentials(self, name: str) -> Dict[str, Any]:
        """Get credentials by type name."""
        if name not in self._credentials:
            raise NodeOperationError(f"Credentials '{name}' not found")
        return self._credentials[name]

    def get_input_data(self) -> List[NodeExecutionData]:
        return self._input_data


class BaseNode(ABC):
    """Abstract base class for node implementations."""

    type: str = ""
    version: int = 1
    description: Dict[str, Any] = {}

    def __init__(self) -> None:
        self._context: Optional[NodeExecutionContext] = None

    def set_context(self, context: NodeExecutionContext) -> None:
        self._context = context

    @property
    def context(self) -> NodeExecutionContext:
        if self._context is None:
            raise NodeOperationError(f"Node '{self.type}' has no execution context")
        return self._context

    @abstractmethod
    def execute(self) -> List[List[NodeExecutionData]]:
        """Run the node against its context and return output branches."""


class StartNode(BaseNode):
    """
    Start - The entry point of headless workflow runs.

    Passes its input through unchanged.
    """

    type = "n8n-nodes-base.start"
    version = 1

    description = {
        "displayName": "Start",
        "name": "start",
        "group": ["input"],
        "description": "Starts the workflow execution from this node",
        "inputs": [],
        "outputs": ["main"],
    }

    def execute(self) -> List[List[NodeExecutionData]]:
        return [self.context.get_input_data()]


__all__ = [
    "BaseNode",
    "NodeExecutionContext",
    "NodeExecutionData",
    "NodeOperationError",
    "StartNode",
]
