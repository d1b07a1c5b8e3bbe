"""
Workflow Models - JSON structures for workflow definitions and executions.

Definitions match the n8n workflow JSON format. Execution results match the
n8n run-data shape so they can be dumped for post-mortem inspection.
"""

from __future__ import annotations

from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class WorkflowNode(BaseModel):
    """
    A node in a workflow.

    Matches n8n workflow JSON node format.
    """
    model_config = ConfigDict(extra="allow", populate_by_name=True, frozen=True)

    # Required
    name: str = Field(..., description="Node name (unique within workflow)")
    type: str = Field(..., description="Node type (e.g., 'n8n-nodes-base.start')")
    parameters: Dict[str, Any] = Field(default_factory=dict)

    # Optional
    type_version: Union[int, float] = Field(1, alias="typeVersion", description="Node type version, e.g. 1 or 4.2")
    position: Tuple[float, float] = Field((0, 0), description="Canvas position as [x, y]")
    credentials: Dict[str, Any] = Field(default_factory=dict)
    disabled: bool = Field(False, description="If true, node is skipped")


class WorkflowDefinition(BaseModel):
    """
    Complete workflow definition.

    Read-only once parsed: downstream code never mutates it.
    """
    model_config = ConfigDict(extra="allow", populate_by_name=True, frozen=True)

    # Metadata
    id: Optional[str] = Field(None, description="Workflow ID")
    name: str = Field("Unnamed Workflow", description="Workflow name")
    active: bool = Field(False, description="Is workflow active?")

    # Structure
    nodes: List[WorkflowNode] = Field(default_factory=list)
    connections: Dict[str, Dict[str, List[List[Dict[str, Any]]]]] = Field(
        default_factory=dict,
        description="Node connections: {source: {type: [[{node, type, index}]]}}"
    )
    settings: Dict[str, Any] = Field(default_factory=dict)

    def get_node(self, name: str) -> Optional[WorkflowNode]:
        """Get node by name."""
        for node in self.nodes:
            if node.name == name:
                return node
        return None

    def get_downstream_nodes(self, node_name: str) -> List[str]:
        """Get names of nodes connected to this node's outputs."""
        downstream = []
        for branches in self.connections.get(node_name, {}).values():
            for branch in branches:
                for conn in branch:
                    if "node" in conn and conn["node"] not in downstream:
                        downstream.append(conn["node"])
        return downstream


def credential_reference_name(reference: Any) -> Optional[str]:
    """
    Name of the credential a node references.

    n8n stores either ``{"id": "1", "name": "My Bot"}`` or, in older
    workflows, just the name.
    """
    if isinstance(reference, dict):
        return reference.get("name")
    if isinstance(reference, str):
        return reference
    return None


def parse_workflow(data: Dict[str, Any]) -> WorkflowDefinition:
    """Parse workflow JSON into WorkflowDefinition."""
    if data.get("id") is not None:
        data = {**data, "id": str(data["id"])}
    return WorkflowDefinition.model_validate(data)


# ==============================================================================
# Execution
# ==============================================================================

class ExecutionRequest(BaseModel):
    """
    Everything the engine needs to run a workflow once.

    Built once per run and never mutated afterwards: the credentials
    snapshot is held in read-only mappings and the start node in a tuple.
    """
    model_config = ConfigDict(frozen=True)

    credentials: Mapping[str, Mapping[str, Mapping[str, Any]]] = Field(
        default_factory=dict,
        validate_default=True,
        description="Credentials snapshot: {type: {name: data}}",
    )
    execution_mode: str = Field("cli", description="How the run was triggered")
    start_nodes: Tuple[str] = Field(..., description="The single node the run starts from")
    workflow_data: WorkflowDefinition

    @field_validator("credentials", mode="after")
    @classmethod
    def freeze_credentials(cls, v: Mapping[str, Any]) -> Mapping[str, Any]:
        return _read_only(v)


def _read_only(mapping: Mapping[str, Any]) -> Mapping[str, Any]:
    return MappingProxyType(
        {key: _read_only(value) if isinstance(value, Mapping) else value for key, value in mapping.items()}
    )


class ExecutionErrorInfo(BaseModel):
    """Error embedded in an otherwise delivered result."""
    model_config = ConfigDict(extra="allow")

    message: str
    stack: Optional[str] = None
    node: Optional[str] = None


class TaskData(BaseModel):
    """Run data of a single node."""
    start_time: str = Field(..., alias="startTime")
    execution_time: float = Field(0, alias="executionTime")
    data: Dict[str, List[List[Dict[str, Any]]]] = Field(default_factory=dict)
    error: Optional[ExecutionErrorInfo] = None

    model_config = ConfigDict(populate_by_name=True)


class ResultData(BaseModel):
    run_data: Dict[str, List[TaskData]] = Field(default_factory=dict, alias="runData")
    last_node_executed: Optional[str] = Field(None, alias="lastNodeExecuted")
    error: Optional[ExecutionErrorInfo] = None

    model_config = ConfigDict(populate_by_name=True)


class RunData(BaseModel):
    result_data: ResultData = Field(default_factory=ResultData, alias="resultData")

    model_config = ConfigDict(populate_by_name=True)


class ExecutionResult(BaseModel):
    """
    Outcome of one execution, delivered exactly once per handle.

    Matches the n8n IRun shape: {finished, mode, startedAt, stoppedAt, data}.
    """
    model_config = ConfigDict(populate_by_name=True)

    finished: bool = False
    mode: str = "cli"
    started_at: str = Field(default_factory=lambda: utc_now(), alias="startedAt")
    stopped_at: Optional[str] = Field(None, alias="stoppedAt")
    data: RunData = Field(default_factory=RunData)

    @property
    def error(self) -> Optional[ExecutionErrorInfo]:
        return self.data.result_data.error

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True, indent=2)


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


__all__ = [
    "WorkflowDefinition",
    "WorkflowNode",
    "ExecutionRequest",
    "ExecutionResult",
    "ExecutionErrorInfo",
    "ResultData",
    "RunData",
    "TaskData",
    "credential_reference_name",
    "parse_workflow",
    "utc_now",
]
