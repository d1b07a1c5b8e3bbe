"""
Service objects a workflow run depends on.

Everything is constructed explicitly by build_services() and injected into
WorkflowRun, so tests can hand in substitutes for any collaborator. The
protocols below are what a run needs from each of them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import partial
from typing import Any, Dict, Optional, Protocol, runtime_checkable

from node_registry import CredentialTypes, LoadedTypes, NodeTypes, TypeLoader
from workflow_execute.config import Settings, get_encryption_key
from workflow_execute.credentials import CredentialsOverwrites
from workflow_execute.entry_point import EntryPredicate, entry_types_predicate
from workflow_execute.hooks import ExternalHooks
from workflow_execute.storage import WorkflowStore
from workflow_runtime import ActiveExecutions, ExecutionRequest, WorkflowDefinition, WorkflowRunner


@runtime_checkable
class WorkflowStoreProtocol(Protocol):
    async def init(self) -> None:
        ...

    async def close(self) -> None:
        ...

    async def find_workflow_by_id(self, workflow_id: str) -> Optional[WorkflowDefinition]:
        ...

    async def find_credentials(self, credential_type: str, name: str) -> Optional[Dict[str, Any]]:
        ...


@runtime_checkable
class TypeLoaderProtocol(Protocol):
    async def init(self) -> LoadedTypes:
        ...


@runtime_checkable
class EngineProtocol(Protocol):
    def dispatch(self, request: ExecutionRequest) -> str:
        """Start an execution and return its handle."""
        ...


@dataclass
class Services:
    store: WorkflowStoreProtocol
    type_loader: TypeLoaderProtocol
    credentials_overwrites: CredentialsOverwrites
    external_hooks: ExternalHooks
    node_types: NodeTypes = field(default_factory=NodeTypes)
    credential_types: CredentialTypes = field(default_factory=CredentialTypes)
    active_executions: ActiveExecutions = field(default_factory=ActiveExecutions)
    engine: Optional[EngineProtocol] = None
    entry_predicate: EntryPredicate = field(default_factory=entry_types_predicate)

    def __post_init__(self) -> None:
        if self.engine is None:
            self.engine = WorkflowRunner(self.node_types, self.active_executions)


def build_services(settings: Settings) -> Services:
    """
    Wire up the production services.

    Nothing touches the disk here. The user folder, which holds the
    encryption key and the default SQLite database, is prepared when the
    store initializes.
    """
    return Services(
        store=WorkflowStore(settings.get_database_url(), partial(get_encryption_key, settings)),
        type_loader=TypeLoader(
            node_pack_group=settings.node_pack_entry_point,
            credentials_group=settings.credential_types_entry_point,
        ),
        credentials_overwrites=CredentialsOverwrites(settings.credentials_overwrite_data),
        external_hooks=ExternalHooks(settings.get_external_hook_modules()),
        entry_predicate=entry_types_predicate(settings.entry_node_types),
    )
