"""
Credential resolution for a workflow run.

WorkflowCredentials builds the credentials snapshot handed to the engine:
``{credential_type: {credential_name: data}}`` for every credential the
workflow's enabled nodes reference. CredentialsOverwrites fills in fields an
operator forces for a credential type (e.g. a shared OAuth client id).
"""

from __future__ import annotations

import json
from typing import Any, Dict, Iterable, List, Optional, Protocol

from node_registry import CredentialTypes
from workflow_execute.errors import FatalError
from workflow_execute.observability import get_logger
from workflow_runtime.models import WorkflowNode, credential_reference_name

logger = get_logger(__name__)

CredentialsSnapshot = Dict[str, Dict[str, Dict[str, Any]]]


class CredentialsLookup(Protocol):
    async def find_credentials(self, credential_type: str, name: str) -> Optional[Dict[str, Any]]:
        ...


class CredentialsOverwrites:
    """Operator supplied credential fields, per credential type."""

    def __init__(self, overwrite_data: Optional[str] = None):
        self._raw = overwrite_data
        self._overwrites: Dict[str, Dict[str, Any]] = {}

    async def init(self) -> Dict[str, Dict[str, Any]]:
        """
        Parse the configured overwrites.

        Raises:
            ValueError: If the data is not a JSON object of objects
        """
        if not self._raw:
            return self._overwrites
        data = json.loads(self._raw)
        if not isinstance(data, dict) or not all(isinstance(v, dict) for v in data.values()):
            raise ValueError("Credential overwrites must be a JSON object of objects")
        self._overwrites = data
        logger.info(f"Loaded credential overwrites for {len(data)} types")
        return self._overwrites

    def get(self, credential_type: str) -> Dict[str, Any]:
        return self._overwrites.get(credential_type, {})

    def apply(
        self,
        credential_type: str,
        data: Dict[str, Any],
        parent_types: Iterable[str] = (),
    ) -> Dict[str, Any]:
        """
        Fill in overwritten fields that are not set on ``data``.

        Overwrites of the type itself win over those of its parents.
        """
        merged = dict(data)
        for type_name in [credential_type, *parent_types]:
            for key, value in self.get(type_name).items():
                if merged.get(key) in (None, ""):
                    merged[key] = value
        return merged


class WorkflowCredentials:
    """Resolves the credentials snapshot for a list of nodes."""

    def __init__(
        self,
        lookup: CredentialsLookup,
        overwrites: CredentialsOverwrites,
        credential_types: CredentialTypes,
    ):
        self._lookup = lookup
        self._overwrites = overwrites
        self._credential_types = credential_types

    async def resolve(self, nodes: List[WorkflowNode]) -> CredentialsSnapshot:
        """
        Raises:
            FatalError: If a referenced credential does not exist
        """
        snapshot: CredentialsSnapshot = {}
        for node in nodes:
            if node.disabled:
                continue
            for credential_type, reference in node.credentials.items():
                name = credential_reference_name(reference)
                if name is None:
                    raise FatalError(f'Node "{node.name}" references credentials of type "{credential_type}" without a name')
                if name in snapshot.get(credential_type, {}):
                    continue

                data = await self._lookup.find_credentials(credential_type, name)
                if data is None:
                    raise FatalError(f'Could not find credentials for type "{credential_type}" with name "{name}".')

                parents = self._credential_types.get_parent_types(credential_type)
                snapshot.setdefault(credential_type, {})[name] = self._overwrites.apply(credential_type, data, parents)
        return snapshot


__all__ = ["CredentialsOverwrites", "CredentialsSnapshot", "WorkflowCredentials"]
