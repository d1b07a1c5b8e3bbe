"""
Node Registry - Loading and lookup of node types and credential types.

Types are discovered from entry points (plugin node packs) on top of the
built-in nodes, and handed to the NodeTypes / CredentialTypes registries
which the engine and the credential resolver consult.
"""

from __future__ import annotations

import asyncio
import logging
from importlib.metadata import entry_points
from typing import Dict, List, Optional, Type

from .base import BaseNode, StartNode
from .models import CredentialTypeDefinition, LoadedTypes, NodeDefinition, NodePackManifest


logger = logging.getLogger(__name__)

# Entry point groups for plugin packs
NODE_PACK_ENTRY_POINT = "workflow_execute.nodepacks"
CREDENTIAL_TYPES_ENTRY_POINT = "workflow_execute.credentials"

BUILTIN_NODES: List[Type[BaseNode]] = [StartNode]


class TypeLoader:
    """
    Discovers node and credential types.

    Entry points are defined in pyproject.toml:

        [project.entry-points."workflow_execute.nodepacks"]
        mypack = "mypack:register_nodes"

        [project.entry-points."workflow_execute.credentials"]
        mypack = "mypack:credential_types"

    A node pack function returns either ``(manifest, node_classes)`` or just a
    ``{node_type: node_class}`` dict. A credential function returns an
    iterable of CredentialTypeDefinition (or dicts of the same shape).
    """

    def __init__(
        self,
        node_pack_group: str = NODE_PACK_ENTRY_POINT,
        credentials_group: str = CREDENTIAL_TYPES_ENTRY_POINT,
    ):
        self._node_pack_group = node_pack_group
        self._credentials_group = credentials_group
        self.packs: Dict[str, NodePackManifest] = {}

    async def init(self) -> LoadedTypes:
        """Load all types. Entry point imports run off the event loop."""
        return await asyncio.to_thread(self.load)

    def load(self) -> LoadedTypes:
        types = LoadedTypes()
        for node_class in BUILTIN_NODES:
            types.node_types[node_class.type] = node_class

        for ep in entry_points(group=self._node_pack_group):
            result = ep.load()()
            if isinstance(result, tuple):
                manifest, node_classes = result
            else:
                node_classes = result
                manifest = NodePackManifest(name=ep.name, nodes=list(node_classes))
            self.packs[manifest.name] = manifest
            types.node_types.update(node_classes)
            logger.info(f"Loaded node pack '{manifest.name}' with {len(node_classes)} nodes")

        for ep in entry_points(group=self._credentials_group):
            for item in ep.load()():
                definition = CredentialTypeDefinition.model_validate(item) if isinstance(item, dict) else item
                types.credential_types[definition.name] = definition
            logger.info(f"Loaded credential types from '{ep.name}'")

        logger.debug(
            f"Type loading complete: {len(types.node_types)} node types, "
            f"{len(types.credential_types)} credential types"
        )
        return types


class NodeTypes:
    """
    Registry of node classes the engine can instantiate.

    Usage:
        node_types = NodeTypes()
        await node_types.init(loaded.node_types)
        node = node_types.create_node("n8n-nodes-base.start")
    """

    def __init__(self):
        self._node_classes: Dict[str, Type[BaseNode]] = {}

    async def init(self, node_types: Dict[str, Type[BaseNode]]) -> None:
        for node_type, node_class in node_types.items():
            self.register_node(node_class, node_type)

    def register_node(self, node_class: Type[BaseNode], node_type: Optional[str] = None) -> NodeDefinition:
        if node_type is None:
            node_type = getattr(node_class, "type", node_class.__name__.lower())

        definition = NodeDefinition.from_node_class(node_class)
        definition.node_type = node_type

        self._node_classes[node_type] = node_class
        logger.debug(f"Registered node: {node_type} ({definition.display_name})")
        return definition

    def get_node_class(self, node_type: str) -> Optional[Type[BaseNode]]:
        return self._node_classes.get(node_type)

    def create_node(self, node_type: str) -> Optional[BaseNode]:
        """Create a node instance, or None if the type is unknown."""
        node_class = self.get_node_class(node_type)
        if node_class:
            return node_class()
        return None


class CredentialTypes:
    """Registry of credential types, resolved along ``extends`` chains."""

    def __init__(self):
        self._types: Dict[str, CredentialTypeDefinition] = {}

    async def init(self, credential_types: Dict[str, CredentialTypeDefinition]) -> None:
        self._types.update(credential_types)

    def get_parent_types(self, name: str) -> List[str]:
        """All types ``name`` extends, nearest first."""
        parents: List[str] = []
        pending: List[str] = list(self._types[name].extends) if name in self._types else []
        while pending:
            parent = pending.pop(0)
            if parent == name or parent in parents:
                continue
            parents.append(parent)
            if parent in self._types:
                pending.extend(self._types[parent].extends)
        return parents


__all__ = [
    "TypeLoader",
    "NodeTypes",
    "CredentialTypes",
    "BUILTIN_NODES",
    "NODE_PACK_ENTRY_POINT",
    "CREDENTIAL_TYPES_ENTRY_POINT",
]
