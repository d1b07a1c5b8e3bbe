"""
Node Registry - Discovery and registration of node and credential types.

This package provides:
- BaseNode / StartNode: the node contract and the built-in entry node
- TypeLoader: entry-points based discovery of node packs and credential types
- NodeTypes / CredentialTypes: registries consulted at execution time
"""

from .base import BaseNode, NodeExecutionContext, NodeOperationError, StartNode
from .models import CredentialTypeDefinition, LoadedTypes, NodeDefinition, NodePackManifest
from .registry import CredentialTypes, NodeTypes, TypeLoader

__all__ = [
    "BaseNode",
    "NodeExecutionContext",
    "NodeOperationError",
    "StartNode",
    "CredentialTypeDefinition",
    "LoadedTypes",
    "NodeDefinition",
    "NodePackManifest",
    "CredentialTypes",
    "NodeTypes",
    "TypeLoader",
]
