"""
Node Registry Models - Metadata structures for node types, credential types
and node packs.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Type

from pydantic import BaseModel, ConfigDict, Field


class NodeDefinition(BaseModel):
    """
    Metadata about a registered node type.
    """
    model_config = ConfigDict(extra="allow")

    node_type: str = Field(..., description="Unique node type identifier")
    version: int = Field(1, description="Node version")
    display_name: str = Field(..., description="Human-readable name")
    description: str = Field("", description="Node description")
    node_pack: Optional[str] = Field(None, description="Source node pack")
    inputs: List[str] = Field(default_factory=lambda: ["main"])
    outputs: List[str] = Field(default_factory=lambda: ["main"])
    credentials: List[Dict[str, Any]] = Field(default_factory=list)

    @classmethod
    def from_node_class(cls, node_class: Type) -> "NodeDefinition":
        """Create definition from a BaseNode class."""
        node_type = getattr(node_class, "type", node_class.__name__.lower())
        description = getattr(node_class, "description", {}) or {}

        # n8n style description dict, or a plain string
        if isinstance(description, dict):
            return cls(
                node_type=node_type,
                version=getattr(node_class, "version", 1),
                display_name=description.get("displayName", node_type),
                description=description.get("description", ""),
                inputs=description.get("inputs", ["main"]),
                outputs=description.get("outputs", ["main"]),
                credentials=description.get("credentials", []),
            )
        return cls(
            node_type=node_type,
            version=getattr(node_class, "version", 1),
            display_name=node_type.replace("-", " ").title(),
            description=str(description),
        )


class CredentialTypeDefinition(BaseModel):
    """
    A credential type, e.g. ``telegramApi``.

    ``properties`` lists the field names a credential of this type carries.
    """
    model_config = ConfigDict(extra="allow")

    name: str = Field(..., description="Credential type name")
    display_name: str = Field("", alias="displayName")
    properties: List[str] = Field(default_factory=list)
    extends: List[str] = Field(default_factory=list)


class NodePackManifest(BaseModel):
    """Package metadata for a node pack."""
    model_config = ConfigDict(extra="allow")

    name: str = Field(..., description="Pack name")
    version: str = Field("0.0.0", description="Pack version")
    nodes: List[str] = Field(default_factory=list, description="Node types in pack")


class LoadedTypes(BaseModel):
    """Everything the type loader found, keyed by type name."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    node_types: Dict[str, Any] = Field(default_factory=dict)
    credential_types: Dict[str, CredentialTypeDefinition] = Field(default_factory=dict)


__all__ = [
    "NodeDefinition",
    "CredentialTypeDefinition",
    "NodePackManifest",
    "LoadedTypes",
]
