"""Tests for type loading and the node/credential registries."""
import asyncio
from unittest.mock import Mock, patch

import pytest

from fakes import EchoNode
from node_registry import CredentialTypes, NodePackManifest, NodeTypes, StartNode, TypeLoader
from node_registry.models import CredentialTypeDefinition, NodeDefinition


def entry_point(name, target):
    ep = Mock()
    ep.name = name
    ep.load.return_value = target
    return ep


def fake_entry_points(groups):
    return lambda group: groups.get(group, [])


class TestTypeLoader:
    def test_builtin_start_node(self):
        with patch("node_registry.registry.entry_points", fake_entry_points({})):
            loaded = asyncio.run(TypeLoader().init())

        assert loaded.node_types == {"n8n-nodes-base.start": StartNode}
        assert loaded.credential_types == {}

    def test_node_pack_dict(self):
        groups = {"workflow_execute.nodepacks": [entry_point("echo", lambda: {"test.echo": EchoNode})]}

        with patch("node_registry.registry.entry_points", fake_entry_points(groups)):
            loader = TypeLoader()
            loaded = loader.load()

        assert loaded.node_types["test.echo"] is EchoNode
        assert loader.packs["echo"].nodes == ["test.echo"]

    def test_node_pack_with_manifest(self):
        manifest = NodePackManifest(name="echo-pack", version="1.2.0", nodes=["test.echo"])
        groups = {"workflow_execute.nodepacks": [entry_point("echo", lambda: (manifest, {"test.echo": EchoNode}))]}

        with patch("node_registry.registry.entry_points", fake_entry_points(groups)):
            loader = TypeLoader()
            loader.load()

        assert loader.packs["echo-pack"].version == "1.2.0"

    def test_credential_types(self):
        groups = {
            "workflow_execute.credentials": [
                entry_point(
                    "google",
                    lambda: [
                        {"name": "oAuth2Api", "displayName": "OAuth2 API"},
                        CredentialTypeDefinition(name="googleOAuth2Api", extends=["oAuth2Api"]),
                    ],
                )
            ]
        }

        with patch("node_registry.registry.entry_points", fake_entry_points(groups)):
            loaded = TypeLoader().load()

        assert loaded.credential_types["oAuth2Api"].display_name == "OAuth2 API"
        assert loaded.credential_types["googleOAuth2Api"].extends == ["oAuth2Api"]

    def test_custom_groups(self):
        calls = []

        def record(group):
            calls.append(group)
            return []

        with patch("node_registry.registry.entry_points", record):
            TypeLoader(node_pack_group="custom.nodes", credentials_group="custom.credentials").load()

        assert calls == ["custom.nodes", "custom.credentials"]

    def test_failing_pack_propagates(self):
        def broken():
            raise ImportError("missing dependency")

        groups = {"workflow_execute.nodepacks": [entry_point("broken", broken)]}

        with patch("node_registry.registry.entry_points", fake_entry_points(groups)):
            with pytest.raises(ImportError):
                TypeLoader().load()


class TestNodeTypes:
    def test_register_and_create(self):
        node_types = NodeTypes()
        asyncio.run(node_types.init({"test.echo": EchoNode}))

        assert node_types.get_node_class("test.echo") is EchoNode
        assert isinstance(node_types.create_node("test.echo"), EchoNode)
        assert node_types.create_node("test.unknown") is None

    def test_definition_from_description(self):
        definition = NodeTypes().register_node(StartNode)

        assert definition.node_type == "n8n-nodes-base.start"
        assert definition.display_name == "Start"
        assert definition.inputs == []

    def test_definition_without_description(self):
        definition = NodeDefinition.from_node_class(EchoNode)

        assert definition.node_type == "test.echo"
        assert definition.display_name == "test.echo"


class TestCredentialTypes:
    def make(self, *definitions):
        types = CredentialTypes()
        asyncio.run(types.init({d.name: d for d in definitions}))
        return types

    def test_parent_chain(self):
        types = self.make(
            CredentialTypeDefinition(name="oAuth2Api"),
            CredentialTypeDefinition(name="googleOAuth2Api", extends=["oAuth2Api"]),
            CredentialTypeDefinition(name="gmailOAuth2", extends=["googleOAuth2Api"]),
        )

        assert types.get_parent_types("gmailOAuth2") == ["googleOAuth2Api", "oAuth2Api"]
        assert types.get_parent_types("oAuth2Api") == []

    def test_unknown_type_has_no_parents(self):
        assert CredentialTypes().get_parent_types("telegramApi") == []

    def test_cyclic_extends_terminates(self):
        types = self.make(
            CredentialTypeDefinition(name="a", extends=["b"]),
            CredentialTypeDefinition(name="b", extends=["a"]),
        )

        assert types.get_parent_types("a") == ["b"]
