"""Integration tests against a real SQLite database."""
import asyncio
from functools import partial
from unittest.mock import patch

import pytest
from click.testing import CliRunner
from cryptography.fernet import Fernet

from fakes import START_WORKFLOW
from workflow_execute.cli.main import cli
from workflow_execute.config import get_encryption_key, get_settings
from workflow_execute.services import build_services
from workflow_execute.storage import CredentialDecryptionError, WorkflowStore
from workflow_runtime import parse_workflow


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite+aiosqlite:///{tmp_path / 'test.sqlite'}"


def with_store(database_url, key, scenario):
    async def _run():
        store = WorkflowStore(database_url, key)
        await store.init()
        try:
            return await scenario(store)
        finally:
            await store.close()

    return asyncio.run(_run())


class TestWorkflowStore:
    def test_save_and_find_workflow(self, database_url):
        workflow = parse_workflow({"id": 12, "name": "Nightly", **START_WORKFLOW})

        async def scenario(store):
            await store.save_workflow(workflow)
            return await store.find_workflow_by_id("12")

        found = with_store(database_url, None, scenario)

        assert found.id == "12"
        assert found.name == "Nightly"
        assert found.nodes[0].type == "n8n-nodes-base.start"

    def test_unknown_workflow(self, database_url):
        async def scenario(store):
            return await store.find_workflow_by_id("missing")

        assert with_store(database_url, None, scenario) is None

    def test_credentials_are_encrypted(self, database_url):
        key = Fernet.generate_key().decode()

        async def scenario(store):
            await store.save_credentials("Bot", "telegramApi", {"accessToken": "secret-token"})
            return await store.find_credentials("telegramApi", "Bot"), await store.find_credentials("telegramApi", "Other")

        found, missing = with_store(database_url, key, scenario)

        assert found == {"accessToken": "secret-token"}
        assert missing is None

    def test_wrong_key(self, database_url):
        async def save(store):
            await store.save_credentials("Bot", "telegramApi", {"accessToken": "t"})

        async def find(store):
            return await store.find_credentials("telegramApi", "Bot")

        with_store(database_url, Fernet.generate_key().decode(), save)

        with pytest.raises(CredentialDecryptionError):
            with_store(database_url, Fernet.generate_key().decode(), find)


class TestExecuteAgainstDatabase:
    """The command wired with the production services and the default SQLite database."""

    def seed(self, workflow_data, credentials=()):
        settings = get_settings()
        key = get_encryption_key(settings)

        async def scenario(store):
            await store.save_workflow(parse_workflow(workflow_data))
            for name, credential_type, data in credentials:
                await store.save_credentials(name, credential_type, data)

        with_store(settings.get_database_url(), key, scenario)

    @patch("workflow_execute.cli.main.setup_logging")
    def test_stored_workflow(self, mock_logging):
        self.seed({"id": "5", "name": "Stored", **START_WORKFLOW})

        result = CliRunner().invoke(cli, ["--id", "5"])

        assert result.exit_code == 0
        assert "Execution was successful:" in result.output

    @patch("workflow_execute.cli.main.setup_logging")
    def test_unknown_id(self, mock_logging):
        result = CliRunner().invoke(cli, ["--id", "404"])

        assert result.exit_code == 3
        assert 'The workflow with the id "404" does not exist.' in result.output

    @patch("workflow_execute.cli.main.setup_logging")
    def test_file_run(self, mock_logging, write_workflow):
        result = CliRunner().invoke(cli, ["--file", write_workflow(START_WORKFLOW)])

        assert result.exit_code == 0

    @patch("workflow_execute.cli.main.setup_logging")
    def test_missing_stored_credentials(self, mock_logging, write_workflow):
        path = write_workflow(
            {
                "nodes": [
                    {"name": "Start", "type": "n8n-nodes-base.start"},
                    {"name": "Send", "type": "n8n-nodes-base.telegram", "credentials": {"telegramApi": "Bot"}},
                ],
                "connections": {},
            }
        )

        result = CliRunner().invoke(cli, ["--file", path])

        assert result.exit_code == 1


class TestUserFolder:
    """The user folder is only prepared once the store initializes."""

    def test_building_services_touches_no_disk(self, tmp_path):
        build_services(get_settings())

        assert not (tmp_path / "user").exists()

    @patch("workflow_execute.cli.main.setup_logging")
    def test_usage_error_leaves_no_user_folder(self, mock_logging, tmp_path):
        result = CliRunner().invoke(cli, [])

        assert result.exit_code == 2
        assert not (tmp_path / "user").exists()

    def test_store_init_resolves_key(self, tmp_path):
        settings = get_settings()
        store = WorkflowStore(settings.get_database_url(), partial(get_encryption_key, settings))

        async def scenario():
            await store.init()
            try:
                await store.save_credentials("Bot", "telegramApi", {"accessToken": "t"})
                return await store.find_credentials("telegramApi", "Bot")
            finally:
                await store.close()

        assert asyncio.run(scenario()) == {"accessToken": "t"}
        assert (tmp_path / "user" / "config").exists()
