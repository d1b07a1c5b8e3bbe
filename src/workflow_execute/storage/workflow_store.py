"""SQLAlchemy-backed store for workflows and credentials."""
import asyncio
import json
import uuid
from typing import Any, Callable

from cryptography.fernet import Fernet, InvalidToken
from sqlalchemy import select

from workflow_execute.observability import get_logger
from workflow_execute.storage.database import Base, Credential, Workflow, get_async_engine, get_session_factory
from workflow_runtime import WorkflowDefinition, parse_workflow

logger = get_logger(__name__)


class CredentialDecryptionError(ValueError):
    """Stored credential data could not be decrypted with the configured key."""


class WorkflowStore:
    """Async store for workflow definitions and encrypted credentials."""

    def __init__(self, database_url: str, encryption_key: str | Callable[[], str] | None = None):
        """
        Initialize workflow store.

        Args:
            database_url: SQLAlchemy async URL, e.g. ``sqlite+aiosqlite:///db.sqlite``
            encryption_key: Fernet key used for credential data, or a callable
                returning it that init() calls before connecting
        """
        self.database_url = database_url
        self._engine = get_async_engine(database_url)
        self._sessions = get_session_factory(self._engine)
        self._key_provider = encryption_key if callable(encryption_key) else None
        self._fernet = Fernet(encryption_key) if encryption_key and not callable(encryption_key) else None

    async def init(self) -> None:
        """Resolve the encryption key, connect and make sure the tables exist."""
        if self._key_provider is not None:
            self._fernet = Fernet(await asyncio.to_thread(self._key_provider))

        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.debug("Database ready", extra={"database_url": self.database_url})

    async def close(self) -> None:
        await self._engine.dispose()

    async def find_workflow_by_id(self, workflow_id: str) -> WorkflowDefinition | None:
        async with self._sessions() as session:
            row = await session.get(Workflow, workflow_id)
            if row is None:
                return None
            return parse_workflow(
                {
                    "id": row.id,
                    "name": row.name,
                    "active": row.active,
                    "nodes": row.nodes,
                    "connections": row.connections,
                    "settings": row.settings or {},
                }
            )

    async def save_workflow(self, workflow: WorkflowDefinition) -> str:
        """Insert or replace a workflow. Returns its id."""
        workflow_id = workflow.id or str(uuid.uuid4())
        data = workflow.model_dump(mode="json", by_alias=True)
        async with self._sessions() as session:
            await session.merge(
                Workflow(
                    id=workflow_id,
                    name=workflow.name,
                    active=workflow.active,
                    nodes=data["nodes"],
                    connections=data["connections"],
                    settings=data["settings"],
                )
            )
            await session.commit()
        return workflow_id

    async def find_credentials(self, credential_type: str, name: str) -> dict[str, Any] | None:
        """
        Look up and decrypt a credential by type and name.

        Raises:
            CredentialDecryptionError: If no key is configured or the key does not match
        """
        async with self._sessions() as session:
            result = await session.execute(
                select(Credential).where(Credential.type == credential_type, Credential.name == name)
            )
            row = result.scalars().first()
            if row is None:
                return None
            return self._decrypt(row.data)

    async def save_credentials(self, name: str, credential_type: str, data: dict[str, Any]) -> str:
        credential_id = str(uuid.uuid4())
        async with self._sessions() as session:
            session.add(
                Credential(
                    id=credential_id,
                    name=name,
                    type=credential_type,
                    data=self._encrypt(data),
                )
            )
            await session.commit()
        return credential_id

    def _encrypt(self, data: dict[str, Any]) -> str:
        if self._fernet is None:
            raise CredentialDecryptionError("No encryption key configured")
        return self._fernet.encrypt(json.dumps(data, sort_keys=True).encode("utf-8")).decode("utf-8")

    def _decrypt(self, token: str) -> dict[str, Any]:
        if self._fernet is None:
            raise CredentialDecryptionError("No encryption key configured")
        try:
            return json.loads(self._fernet.decrypt(token.encode("utf-8")))
        except InvalidToken as e:
            raise CredentialDecryptionError(
                "Credentials could not be decrypted. The encryption key may have changed."
            ) from e
