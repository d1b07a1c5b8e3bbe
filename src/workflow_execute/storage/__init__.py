"""Storage package."""
from workflow_execute.storage.workflow_store import CredentialDecryptionError, WorkflowStore

__all__ = ["CredentialDecryptionError", "WorkflowStore"]
