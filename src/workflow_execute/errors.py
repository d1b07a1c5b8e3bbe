"""
Errors raised while executing a workflow from the command line.

Every error maps to a terminal Outcome; the CLI turns outcomes into exit
codes.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class Outcome(str, Enum):
    """Terminal state of a run."""
    SUCCESS = "success"
    USAGE_ERROR = "usage_error"
    NOT_FOUND = "not_found"
    INVALID_FORMAT = "invalid_format"
    MISSING_ENTRY_POINT = "missing_entry_point"
    EXECUTION_ERROR = "execution_error"
    FATAL = "fatal"


class WorkflowExecuteError(Exception):
    """Base exception for workflow execution errors."""

    code = "ERROR"
    outcome = Outcome.FATAL

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class UsageError(WorkflowExecuteError):
    """Raised when the workflow source options conflict or are missing."""

    code = "USAGE"
    outcome = Outcome.USAGE_ERROR


class NotFoundError(WorkflowExecuteError):
    """Raised when the workflow file or the stored workflow does not exist."""

    code = "NOT_FOUND"
    outcome = Outcome.NOT_FOUND

    def __init__(self, message: str, origin: str = "file"):
        super().__init__(message)
        self.origin = origin


class InvalidFormatError(WorkflowExecuteError):
    """Raised when a workflow file does not contain valid workflow data."""

    code = "INVALID_FORMAT"
    outcome = Outcome.INVALID_FORMAT


class MissingEntryPointError(WorkflowExecuteError):
    """Raised when the workflow has no node it can be started from."""

    code = "MISSING_ENTRY_POINT"
    outcome = Outcome.MISSING_ENTRY_POINT


class ExecutionError(WorkflowExecuteError):
    """
    The engine delivered a result that carries an error.

    Keeps the engine's original message and stack.
    """

    code = "EXECUTION"
    outcome = Outcome.EXECUTION_ERROR

    def __init__(self, message: str, stack: Optional[str] = None, node: Optional[str] = None):
        super().__init__(message)
        self.stack = stack
        self.node = node


class FatalError(WorkflowExecuteError):
    """A collaborator failed unexpectedly (storage, type loading, engine)."""

    code = "FATAL"
    outcome = Outcome.FATAL


__all__ = [
    "Outcome",
    "WorkflowExecuteError",
    "UsageError",
    "NotFoundError",
    "InvalidFormatError",
    "MissingEntryPointError",
    "ExecutionError",
    "FatalError",
]
