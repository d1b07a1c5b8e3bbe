"""Observability package."""
from workflow_execute.observability.logging import get_logger, setup_logging

__all__ = ["get_logger", "setup_logging"]
