"""
Workflow Execute - Run a single n8n-compatible workflow from the command line.

This package provides:
- WorkflowRun: the orchestration of one headless run
- build_services / Services: the collaborators a run is wired with
- cli: the ``workflow-execute`` command
"""

from workflow_execute.errors import Outcome
from workflow_execute.runner import RunReport, WorkflowRun
from workflow_execute.services import Services, build_services

__all__ = ["Outcome", "RunReport", "Services", "WorkflowRun", "build_services"]

__version__ = "0.1.0"
