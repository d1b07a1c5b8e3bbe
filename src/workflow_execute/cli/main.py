"""
Workflow Execute CLI - Main entry point.

Executes a single workflow, given by file or by stored id, and exits with a
code describing how the run ended.
"""

from __future__ import annotations

import asyncio
import sys
from typing import Optional

import click

from workflow_execute.config import get_settings
from workflow_execute.errors import Outcome
from workflow_execute.observability import get_logger, setup_logging
from workflow_execute.runner import RunReport, WorkflowRun
from workflow_execute.services import build_services


logger = get_logger("workflow_execute")

EXIT_CODES = {
    Outcome.SUCCESS: 0,
    Outcome.EXECUTION_ERROR: 1,
    Outcome.FATAL: 1,
    Outcome.USAGE_ERROR: 2,
    Outcome.NOT_FOUND: 3,
    Outcome.INVALID_FORMAT: 4,
    Outcome.MISSING_ENTRY_POINT: 5,
}

# Exit codes of the original command: several failures exit 0
LEGACY_EXIT_CODES = {
    Outcome.SUCCESS: 0,
    Outcome.EXECUTION_ERROR: 1,
    Outcome.FATAL: 1,
    Outcome.USAGE_ERROR: 0,
    Outcome.NOT_FOUND: 0,
    Outcome.INVALID_FORMAT: 0,
    Outcome.MISSING_ENTRY_POINT: 0,
}


def exit_code(report: RunReport, legacy: bool = False) -> int:
    """Process exit code for a finished run."""
    if not legacy:
        return EXIT_CODES[report.outcome]
    # A missing stored workflow always exited 1
    if report.outcome == Outcome.NOT_FOUND and getattr(report.error, "origin", None) == "id":
        return 1
    return LEGACY_EXIT_CODES[report.outcome]


@click.command(
    name="execute",
    epilog="""\b
Examples:
  workflow-execute --id=5
  workflow-execute --file=workflow.json""",
)
@click.help_option("-h", "--help")
@click.option("--id", "workflow_id", help="id of the workflow to execute")
@click.option("--file", "file_path", help="path to a workflow file to execute")
@click.option(
    "--legacy-exit-codes",
    is_flag=True,
    help="Exit 0 on usage, file and start node problems, as older releases did",
)
def cli(workflow_id: Optional[str], file_path: Optional[str], legacy_exit_codes: bool):
    """
    Executes a given workflow.

    Exactly one of --id and --file has to be set.
    """
    settings = get_settings()
    setup_logging(settings)

    try:
        services = build_services(settings)
    except Exception as e:
        click.echo(f"Could not prepare the environment: {e}", err=True)
        logger.exception("Service setup failed")
        sys.exit(1)

    report = asyncio.run(WorkflowRun(services).run(file_path=file_path, workflow_id=workflow_id))
    sys.exit(exit_code(report, legacy=legacy_exit_codes))


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
