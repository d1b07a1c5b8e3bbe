"""Classification of a delivered execution result."""

from __future__ import annotations

import click

from workflow_execute.errors import ExecutionError, Outcome
from workflow_execute.observability import get_logger
from workflow_runtime import ExecutionResult

logger = get_logger(__name__)

SEPARATOR = "===================================="


class OutcomeClassifier:
    """
    Maps a result to SUCCESS, or raises ExecutionError.

    Depends only on whether the result carries an error.
    """

    def classify(self, result: ExecutionResult) -> Outcome:
        """
        Raises:
            ExecutionError: If the result carries an error
        """
        error = result.error
        if error is not None:
            click.echo("Execution was NOT successful. See log message for details.")
            logger.info("Execution error:")
            logger.info(SEPARATOR)
            logger.info(result.to_json())
            raise ExecutionError(error.message, stack=error.stack, node=error.node)

        click.echo("Execution was successful:")
        click.echo(SEPARATOR)
        click.echo(result.to_json())
        return Outcome.SUCCESS
