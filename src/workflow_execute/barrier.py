"""
InitBarrier - Eagerly started initialization with named readiness points.

Usage:
    barrier = InitBarrier()
    barrier.start("storage", store.init())
    barrier.start("types", type_loader.init())
    ...
    await barrier.wait("storage")   # only where storage is first needed
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Coroutine, Dict

from workflow_execute.errors import FatalError


logger = logging.getLogger(__name__)


class InitBarrier:
    """
    Runs independent initialization operations concurrently.

    Each operation is started as a task as soon as it is registered. wait()
    suspends until the named operation has finished and returns its value;
    waiting again returns the same value. A failed operation raises
    FatalError in whoever waits for it first (and every later waiter).
    """

    def __init__(self):
        self._tasks: Dict[str, asyncio.Task] = {}

    def start(self, name: str, operation: Coroutine[Any, Any, Any]) -> None:
        if name in self._tasks:
            operation.close()
            raise ValueError(f"Readiness point '{name}' is already registered")
        self._tasks[name] = asyncio.create_task(operation, name=f"init:{name}")
        logger.debug(f"Started initialization: {name}")

    async def wait(self, name: str) -> Any:
        """
        Wait for a readiness point.

        Raises:
            KeyError: If nothing was started under ``name``
            FatalError: If the operation failed
        """
        task = self._tasks[name]
        try:
            return await task
        except asyncio.CancelledError:
            raise
        except Exception as e:
            raise FatalError(f"Initialization of {name} failed: {e}") from e

    async def close(self) -> None:
        """Cancel whatever has not finished and reap every task."""
        pending = [task for task in self._tasks.values() if not task.done()]
        for task in pending:
            task.cancel()
        # Collect results so failed, never-awaited tasks are not reported as lost
        await asyncio.gather(*self._tasks.values(), return_exceptions=True)
