"""Tests for the initialization barrier."""
import asyncio

import pytest

from workflow_execute.barrier import InitBarrier
from workflow_execute.errors import FatalError


class TestInitBarrier:
    """Test InitBarrier readiness points."""

    def test_operations_start_before_anyone_waits(self):
        """Operations run concurrently as soon as they are registered."""
        started = []

        async def operation(name):
            started.append(name)
            await asyncio.sleep(0)
            return name

        async def scenario():
            barrier = InitBarrier()
            barrier.start("storage", operation("storage"))
            barrier.start("types", operation("types"))
            await asyncio.sleep(0)
            # Both began although nothing has been awaited yet
            assert started == ["storage", "types"]
            assert await barrier.wait("types") == "types"
            await barrier.close()

        asyncio.run(scenario())

    def test_wait_blocks_until_operation_resolves(self):
        async def scenario():
            release = asyncio.Event()

            async def slow():
                await release.wait()
                return "ready"

            barrier = InitBarrier()
            barrier.start("storage", slow())
            waiter = asyncio.create_task(barrier.wait("storage"))
            await asyncio.sleep(0.01)
            assert not waiter.done()

            release.set()
            assert await waiter == "ready"
            await barrier.close()

        asyncio.run(scenario())

    def test_repeated_wait_returns_same_value(self):
        async def scenario():
            barrier = InitBarrier()
            barrier.start("types", asyncio.sleep(0, result={"a": 1}))
            first = await barrier.wait("types")
            second = await barrier.wait("types")
            assert first is second
            await barrier.close()

        asyncio.run(scenario())

    def test_failed_operation_raises_fatal_error_at_waiter(self):
        async def failing():
            raise ConnectionError("database unavailable")

        async def scenario():
            barrier = InitBarrier()
            barrier.start("storage", failing())
            with pytest.raises(FatalError) as exc_info:
                await barrier.wait("storage")
            assert "storage" in exc_info.value.message
            assert "database unavailable" in exc_info.value.message
            assert isinstance(exc_info.value.__cause__, ConnectionError)
            await barrier.close()

        asyncio.run(scenario())

    def test_failure_does_not_affect_other_points(self):
        async def failing():
            raise RuntimeError("hooks broken")

        async def scenario():
            barrier = InitBarrier()
            barrier.start("external_hooks", failing())
            barrier.start("types", asyncio.sleep(0, result="types"))
            assert await barrier.wait("types") == "types"
            with pytest.raises(FatalError):
                await barrier.wait("external_hooks")
            await barrier.close()

        asyncio.run(scenario())

    def test_unknown_name_raises_key_error(self):
        async def scenario():
            barrier = InitBarrier()
            with pytest.raises(KeyError):
                await barrier.wait("missing")

        asyncio.run(scenario())

    def test_duplicate_name_rejected(self):
        async def scenario():
            barrier = InitBarrier()
            barrier.start("storage", asyncio.sleep(0))
            with pytest.raises(ValueError):
                barrier.start("storage", asyncio.sleep(0))
            await barrier.close()

        asyncio.run(scenario())

    def test_close_cancels_pending_operations(self):
        cancelled = []

        async def forever():
            try:
                await asyncio.sleep(3600)
            except asyncio.CancelledError:
                cancelled.append("forever")
                raise

        async def scenario():
            barrier = InitBarrier()
            barrier.start("forever", forever())
            await asyncio.sleep(0)
            await barrier.close()

        asyncio.run(scenario())
        assert cancelled == ["forever"]

    def test_close_before_start_skips_operations(self):
        """Operations never get to run when the barrier closes in the same step."""
        ran = []

        async def operation():
            ran.append("storage")

        async def scenario():
            barrier = InitBarrier()
            barrier.start("storage", operation())
            await barrier.close()

        asyncio.run(scenario())
        assert ran == []
