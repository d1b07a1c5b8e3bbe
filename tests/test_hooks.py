"""Tests for external hooks."""
import asyncio
import textwrap

import pytest

from workflow_execute.hooks import AFTER_EXECUTE, BEFORE_EXECUTE, ExternalHooks


@pytest.fixture
def hook_module(tmp_path, monkeypatch):
    """Write an importable module and return its name."""
    monkeypatch.syspath_prepend(str(tmp_path))

    def _write(name, source):
        (tmp_path / f"{name}.py").write_text(textwrap.dedent(source))
        return name

    return _write


class TestExternalHooks:
    def test_no_modules(self):
        assert asyncio.run(ExternalHooks().init()) == {}

    def test_loads_hooks_from_module(self, hook_module):
        name = hook_module(
            "audit_hooks",
            """
            CALLS = []

            def before(request):
                CALLS.append(("before", request))

            async def after(execution_id, result):
                CALLS.append(("after", execution_id, result))

            HOOKS = {
                "workflow.execute.before": [before],
                "workflow.execute.after": [after],
            }
            """,
        )
        hooks = ExternalHooks([name])

        async def scenario():
            await hooks.init()
            await hooks.run(BEFORE_EXECUTE, "request")
            await hooks.run(AFTER_EXECUTE, "id-1", "result")

        asyncio.run(scenario())

        module = __import__(name)
        assert module.CALLS == [("before", "request"), ("after", "id-1", "result")]

    def test_module_without_hooks(self, hook_module):
        name = hook_module("empty_hooks", "VALUE = 1\n")

        with pytest.raises(ValueError, match="HOOKS"):
            asyncio.run(ExternalHooks([name]).init())

    def test_missing_module(self):
        with pytest.raises(ImportError):
            asyncio.run(ExternalHooks(["no_such_hook_module_xyz"]).init())

    def test_callbacks_run_in_order(self):
        hooks = ExternalHooks()
        calls = []
        hooks.register(BEFORE_EXECUTE, lambda: calls.append(1))
        hooks.register(BEFORE_EXECUTE, lambda: calls.append(2))

        asyncio.run(hooks.run(BEFORE_EXECUTE))

        assert calls == [1, 2]

    def test_unknown_hook_is_noop(self):
        asyncio.run(ExternalHooks().run("workflow.unknown", 1))

    def test_failing_hook_propagates(self):
        hooks = ExternalHooks()

        def fail(*args):
            raise RuntimeError("hook failed")

        hooks.register(AFTER_EXECUTE, fail)

        with pytest.raises(RuntimeError, match="hook failed"):
            asyncio.run(hooks.run(AFTER_EXECUTE, "id", None))
