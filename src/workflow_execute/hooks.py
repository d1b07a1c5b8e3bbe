"""
External hooks - operator supplied callbacks around workflow runs.

A hook module exposes a ``HOOKS`` dict mapping hook names to lists of
callables (sync or async):

    HOOKS = {
        "workflow.execute.before": [notify_start],
        "workflow.execute.after": [store_result],
    }
"""

from __future__ import annotations

import importlib
import inspect
from typing import Any, Callable, Dict, List

from workflow_execute.observability import get_logger

logger = get_logger(__name__)

BEFORE_EXECUTE = "workflow.execute.before"
AFTER_EXECUTE = "workflow.execute.after"


class ExternalHooks:
    """Loads hook modules and runs their callbacks by name."""

    def __init__(self, module_paths: List[str] | None = None):
        self._module_paths = module_paths or []
        self._hooks: Dict[str, List[Callable[..., Any]]] = {}

    async def init(self) -> Dict[str, List[Callable[..., Any]]]:
        """
        Import every configured hook module.

        Raises:
            ImportError: If a module cannot be imported
            ValueError: If a module has no usable HOOKS dict
        """
        for path in self._module_paths:
            module = importlib.import_module(path)
            hooks = getattr(module, "HOOKS", None)
            if not isinstance(hooks, dict):
                raise ValueError(f"Hook module '{path}' does not define a HOOKS dict")
            for name, callbacks in hooks.items():
                self.register(name, *callbacks)
            logger.info(f"Loaded external hooks from '{path}'")
        return self._hooks

    def register(self, name: str, *callbacks: Callable[..., Any]) -> None:
        self._hooks.setdefault(name, []).extend(callbacks)

    async def run(self, name: str, *args: Any) -> None:
        """Run all callbacks registered under ``name``, in order."""
        for callback in self._hooks.get(name, []):
            result = callback(*args)
            if inspect.isawaitable(result):
                await result


__all__ = ["ExternalHooks", "BEFORE_EXECUTE", "AFTER_EXECUTE"]
