"""
Workflow Execute CLI - Command-line interface for headless workflow runs.
"""

from .main import cli, exit_code, main

__all__ = ["cli", "exit_code", "main"]
