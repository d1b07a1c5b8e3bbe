#!/usr/bin/env python3
"""
Workflow Execute - Main entry point.

This is a thin wrapper around the CLI.

Usage:
    python main.py --help
    python main.py --id=5
    python main.py --file=workflow.json
"""

from workflow_execute.cli.main import main

if __name__ == "__main__":
    main()
