"""
CLI runner module.

Provides commands:
- watch: Watch monitored folders and import new statements
- process: Run the pipeline once for a single statement
- check: Validate settings and test the YNAB connection
- init-config: Write a settings template
"""

from .main import create_cli, main

__all__ = [
    "create_cli",
    "main",
]
