"""
Folder watching and statement lifecycle.

Provides:
- FolderWatcher: watchdog observer + worker pool per monitored folder
- StatementProcessor: admission, pipeline and archiving for one file
- LeaseTable: at most one pipeline per path
"""

from .lease import LeaseTable
from .lifecycle import (
    ArchiveError,
    FileState,
    ProcessingOutcome,
    StatementProcessor,
    archive_bundle,
)
from .observer import FolderWatcher, StatementEventHandler

__all__ = [
    "ArchiveError",
    "FileState",
    "FolderWatcher",
    "LeaseTable",
    "ProcessingOutcome",
    "StatementEventHandler",
    "StatementProcessor",
    "archive_bundle",
]
