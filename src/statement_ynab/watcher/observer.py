"""
Filesystem watching.

Each monitored folder gets its own FolderWatcher: a watchdog observer feeding
a small worker pool. Events are turned into ``process_file`` tasks; the
processor's admission filter and lease table decide what actually runs.
"""

import logging
import os
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Callable, Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .lifecycle import ArchiveError, ProcessingOutcome, StatementProcessor

logger = logging.getLogger(__name__)


class StatementEventHandler(FileSystemEventHandler):
    """Forward created and moved-in files to a callback."""

    def __init__(self, on_file: Callable[[Path], object]):
        super().__init__()
        self.on_file = on_file

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self.on_file(Path(os.fsdecode(event.src_path)))

    def on_moved(self, event: FileSystemEvent) -> None:
        # Browsers download to a temporary name and rename when complete
        if not event.is_directory:
            self.on_file(Path(os.fsdecode(event.dest_path)))


class FolderWatcher:
    """
    Watches one account folder and runs the pipeline for new statements.

    Watchers share nothing: each has its own observer, worker pool and
    processor (and therefore its own lease table).
    """

    def __init__(self, processor: StatementProcessor, max_workers: int = 2):
        self.processor = processor
        self.folder = processor.folder
        self.max_workers = max_workers
        self._observer: Optional[Observer] = None
        self._executor: Optional[ThreadPoolExecutor] = None

    @property
    def running(self) -> bool:
        return self._observer is not None

    def start(self) -> None:
        """
        Start watching.

        Raises:
            FileNotFoundError: If the monitored folder does not exist
        """
        if self.running:
            return
        if not self.folder.is_dir():
            raise FileNotFoundError(f"Monitored folder does not exist: {self.folder}")

        self._executor = ThreadPoolExecutor(
            max_workers=self.max_workers,
            thread_name_prefix=f"statement-{self.processor.account.account_id[:8]}",
        )
        observer = Observer()
        observer.schedule(StatementEventHandler(self.submit), str(self.folder), recursive=False)
        observer.start()
        self._observer = observer

        logger.info(
            f"Monitoring folder: {self.folder} (account {self.processor.account.account_id})"
        )

    def submit(self, path: Path) -> Optional[Future]:
        """Queue a path for processing. Returns None when not running."""
        if self._executor is None:
            logger.debug(f"Watcher stopped, dropping event for {path}")
            return None
        return self._executor.submit(self._process, path)

    def scan_existing(self) -> list[Future]:
        """Queue statements already sitting in the folder."""
        futures = []
        for path in sorted(self.folder.iterdir()):
            if self.processor.rejection_reason(path) is None:
                future = self.submit(path)
                if future is not None:
                    futures.append(future)
        logger.info(f"Queued {len(futures)} existing statement(s) in {self.folder}")
        return futures

    def _process(self, path: Path) -> Optional[ProcessingOutcome]:
        """Worker entry point; failures are logged so the watcher keeps running."""
        try:
            return self.processor.process_file(path)
        except ArchiveError as e:
            logger.error(f"Archiving {path.name} failed, statement left in place: {e}")
        except Exception:
            logger.exception(f"Unexpected error processing {path}")
        return None

    def stop(self) -> None:
        """Stop accepting events, drop queued ones, then wait for in-flight statements."""
        observer, self._observer = self._observer, None
        if observer is not None:
            observer.stop()
            observer.join()

        executor, self._executor = self._executor, None
        if executor is not None:
            # Queued statements stay in the folder for the next --scan-existing
            executor.shutdown(wait=True, cancel_futures=True)

        logger.info(f"Stopped monitoring {self.folder}")
