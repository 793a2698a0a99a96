"""
In-memory processing leases.

A lease marks a statement path as in flight. The operating system often
reports one download as several events (create, then rename, then create
again); only the first event to take the lease runs the pipeline.
"""

import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator


class LeaseTable:
    """Thread-safe set of leased paths, keyed by resolved absolute path."""

    def __init__(self):
        self._lock = threading.Lock()
        self._held: set[Path] = set()

    @staticmethod
    def key_for(path: Path) -> Path:
        return path.resolve()

    def try_acquire(self, path: Path) -> bool:
        """Take the lease if nobody holds it. Returns False if already leased."""
        return self._acquire_key(self.key_for(path))

    def _acquire_key(self, key: Path) -> bool:
        with self._lock:
            if key in self._held:
                return False
            self._held.add(key)
            return True

    def release(self, path: Path) -> None:
        self._release_key(self.key_for(path))

    def _release_key(self, key: Path) -> None:
        with self._lock:
            self._held.discard(key)

    def is_held(self, path: Path) -> bool:
        key = self.key_for(path)
        with self._lock:
            return key in self._held

    def __len__(self) -> int:
        with self._lock:
            return len(self._held)

    @contextmanager
    def hold(self, path: Path) -> Iterator[bool]:
        """
        Hold the lease for the duration of the block.

        Yields True when the lease was taken. The key is resolved once, on
        entry, so the lease is released even if the path resolves elsewhere
        by the time the block exits (e.g. a symlink moved into the archive).
        A False lease is never released here since it belongs to another holder.
        """
        key = self.key_for(path)
        acquired = self._acquire_key(key)
        try:
            yield acquired
        finally:
            if acquired:
                self._release_key(key)
