"""
Statement file lifecycle.

One statement file moves through:

    DETECTED → ADMITTED → EXTRACTING → SUBMITTING → ARCHIVING → DONE

FAILED is reachable from every non-terminal state. SKIPPED is used for events
that are not admitted (wrong folder, not a statement, generated output, gone)
or whose path is already leased by another worker.

Only a successful submission leads to archiving. Everything else leaves the
statement in the monitored folder, where a re-drop or the ``process``
command retries it.
"""

import logging
import shutil
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

from ..config import AccountConfig, Config
from ..extractors import ExtractionError, HtmlStatementExtractor
from ..ledger import (
    IMPORT_IDS_PREFIX,
    LEDGER_PREFIX,
    import_ids_path_for,
    ledger_path_for,
    write_import_ids,
    write_ledger,
)
from ..services import ImportSubmitter
from ..ynab_client import YnabClient
from .lease import LeaseTable

logger = logging.getLogger(__name__)

STATEMENT_EXTENSION = ".html"
ARCHIVE_TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"

# Generated outputs and editor/browser lock files
IGNORED_PREFIXES = (LEDGER_PREFIX, IMPORT_IDS_PREFIX, "~$", ".~lock.")
LOCK_SUFFIXES = (".lock", ".tmp", ".part", ".crdownload")


class FileState(str, Enum):
    """Lifecycle state of one statement file."""

    DETECTED = "DETECTED"
    ADMITTED = "ADMITTED"
    EXTRACTING = "EXTRACTING"
    SUBMITTING = "SUBMITTING"
    ARCHIVING = "ARCHIVING"
    DONE = "DONE"
    FAILED = "FAILED"
    SKIPPED = "SKIPPED"

    @property
    def is_terminal(self) -> bool:
        return self in (FileState.DONE, FileState.FAILED, FileState.SKIPPED)


class ArchiveError(Exception):
    """The archive bundle could not be moved consistently."""

    pass


@dataclass
class ProcessingOutcome:
    """What happened to one statement file."""

    path: Path
    state: FileState = FileState.DETECTED
    transactions: int = 0
    submitted: int = 0
    skipped_rows: int = 0
    archive_dir: Optional[Path] = None
    error: Optional[str] = None

    def advance(self, state: FileState) -> None:
        logger.debug(f"[{self.path.name}] {self.state.value} → {state.value}")
        self.state = state

    def fail(self, error: str) -> None:
        self.error = error
        self.advance(FileState.FAILED)


def _fresh_archive_dir(archive_root: Path, now: datetime) -> Path:
    """Create a new, empty timestamp-named folder under ``archive_root``."""
    base = now.strftime(ARCHIVE_TIMESTAMP_FORMAT)
    archive_root.mkdir(parents=True, exist_ok=True)

    suffix = 0
    while True:
        name = base if suffix == 0 else f"{base}_{suffix}"
        candidate = archive_root / name
        try:
            candidate.mkdir()
            return candidate
        except FileExistsError:
            suffix += 1


def _restore(moved: list[tuple[Path, Path]]) -> list[str]:
    """Move files back to where they came from. Returns those left in the archive."""
    stranded = []
    for source, destination in reversed(moved):
        try:
            shutil.move(str(destination), str(source))
        except OSError as e:
            logger.error(f"Cannot restore {destination} to {source}: {e}")
            stranded.append(str(destination))
    return stranded


def archive_bundle(files: list[Path], archive_root: Path, now: datetime) -> Path:
    """
    Move a statement and its generated files into a fresh archive folder.

    All files are checked before anything moves. If a move fails midway the
    files already moved are put back, so the bundle is never split.

    Args:
        files: Statement, ledger CSV and import-ids CSV
        archive_root: ``<monitored folder>/Archives``
        now: Timestamp naming the archive folder

    Returns:
        The archive folder

    Raises:
        ArchiveError: If a file is missing, the archive folder cannot be
            created, a move fails, or a source path still exists after the move
    """
    missing = [str(p) for p in files if not p.is_file()]
    if missing:
        raise ArchiveError(f"Not archiving, missing file(s): {', '.join(missing)}")

    try:
        target = _fresh_archive_dir(archive_root, now)
    except OSError as e:
        raise ArchiveError(f"Cannot create archive folder under {archive_root}: {e}") from e

    moved: list[tuple[Path, Path]] = []

    try:
        for source in files:
            destination = target / source.name
            shutil.move(str(source), str(destination))
            moved.append((source, destination))
    except OSError as e:
        logger.error(f"Archive move failed, restoring {len(moved)} file(s): {e}")
        stranded = _restore(moved)
        if stranded:
            raise ArchiveError(
                f"Failed to move bundle into {target}: {e}; "
                f"could not restore: {', '.join(stranded)}"
            ) from e
        try:
            target.rmdir()
        except OSError:
            logger.warning(f"Archive folder {target} left behind after rollback")
        raise ArchiveError(f"Failed to move bundle into {target}: {e}") from e

    still_present = [str(p) for p in files if p.exists()]
    if still_present:
        raise ArchiveError(f"Source file(s) still present after archiving: {', '.join(still_present)}")

    logger.info(f"Archived {len(files)} file(s) to {target}")
    return target


class StatementProcessor:
    """
    Runs the pipeline for statements dropped into one account's folder.

    Steps (strictly sequential per file):
    1. Admission filter and lease
    2. Extract rows, write the CSV ledger
    3. Submit the import records to YNAB
    4. Write the import-ids ledger
    5. Archive statement + both CSVs
    """

    def __init__(
        self,
        config: Config,
        account: AccountConfig,
        ynab_client: YnabClient,
        extractor: Optional[HtmlStatementExtractor] = None,
        leases: Optional[LeaseTable] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.config = config
        self.account = account
        self.folder = account.monitored_folder.resolve()
        self.extractor = extractor or HtmlStatementExtractor()
        self.leases = leases or LeaseTable()
        self.submitter = ImportSubmitter(ynab_client, config.budget_id, account)
        self.clock = clock

    def rejection_reason(self, path: Path) -> Optional[str]:
        """Return why ``path`` is not admitted, or None if it is."""
        if path.parent.resolve() != self.folder:
            return "not directly inside the monitored folder"

        name = path.name.lower()
        if not name.endswith(STATEMENT_EXTENSION):
            return "not a statement file"

        stem = name[: -len(STATEMENT_EXTENSION)]
        if name.startswith(IGNORED_PREFIXES) or stem.endswith(LOCK_SUFFIXES):
            return "generated or lock file"

        if not path.is_file():
            return "file no longer exists"

        return None

    def process_file(self, path: Path) -> ProcessingOutcome:
        """
        Run the whole pipeline for one statement.

        Returns:
            ProcessingOutcome in a terminal state

        Raises:
            ArchiveError: If the archive step fails; the statement stays in place
        """
        path = Path(path)
        outcome = ProcessingOutcome(path=path)

        reason = self.rejection_reason(path)
        if reason:
            logger.debug(f"Ignoring {path}: {reason}")
            outcome.advance(FileState.SKIPPED)
            return outcome

        with self.leases.hold(path) as acquired:
            if not acquired:
                logger.debug(f"Ignoring {path}: already being processed")
                outcome.advance(FileState.SKIPPED)
                return outcome

            outcome.advance(FileState.ADMITTED)
            logger.info(f"New statement detected: {path}")

            try:
                self._run_pipeline(path, outcome)
            except ArchiveError as e:
                outcome.fail(str(e))
                logger.error(f"[{path.name}] {e}")
                raise

        return outcome

    def _run_pipeline(self, path: Path, outcome: ProcessingOutcome) -> None:
        delimiter = self.config.csv_delimiter

        # Extract
        outcome.advance(FileState.EXTRACTING)
        try:
            extraction = self.extractor.extract_file(path, self.account.account_id)
        except OSError as e:
            # Typically the browser is still writing the file
            logger.warning(f"[{path.name}] Cannot read statement yet, leaving it in place: {e}")
            outcome.fail(f"cannot read file: {e}")
            return
        except ExtractionError as e:
            logger.error(f"[{path.name}] {e}")
            outcome.fail(str(e))
            return

        outcome.transactions = len(extraction.transactions)
        outcome.skipped_rows = len(extraction.errors)

        ledger_path = ledger_path_for(path)
        import_ids_path = import_ids_path_for(path)
        try:
            write_ledger(ledger_path, extraction.transactions, delimiter)
        except OSError as e:
            logger.error(f"[{path.name}] Cannot write ledger {ledger_path}: {e}")
            outcome.fail(f"cannot write ledger: {e}")
            return
        logger.info(f"[{path.name}] Ledger saved as {ledger_path.name}")

        # Submit
        outcome.advance(FileState.SUBMITTING)
        submission = self.submitter.submit(extraction.import_records)
        if not submission.success:
            outcome.fail(f"submission failed: {submission.error}")
            return
        outcome.submitted = len(submission.records)

        try:
            write_import_ids(import_ids_path, submission.records, submission.result, delimiter)
        except OSError as e:
            logger.error(f"[{path.name}] Cannot write import ids {import_ids_path}: {e}")
            outcome.fail(f"cannot write import ids: {e}")
            return

        # Archive
        outcome.advance(FileState.ARCHIVING)
        outcome.archive_dir = archive_bundle(
            [path, ledger_path, import_ids_path],
            self.account.archive_root,
            self.clock(),
        )
        outcome.advance(FileState.DONE)
        logger.info(
            f"[{path.name}] Done: {outcome.transactions} row(s), "
            f"{outcome.submitted} submitted, {outcome.skipped_rows} skipped"
        )
