"""Import submission service.

Sends the import records of one statement to YNAB in a single call and
reports whether the statement can be archived.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from statement_ynab.ynab_client import ImportResult, YnabError

if TYPE_CHECKING:
    from statement_ynab.config import AccountConfig
    from statement_ynab.schemas.transaction import ImportRecord
    from statement_ynab.ynab_client import YnabClient

logger = logging.getLogger(__name__)


@dataclass
class SubmissionOutcome:
    """Result of submitting one statement's batch."""

    records: list[ImportRecord]
    result: ImportResult = field(default_factory=ImportResult)
    error: str | None = None

    @property
    def success(self) -> bool:
        """Return True if YNAB created or recognized at least one record."""
        return self.error is None and self.result.success


class ImportSubmitter:
    """Service submitting statement batches for one account.

    Duplicates are the expected outcome of re-dropping a statement: the
    import ids are deterministic, so YNAB answers with
    ``duplicate_import_ids`` and the submission still counts as a success.
    """

    def __init__(
        self,
        ynab_client: YnabClient,
        budget_id: str,
        account: AccountConfig,
    ) -> None:
        """Initialize the submitter.

        Args:
            ynab_client: Client for the YNAB API.
            budget_id: Budget the account belongs to.
            account: Account whose statements are submitted.
        """
        self.ynab = ynab_client
        self.budget_id = budget_id
        self.account = account

    def submit(self, records: list[ImportRecord]) -> SubmissionOutcome:
        """Submit all records of one statement.

        Args:
            records: Import records built from the statement.

        Returns:
            SubmissionOutcome; never raises for API or transport failures.
        """
        records = list(records)

        if not records:
            logger.warning(f"[{self.account.account_id}] Nothing to submit")
            return SubmissionOutcome(records=records, error="no importable transactions")

        logger.info(
            f"[{self.account.account_id}] Submitting {len(records)} transaction(s) "
            f"to budget {self.budget_id}"
        )

        try:
            result = self.ynab.create_transactions(self.budget_id, records)
        except (YnabError, ValueError) as e:
            logger.error(f"[{self.account.account_id}] Submission failed: {e}")
            return SubmissionOutcome(records=records, error=str(e))

        if not result.success:
            logger.error(
                f"[{self.account.account_id}] YNAB reported neither created nor duplicate ids"
            )
            return SubmissionOutcome(
                records=records, result=result, error="YNAB accepted no transactions"
            )

        if result.duplicate_import_ids:
            logger.info(
                f"[{self.account.account_id}] {len(result.duplicate_import_ids)} "
                "transaction(s) were already imported"
            )

        return SubmissionOutcome(records=records, result=result)
