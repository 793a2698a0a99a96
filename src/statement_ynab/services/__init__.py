"""Services built on top of the YNAB client."""

from statement_ynab.services.import_submitter import ImportSubmitter, SubmissionOutcome

__all__ = ["ImportSubmitter", "SubmissionOutcome"]
