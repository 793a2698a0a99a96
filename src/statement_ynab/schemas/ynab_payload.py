"""
YNAB transaction payload builder (SSOT).

This is THE single builder that maps NormalizedTransaction → YNAB SaveTransaction JSON.

Rules:
- Amounts are sent in milliunits (decimal amount × 1000, integer)
- Always set import_id (see schemas.import_id)
- Always mark statement rows as cleared
- Rows whose date cannot be read as a calendar date are not sent
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from .import_id import generate_import_id
from .transaction import ImportRecord, NormalizedTransaction

logger = logging.getLogger(__name__)

# YNAB limit for SaveTransaction.payee_name
MAX_PAYEE_NAME_LENGTH = 200

# Date layouts seen in statement exports, tried in order
DATE_FORMATS = ("%Y-%m-%d", "%d.%m.%Y", "%d-%m-%Y", "%d/%m/%Y", "%Y.%m.%d")


def parse_statement_date(value: str) -> date | None:
    """Parse a statement date string, returning None if no known layout matches."""
    value = value.strip()
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            continue
    return None


def to_milliunits(amount: Decimal) -> int:
    """Convert a decimal currency amount to YNAB milliunits."""
    return int((amount * 1000).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def build_import_record(
    transaction: NormalizedTransaction,
    account_id: str,
) -> ImportRecord | None:
    """
    Build the YNAB import record for one ledger line.

    Args:
        transaction: Normalized statement transaction
        account_id: YNAB account the statement belongs to

    Returns:
        ImportRecord, or None if the transaction date is not a calendar date
    """
    parsed = parse_statement_date(transaction.date)
    if parsed is None:
        logger.warning(
            f"Unparseable date '{transaction.date}' for payee '{transaction.payee}', "
            "keeping it in the ledger only"
        )
        return None

    return ImportRecord(
        account_id=account_id,
        date=parsed.isoformat(),
        amount=to_milliunits(transaction.amount),
        payee_name=transaction.payee[:MAX_PAYEE_NAME_LENGTH],
        memo=transaction.memo,
        import_id=generate_import_id(
            parsed, transaction.amount, transaction.balance, transaction.payee
        ),
    )


@dataclass
class YnabTransactionBatch:
    """Body of POST /budgets/{budget_id}/transactions."""

    transactions: list[ImportRecord] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to YNAB API JSON format."""
        return {"transactions": [record.to_dict() for record in self.transactions]}

    @property
    def import_ids(self) -> list[str]:
        return [record.import_id for record in self.transactions]


def validate_batch(batch: YnabTransactionBatch) -> list[str]:
    """
    Validate a batch before sending it.

    Returns:
        List of validation errors (empty if valid)
    """
    errors: list[str] = []

    if not batch.transactions:
        errors.append("batch contains no transactions")

    for index, record in enumerate(batch.transactions):
        if not record.account_id:
            errors.append(f"transactions[{index}].account_id is required")
        if not record.import_id:
            errors.append(f"transactions[{index}].import_id is required")
        if not record.date:
            errors.append(f"transactions[{index}].date is required")

    return errors
