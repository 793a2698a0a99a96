"""
CSV ledger output.

Two files are written beside each statement:
- modified_<name>.csv: every extracted row, ready for a manual YNAB file import
- importids_<name>.csv: every submitted row with the YNAB transaction it became
"""

import csv
import logging
from decimal import Decimal
from pathlib import Path

from ..schemas.transaction import ImportRecord, NormalizedTransaction
from ..ynab_client import ImportResult

logger = logging.getLogger(__name__)

LEDGER_PREFIX = "modified_"
IMPORT_IDS_PREFIX = "importids_"

LEDGER_HEADER = ["Date", "Payee", "Memo", "Outflow", "Inflow", "Balance"]
IMPORT_IDS_HEADER = ["Date", "Payee", "Amount", "ImportId", "RemoteTransactionId"]

# Markers for import ids without a remote transaction id
DUPLICATE_MARKER = "DUPLICATE"
NOT_CREATED_MARKER = "NOT_CREATED"


def ledger_path_for(statement: Path) -> Path:
    return statement.with_name(f"{LEDGER_PREFIX}{statement.stem}.csv")


def import_ids_path_for(statement: Path) -> Path:
    return statement.with_name(f"{IMPORT_IDS_PREFIX}{statement.stem}.csv")


def _money(value: Decimal) -> str:
    return f"{value:.2f}"


def write_ledger(
    path: Path,
    transactions: list[NormalizedTransaction],
    delimiter: str = ";",
) -> Path:
    """Write the normalized ledger, one row per transaction in extraction order."""
    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f, delimiter=delimiter)
        writer.writerow(LEDGER_HEADER)
        for t in transactions:
            writer.writerow(
                [t.date, t.payee, t.memo, _money(t.outflow), _money(t.inflow), _money(t.balance)]
            )

    logger.debug(f"Wrote {len(transactions)} ledger row(s) to {path}")
    return path


def write_import_ids(
    path: Path,
    records: list[ImportRecord],
    result: ImportResult,
    delimiter: str = ";",
) -> Path:
    """
    Write the correlation between sent import ids and YNAB transaction ids.

    Every sent record gets a row. Records YNAB skipped as already imported are
    marked DUPLICATE; records with neither a remote id nor a duplicate entry
    are marked NOT_CREATED.
    """
    remote_ids = result.remote_id_by_import_id()
    duplicates = set(result.duplicate_import_ids)

    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f, delimiter=delimiter)
        writer.writerow(IMPORT_IDS_HEADER)
        for record in records:
            if record.import_id in remote_ids:
                remote_id = remote_ids[record.import_id]
            elif record.import_id in duplicates:
                remote_id = DUPLICATE_MARKER
            else:
                remote_id = NOT_CREATED_MARKER
            writer.writerow(
                [
                    record.date,
                    record.payee_name,
                    _money(record.decimal_amount),
                    record.import_id,
                    remote_id,
                ]
            )

    logger.debug(f"Wrote {len(records)} import id row(s) to {path}")
    return path
