"""
CSV ledger writers.

Provides:
- write_ledger: Date, Payee, Memo, Outflow, Inflow, Balance
- write_import_ids: Date, Payee, Amount, ImportId, RemoteTransactionId
"""

from .csv_writer import (
    DUPLICATE_MARKER,
    IMPORT_IDS_HEADER,
    IMPORT_IDS_PREFIX,
    LEDGER_HEADER,
    LEDGER_PREFIX,
    NOT_CREATED_MARKER,
    import_ids_path_for,
    ledger_path_for,
    write_import_ids,
    write_ledger,
)

__all__ = [
    "DUPLICATE_MARKER",
    "IMPORT_IDS_HEADER",
    "IMPORT_IDS_PREFIX",
    "LEDGER_HEADER",
    "LEDGER_PREFIX",
    "NOT_CREATED_MARKER",
    "import_ids_path_for",
    "ledger_path_for",
    "write_import_ids",
    "write_ledger",
]
