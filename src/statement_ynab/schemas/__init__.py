"""
Schemas for statement transactions and YNAB payloads.

Provides:
- NormalizedTransaction: one CSV ledger line
- ImportRecord: one YNAB SaveTransaction
- generate_import_id: deterministic, length-bounded import ids
- build_import_record: ledger line → YNAB record
"""

from .import_id import MAX_IMPORT_ID_LENGTH, generate_import_id
from .transaction import ImportRecord, NormalizedTransaction, RawTransactionRow
from .ynab_payload import (
    YnabTransactionBatch,
    build_import_record,
    parse_statement_date,
    to_milliunits,
    validate_batch,
)

__all__ = [
    "ImportRecord",
    "MAX_IMPORT_ID_LENGTH",
    "NormalizedTransaction",
    "RawTransactionRow",
    "YnabTransactionBatch",
    "build_import_record",
    "generate_import_id",
    "parse_statement_date",
    "to_milliunits",
    "validate_batch",
]
