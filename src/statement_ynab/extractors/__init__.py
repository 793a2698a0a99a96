"""
Statement extractors.

Provides:
- HtmlStatementExtractor: transaction table of a bank statement HTML export
- ExtractionResult / RowError: extracted rows and skipped-row diagnostics
"""

from .html_statement import (
    ExtractionError,
    ExtractionResult,
    HtmlStatementExtractor,
    RowError,
    parse_amount,
    split_payee,
)

__all__ = [
    "ExtractionError",
    "ExtractionResult",
    "HtmlStatementExtractor",
    "RowError",
    "parse_amount",
    "split_payee",
]
