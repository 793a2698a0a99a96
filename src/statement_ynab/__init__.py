"""
Bank statement HTML → CSV ledger → YNAB import

A folder-watching pipeline that turns downloaded bank-statement HTML exports
into a normalized CSV ledger and YNAB transactions, with deterministic import
ids so that re-dropping the same statement never creates duplicates.
"""

__version__ = "0.1.0"
