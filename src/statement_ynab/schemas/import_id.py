"""
Import id generation (CRITICAL).

This module defines THE deterministic import_id function.
This is the ONLY way to generate import ids in the system.

Format: I:{YYYYMMDD}{amount:2}{balance:2}{payee:3}

- amount/balance fingerprints = SHA256(value formatted with 2 decimals) mod 100
- payee fingerprint = SHA256(normalized payee) mod 1000

The import_id must be:
- Short: YNAB rejects import ids longer than 36 characters
- Stable: Same statement row always produces the same id, across restarts
- Deduplicated: Re-importing a statement is absorbed by YNAB as duplicates

The fingerprints are lossy on purpose. Two different rows on the same date
collide only when all three fingerprints collide (roughly 1 in 100 per
2-digit slot, 1 in 1000 for the payee slot). The balance slot keeps rows
with identical amount and payee apart, since the running balance differs.
"""

import hashlib
from datetime import date as date_type
from decimal import Decimal

IMPORT_ID_PREFIX = "I:"

# YNAB limit for SaveTransaction.import_id
MAX_IMPORT_ID_LENGTH = 36

AMOUNT_DIGITS = 2
BALANCE_DIGITS = 2
PAYEE_DIGITS = 3


def _normalize_amount(amount: Decimal | str | float) -> str:
    """
    Normalize amount to consistent format for hashing.

    Args:
        amount: Amount in various formats

    Returns:
        Normalized amount string with 2 decimal places
    """
    if isinstance(amount, str):
        # Handle comma as decimal separator (European format)
        amount = Decimal(amount.replace(" ", "").replace(",", "."))
    elif isinstance(amount, float):
        amount = Decimal(str(amount))
    elif not isinstance(amount, Decimal):
        raise ValueError(f"amount must be Decimal, str, or float, got: {type(amount)}")

    return f"{amount:.2f}"


def _normalize_string(value: str | None) -> str:
    """Normalize a string for hashing (lowercase, strip whitespace)."""
    if not value:
        return ""
    return value.strip().lower()


def fingerprint(canonical: str, digits: int) -> str:
    """Reduce SHA256 of ``canonical`` to a zero-padded decimal of ``digits`` digits."""
    value = int(hashlib.sha256(canonical.encode("utf-8")).hexdigest(), 16)
    return str(value % 10**digits).zfill(digits)


def generate_import_id(
    date: date_type,
    amount: Decimal | str | float,
    balance: Decimal | str | float,
    payee: str | None,
) -> str:
    """
    Generate the YNAB import_id for one statement row.

    Args:
        date: Transaction date
        amount: Signed transaction amount
        balance: Account balance after the transaction
        payee: Payee name as written to the ledger

    Returns:
        Import id string, always shorter than MAX_IMPORT_ID_LENGTH

    Example:
        generate_import_id(date(2024, 5, 1), Decimal("-50.00"), Decimal("950.00"), "SHOP")
        gives "I:20240501" followed by 7 fingerprint digits (2 + 2 + 3)
    """
    import_id = (
        f"{IMPORT_ID_PREFIX}{date:%Y%m%d}"
        f"{fingerprint(_normalize_amount(amount), AMOUNT_DIGITS)}"
        f"{fingerprint(_normalize_amount(balance), BALANCE_DIGITS)}"
        f"{fingerprint(_normalize_string(payee), PAYEE_DIGITS)}"
    )

    if len(import_id) > MAX_IMPORT_ID_LENGTH:
        raise ValueError(f"import_id too long ({len(import_id)}): {import_id}")

    return import_id

