"""
Transaction schemas shared by the extractor, the ledger writer and the YNAB client.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any

# YNAB cleared status applied to every imported statement row
CLEARED = "cleared"


@dataclass
class RawTransactionRow:
    """Cell contents of one statement table row, before normalization."""

    date: str
    payee_raw: str  # Inner HTML of the payee cell
    amount_text: str
    balance_text: str


@dataclass
class NormalizedTransaction:
    """
    One ledger line.

    Exactly one of outflow/inflow is non-zero for a non-zero amount;
    ``inflow - outflow`` always equals the signed statement amount.
    """

    date: str  # YYYY-MM-DD, or the raw statement string if it did not parse
    payee: str
    outflow: Decimal
    inflow: Decimal
    balance: Decimal
    memo: str = ""

    @property
    def amount(self) -> Decimal:
        """Signed amount (negative for money leaving the account)."""
        return self.inflow - self.outflow

    @classmethod
    def from_amount(
        cls, date: str, payee: str, amount: Decimal, balance: Decimal
    ) -> "NormalizedTransaction":
        """Split a signed amount into outflow/inflow columns."""
        return cls(
            date=date,
            payee=payee,
            outflow=abs(amount) if amount < 0 else Decimal("0"),
            inflow=amount if amount > 0 else Decimal("0"),
            balance=balance,
        )


@dataclass(frozen=True)
class ImportRecord:
    """
    Single transaction for the YNAB bulk create endpoint.

    Maps to SaveTransaction in the YNAB API. Records are never mutated once
    built; the same record is sent and then written to the import-ids ledger.
    """

    account_id: str
    date: str  # YYYY-MM-DD
    amount: int  # Milliunits
    payee_name: str
    import_id: str
    memo: str = ""
    cleared: str = CLEARED

    @property
    def decimal_amount(self) -> Decimal:
        """Amount converted back from milliunits."""
        return Decimal(self.amount) / 1000

    def to_dict(self) -> dict[str, Any]:
        """Convert to YNAB API JSON format."""
        return {
            "account_id": self.account_id,
            "date": self.date,
            "amount": self.amount,
            "payee_name": self.payee_name,
            "memo": self.memo,
            "cleared": self.cleared,
            "import_id": self.import_id,
        }
