"""Tests for import_id generation."""

from datetime import date
from decimal import Decimal

import pytest

from statement_ynab.schemas.import_id import (
    IMPORT_ID_PREFIX,
    MAX_IMPORT_ID_LENGTH,
    fingerprint,
    generate_import_id,
)


class TestFingerprint:
    """Tests for the decimal hash fingerprint."""

    def test_width(self):
        assert len(fingerprint("anything", 2)) == 2
        assert len(fingerprint("anything", 3)) == 3

    def test_zero_padded_digits(self):
        for value in ["a", "b", "c", "0.00", "-50.00", "jan kowalski"]:
            fp = fingerprint(value, 3)
            assert fp.isdigit()
            assert len(fp) == 3

    def test_deterministic(self):
        assert fingerprint("1234.56", 2) == fingerprint("1234.56", 2)


class TestGenerateImportId:
    """Tests for generate_import_id."""

    PARAMS = {
        "date": date(2024, 5, 1),
        "amount": Decimal("-50.00"),
        "balance": Decimal("1184.56"),
        "payee": "JAN KOWALSKI",
    }

    def test_format(self):
        """I: + YYYYMMDD + 2 + 2 + 3 digits."""
        import_id = generate_import_id(**self.PARAMS)

        assert import_id.startswith(f"{IMPORT_ID_PREFIX}20240501")
        assert len(import_id) == 2 + 8 + 2 + 2 + 3
        assert len(import_id) <= MAX_IMPORT_ID_LENGTH
        assert import_id[len(IMPORT_ID_PREFIX) :].isdigit()

    def test_deterministic(self):
        """Same inputs produce same output (deterministic)."""
        id1 = generate_import_id(**self.PARAMS)
        id2 = generate_import_id(**self.PARAMS)
        id3 = generate_import_id(**self.PARAMS)

        assert id1 == id2 == id3

    def test_amount_normalization(self):
        """Formatting differences never change the id."""
        base = dict(self.PARAMS)
        del base["amount"]

        id1 = generate_import_id(**base, amount=Decimal("-50"))
        id2 = generate_import_id(**base, amount="-50.00")
        id3 = generate_import_id(**base, amount=-50.0)
        id4 = generate_import_id(**base, amount="-50,00")

        assert id1 == id2 == id3 == id4

    def test_payee_normalization(self):
        base = dict(self.PARAMS)
        del base["payee"]

        assert generate_import_id(**base, payee="JAN KOWALSKI") == generate_import_id(
            **base, payee="  jan kowalski "
        )

    def test_date_changes_id(self):
        other = dict(self.PARAMS, date=date(2024, 5, 2))
        assert generate_import_id(**self.PARAMS) != generate_import_id(**other)

    def test_rows_of_one_statement_distinct(self):
        """A realistic day of rows produces no collisions."""
        ids = {
            generate_import_id(
                date(2024, 5, 1),
                Decimal(-i) / 10,
                Decimal(10000) - Decimal(i * (i + 1)) / 20,
                f"PAYEE {i % 7}",
            )
            for i in range(1, 21)
        }
        assert len(ids) == 20

    def test_invalid_amount_type(self):
        with pytest.raises(ValueError):
            generate_import_id(date(2024, 5, 1), object(), Decimal("1"), "P")

