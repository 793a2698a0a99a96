"""
Bank statement HTML extractor.

Reads the transaction table of an HTML statement export and turns each row
into a ledger line plus, when its date is readable, a YNAB import record.

Table layout (fixed):
- Rows of every ``<table border="1">`` except ``<tr class="head">``
- Cell 0: booking date
- Cell 2: description; lines separated by ``<br>``, the second line is the payee
- Cell 3: signed amount, e.g. ``-1 234,56``
- Cell 4: balance after the transaction
"""

import html
import logging
import re
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Iterator, Optional

import lxml.html
from lxml import etree

from ..schemas.transaction import ImportRecord, NormalizedTransaction, RawTransactionRow
from ..schemas.ynab_payload import build_import_record, parse_statement_date

logger = logging.getLogger(__name__)

ROW_XPATH = "//table[@border='1']//tr[not(@class='head')]"
MIN_CELLS = 5

# Label carrying the card/transfer date when it differs from the booking date
TRANSACTION_DATE_LABEL = "DATA TRANSAKCJI:"

_BR_PATTERN = re.compile(r"<br\s*/?>", re.IGNORECASE)
_TAG_PATTERN = re.compile(r"<[^>]+>")
_WHITESPACE_PATTERN = re.compile(r"\s+")
_AMOUNT_PATTERN = re.compile(r"[+-]?(\d+(\.\d*)?|\.\d+)")
_DATE_LABEL_PATTERN = re.compile(re.escape(TRANSACTION_DATE_LABEL) + r"\s*(\S+)?", re.IGNORECASE)


class ExtractionError(Exception):
    """The statement document could not be parsed at all."""

    pass


@dataclass
class RowError:
    """A table row that was skipped."""

    row_index: int
    message: str


@dataclass
class ExtractionResult:
    """Result of extracting one statement file."""

    transactions: list[NormalizedTransaction] = field(default_factory=list)
    import_records: list[ImportRecord] = field(default_factory=list)
    errors: list[RowError] = field(default_factory=list)


def parse_amount(text: str) -> Decimal:
    """
    Parse a statement amount such as ``"1 234,56"`` or ``"-50,00"``.

    Raises:
        InvalidOperation: If the text is not a plain decimal number
            (exponents, NaN and Infinity are rejected)
    """
    cleaned = _WHITESPACE_PATTERN.sub("", text).replace(",", ".")
    if not _AMOUNT_PATTERN.fullmatch(cleaned):
        raise InvalidOperation(f"not a plain decimal amount: {text!r}")
    return Decimal(cleaned)


def _markup_to_text(markup: str) -> str:
    """Strip tags and entities from an HTML fragment, collapsing whitespace."""
    text = html.unescape(_TAG_PATTERN.sub(" ", markup))
    return _WHITESPACE_PATTERN.sub(" ", text).strip()


def _inner_html(element: etree._Element) -> str:
    """Inner markup of an element (its text and serialized children)."""
    parts = [html.escape(element.text or "", quote=False)]
    for child in element:
        parts.append(etree.tostring(child, encoding="unicode", method="html"))
    return "".join(parts)


def split_payee(markup: str, booking_date: str) -> tuple[str, str]:
    """
    Resolve payee and date from the description cell.

    Args:
        markup: Inner HTML of the description cell
        booking_date: Date from the first cell, used unless a transaction
            date label is present

    Returns:
        (payee, date)
    """
    parts = [_markup_to_text(part) for part in _BR_PATTERN.split(markup)]
    payee = parts[1] if len(parts) > 1 else parts[0]

    date = booking_date
    for part in parts:
        match = _DATE_LABEL_PATTERN.search(part)
        if match and match.group(1):
            date = match.group(1)
            break

    # The label may sit on the payee line itself
    match = _DATE_LABEL_PATTERN.search(payee)
    if match:
        payee = payee[: match.start()]

    slash_at = payee.find("/")
    if slash_at >= 0:
        payee = payee[:slash_at]

    return payee.strip(), date.strip()


class HtmlStatementExtractor:
    """
    Extract transactions from a bank statement HTML export.

    A row that cannot be parsed is recorded in ``ExtractionResult.errors``
    and skipped; it never aborts the rest of the statement.
    """

    name = "html_statement"

    def extract_file(self, path: Path, account_id: str) -> ExtractionResult:
        """
        Read and extract a statement file.

        Raises:
            OSError: If the file cannot be read (e.g. still being written)
            ExtractionError: If the content is not parseable HTML
        """
        return self.extract(path.read_bytes(), account_id, source=path.name)

    def extract(
        self, content: bytes, account_id: str, source: Optional[str] = None
    ) -> ExtractionResult:
        """Extract transactions from statement HTML bytes."""
        source = source or "<memory>"
        try:
            document = lxml.html.fromstring(content)
        except (etree.ParserError, etree.XMLSyntaxError, ValueError) as e:
            raise ExtractionError(f"Cannot parse statement {source}: {e}") from e

        result = ExtractionResult()

        for index, raw in enumerate(self.iter_rows(document)):
            try:
                transaction = self.normalize_row(raw)
                # Milliunit conversion fails for amounts beyond decimal precision
                record = build_import_record(transaction, account_id)
            except (InvalidOperation, ValueError) as e:
                message = f"bad number in amount '{raw.amount_text}' / balance '{raw.balance_text}'"
                logger.warning(f"[{source}] Skipping row {index}: {message} ({type(e).__name__})")
                result.errors.append(RowError(row_index=index, message=message))
                continue

            result.transactions.append(transaction)
            if record is not None:
                result.import_records.append(record)

        logger.info(
            f"[{source}] Extracted {len(result.transactions)} transaction(s), "
            f"{len(result.import_records)} importable, {len(result.errors)} skipped"
        )
        return result

    def iter_rows(self, document: etree._Element) -> Iterator[RawTransactionRow]:
        """Yield raw cell contents of every transaction row with enough cells."""
        for row in document.xpath(ROW_XPATH):
            cells = row.xpath("td")
            if len(cells) < MIN_CELLS:
                continue
            yield RawTransactionRow(
                date=cells[0].text_content().strip(),
                payee_raw=_inner_html(cells[2]).strip(),
                amount_text=cells[3].text_content().strip(),
                balance_text=cells[4].text_content().strip(),
            )

    def normalize_row(self, raw: RawTransactionRow) -> NormalizedTransaction:
        """
        Normalize one raw row.

        Raises:
            InvalidOperation: If amount or balance is not a number
        """
        amount = parse_amount(raw.amount_text)
        balance = parse_amount(raw.balance_text)
        payee, date = split_payee(raw.payee_raw, raw.date)

        parsed = parse_statement_date(date)
        if parsed is not None:
            date = parsed.isoformat()

        return NormalizedTransaction.from_amount(
            date=date, payee=payee, amount=amount, balance=balance
        )
