"""QuickBooks invoice CSV adapter."""

from __future__ import annotations

import csv
import logging
from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING

from pydantic import ValidationError

from invoice_recon.dates import parse_invoice_date
from invoice_recon.exceptions import SourceError
from invoice_recon.models import Invoice

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)

CUSTOMER_COLUMNS = ("Customer", "Customer Name")
INVOICE_NUMBER_COLUMNS = ("Invoice No", "Invoice Number")
AMOUNT_COLUMNS = ("Amount",)
DATE_COLUMNS = ("Invoice Date", "Date")


class CsvInvoiceSource:
    """Load invoices from a QuickBooks CSV export.

    Expected columns (first alias wins): Customer / Customer Name,
    Invoice No / Invoice Number, Amount, Invoice Date / Date.
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    def load_invoices(self) -> list[Invoice]:
        """Parse the CSV file into invoices, skipping blank rows."""
        try:
            with self.path.open(newline="", encoding="utf-8-sig") as handle:
                reader = csv.DictReader(handle)
                self._check_columns(reader.fieldnames or [])
                invoices = [
                    self._parse_row(row, reader.line_num)
                    for row in reader
                    if not _is_blank(row)
                ]
        except OSError as exc:
            msg = f"Cannot read invoice file {self.path}: {exc}"
            raise SourceError(msg) from exc

        logger.info("Loaded %d invoices from %s", len(invoices), self.path)
        return invoices

    def _check_columns(self, fieldnames: list[str]) -> None:
        present = {name.strip() for name in fieldnames}
        missing = [
            aliases[0]
            for aliases in (CUSTOMER_COLUMNS, INVOICE_NUMBER_COLUMNS, AMOUNT_COLUMNS)
            if not present.intersection(aliases)
        ]
        if missing:
            msg = f"Invoice file {self.path} is missing columns: {', '.join(missing)}"
            raise SourceError(msg)

    def _parse_row(self, row: dict[str, str | None], line: int) -> Invoice:
        cleaned = {
            key.strip(): (value or "").strip()
            for key, value in row.items()
            if isinstance(key, str) and not isinstance(value, list)
        }
        date_raw = _first(cleaned, DATE_COLUMNS)
        try:
            return Invoice(
                customer_name=_first(cleaned, CUSTOMER_COLUMNS),
                invoice_number=_first(cleaned, INVOICE_NUMBER_COLUMNS),
                amount=parse_amount(_first(cleaned, AMOUNT_COLUMNS)),
                invoice_date=parse_invoice_date(date_raw),
                invoice_date_raw=date_raw,
            )
        except ValidationError as exc:
            msg = f"Invalid invoice on line {line} of {self.path}: {exc}"
            raise SourceError(msg) from exc


def parse_amount(raw: str | None) -> Decimal:
    """Parse a money string with thousands separators; unparseable is zero."""
    if not raw:
        return Decimal(0)
    try:
        value = Decimal(raw.replace(",", "").strip())
    except InvalidOperation:
        logger.debug("Unparseable invoice amount %r", raw)
        return Decimal(0)
    if not value.is_finite():
        return Decimal(0)
    return value


def _is_blank(row: dict[str, str | None]) -> bool:
    return not any(isinstance(value, str) and value.strip() for value in row.values())


def _first(row: dict[str, str], aliases: tuple[str, ...]) -> str:
    for alias in aliases:
        if row.get(alias):
            return row[alias]
    return ""
