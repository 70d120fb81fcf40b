"""Mobile-money ledger adapters (Google Sheets and CSV exports).

Every ledger tab shares one column layout, starting at row 2:

    A  row number        E  sender phone
    B  payment channel   F  contract name
    C  received date     G  amount
    D  message           H  transaction id
"""

from __future__ import annotations

import csv
import logging
from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING, Any

import gspread

from invoice_recon.dates import parse_received_date
from invoice_recon.exceptions import SourceError
from invoice_recon.models import Transaction

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from invoice_recon.config import SheetsConfig

logger = logging.getLogger(__name__)

SHEET_RANGE = "A2:H"


def normalize_row(row: Sequence[str], channel: str, index: int) -> Transaction:
    """Convert one ledger row into a Transaction.

    ``index`` is the 1-based data row number, used for the synthetic id
    ``"{channel}-{index}"`` when the row has no transaction id.
    """
    cells = [cell.strip() if isinstance(cell, str) else "" for cell in row]
    cells += [""] * (8 - len(cells))

    received_raw = cells[2] or None
    transaction_id = cells[7] or None
    contract = cells[5] or None

    return Transaction(
        id=transaction_id or f"{channel}-{index}",
        channel=channel,
        payment_channel=cells[1] or None,
        message=cells[3] or None,
        customer_phone=cells[4] or None,
        customer_name=contract,
        contract_name=contract,
        amount=_parse_amount(cells[6]),
        received_at=parse_received_date(received_raw),
        received_label=received_raw,
        transaction_id=transaction_id,
    )


def _parse_amount(raw: str) -> Decimal | None:
    if not raw:
        return None
    try:
        return Decimal(raw.replace(",", ""))
    except InvalidOperation:
        logger.debug("Unparseable transaction amount %r", raw)
        return None


def _normalize_rows(rows: Sequence[Sequence[str]], channel: str) -> list[Transaction]:
    return [normalize_row(row, channel, i) for i, row in enumerate(rows, start=1)]


class SheetsTransactionSource:
    """Fetch transactions from the ledger tabs of a Google spreadsheet.

    Accepts an optional gspread client for dependency injection in tests.
    """

    def __init__(self, config: SheetsConfig, *, client: Any | None = None) -> None:
        self.config = config
        self._client = client

    def fetch_transactions(self) -> list[Transaction]:
        """Read every configured tab and return their transactions in tab order."""
        try:
            spreadsheet = self._get_client().open_by_key(self.config.spreadsheet_id)
            transactions: list[Transaction] = []
            for title, channel in self.config.tabs.items():
                rows = spreadsheet.worksheet(title).get_values(SHEET_RANGE)
                tab_transactions = _normalize_rows(rows, channel)
                logger.info(
                    "Fetched %d rows from sheet %s (%s)",
                    len(tab_transactions),
                    title,
                    channel,
                )
                transactions.extend(tab_transactions)
        except (gspread.exceptions.GSpreadException, OSError) as exc:
            msg = f"Error fetching transactions from spreadsheet: {exc}"
            raise SourceError(msg) from exc
        return transactions

    def _get_client(self) -> Any:
        if self._client is None:
            account = self.config.service_account_file
            self._client = (
                gspread.service_account(filename=str(account))
                if account
                else gspread.service_account()
            )
        return self._client


class CsvTransactionSource:
    """Read ledger rows from a CSV export of one sheet tab.

    The first line is treated as the header row, mirroring ``A2:H`` on the
    live sheet.
    """

    def __init__(self, path: Path, channel: str) -> None:
        self.path = path
        self.channel = channel

    def fetch_transactions(self) -> list[Transaction]:
        """Parse the CSV file into transactions."""
        try:
            with self.path.open(newline="", encoding="utf-8-sig") as handle:
                rows = list(csv.reader(handle))
        except OSError as exc:
            msg = f"Cannot read transaction file {self.path}: {exc}"
            raise SourceError(msg) from exc

        data_rows = [row for row in rows[1:] if any(cell.strip() for cell in row)]
        transactions = _normalize_rows(data_rows, self.channel)
        logger.info("Loaded %d transactions from %s", len(transactions), self.path)
        return transactions
