"""Shared test fixtures."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any

import pytest

from invoice_recon.config import SheetsConfig
from invoice_recon.dates import EAT
from invoice_recon.models import Invoice, Transaction

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path


@pytest.fixture
def store_root(tmp_path: Path) -> Path:
    """Provide a temporary directory as the ledger store root."""
    root = tmp_path / "ledgers"
    root.mkdir()
    return root


@pytest.fixture
def sheets_config() -> SheetsConfig:
    """Provide a test Sheets configuration with two tabs."""
    return SheetsConfig(
        spreadsheet_id="sheet-123",
        tabs={"DEV-BODA_LEDGER": "boda", "DEV-LIPA_MIXX": "lipa"},
    )


@pytest.fixture
def make_invoice() -> Callable[..., Invoice]:
    """Build invoices with sensible defaults."""

    def _make(
        number: str,
        amount: str | int = 100,
        invoice_date: date | None = date(2026, 1, 15),
        customer: str = "Alice",
        **extra: Any,
    ) -> Invoice:
        return Invoice(
            customer_name=customer,
            invoice_number=number,
            amount=Decimal(amount),
            invoice_date=invoice_date,
            invoice_date_raw=invoice_date.strftime("%m/%d/%Y") if invoice_date else "",
            **extra,
        )

    return _make


@pytest.fixture
def make_transaction() -> Callable[..., Transaction]:
    """Build transactions with sensible defaults."""

    def _make(
        transaction_id: str,
        amount: str | int | None,
        received_at: datetime | None = datetime(2026, 1, 22, 9, 0, tzinfo=EAT),
        name: str | None = "Alice",
        **extra: Any,
    ) -> Transaction:
        return Transaction(
            id=transaction_id,
            channel=extra.pop("channel", "boda"),
            customer_name=name,
            contract_name=extra.pop("contract_name", name),
            amount=Decimal(amount) if amount is not None else None,
            received_at=received_at,
            transaction_id=transaction_id,
            **extra,
        )

    return _make


@pytest.fixture
def invoice_csv(tmp_path: Path) -> Path:
    """Write a small QuickBooks invoice export."""
    path = tmp_path / "invoices.csv"
    path.write_text(
        "Customer,Invoice No,Amount,Invoice Date\n"
        "ALICE MWANGI,1001,50000,01/10/2026\n"
        "ALICE MWANGI,1002,\"30,000\",01/15/2026\n"
        "BOB 0712345678,1003,20000,01/12/2026\n",
        encoding="utf-8",
    )
    return path


@pytest.fixture
def boda_csv(tmp_path: Path) -> Path:
    """Write a CSV export of the BODA ledger tab."""
    path = tmp_path / "boda.csv"
    path.write_text(
        "NO,CHANNEL,RECEIVED DATE,MESSAGE,SENDER CONTACTS,CONTRACT NAME,AMOUNT,"
        "TRANSACTION ID\n"
        "1,M-PESA,\"22 Jan 2026, 08:15 am (EAT)\",Paid,,ALICE MWANGI,40000,TX1\n"
        "2,MIXX BY YAS,\"22 Jan 2026, 02:30 pm (EAT)\",Paid,,ALICE MWANGI,50000,TX2\n"
        "3,M-PESA,\"22 Jan 2026, 03:00 pm (EAT)\",Paid,0712345678,BOB,20000,TX3\n"
        "4,M-PESA,\"22 Jan 2026, 04:00 pm (EAT)\",Paid,,CAROL,7000,TX4\n"
        "5,M-PESA,\"23 Jan 2026, 10:00 am (EAT)\",Paid,,ALICE MWANGI,9000,TX5\n",
        encoding="utf-8",
    )
    return path
