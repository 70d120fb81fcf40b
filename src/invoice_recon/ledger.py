"""Ledger export formatting and run summaries."""

from __future__ import annotations

import csv
import io
from dataclasses import dataclass
from decimal import Decimal
from enum import StrEnum
from typing import IO, TYPE_CHECKING

from invoice_recon.models import Allocation, UnusedTransaction

if TYPE_CHECKING:
    from collections.abc import Iterable

    from invoice_recon.models import PaymentRecord

EXPORT_COLUMNS = (
    "Payment Date",
    "Customer",
    "Payment Method",
    "Deposit To Account Name",
    "Invoice No",
    "Journal No",
    "Amount",
    "Reference No",
    "Memo",
    "Country Code",
    "Exchange Rate",
)


class PaymentStatus(StrEnum):
    """Display status of a ledger line."""

    PAID = "paid"
    PARTIAL = "partial"
    UNPAID = "unpaid"
    UNUSED = "unused"


@dataclass(frozen=True)
class LedgerSummary:
    """Totals for one allocation run, counted per distinct invoice."""

    invoice_lines: int
    invoices: int
    paid_invoices: int
    partial_invoices: int
    unpaid_invoices: int
    total_allocated: Decimal
    unused_count: int
    total_unused: Decimal


def payment_status(record: PaymentRecord) -> PaymentStatus:
    """Classify a ledger line for display."""
    if isinstance(record, UnusedTransaction):
        return PaymentStatus.UNUSED
    if record.is_fully_paid:
        return PaymentStatus.PAID
    if record.total_paid_for_invoice == 0:
        return PaymentStatus.UNPAID
    return PaymentStatus.PARTIAL


def record_to_row(
    record: PaymentRecord, *, upper_case_names: bool = False
) -> dict[str, str]:
    """Map a ledger line onto the accounting import columns."""
    name = record.customer_name.upper() if upper_case_names else record.customer_name
    return {
        "Payment Date": record.payment_date,
        "Customer": name,
        "Payment Method": record.payment_method,
        "Deposit To Account Name": record.deposit_to_account_name,
        "Invoice No": record.invoice_no,
        "Journal No": "",
        "Amount": _format_amount(record.amount),
        "Reference No": "",
        "Memo": record.memo,
        "Country Code": "",
        "Exchange Rate": "",
    }


def write_csv(
    records: Iterable[PaymentRecord],
    handle: IO[str],
    *,
    upper_case_names: bool = False,
) -> int:
    """Write ledger lines as CSV with a header row; return the line count."""
    writer = csv.DictWriter(handle, fieldnames=EXPORT_COLUMNS)
    writer.writeheader()
    count = 0
    for record in records:
        writer.writerow(record_to_row(record, upper_case_names=upper_case_names))
        count += 1
    return count


def render_csv(
    records: Iterable[PaymentRecord], *, upper_case_names: bool = False
) -> str:
    """Return the CSV export as a string."""
    buffer = io.StringIO()
    write_csv(records, buffer, upper_case_names=upper_case_names)
    return buffer.getvalue()


def summarize(records: Iterable[PaymentRecord]) -> LedgerSummary:
    """Summarize a ledger by invoice status and unused money."""
    invoice_lines = 0
    statuses: dict[str, PaymentStatus] = {}
    total_allocated = Decimal(0)
    unused_count = 0
    total_unused = Decimal(0)

    for record in records:
        if isinstance(record, Allocation):
            invoice_lines += 1
            total_allocated += record.amount
            statuses[record.invoice_no] = payment_status(record)
        else:
            unused_count += 1
            total_unused += record.amount

    values = list(statuses.values())
    return LedgerSummary(
        invoice_lines=invoice_lines,
        invoices=len(statuses),
        paid_invoices=values.count(PaymentStatus.PAID),
        partial_invoices=values.count(PaymentStatus.PARTIAL),
        unpaid_invoices=values.count(PaymentStatus.UNPAID),
        total_allocated=total_allocated,
        unused_count=unused_count,
        total_unused=total_unused,
    )


def _format_amount(value: Decimal) -> str:
    return format(value, "f")
