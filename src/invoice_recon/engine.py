"""Payment allocation engine.

Matches transactions to invoice-backed customers and consumes them against
open invoices: invoices newest first, money oldest first, one shared invoice
cursor per customer. Every unit of incoming money ends up on exactly one
ledger line, either against an invoice or flagged as unused.

The engine is a pure function of its two input lists. All working state
lives in locals and in the returned :class:`AllocationResult`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, cast

from invoice_recon.dates import format_payment_date
from invoice_recon.exceptions import InvalidInputError
from invoice_recon.models import Allocation, UnusedTransaction

if TYPE_CHECKING:
    from collections.abc import Container, Iterable, Sequence

    from invoice_recon.models import Invoice, PaymentRecord, Transaction

logger = logging.getLogger(__name__)

FULLY_PAID_TOLERANCE = Decimal(1)
DEFAULT_DEPOSIT_ACCOUNT = "Kijichi Collection AC"

CustomerKey = str
Fingerprint = tuple[str, datetime | None, Decimal | None]

_ZERO = Decimal(0)


@dataclass
class InvoiceBalance:
    """Open balance of one invoice during a customer's allocation."""

    invoice: Invoice
    remaining_balance: Decimal
    fully_paid: bool = False


@dataclass
class _PendingLine:
    """An allocation line awaiting the post-pass totals."""

    invoice: Invoice
    payment_date: str
    applied: Decimal
    memo: str = ""
    overpayment: Decimal = _ZERO


@dataclass
class AllocationResult:
    """Ledger lines plus the bookkeeping state of one allocation run."""

    records: list[PaymentRecord] = field(default_factory=list)
    used: set[Fingerprint] = field(default_factory=set)
    invoice_totals: dict[str, Decimal] = field(default_factory=dict)

    @property
    def allocations(self) -> list[Allocation]:
        return [r for r in self.records if isinstance(r, Allocation)]

    @property
    def unused(self) -> list[UnusedTransaction]:
        return [r for r in self.records if isinstance(r, UnusedTransaction)]


def invoice_customer_key(invoice: Invoice) -> CustomerKey:
    """Return the grouping key for an invoice: phone, else normalized name."""
    if invoice.customer_phone:
        return invoice.customer_phone
    name = invoice.customer_name.lower().strip()
    if not name:
        msg = f"Invoice {invoice.invoice_number} has no customer name or phone"
        raise InvalidInputError(msg)
    return name


def candidate_keys(transaction: Transaction) -> list[CustomerKey]:
    """Return a transaction's customer keys in priority order.

    Phone first, then contract name, then customer name. Empty values are
    dropped.
    """
    candidates = [
        transaction.customer_phone,
        (transaction.contract_name or "").lower().strip(),
        (transaction.customer_name or "").lower().strip(),
    ]
    return [key for key in candidates if key]


def group_invoices(invoices: Iterable[Invoice]) -> dict[CustomerKey, list[Invoice]]:
    """Bucket invoices by customer key, preserving input order per bucket.

    Raises :class:`InvalidInputError` when an invoice number repeats.
    """
    buckets: dict[CustomerKey, list[Invoice]] = {}
    seen: set[str] = set()
    for invoice in invoices:
        if invoice.invoice_number in seen:
            msg = f"Invoice {invoice.invoice_number} appears more than once"
            raise InvalidInputError(msg)
        seen.add(invoice.invoice_number)
        buckets.setdefault(invoice_customer_key(invoice), []).append(invoice)
    return buckets


def dedupe_transactions(transactions: Iterable[Transaction]) -> list[Transaction]:
    """Drop transactions without money and repeated fingerprints.

    Order of first appearance is preserved.
    """
    seen: set[Fingerprint] = set()
    kept: list[Transaction] = []
    for transaction in transactions:
        if not transaction.has_amount:
            continue
        fingerprint = transaction.fingerprint
        if fingerprint in seen:
            logger.warning(
                "Skipping duplicate transaction %s (%s)",
                transaction.effective_id,
                transaction.amount,
            )
            continue
        seen.add(fingerprint)
        kept.append(transaction)
    return kept


def group_transactions(
    transactions: Iterable[Transaction],
    invoice_keys: Container[CustomerKey],
) -> tuple[dict[CustomerKey, list[Transaction]], list[Transaction]]:
    """Assign each transaction to the first candidate key with invoices.

    Transactions never open a bucket of their own; those matching no invoice
    customer are returned separately as ungrouped.
    """
    grouped: dict[CustomerKey, list[Transaction]] = {}
    ungrouped: list[Transaction] = []
    for transaction in transactions:
        key = next(
            (k for k in candidate_keys(transaction) if k in invoice_keys), None
        )
        if key is None:
            ungrouped.append(transaction)
            continue
        grouped.setdefault(key, []).append(transaction)
    return grouped, ungrouped


def sort_invoices(invoices: Iterable[Invoice]) -> list[Invoice]:
    """Order invoices newest first, ties by descending invoice number.

    Invoices without a parsable date come after every dated invoice.
    """
    invoices = list(invoices)
    dated = [inv for inv in invoices if inv.invoice_date is not None]
    undated = [inv for inv in invoices if inv.invoice_date is None]
    dated.sort(key=lambda inv: (inv.invoice_date, inv.invoice_number), reverse=True)
    undated.sort(key=lambda inv: inv.invoice_number, reverse=True)
    return dated + undated


def sort_transactions(transactions: Iterable[Transaction]) -> list[Transaction]:
    """Order transactions oldest first; undated ones sort as the epoch."""
    return sorted(
        transactions,
        key=lambda t: t.received_at.timestamp() if t.received_at else 0.0,
    )


def allocate_payments(
    invoices: Sequence[Invoice],
    transactions: Sequence[Transaction],
    *,
    deposit_account: str = DEFAULT_DEPOSIT_ACCOUNT,
) -> AllocationResult:
    """Allocate transactions to invoices and build the payment ledger.

    Raises :class:`InvalidInputError` before producing any record when an
    invoice has no customer identity or an invoice number repeats.
    """
    invoices_by_customer = group_invoices(invoices)
    candidates = dedupe_transactions(transactions)
    transactions_by_customer, ungrouped = group_transactions(
        candidates, invoices_by_customer
    )

    logger.info(
        "Allocating %d transactions across %d customers (%d invoices)",
        len(candidates),
        len(invoices_by_customer),
        len(invoices),
    )
    if ungrouped:
        logger.info("%d transactions matched no invoiced customer", len(ungrouped))

    result = AllocationResult()
    lines: list[_PendingLine] = []
    for key in sorted(invoices_by_customer):
        customer_invoices = sort_invoices(invoices_by_customer[key])
        customer_transactions = sort_transactions(
            transactions_by_customer.get(key, [])
        )
        logger.debug(
            "Customer %s: %d invoices, %d transactions",
            key,
            len(customer_invoices),
            len(customer_transactions),
        )
        lines.extend(
            _allocate_customer(
                customer_invoices,
                customer_transactions,
                result.invoice_totals,
                result.used,
            )
        )

    for line in lines:
        result.records.append(_finalize(line, result.invoice_totals, deposit_account))

    for transaction in candidates:
        if transaction.fingerprint in result.used:
            continue
        result.records.append(_unused_record(transaction, deposit_account))

    logger.info(
        "Allocation complete: %d ledger lines, %d unused transactions",
        len(result.records),
        len(candidates) - len(result.used),
    )
    return result


def _allocate_customer(
    invoices: list[Invoice],
    transactions: list[Transaction],
    invoice_totals: dict[str, Decimal],
    used: set[Fingerprint],
) -> list[_PendingLine]:
    """Consume one customer's transactions against their invoices."""
    if not transactions:
        return [
            _PendingLine(invoice, _invoice_date_label(invoice), _ZERO)
            for invoice in invoices
        ]

    balances = [InvoiceBalance(invoice, invoice.amount) for invoice in invoices]
    lines: list[_PendingLine] = []
    cursor = 0

    for transaction in transactions:
        remaining = cast("Decimal", transaction.amount)
        emitted: list[_PendingLine] = []

        while remaining > 0 and cursor < len(balances):
            balance = balances[cursor]
            if balance.fully_paid:
                cursor += 1
                continue

            pay = min(remaining, balance.remaining_balance)
            emitted.append(
                _PendingLine(
                    balance.invoice,
                    _transaction_date_label(transaction, balance.invoice),
                    pay,
                    memo=transaction.effective_id,
                )
            )
            balance.remaining_balance -= pay
            remaining -= pay
            number = balance.invoice.invoice_number
            invoice_totals[number] = invoice_totals.get(number, _ZERO) + pay

            if balance.remaining_balance <= FULLY_PAID_TOLERANCE:
                balance.fully_paid = True
                balance.remaining_balance = _ZERO
                cursor += 1

        if not emitted:
            continue
        used.add(transaction.fingerprint)
        if remaining > 0:
            # Excess rides on the newest invoice this transaction touched
            emitted[0].overpayment += remaining
        lines.extend(emitted)

    touched = {line.invoice.invoice_number for line in lines}
    for balance in balances:
        if (
            not balance.fully_paid
            and balance.remaining_balance > 0
            and balance.invoice.invoice_number not in touched
        ):
            lines.append(
                _PendingLine(
                    balance.invoice, _invoice_date_label(balance.invoice), _ZERO
                )
            )
    return lines


def _finalize(
    line: _PendingLine, invoice_totals: dict[str, Decimal], deposit_account: str
) -> Allocation:
    """Turn a pending line into an Allocation annotated with invoice totals."""
    invoice = line.invoice
    total_paid = invoice_totals.get(invoice.invoice_number, _ZERO)
    return Allocation(
        payment_date=line.payment_date,
        customer_name=invoice.customer_name,
        deposit_to_account_name=deposit_account,
        invoice_no=invoice.invoice_number,
        invoice_amount=invoice.amount,
        amount=line.applied + line.overpayment,
        applied_amount=line.applied,
        overpayment=line.overpayment,
        memo=line.memo,
        is_fully_paid=abs(total_paid - invoice.amount) <= FULLY_PAID_TOLERANCE,
        total_paid_for_invoice=total_paid,
    )


def _unused_record(transaction: Transaction, deposit_account: str) -> UnusedTransaction:
    """Build the UNUSED ledger line for a transaction that reached no invoice."""
    if transaction.received_at is not None:
        payment_date = format_payment_date(transaction.received_at)
    else:
        payment_date = transaction.received_label or ""
    return UnusedTransaction(
        payment_date=payment_date,
        customer_name=transaction.display_name,
        deposit_to_account_name=deposit_account,
        transaction_amount=cast("Decimal", transaction.amount),
        memo=transaction.effective_id,
    )


def _invoice_date_label(invoice: Invoice) -> str:
    """Format the invoice date, falling back to the raw source string."""
    if invoice.invoice_date is not None:
        return format_payment_date(invoice.invoice_date)
    return invoice.invoice_date_raw


def _transaction_date_label(transaction: Transaction, invoice: Invoice) -> str:
    """Format the received date, falling back to the invoice date."""
    if transaction.received_at is not None:
        return format_payment_date(transaction.received_at)
    return _invoice_date_label(invoice)
