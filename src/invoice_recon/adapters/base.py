"""Source adapter protocols."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from invoice_recon.models import Invoice, Transaction


@runtime_checkable
class InvoiceSource(Protocol):
    """Protocol for invoice sources."""

    def load_invoices(self) -> list[Invoice]: ...


@runtime_checkable
class TransactionSource(Protocol):
    """Protocol for mobile-money transaction sources."""

    def fetch_transactions(self) -> list[Transaction]: ...
