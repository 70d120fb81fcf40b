"""Domain models for invoice reconciliation."""

from __future__ import annotations

import re
from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

PAYMENT_METHOD = "Cash"
UNUSED_INVOICE_NO = "UNUSED"

_PHONE_PATTERN = re.compile(r"\d{10,}")


def extract_phone(text: str | None) -> str | None:
    """Return the first run of 10+ digits in free text, or None."""
    if not text:
        return None
    match = _PHONE_PATTERN.search(text)
    return match.group(0) if match else None


class Invoice(BaseModel):
    """An outstanding customer invoice."""

    model_config = ConfigDict(frozen=True)

    customer_name: str = ""
    customer_phone: str | None = None
    invoice_number: str = Field(min_length=1)
    amount: Decimal = Field(ge=0)
    invoice_date: date | None = None
    invoice_date_raw: str = ""

    @model_validator(mode="before")
    @classmethod
    def _fill_phone(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("customer_phone"):
            phone = extract_phone(data.get("customer_name"))
            if phone:
                data = {**data, "customer_phone": phone}
        return data


class Transaction(BaseModel):
    """An incoming mobile-money transaction."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    channel: str | None = None
    payment_channel: str | None = None
    message: str | None = None
    customer_name: str | None = None
    customer_phone: str | None = None
    contract_name: str | None = None
    amount: Decimal | None = Field(default=None, allow_inf_nan=True)
    received_at: datetime | None = None
    received_label: str | None = None
    transaction_id: str | None = None

    @property
    def effective_id(self) -> str:
        """Transaction id, falling back to the row id."""
        return self.transaction_id or self.id

    @property
    def fingerprint(self) -> tuple[str, datetime | None, Decimal | None]:
        """Identity used to drop rows the source emitted more than once."""
        return (self.effective_id, self.received_at, self.amount)

    @property
    def has_amount(self) -> bool:
        """Whether the transaction carries money to allocate."""
        return (
            self.amount is not None
            and self.amount.is_finite()
            and self.amount != 0
        )

    @property
    def display_name(self) -> str:
        """Best-effort customer label from the transaction's own fields."""
        return self.customer_name or self.contract_name or self.customer_phone or ""


class Allocation(BaseModel):
    """A ledger line applying (part of) a transaction to an invoice.

    ``amount`` is the ledger line total. ``applied_amount`` is the portion
    that reduced the invoice balance and ``overpayment`` the excess a
    transaction carried after every invoice it touched was settled.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["allocation"] = "allocation"
    payment_date: str
    customer_name: str
    payment_method: str = PAYMENT_METHOD
    deposit_to_account_name: str
    invoice_no: str
    invoice_amount: Decimal
    amount: Decimal
    applied_amount: Decimal
    overpayment: Decimal = Decimal(0)
    memo: str = ""
    is_fully_paid: bool = False
    total_paid_for_invoice: Decimal = Decimal(0)

    @property
    def is_unused(self) -> bool:
        return False


class UnusedTransaction(BaseModel):
    """A ledger line for money that reached no invoice."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["unused"] = "unused"
    payment_date: str
    customer_name: str
    payment_method: str = PAYMENT_METHOD
    deposit_to_account_name: str
    transaction_amount: Decimal
    memo: str = ""

    @property
    def invoice_no(self) -> str:
        return UNUSED_INVOICE_NO

    @property
    def invoice_amount(self) -> Decimal:
        return Decimal(0)

    @property
    def amount(self) -> Decimal:
        return self.transaction_amount

    @property
    def is_unused(self) -> bool:
        return True


PaymentRecord = Annotated[Allocation | UnusedTransaction, Field(discriminator="kind")]
