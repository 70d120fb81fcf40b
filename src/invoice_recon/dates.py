"""Date parsing and formatting for invoice and ledger sources.

Sources hand over dates as free-form strings. Parsing never raises: a value
that matches none of the known layouts comes back as ``None`` and callers
keep the raw string for display.
"""

from __future__ import annotations

import re
from datetime import date, datetime, timedelta, timezone

EAT = timezone(timedelta(hours=3), "EAT")

PAYMENT_DATE_FORMAT = "%m-%d-%Y"

# QuickBooks exports invoice dates as MM/DD/YYYY
_INVOICE_DATE_FORMATS = (
    "%m/%d/%Y",
    "%Y-%m-%d",
    "%m-%d-%Y",
    "%d %b %Y",
    "%d %B %Y",
)

# Mobile-money ledgers use day-first layouts
_RECEIVED_DATE_FORMATS = (
    "%d %b %Y",
    "%d %B %Y",
    "%d/%m/%Y",
    "%Y-%m-%d",
)

_RECEIVED_DATETIME_FORMATS = (
    "%d %b %Y, %I:%M %p",
    "%d %B %Y, %I:%M %p",
    "%d/%m/%Y, %I:%M %p",
    "%d/%m/%Y, %H:%M",
    "%Y-%m-%d, %H:%M",
)

_ZONE_SUFFIX = re.compile(r"\s*\([A-Za-z]+\)\s*$")


def parse_invoice_date(raw: str | None) -> date | None:
    """Parse an invoice date string, returning None when unparseable."""
    if not raw:
        return None
    value = raw.strip()
    for fmt in _INVOICE_DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt).date()  # noqa: DTZ007
        except ValueError:
            continue
    return None


def parse_received_date(raw: str | None) -> datetime | None:
    """Parse a ledger "received" string into an EAT-aware datetime.

    Accepts ``"22 Jan 2026, 06:23 pm (EAT)"``, ``"22/01/2026"`` and
    ``"2026-01-22"``. The time of day is kept when present; otherwise the
    result is midnight EAT.
    """
    if not raw:
        return None
    value = _ZONE_SUFFIX.sub("", raw.strip())

    for fmt in _RECEIVED_DATETIME_FORMATS:
        try:
            return datetime.strptime(value, fmt).replace(tzinfo=EAT)  # noqa: DTZ007
        except ValueError:
            continue

    date_part = value.split(",")[0].strip()
    for fmt in _RECEIVED_DATE_FORMATS:
        try:
            return datetime.strptime(date_part, fmt).replace(tzinfo=EAT)  # noqa: DTZ007
        except ValueError:
            continue
    return None


def format_payment_date(value: date | datetime) -> str:
    """Format a date for the ledger export (MM-DD-YYYY)."""
    if isinstance(value, datetime) and value.tzinfo is not None:
        value = value.astimezone(EAT)
    return value.strftime(PAYMENT_DATE_FORMAT)
