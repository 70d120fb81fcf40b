"""Reconciliation window and channel filtering.

The allocation engine never filters; callers narrow the transaction list to
one window and channel first. Running morning and afternoon windows
separately keeps the same money from being allocated twice in one day.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, time
from typing import TYPE_CHECKING

from invoice_recon.dates import EAT

if TYPE_CHECKING:
    from collections.abc import Iterable

    from invoice_recon.models import Transaction

logger = logging.getLogger(__name__)

ALL_CHANNELS = "all"


def day_window(
    start_date: date,
    end_date: date,
    start_time: time | None = None,
    end_time: time | None = None,
) -> tuple[datetime, datetime]:
    """Build inclusive EAT bounds from calendar dates and optional times.

    Without times the window spans from midnight on ``start_date`` to the
    last microsecond of ``end_date``.
    """
    start = datetime.combine(start_date, start_time or time.min, tzinfo=EAT)
    if end_time is None:
        end_time = time.max
    elif end_time.second == 0 and end_time.microsecond == 0:
        # "23:59" covers the whole minute
        end_time = end_time.replace(second=59, microsecond=999999)
    end = datetime.combine(end_date, end_time, tzinfo=EAT)
    if end < start:
        msg = f"Window end {end.isoformat()} is before start {start.isoformat()}"
        raise ValueError(msg)
    return start, end


def filter_transactions(
    transactions: Iterable[Transaction],
    start: datetime | None = None,
    end: datetime | None = None,
    channel: str | None = None,
) -> list[Transaction]:
    """Keep transactions received inside ``[start, end]`` on ``channel``.

    Once either bound is set, transactions without a parsable received date
    are dropped. A channel of None or ``"all"`` keeps every channel.
    """
    kept: list[Transaction] = []
    for transaction in transactions:
        if start is not None or end is not None:
            received = transaction.received_at
            if received is None:
                continue
            if start is not None and received < start:
                continue
            if end is not None and received > end:
                continue
        if channel and channel != ALL_CHANNELS and transaction.channel != channel:
            continue
        kept.append(transaction)

    logger.info("Window kept %d transactions", len(kept))
    return kept
