"""CLI entry point for invoice-recon."""

from __future__ import annotations

import logging
from datetime import datetime, time
from pathlib import Path
from typing import TYPE_CHECKING, Any, TypeVar

import click

from invoice_recon.adapters.invoices import CsvInvoiceSource
from invoice_recon.adapters.sheets import CsvTransactionSource, SheetsTransactionSource
from invoice_recon.config import (
    get_deposit_account,
    get_log_level,
    get_sheets_config,
    get_store_path,
)
from invoice_recon.dates import EAT
from invoice_recon.engine import allocate_payments
from invoice_recon.exceptions import ReconError
from invoice_recon.filters import ALL_CHANNELS, day_window, filter_transactions
from invoice_recon.ledger import render_csv, summarize
from invoice_recon.store import LocalLedgerStore

if TYPE_CHECKING:
    from collections.abc import Callable

    from invoice_recon.adapters.base import TransactionSource
    from invoice_recon.ledger import LedgerSummary
    from invoice_recon.models import Transaction

logger = logging.getLogger(__name__)

_DATE = click.DateTime(formats=["%Y-%m-%d"])
_TIME = click.DateTime(formats=["%H:%M"])

F = TypeVar("F", bound="Callable[..., Any]")


def _parse_transaction_files(
    _ctx: click.Context, _param: click.Parameter, values: tuple[str, ...]
) -> list[tuple[str, Path]]:
    parsed: list[tuple[str, Path]] = []
    for value in values:
        channel, sep, path = value.partition("=")
        if not sep or not channel or not path:
            msg = f"expected CHANNEL=CSV, got {value!r}"
            raise click.BadParameter(msg)
        parsed.append((channel, Path(path)))
    return parsed


def _window_options(func: F) -> F:
    """Attach the transaction source and window options shared by commands."""
    options = [
        click.option(
            "--transactions",
            "transaction_files",
            multiple=True,
            metavar="CHANNEL=CSV",
            callback=_parse_transaction_files,
            help="Ledger tab exported as CSV; repeatable.",
        ),
        click.option(
            "--sheets", is_flag=True, help="Fetch transactions from Google Sheets."
        ),
        click.option("--start", type=_DATE, help="First day of the window."),
        click.option("--end", type=_DATE, help="Last day of the window."),
        click.option("--start-time", type=_TIME, help="Window start time (HH:MM)."),
        click.option("--end-time", type=_TIME, help="Window end time (HH:MM)."),
        click.option(
            "--channel",
            default=ALL_CHANNELS,
            show_default=True,
            help="Only use transactions from this channel.",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


@click.group()
@click.option(
    "--log-level", default=None, help="Log level (default: LOG_LEVEL or INFO)."
)
def cli(log_level: str | None) -> None:
    """Invoice reconciliation: allocate mobile-money payments to invoices."""
    logging.basicConfig(
        level=(log_level or get_log_level()).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@click.option(
    "--invoices",
    "invoices_path",
    required=True,
    type=click.Path(dir_okay=False, path_type=Path),
    help="QuickBooks invoice CSV export.",
)
@_window_options
@click.option(
    "--output",
    type=click.Path(dir_okay=False, writable=True, path_type=Path),
    help="Write the ledger CSV here.",
)
@click.option("--store", is_flag=True, help="Save the ledger CSV to the ledger store.")
@click.option(
    "--upper-case-names", is_flag=True, help="Upper-case customer names on export."
)
def allocate(
    invoices_path: Path,
    transaction_files: list[tuple[str, Path]],
    sheets: bool,
    start: datetime | None,
    end: datetime | None,
    start_time: datetime | None,
    end_time: datetime | None,
    channel: str,
    output: Path | None,
    store: bool,
    upper_case_names: bool,
) -> None:
    """Allocate a window of transactions to invoices and export the ledger."""
    if output is not None and store:
        msg = "--output and --store are mutually exclusive"
        raise click.UsageError(msg)

    try:
        loaded = CsvInvoiceSource(invoices_path).load_invoices()
        window = _load_window(
            transaction_files, sheets, start, end, start_time, end_time, channel
        )
        account = get_deposit_account()
        result = allocate_payments(loaded, window, deposit_account=account)
    except ReconError as exc:
        raise click.ClickException(str(exc)) from exc

    csv_text = render_csv(result.records, upper_case_names=upper_case_names)
    if output is not None:
        output.write_text(csv_text, encoding="utf-8", newline="")
        click.echo(f"Wrote {len(result.records)} ledger lines to {output}", err=True)
    elif store:
        ledger_store = LocalLedgerStore(get_store_path())
        run_date = end.date() if end is not None else datetime.now(tz=EAT).date()
        relative = ledger_store.save(
            run_date,
            account,
            csv_text,
            window=_time_window(start_time, end_time),
        )
        click.echo(f"Saved ledger to {ledger_store.get_path(relative)}", err=True)
    else:
        click.echo(csv_text, nl=False)

    _echo_summary(summarize(result.records))


@cli.command()
@_window_options
def transactions(
    transaction_files: list[tuple[str, Path]],
    sheets: bool,
    start: datetime | None,
    end: datetime | None,
    start_time: datetime | None,
    end_time: datetime | None,
    channel: str,
) -> None:
    """List the transactions inside a window."""
    try:
        window = _load_window(
            transaction_files, sheets, start, end, start_time, end_time, channel
        )
    except ReconError as exc:
        raise click.ClickException(str(exc)) from exc

    for transaction in window:
        click.echo(
            "\t".join(
                [
                    transaction.received_label or "-",
                    transaction.channel or "-",
                    transaction.display_name or "-",
                    str(transaction.amount) if transaction.amount is not None else "-",
                    transaction.effective_id,
                ]
            )
        )
    click.echo(f"{len(window)} transactions", err=True)


@cli.command()
@click.argument("invoices_path", type=click.Path(dir_okay=False, path_type=Path))
def invoices(invoices_path: Path) -> None:
    """List the invoices in a QuickBooks CSV export."""
    try:
        loaded = CsvInvoiceSource(invoices_path).load_invoices()
    except ReconError as exc:
        raise click.ClickException(str(exc)) from exc

    for invoice in loaded:
        click.echo(
            "\t".join(
                [
                    invoice.invoice_number,
                    invoice.invoice_date_raw or "-",
                    invoice.customer_name or "-",
                    str(invoice.amount),
                ]
            )
        )
    total = sum((invoice.amount for invoice in loaded), start=0)
    click.echo(f"{len(loaded)} invoices totalling {total}", err=True)


def _load_window(
    transaction_files: list[tuple[str, Path]],
    sheets: bool,
    start: datetime | None,
    end: datetime | None,
    start_time: datetime | None,
    end_time: datetime | None,
    channel: str,
) -> list[Transaction]:
    if (start is None) != (end is None):
        msg = "--start and --end must be given together"
        raise click.UsageError(msg)

    sources: list[TransactionSource] = [
        CsvTransactionSource(path, name) for name, path in transaction_files
    ]
    if sheets:
        sources.append(SheetsTransactionSource(get_sheets_config()))
    if not sources:
        msg = "Provide --transactions CHANNEL=CSV or --sheets"
        raise click.UsageError(msg)

    fetched: list[Transaction] = []
    for source in sources:
        fetched.extend(source.fetch_transactions())

    if start is None or end is None:
        return filter_transactions(fetched, channel=channel)

    try:
        window_start, window_end = day_window(
            start.date(),
            end.date(),
            start_time.time() if start_time else None,
            end_time.time() if end_time else None,
        )
    except ValueError as exc:
        raise click.BadParameter(str(exc), param_hint="--end") from exc
    logger.info("Window %s to %s", window_start.isoformat(), window_end.isoformat())
    return filter_transactions(fetched, window_start, window_end, channel)


def _time_window(
    start_time: datetime | None, end_time: datetime | None
) -> tuple[time, time] | None:
    """Return the time-of-day span of a partial-day run, or None for whole days."""
    if start_time is None and end_time is None:
        return None
    return (
        start_time.time() if start_time else time.min,
        end_time.time() if end_time else time.max,
    )


def _echo_summary(summary: LedgerSummary) -> None:
    click.echo(
        f"Invoices: {summary.invoices} "
        f"(paid {summary.paid_invoices}, partial {summary.partial_invoices}, "
        f"unpaid {summary.unpaid_invoices})",
        err=True,
    )
    click.echo(f"Allocated: {summary.total_allocated}", err=True)
    click.echo(
        f"Unused: {summary.unused_count} transactions, {summary.total_unused}",
        err=True,
    )
