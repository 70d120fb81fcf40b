"""Tests for invoice_recon.dates."""

from __future__ import annotations

from datetime import UTC, date, datetime

import pytest

from invoice_recon.dates import (
    EAT,
    format_payment_date,
    parse_invoice_date,
    parse_received_date,
)


class TestParseInvoiceDate:
    """Tests for parse_invoice_date()."""

    @pytest.mark.parametrize(
        "raw",
        ["01/15/2026", "2026-01-15", "01-15-2026", "15 Jan 2026", "15 January 2026"],
    )
    def test_known_layouts(self, raw: str) -> None:
        assert parse_invoice_date(raw) == date(2026, 1, 15)

    def test_surrounding_whitespace(self) -> None:
        assert parse_invoice_date("  01/15/2026 ") == date(2026, 1, 15)

    @pytest.mark.parametrize("raw", [None, "", "soon", "13/45/2026"])
    def test_unparseable_is_none(self, raw: str | None) -> None:
        assert parse_invoice_date(raw) is None


class TestParseReceivedDate:
    """Tests for parse_received_date()."""

    def test_sheet_timestamp_with_zone(self) -> None:
        result = parse_received_date("22 Jan 2026, 06:23 pm (EAT)")
        assert result == datetime(2026, 1, 22, 18, 23, tzinfo=EAT)

    def test_full_month_name(self) -> None:
        result = parse_received_date("22 January 2026, 08:05 AM")
        assert result == datetime(2026, 1, 22, 8, 5, tzinfo=EAT)

    def test_day_first_date_only(self) -> None:
        assert parse_received_date("22/01/2026") == datetime(2026, 1, 22, tzinfo=EAT)

    def test_iso_date_only(self) -> None:
        assert parse_received_date("2026-01-22") == datetime(2026, 1, 22, tzinfo=EAT)

    def test_unknown_time_keeps_date(self) -> None:
        result = parse_received_date("22 Jan 2026, late evening")
        assert result == datetime(2026, 1, 22, tzinfo=EAT)

    def test_result_is_timezone_aware(self) -> None:
        result = parse_received_date("22 Jan 2026, 06:23 pm (EAT)")
        assert result is not None
        assert result.utcoffset() == EAT.utcoffset(None)

    @pytest.mark.parametrize("raw", [None, "", "pending"])
    def test_unparseable_is_none(self, raw: str | None) -> None:
        assert parse_received_date(raw) is None


class TestFormatPaymentDate:
    """Tests for format_payment_date()."""

    def test_date(self) -> None:
        assert format_payment_date(date(2026, 1, 5)) == "01-05-2026"

    def test_aware_datetime_converted_to_eat(self) -> None:
        value = datetime(2026, 1, 21, 22, 30, tzinfo=UTC)
        assert format_payment_date(value) == "01-22-2026"

    def test_naive_datetime_used_as_is(self) -> None:
        value = datetime(2026, 1, 21, 22, 30)  # noqa: DTZ001
        assert format_payment_date(value) == "01-21-2026"
