"""Tests for invoice_recon.store."""

from __future__ import annotations

from datetime import date, time
from typing import TYPE_CHECKING

from invoice_recon.store import LedgerStore, LocalLedgerStore, window_label

if TYPE_CHECKING:
    from pathlib import Path

CSV_TEXT = "Payment Date,Customer\r\n01-22-2026,Alice\r\n"


class TestLocalLedgerStore:
    """Tests for LocalLedgerStore."""

    def test_satisfies_protocol(self, store_root: Path) -> None:
        store: LedgerStore = LocalLedgerStore(store_root)
        assert store.exists("missing.csv") is False

    def test_save_creates_year_month_directories(self, store_root: Path) -> None:
        store = LocalLedgerStore(store_root)
        store.save(date(2026, 1, 22), "Kijichi Collection AC", CSV_TEXT)

        assert (store_root / "2026" / "01").is_dir()

    def test_save_returns_relative_path(self, store_root: Path) -> None:
        store = LocalLedgerStore(store_root)
        result = store.save(date(2026, 1, 22), "Kijichi Collection AC", CSV_TEXT)

        assert result == "2026/01/2026-01-22__kijichi-collection-ac.csv"

    def test_save_writes_csv_unchanged(self, store_root: Path) -> None:
        store = LocalLedgerStore(store_root)
        result = store.save(date(2026, 1, 22), "Main", CSV_TEXT)

        assert (store_root / result).read_bytes() == CSV_TEXT.encode("utf-8")

    def test_account_slug_max_length(self, store_root: Path) -> None:
        store = LocalLedgerStore(store_root)
        long_account = (
            "A Very Long Deposit Account Name That Exceeds The Maximum Slug Length"
        )
        result = store.save(date(2026, 1, 1), long_account, CSV_TEXT)

        # Format: YYYY-MM-DD__slug.csv
        slug = result.split("/")[-1].split("__")[1].removesuffix(".csv")
        assert len(slug) <= 50

    def test_empty_slug_falls_back(self, store_root: Path) -> None:
        store = LocalLedgerStore(store_root)
        result = store.save(date(2026, 1, 1), "***", CSV_TEXT)

        assert result == "2026/01/2026-01-01__ledger.csv"

    def test_repeated_runs_get_suffixes(self, store_root: Path) -> None:
        store = LocalLedgerStore(store_root)
        d = date(2026, 1, 22)

        morning = store.save(d, "Main", "first")
        afternoon = store.save(d, "Main", "second")
        evening = store.save(d, "Main", "third")

        assert morning == "2026/01/2026-01-22__main.csv"
        assert afternoon == "2026/01/2026-01-22__main_2.csv"
        assert evening == "2026/01/2026-01-22__main_3.csv"
        assert (store_root / morning).read_text(encoding="utf-8") == "first"
        assert (store_root / afternoon).read_text(encoding="utf-8") == "second"

    def test_partial_day_window_in_filename(self, store_root: Path) -> None:
        store = LocalLedgerStore(store_root)
        d = date(2026, 1, 22)

        morning = store.save(d, "Main", "am", window=(time(0, 0), time(12, 0)))
        afternoon = store.save(d, "Main", "pm", window=(time(12, 1), time.max))

        assert morning == "2026/01/2026-01-22__main__0000-1200.csv"
        assert afternoon == "2026/01/2026-01-22__main__1201-2359.csv"
        assert (store_root / morning).read_text(encoding="utf-8") == "am"
        assert (store_root / afternoon).read_text(encoding="utf-8") == "pm"

    def test_rerun_of_same_window_gets_suffix(self, store_root: Path) -> None:
        store = LocalLedgerStore(store_root)
        window = (time(0, 0), time(12, 0))

        store.save(date(2026, 1, 22), "Main", "first", window=window)
        rerun = store.save(date(2026, 1, 22), "Main", "second", window=window)

        assert rerun == "2026/01/2026-01-22__main__0000-1200_2.csv"

    def test_get_path(self, store_root: Path) -> None:
        store = LocalLedgerStore(store_root)
        relative = "2026/01/2026-01-22__main.csv"

        assert store.get_path(relative) == store_root / relative

    def test_exists_true(self, store_root: Path) -> None:
        store = LocalLedgerStore(store_root)
        relative = store.save(date(2026, 1, 1), "Main", CSV_TEXT)

        assert store.exists(relative) is True

    def test_account_path_traversal_sanitized(self, store_root: Path) -> None:
        store = LocalLedgerStore(store_root)
        result = store.save(date(2026, 1, 1), "../../etc/passwd", CSV_TEXT)

        assert ".." not in result
        full_path = store.get_path(result)
        assert str(full_path).startswith(str(store_root))


class TestWindowLabel:
    """Tests for window_label()."""

    def test_formats_hours_and_minutes(self) -> None:
        assert window_label(time(6, 5), time(18, 30)) == "0605-1830"

    def test_whole_day(self) -> None:
        assert window_label(time.min, time.max) == "0000-2359"
