"""Ledger export store abstraction and local filesystem implementation."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

from slugify import slugify

if TYPE_CHECKING:
    from datetime import date, time
    from pathlib import Path

    TimeWindow = tuple[time, time]


class LedgerStore(Protocol):
    """Protocol for ledger export storage backends."""

    def save(
        self,
        run_date: date,
        account_name: str,
        csv_text: str,
        *,
        window: TimeWindow | None = None,
    ) -> str: ...

    def get_path(self, relative_path: str) -> Path: ...

    def exists(self, relative_path: str) -> bool: ...


class LocalLedgerStore:
    """Local filesystem implementation of LedgerStore.

    Directory layout: {root}/{YYYY}/{MM}/{YYYY-MM-DD}__{account}[__{HHMM-HHMM}].csv

    The time suffix is present when the run covered part of a day, so the
    morning and afternoon ledgers of one date sit side by side.
    """

    def __init__(self, root: Path) -> None:
        self.root = root

    def save(
        self,
        run_date: date,
        account_name: str,
        csv_text: str,
        *,
        window: TimeWindow | None = None,
    ) -> str:
        """Write a ledger export and return its path relative to the store root."""
        month_dir = self.root / str(run_date.year) / f"{run_date.month:02d}"
        month_dir.mkdir(parents=True, exist_ok=True)

        stem = f"{run_date.isoformat()}__{self._slugify_account(account_name)}"
        if window is not None:
            stem += f"__{window_label(*window)}"

        # Reruns of the same window never overwrite an earlier export
        target = month_dir / f"{stem}.csv"
        attempt = 1
        while target.exists():
            attempt += 1
            target = month_dir / f"{stem}_{attempt}.csv"

        target.write_text(csv_text, encoding="utf-8", newline="")
        return target.relative_to(self.root).as_posix()

    def get_path(self, relative_path: str) -> Path:
        """Resolve a store-relative path against the root."""
        return self.root / relative_path

    def exists(self, relative_path: str) -> bool:
        """Whether an export is present at the store-relative path."""
        return self.get_path(relative_path).is_file()

    @staticmethod
    def _slugify_account(account_name: str) -> str:
        """Slug for the deposit account, max 50 chars, "ledger" when empty."""
        return str(slugify(account_name, max_length=50)) or "ledger"


def window_label(start: time, end: time) -> str:
    """Render a time-of-day window as ``HHMM-HHMM``."""
    return f"{start:%H%M}-{end:%H%M}"
