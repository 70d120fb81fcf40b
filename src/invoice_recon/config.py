"""Configuration via environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

from invoice_recon.engine import DEFAULT_DEPOSIT_ACCOUNT
from invoice_recon.exceptions import ConfigurationError

load_dotenv()

DEFAULT_TABS: dict[str, str] = {
    "DEV-BODA_LEDGER": "boda",
    "DEV-IPHONE_MIXX": "iphone",
    "DEV-LIPA_MIXX": "lipa",
}


@dataclass(frozen=True)
class SheetsConfig:
    """Google Sheets ledger configuration.

    ``tabs`` maps worksheet titles to the channel name their rows carry.
    """

    spreadsheet_id: str
    service_account_file: Path | None = None
    tabs: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_TABS))


def get_sheets_config() -> SheetsConfig:
    """Build Sheets configuration from environment variables.

    Required: SHEETS_SPREADSHEET_ID
    Optional: GOOGLE_SERVICE_ACCOUNT_FILE (default: gspread's own lookup),
    SHEETS_TABS as ``TITLE:channel,TITLE:channel``
    """
    spreadsheet_id = os.environ.get("SHEETS_SPREADSHEET_ID")
    if not spreadsheet_id:
        msg = "SHEETS_SPREADSHEET_ID environment variable is required"
        raise ConfigurationError(msg)

    account = os.environ.get("GOOGLE_SERVICE_ACCOUNT_FILE")
    tabs_str = os.environ.get("SHEETS_TABS")

    return SheetsConfig(
        spreadsheet_id=spreadsheet_id,
        service_account_file=Path(account) if account else None,
        tabs=parse_tabs(tabs_str) if tabs_str else dict(DEFAULT_TABS),
    )


def parse_tabs(value: str) -> dict[str, str]:
    """Parse ``TITLE:channel`` pairs separated by commas."""
    tabs: dict[str, str] = {}
    for item in value.split(","):
        if not item.strip():
            continue
        title, sep, channel = item.partition(":")
        if not sep or not title.strip() or not channel.strip():
            msg = f"Invalid SHEETS_TABS entry {item.strip()!r}, expected TITLE:channel"
            raise ConfigurationError(msg)
        tabs[title.strip()] = channel.strip()
    return tabs


def get_deposit_account() -> str:
    """Return the deposit account written on every ledger line."""
    return os.environ.get("DEPOSIT_ACCOUNT_NAME", DEFAULT_DEPOSIT_ACCOUNT)


def get_store_path() -> Path:
    """Return the LEDGER_STORE_PATH, defaulting to ./data/ledgers.

    Always resolves to an absolute path to avoid issues if the
    working directory changes during execution.
    """
    return Path(os.environ.get("LEDGER_STORE_PATH", "./data/ledgers")).resolve()


def get_log_level() -> str:
    """Return the LOG_LEVEL, defaulting to INFO."""
    return os.environ.get("LOG_LEVEL", "INFO").upper()
