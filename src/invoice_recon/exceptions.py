"""Exception hierarchy for invoice-recon."""

from __future__ import annotations


class ReconError(Exception):
    """Base exception for all invoice-recon errors."""


class InvalidInputError(ReconError, ValueError):
    """Raised when engine input violates the caller contract."""


class SourceError(ReconError):
    """Raised when an invoice or transaction source cannot be read."""


class ConfigurationError(ReconError, ValueError):
    """Raised when required configuration is missing or malformed."""
