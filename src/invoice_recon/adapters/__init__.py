"""Invoice and transaction source adapters."""
