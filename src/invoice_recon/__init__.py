"""Invoice-to-mobile-money payment reconciliation."""
