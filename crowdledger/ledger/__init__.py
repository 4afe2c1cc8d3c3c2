"""Ledger module: campaign store, contribution ledger, counters and queries."""
