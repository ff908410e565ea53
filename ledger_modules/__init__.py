"""Modules built on the ledger kernel."""
