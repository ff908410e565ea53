"""
Ledger Kernel - double-entry bookkeeping core

A transactional ledger with:
- Balanced journal entries against a chart of accounts
- Draft -> posted -> reversed lifecycle with idempotent posting
- Calendar-year accounting periods resolved on demand
- Cached account balances mutated only by posting
"""

__version__ = "0.1.0"
