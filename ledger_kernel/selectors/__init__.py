"""Read-only selectors over the chart, the journal and the posted ledger."""

from ledger_kernel.selectors.account_selector import AccountSelector
from ledger_kernel.selectors.journal_selector import JournalSelector
from ledger_kernel.selectors.ledger_selector import (
    AccountTotals,
    LedgerLine,
    LedgerSelector,
)

__all__ = [
    "AccountSelector",
    "JournalSelector",
    "LedgerSelector",
    "AccountTotals",
    "LedgerLine",
]
