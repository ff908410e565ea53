"""ORM models for the ledger kernel."""

from ledger_kernel.models.account import Account, AccountType, NormalBalance
from ledger_kernel.models.accounting_period import AccountingPeriod
from ledger_kernel.models.journal import (
    JournalEntry,
    JournalEntryLine,
    JournalEntryStatus,
    JournalEntryType,
    LineSide,
)
from ledger_kernel.models.sequence_counter import SequenceCounter

__all__ = [
    "Account",
    "AccountType",
    "NormalBalance",
    "AccountingPeriod",
    "JournalEntry",
    "JournalEntryLine",
    "JournalEntryStatus",
    "JournalEntryType",
    "LineSide",
    "SequenceCounter",
]
