"""
Pure domain layer.

Data transfer objects, the normal-balance table and the clock abstraction.
Nothing here touches the database or performs I/O (SystemClock aside).
"""

from ledger_kernel.domain.account_types import (
    AccountType,
    LineSide,
    NormalBalance,
    natural_balance,
    normal_balance_for,
)
from ledger_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from ledger_kernel.domain.dtos import (
    AccountInfo,
    EntryHeader,
    EntryStatus,
    EntryType,
    JournalEntryInfo,
    JournalLineInfo,
    LineSpec,
    PeriodInfo,
    SourceKind,
    SourceRef,
)

__all__ = [
    "AccountType",
    "NormalBalance",
    "LineSide",
    "natural_balance",
    "normal_balance_for",
    "Clock",
    "SystemClock",
    "DeterministicClock",
    "AccountInfo",
    "PeriodInfo",
    "EntryHeader",
    "EntryStatus",
    "EntryType",
    "JournalEntryInfo",
    "JournalLineInfo",
    "LineSpec",
    "SourceKind",
    "SourceRef",
]
