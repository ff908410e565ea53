"""Write-side services for the ledger kernel.  Services flush, never commit."""

from ledger_kernel.services.chart_service import AccountSeed, ChartService, SeedResult
from ledger_kernel.services.ledger_service import LedgerService
from ledger_kernel.services.period_service import PeriodService
from ledger_kernel.services.sequence_service import SequenceService

__all__ = [
    "AccountSeed",
    "ChartService",
    "SeedResult",
    "LedgerService",
    "PeriodService",
    "SequenceService",
]
