"""
Ledger Reporting Module (``ledger_modules.reporting``).

Responsibility
--------------
Read-only module that derives reports from the posted journal: trial
balance, profit and loss, balance sheet, account ledger with running
balance, single-account balance with hierarchy roll-up, and a check of
the cached account balances.

Architecture position
---------------------
**Modules layer** -- read-only.  All statement logic is implemented as
pure functions in ``statements.py``; ``ReportingService`` loads data
through kernel selectors and hands it to them.

Invariants enforced
-------------------
* No journal entries are created or modified by this module.
* Report figures derive from journal lines; ``Account.current_balance``
  is only ever compared against them, never used as a source.
"""

from ledger_modules.reporting.config import ReportingConfig
from ledger_modules.reporting.models import (
    AccountBalanceReport,
    AccountLedgerReport,
    AccountLedgerRow,
    AccountSummary,
    BalanceDiscrepancy,
    BalanceSheetReport,
    BalanceVerificationReport,
    ProfitAndLossReport,
    ReportMetadata,
    ReportType,
    StatementLine,
    StatementSection,
    TrialBalanceReport,
    TrialBalanceRow,
)
from ledger_modules.reporting.service import ReportingService
from ledger_modules.reporting.statements import render_to_dict

__all__ = [
    # Service
    "ReportingService",
    # Config
    "ReportingConfig",
    # Models
    "ReportType",
    "ReportMetadata",
    "AccountSummary",
    "TrialBalanceRow",
    "TrialBalanceReport",
    "StatementLine",
    "StatementSection",
    "ProfitAndLossReport",
    "BalanceSheetReport",
    "AccountLedgerRow",
    "AccountLedgerReport",
    "AccountBalanceReport",
    "BalanceDiscrepancy",
    "BalanceVerificationReport",
    # Rendering
    "render_to_dict",
]
