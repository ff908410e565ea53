"""
Financial Reporting Domain Models (``ledger_modules.reporting.models``).

Responsibility
--------------
Frozen dataclass value objects representing report outputs: trial
balance, profit and loss, balance sheet, account ledger, single-account
balance and the cached-balance verification report.

Architecture position
---------------------
**Modules layer** -- pure data definitions with ZERO I/O.  Built by the
functions in ``statements.py`` and returned by ``ReportingService``.

Invariants enforced
-------------------
* All models are ``frozen=True`` (immutable after construction).
* All monetary fields use ``Decimal`` -- NEVER ``float``.

Audit relevance
---------------
``ReportMetadata`` carries the generation timestamp and parameters so a
report can be reproduced from the journal.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID

from ledger_kernel.domain.account_types import AccountType, LineSide
from ledger_kernel.domain.dtos import EntryType


# =========================================================================
# Enums
# =========================================================================


class ReportType(str, Enum):
    """Types of ledger reports."""

    TRIAL_BALANCE = "trial_balance"
    PROFIT_AND_LOSS = "profit_and_loss"
    BALANCE_SHEET = "balance_sheet"
    ACCOUNT_LEDGER = "account_ledger"
    ACCOUNT_BALANCE = "account_balance"
    BALANCE_VERIFICATION = "balance_verification"


# =========================================================================
# Report Metadata (common to all reports)
# =========================================================================


@dataclass(frozen=True)
class ReportMetadata:
    """Metadata attached to every report."""

    report_type: ReportType
    entity_name: str
    currency: str
    generated_at: str  # ISO format timestamp from injected clock
    start_date: date | None = None
    end_date: date | None = None
    as_of_date: date | None = None


@dataclass(frozen=True)
class AccountSummary:
    """Identifying fields of the account a report is about."""

    account_id: UUID
    code: str
    name: str
    account_type: AccountType


# =========================================================================
# Trial Balance
# =========================================================================


@dataclass(frozen=True)
class TrialBalanceRow:
    """One account in the trial balance."""

    account_id: UUID
    account_code: str
    account_name: str
    account_type: AccountType
    debits: Decimal
    credits: Decimal
    balance: Decimal  # natural-balance adjusted


@dataclass(frozen=True)
class TrialBalanceReport:
    metadata: ReportMetadata
    start_date: date
    end_date: date
    rows: tuple[TrialBalanceRow, ...]
    total_debits: Decimal
    total_credits: Decimal
    is_balanced: bool  # |total_debits - total_credits| < 0.01


# =========================================================================
# Statements (P&L, balance sheet)
# =========================================================================


@dataclass(frozen=True)
class StatementLine:
    account_id: UUID
    code: str
    name: str
    balance: Decimal


@dataclass(frozen=True)
class StatementSection:
    """
    One block of a statement (e.g. Revenue).

    ``total`` covers every account of the section's type, including those
    whose balance is too small to be listed in ``lines``.
    """

    label: str
    lines: tuple[StatementLine, ...]
    total: Decimal


@dataclass(frozen=True)
class ProfitAndLossReport:
    """
    Profit and loss statement.

    net_income = total_revenue - total_expenses
    """

    metadata: ReportMetadata
    start_date: date
    end_date: date
    revenue: StatementSection
    expenses: StatementSection
    total_revenue: Decimal
    total_expenses: Decimal
    net_income: Decimal


@dataclass(frozen=True)
class BalanceSheetReport:
    """
    Balance sheet as of a date.

    Balances run from the first day of the as-of year.  Retained earnings
    (net income over the same window) are folded into total_equity, so
    total_assets == total_liabilities + total_equity for a balanced ledger.
    """

    metadata: ReportMetadata
    as_of_date: date
    period_start: date
    assets: StatementSection
    liabilities: StatementSection
    equity: StatementSection
    retained_earnings: Decimal
    total_assets: Decimal
    total_liabilities: Decimal
    total_equity: Decimal
    total_liabilities_and_equity: Decimal
    is_balanced: bool


# =========================================================================
# Account Ledger
# =========================================================================


@dataclass(frozen=True)
class AccountLedgerRow:
    """One line in an account ledger with the running balance after it."""

    entry_id: UUID
    entry_date: date
    entry_number: str
    entry_type: EntryType
    line_number: int
    description: str
    reference: str | None
    side: LineSide
    debit: Decimal
    credit: Decimal
    balance: Decimal


@dataclass(frozen=True)
class AccountLedgerReport:
    metadata: ReportMetadata
    account: AccountSummary
    start_date: date
    end_date: date
    opening_balance: Decimal
    closing_balance: Decimal
    period_debits: Decimal
    period_credits: Decimal
    rows: tuple[AccountLedgerRow, ...]


# =========================================================================
# Account balance and cache verification
# =========================================================================


@dataclass(frozen=True)
class AccountBalanceReport:
    """
    Balance of one account as of a date, optionally rolled up over its
    descendants in the account hierarchy.
    """

    metadata: ReportMetadata
    account: AccountSummary
    as_of_date: date
    include_children: bool
    account_count: int
    debit_total: Decimal
    credit_total: Decimal
    opening_balance: Decimal
    balance: Decimal


@dataclass(frozen=True)
class BalanceDiscrepancy:
    """An account whose cached current_balance disagrees with its lines."""

    account_id: UUID
    account_code: str
    cached_balance: Decimal
    expected_balance: Decimal
    difference: Decimal  # cached - expected


@dataclass(frozen=True)
class BalanceVerificationReport:
    metadata: ReportMetadata
    accounts_checked: int
    discrepancies: tuple[BalanceDiscrepancy, ...]
    is_consistent: bool
