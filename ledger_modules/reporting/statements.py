"""
Pure report transformation functions.

These functions turn account snapshots and per-account line totals into
report dataclasses.  ZERO I/O.  ZERO side effects.

All monetary values are Decimal.  All inputs/outputs are frozen dataclasses.

Functions in this module follow the ledger_kernel/domain/ purity convention:
- No database access
- No clock access
- No file I/O
- Deterministic: same inputs always produce same outputs
"""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping, Sequence
from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID

from ledger_kernel.db.types import BALANCE_TOLERANCE, ZERO, is_balanced, round_money
from ledger_kernel.domain.account_types import natural_balance, signed_movement
from ledger_kernel.domain.dtos import AccountInfo
from ledger_kernel.selectors.ledger_selector import AccountTotals, LedgerLine
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
    StatementLine,
    StatementSection,
    TrialBalanceReport,
    TrialBalanceRow,
)

# =========================================================================
# Helpers
# =========================================================================


def _totals_for(
    account_id: UUID,
    totals: Mapping[UUID, AccountTotals],
) -> tuple[Decimal, Decimal]:
    found = totals.get(account_id)
    if found is None:
        return ZERO, ZERO
    return found.debit_total, found.credit_total


def account_natural_balance(
    account: AccountInfo,
    totals: Mapping[UUID, AccountTotals],
) -> Decimal:
    """Natural balance of one account over the totals' entry set."""
    debits, credits = _totals_for(account.id, totals)
    return natural_balance(account.account_type, debits, credits)


def summarize(account: AccountInfo) -> AccountSummary:
    return AccountSummary(
        account_id=account.id,
        code=account.code,
        name=account.name,
        account_type=account.account_type,
    )


def build_section(
    label: str,
    accounts: Sequence[AccountInfo],
    totals: Mapping[UUID, AccountTotals],
) -> StatementSection:
    """
    Statement section over ``accounts``.

    Lines are listed only when |balance| > 0.01; the total always covers
    every account.
    """
    lines: list[StatementLine] = []
    total = ZERO
    for account in accounts:
        balance = account_natural_balance(account, totals)
        total += balance
        if abs(balance) > BALANCE_TOLERANCE:
            lines.append(
                StatementLine(
                    account_id=account.id,
                    code=account.code,
                    name=account.name,
                    balance=balance,
                )
            )
    return StatementSection(label=label, lines=tuple(lines), total=total)


# =========================================================================
# Trial balance
# =========================================================================


def build_trial_balance(
    accounts: Sequence[AccountInfo],
    totals: Mapping[UUID, AccountTotals],
    metadata: ReportMetadata,
    start_date: date,
    end_date: date,
    include_zero_balances: bool = False,
) -> TrialBalanceReport:
    """
    Trial balance over ``accounts`` (normally the active chart, by code).

    A row is kept when the account has debits, credits, or a balance
    beyond the tolerance; with ``include_zero_balances`` every account is
    kept.  Grand totals sum the kept rows.
    """
    rows: list[TrialBalanceRow] = []
    total_debits = ZERO
    total_credits = ZERO

    for account in accounts:
        debits, credits = _totals_for(account.id, totals)
        balance = natural_balance(account.account_type, debits, credits)

        has_activity = (
            debits > ZERO or credits > ZERO or abs(balance) > BALANCE_TOLERANCE
        )
        if not has_activity and not include_zero_balances:
            continue

        rows.append(
            TrialBalanceRow(
                account_id=account.id,
                account_code=account.code,
                account_name=account.name,
                account_type=account.account_type,
                debits=debits,
                credits=credits,
                balance=balance,
            )
        )
        total_debits += debits
        total_credits += credits

    return TrialBalanceReport(
        metadata=metadata,
        start_date=start_date,
        end_date=end_date,
        rows=tuple(rows),
        total_debits=total_debits,
        total_credits=total_credits,
        is_balanced=is_balanced(total_debits, total_credits),
    )


# =========================================================================
# Profit and loss / balance sheet
# =========================================================================


def build_profit_and_loss(
    revenue_accounts: Sequence[AccountInfo],
    expense_accounts: Sequence[AccountInfo],
    totals: Mapping[UUID, AccountTotals],
    metadata: ReportMetadata,
    start_date: date,
    end_date: date,
) -> ProfitAndLossReport:
    revenue = build_section("Revenue", revenue_accounts, totals)
    expenses = build_section("Expenses", expense_accounts, totals)
    return ProfitAndLossReport(
        metadata=metadata,
        start_date=start_date,
        end_date=end_date,
        revenue=revenue,
        expenses=expenses,
        total_revenue=revenue.total,
        total_expenses=expenses.total,
        net_income=revenue.total - expenses.total,
    )


def compute_net_income(
    revenue_accounts: Sequence[AccountInfo],
    expense_accounts: Sequence[AccountInfo],
    totals: Mapping[UUID, AccountTotals],
) -> Decimal:
    """Net income = sum(REVENUE natural balances) - sum(EXPENSE natural balances)."""
    revenue = sum(
        (account_natural_balance(a, totals) for a in revenue_accounts), ZERO
    )
    expenses = sum(
        (account_natural_balance(a, totals) for a in expense_accounts), ZERO
    )
    return revenue - expenses


def build_balance_sheet(
    asset_accounts: Sequence[AccountInfo],
    liability_accounts: Sequence[AccountInfo],
    equity_accounts: Sequence[AccountInfo],
    revenue_accounts: Sequence[AccountInfo],
    expense_accounts: Sequence[AccountInfo],
    totals: Mapping[UUID, AccountTotals],
    metadata: ReportMetadata,
    period_start: date,
    as_of_date: date,
) -> BalanceSheetReport:
    """
    Balance sheet with retained earnings folded into equity.

    ``totals`` must cover the window [period_start, as_of_date] for every
    account type, so that net income and the balance-sheet accounts come
    from the same entry set.
    """
    assets = build_section("Assets", asset_accounts, totals)
    liabilities = build_section("Liabilities", liability_accounts, totals)
    equity = build_section("Equity", equity_accounts, totals)

    retained_earnings = compute_net_income(revenue_accounts, expense_accounts, totals)
    total_equity = equity.total + retained_earnings
    total_l_and_e = liabilities.total + total_equity

    return BalanceSheetReport(
        metadata=metadata,
        as_of_date=as_of_date,
        period_start=period_start,
        assets=assets,
        liabilities=liabilities,
        equity=equity,
        retained_earnings=retained_earnings,
        total_assets=assets.total,
        total_liabilities=liabilities.total,
        total_equity=total_equity,
        total_liabilities_and_equity=total_l_and_e,
        is_balanced=is_balanced(assets.total, total_l_and_e),
    )


# =========================================================================
# Account ledger
# =========================================================================


def build_account_ledger(
    account: AccountInfo,
    prior_totals: AccountTotals | None,
    period_totals: AccountTotals | None,
    lines: Sequence[LedgerLine],
    metadata: ReportMetadata,
    start_date: date,
    end_date: date,
) -> AccountLedgerReport:
    """
    Account ledger with running balance.

    opening = natural balance of ``prior_totals`` + account.opening_balance
    Each line moves the running balance by its normal-balance increment;
    closing = opening + natural balance of ``period_totals``.
    """
    prior_debits = prior_totals.debit_total if prior_totals else ZERO
    prior_credits = prior_totals.credit_total if prior_totals else ZERO
    opening = (
        natural_balance(account.account_type, prior_debits, prior_credits)
        + account.opening_balance
    )

    rows: list[AccountLedgerRow] = []
    running = opening
    for line in lines:
        running += signed_movement(account.account_type, line.side, line.amount)
        rows.append(
            AccountLedgerRow(
                entry_id=line.journal_entry_id,
                entry_date=line.entry_date,
                entry_number=line.entry_number,
                entry_type=line.entry_type,
                line_number=line.line_number,
                description=line.description or line.entry_description,
                reference=line.entry_reference,
                side=line.side,
                debit=line.debit,
                credit=line.credit,
                balance=running,
            )
        )

    period_debits = period_totals.debit_total if period_totals else ZERO
    period_credits = period_totals.credit_total if period_totals else ZERO
    closing = opening + natural_balance(
        account.account_type, period_debits, period_credits
    )

    return AccountLedgerReport(
        metadata=metadata,
        account=summarize(account),
        start_date=start_date,
        end_date=end_date,
        opening_balance=opening,
        closing_balance=closing,
        period_debits=period_debits,
        period_credits=period_credits,
        rows=tuple(rows),
    )


# =========================================================================
# Account balance / verification
# =========================================================================


def build_account_balance(
    account: AccountInfo,
    members: Sequence[AccountInfo],
    totals: Mapping[UUID, AccountTotals],
    metadata: ReportMetadata,
    as_of_date: date,
    include_children: bool,
) -> AccountBalanceReport:
    """
    Balance of ``account`` rolled up over ``members`` (the account itself,
    plus its descendants when include_children is set).

    Each member contributes its natural balance under its own type plus
    its opening_balance.
    """
    debit_total = ZERO
    credit_total = ZERO
    opening = ZERO
    balance = ZERO
    for member in members:
        debits, credits = _totals_for(member.id, totals)
        debit_total += debits
        credit_total += credits
        opening += member.opening_balance
        balance += natural_balance(member.account_type, debits, credits)

    return AccountBalanceReport(
        metadata=metadata,
        account=summarize(account),
        as_of_date=as_of_date,
        include_children=include_children,
        account_count=len(members),
        debit_total=debit_total,
        credit_total=credit_total,
        opening_balance=opening,
        balance=balance + opening,
    )


def find_balance_discrepancies(
    accounts: Sequence[AccountInfo],
    raw_posted: Mapping[UUID, Decimal],
    metadata: ReportMetadata,
) -> BalanceVerificationReport:
    """
    Compare each account's cached current_balance with
    opening_balance + (posted debits - posted credits).
    """
    discrepancies: list[BalanceDiscrepancy] = []
    for account in accounts:
        expected = account.opening_balance + raw_posted.get(account.id, ZERO)
        difference = account.current_balance - expected
        if abs(difference) >= BALANCE_TOLERANCE:
            discrepancies.append(
                BalanceDiscrepancy(
                    account_id=account.id,
                    account_code=account.code,
                    cached_balance=account.current_balance,
                    expected_balance=expected,
                    difference=difference,
                )
            )

    return BalanceVerificationReport(
        metadata=metadata,
        accounts_checked=len(accounts),
        discrepancies=tuple(discrepancies),
        is_consistent=not discrepancies,
    )


# =========================================================================
# Rendering
# =========================================================================


def render_to_dict(
    obj: object,
    precision: int | None = None,
) -> dict | list | str | int | float | bool | None:
    """
    Convert any report dataclass to plain data for JSON serialization.

    Handles:
    - Decimal -> str (rounded to ``precision`` places when given)
    - UUID -> str
    - date -> ISO format string
    - Enum -> .value
    - Nested frozen dataclasses -> nested dicts
    - Tuples -> lists
    - None preserved
    """
    if obj is None:
        return None
    if isinstance(obj, Decimal):
        if precision is not None:
            obj = round_money(obj, precision)
        return str(obj)
    if isinstance(obj, UUID):
        return str(obj)
    if isinstance(obj, date):
        return obj.isoformat()
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, (list, tuple)):
        return [render_to_dict(item, precision) for item in obj]
    if isinstance(obj, dict):
        return {str(k): render_to_dict(v, precision) for k, v in obj.items()}
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {
            f.name: render_to_dict(getattr(obj, f.name), precision)
            for f in dataclasses.fields(obj)
        }
    if isinstance(obj, (str, int, float, bool)):
        return obj
    return str(obj)
