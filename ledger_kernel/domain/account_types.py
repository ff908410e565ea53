"""
Account types -- the normal-balance rule as data.

Responsibility:
    Defines the closed set of account types, the two entry sides, and the
    single table that says which side increases each account type.  Every
    sign decision in the ledger (running balances, statement totals,
    hierarchy roll-ups) goes through the functions in this module.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.  Imported by models,
    selectors, services and the reporting module.

Invariants enforced:
    - NORMAL_BALANCE covers every AccountType member.  The check runs at
      import time, so adding a type without deciding its normal side fails
      immediately instead of silently falling through a default branch.
    - ASSET and EXPENSE are debit-normal; LIABILITY, EQUITY and REVENUE are
      credit-normal.

Failure modes:
    - RuntimeError at import if NORMAL_BALANCE is incomplete.
    - ValueError when a string does not name a known account type or side.

Audit relevance:
    Statements are only comparable across periods if the sign convention is
    fixed.  Centralizing it here means report code never re-derives it.
"""

from decimal import Decimal
from enum import Enum


class AccountType(str, Enum):
    """Types of accounts in the chart of accounts."""

    ASSET = "asset"
    LIABILITY = "liability"
    EQUITY = "equity"
    REVENUE = "revenue"
    EXPENSE = "expense"


class NormalBalance(str, Enum):
    """Side on which an account type increases."""

    DEBIT = "debit"
    CREDIT = "credit"


class LineSide(str, Enum):
    """
    Which side of the entry a line is on.

    Contract:
        Exactly two values: DEBIT and CREDIT.
    """

    DEBIT = "debit"
    CREDIT = "credit"


NORMAL_BALANCE: dict[AccountType, NormalBalance] = {
    AccountType.ASSET: NormalBalance.DEBIT,
    AccountType.EXPENSE: NormalBalance.DEBIT,
    AccountType.LIABILITY: NormalBalance.CREDIT,
    AccountType.EQUITY: NormalBalance.CREDIT,
    AccountType.REVENUE: NormalBalance.CREDIT,
}


def _check_exhaustive() -> None:
    missing = set(AccountType) - set(NORMAL_BALANCE)
    if missing:
        names = ", ".join(sorted(m.name for m in missing))
        raise RuntimeError(f"NORMAL_BALANCE has no entry for: {names}")


_check_exhaustive()


def normal_balance_for(account_type: AccountType | str) -> NormalBalance:
    """Return the normal balance side for an account type."""
    return NORMAL_BALANCE[AccountType(account_type)]


def increases_with_debit(account_type: AccountType | str) -> bool:
    """True for debit-normal types (ASSET, EXPENSE)."""
    return normal_balance_for(account_type) is NormalBalance.DEBIT


def increases_with_credit(account_type: AccountType | str) -> bool:
    """True for credit-normal types (LIABILITY, EQUITY, REVENUE)."""
    return normal_balance_for(account_type) is NormalBalance.CREDIT


def natural_balance(
    account_type: AccountType | str,
    debits: Decimal,
    credits: Decimal,
) -> Decimal:
    """
    Balance in the account's natural sign.

    Debit-normal: debits - credits.  Credit-normal: credits - debits.
    A positive result means the account carries its usual balance.
    """
    if increases_with_debit(account_type):
        return debits - credits
    return credits - debits


def signed_movement(
    account_type: AccountType | str,
    side: LineSide | str,
    amount: Decimal,
) -> Decimal:
    """
    Running-balance increment for one line under the normal-balance rule.

    A debit to a debit-normal account (or a credit to a credit-normal
    account) increases the balance; the opposite side decreases it.
    """
    if LineSide(side) is LineSide.DEBIT:
        return natural_balance(account_type, amount, Decimal("0"))
    return natural_balance(account_type, Decimal("0"), amount)


def raw_signed_amount(side: LineSide | str, amount: Decimal) -> Decimal:
    """
    Type-independent signed amount: +amount for debit, -amount for credit.

    This is the delta applied to Account.current_balance at posting.
    """
    if LineSide(side) is LineSide.DEBIT:
        return amount
    return -amount
