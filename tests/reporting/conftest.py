"""
Reporting-specific test fixtures.

Provides:
- A small posted ledger over the standard chart (``sample_ledger``)
- A factory for synthetic AccountInfo snapshots used by pure tests
"""

from datetime import date
from decimal import Decimal
from uuid import UUID, uuid4

import pytest

from ledger_kernel.domain.account_types import AccountType
from ledger_kernel.domain.dtos import AccountInfo, LineSpec


@pytest.fixture
def sample_ledger(post, chart):
    """
    Five posted entries in the first half of 2024.

    Resulting figures through 2024-06-15:
        Cash 1110         9,600.00   Accounts Payable 2110   3,000.00
        Receivable 1120   2,500.00   Capital 3100           10,000.00
        Equipment 1210    3,000.00   Net income              2,100.00
        Sales 4100 800.00, Services 4200 2,500.00, Rent 5220 1,200.00
    """

    def _post(day, debit_code, credit_code, amount, description):
        return post(
            [
                LineSpec.debit(chart[debit_code].id, Decimal(amount)),
                LineSpec.credit(chart[credit_code].id, Decimal(amount)),
            ],
            entry_date=day,
            description=description,
        )

    return {
        "capital": _post(date(2024, 1, 10), "1110", "3100", "10000.00", "Owner investment"),
        "services": _post(date(2024, 2, 1), "1120", "4200", "2500.00", "Consulting invoice"),
        "rent": _post(date(2024, 3, 1), "5220", "1110", "1200.00", "March rent"),
        "equipment": _post(date(2024, 4, 15), "1210", "2110", "3000.00", "Laptops on credit"),
        "sales": _post(date(2024, 5, 20), "1110", "4100", "800.00", "Counter sales"),
    }


def make_account_info(
    code: str,
    account_type: AccountType,
    name: str | None = None,
    account_id: UUID | None = None,
    opening_balance: Decimal = Decimal("0"),
    current_balance: Decimal | None = None,
    is_active: bool = True,
) -> AccountInfo:
    """Factory for AccountInfo used in pure tests."""
    return AccountInfo(
        id=account_id or uuid4(),
        code=code,
        name=name or f"Account {code}",
        account_type=account_type,
        parent_id=None,
        level=0,
        is_active=is_active,
        is_system=False,
        opening_balance=opening_balance,
        current_balance=opening_balance if current_balance is None else current_balance,
        currency="USD",
        sort_order=0,
    )
