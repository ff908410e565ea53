"""
Config → Kernel Bridges.

Functions that convert ``LedgerSettings`` parts into kernel-compatible
inputs.  They live in ledger_config (the producer) because the kernel
never imports ledger_config.

Usage:
    from ledger_config.bridges import build_account_seeds

    settings = get_active_settings()
    ChartService(session).seed_chart(build_account_seeds(settings), actor_id)
"""

from __future__ import annotations

from ledger_config.schema import ChartAccountDef, LedgerSettings
from ledger_kernel.services.chart_service import AccountSeed


def to_account_seed(account: ChartAccountDef) -> AccountSeed:
    return AccountSeed(
        code=account.code,
        name=account.name,
        account_type=account.account_type,
        parent_code=account.parent_code,
        description=account.description,
        sort_order=account.sort_order,
        is_system=account.is_system,
        opening_balance=account.opening_balance,
        currency=account.currency,
    )


def build_account_seeds(settings: LedgerSettings) -> tuple[AccountSeed, ...]:
    """Chart of accounts from settings, in file order."""
    return tuple(to_account_seed(a) for a in settings.chart_of_accounts)
