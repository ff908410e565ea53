"""
Ledger settings schema.

Frozen dataclasses describing one deployment of the ledger: where the
database lives, how loud logging is, which accounts the integration
adapters post to, reporting defaults, and the chart of accounts to seed.

YAML files are parsed into these types by ``ledger_config.loader``; the
kernel never sees them directly.  ``ledger_config.bridges`` converts the
chart definitions into kernel ``AccountSeed`` values.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from ledger_kernel.domain.account_types import AccountType

# ---------------------------------------------------------------------------
# Infrastructure
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DatabaseSettings:
    """Connection settings handed to ``init_engine_from_url``."""

    url: str = "sqlite:///ledger.db"
    echo: bool = False


@dataclass(frozen=True)
class LoggingSettings:
    level: str = "INFO"


# ---------------------------------------------------------------------------
# Accounting
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class WellKnownAccounts:
    """Account codes the external-event recorder posts to."""

    cash: str = "1000"
    revenue: str = "4000"
    expense: str = "5000"


@dataclass(frozen=True)
class ChartAccountDef:
    """One account in the configured chart of accounts."""

    code: str
    name: str
    account_type: AccountType
    parent_code: str | None = None
    description: str | None = None
    sort_order: int = 0
    is_system: bool = True
    opening_balance: Decimal = Decimal("0")
    currency: str = "USD"


@dataclass(frozen=True)
class ReportingSettings:
    display_precision: int = 2
    include_zero_balances: bool = False


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LedgerSettings:
    """
    Complete settings for one ledger deployment.

    ``source_path`` records the YAML file the settings came from and
    ``checksum`` its canonical hash, so the active configuration can be
    traced in the logs.
    """

    entity_name: str = "Default Entity"
    default_currency: str = "USD"
    database: DatabaseSettings = field(default_factory=DatabaseSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)
    well_known_accounts: WellKnownAccounts = field(default_factory=WellKnownAccounts)
    reporting: ReportingSettings = field(default_factory=ReportingSettings)
    chart_of_accounts: tuple[ChartAccountDef, ...] = ()
    source_path: str | None = None
    checksum: str | None = None

    def chart_codes(self) -> tuple[str, ...]:
        return tuple(a.code for a in self.chart_of_accounts)
