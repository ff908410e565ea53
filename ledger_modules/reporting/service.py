"""
Reporting Module Service (``ledger_modules.reporting.service``).

Responsibility
--------------
Orchestrates report generation -- trial balance, profit and loss, balance
sheet, account ledger, single-account balance and cached-balance
verification -- by bridging kernel selectors (``AccountSelector``,
``LedgerSelector``) to the pure transformation functions in
``statements.py``.  This is a **read-only** service.

Architecture position
---------------------
**Modules layer**.  ``ReportingService`` is the sole public entry point
for report generation.  Constructor: ``session`` + ``clock`` + ``config``.

Invariants enforced
-------------------
* Read-only -- no mutations to the journal or the chart.
* Reports are computed from posted history (POSTED and REVERSED entries);
  DRAFT entries never contribute.
* Each report computes its posted entry-id set once and derives every
  per-account figure from one grouped query over that set.
* All monetary amounts use ``Decimal`` -- NEVER ``float``.
* Default window: January 1 of the clock's current year through today.

Failure modes
-------------
* ``ValueError`` -- start date after end date.
* ``AccountNotFoundError`` -- account_ledger / account_balance for an
  unknown account id.

Audit relevance
---------------
Structured log events are emitted for every report generation, carrying
the report type, window and headline figures.
"""

from __future__ import annotations

from datetime import date, timedelta
from uuid import UUID

from sqlalchemy.orm import Session

from ledger_kernel.domain.account_types import AccountType
from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.domain.dtos import AccountInfo
from ledger_kernel.exceptions import AccountNotFoundError
from ledger_kernel.logging_config import get_logger
from ledger_kernel.selectors.account_selector import AccountSelector
from ledger_kernel.selectors.ledger_selector import LedgerSelector
from ledger_modules.reporting.config import ReportingConfig
from ledger_modules.reporting.models import (
    AccountBalanceReport,
    AccountLedgerReport,
    BalanceSheetReport,
    BalanceVerificationReport,
    ProfitAndLossReport,
    ReportMetadata,
    ReportType,
    TrialBalanceReport,
)
from ledger_modules.reporting.statements import (
    build_account_balance,
    build_account_ledger,
    build_balance_sheet,
    build_profit_and_loss,
    build_trial_balance,
    find_balance_discrepancies,
    render_to_dict,
)

logger = get_logger("modules.reporting.service")


def start_of_year(day: date) -> date:
    return date(day.year, 1, 1)


class ReportingService:
    """
    Ledger report generation service.

    Contract
    --------
    * Every public method returns a frozen report dataclass.
    * All methods are **read-only**.

    Guarantees
    ----------
    * Report generation delegates to pure functions in ``statements.py``;
      this class only loads data and builds metadata.
    * Clock is injectable for deterministic testing.

    Non-goals
    ---------
    * Does NOT convert currencies; amounts are summed as recorded.
    * Does NOT enforce period locks (read-only service).
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        config: ReportingConfig | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._config = config or ReportingConfig.with_defaults()
        self._accounts = AccountSelector(session)
        self._ledger = LedgerSelector(session)

        logger.info(
            "reporting_service_initialized",
            extra={
                "entity_name": self._config.entity_name,
                "default_currency": self._config.default_currency,
            },
        )

    # =========================================================================
    # Internal helpers
    # =========================================================================

    def _window(
        self,
        start_date: date | None,
        end_date: date | None,
    ) -> tuple[date, date]:
        today = self._clock.today()
        start = start_date or start_of_year(today)
        end = end_date or today
        if start > end:
            raise ValueError(f"start_date ({start}) cannot be after end_date ({end})")
        return start, end

    def _build_metadata(
        self,
        report_type: ReportType,
        start_date: date | None = None,
        end_date: date | None = None,
        as_of_date: date | None = None,
    ) -> ReportMetadata:
        """Build report metadata with injected clock timestamp."""
        return ReportMetadata(
            report_type=report_type,
            entity_name=self._config.entity_name,
            currency=self._config.default_currency,
            generated_at=self._clock.now().isoformat(),
            start_date=start_date,
            end_date=end_date,
            as_of_date=as_of_date,
        )

    def _require_account(self, account_id: UUID) -> AccountInfo:
        account = self._accounts.get(account_id)
        if account is None:
            logger.warning(
                "report_account_not_found",
                extra={"account_id": str(account_id)},
            )
            raise AccountNotFoundError(str(account_id))
        return account

    def _by_type(self, account_type: AccountType) -> list[AccountInfo]:
        # Statements cover inactive accounts too; their history still counts.
        return self._accounts.list_by_type(account_type, active_only=False)

    # =========================================================================
    # Public API
    # =========================================================================

    def trial_balance(
        self,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> TrialBalanceReport:
        """
        Trial balance over active accounts for [start_date, end_date].

        Returns:
            TrialBalanceReport whose is_balanced flag holds whenever every
            entry in range is itself balanced.
        """
        start, end = self._window(start_date, end_date)
        entries = self._ledger.posted_entries(start, end)
        totals = self._ledger.account_totals(entries)

        report = build_trial_balance(
            self._accounts.list_active(),
            totals,
            self._build_metadata(ReportType.TRIAL_BALANCE, start, end),
            start,
            end,
            include_zero_balances=self._config.include_zero_balances,
        )

        logger.info(
            "trial_balance_generated",
            extra={
                "start_date": start.isoformat(),
                "end_date": end.isoformat(),
                "account_count": len(totals),
                "row_count": len(report.rows),
                "is_balanced": report.is_balanced,
            },
        )
        return report

    def profit_and_loss(
        self,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> ProfitAndLossReport:
        """Revenue, expenses and net income for [start_date, end_date]."""
        start, end = self._window(start_date, end_date)
        totals = self._ledger.account_totals(self._ledger.posted_entries(start, end))

        report = build_profit_and_loss(
            self._by_type(AccountType.REVENUE),
            self._by_type(AccountType.EXPENSE),
            totals,
            self._build_metadata(ReportType.PROFIT_AND_LOSS, start, end),
            start,
            end,
        )

        logger.info(
            "profit_and_loss_generated",
            extra={
                "start_date": start.isoformat(),
                "end_date": end.isoformat(),
                "net_income": str(report.net_income),
            },
        )
        return report

    def balance_sheet(self, as_of_date: date | None = None) -> BalanceSheetReport:
        """
        Balance sheet as of a date.

        Every figure, including retained earnings, comes from posted entries
        dated from January 1 of the as-of year through as_of_date.
        """
        as_of = as_of_date or self._clock.today()
        period_start = start_of_year(as_of)
        totals = self._ledger.account_totals(
            self._ledger.posted_entries(period_start, as_of)
        )

        report = build_balance_sheet(
            self._by_type(AccountType.ASSET),
            self._by_type(AccountType.LIABILITY),
            self._by_type(AccountType.EQUITY),
            self._by_type(AccountType.REVENUE),
            self._by_type(AccountType.EXPENSE),
            totals,
            self._build_metadata(
                ReportType.BALANCE_SHEET, period_start, as_of, as_of_date=as_of
            ),
            period_start,
            as_of,
        )

        log = logger.info if report.is_balanced else logger.warning
        log(
            "balance_sheet_generated",
            extra={
                "as_of_date": as_of.isoformat(),
                "total_assets": str(report.total_assets),
                "total_l_and_e": str(report.total_liabilities_and_equity),
                "is_balanced": report.is_balanced,
            },
        )
        return report

    def account_ledger(
        self,
        account_id: UUID,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> AccountLedgerReport:
        """
        Every posted line against one account in [start_date, end_date] with
        a running balance.

        The opening balance covers January 1 of start_date's year through
        the day before start_date, plus the account's opening_balance.
        Rows are in creation order (entry seq, then line number).

        Raises:
            AccountNotFoundError: If the account id does not exist.
        """
        account = self._require_account(account_id)
        start, end = self._window(start_date, end_date)

        prior_ids = ()
        if start > start_of_year(start):
            prior_ids = self._ledger.posted_entries(
                start_of_year(start), start - timedelta(days=1)
            )
        period_ids = self._ledger.posted_entries(start, end)

        prior_totals = self._ledger.account_totals(prior_ids, [account.id])
        period_totals = self._ledger.account_totals(period_ids, [account.id])

        report = build_account_ledger(
            account,
            prior_totals.get(account.id),
            period_totals.get(account.id),
            self._ledger.account_lines(account.id, period_ids),
            self._build_metadata(ReportType.ACCOUNT_LEDGER, start, end),
            start,
            end,
        )

        logger.info(
            "account_ledger_generated",
            extra={
                "account_code": account.code,
                "start_date": start.isoformat(),
                "end_date": end.isoformat(),
                "row_count": len(report.rows),
            },
        )
        return report

    def account_balance(
        self,
        account_id: UUID,
        as_of_date: date | None = None,
        include_children: bool = False,
    ) -> AccountBalanceReport:
        """
        Balance of one account over all posted history through as_of_date,
        plus opening balances.  With include_children the figure rolls up
        every descendant account.

        Raises:
            AccountNotFoundError: If the account id does not exist.
        """
        account = self._require_account(account_id)
        as_of = as_of_date or self._clock.today()

        members = [account]
        if include_children:
            descendants = self._accounts.get_many(self._accounts.descendant_ids(account.id))
            members.extend(sorted(descendants.values(), key=lambda a: a.code))

        totals = self._ledger.account_totals(
            self._ledger.posted_entries(None, as_of),
            [m.id for m in members],
        )

        report = build_account_balance(
            account,
            members,
            totals,
            self._build_metadata(ReportType.ACCOUNT_BALANCE, as_of_date=as_of),
            as_of,
            include_children,
        )

        logger.info(
            "account_balance_generated",
            extra={
                "account_code": account.code,
                "as_of_date": as_of.isoformat(),
                "include_children": include_children,
                "balance": str(report.balance),
            },
        )
        return report

    def verify_cached_balances(self) -> BalanceVerificationReport:
        """
        Check every account's cached current_balance against
        opening_balance + posted debits - posted credits.
        """
        accounts = self._accounts.list_all()
        report = find_balance_discrepancies(
            accounts,
            self._ledger.raw_posted_balances(),
            self._build_metadata(ReportType.BALANCE_VERIFICATION),
        )

        if report.is_consistent:
            logger.info(
                "cached_balances_verified",
                extra={"accounts_checked": report.accounts_checked},
            )
        else:
            logger.error(
                "cached_balance_discrepancies_found",
                extra={
                    "accounts_checked": report.accounts_checked,
                    "account_codes": [d.account_code for d in report.discrepancies],
                },
            )
        return report

    def render(self, report: object) -> dict:
        """Plain-data rendering at the configured display precision."""
        return render_to_dict(report, self._config.display_precision)
