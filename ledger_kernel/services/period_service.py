"""
PeriodService -- accounting period resolution and lifecycle.

Responsibility:
    Finds the accounting period covering a date, creates the calendar-year
    period on demand, and closes periods.  Resolution and creation are an
    explicit step that LedgerService calls before it writes an entry, so the
    store write is visible in the caller's code rather than hidden inside a
    lookup.

Architecture position:
    Kernel > Services -- imperative shell.
    Called by LedgerService.create_entry and by administrative callers.

Invariants enforced:
    - Deterministic resolution: when several periods cover a date, the one
      with the latest start_date wins, ties broken by the earliest end_date,
      then by name.  A warning names every candidate.
    - Auto-created periods span Jan 1 .. Dec 31 of the date's year and are
      named after the year.
    - start_date <= end_date for every period created here.
    - Closing is one-way.
    - Flush-only: never commits or rolls back the outer transaction.

Failure modes:
    - ValueError: start_date after end_date.
    - PeriodNotFoundError: unknown period id.
    - PeriodAlreadyClosedError: closing a closed period.
    - PeriodResolutionError: the store failed while creating a period.

Audit relevance:
    period_created and period_closed are logged with the actor, the period
    name and its bounds.
"""

from datetime import date
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.domain.dtos import PeriodInfo
from ledger_kernel.exceptions import (
    PeriodAlreadyClosedError,
    PeriodNotFoundError,
    PeriodResolutionError,
)
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.accounting_period import AccountingPeriod
from ledger_kernel.services.base import BaseService

logger = get_logger("services.period")


def calendar_year_bounds(day: date) -> tuple[date, date]:
    """First and last day of the calendar year containing `day`."""
    return date(day.year, 1, 1), date(day.year, 12, 31)


class PeriodService(BaseService[AccountingPeriod]):
    """
    Accounting period resolver and lifecycle manager.

    Contract:
        Public methods return frozen PeriodInfo DTOs.  _get_orm /
        _resolve_orm give LedgerService access to the ORM row inside the
        same unit of work.

    Non-goals:
        - Non-overlap is NOT enforced; overlapping periods are resolved
          deterministically instead.
    """

    def __init__(self, session: Session, clock: Clock | None = None):
        super().__init__(session)
        self._clock = clock or SystemClock()

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def _get_orm(self, period_id: UUID) -> AccountingPeriod:
        period = self.session.get(AccountingPeriod, period_id)
        if period is None:
            raise PeriodNotFoundError(str(period_id))
        return period

    def _covering(self, day: date) -> AccountingPeriod | None:
        candidates = self.session.execute(
            select(AccountingPeriod)
            .where(
                AccountingPeriod.start_date <= day,
                AccountingPeriod.end_date >= day,
            )
            .order_by(
                AccountingPeriod.start_date.desc(),
                AccountingPeriod.end_date.asc(),
                AccountingPeriod.name.asc(),
            )
        ).scalars().all()

        if not candidates:
            return None

        if len(candidates) > 1:
            logger.warning(
                "overlapping_periods_for_date",
                extra={
                    "date": str(day),
                    "candidates": [p.name for p in candidates],
                    "selected": candidates[0].name,
                },
            )
        return candidates[0]

    def get_period(self, period_id: UUID) -> PeriodInfo:
        return PeriodInfo.from_model(self._get_orm(period_id))

    def get_period_for_date(self, day: date) -> PeriodInfo | None:
        """The period covering `day`, or None."""
        period = self._covering(day)
        return PeriodInfo.from_model(period) if period is not None else None

    def open_periods(self) -> list[PeriodInfo]:
        """Open periods, most recent start first."""
        rows = self.session.execute(
            select(AccountingPeriod)
            .where(AccountingPeriod.is_closed.is_(False))
            .order_by(AccountingPeriod.start_date.desc())
        ).scalars()
        return [PeriodInfo.from_model(p) for p in rows]

    def closed_periods(self) -> list[PeriodInfo]:
        """Closed periods, most recent end first."""
        rows = self.session.execute(
            select(AccountingPeriod)
            .where(AccountingPeriod.is_closed.is_(True))
            .order_by(AccountingPeriod.end_date.desc())
        ).scalars()
        return [PeriodInfo.from_model(p) for p in rows]

    def current_period(self) -> PeriodInfo | None:
        """The open period covering today, or None."""
        period = self._covering(self._clock.today())
        if period is None or period.is_closed:
            return None
        return PeriodInfo.from_model(period)

    # ------------------------------------------------------------------
    # Creation and resolution
    # ------------------------------------------------------------------

    def _create_orm(
        self,
        name: str,
        start_date: date,
        end_date: date,
        actor_id: UUID,
        notes: str | None = None,
    ) -> AccountingPeriod:
        if start_date > end_date:
            raise ValueError(
                f"start_date ({start_date}) cannot be after end_date ({end_date})"
            )

        period = AccountingPeriod(
            name=name,
            start_date=start_date,
            end_date=end_date,
            is_closed=False,
            notes=notes,
            created_by_id=actor_id,
        )
        self.session.add(period)
        self.session.flush()

        logger.info(
            "period_created",
            extra={
                "period_id": str(period.id),
                "period_name": name,
                "start_date": str(start_date),
                "end_date": str(end_date),
                "actor_id": str(actor_id),
            },
        )
        return period

    def create_period(
        self,
        name: str,
        start_date: date,
        end_date: date,
        actor_id: UUID,
        notes: str | None = None,
    ) -> PeriodInfo:
        """
        Create an accounting period.

        Raises:
            ValueError: If start_date > end_date.
        """
        return PeriodInfo.from_model(
            self._create_orm(name, start_date, end_date, actor_id, notes)
        )

    def _resolve_orm(self, day: date, actor_id: UUID) -> AccountingPeriod:
        period = self._covering(day)
        if period is not None:
            return period

        start, end = calendar_year_bounds(day)
        try:
            with self.session.begin_nested():
                period = self._create_orm(str(day.year), start, end, actor_id)
        except SQLAlchemyError as exc:
            logger.error(
                "period_resolution_failed",
                extra={"date": str(day), "error": str(exc)},
            )
            raise PeriodResolutionError(str(day), str(exc)) from exc

        logger.info(
            "period_auto_created",
            extra={"period_name": period.name, "date": str(day)},
        )
        return period

    def resolve_or_create(self, day: date, actor_id: UUID) -> PeriodInfo:
        """
        The period covering `day`, creating the calendar-year period when
        none exists.

        Postconditions: Returns a period whose range contains `day`.
        Raises:
            PeriodResolutionError: If creating the period fails in the store.
        """
        return PeriodInfo.from_model(self._resolve_orm(day, actor_id))

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close_period(self, period_id: UUID, actor_id: UUID) -> PeriodInfo:
        """
        Close a period.  One-way.

        Raises:
            PeriodNotFoundError: Unknown period id.
            PeriodAlreadyClosedError: Period is already closed.
        """
        period = self.session.execute(
            select(AccountingPeriod)
            .where(AccountingPeriod.id == period_id)
            .with_for_update()
        ).scalar_one_or_none()
        if period is None:
            raise PeriodNotFoundError(str(period_id))

        if period.is_closed:
            logger.warning(
                "period_already_closed",
                extra={"period_name": period.name},
            )
            raise PeriodAlreadyClosedError(period.name)

        period.close(actor_id, self._clock.now())
        self.session.flush()

        logger.info(
            "period_closed",
            extra={
                "period_id": str(period.id),
                "period_name": period.name,
                "actor_id": str(actor_id),
            },
        )
        return PeriodInfo.from_model(period)
