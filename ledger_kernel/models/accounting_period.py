"""
Module: ledger_kernel.models.accounting_period
Responsibility: ORM persistence for accounting periods -- named, inclusive
    date ranges that every journal entry is filed under.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - start_date <= end_date (ck_period_dates, also validated by
      PeriodService before insert).
    - Closing is one-way: close() refuses an already closed period and the
      immutability listener blocks any later field change.

Failure modes:
    - ValueError from close() on an already closed period.
    - ImmutabilityViolationError when a closed period is modified.

Audit relevance:
    closed_at and closed_by_id record who sealed a period and when.
"""

from datetime import date, datetime
from uuid import UUID

from sqlalchemy import Boolean, CheckConstraint, Date, DateTime, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import TrackedBase, UUIDString


class AccountingPeriod(TrackedBase):
    """
    Accounting period.

    Contract:
        Periods are not required to be contiguous or non-overlapping.
        PeriodService resolves overlapping candidates deterministically.

    Guarantees:
        - is_closed transitions False -> True at most once.
        - close() takes the actor and a clock-supplied timestamp.
    """

    __tablename__ = "accounting_periods"

    __table_args__ = (
        CheckConstraint("start_date <= end_date", name="ck_period_dates"),
        Index("idx_period_dates", "start_date", "end_date"),
        Index("idx_period_closed", "is_closed"),
    )

    # e.g. "2024"
    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )

    start_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
    )

    end_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
    )

    is_closed: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )

    closed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    closed_by_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        nullable=True,
    )

    notes: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )

    def __repr__(self) -> str:
        state = "closed" if self.is_closed else "open"
        return f"<AccountingPeriod {self.name}: {state}>"

    @property
    def is_open(self) -> bool:
        return not self.is_closed

    def contains_date(self, check_date: date) -> bool:
        """Check if a date falls within this period (inclusive)."""
        return self.start_date <= check_date <= self.end_date

    def close(self, actor_id: UUID, closed_at: datetime) -> None:
        """Close the period.

        Preconditions: Period is open.
        Postconditions: is_closed is True; closed_at and closed_by_id are set.
        Raises: ValueError if the period is already closed.
        """
        if self.is_closed:
            raise ValueError(f"Period {self.name} is already closed")

        self.is_closed = True
        self.closed_at = closed_at
        self.closed_by_id = actor_id
