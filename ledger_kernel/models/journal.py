"""
Module: ledger_kernel.models.journal
Responsibility: ORM persistence for journal entries and their lines -- the
    ledger's record of every financial transaction.
Architecture position: Kernel > Models.  May import from db/ and domain/
    (pure enums and DTOs) only.

Invariants enforced:
    - entry_number is unique (uq_journal_entry_number).
    - seq is unique and increases with creation order; ledger listings order
      by (seq, line_number).
    - Line amounts are non-negative with two fraction digits
      (ck_line_amount_non_negative).
    - line_number is unique within an entry and follows input order.
    - A POSTED entry may only change status to REVERSED; lines of a POSTED or
      REVERSED entry are frozen (db/immutability.py).

Failure modes:
    - IntegrityError on duplicate entry_number or seq.
    - ImmutabilityViolationError on edits to posted entries or their lines.

Audit relevance:
    posted_by_id/posted_at are written only at posting.  source_kind and
    source_id link an entry to the external record or the original entry
    it reverses.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ledger_kernel.db.base import TrackedBase, UUIDString
from ledger_kernel.db.types import ZERO, Money, is_balanced
from ledger_kernel.domain.account_types import LineSide, raw_signed_amount
from ledger_kernel.domain.dtos import EntryStatus, EntryType, SourceKind, SourceRef

if TYPE_CHECKING:
    from ledger_kernel.models.account import Account
    from ledger_kernel.models.accounting_period import AccountingPeriod


# Model-level names for the entry enums
JournalEntryStatus = EntryStatus
JournalEntryType = EntryType


class JournalEntry(TrackedBase):
    """
    Journal entry header.

    Contract:
        Created as DRAFT by LedgerService.create_entry with at least two
        lines.  Posting flips the status to POSTED exactly once; reversal
        flips POSTED to REVERSED.

    Guarantees:
        - total_debits/total_credits are computed from the loaded lines.
        - is_balanced uses the one-cent tolerance.

    Non-goals:
        - Balance validation lives in LedgerService, not in the model.
    """

    __tablename__ = "journal_entries"

    __table_args__ = (
        UniqueConstraint("entry_number", name="uq_journal_entry_number"),
        UniqueConstraint("seq", name="uq_journal_seq"),
        Index("idx_journal_entry_date", "entry_date"),
        Index("idx_journal_status", "status"),
        Index("idx_journal_period", "period_id"),
        Index("idx_journal_source", "source_kind", "source_id"),
    )

    # Human-facing number, e.g. "JE-2024-000001"
    entry_number: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )

    # Global creation order
    seq: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
    )

    entry_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
    )

    entry_type: Mapped[EntryType] = mapped_column(
        String(10),
        default=EntryType.MANUAL.value,
        nullable=False,
    )

    status: Mapped[EntryStatus] = mapped_column(
        String(20),
        default=EntryStatus.DRAFT.value,
        nullable=False,
    )

    description: Mapped[str] = mapped_column(
        String(500),
        nullable=False,
    )

    reference: Mapped[str | None] = mapped_column(
        String(100),
        nullable=True,
    )

    period_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("accounting_periods.id"),
        nullable=False,
    )

    posted_by_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        nullable=True,
    )

    posted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    source_kind: Mapped[SourceKind | None] = mapped_column(
        String(20),
        nullable=True,
    )

    source_id: Mapped[str | None] = mapped_column(
        String(64),
        nullable=True,
    )

    notes: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )

    lines: Mapped[list["JournalEntryLine"]] = relationship(
        back_populates="entry",
        cascade="all, delete-orphan",
        order_by="JournalEntryLine.line_number",
        lazy="selectin",
    )

    period: Mapped["AccountingPeriod"] = relationship()

    def __repr__(self) -> str:
        return f"<JournalEntry {self.entry_number} status={self.status}>"

    @property
    def source(self) -> SourceRef | None:
        if self.source_kind is None or self.source_id is None:
            return None
        return SourceRef(SourceKind(self.source_kind), self.source_id)

    @source.setter
    def source(self, ref: SourceRef | None) -> None:
        if ref is None:
            self.source_kind = None
            self.source_id = None
        else:
            self.source_kind = ref.kind.value
            self.source_id = ref.id

    @property
    def is_posted(self) -> bool:
        return self.status == EntryStatus.POSTED

    @property
    def is_draft(self) -> bool:
        return self.status == EntryStatus.DRAFT

    @property
    def is_reversed(self) -> bool:
        return self.status == EntryStatus.REVERSED

    @property
    def total_debits(self) -> Decimal:
        """Sum of debit line amounts."""
        return sum(
            (line.amount for line in self.lines if line.side == LineSide.DEBIT),
            ZERO,
        )

    @property
    def total_credits(self) -> Decimal:
        """Sum of credit line amounts."""
        return sum(
            (line.amount for line in self.lines if line.side == LineSide.CREDIT),
            ZERO,
        )

    @property
    def is_balanced(self) -> bool:
        """True when debits and credits differ by less than one cent."""
        return is_balanced(self.total_debits, self.total_credits)


class JournalEntryLine(TrackedBase):
    """
    One debit or credit against one account.

    Contract:
        Belongs to exactly one JournalEntry and references exactly one
        Account.  amount is never negative; the side carries the direction.
    """

    __tablename__ = "journal_entry_lines"

    __table_args__ = (
        UniqueConstraint(
            "journal_entry_id", "line_number", name="uq_line_entry_number"
        ),
        CheckConstraint("amount >= 0", name="ck_line_amount_non_negative"),
        Index("idx_line_entry", "journal_entry_id"),
        Index("idx_line_account", "account_id"),
    )

    journal_entry_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("journal_entries.id"),
        nullable=False,
    )

    account_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("accounts.id"),
        nullable=False,
    )

    side: Mapped[LineSide] = mapped_column(
        String(10),
        nullable=False,
    )

    amount: Mapped[Money] = mapped_column(
        nullable=False,
    )

    description: Mapped[str | None] = mapped_column(
        String(500),
        nullable=True,
    )

    reference: Mapped[str | None] = mapped_column(
        String(100),
        nullable=True,
    )

    # 1-based, input order
    line_number: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )

    entry: Mapped["JournalEntry"] = relationship(
        back_populates="lines",
    )

    account: Mapped["Account"] = relationship(lazy="selectin")

    def __repr__(self) -> str:
        return f"<JournalEntryLine {self.line_number} {self.side} {self.amount}>"

    @property
    def is_debit(self) -> bool:
        return self.side == LineSide.DEBIT

    @property
    def is_credit(self) -> bool:
        return self.side == LineSide.CREDIT

    @property
    def signed_amount(self) -> Decimal:
        """+amount for debits, -amount for credits."""
        return raw_signed_amount(self.side, self.amount)
