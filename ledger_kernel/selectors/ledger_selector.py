"""
Module: ledger_kernel.selectors.ledger_selector
Responsibility: Read-only aggregation over posted journal lines -- the single
    read path the reporting engine uses for per-account totals and account
    ledger walks.
Architecture position: Kernel > Selectors.  May import from db/, domain/,
    models/ and selectors/base.py.  MUST NOT import from services/ or outer
    layers.

Invariants enforced:
    - "Posted history" means entries whose status is POSTED or REVERSED.
      A reversed original was posted and its balance effect stands; its
      reversing entry is itself POSTED, so the pair nets to zero in every
      aggregate.  DRAFT entries never contribute.
    - The entry-id set for a date range is computed once per report call
      (posted_entries, applied as a subquery) and per-account totals come
      from a single grouped query over that set (account_totals), instead of
      one scan per account.
    - Ledger lines are ordered by entry seq, then line_number: creation
      order, stable for same-day entries.
    - Every amount returned is a Decimal rounded to cents.

Failure modes:
    - Returns empty results when no posted entries fall in range.

Audit relevance:
    Reports are derived exclusively from journal lines here; the cached
    Account.current_balance is checked against these sums, never trusted by
    reports.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Select, case, func, select

from ledger_kernel.db.types import ZERO, round_money
from ledger_kernel.domain.account_types import (
    AccountType,
    LineSide,
    natural_balance,
)
from ledger_kernel.domain.dtos import EntryStatus, EntryType
from ledger_kernel.models.journal import JournalEntry, JournalEntryLine
from ledger_kernel.selectors.base import BaseSelector

POSTED_HISTORY_STATUSES: tuple[str, ...] = (
    EntryStatus.POSTED.value,
    EntryStatus.REVERSED.value,
)


# An entry set is either explicit ids or the id query from posted_entries()
EntrySet = Sequence[UUID] | Select


def _is_empty(entry_set: EntrySet) -> bool:
    return not isinstance(entry_set, Select) and len(entry_set) == 0


def _in_entry_set(entry_set: EntrySet):
    if isinstance(entry_set, Select):
        return JournalEntryLine.journal_entry_id.in_(entry_set)
    return JournalEntryLine.journal_entry_id.in_(list(entry_set))


def _money(value) -> Decimal:
    """Normalize an aggregate result (Decimal, float on SQLite, or None)."""
    if value is None:
        return ZERO
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return round_money(value)


@dataclass(frozen=True)
class AccountTotals:
    """Debit and credit totals for one account over an entry set."""

    account_id: UUID
    debit_total: Decimal
    credit_total: Decimal
    line_count: int

    def balance_for(self, account_type: AccountType | str) -> Decimal:
        """Balance under the account type's normal-balance rule."""
        return natural_balance(account_type, self.debit_total, self.credit_total)

    @property
    def raw_balance(self) -> Decimal:
        """Debits minus credits, independent of account type."""
        return self.debit_total - self.credit_total


@dataclass(frozen=True)
class LedgerLine:
    """One posted line together with the header fields of its entry."""

    journal_entry_id: UUID
    journal_line_id: UUID
    seq: int
    line_number: int
    entry_date: date
    entry_number: str
    entry_type: EntryType
    entry_description: str
    entry_reference: str | None
    account_id: UUID
    side: LineSide
    amount: Decimal
    description: str | None
    reference: str | None

    @property
    def debit(self) -> Decimal:
        return self.amount if self.side is LineSide.DEBIT else ZERO

    @property
    def credit(self) -> Decimal:
        return self.amount if self.side is LineSide.CREDIT else ZERO


class LedgerSelector(BaseSelector[JournalEntryLine]):
    """
    Selector for posted-ledger aggregation.

    Contract:
        Callers first obtain the entry set for their window with
        posted_entries(), then pass it to account_totals() or
        account_lines().  Passing the same set to several calls keeps every
        figure in one report consistent.

    Guarantees:
        - account_totals() issues one grouped query regardless of how many
          accounts are involved.
        - All monetary results are Decimal; float is never returned.

    Non-goals:
        - No currency conversion; amounts are summed as recorded.
    """

    def posted_entries(
        self,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> Select:
        """
        Id query for posted-history entries whose entry_date is in [start, end].

        Passed to account_totals() or account_lines() it is applied as an
        IN subquery, so the set is resolved by the database and no id list is
        bound as parameters.  Either bound may be None.
        """
        stmt = select(JournalEntry.id).where(
            JournalEntry.status.in_(POSTED_HISTORY_STATUSES)
        )
        if start_date is not None:
            stmt = stmt.where(JournalEntry.entry_date >= start_date)
        if end_date is not None:
            stmt = stmt.where(JournalEntry.entry_date <= end_date)
        return stmt

    def posted_entry_ids(
        self,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> tuple[UUID, ...]:
        """Materialized ids of posted_entries(), in seq order."""
        stmt = self.posted_entries(start_date, end_date).order_by(JournalEntry.seq)
        return tuple(self.session.execute(stmt).scalars().all())

    def account_totals(
        self,
        entry_ids: EntrySet,
        account_ids: Iterable[UUID] | None = None,
    ) -> dict[UUID, AccountTotals]:
        """
        Per-account debit/credit totals over the given entries.

        Args:
            entry_ids: posted_entries() query or explicit entry ids.
            account_ids: Optional restriction to these accounts.

        Returns:
            Mapping of account id to AccountTotals.  Accounts with no lines
            in the set are absent.
        """
        if _is_empty(entry_ids):
            return {}

        debit_sum = func.sum(
            case(
                (JournalEntryLine.side == LineSide.DEBIT.value, JournalEntryLine.amount),
                else_=0,
            )
        ).label("debit_total")

        credit_sum = func.sum(
            case(
                (JournalEntryLine.side == LineSide.CREDIT.value, JournalEntryLine.amount),
                else_=0,
            )
        ).label("credit_total")

        stmt = (
            select(
                JournalEntryLine.account_id,
                debit_sum,
                credit_sum,
                func.count(JournalEntryLine.id).label("line_count"),
            )
            .where(_in_entry_set(entry_ids))
            .group_by(JournalEntryLine.account_id)
        )
        if account_ids is not None:
            stmt = stmt.where(JournalEntryLine.account_id.in_(list(account_ids)))

        return {
            row.account_id: AccountTotals(
                account_id=row.account_id,
                debit_total=_money(row.debit_total),
                credit_total=_money(row.credit_total),
                line_count=row.line_count,
            )
            for row in self.session.execute(stmt).all()
        }

    def account_lines(
        self,
        account_id: UUID,
        entry_ids: EntrySet,
    ) -> list[LedgerLine]:
        """
        Lines against one account within the entry set, in creation order.

        Ordered by entry seq, then line_number.
        """
        if _is_empty(entry_ids):
            return []

        stmt = (
            select(JournalEntryLine, JournalEntry)
            .join(JournalEntry, JournalEntryLine.journal_entry_id == JournalEntry.id)
            .where(
                JournalEntryLine.account_id == account_id,
                _in_entry_set(entry_ids),
            )
            .order_by(JournalEntry.seq, JournalEntryLine.line_number)
        )

        return [
            LedgerLine(
                journal_entry_id=entry.id,
                journal_line_id=line.id,
                seq=entry.seq,
                line_number=line.line_number,
                entry_date=entry.entry_date,
                entry_number=entry.entry_number,
                entry_type=EntryType(entry.entry_type),
                entry_description=entry.description,
                entry_reference=entry.reference,
                account_id=line.account_id,
                side=LineSide(line.side),
                amount=_money(line.amount),
                description=line.description,
                reference=line.reference,
            )
            for line, entry in self.session.execute(stmt).all()
        ]

    def raw_posted_balances(self) -> dict[UUID, Decimal]:
        """
        Debits minus credits per account over all posted history.

        This is the quantity posting adds to Account.current_balance.
        """
        return {
            account_id: totals.raw_balance
            for account_id, totals in self.account_totals(self.posted_entries()).items()
        }

    def total_debits_credits(
        self,
        entry_ids: EntrySet,
    ) -> tuple[Decimal, Decimal]:
        """Grand debit and credit totals over the entry set."""
        totals = self.account_totals(entry_ids).values()
        debits = sum((t.debit_total for t in totals), ZERO)
        credits = sum((t.credit_total for t in totals), ZERO)
        return debits, credits
