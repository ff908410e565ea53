"""
Module: ledger_kernel.selectors.journal_selector
Responsibility: Read-only queries over journal entries and their lines.
Architecture position: Kernel > Selectors.  May import from db/, domain/,
    models/ and selectors/base.py.

Invariants enforced:
    - Returns JournalEntryInfo snapshots with lines in line_number order.
    - list_posted()/list_drafts() return newest first (entry_date desc,
      seq desc); list_for_period()/list_for_date_range() return posted
      entries oldest first (entry_date asc, seq asc).
    - entry_ids_in_range() covers posted history (POSTED and REVERSED).
    - next_entry_number_hint() reads the counter without allocating.

Failure modes:
    - get()/get_by_number() return None when the entry does not exist.
"""

from datetime import date
from uuid import UUID

from sqlalchemy import select

from ledger_kernel.domain.dtos import EntryStatus, JournalEntryInfo, SourceRef
from ledger_kernel.models.journal import JournalEntry
from ledger_kernel.models.sequence_counter import SequenceCounter
from ledger_kernel.selectors.base import BaseSelector

ENTRY_NUMBER_PREFIX = "JE"


def format_entry_number(year: int, value: int) -> str:
    """JE-<year>-<6-digit sequence>, e.g. JE-2024-000001."""
    return f"{ENTRY_NUMBER_PREFIX}-{year}-{value:06d}"


def entry_number_sequence_name(year: int) -> str:
    """Counter name backing entry numbers for one year."""
    return f"journal_entry:{year}"


class JournalSelector(BaseSelector[JournalEntry]):
    """Journal read surface."""

    def _to_dtos(self, stmt) -> list[JournalEntryInfo]:
        return [
            JournalEntryInfo.from_model(entry)
            for entry in self.session.execute(stmt).scalars().all()
        ]

    def get(self, entry_id: UUID) -> JournalEntryInfo | None:
        entry = self.session.get(JournalEntry, entry_id)
        return JournalEntryInfo.from_model(entry) if entry is not None else None

    def get_by_number(self, entry_number: str) -> JournalEntryInfo | None:
        entry = self.session.execute(
            select(JournalEntry).where(JournalEntry.entry_number == entry_number)
        ).scalar_one_or_none()
        return JournalEntryInfo.from_model(entry) if entry is not None else None

    def list_posted(self) -> list[JournalEntryInfo]:
        return self._to_dtos(
            select(JournalEntry)
            .where(JournalEntry.status == EntryStatus.POSTED.value)
            .order_by(JournalEntry.entry_date.desc(), JournalEntry.seq.desc())
        )

    def list_drafts(self) -> list[JournalEntryInfo]:
        return self._to_dtos(
            select(JournalEntry)
            .where(JournalEntry.status == EntryStatus.DRAFT.value)
            .order_by(JournalEntry.entry_date.desc(), JournalEntry.seq.desc())
        )

    def list_for_period(self, period_id: UUID) -> list[JournalEntryInfo]:
        return self._to_dtos(
            select(JournalEntry)
            .where(
                JournalEntry.period_id == period_id,
                JournalEntry.status == EntryStatus.POSTED.value,
            )
            .order_by(JournalEntry.entry_date, JournalEntry.seq)
        )

    def list_for_date_range(
        self,
        start_date: date,
        end_date: date,
    ) -> list[JournalEntryInfo]:
        return self._to_dtos(
            select(JournalEntry)
            .where(
                JournalEntry.status == EntryStatus.POSTED.value,
                JournalEntry.entry_date >= start_date,
                JournalEntry.entry_date <= end_date,
            )
            .order_by(JournalEntry.entry_date, JournalEntry.seq)
        )

    def entry_ids_in_range(self, start_date: date, end_date: date) -> list[UUID]:
        """Ids of POSTED or REVERSED entries dated in [start, end], seq order."""
        return list(
            self.session.execute(
                select(JournalEntry.id)
                .where(
                    JournalEntry.status.in_(
                        (EntryStatus.POSTED.value, EntryStatus.REVERSED.value)
                    ),
                    JournalEntry.entry_date >= start_date,
                    JournalEntry.entry_date <= end_date,
                )
                .order_by(JournalEntry.seq)
            ).scalars().all()
        )

    def list_by_source(self, source: SourceRef) -> list[JournalEntryInfo]:
        """Entries created from the given source record, oldest first."""
        return self._to_dtos(
            select(JournalEntry)
            .where(
                JournalEntry.source_kind == source.kind.value,
                JournalEntry.source_id == source.id,
            )
            .order_by(JournalEntry.seq)
        )

    def entry_number_exists(self, entry_number: str) -> bool:
        return (
            self.session.execute(
                select(JournalEntry.id).where(JournalEntry.entry_number == entry_number)
            ).first()
            is not None
        )

    def next_entry_number_hint(self, year: int) -> str:
        """
        The number the next auto-numbered entry dated in `year` will most
        likely receive.  Does not allocate; a concurrent creation may take it.
        """
        current = self.session.execute(
            select(SequenceCounter.current_value).where(
                SequenceCounter.name == entry_number_sequence_name(year)
            )
        ).scalar_one_or_none()
        value = (current or 0) + 1
        candidate = format_entry_number(year, value)
        while self.entry_number_exists(candidate):
            value += 1
            candidate = format_entry_number(year, value)
        return candidate
