"""
Module: ledger_kernel.models.sequence_counter
Responsibility: Named counter rows backing SequenceService.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - One row per sequence name (unique).  The row is locked with
      SELECT ... FOR UPDATE while it is incremented, so the next value
      never comes from scanning existing entry numbers.
"""

from sqlalchemy import BigInteger, String
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import Base


class SequenceCounter(Base):
    """
    Sequence counter table.

    Each row holds the last value handed out for one named sequence, e.g.
    "journal_entry" (global seq) or "journal_entry:2024" (entry numbers).
    """

    __tablename__ = "sequence_counters"

    name: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        unique=True,
    )

    current_value: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        default=0,
    )

    def __repr__(self) -> str:
        return f"<SequenceCounter {self.name}={self.current_value}>"
