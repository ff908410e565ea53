"""
SequenceService -- monotonic sequence allocation via locked counter rows.

Responsibility:
    Hands out strictly increasing integers for named sequences: the global
    journal entry ``seq`` and the per-year counters behind entry numbers
    (``journal_entry:<year>``).  Uses a dedicated counter table with
    row-level locking (``SELECT ... FOR UPDATE``) so two concurrent
    creations can never compute the same value.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.
    Called by LedgerService when a journal entry is created.

Invariants enforced:
    - Monotonicity: the locked counter row is the sole source of truth for
      the next value.  Scanning existing entry numbers and taking max + 1 is
      never used.
    - Transactional: an increment becomes visible only when the caller's
      transaction commits; a rollback returns the value.

Failure modes:
    - IntegrityError: two transactions creating the same counter row at
      once.  Handled with a savepoint rollback and a locked re-read.

Audit relevance:
    Allocation is logged at DEBUG with sequence_name and value.
"""

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.sequence_counter import SequenceCounter

logger = get_logger("services.sequence")


class SequenceService:
    """
    Service for generating transactional sequence numbers.

    Contract:
        Accepts a sequence name and returns the next strictly increasing
        integer for it.

    Guarantees:
        - ``SELECT ... FOR UPDATE`` serializes concurrent allocations for the
          same name on PostgreSQL.
        - Values start at 1.

    Non-goals:
        - Does NOT call ``session.commit()``.
    """

    JOURNAL_ENTRY = "journal_entry"

    def __init__(self, session: Session):
        self._session = session

    def _locked_counter(self, sequence_name: str) -> SequenceCounter | None:
        return self._session.execute(
            select(SequenceCounter)
            .where(SequenceCounter.name == sequence_name)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def next_value(self, sequence_name: str) -> int:
        """
        Get the next value for a named sequence.

        Preconditions:
            - The caller is inside an active transaction.

        Postconditions:
            - Returns an integer > 0 strictly greater than any value
              previously returned for this name.
            - The counter row stays locked until the transaction ends.
        """
        counter = self._locked_counter(sequence_name)

        if counter is None:
            # First use of this sequence; another transaction may race us
            savepoint = self._session.begin_nested()
            try:
                counter = SequenceCounter(name=sequence_name, current_value=1)
                self._session.add(counter)
                self._session.flush()
                savepoint.commit()
                logger.debug(
                    "sequence_allocated",
                    extra={"sequence_name": sequence_name, "value": 1},
                )
                return 1
            except IntegrityError:
                logger.debug(
                    "sequence_counter_race_retry",
                    extra={"sequence_name": sequence_name},
                )
                savepoint.rollback()
                counter = self._locked_counter(sequence_name)
                if counter is None:
                    raise

        counter.current_value += 1
        self._session.flush()
        logger.debug(
            "sequence_allocated",
            extra={"sequence_name": sequence_name, "value": counter.current_value},
        )
        return counter.current_value

    def current_value(self, sequence_name: str) -> int | None:
        """Current value of a sequence without incrementing; None if unused."""
        return self._session.execute(
            select(SequenceCounter.current_value).where(
                SequenceCounter.name == sequence_name
            )
        ).scalar_one_or_none()
