"""
Module: ledger_kernel.selectors.base
Responsibility: Abstract base class for read-only query selectors.  Selectors
    are the "Q" side of the CQRS-lite split: structured read access to the
    chart, the journal and the posted ledger without mutation capability.
Architecture position: Kernel > Selectors.  May import from db/, domain/ and
    models/.  MUST NOT import from services/ or outer layers.

Invariants enforced:
    - Read-only access: selectors never add, delete, flush or commit.
    - DTO return convention: selectors return frozen dataclasses or plain
      computed values, never ORM instances.
    - Session ownership: the caller owns the session and its transaction.

Failure modes:
    - NoResultFound / MultipleResultsFound where a query expects exactly one
      row and the data disagrees.

Audit relevance:
    Reports derive every figure from posted journal lines through these
    selectors; the cached Account.current_balance is never read by reports.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from ledger_kernel.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseSelector(ABC, Generic[ModelType]):
    """
    Abstract base class for all selectors.

    Contract:
        Accepts a Session from the caller, performs read-only queries, and
        returns DTOs or computed results.
    """

    def __init__(self, session: Session):
        self.session = session
