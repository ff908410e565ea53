"""
BaseService -- abstract base for ledger write services.

Responsibility:
    Common constructor and session-handling contract for every service that
    mutates ledger state.  Services receive a SQLAlchemy ``Session`` and use
    ``session.flush()`` (inside savepoints) -- never ``session.commit()``.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.

Invariants enforced:
    - Transaction boundaries: services flush within the caller's transaction
      and never commit or roll back the outer transaction themselves.  The
      caller (``session_scope()``, an integration handler, or a test) owns
      commit/rollback.

Failure modes:
    - A subclass calling ``session.commit()`` would break the atomicity of
      multi-step units such as create-then-post.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from ledger_kernel.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseService(ABC, Generic[ModelType]):
    """
    Abstract base class for all kernel services.

    Contract:
        Accepts a SQLAlchemy ``Session`` from the caller and persists changes
        with ``session.flush()`` within the active transaction.

    Non-goals:
        - Does NOT manage the outer transaction lifecycle.
        - Does NOT provide query-only methods; those live in selectors/.
    """

    def __init__(self, session: Session):
        self.session = session
