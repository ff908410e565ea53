"""
Module: ledger_kernel.db.base
Responsibility: Declarative base classes for every ORM model in the ledger.
    Supplies the UUID primary key convention, the type annotation map that
    pins monetary columns to two-decimal fixed point, and the TrackedBase
    mixin carrying audit timestamps and actor ids.
Architecture position: Kernel > DB.  Lowest-level import target in the
    kernel; models import from here.  MUST NOT import from models/,
    services/, selectors/, domain/, or outer layers.

Invariants enforced:
    - UUID primary keys: every model gets a uuid4 id stored as String(36),
      portable across PostgreSQL and SQLite.
    - Money precision: Decimal maps to Numeric(19, 2).  Amounts carry
      exactly two fraction digits; float is never used for money.
    - Audit metadata: TrackedBase records created_at, updated_at,
      created_by_id and updated_by_id on every tracked row.

Failure modes:
    - IntegrityError if a duplicate UUID is inserted (PK constraint).

Audit relevance:
    created_by_id is NOT NULL: every account, period and journal entry
    names the actor who created it.  updated_at/updated_by_id are audit
    metadata and may change even on otherwise immutable rows.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import ClassVar
from uuid import UUID as PyUUID, uuid4

from sqlalchemy import BigInteger, Date, DateTime, Numeric, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


class UUIDString(TypeDecorator):
    """
    UUID type stored as String(36) for cross-database portability.

    Contract:
        Converts between Python UUID objects and their 36-character string
        form on the way in and out of the database.
    """

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None:
            return str(value)
        return None

    def process_result_value(self, value, dialect):
        if value is not None:
            return PyUUID(value)
        return None


class Base(DeclarativeBase):
    """
    Declarative base for all ledger models.

    Contract:
        Every ORM model inherits from Base (or TrackedBase) and receives a
        uuid4 primary key plus consistent column types.

    Guarantees:
        - Decimal maps to Numeric(19, 2).
        - datetime maps to DateTime(timezone=True).
        - date maps to Date.
        - int maps to BigInteger (safe for monotonic sequences).
    """

    type_annotation_map: ClassVar[dict] = {
        # Two fraction digits for every monetary column
        Decimal: Numeric(19, 2),
        datetime: DateTime(timezone=True),
        date: Date,
        PyUUID: UUIDString(),
        int: BigInteger,
    }

    id: Mapped[PyUUID] = mapped_column(
        UUIDString(),
        primary_key=True,
        default=uuid4,
    )


class TrackedBase(Base):
    """
    Abstract base with audit timestamps and actor tracking.

    Guarantees:
        - created_at is set by the database on INSERT.
        - updated_at is refreshed on every UPDATE.
        - created_by_id is required; updated_by_id is optional.
    """

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    created_by_id: Mapped[PyUUID] = mapped_column(
        UUIDString(),
        nullable=False,
    )

    updated_by_id: Mapped[PyUUID | None] = mapped_column(
        UUIDString(),
        nullable=True,
    )


UUID = PyUUID
