"""
Module: ledger_kernel.models.account
Responsibility: ORM persistence for the chart of accounts -- the target of
    every journal line and the holder of the cached running balance.
Architecture position: Kernel > Models.  May import from db/ and domain/
    (pure enums) only.

Invariants enforced:
    - code is unique (uq_account_code).
    - current_balance == opening_balance + sum of raw signed posted line
      amounts (+debit, -credit).  Only LedgerService.post_entry mutates it,
      through an SQL-side increment.
    - account_type is immutable once the account carries posted lines
      (db/immutability.py).
    - Accounts are never deleted; is_active=False is the soft removal.

Failure modes:
    - IntegrityError on duplicate code.
    - ImmutabilityViolationError when account_type changes on an account
      referenced by posted lines.

Audit relevance:
    The chart defines statement placement.  Changing the type of an account
    with history would silently move past amounts between statements.
"""

from decimal import Decimal
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ledger_kernel.db.base import TrackedBase, UUIDString
from ledger_kernel.db.types import Money
from ledger_kernel.domain.account_types import (
    AccountType,
    NormalBalance,
    normal_balance_for,
)


class Account(TrackedBase):
    """
    Chart of accounts entry -- one node in the ledger's account hierarchy.

    Contract:
        Account.code is globally unique.  parent_id forms a tree; level is a
        depth hint (0 for roots) maintained by ChartService.

    Guarantees:
        - account_type is one of ASSET, LIABILITY, EQUITY, REVENUE, EXPENSE.
        - normal_balance is derived from account_type, never stored.

    Non-goals:
        - Does not validate that parent and child share an account type.
    """

    __tablename__ = "accounts"

    __table_args__ = (
        UniqueConstraint("code", name="uq_account_code"),
        Index("idx_account_type", "account_type"),
        Index("idx_account_active", "is_active"),
        Index("idx_account_parent", "parent_id"),
    )

    code: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    description: Mapped[str | None] = mapped_column(
        String(500),
        nullable=True,
    )

    account_type: Mapped[AccountType] = mapped_column(
        String(20),
        nullable=False,
    )

    parent_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("accounts.id"),
        nullable=True,
    )

    level: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )

    # Seeded by the standard chart; informational only
    is_system: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )

    opening_balance: Mapped[Money] = mapped_column(
        default=Decimal("0.00"),
        nullable=False,
    )

    current_balance: Mapped[Money] = mapped_column(
        default=Decimal("0.00"),
        nullable=False,
    )

    currency: Mapped[str] = mapped_column(
        String(3),
        default="USD",
        nullable=False,
    )

    sort_order: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
    )

    parent: Mapped["Account | None"] = relationship(
        remote_side="Account.id",
        back_populates="children",
    )

    children: Mapped[list["Account"]] = relationship(
        back_populates="parent",
        order_by="Account.sort_order",
    )

    def __repr__(self) -> str:
        return f"<Account {self.code}: {self.name}>"

    @property
    def normal_balance(self) -> NormalBalance:
        return normal_balance_for(self.account_type)

    @property
    def is_debit_normal(self) -> bool:
        return self.normal_balance is NormalBalance.DEBIT

    @property
    def is_credit_normal(self) -> bool:
        return self.normal_balance is NormalBalance.CREDIT
