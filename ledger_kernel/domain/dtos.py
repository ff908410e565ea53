"""
DTOs -- Pure domain data transfer objects.

Responsibility:
    Defines the immutable structures that cross the service boundary:
    LineSpec and EntryHeader (inputs to journal entry creation), SourceRef
    (typed origin of an entry), and the read-side snapshots AccountInfo,
    PeriodInfo, JournalLineInfo and JournalEntryInfo returned by services
    and selectors.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    from_model() class methods are boundary converters invoked only from
    the service and selector layers.

Invariants enforced:
    - LineSpec amounts are non-negative Decimals with two fraction digits.
    - Services and selectors return these snapshots, never ORM entities, so
      callers cannot mutate ledger rows behind the service layer's back.

Failure modes:
    - ValueError on LineSpec with a negative amount.
    - TypeError on LineSpec with a float amount.
    - ValueError on EntryHeader with a blank description.

Data flow:
    (EntryHeader, [LineSpec]) -> LedgerService.create_entry -> JournalEntryInfo
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID

from ledger_kernel.db.types import ZERO, is_balanced, to_money
from ledger_kernel.domain.account_types import (
    AccountType,
    LineSide,
    NormalBalance,
    normal_balance_for,
)

if TYPE_CHECKING:
    from ledger_kernel.models.account import Account as AccountModel
    from ledger_kernel.models.accounting_period import (
        AccountingPeriod as AccountingPeriodModel,
    )
    from ledger_kernel.models.journal import (
        JournalEntry as JournalEntryModel,
        JournalEntryLine as JournalEntryLineModel,
    )


class EntryStatus(str, Enum):
    """
    Status of a journal entry.

    Contract:
        Lifecycle: DRAFT -> POSTED -> REVERSED.  No other transitions.
    """

    DRAFT = "draft"
    POSTED = "posted"
    REVERSED = "reversed"


class EntryType(str, Enum):
    """MANUAL entries are keyed by a person; AUTO entries come from integrations."""

    MANUAL = "manual"
    AUTO = "auto"


class SourceKind(str, Enum):
    """Kinds of records a journal entry can originate from."""

    INCOME = "income"
    EXPENSE = "expense"
    JOURNAL_ENTRY = "journal_entry"


@dataclass(frozen=True)
class SourceRef:
    """
    Typed pointer to the record that caused a journal entry.

    Guarantees:
        - kind is a closed SourceKind, id is the origin's identifier as text.
    """

    kind: SourceKind
    id: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "kind", SourceKind(self.kind))
        object.__setattr__(self, "id", str(self.id))

    @classmethod
    def journal_entry(cls, entry_id: UUID) -> SourceRef:
        return cls(SourceKind.JOURNAL_ENTRY, str(entry_id))


@dataclass(frozen=True)
class LineSpec:
    """
    Input for one journal line.

    Contract:
        Caller input for create_entry.  References the account by id and
        carries a side plus a non-negative amount.

    Guarantees:
        - amount is a Decimal rounded to cents (validated in __post_init__).
        - side is a LineSide.
    """

    account_id: UUID
    side: LineSide
    amount: Decimal
    description: str | None = None
    reference: str | None = None

    def __post_init__(self) -> None:
        amount = to_money(self.amount)
        if amount < 0:
            raise ValueError(f"Line amount must be non-negative, got {amount}")
        object.__setattr__(self, "amount", amount)
        object.__setattr__(self, "side", LineSide(self.side))

    @classmethod
    def debit(
        cls,
        account_id: UUID,
        amount: Decimal | int | str,
        description: str | None = None,
        reference: str | None = None,
    ) -> LineSpec:
        return cls(account_id, LineSide.DEBIT, amount, description, reference)

    @classmethod
    def credit(
        cls,
        account_id: UUID,
        amount: Decimal | int | str,
        description: str | None = None,
        reference: str | None = None,
    ) -> LineSpec:
        return cls(account_id, LineSide.CREDIT, amount, description, reference)

    @property
    def debit_amount(self) -> Decimal:
        return self.amount if self.side is LineSide.DEBIT else ZERO

    @property
    def credit_amount(self) -> Decimal:
        return self.amount if self.side is LineSide.CREDIT else ZERO


@dataclass(frozen=True)
class EntryHeader:
    """
    Header fields for a new journal entry.

    entry_number and period_id are optional overrides; when omitted the
    ledger allocates the next number and resolves the covering period.
    """

    entry_date: date
    description: str
    entry_type: EntryType = EntryType.MANUAL
    reference: str | None = None
    entry_number: str | None = None
    period_id: UUID | None = None
    source: SourceRef | None = None
    notes: str | None = None

    def __post_init__(self) -> None:
        if not self.description or not self.description.strip():
            raise ValueError("Journal entry description must not be blank")
        object.__setattr__(self, "entry_type", EntryType(self.entry_type))


@dataclass(frozen=True)
class AccountInfo:
    """Read-only snapshot of a chart-of-accounts row."""

    id: UUID
    code: str
    name: str
    account_type: AccountType
    parent_id: UUID | None
    level: int
    is_active: bool
    is_system: bool
    opening_balance: Decimal
    current_balance: Decimal
    currency: str
    sort_order: int
    description: str | None = None

    @property
    def normal_balance(self) -> NormalBalance:
        return normal_balance_for(self.account_type)

    @classmethod
    def from_model(cls, account: AccountModel) -> AccountInfo:
        return cls(
            id=account.id,
            code=account.code,
            name=account.name,
            account_type=AccountType(account.account_type),
            parent_id=account.parent_id,
            level=account.level,
            is_active=account.is_active,
            is_system=account.is_system,
            opening_balance=account.opening_balance,
            current_balance=account.current_balance,
            currency=account.currency,
            sort_order=account.sort_order,
            description=account.description,
        )


@dataclass(frozen=True)
class PeriodInfo:
    """Read-only snapshot of an accounting period."""

    id: UUID
    name: str
    start_date: date
    end_date: date
    is_closed: bool
    closed_at: datetime | None = None
    closed_by_id: UUID | None = None
    notes: str | None = None

    def contains(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date

    @classmethod
    def from_model(cls, period: AccountingPeriodModel) -> PeriodInfo:
        return cls(
            id=period.id,
            name=period.name,
            start_date=period.start_date,
            end_date=period.end_date,
            is_closed=period.is_closed,
            closed_at=period.closed_at,
            closed_by_id=period.closed_by_id,
            notes=period.notes,
        )


@dataclass(frozen=True)
class JournalLineInfo:
    """Read-only snapshot of a journal entry line."""

    id: UUID
    line_number: int
    account_id: UUID
    account_code: str
    account_name: str
    side: LineSide
    amount: Decimal
    description: str | None = None
    reference: str | None = None

    @property
    def debit(self) -> Decimal:
        return self.amount if self.side is LineSide.DEBIT else ZERO

    @property
    def credit(self) -> Decimal:
        return self.amount if self.side is LineSide.CREDIT else ZERO

    @classmethod
    def from_model(cls, line: JournalEntryLineModel) -> JournalLineInfo:
        return cls(
            id=line.id,
            line_number=line.line_number,
            account_id=line.account_id,
            account_code=line.account.code,
            account_name=line.account.name,
            side=LineSide(line.side),
            amount=line.amount,
            description=line.description,
            reference=line.reference,
        )


@dataclass(frozen=True)
class JournalEntryInfo:
    """
    Read-only snapshot of a journal entry with its lines.

    Guarantees:
        - lines are ordered by line_number.
    """

    id: UUID
    entry_number: str
    seq: int
    entry_date: date
    entry_type: EntryType
    status: EntryStatus
    description: str
    period_id: UUID
    created_by_id: UUID
    reference: str | None = None
    posted_by_id: UUID | None = None
    posted_at: datetime | None = None
    source: SourceRef | None = None
    notes: str | None = None
    lines: tuple[JournalLineInfo, ...] = field(default_factory=tuple)

    @property
    def total_debits(self) -> Decimal:
        return sum((line.debit for line in self.lines), ZERO)

    @property
    def total_credits(self) -> Decimal:
        return sum((line.credit for line in self.lines), ZERO)

    @property
    def is_balanced(self) -> bool:
        return is_balanced(self.total_debits, self.total_credits)

    @property
    def is_draft(self) -> bool:
        return self.status is EntryStatus.DRAFT

    @property
    def is_posted(self) -> bool:
        return self.status is EntryStatus.POSTED

    @property
    def is_reversed(self) -> bool:
        return self.status is EntryStatus.REVERSED

    @classmethod
    def from_model(cls, entry: JournalEntryModel) -> JournalEntryInfo:
        lines = sorted(entry.lines, key=lambda ln: ln.line_number)
        return cls(
            id=entry.id,
            entry_number=entry.entry_number,
            seq=entry.seq,
            entry_date=entry.entry_date,
            entry_type=EntryType(entry.entry_type),
            status=EntryStatus(entry.status),
            description=entry.description,
            period_id=entry.period_id,
            created_by_id=entry.created_by_id,
            reference=entry.reference,
            posted_by_id=entry.posted_by_id,
            posted_at=entry.posted_at,
            source=entry.source,
            notes=entry.notes,
            lines=tuple(JournalLineInfo.from_model(line) for line in lines),
        )
