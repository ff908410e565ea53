"""
Integration entrypoint for external income and expense events.

Responsibility:
    Turns an income or expense record raised by another subsystem into a
    posted two-line journal entry against the well-known cash, revenue and
    expense accounts.  This is the only place automatically generated
    (AUTO) entries come from.

Architecture position:
    Services layer.  Consumes ``LedgerService`` and ``AccountSelector``
    from the kernel and ``WellKnownAccounts`` from ``ledger_config``.

Invariants enforced:
    - Income: debit cash / credit revenue.  Expense: debit expense /
      credit cash.  Both lines carry the full event amount.
    - Each recorded event yields exactly one POSTED entry of type AUTO whose
      source is ``SourceRef(INCOME|EXPENSE, event.id)``.
    - No deduplication by source id; callers that need at-most-once must
      deduplicate themselves.
    - Retries happen only in ``ExternalEventHandler`` and only for
      ``OperationalError``; each attempt runs in a fresh transaction.

Failure modes:
    - MissingChartAccountError: a well-known account code is absent.
    - InvalidCurrencyError: event currency is not ISO 4217.
    - ValueError: negative amount or blank description.
    - Any ledger error from create/post propagates unchanged.

Usage:

    handler = ExternalEventHandler(get_session_factory(), settings, clock)
    entry = handler.handle(
        ExternalEvent(
            id="inv-42",
            record_type=ExternalRecordType.INCOME,
            amount=Decimal("250.00"),
            currency="USD",
            description="Consulting invoice",
        ),
        actor_id=system_user_id,
    )
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker

from ledger_config.schema import LedgerSettings, WellKnownAccounts
from ledger_kernel.db.engine import session_scope
from ledger_kernel.db.types import to_money, validate_currency
from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.domain.dtos import (
    AccountInfo,
    EntryHeader,
    EntryType,
    JournalEntryInfo,
    LineSpec,
    SourceKind,
    SourceRef,
)
from ledger_kernel.exceptions import MissingChartAccountError
from ledger_kernel.logging_config import LogContext, get_logger
from ledger_kernel.selectors.account_selector import AccountSelector
from ledger_kernel.services.ledger_service import LedgerService

logger = get_logger("services.integration")


class ExternalRecordType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"

    @property
    def source_kind(self) -> SourceKind:
        return SourceKind(self.value)


@dataclass(frozen=True)
class ExternalEvent:
    """
    Payload of an income or expense record from another subsystem.

    amount is coerced to a two-decimal Decimal; floats are rejected.
    """

    id: str
    record_type: ExternalRecordType
    amount: Decimal
    currency: str
    description: str
    reference: str | None = None
    transaction_date: date | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "id", str(self.id))
        object.__setattr__(self, "record_type", ExternalRecordType(self.record_type))
        amount = to_money(self.amount)
        if amount < 0:
            raise ValueError(f"External event amount cannot be negative: {amount}")
        object.__setattr__(self, "amount", amount)
        object.__setattr__(self, "currency", validate_currency(self.currency))
        if not self.description or not self.description.strip():
            raise ValueError("External event description must not be blank")

    @property
    def source(self) -> SourceRef:
        return SourceRef(self.record_type.source_kind, self.id)


class ExternalEventRecorder:
    """
    Records external events as posted journal entries.

    Contract:
        Works inside the caller's session through the given LedgerService;
        never commits.

    Non-goals:
        - No currency conversion; the amount is booked as given.
        - No retries (see ExternalEventHandler).
    """

    def __init__(
        self,
        ledger_service: LedgerService,
        account_selector: AccountSelector,
        settings: LedgerSettings | None = None,
        clock: Clock | None = None,
    ):
        self._ledger = ledger_service
        self._accounts = account_selector
        self._well_known = (
            settings.well_known_accounts if settings is not None else WellKnownAccounts()
        )
        self._clock = clock or SystemClock()

    def _account(self, code: str, role: str) -> AccountInfo:
        account = self._accounts.get_by_code(code)
        if account is None:
            logger.error(
                "well_known_account_missing",
                extra={"account_code": code, "role": role},
            )
            raise MissingChartAccountError(code, role)
        return account

    def _lines(self, event: ExternalEvent) -> list[LineSpec]:
        cash = self._account(self._well_known.cash, "cash")
        if event.record_type is ExternalRecordType.INCOME:
            revenue = self._account(self._well_known.revenue, "revenue")
            return [
                LineSpec.debit(cash.id, event.amount, description=event.description),
                LineSpec.credit(revenue.id, event.amount, description=event.description),
            ]

        expense = self._account(self._well_known.expense, "expense")
        return [
            LineSpec.debit(expense.id, event.amount, description=event.description),
            LineSpec.credit(cash.id, event.amount, description=event.description),
        ]

    def record(self, event: ExternalEvent, actor_id: UUID) -> JournalEntryInfo:
        """
        Create and post the journal entry for one event.

        Returns:
            The POSTED entry.

        Raises:
            MissingChartAccountError: A well-known account is absent.
        """
        with LogContext.bind(source_id=event.id):
            lines = self._lines(event)
            label = "Income" if event.record_type is ExternalRecordType.INCOME else "Expense"
            header = EntryHeader(
                entry_date=event.transaction_date or self._clock.today(),
                description=f"{label}: {event.description}",
                entry_type=EntryType.AUTO,
                reference=event.reference,
                source=event.source,
            )
            entry = self._ledger.create_entry(header, lines, actor_id)
            return self._ledger.post_entry(entry.id, actor_id)

    def record_income(self, event: ExternalEvent, actor_id: UUID) -> JournalEntryInfo:
        if event.record_type is not ExternalRecordType.INCOME:
            raise ValueError(f"Expected an income event, got {event.record_type.value}")
        return self.record(event, actor_id)

    def record_expense(self, event: ExternalEvent, actor_id: UUID) -> JournalEntryInfo:
        if event.record_type is not ExternalRecordType.EXPENSE:
            raise ValueError(f"Expected an expense event, got {event.record_type.value}")
        return self.record(event, actor_id)


class ExternalEventHandler:
    """
    Queue-listener style wrapper around ExternalEventRecorder.

    Each attempt opens its own ``session_scope`` so a failed attempt is
    rolled back completely before the next one starts.  Only
    ``OperationalError`` (lost connection, lock timeout, serialization
    failure) is retried; every other error is logged and re-raised at once.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        settings: LedgerSettings | None = None,
        clock: Clock | None = None,
        max_attempts: int = 3,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._session_factory = session_factory
        self._settings = settings
        self._clock = clock or SystemClock()
        self.max_attempts = max_attempts

    def _record_once(self, event: ExternalEvent, actor_id: UUID) -> JournalEntryInfo:
        with session_scope(self._session_factory) as session:
            recorder = ExternalEventRecorder(
                LedgerService(session, self._clock),
                AccountSelector(session),
                self._settings,
                self._clock,
            )
            return recorder.record(event, actor_id)

    def handle(self, event: ExternalEvent, actor_id: UUID) -> JournalEntryInfo:
        """
        Record one event, retrying transient store failures.

        Raises:
            The last error once attempts are exhausted, or the first
            non-retryable error.
        """
        attempt = 0
        while True:
            attempt += 1
            try:
                entry = self._record_once(event, actor_id)
            except OperationalError as exc:
                if attempt < self.max_attempts:
                    logger.warning(
                        "external_event_retry",
                        extra={
                            "source_id": event.id,
                            "record_type": event.record_type.value,
                            "attempt": attempt,
                            "error": str(exc),
                        },
                    )
                    continue
                self._log_failure(event, exc, attempt)
                raise
            except Exception as exc:
                self._log_failure(event, exc, attempt)
                raise

            logger.info(
                "external_event_recorded",
                extra={
                    "source_id": event.id,
                    "record_type": event.record_type.value,
                    "amount": str(event.amount),
                    "currency": event.currency,
                    "entry_number": entry.entry_number,
                    "attempt": attempt,
                },
            )
            return entry

    def _log_failure(self, event: ExternalEvent, exc: Exception, attempt: int) -> None:
        logger.error(
            "external_event_failed",
            extra={
                "source_id": event.id,
                "record_type": event.record_type.value,
                "attempt": attempt,
                "error": str(exc),
                "error_type": type(exc).__name__,
            },
            exc_info=True,
        )
