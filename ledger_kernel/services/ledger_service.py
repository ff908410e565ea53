"""
LedgerService -- the journal entry lifecycle.

Responsibility:
    Creates balanced journal entries, posts them (status flip plus account
    balance mutation), and reverses posted entries by generating and posting
    an inverse entry.  This is the only code that writes journal entries or
    moves Account.current_balance.

Architecture position:
    Kernel > Services -- imperative shell.  Consumes PeriodService,
    SequenceService and the models.  Called by integration adapters,
    administrative callers and tests.

Invariants enforced:
    - Balance: an entry is accepted only when |debits - credits| < 0.01.
      Balance is checked again from the persisted lines at posting.
    - Atomicity: create_entry, post_entry and reverse_entry each run inside
      a SAVEPOINT.  A failure leaves no entry, no lines and no balance
      change behind, while the caller's outer transaction stays usable.
    - Idempotent posting: posting a POSTED entry returns it unchanged and
      applies no balance delta.  The status check happens under a row lock
      (SELECT ... FOR UPDATE) inside the same unit as the update.
    - Raw balance update: posting adds +amount for each debit line and
      -amount for each credit line to current_balance, whatever the account
      type.  Reports reinterpret the raw value through the normal-balance
      rule; current_balance keeps its raw meaning.
    - SQL-side increments: balances move via
      ``UPDATE accounts SET current_balance = current_balance + :delta``,
      never read-modify-write in Python.
    - Closed periods accept neither new entries nor postings.
    - Reversal never rewrites the original's lines or balances; the original
      only changes status POSTED -> REVERSED.

Failure modes:
    - UnbalancedEntryError: debits and credits differ by 0.01 or more.
    - InvalidEntryError: fewer than two lines.
    - AccountNotFoundError / AccountInactiveError: bad line account.
    - ClosedPeriodError: resolved period is closed.
    - PeriodNotFoundError: explicit period_id does not exist.
    - DuplicateEntryNumberError: caller-supplied number already used.
    - EntryNotFoundError: unknown entry id.
    - InvalidEntryStateError: posting a REVERSED entry.
    - EntryNotPostedError: reversing an entry that is not POSTED.

Audit relevance:
    entry_created, entry_posted and entry_reversed are logged at INFO with
    entry_number, actor and totals; rejections at WARNING.  posted_by_id
    and posted_at are stamped only here, from the injected clock.
"""

from collections import defaultdict
from collections.abc import Sequence
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import case, func, select, update
from sqlalchemy.orm import Session

from ledger_kernel.db.types import ZERO, is_balanced, round_money
from ledger_kernel.domain.account_types import LineSide, raw_signed_amount
from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.domain.dtos import (
    EntryHeader,
    EntryStatus,
    EntryType,
    JournalEntryInfo,
    LineSpec,
    SourceRef,
)
from ledger_kernel.exceptions import (
    AccountInactiveError,
    AccountNotFoundError,
    ClosedPeriodError,
    DuplicateEntryNumberError,
    EntryNotFoundError,
    EntryNotPostedError,
    InvalidEntryError,
    InvalidEntryStateError,
    UnbalancedEntryError,
)
from ledger_kernel.logging_config import LogContext, get_logger
from ledger_kernel.models.account import Account
from ledger_kernel.models.accounting_period import AccountingPeriod
from ledger_kernel.models.journal import JournalEntry, JournalEntryLine
from ledger_kernel.selectors.journal_selector import (
    entry_number_sequence_name,
    format_entry_number,
)
from ledger_kernel.services.base import BaseService
from ledger_kernel.services.period_service import PeriodService
from ledger_kernel.services.sequence_service import SequenceService

logger = get_logger("services.ledger")

REVERSAL_LINE_PREFIX = "Reversal: "


def _opposite(side: LineSide) -> LineSide:
    return LineSide.CREDIT if LineSide(side) is LineSide.DEBIT else LineSide.DEBIT


class LedgerService(BaseService[JournalEntry]):
    """
    Journal entry lifecycle orchestrator.

    Contract:
        Every operation takes the acting user's id explicitly.  Results are
        JournalEntryInfo snapshots including lines.  The service flushes
        inside savepoints and never commits the outer transaction.

    Guarantees:
        - A successful create_entry leaves a DRAFT entry with line_number
          1..N in input order and no balance change.
        - A successful post_entry applies each line's raw delta exactly once.
        - A successful reverse_entry leaves the original REVERSED and a new
          POSTED entry whose lines mirror the original's with sides swapped.

    Non-goals:
        - No retries; retry policy belongs to integration callers.
        - No deduplication by source record.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        period_service: PeriodService | None = None,
        sequence_service: SequenceService | None = None,
    ):
        super().__init__(session)
        self._clock = clock or SystemClock()
        self._periods = period_service or PeriodService(session, self._clock)
        self._sequences = sequence_service or SequenceService(session)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_entry(self, entry_id: UUID) -> JournalEntryInfo:
        """
        Hydrated snapshot of an entry.

        Raises:
            EntryNotFoundError: Unknown entry id.
        """
        entry = self.session.get(JournalEntry, entry_id)
        if entry is None:
            raise EntryNotFoundError(str(entry_id))
        return JournalEntryInfo.from_model(entry)

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create_entry(
        self,
        header: EntryHeader,
        lines: Sequence[LineSpec],
        actor_id: UUID,
    ) -> JournalEntryInfo:
        """
        Validate and persist a DRAFT journal entry.

        Preconditions:
            - Every LineSpec references an existing, active account.
        Postconditions:
            - The entry is DRAFT, filed under the period covering
              header.entry_date (created if missing), numbered
              JE-<year>-<seq> unless header.entry_number was given.
            - No account balance has changed.

        Raises:
            UnbalancedEntryError, InvalidEntryError, AccountNotFoundError,
            AccountInactiveError, ClosedPeriodError, PeriodNotFoundError,
            PeriodResolutionError, DuplicateEntryNumberError.
        """
        lines = list(lines)
        with LogContext.bind(actor_id=str(actor_id)):
            self._validate_lines(lines)
            with self.session.begin_nested():
                entry = self._create_orm(header, lines, actor_id)
            return JournalEntryInfo.from_model(entry)

    def _validate_lines(self, lines: Sequence[LineSpec]) -> None:
        if len(lines) < 2:
            logger.warning(
                "entry_rejected_too_few_lines",
                extra={"line_count": len(lines)},
            )
            raise InvalidEntryError("a journal entry needs at least two lines")

        debits = sum((line.debit_amount for line in lines), ZERO)
        credits = sum((line.credit_amount for line in lines), ZERO)
        if not is_balanced(debits, credits):
            logger.warning(
                "entry_rejected_unbalanced",
                extra={"debits": str(debits), "credits": str(credits)},
            )
            raise UnbalancedEntryError(str(debits), str(credits))

    def _load_accounts(self, lines: Sequence[LineSpec]) -> dict[UUID, Account]:
        wanted = {line.account_id for line in lines}
        accounts = {
            account.id: account
            for account in self.session.execute(
                select(Account).where(Account.id.in_(list(wanted)))
            ).scalars()
        }
        for line in lines:
            account = accounts.get(line.account_id)
            if account is None:
                raise AccountNotFoundError(str(line.account_id))
            if not account.is_active:
                logger.warning(
                    "entry_rejected_inactive_account",
                    extra={"account_code": account.code},
                )
                raise AccountInactiveError(str(line.account_id))
        return accounts

    def _period_for(self, header: EntryHeader, actor_id: UUID) -> AccountingPeriod:
        if header.period_id is not None:
            period = self._periods._get_orm(header.period_id)
        else:
            period = self._periods._resolve_orm(header.entry_date, actor_id)

        if period.is_closed:
            logger.warning(
                "entry_rejected_closed_period",
                extra={"period_name": period.name, "entry_date": str(header.entry_date)},
            )
            raise ClosedPeriodError(period.name, str(header.entry_date))
        return period

    def _entry_number_taken(self, entry_number: str) -> bool:
        return (
            self.session.execute(
                select(JournalEntry.id).where(JournalEntry.entry_number == entry_number)
            ).first()
            is not None
        )

    def _allocate_entry_number(self, entry_date: date) -> str:
        year = entry_date.year
        while True:
            candidate = format_entry_number(
                year,
                self._sequences.next_value(entry_number_sequence_name(year)),
            )
            # Skip numbers already claimed by caller-supplied overrides
            if not self._entry_number_taken(candidate):
                return candidate

    def _create_orm(
        self,
        header: EntryHeader,
        lines: Sequence[LineSpec],
        actor_id: UUID,
    ) -> JournalEntry:
        accounts = self._load_accounts(lines)
        period = self._period_for(header, actor_id)

        if header.entry_number is not None:
            if self._entry_number_taken(header.entry_number):
                raise DuplicateEntryNumberError(header.entry_number)
            entry_number = header.entry_number
        else:
            entry_number = self._allocate_entry_number(header.entry_date)

        entry = JournalEntry(
            entry_number=entry_number,
            seq=self._sequences.next_value(SequenceService.JOURNAL_ENTRY),
            entry_date=header.entry_date,
            entry_type=EntryType(header.entry_type).value,
            status=EntryStatus.DRAFT.value,
            description=header.description,
            reference=header.reference,
            period_id=period.id,
            notes=header.notes,
            created_by_id=actor_id,
        )
        entry.source = header.source

        for number, line_spec in enumerate(lines, start=1):
            entry.lines.append(
                JournalEntryLine(
                    account=accounts[line_spec.account_id],
                    account_id=line_spec.account_id,
                    side=line_spec.side.value,
                    amount=line_spec.amount,
                    description=line_spec.description,
                    reference=line_spec.reference,
                    line_number=number,
                    created_by_id=actor_id,
                )
            )

        self.session.add(entry)
        self.session.flush()

        logger.info(
            "entry_created",
            extra={
                "entry_id": str(entry.id),
                "entry_number": entry.entry_number,
                "entry_date": str(entry.entry_date),
                "entry_type": entry.entry_type,
                "line_count": len(lines),
                "total_debits": str(entry.total_debits),
                "period_name": period.name,
            },
        )
        return entry

    # ------------------------------------------------------------------
    # Post
    # ------------------------------------------------------------------

    def _lock_entry(self, entry_id: UUID) -> JournalEntry:
        entry = self.session.execute(
            select(JournalEntry)
            .where(JournalEntry.id == entry_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if entry is None:
            raise EntryNotFoundError(str(entry_id))
        return entry

    def _persisted_totals(self, entry_id: UUID) -> tuple[Decimal, Decimal]:
        row = self.session.execute(
            select(
                func.sum(
                    case(
                        (JournalEntryLine.side == LineSide.DEBIT.value, JournalEntryLine.amount),
                        else_=0,
                    )
                ),
                func.sum(
                    case(
                        (JournalEntryLine.side == LineSide.CREDIT.value, JournalEntryLine.amount),
                        else_=0,
                    )
                ),
            ).where(JournalEntryLine.journal_entry_id == entry_id)
        ).one()
        debits, credits = (
            round_money(Decimal(str(value))) if value is not None else ZERO
            for value in row
        )
        return debits, credits

    def post_entry(self, entry_id: UUID, actor_id: UUID) -> JournalEntryInfo:
        """
        Post a DRAFT entry: flip to POSTED and apply balance deltas.

        Idempotent: a POSTED entry is returned unchanged.

        Raises:
            EntryNotFoundError, InvalidEntryStateError (entry is REVERSED),
            UnbalancedEntryError (persisted lines no longer balance),
            ClosedPeriodError.
        """
        with LogContext.bind(actor_id=str(actor_id), entry_id=str(entry_id)):
            with self.session.begin_nested():
                entry = self._lock_entry(entry_id)

                if entry.is_posted:
                    logger.info(
                        "entry_already_posted",
                        extra={"entry_number": entry.entry_number},
                    )
                    return JournalEntryInfo.from_model(entry)

                if not entry.is_draft:
                    logger.warning(
                        "entry_post_rejected",
                        extra={"entry_number": entry.entry_number, "status": entry.status},
                    )
                    raise InvalidEntryStateError(str(entry.id), str(entry.status), "post")

                self._post_orm(entry, actor_id)
            return JournalEntryInfo.from_model(entry)

    def _post_orm(self, entry: JournalEntry, actor_id: UUID) -> None:
        debits, credits = self._persisted_totals(entry.id)
        if not is_balanced(debits, credits):
            logger.warning(
                "entry_post_rejected_unbalanced",
                extra={
                    "entry_number": entry.entry_number,
                    "debits": str(debits),
                    "credits": str(credits),
                },
            )
            raise UnbalancedEntryError(str(debits), str(credits))

        period = self.session.get(AccountingPeriod, entry.period_id)
        if period is not None and period.is_closed:
            logger.warning(
                "entry_post_rejected_closed_period",
                extra={"entry_number": entry.entry_number, "period_name": period.name},
            )
            raise ClosedPeriodError(period.name, str(entry.entry_date))

        entry.status = EntryStatus.POSTED.value
        entry.posted_by_id = actor_id
        entry.posted_at = self._clock.now()
        self.session.flush()

        deltas: dict[UUID, Decimal] = defaultdict(lambda: ZERO)
        for line in entry.lines:
            deltas[line.account_id] += raw_signed_amount(line.side, line.amount)

        # Stable lock order across concurrent postings
        for account_id in sorted(deltas, key=str):
            self.session.execute(
                update(Account)
                .where(Account.id == account_id)
                .values(current_balance=Account.current_balance + deltas[account_id])
                .execution_options(synchronize_session=False)
            )

        for obj in list(self.session.identity_map.values()):
            if isinstance(obj, Account) and obj.id in deltas:
                self.session.expire(obj, ["current_balance", "updated_at"])

        logger.info(
            "entry_posted",
            extra={
                "entry_number": entry.entry_number,
                "total_debits": str(debits),
                "total_credits": str(credits),
                "accounts_touched": len(deltas),
            },
        )

    # ------------------------------------------------------------------
    # Reverse
    # ------------------------------------------------------------------

    def reverse_entry(
        self,
        entry_id: UUID,
        actor_id: UUID,
        description: str | None = None,
        entry_date: date | None = None,
    ) -> JournalEntryInfo:
        """
        Reverse a POSTED entry with a new, posted inverse entry.

        The new entry mirrors every line with debit and credit swapped,
        prefixes line descriptions with "Reversal: ", references the
        original's entry number, and records the original as its source.
        The original becomes REVERSED; its own postings stay in place.

        Args:
            entry_id: Entry to reverse.
            actor_id: Acting user.
            description: Header description; defaults to
                "Reversal of <entry_number>".
            entry_date: Date of the reversing entry; defaults to today.

        Returns:
            The reversing entry.

        Raises:
            EntryNotFoundError, EntryNotPostedError, ClosedPeriodError,
            AccountInactiveError (an original account has been deactivated).
        """
        with LogContext.bind(actor_id=str(actor_id), entry_id=str(entry_id)):
            with self.session.begin_nested():
                original = self._lock_entry(entry_id)

                if not original.is_posted:
                    logger.warning(
                        "entry_reversal_rejected",
                        extra={
                            "entry_number": original.entry_number,
                            "status": original.status,
                        },
                    )
                    raise EntryNotPostedError(str(original.id), str(original.status))

                specs = [
                    LineSpec(
                        account_id=line.account_id,
                        side=_opposite(line.side),
                        amount=line.amount,
                        description=f"{REVERSAL_LINE_PREFIX}{line.description or ''}",
                        reference=line.reference,
                    )
                    for line in original.lines
                ]
                self._validate_lines(specs)

                header = EntryHeader(
                    entry_date=entry_date or self._clock.today(),
                    description=description or f"Reversal of {original.entry_number}",
                    entry_type=EntryType.MANUAL,
                    reference=original.entry_number,
                    source=SourceRef.journal_entry(original.id),
                )
                reversal = self._create_orm(header, specs, actor_id)
                self._post_orm(reversal, actor_id)

                original.status = EntryStatus.REVERSED.value
                original.updated_by_id = actor_id
                self.session.flush()

                logger.info(
                    "entry_reversed",
                    extra={
                        "original_entry_number": original.entry_number,
                        "reversal_entry_number": reversal.entry_number,
                        "reversal_entry_id": str(reversal.id),
                    },
                )
            return JournalEntryInfo.from_model(reversal)
