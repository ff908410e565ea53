"""
ORM-Level Immutability Enforcement.

===============================================================================
WHY THIS EXISTS
===============================================================================

A posted journal entry is a permanent fact.  Corrections happen by posting a
reversing entry, which leaves a visible trail; editing the original in place
would silently rewrite history and break the cached account balances that
were derived from it.  Likewise, a closed accounting period is sealed.

SQLAlchemy fires mapper events before UPDATE/DELETE statements are sent:

    session.flush()
         |
         v
    [before_update] --> _check_*_immutability() --> ImmutabilityViolationError
         |
         v
    [before_delete] --> _check_*_delete() --------> ImmutabilityViolationError
         |
         v
    SQL sent to database (only if checks pass)

A failed check aborts the flush; the enclosing savepoint or transaction is
rolled back by the caller.

===============================================================================
PROTECTED ENTITIES
===============================================================================

Entity            | When Immutable                      | Allowed change
------------------|-------------------------------------|----------------------------
JournalEntry      | status is POSTED or REVERSED        | POSTED -> REVERSED only
JournalEntryLine  | parent entry is POSTED or REVERSED  | none
Account           | account_type, once posted lines     | every other column
                  | reference the account               |
AccountingPeriod  | after is_closed becomes True        | none (closing is one-way)

updated_at/updated_by_id are audit metadata and may always change.

Account.current_balance is moved by an SQL-side UPDATE issued from
LedgerService.post_entry; bulk statements do not fire these mapper events,
so posting is not blocked by the account listener.

===============================================================================
USAGE
===============================================================================

    from ledger_kernel.db.immutability import register_immutability_listeners
    register_immutability_listeners()  # once at startup

Tests that must construct a forbidden state call
unregister_immutability_listeners() and register again afterwards.

===============================================================================
"""

from sqlalchemy import event, exists, inspect, select
from sqlalchemy.orm.attributes import get_history

from ledger_kernel.domain.dtos import EntryStatus
from ledger_kernel.exceptions import ImmutabilityViolationError
from ledger_kernel.logging_config import get_logger

logger = get_logger("db.immutability")

_AUDIT_FIELDS = frozenset({"updated_at", "updated_by_id"})

_SEALED_STATUSES = frozenset({EntryStatus.POSTED, EntryStatus.REVERSED})


def _block(entity_type: str, entity_id, operation: str, reason: str, **fields):
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": entity_type,
            "entity_id": str(entity_id),
            "operation": operation,
            **fields,
        },
    )
    raise ImmutabilityViolationError(
        entity_type=entity_type,
        entity_id=str(entity_id),
        reason=reason,
    )


def _changed_fields(target, ignore=frozenset()) -> list[str]:
    changed = []
    for attr in inspect(target).attrs:
        if attr.key in _AUDIT_FIELDS or attr.key in ignore:
            continue
        if attr.history.has_changes():
            changed.append(attr.key)
    return changed


# =============================================================================
# JournalEntry
# =============================================================================


def _check_journal_entry_immutability(mapper, connection, target):
    """
    Prevent updates to POSTED or REVERSED journal entries.

    The posting workflow itself (DRAFT -> POSTED) passes because the status
    it is leaving is DRAFT.  Reversal (POSTED -> REVERSED) passes provided
    nothing but the status changes.
    """
    status_history = get_history(target, "status")

    if status_history.deleted:
        previous = EntryStatus(status_history.deleted[0])
    else:
        previous = EntryStatus(target.status)

    if previous not in _SEALED_STATUSES:
        return

    if status_history.added:
        new_status = EntryStatus(status_history.added[0])
        if not (previous is EntryStatus.POSTED and new_status is EntryStatus.REVERSED):
            _block(
                "JournalEntry",
                target.id,
                "UPDATE",
                f"Illegal status transition {previous.value} -> {new_status.value}",
                field="status",
            )

    changed = _changed_fields(target, ignore=frozenset({"status"}))
    if changed:
        _block(
            "JournalEntry",
            target.id,
            "UPDATE",
            f"Cannot modify field '{changed[0]}' on {previous.value} journal entry",
            field=changed[0],
        )


def _check_journal_entry_delete(mapper, connection, target):
    """Posted and reversed journal entries cannot be deleted."""
    if EntryStatus(target.status) in _SEALED_STATUSES:
        _block(
            "JournalEntry",
            target.id,
            "DELETE",
            "Posted journal entries cannot be deleted",
        )


# =============================================================================
# JournalEntryLine
# =============================================================================


def _parent_status(connection, target) -> EntryStatus | None:
    from ledger_kernel.models.journal import JournalEntry

    if target.entry is not None:
        # Compare against the status as persisted, not a pending change
        history = get_history(target.entry, "status")
        if history.deleted:
            return EntryStatus(history.deleted[0])
        return EntryStatus(target.entry.status)

    row = connection.execute(
        select(JournalEntry.__table__.c.status).where(
            JournalEntry.__table__.c.id == str(target.journal_entry_id)
        )
    ).scalar_one_or_none()
    return EntryStatus(row) if row is not None else None


def _check_journal_line_immutability(mapper, connection, target):
    """Lines are frozen once their entry is posted."""
    if _parent_status(connection, target) in _SEALED_STATUSES:
        _block(
            "JournalEntryLine",
            target.id,
            "UPDATE",
            "Journal lines cannot be modified after the entry is posted",
        )


def _check_journal_line_delete(mapper, connection, target):
    """Lines cannot be deleted once their entry is posted."""
    if _parent_status(connection, target) in _SEALED_STATUSES:
        _block(
            "JournalEntryLine",
            target.id,
            "DELETE",
            "Journal lines cannot be deleted after the entry is posted",
        )


# =============================================================================
# Account
# =============================================================================


def _account_has_posted_lines(connection, account_id) -> bool:
    from ledger_kernel.models.journal import JournalEntry, JournalEntryLine

    entries = JournalEntry.__table__
    lines = JournalEntryLine.__table__
    stmt = select(
        exists().where(
            lines.c.account_id == str(account_id),
            lines.c.journal_entry_id == entries.c.id,
            entries.c.status.in_([s.value for s in _SEALED_STATUSES]),
        )
    )
    return bool(connection.execute(stmt).scalar())


def _check_account_structural_immutability(mapper, connection, target):
    """account_type is frozen once posted lines reference the account."""
    if not get_history(target, "account_type").has_changes():
        return

    if _account_has_posted_lines(connection, target.id):
        _block(
            "Account",
            target.id,
            "UPDATE",
            "Cannot change account_type on an account referenced by posted entries",
            field="account_type",
        )


# =============================================================================
# AccountingPeriod
# =============================================================================


def _check_period_immutability(mapper, connection, target):
    """Closed periods cannot be modified or reopened."""
    closed_history = get_history(target, "is_closed")
    if closed_history.deleted:
        was_closed = bool(closed_history.deleted[0])
    else:
        was_closed = bool(target.is_closed)

    if not was_closed:
        return

    changed = _changed_fields(target)
    if changed:
        _block(
            "AccountingPeriod",
            target.id,
            "UPDATE",
            f"Cannot modify field '{changed[0]}' on closed accounting period",
            field=changed[0],
        )


def _check_period_delete(mapper, connection, target):
    """Closed periods cannot be deleted."""
    if target.is_closed:
        _block(
            "AccountingPeriod",
            target.id,
            "DELETE",
            "Closed accounting periods cannot be deleted",
        )


# =============================================================================
# Registration
# =============================================================================


def _listeners():
    from ledger_kernel.models.account import Account
    from ledger_kernel.models.accounting_period import AccountingPeriod
    from ledger_kernel.models.journal import JournalEntry, JournalEntryLine

    return (
        (JournalEntry, "before_update", _check_journal_entry_immutability),
        (JournalEntry, "before_delete", _check_journal_entry_delete),
        (JournalEntryLine, "before_update", _check_journal_line_immutability),
        (JournalEntryLine, "before_delete", _check_journal_line_delete),
        (Account, "before_update", _check_account_structural_immutability),
        (AccountingPeriod, "before_update", _check_period_immutability),
        (AccountingPeriod, "before_delete", _check_period_delete),
    )


def register_immutability_listeners() -> None:
    """
    Register all immutability enforcement event listeners.

    Idempotent: listeners already registered are left alone.
    """
    for target, event_name, fn in _listeners():
        if not event.contains(target, event_name, fn):
            event.listen(target, event_name, fn)


def unregister_immutability_listeners() -> None:
    """
    Remove immutability enforcement event listeners.

    WARNING: Only use this in tests that must build a forbidden state.
    """
    for target, event_name, fn in _listeners():
        if event.contains(target, event_name, fn):
            event.remove(target, event_name, fn)
