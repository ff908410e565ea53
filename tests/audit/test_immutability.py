"""
Append-only persistence tests.

Verifies:
- JournalEntry is immutable after posting (only POSTED -> REVERSED allowed)
- JournalEntryLine is immutable when its entry is posted
- Account.account_type is frozen once posted lines reference the account
- Closed accounting periods cannot be modified, reopened or deleted
- DRAFT entries remain editable
"""

from contextlib import contextmanager
from datetime import date
from decimal import Decimal

import pytest

from ledger_kernel.db.immutability import (
    register_immutability_listeners,
    unregister_immutability_listeners,
)
from ledger_kernel.domain.dtos import EntryStatus, LineSpec
from ledger_kernel.exceptions import ImmutabilityViolationError
from ledger_kernel.models.account import Account
from ledger_kernel.models.accounting_period import AccountingPeriod
from ledger_kernel.models.journal import JournalEntry, JournalEntryLine


@contextmanager
def disabled_immutability():
    """Temporarily remove the ORM listeners to build a forbidden state."""
    unregister_immutability_listeners()
    try:
        yield
    finally:
        register_immutability_listeners()


@pytest.fixture
def posted_entry(post, chart):
    return post([
        LineSpec.debit(chart["1110"].id, Decimal("100.00")),
        LineSpec.credit(chart["4100"].id, Decimal("100.00")),
    ])


class TestJournalEntryImmutability:

    def test_posted_description_cannot_change(self, session, posted_entry, captured_logs):
        entry = session.get(JournalEntry, posted_entry.id)
        entry.description = "Rewritten history"

        with pytest.raises(ImmutabilityViolationError) as exc_info:
            session.flush()

        assert exc_info.value.entity_type == "JournalEntry"
        assert "description" in exc_info.value.reason
        blocked = [r for r in captured_logs() if r["message"] == "immutability_violation_blocked"]
        assert blocked[0]["field"] == "description"

    def test_posted_date_cannot_change(self, session, posted_entry):
        entry = session.get(JournalEntry, posted_entry.id)
        entry.entry_date = date(2024, 1, 1)

        with pytest.raises(ImmutabilityViolationError):
            session.flush()

    def test_posted_cannot_return_to_draft(self, session, posted_entry):
        entry = session.get(JournalEntry, posted_entry.id)
        entry.status = EntryStatus.DRAFT.value

        with pytest.raises(ImmutabilityViolationError) as exc_info:
            session.flush()

        assert "posted -> draft" in exc_info.value.reason

    def test_posted_cannot_be_deleted(self, session, posted_entry):
        session.delete(session.get(JournalEntry, posted_entry.id))

        with pytest.raises(ImmutabilityViolationError):
            session.flush()

    def test_reversed_entry_sealed(self, session, ledger_service, posted_entry, test_actor_id):
        ledger_service.reverse_entry(posted_entry.id, test_actor_id)
        entry = session.get(JournalEntry, posted_entry.id)
        entry.notes = "annotated later"

        with pytest.raises(ImmutabilityViolationError):
            session.flush()

    def test_draft_is_editable(self, session, create_entry, chart):
        draft = create_entry([
            LineSpec.debit(chart["1110"].id, Decimal("5")),
            LineSpec.credit(chart["4100"].id, Decimal("5")),
        ])
        entry = session.get(JournalEntry, draft.id)
        entry.description = "Corrected before posting"
        entry.lines[0].description = "Till"

        session.flush()

        assert session.get(JournalEntry, draft.id).description == "Corrected before posting"


class TestJournalLineImmutability:

    def test_posted_line_amount_cannot_change(self, session, posted_entry):
        line = session.get(JournalEntryLine, posted_entry.lines[0].id)
        line.amount = Decimal("1.00")

        with pytest.raises(ImmutabilityViolationError) as exc_info:
            session.flush()

        assert exc_info.value.entity_type == "JournalEntryLine"

    def test_posted_line_cannot_be_deleted(self, session, posted_entry):
        session.delete(session.get(JournalEntryLine, posted_entry.lines[1].id))

        with pytest.raises(ImmutabilityViolationError):
            session.flush()


class TestAccountImmutability:

    def test_type_frozen_after_posting(self, session, posted_entry, chart):
        account = session.get(Account, chart["1110"].id)
        account.account_type = "liability"

        with pytest.raises(ImmutabilityViolationError) as exc_info:
            session.flush()

        assert exc_info.value.entity_type == "Account"

    def test_type_changeable_without_history(self, session, chart):
        account = session.get(Account, chart["5230"].id)
        account.account_type = "liability"

        session.flush()

    def test_other_columns_changeable_after_posting(self, session, posted_entry, chart):
        account = session.get(Account, chart["1110"].id)
        account.name = "Operating Cash"

        session.flush()

        assert session.get(Account, chart["1110"].id).name == "Operating Cash"


class TestPeriodImmutability:

    @pytest.fixture
    def closed_period(self, session, period_service, test_actor_id):
        period = period_service.create_period(
            "2023-Q4", date(2023, 10, 1), date(2023, 12, 31), test_actor_id
        )
        period_service.close_period(period.id, test_actor_id)
        return session.get(AccountingPeriod, period.id)

    def test_closed_period_cannot_change(self, session, closed_period):
        closed_period.notes = "late adjustment"

        with pytest.raises(ImmutabilityViolationError) as exc_info:
            session.flush()

        assert exc_info.value.entity_type == "AccountingPeriod"

    def test_closed_period_cannot_reopen(self, session, closed_period):
        closed_period.is_closed = False

        with pytest.raises(ImmutabilityViolationError):
            session.flush()

    def test_closed_period_cannot_be_deleted(self, session, closed_period):
        session.delete(closed_period)

        with pytest.raises(ImmutabilityViolationError):
            session.flush()

    def test_open_period_editable(self, session, period_service, test_actor_id):
        period = period_service.create_period(
            "2023-Q3", date(2023, 7, 1), date(2023, 9, 30), test_actor_id
        )
        orm = session.get(AccountingPeriod, period.id)
        orm.notes = "quarter under review"

        session.flush()


class TestListenerRegistration:

    def test_unregistered_listeners_allow_edits(self, session, posted_entry):
        with disabled_immutability():
            entry = session.get(JournalEntry, posted_entry.id)
            entry.notes = "fixture data"
            session.flush()

        entry.notes = "second edit"
        with pytest.raises(ImmutabilityViolationError):
            session.flush()

    def test_register_is_idempotent(self, session, posted_entry):
        register_immutability_listeners()
        register_immutability_listeners()

        entry = session.get(JournalEntry, posted_entry.id)
        entry.description = "x"
        with pytest.raises(ImmutabilityViolationError):
            session.flush()
