"""
Reversal unit tests (LedgerService.reverse_entry).

Tests cover:
- Happy path: mirrored lines, POSTED reversal, REVERSED original
- Balance neutrality: cached balances return to their pre-entry values
- Line fidelity: sides flipped, amounts preserved, descriptions prefixed
- Linkage: reversal references the original number and records it as source
- Error paths: draft, already reversed, unknown entry, closed period
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from ledger_kernel.domain.account_types import LineSide
from ledger_kernel.domain.dtos import EntryStatus, EntryType, LineSpec, SourceRef
from ledger_kernel.exceptions import (
    AccountInactiveError,
    ClosedPeriodError,
    EntryNotFoundError,
    EntryNotPostedError,
)
from ledger_kernel.services.ledger_service import REVERSAL_LINE_PREFIX


@pytest.fixture
def posted_sale(post, chart):
    """Debit Cash 1000 / credit Revenue 1000, posted on 2024-06-15."""
    return post(
        [
            LineSpec.debit(chart["1000"].id, Decimal("1000.00"), description="Cash received"),
            LineSpec.credit(chart["4000"].id, Decimal("1000.00"), description="Consulting"),
        ],
        description="Consulting sale",
    )


class TestReverseEntry:

    def test_reversal_mirrors_lines(self, ledger_service, posted_sale, test_actor_id):
        reversal = ledger_service.reverse_entry(posted_sale.id, test_actor_id)

        assert [(l.account_code, l.side, l.amount) for l in reversal.lines] == [
            ("1000", LineSide.CREDIT, Decimal("1000.00")),
            ("4000", LineSide.DEBIT, Decimal("1000.00")),
        ]

    def test_reversal_is_posted_and_original_reversed(
        self, ledger_service, posted_sale, test_actor_id
    ):
        reversal = ledger_service.reverse_entry(posted_sale.id, test_actor_id)

        assert reversal.status is EntryStatus.POSTED
        assert reversal.posted_by_id == test_actor_id
        assert ledger_service.get_entry(posted_sale.id).status is EntryStatus.REVERSED

    def test_balances_return_to_zero(self, ledger_service, posted_sale, balance_of, test_actor_id):
        ledger_service.reverse_entry(posted_sale.id, test_actor_id)

        assert balance_of("1000") == Decimal("0")
        assert balance_of("4000") == Decimal("0")

    def test_reversal_is_balance_neutral_with_prior_activity(
        self, post, ledger_service, chart, balance_of, test_actor_id
    ):
        post([
            LineSpec.debit(chart["5220"].id, Decimal("75.00")),
            LineSpec.credit(chart["1000"].id, Decimal("75.00")),
        ])
        before = {code: balance_of(code) for code in ("1000", "4000", "5220")}
        sale = post([
            LineSpec.debit(chart["1000"].id, Decimal("300.00")),
            LineSpec.credit(chart["4000"].id, Decimal("300.00")),
        ])

        ledger_service.reverse_entry(sale.id, test_actor_id)

        assert {code: balance_of(code) for code in before} == before

    def test_line_descriptions_prefixed(self, ledger_service, posted_sale, test_actor_id):
        reversal = ledger_service.reverse_entry(posted_sale.id, test_actor_id)

        assert [l.description for l in reversal.lines] == [
            f"{REVERSAL_LINE_PREFIX}Cash received",
            f"{REVERSAL_LINE_PREFIX}Consulting",
        ]

    def test_line_without_description(self, post, ledger_service, chart, test_actor_id):
        entry = post([
            LineSpec.debit(chart["1000"].id, Decimal("5")),
            LineSpec.credit(chart["4000"].id, Decimal("5")),
        ])

        reversal = ledger_service.reverse_entry(entry.id, test_actor_id)

        assert {l.description for l in reversal.lines} == {REVERSAL_LINE_PREFIX}

    def test_header_defaults(self, ledger_service, posted_sale, deterministic_clock, test_actor_id):
        reversal = ledger_service.reverse_entry(posted_sale.id, test_actor_id)

        assert reversal.description == f"Reversal of {posted_sale.entry_number}"
        assert reversal.reference == posted_sale.entry_number
        assert reversal.entry_date == deterministic_clock.today()
        assert reversal.entry_type is EntryType.MANUAL
        assert reversal.source == SourceRef.journal_entry(posted_sale.id)
        assert reversal.entry_number != posted_sale.entry_number

    def test_custom_description_and_date(self, ledger_service, posted_sale, test_actor_id):
        reversal = ledger_service.reverse_entry(
            posted_sale.id,
            test_actor_id,
            description="Customer refund",
            entry_date=date(2024, 7, 1),
        )

        assert reversal.description == "Customer refund"
        assert reversal.entry_date == date(2024, 7, 1)

    def test_original_lines_untouched(self, ledger_service, posted_sale, test_actor_id):
        ledger_service.reverse_entry(posted_sale.id, test_actor_id)

        original = ledger_service.get_entry(posted_sale.id)
        assert original.lines == posted_sale.lines

    def test_reversal_logged(self, ledger_service, posted_sale, captured_logs, test_actor_id):
        reversal = ledger_service.reverse_entry(posted_sale.id, test_actor_id)

        events = [r for r in captured_logs() if r["message"] == "entry_reversed"]
        assert events[0]["original_entry_number"] == posted_sale.entry_number
        assert events[0]["reversal_entry_number"] == reversal.entry_number


class TestReverseEntryErrors:

    def test_draft_cannot_be_reversed(self, create_entry, ledger_service, chart, test_actor_id):
        draft = create_entry([
            LineSpec.debit(chart["1000"].id, Decimal("5")),
            LineSpec.credit(chart["4000"].id, Decimal("5")),
        ])

        with pytest.raises(EntryNotPostedError):
            ledger_service.reverse_entry(draft.id, test_actor_id)

    def test_double_reversal_rejected(self, ledger_service, posted_sale, balance_of, test_actor_id):
        ledger_service.reverse_entry(posted_sale.id, test_actor_id)

        with pytest.raises(EntryNotPostedError):
            ledger_service.reverse_entry(posted_sale.id, test_actor_id)

        assert balance_of("1000") == Decimal("0")

    def test_unknown_entry(self, ledger_service, chart, test_actor_id):
        with pytest.raises(EntryNotFoundError):
            ledger_service.reverse_entry(uuid4(), test_actor_id)

    def test_reversal_into_closed_period_rejected(
        self, ledger_service, period_service, posted_sale, balance_of, test_actor_id
    ):
        period_service.close_period(posted_sale.period_id, test_actor_id)

        with pytest.raises(ClosedPeriodError):
            ledger_service.reverse_entry(posted_sale.id, test_actor_id)

        assert ledger_service.get_entry(posted_sale.id).status is EntryStatus.POSTED
        assert balance_of("1000") == Decimal("1000.00")

    def test_reversal_into_later_open_period(
        self, ledger_service, period_service, posted_sale, balance_of, test_actor_id
    ):
        period_service.close_period(posted_sale.period_id, test_actor_id)

        reversal = ledger_service.reverse_entry(
            posted_sale.id, test_actor_id, entry_date=date(2025, 1, 15)
        )

        assert reversal.entry_number.startswith("JE-2025-")
        assert balance_of("1000") == Decimal("0")

    def test_deactivated_account_blocks_reversal(
        self, ledger_service, chart_service, posted_sale, chart, test_actor_id
    ):
        chart_service.deactivate_account(chart["4000"].id, test_actor_id)

        with pytest.raises(AccountInactiveError):
            ledger_service.reverse_entry(posted_sale.id, test_actor_id)
        assert ledger_service.get_entry(posted_sale.id).status is EntryStatus.POSTED
