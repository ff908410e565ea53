"""
LedgerSelector tests.

Covers the posted-history entry set, grouped per-account totals, ordered
account lines and raw posted balances.
"""

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import event

from ledger_kernel.domain.account_types import AccountType, LineSide
from ledger_kernel.domain.dtos import LineSpec


class TestPostedEntryIds:

    def test_drafts_excluded(self, ledger_selector, create_entry, post, chart):
        lines = [
            LineSpec.debit(chart["1000"].id, Decimal("5")),
            LineSpec.credit(chart["4000"].id, Decimal("5")),
        ]
        create_entry(lines)
        posted = post(lines)

        assert ledger_selector.posted_entry_ids() == (posted.id,)

    def test_window_bounds_inclusive(self, ledger_selector, post, chart):
        lines = [
            LineSpec.debit(chart["1000"].id, Decimal("5")),
            LineSpec.credit(chart["4000"].id, Decimal("5")),
        ]
        jan = post(lines, entry_date=date(2024, 1, 1))
        feb = post(lines, entry_date=date(2024, 2, 1))

        assert ledger_selector.posted_entry_ids(date(2024, 1, 1), date(2024, 1, 31)) == (jan.id,)
        assert ledger_selector.posted_entry_ids(date(2024, 2, 1), None) == (feb.id,)
        assert ledger_selector.posted_entry_ids(None, date(2024, 2, 1)) == (jan.id, feb.id)


    def test_query_form_excludes_drafts(self, ledger_selector, session, create_entry, post, chart):
        lines = [
            LineSpec.debit(chart["1000"].id, Decimal("5")),
            LineSpec.credit(chart["4000"].id, Decimal("5")),
        ]
        create_entry(lines)
        posted = post(lines)

        assert session.execute(ledger_selector.posted_entries()).scalars().all() == [posted.id]


class TestEntrySetAsSubquery:
    """Report windows are applied as an IN subquery, not a bound id list."""

    @pytest.fixture
    def many_entries(self, post, chart):
        return [
            post([
                LineSpec.debit(chart["1000"].id, Decimal("1")),
                LineSpec.credit(chart["4000"].id, Decimal("1")),
            ])
            for _ in range(40)
        ]

    def test_query_and_ids_agree(self, ledger_selector, many_entries):
        by_query = ledger_selector.account_totals(ledger_selector.posted_entries())
        by_ids = ledger_selector.account_totals(ledger_selector.posted_entry_ids())

        assert by_query == by_ids
        assert by_query[next(iter(by_query))].line_count == 40

    def test_bound_parameters_independent_of_entry_count(self, engine, ledger_selector, many_entries):
        grouped = []

        def capture(conn, cursor, statement, parameters, context, executemany):
            if "GROUP BY" in statement:
                grouped.append(parameters)

        event.listen(engine, "before_cursor_execute", capture)
        try:
            ledger_selector.account_totals(ledger_selector.posted_entries(date(2024, 1, 1), None))
        finally:
            event.remove(engine, "before_cursor_execute", capture)

        (parameters,) = grouped
        assert len(parameters) < len(many_entries)

    def test_account_lines_accept_query(self, ledger_selector, many_entries, chart):
        rows = ledger_selector.account_lines(chart["1000"].id, ledger_selector.posted_entries())

        assert [r.seq for r in rows] == sorted(r.seq for r in rows)
        assert len(rows) == 40


class TestAccountTotals:

    def test_grouped_totals(self, ledger_selector, post, chart):
        post([
            LineSpec.debit(chart["1000"].id, Decimal("100")),
            LineSpec.credit(chart["4000"].id, Decimal("100")),
        ])
        post([
            LineSpec.debit(chart["5220"].id, Decimal("40")),
            LineSpec.credit(chart["1000"].id, Decimal("40")),
        ])

        totals = ledger_selector.account_totals(ledger_selector.posted_entry_ids())

        cash = totals[chart["1000"].id]
        assert cash.debit_total == Decimal("100.00")
        assert cash.credit_total == Decimal("40.00")
        assert cash.line_count == 2
        assert cash.raw_balance == Decimal("60.00")
        assert cash.balance_for(AccountType.ASSET) == Decimal("60.00")
        assert totals[chart["4000"].id].balance_for(AccountType.REVENUE) == Decimal("100.00")
        assert chart["2000"].id not in totals

    def test_restricted_to_accounts(self, ledger_selector, post, chart):
        post([
            LineSpec.debit(chart["1000"].id, Decimal("1")),
            LineSpec.credit(chart["4000"].id, Decimal("1")),
        ])

        totals = ledger_selector.account_totals(
            ledger_selector.posted_entry_ids(), [chart["4000"].id]
        )

        assert set(totals) == {chart["4000"].id}

    def test_empty_entry_set(self, ledger_selector, chart):
        assert ledger_selector.account_totals(()) == {}
        assert ledger_selector.total_debits_credits(()) == (Decimal("0"), Decimal("0"))

    def test_reversal_pair_nets_to_zero(self, ledger_selector, ledger_service, post, chart, test_actor_id):
        entry = post([
            LineSpec.debit(chart["1000"].id, Decimal("70")),
            LineSpec.credit(chart["4000"].id, Decimal("70")),
        ])
        ledger_service.reverse_entry(entry.id, test_actor_id)

        totals = ledger_selector.account_totals(ledger_selector.posted_entry_ids())

        assert totals[chart["1000"].id].raw_balance == Decimal("0")
        assert totals[chart["1000"].id].line_count == 2

    def test_grand_totals(self, ledger_selector, post, chart):
        post([
            LineSpec.debit(chart["1000"].id, Decimal("12.50")),
            LineSpec.credit(chart["4000"].id, Decimal("12.50")),
        ])

        debits, credits = ledger_selector.total_debits_credits(ledger_selector.posted_entry_ids())

        assert debits == credits == Decimal("12.50")


class TestAccountLines:

    def test_lines_in_creation_order(self, ledger_selector, post, chart):
        later_date = post(
            [
                LineSpec.debit(chart["1000"].id, Decimal("1"), description="first created"),
                LineSpec.credit(chart["4000"].id, Decimal("1")),
            ],
            entry_date=date(2024, 3, 2),
        )
        earlier_date = post(
            [
                LineSpec.debit(chart["1000"].id, Decimal("2"), description="second created"),
                LineSpec.credit(chart["4000"].id, Decimal("2")),
            ],
            entry_date=date(2024, 3, 1),
            reference="REF-2",
        )

        rows = ledger_selector.account_lines(chart["1000"].id, ledger_selector.posted_entry_ids())

        assert [r.journal_entry_id for r in rows] == [later_date.id, earlier_date.id]
        assert rows[1].description == "second created"
        assert rows[1].entry_reference == "REF-2"
        assert rows[1].side is LineSide.DEBIT
        assert rows[1].debit == Decimal("2.00")
        assert rows[1].credit == Decimal("0")

    def test_no_entries(self, ledger_selector, chart):
        assert ledger_selector.account_lines(chart["1000"].id, ()) == []


class TestRawPostedBalances:

    def test_matches_posting_deltas(self, ledger_selector, post, chart, balance_of):
        post([
            LineSpec.debit(chart["5210"].id, Decimal("300")),
            LineSpec.credit(chart["1000"].id, Decimal("300")),
        ])

        raw = ledger_selector.raw_posted_balances()

        assert raw[chart["5210"].id] == balance_of("5210")
        assert raw[chart["1000"].id] == balance_of("1000") == Decimal("-300.00")
