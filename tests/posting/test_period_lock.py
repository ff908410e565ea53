"""
Closed-period enforcement.

A closed period accepts neither new entries nor postings of drafts that
were created while it was open.
"""

from datetime import date
from decimal import Decimal

import pytest

from ledger_kernel.domain.dtos import EntryStatus, LineSpec
from ledger_kernel.exceptions import ClosedPeriodError


@pytest.fixture
def lines(chart):
    return [
        LineSpec.debit(chart["1000"].id, Decimal("80.00")),
        LineSpec.credit(chart["4000"].id, Decimal("80.00")),
    ]


class TestClosedPeriod:

    def test_create_into_closed_period_rejected(
        self, create_entry, period_service, lines, test_actor_id
    ):
        period = period_service.resolve_or_create(date(2024, 6, 15), test_actor_id)
        period_service.close_period(period.id, test_actor_id)

        with pytest.raises(ClosedPeriodError) as exc_info:
            create_entry(lines, entry_date=date(2024, 6, 15))
        assert exc_info.value.period_name == "2024"

    def test_post_after_close_rejected(
        self, create_entry, ledger_service, period_service, lines, balance_of, test_actor_id
    ):
        draft = create_entry(lines)
        period_service.close_period(draft.period_id, test_actor_id)

        with pytest.raises(ClosedPeriodError):
            ledger_service.post_entry(draft.id, test_actor_id)

        assert ledger_service.get_entry(draft.id).status is EntryStatus.DRAFT
        assert balance_of("1000") == Decimal("0")

    def test_other_periods_still_open(
        self, create_entry, period_service, lines, test_actor_id
    ):
        old = period_service.resolve_or_create(date(2023, 3, 1), test_actor_id)
        period_service.close_period(old.id, test_actor_id)

        entry = create_entry(lines, entry_date=date(2024, 3, 1))

        assert entry.period_id != old.id

    def test_rejection_logged(self, create_entry, period_service, lines, captured_logs, test_actor_id):
        period = period_service.resolve_or_create(date(2024, 6, 15), test_actor_id)
        period_service.close_period(period.id, test_actor_id)

        with pytest.raises(ClosedPeriodError):
            create_entry(lines)

        events = [r for r in captured_logs() if r["message"] == "entry_rejected_closed_period"]
        assert events[0]["period_name"] == "2024"
