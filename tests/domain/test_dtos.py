"""Tests for the kernel DTOs (LineSpec, EntryHeader, SourceRef, read snapshots)."""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from ledger_kernel.domain.account_types import AccountType, LineSide, NormalBalance
from ledger_kernel.domain.dtos import (
    AccountInfo,
    EntryHeader,
    EntryStatus,
    EntryType,
    JournalEntryInfo,
    JournalLineInfo,
    LineSpec,
    PeriodInfo,
    SourceKind,
    SourceRef,
)
from ledger_kernel.exceptions import InvalidAmountError


class TestLineSpec:

    def test_debit_factory(self):
        account_id = uuid4()
        line = LineSpec.debit(account_id, "100.5", description="cash in")
        assert line.side is LineSide.DEBIT
        assert line.amount == Decimal("100.50")
        assert line.debit_amount == Decimal("100.50")
        assert line.credit_amount == Decimal("0")

    def test_credit_factory(self):
        line = LineSpec.credit(uuid4(), 40)
        assert line.side is LineSide.CREDIT
        assert line.credit_amount == Decimal("40.00")
        assert line.debit_amount == Decimal("0")

    def test_amount_is_rounded_to_cents(self):
        line = LineSpec.debit(uuid4(), Decimal("10.005"))
        assert line.amount == Decimal("10.01")

    def test_negative_amount_rejected(self):
        with pytest.raises(ValueError, match="non-negative"):
            LineSpec.debit(uuid4(), Decimal("-1"))

    def test_float_amount_rejected(self):
        with pytest.raises(TypeError):
            LineSpec.debit(uuid4(), 10.5)

    @pytest.mark.parametrize("amount", ["ten", "Infinity"])
    def test_unparseable_amount_is_typed(self, amount):
        with pytest.raises(InvalidAmountError):
            LineSpec.debit(uuid4(), amount)

    def test_side_accepts_string(self):
        line = LineSpec(uuid4(), "credit", Decimal("1"))
        assert line.side is LineSide.CREDIT

    def test_zero_amount_allowed(self):
        assert LineSpec.debit(uuid4(), 0).amount == Decimal("0.00")


class TestEntryHeader:

    def test_defaults(self):
        header = EntryHeader(entry_date=date(2024, 3, 1), description="Rent")
        assert header.entry_type is EntryType.MANUAL
        assert header.entry_number is None
        assert header.period_id is None
        assert header.source is None

    def test_entry_type_from_string(self):
        header = EntryHeader(date(2024, 3, 1), "Sync", entry_type="auto")
        assert header.entry_type is EntryType.AUTO

    @pytest.mark.parametrize("description", ["", "   "])
    def test_blank_description_rejected(self, description):
        with pytest.raises(ValueError, match="description"):
            EntryHeader(date(2024, 3, 1), description)


class TestSourceRef:

    def test_kind_coerced(self):
        ref = SourceRef("income", 42)
        assert ref.kind is SourceKind.INCOME
        assert ref.id == "42"

    def test_journal_entry_factory(self):
        entry_id = uuid4()
        ref = SourceRef.journal_entry(entry_id)
        assert ref.kind is SourceKind.JOURNAL_ENTRY
        assert ref.id == str(entry_id)

    def test_unknown_kind_rejected(self):
        with pytest.raises(ValueError):
            SourceRef("invoice", "1")


class TestSnapshots:

    def _line(self, side: LineSide, amount: str) -> JournalLineInfo:
        return JournalLineInfo(
            id=uuid4(),
            line_number=1,
            account_id=uuid4(),
            account_code="1000",
            account_name="Cash",
            side=side,
            amount=Decimal(amount),
        )

    def test_entry_totals_and_flags(self):
        entry = JournalEntryInfo(
            id=uuid4(),
            entry_number="JE-2024-000001",
            seq=1,
            entry_date=date(2024, 6, 15),
            entry_type=EntryType.MANUAL,
            status=EntryStatus.POSTED,
            description="Sale",
            period_id=uuid4(),
            created_by_id=uuid4(),
            lines=(
                self._line(LineSide.DEBIT, "100.00"),
                self._line(LineSide.CREDIT, "100.00"),
            ),
        )
        assert entry.total_debits == Decimal("100.00")
        assert entry.total_credits == Decimal("100.00")
        assert entry.is_balanced
        assert entry.is_posted
        assert not entry.is_draft
        assert not entry.is_reversed

    def test_line_debit_credit_views(self):
        line = self._line(LineSide.CREDIT, "5.00")
        assert line.credit == Decimal("5.00")
        assert line.debit == Decimal("0")

    def test_account_info_normal_balance(self):
        info = AccountInfo(
            id=uuid4(),
            code="2110",
            name="Accounts Payable",
            account_type=AccountType.LIABILITY,
            parent_id=None,
            level=0,
            is_active=True,
            is_system=False,
            opening_balance=Decimal("0"),
            current_balance=Decimal("0"),
            currency="USD",
            sort_order=0,
        )
        assert info.normal_balance is NormalBalance.CREDIT

    def test_period_contains_is_inclusive(self):
        period = PeriodInfo(
            id=uuid4(),
            name="2024",
            start_date=date(2024, 1, 1),
            end_date=date(2024, 12, 31),
            is_closed=False,
        )
        assert period.contains(date(2024, 1, 1))
        assert period.contains(date(2024, 12, 31))
        assert not period.contains(date(2025, 1, 1))
