"""
Tests for reporting model DTOs and their rendering.

Verifies immutability, enum behavior and ReportingService.render output
at the configured display precision.
"""

from __future__ import annotations

import dataclasses
import json
from decimal import Decimal

import pytest

from ledger_modules.reporting.config import ReportingConfig
from ledger_modules.reporting.models import ReportMetadata, ReportType
from ledger_modules.reporting.service import ReportingService


class TestReportModels:

    def test_report_type_is_str_enum(self):
        assert ReportType("trial_balance") is ReportType.TRIAL_BALANCE
        assert ReportType.ACCOUNT_LEDGER == "account_ledger"

    def test_metadata_frozen(self):
        metadata = ReportMetadata(
            report_type=ReportType.BALANCE_SHEET,
            entity_name="Test Co",
            currency="USD",
            generated_at="2024-06-15T12:00:00+00:00",
        )

        with pytest.raises(dataclasses.FrozenInstanceError):
            metadata.entity_name = "Other"

    def test_reports_frozen(self, reporting_service, sample_ledger):
        report = reporting_service.trial_balance()

        with pytest.raises(dataclasses.FrozenInstanceError):
            report.total_debits = Decimal("0")
        with pytest.raises(dataclasses.FrozenInstanceError):
            report.rows[0].balance = Decimal("0")


class TestRender:

    def test_trial_balance_render(self, reporting_service, sample_ledger):
        rendered = reporting_service.render(reporting_service.trial_balance())

        assert rendered["metadata"]["report_type"] == "trial_balance"
        assert rendered["metadata"]["entity_name"] == "Default Entity"
        assert rendered["total_debits"] == "17500.00"
        assert rendered["rows"][0]["account_code"] == "1110"
        assert rendered["is_balanced"] is True
        json.dumps(rendered)

    def test_balance_sheet_render(self, reporting_service, sample_ledger):
        rendered = reporting_service.render(reporting_service.balance_sheet())

        assert rendered["as_of_date"] == "2024-06-15"
        assert rendered["assets"]["label"] == "Assets"
        assert rendered["retained_earnings"] == "2100.00"

    def test_display_precision(self, session, deterministic_clock, sample_ledger):
        service = ReportingService(
            session,
            clock=deterministic_clock,
            config=ReportingConfig(display_precision=0),
        )

        rendered = service.render(service.profit_and_loss())

        assert rendered["net_income"] == "2100"
        assert rendered["revenue"]["lines"][0]["balance"] == "800"

    def test_account_ledger_render(self, reporting_service, sample_ledger, chart):
        rendered = reporting_service.render(
            reporting_service.account_ledger(chart["1110"].id)
        )

        assert rendered["account"]["account_type"] == "asset"
        assert [row["side"] for row in rendered["rows"]] == ["debit", "credit", "debit"]
        assert rendered["rows"][0]["entry_type"] == "manual"
