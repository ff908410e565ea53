"""
Profit and loss report tests (ReportingService.profit_and_loss).

Verifies revenue and expense sections, net income, window handling and
that deactivated accounts keep contributing their history.
"""

from datetime import date
from decimal import Decimal

from ledger_kernel.domain.dtos import LineSpec
from ledger_modules.reporting.models import ReportType


class TestProfitAndLoss:

    def test_year_to_date(self, reporting_service, sample_ledger):
        report = reporting_service.profit_and_loss()

        assert report.total_revenue == Decimal("3300.00")
        assert report.total_expenses == Decimal("1200.00")
        assert report.net_income == Decimal("2100.00")
        assert report.metadata.report_type is ReportType.PROFIT_AND_LOSS

    def test_section_lines(self, reporting_service, sample_ledger):
        report = reporting_service.profit_and_loss()

        assert [(l.code, l.balance) for l in report.revenue.lines] == [
            ("4100", Decimal("800.00")),
            ("4200", Decimal("2500.00")),
        ]
        assert [(l.code, l.balance) for l in report.expenses.lines] == [
            ("5220", Decimal("1200.00")),
        ]
        assert report.revenue.label == "Revenue"
        assert report.expenses.label == "Expenses"

    def test_window(self, reporting_service, sample_ledger):
        report = reporting_service.profit_and_loss(date(2024, 2, 1), date(2024, 3, 31))

        assert report.total_revenue == Decimal("2500.00")
        assert report.total_expenses == Decimal("1200.00")
        assert report.net_income == Decimal("1300.00")
        assert (report.start_date, report.end_date) == (date(2024, 2, 1), date(2024, 3, 31))

    def test_net_loss(self, reporting_service, post, chart):
        post([
            LineSpec.debit(chart["5210"].id, Decimal("400")),
            LineSpec.credit(chart["1110"].id, Decimal("400")),
        ])

        report = reporting_service.profit_and_loss()

        assert report.net_income == Decimal("-400.00")
        assert report.revenue.lines == ()

    def test_contra_revenue_reduces_total(self, reporting_service, post, chart):
        post([
            LineSpec.debit(chart["1110"].id, Decimal("500")),
            LineSpec.credit(chart["4100"].id, Decimal("500")),
        ])
        post([
            LineSpec.debit(chart["4100"].id, Decimal("50")),
            LineSpec.credit(chart["1110"].id, Decimal("50")),
        ])

        assert reporting_service.profit_and_loss().total_revenue == Decimal("450.00")

    def test_deactivated_account_still_reported(
        self, reporting_service, chart_service, sample_ledger, chart, test_actor_id
    ):
        chart_service.deactivate_account(chart["4200"].id, test_actor_id)

        report = reporting_service.profit_and_loss()

        assert report.total_revenue == Decimal("3300.00")
        assert "4200" in [l.code for l in report.revenue.lines]

    def test_logged(self, reporting_service, sample_ledger, captured_logs):
        reporting_service.profit_and_loss()

        events = [r for r in captured_logs() if r["message"] == "profit_and_loss_generated"]
        assert events[0]["net_income"] == "2100.00"
