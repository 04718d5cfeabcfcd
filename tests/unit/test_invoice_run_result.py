"""
Unit tests for invoicing run results and cent conversion.
"""

from datetime import UTC, datetime
from decimal import Decimal

import pytest

from app.services.invoice import (
    InvoiceErrorEntry,
    InvoicedEntry,
    InvoiceRunResult,
    SkippedEntry,
)
from app.services.invoice.billing_client import describe_period
from app.services.invoice.invoice_generator import to_cents


def invoiced(creator_id: int, amount: str) -> InvoicedEntry:
    return InvoicedEntry(
        creator_id=creator_id,
        company_name=f"Creator {creator_id}",
        invoice_id=creator_id,
        amount=Decimal(amount),
        refund_credit_applied=Decimal("0"),
        net_benefit=Decimal("0"),
        roi=Decimal("0"),
        sales_count=1,
        commissions_marked=1,
        external_invoice_id=None,
    )


@pytest.fixture
def run_result():
    result = InvoiceRunResult(
        period_start=datetime(2026, 9, 1, tzinfo=UTC),
        period_end=datetime(2026, 10, 1, tzinfo=UTC),
    )
    result.invoiced += [invoiced(1, "100.00"), invoiced(2, "12.50")]
    result.skipped.append(
        SkippedEntry(
            creator_id=3,
            company_name="Creator 3",
            reason="below_minimum",
            referred_sales=1,
            amount=Decimal("2.00"),
        )
    )
    result.errors.append(InvoiceErrorEntry(creator_id=4, company_name="Creator 4", error="x"))
    return result


class TestInvoiceRunResult:
    """Test run totals and summary."""

    def test_totals(self, run_result):
        """Test invoiced total and processed count."""
        assert run_result.total_invoiced == Decimal("112.50")
        assert run_result.creators_processed == 4

    def test_summary(self, run_result):
        """Test the operator summary line."""
        assert run_result.summary() == (
            "Invoices 2026-09-01..2026-10-01: 2 invoiced ($112.50), "
            "1 skipped, 1 errors"
        )

    def test_to_dict(self, run_result):
        """Test the plain dict form."""
        data = run_result.to_dict()

        assert data["total_invoiced"] == Decimal("112.50")
        assert data["skipped"][0]["reason"] == "below_minimum"
        assert data["errors"][0]["creator_id"] == 4

    def test_empty_run(self):
        """Test a run with no creators."""
        result = InvoiceRunResult(
            period_start=datetime(2026, 9, 1, tzinfo=UTC),
            period_end=datetime(2026, 10, 1, tzinfo=UTC),
        )

        assert result.total_invoiced == Decimal("0")
        assert "0 invoiced" in result.summary()


class TestBillingHelpers:
    """Test amount and period formatting for the billing system."""

    @pytest.mark.parametrize(
        "amount,cents",
        [("100.00", 10000), ("9.99", 999), ("0.005", 1), ("12.345", 1235)],
    )
    def test_to_cents(self, amount, cents):
        """Test half-up conversion to integer cents."""
        assert to_cents(Decimal(amount)) == cents

    def test_describe_period(self):
        """Test the invoice description label."""
        assert describe_period(datetime(2026, 9, 1, tzinfo=UTC)) == "September 2026"
