"""
Monthly platform fee invoice generator.

For every active creator with invoicing enabled:
1. Compute value metrics over the billing month (uninvoiced referred
   commissions only)
2. Skip with a reason, or create the local Invoice row
3. Bill through the external billing collaborator
4. Flag the billed commissions and bump the creator's lifetime counters

Each creator runs in its own session. Steps commit in order, and every
step checks what an earlier (possibly interrupted) run already did, so
the whole run is safe to repeat for the same period.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.config.business_constants import ZERO
from app.config.settings import settings
from app.models.creator import Creator
from app.models.enums import InvoiceStatus
from app.models.invoice import Invoice
from app.repositories.commission_repository import CommissionRepository
from app.repositories.creator_repository import CreatorRepository
from app.repositories.invoice_repository import InvoiceRepository
from app.services.base_service import log_operation
from app.services.invoice.billing_client import (
    BillingClient,
    BillingCustomer,
    LedgerOnlyBillingClient,
    describe_period,
)
from app.services.value_metrics_service import ValueMetrics, ValueMetricsService
from app.utils.datetime_utils import previous_month_period, utc_now
from app.utils.exceptions import BillingError, CreatorNotFoundError
from app.utils.money import round_money


SKIP_ALREADY_INVOICED = "already_invoiced"


@dataclass
class InvoicedEntry:
    """Creator billed in this run."""

    creator_id: int
    company_name: str
    invoice_id: int
    amount: Decimal
    refund_credit_applied: Decimal
    net_benefit: Decimal
    roi: Decimal
    sales_count: int
    commissions_marked: int
    external_invoice_id: str | None


@dataclass
class SkippedEntry:
    """Creator not billed in this run."""

    creator_id: int
    company_name: str
    reason: str
    referred_sales: int
    amount: Decimal


@dataclass
class InvoiceErrorEntry:
    """Creator whose processing failed."""

    creator_id: int
    company_name: str
    error: str


@dataclass
class InvoiceRunResult:
    """Outcome of one invoicing run, one entry per creator."""

    period_start: datetime
    period_end: datetime
    invoiced: list[InvoicedEntry] = field(default_factory=list)
    skipped: list[SkippedEntry] = field(default_factory=list)
    errors: list[InvoiceErrorEntry] = field(default_factory=list)

    @property
    def total_invoiced(self) -> Decimal:
        """Sum of fees invoiced in this run."""
        return sum((entry.amount for entry in self.invoiced), ZERO)

    @property
    def creators_processed(self) -> int:
        """Number of creators with an entry."""
        return len(self.invoiced) + len(self.skipped) + len(self.errors)

    def summary(self) -> str:
        """One-line operator summary."""
        return (
            f"Invoices {self.period_start:%Y-%m-%d}..{self.period_end:%Y-%m-%d}: "
            f"{len(self.invoiced)} invoiced (${self.total_invoiced}), "
            f"{len(self.skipped)} skipped, {len(self.errors)} errors"
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to plain dict, totals included."""
        data = asdict(self)
        data["total_invoiced"] = self.total_invoiced
        return data


def to_cents(amount: Decimal) -> int:
    """Convert dollars to integer cents (half-up)."""
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class InvoiceGenerator:
    """Monthly platform fee invoicing run."""

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession] | None = None,
        billing_client: BillingClient | None = None,
    ) -> None:
        """
        Initialize invoice generator.

        Args:
            session_maker: Session factory (default: app.config.database)
            billing_client: External billing collaborator
                (default: LedgerOnlyBillingClient)
        """
        if session_maker is None:
            from app.config.database import async_session_maker

            session_maker = async_session_maker
        self.session_maker = session_maker
        self.billing_client = billing_client or LedgerOnlyBillingClient()
        self.logger = logger.bind(service=self.__class__.__name__)

    @log_operation
    async def generate_monthly_invoices(
        self, period: tuple[datetime, datetime] | None = None
    ) -> InvoiceRunResult:
        """
        Invoice every eligible creator for a billing month.

        Args:
            period: Half-open (start, end) window (default: previous month)

        Returns:
            InvoiceRunResult; one creator's failure lands in errors and
            does not stop the others
        """
        start, end = period or previous_month_period()
        result = InvoiceRunResult(period_start=start, period_end=end)

        async with self.session_maker() as session:
            creators = await CreatorRepository(session).find_invoiceable()
            targets = [(creator.id, creator.company_name) for creator in creators]

        self.logger.info(
            f"Processing {len(targets)} creators for {describe_period(start)}"
        )

        for creator_id, company_name in targets:
            try:
                entry = await self._process_creator(creator_id, start, end)
            except Exception as e:
                self.logger.exception(
                    f"Invoicing failed for creator {creator_id} ({company_name}): {e}"
                )
                result.errors.append(
                    InvoiceErrorEntry(
                        creator_id=creator_id,
                        company_name=company_name,
                        error=str(e),
                    )
                )
                continue

            if isinstance(entry, InvoicedEntry):
                result.invoiced.append(entry)
            else:
                result.skipped.append(entry)

        self.logger.info(result.summary())
        return result

    async def _process_creator(
        self, creator_id: int, start: datetime, end: datetime
    ) -> InvoicedEntry | SkippedEntry:
        async with self.session_maker() as session:
            creator = await CreatorRepository(session).get_by_id(creator_id)
            if creator is None:
                raise CreatorNotFoundError(creator_id)

            metrics = await ValueMetricsService(session).calculate_value_metrics(
                creator_id, start, end, include_invoiced=False
            )
            if not metrics.should_invoice:
                self.logger.info(
                    f"Skipping {creator.company_name}: {metrics.skip_reason} "
                    f"(fee ${metrics.platform_fees_owed})"
                )
                return SkippedEntry(
                    creator_id=creator_id,
                    company_name=creator.company_name,
                    reason=metrics.skip_reason or "",
                    referred_sales=metrics.referred_sales_count,
                    amount=metrics.platform_fees_owed,
                )

            invoice_repo = InvoiceRepository(session)
            commission_repo = CommissionRepository(session)
            period_end = end - timedelta(microseconds=1)

            invoice = await invoice_repo.get_for_period(creator_id, start, period_end)
            if invoice is not None and await commission_repo.count_for_invoice(invoice.id):
                # Billed already; new uninvoiced rows need manual review
                self.logger.warning(
                    f"Invoice {invoice.id} for {creator.company_name} already bills "
                    f"commissions; {metrics.referred_sales_count} new referred sales "
                    f"left uninvoiced"
                )
                return SkippedEntry(
                    creator_id=creator_id,
                    company_name=creator.company_name,
                    reason=SKIP_ALREADY_INVOICED,
                    referred_sales=metrics.referred_sales_count,
                    amount=metrics.platform_fees_owed,
                )

            # Step 1: local invoice record
            invoice = await self._save_invoice(
                invoice_repo, invoice, creator, metrics, start, period_end
            )
            await session.commit()

            # Step 2: external billing (due_date marks a completed step)
            if invoice.due_date is None:
                await self._bill(session, creator, invoice, start)
                await session.commit()

            # Step 3: flag commissions and update creator counters
            marked = await commission_repo.mark_invoiced(
                creator_id, invoice.id, start, end
            )
            await CreatorRepository(session).add_invoiced_totals(
                creator_id,
                invoiced=metrics.platform_fees_owed,
                referred=metrics.referred_revenue,
                invoiced_at=utc_now(),
            )
            await session.commit()

            self.logger.success(
                f"Invoiced {creator.company_name}: ${metrics.platform_fees_owed} "
                f"({marked} commissions, invoice {invoice.id})"
            )
            return InvoicedEntry(
                creator_id=creator_id,
                company_name=creator.company_name,
                invoice_id=invoice.id,
                amount=metrics.platform_fees_owed,
                refund_credit_applied=invoice.refund_credit_applied,
                net_benefit=metrics.net_benefit,
                roi=metrics.roi_on_platform_fee,
                sales_count=metrics.referred_sales_count,
                commissions_marked=marked,
                external_invoice_id=invoice.external_invoice_id,
            )

    async def _save_invoice(
        self,
        invoice_repo: InvoiceRepository,
        invoice: Invoice | None,
        creator: Creator,
        metrics: ValueMetrics,
        start: datetime,
        period_end: datetime,
    ) -> Invoice:
        totals = {
            "total_amount": metrics.platform_fees_owed,
            "sales_count": metrics.referred_sales_count,
            "referred_sales_total": metrics.referred_revenue,
            "organic_sales_total": metrics.organic_revenue,
            "creator_gain_from_referrals": metrics.additional_revenue_generated,
            "total_revenue_with_app": metrics.revenue_with_app,
            "total_revenue_without_app": metrics.revenue_without_app,
            "additional_revenue": metrics.additional_revenue_generated,
            "percentage_growth": metrics.percentage_growth,
        }
        if invoice is None:
            return await invoice_repo.create(
                creator_id=creator.id,
                period_start=start,
                period_end=period_end,
                status=InvoiceStatus.PENDING.value,
                refund_credit_applied=ZERO,
                **totals,
            )

        # Reuse the row left by an interrupted run
        self.logger.info(f"Reusing invoice {invoice.id} for {creator.company_name}")
        if invoice.external_invoice_id is None:
            for key, value in totals.items():
                setattr(invoice, key, value)
            await invoice_repo.session.flush()
        return invoice

    async def _bill(
        self,
        session: AsyncSession,
        creator: Creator,
        invoice: Invoice,
        start: datetime,
    ) -> None:
        credit = min(creator.pending_refund_credit or ZERO, invoice.total_amount)

        if not self.billing_client.enabled:
            # Ledger-only: the operator bills manually, credit is recorded here
            invoice.refund_credit_applied = credit
            creator.pending_refund_credit = round_money(
                creator.pending_refund_credit - credit
            )
            invoice.due_date = utc_now() + timedelta(days=settings.invoice_due_days)
            await session.flush()
            return

        client = self.billing_client
        period_label = describe_period(start)
        # Same keys on every attempt for this invoice row
        invoice_key = f"platform-fee-invoice-{invoice.id}"
        try:
            customer_id = creator.billing_customer_id or await client.create_customer(
                BillingCustomer(
                    creator_id=creator.id,
                    company_id=creator.company_id,
                    name=creator.company_name,
                ),
                idempotency_key=f"creator-{creator.id}-customer",
            )
            if creator.billing_customer_id != customer_id:
                creator.billing_customer_id = customer_id
                await session.flush()

            external_id = await client.create_invoice(
                customer_id,
                days_until_due=settings.invoice_due_days,
                description=f"Referral program platform fee - {period_label}",
                metadata={
                    "creator_id": str(creator.id),
                    "invoice_id": str(invoice.id),
                    "period_start": start.isoformat(),
                },
                idempotency_key=invoice_key,
            )
            await client.add_line_item(
                customer_id,
                external_id,
                amount_cents=to_cents(invoice.total_amount),
                currency=settings.invoice_currency,
                description=f"Platform fee: {settings.platform_fee_rate * 100:.0f}% of "
                f"${invoice.referred_sales_total} "
                f"referred revenue ({invoice.sales_count} sales)",
                idempotency_key=f"{invoice_key}-fee",
            )
            if credit > 0:
                await client.add_line_item(
                    customer_id,
                    external_id,
                    amount_cents=-to_cents(credit),
                    currency=settings.invoice_currency,
                    description="Refund credit from previous period",
                    idempotency_key=f"{invoice_key}-credit",
                )
            finalized = await client.finalize_invoice(external_id)
            await client.send_invoice(finalized.external_invoice_id)
        except BillingError:
            raise
        except Exception as e:
            raise BillingError(f"Billing failed for creator {creator.id}: {e}") from e

        invoice.external_invoice_id = finalized.external_invoice_id
        invoice.external_invoice_url = finalized.hosted_invoice_url
        invoice.status = InvoiceStatus.SENT.value
        invoice.refund_credit_applied = credit
        invoice.due_date = utc_now() + timedelta(days=settings.invoice_due_days)
        creator.pending_refund_credit = round_money(
            creator.pending_refund_credit - credit
        )
        await session.flush()
