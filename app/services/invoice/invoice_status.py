"""
Invoice status transitions driven by billing events.

Signature verification and payload parsing happen upstream; this
service receives the event type and the external invoice ID.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.enums import InvoiceStatus
from app.repositories.invoice_repository import InvoiceRepository
from app.services.base_service import BaseService, ServiceResult, transaction
from app.utils.datetime_utils import utc_now


EVENT_INVOICE_PAID = "invoice.paid"
EVENT_PAYMENT_FAILED = "invoice.payment_failed"
EVENT_ACTION_REQUIRED = "invoice.payment_action_required"


class InvoiceStatusService(BaseService):
    """Applies billing events to local invoices."""

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize invoice status service.

        Args:
            session: Database session
        """
        super().__init__(session)
        self.invoice_repo = InvoiceRepository(session)

    @transaction
    async def apply_billing_event(
        self, event_type: str, external_invoice_id: str
    ) -> ServiceResult:
        """
        Update an invoice from a billing event.

        invoice.paid marks the invoice paid (with paid_at),
        invoice.payment_failed marks it overdue, and
        invoice.payment_action_required is only logged.

        Args:
            event_type: Billing event type
            external_invoice_id: Billing system invoice ID

        Returns:
            ServiceResult with the invoice on success; unknown invoices
            and unhandled events are reported, not raised
        """
        invoice = await self.invoice_repo.get_by_external_id(external_invoice_id)
        if invoice is None:
            self.logger.warning(
                f"Billing event {event_type} for unknown invoice {external_invoice_id}"
            )
            return ServiceResult(
                success=False,
                error=f"Invoice not found: {external_invoice_id}",
                error_code="invoice_not_found",
            )

        if event_type == EVENT_INVOICE_PAID:
            invoice.status = InvoiceStatus.PAID.value
            invoice.paid_at = utc_now()
            self.logger.info(
                f"Invoice {invoice.id} paid",
                extra={"invoice_id": invoice.id, "creator_id": invoice.creator_id},
            )
        elif event_type == EVENT_PAYMENT_FAILED:
            invoice.status = InvoiceStatus.OVERDUE.value
            self.logger.warning(
                f"Invoice {invoice.id} payment failed",
                extra={"invoice_id": invoice.id, "creator_id": invoice.creator_id},
            )
        elif event_type == EVENT_ACTION_REQUIRED:
            self.logger.warning(
                f"Invoice {invoice.id} payment requires action",
                extra={"invoice_id": invoice.id, "creator_id": invoice.creator_id},
            )
        else:
            self.logger.debug(f"Ignoring billing event {event_type}")
            return ServiceResult(
                success=False,
                data=invoice,
                error=f"Unhandled event type: {event_type}",
                error_code="unhandled_event",
            )

        await self.session.flush()
        return ServiceResult(success=True, data=invoice)
