"""
Billing collaborator interface.

The invoice generator talks to the external billing system only
through BillingClient. Implementations raise BillingError on any
failure of the external call.

Calls that create external objects carry an idempotency key derived
from local row IDs. A rerun after a partial failure sends the same
keys, and the billing system must return the objects it already made.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol


@dataclass(frozen=True)
class BillingCustomer:
    """Who an invoice is addressed to."""

    creator_id: int
    company_id: str
    name: str


@dataclass(frozen=True)
class FinalizedInvoice:
    """External invoice after finalization."""

    external_invoice_id: str
    hosted_invoice_url: str | None = None


class BillingClient(Protocol):
    """External billing system operations used for platform fees."""

    enabled: bool

    async def create_customer(
        self, customer: BillingCustomer, idempotency_key: str
    ) -> str:
        """Create (or look up) the billing customer, return its ID."""
        ...

    async def create_invoice(
        self,
        customer_id: str,
        days_until_due: int,
        description: str,
        metadata: dict[str, str],
        idempotency_key: str,
    ) -> str:
        """Create a draft invoice sent by email, return its ID."""
        ...

    async def add_line_item(
        self,
        customer_id: str,
        invoice_id: str,
        amount_cents: int,
        currency: str,
        description: str,
        idempotency_key: str,
    ) -> None:
        """Add a line item; negative amounts are credits."""
        ...

    async def finalize_invoice(self, invoice_id: str) -> FinalizedInvoice:
        """Finalize a draft invoice."""
        ...

    async def send_invoice(self, invoice_id: str) -> None:
        """Send a finalized invoice to the customer."""
        ...


class LedgerOnlyBillingClient:
    """
    Billing client that performs no external calls.

    Invoices are recorded locally only (status stays pending) so an
    operator can bill creators manually from the invoice table.
    """

    enabled = False

    async def create_customer(
        self, customer: BillingCustomer, idempotency_key: str
    ) -> str:
        raise NotImplementedError("Ledger-only billing has no customers")

    async def create_invoice(
        self,
        customer_id: str,
        days_until_due: int,
        description: str,
        metadata: dict[str, str],
        idempotency_key: str,
    ) -> str:
        raise NotImplementedError("Ledger-only billing has no external invoices")

    async def add_line_item(
        self,
        customer_id: str,
        invoice_id: str,
        amount_cents: int,
        currency: str,
        description: str,
        idempotency_key: str,
    ) -> None:
        raise NotImplementedError("Ledger-only billing has no external invoices")

    async def finalize_invoice(self, invoice_id: str) -> FinalizedInvoice:
        raise NotImplementedError("Ledger-only billing has no external invoices")

    async def send_invoice(self, invoice_id: str) -> None:
        raise NotImplementedError("Ledger-only billing has no external invoices")


def describe_period(start: datetime) -> str:
    """Invoice description for a billing month, e.g. 'September 2026'."""
    return start.strftime("%B %Y")
