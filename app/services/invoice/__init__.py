"""
Platform fee invoicing.

Monthly invoice generation, the billing collaborator interface and
billing event status transitions.
"""

from app.services.invoice.billing_client import (
    BillingClient,
    BillingCustomer,
    FinalizedInvoice,
    LedgerOnlyBillingClient,
)
from app.services.invoice.invoice_generator import (
    InvoiceErrorEntry,
    InvoiceGenerator,
    InvoicedEntry,
    InvoiceRunResult,
    SkippedEntry,
)
from app.services.invoice.invoice_status import InvoiceStatusService


__all__ = [
    "BillingClient",
    "BillingCustomer",
    "FinalizedInvoice",
    "InvoiceErrorEntry",
    "InvoiceGenerator",
    "InvoiceRunResult",
    "InvoiceStatusService",
    "InvoicedEntry",
    "LedgerOnlyBillingClient",
    "SkippedEntry",
]
