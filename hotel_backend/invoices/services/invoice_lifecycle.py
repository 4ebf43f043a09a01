"""
INVOICE LIFECYCLE DOMAIN RULES

ISSUED  --balance reaches 0-->         PAID      (terminal)
ISSUED  --past due, balance > 0-->     OVERDUE
OVERDUE --balance reaches 0-->         PAID
OVERDUE --due date no longer passed--> ISSUED
ISSUED / OVERDUE --cancel-->           CANCELLED (terminal)
"""

from datetime import datetime
from decimal import Decimal

from folios.services.exceptions import InvalidStateError
from invoices.models import Invoice

# ============================================================
# STATE DEFINITIONS
# ============================================================

TERMINAL_STATES = {
    Invoice.STATUS_PAID,
    Invoice.STATUS_CANCELLED,
}

ALLOWED_TRANSITIONS = {
    Invoice.STATUS_ISSUED: {
        Invoice.STATUS_PAID,
        Invoice.STATUS_OVERDUE,
        Invoice.STATUS_CANCELLED,
    },
    Invoice.STATUS_OVERDUE: {
        Invoice.STATUS_PAID,
        Invoice.STATUS_ISSUED,
        Invoice.STATUS_CANCELLED,
    },
}


# ============================================================
# DOMAIN RULES
# ============================================================


def can_transition(*, from_status: str, to_status: str) -> bool:
    if from_status in TERMINAL_STATES:
        return False

    return to_status in ALLOWED_TRANSITIONS.get(from_status, set())


def validate_transition(*, invoice: Invoice, target_status: str):
    if not can_transition(
        from_status=invoice.status,
        to_status=target_status,
    ):
        raise InvalidStateError(
            f"Invoice {invoice.invoice_number} cannot transition from "
            f"'{invoice.status}' to '{target_status}'"
        )


def derive_settlement_status(
    *, balance_due: Decimal, due_date: datetime, now: datetime
) -> str:
    if balance_due <= 0:
        return Invoice.STATUS_PAID
    if now > due_date:
        return Invoice.STATUS_OVERDUE
    return Invoice.STATUS_ISSUED
