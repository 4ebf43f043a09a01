"""
======================================================
PATH: invoices/services/invoice_service.py
======================================================
INVOICE GENERATOR

generate_invoice
- ONLY from a CLOSED folio
- IDEMPOTENT: the existing invoice for a folio is returned unchanged
- snapshots folio subtotal / tax / total / paid / balance
- INV-{year}-{seq} per hotel, status ISSUED, due date default +30 days
- bill_to: folio billing fields first, guest profile as fallback

mark_invoice_paid / record_invoice_payment
- paid_amount = prepaid_amount (folio payments at issue) + invoice payments
- PAID if balance <= 0, OVERDUE if past due, else ISSUED

cancel_invoice
- ISSUED / OVERDUE -> CANCELLED (terminal); the source folio is untouched

The folio row is locked during generation so invoicing cannot interleave
with a concurrent ledger mutation on the same folio.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta
from decimal import ROUND_HALF_UP, Decimal

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError, transaction
from django.db.models import Sum
from django.db.models.functions import Coalesce
from django.utils import timezone

from folios.models import Folio, FolioItem
from folios.models.sequence import DocumentSequence
from folios.services.events import (
    INVOICE_CANCELLED,
    INVOICE_GENERATED,
    INVOICE_PAID,
    emit_after_commit,
)
from folios.services.exceptions import (
    BillingNotFoundError,
    BillingValidationError,
    InvalidStateError,
)
from folios.services.locking import lock_folio, surface_contention
from folios.services.numbering import allocate_document_number
from folios.services.payments import validate_payment_input
from invoices.models import Invoice, InvoicePayment
from invoices.services.invoice_lifecycle import (
    derive_settlement_status,
    validate_transition,
)

logger = logging.getLogger(__name__)

TWOPLACES = Decimal("0.01")
ZERO = Decimal("0.00")


def _money(value) -> Decimal:
    return Decimal(str(value or "0")).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def _actor(user):
    return user if getattr(user, "is_authenticated", False) else None


def _as_due_datetime(value) -> datetime:
    if isinstance(value, datetime):
        if timezone.is_naive(value):
            return timezone.make_aware(value, timezone.get_current_timezone())
        return value
    if isinstance(value, date):
        return timezone.make_aware(
            datetime.combine(value, time(23, 59, 59)),
            timezone.get_current_timezone(),
        )
    raise BillingValidationError(f"Invalid due date: {value!r}")


def build_bill_to(folio: Folio) -> dict:
    guest = folio.guest
    return {
        "name": folio.billing_name or guest.full_name,
        "address": folio.billing_address or guest.address,
        "email": folio.billing_email or guest.email,
        "phone": folio.billing_phone or guest.phone,
    }


def lock_invoice(*, invoice_id, hotel_id=None) -> Invoice:
    qs = Invoice.objects.select_for_update()
    if hotel_id is not None:
        qs = qs.filter(hotel_id=hotel_id)

    try:
        return qs.get(pk=invoice_id)
    except (Invoice.DoesNotExist, ValueError, DjangoValidationError) as exc:
        raise BillingNotFoundError(f"Invoice {invoice_id} not found") from exc


# ============================================================
# GENERATE
# ============================================================


@surface_contention
@transaction.atomic
def generate_invoice(
    *,
    folio_id,
    due_date=None,
    notes: str = "",
    terms_and_conditions: str = "",
    user=None,
    hotel_id=None,
    emitter=None,
) -> Invoice:
    folio = lock_folio(folio_id=folio_id, hotel_id=hotel_id)

    existing = Invoice.objects.filter(folio=folio).first()
    if existing is not None:
        return existing

    if folio.status != Folio.STATUS_CLOSED:
        raise InvalidStateError(
            f"Cannot invoice {folio.status} folio {folio.folio_number}; close it first"
        )

    issue_date = timezone.now()
    if due_date is None:
        due_date = issue_date + timedelta(days=settings.INVOICE_DEFAULT_DUE_DAYS)
    else:
        due_date = _as_due_datetime(due_date)

    if due_date < issue_date:
        raise BillingValidationError("Invoice due date cannot be before the issue date")

    try:
        with transaction.atomic():
            invoice = Invoice.objects.create(
                hotel_id=folio.hotel_id,
                folio=folio,
                invoice_number=allocate_document_number(
                    hotel_id=folio.hotel_id,
                    kind=DocumentSequence.KIND_INVOICE,
                    at=issue_date,
                ),
                currency=folio.currency,
                subtotal=folio.subtotal,
                tax_amount=folio.tax_amount,
                total_amount=folio.total_amount,
                prepaid_amount=folio.paid_amount,
                paid_amount=folio.paid_amount,
                balance_due=folio.balance_due,
                bill_to=build_bill_to(folio),
                issue_date=issue_date,
                due_date=due_date,
                status=Invoice.STATUS_ISSUED,
                notes=(notes or "").strip(),
                terms_and_conditions=(terms_and_conditions or "").strip(),
                issued_by=_actor(user),
            )
    except IntegrityError:
        existing = Invoice.objects.filter(folio=folio).first()
        if existing is not None:
            return existing
        raise

    logger.info(
        "Invoice generated",
        extra={
            "invoice_id": str(invoice.id),
            "invoice_number": invoice.invoice_number,
            "folio_id": str(folio.id),
            "total_amount": str(invoice.total_amount),
            "balance_due": str(invoice.balance_due),
        },
    )

    emit_after_commit(
        INVOICE_GENERATED,
        {
            "invoice_id": str(invoice.id),
            "invoice_number": invoice.invoice_number,
            "folio_id": str(folio.id),
            "hotel_id": str(invoice.hotel_id),
        },
        emitter=emitter,
    )

    return invoice


# ============================================================
# SETTLEMENT
# ============================================================


def _apply_settlement(invoice: Invoice, *, now: datetime) -> str:
    """
    Re-derive paid/balance/status on a LOCKED invoice. Returns previous status.
    """
    linked = InvoicePayment.objects.filter(invoice=invoice).aggregate(
        total=Coalesce(Sum("amount"), ZERO)
    )["total"]

    previous_status = invoice.status

    invoice.paid_amount = _money(invoice.prepaid_amount) + _money(linked)
    invoice.balance_due = _money(invoice.total_amount) - invoice.paid_amount

    target = derive_settlement_status(
        balance_due=invoice.balance_due,
        due_date=invoice.due_date,
        now=now,
    )
    if target != previous_status:
        validate_transition(invoice=invoice, target_status=target)
        invoice.status = target

    if invoice.status == Invoice.STATUS_PAID:
        invoice.paid_date = now

    invoice.save(
        update_fields=["paid_amount", "balance_due", "status", "paid_date", "updated_at"]
    )
    return previous_status


def _announce_if_paid(invoice: Invoice, previous_status: str, emitter) -> None:
    if invoice.status != Invoice.STATUS_PAID or previous_status == Invoice.STATUS_PAID:
        return

    logger.info(
        "Invoice paid",
        extra={
            "invoice_id": str(invoice.id),
            "invoice_number": invoice.invoice_number,
            "paid_amount": str(invoice.paid_amount),
        },
    )
    emit_after_commit(
        INVOICE_PAID,
        {
            "invoice_id": str(invoice.id),
            "invoice_number": invoice.invoice_number,
            "paid_amount": str(invoice.paid_amount),
        },
        emitter=emitter,
    )


@surface_contention
@transaction.atomic
def mark_invoice_paid(
    *,
    invoice_id,
    hotel_id=None,
    emitter=None,
    now=None,
) -> Invoice:
    invoice = lock_invoice(invoice_id=invoice_id, hotel_id=hotel_id)

    if invoice.status == Invoice.STATUS_PAID:
        return invoice
    if invoice.status == Invoice.STATUS_CANCELLED:
        raise InvalidStateError(
            f"Invoice {invoice.invoice_number} is cancelled"
        )

    previous_status = _apply_settlement(invoice, now=now or timezone.now())
    _announce_if_paid(invoice, previous_status, emitter)
    return invoice


@surface_contention
@transaction.atomic
def record_invoice_payment(
    *,
    invoice_id,
    amount,
    method: str,
    reference: str = "",
    payment_date=None,
    user=None,
    hotel_id=None,
    emitter=None,
) -> InvoicePayment:
    amount, method = validate_payment_input(amount=amount, method=method)

    invoice = lock_invoice(invoice_id=invoice_id, hotel_id=hotel_id)
    if invoice.is_terminal:
        raise InvalidStateError(
            f"Cannot record payments on {invoice.status} invoice {invoice.invoice_number}"
        )

    create_kwargs = {
        "invoice": invoice,
        "amount": amount,
        "method": method,
        "reference": (reference or "").strip(),
        "recorded_by": _actor(user),
    }
    if payment_date is not None:
        create_kwargs["payment_date"] = payment_date

    payment = InvoicePayment.objects.create(**create_kwargs)

    previous_status = _apply_settlement(invoice, now=timezone.now())

    logger.info(
        "Invoice payment recorded",
        extra={
            "invoice_id": str(invoice.id),
            "payment_id": str(payment.id),
            "amount": str(amount),
            "balance_due": str(invoice.balance_due),
            "status": invoice.status,
        },
    )

    _announce_if_paid(invoice, previous_status, emitter)
    return payment


# ============================================================
# CANCEL
# ============================================================


@surface_contention
@transaction.atomic
def cancel_invoice(
    *,
    invoice_id,
    reason: str,
    user=None,
    hotel_id=None,
    emitter=None,
) -> Invoice:
    reason = (reason or "").strip()
    if not reason:
        raise BillingValidationError("A cancellation reason is required")

    invoice = lock_invoice(invoice_id=invoice_id, hotel_id=hotel_id)
    validate_transition(invoice=invoice, target_status=Invoice.STATUS_CANCELLED)

    invoice.status = Invoice.STATUS_CANCELLED
    invoice.cancelled_at = timezone.now()
    invoice.cancelled_by = _actor(user)
    invoice.cancellation_reason = reason
    invoice.save(
        update_fields=[
            "status",
            "cancelled_at",
            "cancelled_by",
            "cancellation_reason",
            "updated_at",
        ]
    )

    logger.info(
        "Invoice cancelled",
        extra={
            "invoice_id": str(invoice.id),
            "invoice_number": invoice.invoice_number,
            "reason": reason,
        },
    )

    emit_after_commit(
        INVOICE_CANCELLED,
        {
            "invoice_id": str(invoice.id),
            "invoice_number": invoice.invoice_number,
            "reason": reason,
        },
        emitter=emitter,
    )

    return invoice


# ============================================================
# OVERDUE SWEEP
# ============================================================


def refresh_overdue_invoices(*, hotel_id=None, now=None, emitter=None) -> list[Invoice]:
    """
    Re-derive status for ISSUED invoices already past due.
    Each invoice is settled in its own transaction.
    """
    now = now or timezone.now()

    candidates = Invoice.objects.filter(
        status=Invoice.STATUS_ISSUED,
        due_date__lt=now,
    )
    if hotel_id is not None:
        candidates = candidates.filter(hotel_id=hotel_id)

    return [
        mark_invoice_paid(invoice_id=invoice_id, emitter=emitter, now=now)
        for invoice_id in candidates.values_list("id", flat=True)
    ]


# ============================================================
# EXPORT
# ============================================================


def export_invoice(invoice: Invoice) -> dict:
    """
    JSON-ready representation (amounts as strings, datetimes ISO-8601).
    """
    folio = invoice.folio
    hotel = invoice.hotel

    line_items = [
        {
            "description": item.description,
            "category": item.category,
            "quantity": str(item.quantity),
            "unit_price": str(item.unit_price),
            "total_price": str(item.total_price),
            "tax_rate": str(item.tax_rate),
            "tax_amount": str(item.tax_amount),
            "service_date": item.service_date.isoformat(),
        }
        for item in folio.items.filter(
            entry_type=FolioItem.ENTRY_CHARGE,
            is_voided=False,
        ).order_by("posted_at", "id")
    ]

    payments = [
        {
            "source": "FOLIO",
            "reference": payment.receipt_number,
            "amount": str(payment.amount),
            "method": payment.method,
            "payment_date": payment.payment_date.isoformat(),
        }
        for payment in folio.payments.order_by("payment_date", "id")
    ] + [
        {
            "source": "INVOICE",
            "reference": payment.reference,
            "amount": str(payment.amount),
            "method": payment.method,
            "payment_date": payment.payment_date.isoformat(),
        }
        for payment in invoice.payments.order_by("payment_date", "id")
    ]

    return {
        "invoice_number": invoice.invoice_number,
        "folio_number": folio.folio_number,
        "status": invoice.status,
        "currency": invoice.currency,
        "issue_date": invoice.issue_date.isoformat(),
        "due_date": invoice.due_date.isoformat(),
        "paid_date": invoice.paid_date.isoformat() if invoice.paid_date else None,
        "hotel": {
            "name": hotel.name,
            "address": hotel.address,
            "email": hotel.email,
            "phone": hotel.phone,
        },
        "bill_to": invoice.bill_to,
        "line_items": line_items,
        "payments": payments,
        "totals": {
            "subtotal": str(invoice.subtotal),
            "tax_amount": str(invoice.tax_amount),
            "total_amount": str(invoice.total_amount),
            "paid_amount": str(invoice.paid_amount),
            "balance_due": str(invoice.balance_due),
        },
        "notes": invoice.notes,
        "terms_and_conditions": invoice.terms_and_conditions,
    }
